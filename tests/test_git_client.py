"""
Tests for the git client.

subprocess.run is patched; the tests check the exact command lines and the
exit code policy.
"""

import subprocess
from datetime import datetime, timezone
from unittest.mock import MagicMock, patch

import pytest

from extmirror.infra.git_client import GitClient, GitCommandError


def completed(returncode=0, stdout='', stderr=''):
    result = MagicMock()
    result.returncode = returncode
    result.stdout = stdout
    result.stderr = stderr
    return result


UPLOAD_DATE = datetime(2012, 3, 4, 5, 6, 7, tzinfo=timezone.utc)


@pytest.fixture
def mock_run():
    with patch('extmirror.infra.git_client.subprocess.run') as run:
        run.return_value = completed()
        yield run


class TestGitClient:
    def test_init_and_remote(self, mock_run):
        client = GitClient()
        client.init('/work/news')
        client.add_remote('/work/news', 'git@github.com:o/news.git')

        assert mock_run.call_args_list[0][0][0] == ['git', 'init']
        assert mock_run.call_args_list[0][1]['cwd'] == '/work/news'
        assert mock_run.call_args_list[1][0][0] == ['git', 'remote', 'add', 'origin', 'git@github.com:o/news.git']

    def test_set_identity(self, mock_run):
        GitClient().set_identity('/work/news', 'Jane Doe', 'jane@example.org')

        commands = [c[0][0] for c in mock_run.call_args_list]
        assert ['git', 'config', 'user.name', 'Jane Doe'] in commands
        assert ['git', 'config', 'user.email', 'jane@example.org'] in commands

    def test_pull_quiet_from_branch(self, mock_run):
        GitClient().pull('/work/news', branch='master')
        assert mock_run.call_args[0][0] == ['git', 'pull', '-q', 'origin', 'master']

    def test_commit_uses_upload_date(self, mock_run):
        GitClient().commit('/work/news', 'Import of Version 1.0.0', date=UPLOAD_DATE)

        args, kwargs = mock_run.call_args
        assert args[0] == ['git', 'commit', '-m', 'Import of Version 1.0.0',
                           '--date', '2012-03-04T05:06:07+00:00']
        assert kwargs['env']['GIT_COMMITTER_DATE'] == '2012-03-04T05:06:07+00:00'

    def test_tag_is_annotated(self, mock_run):
        GitClient().tag('/work/news', '1.0.0', 'Version 1.0.0', date=UPLOAD_DATE)
        assert mock_run.call_args[0][0] == ['git', 'tag', '-a', '-m', 'Version 1.0.0', '1.0.0']

    def test_push_branch_and_tags(self, mock_run):
        GitClient().push('/work/news', branch='master')
        assert mock_run.call_args[0][0] == ['git', 'push', '--tags', 'origin', 'master']

    def test_add_all(self, mock_run):
        GitClient().add_all('/work/news')
        assert mock_run.call_args[0][0] == ['git', 'add', '-A']

    def test_failure_is_logged_not_raised_by_default(self, mock_run):
        mock_run.return_value = completed(returncode=128, stderr='fatal: no remote')

        result = GitClient().pull('/work/news', branch='master')

        assert not result.ok
        assert result.returncode == 128
        assert 'fatal: no remote' in result.output

    def test_strict_mode_raises(self, mock_run):
        mock_run.return_value = completed(returncode=1, stderr='nothing to commit')

        with pytest.raises(GitCommandError) as exc_info:
            GitClient(check=True).commit('/work/news', 'msg')
        assert exc_info.value.returncode == 1

    def test_timeout(self, mock_run):
        mock_run.side_effect = subprocess.TimeoutExpired(cmd='git push', timeout=5)
        result = GitClient(timeout=5).push('/work/news')
        assert result.returncode == -1

    def test_from_config(self):
        client = GitClient.from_config({'git': {'check_exit_codes': True, 'timeout_seconds': 0}})
        assert client.check is True
        assert client.timeout is None

    def test_init_names_branch(self, mock_run):
        GitClient().init('/work/news', branch='master')
        assert mock_run.call_args[0][0] == ['git', 'init', '-b', 'master']
