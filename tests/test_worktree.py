"""
Tests for working directory helpers and the README writer.
"""

from datetime import datetime, timezone

from extmirror.config import get_default_config
from extmirror.domain import Author, Package, Version
from extmirror.services.readme_service import ReadmeService
from extmirror.worktree import clear_worktree, reset_directory


class TestResetDirectory:
    def test_creates_missing(self, tmp_path):
        path = reset_directory(tmp_path / 'Extension' / 'news')
        assert path.is_dir()
        assert list(path.iterdir()) == []

    def test_empties_existing(self, tmp_path):
        path = tmp_path / 'news'
        (path / '.git').mkdir(parents=True)
        (path / 'file.txt').write_text('x')

        reset_directory(path)

        assert list(path.iterdir()) == []


class TestClearWorktree:
    def test_keeps_top_level_git(self, tmp_path):
        (tmp_path / '.git' / 'refs').mkdir(parents=True)
        (tmp_path / '.git' / 'HEAD').write_text('ref')
        (tmp_path / 'Classes' / 'Domain').mkdir(parents=True)
        (tmp_path / 'Classes' / 'Domain' / 'Model.php').write_text('php')
        (tmp_path / 'ext_emconf.php').write_text('conf')
        (tmp_path / '.gitignore').write_text('*.log')

        removed = clear_worktree(tmp_path)

        assert removed == 3
        assert sorted(p.name for p in tmp_path.iterdir()) == ['.git']
        assert (tmp_path / '.git' / 'HEAD').exists()

    def test_nested_git_directory_is_removed(self, tmp_path):
        (tmp_path / 'vendor' / '.git').mkdir(parents=True)
        (tmp_path / 'vendor' / '.git' / 'config').write_text('x')

        clear_worktree(tmp_path)

        assert not (tmp_path / 'vendor').exists()


class TestReadmeService:
    def setup_method(self):
        self.version = Version(
            number='1.1.0',
            author=Author('Jane Doe', 'jane@example.org'),
            upload_date=datetime(2012, 2, 1, tzinfo=timezone.utc),
            upload_comment='Bugfix release',
            title='News',
            description='News system',
            state='stable',
        )
        self.package = Package(key='news', versions=[self.version])

    def test_render(self):
        config = get_default_config()
        text = ReadmeService(config).render(self.package, self.version)

        assert text.startswith('# News')
        assert '| Extension key | `news` |' in text
        assert '| Version | 1.1.0 |' in text
        assert 'Jane Doe <jane@example.org>' in text
        assert 'https://extensions.typo3.org/extension/news' in text
        assert 'Bugfix release' in text

    def test_write_overwrites(self, tmp_path):
        (tmp_path / 'README.md').write_text('upstream readme')
        service = ReadmeService({'worker': {'readme_filename': 'README.md'}})

        path = service.write(self.package, self.version, tmp_path)

        assert path == tmp_path / 'README.md'
        assert path.read_text().startswith('# News')

    def test_without_title_or_homepage(self):
        version = Version(
            number='0.1.0',
            author=Author('', ''),
            upload_date=datetime(2012, 2, 1, tzinfo=timezone.utc),
        )
        text = ReadmeService().render(self.package, version)

        assert text.startswith('# news')
        assert 'Homepage' not in text
        assert 'unknown' in text
