"""
Remote tag index service for extmirror.

Resolves the mirror repository of a package on GitHub and the tags it
already carries, creating the repository when it does not exist yet.
"""

import logging
from typing import Dict, Any, Optional

from ..config import load_config
from ..domain.operation import RemoteLookup, RepositoryResolution
from ..infra.github_client import GitHubClient, GitHubError, RepositoryExistsError

logger = logging.getLogger(__name__)


class RemoteTagIndex:
    """
    Looks up mirror repositories and their existing tags.

    Never raises for hosting failures: every outcome is a RemoteLookup whose
    status tells the caller whether to proceed.

    Example:
        index = RemoteTagIndex(config)
        repositories = {}
        lookup = index.lookup("news", repositories)
        if lookup.resolved:
            print(lookup.repository_url, sorted(lookup.tags))
    """

    def __init__(
        self,
        config: Optional[Dict[str, Any]] = None,
        github_client: Optional[GitHubClient] = None
    ):
        self.config = config or load_config()
        self.github = github_client or GitHubClient.from_config(self.config)
        github = self.config.get('github', {})
        self.owner = github.get('owner', '')
        self.owner_is_organization = bool(github.get('owner_is_organization', False))
        self.homepage_template = github.get('homepage_template')
        self.ssh_url_template = github.get('ssh_url_template', 'git@github.com:{owner}/{key}.git')

    def _homepage(self, key: str) -> Optional[str]:
        return self.homepage_template.format(key=key) if self.homepage_template else None

    def _ssh_url(self, key: str) -> str:
        return self.ssh_url_template.format(owner=self.owner, key=key)

    def lookup(self, key: str, repositories: Dict[str, str]) -> RemoteLookup:
        """
        Resolve the repository URL and existing tags for a package.

        Args:
            key: Package key (also the repository name)
            repositories: Key to URL map for the current planning run;
                updated in place with every resolved repository

        Returns:
            RemoteLookup
        """
        try:
            repo = self.github.get_repo(self.owner, key)
        except GitHubError as e:
            logger.error(f"Remote unresolvable for {key}: {e}")
            return RemoteLookup(status=RepositoryResolution.UNAVAILABLE, error=str(e))

        if repo is not None:
            url = repo.ssh_url or self._ssh_url(key)
            repositories[key] = url
            try:
                tags = frozenset(self.github.list_tags(self.owner, key))
            except GitHubError as e:
                logger.error(f"Could not list tags of {key}: {e}")
                return RemoteLookup(
                    status=RepositoryResolution.UNAVAILABLE,
                    repository_url=None,
                    error=str(e),
                )
            return RemoteLookup(
                status=RepositoryResolution.EXISTING,
                repository_url=url,
                tags=tags,
            )

        if key in repositories:
            # Created earlier in this run, still invisible to the API
            return RemoteLookup(
                status=RepositoryResolution.EXISTING,
                repository_url=repositories[key],
            )

        return self._create(key, repositories)

    def _create(self, key: str, repositories: Dict[str, str]) -> RemoteLookup:
        organization = self.owner if self.owner_is_organization else None
        try:
            created = self.github.create_repo(
                key,
                description='',
                homepage=self._homepage(key),
                organization=organization,
            )
        except RepositoryExistsError:
            # Left over from an earlier, partially failed run
            url = self._ssh_url(key)
            repositories[key] = url
            logger.info(f"Repository {key} already exists, using {url}")
            return RemoteLookup(status=RepositoryResolution.ALREADY_EXISTS, repository_url=url)
        except GitHubError as e:
            logger.error(f"Could not create repository {key}: {e}")
            return RemoteLookup(status=RepositoryResolution.UNAVAILABLE, error=str(e))

        url = created.ssh_url or self._ssh_url(key)
        repositories[key] = url
        logger.info(f"Created repository {created.full_name or key}")
        return RemoteLookup(status=RepositoryResolution.CREATED, repository_url=url)
