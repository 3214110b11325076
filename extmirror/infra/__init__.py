"""
Infrastructure layer for extmirror.

Contains abstractions for external systems:
- GitClient: Git command execution
- GitHubClient: GitHub API access
- JobQueueClient: Redis-backed job queue
- ArtifactClient: release archive downloads

These provide clean interfaces that can be mocked for testing.
"""

from .git_client import GitClient, GitResult, GitCommandError
from .github_client import GitHubClient, GitHubError, GitHubRepo, RepositoryExistsError, RateLimitStatus
from .queue_client import JobQueueClient, QueueStats
from .artifact_client import ArtifactClient, ArtifactError

__all__ = [
    'GitClient',
    'GitResult',
    'GitCommandError',
    'GitHubClient',
    'GitHubError',
    'GitHubRepo',
    'RepositoryExistsError',
    'RateLimitStatus',
    'JobQueueClient',
    'QueueStats',
    'ArtifactClient',
    'ArtifactError',
]
