"""
Repository mirror worker for extmirror.

Consumes one job at a time. For every pending version, in list order, the
worker rebuilds the package working directory from scratch, syncs existing
history from the mirror, unpacks the release artifact on top, then commits,
tags and pushes. The job is deleted from the queue afterwards no matter how
many versions failed; the next planning run re-queues whatever is still
untagged.
"""

import logging
from pathlib import Path
from typing import Dict, Any, Optional

from ..config import load_config
from ..domain.job import Job, JobPayloadError
from ..domain.operation import (
    JobSummary,
    OperationStatus,
    VersionOutcome,
    VersionStage,
)
from ..domain.package import Package, Version
from ..extractor import ArchiveExtractor, ExtractionError
from ..infra.artifact_client import ArtifactClient, ArtifactError
from ..infra.git_client import GitClient, GitCommandError
from ..infra.github_client import GitHubClient, GitHubError
from ..infra.queue_client import JobQueueClient
from ..worktree import clear_worktree, reset_directory
from .readme_service import ReadmeService

logger = logging.getLogger(__name__)

# Expected per-version failures; anything else is logged with a traceback
VERSION_ERRORS = (OSError, ArtifactError, ExtractionError, GitCommandError, GitHubError)


class RepositoryMirrorWorker:
    """
    Mirrors queued packages into their git repositories.

    Example:
        worker = RepositoryMirrorWorker(config, queue=queue)
        summary = worker.run_once()
        print(summary.to_dict())
    """

    def __init__(
        self,
        config: Optional[Dict[str, Any]] = None,
        queue: Optional[JobQueueClient] = None,
        git_client: Optional[GitClient] = None,
        github_client: Optional[GitHubClient] = None,
        artifact_client: Optional[ArtifactClient] = None,
        extractor: Optional[ArchiveExtractor] = None,
        readme_service: Optional[ReadmeService] = None
    ):
        self.config = config or load_config()
        self.queue = queue
        self.git = git_client or GitClient.from_config(self.config)
        self.github = github_client or GitHubClient.from_config(self.config)
        self.artifacts = artifact_client or ArtifactClient.from_config(self.config)
        self.extractor = extractor or ArchiveExtractor()
        self.readme = readme_service or ReadmeService(self.config)

        self.tube = self.config.get('queue', {}).get('tube', 'extensions')
        self.owner = self.config.get('github', {}).get('owner', '')
        self.branch = self.config.get('git', {}).get('branch', 'master')
        self.temp_dir = Path(self.config.get('general', {}).get('temp_dir', '/tmp/extmirror'))

    def workdir_for(self, package: Package) -> Path:
        return self.temp_dir / 'Extension' / package.key

    def run_once(self, timeout: Optional[float] = None) -> Optional[JobSummary]:
        """
        Reserve one job, process it and delete it.

        Args:
            timeout: Seconds to wait for a job; None blocks indefinitely

        Returns:
            JobSummary, or None if no job arrived within the timeout
        """
        if self.queue is None:
            raise ValueError("A queue client is required to consume jobs")

        logger.info("Waiting for a job")
        job = self.queue.reserve(self.tube, timeout=timeout)
        if job is None:
            return None

        try:
            summary = self.process_job(job)
        finally:
            self.queue.delete(job)
            logger.info(f"Finished job (ID: {job.id})")
        return summary

    def run_forever(self, timeout: Optional[float] = None) -> None:
        """Process jobs until the process is terminated."""
        while True:
            self.run_once(timeout=timeout)

    def process_job(self, job: Job) -> JobSummary:
        """Decode a reserved job and mirror its package. Never deletes the job."""
        try:
            package = job.package()
        except JobPayloadError as e:
            logger.error(f"Job #{job.id} has an unreadable payload: {e}")
            return JobSummary(job_id=job.id, package_key=None, error=str(e))

        logger.info(f'Starting job {job.id}: "{package.key}"')
        summary = self.process_package(package)
        summary.job_id = job.id
        return summary

    def process_package(self, package: Package) -> JobSummary:
        """Mirror every pending version of ``package`` in list order."""
        summary = JobSummary(job_id=None, package_key=package.key)

        if not package.repository_url:
            message = f"Package {package.key} has no repository URL"
            logger.error(message)
            summary.error = message
            return summary

        for version in package.versions:
            summary.add(self.process_version(package, version))

        logger.info(
            f"Package {package.key}: {summary.successful} versions mirrored, "
            f"{summary.failed} failed"
        )
        return summary

    def process_version(self, package: Package, version: Version) -> VersionOutcome:
        """
        Run the per-version pipeline. Failures are logged and returned,
        never raised.
        """
        outcome = VersionOutcome(number=version.number, status=OperationStatus.FAILED)
        workdir = self.workdir_for(package)
        path = str(workdir)

        try:
            reset_directory(workdir)
            outcome.stage = VersionStage.PREPARED

            logger.info(f"Initializing GIT-Repository with origin: {package.repository_url}")
            self.git.init(path, branch=self.branch)
            self.git.add_remote(path, package.repository_url)
            self.git.set_identity(path, version.author.name, version.author.email)

            self._sync(package, workdir)
            outcome.stage = VersionStage.SYNCED

            artifact = workdir / f"{package.key}.artifact"
            logger.info(f"Downloading version {version.number}")
            try:
                self.artifacts.download(package.key, version.number, artifact)
            except ArtifactError as e:
                logger.error(
                    f'ERROR: Version "{version.number}" of extension "{package.key}" '
                    f'could not be downloaded! ({e})'
                )
                outcome.error = f"download failed: {e}"
                return outcome
            outcome.stage = VersionStage.ARTIFACT_FETCHED

            try:
                self.extractor.extract(artifact, workdir, version)
            finally:
                artifact.unlink(missing_ok=True)
            outcome.stage = VersionStage.EXTRACTED

            logger.info(f"Generate custom {self.readme.filename}")
            self.readme.write(package, version, workdir)

            logger.info(f"Committing, tagging and pushing version {version.number}")
            self.git.add_all(path)
            self.git.commit(path, version.commit_message, date=version.upload_date)
            outcome.stage = VersionStage.COMMITTED
            self.git.tag(path, version.number, version.tag_message, date=version.upload_date)
            outcome.stage = VersionStage.TAGGED
            self.git.push(path, branch=self.branch, tags=True)
            outcome.stage = VersionStage.PUSHED
        except VERSION_ERRORS as e:
            logger.error(
                f"Version {version.number} of {package.key} failed after stage "
                f"{outcome.stage.value}: {e}"
            )
            outcome.error = str(e)
            return outcome
        except Exception as e:
            logger.exception(
                f"Version {version.number} of {package.key} failed unexpectedly after stage "
                f"{outcome.stage.value}: {e}"
            )
            outcome.error = str(e)
            return outcome

        outcome.status = OperationStatus.SUCCESS
        return outcome

    def _sync(self, package: Package, workdir: Path) -> bool:
        """
        Pull existing history into the fresh repository.

        Returns:
            True if history was pulled, False for an empty or unreachable remote
        """
        try:
            commits = self.github.list_commits(self.owner, package.key)
        except GitHubError as e:
            logger.info(f"No Commit found ({e})")
            return False

        if not commits:
            logger.info("No Commit found")
            return False

        logger.info("Commit found -> pulling")
        self.git.pull(str(workdir), branch=self.branch)
        clear_worktree(workdir)
        return True
