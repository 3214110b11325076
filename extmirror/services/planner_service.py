"""
Version diff planner for extmirror.

Compares each package's published versions with the tags already on its
mirror repository and enqueues one job per package holding only the
versions that still need mirroring.
"""

import logging
from typing import Dict, Any, Iterable, Optional

from ..config import load_config
from ..domain.job import encode_package
from ..domain.operation import PackagePlan, PlanOutcome, PlanReport
from ..domain.package import Package
from ..infra.queue_client import JobQueueClient
from .tag_index_service import RemoteTagIndex

logger = logging.getLogger(__name__)


class VersionDiffPlanner:
    """
    Plans mirroring jobs.

    Example:
        planner = VersionDiffPlanner(config, tag_index=index, queue=queue)
        report = planner.run(packages)
        print(f"Queued {len(report.queued)} packages")
    """

    def __init__(
        self,
        config: Optional[Dict[str, Any]] = None,
        tag_index: Optional[RemoteTagIndex] = None,
        queue: Optional[JobQueueClient] = None
    ):
        self.config = config or load_config()
        self.tag_index = tag_index or RemoteTagIndex(self.config)
        self.queue = queue
        self.tube = self.config.get('queue', {}).get('tube', 'extensions')

    def plan(self, package: Package, repositories: Dict[str, str]) -> PackagePlan:
        """
        Resolve the mirror repository and prune already tagged versions.

        Mutates ``package``: sets its repository URL and removes mirrored
        versions. Remaining versions keep their source order. Nothing is
        enqueued here.
        """
        lookup = self.tag_index.lookup(package.key, repositories)

        if not lookup.resolved:
            logger.error(f"Package {package.key} skipped, remote unresolvable: {lookup.error}")
            return PackagePlan(
                package=package,
                outcome=PlanOutcome.UNRESOLVED,
                resolution=lookup.status,
                error=lookup.error,
            )

        package.repository_url = lookup.repository_url

        already_tagged = []
        flagged = []
        for version in list(package.versions):
            if version.number in lookup.tags:
                logger.info(f"Version {version.number} is already tagged")
                package.remove_version(version.number)
                if version.number not in already_tagged:
                    already_tagged.append(version.number)
            elif version.is_unreviewed:
                logger.warning(f"Version {version.number} of {package.key} is new and insecure")
                flagged.append(version.number)

        if not package.versions:
            logger.info(f"Package {package.key} is ignored, all versions already tagged")
            outcome = PlanOutcome.ALREADY_MIRRORED
        else:
            for number in package.version_numbers():
                logger.info(f"Version {number} is taken into account")
            outcome = PlanOutcome.QUEUED

        return PackagePlan(
            package=package,
            outcome=outcome,
            resolution=lookup.status,
            already_tagged=already_tagged,
            flagged=flagged,
        )

    def run(self, packages: Iterable[Package], enqueue: bool = True) -> PlanReport:
        """
        Plan every package and enqueue the non-empty ones.

        Args:
            packages: Packages with their complete version lists
            enqueue: False for a dry run that only reports

        Returns:
            PlanReport, including the repository map built during this run
        """
        if enqueue and self.queue is None:
            raise ValueError("A queue client is required unless running dry")

        report = PlanReport()
        for package in packages:
            plan = self.plan(package, report.repositories)

            if plan.outcome == PlanOutcome.QUEUED:
                if enqueue:
                    plan.job_id = self.queue.enqueue(self.tube, encode_package(package))
                    logger.info(f"Queued {package.key} as job #{plan.job_id}")
                else:
                    plan.outcome = PlanOutcome.DRY_RUN

            report.add(plan)

        summary = report.to_dict()
        logger.info(
            f"Planning finished: {summary['total']} packages, {summary['queued']} queued, "
            f"{summary['already_mirrored']} already mirrored, {summary['unresolved']} unresolved"
        )
        return report
