"""
extmirror - Mirror extension repository releases into git repositories.

Every published version of a package becomes one commit and one annotated
tag in the package's own GitHub repository.

Quick Start:
    from extmirror import load_config, VersionDiffPlanner, RepositoryMirrorWorker
    from extmirror.infra import JobQueueClient
    from extmirror.package_list import load_packages

    config = load_config()
    queue = JobQueueClient.from_config(config)

    # Planning: queue every version that has no tag yet
    planner = VersionDiffPlanner(config, queue=queue)
    report = planner.run(load_packages("extensions.xml.gz"))

    # Worker: mirror one queued package
    worker = RepositoryMirrorWorker(config, queue=queue)
    summary = worker.run_once()

Domain Objects:
    Package - An extension and its pending versions
    Version - One published release
    Job - A reserved queue entry

Services:
    RemoteTagIndex - Mirror repository and existing tags
    VersionDiffPlanner - Planning phase
    RepositoryMirrorWorker - Worker phase
    QueueDrainer - Empties a tube
"""

__version__ = "0.3.0"

# Domain objects
from .domain import (
    Package,
    Version,
    Author,
    Job,
    JobSummary,
    PlanReport,
)

# Services
from .services import (
    RemoteTagIndex,
    VersionDiffPlanner,
    RepositoryMirrorWorker,
    QueueDrainer,
)

# Configuration
from .config import load_config, save_config

__all__ = [
    "__version__",
    "Package",
    "Version",
    "Author",
    "Job",
    "JobSummary",
    "PlanReport",
    "RemoteTagIndex",
    "VersionDiffPlanner",
    "RepositoryMirrorWorker",
    "QueueDrainer",
    "load_config",
    "save_config",
]
