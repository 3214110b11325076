"""
Service layer for extmirror.

Contains the pipeline logic that orchestrates domain objects and
infrastructure:
- RemoteTagIndex: mirror repository and existing tags of a package
- VersionDiffPlanner: prunes mirrored versions and enqueues jobs
- RepositoryMirrorWorker: commits, tags and pushes queued versions
- QueueDrainer: empties a tube
- ReadmeService: descriptive README per mirrored version

Services are the primary API for commands to use.
"""

from .tag_index_service import RemoteTagIndex
from .planner_service import VersionDiffPlanner
from .mirror_worker_service import RepositoryMirrorWorker
from .queue_drainer_service import QueueDrainer
from .readme_service import ReadmeService

__all__ = [
    'RemoteTagIndex',
    'VersionDiffPlanner',
    'RepositoryMirrorWorker',
    'QueueDrainer',
    'ReadmeService',
]
