"""
Domain layer for extmirror.

Contains pure domain objects with no I/O or side effects:
- Package, Version, Author: what gets mirrored
- Job: a reserved queue entry and its payload codec
- Operation results: planner and worker outcomes
"""

from .package import Package, Version, Author, UNREVIEWED
from .job import Job, JobPayloadError, encode_package, decode_package
from .operation import (
    OperationStatus,
    RepositoryResolution,
    PlanOutcome,
    VersionStage,
    RemoteLookup,
    PackagePlan,
    PlanReport,
    VersionOutcome,
    JobSummary,
)

__all__ = [
    'Package',
    'Version',
    'Author',
    'UNREVIEWED',
    'Job',
    'JobPayloadError',
    'encode_package',
    'decode_package',
    'OperationStatus',
    'RepositoryResolution',
    'PlanOutcome',
    'VersionStage',
    'RemoteLookup',
    'PackagePlan',
    'PlanReport',
    'VersionOutcome',
    'JobSummary',
]
