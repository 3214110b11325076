"""
Operation result domain objects for extmirror.

Standardized result types for the planning run and the worker, used for
logging, CLI rendering and tests.
"""

from dataclasses import dataclass, field
from enum import Enum
from typing import Dict, Any, List, Optional

from .package import Package


class OperationStatus(Enum):
    """Status of an individual operation."""
    SUCCESS = "success"
    FAILED = "failed"


class RepositoryResolution(Enum):
    """How the mirror repository for a package was resolved."""
    EXISTING = "existing"
    CREATED = "created"
    ALREADY_EXISTS = "already_exists"
    UNAVAILABLE = "unavailable"


class PlanOutcome(Enum):
    """What the planner did with a package."""
    QUEUED = "queued"
    ALREADY_MIRRORED = "already_mirrored"
    UNRESOLVED = "unresolved"
    DRY_RUN = "dry_run"


class VersionStage(Enum):
    """Last stage a version reached in the worker, in order."""
    PENDING = "pending"
    PREPARED = "prepared"
    SYNCED = "synced"
    ARTIFACT_FETCHED = "artifact_fetched"
    EXTRACTED = "extracted"
    COMMITTED = "committed"
    TAGGED = "tagged"
    PUSHED = "pushed"


@dataclass(frozen=True)
class RemoteLookup:
    """Result of resolving a package's mirror repository and its tags."""
    status: RepositoryResolution
    repository_url: Optional[str] = None
    tags: frozenset = frozenset()
    error: Optional[str] = None

    @property
    def resolved(self) -> bool:
        return bool(self.repository_url)

    def to_dict(self) -> Dict[str, Any]:
        result = {
            'status': self.status.value,
            'repository_url': self.repository_url,
            'tags': sorted(self.tags),
        }
        if self.error:
            result['error'] = self.error
        return result


@dataclass
class PackagePlan:
    """Planning outcome for one package."""
    package: Package
    outcome: PlanOutcome
    resolution: RepositoryResolution
    already_tagged: List[str] = field(default_factory=list)
    flagged: List[str] = field(default_factory=list)
    job_id: Optional[str] = None
    error: Optional[str] = None

    @property
    def pending(self) -> List[str]:
        return self.package.version_numbers()

    def to_dict(self) -> Dict[str, Any]:
        result = {
            'key': self.package.key,
            'outcome': self.outcome.value,
            'resolution': self.resolution.value,
            'repository_url': self.package.repository_url,
            'pending': self.pending,
            'already_tagged': self.already_tagged,
            'flagged': self.flagged,
        }
        if self.job_id:
            result['job_id'] = self.job_id
        if self.error:
            result['error'] = self.error
        return result


@dataclass
class PlanReport:
    """
    Summary of one planning run.

    ``repositories`` is the package key to repository URL map built during
    this run only.
    """
    plans: List[PackagePlan] = field(default_factory=list)
    repositories: Dict[str, str] = field(default_factory=dict)

    def add(self, plan: PackagePlan) -> None:
        self.plans.append(plan)

    def count(self, outcome: PlanOutcome) -> int:
        return sum(1 for p in self.plans if p.outcome == outcome)

    @property
    def queued(self) -> List[PackagePlan]:
        return [p for p in self.plans if p.outcome == PlanOutcome.QUEUED]

    def to_dict(self) -> Dict[str, Any]:
        return {
            'type': 'summary',
            'operation': 'plan',
            'total': len(self.plans),
            'queued': self.count(PlanOutcome.QUEUED),
            'already_mirrored': self.count(PlanOutcome.ALREADY_MIRRORED),
            'unresolved': self.count(PlanOutcome.UNRESOLVED),
            'dry_run': self.count(PlanOutcome.DRY_RUN),
        }


@dataclass
class VersionOutcome:
    """What happened to one version inside a job."""
    number: str
    status: OperationStatus
    stage: VersionStage = VersionStage.PENDING
    error: Optional[str] = None

    def to_dict(self) -> Dict[str, Any]:
        result = {
            'version': self.number,
            'status': self.status.value,
            'stage': self.stage.value,
        }
        if self.error:
            result['error'] = self.error
        return result


@dataclass
class JobSummary:
    """
    Summary of one worker job.

    The job is acknowledged regardless of how many versions failed, so a
    summary with failures still belongs to a deleted job.
    """
    job_id: Optional[str]
    package_key: Optional[str]
    outcomes: List[VersionOutcome] = field(default_factory=list)
    error: Optional[str] = None

    def add(self, outcome: VersionOutcome) -> None:
        self.outcomes.append(outcome)

    @property
    def successful(self) -> int:
        return sum(1 for o in self.outcomes if o.status == OperationStatus.SUCCESS)

    @property
    def failed(self) -> int:
        return sum(1 for o in self.outcomes if o.status == OperationStatus.FAILED)

    @property
    def success(self) -> bool:
        """True if no version failed and the payload was readable."""
        return self.failed == 0 and self.error is None

    def to_dict(self) -> Dict[str, Any]:
        result = {
            'type': 'summary',
            'operation': 'mirror',
            'job_id': self.job_id,
            'package': self.package_key,
            'total': len(self.outcomes),
            'successful': self.successful,
            'failed': self.failed,
            'versions': [o.to_dict() for o in self.outcomes],
        }
        if self.error:
            result['error'] = self.error
        return result
