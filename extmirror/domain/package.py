"""
Package domain objects for extmirror.

A Package is one extension published in the upstream repository. Each
Version of it becomes one commit and one annotated tag in the mirror
repository. These objects carry no I/O and serialize to plain dicts for
the job payload.
"""

from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Optional, Dict, Any, List

# Upstream review state marking a version nobody has reviewed yet
UNREVIEWED = -1


def _ensure_aware(value: datetime) -> datetime:
    """Treat naive datetimes as UTC."""
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value


@dataclass(frozen=True)
class Author:
    """Author of an uploaded version."""
    name: str = ""
    email: str = ""

    def to_dict(self) -> Dict[str, Any]:
        return {'name': self.name, 'email': self.email}

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> 'Author':
        return cls(name=data.get('name', ''), email=data.get('email', ''))


@dataclass(frozen=True)
class Version:
    """
    One published release of a package.

    The version number is used verbatim as the tag name in the mirror.
    """
    number: str
    author: Author
    upload_date: datetime
    upload_comment: Optional[str] = None
    review_state: int = 0
    title: Optional[str] = None
    description: Optional[str] = None
    state: Optional[str] = None

    def __post_init__(self):
        object.__setattr__(self, 'upload_date', _ensure_aware(self.upload_date))

    @property
    def is_unreviewed(self) -> bool:
        """True if upstream has not reviewed this version."""
        return self.review_state == UNREVIEWED

    @property
    def commit_message(self) -> str:
        """Message for the import commit of this version."""
        message = f"Import of Version {self.number}"
        if self.upload_comment:
            message += f" - {self.upload_comment}"
        return message

    @property
    def tag_message(self) -> str:
        return f"Version {self.number}"

    def to_dict(self) -> Dict[str, Any]:
        return {
            'number': self.number,
            'author': self.author.to_dict(),
            'upload_date': self.upload_date.isoformat(),
            'upload_comment': self.upload_comment,
            'review_state': self.review_state,
            'title': self.title,
            'description': self.description,
            'state': self.state,
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> 'Version':
        return cls(
            number=data['number'],
            author=Author.from_dict(data.get('author') or {}),
            upload_date=datetime.fromisoformat(data['upload_date']),
            upload_comment=data.get('upload_comment'),
            review_state=int(data.get('review_state', 0)),
            title=data.get('title'),
            description=data.get('description'),
            state=data.get('state'),
        )


@dataclass
class Package:
    """
    An extension tracked by the upstream repository.

    Versions keep the order of the upstream document. The planner prunes
    already mirrored versions; nothing else mutates the list.
    """
    key: str
    versions: List[Version] = field(default_factory=list)
    repository_url: Optional[str] = None

    def version_numbers(self) -> List[str]:
        return [v.number for v in self.versions]

    def add_version(self, version: Version) -> None:
        self.versions.append(version)

    def remove_version(self, number: str) -> None:
        """Remove every version with the given number."""
        self.versions = [v for v in self.versions if v.number != number]

    def to_dict(self) -> Dict[str, Any]:
        return {
            'key': self.key,
            'repository_url': self.repository_url,
            'versions': [v.to_dict() for v in self.versions],
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> 'Package':
        return cls(
            key=data['key'],
            repository_url=data.get('repository_url'),
            versions=[Version.from_dict(v) for v in data.get('versions', [])],
        )
