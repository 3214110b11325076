"""
Upstream package list parsing for extmirror.

Reads the extension list document published by the extension repository:

    <extensions>
      <extension extensionkey="news">
        <version version="1.0.0">
          <title>News</title>
          <reviewstate>0</reviewstate>
          <lastuploaddate>1325376000</lastuploaddate>
          <uploadcomment>Initial release</uploadcomment>
          <authorname>Jane Doe</authorname>
          <authoremail>jane@example.org</authoremail>
          ...

The file may be gzip-compressed. It is parsed incrementally because the
full list is large.
"""

import gzip
import logging
import xml.etree.ElementTree as ET
from datetime import datetime, timezone
from pathlib import Path
from typing import Iterable, Iterator, List, Optional, Set

from .domain.package import Author, Package, Version

logger = logging.getLogger(__name__)

GZIP_MAGIC = b'\x1f\x8b'


class PackageListError(Exception):
    """The package list is missing or malformed."""


def parse_key_filter(keys: Optional[str]) -> Optional[Set[str]]:
    """Turn ``"news, tt_address"`` into ``{"news", "tt_address"}``; empty means no filter."""
    if not keys:
        return None
    selected = {k.strip() for k in keys.split(',') if k.strip()}
    return selected or None


def _open(path: Path):
    with open(path, 'rb') as f:
        magic = f.read(2)
    if magic == GZIP_MAGIC:
        return gzip.open(path, 'rb')
    return open(path, 'rb')


def _text(element: ET.Element, tag: str) -> Optional[str]:
    child = element.find(tag)
    if child is None or child.text is None:
        return None
    value = child.text.strip()
    return value or None


def _int(element: ET.Element, tag: str, default: int = 0) -> int:
    value = _text(element, tag)
    try:
        return int(value) if value is not None else default
    except ValueError:
        return default


def _version_from_element(element: ET.Element) -> Optional[Version]:
    number = (element.get('version') or '').strip()
    if not number:
        return None
    return Version(
        number=number,
        author=Author(
            name=_text(element, 'authorname') or '',
            email=_text(element, 'authoremail') or '',
        ),
        upload_date=datetime.fromtimestamp(_int(element, 'lastuploaddate'), tz=timezone.utc),
        upload_comment=_text(element, 'uploadcomment'),
        review_state=_int(element, 'reviewstate'),
        title=_text(element, 'title'),
        description=_text(element, 'description'),
        state=_text(element, 'state'),
    )


def iter_packages(path: Path, keys: Optional[Iterable[str]] = None) -> Iterator[Package]:
    """
    Yield packages from an extension list document in document order.

    Args:
        path: extensions.xml or extensions.xml.gz
        keys: Only yield packages with these keys (all if None)

    Raises:
        PackageListError: File missing or not well-formed XML
    """
    path = Path(path)
    if not path.exists():
        raise PackageListError(f"Package list not found: {path}")

    selected = set(keys) if keys else None

    try:
        with _open(path) as stream:
            for _, element in ET.iterparse(stream, events=('end',)):
                if element.tag != 'extension':
                    continue
                key = (element.get('extensionkey') or '').strip()
                if key and (selected is None or key in selected):
                    package = Package(key=key)
                    for version_element in element.findall('version'):
                        version = _version_from_element(version_element)
                        if version is not None:
                            package.add_version(version)
                    yield package
                element.clear()
    except (ET.ParseError, OSError, EOFError) as e:
        raise PackageListError(f"Could not parse package list {path}: {e}") from e


def load_packages(path: Path, keys: Optional[Iterable[str]] = None) -> List[Package]:
    packages = list(iter_packages(path, keys))
    logger.info(f"Loaded {len(packages)} packages from {path}")
    return packages
