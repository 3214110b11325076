"""
Archive extraction for extmirror.

Unpacks a downloaded release artifact into the package working directory.
zip and tar (plain, gzip, bzip2, xz) archives are detected by content, not
by file name. When every member sits under one common top-level directory,
that directory is stripped so the package files land at the repository root.
"""

import logging
import lzma
import shutil
import tarfile
import tempfile
import zipfile
import zlib
from pathlib import Path, PurePosixPath
from typing import List

from .domain.package import Version

logger = logging.getLogger(__name__)

# Raised by the decompressors on corrupt, encrypted or unsupported members
DECOMPRESSION_ERRORS = (zlib.error, lzma.LZMAError, EOFError, RuntimeError, NotImplementedError)


class ExtractionError(Exception):
    """The artifact is not a supported or safe archive."""


def _check_member(name: str) -> None:
    path = PurePosixPath(name)
    if path.is_absolute() or '..' in path.parts:
        raise ExtractionError(f"Unsafe path in archive: {name}")


def _common_root(names: List[str]) -> str:
    """Single top-level directory shared by all members, or ''."""
    roots = set()
    nested = False
    for name in names:
        parts = PurePosixPath(name).parts
        if not parts:
            continue
        roots.add(parts[0])
        if len(parts) > 1:
            nested = True
    if len(roots) == 1 and nested:
        return roots.pop()
    return ''


class ArchiveExtractor:
    """
    Extracts release artifacts.

    Example:
        extractor = ArchiveExtractor()
        files = extractor.extract(Path("news.artifact"), Path("/tmp/news"), version)
    """

    def extract(self, artifact: Path, target_dir: Path, version: Version) -> List[Path]:
        """
        Extract ``artifact`` into ``target_dir``.

        Args:
            artifact: Downloaded archive
            target_dir: Working directory of the package
            version: Version being extracted (for log context)

        Returns:
            Paths written, relative to target_dir

        Raises:
            ExtractionError: Unknown format, corrupt archive or unsafe member path
        """
        artifact = Path(artifact)
        target_dir = Path(target_dir)

        with tempfile.TemporaryDirectory(dir=target_dir.parent) as staging:
            staging_dir = Path(staging)
            if zipfile.is_zipfile(artifact):
                names = self._extract_zip(artifact, staging_dir)
            elif self._is_tarfile(artifact):
                names = self._extract_tar(artifact, staging_dir)
            else:
                raise ExtractionError(f"{artifact.name} is not a zip or tar archive")

            root = _common_root(names)
            source = staging_dir / root if root else staging_dir
            written = self._move_contents(source, target_dir)

        logger.info(f"Extracted {len(written)} files of version {version.number}")
        return written

    @staticmethod
    def _is_tarfile(artifact: Path) -> bool:
        try:
            return tarfile.is_tarfile(artifact)
        except DECOMPRESSION_ERRORS as e:
            raise ExtractionError(f"Corrupt tar archive {artifact.name}: {e}") from e

    def _extract_zip(self, artifact: Path, dest: Path) -> List[str]:
        try:
            with zipfile.ZipFile(artifact, 'r') as zf:
                names = zf.namelist()
                for name in names:
                    _check_member(name)
                zf.extractall(dest)
        except (zipfile.BadZipFile, *DECOMPRESSION_ERRORS) as e:
            raise ExtractionError(f"Corrupt zip archive {artifact.name}: {e}") from e
        return names

    def _extract_tar(self, artifact: Path, dest: Path) -> List[str]:
        try:
            with tarfile.open(artifact, 'r:*') as tar:
                names = tar.getnames()
                for name in names:
                    _check_member(name)
                tar.extractall(dest, filter="data")
        except (tarfile.TarError, *DECOMPRESSION_ERRORS) as e:
            raise ExtractionError(f"Corrupt tar archive {artifact.name}: {e}") from e
        return names

    @staticmethod
    def _move_contents(source: Path, target_dir: Path) -> List[Path]:
        written = []
        for entry in sorted(source.iterdir()):
            if entry.name == '.git':
                continue
            destination = target_dir / entry.name
            if destination.is_dir() and not destination.is_symlink():
                shutil.rmtree(destination)
            elif destination.exists() or destination.is_symlink():
                destination.unlink()
            shutil.move(str(entry), str(destination))
            if destination.is_dir():
                written.extend(
                    p.relative_to(target_dir) for p in destination.rglob('*') if p.is_file()
                )
            else:
                written.append(destination.relative_to(target_dir))
        return written
