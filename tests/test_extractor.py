"""
Tests for ArchiveExtractor.
"""

import io
import tarfile
import zipfile
from datetime import datetime, timezone

import pytest

from extmirror.domain import Author, Version
from extmirror.extractor import ArchiveExtractor, ExtractionError

VERSION = Version(
    number='1.0.0',
    author=Author('Jane Doe', 'jane@example.org'),
    upload_date=datetime(2012, 1, 1, tzinfo=timezone.utc),
)


def write_zip(path, files):
    with zipfile.ZipFile(path, 'w') as zf:
        for name, content in files.items():
            zf.writestr(name, content)
    return path


def write_tar(path, files):
    with tarfile.open(path, 'w:gz') as tar:
        for name, content in files.items():
            data = content.encode()
            info = tarfile.TarInfo(name)
            info.size = len(data)
            tar.addfile(info, io.BytesIO(data))
    return path


@pytest.fixture
def target(tmp_path):
    path = tmp_path / 'news'
    path.mkdir()
    return path


class TestArchiveExtractor:
    def test_zip_at_root(self, tmp_path, target):
        artifact = write_zip(tmp_path / 'news.artifact', {
            'ext_emconf.php': 'conf',
            'Classes/Controller.php': 'php',
        })

        written = ArchiveExtractor().extract(artifact, target, VERSION)

        assert (target / 'ext_emconf.php').read_text() == 'conf'
        assert (target / 'Classes' / 'Controller.php').read_text() == 'php'
        assert sorted(str(p) for p in written) == ['Classes/Controller.php', 'ext_emconf.php']

    def test_common_root_is_stripped(self, tmp_path, target):
        artifact = write_tar(tmp_path / 'news.artifact', {
            'news-1.0.0/ext_emconf.php': 'conf',
            'news-1.0.0/Resources/icon.svg': 'svg',
        })

        ArchiveExtractor().extract(artifact, target, VERSION)

        assert (target / 'ext_emconf.php').exists()
        assert (target / 'Resources' / 'icon.svg').exists()
        assert not (target / 'news-1.0.0').exists()

    def test_single_file_is_not_stripped(self, tmp_path, target):
        artifact = write_zip(tmp_path / 'news.artifact', {'ext_emconf.php': 'conf'})

        ArchiveExtractor().extract(artifact, target, VERSION)

        assert (target / 'ext_emconf.php').exists()

    def test_overwrites_and_keeps_git(self, tmp_path, target):
        (target / '.git').mkdir()
        (target / '.git' / 'HEAD').write_text('ref')
        (target / 'ext_emconf.php').write_text('old')
        artifact = write_zip(tmp_path / 'news.artifact', {
            'ext_emconf.php': 'new',
            '.git/HEAD': 'evil',
        })

        ArchiveExtractor().extract(artifact, target, VERSION)

        assert (target / 'ext_emconf.php').read_text() == 'new'
        assert (target / '.git' / 'HEAD').read_text() == 'ref'

    def test_unsafe_path(self, tmp_path, target):
        artifact = write_zip(tmp_path / 'news.artifact', {'../escape.php': 'x'})

        with pytest.raises(ExtractionError, match='Unsafe'):
            ArchiveExtractor().extract(artifact, target, VERSION)
        assert not (tmp_path / 'escape.php').exists()

    def test_unknown_format(self, tmp_path, target):
        artifact = tmp_path / 'news.artifact'
        artifact.write_bytes(b'plain bytes, no archive')

        with pytest.raises(ExtractionError):
            ArchiveExtractor().extract(artifact, target, VERSION)

    def test_corrupt_deflate_stream(self, tmp_path, target):
        name = 'ext_emconf.php'
        artifact = tmp_path / 'news.artifact'
        with zipfile.ZipFile(artifact, 'w', compression=zipfile.ZIP_DEFLATED) as zf:
            zf.writestr(name, 'conf' * 500)
        data = bytearray(artifact.read_bytes())
        start = 30 + len(name)
        data[start:start + 2] = b'\xff\xff'
        artifact.write_bytes(bytes(data))

        with pytest.raises(ExtractionError, match='Corrupt zip'):
            ArchiveExtractor().extract(artifact, target, VERSION)

    def test_truncated_tar(self, tmp_path, target):
        artifact = write_tar(tmp_path / 'news.artifact', {'ext_emconf.php': 'conf' * 5000})
        data = artifact.read_bytes()
        artifact.write_bytes(data[:len(data) // 2])

        with pytest.raises(ExtractionError):
            ArchiveExtractor().extract(artifact, target, VERSION)
