"""
Tests for domain objects.

Tests cover:
- Version commit/tag messages and UTC normalization
- Package version list operations
- Job payload codec (schema, compression, error handling)
- Operation result summaries
"""

import json
import zlib
from datetime import datetime, timezone, timedelta

import pytest

from extmirror.domain import (
    Author,
    Job,
    JobPayloadError,
    JobSummary,
    OperationStatus,
    Package,
    PackagePlan,
    PlanOutcome,
    PlanReport,
    RepositoryResolution,
    Version,
    VersionOutcome,
    VersionStage,
    decode_package,
    encode_package,
)
from extmirror.domain.job import SCHEMA_VERSION


def make_version(number, comment=None, review_state=0, date=None):
    return Version(
        number=number,
        author=Author(name="Jane Doe", email="jane@example.org"),
        upload_date=date or datetime(2012, 3, 4, 5, 6, 7, tzinfo=timezone.utc),
        upload_comment=comment,
        review_state=review_state,
    )


class TestVersion:
    """Tests for Version."""

    def test_commit_message_without_comment(self):
        assert make_version("1.0.0").commit_message == "Import of Version 1.0.0"

    def test_commit_message_with_comment(self):
        version = make_version("1.1.0", comment="Fixed a bug")
        assert version.commit_message == "Import of Version 1.1.0 - Fixed a bug"

    def test_tag_message(self):
        assert make_version("2.0.0").tag_message == "Version 2.0.0"

    def test_naive_date_is_utc(self):
        version = make_version("1.0.0", date=datetime(2012, 1, 1, 12, 0, 0))
        assert version.upload_date.tzinfo == timezone.utc

    def test_unreviewed(self):
        assert make_version("1.0.0", review_state=-1).is_unreviewed
        assert not make_version("1.0.0", review_state=0).is_unreviewed

    def test_dict_roundtrip_keeps_offset(self):
        tz = timezone(timedelta(hours=2))
        version = make_version("1.0.0", date=datetime(2012, 1, 1, 12, 0, 0, tzinfo=tz))
        restored = Version.from_dict(version.to_dict())
        assert restored == version
        assert restored.upload_date.utcoffset() == timedelta(hours=2)


class TestPackage:
    """Tests for Package."""

    def test_remove_version_keeps_order(self):
        package = Package(key="foo", versions=[
            make_version("1.0.0"), make_version("1.1.0"), make_version("1.2.0"),
        ])
        package.remove_version("1.1.0")
        assert package.version_numbers() == ["1.0.0", "1.2.0"]

    def test_remove_unknown_version_is_noop(self):
        package = Package(key="foo", versions=[make_version("1.0.0")])
        package.remove_version("9.9.9")
        assert package.version_numbers() == ["1.0.0"]


class TestJobCodec:
    """Tests for the job payload codec."""

    def test_payload_is_versioned_compressed_json(self):
        package = Package(key="foo", repository_url="git@github.com:o/foo.git",
                          versions=[make_version("1.1.0")])
        document = json.loads(zlib.decompress(encode_package(package)))

        assert document["schema"] == SCHEMA_VERSION
        assert document["package"]["key"] == "foo"
        assert document["package"]["versions"][0]["number"] == "1.1.0"

    def test_decode_restores_package(self):
        package = Package(key="foo", repository_url="git@github.com:o/foo.git",
                          versions=[make_version("1.0.0", comment="first"), make_version("1.1.0")])
        restored = decode_package(encode_package(package))

        assert restored.key == "foo"
        assert restored.repository_url == "git@github.com:o/foo.git"
        assert restored.version_numbers() == ["1.0.0", "1.1.0"]
        assert restored.versions[0].upload_comment == "first"

    def test_decode_rejects_garbage(self):
        with pytest.raises(JobPayloadError):
            decode_package(b"not compressed")

    def test_decode_rejects_unknown_schema(self):
        payload = zlib.compress(json.dumps({"schema": 99, "package": {}}).encode())
        with pytest.raises(JobPayloadError, match="schema"):
            decode_package(payload)

    def test_decode_rejects_missing_fields(self):
        payload = zlib.compress(json.dumps({"schema": SCHEMA_VERSION, "package": {}}).encode())
        with pytest.raises(JobPayloadError):
            decode_package(payload)

    def test_job_package(self):
        package = Package(key="bar", repository_url="u", versions=[make_version("2.0.0")])
        job = Job(id="7", tube="extensions", payload=encode_package(package))
        assert job.package().key == "bar"
        assert job.to_dict()["id"] == "7"


class TestOperationResults:
    """Tests for plan and job summaries."""

    def test_job_summary_counts(self):
        summary = JobSummary(job_id="1", package_key="foo")
        summary.add(VersionOutcome("1.0.0", OperationStatus.SUCCESS, VersionStage.PUSHED))
        summary.add(VersionOutcome("1.1.0", OperationStatus.FAILED, VersionStage.SYNCED, "download failed"))

        assert summary.successful == 1
        assert summary.failed == 1
        assert not summary.success
        d = summary.to_dict()
        assert d["versions"][1]["stage"] == "synced"
        assert d["versions"][1]["error"] == "download failed"

    def test_plan_report_counts(self):
        report = PlanReport()
        report.add(PackagePlan(Package(key="a"), PlanOutcome.QUEUED, RepositoryResolution.EXISTING))
        report.add(PackagePlan(Package(key="b"), PlanOutcome.ALREADY_MIRRORED, RepositoryResolution.EXISTING))
        report.add(PackagePlan(Package(key="c"), PlanOutcome.UNRESOLVED, RepositoryResolution.UNAVAILABLE))

        d = report.to_dict()
        assert d["total"] == 3
        assert d["queued"] == 1
        assert d["already_mirrored"] == 1
        assert d["unresolved"] == 1
        assert [p.package.key for p in report.queued] == ["a"]
