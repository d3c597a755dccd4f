"""Unit tests for S3FileStore using moto."""

from __future__ import annotations

import boto3
import pytest
from moto import mock_aws

from staffroster.core.exceptions import StoreError
from staffroster.persistence.s3_backend import S3FileStore

BUCKET = "test-staffroster-uploads"


@pytest.fixture
def s3_backend():
    with mock_aws():
        client = boto3.client("s3", region_name="us-east-1")
        client.create_bucket(Bucket=BUCKET)
        yield S3FileStore(bucket=BUCKET, region="us-east-1")


class TestWrite:
    def test_write_returns_path(self, s3_backend):
        result = s3_backend.write("uploads/faculty/roster.xlsx", b"PK\x03\x04")
        assert result == "uploads/faculty/roster.xlsx"

    def test_write_stores_bytes(self, s3_backend):
        s3_backend.write("uploads/assistant/a.xls", b"\xd0\xcf\x11\xe0")
        assert s3_backend.read("uploads/assistant/a.xls") == b"\xd0\xcf\x11\xe0"


class TestRead:
    def test_read_missing_key_raises_store_error(self, s3_backend):
        with pytest.raises(StoreError):
            s3_backend.read("does/not/exist.xlsx")

    def test_write_to_missing_bucket_raises_store_error(self, s3_backend):
        other = S3FileStore(bucket="no-such-bucket", region="us-east-1")
        with pytest.raises(StoreError):
            other.write("a.xlsx", b"x")


class TestListFiles:
    def test_list_returns_matching_keys(self, s3_backend):
        s3_backend.write("uploads/faculty/a.xlsx", b"1")
        s3_backend.write("uploads/faculty/b.xlsx", b"2")
        s3_backend.write("uploads/assistant/c.xlsx", b"3")
        result = s3_backend.list_files("uploads/faculty/")
        assert sorted(result) == ["uploads/faculty/a.xlsx", "uploads/faculty/b.xlsx"]

    def test_list_empty_prefix_returns_nothing(self, s3_backend):
        assert s3_backend.list_files("nonexistent/") == []

    def test_list_handles_pagination(self, s3_backend):
        for i in range(1050):
            s3_backend.write(f"bulk/{i:04d}.xlsx", b"x")
        assert len(s3_backend.list_files("bulk/")) == 1050
