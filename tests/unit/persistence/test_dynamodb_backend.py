"""Unit tests for DynamoDBSnapshotStore using moto."""

from __future__ import annotations

from unittest.mock import patch

import boto3
import pytest
from botocore.exceptions import ClientError
from moto import mock_aws

from staffroster.core.exceptions import SnapshotConflictError, StoreError
from staffroster.models.snapshot import SnapshotCategory, UploadInfo
from staffroster.persistence.dynamodb_backend import (
    DynamoDBSnapshotStore,
    create_snapshot_table,
    table_name,
)

TABLE_SUFFIX = "-test"
REGION = "ap-northeast-2"


# ---------- fixtures ----------

@pytest.fixture
def aws():
    with mock_aws():
        client = boto3.client("dynamodb", region_name=REGION)
        create_snapshot_table(client, table_name(TABLE_SUFFIX))
        yield boto3.resource("dynamodb", region_name=REGION)


@pytest.fixture
def store(aws):
    return DynamoDBSnapshotStore(table_suffix=TABLE_SUFFIX, region=REGION)


def _upload():
    return UploadInfo(filename="roster.xlsx", file_size=3, uploaded_by="admin")


def _items(aws):
    return aws.Table(table_name(TABLE_SUFFIX)).scan()["Items"]


# ---------- table ----------

class TestCreateSnapshotTable:
    def test_idempotent(self, aws):
        client = aws.meta.client
        create_snapshot_table(client, table_name(TABLE_SUFFIX))
        assert client.list_tables()["TableNames"] == ["staffroster-snapshots-test"]


# ---------- get_latest ----------

class TestGetLatest:
    def test_none_when_empty(self, store):
        assert store.get_latest(SnapshotCategory.FACULTY) is None

    def test_round_trips_snapshot(self, store):
        store.replace(SnapshotCategory.FACULTY, {"members": [{"name": "김교수"}]}, _upload())
        snapshot = store.get_latest(SnapshotCategory.FACULTY)
        assert snapshot.version == 1
        assert snapshot.category == "faculty"
        assert snapshot.payload == {"members": [{"name": "김교수"}]}


# ---------- replace ----------

class TestReplace:
    def test_swap_prunes_previous_version(self, store, aws):
        store.replace(SnapshotCategory.FACULTY, {"n": 1}, _upload())
        store.replace(SnapshotCategory.FACULTY, {"n": 2}, _upload())
        keys = sorted(item["SK"] for item in _items(aws))
        assert keys == ["LATEST", "VERSION#0000000002#0000"]
        assert store.get_latest(SnapshotCategory.FACULTY).payload == {"n": 2}

    def test_categories_partitioned(self, store, aws):
        store.replace(SnapshotCategory.FACULTY, {"n": 1}, _upload())
        store.replace(SnapshotCategory.ASSISTANT, {"a": 1}, _upload())
        pks = {item["PK"] for item in _items(aws)}
        assert pks == {"CATEGORY#faculty", "CATEGORY#assistant"}

    def test_stale_expected_version_conflicts(self, store):
        store.replace(SnapshotCategory.ASSISTANT, {"v": 1}, _upload())
        store.replace(SnapshotCategory.ASSISTANT, {"v": 2}, _upload())
        with pytest.raises(SnapshotConflictError) as excinfo:
            store.replace(SnapshotCategory.ASSISTANT, {"v": 3}, _upload(), expected_version=1)
        assert excinfo.value.actual_version == 2
        assert store.get_latest(SnapshotCategory.ASSISTANT).payload == {"v": 2}

    def test_expected_version_zero_requires_empty(self, store):
        store.replace(SnapshotCategory.ORGANIZATION, {"v": 1}, _upload(), expected_version=0)
        with pytest.raises(SnapshotConflictError):
            store.replace(SnapshotCategory.ORGANIZATION, {"v": 2}, _upload(), expected_version=0)

    def test_pointer_moved_by_other_writer_conflicts(self, store, aws):
        store.replace(SnapshotCategory.ASSISTANT, {"v": 1}, _upload())
        # Another writer moves the pointer between our read and our transaction.
        real_pointer = store._pointer
        calls = {"n": 0}

        def racing_pointer(category):
            pointer = real_pointer(category)
            if calls["n"] == 0:
                other = DynamoDBSnapshotStore(table_suffix=TABLE_SUFFIX, region=REGION)
                other.replace(category, {"v": "other"}, _upload())
            calls["n"] += 1
            return pointer

        with patch.object(store, "_pointer", side_effect=racing_pointer):
            with pytest.raises(SnapshotConflictError):
                store.replace(SnapshotCategory.ASSISTANT, {"v": "mine"}, _upload(), expected_version=1)
        assert store.get_latest(SnapshotCategory.ASSISTANT).payload == {"v": "other"}

    def test_missing_table_raises_store_error(self, aws):
        store = DynamoDBSnapshotStore(table_suffix="-missing", region=REGION)
        with pytest.raises(StoreError):
            store.get_latest(SnapshotCategory.FACULTY)


class TestLargeSnapshots:
    def test_document_over_item_limit_is_chunked(self, store, aws):
        # ~600KB of UTF-8, well past the 400KB item limit.
        members = [{"name": f"교수{i:04d}", "dept": "유도학과" * 20} for i in range(2500)]
        store.replace(SnapshotCategory.FACULTY, {"members": members}, _upload())

        chunks = [item for item in _items(aws) if item["SK"] != "LATEST"]
        assert len(chunks) > 1
        assert all(len(item["data"].value) <= store.CHUNK_BYTES for item in chunks)
        assert store.get_latest(SnapshotCategory.FACULTY).payload == {"members": members}

    def test_swap_prunes_every_chunk(self, store, aws):
        big = {"blob": "가" * 300_000}
        store.replace(SnapshotCategory.FACULTY, big, _upload())
        store.replace(SnapshotCategory.FACULTY, {"n": 2}, _upload())
        keys = sorted(item["SK"] for item in _items(aws))
        assert keys == ["LATEST", "VERSION#0000000002#0000"]

    def test_over_transaction_limit_rejected_before_writing(self, store, aws):
        store.CHUNK_BYTES = 64
        store.MAX_CHUNKS = 2
        with pytest.raises(StoreError, match="limit"):
            store.replace(SnapshotCategory.FACULTY, {"blob": "x" * 500}, _upload())
        assert _items(aws) == []


class TestClientErrors:
    def test_unexpected_transaction_error_wrapped(self, store):
        error = ClientError({"Error": {"Code": "InternalServerError", "Message": "boom"}}, "TransactWriteItems")
        with patch.object(store._ddb.meta.client, "transact_write_items", side_effect=error):
            with pytest.raises(StoreError):
                store.replace(SnapshotCategory.FACULTY, {"n": 1}, _upload())
