"""DynamoDB snapshot store implementing ISnapshotStore."""

from __future__ import annotations

import logging
from typing import Any

import boto3
from boto3.dynamodb.conditions import Key
from boto3.dynamodb.types import TypeSerializer
from botocore.exceptions import ClientError

from staffroster.core.exceptions import SnapshotConflictError, StoreError
from staffroster.models.snapshot import Snapshot, UploadInfo

logger = logging.getLogger(__name__)

TABLE_BASE = "staffroster-snapshots"
LATEST_SK = "LATEST"

_serializer = TypeSerializer()


def table_name(suffix: str = "") -> str:
    return f"{TABLE_BASE}{suffix}"


def create_snapshot_table(client: Any, name: str) -> None:
    """Create the PK/SK snapshot table (no-op when it already exists)."""
    if name in client.list_tables().get("TableNames", []):
        return
    client.create_table(
        TableName=name,
        KeySchema=[
            {"AttributeName": "PK", "KeyType": "HASH"},
            {"AttributeName": "SK", "KeyType": "RANGE"},
        ],
        AttributeDefinitions=[
            {"AttributeName": "PK", "AttributeType": "S"},
            {"AttributeName": "SK", "AttributeType": "S"},
        ],
        BillingMode="PAY_PER_REQUEST",
    )


def _pk(category: str) -> str:
    return f"CATEGORY#{category}"


def _version_prefix(version: int) -> str:
    return f"VERSION#{version:010d}#"


def _chunk_sk(version: int, index: int) -> str:
    return f"{_version_prefix(version)}{index:04d}"


def _serialize(item: dict[str, Any]) -> dict[str, Any]:
    return {k: _serializer.serialize(v) for k, v in item.items()}


class DynamoDBSnapshotStore:
    """Production ISnapshotStore backed by DynamoDB.

    Each category partition holds the chunk items of one version
    (``VERSION#n#i``, a slice of the snapshot JSON in ``data``) and one
    ``LATEST`` pointer recording the version and its chunk count. Items are
    capped at 400KB, so documents are split into ``CHUNK_BYTES`` slices. A
    swap puts the new chunks, conditionally moves the pointer and deletes
    the superseded chunks in a single TransactWriteItems call.
    """

    MAX_RETRIES = 5
    CHUNK_BYTES = 350 * 1024
    # TransactWriteItems caps the request at 4MB of item data.
    MAX_CHUNKS = 10

    def __init__(self, table_suffix: str = "", region: str = "ap-northeast-2",
                 endpoint_url: str | None = None) -> None:
        self._table_suffix = table_suffix
        self._region = region
        self._endpoint_url = endpoint_url
        kwargs: dict = {"region_name": region}
        if endpoint_url:
            kwargs["endpoint_url"] = endpoint_url
        self._ddb = boto3.resource("dynamodb", **kwargs)
        self._table_name = table_name(table_suffix)

    @property
    def _table(self):
        return self._ddb.Table(self._table_name)

    def _pointer(self, category: str) -> tuple[int, int] | None:
        """(version, chunk count) of the latest snapshot, or None when empty."""
        resp = self._table.get_item(Key={"PK": _pk(category), "SK": LATEST_SK}, ConsistentRead=True)
        item = resp.get("Item")
        if item is None:
            return None
        return int(item["version"]), int(item["chunks"])

    def _read_chunks(self, category: str, version: int) -> list[bytes]:
        kwargs: dict[str, Any] = {
            "KeyConditionExpression": Key("PK").eq(_pk(category)) & Key("SK").begins_with(_version_prefix(version)),
            "ConsistentRead": True,
        }
        chunks: list[bytes] = []
        while True:
            resp = self._table.query(**kwargs)
            chunks.extend(item["data"].value for item in resp.get("Items", []))
            if "LastEvaluatedKey" not in resp:
                return chunks
            kwargs["ExclusiveStartKey"] = resp["LastEvaluatedKey"]

    def _split(self, category: str, document: bytes) -> list[bytes]:
        chunks = [
            document[i:i + self.CHUNK_BYTES] for i in range(0, len(document), self.CHUNK_BYTES)
        ]
        if len(chunks) > self.MAX_CHUNKS:
            raise StoreError(
                f"Snapshot {category!r} is {len(document)} bytes; "
                f"the limit is {self.CHUNK_BYTES * self.MAX_CHUNKS} bytes"
            )
        return chunks

    def get_latest(self, category: str) -> Snapshot | None:
        try:
            for _ in range(self.MAX_RETRIES):
                pointer = self._pointer(category)
                if pointer is None:
                    return None
                version, count = pointer
                chunks = self._read_chunks(category, version)
                if len(chunks) == count:
                    return Snapshot.model_validate_json(b"".join(chunks))
                # Pointer moved and the old chunks were pruned between reads.
        except ClientError as exc:
            raise StoreError(f"DynamoDB read failed for category={category!r}: {exc}") from exc
        raise StoreError(f"Snapshot {category!r} kept changing while being read")

    def replace(
        self,
        category: str,
        payload: dict[str, Any],
        upload: UploadInfo,
        expected_version: int | None = None,
    ) -> Snapshot:
        client = self._ddb.meta.client
        pk = _pk(category)
        for _ in range(self.MAX_RETRIES):
            try:
                pointer = self._pointer(category)
            except ClientError as exc:
                raise StoreError(f"DynamoDB read failed for category={category!r}: {exc}") from exc
            current, current_chunks = pointer if pointer else (0, 0)
            if expected_version is not None and current != expected_version:
                raise SnapshotConflictError(category, expected_version, current)

            version = current + 1
            snapshot = Snapshot(category=category, version=version, payload=payload, upload=upload)
            chunks = self._split(category, snapshot.model_dump_json(by_alias=True).encode("utf-8"))

            latest: dict[str, Any] = {
                "TableName": self._table_name,
                "Item": _serialize({"PK": pk, "SK": LATEST_SK, "version": version, "chunks": len(chunks)}),
            }
            if pointer is None:
                latest["ConditionExpression"] = "attribute_not_exists(PK)"
            else:
                latest["ConditionExpression"] = "#version = :current"
                latest["ExpressionAttributeNames"] = {"#version": "version"}
                latest["ExpressionAttributeValues"] = {":current": _serializer.serialize(current)}

            items: list[dict[str, Any]] = [
                {
                    "Put": {
                        "TableName": self._table_name,
                        "Item": _serialize({
                            "PK": pk,
                            "SK": _chunk_sk(version, index),
                            "version": version,
                            "data": chunk,
                        }),
                        "ConditionExpression": "attribute_not_exists(PK)",
                    }
                }
                for index, chunk in enumerate(chunks)
            ]
            items.append({"Put": latest})
            items.extend(
                {
                    "Delete": {
                        "TableName": self._table_name,
                        "Key": _serialize({"PK": pk, "SK": _chunk_sk(current, index)}),
                    }
                }
                for index in range(current_chunks)
            )

            try:
                client.transact_write_items(TransactItems=items)
            except ClientError as exc:
                if exc.response.get("Error", {}).get("Code") != "TransactionCanceledException":
                    raise StoreError(f"DynamoDB swap failed for category={category!r}: {exc}") from exc
                if expected_version is not None:
                    raise SnapshotConflictError(category, expected_version) from exc
                logger.debug("Concurrent swap on %s; retrying", category)
                continue

            logger.info("Swapped %s snapshot to version %d (%d chunks)", category, version, len(chunks))
            return snapshot

        raise SnapshotConflictError(category, expected_version)
