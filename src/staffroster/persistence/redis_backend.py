"""Redis snapshot store implementing ISnapshotStore."""

from __future__ import annotations

import logging
from typing import Any

import redis

from staffroster.core.exceptions import SnapshotConflictError, StoreError
from staffroster.models.snapshot import Snapshot, UploadInfo

logger = logging.getLogger(__name__)


class RedisSnapshotStore:
    """Production ISnapshotStore backed by Redis.

    Layout per category: ``{prefix}:snapshot:{category}:v{n}`` holds the
    snapshot JSON and ``{prefix}:snapshot:{category}:latest`` holds ``n``.
    A swap writes the new version, moves the pointer and deletes the old
    version in one WATCH/MULTI transaction.
    """

    MAX_RETRIES = 5

    def __init__(
        self,
        host: str = "localhost",
        port: int = 6379,
        db: int = 0,
        key_prefix: str = "staffroster",
        client: redis.Redis | None = None,
    ) -> None:
        self._host = host
        self._port = port
        self._db = db
        self._prefix = key_prefix
        self._client = client or redis.Redis(
            host=host, port=port, db=db, decode_responses=True,
        )

    def _latest_key(self, category: str) -> str:
        return f"{self._prefix}:snapshot:{category}:latest"

    def _version_key(self, category: str, version: int) -> str:
        return f"{self._prefix}:snapshot:{category}:v{version}"

    def get_latest(self, category: str) -> Snapshot | None:
        try:
            for _ in range(self.MAX_RETRIES):
                pointer = self._client.get(self._latest_key(category))
                if pointer is None:
                    return None
                raw = self._client.get(self._version_key(category, int(pointer)))
                if raw is not None:
                    return Snapshot.model_validate_json(raw)
                # Pointer moved and the old version was pruned between reads.
        except redis.RedisError as exc:
            raise StoreError(f"Redis read failed for category={category!r}: {exc}") from exc
        raise StoreError(f"Snapshot {category!r} kept changing while being read")

    def replace(
        self,
        category: str,
        payload: dict[str, Any],
        upload: UploadInfo,
        expected_version: int | None = None,
    ) -> Snapshot:
        latest_key = self._latest_key(category)
        try:
            with self._client.pipeline() as pipe:
                for _ in range(self.MAX_RETRIES):
                    try:
                        pipe.watch(latest_key)
                        pointer = pipe.get(latest_key)
                        current = int(pointer) if pointer is not None else None
                        if expected_version is not None and (current or 0) != expected_version:
                            raise SnapshotConflictError(category, expected_version, current or 0)

                        version = (current or 0) + 1
                        snapshot = Snapshot(
                            category=category, version=version, payload=payload, upload=upload,
                        )
                        pipe.multi()
                        pipe.set(self._version_key(category, version), snapshot.model_dump_json(by_alias=True))
                        pipe.set(latest_key, version)
                        if current is not None:
                            pipe.delete(self._version_key(category, current))
                        pipe.execute()
                        logger.info("Swapped %s snapshot to version %d", category, version)
                        return snapshot
                    except redis.WatchError:
                        if expected_version is not None:
                            raise SnapshotConflictError(category, expected_version) from None
                        logger.debug("Concurrent swap on %s; retrying", category)
        except redis.RedisError as exc:
            raise StoreError(f"Redis swap failed for category={category!r}: {exc}") from exc
        raise SnapshotConflictError(category, expected_version)
