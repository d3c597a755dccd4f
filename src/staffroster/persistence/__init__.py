"""Pluggable persistence backends behind Protocol interfaces."""

from __future__ import annotations

from staffroster.core.config import AppSettings
from staffroster.core.protocols import IFileStore, ISnapshotStore
from staffroster.persistence.dynamodb_backend import DynamoDBSnapshotStore
from staffroster.persistence.memory_backend import MemorySnapshotStore
from staffroster.persistence.redis_backend import RedisSnapshotStore
from staffroster.persistence.s3_backend import S3FileStore


def create_persistence(settings: AppSettings | None = None) -> tuple[ISnapshotStore, IFileStore | None]:
    """Create wired-up persistence backends from application settings.

    Returns:
        Tuple of (snapshot_store, file_store); file_store is None unless
        upload archiving is enabled.
    """
    if settings is None:
        settings = AppSettings()

    backend = settings.store.backend
    store: ISnapshotStore
    if backend == "dynamodb":
        store = DynamoDBSnapshotStore(
            table_suffix=settings.dynamodb.table_suffix,
            region=settings.dynamodb.region,
            endpoint_url=settings.dynamodb.endpoint_url,
        )
    elif backend == "redis":
        store = RedisSnapshotStore(
            host=settings.redis.host,
            port=settings.redis.port,
            db=settings.redis.db,
            key_prefix=settings.redis.key_prefix,
        )
    else:
        store = MemorySnapshotStore()

    file_store: IFileStore | None = None
    if settings.s3.archive_uploads:
        file_store = S3FileStore(
            bucket=settings.s3.bucket,
            region=settings.s3.region,
            endpoint_url=settings.s3.endpoint_url,
        )

    return store, file_store
