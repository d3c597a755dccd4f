"""Application configuration using pydantic-settings with grouped env prefixes."""

from __future__ import annotations

from typing import Literal

from pydantic_settings import BaseSettings


class StoreConfig(BaseSettings):
    """Snapshot store selection."""

    model_config = {"env_prefix": "STAFFROSTER_STORE_"}

    backend: Literal["memory", "redis", "dynamodb"] = "memory"


class DynamoDBConfig(BaseSettings):
    """DynamoDB snapshot table configuration."""

    model_config = {"env_prefix": "STAFFROSTER_DYNAMO_"}

    table_suffix: str = ""  # "-dev", "-uat", or "" for prod
    region: str = "ap-northeast-2"
    endpoint_url: str | None = None  # LocalStack override


class RedisConfig(BaseSettings):
    """Redis snapshot store configuration."""

    model_config = {"env_prefix": "STAFFROSTER_REDIS_"}

    host: str = "localhost"
    port: int = 6379
    db: int = 0
    key_prefix: str = "staffroster"


class S3Config(BaseSettings):
    """S3 archive for raw uploaded workbooks."""

    model_config = {"env_prefix": "STAFFROSTER_S3_"}

    bucket: str = "staffroster-uploads"
    region: str = "ap-northeast-2"
    endpoint_url: str | None = None  # LocalStack override
    archive_uploads: bool = False


class ParserConfig(BaseSettings):
    """Spreadsheet parsing configuration."""

    model_config = {"env_prefix": "STAFFROSTER_PARSER_"}

    labels_path: str | None = None  # overrides the packaged labels.json
    header_scan_rows: int = 10
    timezone: str = "Asia/Seoul"  # defines "today" for current-record selection
    max_upload_mb: int = 10


class AuthConfig(BaseSettings):
    """Shared admin password gating write operations."""

    model_config = {"env_prefix": "STAFFROSTER_AUTH_"}

    admin_password: str = ""  # empty rejects every write


class AppSettings(BaseSettings):
    """Root application settings aggregating all sub-configs."""

    model_config = {"env_prefix": "STAFFROSTER_"}

    environment: Literal["dev", "uat", "prod"] = "dev"
    log_level: str = "INFO"

    store: StoreConfig = StoreConfig()
    dynamodb: DynamoDBConfig = DynamoDBConfig()
    redis: RedisConfig = RedisConfig()
    s3: S3Config = S3Config()
    parser: ParserConfig = ParserConfig()
    auth: AuthConfig = AuthConfig()
