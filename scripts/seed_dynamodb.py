"""Create the DynamoDB snapshot table and seed the default department structure.

Usage:
    python scripts/seed_dynamodb.py --endpoint-url http://localhost:4566
"""

from __future__ import annotations

import argparse
from typing import Any

import boto3

from staffroster.models.department import DepartmentStructure
from staffroster.models.snapshot import SnapshotCategory, UploadInfo
from staffroster.parsing.labels import load_label_config
from staffroster.persistence.dynamodb_backend import (
    DynamoDBSnapshotStore,
    create_snapshot_table,
    table_name,
)


def create_tables(ddb: Any, suffix: str = "") -> str:
    """Create the snapshot table. Skips if the table already exists."""
    name = table_name(suffix)
    client = ddb.meta.client
    if name in client.list_tables().get("TableNames", []):
        print(f"  Table {name} already exists, skipping")
        return name
    create_snapshot_table(client, name)
    print(f"  Created table {name}")
    return name


def seed_organization(
    suffix: str = "",
    region: str = "ap-northeast-2",
    endpoint_url: str | None = None,
    labels_path: str | None = None,
) -> bool:
    """Store the built-in structure as the first organization snapshot.

    Returns False without writing when a structure is already stored.
    """
    store = DynamoDBSnapshotStore(table_suffix=suffix, region=region, endpoint_url=endpoint_url)
    if store.get_latest(SnapshotCategory.ORGANIZATION) is not None:
        print("  Organization snapshot already present, skipping")
        return False

    labels = load_label_config(labels_path)
    structure = DepartmentStructure(
        dept_structure=list(labels.default_department_structure), updated_by="seed",
    )
    store.replace(
        SnapshotCategory.ORGANIZATION,
        structure.to_json_dict(),
        UploadInfo(filename="labels.json", uploaded_by="seed"),
        expected_version=0,
    )
    print(f"  Seeded {len(structure.dept_structure)} department units")
    return True


def main() -> None:
    parser = argparse.ArgumentParser(description="Seed DynamoDB tables for staffroster")
    parser.add_argument("--endpoint-url", default=None, help="DynamoDB endpoint (e.g. http://localhost:4566)")
    parser.add_argument("--table-suffix", default="", help="Table name suffix (e.g. -dev)")
    parser.add_argument("--region", default="ap-northeast-2", help="AWS region")
    parser.add_argument("--labels", default=None, help="Label config overriding the packaged labels.json")
    args = parser.parse_args()

    kwargs: dict[str, Any] = {"region_name": args.region}
    if args.endpoint_url:
        kwargs["endpoint_url"] = args.endpoint_url

    ddb = boto3.resource("dynamodb", **kwargs)

    print("Creating tables...")
    create_tables(ddb, suffix=args.table_suffix)

    print("Seeding data...")
    seed_organization(args.table_suffix, args.region, args.endpoint_url, args.labels)

    print("Done!")


if __name__ == "__main__":
    main()
