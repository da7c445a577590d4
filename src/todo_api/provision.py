"""
Utility script to create or delete the todos DynamoDB table.

Meant for local stacks (LocalStack / DynamoDB Local via LOCALSTACK_ENDPOINT)
and integration environments; production tables are provisioned by the
deployment template.

Usage:
    python -m todo_api.provision create
    python -m todo_api.provision delete

Notes:
- Table name, region and endpoint come from the usual settings
  (TODOS_TABLE_NAME, AWS_REGION, LOCALSTACK_ENDPOINT).
- Both commands are idempotent: creating an existing table or deleting a
  missing one is not an error.
"""
from __future__ import annotations

import argparse
import logging
import sys
from typing import Any, Dict, List, Optional

import boto3
from botocore.exceptions import ClientError

from .logging_config import setup_logging
from .settings import Settings, get_settings

logger = logging.getLogger(__name__)

KEY_SCHEMA: List[Dict[str, str]] = [
    {"AttributeName": "userId", "KeyType": "HASH"},
    {"AttributeName": "todoId", "KeyType": "RANGE"},
]
ATTRIBUTE_DEFINITIONS: List[Dict[str, str]] = [
    {"AttributeName": "userId", "AttributeType": "S"},
    {"AttributeName": "todoId", "AttributeType": "S"},
]


def _client(settings: Settings) -> Any:
    return boto3.client(
        "dynamodb",
        region_name=settings.aws_region,
        endpoint_url=settings.dynamodb_endpoint_url,
    )


def _table_name(settings: Settings) -> str:
    if not settings.todos_table_name:
        raise RuntimeError("TODOS_TABLE_NAME environment variable is required")
    return settings.todos_table_name


# PUBLIC_INTERFACE
def create_todos_table(client: Any, table_name: str, wait: bool = True) -> bool:
    """
    Create the todos table (userId HASH, todoId RANGE, on-demand billing).

    Returns:
        True if the table was created, False if it already existed.
    """
    try:
        client.create_table(
            TableName=table_name,
            KeySchema=KEY_SCHEMA,
            AttributeDefinitions=ATTRIBUTE_DEFINITIONS,
            BillingMode="PAY_PER_REQUEST",
        )
    except ClientError as exc:
        if exc.response.get("Error", {}).get("Code") == "ResourceInUseException":
            logger.info("table %s already exists", table_name)
            return False
        raise
    if wait:
        client.get_waiter("table_exists").wait(TableName=table_name)
    logger.info("created table %s", table_name)
    return True


# PUBLIC_INTERFACE
def delete_todos_table(client: Any, table_name: str) -> bool:
    """
    Delete the todos table.

    Returns:
        True if the table was deleted, False if it did not exist.
    """
    try:
        client.delete_table(TableName=table_name)
    except ClientError as exc:
        if exc.response.get("Error", {}).get("Code") == "ResourceNotFoundException":
            logger.info("table %s does not exist", table_name)
            return False
        raise
    logger.info("deleted table %s", table_name)
    return True


def main(argv: Optional[List[str]] = None) -> int:
    parser = argparse.ArgumentParser(prog="todo-provision", description="Create or delete the todos table.")
    parser.add_argument("command", choices=["create", "delete"])
    parser.add_argument("--no-wait", action="store_true", help="do not wait for the table to become active")
    args = parser.parse_args(argv)

    settings = get_settings()
    setup_logging(settings.log_level, "text")
    client = _client(settings)
    table_name = _table_name(settings)

    if args.command == "create":
        create_todos_table(client, table_name, wait=not args.no_wait)
    else:
        delete_todos_table(client, table_name)
    return 0


if __name__ == "__main__":
    sys.exit(main())
