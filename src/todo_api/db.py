from __future__ import annotations

import logging
from typing import Any, Dict, List, Optional

import boto3
from boto3.dynamodb.conditions import Key
from botocore.exceptions import BotoCoreError, ClientError

from .expressions import UpdateStatement
from .models import TodoEntity
from .repositories import ItemStore, MalformedKeyError, StoreError
from .settings import Settings

logger = logging.getLogger(__name__)

# Fragments of ValidationException messages that blame the key rather than the service.
_KEY_ERROR_MARKERS = (
    "does not match the schema",
    "key attribute",
    "range keys",
)


def _error_code(exc: ClientError) -> str:
    return exc.response.get("Error", {}).get("Code", "")


def _is_conditional_check_failed(exc: Exception) -> bool:
    return isinstance(exc, ClientError) and _error_code(exc) == "ConditionalCheckFailedException"


def _translate(operation: str, exc: Exception) -> StoreError:
    if isinstance(exc, ClientError):
        code = _error_code(exc)
        message = exc.response.get("Error", {}).get("Message", "") or str(exc)
        if code == "ValidationException" and any(m in message for m in _KEY_ERROR_MARKERS):
            return MalformedKeyError(operation, message, error_code=code)
        return StoreError(operation, message, error_code=code)
    return StoreError(operation, str(exc), error_code=type(exc).__name__)


class DynamoDBItemStore(ItemStore):
    """
    ItemStore on a DynamoDB table keyed by userId (HASH) and todoId (RANGE).

    Uses the boto3 resource API so items go in and come out as plain dicts.
    Backend failures are re-raised as StoreError, chained to the boto3
    exception.
    """

    def __init__(self, table: Any) -> None:
        self._table = table

    @classmethod
    def from_settings(cls, settings: Settings) -> "DynamoDBItemStore":
        resource = boto3.resource(
            "dynamodb",
            region_name=settings.aws_region,
            endpoint_url=settings.dynamodb_endpoint_url,
        )
        logger.info(
            "using dynamodb table %s in %s", settings.todos_table_name, settings.aws_region
        )
        return cls(resource.Table(settings.todos_table_name))

    @property
    def table_name(self) -> str:
        return self._table.name

    def put(self, item: TodoEntity) -> None:
        try:
            self._table.put_item(Item=dict(item))
        except (BotoCoreError, ClientError) as exc:
            raise _translate("put", exc) from exc

    def query_by_owner(self, owner: str) -> List[TodoEntity]:
        params: Dict[str, Any] = {"KeyConditionExpression": Key("userId").eq(owner)}
        items: List[TodoEntity] = []
        try:
            while True:
                response = self._table.query(**params)
                items.extend(response.get("Items", []))
                last_key = response.get("LastEvaluatedKey")
                if not last_key:
                    return items
                params["ExclusiveStartKey"] = last_key
        except (BotoCoreError, ClientError) as exc:
            raise _translate("query", exc) from exc

    def update(self, owner: str, todo_id: str, statement: UpdateStatement) -> Optional[TodoEntity]:
        try:
            response = self._table.update_item(
                Key={"userId": owner, "todoId": todo_id},
                UpdateExpression=statement.update_expression,
                ConditionExpression=statement.condition_expression,
                ExpressionAttributeNames=statement.attribute_names,
                ExpressionAttributeValues=statement.attribute_values,
                ReturnValues="ALL_NEW",
            )
        except (BotoCoreError, ClientError) as exc:
            if _is_conditional_check_failed(exc):
                return None
            raise _translate("update", exc) from exc
        return response.get("Attributes")

    def delete(self, owner: str, todo_id: str) -> Optional[TodoEntity]:
        try:
            response = self._table.delete_item(
                Key={"userId": owner, "todoId": todo_id},
                ReturnValues="ALL_OLD",
            )
        except (BotoCoreError, ClientError) as exc:
            raise _translate("delete", exc) from exc
        return response.get("Attributes")
