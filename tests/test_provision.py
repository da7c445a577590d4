import boto3
import pytest
from botocore.stub import Stubber

from todo_api.provision import ATTRIBUTE_DEFINITIONS, KEY_SCHEMA, create_todos_table, delete_todos_table


@pytest.fixture
def client():
    return boto3.client("dynamodb", region_name="us-east-1")


def test_create_table_uses_owner_and_id_as_key(client):
    with Stubber(client) as stub:
        stub.add_response(
            "create_table",
            {},
            {
                "TableName": "todos-test",
                "KeySchema": KEY_SCHEMA,
                "AttributeDefinitions": ATTRIBUTE_DEFINITIONS,
                "BillingMode": "PAY_PER_REQUEST",
            },
        )
        assert create_todos_table(client, "todos-test", wait=False) is True
    assert KEY_SCHEMA == [
        {"AttributeName": "userId", "KeyType": "HASH"},
        {"AttributeName": "todoId", "KeyType": "RANGE"},
    ]


def test_create_existing_table_is_not_an_error(client):
    with Stubber(client) as stub:
        stub.add_client_error("create_table", service_error_code="ResourceInUseException")
        assert create_todos_table(client, "todos-test", wait=False) is False


def test_delete_missing_table_is_not_an_error(client):
    with Stubber(client) as stub:
        stub.add_client_error("delete_table", service_error_code="ResourceNotFoundException")
        assert delete_todos_table(client, "todos-test") is False


def test_delete_table(client):
    with Stubber(client) as stub:
        stub.add_response("delete_table", {}, {"TableName": "todos-test"})
        assert delete_todos_table(client, "todos-test") is True


def test_other_errors_propagate(client):
    with Stubber(client) as stub:
        stub.add_client_error("delete_table", service_error_code="AccessDeniedException")
        with pytest.raises(Exception):
            delete_todos_table(client, "todos-test")
