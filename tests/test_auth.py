import json

import pytest

from todo_api import lambda_handlers
from todo_api.auth import claims_from_event
from todo_api.main import app
from todo_api.repositories import get_item_store


class TestClaimsFromEvent:
    def test_rest_api_cognito_claims(self):
        event = {"requestContext": {"authorizer": {"claims": {"sub": "abc", "email": "a@b.c"}}}}
        assert claims_from_event(event) == {"sub": "abc", "email": "a@b.c"}

    def test_http_api_jwt_claims(self):
        event = {"requestContext": {"authorizer": {"jwt": {"claims": {"sub": "xyz"}, "scopes": None}}}}
        assert claims_from_event(event) == {"sub": "xyz"}

    @pytest.mark.parametrize(
        "event",
        [
            None,
            {},
            {"requestContext": None},
            {"requestContext": {}},
            {"requestContext": {"authorizer": None}},
            {"requestContext": {"authorizer": {"principalId": "p"}}},
            {"requestContext": {"authorizer": {"jwt": {}}}},
        ],
    )
    def test_no_claims(self, event):
        assert claims_from_event(event) == {}


class _Context:
    aws_request_id = "req-1"
    function_name = "todo-api"


def rest_event(method, path, owner=None, body=None, path_params=None):
    context = {
        "resourcePath": path,
        "httpMethod": method,
        "path": path,
        "stage": "Prod",
        "identity": {"sourceIp": "127.0.0.1"},
    }
    if owner is not None:
        context["authorizer"] = {"claims": {"sub": owner}}
    return {
        "resource": path,
        "path": path,
        "httpMethod": method,
        "headers": {"Content-Type": "application/json", "Host": "api.example.com"},
        "multiValueHeaders": {"Content-Type": ["application/json"], "Host": ["api.example.com"]},
        "queryStringParameters": None,
        "multiValueQueryStringParameters": None,
        "pathParameters": path_params,
        "stageVariables": None,
        "requestContext": context,
        "body": json.dumps(body) if body is not None else None,
        "isBase64Encoded": False,
    }


class TestApiHandlerThroughMangum:
    @pytest.fixture(autouse=True)
    def fresh_store(self, store):
        app.dependency_overrides[get_item_store] = lambda: store
        yield store
        app.dependency_overrides.clear()

    def test_claims_from_event_reach_the_app(self):
        created = lambda_handlers.api_handler(
            rest_event("POST", "/todos", owner="mangum-user", body={"title": "via mangum"}), _Context()
        )
        assert created["statusCode"] == 201
        todo = json.loads(created["body"])["todo"]
        assert todo["userId"] == "mangum-user"

        listed = lambda_handlers.api_handler(rest_event("GET", "/todos", owner="mangum-user"), _Context())
        assert listed["statusCode"] == 200
        assert [t["title"] for t in json.loads(listed["body"])["todos"]] == ["via mangum"]

    def test_without_authorizer_is_401(self):
        response = lambda_handlers.api_handler(rest_event("GET", "/todos"), _Context())
        assert response["statusCode"] == 401
