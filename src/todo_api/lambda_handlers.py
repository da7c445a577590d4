"""
Lambda Handlers - Entry points for AWS Lambda functions.

This module provides Lambda handlers for:
1. One function per operation (create, list, update, delete, options),
   wired to API Gateway proxy integrations with a Cognito authorizer
2. The whole FastAPI app (via Mangum) for a single catch-all function

Every handler reads the caller from the authorizer claims of the event and
returns an API Gateway proxy result with the CORS headers attached.
"""

import base64
import binascii
import logging

from .auth import claims_from_event
from .handlers import TodoRequest, TodoResponse, create_todo, delete_todo, list_todos, preflight, update_todo
from .logging_config import setup_logging
from .repositories import get_item_store
from .settings import get_settings

_settings = get_settings()
setup_logging(_settings.log_level, _settings.log_format)

logger = logging.getLogger(__name__)

_INTERNAL_ERROR = TodoResponse(500, {"message": "Internal server error."})


def _body(event):
    raw = event.get("body")
    if raw is not None and event.get("isBase64Encoded"):
        try:
            return base64.b64decode(raw)
        except (binascii.Error, TypeError, ValueError):
            # Not base64 after all; the handler rejects it as non-JSON after the owner check.
            return raw
    return raw


def request_from_event(event):
    """Build a TodoRequest from an API Gateway proxy event."""
    event = event or {}
    return TodoRequest(
        claims=claims_from_event(event),
        path_parameters=event.get("pathParameters") or {},
        body=_body(event),
    )


def _invoke(operation, event, context):
    request_id = getattr(context, "aws_request_id", None)
    logger.info("handling %s (request %s)", operation.__name__, request_id, extra={"operation": operation.__name__})
    try:
        response = operation(request_from_event(event), get_item_store())
    except Exception:
        logger.exception("unhandled error in %s", operation.__name__)
        response = _INTERNAL_ERROR
    return response.to_lambda()


def create_todo_handler(event, context):
    """POST /todos"""
    return _invoke(create_todo, event, context)


def get_todos_handler(event, context):
    """GET /todos"""
    return _invoke(list_todos, event, context)


def update_todo_handler(event, context):
    """PUT /todos/{id}"""
    return _invoke(update_todo, event, context)


def delete_todo_handler(event, context):
    """DELETE /todos/{id}"""
    return _invoke(delete_todo, event, context)


def options_handler(event, context):
    """OPTIONS pre-flight for both paths. No store, no identity."""
    return preflight().to_lambda()


# =============================================================================
# FastAPI Handler (Mangum)
# =============================================================================

_asgi_handler = None


def api_handler(event, context):
    """
    AWS Lambda handler serving every route of the FastAPI app.

    Mangum keeps the original event in the ASGI scope, so the app reads the
    authorizer claims from it exactly as the per-operation handlers do.
    """
    global _asgi_handler

    if _asgi_handler is None:
        from mangum import Mangum

        from .main import app

        _asgi_handler = Mangum(app, lifespan="off")

    return _asgi_handler(event, context)
