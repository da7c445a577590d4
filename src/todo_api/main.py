import logging

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse

from .handlers import CORS_HEADERS
from .logging_config import setup_logging
from .routers import todos as todos_router
from .settings import get_settings

logger = logging.getLogger(__name__)

openapi_tags = [
    {"name": "health", "description": "Service health and status endpoints."},
    {
        "name": "todos",
        "description": "Per-user CRUD operations for Todo items.",
    },
]

_settings = get_settings()
setup_logging(_settings.log_level, _settings.log_format)

app = FastAPI(
    title="Todo API",
    description="Per-user todo list API backed by DynamoDB.",
    version="0.1.0",
    openapi_tags=openapi_tags,
)


# Every response carries the permissive CORS headers, including errors and unknown routes.
@app.middleware("http")
async def add_cors_headers(request: Request, call_next):
    response = await call_next(request)
    for name, value in CORS_HEADERS.items():
        response.headers.setdefault(name, value)
    return response


@app.exception_handler(RequestValidationError)
async def validation_exception_handler(request: Request, exc: RequestValidationError) -> JSONResponse:
    """
    Return the generic 400 body for requests FastAPI itself could not parse.

    Response format:
        {"message": "Request body must be a JSON object."}
    """
    return JSONResponse(status_code=400, content={"message": "Request body must be a JSON object."})


@app.exception_handler(Exception)
async def unhandled_exception_handler(request: Request, exc: Exception) -> JSONResponse:
    """
    Last resort for bugs: log the traceback, answer with a generic 500.
    """
    logger.exception("unhandled error on %s %s", request.method, request.url.path)
    return JSONResponse(
        status_code=500,
        content={"message": "Internal server error."},
        headers=CORS_HEADERS,
    )


# PUBLIC_INTERFACE
@app.get("/", summary="Health Check", tags=["health"])
def health_check():
    """
    Health check endpoint.

    Returns:
        A JSON object indicating service health and the configured store backend.
    """
    return {"message": "Healthy", "backend": _settings.store_backend}


# Include routers
app.include_router(todos_router.router)
