from __future__ import annotations

import os
from dataclasses import dataclass
from typing import Optional

_BACKENDS = {"dynamodb", "memory"}
_LOG_FORMATS = {"json", "text"}


@dataclass(frozen=True)
class Settings:
    """
    Application settings loaded from environment variables.

    Env vars:
    - TODOS_TABLE_NAME: DynamoDB table holding the todos (required for 'dynamodb')
    - TODOS_STORE_BACKEND: 'dynamodb' (default) or 'memory'
    - AWS_REGION: region of the table. Default 'us-east-1'
    - LOCALSTACK_ENDPOINT: endpoint override for a local DynamoDB/LocalStack
    - TRUSTED_SUBJECT_HEADER: request header carrying a subject already verified
      by an upstream identity proxy; unset disables it
    - LOG_LEVEL: root log level. Default 'INFO'
    - LOG_FORMAT: 'json' (default) or 'text'
    """

    todos_table_name: Optional[str]
    store_backend: str
    aws_region: str
    dynamodb_endpoint_url: Optional[str]
    trusted_subject_header: Optional[str]
    log_level: str
    log_format: str


def _get_env(name: str, default: str) -> str:
    value = os.getenv(name, default)
    if value is None or value == "":
        return default
    return value


def _get_optional_env(name: str) -> Optional[str]:
    value = os.getenv(name)
    if value is None or not value.strip():
        return None
    return value.strip()


# PUBLIC_INTERFACE
def get_settings() -> Settings:
    """Return application settings loaded from environment variables."""
    backend = _get_env("TODOS_STORE_BACKEND", "dynamodb").strip().lower()
    if backend not in _BACKENDS:
        backend = "dynamodb"

    log_format = _get_env("LOG_FORMAT", "json").strip().lower()
    if log_format not in _LOG_FORMATS:
        log_format = "json"

    return Settings(
        todos_table_name=_get_optional_env("TODOS_TABLE_NAME"),
        store_backend=backend,
        aws_region=_get_env("AWS_REGION", "us-east-1").strip(),
        dynamodb_endpoint_url=_get_optional_env("LOCALSTACK_ENDPOINT"),
        trusted_subject_header=_get_optional_env("TRUSTED_SUBJECT_HEADER"),
        log_level=_get_env("LOG_LEVEL", "INFO").strip().upper(),
        log_format=log_format,
    )
