from concurrent.futures import ThreadPoolExecutor

import pytest

from todo_api import repositories
from todo_api.repositories import InMemoryItemStore, get_item_store, reset_item_store
from todo_api.settings import get_settings


@pytest.fixture
def clean_env(monkeypatch):
    for name in (
        "TODOS_TABLE_NAME",
        "TODOS_STORE_BACKEND",
        "AWS_REGION",
        "LOCALSTACK_ENDPOINT",
        "TRUSTED_SUBJECT_HEADER",
        "LOG_LEVEL",
        "LOG_FORMAT",
    ):
        monkeypatch.delenv(name, raising=False)
    reset_item_store()
    yield monkeypatch
    reset_item_store()


def test_defaults(clean_env):
    settings = get_settings()
    assert settings.store_backend == "dynamodb"
    assert settings.aws_region == "us-east-1"
    assert settings.todos_table_name is None
    assert settings.dynamodb_endpoint_url is None
    assert settings.trusted_subject_header is None
    assert settings.log_level == "INFO"
    assert settings.log_format == "json"


def test_unknown_values_fall_back(clean_env):
    clean_env.setenv("TODOS_STORE_BACKEND", "postgres")
    clean_env.setenv("LOG_FORMAT", "xml")
    settings = get_settings()
    assert settings.store_backend == "dynamodb"
    assert settings.log_format == "json"


def test_blank_optional_values_are_unset(clean_env):
    clean_env.setenv("LOCALSTACK_ENDPOINT", "  ")
    clean_env.setenv("TRUSTED_SUBJECT_HEADER", "")
    settings = get_settings()
    assert settings.dynamodb_endpoint_url is None
    assert settings.trusted_subject_header is None


def test_memory_backend_store_is_shared(clean_env):
    clean_env.setenv("TODOS_STORE_BACKEND", "memory")
    first = get_item_store()
    assert isinstance(first, InMemoryItemStore)
    assert get_item_store() is first


def test_dynamodb_backend_requires_table_name(clean_env):
    with pytest.raises(RuntimeError):
        repositories.get_item_store()


def test_dynamodb_backend(clean_env):
    clean_env.setenv("TODOS_TABLE_NAME", "todos-prod")
    clean_env.setenv("AWS_REGION", "eu-central-1")
    store = get_item_store()
    assert store.table_name == "todos-prod"


def test_concurrent_first_calls_share_one_store(clean_env):
    clean_env.setenv("TODOS_STORE_BACKEND", "memory")
    with ThreadPoolExecutor(max_workers=8) as pool:
        stores = list(pool.map(lambda _: get_item_store(), range(32)))
    assert all(s is stores[0] for s in stores)


def test_reset_builds_a_new_store(clean_env):
    clean_env.setenv("TODOS_STORE_BACKEND", "memory")
    first = get_item_store()
    reset_item_store()
    assert get_item_store() is not first
