import os
from datetime import datetime, timedelta, timezone

# Tests run against the in-memory store and read the caller from a trusted header.
os.environ.setdefault("TODOS_STORE_BACKEND", "memory")
os.environ.setdefault("TRUSTED_SUBJECT_HEADER", "X-Authenticated-Subject")
os.environ.setdefault("TODOS_TABLE_NAME", "todos-test")
os.environ.setdefault("AWS_DEFAULT_REGION", "us-east-1")
os.environ.setdefault("LOG_FORMAT", "text")

import pytest  # noqa: E402

from todo_api.repositories import InMemoryItemStore  # noqa: E402


class FakeClock:
    """Returns a new instant, one second later, on every call."""

    def __init__(self, start=datetime(2025, 1, 25, 10, 15, 30, tzinfo=timezone.utc), step=timedelta(seconds=1)):
        self.now = start
        self.step = step

    def __call__(self):
        current = self.now
        self.now = self.now + self.step
        return current


@pytest.fixture
def store():
    return InMemoryItemStore()


@pytest.fixture
def clock():
    return FakeClock()
