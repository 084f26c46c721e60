"""
Shared fixtures for unit tests.
"""

from __future__ import annotations

import copy
import os
import types
import uuid
from typing import Any

import pytest

# users_api.app reads its configuration and builds a boto3 resource at import
# time, so the environment must be in place before any test module is collected.
os.environ.setdefault("USERS_TABLE_NAME", "users-table-test")
os.environ.setdefault("SERVICE_NAME", "users-api-test")
os.environ.setdefault("ENVIRONMENT", "test")
os.environ.setdefault("AWS_DEFAULT_REGION", "eu-west-1")
os.environ.setdefault("POWERTOOLS_TRACE_DISABLED", "true")
os.environ.setdefault("POWERTOOLS_LOG_LEVEL", "INFO")

from users_api.core import UsersService  # noqa: E402
from users_api.exceptions import StoreError, UserNotFoundError  # noqa: E402
from users_api.router import Router  # noqa: E402


class InMemoryUserStore:
    """A dict-backed stand-in for UsersTableClient."""

    def __init__(self):
        self.items: dict[str, dict[str, Any]] = {}

    def get_item(self, user_id: str) -> dict[str, Any] | None:
        item = self.items.get(user_id)
        return copy.deepcopy(item) if item is not None else None

    def put_item(self, item: dict[str, Any]) -> None:
        if item["id"] in self.items:
            raise StoreError("put_item", error_code="DUPLICATE_USER_ID")
        self.items[item["id"]] = copy.deepcopy(item)

    def update_fields(self, user_id: str, fields: dict[str, Any]) -> dict[str, Any]:
        if user_id not in self.items:
            raise UserNotFoundError(user_id)
        self.items[user_id].update(fields)
        return copy.deepcopy(self.items[user_id])

    def delete_item(self, user_id: str) -> None:
        self.items.pop(user_id, None)

    def scan(self) -> list[dict[str, Any]]:
        return [copy.deepcopy(item) for item in self.items.values()]


@pytest.fixture
def store() -> InMemoryUserStore:
    return InMemoryUserStore()


@pytest.fixture
def service(store: InMemoryUserStore) -> UsersService:
    return UsersService(store=store)


@pytest.fixture
def router(service: UsersService) -> Router:
    return Router(service)


@pytest.fixture
def lambda_context():
    """A *very* small stand-in for the LambdaContext object."""
    return types.SimpleNamespace(
        function_name="users-api-test",
        function_version="$LATEST",
        memory_limit_in_mb=128,
        aws_request_id="req-" + uuid.uuid4().hex,
        invoked_function_arn="arn:aws:lambda:eu-west-1:000000000000:function:users-api-test",
        get_remaining_time_in_millis=lambda: 30000,
    )


def http_api_event(method: str, path: str, body: str | None = None, **extra) -> dict:
    """Builds a minimal API Gateway HTTP API (payload 2.0) proxy event."""
    event = {
        "version": "2.0",
        "routeKey": f"{method} {path}",
        "rawPath": path,
        "headers": {"content-type": "application/json"},
        "requestContext": {
            "http": {"method": method, "path": path, "protocol": "HTTP/1.1"},
            "requestId": uuid.uuid4().hex,
            "stage": "$default",
        },
        "isBase64Encoded": False,
    }
    if body is not None:
        event["body"] = body
    event.update(extra)
    return event


@pytest.fixture
def make_event():
    return http_api_event
