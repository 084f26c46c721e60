# tests/unit/test_router.py

"""
Unit tests for the request router: route matching, envelopes and the
error boundary in both strict and legacy mapping modes.
"""

import base64
import json
from unittest.mock import MagicMock

import pytest

from users_api.core import UsersService
from users_api.exceptions import (
    StoreAccessDeniedError,
    StoreUnavailableError,
    UserNotFoundError,
)
from users_api.router import Router


def _create(router: Router, name: str = "Ada", email: str = "ada@example.com") -> dict:
    response = router.route("POST", "/users", json.dumps({"name": name, "email": email}))
    assert response.status_code == 201
    return response.body["data"]


# -----------------------------------------------------------------------------
# Happy paths
# -----------------------------------------------------------------------------


def test_create_returns_201_with_record(router):
    response = router.route(
        "POST", "/users", json.dumps({"name": "Ada", "email": "ada@example.com"})
    )

    assert response.status_code == 201
    assert response.operation == "CreateUser"
    data = response.body["data"]
    assert set(data) == {"id", "name", "email", "createdAt"}
    assert data["name"] == "Ada"


def test_create_then_get(router):
    created = _create(router)

    response = router.route("GET", f"/users/{created['id']}")

    assert response.status_code == 200
    assert response.body == {"data": created}
    assert response.body["data"]["createdAt"]


def test_get_missing_user_is_404(router):
    response = router.route("GET", "/users/abc")

    assert response.status_code == 404
    assert response.body == {"message": "User not found"}


def test_list_after_three_creates(router):
    ids = {_create(router, name=f"u{n}", email=f"{n}@x")["id"] for n in range(3)}

    response = router.route("GET", "/users")

    assert response.status_code == 200
    assert {item["id"] for item in response.body["data"]} == ids


def test_update_with_only_name_nulls_email(router):
    created = _create(router)

    response = router.route(
        "PUT", f"/users/{created['id']}", json.dumps({"name": "Grace"})
    )

    assert response.status_code == 200
    assert response.body["data"]["name"] == "Grace"
    assert response.body["data"]["email"] is None
    stored = router.route("GET", f"/users/{created['id']}").body["data"]
    assert stored["email"] is None


def test_delete_then_get_is_404(router):
    created = _create(router)

    deleted = router.route("DELETE", f"/users/{created['id']}")
    fetched = router.route("GET", f"/users/{created['id']}")

    assert deleted.status_code == 200
    assert deleted.body == {"message": f"User {created['id']} deleted"}
    assert fetched.status_code == 404


def test_delete_missing_user_is_200(router):
    response = router.route("DELETE", "/users/never-existed")

    assert response.status_code == 200
    assert "message" in response.body


def test_method_is_case_insensitive(router):
    assert router.route("get", "/users").status_code == 200


# -----------------------------------------------------------------------------
# Routing mismatches
# -----------------------------------------------------------------------------


@pytest.mark.parametrize(
    "method, path, message",
    [
        ("POST", "/users/", "User id not found"),
        ("GET", "/users/", "User id not found"),
        ("GET", "/orders", "Invalid request"),
        ("GET", "/", "Invalid request"),
        ("GET", "/usersx", "Invalid request"),
        ("PATCH", "/users", "Path not found"),
        ("DELETE", "/users", "Path not found"),
        ("POST", "/users/abc", "Path not found"),
        ("PATCH", "/users/abc", "Path not found"),
    ],
)
def test_unmatched_routes_are_400(router, method, path, message):
    response = router.route(method, path)

    assert response.status_code == 400
    assert response.body == {"message": message}
    assert response.operation is None


def test_id_is_everything_after_prefix():
    service = MagicMock(spec=UsersService)
    service.get_user.return_value = {"id": "a/b"}
    router = Router(service)

    router.route("GET", "/users/a/b")

    service.get_user.assert_called_once_with("a/b")


# -----------------------------------------------------------------------------
# Error boundary
# -----------------------------------------------------------------------------


def test_strict_mapping_malformed_body_is_400(router):
    response = router.route("POST", "/users", "{not json")

    assert response.status_code == 400
    assert response.body == {"message": "Invalid request body"}


def test_legacy_mapping_malformed_body_is_404(service):
    router = Router(service, strict_error_mapping=False)

    response = router.route("POST", "/users", "{not json")

    assert response.status_code == 404
    assert response.body == {"message": "User not found"}


@pytest.mark.parametrize(
    "error, strict_status, strict_message",
    [
        (UserNotFoundError("abc"), 404, "User not found"),
        (StoreUnavailableError("get_item"), 503, "Service unavailable"),
        (StoreAccessDeniedError("get_item", "users"), 500, "Internal server error"),
        (RuntimeError("boom"), 500, "Internal server error"),
    ],
)
def test_error_mapping_modes(error, strict_status, strict_message):
    service = MagicMock(spec=UsersService)
    service.get_user.side_effect = error

    strict = Router(service).route("GET", "/users/abc")
    legacy = Router(service, strict_error_mapping=False).route("GET", "/users/abc")

    assert (strict.status_code, strict.body) == (
        strict_status,
        {"message": strict_message},
    )
    assert (legacy.status_code, legacy.body) == (404, {"message": "User not found"})
    assert strict.operation == legacy.operation == "GetUser"


def test_update_of_missing_user_is_404(router):
    response = router.route("PUT", "/users/ghost", json.dumps({"name": "Grace"}))

    assert response.status_code == 404
    assert response.body == {"message": "User not found"}


def test_base64_body_is_decoded_for_create(router):
    encoded = base64.b64encode(
        json.dumps({"name": "Ada", "email": "ada@example.com"}).encode("utf-8")
    ).decode("ascii")

    response = router.route("POST", "/users", encoded, is_base64_encoded=True)

    assert response.status_code == 201
    assert response.body["data"]["email"] == "ada@example.com"


@pytest.mark.parametrize(
    "strict, expected",
    [(True, (400, "Invalid request body")), (False, (404, "User not found"))],
)
def test_undecodable_body_goes_through_error_mapping(service, strict, expected):
    router = Router(service, strict_error_mapping=strict)

    response = router.route("PUT", "/users/abc", "%%%", is_base64_encoded=True)

    assert (response.status_code, response.body["message"]) == expected
    assert response.operation == "UpdateUser"


def test_undecodable_body_does_not_mask_routing_errors(router):
    response = router.route("GET", "/orders", "%%%", is_base64_encoded=True)

    assert (response.status_code, response.body) == (400, {"message": "Invalid request"})
