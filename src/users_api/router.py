# src/users_api/router.py

"""
Request router for the users resource.

Maps an HTTP method and path onto one of the five `UsersService` operations
and wraps the outcome in a response envelope. Exceptions raised by an
operation are converted into structured responses here and never propagate
further.

Routing table:
    /users        GET     list_users
    /users        POST    create_user
    /users/{id}   GET     get_user
    /users/{id}   PUT     update_user
    /users/{id}   DELETE  delete_user
"""

import logging
from dataclasses import dataclass
from typing import Any, Callable

from .core import UsersService
from .exceptions import (
    InvalidRequestBodyError,
    UserNotFoundError,
    get_error_context,
    is_retryable_error,
)
from .schemas import decode_body

logger = logging.getLogger(__name__)

USERS_PATH = "/users"
USERS_PREFIX = "/users/"

PATH_NOT_FOUND = "Path not found"
USER_ID_NOT_FOUND = "User id not found"
INVALID_REQUEST = "Invalid request"
USER_NOT_FOUND = "User not found"
INVALID_REQUEST_BODY = "Invalid request body"
SERVICE_UNAVAILABLE = "Service unavailable"
INTERNAL_ERROR = "Internal server error"


@dataclass(frozen=True)
class Response:
    """A routed result: HTTP status plus the envelope to serialise as the body."""

    status_code: int
    body: dict[str, Any]
    operation: str | None = None


def data_response(status_code: int, data: Any, operation: str) -> Response:
    return Response(status_code=status_code, body={"data": data}, operation=operation)


def message_response(
    status_code: int, message: str, operation: str | None = None
) -> Response:
    return Response(
        status_code=status_code, body={"message": message}, operation=operation
    )


class Router:
    """Dispatches (method, path) pairs onto the users service."""

    def __init__(self, service: UsersService, strict_error_mapping: bool = True):
        self._service = service
        self._strict_error_mapping = strict_error_mapping

    def route(
        self,
        method: str,
        path: str,
        body: str | None = None,
        is_base64_encoded: bool = False,
    ) -> Response:
        """
        The body is decoded only by the operations that read it, so a body that
        fails to decode never masks a routing error.
        """
        method = method.upper()

        if path == USERS_PATH:
            if method == "GET":
                return self._invoke("ListUsers", self._list_users)
            if method == "POST":
                return self._invoke(
                    "CreateUser", self._create_user, body, is_base64_encoded
                )
            return self._routing_error(PATH_NOT_FOUND, method, path)

        if path.startswith(USERS_PREFIX):
            user_id = path[len(USERS_PREFIX):]
            if not user_id:
                return self._routing_error(USER_ID_NOT_FOUND, method, path)
            if method == "GET":
                return self._invoke("GetUser", self._get_user, user_id)
            if method == "PUT":
                return self._invoke(
                    "UpdateUser", self._update_user, user_id, body, is_base64_encoded
                )
            if method == "DELETE":
                return self._invoke("DeleteUser", self._delete_user, user_id)
            return self._routing_error(PATH_NOT_FOUND, method, path)

        return self._routing_error(INVALID_REQUEST, method, path)

    # --- Operations ---

    def _list_users(self) -> Response:
        return data_response(200, self._service.list_users(), "ListUsers")

    def _create_user(self, body: str | None, is_base64_encoded: bool) -> Response:
        text = decode_body(body, is_base64_encoded)
        return data_response(201, self._service.create_user(text), "CreateUser")

    def _get_user(self, user_id: str) -> Response:
        return data_response(200, self._service.get_user(user_id), "GetUser")

    def _update_user(
        self, user_id: str, body: str | None, is_base64_encoded: bool
    ) -> Response:
        text = decode_body(body, is_base64_encoded)
        return data_response(
            200, self._service.update_user(user_id, text), "UpdateUser"
        )

    def _delete_user(self, user_id: str) -> Response:
        self._service.delete_user(user_id)
        return message_response(200, f"User {user_id} deleted", "DeleteUser")

    # --- Error boundary ---

    def _invoke(
        self, operation: str, handler: Callable[..., Response], *args: Any
    ) -> Response:
        try:
            return handler(*args)
        except Exception as e:
            return self._error_response(operation, e)

    def _error_response(self, operation: str, error: Exception) -> Response:
        error_details = get_error_context(error)
        error_details["operation"] = operation

        if not self._strict_error_mapping:
            # Legacy behaviour: every handler failure reads as "not found".
            logger.warning(f"Operation failed: {error}", extra=error_details)
            return message_response(404, USER_NOT_FOUND, operation)

        if isinstance(error, UserNotFoundError):
            logger.info("User not found", extra=error_details)
            return message_response(404, USER_NOT_FOUND, operation)
        if isinstance(error, InvalidRequestBodyError):
            logger.warning("Rejected request body", extra=error_details)
            return message_response(400, INVALID_REQUEST_BODY, operation)
        if is_retryable_error(error):
            logger.warning(f"Record store unavailable: {error}", extra=error_details)
            return message_response(503, SERVICE_UNAVAILABLE, operation)

        logger.exception(f"Unexpected error during {operation}", extra=error_details)
        return message_response(500, INTERNAL_ERROR, operation)

    def _routing_error(self, message: str, method: str, path: str) -> Response:
        logger.info(
            "Request did not match a route",
            extra={"method": method, "path": path, "reason": message},
        )
        return message_response(400, message)
