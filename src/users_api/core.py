# src/users_api/core.py

"""
Core business logic for the users resource.

`UsersService` holds the per-operation field logic: id and timestamp
generation on create, null-filling on update, and not-found detection on
read. It talks to the record store only through the `UserStore` protocol, so
the boto3-backed `UsersTableClient` and an in-memory fake are interchangeable.
"""

import logging
import uuid
from datetime import datetime, timezone
from typing import Any, Callable, Protocol, cast

from .exceptions import UserNotFoundError
from .schemas import (
    CreateUserRequest,
    UpdateUserRequest,
    UserItem,
    UserRecord,
    parse_json_body,
    validate_body,
)

logger = logging.getLogger(__name__)

# Attributes a caller may change. ``id`` and ``createdAt`` are never written
# after creation.
UPDATABLE_FIELDS = ("name", "email")


class UserStore(Protocol):
    def get_item(self, user_id: str) -> dict[str, Any] | None: ...

    def put_item(self, item: dict[str, Any]) -> None: ...

    def update_fields(self, user_id: str, fields: dict[str, Any]) -> dict[str, Any]: ...

    def delete_item(self, user_id: str) -> None: ...

    def scan(self) -> list[dict[str, Any]]: ...


def _new_user_id() -> str:
    return str(uuid.uuid4())


def _utc_now() -> datetime:
    return datetime.now(timezone.utc)


def placeholder_fields(user_id: str) -> tuple[str, str]:
    """Name and email used when create is configured to ignore the body."""
    short_id = user_id.replace("-", "")[:8]
    return f"user-{short_id}", f"user-{short_id}@example.invalid"


class UsersService:
    """CRUD operations over the users record store."""

    def __init__(
        self,
        store: UserStore,
        generate_create_fields: bool = False,
        id_factory: Callable[[], str] = _new_user_id,
        clock: Callable[[], datetime] = _utc_now,
    ):
        self._store = store
        self._generate_create_fields = generate_create_fields
        self._id_factory = id_factory
        self._clock = clock

    def list_users(self) -> list[UserItem]:
        items = self._store.scan()
        logger.debug("Listed users", extra={"count": len(items)})
        return cast(list[UserItem], items)

    def create_user(self, body: str | None) -> UserItem:
        user_id = self._id_factory()

        if self._generate_create_fields:
            # The body must still be well-formed JSON, but its values are ignored.
            parse_json_body(body)
            name, email = placeholder_fields(user_id)
        else:
            request = validate_body(CreateUserRequest, body)
            name, email = request.name, request.email

        record = UserRecord(
            id=user_id,
            name=name,
            email=email,
            created_at=self._clock().isoformat(),
        )
        item = record.to_item()
        self._store.put_item(dict(item))
        logger.info(
            "User created",
            extra={
                "user_id": user_id,
                "generated_fields": self._generate_create_fields,
            },
        )
        return item

    def get_user(self, user_id: str) -> UserItem:
        item = self._store.get_item(user_id)
        if item is None:
            raise UserNotFoundError(user_id)
        return cast(UserItem, item)

    def update_user(self, user_id: str, body: str | None) -> UserItem:
        request = validate_body(UpdateUserRequest, body)
        # Every updatable field is written; absent ones become null.
        fields = {name: getattr(request, name) for name in UPDATABLE_FIELDS}
        attributes = self._store.update_fields(user_id, fields)
        logger.info(
            "User updated",
            extra={
                "user_id": user_id,
                "nulled_fields": [k for k, v in fields.items() if v is None],
            },
        )
        return cast(UserItem, attributes)

    def delete_user(self, user_id: str) -> None:
        self._store.delete_item(user_id)
        logger.info("User deleted", extra={"user_id": user_id})
