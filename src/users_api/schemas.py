# In src/users_api/schemas.py

import base64
import binascii
import json
from typing import Any, TypedDict

import pydantic
from pydantic import BaseModel, ConfigDict, Field

from .exceptions import InvalidRequestBodyError

# --- Static Type Hinting (for mypy and IDEs) ---


class UserItem(TypedDict):
    """
    A TypedDict representing a user record as stored in DynamoDB and as
    returned inside the response envelope.
    """

    id: str
    name: str | None
    email: str | None
    createdAt: str


# --- Runtime Validation (using Pydantic) ---


class CreateUserRequest(BaseModel):
    name: str = Field(..., min_length=1)
    email: str = Field(..., min_length=1)


class UpdateUserRequest(BaseModel):
    """
    Both fields are optional. A field missing from the body is treated as
    null and written as such, it is never left untouched.
    """

    name: str | None = None
    email: str | None = None


class UserRecord(BaseModel):
    """
    Pydantic model for a persisted user record.
    """

    model_config = ConfigDict(populate_by_name=True)

    id: str = Field(..., min_length=1)
    name: str | None = None
    email: str | None = None
    created_at: str = Field(..., alias="createdAt", min_length=1)

    def to_item(self) -> UserItem:
        return UserItem(
            id=self.id,
            name=self.name,
            email=self.email,
            createdAt=self.created_at,
        )


def decode_body(body: str | None, is_base64_encoded: bool = False) -> str | None:
    """Returns the UTF-8 text of a proxy event body, base64-decoding it if flagged."""
    if body is None or not is_base64_encoded:
        return body
    try:
        return base64.b64decode(body, validate=True).decode("utf-8")
    except (binascii.Error, UnicodeDecodeError) as e:
        raise InvalidRequestBodyError(
            "Request body is not valid base64-encoded UTF-8",
            context={"reason": str(e)},
        ) from e


def parse_json_body(body: str | None) -> dict[str, Any]:
    """
    Decodes a raw request body into a JSON object. A missing or empty body is
    an empty object; anything that is not a JSON object is rejected.
    """
    if body is None or body.strip() == "":
        return {}
    try:
        payload = json.loads(body)
    except json.JSONDecodeError as e:
        raise InvalidRequestBodyError(
            "Request body is not valid JSON",
            context={"position": e.pos, "reason": e.msg},
        ) from e
    if not isinstance(payload, dict):
        raise InvalidRequestBodyError(
            "Request body must be a JSON object",
            context={"received_type": type(payload).__name__},
        )
    return payload


def validate_body(model: type[BaseModel], body: str | None) -> Any:
    """Parses *body* and validates it against *model*."""
    payload = parse_json_body(body)
    try:
        return model.model_validate(payload)
    except pydantic.ValidationError as e:
        raise InvalidRequestBodyError(
            f"Request body failed validation for {model.__name__}",
            context={"validation_errors": e.errors(include_url=False)},
        ) from e
