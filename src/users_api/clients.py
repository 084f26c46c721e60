# src/users_api/clients.py

"""
Client wrapper for the DynamoDB users table.

This class provides a narrow, typed interface over a boto3 Table resource so
that the service layer never handles raw botocore errors. Every operation is
attempted exactly once; failures are mapped onto the exceptions defined in
`exceptions.py`.
"""

import logging
from typing import TYPE_CHECKING, Any, NoReturn

from botocore.exceptions import (
    ClientError,
    ConnectTimeoutError,
    EndpointConnectionError,
    ReadTimeoutError,
)

from .exceptions import (
    StoreAccessDeniedError,
    StoreError,
    StoreUnavailableError,
    UserNotFoundError,
)

if TYPE_CHECKING:
    from mypy_boto3_dynamodb.service_resource import Table

logger = logging.getLogger(__name__)

_ACCESS_DENIED_CODES = {"AccessDeniedException", "UnrecognizedClientException"}
_UNAVAILABLE_CODES = {
    "ProvisionedThroughputExceededException",
    "ThrottlingException",
    "RequestLimitExceeded",
    "InternalServerError",
    "ServiceUnavailable",
}
_CONDITION_FAILED = "ConditionalCheckFailedException"


class UsersTableClient:
    """
    A wrapper for the users table, keyed by the string attribute ``id``.
    """

    def __init__(self, table: "Table"):
        """
        Initializes the UsersTableClient.

        Args:
            table: A boto3 DynamoDB Table resource.
        """
        self._table = table
        self._table_name = table.name

    @property
    def table_name(self) -> str:
        return self._table_name

    def _raise_store_error(
        self, operation: str, error: Exception, user_id: str | None = None
    ) -> NoReturn:
        context: dict[str, Any] = {"table_name": self._table_name}
        if user_id is not None:
            context["user_id"] = user_id

        if isinstance(error, ClientError):
            error_code = error.response["Error"]["Code"]
            error_message = error.response["Error"].get("Message", "")
            context.update(
                {"aws_error_code": error_code, "aws_error_message": error_message}
            )
            if error_code in _ACCESS_DENIED_CODES:
                raise StoreAccessDeniedError(
                    operation, self._table_name, context=context
                ) from error
            if error_code in _UNAVAILABLE_CODES:
                raise StoreUnavailableError(
                    operation, error_code="STORE_THROTTLING", context=context
                ) from error
            raise StoreError(operation, context=context) from error

        # Timeouts and connection failures
        context["connection_error"] = str(error)
        raise StoreUnavailableError(
            operation, error_code="STORE_CONNECTION_ERROR", context=context
        ) from error

    def get_item(self, user_id: str) -> dict[str, Any] | None:
        """Fetches a single record by id, or None when it does not exist."""
        try:
            response = self._table.get_item(Key={"id": user_id})
        except (
            ClientError,
            ReadTimeoutError,
            ConnectTimeoutError,
            EndpointConnectionError,
        ) as e:
            self._raise_store_error("get_item", e, user_id)
        return response.get("Item")

    def put_item(self, item: dict[str, Any]) -> None:
        """Persists a new record. Refuses to overwrite an existing id."""
        try:
            self._table.put_item(
                Item=item,
                ConditionExpression="attribute_not_exists(#id)",
                ExpressionAttributeNames={"#id": "id"},
            )
        except ClientError as e:
            if e.response["Error"]["Code"] == _CONDITION_FAILED:
                raise StoreError(
                    "put_item",
                    message=f"A record with id {item['id']} already exists",
                    error_code="DUPLICATE_USER_ID",
                    context={"table_name": self._table_name, "user_id": item["id"]},
                ) from e
            self._raise_store_error("put_item", e, item.get("id"))
        except (ReadTimeoutError, ConnectTimeoutError, EndpointConnectionError) as e:
            self._raise_store_error("put_item", e, item.get("id"))
        logger.debug(
            "Record written", extra={"table_name": self._table_name, "user_id": item["id"]}
        )

    def update_fields(self, user_id: str, fields: dict[str, Any]) -> dict[str, Any]:
        """
        Sets every attribute in *fields* on an existing record and returns the
        record as it is after the update. None values are stored as NULL.

        Raises UserNotFoundError when no record exists for *user_id*.
        """
        if not fields:
            raise ValueError("update_fields requires at least one attribute")

        names = {"#id": "id"}
        values = {}
        assignments = []
        for index, (attribute, value) in enumerate(sorted(fields.items())):
            names[f"#f{index}"] = attribute
            values[f":v{index}"] = value
            assignments.append(f"#f{index} = :v{index}")

        try:
            response = self._table.update_item(
                Key={"id": user_id},
                UpdateExpression="SET " + ", ".join(assignments),
                ConditionExpression="attribute_exists(#id)",
                ExpressionAttributeNames=names,
                ExpressionAttributeValues=values,
                ReturnValues="ALL_NEW",
            )
        except ClientError as e:
            if e.response["Error"]["Code"] == _CONDITION_FAILED:
                raise UserNotFoundError(user_id) from e
            self._raise_store_error("update_item", e, user_id)
        except (ReadTimeoutError, ConnectTimeoutError, EndpointConnectionError) as e:
            self._raise_store_error("update_item", e, user_id)
        return response["Attributes"]

    def delete_item(self, user_id: str) -> None:
        """Removes a record by id. Deleting a missing id is not an error."""
        try:
            self._table.delete_item(Key={"id": user_id})
        except (
            ClientError,
            ReadTimeoutError,
            ConnectTimeoutError,
            EndpointConnectionError,
        ) as e:
            self._raise_store_error("delete_item", e, user_id)

    def scan(self) -> list[dict[str, Any]]:
        """Returns whatever a single Scan call yields. No pagination."""
        try:
            response = self._table.scan()
        except (
            ClientError,
            ReadTimeoutError,
            ConnectTimeoutError,
            EndpointConnectionError,
        ) as e:
            self._raise_store_error("scan", e)

        items = response.get("Items", [])
        if response.get("LastEvaluatedKey"):
            logger.warning(
                "Scan result truncated at 1 MB; remaining records were not returned",
                extra={"table_name": self._table_name, "returned": len(items)},
            )
        return items
