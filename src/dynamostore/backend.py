from __future__ import annotations

from typing import Any, Dict, Protocol

from botocore.exceptions import ClientError


NOT_FOUND_CODE = "ResourceNotFoundException"


class DynamoDBClient(Protocol):
    """
    The subset of the low-level boto3 DynamoDB client the store relies on.

    `boto3.client("dynamodb")` satisfies it; tests substitute an in-memory fake.
    Every method takes keyword arguments only, mirroring botocore.
    """

    def describe_table(self, **kwargs: Any) -> Dict[str, Any]: ...

    def create_table(self, **kwargs: Any) -> Dict[str, Any]: ...

    def update_time_to_live(self, **kwargs: Any) -> Dict[str, Any]: ...

    def get_item(self, **kwargs: Any) -> Dict[str, Any]: ...

    def put_item(self, **kwargs: Any) -> Dict[str, Any]: ...

    def delete_item(self, **kwargs: Any) -> Dict[str, Any]: ...


def error_code(err: ClientError) -> str | None:
    return err.response.get("Error", {}).get("Code")


def is_not_found(err: BaseException) -> bool:
    """True when `err` is a ClientError for a missing table or resource."""
    return isinstance(err, ClientError) and error_code(err) == NOT_FOUND_CODE


__all__ = ["DynamoDBClient", "NOT_FOUND_CODE", "error_code", "is_not_found"]
