from __future__ import annotations

from botocore.exceptions import BotoCoreError, ClientError


# Anything raised by the underlying DynamoDB client. Re-raised unchanged.
BackendError = (ClientError, BotoCoreError)


class SessionStoreError(RuntimeError):
    """Base error for the DynamoDB session store."""


class DeleteInProgressError(SessionStoreError):
    """The table exists but is being deleted; retry provisioning later."""


class CreateTimedOutError(SessionStoreError):
    """The table did not become active within the polling window."""


class UnrecognizedTableStatusError(SessionStoreError):
    """DescribeTable reported a status outside the known set."""

    def __init__(self, status: str) -> None:
        super().__init__(f"unrecognized table status: {status}")
        self.status = status


class DecodeError(SessionStoreError, ValueError):
    """A stored item could not be decoded into a session record."""


__all__ = [
    "BackendError",
    "SessionStoreError",
    "DeleteInProgressError",
    "CreateTimedOutError",
    "UnrecognizedTableStatusError",
    "DecodeError",
]
