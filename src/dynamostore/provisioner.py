from __future__ import annotations

import logging
import time
from typing import Callable, Optional

from botocore.exceptions import ClientError

from .backend import DynamoDBClient, is_not_found
from .errors import CreateTimedOutError, DeleteInProgressError, UnrecognizedTableStatusError
from .models import (
    DEFAULT_TABLE_NAME,
    READY_STATUSES,
    STATUS_CREATING,
    STATUS_DELETING,
    TOKEN_ATTR,
    TTL_ATTR,
)


logger = logging.getLogger(__name__)

POLL_INTERVAL_SECONDS = 1.0
MAX_POLL_ATTEMPTS = 60


class TableProvisioner:
    """
    Creates the session table if it doesn't already exist.

    - `ensure_table()` is idempotent and safe to call on every startup.
    - A fresh table is created on-demand (PAY_PER_REQUEST) with a single
      string hash key `token`, awaited until ACTIVE, then has TTL enabled on
      the `ttl` attribute.
    - An existing ACTIVE/UPDATING table is left untouched; its TTL setting
      is not re-checked.
    - Waiting is a fixed one-second poll bounded to 60 attempts. `sleep` is
      injectable so tests don't block on wall-clock time.
    """

    def __init__(
        self,
        client: DynamoDBClient,
        table_name: str = DEFAULT_TABLE_NAME,
        *,
        sleep: Callable[[float], None] = time.sleep,
        poll_interval: float = POLL_INTERVAL_SECONDS,
        max_attempts: int = MAX_POLL_ATTEMPTS,
    ) -> None:
        if max_attempts <= 0:
            raise ValueError("max_attempts must be > 0")
        self._client = client
        self._table = table_name
        self._sleep = sleep
        self._poll_interval = poll_interval
        self._max_attempts = max_attempts

    @property
    def table_name(self) -> str:
        return self._table

    def ensure_table(self) -> None:
        """Make sure the table exists and is usable.

        Raises:
        - DeleteInProgressError if the table is being deleted.
        - UnrecognizedTableStatusError for an unknown status on first describe.
        - CreateTimedOutError if a new table doesn't become ready in time.
        - botocore.exceptions.ClientError for any other DynamoDB failure.
        """
        if self._check_for_table():
            return
        self._create_table()
        self._wait_for_table()
        self._enable_ttl()

    # -------- Steps --------
    def _describe_status(self) -> Optional[str]:
        """Current TableStatus, or None if the table doesn't exist."""
        try:
            resp = self._client.describe_table(TableName=self._table)
        except ClientError as e:
            if is_not_found(e):
                return None
            raise
        return str(resp.get("Table", {}).get("TableStatus") or "")

    def _check_for_table(self) -> bool:
        status = self._describe_status()
        if status is None:
            return False
        if status == STATUS_CREATING:
            logger.info("Table %s is already being created; waiting", self._table)
            self._wait_for_table()
            return True
        if status == STATUS_DELETING:
            raise DeleteInProgressError(f"table deletion in progress: {self._table}")
        if status in READY_STATUSES:
            return True
        raise UnrecognizedTableStatusError(str(status))

    def _create_table(self) -> None:
        logger.info("Creating session table %s", self._table)
        self._client.create_table(
            TableName=self._table,
            BillingMode="PAY_PER_REQUEST",
            KeySchema=[{"AttributeName": TOKEN_ATTR, "KeyType": "HASH"}],
            AttributeDefinitions=[{"AttributeName": TOKEN_ATTR, "AttributeType": "S"}],
        )

    def _wait_for_table(self) -> None:
        for attempt in range(1, self._max_attempts + 1):
            self._sleep(self._poll_interval)
            status = self._describe_status()
            if status is None:
                # Provisioning API is eventually consistent; don't fail on it
                logger.warning("Table %s not found while waiting for creation", self._table)
                return
            logger.debug("Table %s status %s (attempt %d)", self._table, status, attempt)
            if status == STATUS_DELETING:
                raise DeleteInProgressError(f"table deletion in progress: {self._table}")
            if status in READY_STATUSES:
                return
            # CREATING or anything transitional: keep polling
        raise CreateTimedOutError(f"timed out waiting for table creation: {self._table}")

    def _enable_ttl(self) -> None:
        self._client.update_time_to_live(
            TableName=self._table,
            TimeToLiveSpecification={"AttributeName": TTL_ATTR, "Enabled": True},
        )
        logger.info("Enabled TTL on %s.%s", self._table, TTL_ATTR)


__all__ = ["TableProvisioner", "POLL_INTERVAL_SECONDS", "MAX_POLL_ATTEMPTS"]
