from __future__ import annotations

import logging
from datetime import UTC, datetime
from typing import Callable, Optional, Tuple

from .backend import DynamoDBClient
from .codec import RecordCodec, item_key
from .config import StoreConfig, build_client
from .models import DEFAULT_TABLE_NAME, SessionRecord
from .provisioner import TableProvisioner


logger = logging.getLogger(__name__)


def _utcnow() -> datetime:
    return datetime.now(UTC)


class SessionStore:
    """
    DynamoDB-backed session store: opaque tokens mapped to byte payloads.

    Usage
    - `find(token)` returns `(payload, True)` for a live session and
      `(None, False)` when the token is unknown or expired.
    - `commit(token, payload, expiry)` upserts; the last write wins.
    - `delete(token)` removes the session; unknown tokens are not an error.

    Expiry is enforced on read against `clock()`, because DynamoDB's TTL sweep
    can lag by hours. Reads are strongly consistent.

    The instance only holds the client, table name, codec and clock, none of
    which change after construction, so it can be shared across threads.
    """

    def __init__(
        self,
        client: Optional[DynamoDBClient] = None,
        *,
        table_name: str = DEFAULT_TABLE_NAME,
        clock: Optional[Callable[[], datetime]] = None,
        fernet_key: Optional[str | bytes] = None,
        region_name: Optional[str] = None,
        endpoint_url: Optional[str] = None,
        timeout: Optional[float] = None,
    ) -> None:
        if client is None:
            client = build_client(
                StoreConfig(
                    table_name=table_name,
                    region_name=region_name,
                    endpoint_url=endpoint_url,
                    timeout=timeout,
                )
            )
        self._client = client
        self._table = table_name
        self._clock = clock or _utcnow
        self._codec = RecordCodec(fernet_key=fernet_key)

    # -------- Construction helpers --------
    @classmethod
    def from_config(
        cls,
        config: StoreConfig,
        *,
        client: Optional[DynamoDBClient] = None,
        clock: Optional[Callable[[], datetime]] = None,
    ) -> "SessionStore":
        return cls(
            client or build_client(config),
            table_name=config.table_name,
            clock=clock,
            fernet_key=config.fernet_key,
        )

    @classmethod
    def from_env(cls) -> "SessionStore":
        return cls.from_config(StoreConfig.from_env())

    @property
    def table_name(self) -> str:
        return self._table

    # -------- Core operations --------
    def find(self, token: str) -> Tuple[Optional[bytes], bool]:
        """Look up the payload for `token`.

        Returns: (payload, exists)
        - Unknown or expired token: (None, False).
        Raises:
        - DecodeError if the stored item is malformed.
        - botocore.exceptions.ClientError for DynamoDB failures.
        """
        resp = self._client.get_item(
            TableName=self._table,
            Key=item_key(token),
            ConsistentRead=True,
        )
        record = self._codec.decode(resp)
        if record is None:
            return (None, False)
        if record.is_expired(self._clock()):
            logger.debug("Session in %s expired at %s", self._table, record.expiry.isoformat())
            return (None, False)
        return (record.payload, True)

    def commit(self, token: str, payload: bytes, expiry: datetime) -> None:
        """Store `payload` under `token` until `expiry`, replacing any prior record.

        Empty tokens are passed through; DynamoDB rejects them as a
        validation error.
        """
        record = SessionRecord(token=token, payload=payload, expiry=expiry)
        self._client.put_item(TableName=self._table, Item=self._codec.encode(record))

    def delete(self, token: str) -> None:
        """Remove the session for `token`. An empty token is ignored."""
        if token == "":
            return
        self._client.delete_item(TableName=self._table, Key=item_key(token))

    # -------- Provisioning --------
    def create_table(self, *, sleep: Optional[Callable[[float], None]] = None) -> None:
        """Create the session table if it doesn't already exist.

        Convenience for development and tests; production tables are better
        managed by infrastructure tooling.
        """
        kwargs = {"sleep": sleep} if sleep is not None else {}
        TableProvisioner(self._client, self._table, **kwargs).ensure_table()


__all__ = ["SessionStore"]
