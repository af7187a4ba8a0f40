from __future__ import annotations

from datetime import UTC, datetime, timedelta
from decimal import Decimal
from typing import Any, Dict, Mapping, Optional

from boto3.dynamodb.types import Binary, TypeDeserializer, TypeSerializer
from cryptography.fernet import Fernet, InvalidToken
from pydantic import ValidationError

from .errors import DecodeError
from .models import DATA_ATTR, TOKEN_ATTR, TTL_ATTR, SessionRecord, as_utc


_serializer = TypeSerializer()
_deserializer = TypeDeserializer()


def _to_fernet(key: str | bytes) -> Fernet:
    """Construct a Fernet instance from a urlsafe base64-encoded 32-byte key."""
    if isinstance(key, str):
        key_bytes = key.encode("utf-8")
    else:
        key_bytes = key
    return Fernet(key_bytes)


_EPOCH = datetime(1970, 1, 1, tzinfo=UTC)
_MICROSECOND = timedelta(microseconds=1)


def to_epoch_seconds(dt: datetime) -> Decimal:
    """Unix epoch seconds for `dt`, exact to the microsecond."""
    micros = (as_utc(dt) - _EPOCH) // _MICROSECOND
    whole, frac = divmod(micros, 1_000_000)
    if not frac:
        return Decimal(whole)
    return Decimal(whole) + Decimal(frac).scaleb(-6)


def from_epoch_seconds(value: Decimal) -> datetime:
    """Inverse of `to_epoch_seconds`; rounds anything finer than a microsecond."""
    micros = int((value * 1_000_000).to_integral_value())
    return _EPOCH + timedelta(microseconds=micros)


def item_key(token: str) -> Dict[str, Dict[str, str]]:
    """Typed primary key for `token`."""
    return {TOKEN_ATTR: {"S": token}}


class RecordCodec:
    """
    Converts `SessionRecord`s to and from DynamoDB typed items.

    Wire shape
    - token: S, the partition key
    - data:  B, the payload (Fernet ciphertext when a key is configured)
    - ttl:   N, expiry as Unix epoch seconds so DynamoDB TTL can sweep it

    The expiry is written as a decimal number of seconds with microsecond
    precision, the resolution of `datetime`, so it round-trips exactly.
    `decode` returns it as an aware UTC datetime.
    """

    def __init__(self, *, fernet_key: Optional[str | bytes] = None) -> None:
        self._fernet = _to_fernet(fernet_key) if fernet_key else None

    def encode(self, record: SessionRecord) -> Dict[str, Any]:
        payload = bytes(record.payload)
        if self._fernet is not None:
            payload = self._fernet.encrypt(payload)
        plain = {
            TOKEN_ATTR: record.token,
            DATA_ATTR: payload,
            TTL_ATTR: to_epoch_seconds(record.expiry),
        }
        return {name: _serializer.serialize(value) for name, value in plain.items()}

    def decode(self, response: Optional[Mapping[str, Any]]) -> Optional[SessionRecord]:
        """Decode a GetItem response; returns None when it carries no item.

        Raises:
        - DecodeError if the item is present but malformed or undecryptable.
        """
        item = (response or {}).get("Item")
        if not item:
            return None

        try:
            raw = {name: _deserializer.deserialize(value) for name, value in item.items()}
        except (TypeError, ValueError, KeyError, IndexError, ArithmeticError) as ex:
            raise DecodeError(f"Failed to deserialize session item: {ex}") from ex

        token = raw.get(TOKEN_ATTR)
        if not isinstance(token, str) or not token:
            raise DecodeError("Session item has no string token")

        data = raw.get(DATA_ATTR)
        if isinstance(data, Binary):
            data = data.value
        if not isinstance(data, (bytes, bytearray)):
            raise DecodeError(f"Session item {token!r} has no binary data attribute")

        ttl = raw.get(TTL_ATTR)
        if not isinstance(ttl, Decimal) or not ttl.is_finite():
            raise DecodeError(f"Session item {token!r} has no numeric ttl attribute")
        try:
            expiry = from_epoch_seconds(ttl)
        except (ArithmeticError, ValueError) as ex:
            raise DecodeError(f"Session item {token!r} has an out-of-range ttl") from ex

        payload = bytes(data)
        if self._fernet is not None:
            try:
                payload = self._fernet.decrypt(payload)
            except InvalidToken as ex:
                raise DecodeError(f"Failed to decrypt session {token!r}: invalid Fernet token") from ex

        try:
            return SessionRecord(token=token, payload=payload, expiry=expiry)
        except ValidationError as ve:
            raise DecodeError(f"Invalid session item {token!r}: {ve}") from ve


__all__ = ["RecordCodec", "item_key", "to_epoch_seconds", "from_epoch_seconds"]
