from __future__ import annotations

from datetime import UTC, datetime, timedelta
from decimal import Decimal

import pytest
from cryptography.fernet import Fernet

from dynamostore.codec import RecordCodec, item_key, to_epoch_seconds
from dynamostore.errors import DecodeError
from dynamostore.models import SessionRecord


EXPIRY = datetime(2025, 1, 1, 12, 0, 0, tzinfo=UTC)


def _item(**overrides):
    item = {
        "token": {"S": "abc"},
        "data": {"B": b"\x01\x02\x03"},
        "ttl": {"N": str(int(EXPIRY.timestamp()))},
    }
    for name, value in overrides.items():
        if value is None:
            item.pop(name, None)
        else:
            item[name] = value
    return {"Item": item}


def test_encode_wire_shape():
    codec = RecordCodec()
    record = SessionRecord(token="abc", payload=b"\x01\x02\x03", expiry=EXPIRY)

    item = codec.encode(record)

    assert item == {
        "token": {"S": "abc"},
        "data": {"B": b"\x01\x02\x03"},
        "ttl": {"N": str(int(EXPIRY.timestamp()))},
    }


def test_sub_second_expiry_roundtrips_exactly():
    codec = RecordCodec()
    expiry = EXPIRY + timedelta(milliseconds=900, microseconds=123)

    item = codec.encode(SessionRecord(token="abc", payload=b"", expiry=expiry))

    assert Decimal(item["ttl"]["N"]) == Decimal("1735732800.900123")
    decoded = codec.decode({"Item": item})
    assert decoded is not None
    assert decoded.expiry == expiry


def test_expiry_before_epoch_roundtrips_exactly():
    codec = RecordCodec()
    expiry = datetime(1969, 12, 31, 23, 59, 59, 500000, tzinfo=UTC)

    item = codec.encode(SessionRecord(token="abc", payload=b"", expiry=expiry))

    assert Decimal(item["ttl"]["N"]) == Decimal("-0.5")
    assert codec.decode({"Item": item}).expiry == expiry


def test_naive_expiry_is_treated_as_utc():
    naive = EXPIRY.replace(tzinfo=None)
    record = SessionRecord(token="abc", payload=b"x", expiry=naive)

    assert record.expiry == EXPIRY
    assert to_epoch_seconds(record.expiry) == int(EXPIRY.timestamp())


def test_decode_roundtrip_preserves_fields():
    codec = RecordCodec()
    src = SessionRecord(token="tok-1", payload=bytes(range(256)), expiry=EXPIRY)

    dst = codec.decode({"Item": codec.encode(src)})

    assert dst == src
    assert dst.expiry.tzinfo is not None


@pytest.mark.parametrize("response", [None, {}, {"Item": {}}, {"ResponseMetadata": {}}])
def test_decode_absent_item_returns_none(response):
    assert RecordCodec().decode(response) is None


def test_decode_accepts_fractional_ttl():
    record = RecordCodec().decode(_item(ttl={"N": "1735732800.5"}))

    assert record is not None
    assert record.expiry == EXPIRY + timedelta(milliseconds=500)


@pytest.mark.parametrize(
    "overrides",
    [
        {"token": None},
        {"token": {"S": ""}},
        {"token": {"N": "12"}},
        {"data": None},
        {"data": {"S": "not-bytes"}},
        {"ttl": None},
        {"ttl": {"S": "2025-01-01"}},
        {"ttl": {"N": "1e30"}},
        {"ttl": {"N": "1e400"}},
        {"ttl": {"N": "1" * 46}},
        {"data": {"X": "unsupported"}},
    ],
)
def test_decode_malformed_item_raises(overrides):
    with pytest.raises(DecodeError):
        RecordCodec().decode(_item(**overrides))


def test_encrypted_payload_roundtrip():
    key = Fernet.generate_key()
    codec = RecordCodec(fernet_key=key)
    src = SessionRecord(token="abc", payload=b"secret", expiry=EXPIRY)

    item = codec.encode(src)
    assert item["data"]["B"] != b"secret"

    assert codec.decode({"Item": item}) == src


def test_decrypt_with_wrong_key_raises_decode_error():
    item = RecordCodec(fernet_key=Fernet.generate_key()).encode(
        SessionRecord(token="abc", payload=b"secret", expiry=EXPIRY)
    )

    with pytest.raises(DecodeError):
        RecordCodec(fernet_key=Fernet.generate_key().decode("ascii")).decode({"Item": item})


def test_item_key():
    assert item_key("abc") == {"token": {"S": "abc"}}
