from __future__ import annotations

import os
from typing import Optional

import boto3
from botocore.config import Config
from cryptography.fernet import Fernet
from pydantic import BaseModel, Field, ValidationError, field_validator

from .backend import DynamoDBClient
from .models import DEFAULT_TABLE_NAME


# Environment variable names
ENV_TABLE = "DYNAMOSTORE_TABLE"
ENV_ENDPOINT = "DYNAMOSTORE_ENDPOINT"
ENV_REGION = "DYNAMOSTORE_REGION"
ENV_TIMEOUT = "DYNAMOSTORE_TIMEOUT"
ENV_FERNET_KEY = "DYNAMOSTORE_FERNET_KEY"

# Standard AWS fallback
FALLBACK_ENV_REGION = "AWS_REGION"


def _getenv(name: str, default: Optional[str] = None) -> Optional[str]:
    val = os.environ.get(name)
    return val if val not in (None, "") else default


class StoreConfig(BaseModel):
    """
    Connection and table settings for a `SessionStore`.

    Fields
    - table_name: DynamoDB table holding sessions.
    - endpoint_url: endpoint override, e.g. "http://localhost:8000" for DynamoDB Local.
    - region_name: AWS region; None lets botocore resolve it.
    - timeout: connect/read timeout in seconds applied to every request.
    - fernet_key: optional key to encrypt payloads at rest.
    """

    table_name: str = Field(default=DEFAULT_TABLE_NAME, min_length=1)
    endpoint_url: Optional[str] = None
    region_name: Optional[str] = None
    timeout: Optional[float] = Field(default=None, gt=0)
    fernet_key: Optional[str] = None

    @field_validator("fernet_key")
    @classmethod
    def _check_fernet_key(cls, v: Optional[str]) -> Optional[str]:
        if v is not None:
            # Raises ValueError unless v is a urlsafe base64-encoded 32-byte key
            Fernet(v.encode("utf-8"))
        return v

    @classmethod
    def from_env(cls) -> "StoreConfig":
        raw = {
            "table_name": _getenv(ENV_TABLE, DEFAULT_TABLE_NAME),
            "endpoint_url": _getenv(ENV_ENDPOINT),
            "region_name": _getenv(ENV_REGION, _getenv(FALLBACK_ENV_REGION)),
            "timeout": _getenv(ENV_TIMEOUT),
            "fernet_key": _getenv(ENV_FERNET_KEY),
        }
        try:
            return cls.model_validate(raw)
        except ValidationError as ve:
            # Field and message only; input values may be secrets
            bad = "; ".join(f"{err['loc'][0]}: {err['msg']}" for err in ve.errors())
            raise RuntimeError(f"Invalid session store configuration: {bad}") from ve


def build_client(config: StoreConfig) -> DynamoDBClient:
    """Create a low-level boto3 DynamoDB client for `config`."""
    botocore_config = None
    if config.timeout is not None:
        botocore_config = Config(connect_timeout=config.timeout, read_timeout=config.timeout)
    return boto3.client(
        "dynamodb",
        region_name=config.region_name,
        endpoint_url=config.endpoint_url,
        config=botocore_config,
    )


__all__ = [
    "ENV_TABLE",
    "ENV_ENDPOINT",
    "ENV_REGION",
    "ENV_TIMEOUT",
    "ENV_FERNET_KEY",
    "StoreConfig",
    "build_client",
]
