"""boto3 client construction with bounded timeouts."""

from typing import TYPE_CHECKING, Any, NamedTuple

import boto3
from botocore.config import Config

from dynamo_cdc.config import CdcConfig

if TYPE_CHECKING:
    from mypy_boto3_events import EventBridgeClient
    from mypy_boto3_s3 import S3Client
else:
    EventBridgeClient = Any  # type: ignore[misc,assignment]
    S3Client = Any  # type: ignore[misc,assignment]


class CdcClients(NamedTuple):
    s3: S3Client
    events: EventBridgeClient


def client_config(config: CdcConfig, **overrides: Any) -> Config:
    """botocore Config so no call can block past the configured timeout."""
    return Config(
        connect_timeout=config.io_timeout_seconds,
        read_timeout=config.io_timeout_seconds,
        retries={"max_attempts": config.max_attempts, "mode": "standard"},
        **overrides,
    )


def create_clients(config: CdcConfig) -> CdcClients:
    # SigV4 presigned URLs honour ExpiresIn up to 7 days
    s3 = boto3.client(
        "s3",
        region_name=config.region,
        config=client_config(config, signature_version="s3v4"),
    )
    events = boto3.client(
        "events", region_name=config.region, config=client_config(config)
    )
    return CdcClients(s3=s3, events=events)


__all__ = ["CdcClients", "client_config", "create_clients"]
