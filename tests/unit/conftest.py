"""Shared fixtures for dynamo_cdc unit tests."""

from typing import Any, Mapping, Optional
from unittest.mock import Mock

import pytest
from boto3.dynamodb.types import TypeSerializer

from dynamo_cdc.config import CdcConfig

_serializer = TypeSerializer()


class MockMetrics:
    """Mock metrics recorder for testing."""

    def __init__(self) -> None:
        self.counts: list[tuple[str, int, Optional[Mapping[str, str]]]] = []

    def count(
        self,
        name: str,
        value: int,
        dimensions: Optional[Mapping[str, str]] = None,
    ) -> None:
        self.counts.append((name, value, dimensions))

    def names(self) -> list[str]:
        return [name for name, _, _ in self.counts]


def to_typed(item: Mapping[str, Any]) -> dict[str, Any]:
    """Serialize a plain item into DynamoDB JSON as the stream delivers it."""
    return {key: _serializer.serialize(value) for key, value in item.items()}


def make_stream_record(
    event_name: str = "MODIFY",
    event_id: str = "event-1",
    new_image: Optional[Mapping[str, Any]] = None,
    old_image: Optional[Mapping[str, Any]] = None,
    pk: str = "ORDER#1",
    sk: str = "DETAILS",
    size_bytes: Optional[int] = 1000,
    include_keys: bool = True,
) -> dict[str, Any]:
    """Build a raw DynamoDB stream record."""
    dynamodb: dict[str, Any] = {"StreamViewType": "NEW_AND_OLD_IMAGES"}
    if include_keys:
        dynamodb["Keys"] = to_typed({"pk": pk, "sk": sk})
    if new_image is not None:
        dynamodb["NewImage"] = to_typed({"pk": pk, "sk": sk, **new_image})
    if old_image is not None:
        dynamodb["OldImage"] = to_typed({"pk": pk, "sk": sk, **old_image})
    if size_bytes is not None:
        dynamodb["SizeBytes"] = size_bytes
    return {
        "eventID": event_id,
        "eventName": event_name,
        "eventVersion": "1.1",
        "eventSource": "aws:dynamodb",
        "awsRegion": "us-east-1",
        "dynamodb": dynamodb,
    }


@pytest.fixture
def mock_metrics() -> MockMetrics:
    """Provide a MockMetrics instance for testing."""
    return MockMetrics()


@pytest.fixture
def config() -> CdcConfig:
    return CdcConfig(
        event_source="test.orders",
        event_bus_name="test-bus",
        bucket_name="cdc-bucket",
        region="us-east-1",
    )


@pytest.fixture
def mock_s3() -> Mock:
    s3 = Mock()
    s3.put_object.return_value = {"ETag": '"etag"'}
    s3.generate_presigned_url.side_effect = (
        lambda ClientMethod, Params, ExpiresIn: (
            f"https://{Params['Bucket']}.s3.amazonaws.com/{Params['Key']}"
            f"?X-Amz-Expires={ExpiresIn}"
        )
    )
    return s3


@pytest.fixture
def mock_events() -> Mock:
    events = Mock()
    events.put_events.return_value = {
        "FailedEntryCount": 0,
        "Entries": [{"EventId": "bus-event-1"}],
    }
    return events


__all__ = ["MockMetrics", "make_stream_record", "mock_metrics", "to_typed"]
