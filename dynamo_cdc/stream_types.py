"""
TypedDict definitions for DynamoDB stream processing.

Provides type-safe structures for DynamoDB stream events, records,
and Lambda responses to reduce usage of `Any` throughout the codebase.
"""

from typing import Literal, Mapping, Protocol, TypedDict

# =============================================================================
# DynamoDB Stream Record Types
# =============================================================================

# A typed DynamoDB item as it appears in NewImage / OldImage / Keys, e.g.
# {"pk": {"S": "ORDER#1"}, "total": {"N": "12.5"}}
DynamoDBItem = Mapping[str, Mapping[str, object]]


class StreamRecordDynamoDB(TypedDict, total=False):
    """The 'dynamodb' portion of a DynamoDB stream record."""

    Keys: DynamoDBItem
    NewImage: DynamoDBItem
    OldImage: DynamoDBItem
    SequenceNumber: str
    SizeBytes: int
    StreamViewType: Literal[
        "KEYS_ONLY", "NEW_IMAGE", "OLD_IMAGE", "NEW_AND_OLD_IMAGES"
    ]
    ApproximateCreationDateTime: int


class DynamoDBStreamRecord(TypedDict, total=False):
    """A single record from a DynamoDB stream event."""

    eventID: str
    eventName: Literal["INSERT", "MODIFY", "REMOVE"]
    eventVersion: str
    eventSource: Literal["aws:dynamodb"]
    awsRegion: str
    dynamodb: StreamRecordDynamoDB
    eventSourceARN: str


class DynamoDBStreamEvent(TypedDict):
    """DynamoDB stream event passed to Lambda handlers."""

    Records: list[DynamoDBStreamRecord]


# =============================================================================
# Lambda Response Types
# =============================================================================


class CdcHandlerResponse(TypedDict):
    """Response returned by the CDC Lambda handler."""

    statusCode: int
    processed_records: int
    published_events: int
    skipped_records: int
    failed_records: int


# =============================================================================
# Lambda Context Protocol (for type hints)
# =============================================================================


class LambdaContext(Protocol):  # pylint: disable=too-few-public-methods
    """
    Protocol for AWS Lambda context object.

    Note: This is a simplified version. The actual context has more
    attributes, but these are the commonly used ones.
    """

    function_name: str
    aws_request_id: str

    def get_remaining_time_in_millis(self) -> int:
        """Get remaining execution time in milliseconds."""


# =============================================================================
# Metrics Protocol
# =============================================================================


class MetricsRecorder(Protocol):  # pylint: disable=too-few-public-methods
    """Minimal protocol for metrics clients."""

    def count(
        self,
        name: str,
        value: int,
        dimensions: Mapping[str, str] | None = None,
    ) -> object:
        """Record a count metric."""
        return None


__all__ = [
    "CdcHandlerResponse",
    "DynamoDBItem",
    "DynamoDBStreamEvent",
    "DynamoDBStreamRecord",
    "LambdaContext",
    "MetricsRecorder",
    "StreamRecordDynamoDB",
]
