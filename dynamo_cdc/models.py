"""
Data models for DynamoDB change-data-capture processing.
"""

from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Optional

# A normalized item image: plain nested dict/list/scalar values.
Image = dict[str, Any]

DETAIL_TYPE = "dynamo.item.changed"


class Operation(str, Enum):
    """DynamoDB stream event names."""

    INSERT = "INSERT"
    MODIFY = "MODIFY"
    REMOVE = "REMOVE"


class OutcomeStatus(str, Enum):
    """What happened to a single stream record."""

    PUBLISHED = "published"
    UNCHANGED = "unchanged"
    SKIPPED = "skipped"
    FILTERED = "filtered"
    FAILED = "failed"


@dataclass(frozen=True)
class ItemKeys:
    """Partition and sort key of the changed item."""

    pk: str
    sk: str


@dataclass(frozen=True)
class StreamRecord:  # pylint: disable=too-many-instance-attributes
    """Stream record with images normalized to plain Python values."""

    operation: Operation
    event_id: str
    keys: ItemKeys
    old_image: Optional[Image]
    new_image: Optional[Image]
    size_bytes: Optional[int] = None
    aws_region: Optional[str] = None


@dataclass(frozen=True)
class DiffResult:
    """Changed attribute paths plus the pruned before/after trees."""

    attributes_changed: list[str] = field(default_factory=list)
    before: Image = field(default_factory=dict)
    after: Image = field(default_factory=dict)

    @property
    def has_changes(self) -> bool:
        return bool(self.attributes_changed)


@dataclass(frozen=True)
class PayloadRoute:
    """Either inline images or a presigned URL to the offloaded images."""

    new_image: Optional[Image] = None
    old_image: Optional[Image] = None
    images_url: Optional[str] = None
    object_key: Optional[str] = None

    @property
    def is_offloaded(self) -> bool:
        return self.images_url is not None


@dataclass(frozen=True)
class ItemChangedEvent:  # pylint: disable=too-many-instance-attributes
    """Canonical change event published to EventBridge."""

    operation: Operation
    pk: str
    sk: str
    attributes_changed: list[str]
    before: Image
    after: Image
    new_image: Optional[Image] = None
    old_image: Optional[Image] = None
    images_url: Optional[str] = None

    def to_dict(self) -> dict[str, object]:
        """Convert to the published detail shape, omitting absent fields."""
        detail: dict[str, object] = {
            "after": self.after,
            "attributesChanged": list(self.attributes_changed),
            "before": self.before,
            "operation": self.operation.value,
            "pk": self.pk,
            "sk": self.sk,
        }
        if self.images_url is not None:
            detail["imagesUrl"] = self.images_url
        if self.new_image is not None:
            detail["newImage"] = self.new_image
        if self.old_image is not None:
            detail["oldImage"] = self.old_image
        return detail


@dataclass(frozen=True)
class RecordOutcome:
    """Result of running the pipeline for one stream record."""

    event_id: Optional[str]
    status: OutcomeStatus
    reason: Optional[str] = None
    offloaded: bool = False
    bus_event_id: Optional[str] = None


@dataclass(frozen=True)
class BatchResult:
    """Aggregated outcomes for one invocation's batch of records."""

    outcomes: tuple[RecordOutcome, ...] = ()

    def _count(self, status: OutcomeStatus) -> int:
        return sum(1 for outcome in self.outcomes if outcome.status == status)

    @property
    def total(self) -> int:
        return len(self.outcomes)

    @property
    def published(self) -> int:
        return self._count(OutcomeStatus.PUBLISHED)

    @property
    def unchanged(self) -> int:
        return self._count(OutcomeStatus.UNCHANGED)

    @property
    def skipped(self) -> int:
        return self._count(OutcomeStatus.SKIPPED)

    @property
    def filtered(self) -> int:
        return self._count(OutcomeStatus.FILTERED)

    @property
    def failed(self) -> int:
        return self._count(OutcomeStatus.FAILED)

    @property
    def offloaded(self) -> int:
        return sum(1 for outcome in self.outcomes if outcome.offloaded)

    def to_dict(self) -> dict[str, int]:
        """Convert to AWS Lambda-compatible dictionary."""
        return {
            "statusCode": 200,
            "processed_records": self.total,
            "published_events": self.published,
            "skipped_records": self.skipped
            + self.unchanged
            + self.filtered,
            "failed_records": self.failed,
        }


__all__ = [
    "DETAIL_TYPE",
    "BatchResult",
    "DiffResult",
    "Image",
    "ItemChangedEvent",
    "ItemKeys",
    "Operation",
    "OutcomeStatus",
    "PayloadRoute",
    "RecordOutcome",
    "StreamRecord",
]
