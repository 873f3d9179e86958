"""
Batch coordination for DynamoDB stream records.

Each record runs through parse -> diff -> route -> build -> publish on its
own. A failing record is logged and reported as a FAILED outcome; the batch
itself never raises, because failing the whole batch would make the stream
redeliver every record in it.
"""

# pylint: disable=broad-exception-caught

from __future__ import annotations

import logging
from concurrent.futures import ThreadPoolExecutor
from typing import TYPE_CHECKING, Any, Iterable, Mapping, Optional

from dynamo_cdc.change_detection import diff_images
from dynamo_cdc.config import CdcConfig
from dynamo_cdc.event_builder import build_item_changed_event
from dynamo_cdc.eventbridge_publisher import publish_event
from dynamo_cdc.exceptions import CdcError, MalformedRecordError
from dynamo_cdc.filters import matches_pk_filters
from dynamo_cdc.models import (
    BatchResult,
    Operation,
    OutcomeStatus,
    RecordOutcome,
)
from dynamo_cdc.offload import route_payload
from dynamo_cdc.parsing import parse_stream_record
from dynamo_cdc.stream_types import MetricsRecorder

if TYPE_CHECKING:
    from mypy_boto3_events import EventBridgeClient
    from mypy_boto3_s3 import S3Client
else:
    EventBridgeClient = Any  # type: ignore[misc,assignment]
    S3Client = Any  # type: ignore[misc,assignment]

logger = logging.getLogger(__name__)

RawRecord = Mapping[str, Any]


def process_record(
    raw: RawRecord,
    config: CdcConfig,
    s3_client: S3Client,
    events_client: EventBridgeClient,
    metrics: Optional[MetricsRecorder] = None,
) -> RecordOutcome:
    """
    Run the full pipeline for one stream record.

    Raises:
        CdcError: MalformedRecordError, DiffError, OffloadError or
            PublishError; callers isolate these per record
    """
    if not isinstance(raw, Mapping):
        raise MalformedRecordError(
            f"Stream record must be a mapping, got {type(raw).__name__}"
        )

    record = parse_stream_record(raw, config.pk_attribute, config.sk_attribute)
    if record is None:
        return RecordOutcome(
            event_id=raw.get("eventID"),
            status=OutcomeStatus.SKIPPED,
            reason="missing eventName, eventID or dynamodb",
        )

    if not matches_pk_filters(record.keys.pk, config.pk_filters):
        return RecordOutcome(
            event_id=record.event_id,
            status=OutcomeStatus.FILTERED,
            reason=f"pk {record.keys.pk!r} does not match filters",
        )

    diff = diff_images(record.new_image, record.old_image)
    if record.operation == Operation.MODIFY and not diff.has_changes:
        logger.debug(
            "Suppressing MODIFY without attribute changes",
            extra={"event_id": record.event_id, "pk": record.keys.pk},
        )
        if metrics:
            metrics.count("UnchangedModifySuppressed", 1)
        return RecordOutcome(
            event_id=record.event_id,
            status=OutcomeStatus.UNCHANGED,
            reason="no attributes changed",
        )

    route = route_payload(record, config, s3_client)
    event = build_item_changed_event(record, diff, route)
    bus_event_id = publish_event(events_client, event, config, metrics)

    return RecordOutcome(
        event_id=record.event_id,
        status=OutcomeStatus.PUBLISHED,
        offloaded=route.is_offloaded,
        bus_event_id=bus_event_id,
    )


def _event_id(raw: object) -> Optional[str]:
    if isinstance(raw, Mapping):
        return raw.get("eventID")
    return None


def _record_context(raw: object) -> dict[str, object]:
    if not isinstance(raw, Mapping):
        return {"record_type": type(raw).__name__}
    dynamodb = raw.get("dynamodb")
    keys = dynamodb.get("Keys") if isinstance(dynamodb, Mapping) else None
    return {
        "event_id": raw.get("eventID"),
        "event_name": raw.get("eventName"),
        "keys": keys,
        "size_bytes": (
            dynamodb.get("SizeBytes") if isinstance(dynamodb, Mapping) else None
        ),
    }


def process_record_isolated(
    raw: RawRecord,
    config: CdcConfig,
    s3_client: S3Client,
    events_client: EventBridgeClient,
    metrics: Optional[MetricsRecorder] = None,
) -> RecordOutcome:
    """Run ``process_record`` and turn any failure into a FAILED outcome."""
    try:
        return process_record(raw, config, s3_client, events_client, metrics)
    except CdcError as exc:
        error_type = type(exc).__name__
        logger.error(
            "Failed to process stream record",
            extra={
                **_record_context(raw),
                "error_type": error_type,
                "error": str(exc),
            },
        )
        if metrics:
            metrics.count("RecordProcessingFailed", 1, {"error_type": error_type})
        return RecordOutcome(
            event_id=_event_id(raw),
            status=OutcomeStatus.FAILED,
            reason=f"{error_type}: {exc}",
        )
    except Exception as exc:
        error_type = type(exc).__name__
        logger.exception(
            "Unexpected error processing stream record",
            extra={**_record_context(raw), "error_type": error_type},
        )
        if metrics:
            metrics.count("RecordProcessingFailed", 1, {"error_type": error_type})
        return RecordOutcome(
            event_id=_event_id(raw),
            status=OutcomeStatus.FAILED,
            reason=f"{error_type}: {exc}",
        )


def process_batch(
    records: Iterable[RawRecord],
    config: CdcConfig,
    s3_client: S3Client,
    events_client: EventBridgeClient,
    metrics: Optional[MetricsRecorder] = None,
) -> BatchResult:
    """
    Process a batch of stream records with per-record failure isolation.

    Outcomes are returned in input order. With ``config.max_workers > 1``
    records are processed on a bounded thread pool; clients are shared since
    boto3 clients are thread-safe.
    """
    records = list(records)

    if config.max_workers > 1 and len(records) > 1:
        with ThreadPoolExecutor(
            max_workers=min(config.max_workers, len(records))
        ) as executor:
            outcomes = list(
                executor.map(
                    lambda raw: process_record_isolated(
                        raw, config, s3_client, events_client, metrics
                    ),
                    records,
                )
            )
    else:
        outcomes = [
            process_record_isolated(
                raw, config, s3_client, events_client, metrics
            )
            for raw in records
        ]

    return BatchResult(outcomes=tuple(outcomes))


__all__ = ["process_batch", "process_record", "process_record_isolated"]
