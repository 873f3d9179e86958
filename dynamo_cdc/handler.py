"""
DynamoDB Stream Lambda handler for item change events.

Turns every INSERT/MODIFY/REMOVE record into a ``dynamo.item.changed`` event
on EventBridge. The invocation always succeeds: per-record failures are
logged and counted, never raised, so the stream does not redeliver the batch.
A configuration error fails every record of the batch the same way.
"""

import time
from typing import Any, Mapping, Optional, Sequence

from dynamo_cdc.clients import CdcClients, create_clients
from dynamo_cdc.config import CdcConfig
from dynamo_cdc.exceptions import ConfigurationError
from dynamo_cdc.models import BatchResult, OutcomeStatus, RecordOutcome
from dynamo_cdc.processor import process_batch
from dynamo_cdc.stream_types import (
    CdcHandlerResponse,
    DynamoDBStreamEvent,
    LambdaContext,
)
from dynamo_cdc.utils.logging import get_operation_logger
from dynamo_cdc.utils.metrics import emf_metrics

logger = get_operation_logger(__name__)

# Reused across warm invocations, keyed by the settings baked into the clients
_clients: dict[tuple[Optional[str], int, int], CdcClients] = {}


def get_clients(config: CdcConfig) -> CdcClients:
    key = (config.region, config.io_timeout_seconds, config.max_attempts)
    if key not in _clients:
        _clients[key] = create_clients(config)
    return _clients[key]


def reset_clients() -> None:
    """Drop cached clients (used by tests)."""
    _clients.clear()


def _failed_batch(
    records: Sequence[Mapping[str, Any]], exc: Exception
) -> BatchResult:
    reason = f"{type(exc).__name__}: {exc}"
    return BatchResult(
        outcomes=tuple(
            RecordOutcome(
                event_id=(
                    raw.get("eventID") if isinstance(raw, Mapping) else None
                ),
                status=OutcomeStatus.FAILED,
                reason=reason,
            )
            for raw in records
        )
    )


def _log_batch_metrics(
    result: BatchResult, duration_ms: int, correlation_id: str
) -> None:
    emf_metrics.log_metrics(
        {
            "StreamRecordsReceived": result.total,
            "EventsPublished": result.published,
            "RecordsUnchanged": result.unchanged,
            "RecordsSkipped": result.skipped,
            "RecordsFiltered": result.filtered,
            "RecordsFailed": result.failed,
            "PayloadsOffloaded": result.offloaded,
            "ProcessingDurationMs": duration_ms,
        },
        properties={"correlation_id": correlation_id},
    )


def lambda_handler(
    event: DynamoDBStreamEvent, context: Optional[LambdaContext] = None
) -> CdcHandlerResponse:
    """
    Process a DynamoDB stream batch.

    Args:
        event: DynamoDB stream event
        context: Lambda context

    Returns:
        Response with processing statistics; statusCode is always 200
    """
    start_time = time.time()
    records = event.get("Records") or []

    try:
        config = CdcConfig.from_env()
    except ConfigurationError as exc:
        error_type = type(exc).__name__
        logger.exception(
            "Invalid CDC configuration; failing every record in the batch",
            error_type=error_type,
            error=str(exc),
            record_count=len(records),
        )
        emf_metrics.log_metrics(
            {"ConfigurationError": 1},
            properties={
                "error_type": error_type,
                "error": str(exc),
                "correlation_id": logger.correlation_id,
            },
        )
        result = _failed_batch(records, exc)
        duration_ms = int((time.time() - start_time) * 1000)
        _log_batch_metrics(result, duration_ms, logger.correlation_id)
        return result.to_dict()  # type: ignore[return-value]

    if not records:
        logger.warning(
            "Received event without Records",
            event_keys=sorted(event.keys()),
        )
        return BatchResult().to_dict()  # type: ignore[return-value]

    remaining_ms = (
        context.get_remaining_time_in_millis() if context is not None else None
    )
    config = config.bounded_by_deadline(remaining_ms)
    logger.info(
        "Processing DynamoDB stream batch",
        record_count=len(records),
        event_source=config.event_source,
        event_bus_name=config.event_bus_name,
        remaining_time_ms=remaining_ms,
        io_timeout_seconds=config.io_timeout_seconds,
    )

    clients = get_clients(config)
    with logger.operation_timer(
        "process_stream_batch", record_count=len(records)
    ):
        result = process_batch(
            records, config, clients.s3, clients.events, emf_metrics
        )
    duration_ms = int((time.time() - start_time) * 1000)

    _log_batch_metrics(result, duration_ms, logger.correlation_id)
    logger.info(
        "Stream batch completed",
        total_records=result.total,
        published=result.published,
        unchanged=result.unchanged,
        skipped=result.skipped,
        filtered=result.filtered,
        failed=result.failed,
        offloaded=result.offloaded,
        duration_ms=duration_ms,
    )

    return result.to_dict()  # type: ignore[return-value]


__all__ = ["get_clients", "lambda_handler", "reset_clients"]
