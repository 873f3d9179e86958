"""
EventBridge publishing utilities for item change events.
"""

from __future__ import annotations

import json
import logging
from typing import TYPE_CHECKING, Any, Optional

from botocore.exceptions import BotoCoreError, ClientError

from dynamo_cdc.config import CdcConfig
from dynamo_cdc.exceptions import PublishError
from dynamo_cdc.models import DETAIL_TYPE, ItemChangedEvent
from dynamo_cdc.stream_types import MetricsRecorder

if TYPE_CHECKING:
    from mypy_boto3_events import EventBridgeClient
else:
    EventBridgeClient = Any  # type: ignore[misc,assignment]

logger = logging.getLogger(__name__)


def event_to_entry(
    event: ItemChangedEvent, config: CdcConfig
) -> dict[str, str]:
    """Build the single ``put_events`` entry for an event."""
    return {
        "Source": config.event_source,
        "DetailType": DETAIL_TYPE,
        "Detail": json.dumps(event.to_dict()),
        "EventBusName": config.event_bus_name,
    }


def publish_event(
    events_client: EventBridgeClient,
    event: ItemChangedEvent,
    config: CdcConfig,
    metrics: Optional[MetricsRecorder] = None,
) -> str:
    """
    Publish one change event. No retries; failures propagate.

    Returns:
        The EventBridge event id

    Raises:
        PublishError: If the call fails or the entry is rejected
    """
    entry = event_to_entry(event, config)

    try:
        response = events_client.put_events(Entries=[entry])  # type: ignore[list-item]
    except ClientError as exc:
        error = exc.response.get("Error", {})
        raise PublishError(
            f"put_events failed: {error.get('Message', str(exc))}",
            error_code=error.get("Code"),
        ) from exc
    except BotoCoreError as exc:
        raise PublishError(f"put_events failed: {exc}") from exc

    results = response.get("Entries", [])
    result = results[0] if results else {}
    if response.get("FailedEntryCount", 0) or "ErrorCode" in result:
        if metrics:
            metrics.count(
                "EventPublishRejected",
                1,
                {"operation": event.operation.value},
            )
        raise PublishError(
            "EventBridge rejected entry: "
            f"{result.get('ErrorMessage', 'unknown error')}",
            error_code=result.get("ErrorCode"),
        )

    bus_event_id = str(result.get("EventId", ""))
    logger.info(
        "Published item change event",
        extra={
            "bus_event_id": bus_event_id,
            "operation": event.operation.value,
            "pk": event.pk,
            "sk": event.sk,
            "attributes_changed": len(event.attributes_changed),
            "offloaded": event.images_url is not None,
        },
    )
    if metrics:
        metrics.count(
            "EventsPublished", 1, {"operation": event.operation.value}
        )
    return bus_event_id


__all__ = ["event_to_entry", "publish_event"]
