"""Tests for batch coordination and per-record failure isolation."""

import json
from dataclasses import replace
from typing import Any
from unittest.mock import Mock

from botocore.exceptions import ClientError

from dynamo_cdc.config import CdcConfig
from dynamo_cdc.filters import compile_pk_filters
from dynamo_cdc.models import OutcomeStatus
from dynamo_cdc.processor import process_batch, process_record_isolated

from .conftest import MockMetrics, make_stream_record


def _published_details(mock_events: Mock) -> list[dict[str, Any]]:
    return [
        json.loads(call.kwargs["Entries"][0]["Detail"])
        for call in mock_events.put_events.call_args_list
    ]


def test_small_modify_is_published_inline(
    config: CdcConfig, mock_s3: Mock, mock_events: Mock
) -> None:
    raw = make_stream_record(
        "MODIFY",
        new_image={"status": "closed", "total": 10},
        old_image={"status": "open", "total": 10},
        size_bytes=1000,
    )
    result = process_batch([raw], config, mock_s3, mock_events)

    assert result.published == 1
    detail = _published_details(mock_events)[0]
    assert detail["attributesChanged"] == ["status"]
    assert detail["after"] == {"status": "closed"}
    assert detail["before"] == {"status": "open"}
    assert detail["newImage"]["status"] == "closed"
    assert detail["newImage"]["total"] == 10
    assert "imagesUrl" not in detail
    assert "oldImage" not in detail
    mock_s3.put_object.assert_not_called()


def test_large_insert_is_offloaded(
    config: CdcConfig, mock_s3: Mock, mock_events: Mock
) -> None:
    raw = make_stream_record(
        "INSERT",
        event_id="evt-big",
        new_image={"status": "open"},
        size_bytes=200_000,
    )
    result = process_batch([raw], config, mock_s3, mock_events)

    assert result.published == 1
    assert result.offloaded == 1
    detail = _published_details(mock_events)[0]
    assert "newImage" not in detail
    assert "oldImage" not in detail
    assert "evt-big.json" in detail["imagesUrl"]
    assert detail["operation"] == "INSERT"
    assert detail["attributesChanged"] == ["pk", "sk", "status"]
    assert mock_s3.put_object.call_args.kwargs["Key"] == "evt-big.json"


def test_small_remove_embeds_old_image(
    config: CdcConfig, mock_s3: Mock, mock_events: Mock
) -> None:
    raw = make_stream_record(
        "REMOVE", old_image={"status": "open"}, size_bytes=500
    )
    process_batch([raw], config, mock_s3, mock_events)

    detail = _published_details(mock_events)[0]
    assert detail["operation"] == "REMOVE"
    assert detail["oldImage"] == {
        "pk": "ORDER#1",
        "sk": "DETAILS",
        "status": "open",
    }
    assert "newImage" not in detail
    assert detail["after"] == {}
    assert detail["before"]["status"] == "open"


def test_modify_without_changes_is_suppressed(
    config: CdcConfig,
    mock_s3: Mock,
    mock_events: Mock,
    mock_metrics: MockMetrics,
) -> None:
    raw = make_stream_record(
        "MODIFY",
        new_image={"status": "open", "nested": {"a": [1, 2]}},
        old_image={"status": "open", "nested": {"a": [1, 2]}},
    )
    result = process_batch([raw], config, mock_s3, mock_events, mock_metrics)

    assert result.unchanged == 1
    assert result.published == 0
    mock_events.put_events.assert_not_called()
    assert "UnchangedModifySuppressed" in mock_metrics.names()


def test_malformed_record_does_not_abort_batch(
    config: CdcConfig,
    mock_s3: Mock,
    mock_events: Mock,
    mock_metrics: MockMetrics,
) -> None:
    records = [
        make_stream_record(
            "INSERT", event_id=f"evt-{i}", new_image={"n": i}, size_bytes=100
        )
        for i in range(1, 6)
    ]
    del records[2]["dynamodb"]["Keys"]

    result = process_batch(
        records, config, mock_s3, mock_events, mock_metrics
    )

    assert result.total == 5
    assert result.published == 4
    assert result.failed == 1
    assert [o.status for o in result.outcomes] == [
        OutcomeStatus.PUBLISHED,
        OutcomeStatus.PUBLISHED,
        OutcomeStatus.FAILED,
        OutcomeStatus.PUBLISHED,
        OutcomeStatus.PUBLISHED,
    ]
    assert result.outcomes[2].event_id == "evt-3"
    assert "MalformedRecordError" in (result.outcomes[2].reason or "")
    assert mock_events.put_events.call_count == 4
    assert [d["after"]["n"] for d in _published_details(mock_events)] == [
        1,
        2,
        4,
        5,
    ]
    assert ("RecordProcessingFailed", 1, {"error_type": "MalformedRecordError"}) in (
        mock_metrics.counts
    )
    assert result.to_dict()["statusCode"] == 200


def test_record_missing_mandatory_fields_is_skipped_silently(
    config: CdcConfig, mock_s3: Mock, mock_events: Mock
) -> None:
    raw = make_stream_record("INSERT", new_image={"n": 1})
    del raw["eventID"]
    result = process_batch([raw], config, mock_s3, mock_events)

    assert result.skipped == 1
    assert result.failed == 0
    mock_events.put_events.assert_not_called()


def test_publish_failure_is_isolated(
    config: CdcConfig, mock_s3: Mock, mock_events: Mock
) -> None:
    mock_events.put_events.side_effect = [
        ClientError(
            {"Error": {"Code": "ThrottlingException", "Message": "slow"}},
            "PutEvents",
        ),
        {"FailedEntryCount": 0, "Entries": [{"EventId": "ok"}]},
    ]
    records = [
        make_stream_record("INSERT", event_id="a", new_image={"n": 1}),
        make_stream_record("INSERT", event_id="b", new_image={"n": 2}),
    ]
    result = process_batch(records, config, mock_s3, mock_events)

    assert [o.status for o in result.outcomes] == [
        OutcomeStatus.FAILED,
        OutcomeStatus.PUBLISHED,
    ]
    assert "PublishError" in (result.outcomes[0].reason or "")
    assert result.outcomes[1].bus_event_id == "ok"


def test_offload_failure_publishes_nothing(
    config: CdcConfig, mock_s3: Mock, mock_events: Mock
) -> None:
    mock_s3.put_object.side_effect = ClientError(
        {"Error": {"Code": "NoSuchBucket", "Message": "gone"}}, "PutObject"
    )
    raw = make_stream_record("INSERT", new_image={"n": 1}, size_bytes=200_000)
    result = process_batch([raw], config, mock_s3, mock_events)

    assert result.failed == 1
    assert "OffloadError" in (result.outcomes[0].reason or "")
    mock_events.put_events.assert_not_called()


def test_unexpected_exception_is_isolated(
    config: CdcConfig, mock_s3: Mock, mock_events: Mock
) -> None:
    mock_events.put_events.side_effect = RuntimeError("boom")
    raw = make_stream_record("INSERT", new_image={"n": 1})

    outcome = process_record_isolated(raw, config, mock_s3, mock_events)

    assert outcome.status == OutcomeStatus.FAILED
    assert outcome.reason == "RuntimeError: boom"


def test_non_mapping_record_is_isolated(
    config: CdcConfig, mock_s3: Mock, mock_events: Mock
) -> None:
    result = process_batch(
        [None, make_stream_record("INSERT", new_image={"n": 1})],  # type: ignore[list-item]
        config,
        mock_s3,
        mock_events,
    )
    assert [o.status for o in result.outcomes] == [
        OutcomeStatus.FAILED,
        OutcomeStatus.PUBLISHED,
    ]


def test_pk_filters_drop_non_matching_records(
    config: CdcConfig, mock_s3: Mock, mock_events: Mock
) -> None:
    filtered_config = replace(
        config, pk_filters=compile_pk_filters(["ORDER#*", "CUSTOMER#42"])
    )
    records = [
        make_stream_record("INSERT", event_id="1", pk="ORDER#9", new_image={}),
        make_stream_record("INSERT", event_id="2", pk="CUSTOMER#1", new_image={}),
        make_stream_record("INSERT", event_id="3", pk="CUSTOMER#42", new_image={}),
    ]
    result = process_batch(records, filtered_config, mock_s3, mock_events)

    assert [o.status for o in result.outcomes] == [
        OutcomeStatus.PUBLISHED,
        OutcomeStatus.FILTERED,
        OutcomeStatus.PUBLISHED,
    ]
    assert result.filtered == 1


def test_thread_pool_preserves_order_and_isolation(
    config: CdcConfig, mock_s3: Mock, mock_events: Mock
) -> None:
    pooled = replace(config, max_workers=4)
    records = [
        make_stream_record("INSERT", event_id=f"evt-{i}", new_image={"n": i})
        for i in range(8)
    ]
    records[5]["eventName"] = "TRUNCATE"

    result = process_batch(records, pooled, mock_s3, mock_events)

    assert [o.event_id for o in result.outcomes] == [f"evt-{i}" for i in range(8)]
    assert result.failed == 1
    assert result.outcomes[5].status == OutcomeStatus.FAILED
    assert result.published == 7


def test_empty_batch(config: CdcConfig, mock_s3: Mock, mock_events: Mock) -> None:
    result = process_batch([], config, mock_s3, mock_events)

    assert result.total == 0
    assert result.to_dict() == {
        "statusCode": 200,
        "processed_records": 0,
        "published_events": 0,
        "skipped_records": 0,
        "failed_records": 0,
    }
