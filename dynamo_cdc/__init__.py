"""
DynamoDB change-data-capture to EventBridge.

This package owns stream parsing, deep change detection, S3 payload offload
and EventBridge publishing so the stream Lambda can stay minimal.
"""

__version__ = "0.1.0"

from dynamo_cdc.change_detection import diff_images
from dynamo_cdc.config import CdcConfig
from dynamo_cdc.event_builder import build_item_changed_event
from dynamo_cdc.eventbridge_publisher import event_to_entry, publish_event
from dynamo_cdc.exceptions import (
    CdcError,
    ConfigurationError,
    DiffError,
    InvalidFilterPatternError,
    MalformedRecordError,
    OffloadError,
    PublishError,
)
from dynamo_cdc.filters import (
    PkFilter,
    build_filter_criteria,
    compile_pk_filter,
    matches_pk_filters,
)
from dynamo_cdc.models import (
    DETAIL_TYPE,
    BatchResult,
    DiffResult,
    ItemChangedEvent,
    ItemKeys,
    Operation,
    OutcomeStatus,
    PayloadRoute,
    RecordOutcome,
    StreamRecord,
)
from dynamo_cdc.offload import route_payload
from dynamo_cdc.parsing import normalize_image, parse_stream_record
from dynamo_cdc.processor import process_batch, process_record

__all__ = [
    "__version__",
    "DETAIL_TYPE",
    "BatchResult",
    "CdcConfig",
    "CdcError",
    "ConfigurationError",
    "DiffError",
    "DiffResult",
    "InvalidFilterPatternError",
    "ItemChangedEvent",
    "ItemKeys",
    "MalformedRecordError",
    "OffloadError",
    "Operation",
    "OutcomeStatus",
    "PayloadRoute",
    "PkFilter",
    "PublishError",
    "RecordOutcome",
    "StreamRecord",
    "build_filter_criteria",
    "build_item_changed_event",
    "compile_pk_filter",
    "diff_images",
    "event_to_entry",
    "matches_pk_filters",
    "normalize_image",
    "parse_stream_record",
    "process_batch",
    "process_record",
    "publish_event",
    "route_payload",
]
