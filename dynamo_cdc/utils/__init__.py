"""Observability utilities: structured logging and EMF metrics."""

from dynamo_cdc.utils.logging import (
    CdcOperationLogger,
    StructuredFormatter,
    get_logger,
    get_operation_logger,
)
from dynamo_cdc.utils.metrics import EmfMetrics, emf_metrics

__all__ = [
    "CdcOperationLogger",
    "EmfMetrics",
    "StructuredFormatter",
    "emf_metrics",
    "get_logger",
    "get_operation_logger",
]
