"""CloudWatch embedded metric format (EMF) metrics for CDC processing.

Metrics are written as a single JSON log line per call. CloudWatch Logs
extracts them asynchronously, so recording a metric never makes an API call
from inside the Lambda.
"""

import json
import sys
import time
from typing import Any, Mapping, Optional, TextIO

DEFAULT_NAMESPACE = "DynamoCDC"


class EmfMetrics:
    """Emit metrics in CloudWatch embedded metric format."""

    def __init__(
        self,
        namespace: str = DEFAULT_NAMESPACE,
        stream: Optional[TextIO] = None,
    ):
        """Initialize the emitter.

        Args:
            namespace: CloudWatch namespace for metrics
            stream: Where EMF documents are written (defaults to stdout)
        """
        self.namespace = namespace
        self._stream = stream

    def _write(self, document: Mapping[str, Any]) -> None:
        stream = self._stream or sys.stdout
        stream.write(json.dumps(document, default=str) + "\n")
        stream.flush()

    def build_document(
        self,
        metrics: Mapping[str, float],
        dimensions: Optional[Mapping[str, str]] = None,
        properties: Optional[Mapping[str, Any]] = None,
        unit: str = "Count",
    ) -> dict[str, Any]:
        """Build one EMF document for a set of metric values."""
        dimensions = dict(dimensions or {})
        document: dict[str, Any] = {
            "_aws": {
                "Timestamp": int(time.time() * 1000),
                "CloudWatchMetrics": [
                    {
                        "Namespace": self.namespace,
                        "Dimensions": [sorted(dimensions)],
                        "Metrics": [
                            {"Name": name, "Unit": unit} for name in metrics
                        ],
                    }
                ],
            },
            **dimensions,
            **metrics,
        }
        for key, value in (properties or {}).items():
            document.setdefault(key, value)
        return document

    def log_metrics(
        self,
        metrics: Mapping[str, float],
        dimensions: Optional[Mapping[str, str]] = None,
        properties: Optional[Mapping[str, Any]] = None,
    ) -> None:
        """Log a batch of metrics as a single EMF line.

        Args:
            metrics: Metric name to value
            dimensions: Dimension name to value applied to every metric
            properties: Extra searchable fields that are not metrics
        """
        if not metrics:
            return
        self._write(self.build_document(metrics, dimensions, properties))

    def count(
        self,
        name: str,
        value: int = 1,
        dimensions: Optional[Mapping[str, str]] = None,
    ) -> None:
        """Record a count metric."""
        self.log_metrics({name: float(value)}, dimensions)


# Global metrics instance
emf_metrics = EmfMetrics()


__all__ = ["DEFAULT_NAMESPACE", "EmfMetrics", "emf_metrics"]
