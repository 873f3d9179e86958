"""
Conversion of typed DynamoDB images into plain nested Python values.

The stream delivers items in DynamoDB JSON (``{"S": "x"}``, ``{"N": "1"}``).
Downstream consumers receive the same data as ordinary JSON, so numbers are
turned back into ``int``/``float``, sets into sorted lists and binary values
into base64 text.
"""

import base64
from decimal import Decimal, DecimalException
from typing import Any, Mapping, Optional

from boto3.dynamodb.types import TypeDeserializer

from dynamo_cdc.exceptions import MalformedRecordError
from dynamo_cdc.models import Image
from dynamo_cdc.stream_types import DynamoDBItem


class _StreamDeserializer(TypeDeserializer):
    """TypeDeserializer that accepts base64 text for binary attributes."""

    def _deserialize_b(self, value: Any) -> str:
        # Lambda delivers B as base64 text; boto3 clients deliver raw bytes.
        if isinstance(value, str):
            return value
        return base64.b64encode(bytes(value)).decode("ascii")

    def _deserialize_bs(self, value: Any) -> set[str]:
        return {self._deserialize_b(v) for v in value}


_deserializer = _StreamDeserializer()


def _to_json_value(value: Any) -> Any:
    if isinstance(value, Decimal):
        # The DynamoDB context does not trap invalid strings; they become NaN
        if not value.is_finite():
            raise ValueError(f"Number is not finite: {value}")
        if value == value.to_integral_value():
            return int(value)
        return float(value)
    if isinstance(value, (set, frozenset)):
        return sorted(_to_json_value(v) for v in value)
    if isinstance(value, Mapping):
        return {str(k): _to_json_value(v) for k, v in value.items()}
    if isinstance(value, list):
        return [_to_json_value(v) for v in value]
    return value


def deserialize_attribute(attribute: Mapping[str, object]) -> Any:
    """Deserialize a single typed attribute value into a plain value."""
    return _to_json_value(_deserializer.deserialize(attribute))


def normalize_image(
    image: Optional[DynamoDBItem],
) -> Optional[Image]:
    """
    Convert a typed DynamoDB image into a plain nested dict.

    Args:
        image: ``NewImage``/``OldImage``/``Keys`` from a stream record

    Returns:
        Plain dict, or None when the image is absent

    Raises:
        MalformedRecordError: If the image cannot be decoded
    """
    if image is None:
        return None
    if not isinstance(image, Mapping):
        raise MalformedRecordError(
            f"Image must be a mapping, got {type(image).__name__}"
        )

    normalized: Image = {}
    for name, attribute in image.items():
        try:
            normalized[name] = deserialize_attribute(attribute)
        except (
            TypeError,
            ValueError,
            KeyError,
            AttributeError,
            DecimalException,
        ) as exc:
            raise MalformedRecordError(
                f"Cannot decode attribute {name!r}: {exc}"
            ) from exc
    return normalized


__all__ = ["deserialize_attribute", "normalize_image"]
