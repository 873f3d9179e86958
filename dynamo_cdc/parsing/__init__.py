"""DynamoDB stream parsing utilities."""

from dynamo_cdc.parsing.normalizer import deserialize_attribute, normalize_image
from dynamo_cdc.parsing.records import (
    parse_keys,
    parse_operation,
    parse_stream_record,
)

__all__ = [
    "deserialize_attribute",
    "normalize_image",
    "parse_keys",
    "parse_operation",
    "parse_stream_record",
]
