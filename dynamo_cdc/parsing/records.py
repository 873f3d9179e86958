"""
Parsing of raw DynamoDB stream records into ``StreamRecord`` objects.
"""

import logging
from typing import Mapping, Optional, cast

from dynamo_cdc.exceptions import MalformedRecordError
from dynamo_cdc.models import ItemKeys, Operation, StreamRecord
from dynamo_cdc.parsing.normalizer import normalize_image
from dynamo_cdc.stream_types import DynamoDBItem

logger = logging.getLogger(__name__)


def parse_operation(event_name: object) -> Operation:
    try:
        return Operation(event_name)
    except ValueError as exc:
        raise MalformedRecordError(
            f"Unsupported eventName: {event_name!r}"
        ) from exc


def parse_keys(
    keys: Optional[DynamoDBItem],
    pk_attribute: str = "pk",
    sk_attribute: str = "sk",
) -> ItemKeys:
    """Decode the key tuple; both attributes must be strings."""
    normalized = normalize_image(keys)
    if not normalized:
        raise MalformedRecordError("Record has no Keys")

    pk = normalized.get(pk_attribute)
    sk = normalized.get(sk_attribute)
    if not isinstance(pk, str) or not isinstance(sk, str):
        raise MalformedRecordError(
            f"Keys must contain string {pk_attribute!r} and {sk_attribute!r}, "
            f"got {sorted(normalized)}"
        )
    return ItemKeys(pk=pk, sk=sk)


def _parse_size(dynamodb: Mapping[str, object]) -> Optional[int]:
    size = dynamodb.get("SizeBytes")
    if size is None:
        return None
    if isinstance(size, bool) or not isinstance(size, int):
        raise MalformedRecordError(f"SizeBytes must be an integer: {size!r}")
    return size


def _check_images(
    operation: Operation, old_image: object, new_image: object
) -> None:
    if operation == Operation.INSERT and new_image is None:
        raise MalformedRecordError("INSERT record has no NewImage")
    if operation == Operation.REMOVE and old_image is None:
        raise MalformedRecordError("REMOVE record has no OldImage")
    if old_image is None and new_image is None:
        raise MalformedRecordError(f"{operation.value} record has no images")


def parse_stream_record(
    record: Mapping[str, object],
    pk_attribute: str = "pk",
    sk_attribute: str = "sk",
) -> Optional[StreamRecord]:
    """
    Parse a DynamoDB stream record.

    Records without ``eventName``, ``eventID`` or ``dynamodb`` are not
    meaningful yet and return None. Anything else that cannot be decoded is
    malformed.

    Raises:
        MalformedRecordError: If keys, size or images cannot be decoded
    """
    event_name = record.get("eventName")
    event_id = record.get("eventID")
    dynamodb = record.get("dynamodb")
    if not event_name or not event_id or not dynamodb:
        logger.debug(
            "Skipping stream record without mandatory fields",
            extra={"event_id": event_id, "event_name": event_name},
        )
        return None
    if not isinstance(dynamodb, Mapping):
        raise MalformedRecordError("dynamodb must be a mapping")

    operation = parse_operation(event_name)
    keys = parse_keys(
        cast(Optional[DynamoDBItem], dynamodb.get("Keys")),
        pk_attribute,
        sk_attribute,
    )
    old_image = normalize_image(
        cast(Optional[DynamoDBItem], dynamodb.get("OldImage"))
    )
    new_image = normalize_image(
        cast(Optional[DynamoDBItem], dynamodb.get("NewImage"))
    )
    _check_images(operation, old_image, new_image)

    aws_region = record.get("awsRegion")
    return StreamRecord(
        operation=operation,
        event_id=str(event_id),
        keys=keys,
        old_image=old_image,
        new_image=new_image,
        size_bytes=_parse_size(dynamodb),
        aws_region=str(aws_region) if aws_region else None,
    )


__all__ = ["parse_keys", "parse_operation", "parse_stream_record"]
