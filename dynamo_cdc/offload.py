"""
Payload routing: embed images inline or offload them to S3.

EventBridge caps entries at 256 KB, so records at or above the size threshold
have both images written to S3 under ``<eventID>.json`` and the event carries
a presigned URL instead. The bucket's lifecycle rule expires the objects after
24 hours; nothing here deletes them.
"""

import json
import logging
from typing import TYPE_CHECKING, Any

from botocore.exceptions import BotoCoreError, ClientError

from dynamo_cdc.config import CdcConfig
from dynamo_cdc.exceptions import OffloadError
from dynamo_cdc.models import Operation, PayloadRoute, StreamRecord

if TYPE_CHECKING:
    from mypy_boto3_s3 import S3Client
else:
    S3Client = Any  # type: ignore[misc,assignment]

logger = logging.getLogger(__name__)

OBJECT_SUFFIX = ".json"


def object_key_for(event_id: str) -> str:
    """S3 key for a record's images; redelivery overwrites the same key."""
    return f"{event_id}{OBJECT_SUFFIX}"


def should_inline(size_bytes: int | None, threshold: int) -> bool:
    """A missing or zero size is treated as large."""
    return bool(size_bytes) and size_bytes < threshold  # type: ignore[operator]


def inline_route(record: StreamRecord) -> PayloadRoute:
    """Full images for the event body: old image only for REMOVE."""
    if record.operation == Operation.REMOVE:
        return PayloadRoute(old_image=record.old_image)
    return PayloadRoute(new_image=record.new_image)


def _images_body(record: StreamRecord) -> bytes:
    images: dict[str, object] = {}
    if record.old_image is not None:
        images["oldImage"] = record.old_image
    if record.new_image is not None:
        images["newImage"] = record.new_image
    return json.dumps(images).encode("utf-8")


def offload_images(
    record: StreamRecord, config: CdcConfig, s3_client: S3Client
) -> PayloadRoute:
    """
    Write both images to S3 and presign a GET URL for them.

    Raises:
        OffloadError: If the bucket is not configured or S3 fails
    """
    if not config.bucket_name:
        raise OffloadError("BUCKET_NAME is not configured")

    key = object_key_for(record.event_id)
    try:
        body = _images_body(record)
        s3_client.put_object(
            Bucket=config.bucket_name,
            Key=key,
            Body=body,
            ContentType="application/json",
        )
        url = s3_client.generate_presigned_url(
            ClientMethod="get_object",
            Params={"Bucket": config.bucket_name, "Key": key},
            ExpiresIn=config.url_expiry_seconds,
        )
    except (BotoCoreError, ClientError) as exc:
        raise OffloadError(
            f"Failed to offload images to s3://{config.bucket_name}/{key}: "
            f"{exc}"
        ) from exc

    logger.info(
        "Offloaded item images to S3",
        extra={
            "event_id": record.event_id,
            "bucket": config.bucket_name,
            "key": key,
            "size_bytes": record.size_bytes,
            "body_bytes": len(body),
        },
    )
    return PayloadRoute(images_url=url, object_key=key)


def route_payload(
    record: StreamRecord, config: CdcConfig, s3_client: S3Client
) -> PayloadRoute:
    """Decide inline vs. offload from the record's SizeBytes."""
    if should_inline(record.size_bytes, config.size_threshold_bytes):
        return inline_route(record)
    return offload_images(record, config, s3_client)


__all__ = [
    "OBJECT_SUFFIX",
    "inline_route",
    "object_key_for",
    "offload_images",
    "route_payload",
    "should_inline",
]
