"""
Runtime configuration for the CDC pipeline.

Values are set by the infrastructure as Lambda environment variables and
read once into an immutable ``CdcConfig`` that is passed through the pipeline.
"""

import os
from dataclasses import dataclass, field, replace
from typing import Mapping, Optional

from dynamo_cdc.exceptions import ConfigurationError
from dynamo_cdc.filters import PkFilter, compile_pk_filters

# 64 KiB: items at or above this size are offloaded to S3
DEFAULT_SIZE_THRESHOLD_BYTES = 64 * 1024

# Matches the 24 hour lifecycle rule on the offload bucket
DEFAULT_URL_EXPIRY_SECONDS = 24 * 60 * 60

DEFAULT_EVENT_SOURCE = "unknown"
DEFAULT_EVENT_BUS_NAME = "default"


def _int_setting(env: Mapping[str, str], name: str, default: int) -> int:
    raw = env.get(name)
    if raw is None or raw.strip() == "":
        return default
    try:
        value = int(raw)
    except ValueError as exc:
        raise ConfigurationError(
            f"{name} must be an integer, got {raw!r}"
        ) from exc
    if value <= 0:
        raise ConfigurationError(f"{name} must be positive, got {value}")
    return value


def _list_setting(env: Mapping[str, str], name: str) -> tuple[str, ...]:
    raw = env.get(name, "")
    return tuple(part.strip() for part in raw.split(",") if part.strip())


@dataclass(frozen=True)
class CdcConfig:  # pylint: disable=too-many-instance-attributes
    """Configuration consumed by the CDC pipeline."""

    event_source: str = DEFAULT_EVENT_SOURCE
    event_bus_name: str = DEFAULT_EVENT_BUS_NAME
    bucket_name: Optional[str] = None
    region: Optional[str] = None
    size_threshold_bytes: int = DEFAULT_SIZE_THRESHOLD_BYTES
    url_expiry_seconds: int = DEFAULT_URL_EXPIRY_SECONDS
    pk_attribute: str = "pk"
    sk_attribute: str = "sk"
    pk_filters: tuple[PkFilter, ...] = field(default_factory=tuple)
    max_workers: int = 1
    io_timeout_seconds: int = 10
    max_attempts: int = 3

    @classmethod
    def from_env(cls, env: Optional[Mapping[str, str]] = None) -> "CdcConfig":
        """
        Load configuration from environment variables.

        Args:
            env: Mapping to read from (defaults to ``os.environ``)

        Raises:
            ConfigurationError: If a numeric setting or key list is invalid
            InvalidFilterPatternError: If a pk filter pattern is invalid
        """
        env = os.environ if env is None else env

        key_attributes = _list_setting(env, "CDC_KEY_ATTRIBUTES") or (
            "pk",
            "sk",
        )
        if len(key_attributes) != 2:
            raise ConfigurationError(
                "CDC_KEY_ATTRIBUTES must name exactly two attributes, "
                f"got {key_attributes}"
            )

        return cls(
            event_source=env.get("EVENT_SOURCE") or DEFAULT_EVENT_SOURCE,
            event_bus_name=env.get("EVENT_BUS_NAME") or DEFAULT_EVENT_BUS_NAME,
            bucket_name=env.get("BUCKET_NAME") or None,
            region=env.get("AWS_REGION") or None,
            size_threshold_bytes=_int_setting(
                env, "CDC_SIZE_THRESHOLD_BYTES", DEFAULT_SIZE_THRESHOLD_BYTES
            ),
            url_expiry_seconds=_int_setting(
                env, "CDC_URL_EXPIRY_SECONDS", DEFAULT_URL_EXPIRY_SECONDS
            ),
            pk_attribute=key_attributes[0],
            sk_attribute=key_attributes[1],
            pk_filters=compile_pk_filters(_list_setting(env, "CDC_PK_FILTERS")),
            max_workers=_int_setting(env, "CDC_MAX_WORKERS", 1),
            io_timeout_seconds=_int_setting(env, "CDC_IO_TIMEOUT_SECONDS", 10),
            max_attempts=_int_setting(env, "CDC_MAX_ATTEMPTS", 3),
        )

    def bounded_by_deadline(self, remaining_ms: Optional[int]) -> "CdcConfig":
        """
        Cap the per-call I/O timeout by the invocation's remaining time.

        Each attempt may spend the timeout twice (connect, then read), so the
        remaining time is split across ``2 * max_attempts``. Never below one
        second.

        Args:
            remaining_ms: ``context.get_remaining_time_in_millis()``, or None
                outside Lambda

        Returns:
            This config, or a copy with a smaller ``io_timeout_seconds``
        """
        if remaining_ms is None:
            return self
        budget = max(1, remaining_ms // 1000 // (2 * self.max_attempts))
        if budget >= self.io_timeout_seconds:
            return self
        return replace(self, io_timeout_seconds=budget)


__all__ = [
    "DEFAULT_EVENT_BUS_NAME",
    "DEFAULT_EVENT_SOURCE",
    "DEFAULT_SIZE_THRESHOLD_BYTES",
    "DEFAULT_URL_EXPIRY_SECONDS",
    "CdcConfig",
]
