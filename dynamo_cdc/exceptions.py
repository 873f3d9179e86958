"""Custom exceptions for the dynamo_cdc pipeline."""


class CdcError(Exception):
    """Base exception for all dynamo_cdc errors."""


# Record-level errors: caught by the batch coordinator, never re-raised
class MalformedRecordError(CdcError):
    """Raised when a stream record is missing keys or cannot be decoded."""


class DiffError(CdcError):
    """Raised when two images cannot be compared (cycles, runaway depth)."""


class OffloadError(CdcError):
    """Raised when writing images to S3 or presigning the URL fails."""


class PublishError(CdcError):
    """
    Raised when EventBridge rejects or fails to accept a change event.

    Carries the AWS error code when one was returned so the failure can be
    told apart from throttling in the logs.
    """

    def __init__(self, message: str, error_code: str | None = None):
        super().__init__(message)
        self.error_code = error_code


# Configuration errors: raised at load time, outside the record loop
class ConfigurationError(CdcError):
    """Raised when environment configuration is invalid."""


class InvalidFilterPatternError(ConfigurationError):
    """Raised when a partition-key filter pattern cannot be compiled."""


__all__ = [
    "CdcError",
    "ConfigurationError",
    "DiffError",
    "InvalidFilterPatternError",
    "MalformedRecordError",
    "OffloadError",
    "PublishError",
]
