"""
Shared error handling for the Access Cache layer.
"""

from typing import Dict, Any, Optional
from pydantic import BaseModel


class ErrorResponse(BaseModel):
    """Standard error response format."""

    code: str
    message: str
    details: Dict[str, Any] = {}


class AccessCacheException(Exception):
    """Base exception for Access Cache components."""

    def __init__(self, code: str, message: str, details: Optional[Dict[str, Any]] = None):
        self.code = code
        self.message = message
        self.details = details or {}
        super().__init__(message)

    def to_response(self) -> ErrorResponse:
        """Convert to error response."""
        return ErrorResponse(
            code=self.code,
            message=self.message,
            details=self.details
        )


class ValidationError(AccessCacheException):
    """Validation-related errors."""

    def __init__(self, message: str = "Validation failed", details: Optional[Dict[str, Any]] = None):
        super().__init__("VALIDATION_ERROR", message, details)


class InvalidCacheKeyError(ValidationError):
    """A scope or caller key cannot be turned into a cache key."""


class InvalidTtlError(ValidationError):
    """A time-to-live is zero, negative or not a duration."""


class CacheError(AccessCacheException):
    """Base class for failures surfaced by the cache-aside engine."""

    def __init__(self, code: str, message: str, cache_key: Optional[str] = None,
                 details: Optional[Dict[str, Any]] = None):
        details = dict(details or {})
        if cache_key is not None:
            details.setdefault("cache_key", cache_key)
        self.cache_key = cache_key
        super().__init__(code, message, details)


class StoreReadError(CacheError):
    """The remote store failed while reading an entry."""

    def __init__(self, cache_key: str, message: str = "Remote store read failed",
                 details: Optional[Dict[str, Any]] = None):
        super().__init__("STORE_READ_ERROR", message, cache_key, details)


class StoreWriteError(CacheError):
    """The remote store failed while writing or deleting an entry."""

    def __init__(self, cache_key: str, message: str = "Remote store write failed",
                 details: Optional[Dict[str, Any]] = None):
        super().__init__("STORE_WRITE_ERROR", message, cache_key, details)


class SerializationError(CacheError):
    """A value could not be encoded for storage."""

    def __init__(self, cache_key: str, message: str = "Value could not be serialized",
                 details: Optional[Dict[str, Any]] = None):
        super().__init__("SERIALIZATION_ERROR", message, cache_key, details)


class DeserializationError(CacheError):
    """Stored bytes do not match the expected value shape."""

    def __init__(self, cache_key: str, message: str = "Cached payload could not be deserialized",
                 details: Optional[Dict[str, Any]] = None):
        super().__init__("DESERIALIZATION_ERROR", message, cache_key, details)


class LockTimeoutError(CacheError):
    """The population lock could not be obtained in time."""

    def __init__(self, cache_key: str, lock_id: str, timeout: float,
                 message: Optional[str] = None, details: Optional[Dict[str, Any]] = None):
        details = dict(details or {})
        details.update({"lock_id": lock_id, "timeout_seconds": timeout})
        self.lock_id = lock_id
        self.timeout = timeout
        super().__init__(
            "LOCK_TIMEOUT",
            message or f"Failed to obtain cache lock for: '{lock_id}'",
            cache_key,
            details
        )


class ProducerError(CacheError):
    """The value producer failed; wraps the original exception."""

    def __init__(self, cache_key: str, original: BaseException,
                 details: Optional[Dict[str, Any]] = None):
        details = dict(details or {})
        details.setdefault("error_type", type(original).__name__)
        self.original = original
        super().__init__(
            "PRODUCER_ERROR",
            f"Value producer failed for '{cache_key}': {original}",
            cache_key,
            details
        )
