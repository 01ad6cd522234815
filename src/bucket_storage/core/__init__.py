"""Core utilities and shared components for bucket-storage."""

from .config import settings
from .exceptions import BucketStorageError, ValidationError
from .observability import get_logger, get_tracer

__all__ = ["settings", "BucketStorageError", "ValidationError", "get_logger", "get_tracer"]
