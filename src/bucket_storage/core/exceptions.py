"""Exception hierarchy for bucket-storage."""

from typing import Optional, Sequence


class BucketStorageError(Exception):
    """Base exception for all bucket-storage errors."""

    pass


class ValidationError(BucketStorageError):
    """Raised when a required argument is missing or invalid."""

    pass


class ConnectionStringError(ValidationError):
    """Raised when a connection string cannot be parsed."""

    pass


class ObjectNotFoundError(BucketStorageError):
    """Raised when an object or bucket does not exist."""

    def __init__(self, message: str, key: Optional[str] = None):
        self.key = key
        super().__init__(message)


class StorageOperationError(BucketStorageError):
    """Raised when a storage call fails and the failure must propagate."""

    pass


class BatchDeleteError(StorageOperationError):
    """Raised when a batch delete leaves some objects undeleted."""

    def __init__(self, message: str, failed_keys: Sequence[str] = ()):
        self.failed_keys = list(failed_keys)
        super().__init__(message)
