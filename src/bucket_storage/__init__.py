"""File storage abstraction over S3-compatible object storage.

This package lets callers treat a remote bucket as a simple hierarchical
file store: read, write, copy, rename, delete, existence and metadata
checks, plus paged listings filtered by shell-style wildcard patterns.

Key Features:
    - Provider-agnostic file operations on a single bucket
    - Prefix + wildcard listing with lazily fetched pages
    - Resumable listing cursors
    - Not-found aware error classification
    - CLI interface

Recommended Usage:

    >>> from bucket_storage import FileStorage
    >>> storage = FileStorage(
    ...     "AccessKey=key;SecretKey=secret;EndPoint=http://localhost:9000;Bucket=media"
    ... )
    >>> page = storage.get_paged_file_list(page_size=50, pattern="images/*.png")
    >>> while page.items:
    ...     for spec in page:
    ...         print(spec.path, spec.size)
    ...     page = page.next_page()
"""

__version__ = "0.1.0"

from .connection import ConnectionOptions
from .core.exceptions import (
    BatchDeleteError,
    BucketStorageError,
    ConnectionStringError,
    ObjectNotFoundError,
    StorageOperationError,
    ValidationError,
)
from .models import FileSpec, ListingCursor, Page
from .objectstorage import is_not_found, resolve_search_criteria
from .serializer import JsonSerializer, Serializer
from .storage import FileStorage

__all__ = [
    # Storage
    "FileStorage",
    "ConnectionOptions",
    # Models
    "FileSpec",
    "ListingCursor",
    "Page",
    # Serialization
    "JsonSerializer",
    "Serializer",
    # Helpers
    "is_not_found",
    "resolve_search_criteria",
    # Errors
    "BatchDeleteError",
    "BucketStorageError",
    "ConnectionStringError",
    "ObjectNotFoundError",
    "StorageOperationError",
    "ValidationError",
]
