"""File storage on top of an S3-compatible bucket.

``FileStorage`` treats a bucket as a simple hierarchical file store. Point
operations report failures as ``False``/``None`` and log the cause; only
construction failures, listing failures and batch deletes raise.

Example:
    >>> storage = FileStorage("AccessKey=key;SecretKey=secret;Bucket=media")
    >>> storage.save_file("reports/q1.txt", io.BytesIO(b"hello"))
    True
    >>> [spec.path for spec in storage.get_file_list("reports/*.txt")]
    ['reports/q1.txt']
"""

import io
import shutil
from typing import Any, BinaryIO, Callable, Optional

from bucket_storage.connection import ConnectionOptions
from bucket_storage.core import get_logger, get_tracer, settings
from bucket_storage.core.exceptions import (
    BatchDeleteError,
    StorageOperationError,
    ValidationError,
)
from bucket_storage.models import FileSpec, Page
from bucket_storage.objectstorage.adapter import ObjectClientAdapter
from bucket_storage.objectstorage.clients import S3ClientConfig, S3ClientManager
from bucket_storage.objectstorage.criteria import normalize_path
from bucket_storage.objectstorage.listing import FileLister
from bucket_storage.serializer import JsonSerializer, Serializer

tracer = get_tracer(__name__)


def _require(value: Optional[str], name: str) -> None:
    if not value:
        raise ValidationError(f"{name} is required")


def _is_seekable(stream: Any) -> bool:
    seekable = getattr(stream, "seekable", None)
    return bool(seekable and seekable())


class FileStorage:
    """File operations against a single bucket.

    The bucket is created on construction if it does not exist yet.
    Instances hold no per-call state and may be shared between threads.
    """

    def __init__(
        self,
        connection_string: Optional[str] = None,
        *,
        options: Optional[ConnectionOptions] = None,
        client: Any = None,
        logger: Optional[Any] = None,
        serializer: Optional[Serializer] = None,
    ):
        """Initialize file storage.

        Args:
            connection_string: ``AccessKey=..;SecretKey=..;EndPoint=..;Bucket=..``;
                falls back to the ``BUCKET_STORAGE_CONNECTION_STRING`` setting
            options: Already parsed connection options, used instead of
                ``connection_string``
            client: Pre-built S3 client; one is created from the options if omitted
            logger: structlog-compatible logger; defaults to this module's logger
            serializer: Used by ``save_object``/``get_object``; defaults to JSON

        Raises:
            ValidationError: If no usable connection settings are given
            StorageOperationError: If the bucket cannot be checked or created
        """
        if options is None:
            connection_string = connection_string or settings.connection_string
            if not connection_string:
                raise ValidationError("A connection string or connection options are required")
            options = ConnectionOptions.parse(connection_string)

        self.options = options
        self.bucket = options.bucket
        self.logger = logger if logger is not None else get_logger(__name__)
        self.serializer = serializer if serializer is not None else JsonSerializer()

        self._client_manager: Optional[S3ClientManager] = None
        if client is None:
            self._client_manager = S3ClientManager(S3ClientConfig.from_options(options))
            client = self._client_manager.client

        self.adapter = ObjectClientAdapter(client, self.bucket)
        self.lister = FileLister(self.adapter, self.logger)
        try:
            self._ensure_bucket()
        except Exception:
            self.close()
            raise

    @property
    def client(self):
        """Underlying S3 client."""
        return self.adapter.client

    def _ensure_bucket(self) -> None:
        self.logger.debug("Checking if bucket exists", bucket=self.bucket)
        result = self.adapter.bucket_exists()
        if result.ok:
            return
        if not result.absent:
            self.logger.error(
                "Unable to check if bucket exists", bucket=self.bucket, error=str(result.error)
            )
            raise StorageOperationError(
                f"Unable to check if bucket '{self.bucket}' exists: {result.error}"
            ) from result.error

        self.logger.info("Creating bucket", bucket=self.bucket)
        created = self.adapter.create_bucket()
        if not created.ok:
            raise StorageOperationError(
                f"Unable to create bucket '{self.bucket}': {created.error}"
            ) from created.error
        self.logger.info("Created bucket", bucket=self.bucket)

    def get_file_stream(self, path: str) -> Optional[BinaryIO]:
        """Open a read stream for a file.

        Returns:
            Readable stream the caller must close, or None if it cannot be opened
        """
        _require(path, "path")
        normalized_path = normalize_path(path)
        self.logger.debug("Getting file stream", path=normalized_path)

        result = self.adapter.get_object(normalized_path)
        if result.ok:
            return result.value
        if result.absent:
            self.logger.debug("File not found", path=normalized_path)
        else:
            self.logger.error(
                "Unable to get file stream",
                path=normalized_path,
                status=result.status,
                error=str(result.error),
            )
        return None

    def get_file_info(self, path: str) -> Optional[FileSpec]:
        """Return metadata for a file, or None if it cannot be read."""
        _require(path, "path")
        normalized_path = normalize_path(path)
        self.logger.debug("Getting file info", path=normalized_path)

        result = self.adapter.head_object(normalized_path)
        if not result.ok:
            if result.absent:
                self.logger.debug("File not found", path=normalized_path)
            else:
                self.logger.error(
                    "Unable to get file info", path=normalized_path, error=str(result.error)
                )
            return None

        summary = result.value
        return FileSpec(
            path=normalized_path,
            size=summary.size,
            created=summary.last_modified,
            modified=summary.last_modified,
        )

    def exists(self, path: str) -> bool:
        """Return True if a file exists at ``path``.

        Raises:
            StorageOperationError: If the check fails for a reason other than not-found
        """
        _require(path, "path")
        normalized_path = normalize_path(path)
        self.logger.debug("Checking if file exists", path=normalized_path)

        result = self.adapter.head_object(normalized_path)
        if result.ok:
            return True
        if result.absent:
            return False
        raise StorageOperationError(
            f"Unable to check if '{normalized_path}' exists: {result.error}"
        ) from result.error

    def save_file(self, path: str, stream: BinaryIO) -> bool:
        """Upload the contents of ``stream`` to ``path``.

        Non-seekable streams are buffered in memory first since the upload
        needs to know the content length.
        """
        _require(path, "path")
        if stream is None:
            raise ValidationError("stream is required")

        normalized_path = normalize_path(path)
        self.logger.debug("Saving file", path=normalized_path)

        seekable = _is_seekable(stream)
        body = stream if seekable else io.BytesIO()
        try:
            if not seekable:
                shutil.copyfileobj(stream, body)
                body.seek(0)

            result = self.adapter.put_object(normalized_path, body)
            if not result.ok:
                self.logger.error(
                    "Error saving file",
                    path=normalized_path,
                    status=result.status,
                    error=str(result.error),
                )
            return result.ok
        except Exception as e:
            self.logger.error("Error saving file", path=normalized_path, error=str(e))
            return False
        finally:
            if not seekable:
                body.close()

    def rename_file(self, path: str, new_path: str) -> bool:
        """Move a file by copying it and deleting the source.

        Returns True only if both steps succeed. When the copy succeeds but
        the delete fails the file exists at both paths.
        """
        _require(path, "path")
        _require(new_path, "new_path")

        normalized_path = normalize_path(path)
        normalized_new_path = normalize_path(new_path)
        self.logger.info("Renaming file", path=normalized_path, new_path=normalized_new_path)

        return self.copy_file(normalized_path, normalized_new_path) and self.delete_file(
            normalized_path
        )

    def copy_file(self, path: str, target_path: str) -> bool:
        """Server-side copy of a file within the bucket."""
        _require(path, "path")
        _require(target_path, "target_path")

        normalized_path = normalize_path(path)
        normalized_target_path = normalize_path(target_path)
        self.logger.info(
            "Copying file", path=normalized_path, target_path=normalized_target_path
        )

        result = self.adapter.copy_object(normalized_path, normalized_target_path)
        if not result.ok:
            self.logger.error(
                "Error copying file",
                path=normalized_path,
                target_path=normalized_target_path,
                error=str(result.error),
            )
        return result.ok

    def delete_file(self, path: str) -> bool:
        """Delete a file; returns False if the provider reports a failure."""
        _require(path, "path")
        normalized_path = normalize_path(path)
        self.logger.debug("Deleting file", path=normalized_path)

        result = self.adapter.delete_object(normalized_path)
        if not result.ok:
            self.logger.error(
                "Unable to delete file", path=normalized_path, error=str(result.error)
            )
        return result.ok

    def delete_files(self, pattern: Optional[str] = None) -> int:
        """Delete every file matching ``pattern`` in a single batch.

        Returns:
            Number of files deleted

        Raises:
            BatchDeleteError: If the provider did not delete every file
        """
        with tracer.start_as_current_span("bucket_storage.delete_files") as span:
            files = self.lister.list_all(pattern)
            span.set_attribute("bucket_storage.file_count", len(files))
            self.logger.info("Deleting files", count=len(files), pattern=pattern)
            if not files:
                return 0

            result = self.adapter.delete_objects([spec.path for spec in files])
            if not result.ok:
                failed_keys = result.value.failed if result.value else []
                self.logger.error(
                    "Unable to delete files",
                    pattern=pattern,
                    failed_count=len(failed_keys),
                    error=str(result.error),
                )
                raise BatchDeleteError(
                    f"Unable to delete files matching '{pattern}': {result.error}",
                    failed_keys=failed_keys,
                ) from result.error

            count = len(result.value.deleted)
            self.logger.debug("Finished deleting files", count=count, pattern=pattern)
            return count

    def get_file_list(
        self,
        pattern: Optional[str] = None,
        limit: Optional[int] = None,
        skip: Optional[int] = None,
    ) -> list[FileSpec]:
        """List files matching ``pattern`` (e.g. ``folder/*.txt``)."""
        return self.lister.list_all(pattern, limit=limit, skip=skip)

    def get_paged_file_list(
        self,
        page_size: int = 100,
        pattern: Optional[str] = None,
        cancel_requested: Optional[Callable[[], bool]] = None,
    ) -> Page:
        """Return the first page of files matching ``pattern``.

        Use ``page.next_page()`` to continue while ``page.has_more`` is True.
        """
        return self.lister.start_listing(
            pattern, page_size=page_size, cancel_requested=cancel_requested
        )

    def save_object(self, path: str, value: Any) -> bool:
        """Serialize ``value`` and save it to ``path``."""
        _require(path, "path")
        return self.save_file(path, io.BytesIO(self.serializer.serialize(value)))

    def get_object(self, path: str, type_: Optional[type] = None) -> Any:
        """Load and deserialize the object at ``path``; None if unavailable."""
        stream = self.get_file_stream(path)
        if stream is None:
            return None
        try:
            data = stream.read()
        finally:
            stream.close()
        return self.serializer.deserialize(data, type_)

    def close(self) -> None:
        """Close the S3 client if this instance created it."""
        if self._client_manager is not None:
            self._client_manager.close()

    def __enter__(self) -> "FileStorage":
        return self

    def __exit__(self, exc_type, exc, tb) -> None:
        self.close()
