"""Object client adapter over a boto3 S3 client.

Every call returns an :class:`ObjectResult` instead of raising. Provider
exceptions are classified exactly once, here: anything ``is_not_found``
recognises becomes ``Outcome.ABSENT`` and every other failure becomes
``Outcome.ERROR`` with the original exception attached. Callers branch on
the outcome rather than catching provider-specific exception types.

Listing uses the V1 ``ListObjects`` API, whose ``Marker`` is a key: the
listing resumes strictly after it.
"""

from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from typing import Any, BinaryIO, Generic, Optional, Sequence, TypeVar

from bucket_storage.core import get_logger
from bucket_storage.core.exceptions import ObjectNotFoundError, StorageOperationError

from .errors import is_not_found

logger = get_logger(__name__)

T = TypeVar("T")

# Upper bound the provider accepts for MaxKeys and for keys per batch delete
MAX_KEYS = 1000


class Outcome(str, Enum):
    """Result state of an adapter call."""

    OK = "ok"
    ABSENT = "absent"
    ERROR = "error"


@dataclass(frozen=True)
class ObjectResult(Generic[T]):
    """Explicit success/absent/error result of an adapter call."""

    outcome: Outcome
    value: Optional[T] = None
    error: Optional[BaseException] = None
    status: Optional[int] = None

    @property
    def ok(self) -> bool:
        return self.outcome is Outcome.OK

    @property
    def absent(self) -> bool:
        return self.outcome is Outcome.ABSENT

    def unwrap(self, key: Optional[str] = None) -> T:
        """Return the value or raise the failure this result carries.

        Args:
            key: Object key or prefix the call was made for, used in errors
        """
        if self.outcome is Outcome.OK:
            return self.value  # type: ignore[return-value]
        target = f"'{key}': " if key else ""
        if self.outcome is Outcome.ABSENT:
            raise ObjectNotFoundError(
                f"Not found {target}{self.error or 'no such object'}", key=key
            ) from self.error
        raise StorageOperationError(f"Request failed {target}{self.error}") from self.error


@dataclass(frozen=True)
class ObjectSummary:
    """Key, size and modification time of a stored object."""

    key: str
    size: int
    last_modified: Optional[datetime] = None


@dataclass(frozen=True)
class ObjectListing:
    """One provider page of a prefix listing."""

    objects: list[ObjectSummary] = field(default_factory=list)
    next_marker: Optional[str] = None


@dataclass(frozen=True)
class BatchDeleteResult:
    """Keys removed and keys the provider refused to remove."""

    deleted: list[str] = field(default_factory=list)
    failed: list[str] = field(default_factory=list)


def _status_of(response: dict) -> Optional[int]:
    return response.get("ResponseMetadata", {}).get("HTTPStatusCode")


def _is_successful(status: Optional[int]) -> bool:
    # Only an explicit 2xx/3xx status counts as success
    return status is not None and status < 400


class ObjectClientAdapter:
    """Bucket-scoped facade over an S3 client."""

    def __init__(self, client: Any, bucket: str):
        self.client = client
        self.bucket = bucket

    def _failure(self, exc: Exception, **context: Any) -> ObjectResult:
        if is_not_found(exc):
            logger.debug("Object storage resource not found", error=str(exc), **context)
            return ObjectResult(Outcome.ABSENT, error=exc, status=404)
        return ObjectResult(Outcome.ERROR, error=exc)

    def _from_status(self, response: dict, value: Any = None) -> ObjectResult:
        status = _status_of(response)
        if _is_successful(status):
            return ObjectResult(Outcome.OK, value=value, status=status)
        error = StorageOperationError(f"[{status}] Object storage request failed")
        if status == 404:
            return ObjectResult(Outcome.ABSENT, error=error, status=status)
        return ObjectResult(Outcome.ERROR, error=error, status=status)

    def bucket_exists(self) -> ObjectResult[bool]:
        try:
            response = self.client.head_bucket(Bucket=self.bucket)
        except Exception as e:
            return self._failure(e, bucket=self.bucket)
        return self._from_status(response, True)

    def create_bucket(self) -> ObjectResult[None]:
        try:
            response = self.client.create_bucket(Bucket=self.bucket)
        except Exception as e:
            return self._failure(e, bucket=self.bucket)
        return self._from_status(response)

    def head_object(self, key: str) -> ObjectResult[ObjectSummary]:
        try:
            response = self.client.head_object(Bucket=self.bucket, Key=key)
        except Exception as e:
            return self._failure(e, key=key)
        summary = ObjectSummary(
            key=key,
            size=response.get("ContentLength", 0),
            last_modified=response.get("LastModified"),
        )
        return self._from_status(response, summary)

    def get_object(self, key: str) -> ObjectResult[BinaryIO]:
        """Open a read stream; the caller owns and must close the body."""
        try:
            response = self.client.get_object(Bucket=self.bucket, Key=key)
        except Exception as e:
            return self._failure(e, key=key)
        return self._from_status(response, response.get("Body"))

    def put_object(self, key: str, body: BinaryIO) -> ObjectResult[None]:
        try:
            response = self.client.put_object(Bucket=self.bucket, Key=key, Body=body)
        except Exception as e:
            return self._failure(e, key=key)
        return self._from_status(response)

    def copy_object(self, source_key: str, target_key: str) -> ObjectResult[None]:
        try:
            response = self.client.copy_object(
                Bucket=self.bucket,
                Key=target_key,
                CopySource={"Bucket": self.bucket, "Key": source_key},
            )
        except Exception as e:
            return self._failure(e, key=source_key, target_key=target_key)
        return self._from_status(response)

    def delete_object(self, key: str) -> ObjectResult[None]:
        try:
            response = self.client.delete_object(Bucket=self.bucket, Key=key)
        except Exception as e:
            return self._failure(e, key=key)
        return self._from_status(response)

    def delete_objects(self, keys: Sequence[str]) -> ObjectResult[BatchDeleteResult]:
        """Delete keys in requests of at most ``MAX_KEYS`` entries.

        The result is OK only if every request succeeded and the provider
        reported no per-key errors.
        """
        deleted: list[str] = []
        failed: list[str] = []
        for start in range(0, len(keys), MAX_KEYS):
            chunk = keys[start : start + MAX_KEYS]
            try:
                response = self.client.delete_objects(
                    Bucket=self.bucket,
                    Delete={"Objects": [{"Key": key} for key in chunk], "Quiet": False},
                )
            except Exception as e:
                return ObjectResult(
                    Outcome.ERROR,
                    value=BatchDeleteResult(deleted, failed + list(keys[start:])),
                    error=e,
                )

            status = _status_of(response)
            deleted.extend(item["Key"] for item in response.get("Deleted", []))
            failed.extend(item["Key"] for item in response.get("Errors", []))
            if not _is_successful(status):
                return ObjectResult(
                    Outcome.ERROR,
                    value=BatchDeleteResult(deleted, failed + list(keys[start + len(chunk) :])),
                    error=StorageOperationError(f"[{status}] Unable to delete files"),
                    status=status,
                )

        batch = BatchDeleteResult(deleted, failed)
        if failed:
            return ObjectResult(
                Outcome.ERROR,
                value=batch,
                error=StorageOperationError(f"Unable to delete {len(failed)} files"),
            )
        return ObjectResult(Outcome.OK, value=batch)

    def list_objects(
        self, prefix: str, marker: Optional[str], max_keys: int
    ) -> ObjectResult[ObjectListing]:
        """List one provider page of keys under ``prefix`` after ``marker``."""
        params: dict[str, Any] = {
            "Bucket": self.bucket,
            "Prefix": prefix,
            "MaxKeys": max(1, min(max_keys, MAX_KEYS)),
        }
        if marker:
            params["Marker"] = marker

        try:
            response = self.client.list_objects(**params)
        except Exception as e:
            return self._failure(e, prefix=prefix, marker=marker)

        objects = [
            ObjectSummary(
                key=item["Key"],
                size=item.get("Size", 0),
                last_modified=item.get("LastModified"),
            )
            for item in response.get("Contents", [])
        ]

        next_marker = None
        if response.get("IsTruncated"):
            next_marker = response.get("NextMarker") or (objects[-1].key if objects else None)

        return self._from_status(response, ObjectListing(objects, next_marker))

    def close(self) -> None:
        close = getattr(self.client, "close", None)
        if close is not None:
            close()
