"""Tests for FileStorage operations with mocked S3."""

import io
from datetime import datetime
from unittest.mock import MagicMock, patch

import pytest
from pydantic import BaseModel

from bucket_storage.connection import ConnectionOptions
from bucket_storage.core.exceptions import (
    BatchDeleteError,
    ConnectionStringError,
    StorageOperationError,
    ValidationError,
)
from bucket_storage.objectstorage.adapter import (
    BatchDeleteResult,
    ObjectClientAdapter,
    ObjectResult,
    Outcome,
)
from bucket_storage.objectstorage.clients import S3ClientManager
from bucket_storage.storage import FileStorage

class NonSeekableStream(io.RawIOBase):
    """Readable stream that cannot seek, like a socket or pipe."""

    def __init__(self, data: bytes):
        self._inner = io.BytesIO(data)

    def readable(self):
        return True

    def readinto(self, buffer):
        return self._inner.readinto(buffer)


class Report(BaseModel):
    name: str
    created: datetime
    tags: list[str] = []


def _save(storage, path, data=b"content"):
    assert storage.save_file(path, io.BytesIO(data))


class TestConstruction:
    """Test creating a FileStorage."""

    def test_creates_missing_bucket(self, s3_client, connection_string, bucket_name):
        """Test that the bucket is created on construction."""
        FileStorage(connection_string)

        names = [bucket["Name"] for bucket in s3_client.list_buckets()["Buckets"]]
        assert bucket_name in names

    def test_uses_existing_bucket(self, s3_client, connection_string, bucket_name):
        """Test construction against an existing bucket keeps its contents."""
        s3_client.create_bucket(Bucket=bucket_name)
        s3_client.put_object(Bucket=bucket_name, Key="keep.txt", Body=b"x")

        storage = FileStorage(connection_string)
        assert storage.exists("keep.txt")

    def test_accepts_parsed_options(self, s3_client):
        """Test construction from ConnectionOptions."""
        options = ConnectionOptions(access_key="k", secret_key="s", bucket="options-bucket")
        storage = FileStorage(options=options)
        assert storage.bucket == "options-bucket"

    def test_default_bucket_name(self, s3_client):
        """Test that the bucket defaults to 'storage'."""
        storage = FileStorage("AccessKey=test_key;SecretKey=test_secret")
        assert storage.bucket == "storage"

    def test_requires_connection_settings(self):
        """Test that construction without settings fails fast."""
        with pytest.raises(ValidationError):
            FileStorage()

    def test_rejects_bad_connection_string(self):
        """Test that unknown keys fail construction."""
        with pytest.raises(ConnectionStringError):
            FileStorage("Nope=1")

    def test_bucket_probe_failure_raises(self, make_client_error, connection_string):
        """Test that a non-404 bucket probe failure is raised."""
        client = MagicMock()
        client.head_bucket.side_effect = make_client_error("AccessDenied", 403, "HeadBucket")

        with pytest.raises(StorageOperationError):
            FileStorage(connection_string, client=client)
        client.create_bucket.assert_not_called()

    def test_bucket_probe_failure_closes_client(self, s3_client, connection_string):
        """Test that the client created for the service is closed when construction fails."""
        failed = ObjectResult(Outcome.ERROR, error=RuntimeError("denied"), status=403)

        with patch.object(ObjectClientAdapter, "bucket_exists", return_value=failed), patch.object(
            S3ClientManager, "close"
        ) as close:
            with pytest.raises(StorageOperationError):
                FileStorage(connection_string)

        close.assert_called_once_with()

    def test_injected_logger_is_used(self, s3_client, connection_string, bucket_name):
        """Test that an injected logger receives the service's log calls."""
        logger = MagicMock()
        FileStorage(connection_string, logger=logger)

        logger.info.assert_any_call("Creating bucket", bucket=bucket_name)


class TestPointOperations:
    """Test single-file operations."""

    def test_save_then_info(self, storage):
        """Test that info reflects the saved file."""
        data = b"hello world"
        assert storage.save_file("docs\\notes.txt", io.BytesIO(data))

        spec = storage.get_file_info("docs\\notes.txt")
        assert spec.path == "docs/notes.txt"
        assert spec.size == len(data)
        assert spec.created == spec.modified

    def test_save_non_seekable_stream(self, storage):
        """Test that non-seekable streams are buffered and the buffer released."""
        bodies = []
        original_put = storage.adapter.put_object

        def recording_put(key, body):
            bodies.append(body)
            return original_put(key, body)

        with patch.object(storage.adapter, "put_object", side_effect=recording_put):
            assert storage.save_file("stream.bin", NonSeekableStream(b"abc" * 100))

        assert isinstance(bodies[0], io.BytesIO)
        assert bodies[0].closed
        assert storage.get_file_info("stream.bin").size == 300

    def test_save_releases_buffer_on_failure(self, storage):
        """Test that the temporary buffer is closed when the upload raises."""
        bodies = []

        def failing_put(key, body):
            bodies.append(body)
            raise RuntimeError("network down")

        with patch.object(storage.adapter, "put_object", side_effect=failing_put):
            assert storage.save_file("stream.bin", NonSeekableStream(b"abc")) is False

        assert bodies[0].closed

    def test_save_failure_returns_false(self, storage):
        """Test that a rejected upload is reported as False."""
        failed = ObjectResult(Outcome.ERROR, error=RuntimeError("denied"), status=403)
        with patch.object(storage.adapter, "put_object", return_value=failed):
            assert storage.save_file("a.txt", io.BytesIO(b"x")) is False

    def test_get_file_stream(self, storage):
        """Test reading back a saved file."""
        _save(storage, "folder/data.bin", b"\x00\x01\x02")

        stream = storage.get_file_stream("folder\\data.bin")
        try:
            assert stream.read() == b"\x00\x01\x02"
        finally:
            stream.close()

    def test_get_missing_file_stream(self, storage):
        """Test that missing files yield no stream."""
        assert storage.get_file_stream("missing.txt") is None

    def test_get_missing_file_info(self, storage):
        """Test that missing files yield no info."""
        assert storage.get_file_info("missing.txt") is None

    def test_get_file_info_error_returns_none(self, storage):
        """Test that info never raises on provider failures."""
        failed = ObjectResult(Outcome.ERROR, error=RuntimeError("timeout"))
        with patch.object(storage.adapter, "head_object", return_value=failed):
            assert storage.get_file_info("a.txt") is None

    def test_exists(self, storage):
        """Test existence checks for present and missing files."""
        _save(storage, "present.txt")

        assert storage.exists("present.txt") is True
        assert storage.exists("missing.txt") is False

    def test_exists_propagates_other_failures(self, storage):
        """Test that non-404 failures are not reported as missing."""
        failed = ObjectResult(Outcome.ERROR, error=RuntimeError("timeout"))
        with patch.object(storage.adapter, "head_object", return_value=failed):
            with pytest.raises(StorageOperationError):
                storage.exists("a.txt")

    def test_copy_file(self, storage):
        """Test server-side copy."""
        _save(storage, "source.txt", b"copy me")

        assert storage.copy_file("source.txt", "target.txt")
        assert storage.exists("source.txt")
        assert storage.get_file_info("target.txt").size == 7

    def test_copy_missing_file(self, storage):
        """Test that copying a missing file returns False."""
        assert storage.copy_file("missing.txt", "target.txt") is False

    def test_rename_file(self, storage):
        """Test that rename moves the file."""
        _save(storage, "a.txt")

        assert storage.rename_file("a.txt", "renamed/b.txt")
        assert storage.exists("a.txt") is False
        assert storage.exists("renamed/b.txt") is True

    def test_rename_with_failed_delete_leaves_duplicate(self, storage):
        """Test the duplicate left behind when the delete step fails."""
        _save(storage, "a.txt")
        failed = ObjectResult(Outcome.ERROR, error=RuntimeError("denied"))

        with patch.object(storage.adapter, "delete_object", return_value=failed):
            assert storage.rename_file("a.txt", "b.txt") is False

        assert storage.exists("a.txt") is True
        assert storage.exists("b.txt") is True

    def test_rename_with_failed_copy_skips_delete(self, storage):
        """Test that the source is kept when the copy fails."""
        _save(storage, "a.txt")
        failed = ObjectResult(Outcome.ERROR, error=RuntimeError("denied"))

        with patch.object(storage.adapter, "copy_object", return_value=failed):
            assert storage.rename_file("a.txt", "b.txt") is False

        assert storage.exists("a.txt") is True
        assert storage.exists("b.txt") is False

    def test_delete_file(self, storage):
        """Test deleting a file."""
        _save(storage, "a.txt")

        assert storage.delete_file("a.txt") is True
        assert storage.exists("a.txt") is False

    def test_delete_not_found_returns_false(self, storage, make_client_error):
        """Test that a provider not-found on delete is reported as False."""
        storage.adapter.client = MagicMock()
        storage.adapter.client.delete_object.side_effect = make_client_error(
            "NoSuchKey", 404, "DeleteObject"
        )
        assert storage.delete_file("missing.txt") is False

    @pytest.mark.parametrize("path", [None, ""])
    def test_empty_paths_are_rejected(self, storage, path):
        """Test that every operation validates its path before any I/O."""
        storage.adapter.client = MagicMock()

        with pytest.raises(ValidationError):
            storage.exists(path)
        with pytest.raises(ValidationError):
            storage.get_file_stream(path)
        with pytest.raises(ValidationError):
            storage.get_file_info(path)
        with pytest.raises(ValidationError):
            storage.save_file(path, io.BytesIO(b"x"))
        with pytest.raises(ValidationError):
            storage.copy_file(path, "b.txt")
        with pytest.raises(ValidationError):
            storage.copy_file("a.txt", path)
        with pytest.raises(ValidationError):
            storage.rename_file(path, "b.txt")
        with pytest.raises(ValidationError):
            storage.rename_file("a.txt", path)
        with pytest.raises(ValidationError):
            storage.delete_file(path)

        assert storage.adapter.client.method_calls == []

    def test_save_requires_stream(self, storage):
        """Test that a missing stream is a validation error."""
        with pytest.raises(ValidationError):
            storage.save_file("a.txt", None)


class TestListingAndBatchDelete:
    """Test listing and pattern deletes end to end."""

    def test_paged_listing(self, storage):
        """Test paging over five matching files."""
        for i in range(5):
            _save(storage, f"paged/file{i}.txt")

        page = storage.get_paged_file_list(page_size=2, pattern="paged/*")
        counts, flags = [len(page.items)], [page.has_more]
        while page.has_more:
            page = page.next_page()
            counts.append(len(page.items))
            flags.append(page.has_more)

        assert counts == [2, 2, 1]
        assert flags == [True, True, False]

    def test_paged_listing_zero_page_size(self, storage):
        """Test that a zero page size yields an empty terminal page."""
        _save(storage, "a.txt")
        page = storage.get_paged_file_list(page_size=0)

        assert page.items == ()
        assert page.has_more is False

    def test_get_file_list(self, storage):
        """Test flat listing with limit and skip."""
        for name in ["a", "b", "c", "d"]:
            _save(storage, f"list/{name}.txt")

        paths = [spec.path for spec in storage.get_file_list("list/")]
        assert paths == ["list/a.txt", "list/b.txt", "list/c.txt", "list/d.txt"]

        paths = [spec.path for spec in storage.get_file_list("list/*", limit=2, skip=1)]
        assert paths == ["list/b.txt", "list/c.txt"]

    def test_delete_files_by_pattern(self, storage):
        """Test that only matching files are deleted."""
        for path in [
            "folder/a.txt",
            "folder/b.txt",
            "folder/sub/c.txt",
            "folder/d.csv",
            "other/e.txt",
        ]:
            _save(storage, path)

        assert storage.delete_files("folder/*.txt") == 3

        remaining = sorted(spec.path for spec in storage.get_file_list())
        assert remaining == ["folder/d.csv", "other/e.txt"]

    def test_delete_all_files(self, storage):
        """Test deleting everything in the bucket."""
        for i in range(3):
            _save(storage, f"f{i}.txt")

        assert storage.delete_files() == 3
        assert storage.get_file_list() == []

    def test_delete_files_without_matches(self, storage):
        """Test that no batch request is made when nothing matches."""
        with patch.object(storage.adapter, "delete_objects") as delete_objects:
            assert storage.delete_files("nothing/*") == 0
        delete_objects.assert_not_called()

    def test_delete_files_failure_raises(self, storage):
        """Test that a failed batch delete is raised with the failed keys."""
        _save(storage, "x/a.txt")
        _save(storage, "x/b.txt")
        failed = ObjectResult(
            Outcome.ERROR,
            value=BatchDeleteResult(deleted=["x/a.txt"], failed=["x/b.txt"]),
            error=RuntimeError("partial failure"),
        )

        with patch.object(storage.adapter, "delete_objects", return_value=failed):
            with pytest.raises(BatchDeleteError) as exc_info:
                storage.delete_files("x/*")

        assert exc_info.value.failed_keys == ["x/b.txt"]


class TestObjectSerialization:
    """Test saving and loading serialized values."""

    def test_round_trip_plain_values(self, storage):
        """Test JSON round trip of plain data."""
        value = {"name": "report", "values": [1, 2, 3]}

        assert storage.save_object("objects/report.json", value)
        assert storage.get_object("objects/report.json") == value

    def test_round_trip_model(self, storage):
        """Test validation into a pydantic model on load."""
        report = Report(name="q1", created=datetime(2024, 1, 2, 3, 4, 5), tags=["a"])

        assert storage.save_object("objects/q1.json", report)
        assert storage.get_object("objects/q1.json", Report) == report

    def test_missing_object(self, storage):
        """Test that a missing object loads as None."""
        assert storage.get_object("objects/missing.json") is None
