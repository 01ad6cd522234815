"""Test configuration and fixtures for bucket-storage."""

import boto3
import pytest
from botocore.exceptions import ClientError
from moto import mock_aws

from bucket_storage.objectstorage.adapter import ObjectListing, ObjectResult, ObjectSummary, Outcome
from bucket_storage.storage import FileStorage

TEST_BUCKET = "test-bucket"
CONNECTION_STRING = f"AccessKey=test_key;SecretKey=test_secret;Bucket={TEST_BUCKET}"


def client_error(code: str, status: int, operation: str = "HeadObject") -> ClientError:
    """Build a botocore ClientError the way the service would raise it."""
    return ClientError(
        {
            "Error": {"Code": code, "Message": f"{code} error"},
            "ResponseMetadata": {"HTTPStatusCode": status},
        },
        operation,
    )


class FakeListingAdapter:
    """In-memory stand-in for ObjectClientAdapter.list_objects.

    Keys are served in sorted order; the marker resumes strictly after a key.
    """

    def __init__(self, keys, size: int = 10):
        self.keys = sorted(keys)
        self.size = size
        self.calls = []

    def list_objects(self, prefix, marker, max_keys):
        self.calls.append({"prefix": prefix, "marker": marker, "max_keys": max_keys})
        candidates = [
            key
            for key in self.keys
            if key.startswith(prefix) and (marker is None or key > marker)
        ]
        batch = candidates[:max_keys]
        next_marker = batch[-1] if len(candidates) > len(batch) else None
        objects = [ObjectSummary(key=key, size=self.size) for key in batch]
        return ObjectResult(Outcome.OK, value=ObjectListing(objects, next_marker))


@pytest.fixture
def fake_adapter():
    """Factory for in-memory listing adapters."""
    return FakeListingAdapter


@pytest.fixture
def s3_client():
    """Mocked S3 client; the mock stays active for the whole test."""
    with mock_aws():
        yield boto3.client(
            "s3",
            aws_access_key_id="test_key",
            aws_secret_access_key="test_secret",
            region_name="us-east-1",
        )


@pytest.fixture
def storage(s3_client):
    """FileStorage bound to a mocked bucket."""
    with FileStorage(CONNECTION_STRING) as file_storage:
        yield file_storage


@pytest.fixture
def make_client_error():
    """Factory for botocore ClientError instances."""
    return client_error


@pytest.fixture
def bucket_name():
    """Bucket name used by the shared connection string."""
    return TEST_BUCKET


@pytest.fixture
def connection_string():
    """Connection string for the mocked test bucket."""
    return CONNECTION_STRING
