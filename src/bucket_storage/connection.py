"""Connection string parsing for object storage accounts.

A connection string is a list of ``key=value`` entries separated by ``;``.
Keys are matched case-insensitively against a table of accepted aliases, so
``AccessKey``, ``access key id`` and ``Id`` all populate the same field.

Example:
    >>> options = ConnectionOptions.parse(
    ...     "AccessKey=abc;SecretKey=xyz;EndPoint=http://localhost:9000;Bucket=media"
    ... )
    >>> options.bucket
    'media'
    >>> str(options)
    'AccessKey=abc;SecretKey=xyz;EndPoint=http://localhost:9000;Bucket=media;'
"""

from typing import Optional

from pydantic import BaseModel, ConfigDict, Field

from bucket_storage.core.config import settings
from bucket_storage.core.exceptions import ConnectionStringError

# (field, accepted aliases); matching is case-insensitive
ACCOUNT_FIELDS: tuple[tuple[str, tuple[str, ...]], ...] = (
    ("access_key", ("AccessKey", "Access Key", "AccessKeyId", "Access Key Id", "Id")),
    (
        "secret_key",
        (
            "SecretKey",
            "Secret Key",
            "SecretAccessKey",
            "Secret Access Key",
            "AccessKeySecret",
            "Access Key Secret",
            "Secret",
        ),
    ),
    ("endpoint", ("EndPoint", "End Point")),
)

STORAGE_FIELDS = ACCOUNT_FIELDS + (("bucket", ("Bucket",)),)

# Serialization order and canonical key names
_CANONICAL_KEYS = (
    ("access_key", "AccessKey"),
    ("secret_key", "SecretKey"),
    ("endpoint", "EndPoint"),
    ("bucket", "Bucket"),
)


def parse_connection_string(
    connection_string: str,
    fields: tuple[tuple[str, tuple[str, ...]], ...] = STORAGE_FIELDS,
    legacy: bool = False,
) -> dict[str, str]:
    """Parse a connection string into a mapping of field name to value.

    Args:
        connection_string: Raw ``key=value;key=value`` string
        fields: Alias table to match keys against
        legacy: Also accept ``,`` as an entry separator

    Returns:
        Mapping of field name to value for every recognised entry

    Raises:
        ConnectionStringError: If the string is empty or contains an unknown key
    """
    if not connection_string or not connection_string.strip():
        raise ConnectionStringError("Connection string must not be empty")

    lookup = {
        alias.lower(): field for field, aliases in fields for alias in aliases
    }

    text = connection_string.replace(",", ";") if legacy else connection_string
    values: dict[str, str] = {}
    for entry in text.split(";"):
        if "=" not in entry:
            continue
        key, value = entry.split("=", 1)
        key = key.strip()
        field = lookup.get(key.lower())
        if field is None:
            raise ConnectionStringError(
                f"The option '{key}' cannot be recognized in connection string."
            )
        values[field] = value.strip()

    return values


class ConnectionOptions(BaseModel):
    """Immutable connection settings for a storage bucket."""

    model_config = ConfigDict(extra="forbid", frozen=True, populate_by_name=True)

    access_key: Optional[str] = Field(None, description="Access key ID")
    secret_key: Optional[str] = Field(None, description="Secret access key", repr=False)
    endpoint: Optional[str] = Field(
        None, description="Service endpoint URL for S3-compatible providers"
    )
    bucket_name: Optional[str] = Field(
        None, alias="bucket", description="Bucket name as given in the connection string"
    )

    @property
    def bucket(self) -> str:
        """Bucket to operate on, falling back to the configured default."""
        return self.bucket_name or settings.default_bucket

    @classmethod
    def parse(cls, connection_string: str, legacy: bool = False) -> "ConnectionOptions":
        """Build options from a connection string."""
        return cls(**parse_connection_string(connection_string, STORAGE_FIELDS, legacy))

    def __str__(self) -> str:
        values = {
            "access_key": self.access_key,
            "secret_key": self.secret_key,
            "endpoint": self.endpoint,
            "bucket": self.bucket_name,
        }
        return "".join(
            f"{name}={values[field]};" for field, name in _CANONICAL_KEYS if values[field]
        )
