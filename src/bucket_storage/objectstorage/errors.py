"""Classification of provider failures.

Several operations turn a "does not exist" failure into a negative result
while every other failure must still surface. ``is_not_found`` makes that
decision, looking inside exception groups produced by parallel fan-out.
"""

from botocore.exceptions import ClientError

from bucket_storage.core.exceptions import ObjectNotFoundError

NOT_FOUND_CODES = frozenset({"404", "NoSuchKey", "NoSuchBucket", "NotFound"})


def is_not_found(exc: BaseException) -> bool:
    """Return True if the failure, or any failure it groups, is a 404."""
    if isinstance(exc, BaseExceptionGroup):
        return any(is_not_found(inner) for inner in exc.exceptions)

    if isinstance(exc, ObjectNotFoundError):
        return True

    if isinstance(exc, ClientError):
        error = exc.response.get("Error", {})
        if str(error.get("Code", "")) in NOT_FOUND_CODES:
            return True
        status = exc.response.get("ResponseMetadata", {}).get("HTTPStatusCode")
        return status == 404

    return False
