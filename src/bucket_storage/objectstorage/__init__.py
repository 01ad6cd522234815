"""Object storage building blocks: client adapter, listing and pattern resolution."""

from .adapter import (
    MAX_KEYS,
    BatchDeleteResult,
    ObjectClientAdapter,
    ObjectListing,
    ObjectResult,
    ObjectSummary,
    Outcome,
)
from .criteria import SearchCriteria, normalize_path, resolve_search_criteria
from .errors import is_not_found
from .listing import UNBOUNDED_PAGE_SIZE, FileLister

__all__ = [
    "MAX_KEYS",
    "UNBOUNDED_PAGE_SIZE",
    "BatchDeleteResult",
    "FileLister",
    "ObjectClientAdapter",
    "ObjectListing",
    "ObjectResult",
    "ObjectSummary",
    "Outcome",
    "SearchCriteria",
    "is_not_found",
    "normalize_path",
    "resolve_search_criteria",
]
