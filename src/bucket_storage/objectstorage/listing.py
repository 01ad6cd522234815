"""Paginated, pattern-filtered listing of stored objects.

The provider can only list by prefix, a provider page at a time, resuming
from an opaque marker. ``FileLister`` turns that into pages of a caller
chosen size:

1. The search pattern is resolved into a provider prefix and an optional
   client-side matcher (see :mod:`bucket_storage.objectstorage.criteria`).
2. Provider pages are requested and filtered until enough matching keys
   have accumulated or the provider runs out.
3. One key more than the page size is collected so the presence of a next
   page is known without an extra round trip; the extra key is trimmed.

The returned :class:`~bucket_storage.models.Page` carries a
:class:`~bucket_storage.models.ListingCursor` that resumes after the last
key of the page, so later pages never re-read earlier ones.
"""

import sys
from typing import Any, Callable, Optional

from bucket_storage.core import get_logger, get_tracer, settings
from bucket_storage.models import FileSpec, ListingCursor, Page

from .adapter import MAX_KEYS, ObjectClientAdapter, ObjectSummary
from .criteria import SearchCriteria, resolve_search_criteria

tracer = get_tracer(__name__)

# Page size meaning "everything in one page"; no look-ahead key is requested
UNBOUNDED_PAGE_SIZE = sys.maxsize


def to_file_spec(summary: ObjectSummary) -> FileSpec:
    """Map a provider object summary to a FileSpec."""
    return FileSpec(
        path=summary.key,
        size=summary.size,
        created=summary.last_modified,
        modified=summary.last_modified,
    )


class FileLister:
    """Builds pages and flat lists of files from prefix listings."""

    def __init__(
        self,
        adapter: ObjectClientAdapter,
        logger: Optional[Any] = None,
        max_keys: Optional[int] = None,
    ):
        self.adapter = adapter
        self.logger = logger if logger is not None else get_logger(__name__)
        # Keys requested per provider call
        self.max_keys = max(1, min(max_keys or settings.list_max_keys, MAX_KEYS))

    def start_listing(
        self,
        pattern: Optional[str] = None,
        page_size: int = 100,
        skip: int = 0,
        cancel_requested: Optional[Callable[[], bool]] = None,
    ) -> Page:
        """Fetch the first page of files matching ``pattern``.

        Args:
            pattern: Key prefix or wildcard pattern; None lists everything
            page_size: Files per page; values <= 0 give an empty page
            skip: Matching files to pass over before the first page
            cancel_requested: Polled between provider calls

        Returns:
            First page, with a cursor to the next one when more exist
        """
        if page_size <= 0:
            return Page.empty()

        cursor = ListingCursor(pattern=pattern, page_size=page_size, skip=max(skip, 0))
        return self.fetch_page(cursor, cancel_requested)

    def fetch_page(
        self,
        cursor: ListingCursor,
        cancel_requested: Optional[Callable[[], bool]] = None,
    ) -> Page:
        """Fetch the page a cursor points at."""
        page_size = cursor.page_size
        if page_size <= 0:
            return Page.empty()

        criteria = resolve_search_criteria(cursor.pattern)
        bounded = page_size < UNBOUNDED_PAGE_SIZE
        paging_limit = page_size + 1 if bounded else page_size
        total_limit = cursor.skip + paging_limit if bounded else None

        self.logger.debug(
            "Getting file page",
            pattern=cursor.pattern,
            prefix=criteria.prefix,
            page=cursor.page_index,
            limit=paging_limit,
            skip=cursor.skip,
        )

        with tracer.start_as_current_span("bucket_storage.list_page") as span:
            span.set_attribute("bucket_storage.prefix", criteria.prefix)
            span.set_attribute("bucket_storage.page_index", cursor.page_index)
            objects, cancelled = self._accumulate(
                criteria,
                marker=cursor.marker,
                total_limit=total_limit,
                max_keys=min(paging_limit, self.max_keys),
                cancel_requested=cancel_requested,
            )

        window = objects[cursor.skip : cursor.skip + paging_limit]
        has_more = bounded and len(window) == paging_limit
        next_cursor = None
        if has_more:
            window = window[:-1]
            next_cursor = ListingCursor(
                pattern=cursor.pattern,
                page_size=page_size,
                page_index=cursor.page_index + 1,
                marker=window[-1].key,
            )

        if cancelled:
            self.logger.info(
                "File listing cancelled", page=cursor.page_index, count=len(window)
            )

        return Page(
            items=tuple(to_file_spec(obj) for obj in window),
            has_more=has_more,
            next_cursor=next_cursor,
            cancelled=cancelled,
            fetcher=self,
        )

    def list_all(
        self,
        pattern: Optional[str] = None,
        limit: Optional[int] = None,
        skip: Optional[int] = None,
    ) -> list[FileSpec]:
        """Return every file matching ``pattern`` in one list.

        Args:
            pattern: Key prefix or wildcard pattern; None lists everything
            limit: Maximum number of files; None means no limit
            skip: Matching files to pass over first

        Returns:
            Files in provider order
        """
        if limit is not None and limit <= 0:
            return []

        criteria = resolve_search_criteria(pattern)
        offset = skip or 0
        total_limit = offset + limit if limit is not None else None

        self.logger.debug(
            "Getting file list",
            pattern=pattern,
            prefix=criteria.prefix,
            limit=limit,
            skip=skip,
        )

        objects, _ = self._accumulate(
            criteria,
            marker=None,
            total_limit=total_limit,
            max_keys=min(total_limit, self.max_keys) if total_limit else self.max_keys,
        )

        objects = objects[offset:]
        if limit is not None:
            objects = objects[:limit]
        return [to_file_spec(obj) for obj in objects]

    def _accumulate(
        self,
        criteria: SearchCriteria,
        marker: Optional[str],
        total_limit: Optional[int],
        max_keys: int,
        cancel_requested: Optional[Callable[[], bool]] = None,
    ) -> tuple[list[ObjectSummary], bool]:
        """Collect matching objects across provider pages.

        Returns the matching objects and whether cancellation stopped the loop.

        Raises:
            ObjectNotFoundError: If the bucket does not exist
            StorageOperationError: If any other provider call fails
        """
        accumulated: list[ObjectSummary] = []
        while True:
            result = self.adapter.list_objects(criteria.prefix, marker, max_keys)
            if not result.ok:
                self.logger.error(
                    "Unable to list files",
                    prefix=criteria.prefix,
                    marker=marker,
                    error=str(result.error),
                )
            listing = result.unwrap(key=criteria.prefix)
            marker = listing.next_marker
            for obj in listing.objects:
                if not criteria.matches(obj.key):
                    self.logger.debug("Skipping file not matching pattern", path=obj.key)
                    continue
                accumulated.append(obj)

            if marker is None:
                return accumulated, False
            if total_limit is not None and len(accumulated) >= total_limit:
                return accumulated, False
            if cancel_requested is not None and cancel_requested():
                return accumulated, True
