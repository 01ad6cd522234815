"""Data models for stored files and paged listings."""

from dataclasses import asdict, dataclass, field
from datetime import datetime
from typing import Any, Callable, Optional, Protocol


@dataclass(frozen=True)
class FileSpec:
    """Metadata snapshot of one stored object."""

    path: str
    size: int
    created: Optional[datetime] = None
    modified: Optional[datetime] = None


@dataclass(frozen=True)
class ListingCursor:
    """Position from which the next page of a listing is fetched.

    A cursor is a plain value: it can be stored with ``to_dict`` and handed
    back to ``FileLister.fetch_page`` later, even from another process.
    ``marker`` is the provider key to resume after; ``None`` starts from
    the beginning of the listing.
    """

    pattern: Optional[str]
    page_size: int
    page_index: int = 1
    marker: Optional[str] = None
    skip: int = 0

    def to_dict(self) -> dict[str, Any]:
        return asdict(self)

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "ListingCursor":
        return cls(**data)


class PageFetcher(Protocol):
    """Anything that can turn a cursor into a page."""

    def fetch_page(
        self,
        cursor: ListingCursor,
        cancel_requested: Optional[Callable[[], bool]] = None,
    ) -> "Page": ...


@dataclass(frozen=True)
class Page:
    """One page of a file listing.

    ``cancelled`` marks a best-effort page cut short by a cancellation
    request; its items may be incomplete.
    """

    items: tuple[FileSpec, ...] = ()
    has_more: bool = False
    next_cursor: Optional[ListingCursor] = None
    cancelled: bool = False
    fetcher: Optional[PageFetcher] = field(default=None, repr=False, compare=False)

    def __post_init__(self):
        if not self.has_more and self.next_cursor is not None:
            raise ValueError("A terminal page cannot carry a continuation cursor")
        if self.has_more and self.next_cursor is None:
            raise ValueError("A page with more results needs a continuation cursor")

    @classmethod
    def empty(cls) -> "Page":
        return cls()

    def next_page(self, cancel_requested: Optional[Callable[[], bool]] = None) -> "Page":
        """Fetch the following page, or an empty terminal page at the end."""
        if not self.has_more or self.fetcher is None:
            return Page.empty()
        return self.fetcher.fetch_page(self.next_cursor, cancel_requested)  # type: ignore[arg-type]

    def __len__(self) -> int:
        return len(self.items)

    def __iter__(self):
        return iter(self.items)
