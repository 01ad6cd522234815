"""Search pattern translation for prefix-based object listing.

The listing API only filters by key prefix. A shell-style pattern such as
``logs/2024-*.json`` is split into the longest literal folder prefix that
can be sent to the provider (``logs/``) and a regex that is applied to each
returned key on the client side.
"""

import re
from dataclasses import dataclass
from typing import Optional

WILDCARD = "*"


@dataclass(frozen=True)
class SearchCriteria:
    """Provider prefix plus an optional client-side key matcher."""

    prefix: str
    matcher: Optional[re.Pattern] = None

    def matches(self, key: str) -> bool:
        """Return True if the key passes the client-side filter."""
        return self.matcher is None or self.matcher.fullmatch(key) is not None


def normalize_path(path: Optional[str]) -> Optional[str]:
    """Convert backslash separators to forward slashes."""
    if path is None:
        return None
    return path.replace("\\", "/")


def resolve_search_criteria(pattern: Optional[str]) -> SearchCriteria:
    """Resolve a search pattern into a listing prefix and optional matcher.

    Args:
        pattern: Key prefix or wildcard pattern, e.g. ``folder/*.txt``

    Returns:
        SearchCriteria whose prefix never contains a wildcard
    """
    if not pattern:
        return SearchCriteria(prefix="")

    normalized = normalize_path(pattern)
    wildcard_pos = normalized.find(WILDCARD)
    if wildcard_pos < 0:
        return SearchCriteria(prefix=normalized)

    regex = "^" + re.escape(normalized).replace(re.escape(WILDCARD), ".*") + "$"
    slash_pos = normalized.rfind("/", 0, wildcard_pos)
    prefix = normalized[: slash_pos + 1] if slash_pos >= 0 else ""

    return SearchCriteria(prefix=prefix, matcher=re.compile(regex, re.DOTALL))
