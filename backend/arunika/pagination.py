"""Page/limit query parameters to offset ranges and back."""

from dataclasses import dataclass
from typing import Any

DEFAULT_PAGE = 1
DEFAULT_LIMIT = 10


def _parse_positive(raw: Any, default: int) -> int:
    # garbage input falls back to the default instead of raising
    try:
        value = int(str(raw).strip())
    except (TypeError, ValueError):
        return default
    return value if value >= 1 else default


@dataclass(frozen=True)
class Page:
    """A resolved pagination window.

    `offset` and `end` are inclusive row positions, the way range based
    stores address a slice (`page=2, limit=10` -> rows 10..19).
    """
    offset: int
    limit: int

    @property
    def end(self) -> int:
        return self.offset + self.limit - 1

    def derive_result(self, total: int) -> dict:
        """Pagination metadata for a result set of `total` rows.

        `page` is recomputed from offset/limit rather than echoed from
        the request, so it always agrees with the window that was used.
        """
        return {
            "total": total,
            "limit": self.limit,
            "page": self.offset // self.limit + 1,
        }


def paginate(page_param: Any = None, limit_param: Any = None) -> Page:
    """Resolve raw `page`/`limit` query values into a `Page`.

    Missing, non-numeric or non-positive values use the defaults
    (page 1, limit 10), so the offset is never negative. There is no
    upper bound on `limit` here.
    """
    page = _parse_positive(page_param, DEFAULT_PAGE)
    limit = _parse_positive(limit_param, DEFAULT_LIMIT)
    return Page(offset=(page - 1) * limit, limit=limit)
