import math
import re

DEFAULT_PAGE = 1
DEFAULT_PAGE_LIMIT = 10
MAX_PAGE_LIMIT = 100
# Keeps (page - 1) * limit within sqlite's signed 64-bit OFFSET.
MAX_PAGE = (2**63 - 1) // MAX_PAGE_LIMIT


_LEADING_INT_RE = re.compile(r"^\s*([+-]?\d+)")


def _positive_int(value, default):
    """Leading integer of ``value`` ("2abc" -> 2, "1.5" -> 1), or ``default`` if absent or < 1."""
    match = _LEADING_INT_RE.match(value) if isinstance(value, str) else None
    if not match:
        return default
    number = int(match.group(1))
    return number if number >= 1 else default


def page_args(args):
    """Read ``page`` and ``limit`` from query args, falling back to the defaults."""
    page = min(_positive_int(args.get("page"), DEFAULT_PAGE), MAX_PAGE)
    limit = min(_positive_int(args.get("limit"), DEFAULT_PAGE_LIMIT), MAX_PAGE_LIMIT)
    return page, limit


def pagination(page: int, limit: int, returned: int, total: int) -> dict:
    skip = (page - 1) * limit
    return {
        "currentPage": page,
        "totalPages": math.ceil(total / limit),
        "totalPosts": total,
        "hasMore": skip + returned < total,
    }


class FeedService:
    """Reverse-chronological feed over the post store, optionally scoped to one author."""

    def __init__(self, posts):
        self.posts = posts

    def page(self, page=DEFAULT_PAGE, limit=DEFAULT_PAGE_LIMIT, author_id=None, viewer_id=None) -> dict:
        posts, total = self.posts.list_page(
            author_id=author_id, page=page, limit=limit, viewer_id=viewer_id
        )
        return {"posts": posts, "pagination": pagination(page, limit, len(posts), total)}
