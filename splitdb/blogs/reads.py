"""Cached, replica-routed reads of the blog listing."""

from __future__ import annotations

from typing import TYPE_CHECKING

from ..cache import page_cache_key
from ..logger import get_logger
from .domain import BlogPage, record_to_blog
from .schema import BLOGS_TABLE

if TYPE_CHECKING:
    from ..cache import CacheLayer
    from ..routing import ReadRouter

logger = get_logger(__name__)

LIST_BLOGS = f"SELECT id, data, created_at FROM {BLOGS_TABLE} ORDER BY id DESC LIMIT $1 OFFSET $2"


class BlogReader:
    """Serve pages from the cache, falling back to the next replica in turn."""

    __slots__ = ("_cache", "_router")

    def __init__(self, router: ReadRouter, cache: CacheLayer) -> None:
        self._router = router
        self._cache = cache

    async def alist(self, page: int = 1, limit: int = 5) -> BlogPage:
        """Return one page of blogs, newest first.

        Parameters
        ----------
        page
            1-based page number.
        limit
            Page size.

        Returns
        -------
        BlogPage
            With ``source="cache"`` on a hit, otherwise the serving replica's name.
        """
        key = page_cache_key(page, limit)
        entry = self._cache.entry(key)
        if entry is not None:
            cached: BlogPage = entry.value
            logger.info("Blogs served from cache", cache_key=key, age_seconds=round(self._cache.age(entry), 3))
            return cached.from_cache()

        replica = self._router.next()
        rows = await replica.afetch(LIST_BLOGS, limit, (page - 1) * limit)
        blogs = tuple(record_to_blog(row) for row in rows)

        result = BlogPage(source=replica.name, page=page, limit=limit, size=len(blogs), blogs=blogs)
        self._cache.set(key, result)
        logger.info("Blogs fetched from replica", source=replica.name, page=page, limit=limit, size=len(blogs))
        return result
