"""Mutations against the master, followed by wholesale cache invalidation."""

from __future__ import annotations

import json
from typing import TYPE_CHECKING, Any

from ..logger import get_logger
from .schema import BIGINT_MAX, BIGINT_MIN, BLOGS_TABLE

if TYPE_CHECKING:
    from ..cache import CacheLayer
    from ..infrastructure.postgres import EndpointRegistry

logger = get_logger(__name__)

# The bigint cast lets ids beyond the int4 range of the column compare as
# plain non-matches instead of failing parameter encoding.
DELETE_BLOG = f"DELETE FROM {BLOGS_TABLE} WHERE id = $1::bigint"


class WriteCoordinator:
    """Apply writes to the master only and drop every cached read afterwards.

    The cache is cleared only once the statement has succeeded; a failed
    write propagates its error and leaves the cache alone. Reads already in
    flight when a write completes may still cache what they read; only
    later reads are guaranteed to miss.
    """

    __slots__ = ("_cache", "_registry")

    def __init__(self, registry: EndpointRegistry, cache: CacheLayer) -> None:
        self._registry = registry
        self._cache = cache

    async def acreate(self, payload: Any) -> int:
        """Store ``payload`` as an opaque JSON document and return the new id."""
        master = self._registry.acquire_write()
        blog_id: int = await master.afetchval(
            f"INSERT INTO {BLOGS_TABLE} (data) VALUES ($1::jsonb) RETURNING id",
            json.dumps(payload),
        )
        self._cache.invalidate_all()
        logger.info("Blog created", blog_id=blog_id, endpoint=master.name)
        return blog_id

    async def adelete(self, blog_id: int) -> None:
        """Delete by id. Deleting an id that does not exist is not an error."""
        master = self._registry.acquire_write()
        if not BIGINT_MIN <= blog_id <= BIGINT_MAX:
            status = "DELETE 0"
        else:
            status = await master.aexecute(DELETE_BLOG, blog_id)
        self._cache.invalidate_all()
        logger.info("Blog deleted", blog_id=blog_id, status=status, endpoint=master.name)
