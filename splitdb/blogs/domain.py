from __future__ import annotations

import json
from datetime import datetime
from typing import TYPE_CHECKING, Any

from pydantic import BaseModel, ConfigDict, Field

if TYPE_CHECKING:
    from asyncpg import Record

CACHE_SOURCE = "cache"


class BlogPage(BaseModel):
    """One page of the blog listing, exactly as returned to clients.

    ``source`` names the replica that served the page, or ``"cache"``.
    """

    model_config = ConfigDict(frozen=True)

    source: str
    page: int = Field(ge=1)
    limit: int = Field(ge=1)
    size: int = Field(ge=0)
    blogs: tuple[dict[str, Any], ...] = ()

    def from_cache(self) -> BlogPage:
        return self.model_copy(update={"source": CACHE_SOURCE})


def record_to_blog(record: Record) -> dict[str, Any]:
    """Flatten a ``blogs`` row into ``{id, **data, created_at}``.

    The stored document is returned untouched, except that ``id`` and
    ``created_at`` always come from the row itself.
    """
    data = record["data"]
    if isinstance(data, str):
        data = json.loads(data)

    created_at: datetime = record["created_at"]
    blog: dict[str, Any] = {"id": record["id"]}
    if isinstance(data, dict):
        blog.update((key, value) for key, value in data.items() if key not in ("id", "created_at"))
    else:
        blog["data"] = data
    blog["created_at"] = created_at.isoformat()
    return blog
