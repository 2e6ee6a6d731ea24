from __future__ import annotations

from .domain import CACHE_SOURCE, BlogPage, record_to_blog
from .reads import BlogReader
from .writes import WriteCoordinator

__all__ = [
    "CACHE_SOURCE",
    "BlogPage",
    "BlogReader",
    "WriteCoordinator",
    "record_to_blog",
]
