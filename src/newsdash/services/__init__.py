"""Service layer entry points for the News Dashboard."""

from __future__ import annotations

from .aggregator import aggregate, build_sources, sort_articles  # noqa: F401
from .filters import ALL_SOURCES, view  # noqa: F401
from .sources import NewsSource, create_source  # noqa: F401

__all__ = [
    "ALL_SOURCES",
    "NewsSource",
    "aggregate",
    "build_sources",
    "create_source",
    "sort_articles",
    "view",
]
