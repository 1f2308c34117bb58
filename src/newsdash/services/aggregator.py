"""Concurrent fan-out over the configured sources with a recency merge."""

from __future__ import annotations

import asyncio
import logging
from datetime import UTC, datetime
from typing import Iterable, List, Sequence

from fastapi.concurrency import run_in_threadpool

from newsdash.config import AppConfig
from newsdash.models import NormalizedArticle
from newsdash.services.sources import NewsSource, create_source

__all__ = ["UnknownSourceError", "aggregate", "build_sources", "sort_articles"]

logger = logging.getLogger(__name__)

_OLDEST = datetime.min.replace(tzinfo=UTC)


class UnknownSourceError(LookupError):
    """Raised when a source slug does not match any configured source."""


def build_sources(
    config: AppConfig,
    *,
    slug: str | None = None,
    category: str | None = None,
) -> List[NewsSource]:
    """Create fresh adapters for ``config``, in declaration order.

    ``slug`` restricts the result to a single source. ``category`` is forwarded
    to NewsAPI sources as their top-headlines category.
    """

    selected = list(config.iter_sources())
    if slug:
        source = config.get_source(slug)
        if source is None:
            raise UnknownSourceError(slug)
        selected = [source]

    adapters: List[NewsSource] = []
    for source in selected:
        if category and source.kind == "newsapi":
            source = source.model_copy(update={"params": {**source.params, "category": category}})
        adapters.append(create_source(source))
    return adapters


def sort_articles(articles: Iterable[NormalizedArticle]) -> List[NormalizedArticle]:
    """Return ``articles`` newest first.

    Missing or unparseable timestamps count as the oldest possible value. The
    sort is stable, so ties keep their incoming order.
    """

    return sorted(
        articles,
        key=lambda article: article.published_datetime or _OLDEST,
        reverse=True,
    )


async def aggregate(sources: Sequence[NewsSource]) -> List[NormalizedArticle]:
    """Fetch every source concurrently and merge the results by recency.

    Each adapter's blocking ``fetch`` runs in the threadpool; the call returns
    once all of them have finished. Adapters report their own failures as empty
    lists, so partial results are returned as they are.
    """

    results = await asyncio.gather(*(run_in_threadpool(source.fetch) for source in sources))

    merged: List[NormalizedArticle] = []
    for source, articles in zip(sources, results):
        if not articles:
            logger.info("%s contributed no articles", source.name)
        merged.extend(articles)

    return sort_articles(merged)
