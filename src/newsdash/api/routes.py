"""API routes exposing the aggregated news feed."""

from __future__ import annotations

import logging
from typing import List

from fastapi import APIRouter, HTTPException, Query
from pydantic import BaseModel, Field

from newsdash.config import AppConfig
from newsdash.models import NormalizedArticle
from newsdash.services.aggregator import UnknownSourceError, aggregate, build_sources
from newsdash.services.filters import ALL_SOURCES, view
from newsdash.services.metrics import FeedMetrics, log_feed_metrics, measure_feed

logger = logging.getLogger(__name__)

router = APIRouter()


class SourceEntry(BaseModel):
    name: str
    slug: str
    host: str


class SourcesResponse(BaseModel):
    sources: List[SourceEntry] = Field(default_factory=list)


def load_config() -> AppConfig:
    """Load the source configuration, falling back to the stock sources when absent."""

    try:
        return AppConfig.load()
    except ValueError as exc:
        raise HTTPException(status_code=500, detail=str(exc)) from exc


async def _collect(source: str | None, category: str | None) -> List[NormalizedArticle]:
    config = load_config()
    try:
        adapters = build_sources(config, slug=source, category=category)
    except UnknownSourceError as exc:
        raise HTTPException(status_code=404, detail=f"Unknown source: {source}") from exc

    return await aggregate(adapters)


@router.get("/news", response_model=List[NormalizedArticle])
async def list_news(
    source: str | None = Query(default=None, description="Only query the source with this slug"),
    category: str | None = Query(default=None, description="NewsAPI top-headlines category"),
    q: str = Query(default="", description="Case-insensitive search on title or description"),
    api_source: str = Query(default=ALL_SOURCES, description="Keep only articles with this apiSource"),
) -> List[NormalizedArticle]:
    """Return the merged feed, newest first."""

    articles = await _collect(source, category)
    log_feed_metrics(measure_feed(articles))
    return view(articles, api_source, q)


@router.get("/news/metrics", response_model=FeedMetrics)
async def news_metrics(
    source: str | None = Query(default=None),
    category: str | None = Query(default=None),
) -> FeedMetrics:
    """Run an aggregation and report analytics about the result."""

    articles = await _collect(source, category)
    return measure_feed(articles)


@router.get("/sources", response_model=SourcesResponse)
async def list_sources() -> SourcesResponse:
    """Return the configured set of news sources."""

    config = load_config()
    return SourcesResponse(
        sources=[
            SourceEntry(name=source.name, slug=source.slug, host=source.host)
            for source in config.iter_sources()
        ]
    )
