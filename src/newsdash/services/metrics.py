"""Lightweight analytics over an aggregated feed."""

from __future__ import annotations

import json
import logging
from datetime import UTC, datetime
from typing import Dict, List, Sequence

from pydantic import BaseModel, Field

from newsdash.models import DEFAULT_IMAGE_PATH, NormalizedArticle

__all__ = ["FeedMetrics", "TimeDistribution", "log_feed_metrics", "measure_feed"]

logger = logging.getLogger(__name__)


class TimeDistribution(BaseModel):
    average: float | None = None
    min: float | None = None
    max: float | None = None
    unit: str = "hours"


class FeedMetrics(BaseModel):
    """Summary of one dashboard load."""

    total_articles: int = 0
    articles_by_source: Dict[str, int] = Field(default_factory=dict)
    image_percentage: float = 0.0
    time_distribution: TimeDistribution = Field(default_factory=TimeDistribution)
    data_size_kb: float = 0.0


def measure_feed(articles: Sequence[NormalizedArticle], now: datetime | None = None) -> FeedMetrics:
    """Compute :class:`FeedMetrics` for ``articles``.

    Publication age is only measured over articles with a parseable timestamp.
    """

    reference = now or datetime.now(UTC)

    by_source: Dict[str, int] = {}
    for article in articles:
        by_source[article.api_source] = by_source.get(article.api_source, 0) + 1

    with_image = sum(1 for article in articles if article.image_url != DEFAULT_IMAGE_PATH)
    image_percentage = round(with_image / len(articles) * 100, 2) if articles else 0.0

    ages: List[float] = []
    for article in articles:
        published = article.published_datetime
        if published is not None:
            ages.append((reference - published).total_seconds() / 3600)

    distribution = TimeDistribution()
    if ages:
        distribution = TimeDistribution(
            average=round(sum(ages) / len(ages), 2),
            min=round(min(ages), 2),
            max=round(max(ages), 2),
        )

    payload = json.dumps([article.model_dump(by_alias=True) for article in articles])

    return FeedMetrics(
        total_articles=len(articles),
        articles_by_source=by_source,
        image_percentage=image_percentage,
        time_distribution=distribution,
        data_size_kb=round(len(payload) / 1024, 2),
    )


def log_feed_metrics(metrics: FeedMetrics) -> None:
    logger.info(
        "Feed loaded: %d articles %s, %.2f%% with images, age %s, %.2f KB",
        metrics.total_articles,
        metrics.articles_by_source,
        metrics.image_percentage,
        metrics.time_distribution.model_dump(),
        metrics.data_size_kb,
    )
