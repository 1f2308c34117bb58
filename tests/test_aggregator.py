from __future__ import annotations

import asyncio
import threading
from types import SimpleNamespace

import pytest
import requests

from newsdash.config import AppConfig
from newsdash.models import NormalizedArticle
from newsdash.services.aggregator import UnknownSourceError, aggregate, build_sources, sort_articles
from newsdash.services.sources import NewsApiSource, create_source


def make_article(title: str, published_at: str = "", api_source: str = "NewsAPI") -> NormalizedArticle:
    return NormalizedArticle(
        title=title,
        url=f"https://example.com/{title.lower()}",
        published_at=published_at,
        source_label="Example",
        api_source=api_source,
    )


def fake_source(name: str, articles: list[NormalizedArticle]) -> SimpleNamespace:
    return SimpleNamespace(name=name, fetch=lambda: list(articles))


def failing_source(name: str = "NYTimes"):
    config = AppConfig.default().get_source(name)
    source = create_source(config)

    def failing_get(url, params=None, timeout=None):
        raise requests.ConnectionError("down")

    source._session = SimpleNamespace(get=failing_get)
    return source


def test_scenario_partial_failure_keeps_surviving_sources() -> None:
    x = make_article("X", "2024-01-02T00:00:00.000Z", "NewsAPI")
    y = make_article("Y", "2024-01-03T00:00:00.000Z", "EventRegistry")

    result = asyncio.run(
        aggregate([fake_source("NewsAPI", [x]), fake_source("EventRegistry", [y]), failing_source()])
    )

    assert [article.title for article in result] == ["Y", "X"]


def test_one_failed_source_equals_sorted_concatenation_of_others() -> None:
    first = [make_article("A1", "2024-05-01T10:00:00.000Z"), make_article("A2", "2024-05-03T10:00:00.000Z")]
    second = [make_article("B1", "2024-05-02T10:00:00.000Z", "NYTimes")]

    result = asyncio.run(
        aggregate([fake_source("NewsAPI", first), failing_source("EventRegistry"), fake_source("NYTimes", second)])
    )

    assert result == sort_articles(first + second)
    assert [article.title for article in result] == ["A2", "B1", "A1"]


def test_all_sources_failing_returns_empty_feed() -> None:
    assert asyncio.run(aggregate([failing_source("NewsAPI"), failing_source("NYTimes")])) == []


def test_aggregate_runs_sources_concurrently() -> None:
    barrier = threading.Barrier(3, timeout=5)

    def waiting_fetch(title: str):
        def fetch():
            barrier.wait()
            return [make_article(title, "2024-01-01T00:00:00.000Z")]

        return fetch

    sources = [SimpleNamespace(name=name, fetch=waiting_fetch(name)) for name in ("A", "B", "C")]

    result = asyncio.run(aggregate(sources))

    assert [article.title for article in result] == ["A", "B", "C"]


def test_sort_puts_empty_timestamps_last_and_keeps_ties_stable() -> None:
    articles = [
        make_article("Empty1"),
        make_article("Old", "2023-12-31T23:59:59.000Z"),
        make_article("TieA", "2024-02-01T00:00:00.000Z"),
        make_article("Empty2"),
        make_article("TieB", "2024-02-01T00:00:00.000Z"),
        make_article("New", "2024-03-01T00:00:00.000Z"),
    ]

    result = sort_articles(articles)

    assert [article.title for article in result] == ["New", "TieA", "TieB", "Old", "Empty1", "Empty2"]
    assert [article.title for article in articles][0] == "Empty1"


def test_sort_compares_instants_across_offsets() -> None:
    articles = [
        make_article("Earlier", "2024-01-02T10:00:00.000Z"),
        make_article("Later", "2024-01-02T06:00:00-05:00"),
    ]

    assert [article.title for article in sort_articles(articles)] == ["Later", "Earlier"]


def test_build_sources_follows_declaration_order() -> None:
    sources = build_sources(AppConfig.default())

    assert [source.name for source in sources] == ["NewsAPI", "EventRegistry", "NYTimes"]


def test_build_sources_restricts_to_slug() -> None:
    sources = build_sources(AppConfig.default(), slug="nytimes")

    assert [source.name for source in sources] == ["NYTimes"]


def test_build_sources_rejects_unknown_slug() -> None:
    with pytest.raises(UnknownSourceError):
        build_sources(AppConfig.default(), slug="guardian")


def test_build_sources_forwards_category_to_newsapi_only() -> None:
    config = AppConfig.default()

    sources = build_sources(config, category="technology")

    newsapi = sources[0]
    assert isinstance(newsapi, NewsApiSource)
    assert newsapi.build_params()["category"] == "technology"
    assert "category" not in sources[1].build_params()
    assert "category" not in sources[2].build_params()
    assert "category" not in config.sources[0].params
