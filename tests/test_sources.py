from __future__ import annotations

from types import SimpleNamespace
from unittest.mock import patch

import pytest
import requests

from newsdash.config import AppConfig
from newsdash.models import DEFAULT_IMAGE_PATH, NO_TITLE
from newsdash.services.sources import (
    EventRegistrySource,
    NewsApiSource,
    NYTimesSource,
    create_source,
    normalize_timestamp,
)


class DummyResponse:
    def __init__(self, payload, status_code: int = 200) -> None:
        self.payload = payload
        self.status_code = status_code

    def raise_for_status(self) -> None:
        if self.status_code >= 400:
            raise requests.HTTPError(f"{self.status_code} error")

    def json(self):
        if isinstance(self.payload, Exception):
            raise self.payload
        return self.payload


def _source(kind: str):
    config = next(source for source in AppConfig.default().sources if source.kind == kind)
    return create_source(config)


def _serve(source, payload, status_code: int = 200) -> dict:
    captured: dict = {}

    def fake_get(url, params=None, timeout=None):
        captured["url"] = url
        captured["params"] = params
        captured["timeout"] = timeout
        return DummyResponse(payload, status_code)

    source._session = SimpleNamespace(get=fake_get)
    return captured


def test_create_source_picks_adapter_by_kind() -> None:
    assert isinstance(_source("newsapi"), NewsApiSource)
    assert isinstance(_source("eventregistry"), EventRegistrySource)
    assert isinstance(_source("nytimes"), NYTimesSource)


def test_newsapi_maps_articles_and_request(monkeypatch) -> None:
    monkeypatch.setenv("NEWS_API_KEY", "news-key")
    source = _source("newsapi")
    captured = _serve(
        source,
        {
            "status": "ok",
            "articles": [
                {
                    "source": {"id": None, "name": "BBC News"},
                    "title": "Headline",
                    "description": "What happened",
                    "url": "https://bbc.example.com/a",
                    "urlToImage": None,
                    "publishedAt": "2024-01-02T10:00:00Z",
                }
            ],
        },
    )

    articles = source.fetch()

    assert captured["url"] == "https://newsapi.org/v2/top-headlines"
    assert captured["params"] == {"country": "us", "pageSize": "5", "apiKey": "news-key"}
    assert captured["timeout"] is None

    assert len(articles) == 1
    article = articles[0]
    assert article.title == "Headline"
    assert article.description == "What happened"
    assert article.url == "https://bbc.example.com/a"
    assert article.image_url == DEFAULT_IMAGE_PATH
    assert article.published_at == "2024-01-02T10:00:00.000Z"
    assert article.source_label == "BBC News"
    assert article.api_source == "NewsAPI"


def test_newsapi_fallbacks_for_missing_fields() -> None:
    source = _source("newsapi")
    _serve(source, {"articles": [{"url": "https://example.com/1"}]})

    [article] = source.fetch()

    assert article.title == NO_TITLE
    assert article.description == ""
    assert article.image_url == DEFAULT_IMAGE_PATH
    assert article.published_at == ""
    assert article.source_label == "NewsAPI"


def test_eventregistry_prefers_body_then_summary() -> None:
    source = _source("eventregistry")
    captured = _serve(
        source,
        {
            "articles": {
                "results": [
                    {
                        "title": "With body",
                        "body": "Full body",
                        "summary": "Short",
                        "url": "https://er.example.com/1",
                        "image": "https://er.example.com/1.jpg",
                        "dateTime": "2024-03-01T08:30:00Z",
                        "source": {"title": "Reuters"},
                    },
                    {
                        "title": "Summary only",
                        "summary": "Short",
                        "url": "https://er.example.com/2",
                    },
                    {"title": "Nothing", "url": "https://er.example.com/3"},
                ]
            }
        },
    )

    first, second, third = source.fetch()

    assert captured["params"]["articlesCount"] == "5"
    assert captured["params"]["lang"] == "eng"
    assert first.description == "Full body"
    assert first.image_url == "https://er.example.com/1.jpg"
    assert first.published_at == "2024-03-01T08:30:00.000Z"
    assert first.source_label == "Reuters"
    assert second.description == "Short"
    assert second.source_label == "Event Registry"
    assert third.description == ""
    assert {article.api_source for article in (first, second, third)} == {"EventRegistry"}


def test_nytimes_limits_results_and_uses_first_multimedia() -> None:
    source = _source("nytimes")
    results = [
        {
            "title": f"Story {index}",
            "abstract": f"Abstract {index}",
            "url": f"https://www.nytimes.com/{index}",
            "multimedia": [{"url": f"https://static01.nyt.com/{index}.jpg"}, {"url": "ignored"}],
            "published_date": "2024-01-02T05:00:03-05:00",
        }
        for index in range(7)
    ]
    results[1]["multimedia"] = None
    captured = _serve(source, {"results": results})

    articles = source.fetch()

    assert "api-key" in captured["params"]
    assert [article.title for article in articles] == [f"Story {index}" for index in range(5)]
    assert articles[0].image_url == "https://static01.nyt.com/0.jpg"
    assert articles[1].image_url == DEFAULT_IMAGE_PATH
    assert articles[0].published_at == "2024-01-02T10:00:03.000Z"
    assert articles[0].source_label == "New York Times"
    assert articles[0].api_source == "NYTimes"


def test_fetch_returns_empty_list_on_http_error() -> None:
    source = _source("newsapi")
    _serve(source, {"status": "error", "code": "apiKeyMissing"}, status_code=401)

    assert source.fetch() == []


def test_fetch_returns_empty_list_on_connection_error() -> None:
    source = _source("nytimes")

    def failing_get(url, params=None, timeout=None):
        raise requests.ConnectionError("unreachable")

    source._session = SimpleNamespace(get=failing_get)

    assert source.fetch() == []


def test_fetch_returns_empty_list_on_malformed_body() -> None:
    source = _source("eventregistry")
    _serve(source, ValueError("Expecting value"))

    assert source.fetch() == []


def test_fetch_handles_unexpected_envelope() -> None:
    source = _source("newsapi")
    _serve(source, ["not", "an", "object"])

    assert source.fetch() == []


def test_fetch_skips_items_without_url_or_not_objects() -> None:
    source = _source("newsapi")
    _serve(
        source,
        {
            "articles": [
                {"title": "No link"},
                "garbage",
                {"title": "Kept", "url": "https://example.com/kept"},
            ]
        },
    )

    assert [article.title for article in source.fetch()] == ["Kept"]


def test_malformed_timestamp_is_treated_as_missing() -> None:
    source = _source("newsapi")
    _serve(
        source,
        {"articles": [{"title": "Odd date", "url": "https://example.com/x", "publishedAt": "yesterday-ish"}]},
    )

    [article] = source.fetch()

    assert article.published_at == ""


def test_normalize_timestamp_formats() -> None:
    assert normalize_timestamp(None, source="test") == ""
    assert normalize_timestamp("  ", source="test") == ""
    assert normalize_timestamp("2024-01-02", source="test") == "2024-01-02T00:00:00.000Z"
    assert normalize_timestamp("1704153600", source="test") == "2024-01-02T00:00:00.000Z"
    assert normalize_timestamp("1704153600000", source="test") == "2024-01-02T00:00:00.000Z"
    assert normalize_timestamp("Tue, 02 Jan 2024 00:00:00 GMT", source="test") == "2024-01-02T00:00:00.000Z"
    assert normalize_timestamp("not a date", source="test") == ""


@pytest.mark.parametrize(
    "odd_value",
    ["0001-01-01T00:00:00+01:00", "9999-12-31T23:59:59-01:00", "²"],
)
def test_out_of_range_timestamp_does_not_drop_other_articles(odd_value: str) -> None:
    source = _source("newsapi")
    _serve(
        source,
        {
            "articles": [
                {"title": "Good", "url": "https://example.com/good", "publishedAt": "2024-01-02T00:00:00Z"},
                {"title": "Odd", "url": "https://example.com/odd", "publishedAt": odd_value},
            ]
        },
    )

    articles = source.fetch()

    assert [article.title for article in articles] == ["Good", "Odd"]
    assert [article.published_at for article in articles] == ["2024-01-02T00:00:00.000Z", ""]


def test_fetch_closes_the_session_it_created() -> None:
    config = next(source for source in AppConfig.default().sources if source.kind == "nytimes")

    with patch("newsdash.services.sources.requests.Session") as session_class:
        session = session_class.return_value
        session.get.return_value = DummyResponse({"results": []})
        source = create_source(config)

        assert source.fetch() == []

    session.close.assert_called_once_with()


def test_fetch_leaves_a_supplied_session_open() -> None:
    config = next(source for source in AppConfig.default().sources if source.kind == "nytimes")
    session = SimpleNamespace(headers={}, get=lambda url, params=None, timeout=None: DummyResponse({"results": []}))

    source = create_source(config, session=session)
    source.fetch()

    assert session.headers["Accept"] == "application/json"
