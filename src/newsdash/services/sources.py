"""Source adapters mapping each upstream news API onto :class:`NormalizedArticle`."""

from __future__ import annotations

import logging
from typing import Any, Dict, List, Mapping, Type

import requests

from newsdash.config import SourceConfig
from newsdash.models import (
    DEFAULT_IMAGE_PATH,
    NO_TITLE,
    NormalizedArticle,
    format_timestamp,
    parse_timestamp,
)

__all__ = [
    "EventRegistrySource",
    "NYTimesSource",
    "NewsApiSource",
    "NewsSource",
    "SOURCE_TYPES",
    "create_source",
    "normalize_timestamp",
]

logger = logging.getLogger(__name__)

DEFAULT_HEADERS = {
    "User-Agent": "news-dashboard/0.1",
    "Accept": "application/json",
    "Accept-Language": "en-US,en;q=0.9",
}


def first_text(*values: object) -> str | None:
    """Return the first value that is a non-blank string."""

    for value in values:
        if isinstance(value, str) and value.strip():
            return value
    return None


def nested(item: Mapping[str, Any], *keys: str) -> Any:
    """Walk ``keys`` into nested mappings, returning ``None`` on any missing level."""

    current: Any = item
    for key in keys:
        if not isinstance(current, Mapping):
            return None
        current = current.get(key)
    return current


def normalize_timestamp(value: object, *, source: str) -> str:
    """Return ``value`` as an ISO-8601 UTC string, or ``""`` when missing or malformed."""

    if value is None or (isinstance(value, str) and not value.strip()):
        return ""

    parsed = parse_timestamp(value)
    if parsed is not None:
        try:
            return format_timestamp(parsed)
        except (OverflowError, ValueError):
            pass
    logger.warning("%s: unparseable timestamp %r, sorting it as oldest", source, value)
    return ""


class NewsSource:
    """Base adapter issuing one GET request against a configured news API.

    Subclasses describe the request parameters, where the article list lives in
    the response envelope and how a single item maps onto
    :class:`NormalizedArticle`. :meth:`fetch` never raises; failures are logged
    and yield an empty list.
    """

    provider_label = "Unknown source"

    def __init__(self, config: SourceConfig, session: requests.Session | None = None) -> None:
        self.config = config
        self._owned_session = None if session is not None else requests.Session()
        self._session = session if session is not None else self._owned_session
        self._session.headers.update(DEFAULT_HEADERS)

    @property
    def name(self) -> str:
        return self.config.name

    def close(self) -> None:
        """Close the HTTP session if this adapter created it."""

        if self._owned_session is not None:
            self._owned_session.close()

    def build_params(self) -> Dict[str, str]:
        raise NotImplementedError

    def extract_items(self, payload: Any) -> List[Any]:
        raise NotImplementedError

    def map_item(self, item: Mapping[str, Any]) -> NormalizedArticle:
        raise NotImplementedError

    def fetch(self) -> List[NormalizedArticle]:
        """Request the upstream API and return at most ``page_size`` normalised articles.

        The adapter is single-use: a session it created is closed afterwards.
        """

        url = str(self.config.endpoint)
        try:
            response = self._session.get(url, params=self.build_params(), timeout=self.config.timeout)
            response.raise_for_status()
            payload = response.json()
            items = self.extract_items(payload)[: self.config.page_size]
            articles = [article for article in map(self._normalize, items) if article is not None]
        except requests.RequestException as exc:
            logger.error("%s request to %s failed: %s", self.name, self.config.host, exc)
            return []
        except Exception:  # noqa: BLE001 - a malformed payload must not abort the aggregation
            logger.exception("%s returned a payload that could not be mapped", self.name)
            return []
        finally:
            self.close()

        logger.info("%s returned %d articles", self.name, len(articles))
        return articles

    def _normalize(self, item: Any) -> NormalizedArticle | None:
        if not isinstance(item, Mapping):
            logger.warning("%s: skipping non-object item %r", self.name, item)
            return None
        if not first_text(item.get("url")):
            logger.warning("%s: skipping item without url (title=%r)", self.name, item.get("title"))
            return None
        return self.map_item(item)


class NewsApiSource(NewsSource):
    """Adapter for the NewsAPI ``top-headlines`` endpoint."""

    provider_label = "NewsAPI"

    def build_params(self) -> Dict[str, str]:
        return {
            **self.config.params,
            "pageSize": str(self.config.page_size),
            "apiKey": self.config.api_key,
        }

    def extract_items(self, payload: Any) -> List[Any]:
        items = nested(payload, "articles")
        return list(items) if isinstance(items, list) else []

    def map_item(self, item: Mapping[str, Any]) -> NormalizedArticle:
        return NormalizedArticle(
            title=first_text(item.get("title")) or NO_TITLE,
            description=first_text(item.get("description")) or "",
            url=item["url"],
            image_url=first_text(item.get("urlToImage")) or DEFAULT_IMAGE_PATH,
            published_at=normalize_timestamp(item.get("publishedAt"), source=self.name),
            source_label=first_text(nested(item, "source", "name")) or self.provider_label,
            api_source=self.name,
        )


class EventRegistrySource(NewsSource):
    """Adapter for the EventRegistry ``article/getArticles`` endpoint."""

    provider_label = "Event Registry"

    def build_params(self) -> Dict[str, str]:
        return {
            **self.config.params,
            "articlesCount": str(self.config.page_size),
            "apiKey": self.config.api_key,
        }

    def extract_items(self, payload: Any) -> List[Any]:
        items = nested(payload, "articles", "results")
        return list(items) if isinstance(items, list) else []

    def map_item(self, item: Mapping[str, Any]) -> NormalizedArticle:
        return NormalizedArticle(
            title=first_text(item.get("title")) or NO_TITLE,
            description=first_text(item.get("body"), item.get("summary")) or "",
            url=item["url"],
            image_url=first_text(item.get("image")) or DEFAULT_IMAGE_PATH,
            published_at=normalize_timestamp(item.get("dateTime"), source=self.name),
            source_label=first_text(nested(item, "source", "title")) or self.provider_label,
            api_source=self.name,
        )


class NYTimesSource(NewsSource):
    """Adapter for the New York Times Top Stories API."""

    provider_label = "New York Times"

    def build_params(self) -> Dict[str, str]:
        return {**self.config.params, "api-key": self.config.api_key}

    def extract_items(self, payload: Any) -> List[Any]:
        items = nested(payload, "results")
        return list(items) if isinstance(items, list) else []

    def map_item(self, item: Mapping[str, Any]) -> NormalizedArticle:
        multimedia = item.get("multimedia")
        first_media = multimedia[0] if isinstance(multimedia, list) and multimedia else None
        return NormalizedArticle(
            title=first_text(item.get("title")) or NO_TITLE,
            description=first_text(item.get("abstract")) or "",
            url=item["url"],
            image_url=first_text(nested(first_media, "url")) or DEFAULT_IMAGE_PATH,
            published_at=normalize_timestamp(item.get("published_date"), source=self.name),
            source_label=self.provider_label,
            api_source=self.name,
        )


SOURCE_TYPES: Dict[str, Type[NewsSource]] = {
    "newsapi": NewsApiSource,
    "eventregistry": EventRegistrySource,
    "nytimes": NYTimesSource,
}


def create_source(config: SourceConfig, session: requests.Session | None = None) -> NewsSource:
    """Instantiate the adapter registered for ``config.kind``."""

    return SOURCE_TYPES[config.kind](config, session)
