"""Derive the displayed subset of an aggregated feed."""

from __future__ import annotations

from typing import List, Sequence

from newsdash.models import NormalizedArticle

__all__ = ["ALL_SOURCES", "view"]

#: Source filter value that disables filtering by ``api_source``.
ALL_SOURCES = "all"


def view(
    articles: Sequence[NormalizedArticle],
    source_filter: str | None = ALL_SOURCES,
    search_term: str | None = "",
) -> List[NormalizedArticle]:
    """Return the articles matching both the source filter and the search term.

    ``source_filter`` must equal an article's ``api_source`` exactly unless it
    is empty or :data:`ALL_SOURCES`. ``search_term`` is matched
    case-insensitively against the title or the description. The input order is
    kept and ``articles`` is never modified.
    """

    result = list(articles)

    if source_filter and source_filter != ALL_SOURCES:
        result = [article for article in result if article.api_source == source_filter]

    if search_term:
        query = search_term.lower()
        result = [
            article
            for article in result
            if query in article.title.lower() or query in article.description.lower()
        ]

    return result
