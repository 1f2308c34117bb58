"""Domain models used across the application."""

from __future__ import annotations

from datetime import UTC, datetime
from email.utils import parsedate_to_datetime

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel

__all__ = [
    "DEFAULT_IMAGE_PATH",
    "NO_TITLE",
    "NormalizedArticle",
    "format_timestamp",
    "parse_timestamp",
]

#: Image served by the application for articles without an upstream picture.
DEFAULT_IMAGE_PATH = "/static/default-news.svg"

NO_TITLE = "No title available"


class NormalizedArticle(BaseModel):
    """Canonical article shape shared by every source adapter.

    Serialised with camelCase keys (``imageUrl``, ``publishedAt``, ...) so the
    dashboard script can consume the JSON directly.
    """

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    title: str = NO_TITLE
    description: str = ""
    url: str
    image_url: str = DEFAULT_IMAGE_PATH
    published_at: str = Field(default="", description="ISO-8601 UTC timestamp or empty string")
    source_label: str
    api_source: str

    @property
    def published_datetime(self) -> datetime | None:
        return parse_timestamp(self.published_at)


def parse_timestamp(value: object) -> datetime | None:
    """Parse an upstream timestamp into an aware :class:`datetime`.

    Understands ISO-8601 strings (with or without offset, ``Z`` included), epoch
    seconds or milliseconds given as digits, and RFC 2822 dates. Naive values
    are taken to be UTC. Returns ``None`` for empty or unparseable input.
    """

    if value is None:
        return None

    text = str(value).strip()
    if not text:
        return None

    parsed: datetime | None = None
    if text.isascii() and text.isdigit():
        number = int(text)
        if number > 100_000_000_000:
            number //= 1000
        try:
            parsed = datetime.fromtimestamp(number, UTC)
        except (OverflowError, OSError, ValueError):
            return None
    else:
        try:
            parsed = datetime.fromisoformat(text)
        except ValueError:
            try:
                parsed = parsedate_to_datetime(text)
            except (TypeError, ValueError, IndexError):
                return None

    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=UTC)
    return parsed


def format_timestamp(value: datetime) -> str:
    """Render ``value`` as ``YYYY-MM-DDTHH:MM:SS.mmmZ`` in UTC."""

    return value.astimezone(UTC).isoformat(timespec="milliseconds").replace("+00:00", "Z")
