"""Configuration models and helpers for the News Dashboard."""

from __future__ import annotations

import json
import logging
import os
import re
import secrets
from pathlib import Path
from typing import Dict, Iterable, List, Literal
from urllib.parse import urlparse

from pydantic import BaseModel, Field, HttpUrl, ValidationError

__all__ = [
    "AppConfig",
    "AuthSettings",
    "SourceConfig",
    "DEFAULT_CONFIG_PATH",
    "DEFAULT_PAGE_SIZE",
    "slugify",
]

logger = logging.getLogger(__name__)

DEFAULT_CONFIG_PATH = Path(__file__).resolve().parents[2] / "data" / "sources.json"
DEFAULT_PAGE_SIZE = 5

SourceKind = Literal["newsapi", "eventregistry", "nytimes"]


def slugify(name: str) -> str:
    """Return a slug suitable for use in URLs and DOM element IDs."""

    normalized = re.sub(r"[^a-z0-9]+", "-", name.strip().lower())
    slug = normalized.strip("-")
    return slug or "source"


class SourceConfig(BaseModel):
    """Configuration for a single upstream news API."""

    name: str = Field(..., description="Label used as the apiSource tag, e.g. 'NewsAPI'")
    kind: SourceKind = Field(..., description="Which adapter understands this API's schema")
    endpoint: HttpUrl = Field(..., description="URL the adapter issues its GET request against")
    api_key_env: str = Field(
        ...,
        description="Name of the environment variable holding the API key for this source",
    )
    page_size: int = Field(default=DEFAULT_PAGE_SIZE, ge=1, description="Maximum articles per request")
    params: Dict[str, str] = Field(
        default_factory=dict,
        description="Fixed query parameters such as locale, category or section",
    )
    timeout: float | None = Field(
        default=None,
        description="Optional request timeout in seconds. ``None`` keeps the platform default.",
    )

    @property
    def slug(self) -> str:
        return slugify(self.name)

    @property
    def host(self) -> str:
        return urlparse(str(self.endpoint)).netloc

    @property
    def api_key(self) -> str:
        """Return the API key from the environment, or an empty string when unset.

        A missing key is not an error here; the upstream call is rejected and the
        adapter contributes no articles.
        """

        return os.environ.get(self.api_key_env, "")


class AppConfig(BaseModel):
    """Collection of :class:`SourceConfig` entries, in declaration order."""

    sources: List[SourceConfig] = Field(default_factory=list)

    @classmethod
    def default(cls) -> "AppConfig":
        """Return the stock configuration for the three supported providers."""

        return cls(
            sources=[
                SourceConfig(
                    name="NewsAPI",
                    kind="newsapi",
                    endpoint="https://newsapi.org/v2/top-headlines",
                    api_key_env="NEWS_API_KEY",
                    params={"country": "us"},
                ),
                SourceConfig(
                    name="EventRegistry",
                    kind="eventregistry",
                    endpoint="https://eventregistry.org/api/v1/article/getArticles",
                    api_key_env="EVENT_REGISTRY_API_KEY",
                    params={"lang": "eng", "sortBy": "date", "articlesPage": "1"},
                ),
                SourceConfig(
                    name="NYTimes",
                    kind="nytimes",
                    endpoint="https://api.nytimes.com/svc/topstories/v2/world.json",
                    api_key_env="NYTIMES_API_KEY",
                ),
            ]
        )

    @classmethod
    def from_file(cls, path: Path | str | None = None) -> "AppConfig":
        """Load configuration data from a JSON file."""

        config_path = Path(path) if path else DEFAULT_CONFIG_PATH
        try:
            data = json.loads(config_path.read_text(encoding="utf-8"))
        except FileNotFoundError as exc:
            raise FileNotFoundError(f"Configuration file not found: {config_path}") from exc
        except json.JSONDecodeError as exc:
            raise ValueError(f"Invalid JSON in configuration file: {config_path}") from exc

        try:
            return cls.model_validate(data)
        except ValidationError as exc:
            raise ValueError(f"Configuration file is invalid: {config_path}\n{exc}") from exc

    @classmethod
    def load(cls, path: Path | str | None = None) -> "AppConfig":
        """Like :meth:`from_file`, but fall back to :meth:`default` when the file is absent."""

        try:
            return cls.from_file(path)
        except FileNotFoundError as exc:
            logger.warning("%s; using the default sources", exc)
            return cls.default()

    def dump(self, path: Path | str | None = None) -> None:
        """Persist the configuration back to disk as JSON."""

        config_path = Path(path) if path else DEFAULT_CONFIG_PATH
        config_path.parent.mkdir(parents=True, exist_ok=True)
        config_path.write_text(self.model_dump_json(indent=2), encoding="utf-8")

    def iter_sources(self) -> Iterable[SourceConfig]:
        """Iterate over configured sources."""

        return iter(self.sources)

    def get_source(self, slug: str) -> SourceConfig | None:
        """Return the source whose slug matches ``slug`` (case-insensitive)."""

        wanted = slug.strip().lower()
        return next((source for source in self.sources if source.slug == wanted), None)


class AuthSettings(BaseModel):
    """Google OAuth client and session settings read from the environment."""

    client_id: str = ""
    client_secret: str = ""
    redirect_uri: str = "http://localhost:8000/auth/callback"
    session_secret: str = Field(default_factory=lambda: secrets.token_urlsafe(32), repr=False)

    @classmethod
    def from_env(cls) -> "AuthSettings":
        """Read the settings from the environment.

        Without ``SESSION_SECRET_KEY`` a random signing key is generated, so
        sessions do not survive a restart.
        """

        defaults = cls()
        session_secret = os.environ.get("SESSION_SECRET_KEY", "").strip()
        if not session_secret:
            logger.warning("SESSION_SECRET_KEY is not set; using a random session key")
        return cls(
            client_id=os.environ.get("GOOGLE_CLIENT_ID", defaults.client_id),
            client_secret=os.environ.get("GOOGLE_CLIENT_SECRET", defaults.client_secret),
            redirect_uri=os.environ.get("GOOGLE_REDIRECT_URI", defaults.redirect_uri),
            session_secret=session_secret or defaults.session_secret,
        )
