"""Google OAuth 2.0 helpers used by the login flow."""

from __future__ import annotations

import logging
import secrets
from typing import Any, Dict
from urllib.parse import urlencode

import requests
from pydantic import BaseModel

from newsdash.config import AuthSettings

__all__ = ["GoogleOAuthClient", "OAuthError", "SessionUser", "new_state"]

logger = logging.getLogger(__name__)

AUTHORIZATION_URL = "https://accounts.google.com/o/oauth2/v2/auth"
TOKEN_URL = "https://oauth2.googleapis.com/token"
USERINFO_URL = "https://openidconnect.googleapis.com/v1/userinfo"
SCOPES = ("openid", "email", "profile")


class OAuthError(RuntimeError):
    """Raised when the identity provider answers without the expected data."""


class SessionUser(BaseModel):
    """Profile details kept in the signed session cookie."""

    name: str
    email: str | None = None
    picture: str | None = None


def new_state() -> str:
    """Return a random CSRF state token."""

    return secrets.token_urlsafe(32)


class GoogleOAuthClient:
    """Authorization-code flow against Google's OAuth endpoints."""

    def __init__(self, settings: AuthSettings, session: requests.Session | None = None) -> None:
        self.settings = settings
        self._session = session or requests.Session()

    def authorization_url(self, state: str) -> str:
        params = {
            "client_id": self.settings.client_id,
            "redirect_uri": self.settings.redirect_uri,
            "response_type": "code",
            "scope": " ".join(SCOPES),
            "state": state,
            "prompt": "select_account",
        }
        return f"{AUTHORIZATION_URL}?{urlencode(params)}"

    def exchange_code(self, code: str) -> Dict[str, Any]:
        """Exchange an authorization ``code`` for tokens."""

        response = self._session.post(
            TOKEN_URL,
            data={
                "code": code,
                "client_id": self.settings.client_id,
                "client_secret": self.settings.client_secret,
                "redirect_uri": self.settings.redirect_uri,
                "grant_type": "authorization_code",
            },
            timeout=(10, 30),
        )
        response.raise_for_status()
        tokens = response.json()
        if not isinstance(tokens, dict) or not tokens.get("access_token"):
            raise OAuthError("Token response did not include an access token")
        return tokens

    def fetch_user(self, access_token: str) -> SessionUser:
        response = self._session.get(
            USERINFO_URL,
            headers={"Authorization": f"Bearer {access_token}"},
            timeout=(10, 30),
        )
        response.raise_for_status()
        profile = response.json()
        if not isinstance(profile, dict):
            raise OAuthError("Unexpected userinfo response")

        email = profile.get("email")
        name = profile.get("name") or email or "User"
        return SessionUser(name=name, email=email, picture=profile.get("picture"))

    def login(self, code: str) -> SessionUser:
        """Complete the flow for ``code`` and return the signed-in user."""

        tokens = self.exchange_code(code)
        user = self.fetch_user(tokens["access_token"])
        logger.info("Signed in %s", user.email or user.name)
        return user
