"""Routes implementing the Google sign-in flow and session helpers."""

from __future__ import annotations

import logging

import requests
from fastapi import APIRouter, HTTPException, Request
from fastapi.concurrency import run_in_threadpool
from fastapi.responses import RedirectResponse
from pydantic import ValidationError

from newsdash.config import AuthSettings
from newsdash.services.auth import GoogleOAuthClient, OAuthError, SessionUser, new_state

logger = logging.getLogger(__name__)

router = APIRouter()

SESSION_USER_KEY = "user"
SESSION_STATE_KEY = "oauth_state"


def get_oauth_client() -> GoogleOAuthClient:
    return GoogleOAuthClient(AuthSettings.from_env())


def current_user(request: Request) -> SessionUser | None:
    """Return the signed-in user stored in the session, if any."""

    data = request.session.get(SESSION_USER_KEY)
    if not data:
        return None
    try:
        return SessionUser.model_validate(data)
    except ValidationError:
        logger.warning("Discarding malformed session user")
        request.session.pop(SESSION_USER_KEY, None)
        return None


@router.get("/auth/google")
async def start_login(request: Request) -> RedirectResponse:
    """Redirect the browser to Google's consent screen."""

    state = new_state()
    request.session[SESSION_STATE_KEY] = state
    return RedirectResponse(get_oauth_client().authorization_url(state), status_code=303)


@router.get("/auth/callback")
async def complete_login(
    request: Request,
    code: str | None = None,
    state: str | None = None,
    error: str | None = None,
) -> RedirectResponse:
    """Finish the authorization-code flow and store the user in the session."""

    expected_state = request.session.pop(SESSION_STATE_KEY, None)

    if error:
        logger.warning("Sign-in was rejected by the provider: %s", error)
        raise HTTPException(status_code=400, detail=f"Sign-in failed: {error}")
    if not state or state != expected_state:
        logger.warning("OAuth state mismatch")
        raise HTTPException(status_code=400, detail="Invalid sign-in state. Please try again.")
    if not code:
        raise HTTPException(status_code=400, detail="Missing authorization code.")

    client = get_oauth_client()
    try:
        user = await run_in_threadpool(client.login, code)
    except (requests.RequestException, OAuthError) as exc:
        logger.exception("Failed to complete sign-in")
        raise HTTPException(status_code=502, detail="Could not complete sign-in with Google.") from exc

    request.session[SESSION_USER_KEY] = user.model_dump()
    return RedirectResponse("/dashboard", status_code=303)


@router.get("/logout")
async def logout(request: Request) -> RedirectResponse:
    request.session.clear()
    return RedirectResponse("/login", status_code=303)
