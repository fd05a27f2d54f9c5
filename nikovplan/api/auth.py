"""Discord sign-in, session and sign-out routes"""
import logging
import secrets
from typing import Optional
from urllib.parse import urlencode

import httpx
from fastapi import APIRouter, Depends, HTTPException, Request, status
from fastapi.responses import RedirectResponse

from nikovplan.api.deps import discord_oauth_dependency, identity_gate_dependency
from nikovplan.config.settings import get_app_config
from nikovplan.models.user import SessionUser
from nikovplan.services.discord_oauth import DiscordOAuthService
from nikovplan.services.exceptions import AuthDeniedError
from nikovplan.services.identity import (
    ERROR_PAGE,
    POST_SIGN_IN_PAGE,
    SIGN_OUT_PAGE,
    IdentityGate,
    auth_error_message,
    resolve_redirect,
)
from nikovplan.utils.auth import SESSION_COOKIE, get_optional_user

logger = logging.getLogger(__name__)

router = APIRouter()

STATE_COOKIE = "oauth_state"
STATE_MAX_AGE = 10 * 60


def _error_redirect(code: str) -> RedirectResponse:
    response = RedirectResponse(f"{ERROR_PAGE}?{urlencode({'error': code})}", status_code=status.HTTP_302_FOUND)
    response.delete_cookie(STATE_COOKIE)
    return response


@router.get("/api/auth/discord/login")
async def discord_login(oauth_service: Optional[DiscordOAuthService] = Depends(discord_oauth_dependency)):
    """Send the browser to Discord's consent screen"""
    if oauth_service is None:
        return _error_redirect("Configuration")

    auth_data = oauth_service.generate_auth_url()
    response = RedirectResponse(auth_data["auth_url"], status_code=status.HTTP_302_FOUND)
    response.set_cookie(
        STATE_COOKIE,
        auth_data["state"],
        max_age=STATE_MAX_AGE,
        httponly=True,
        samesite="lax",
    )
    return response


@router.get("/api/auth/discord/callback")
async def discord_callback(
    request: Request,
    code: Optional[str] = None,
    state: Optional[str] = None,
    error: Optional[str] = None,
    oauth_service: Optional[DiscordOAuthService] = Depends(discord_oauth_dependency),
    gate: IdentityGate = Depends(identity_gate_dependency),
):
    """Handle Discord OAuth callback"""
    if oauth_service is None:
        return _error_redirect("Configuration")
    if error:
        logger.warning(f"Discord returned an error: {error}")
        return _error_redirect("AccessDenied" if error == "access_denied" else "OAuthCallback")

    expected_state = request.cookies.get(STATE_COOKIE)
    if not code or not state or not expected_state or not secrets.compare_digest(state, expected_state):
        logger.warning("OAuth callback with missing code or mismatched state")
        return _error_redirect("OAuthCallback")

    try:
        callback = await oauth_service.complete_authorization(code)
    except (HTTPException, httpx.HTTPError, KeyError) as e:
        logger.error(f"OAuth callback failed: {e}")
        return _error_redirect("OAuthCallback")

    try:
        result = await gate.sign_in(callback)
    except AuthDeniedError as e:
        return _error_redirect(e.code)

    config = get_app_config()
    response = RedirectResponse(
        resolve_redirect(POST_SIGN_IN_PAGE, config.base_url),
        status_code=status.HTTP_302_FOUND,
    )
    response.set_cookie(
        SESSION_COOKIE,
        result.token,
        max_age=config.session_max_age_days * 24 * 60 * 60,
        httponly=True,
        samesite="lax",
        secure=config.base_url.startswith("https://"),
    )
    response.delete_cookie(STATE_COOKIE)
    return response


@router.get("/api/auth/session")
async def get_session(user: Optional[SessionUser] = Depends(get_optional_user)):
    if user is None:
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="Not signed in")
    return {"user": user.model_dump(), "avatar_url": user.avatar_url}


@router.post("/api/auth/signout")
async def sign_out():
    response = RedirectResponse(SIGN_OUT_PAGE, status_code=status.HTTP_303_SEE_OTHER)
    response.delete_cookie(SESSION_COOKIE)
    return response


@router.get("/auth/error")
async def auth_error(error: Optional[str] = None):
    return {"error": error, "message": auth_error_message(error)}
