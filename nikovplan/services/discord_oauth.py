"""
Discord OAuth Service
Handles the OAuth flow used to sign the owner in with Discord
"""

import logging
import secrets
from typing import Any, Dict, Optional
from urllib.parse import urlencode

import httpx
from fastapi import HTTPException

from nikovplan.config.settings import AppConfig, get_app_config
from nikovplan.models.user import OAuthCallback

logger = logging.getLogger(__name__)

DISCORD_SCOPES = ["identify", "email"]


class DiscordOAuthService:
    """Service for handling Discord OAuth flow"""

    def __init__(self, config: Optional[AppConfig] = None, transport: Optional[httpx.AsyncBaseTransport] = None):
        config = config or get_app_config()
        self.client_id = config.discord_client_id
        self.client_secret = config.discord_client_secret
        self.redirect_uri = config.discord_redirect_uri
        # Canned codes and tokens are only honoured in the test environment
        self.allow_mock_codes = config.env == "test"
        self._transport = transport

        if not self.client_id or not self.client_secret:
            raise ValueError("DISCORD_CLIENT_ID and DISCORD_CLIENT_SECRET must be set")

        # Discord OAuth endpoints
        self.auth_endpoint = "https://discord.com/oauth2/authorize"
        self.token_endpoint = "https://discord.com/api/oauth2/token"
        self.userinfo_endpoint = "https://discord.com/api/users/@me"

        self.scopes = DISCORD_SCOPES

    def generate_auth_url(self) -> Dict[str, str]:
        """
        Generate Discord OAuth authorization URL

        Returns:
            Dictionary containing auth_url and state
        """
        # Generate a secure state parameter to prevent CSRF attacks
        state = secrets.token_urlsafe(32)

        params = {
            "client_id": self.client_id,
            "response_type": "code",
            "scope": " ".join(self.scopes),
            "redirect_uri": self.redirect_uri,
            "state": state,
            "prompt": "none",
        }

        auth_url = f"{self.auth_endpoint}?{urlencode(params)}"

        return {"auth_url": auth_url, "state": state}

    async def exchange_code_for_token(self, code: str) -> Dict[str, Any]:
        """
        Exchange authorization code for access token

        Args:
            code: Authorization code from Discord

        Returns:
            Token response from Discord
        """
        # Handle test/mock authorization codes
        if self.allow_mock_codes and code.startswith("mock_auth_code"):
            return {
                "access_token": "mock_discord_access_token_123",
                "token_type": "Bearer",
                "expires_in": 604800,
                "scope": " ".join(self.scopes),
            }

        data = {
            "grant_type": "authorization_code",
            "code": code,
            "redirect_uri": self.redirect_uri,
            "client_id": self.client_id,
            "client_secret": self.client_secret,
        }

        async with httpx.AsyncClient(transport=self._transport) as client:
            response = await client.post(
                self.token_endpoint,
                data=data,
                headers={
                    "Accept": "application/json",
                    "Content-Type": "application/x-www-form-urlencoded",
                },
            )

        if response.status_code != 200:
            logger.error(f"Token exchange failed: {response.status_code} - {response.text}")
            raise HTTPException(
                status_code=400,
                detail="OAuthCallback",
            )

        return response.json()

    async def get_user_info(self, access_token: str) -> Dict[str, Any]:
        """
        Get the Discord account behind an access token

        Args:
            access_token: Discord access token

        Returns:
            User object from Discord (id, username, discriminator, avatar, email)
        """
        if self.allow_mock_codes and access_token.startswith("mock_discord_access_token"):
            return {
                "id": "mock_discord_user_id_123",
                "username": "testuser",
                "discriminator": "0",
                "avatar": None,
                "global_name": "Test User",
                "email": "test@example.com",
            }

        async with httpx.AsyncClient(transport=self._transport) as client:
            response = await client.get(
                self.userinfo_endpoint,
                headers={
                    "Authorization": f"Bearer {access_token}",
                },
            )

        if response.status_code != 200:
            logger.error(f"Failed to get user info: {response.status_code} - {response.text}")
            raise HTTPException(status_code=400, detail="OAuthCallback")

        return response.json()

    async def complete_authorization(self, code: str) -> OAuthCallback:
        """Exchange the code and describe the signed-in account"""
        token_data = await self.exchange_code_for_token(code)
        access_token = token_data["access_token"]
        user_info = await self.get_user_info(access_token)
        return OAuthCallback.from_discord_user(user_info, access_token=access_token)
