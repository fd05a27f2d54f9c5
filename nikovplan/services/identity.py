"""
Identity Gate
Lets exactly one allow-listed Discord account into the owner console
"""
import logging
from dataclasses import dataclass
from datetime import datetime, timedelta, timezone
from enum import Enum
from typing import Optional
from urllib.parse import urlparse

from nikovplan.config.settings import SESSION_MAX_AGE_DAYS
from nikovplan.models.user import OAuthCallback, SessionUser, UserRecord, discord_avatar_url
from nikovplan.services.exceptions import AuthDeniedError
from nikovplan.services.users import UserService
from nikovplan.utils.auth import create_access_token

logger = logging.getLogger(__name__)

SIGN_IN_PAGE = "/"
SIGN_OUT_PAGE = "/"
POST_SIGN_IN_PAGE = "/admin"
ERROR_PAGE = "/auth/error"

AUTH_ERROR_MESSAGES = {
    "Configuration": "There is a problem with the server configuration. Please contact the administrator.",
    "AccessDenied": "Access denied. You do not have permission to sign in.",
    "Verification": "The verification token has expired or has already been used.",
    "OAuthSignin": "Error in constructing an authorization URL.",
    "OAuthCallback": "Error in handling the response from Discord.",
    "OAuthCreateAccount": "Could not create Discord account in the database.",
    "EmailCreateAccount": "Could not create account with the provided email.",
    "Callback": "Error in the OAuth callback handler route.",
    "OAuthAccountNotLinked": "The Discord account is not linked to any existing account.",
    "EmailSignin": "Sending the e-mail with the verification token failed.",
    "CredentialsSignin": "The authorize callback returned null in the Credentials provider.",
    "SessionRequired": "The content of this page requires you to be signed in at all times.",
}
DEFAULT_AUTH_ERROR_MESSAGE = "An unexpected error occurred during authentication. Please try again."


def auth_error_message(code: Optional[str]) -> str:
    return AUTH_ERROR_MESSAGES.get(code or "", DEFAULT_AUTH_ERROR_MESSAGE)


def resolve_redirect(url: str, base_url: str) -> str:
    """
    Where to send the browser after sign-in.

    Relative paths are resolved against the base URL, same-origin URLs are kept
    and anything else lands on the owner console.
    """
    base_url = base_url.rstrip("/")
    if url.startswith("/") and not url.startswith("//"):
        return f"{base_url}{url}"

    parsed, base = urlparse(url), urlparse(base_url)
    if parsed.scheme and (parsed.scheme, parsed.netloc) == (base.scheme, base.netloc):
        return url
    return f"{base_url}{POST_SIGN_IN_PAGE}"


class GateDecision(str, Enum):
    ALLOW = "allow"
    DENY = "deny"


@dataclass
class SignInResult:
    user: SessionUser
    token: str
    expires_at: datetime


class IdentityGate:
    """
    Checks OAuth callbacks against the single allow-listed account id and
    issues 30-day session tokens for it.
    """

    def __init__(
        self,
        allowed_account_id: Optional[str],
        user_service: Optional[UserService] = None,
        max_age_days: int = SESSION_MAX_AGE_DAYS,
    ):
        self.allowed_account_id = (allowed_account_id or "").strip()
        self.user_service = user_service
        self.max_age = timedelta(days=max_age_days)

    def check(self, account_id: Optional[str]) -> GateDecision:
        if not self.allowed_account_id or not account_id:
            return GateDecision.DENY
        if str(account_id).strip() != self.allowed_account_id:
            return GateDecision.DENY
        return GateDecision.ALLOW

    async def sign_in(self, callback: OAuthCallback) -> SignInResult:
        """
        Admit the allow-listed account and issue its session token

        Args:
            callback: Account id and profile from the identity provider

        Returns:
            SignInResult with the session user, signed token and expiry

        Raises:
            AuthDeniedError: for every other account
        """
        if self.check(callback.provider_account_id) is GateDecision.DENY:
            logger.warning(f"Sign-in denied for Discord account {callback.provider_account_id!r}")
            raise AuthDeniedError(f"Account {callback.provider_account_id!r} is not allowed")

        user = SessionUser(
            id=callback.provider_account_id,
            name=callback.display_name,
            email=callback.email,
            username=callback.profile.username,
            discriminator=callback.profile.discriminator,
            avatar=callback.profile.avatar,
        )
        issued_at = datetime.now(timezone.utc)

        await self._store_user(user, issued_at)

        token = create_access_token(user.to_claims(), expires_delta=self.max_age, now=issued_at)
        logger.info(f"Owner {user.username or user.id} signed in")
        return SignInResult(user=user, token=token, expires_at=issued_at + self.max_age)

    async def _store_user(self, user: SessionUser, last_login: datetime):
        # Storing the profile is best effort; sign-in goes ahead regardless
        if self.user_service is None:
            logger.info("Supabase not configured, skipping user storage")
            return

        record = UserRecord(
            id=user.id,
            email=user.email,
            name=user.name,
            username=user.username,
            discriminator=user.discriminator,
            avatar=user.avatar,
            image=discord_avatar_url(user.id, user.avatar) if user.avatar else None,
            last_login=last_login,
        )
        try:
            await self.user_service.upsert_user(record)
        except Exception as e:
            logger.error(f"Failed to store user in Supabase: {e}")
