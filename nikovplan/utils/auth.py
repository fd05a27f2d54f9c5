import logging
from datetime import datetime, timedelta, timezone
from enum import Enum
from typing import Any, Dict, Optional

from fastapi import Depends, HTTPException, Request, status
from fastapi.security import OAuth2PasswordBearer
from jose import JWTError, jwt

from nikovplan.config.settings import SESSION_MAX_AGE_DAYS, get_app_config
from nikovplan.models.user import SessionUser

logger = logging.getLogger(__name__)

ALGORITHM = "HS256"
SESSION_COOKIE = "session"
ACCESS_TOKEN_EXPIRE = timedelta(days=SESSION_MAX_AGE_DAYS)

oauth2_scheme = OAuth2PasswordBearer(tokenUrl="/api/auth/discord/login", auto_error=False)


class SessionStatus(str, Enum):
    LOADING = "loading"
    AUTHENTICATED = "authenticated"
    UNAUTHENTICATED = "unauthenticated"


# JWT token functions
def create_access_token(data: dict, expires_delta: Optional[timedelta] = None, now: Optional[datetime] = None) -> str:
    to_encode = data.copy()
    issued_at = now or datetime.now(timezone.utc)
    expire = issued_at + (expires_delta or ACCESS_TOKEN_EXPIRE)
    to_encode.update({"exp": expire, "iat": issued_at})
    encoded_jwt = jwt.encode(to_encode, get_app_config().secret_key, algorithm=ALGORITHM)
    return encoded_jwt


def decode_access_token(token: str) -> Optional[Dict[str, Any]]:
    """Return the token claims, or None when the token is invalid or expired"""
    try:
        return jwt.decode(token, get_app_config().secret_key, algorithms=[ALGORITHM])
    except JWTError as e:
        logger.info(f"Rejected session token: {e}")
        return None


def session_user_from_token(token: Optional[str]) -> Optional[SessionUser]:
    if not token:
        return None

    claims = decode_access_token(token)
    if not claims or not claims.get("sub"):
        return None

    # A token only counts while its subject is still the allow-listed owner
    if str(claims["sub"]) != get_app_config().admin_discord_id:
        logger.warning(f"Session token for non-owner account {claims['sub']} ignored")
        return None

    return SessionUser.from_claims(claims)


async def get_optional_user(request: Request, token: Optional[str] = Depends(oauth2_scheme)) -> Optional[SessionUser]:
    """Session user from a bearer token or the session cookie, if any"""
    return session_user_from_token(token or request.cookies.get(SESSION_COOKIE))


async def get_current_user_dependency(user: Optional[SessionUser] = Depends(get_optional_user)) -> SessionUser:
    """FastAPI dependency for owner-only endpoints"""
    if user is None:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Could not validate credentials",
            headers={"WWW-Authenticate": "Bearer"},
        )
    return user
