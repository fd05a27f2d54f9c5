# The users table is managed by Supabase; these models only describe its rows
# and the Discord identity they are built from.

from datetime import datetime
from typing import Any, Dict, Optional

from pydantic import BaseModel

DISCORD_AVATAR_URL = "https://cdn.discordapp.com/avatars/{user_id}/{avatar}.png?size=128"
PLACEHOLDER_AVATAR = "/placeholder.svg?height=40&width=40"


def discord_avatar_url(user_id: str, avatar: Optional[str]) -> str:
    if not avatar:
        return PLACEHOLDER_AVATAR
    return DISCORD_AVATAR_URL.format(user_id=user_id, avatar=avatar)


class DiscordProfile(BaseModel):
    username: Optional[str] = None
    discriminator: Optional[str] = None
    avatar: Optional[str] = None
    global_name: Optional[str] = None


class OAuthCallback(BaseModel):
    """What the identity provider hands back after a successful authorization"""
    provider_account_id: str
    profile: DiscordProfile = DiscordProfile()
    email: Optional[str] = None
    access_token: Optional[str] = None

    @classmethod
    def from_discord_user(cls, user_info: Dict[str, Any], access_token: Optional[str] = None) -> "OAuthCallback":
        return cls(
            provider_account_id=str(user_info.get("id") or ""),
            profile=DiscordProfile(
                username=user_info.get("username"),
                discriminator=user_info.get("discriminator"),
                avatar=user_info.get("avatar"),
                global_name=user_info.get("global_name"),
            ),
            email=user_info.get("email"),
            access_token=access_token,
        )

    @property
    def display_name(self) -> Optional[str]:
        return self.profile.global_name or self.profile.username


class UserRecord(BaseModel):
    """Row of the users table, keyed by the Discord account id"""
    id: str
    email: Optional[str] = None
    name: Optional[str] = None
    username: Optional[str] = None
    discriminator: Optional[str] = None
    avatar: Optional[str] = None
    image: Optional[str] = None
    last_login: Optional[datetime] = None
    role: Optional[str] = None

    def to_row(self) -> Dict[str, Any]:
        row = self.model_dump(exclude_none=True)
        if self.last_login is not None:
            row["last_login"] = self.last_login.isoformat()
        return row


class SessionUser(BaseModel):
    id: str
    name: Optional[str] = None
    email: Optional[str] = None
    username: Optional[str] = None
    discriminator: Optional[str] = None
    avatar: Optional[str] = None

    @property
    def avatar_url(self) -> str:
        return discord_avatar_url(self.id, self.avatar)

    def to_claims(self) -> Dict[str, Any]:
        claims = self.model_dump(exclude={"id"}, exclude_none=True)
        claims["sub"] = self.id
        return claims

    @classmethod
    def from_claims(cls, claims: Dict[str, Any]) -> "SessionUser":
        return cls(
            id=str(claims["sub"]),
            name=claims.get("name"),
            email=claims.get("email"),
            username=claims.get("username"),
            discriminator=claims.get("discriminator"),
            avatar=claims.get("avatar"),
        )
