"""
Application Configuration
Environment-driven settings for the web app, Discord sign-in and sessions
"""
import os
import logging
from typing import List, Optional
from dotenv import load_dotenv

load_dotenv()

LOG_FORMAT = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"

# Session lifetime is fixed; there is no refresh, only re-authentication
SESSION_MAX_AGE_DAYS = 30


class AppConfig:
    """Application configuration class"""

    def __init__(self):
        self.env: str = os.getenv("ENV", "development")
        self.secret_key: str = os.getenv("SECRET_KEY", "your-secret-key-for-development")
        self.base_url: str = os.getenv("BASE_URL", "http://localhost:8000").rstrip("/")
        self.log_level: str = os.getenv("LOG_LEVEL", "INFO").upper()

        # The single Discord account allowed into the owner console
        self.admin_discord_id: str = os.getenv("ADMIN_DISCORD_ID", "").strip()

        self.discord_client_id: str = os.getenv("DISCORD_CLIENT_ID", "")
        self.discord_client_secret: str = os.getenv("DISCORD_CLIENT_SECRET", "")
        self.discord_redirect_uri: str = os.getenv(
            "DISCORD_REDIRECT_URI",
            f"{self.base_url}/api/auth/discord/callback",
        )

        self.cors_origins: List[str] = [
            origin.strip() for origin in os.getenv("CORS_ORIGINS", "*").split(",") if origin.strip()
        ]
        self.session_max_age_days: int = SESSION_MAX_AGE_DAYS

    @property
    def debug(self) -> bool:
        return self.env == "development"


_app_config: Optional[AppConfig] = None


def get_app_config() -> AppConfig:
    """Get application configuration singleton"""
    global _app_config
    if _app_config is None:
        _app_config = AppConfig()
    return _app_config


def configure_logging(level: Optional[str] = None):
    """Configure root logging once for the process"""
    logging.basicConfig(
        level=getattr(logging, level or get_app_config().log_level, logging.INFO),
        format=LOG_FORMAT,
    )
