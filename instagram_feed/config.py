"""Configuration management for instagram-feed."""

import os
from dotenv import load_dotenv

from .models import FeedSettings

load_dotenv()


def _env_flag(name: str, default: bool = False) -> bool:
    value = os.getenv(name)
    if value is None:
        return default
    return value.strip().lower() in ("1", "true", "yes", "on")


class Config:
    """Application configuration from environment variables."""

    IG_CLIENT_ID: str = os.getenv("IG_CLIENT_ID", "")
    IG_CLIENT_SECRET: str = os.getenv("IG_CLIENT_SECRET", "")
    IG_AUTH_CALLBACK_ROUTE: str = os.getenv("IG_AUTH_CALLBACK_ROUTE", "instagram/auth/callback")

    # Callback base; IG_BASE_URL wins over the app url when both are set
    IG_BASE_URL: str = os.getenv("IG_BASE_URL", "")
    APP_URL: str = os.getenv("APP_URL", "http://localhost")

    IG_IGNORE_VIDEO: bool = _env_flag("IG_IGNORE_VIDEO")

    HTTP_TIMEOUT: float = float(os.getenv("HTTP_TIMEOUT", "30"))

    # Only used by the jobs
    IG_ACCESS_TOKEN: str = os.getenv("IG_ACCESS_TOKEN", "")
    IG_USER_ID: str = os.getenv("IG_USER_ID", "")

    @classmethod
    def validate(cls) -> list[str]:
        """Validate required configuration. Returns list of missing keys."""
        required = ["IG_CLIENT_ID", "IG_CLIENT_SECRET", "IG_AUTH_CALLBACK_ROUTE"]
        missing = [key for key in required if not getattr(cls, key)]
        return missing

    @classmethod
    def settings(cls) -> FeedSettings:
        """Snapshot the environment into an explicit settings object."""
        return FeedSettings(
            client_id=cls.IG_CLIENT_ID,
            client_secret=cls.IG_CLIENT_SECRET,
            redirect_path=cls.IG_AUTH_CALLBACK_ROUTE,
            base_url=cls.IG_BASE_URL or None,
            app_url=cls.APP_URL,
            ignore_video=cls.IG_IGNORE_VIDEO,
        )


config = Config()
