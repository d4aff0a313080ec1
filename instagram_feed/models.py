"""Pydantic models for instagram-feed data structures."""

from datetime import datetime, timedelta, timezone
from enum import Enum
from typing import Any, Optional
from pydantic import BaseModel, ConfigDict, Field, field_validator


class MediaType(str, Enum):
    """Media types reported by the Graph API."""

    IMAGE = "IMAGE"
    VIDEO = "VIDEO"
    CAROUSEL_ALBUM = "CAROUSEL_ALBUM"


class AccessToken(BaseModel):
    """A usable Instagram credential scoped to one account."""

    model_config = ConfigDict(frozen=True)

    access_code: str = Field(min_length=1)
    user_id: str = Field(min_length=1)
    expires_at: Optional[datetime] = None

    @field_validator("user_id", mode="before")
    @classmethod
    def _stringify_user_id(cls, value: Any) -> Any:
        # The platform sends numeric ids
        if isinstance(value, int):
            return str(value)
        return value

    @classmethod
    def from_response(cls, data: dict, user_id: Optional[str] = None) -> "AccessToken":
        """Build a token from an access_token endpoint response.

        Refresh and long-lived exchange responses carry no user id, so the
        caller passes the one from the token being replaced.
        """
        # Instagram Login wraps the short-lived token in a data list
        if isinstance(data.get("data"), list) and data["data"]:
            data = data["data"][0]

        expires_at = None
        if data.get("expires_in") is not None:
            expires_at = datetime.now(timezone.utc) + timedelta(seconds=int(data["expires_in"]))

        return cls(
            access_code=data.get("access_token", ""),
            user_id=data.get("user_id", user_id) or "",
            expires_at=expires_at,
        )


class MediaEntry(BaseModel):
    """One parsed media item, ready for display."""

    model_config = ConfigDict(frozen=True)

    id: str
    type: MediaType
    url: str
    thumbnail_url: Optional[str] = None
    permalink: str = ""
    caption: str = ""
    timestamp: datetime
    children: list["MediaEntry"] = Field(default_factory=list)

    @property
    def is_image(self) -> bool:
        return self.type == MediaType.IMAGE

    @property
    def is_video(self) -> bool:
        return self.type == MediaType.VIDEO

    @property
    def is_carousel(self) -> bool:
        return self.type == MediaType.CAROUSEL_ALBUM


class MediaPage(BaseModel):
    """One page of the media listing plus its next cursor."""

    data: list[dict] = Field(default_factory=list)
    next_url: Optional[str] = None

    @classmethod
    def from_response(cls, payload: Any) -> "MediaPage":
        if not isinstance(payload, dict):
            return cls()
        items = payload.get("data")
        paging = payload.get("paging")
        next_url = paging.get("next") if isinstance(paging, dict) else None
        if not isinstance(next_url, str):
            next_url = None
        return cls(
            data=[item for item in items if isinstance(item, dict)] if isinstance(items, list) else [],
            next_url=next_url or None,
        )


class FeedSettings(BaseModel):
    """Explicit configuration handed to the feed fetcher."""

    model_config = ConfigDict(frozen=True)

    client_id: str
    client_secret: str
    redirect_path: str = "instagram/auth/callback"
    base_url: Optional[str] = None
    app_url: str = "http://localhost"
    ignore_video: bool = False


class RouterConfig(BaseModel):
    """Whether the hosting app should register the auth callback routes."""

    model_config = ConfigDict(frozen=True)

    registers_routes: bool = True

    def ignore_routes(self) -> "RouterConfig":
        return self.model_copy(update={"registers_routes": False})


class InstagramUser(BaseModel):
    """Instagram account info from the user-info endpoint."""

    id: str
    username: str

    @field_validator("id", mode="before")
    @classmethod
    def _stringify_id(cls, value: Any) -> Any:
        if isinstance(value, int):
            return str(value)
        return value
