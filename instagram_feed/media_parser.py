"""Turn raw Graph API media records into MediaEntry objects."""

from datetime import datetime, timezone
from typing import Any, Optional

from .models import MediaEntry, MediaType

TIMESTAMP_FORMAT = "%Y-%m-%dT%H:%M:%S%z"


def parse_timestamp(value: Any) -> Optional[datetime]:
    """Parse a Graph API timestamp such as 2024-01-02T03:04:05+0000."""
    if not isinstance(value, str) or not value:
        return None
    try:
        parsed = datetime.strptime(value, TIMESTAMP_FORMAT)
    except ValueError:
        try:
            parsed = datetime.fromisoformat(value)
        except ValueError:
            return None
    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=timezone.utc)
    return parsed


def _media_type(raw: dict) -> Optional[MediaType]:
    try:
        return MediaType(raw.get("media_type"))
    except (ValueError, TypeError):
        return None


def _url(value: Any) -> Optional[str]:
    return value if isinstance(value, str) and value else None


def _display_url(raw: dict) -> Optional[str]:
    return _url(raw.get("media_url")) or _url(raw.get("thumbnail_url"))


def _media_id(value: Any) -> Optional[str]:
    # bool is an int subclass
    if isinstance(value, bool):
        return None
    if isinstance(value, int):
        return str(value)
    return value if isinstance(value, str) and value else None


def _text(value: Any) -> str:
    return value if isinstance(value, str) else ""


def _parse_children(raw: dict, parent_timestamp: datetime, ignore_video: bool) -> list[MediaEntry]:
    container = raw.get("children")
    items = container.get("data") if isinstance(container, dict) else None
    if not isinstance(items, list):
        return []

    children = []
    for child in items:
        if not isinstance(child, dict):
            continue
        media_type = _media_type(child)
        url = _display_url(child)
        # Albums cannot nest
        if media_type in (None, MediaType.CAROUSEL_ALBUM) or not url:
            continue
        if ignore_video and media_type == MediaType.VIDEO:
            continue
        children.append(
            MediaEntry(
                id=_media_id(child.get("id")) or "",
                type=media_type,
                url=url,
                thumbnail_url=_url(child.get("thumbnail_url")),
                permalink=_text(raw.get("permalink")),
                timestamp=parent_timestamp,
            )
        )
    return children


def parse_item(raw: Any, ignore_video: bool = False) -> Optional[MediaEntry]:
    """
    Parse one media record.

    Returns None for videos when ignore_video is set, for unknown media
    types, and for records missing an id, a valid timestamp or any usable
    URL. Malformed input never raises.
    """
    if not isinstance(raw, dict):
        return None

    media_type = _media_type(raw)
    if media_type is None:
        return None
    if ignore_video and media_type == MediaType.VIDEO:
        return None

    media_id = _media_id(raw.get("id"))
    timestamp = parse_timestamp(raw.get("timestamp"))
    if media_id is None or timestamp is None:
        return None

    children = []
    url = _display_url(raw)
    if media_type == MediaType.CAROUSEL_ALBUM:
        children = _parse_children(raw, timestamp, ignore_video)
        if not url and children:
            url = children[0].url
    if not url:
        return None

    return MediaEntry(
        id=media_id,
        type=media_type,
        url=url,
        thumbnail_url=_url(raw.get("thumbnail_url")),
        permalink=_text(raw.get("permalink")),
        caption=_text(raw.get("caption")),
        timestamp=timestamp,
        children=children,
    )
