"""Print the latest media for the configured account."""

import sys
from pathlib import Path

# Add parent directory to path for imports
sys.path.insert(0, str(Path(__file__).parent.parent))

from instagram_feed.config import config
from instagram_feed.http_client import TransportError
from instagram_feed.instagram_api import BadToken, Instagram
from instagram_feed.models import AccessToken


def run_fetch(limit=20, instagram=None, token=None):
    """Fetch and print the feed. Returns the entries, or an empty list on failure."""
    instagram = instagram or Instagram(config.settings())
    token = token or AccessToken(access_code=config.IG_ACCESS_TOKEN, user_id=config.IG_USER_ID)

    try:
        entries = instagram.fetch_media(token, limit)
    except BadToken:
        print("✗ Token rejected, re-authorization required.")
        return []
    except TransportError as e:
        print(f"✗ Fetch failed: {e}")
        return []

    for entry in entries:
        caption = entry.caption.splitlines()[0] if entry.caption else ""
        print(f"{entry.timestamp:%Y-%m-%d %H:%M}  {entry.type.value:<14} {entry.permalink}  {caption[:60]}")

    print(f"\n{len(entries)} item(s)")
    return entries


if __name__ == "__main__":
    limit = int(sys.argv[1]) if len(sys.argv) > 1 else 20
    run_fetch(limit)
