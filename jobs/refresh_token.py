"""Scheduled job for refreshing the long-lived Instagram token."""

import sys
from pathlib import Path

# Add parent directory to path for imports
sys.path.insert(0, str(Path(__file__).parent.parent))

from instagram_feed.config import config
from instagram_feed.http_client import TransportError
from instagram_feed.instagram_api import BadToken, Instagram
from instagram_feed.models import AccessToken


def run_token_refresh(instagram=None, token=None):
    """
    Refresh the configured token.

    The new token is printed; storing it is up to the caller.
    """
    instagram = instagram or Instagram(config.settings())
    token = token or AccessToken(access_code=config.IG_ACCESS_TOKEN, user_id=config.IG_USER_ID)

    print(f"Refreshing token for user {token.user_id}...")

    try:
        new_token = instagram.refresh_token(token)
    except BadToken as e:
        print(f"  ✗ Token rejected, re-authorization required: {e}")
        return {"refreshed": False, "token": None, "error": "bad_token"}
    except TransportError as e:
        print(f"  ✗ Refresh failed: {e}")
        return {"refreshed": False, "token": None, "error": str(e)}

    print(f"  ✓ Token refreshed, expires: {new_token.expires_at}")
    return {"refreshed": True, "token": new_token, "error": None}


if __name__ == "__main__":
    missing = config.validate()
    if missing:
        sys.exit(f"Missing configuration: {', '.join(missing)}")
    result = run_token_refresh()
    if result["refreshed"]:
        print(result["token"].access_code)
