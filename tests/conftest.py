from datetime import datetime, timedelta, timezone

import pytest

from instagram_feed.http_client import TransportError
from instagram_feed.instagram_api import Instagram
from instagram_feed.models import AccessToken, FeedSettings


BASE_TIME = datetime(2024, 1, 1, tzinfo=timezone.utc)


def make_item(index, media_type="IMAGE", **overrides):
    """Raw Graph API media record; higher index means newer."""
    item = {
        "id": f"media-{index}",
        "media_type": media_type,
        "media_url": f"https://cdn.example.com/{index}.jpg",
        "permalink": f"https://www.instagram.com/p/{index}/",
        "caption": f"post {index}",
        "timestamp": (BASE_TIME + timedelta(minutes=index)).strftime("%Y-%m-%dT%H:%M:%S+0000"),
    }
    if media_type == "VIDEO":
        item["media_url"] = f"https://cdn.example.com/{index}.mp4"
        item["thumbnail_url"] = f"https://cdn.example.com/{index}-thumb.jpg"
    item.update(overrides)
    return item


def make_page(items, next_url=None):
    page = {"data": items}
    if next_url:
        page["paging"] = {"cursors": {"after": "x"}, "next": next_url}
    return page


class FakeClient:
    """Transport double: serves queued responses and records requested URLs."""

    def __init__(self, responses=None):
        self.responses = list(responses or [])
        self.get_calls = []
        self.post_calls = []

    def _next(self):
        response = self.responses.pop(0)
        if isinstance(response, Exception):
            raise response
        return response

    def get(self, url):
        self.get_calls.append(url)
        return self._next()

    def post(self, url, form):
        self.post_calls.append((url, form))
        return self._next()


def bad_token_error():
    return TransportError(
        "HTTP 400",
        status=400,
        body={
            "meta": {
                "error_type": "OAuthAccessTokenException",
                "code": 190,
                "error_message": "The access_token provided is invalid.",
            }
        },
    )


@pytest.fixture
def settings():
    return FeedSettings(
        client_id="test-client-id",
        client_secret="test-client-secret",
        redirect_path="instagram/auth/callback",
        base_url="https://example.com/",
    )


@pytest.fixture
def token():
    return AccessToken(access_code="test-token", user_id="17841400000")


@pytest.fixture
def make_instagram(settings):
    def factory(responses=None, **overrides):
        client = FakeClient(responses)
        return Instagram(settings.model_copy(update=overrides), client=client), client

    return factory
