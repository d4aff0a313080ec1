"""Instagram Graph API client: auth URLs, tokens and the paginated media feed."""

import logging
from enum import Enum
from typing import Any, NamedTuple, Optional
from urllib.parse import quote_plus

from .http_client import HttpClient, TransportError
from .media_parser import parse_item
from .models import AccessToken, FeedSettings, InstagramUser, MediaEntry, MediaPage, MediaType
from .oauth import generate_state

logger = logging.getLogger(__name__)


class BadToken(TransportError):
    """The access token was revoked or is otherwise invalid. Re-authenticate."""


class ResultKind(str, Enum):
    OK = "ok"
    TRANSPORT_FAILURE = "transport_failure"
    BAD_TOKEN = "bad_token"


class FetchResult(NamedTuple):
    """Outcome of one Graph API call."""

    kind: ResultKind
    payload: Any = None
    error: Optional[TransportError] = None

    def unwrap(self) -> Any:
        if self.kind == ResultKind.OK:
            return self.payload
        if self.kind == ResultKind.BAD_TOKEN:
            raise BadToken(
                "The token is invalid",
                status=self.error.status,
                body=self.error.body,
                url=self.error.url,
            ) from self.error
        raise self.error


class Instagram:
    """Instagram API client bound to one app's credentials."""

    REQUEST_ACCESS_TOKEN_URL = "https://api.instagram.com/oauth/access_token"
    AUTHORIZE_URL_FORMAT = (
        "https://api.instagram.com/oauth/authorize/?client_id={client_id}"
        "&redirect_uri={redirect_uri}&scope=instagram_business_basic"
        "&response_type=code&state={state}"
    )
    GRAPH_USER_INFO_FORMAT = "https://graph.instagram.com/{user_id}?fields=id,username&access_token={token}"
    EXCHANGE_TOKEN_FORMAT = (
        "https://graph.instagram.com/access_token?grant_type=ig_exchange_token"
        "&client_secret={secret}&access_token={token}"
    )
    REFRESH_TOKEN_FORMAT = (
        "https://graph.instagram.com/refresh_access_token?grant_type=ig_refresh_token"
        "&access_token={token}"
    )
    MEDIA_URL_FORMAT = (
        "https://graph.instagram.com/{user_id}/media?fields={fields}&limit={limit}&access_token={token}"
    )
    MEDIA_FIELDS = "caption,id,media_type,media_url,thumbnail_url,permalink,children{media_type,media_url},timestamp"

    # Graph API page size ceiling
    MAX_PAGE_SIZE = 100
    # Upper bound on accumulated items when no limit is given
    MAX_ITEMS = 1000

    BAD_TOKEN_ERROR_TYPE = "OAuthAccessTokenException"

    def __init__(self, settings: FeedSettings, client: Optional[HttpClient] = None):
        self.settings = settings
        self.client = client or HttpClient()

    # URL building

    def redirect_uri(self) -> str:
        base = (self.settings.base_url or self.settings.app_url).rstrip("/")
        return f"{base}/{self.settings.redirect_path.lstrip('/')}"

    def auth_url(self, state: Optional[str] = None) -> str:
        """Authorization URL. A signed CSRF state is generated when none is given."""
        if state is None:
            state = generate_state(self.settings.client_secret)
        return self.AUTHORIZE_URL_FORMAT.format(
            client_id=self.settings.client_id,
            redirect_uri=self.redirect_uri(),
            state=state,
        )

    def token_request_body(self, code: str) -> dict:
        return {
            "client_id": self.settings.client_id,
            "client_secret": self.settings.client_secret,
            "grant_type": "authorization_code",
            "redirect_uri": self.redirect_uri(),
            "code": code,
        }

    def exchange_token_url(self, short_token: AccessToken) -> str:
        return self.EXCHANGE_TOKEN_FORMAT.format(
            secret=self.settings.client_secret, token=short_token.access_code
        )

    def refresh_token_url(self, token: AccessToken) -> str:
        return self.REFRESH_TOKEN_FORMAT.format(token=token.access_code)

    def user_info_url(self, token: AccessToken) -> str:
        return self.GRAPH_USER_INFO_FORMAT.format(user_id=token.user_id, token=token.access_code)

    def media_url(self, token: AccessToken, limit: Optional[int]) -> str:
        return self.MEDIA_URL_FORMAT.format(
            user_id=token.user_id,
            fields=quote_plus(self.MEDIA_FIELDS),
            limit=self.page_size(limit),
            token=token.access_code,
        )

    def page_size(self, limit: Optional[int]) -> int:
        if limit is None:
            return self.MAX_PAGE_SIZE
        return min(limit, self.MAX_PAGE_SIZE)

    # Requests

    def fetch_response_data(self, url: str) -> FetchResult:
        """GET a Graph API url and classify any failure."""
        try:
            return FetchResult(ResultKind.OK, payload=self.client.get(url))
        except TransportError as e:
            meta = e.body.get("meta") if isinstance(e.body, dict) else None
            error_type = meta.get("error_type") if isinstance(meta, dict) else None
            if error_type == self.BAD_TOKEN_ERROR_TYPE:
                logger.warning("bad_token status=%s", e.status)
                return FetchResult(ResultKind.BAD_TOKEN, error=e)
            return FetchResult(ResultKind.TRANSPORT_FAILURE, error=e)

    def request_token(self, code: str) -> dict:
        """Exchange an authorization code for a short-lived token response."""
        return self.client.post(self.REQUEST_ACCESS_TOKEN_URL, self.token_request_body(code))

    def exchange_token(self, short_token: AccessToken) -> AccessToken:
        """Exchange a short-lived token for a long-lived one (60 days)."""
        data = self.fetch_response_data(self.exchange_token_url(short_token)).unwrap()
        return AccessToken.from_response(data, user_id=short_token.user_id)

    def refresh_token(self, token: AccessToken) -> AccessToken:
        """Refresh a long-lived token, extending its expiry."""
        data = self.fetch_response_data(self.refresh_token_url(token)).unwrap()
        return AccessToken.from_response(data, user_id=token.user_id)

    def fetch_user_details(self, token: AccessToken) -> InstagramUser:
        data = self.fetch_response_data(self.user_info_url(token)).unwrap()
        return InstagramUser(id=data.get("id", token.user_id), username=data.get("username", ""))

    def ignore_video(self, media: dict) -> bool:
        return self.settings.ignore_video and media.get("media_type") == MediaType.VIDEO.value

    def fetch_media(self, token: AccessToken, limit: Optional[int] = 20) -> list[MediaEntry]:
        """
        Fetch the account's media, newest first.

        Args:
            token: Access token for the account
            limit: Maximum number of entries, or None for everything up to
                MAX_ITEMS

        Returns:
            List of MediaEntry sorted by timestamp descending

        Raises:
            BadToken: The token is invalid and the user must re-authenticate
            TransportError: Any other HTTP or network failure
        """
        if limit is not None and limit < 1:
            raise ValueError(f"limit must be positive, got {limit}")

        page = MediaPage.from_response(
            self.fetch_response_data(self.media_url(token, limit)).unwrap()
        )
        collected = [media for media in page.data if not self.ignore_video(media)]
        pages = 1

        while self._should_fetch_next_page(page, len(collected), limit):
            page = MediaPage.from_response(self.fetch_response_data(page.next_url).unwrap())
            collected.extend(media for media in page.data if not self.ignore_video(media))
            pages += 1
            logger.debug("fetch_media_page user_id=%s page=%s items=%s", token.user_id, pages, len(collected))

        entries = []
        for media in collected:
            entry = parse_item(media, self.settings.ignore_video)
            if entry is not None:
                entries.append(entry)

        # Stable sort keeps arrival order for equal timestamps
        entries.sort(key=lambda entry: entry.timestamp, reverse=True)

        logger.info(
            "fetch_media user_id=%s pages=%s items=%s parsed=%s",
            token.user_id, pages, len(collected), len(entries),
        )

        if limit is not None:
            return entries[:limit]
        return entries

    def _should_fetch_next_page(self, page: MediaPage, count: int, limit: Optional[int]) -> bool:
        ceiling = limit if limit is not None else self.MAX_ITEMS
        return bool(page.next_url) and count <= ceiling
