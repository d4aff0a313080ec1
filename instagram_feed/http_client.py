"""HTTP transport for the Instagram endpoints."""

import logging
from typing import Any, Optional

import requests
from tenacity import (
    Retrying,
    before_sleep_log,
    retry_if_exception_type,
    stop_after_attempt,
    wait_exponential,
)

from .config import config

logger = logging.getLogger(__name__)


class TransportError(Exception):
    """Failed HTTP call. Keeps the decoded error body for inspection."""

    def __init__(
        self,
        message: str,
        status: Optional[int] = None,
        body: Optional[dict] = None,
        url: Optional[str] = None,
    ):
        super().__init__(message)
        self.status = status
        self.body = body if body is not None else {}
        self.url = url


def _safe_json(response: requests.Response) -> Any:
    try:
        return response.json()
    except ValueError:
        return None


class HttpClient:
    """Thin GET/POST wrapper returning decoded JSON.

    Connection failures are retried with backoff; HTTP error responses are
    raised immediately as TransportError. POSTs are not retried after a read
    timeout, since an authorization code can only be redeemed once.
    """

    def __init__(
        self,
        session: Optional[requests.Session] = None,
        timeout: Optional[float] = None,
        attempts: int = 3,
        retry_wait=None,
    ):
        self.session = session or requests.Session()
        self.timeout = timeout or config.HTTP_TIMEOUT
        wait = retry_wait or wait_exponential(multiplier=1, min=1, max=10)
        self._retrying = {
            "GET": self._build_retrying(attempts, wait, (requests.ConnectionError, requests.Timeout)),
            # ConnectTimeout is a ConnectionError: the request never left
            "POST": self._build_retrying(attempts, wait, (requests.ConnectionError,)),
        }

    @staticmethod
    def _build_retrying(attempts: int, wait, exceptions: tuple) -> Retrying:
        return Retrying(
            stop=stop_after_attempt(attempts),
            wait=wait,
            retry=retry_if_exception_type(exceptions),
            before_sleep=before_sleep_log(logger, logging.WARNING),
            reraise=True,
        )

    def get(self, url: str) -> Any:
        return self._send("GET", url)

    def post(self, url: str, form: dict) -> Any:
        return self._send("POST", url, form)

    def _send(self, method: str, url: str, form: Optional[dict] = None) -> Any:
        try:
            response = self._retrying[method](
                self.session.request, method, url, data=form, timeout=self.timeout
            )
        except (requests.ConnectionError, requests.Timeout) as e:
            logger.warning("http_fail method=%s status=%s error=%s", method, None, e)
            raise TransportError(f"{method} request failed: {e}", url=url) from e

        body = _safe_json(response)
        if not 200 <= response.status_code < 300:
            logger.warning(
                "http_fail method=%s status=%s response=%s", method, response.status_code, body
            )
            raise TransportError(
                f"HTTP {response.status_code}",
                status=response.status_code,
                body=body if isinstance(body, dict) else {},
                url=url,
            )

        if body is None:
            raise TransportError(
                "Response body is not JSON", status=response.status_code, url=url
            )
        return body
