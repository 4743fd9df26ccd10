"""
Feed client for the SPOT public message feed.

Issues one time-bounded GET per window and decodes the JSON body. Transport
failures and undecodable bodies raise; retrying transient failures is opt-in.
"""

import time
from datetime import datetime
from typing import Any, Callable, Optional

import requests

from .config import DEFAULT_BASE_URL, DEFAULT_REQUEST_TIMEOUT
from .exceptions import MalformedEnvelopeError, TransportError
from .logger import StructuredLogger, get_logger
from .models import FeedEnvelope, FeedWindow, to_utc
from .normalize import parse_envelope
from .retry import RetryError, exponential_backoff, should_retry_http_status


def format_time(dt: datetime) -> str:
    """Format ``dt`` as ``YYYY-MM-DDTHH:MM:SS-0000`` in UTC.

    The feed expects the zero offset as ``-0000``, never ``+0000``.
    Naive datetimes are taken to be UTC.
    """
    return to_utc(dt).strftime("%Y-%m-%dT%H:%M:%S%z").replace("+0000", "-0000")


def build_feed_url(base_url: str, feed_id: str, after: datetime, before: datetime) -> str:
    return (
        f"{base_url.rstrip('/')}/{feed_id}/message.json"
        f"?startDate={format_time(after)}&endDate={format_time(before)}"
    )


class RetryableStatusError(requests.exceptions.HTTPError):
    """HTTP status worth another attempt (408, 429, 5xx gateway errors)."""
    pass


class FeedClient:
    """Fetches feed windows over a shared ``requests.Session``."""

    def __init__(
        self,
        base_url: str = DEFAULT_BASE_URL,
        timeout: float = DEFAULT_REQUEST_TIMEOUT,
        max_retries: int = 0,
        session: Optional[requests.Session] = None,
        logger: Optional[StructuredLogger] = None,
        retry_base_delay: float = 5.0,
        retry_sleep: Callable[[float], None] = time.sleep,
    ):
        self.base_url = base_url
        self.timeout = timeout
        self.session = session if session is not None else requests.Session()
        self.logger = logger if logger is not None else get_logger()
        self._get_with_retry = exponential_backoff(
            max_retries=max_retries,
            base_delay=retry_base_delay,
            exceptions=(
                requests.exceptions.Timeout,
                requests.exceptions.ConnectionError,
                RetryableStatusError,
            ),
            on_retry=self._log_retry,
            sleep=retry_sleep,
        )(self._get_once)

    def _get_once(self, url: str) -> requests.Response:
        self.logger.record_api_call()
        resp = self.session.get(
            url, timeout=self.timeout, headers={"Accept": "application/json"}
        )
        if should_retry_http_status(resp.status_code):
            raise RetryableStatusError(
                f"{resp.status_code} Server Error for url: {url}", response=resp
            )
        resp.raise_for_status()
        return resp

    def _log_retry(self, attempt: int, exc: Exception, delay: float):
        self.logger.warning(
            "Feed request failed, retrying",
            attempt=attempt,
            delay=delay,
            error=str(exc),
        )

    def _transport_error(self, url: str, exc: BaseException) -> TransportError:
        if isinstance(exc, requests.exceptions.HTTPError):
            status = exc.response.status_code if exc.response is not None else None
            self.logger.record_fetch_failure(f"HTTPError_{status}")
            self.logger.error("Feed request failed", url=url, status=status)
            return TransportError(f"Feed request failed ({status}): {url}", url=url, status=status)
        if isinstance(exc, requests.exceptions.Timeout):
            self.logger.record_fetch_failure("Timeout")
            self.logger.error("Feed request timed out", url=url)
            return TransportError(f"Feed request timed out: {url}", url=url)
        self.logger.record_fetch_failure("RequestException")
        self.logger.error("Feed request error", url=url, error=str(exc))
        return TransportError(f"Feed request error: {exc}", url=url)

    def fetch(self, feed_id: str, after: datetime, before: datetime) -> Any:
        """
        Fetch the window ``[after, before)`` and return the decoded JSON body.

        Raises:
            TransportError: On network errors, timeouts or non-2xx responses
            MalformedEnvelopeError: If the body is not valid JSON
        """
        url = build_feed_url(self.base_url, feed_id, after, before)
        self.logger.info("Fetching feed window", url=url)
        try:
            resp = self._get_with_retry(url)
        except RetryError as e:
            raise self._transport_error(url, e.__cause__) from e
        except requests.exceptions.RequestException as e:
            raise self._transport_error(url, e) from e

        try:
            return resp.json()
        except ValueError as e:
            self.logger.record_fetch_failure("MalformedEnvelope")
            self.logger.error("Feed returned invalid JSON", url=url, error=str(e))
            raise MalformedEnvelopeError(f"Feed returned invalid JSON: {url}") from e

    def fetch_window(self, window: FeedWindow) -> FeedEnvelope:
        """Fetch and parse one window."""
        body = self.fetch(window.feed_id, window.after, window.before)
        try:
            return parse_envelope(body)
        except MalformedEnvelopeError as e:
            self.logger.record_fetch_failure("MalformedEnvelope")
            self.logger.error("Feed returned an unexpected envelope", error=str(e))
            raise

    def close(self):
        self.session.close()

    def __enter__(self):
        return self

    def __exit__(self, *exc_info):
        self.close()
