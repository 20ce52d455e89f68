"""Feed download over a retrying HTTP session.

The feed is requested exactly once at startup. Transient failures (connection
resets, 429 and 5xx answers) are retried by urllib3 with exponential backoff;
anything still failing after that is raised as ``FeedFetchError`` so startup can
abort before the server binds.
"""

from __future__ import annotations

import logging
from typing import cast, List, Optional

import requests
from requests.adapters import HTTPAdapter
from requests.utils import requote_uri
from urllib3.util.retry import Retry

from . import progress
from .exceptions import FeedFetchError

logger = logging.getLogger(__name__)

FEED_RETRY_TOTAL = 5
FEED_RETRY_BACKOFF_FACTOR = 0.5
FEED_RETRY_STATUS_CODES = (429, 500, 502, 503, 504)
FEED_CHUNK_SIZE = 1024 * 16
FEED_PROGRESS_LABEL = "Downloading feed"


def normalize_url(url: str) -> str:
    """Percent-encode unsafe characters without double-encoding existing escapes."""
    normalized = requote_uri(url)
    if normalized != url:
        logger.debug("Normalized feed URL %s -> %s", url, normalized)
    return cast(str, normalized)


class FeedRetry(Retry):
    """Retry policy that reports each new attempt at the feed."""

    def increment(self, method=None, url=None, *args, **kwargs):  # type: ignore[override]
        new_retry = super().increment(method=method, url=url, *args, **kwargs)
        cause = kwargs.get("error") or getattr(kwargs.get("response"), "status", None)
        logger.warning(
            "Feed request failed (%s); retrying, %s attempt(s) left",
            cause or "unknown cause",
            new_retry.total,
        )
        return new_retry


def create_session(user_agent: str) -> requests.Session:
    """Build a session that sends ``user_agent`` and retries transient failures."""
    session = requests.Session()
    session.headers["User-Agent"] = user_agent
    retry = FeedRetry(
        total=FEED_RETRY_TOTAL,
        backoff_factor=FEED_RETRY_BACKOFF_FACTOR,
        status_forcelist=FEED_RETRY_STATUS_CODES,
        allowed_methods=frozenset({"GET"}),
        # Hand the final error response back so its status can be reported
        raise_on_status=False,
    )
    adapter = HTTPAdapter(max_retries=retry)
    session.mount("http://", adapter)
    session.mount("https://", adapter)
    return session


def _content_length(response: requests.Response) -> Optional[int]:
    value = response.headers.get("Content-Length")
    try:
        return int(value) if value else None
    except ValueError:
        return None


def _read_body(response: requests.Response, url: str) -> bytes:
    parts: List[bytes] = []
    try:
        with progress.progress_context(_content_length(response), FEED_PROGRESS_LABEL) as reporter:
            for chunk in response.iter_content(chunk_size=FEED_CHUNK_SIZE):
                if chunk:
                    parts.append(chunk)
                    reporter.update(len(chunk))
    except (requests.RequestException, OSError) as exc:
        raise FeedFetchError(
            f"Feed download was interrupted: {exc}",
            url=url,
            suggestion="Retry later; the server closed the connection early",
        ) from exc
    return b"".join(parts)


def fetch_feed(url: str, user_agent: str, timeout: int) -> bytes:
    """Download the raw feed body.

    Args:
        url: Feed URL
        user_agent: Value of the User-Agent header
        timeout: Connect/read timeout in seconds

    Returns:
        The response body, undecoded; the XML tokenizer honours its encoding
        declaration.

    Raises:
        FeedFetchError: If the server is unreachable, answers with a non-2xx
            status after retries, or drops the connection mid-body.
    """
    feed_url = normalize_url(url)
    session = create_session(user_agent)
    try:
        try:
            response = session.get(feed_url, timeout=timeout, stream=True)
        except requests.RequestException as exc:
            raise FeedFetchError(
                f"Could not reach feed server: {exc}",
                url=url,
                suggestion="Check the feed URL and your network connection",
            ) from exc

        try:
            if not response.ok:
                raise FeedFetchError(
                    f"Feed server answered HTTP {response.status_code}",
                    url=url,
                    status_code=response.status_code,
                    suggestion="Check that the feed URL is still published",
                )
            body = _read_body(response, url)
        finally:
            response.close()
    finally:
        session.close()

    logger.debug(
        "Read %d feed bytes from %s (content-type=%s)",
        len(body),
        feed_url,
        response.headers.get("Content-Type"),
    )
    return body
