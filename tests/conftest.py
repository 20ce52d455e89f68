"""Shared fixtures and test utilities for podcast_feed tests.

This module contains:
- Test constants
- Helper functions for building feeds, events and Config objects
- Mock classes
- A network guard that keeps unit tests offline

All test files can import from this module using pytest's conftest.py mechanism.
"""

import os

os.environ["TERM"] = "dumb"  # Keep tqdm output plain

import socket
from unittest.mock import patch

import pytest
import requests

from podcast_feed import config
from podcast_feed.events import Characters, EndElement, StartElement

# Test constants
TEST_BASE_URL = "https://example.com"
TEST_FEED_URL = "https://example.com/feed.xml"
TEST_MEDIA_URL = f"{TEST_BASE_URL}/episode.mp3"
TEST_MEDIA_URL_2 = f"{TEST_BASE_URL}/episode2.mp3"
TEST_FEED_TITLE = "Test Feed"
TEST_DESCRIPTION = "An episode about testing."
TEST_SITE_TITLE = "Test podcast feed"
TEST_USER_AGENT = "test-agent"

ITUNES_NAMESPACE = "http://www.itunes.com/dtds/podcast-1.0.dtd"


def create_test_config(**overrides):
    """Create test Config object with defaults.

    Args:
        **overrides: Fields to override from defaults

    Returns:
        config.Config object with test defaults
    """
    defaults = {
        "feed_url": TEST_FEED_URL,
        "user_agent": TEST_USER_AGENT,
        "timeout": 5,
        "host": "127.0.0.1",
        "port": 0,
        "site_title": TEST_SITE_TITLE,
        "log_level": "INFO",
        "log_file": None,
    }
    defaults.update(overrides)
    return config.Config(**defaults)


def build_item_xml(title=None, description=None, enclosure_url=None, cdata=True):
    """Build a single <item> element.

    Args:
        title: Item title text, or None to omit the element
        description: Description text, or None to omit the element
        enclosure_url: Enclosure url attribute, or None to omit the enclosure
        cdata: Wrap text in CDATA sections

    Returns:
        XML fragment string
    """

    def text(value):
        return f"<![CDATA[{value}]]>" if cdata else value

    parts = ["<item>"]
    if title is not None:
        parts.append(f"<title>{text(title)}</title>")
    if description is not None:
        parts.append(f"<description>{text(description)}</description>")
    if enclosure_url is not None:
        parts.append(f'<enclosure url="{enclosure_url}" type="audio/mpeg" length="1234"/>')
    parts.append("</item>")
    return "".join(parts)


def build_rss_xml(items_xml, channel_extra=""):
    """Wrap item fragments in an RSS 2.0 document.

    Args:
        items_xml: Iterable of <item> fragments (or a single string)
        channel_extra: Markup placed in <channel> before the items

    Returns:
        RSS XML string
    """
    if isinstance(items_xml, str):
        items_xml = [items_xml]
    body = "\n    ".join(items_xml)
    return f"""<?xml version="1.0" encoding="UTF-8"?>
<rss version="2.0" xmlns:itunes="{ITUNES_NAMESPACE}">
  <channel>
    {channel_extra}
    {body}
  </channel>
</rss>"""


def build_example_feed_xml():
    """Two-item feed: a fully populated item and one with only a title."""
    return build_rss_xml(
        [
            build_item_xml("Ep A", "Desc A", "http://a.mp3"),
            build_item_xml("Ep B"),
        ]
    )


def item_events(title=None, description=None, enclosure_url=None):
    """Structural events for one <item> as the tokenizer would emit them."""
    events = [StartElement("item")]
    if title is not None:
        events += [StartElement("title"), Characters(title), EndElement("title")]
    if description is not None:
        events += [
            StartElement("description"),
            Characters(description),
            EndElement("description"),
        ]
    if enclosure_url is not None:
        events += [
            StartElement("enclosure", {"url": enclosure_url, "type": "audio/mpeg"}),
            EndElement("enclosure"),
        ]
    events.append(EndElement("item"))
    return events


class MockHTTPResponse:
    """Simple mock for HTTP responses used in downloader tests."""

    def __init__(self, *, content=b"", url="", headers=None, chunks=None, status_code=200):
        self.content = content
        self.url = url
        self.headers = headers or {}
        self.status_code = status_code
        self._chunks = chunks if chunks is not None else [content]
        self.closed = False

    @property
    def ok(self):
        return self.status_code < 400

    def raise_for_status(self):
        if self.status_code >= 400:
            raise requests.HTTPError(f"{self.status_code} Error for url: {self.url}")
        return None

    def iter_content(self, chunk_size=1):
        for chunk in self._chunks:
            yield chunk

    def close(self):
        self.closed = True


def create_rss_response(rss_xml, url=TEST_FEED_URL):
    """Create MockHTTPResponse for an RSS feed body."""
    body = rss_xml.encode("utf-8")
    return MockHTTPResponse(
        content=body,
        url=url,
        headers={"Content-Type": "application/rss+xml", "Content-Length": str(len(body))},
    )


class NetworkCallDetectedError(Exception):
    """Raised when a unit test attempts to make a network call."""

    def __init__(self, library_name: str, call_type: str):
        self.library_name = library_name
        self.call_type = call_type
        super().__init__(
            f"Network call detected in unit test: {library_name}.{call_type}()\n"
            f"Unit tests must not make network calls. Use mocks instead.\n"
            f"If this test needs network access, it should be moved to integration/."
        )


def _create_network_blocker(library_name: str, call_type: str):
    def blocker(*args, **kwargs):
        raise NetworkCallDetectedError(library_name, call_type)

    return blocker


def _is_unit_test(request) -> bool:
    nodeid = getattr(request.node, "nodeid", "")
    return "tests/unit/" in nodeid or nodeid.startswith("unit/")


@pytest.fixture(autouse=True)
def block_network_in_unit_tests(request):
    """Block real network access for tests under tests/unit/."""
    if not _is_unit_test(request):
        yield
        return

    patchers = [
        patch.object(
            requests.Session,
            "request",
            side_effect=_create_network_blocker("requests.Session", "request"),
        ),
        patch.object(
            socket,
            "create_connection",
            side_effect=_create_network_blocker("socket", "create_connection"),
        ),
    ]
    for patcher in patchers:
        patcher.start()
    try:
        yield
    finally:
        for patcher in patchers:
            patcher.stop()
