# This project is intended for personal, non-commercial use only.
# See README for details.

"""Podcast Feed - turn a podcast RSS feed into browsable episode pages.

The feed is fetched once at startup, scanned by an event-driven parser into an
ordered list of episodes, and then served read-only over HTTP:
- ``/`` lists every episode
- ``/<id>`` shows one episode with its audio player and description

Programmatic API Example:
    >>> import podcast_feed
    >>>
    >>> episodes = podcast_feed.parse_feed_bytes(xml_bytes)
    >>> print(episodes[0].title)
    episode #1

    >>> cfg = podcast_feed.Config(feed_url="https://example.com/feed.xml")
    >>> catalog = podcast_feed.load_catalog(cfg)

CLI Usage:
    $ podcast-feed https://example.com/feed.xml --port 8000
    $ podcast-feed --config config.yaml --dump
"""

from __future__ import annotations

__version__ = "0.3.0"

from .config import Config, load_config_file
from .exceptions import FeedError, FeedFetchError, FeedSourceError
from .models import Episode, EpisodeCatalog
from .parser import FeedParser, parse_episodes, parse_feed_bytes
from .workflow import load_catalog

__all__ = [
    "Config",
    "Episode",
    "EpisodeCatalog",
    "FeedError",
    "FeedFetchError",
    "FeedParser",
    "FeedSourceError",
    "load_catalog",
    "load_config_file",
    "parse_episodes",
    "parse_feed_bytes",
    "__version__",
]
