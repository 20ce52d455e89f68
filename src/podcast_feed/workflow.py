"""Startup pipeline: configure logging, fetch the feed, publish the catalog."""

from __future__ import annotations

import logging
import os
from pathlib import Path
from typing import List, Optional

from . import config, downloader, parser
from .exceptions import FeedFetchError
from .models import Episode, EpisodeCatalog

logger = logging.getLogger(__name__)

LOG_FORMAT = "%(asctime)s %(levelname)s %(name)s: %(message)s"


def apply_log_level(level: str, log_file: Optional[str] = None) -> None:
    """Apply logging level to root logger and configure handlers.

    Args:
        level: Log level string (e.g., 'DEBUG', 'INFO', 'WARNING')
        log_file: Optional path to log file. If provided, logs will be written to both
                  console and file.

    Raises:
        ValueError: If log level is invalid
        OSError: If log file cannot be created or written to
    """
    numeric_level = getattr(logging, str(level).upper(), None)
    if not isinstance(numeric_level, int):
        raise ValueError(f"Invalid log level: {level}")

    root_logger = logging.getLogger()

    if not root_logger.handlers:
        console_handler = logging.StreamHandler()
        console_handler.setLevel(numeric_level)
        console_handler.setFormatter(logging.Formatter(LOG_FORMAT))
        root_logger.addHandler(console_handler)
    else:
        for handler in root_logger.handlers:
            handler.setLevel(numeric_level)
    root_logger.setLevel(numeric_level)

    # urllib3 logs every connection at DEBUG
    if numeric_level <= logging.DEBUG:
        logging.getLogger("urllib3").setLevel(logging.WARNING)

    if log_file:
        file_handler_exists = any(
            isinstance(h, logging.FileHandler) and h.baseFilename == os.path.abspath(log_file)
            for h in root_logger.handlers
        )
        if not file_handler_exists:
            Path(log_file).parent.mkdir(parents=True, exist_ok=True)
            file_handler = logging.FileHandler(log_file, mode="a", encoding="utf-8")
            file_handler.setLevel(numeric_level)
            file_handler.setFormatter(logging.Formatter(LOG_FORMAT))
            root_logger.addHandler(file_handler)
            logger.info("Logging to file: %s", log_file)


def fetch_and_parse_feed(cfg: config.Config) -> List[Episode]:
    """Download the configured feed and parse it into episodes.

    Args:
        cfg: Configuration with the feed URL and request settings

    Returns:
        Episodes in feed order

    Raises:
        FeedFetchError: If no feed URL is configured or the download fails
            (network error, non-2xx status, interrupted body)
        FeedSourceError: If the downloaded body cannot be tokenized
    """
    if not cfg.feed_url:
        raise FeedFetchError(
            "Feed URL is required",
            suggestion=f"Pass it on the command line or set {config.FEED_URL_ENV_VAR}",
        )

    logger.info("Fetching feed from %s", cfg.feed_url)
    body = downloader.fetch_feed(cfg.feed_url, cfg.user_agent, cfg.timeout)

    episodes = parser.parse_feed_bytes(body)
    logger.info("Parsed %d episodes from feed", len(episodes))
    return episodes


def load_catalog(cfg: config.Config) -> EpisodeCatalog:
    """Fetch and parse the feed, then freeze the result for readers."""
    return EpisodeCatalog(fetch_and_parse_feed(cfg))
