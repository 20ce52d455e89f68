"""Configuration constants for podcast_feed.

Re-exported from config.py for convenience.
"""

DEFAULT_LOG_LEVEL = "INFO"
DEFAULT_TIMEOUT_SECONDS = 20
MIN_TIMEOUT_SECONDS = 1
DEFAULT_USER_AGENT = (
    "Mozilla/5.0 (Windows NT 10.0; Win64; x64) "
    "AppleWebKit/537.36 (KHTML, like Gecko) "
    "Chrome/119.0 Safari/537.36"
)

# HTTP hosting defaults
DEFAULT_HOST = "127.0.0.1"
DEFAULT_PORT = 8000
MIN_PORT = 0
MAX_PORT = 65535
DEFAULT_SITE_TITLE = "Podcast feed"

VALID_LOG_LEVELS = ("DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL")

# Environment variables consulted when a field is not set explicitly
FEED_URL_ENV_VAR = "PODCAST_FEED_URL"
LOG_FILE_ENV_VAR = "LOG_FILE"
