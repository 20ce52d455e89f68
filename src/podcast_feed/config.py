from __future__ import annotations

import json
import os
import sys
from pathlib import Path
from typing import Any, Dict, Optional

import yaml
from dotenv import load_dotenv
from pydantic import BaseModel, ConfigDict, Field, field_validator

from . import config_constants


def _is_test_environment() -> bool:
    """Check if we're running under a test runner."""
    if "pytest" in sys.modules or "PYTEST_CURRENT_TEST" in os.environ:
        return True
    if os.environ.get("TESTING", "").lower() in ("1", "true", "yes"):
        return True
    return False


# Tests configure Config objects explicitly and must never pick up a local .env
if not _is_test_environment():
    try:
        load_dotenv(override=False)
    except (PermissionError, OSError):
        # Unreadable .env; continue with the process environment only
        pass

DEFAULT_LOG_LEVEL = config_constants.DEFAULT_LOG_LEVEL
DEFAULT_TIMEOUT_SECONDS = config_constants.DEFAULT_TIMEOUT_SECONDS
MIN_TIMEOUT_SECONDS = config_constants.MIN_TIMEOUT_SECONDS
DEFAULT_USER_AGENT = config_constants.DEFAULT_USER_AGENT
DEFAULT_HOST = config_constants.DEFAULT_HOST
DEFAULT_PORT = config_constants.DEFAULT_PORT
MIN_PORT = config_constants.MIN_PORT
MAX_PORT = config_constants.MAX_PORT
DEFAULT_SITE_TITLE = config_constants.DEFAULT_SITE_TITLE
VALID_LOG_LEVELS = config_constants.VALID_LOG_LEVELS
FEED_URL_ENV_VAR = config_constants.FEED_URL_ENV_VAR
LOG_FILE_ENV_VAR = config_constants.LOG_FILE_ENV_VAR


class Config(BaseModel):
    """Configuration model for loading and serving a podcast feed.

    The model is immutable (frozen) after creation. It can be created
    programmatically or from a JSON/YAML file via `load_config_file()`.

    Attributes:
        feed_url: Feed URL to load at startup. Falls back to the PODCAST_FEED_URL
            environment variable.
        user_agent: HTTP User-Agent header for the feed request.
        timeout: Request timeout in seconds (minimum: 1).
        host: Interface the HTTP server binds to.
        port: TCP port the HTTP server listens on (0 picks a free port).
        site_title: Heading of the episode index page.
        log_level: Logging level (DEBUG, INFO, WARNING, ERROR, CRITICAL).
        log_file: Optional log file path. Falls back to the LOG_FILE environment variable.

    Example:
        >>> from podcast_feed import Config
        >>> cfg = Config(feed_url="https://example.com/feed.xml", port=8080)

    Example:
        Load configuration from file:

        >>> from podcast_feed import Config, load_config_file
        >>> cfg = Config(**load_config_file("config.yaml"))
    """

    model_config = ConfigDict(extra="forbid", populate_by_name=True, frozen=True)

    feed_url: Optional[str] = Field(default=None, alias="feed", validate_default=True)
    user_agent: str = Field(default=DEFAULT_USER_AGENT, alias="user_agent")
    timeout: int = Field(default=DEFAULT_TIMEOUT_SECONDS, alias="timeout")
    host: str = Field(default=DEFAULT_HOST, alias="host")
    port: int = Field(default=DEFAULT_PORT, alias="port")
    site_title: str = Field(default=DEFAULT_SITE_TITLE, alias="site_title")
    log_level: str = Field(default=DEFAULT_LOG_LEVEL, alias="log_level")
    log_file: Optional[str] = Field(
        default=None,
        alias="log_file",
        validate_default=True,
        description="Path to log file (logs will be written to both console and file). "
        "Can be set via LOG_FILE environment variable.",
    )

    @field_validator("feed_url", mode="before")
    @classmethod
    def _load_feed_url_from_env(cls, value: Any) -> Optional[str]:
        """Use the environment variable when no feed URL is configured."""
        if value is not None and str(value).strip():
            return str(value).strip()
        env_value = os.getenv(FEED_URL_ENV_VAR, "").strip()
        return env_value or None

    @field_validator("user_agent", mode="before")
    @classmethod
    def _coerce_user_agent(cls, value: Any) -> str:
        if value is None:
            return DEFAULT_USER_AGENT
        return str(value).strip() or DEFAULT_USER_AGENT

    @field_validator("timeout", mode="before")
    @classmethod
    def _ensure_timeout(cls, value: Any) -> int:
        if value is None or value == "":
            return DEFAULT_TIMEOUT_SECONDS
        try:
            timeout = int(value)
        except (TypeError, ValueError) as exc:
            raise ValueError("timeout must be an integer") from exc
        return max(MIN_TIMEOUT_SECONDS, timeout)

    @field_validator("host", mode="before")
    @classmethod
    def _coerce_host(cls, value: Any) -> str:
        if value is None:
            return DEFAULT_HOST
        return str(value).strip() or DEFAULT_HOST

    @field_validator("port", mode="before")
    @classmethod
    def _ensure_port(cls, value: Any) -> int:
        if value is None or value == "":
            return DEFAULT_PORT
        try:
            port = int(value)
        except (TypeError, ValueError) as exc:
            raise ValueError("port must be an integer") from exc
        if port < MIN_PORT or port > MAX_PORT:
            raise ValueError(f"port must be between {MIN_PORT} and {MAX_PORT}, got: {port}")
        return port

    @field_validator("site_title", mode="before")
    @classmethod
    def _coerce_site_title(cls, value: Any) -> str:
        if value is None:
            return DEFAULT_SITE_TITLE
        return str(value).strip() or DEFAULT_SITE_TITLE

    @field_validator("log_level", mode="before")
    @classmethod
    def _normalize_log_level(cls, value: Any) -> str:
        """Normalize log level value."""
        if value is None:
            return DEFAULT_LOG_LEVEL
        return str(value).strip().upper() or DEFAULT_LOG_LEVEL

    @field_validator("log_level", mode="after")
    @classmethod
    def _validate_log_level(cls, value: str) -> str:
        """Validate log level is one of the valid levels."""
        if value not in VALID_LOG_LEVELS:
            raise ValueError(f"log_level must be one of {VALID_LOG_LEVELS}, got: {value}")
        return value

    @field_validator("log_file", mode="before")
    @classmethod
    def _load_log_file_from_env(cls, value: Any) -> Optional[str]:
        """Load log file path from environment variable if not provided."""
        if value is not None and str(value).strip():
            return str(value).strip()
        env_value = os.getenv(LOG_FILE_ENV_VAR, "").strip()
        return env_value or None


def load_config_file(path: str) -> Dict[str, Any]:
    """Load configuration from a JSON or YAML file.

    The format is picked from the file extension (`.json`, `.yaml` or `.yml`).
    The returned dictionary can be unpacked into `Config`.

    Args:
        path: Path to configuration file. Supports tilde expansion.

    Returns:
        Dict[str, Any]: Configuration values keyed by `Config` field names or aliases.

    Raises:
        ValueError: If the path is empty, the file is missing, the format is
            unsupported, parsing fails, or the top level is not a mapping.

    Example:
        YAML (`.yaml`, `.yml`):

            feed: https://example.com/feed.xml
            port: 8080
            site_title: Naval podcast feed
    """
    if not path:
        raise ValueError("Config path cannot be empty")

    cfg_path = Path(path).expanduser()
    try:
        resolved = cfg_path.resolve()
    except (OSError, RuntimeError) as exc:
        raise ValueError(f"Invalid config path: {path} ({exc})") from exc

    if not resolved.exists():
        raise ValueError(f"Config file not found: {resolved}")

    suffix = resolved.suffix.lower()
    try:
        text = resolved.read_text(encoding="utf-8")
    except OSError as exc:
        raise ValueError(f"Failed to read config file {resolved}: {exc}") from exc

    if suffix == ".json":
        try:
            data = json.loads(text)
        except json.JSONDecodeError as exc:
            raise ValueError(f"Invalid JSON config file {resolved}: {exc}") from exc
    elif suffix in (".yaml", ".yml"):
        try:
            data = yaml.safe_load(text)
        except yaml.YAMLError as exc:
            raise ValueError(f"Invalid YAML config file {resolved}: {exc}") from exc
    else:
        raise ValueError(f"Unsupported config file type: {resolved.suffix}")

    if not isinstance(data, dict):
        raise ValueError("Config file must contain a mapping/object at the top level")

    return data
