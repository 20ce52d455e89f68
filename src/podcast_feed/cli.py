"""Command-line interface for podcast_feed."""

from __future__ import annotations

import argparse
import logging
import os
from contextlib import contextmanager
from typing import Any, Callable, cast, Dict, Iterator, List, Optional, Sequence, TYPE_CHECKING
from urllib.parse import urlparse

from pydantic import ValidationError

from . import __version__, config, progress, workflow
from .exceptions import FeedError
from .models import EpisodeCatalog
from .server import FeedServer

if TYPE_CHECKING:  # pragma: no cover - typing only
    import tqdm

_LOGGER = logging.getLogger(__name__)

# Progress bar constants
TQDM_NCOLS = 80
TQDM_MIN_INTERVAL = 0.5
BYTES_PER_KB = 1024

DUMP_NO_AUDIO = "-"


class _TqdmProgress:
    """Simple adapter that exposes tqdm's update interface."""

    def __init__(self, bar: "tqdm.tqdm") -> None:
        self._bar = bar

    def update(self, advance: int) -> None:
        self._bar.update(advance)


@contextmanager
def _tqdm_progress(total: Optional[int], description: str) -> Iterator[_TqdmProgress]:
    """Create a tqdm progress context matching the shared progress API."""
    from tqdm import tqdm

    kwargs: Dict[str, Any] = {
        "desc": description,
        "total": total,
        "unit": "B",
        "unit_scale": True,
        "unit_divisor": BYTES_PER_KB,
        "leave": False,
        "mininterval": TQDM_MIN_INTERVAL,
        "ncols": TQDM_NCOLS,
    }
    with tqdm(**kwargs) as bar:
        yield _TqdmProgress(bar)


def _validate_feed_url(feed_value: str, errors: List[str]) -> None:
    """Validate feed URL format.

    Args:
        feed_value: Feed URL string
        errors: List to append validation errors to
    """
    if not feed_value:
        errors.append(f"Feed URL is required (argument or {config.FEED_URL_ENV_VAR})")
        return

    parsed_obj = urlparse(feed_value)
    if parsed_obj.scheme not in ("http", "https"):
        errors.append(f"Feed URL must be http or https: {feed_value}")
    if not parsed_obj.netloc:
        errors.append(f"Feed URL must have a valid hostname: {feed_value}")


def validate_args(args: argparse.Namespace) -> None:
    """Validate parsed CLI arguments and raise ValueError when invalid."""
    errors: List[str] = []

    feed_value = (args.feed or os.getenv(config.FEED_URL_ENV_VAR, "")).strip()
    _validate_feed_url(feed_value, errors)

    if args.timeout <= 0:
        errors.append(f"--timeout must be positive, got: {args.timeout}")

    if not config.MIN_PORT <= args.port <= config.MAX_PORT:
        errors.append(
            f"--port must be between {config.MIN_PORT} and {config.MAX_PORT}, got: {args.port}"
        )

    if errors:
        raise ValueError("Invalid input parameters:\n  " + "\n  ".join(errors))


def _add_arguments(parser: argparse.ArgumentParser) -> None:
    parser.add_argument("--config", default=None, help="Path to configuration file (JSON or YAML)")
    parser.add_argument("feed", nargs="?", default=None, help="Podcast feed URL")
    parser.add_argument("--host", default=config.DEFAULT_HOST, help="Interface to bind to")
    parser.add_argument(
        "--port", type=int, default=config.DEFAULT_PORT, help="Port to listen on (0 = any free)"
    )
    parser.add_argument(
        "--site-title", default=config.DEFAULT_SITE_TITLE, help="Heading of the index page"
    )
    parser.add_argument("--user-agent", default=config.DEFAULT_USER_AGENT, help="User-Agent header")
    parser.add_argument(
        "--timeout",
        type=int,
        default=config.DEFAULT_TIMEOUT_SECONDS,
        help="Request timeout in seconds",
    )
    parser.add_argument(
        "--log-file",
        default=None,
        help="Path to log file (logs will be written to both console and file)",
    )
    parser.add_argument(
        "--log-level",
        default=config.DEFAULT_LOG_LEVEL,
        type=str.upper,
        help="Logging level (e.g., DEBUG, INFO)",
    )
    parser.add_argument(
        "--dump",
        action="store_true",
        help="Print the parsed episodes and exit instead of serving them",
    )
    parser.add_argument("--version", action="store_true", help="Show program version and exit")


def _load_and_merge_config(
    parser: argparse.ArgumentParser, config_path: str, argv: Optional[Sequence[str]]
) -> argparse.Namespace:
    """Load configuration file and merge with CLI arguments.

    Values from the file become defaults, so explicit CLI arguments win.

    Raises:
        ValueError: If the file cannot be loaded or contains unknown/invalid options
    """
    config_data = config.load_config_file(config_path)
    valid_dests = {action.dest for action in parser._actions if action.dest}
    unknown_keys = [key for key in config_data.keys() if key not in valid_dests]
    if unknown_keys:
        raise ValueError("Unknown config option(s): " + ", ".join(sorted(unknown_keys)))

    try:
        config_model = config.Config.model_validate(config_data)
    except ValidationError as exc:
        raise ValueError(f"Invalid configuration: {exc}") from exc

    parser.set_defaults(**config_model.model_dump(exclude_none=True, by_alias=True))
    return parser.parse_args(argv)


def parse_args(argv: Optional[Sequence[str]] = None) -> argparse.Namespace:
    """Parse CLI arguments, optionally merging configuration file defaults."""
    parser = argparse.ArgumentParser(
        description="Load a podcast feed once and serve its episodes as web pages."
    )
    _add_arguments(parser)

    initial_args, _ = parser.parse_known_args(argv)

    if initial_args.version:
        print(f"podcast_feed {__version__}")
        raise SystemExit(0)

    if initial_args.config:
        args = _load_and_merge_config(parser, initial_args.config, argv)
    else:
        args = parser.parse_args(argv)

    validate_args(args)
    return args


def _build_config(args: argparse.Namespace) -> config.Config:
    """Materialize a Config object from already-validated CLI arguments."""
    payload: Dict[str, Any] = {
        "feed_url": args.feed,
        "user_agent": args.user_agent,
        "timeout": args.timeout,
        "host": args.host,
        "port": args.port,
        "site_title": args.site_title,
        "log_level": args.log_level,
        "log_file": args.log_file,
    }
    return cast(config.Config, config.Config.model_validate(payload))


def _log_configuration(cfg: config.Config, logger: logging.Logger) -> None:
    logger.info("Configuration:")
    logger.info(f"  Feed URL: {cfg.feed_url}")
    logger.info(f"  Listen: {cfg.host}:{cfg.port}")
    logger.info(f"  Timeout: {cfg.timeout}s")
    logger.info(f"  Log level: {cfg.log_level}")
    if cfg.log_file:
        logger.info(f"  Log file: {cfg.log_file}")


def _print_catalog(catalog: EpisodeCatalog) -> None:
    for episode_id, episode in catalog.enumerate():
        print(f"{episode_id}\t{episode.title}\t{episode.audio_url or DUMP_NO_AUDIO}")


def _serve(catalog: EpisodeCatalog, cfg: config.Config) -> None:
    """Serve the catalog until interrupted."""
    server = FeedServer(catalog, host=cfg.host, port=cfg.port, site_title=cfg.site_title)
    try:
        server.serve_forever()
    except KeyboardInterrupt:
        _LOGGER.info("Interrupted; shutting down")
    finally:
        server.stop()


def main(
    argv: Optional[Sequence[str]] = None,
    *,
    apply_log_level_fn: Optional[Callable[[str, Optional[str]], None]] = None,
    load_catalog_fn: Optional[Callable[[config.Config], EpisodeCatalog]] = None,
    serve_fn: Optional[Callable[[EpisodeCatalog, config.Config], None]] = None,
    logger: Optional[logging.Logger] = None,
) -> int:
    """Entry point for the CLI; returns an exit status code."""
    progress.set_progress_factory(_tqdm_progress)
    log = logger or _LOGGER
    if apply_log_level_fn is None:
        apply_log_level_fn = workflow.apply_log_level
    if load_catalog_fn is None:
        load_catalog_fn = workflow.load_catalog
    if serve_fn is None:
        serve_fn = _serve

    try:
        args = parse_args(argv)
    except ValueError as exc:
        log.error(f"Error: {exc}")
        return 1

    try:
        cfg = _build_config(args)
    except ValidationError as exc:
        log.error(f"Invalid configuration: {exc}")
        return 1

    apply_log_level_fn(cfg.log_level, cfg.log_file)
    _log_configuration(cfg, log)

    try:
        catalog = load_catalog_fn(cfg)
    except FeedError as exc:
        log.error(f"Failed to load feed: {exc}")
        return 1

    if args.dump:
        _print_catalog(catalog)
        return 0

    serve_fn(catalog, cfg)
    return 0


if __name__ == "__main__":  # pragma: no cover - script entry
    raise SystemExit(main())
