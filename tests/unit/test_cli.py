#!/usr/bin/env python3
"""Tests for the command-line interface."""

import io
import json
import os
import sys
import tempfile
import unittest
from contextlib import redirect_stdout
from pathlib import Path
from unittest.mock import MagicMock, patch

from podcast_feed import __version__, cli, config, progress
from podcast_feed.exceptions import FeedFetchError
from podcast_feed.models import Episode, EpisodeCatalog

# Add tests directory to path for conftest import
tests_dir = Path(__file__).parent.parent
if str(tests_dir) not in sys.path:
    sys.path.insert(0, str(tests_dir))

from conftest import TEST_FEED_URL, TEST_MEDIA_URL  # noqa: E402

CATALOG = EpisodeCatalog(
    [
        Episode("episode #1", "First", TEST_MEDIA_URL),
        Episode("episode #2", "Second"),
    ]
)


def _clean_env():
    env = dict(os.environ)
    env.pop(config.FEED_URL_ENV_VAR, None)
    env.pop(config.LOG_FILE_ENV_VAR, None)
    return patch.dict(os.environ, env, clear=True)


class TestParseArgs(unittest.TestCase):
    """Tests for parse_args() and validate_args()."""

    def test_defaults(self):
        args = cli.parse_args([TEST_FEED_URL])
        self.assertEqual(args.feed, TEST_FEED_URL)
        self.assertEqual(args.host, config.DEFAULT_HOST)
        self.assertEqual(args.port, config.DEFAULT_PORT)
        self.assertEqual(args.timeout, config.DEFAULT_TIMEOUT_SECONDS)
        self.assertFalse(args.dump)

    def test_options(self):
        args = cli.parse_args(
            [TEST_FEED_URL, "--host", "0.0.0.0", "--port", "9000", "--log-level", "debug"]
        )
        self.assertEqual(args.host, "0.0.0.0")
        self.assertEqual(args.port, 9000)
        self.assertEqual(args.log_level, "DEBUG")

    def test_missing_feed_url(self):
        with _clean_env():
            with self.assertRaises(ValueError) as ctx:
                cli.parse_args([])
        self.assertIn("Feed URL is required", str(ctx.exception))

    def test_feed_url_from_environment(self):
        with _clean_env():
            os.environ[config.FEED_URL_ENV_VAR] = TEST_FEED_URL
            args = cli.parse_args([])
        self.assertIsNone(args.feed)

    def test_invalid_scheme(self):
        with self.assertRaises(ValueError) as ctx:
            cli.parse_args(["ftp://example.com/feed.xml"])
        self.assertIn("http or https", str(ctx.exception))

    def test_invalid_port_and_timeout_are_reported_together(self):
        with self.assertRaises(ValueError) as ctx:
            cli.parse_args([TEST_FEED_URL, "--port", "70000", "--timeout", "0"])
        message = str(ctx.exception)
        self.assertIn("--port", message)
        self.assertIn("--timeout", message)

    def test_version_exits(self):
        with redirect_stdout(io.StringIO()) as out:
            with self.assertRaises(SystemExit) as ctx:
                cli.parse_args(["--version"])
        self.assertEqual(ctx.exception.code, 0)
        self.assertIn(__version__, out.getvalue())


class TestConfigFileMerge(unittest.TestCase):
    """Tests for --config handling."""

    def setUp(self):
        self._tmp = tempfile.TemporaryDirectory()
        self.tmpdir = Path(self._tmp.name)

    def tearDown(self):
        self._tmp.cleanup()

    def _write_config(self, data):
        path = self.tmpdir / "config.json"
        path.write_text(json.dumps(data), encoding="utf-8")
        return str(path)

    def test_file_values_become_defaults(self):
        path = self._write_config({"feed": TEST_FEED_URL, "port": 9100, "site_title": "Mine"})
        args = cli.parse_args(["--config", path])
        self.assertEqual(args.feed, TEST_FEED_URL)
        self.assertEqual(args.port, 9100)
        self.assertEqual(args.site_title, "Mine")

    def test_cli_arguments_override_file(self):
        path = self._write_config({"feed": TEST_FEED_URL, "port": 9100})
        args = cli.parse_args(["--config", path, "--port", "9200"])
        self.assertEqual(args.port, 9200)

    def test_unknown_keys_rejected(self):
        path = self._write_config({"feed": TEST_FEED_URL, "workers": 4})
        with self.assertRaises(ValueError) as ctx:
            cli.parse_args(["--config", path])
        self.assertIn("workers", str(ctx.exception))

    def test_invalid_values_rejected(self):
        path = self._write_config({"feed": TEST_FEED_URL, "port": "http"})
        with self.assertRaises(ValueError) as ctx:
            cli.parse_args(["--config", path])
        self.assertIn("Invalid configuration", str(ctx.exception))


class TestMain(unittest.TestCase):
    """Tests for main() with injected collaborators."""

    def setUp(self):
        self.apply_log_level = MagicMock()
        self.serve = MagicMock()
        self.load_catalog = MagicMock(return_value=CATALOG)

    def tearDown(self):
        progress.set_progress_factory(None)

    def _main(self, argv):
        return cli.main(
            argv,
            apply_log_level_fn=self.apply_log_level,
            load_catalog_fn=self.load_catalog,
            serve_fn=self.serve,
        )

    def test_loads_catalog_then_serves(self):
        exit_code = self._main([TEST_FEED_URL, "--port", "0", "--site-title", "Mine"])

        self.assertEqual(exit_code, 0)
        self.apply_log_level.assert_called_once_with("INFO", None)
        cfg = self.load_catalog.call_args[0][0]
        self.assertEqual(cfg.feed_url, TEST_FEED_URL)
        self.serve.assert_called_once()
        served_catalog, served_cfg = self.serve.call_args[0]
        self.assertIs(served_catalog, CATALOG)
        self.assertEqual(served_cfg.port, 0)
        self.assertEqual(served_cfg.site_title, "Mine")

    def test_feed_url_from_environment(self):
        with _clean_env():
            os.environ[config.FEED_URL_ENV_VAR] = TEST_FEED_URL
            exit_code = self._main([])
        self.assertEqual(exit_code, 0)
        self.assertEqual(self.load_catalog.call_args[0][0].feed_url, TEST_FEED_URL)

    def test_dump_prints_catalog_without_serving(self):
        with redirect_stdout(io.StringIO()) as out:
            exit_code = self._main([TEST_FEED_URL, "--dump"])

        self.assertEqual(exit_code, 0)
        self.serve.assert_not_called()
        self.assertEqual(
            out.getvalue().splitlines(),
            [f"0\tepisode #1\t{TEST_MEDIA_URL}", "1\tepisode #2\t-"],
        )

    def test_invalid_arguments_return_error(self):
        self.assertEqual(self._main(["not a url"]), 1)
        self.load_catalog.assert_not_called()
        self.serve.assert_not_called()

    def test_feed_error_returns_error(self):
        self.load_catalog.side_effect = FeedFetchError("Failed to fetch feed", url=TEST_FEED_URL)
        self.assertEqual(self._main([TEST_FEED_URL]), 1)
        self.serve.assert_not_called()

    def test_log_file_passed_to_logging_setup(self):
        self._main([TEST_FEED_URL, "--log-file", "feed.log", "--log-level", "warning"])
        self.apply_log_level.assert_called_once_with("WARNING", "feed.log")

    def test_installs_tqdm_progress(self):
        self._main([TEST_FEED_URL])
        with progress.progress_context(3, "Downloading feed") as reporter:
            self.assertIsInstance(reporter, cli._TqdmProgress)
            reporter.update(3)


class TestServe(unittest.TestCase):
    """Tests for the default serve function."""

    def test_keyboard_interrupt_stops_server(self):
        server = MagicMock()
        server.serve_forever.side_effect = KeyboardInterrupt
        cfg = config.Config(feed_url=TEST_FEED_URL, port=0, site_title="Mine")
        with patch.object(cli, "FeedServer", return_value=server) as server_cls:
            cli._serve(CATALOG, cfg)

        server_cls.assert_called_once_with(
            CATALOG, host=cfg.host, port=0, site_title="Mine"
        )
        server.stop.assert_called_once()


if __name__ == "__main__":
    unittest.main()
