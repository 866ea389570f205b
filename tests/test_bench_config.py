"""Tests for litbench.bench.config: configuration, browsers and profiles."""

from __future__ import annotations

import tempfile
import unittest
from pathlib import Path

from bench_test_helpers import make_catalog

from litbench.bench.config import (
    SUPPORTED_BROWSERS,
    ConfigError,
    RunnerConfig,
    check_config,
    config_from_profile,
    load_profile,
    parse_browsers,
    validate_config,
)


class TestParseBrowsers(unittest.TestCase):
    """Tests for parse_browsers()."""

    def test_single(self) -> None:
        self.assertEqual(parse_browsers("chrome"), ["chrome"])

    def test_whitespace_trimmed(self) -> None:
        self.assertEqual(parse_browsers("chrome, firefox"), ["chrome", "firefox"])
        self.assertEqual(parse_browsers("  firefox ,chrome  "), ["firefox", "chrome"])

    def test_empty_entries_dropped(self) -> None:
        self.assertEqual(parse_browsers(",chrome,,"), ["chrome"])

    def test_duplicates_collapse(self) -> None:
        self.assertEqual(parse_browsers("chrome,firefox,chrome"), ["chrome", "firefox"])

    def test_empty_rejected(self) -> None:
        for selector in ("", " ", ",", " , "):
            with self.subTest(selector=selector), self.assertRaises(ConfigError):
                parse_browsers(selector)

    def test_unknown_rejected(self) -> None:
        with self.assertRaisesRegex(ConfigError, "Unknown --browser 'safari'"):
            parse_browsers("chrome,safari")

    def test_case_sensitive(self) -> None:
        with self.assertRaises(ConfigError):
            parse_browsers("Chrome")

    def test_supported_set(self) -> None:
        self.assertEqual(SUPPORTED_BROWSERS, ("chrome", "firefox"))


class TestRunnerConfig(unittest.TestCase):
    def test_defaults(self) -> None:
        config = RunnerConfig()
        self.assertEqual(config.host, "127.0.0.1")
        self.assertEqual(config.port, 0)
        self.assertEqual(config.name, "*")
        self.assertEqual(config.implementation, "lit-html")
        self.assertEqual(config.browser, "chrome")
        self.assertEqual(config.trials, 10)
        self.assertFalse(config.manual)
        self.assertFalse(config.save)

    def test_benchmarks_dir(self) -> None:
        self.assertEqual(RunnerConfig(root_dir=Path("/repo")).benchmarks_dir, Path("/repo/benchmarks"))

    def test_browsers_property(self) -> None:
        self.assertEqual(RunnerConfig(browser="firefox,chrome").browsers, ["firefox", "chrome"])


class TestValidateConfig(unittest.TestCase):
    def setUp(self) -> None:
        self._tmp = tempfile.TemporaryDirectory()
        self.addCleanup(self._tmp.cleanup)
        self.root = Path(self._tmp.name)
        make_catalog(self.root, {"lit-html": ["render"]})

    def _fields(self, config: RunnerConfig, severity: str = "error") -> list[str]:
        return [e.field for e in validate_config(config) if e.severity == severity]

    def test_valid(self) -> None:
        self.assertEqual(validate_config(RunnerConfig(root_dir=self.root)), [])

    def test_non_positive_trials(self) -> None:
        for trials in (0, -3):
            with self.subTest(trials=trials):
                self.assertIn("trials", self._fields(RunnerConfig(root_dir=self.root, trials=trials)))

    def test_bad_port(self) -> None:
        self.assertIn("port", self._fields(RunnerConfig(root_dir=self.root, port=70000)))

    def test_bad_browser(self) -> None:
        self.assertIn("browser", self._fields(RunnerConfig(root_dir=self.root, browser="opera")))

    def test_browser_ignored_in_manual_mode(self) -> None:
        config = RunnerConfig(root_dir=self.root, browser="", manual=True)
        self.assertEqual(self._fields(config), [])

    def test_missing_catalog_is_warning(self) -> None:
        config = RunnerConfig(root_dir=self.root / "elsewhere")
        self.assertEqual(self._fields(config), [])
        self.assertEqual(self._fields(config, "warning"), ["root_dir"])


class TestCheckConfig(unittest.TestCase):
    def test_single_error_message(self) -> None:
        with tempfile.TemporaryDirectory() as tmpdir:
            with self.assertRaisesRegex(ConfigError, r"^--trials must be > 0 \(got 0\)\.$"):
                check_config(RunnerConfig(root_dir=Path(tmpdir), trials=0))

    def test_multiple_errors_listed(self) -> None:
        with tempfile.TemporaryDirectory() as tmpdir:
            with self.assertRaises(ConfigError) as ctx:
                check_config(RunnerConfig(root_dir=Path(tmpdir), trials=0, browser="x"))
        self.assertIn("trials", str(ctx.exception))
        self.assertIn("browser", str(ctx.exception))

    def test_warnings_logged_not_raised(self) -> None:
        with tempfile.TemporaryDirectory() as tmpdir:
            with self.assertLogs("litbench", level="WARNING") as logs:
                check_config(RunnerConfig(root_dir=Path(tmpdir) / "missing"))
        self.assertIn("root_dir", logs.output[0])


class TestProfiles(unittest.TestCase):
    def _write(self, text: str) -> Path:
        tmp = tempfile.TemporaryDirectory()
        self.addCleanup(tmp.cleanup)
        path = Path(tmp.name) / "profile.yaml"
        path.write_text(text)
        return path

    def test_load_profile(self) -> None:
        path = self._write("implementation: preact\ntrials: 20\nbrowser: [chrome, firefox]\n")
        self.assertEqual(
            load_profile(path),
            {"implementation": "preact", "trials": 20, "browser": ["chrome", "firefox"]},
        )

    def test_empty_profile(self) -> None:
        self.assertEqual(load_profile(self._write("")), {})

    def test_missing_profile(self) -> None:
        with self.assertRaises(FileNotFoundError):
            load_profile(Path("/nonexistent/profile.yaml"))

    def test_non_mapping(self) -> None:
        with self.assertRaises(ConfigError):
            load_profile(self._write("- a\n- b\n"))

    def test_invalid_yaml(self) -> None:
        with self.assertRaises(ConfigError):
            load_profile(self._write("trials: [1, 2\n"))

    def test_unknown_keys(self) -> None:
        with self.assertRaisesRegex(ConfigError, "iterations"):
            load_profile(self._write("iterations: 5\n"))

    def test_config_from_profile_merges(self) -> None:
        config = config_from_profile(
            {"implementation": "preact", "trials": 20, "browser": ["chrome", "firefox"]},
            cli_overrides={"trials": 3, "name": None, "root_dir": None},
        )
        self.assertEqual(config.implementation, "preact")
        self.assertEqual(config.trials, 3)
        self.assertEqual(config.browser, "chrome,firefox")
        self.assertEqual(config.name, "*")

    def test_config_from_profile_root_dir(self) -> None:
        config = config_from_profile({"root_dir": "/repo"})
        self.assertEqual(config.root_dir, Path("/repo"))

    def test_config_from_profile_type_error(self) -> None:
        with self.assertRaises(ConfigError):
            config_from_profile({"trials": "ten"})
        with self.assertRaises(ConfigError):
            config_from_profile({"port": True})

    def test_cli_false_overrides_profile_true(self) -> None:
        config = config_from_profile({"manual": True}, cli_overrides={"manual": False})
        self.assertFalse(config.manual)


if __name__ == "__main__":
    unittest.main()
