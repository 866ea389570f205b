"""Runner configuration and profile loading.

Handles:
- The resolved :class:`RunnerConfig` for one invocation.
- Parsing and checking the ``--browser`` selector.
- Validating the configuration before anything is started.
- Loading default options from a YAML profile and merging CLI values on top.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any

log = logging.getLogger("litbench")

SUPPORTED_BROWSERS = ("chrome", "firefox")


class ConfigError(ValueError):
    """The run configuration is invalid; nothing has been started."""


# ---------------------------------------------------------------------------
# RunnerConfig
# ---------------------------------------------------------------------------


@dataclass
class RunnerConfig:
    """Resolved configuration for a benchmark run."""

    # Server
    host: str = "127.0.0.1"
    port: int = 0  # 0 = OS-assigned free port

    # Selection
    name: str = "*"
    implementation: str = "lit-html"
    trials: int = 10

    # Execution
    browser: str = "chrome"
    manual: bool = False
    headless: bool = True

    # Paths and persistence
    root_dir: Path = field(default_factory=Path.cwd)
    save: bool = False

    @property
    def benchmarks_dir(self) -> Path:
        """Root of the benchmark catalog."""
        return self.root_dir / "benchmarks"

    @property
    def browsers(self) -> list[str]:
        """The parsed ``--browser`` selector.

        Raises:
            ConfigError: If the selector is empty or names an unknown browser.
        """
        return parse_browsers(self.browser)


def parse_browsers(selector: str) -> list[str]:
    """Parse a comma-separated browser selector.

    Whitespace around names is ignored, empty entries are dropped and
    duplicates collapse to their first occurrence. Names are
    case-sensitive.

    Raises:
        ConfigError: If no browser remains or a name is not supported.
    """
    browsers: list[str] = []
    for part in selector.split(","):
        b = part.strip()
        if b and b not in browsers:
            browsers.append(b)

    if not browsers:
        raise ConfigError("At least one --browser must be specified")
    for b in browsers:
        if b not in SUPPORTED_BROWSERS:
            raise ConfigError(
                f"Unknown --browser '{b}' (supported: {', '.join(SUPPORTED_BROWSERS)})"
            )
    return browsers


# ---------------------------------------------------------------------------
# Validation
# ---------------------------------------------------------------------------


@dataclass
class ValidationError:
    """A single configuration validation error."""

    field: str
    message: str
    severity: str = "error"  # "error" or "warning"


def validate_config(config: RunnerConfig) -> list[ValidationError]:
    """Validate a runner configuration.

    Returns a list of validation errors.  Empty list means valid.
    """
    errors: list[ValidationError] = []

    if config.trials <= 0:
        errors.append(
            ValidationError(field="trials", message=f"--trials must be > 0 (got {config.trials}).")
        )

    if config.port < 0 or config.port > 65535:
        errors.append(
            ValidationError(field="port", message=f"--port must be 0-65535 (got {config.port}).")
        )

    # Browsers only matter when we launch them.
    if not config.manual:
        try:
            parse_browsers(config.browser)
        except ConfigError as exc:
            errors.append(ValidationError(field="browser", message=str(exc)))

    if not config.benchmarks_dir.is_dir():
        errors.append(
            ValidationError(
                field="root_dir",
                message=f"No benchmarks directory under {config.root_dir}",
                severity="warning",
            )
        )

    return errors


def check_config(config: RunnerConfig) -> None:
    """Log warnings and raise on fatal validation errors.

    Raises:
        ConfigError: Listing every fatal error.
    """
    errors = validate_config(config)
    for w in errors:
        if w.severity == "warning":
            log.warning("Config %s: %s", w.field, w.message)
    fatal = [e for e in errors if e.severity == "error"]
    if fatal:
        if len(fatal) == 1:
            raise ConfigError(fatal[0].message)
        messages = [f"  {e.field}: {e.message}" for e in fatal]
        raise ConfigError("Invalid configuration:\n" + "\n".join(messages))


# ---------------------------------------------------------------------------
# YAML profile loading
# ---------------------------------------------------------------------------

_PROFILE_KEYS = {
    "host": str,
    "port": int,
    "name": str,
    "implementation": str,
    "browser": str,
    "trials": int,
    "manual": bool,
    "headless": bool,
    "save": bool,
    "root_dir": str,
}


def load_profile(profile_path: Path) -> dict[str, Any]:
    """Load runner defaults from a YAML file.

    Profile format::

        implementation: "lit-html,preact"
        name: "*"
        browser: "chrome, firefox"
        trials: 20
        save: true

    Browser lists may also be given as YAML sequences.

    Returns:
        The parsed YAML as a dict.

    Raises:
        ConfigError: If the file is not a mapping or has unknown keys.
    """
    import yaml

    if not profile_path.exists():
        raise FileNotFoundError(f"Profile not found: {profile_path}")

    try:
        data = yaml.safe_load(profile_path.read_text(encoding="utf-8"))
    except yaml.YAMLError as exc:
        raise ConfigError(f"Invalid YAML in profile {profile_path}: {exc}") from exc

    if data is None:
        return {}
    if not isinstance(data, dict):
        raise ConfigError(f"Profile must be a YAML mapping, got {type(data).__name__}")

    unknown = sorted(set(data) - set(_PROFILE_KEYS))
    if unknown:
        raise ConfigError(f"Unknown profile keys: {', '.join(unknown)}")

    return data


def config_from_profile(
    profile_data: dict[str, Any],
    *,
    cli_overrides: dict[str, Any] | None = None,
) -> RunnerConfig:
    """Build a RunnerConfig from profile values with CLI values on top.

    Args:
        profile_data: Parsed YAML profile dict.
        cli_overrides: CLI option values; ``None`` entries mean "not given"
            and fall back to the profile, then to the defaults.

    Returns:
        The merged RunnerConfig.
    """
    merged: dict[str, Any] = {}
    for key, value in profile_data.items():
        if isinstance(value, list):
            value = ",".join(str(v) for v in value)
        expected = _PROFILE_KEYS[key]
        if not isinstance(value, expected) or (expected is int and isinstance(value, bool)):
            raise ConfigError(
                f"Profile key '{key}' must be {expected.__name__}, got {type(value).__name__}"
            )
        merged[key] = value

    for key, value in (cli_overrides or {}).items():
        if value is not None:
            merged[key] = value

    if "root_dir" in merged:
        merged["root_dir"] = Path(merged["root_dir"])

    return RunnerConfig(**merged)
