"""Command-line interface for litbench.

Subcommands:
    litbench run        Run benchmarks (automatically, or --manual)
    litbench history    Show the stored sessions of a benchmark
"""

from __future__ import annotations

import asyncio
import functools
import json
import logging
from pathlib import Path

import click

from litbench import __version__
from litbench.bench.config import SUPPORTED_BROWSERS, ConfigError, config_from_profile, load_profile
from litbench.bench.results import BenchmarkSession
from litbench.bench.store import RunStore, RunStoreError
from litbench.logging import setup_logging

log = logging.getLogger("litbench")


@click.group()
@click.version_option(version=__version__)
def main() -> None:
    """litbench: run browser benchmarks and track their history."""


# ---------------------------------------------------------------------------
# run
# ---------------------------------------------------------------------------


@main.command()
@click.option("--host", type=str, default=None, help="Which host to run on. [default: 127.0.0.1]")
@click.option(
    "--port", type=int, default=None, help="Which port to run on (0 for random free). [default: 0]"
)
@click.option(
    "--name", "-n", type=str, default=None, help="Which benchmarks to run (* for all). [default: *]"
)
@click.option(
    "--implementation",
    "-i",
    type=str,
    default=None,
    help="Which implementations to run (* for all). [default: lit-html]",
)
@click.option(
    "--browser",
    "-b",
    type=str,
    default=None,
    help=(
        "Which browsers to launch in automatic mode, comma-delimited "
        f"({', '.join(SUPPORTED_BROWSERS)}). [default: chrome]"
    ),
)
@click.option(
    "--trials", "-t", type=int, default=None, help="How many times to run each benchmark. [default: 10]"
)
@click.option(
    "--manual/--automatic",
    "-m",
    default=None,
    help="Don't run automatically, just show URLs and collect results.",
)
@click.option(
    "--root",
    "root_dir",
    type=click.Path(file_okay=False, path_type=Path),
    default=None,
    help="Repository root containing benchmarks/. [default: current directory]",
)
@click.option(
    "--save/--no-save",
    default=None,
    help="Append each result to the benchmark's runs.json history.",
)
@click.option(
    "--headless/--headed",
    default=None,
    help="Run launched browsers without a window. [default: headless]",
)
@click.option(
    "--profile",
    "profile_path",
    type=click.Path(exists=True, dir_okay=False, path_type=Path),
    default=None,
    help="YAML file with default values for these options.",
)
@click.option("-v", "--verbose", is_flag=True, help="Show detailed output.")
@click.option("-q", "--quiet", is_flag=True, help="Only show warnings and errors.")
@click.option("--log-file", type=click.Path(dir_okay=False, path_type=Path), default=None)
def run(  # noqa: PLR0913
    host: str | None,
    port: int | None,
    name: str | None,
    implementation: str | None,
    browser: str | None,
    trials: int | None,
    manual: bool | None,
    root_dir: Path | None,
    save: bool | None,
    headless: bool | None,
    profile_path: Path | None,
    verbose: bool,
    quiet: bool,
    log_file: Path | None,
) -> None:
    """Run benchmarks in one or more browsers and print a results table.

    \b
    Examples:
        # All lit-html benchmarks in Chrome, 10 trials each
        litbench run

        # Two implementations in two browsers
        litbench run -i lit-html,preact -n render -b "chrome, firefox" -t 20

        # Open the printed URLs yourself; results stream in as they finish
        litbench run --manual -i "*"
    """
    from litbench.bench.runner import run_benchmarks
    from litbench.driver import launch_driver

    setup_logging(verbose=verbose, quiet=quiet, log_file=log_file)

    cli_overrides: dict[str, object] = {
        "host": host,
        "port": port,
        "name": name,
        "implementation": implementation,
        "browser": browser,
        "trials": trials,
        "manual": manual,
        "root_dir": root_dir,
        "save": save,
        "headless": headless,
    }

    try:
        profile_data = load_profile(profile_path) if profile_path else {}
        config = config_from_profile(profile_data, cli_overrides=cli_overrides)
        launcher = functools.partial(launch_driver, headless=config.headless)
        asyncio.run(run_benchmarks(config, launcher=launcher))
    except (ConfigError, RunStoreError) as exc:
        click.echo(f"Error: {exc}", err=True)
        raise SystemExit(1) from exc
    except KeyboardInterrupt:
        click.echo("\nBenchmark interrupted.", err=True)
        raise SystemExit(130)  # noqa: B904
    except Exception as exc:  # noqa: BLE001
        log.debug("Run failed", exc_info=True)
        click.echo(f"Error: {exc}", err=True)
        raise SystemExit(1) from exc


# ---------------------------------------------------------------------------
# history
# ---------------------------------------------------------------------------


@main.command("history")
@click.argument("benchmark")
@click.option(
    "--root",
    "root_dir",
    type=click.Path(exists=True, file_okay=False, path_type=Path),
    default=Path("."),
    show_default=True,
    help="Repository root containing benchmarks/.",
)
@click.option("--json", "as_json", is_flag=True, help="Output the raw sessions as JSON.")
def history(benchmark: str, root_dir: Path, as_json: bool) -> None:
    """Show the stored sessions of a benchmark.

    BENCHMARK is the benchmark directory relative to benchmarks/,
    e.g. ``lit-html/render``.
    """
    from litbench.bench.display import format_history

    store = RunStore(root_dir / "benchmarks")
    try:
        sessions = store.load(benchmark)
    except RunStoreError as exc:
        click.echo(f"Error: {exc}", err=True)
        raise SystemExit(1) from exc

    if as_json:
        click.echo(json.dumps({"sessions": sessions}, indent=2))
        return

    records = []
    for i, s in enumerate(sessions):
        if not isinstance(s, dict):
            log.warning("Skipping session %d of %s: not an object", i, benchmark)
            continue
        records.append(BenchmarkSession.from_dict(s))
    click.echo(format_history(benchmark, records))
