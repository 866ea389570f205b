"""Benchmark execution engine.

Orchestrates:
1. Configuration checks and spec resolution
2. Server startup
3. Execution in one of two modes
4. Result rendering and optional session persistence

Execution modes:
- Automatic (default): launch each ``--browser`` in turn, point it at
  every spec's run URL and wait for the reported result. Browsers are
  driven one at a time; the full results table is printed at the end.
- Manual (``--manual``): print the URL of every spec and render results
  as they are reported by whatever browser the operator uses. The result
  consumer never finishes on its own; the run ends on SIGINT/SIGTERM.
"""

from __future__ import annotations

import asyncio
import contextlib
import logging
import signal
import time
from typing import Any, Awaitable, Callable, Sequence

import click

from litbench.bench.config import RunnerConfig, check_config
from litbench.bench.display import (
    RESULT_COLUMNS,
    RESULT_HEADERS,
    TableStream,
    format_dispatch_table,
    format_result_row,
    format_results_table,
)
from litbench.bench.results import BenchmarkResult, BenchmarkSession, BenchmarkSpec
from litbench.bench.specs import resolve_specs
from litbench.bench.store import RunStore
from litbench.formatting import format_duration
from litbench.server import BenchServer, ResultStream

log = logging.getLogger("litbench")

# Type alias for a driver factory: browser name -> launched driver with
# ``async get(url)`` and ``async close()``.
Launcher = Callable[[str], Awaitable[Any]]
Echo = Callable[[str], None]


def save_result(store: RunStore, result: BenchmarkResult, *, key: str | None = None) -> None:
    """Append *result* as a session to a benchmark's history.

    *key* is the benchmark directory; it defaults to the one named by the
    result itself, for results that arrive without a spec.
    """
    key = key or result.key
    path = store.append(key, BenchmarkSession.from_result(result).to_dict())
    log.debug("Saved session for %s to %s", key, path)


# ---------------------------------------------------------------------------
# Automatic mode
# ---------------------------------------------------------------------------


async def run_automatic(
    server: BenchServer,
    specs: Sequence[BenchmarkSpec],
    browsers: Sequence[str],
    *,
    launcher: Launcher,
    store: RunStore | None = None,
) -> list[BenchmarkResult]:
    """Run every spec in every browser, one browser at a time.

    Each browser is launched, drives all specs in order, and is closed
    before the next one is launched. Any failure (launch, navigation or
    result) aborts the run; the current browser is still closed.

    Returns:
        Results in (browser order) x (spec order).
    """
    results: list[BenchmarkResult] = []
    for browser in browsers:
        log.info("Launching %s", browser)
        driver = await launcher(browser)
        try:
            for spec in specs:
                log.info("    Running benchmark %s in %s", spec.name, spec.implementation)
                handle = server.run_benchmark(spec)
                await driver.get(handle.url)
                result = await handle.result
                results.append(result)
                if store is not None:
                    save_result(store, result, key=spec.key)
        finally:
            await driver.close()
    return results


# ---------------------------------------------------------------------------
# Manual mode
# ---------------------------------------------------------------------------


async def consume_results(
    stream: ResultStream,
    table: TableStream,
    *,
    store: RunStore | None = None,
) -> None:
    """Render (and optionally save) each streamed result, forever.

    On cancellation the stream is unsubscribed and the table's bottom
    border is written.
    """
    try:
        async for result in stream:
            table.write_row(format_result_row(result))
            if store is not None:
                save_result(store, result)
    finally:
        stream.close()
        table.close()


async def run_manual(
    server: BenchServer,
    specs: Sequence[BenchmarkSpec],
    *,
    echo: Echo = click.echo,
    store: RunStore | None = None,
) -> asyncio.Task[None]:
    """Print dispatch URLs and start rendering results as they arrive.

    Returns immediately with the consumer task; it runs until cancelled.
    The server is left open for the caller to close.
    """
    echo("")
    echo("Visit these URLs in any browser:")
    echo("")
    echo(format_dispatch_table([[s.name, s.implementation, server.spec_url(s)] for s in specs]))
    echo("")
    echo("Results will appear below:")
    echo("")

    table = TableStream(columns=RESULT_COLUMNS, write=echo)
    table.write_header(RESULT_HEADERS)
    stream = server.stream_results()
    return asyncio.create_task(consume_results(stream, table, store=store))


async def wait_for_shutdown(
    consumer: asyncio.Task[None],
    stop: asyncio.Event | None = None,
) -> None:
    """Wait until *stop* is set (SIGINT/SIGTERM) or *consumer* fails.

    The consumer is cancelled on the way out. If it ended with an
    exception, that exception is re-raised.
    """
    stop = stop or asyncio.Event()
    loop = asyncio.get_running_loop()
    installed: list[signal.Signals] = []
    for sig in (signal.SIGINT, signal.SIGTERM):
        try:
            loop.add_signal_handler(sig, stop.set)
            installed.append(sig)
        except (NotImplementedError, RuntimeError):
            # No loop signal support (Windows, or not the main thread);
            # KeyboardInterrupt still ends the run.
            log.debug("Cannot install handler for %s", sig.name)

    stopper = asyncio.create_task(stop.wait())
    try:
        done, _ = await asyncio.wait({consumer, stopper}, return_when=asyncio.FIRST_COMPLETED)
    finally:
        for sig in installed:
            loop.remove_signal_handler(sig)
        stopper.cancel()
        if not consumer.done():
            consumer.cancel()
            with contextlib.suppress(asyncio.CancelledError):
                await consumer

    if consumer in done:
        consumer.result()
    log.info("Stopping.")


# ---------------------------------------------------------------------------
# Entry point
# ---------------------------------------------------------------------------


async def run_benchmarks(
    config: RunnerConfig,
    *,
    launcher: Launcher,
    echo: Echo = click.echo,
    stop: asyncio.Event | None = None,
) -> list[BenchmarkResult]:
    """Execute a full benchmark run according to *config*.

    Args:
        config: Resolved configuration.
        launcher: Driver factory for automatic mode.
        echo: Output function for tables.
        stop: Manual mode ends when this is set. Defaults to an event
            set by SIGINT/SIGTERM.

    Returns:
        The collected results (always empty in manual mode).

    Raises:
        ConfigError: If the configuration is invalid.
    """
    check_config(config)
    browsers = [] if config.manual else config.browsers

    specs = resolve_specs(
        config.benchmarks_dir,
        implementation=config.implementation,
        name=config.name,
        trials=config.trials,
    )
    if not specs:
        log.warning(
            "No benchmarks matched --implementation=%s --name=%s",
            config.implementation,
            config.name,
        )

    store = RunStore(config.benchmarks_dir) if config.save else None
    server = await BenchServer.start(host=config.host, port=config.port, root_dir=config.root_dir)
    log.debug("Server listening at %s", server.url)

    if config.manual:
        consumer = await run_manual(server, specs, echo=echo, store=store)
        # Shutdown is handled here, apart from the consumer itself.
        try:
            await wait_for_shutdown(consumer, stop)
        finally:
            await server.close()
        return []

    start = time.monotonic()
    try:
        results = await run_automatic(server, specs, browsers, launcher=launcher, store=store)
        echo(format_results_table(results))
    finally:
        await server.close()
    log.info(
        "Completed %d runs in %s", len(results), format_duration(time.monotonic() - start)
    )
    return results
