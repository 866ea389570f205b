"""Shared test fixtures for benchmark tests."""

from __future__ import annotations

import asyncio
import logging
from pathlib import Path

from litbench.bench.results import BenchmarkResult, BenchmarkSpec, BrowserInfo, RunHandle
from litbench.server import ResultStream


def make_spec(name: str = "render", implementation: str = "lit-html", trials: int = 3) -> BenchmarkSpec:
    """Create a BenchmarkSpec with sensible defaults."""
    return BenchmarkSpec(name=name, implementation=implementation, trials=trials)


def make_result(
    name: str = "render",
    implementation: str = "lit-html",
    millis: list[float] | None = None,
    *,
    browser: str = "Chrome",
    version: str = "120.0",
) -> BenchmarkResult:
    """Create a BenchmarkResult from trial samples."""
    return BenchmarkResult(
        name=name,
        implementation=implementation,
        browser=BrowserInfo(name=browser, version=version),
        millis=tuple(millis if millis is not None else [10.0, 20.0, 15.0]),
    )


def make_catalog(root: Path, layout: dict[str, list[str]]) -> Path:
    """Create ``root/benchmarks/<impl>/<name>/index.html`` for a layout.

    Also drops the usual non-benchmark entries next to the
    implementations so that filtering is exercised.
    """
    benchmarks = root / "benchmarks"
    benchmarks.mkdir(parents=True, exist_ok=True)
    (benchmarks / "node_modules").mkdir(exist_ok=True)
    (benchmarks / "package.json").write_text("{}")
    (benchmarks / "package-lock.json").write_text("{}")
    for impl, names in layout.items():
        impl_dir = benchmarks / impl
        impl_dir.mkdir(exist_ok=True)
        (impl_dir / "package.json").write_text("{}")
        for name in names:
            bench_dir = impl_dir / name
            bench_dir.mkdir(exist_ok=True)
            (bench_dir / "index.html").write_text(f"<title>{impl}/{name}</title>")
    return benchmarks


async def drain(rounds: int = 10) -> None:
    """Let pending tasks run for a few event loop iterations."""
    for _ in range(rounds):
        await asyncio.sleep(0)


class FakeServer:
    """In-memory stand-in for BenchServer (no sockets)."""

    def __init__(self, url: str = "http://127.0.0.1:8000") -> None:
        self.url = url
        self.handles: list[RunHandle] = []
        self.closed = False
        self._subscribers: list[asyncio.Queue[BenchmarkResult]] = []

    def spec_url(self, spec: BenchmarkSpec) -> str:
        return f"{self.url}/benchmarks/{spec.implementation}/{spec.name}/?trials={spec.trials}"

    def run_benchmark(self, spec: BenchmarkSpec) -> RunHandle:
        run_id = str(len(self.handles) + 1)
        handle = RunHandle(
            id=run_id,
            spec=spec,
            url=f"{self.spec_url(spec)}&id={run_id}",
            result=asyncio.get_running_loop().create_future(),
        )
        self.handles.append(handle)
        return handle

    def stream_results(self) -> ResultStream:
        return ResultStream(self._subscribers)

    def report(self, result: BenchmarkResult) -> None:
        for queue in list(self._subscribers):
            queue.put_nowait(result)

    async def close(self) -> None:
        self.closed = True


class FakeDriver:
    """Driver that 'runs' a page by resolving its handle with canned samples."""

    def __init__(
        self,
        name: str,
        server: FakeServer,
        samples: dict[str, list[float]],
        *,
        fail_on: str | None = None,
    ) -> None:
        self.name = name
        self.server = server
        self.samples = samples
        self.fail_on = fail_on
        self.visited: list[str] = []
        self.closed = False

    async def get(self, url: str) -> None:
        self.visited.append(url)
        handle = next(h for h in self.server.handles if h.url == url)
        if handle.spec.key == self.fail_on:
            raise RuntimeError(f"navigation to {url} failed")
        handle.result.set_result(
            make_result(
                handle.spec.name,
                handle.spec.implementation,
                self.samples[handle.spec.key],
                browser=self.name.title(),
                version="1.0",
            )
        )

    async def close(self) -> None:
        self.closed = True


def reset_logging() -> None:
    """Undo setup_logging() so handlers don't leak between tests."""
    for name in ("litbench", "aiohttp.server", "aiohttp.web"):
        logger = logging.getLogger(name)
        for handler in logger.handlers:
            handler.close()
        logger.handlers.clear()
        logger.propagate = True
        logger.setLevel(logging.NOTSET)
