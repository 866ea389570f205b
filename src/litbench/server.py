"""HTTP server for benchmark pages and result collection.

Serves files under the repository root and accepts trial results that
benchmark pages POST back when they finish::

    GET  /benchmarks/<implementation>/<name>/?trials=<n>[&id=<run id>]
    POST /submitResults   {"id": ..., "name": ..., "implementation": ...,
                           "millis": [...]}

The reporting browser is identified from its ``User-Agent`` header.
Results carrying the id of a run registered with :meth:`run_benchmark`
resolve that run's future. Every result is also delivered to all open
:meth:`stream_results` subscriptions.
"""

from __future__ import annotations

import asyncio
import re
import uuid
from pathlib import Path
from typing import Any
from urllib.parse import quote, urlencode

from aiohttp import web

from litbench.bench.results import BenchmarkResult, BenchmarkSpec, BrowserInfo, RunHandle
from litbench.logging import get_logger

log = get_logger("server")

# Checked in order; Edge and headless Chrome also advertise "Chrome/".
_USER_AGENT_PATTERNS = [
    ("Edge", re.compile(r"Edg(?:e|A|iOS)?/([\d.]+)")),
    ("Firefox", re.compile(r"Firefox/([\d.]+)")),
    ("Chrome", re.compile(r"(?:Headless)?Chrome/([\d.]+)")),
    ("Safari", re.compile(r"Version/([\d.]+).*Safari/")),
]


def parse_user_agent(user_agent: str) -> BrowserInfo:
    """Identify browser name and version from a User-Agent string."""
    for name, pattern in _USER_AGENT_PATTERNS:
        m = pattern.search(user_agent)
        if m:
            return BrowserInfo(name=name, version=m.group(1))
    return BrowserInfo(name="unknown", version="")


def parse_submission(data: Any, browser: BrowserInfo) -> tuple[str | None, BenchmarkResult]:
    """Validate a ``/submitResults`` payload.

    Returns:
        Tuple of (run id or None, BenchmarkResult).

    Raises:
        ValueError: If the payload is malformed.
    """
    if not isinstance(data, dict):
        raise ValueError("payload must be a JSON object")
    for key in ("name", "implementation"):
        value = data.get(key)
        if not isinstance(value, str) or not value:
            raise ValueError(f"'{key}' must be a non-empty string")
        if value in (".", "..") or "/" in value or "\\" in value:
            raise ValueError(f"'{key}' must be a single directory name, got {value!r}")
    millis = data.get("millis")
    if not isinstance(millis, list) or not millis:
        raise ValueError("'millis' must be a non-empty list")
    if not all(isinstance(m, (int, float)) and not isinstance(m, bool) for m in millis):
        raise ValueError("'millis' must contain only numbers")
    run_id = data.get("id")
    if run_id is not None and not isinstance(run_id, str):
        raise ValueError("'id' must be a string")

    return run_id, BenchmarkResult(
        name=data["name"],
        implementation=data["implementation"],
        browser=browser,
        millis=tuple(float(m) for m in millis),
    )


class ResultStream:
    """Async iterator over results in the order they are reported.

    Subscribes on construction, so no result reported after
    :meth:`BenchServer.stream_results` returns is missed. Never ends on
    its own.
    """

    def __init__(self, subscribers: list[asyncio.Queue[BenchmarkResult]]) -> None:
        self._subscribers = subscribers
        self._queue: asyncio.Queue[BenchmarkResult] = asyncio.Queue()
        subscribers.append(self._queue)

    def __aiter__(self) -> ResultStream:
        return self

    async def __anext__(self) -> BenchmarkResult:
        return await self._queue.get()

    def close(self) -> None:
        """Stop receiving results."""
        if self._queue in self._subscribers:
            self._subscribers.remove(self._queue)


class BenchServer:
    """Benchmark HTTP server bound to one host/port for the whole process.

    Usage::

        server = await BenchServer.start(host="127.0.0.1", port=0, root_dir=root)
        try:
            handle = server.run_benchmark(spec)
            ...  # point a browser at handle.url
            result = await handle.result
        finally:
            await server.close()
    """

    def __init__(self, root_dir: Path) -> None:
        self.root_dir = root_dir
        self._root_resolved = root_dir.resolve()
        self.host = ""
        self.port = 0
        self._runner: web.AppRunner | None = None
        self._pending: dict[str, RunHandle] = {}
        self._subscribers: list[asyncio.Queue[BenchmarkResult]] = []

    # -- lifecycle ----------------------------------------------------------

    def make_app(self) -> web.Application:
        """Build the aiohttp application (also used directly by tests)."""
        app = web.Application()
        app.router.add_post("/submitResults", self._handle_submit)
        app.router.add_get("/{path:.*}", self._handle_static)
        return app

    @classmethod
    async def start(cls, *, host: str = "127.0.0.1", port: int = 0, root_dir: Path) -> BenchServer:
        """Bind and start serving. ``port=0`` picks a free port."""
        server = cls(root_dir)
        runner = web.AppRunner(server.make_app(), access_log=None)
        await runner.setup()
        site = web.TCPSite(runner, host, port)
        await site.start()
        server._runner = runner
        server.host = host
        server.port = runner.addresses[0][1]
        log.debug("Serving %s at %s", root_dir, server.url)
        return server

    async def close(self) -> None:
        """Stop listening. Runs still waiting for results are cancelled."""
        for handle in self._pending.values():
            if not handle.result.done():
                handle.result.cancel()
        self._pending.clear()
        if self._runner is not None:
            await self._runner.cleanup()
            self._runner = None
            log.debug("Server closed")

    @property
    def url(self) -> str:
        """Base URL, without trailing slash."""
        return f"http://{self.host}:{self.port}"

    # -- runs ---------------------------------------------------------------

    def _spec_path(self, spec: BenchmarkSpec) -> str:
        return f"/benchmarks/{quote(spec.implementation)}/{quote(spec.name)}/"

    def spec_url(self, spec: BenchmarkSpec) -> str:
        """URL that runs *spec* in any browser, for manual dispatch."""
        return f"{self.url}{self._spec_path(spec)}?{urlencode({'trials': spec.trials})}"

    def run_benchmark(self, spec: BenchmarkSpec) -> RunHandle:
        """Register a run and return its URL and result future."""
        run_id = uuid.uuid4().hex[:12]
        query = urlencode({"trials": spec.trials, "id": run_id})
        handle = RunHandle(
            id=run_id,
            spec=spec,
            url=f"{self.url}{self._spec_path(spec)}?{query}",
            result=asyncio.get_running_loop().create_future(),
        )
        self._pending[run_id] = handle
        log.debug("Registered run %s for %s", run_id, spec.key)
        return handle

    def stream_results(self) -> ResultStream:
        """Subscribe to every result reported from now on."""
        return ResultStream(self._subscribers)

    def report(self, run_id: str | None, result: BenchmarkResult) -> None:
        """Deliver a reported result to its run and to all subscribers."""
        if run_id is not None:
            handle = self._pending.pop(run_id, None)
            if handle is None:
                log.warning("Result for unknown run id %s (%s)", run_id, result.key)
            elif not handle.result.done():
                if len(result.millis) != handle.spec.trials:
                    log.warning(
                        "Run %s for %s reported %d samples, expected %d",
                        run_id,
                        handle.spec.key,
                        len(result.millis),
                        handle.spec.trials,
                    )
                handle.result.set_result(result)
        for queue in list(self._subscribers):
            queue.put_nowait(result)

    # -- handlers -----------------------------------------------------------

    async def _handle_submit(self, request: web.Request) -> web.Response:
        try:
            data = await request.json()
        except ValueError as exc:
            raise web.HTTPBadRequest(text=f"Invalid JSON: {exc}") from exc

        browser = parse_user_agent(request.headers.get("User-Agent", ""))
        try:
            run_id, result = parse_submission(data, browser)
        except ValueError as exc:
            log.warning("Rejected result submission: %s", exc)
            raise web.HTTPBadRequest(text=str(exc)) from exc

        log.debug("Received %d samples for %s from %s", len(result.millis), result.key, browser.name)
        self.report(run_id, result)
        return web.json_response({"ok": True})

    async def _handle_static(self, request: web.Request) -> web.StreamResponse:
        rel = request.match_info["path"]
        target = (self.root_dir / rel).resolve()
        if not target.is_relative_to(self._root_resolved):
            raise web.HTTPForbidden()
        if target.is_dir():
            if not request.path.endswith("/"):
                location = request.path + "/"
                if request.query_string:
                    location += "?" + request.query_string
                raise web.HTTPFound(location)
            target = target / "index.html"
        if not target.is_file():
            raise web.HTTPNotFound()
        return web.FileResponse(target)
