"""Benchmark spec and result data structures.

Hierarchy::

    BenchmarkSpec (one unit of work: implementation x benchmark x trials)
      -> RunHandle (server-issued URL + future for the result)
        -> BenchmarkResult (name, implementation, browser, millis)
          -> BenchmarkSession (persisted summary in runs.json)
"""

from __future__ import annotations

import asyncio
import time
from dataclasses import dataclass, field
from typing import Any

from litbench.bench.stats import summarize


# ---------------------------------------------------------------------------
# Spec
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class BenchmarkSpec:
    """One benchmark case to run."""

    name: str
    implementation: str
    trials: int

    @property
    def key(self) -> str:
        """Directory key of this benchmark, relative to the benchmarks root."""
        return f"{self.implementation}/{self.name}"

    def to_dict(self) -> dict[str, Any]:
        """Serialize to a JSON-compatible dict."""
        return {
            "name": self.name,
            "implementation": self.implementation,
            "trials": self.trials,
        }


# ---------------------------------------------------------------------------
# Run handle
# ---------------------------------------------------------------------------


@dataclass
class RunHandle:
    """A registered run: where to point the browser and what to await."""

    id: str
    spec: BenchmarkSpec
    url: str
    result: asyncio.Future[BenchmarkResult]


# ---------------------------------------------------------------------------
# Result
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class BrowserInfo:
    """Name and version of the browser that produced a result."""

    name: str
    version: str = ""

    def to_dict(self) -> dict[str, str]:
        """Serialize to a JSON-compatible dict."""
        return {"name": self.name, "version": self.version}

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> BrowserInfo:
        """Deserialize from a dict."""
        return cls(name=data.get("name", ""), version=data.get("version", ""))


@dataclass(frozen=True)
class BenchmarkResult:
    """Trial samples reported by a browser for one benchmark run."""

    name: str
    implementation: str
    browser: BrowserInfo
    millis: tuple[float, ...]

    @property
    def key(self) -> str:
        """Directory key of the benchmark this result belongs to."""
        return f"{self.implementation}/{self.name}"

    def to_dict(self) -> dict[str, Any]:
        """Serialize to a JSON-compatible dict."""
        return {
            "name": self.name,
            "implementation": self.implementation,
            "browser": self.browser.to_dict(),
            "millis": list(self.millis),
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> BenchmarkResult:
        """Deserialize from a dict, ignoring unknown fields."""
        return cls(
            name=data["name"],
            implementation=data["implementation"],
            browser=BrowserInfo.from_dict(data.get("browser", {})),
            millis=tuple(float(m) for m in data.get("millis", [])),
        )


# ---------------------------------------------------------------------------
# Session (persisted)
# ---------------------------------------------------------------------------


@dataclass
class BenchmarkSession:
    """One completed run as stored in a benchmark's ``runs.json``."""

    timestamp: str
    name: str
    implementation: str
    browser: BrowserInfo
    millis: list[float] = field(default_factory=list)

    @property
    def trials(self) -> int:
        return len(self.millis)

    @classmethod
    def from_result(
        cls,
        result: BenchmarkResult,
        *,
        timestamp: str | None = None,
    ) -> BenchmarkSession:
        """Build a session from a freshly collected result."""
        return cls(
            timestamp=timestamp or time.strftime("%Y-%m-%dT%H:%M:%S%z"),
            name=result.name,
            implementation=result.implementation,
            browser=result.browser,
            millis=list(result.millis),
        )

    def to_dict(self) -> dict[str, Any]:
        """Serialize to a JSON-compatible dict.

        Stats are derived from ``millis`` and written alongside them so
        that the history file is readable without recomputation.
        """
        d: dict[str, Any] = {
            "timestamp": self.timestamp,
            "name": self.name,
            "implementation": self.implementation,
            "browser": self.browser.to_dict(),
            "trials": self.trials,
            "millis": [round(m, 6) for m in self.millis],
        }
        if self.millis:
            d["stats"] = summarize(self.millis).to_dict()
        return d

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> BenchmarkSession:
        """Deserialize from a dict.  Stats are not read back; they are
        recomputed from ``millis`` when needed."""
        return cls(
            timestamp=data.get("timestamp", ""),
            name=data.get("name", ""),
            implementation=data.get("implementation", ""),
            browser=BrowserInfo.from_dict(data.get("browser", {})),
            millis=[float(m) for m in data.get("millis", [])],
        )
