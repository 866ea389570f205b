"""Benchmark spec resolution.

Expands the ``--implementation`` and ``--name`` selectors into the list
of specs to run. Layout of the catalog::

    benchmarks/
      <implementation>/
        <benchmark>/
          index.html
          runs.json        (history, see litbench.bench.store)
"""

from __future__ import annotations

import logging
from pathlib import Path

from litbench.bench.results import BenchmarkSpec

log = logging.getLogger("litbench")

ALL = "*"

# Entries of the catalog that are never benchmarks.
IGNORED_ENTRIES = frozenset(
    {
        "node_modules",
        "package.json",
        "package-lock.json",
    }
)


def list_entries(directory: Path) -> list[str]:
    """List benchmark-like entries of *directory*, sorted by name.

    Skips the ignored entries and anything that is not a directory.

    Raises:
        FileNotFoundError: If *directory* does not exist.
    """
    entries = []
    for child in sorted(directory.iterdir(), key=lambda p: p.name):
        if child.name in IGNORED_ENTRIES:
            continue
        if not child.is_dir():
            continue
        entries.append(child.name)
    return entries


def split_selector(selector: str) -> list[str]:
    """Split a comma-separated selector, keeping the listed order."""
    return selector.split(",")


def resolve_specs(
    benchmarks_dir: Path,
    *,
    implementation: str,
    name: str,
    trials: int,
) -> list[BenchmarkSpec]:
    """Resolve selectors into a concrete, ordered list of specs.

    ``"*"`` selects every entry on disk; anything else is a comma list.
    Named entries are not checked for existence: a missing benchmark
    shows up later as a 404 from the server.

    Args:
        benchmarks_dir: Root of the benchmark catalog.
        implementation: Implementation selector.
        name: Benchmark name selector.
        trials: Trial count attached to every spec.

    Returns:
        Specs ordered by implementation, then by name.
    """
    if implementation == ALL:
        implementations = list_entries(benchmarks_dir)
    else:
        implementations = split_selector(implementation)

    specs: list[BenchmarkSpec] = []
    for impl in implementations:
        if name == ALL:
            names = list_entries(benchmarks_dir / impl)
        else:
            names = split_selector(name)
        for bench_name in names:
            specs.append(BenchmarkSpec(name=bench_name, implementation=impl, trials=trials))

    log.debug("Resolved %d benchmark specs from %s", len(specs), benchmarks_dir)
    return specs
