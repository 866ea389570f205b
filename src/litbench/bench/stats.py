"""Summary statistics for benchmark trial samples.

A run reports one timing sample (in milliseconds) per trial. The results
table shows the worst and average sample; the persisted sessions also
keep the median, minimum and standard deviation so that history can be
compared later without re-reading raw samples.
"""

from __future__ import annotations

import statistics
from dataclasses import dataclass
from typing import Sequence


@dataclass(frozen=True)
class SampleStats:
    """Summary statistics for one set of trial samples."""

    n: int
    worst: float  # max sample
    avg: float  # arithmetic mean
    median: float
    min: float
    stdev: float  # sample stdev, 0.0 when n < 2

    def to_dict(self) -> dict[str, float | int]:
        """Serialize to a dict with rounded values."""
        return {
            "n": self.n,
            "worst": round(self.worst, 6),
            "avg": round(self.avg, 6),
            "median": round(self.median, 6),
            "min": round(self.min, 6),
            "stdev": round(self.stdev, 6),
        }


def summarize(millis: Sequence[float]) -> SampleStats:
    """Reduce trial samples to summary statistics.

    Args:
        millis: One timing sample per trial. Must not be empty.

    Raises:
        ValueError: If *millis* is empty. A run always reports at least
            one trial, so an empty sample set is a caller bug.
    """
    if not millis:
        raise ValueError("Cannot summarize an empty sample set")

    values = [float(v) for v in millis]
    n = len(values)
    return SampleStats(
        n=n,
        worst=max(values),
        avg=sum(values) / n,
        median=statistics.median(values),
        min=min(values),
        stdev=statistics.stdev(values) if n >= 2 else 0.0,
    )


def format_millis(value: float) -> str:
    """Format a millisecond value with fixed 3-decimal precision."""
    return f"{value:.3f}"
