"""Terminal display formatting for benchmark results.

Renders bordered tables with Unicode box-drawing characters, either all
at once (automatic mode prints the full table at the end) or one row at
a time through :class:`TableStream` (manual mode prints each result as
the browser reports it).
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Callable, Sequence

import click

from litbench.bench.results import BenchmarkResult, BenchmarkSession
from litbench.bench.stats import format_millis, summarize
from litbench.formatting import format_table as format_plain_table


# ---------------------------------------------------------------------------
# Column configuration
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class Column:
    """Width and alignment of one table column.

    ``width=None`` sizes the column to its widest cell. Cells wider than
    a fixed width wrap onto continuation lines.
    """

    width: int | None = None
    alignment: str = "left"  # "left", "right", "center"


RESULT_HEADERS = [
    "Benchmark",  # 0
    "Implementation",  # 1
    "Browser",  # 2
    "(Version)",  # 3
    "Trials",  # 4
    "Worst (ms)",  # 5
    "Avg (ms)",  # 6
]

RESULT_COLUMNS = [
    Column(width=10),
    Column(width=15),
    Column(width=8),
    Column(width=12),
    Column(width=6, alignment="center"),
    Column(width=10, alignment="right"),
    Column(width=8, alignment="right"),
]

DEFAULT_STREAM_WIDTH = 18


def format_result_row(result: BenchmarkResult) -> list[str]:
    """Reduce a result to one table row.

    Returns:
        ``[name, implementation, browser, version, trials, worst, avg]``
        with times at 3-decimal precision.
    """
    stats = summarize(result.millis)
    return [
        result.name,
        result.implementation,
        result.browser.name,
        result.browser.version,
        str(stats.n),
        format_millis(stats.worst),
        format_millis(stats.avg),
    ]


# ---------------------------------------------------------------------------
# Box drawing
# ---------------------------------------------------------------------------


def _wrap(text: str, width: int) -> list[str]:
    if len(text) <= width:
        return [text]
    return [text[i : i + width] for i in range(0, len(text), width)]


def _align(text: str, width: int, alignment: str) -> str:
    if alignment == "right":
        return text.rjust(width)
    if alignment == "center":
        return text.center(width)
    return text.ljust(width)


def _border(widths: Sequence[int], left: str, joint: str, right: str, fill: str) -> str:
    return left + joint.join(fill * (w + 2) for w in widths) + right


def _top(widths: Sequence[int]) -> str:
    return _border(widths, "╔", "╤", "╗", "═")


def _separator(widths: Sequence[int]) -> str:
    return _border(widths, "╟", "┼", "╢", "─")


def _bottom(widths: Sequence[int]) -> str:
    return _border(widths, "╚", "╧", "╝", "═")


def _render_row(
    cells: Sequence[str],
    widths: Sequence[int],
    columns: Sequence[Column],
    *,
    bold: bool = False,
) -> list[str]:
    """Render one logical row, possibly spanning several lines."""
    wrapped = [_wrap(cell, widths[ci]) for ci, cell in enumerate(cells)]
    height = max(len(chunks) for chunks in wrapped)
    lines: list[str] = []
    for li in range(height):
        parts = []
        for ci, chunks in enumerate(wrapped):
            text = chunks[li] if li < len(chunks) else ""
            cell = _align(text, widths[ci], columns[ci].alignment)
            if bold and text:
                cell = click.style(cell, bold=True)
            parts.append(f" {cell} ")
        lines.append("║" + "│".join(parts) + "║")
    return lines


def _normalize(row: Sequence[str], ncols: int) -> list[str]:
    padded = [str(cell) for cell in row] + [""] * (ncols - len(row))
    return padded[:ncols]


def _resolve_widths(
    rows: Sequence[Sequence[str]],
    columns: Sequence[Column],
) -> list[int]:
    widths: list[int] = []
    for ci, col in enumerate(columns):
        if col.width is not None:
            widths.append(col.width)
        else:
            widths.append(max((len(row[ci]) for row in rows), default=0))
    return widths


# ---------------------------------------------------------------------------
# One-shot table
# ---------------------------------------------------------------------------


def format_table(
    rows: Sequence[Sequence[str]],
    *,
    headers: Sequence[str] | None = None,
    columns: Sequence[Column] | None = None,
) -> str:
    """Lay out *rows* as a bordered table.

    Args:
        rows: Cell strings, one list per row.
        headers: Optional header row, rendered in bold above *rows*.
        columns: Per-column configuration. Missing entries size to content.

    Returns:
        The table as a string (no trailing newline).
    """
    all_rows = ([list(headers)] if headers else []) + [list(r) for r in rows]
    if not all_rows:
        return ""

    ncols = max(len(r) for r in all_rows)
    cols = list(columns or [])
    while len(cols) < ncols:
        cols.append(Column())
    cols = cols[:ncols]

    normalized = [_normalize(r, ncols) for r in all_rows]
    widths = _resolve_widths(normalized, cols)

    lines = [_top(widths)]
    for i, row in enumerate(normalized):
        if i > 0:
            lines.append(_separator(widths))
        lines.extend(_render_row(row, widths, cols, bold=bool(headers) and i == 0))
    lines.append(_bottom(widths))
    return "\n".join(lines)


def format_results_table(results: Sequence[BenchmarkResult]) -> str:
    """Full results table with headers, as printed at the end of a run."""
    return format_table(
        [format_result_row(r) for r in results],
        headers=RESULT_HEADERS,
        columns=RESULT_COLUMNS,
    )


def format_dispatch_table(rows: Sequence[Sequence[str]]) -> str:
    """Table of ``(name, implementation, url)`` rows for manual runs."""
    return format_table(rows)


# ---------------------------------------------------------------------------
# Streaming table
# ---------------------------------------------------------------------------


class TableStream:
    """Write a bordered table one row at a time.

    Each call to :meth:`write_row` emits the row immediately (preceded by
    the top border or a row separator), so rows appear in exactly the
    order they were written. Column widths must be fixed up front.

    Usage::

        stream = TableStream(columns=RESULT_COLUMNS)
        stream.write_header(RESULT_HEADERS)
        stream.write_row(format_result_row(result))
    """

    def __init__(
        self,
        *,
        columns: Sequence[Column],
        write: Callable[[str], None] = click.echo,
        default_width: int = DEFAULT_STREAM_WIDTH,
    ) -> None:
        self.columns = [
            col if col.width is not None else Column(default_width, col.alignment)
            for col in columns
        ]
        self.widths = [col.width or default_width for col in self.columns]
        self._write = write
        self._rows_written = 0
        self._closed = False

    @property
    def rows_written(self) -> int:
        return self._rows_written

    def _emit(self, row: Sequence[str], *, bold: bool) -> None:
        if self._closed:
            raise RuntimeError("Cannot write to a closed table stream")
        lines = [_top(self.widths) if self._rows_written == 0 else _separator(self.widths)]
        lines.extend(
            _render_row(_normalize(row, len(self.columns)), self.widths, self.columns, bold=bold)
        )
        self._write("\n".join(lines))
        self._rows_written += 1

    def write_header(self, headers: Sequence[str]) -> None:
        """Write a bold header row."""
        self._emit(headers, bold=True)

    def write_row(self, row: Sequence[str]) -> None:
        """Write one data row."""
        self._emit(row, bold=False)

    def close(self) -> None:
        """Write the bottom border. Further writes are rejected."""
        if self._closed:
            return
        if self._rows_written:
            self._write(_bottom(self.widths))
        self._closed = True


# ---------------------------------------------------------------------------
# History
# ---------------------------------------------------------------------------


def format_history(benchmark: str, sessions: Sequence[BenchmarkSession]) -> str:
    """Format the stored sessions of one benchmark, oldest first."""
    if not sessions:
        return f"No runs recorded for {benchmark}."

    rows: list[list[str]] = []
    for s in sessions:
        if s.millis:
            stats = summarize(s.millis)
            worst, avg, median = (
                format_millis(stats.worst),
                format_millis(stats.avg),
                format_millis(stats.median),
            )
        else:
            worst = avg = median = "N/A"
        rows.append(
            [s.timestamp, s.browser.name, s.browser.version, str(s.trials), worst, avg, median]
        )

    lines = [f"{benchmark} ({len(sessions)} sessions)", ""]
    lines.append(
        format_plain_table(
            ["Timestamp", "Browser", "Version", "Trials", "Worst (ms)", "Avg (ms)", "Median (ms)"],
            rows,
            alignments=["l", "l", "l", "r", "r", "r", "r"],
        )
    )
    return "\n".join(lines)
