"""Run history persistence.

Each benchmark directory holds a ``runs.json`` document::

    {"sessions": [<session>, <session>, ...]}

Sessions are only ever appended. The store reads the whole document,
appends, and rewrites it; there is no locking, so only one process
should write a given benchmark's history at a time.
"""

from __future__ import annotations

import json
import logging
from pathlib import Path
from typing import Any

log = logging.getLogger("litbench")

RUNS_FILENAME = "runs.json"


class RunStoreError(Exception):
    """A run history file exists but is not a valid history document."""


class RunStore:
    """Append-only session history, one ``runs.json`` per benchmark.

    Usage::

        store = RunStore(Path("benchmarks"))
        store.append("lit-html/render", session.to_dict())
        sessions = store.load("lit-html/render")
    """

    def __init__(self, benchmarks_dir: Path) -> None:
        self.benchmarks_dir = benchmarks_dir

    def path_for(self, benchmark: str) -> Path:
        """Path of the history file for *benchmark*.

        Raises:
            RunStoreError: If *benchmark* points outside the catalog.
        """
        root = self.benchmarks_dir.resolve()
        target = (root / benchmark).resolve()
        if target == root or not target.is_relative_to(root):
            raise RunStoreError(f"Benchmark {benchmark!r} is outside {self.benchmarks_dir}")
        return self.benchmarks_dir / benchmark / RUNS_FILENAME

    def _read_document(self, path: Path) -> dict[str, Any] | None:
        """Read and validate the history document at *path*.

        Returns None when the file is missing or blank.

        Raises:
            RunStoreError: If the content is not a history document.
        """
        try:
            contents = path.read_text(encoding="utf-8")
        except FileNotFoundError:
            return None
        except UnicodeDecodeError as exc:
            raise RunStoreError(f"Corrupted run history {path}: {exc}") from exc
        if not contents.strip():
            return None

        try:
            data = json.loads(contents)
        except json.JSONDecodeError as exc:
            raise RunStoreError(f"Corrupted run history {path}: {exc}") from exc

        if not isinstance(data, dict):
            raise RunStoreError(
                f"Corrupted run history {path}: expected an object, got {type(data).__name__}"
            )
        sessions = data.get("sessions")
        if sessions is not None and not isinstance(sessions, list):
            raise RunStoreError(
                f"Corrupted run history {path}: 'sessions' must be a list, "
                f"got {type(sessions).__name__}"
            )
        return data

    def load(self, benchmark: str) -> list[dict[str, Any]]:
        """Return the stored sessions for *benchmark*, oldest first."""
        data = self._read_document(self.path_for(benchmark))
        if data is None:
            return []
        return list(data.get("sessions") or [])

    def append(self, benchmark: str, session: dict[str, Any]) -> Path:
        """Append *session* to the history of *benchmark*.

        A missing or blank file, and a document without ``sessions``,
        start a new history. Other top-level keys are preserved.

        Returns:
            The path of the written history file.

        Raises:
            RunStoreError: If the existing file is not a history document.
        """
        path = self.path_for(benchmark)
        data = self._read_document(path)
        if data is None:
            data = {}
        if data.get("sessions") is None:
            data["sessions"] = []
        data["sessions"].append(session)

        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_text(json.dumps(data), encoding="utf-8")
        log.debug("Appended session %d to %s", len(data["sessions"]), path)
        return path
