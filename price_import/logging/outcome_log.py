from __future__ import annotations

from collections.abc import Iterable
from datetime import UTC, datetime
from pathlib import Path

from ..models.outcome import RowOutcome

"""Outcome log buffering.

- JSON Lines, fixed key set (row, code, outcome, rule, message)
- one file per run: logs/outcomes-YYYYMMDD-HHMMSS.log (UTC)
- records are buffered and written on flush(); the pipeline is single threaded
"""

__all__ = [
    "RowOutcome",
    "OutcomeLogBuffer",
]

LOGS_DIR = Path("./logs")
TIMESTAMP_FMT = "%Y%m%d-%H%M%S"


class OutcomeLogBuffer:
    """In-memory buffer of RowOutcome records. flush() appends them as JSON Lines."""

    def __init__(self, logs_dir: Path | None = None) -> None:
        self._records: list[RowOutcome] = []
        self._file_path: Path | None = None
        self._logs_dir = logs_dir or LOGS_DIR

    @property
    def file_path(self) -> Path:
        if self._file_path is None:
            self._logs_dir.mkdir(parents=True, exist_ok=True)
            stamp = datetime.now(UTC).strftime(TIMESTAMP_FMT)
            self._file_path = self._logs_dir / f"outcomes-{stamp}.log"
        return self._file_path

    def append(self, record: RowOutcome) -> None:
        self._records.append(record)

    def extend(self, records: Iterable[RowOutcome]) -> None:
        self._records.extend(records)

    def __len__(self) -> int:  # pragma: no cover (trivial)
        return len(self._records)

    def flush(self) -> Path | None:
        """Write buffered records. Returns None when there was nothing to write."""
        if not self._records:
            return None
        fp = self.file_path
        with fp.open("a", encoding="utf-8") as f:
            for r in self._records:
                f.write(r.to_json_line() + "\n")
        self._records.clear()
        return fp
