from __future__ import annotations

import sys
from typing import Any

from tqdm import tqdm

"""Row progress bar for the reconciliation step (tqdm, TTY only).

The bar advances by the size of each material group as it is reduced to its
winner. With piped output (CI, cron mail) no bar is created, so run logs stay
free of control sequences.
"""

__all__ = [
    "ProgressTracker",
    "is_tty_enabled",
]


def is_tty_enabled() -> bool:
    return sys.stdout.isatty()


class ProgressTracker:
    def __init__(self, total_rows: int, *, description: str = "Reconciling") -> None:
        self.total_rows = total_rows
        self.done = 0
        self._bar: Any = None
        if is_tty_enabled():
            self._bar = tqdm(total=total_rows, desc=description, unit="row", ncols=80, ascii=True)

    @property
    def enabled(self) -> bool:
        return self._bar is not None

    def advance(self, rows: int) -> None:
        self.done += rows
        if self._bar is not None:
            self._bar.update(rows)

    def set_postfix(self, **fields: Any) -> None:
        if self._bar is not None:
            self._bar.set_postfix(**fields)

    def close(self) -> None:
        if self._bar is not None:
            self._bar.close()
            self._bar = None

    def __enter__(self) -> ProgressTracker:
        return self

    def __exit__(self, *exc: Any) -> None:
        self.close()
