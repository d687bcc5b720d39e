from __future__ import annotations

import json
from dataclasses import dataclass
from enum import Enum

"""RowOutcome model for per-row import reporting.

Every source row that enters the reconciliation pipeline ends up with exactly one
RowOutcome. The record is serialised as JSON Lines with a fixed key set, so the
outcome log can be diffed and asserted on without scraping log text.
"""

__all__ = [
    "OutcomeKind",
    "RowOutcome",
]


class OutcomeKind(Enum):
    IMPORTED = "imported"
    DUPLICATE_WINNER = "imported-as-duplicate-winner"
    WARNING_ZERO_PRICE = "warning-zero-price"
    BLOCKED_INVALID_UNIT = "blocked-invalid-unit"
    REJECTED_WRONG_CLASS = "rejected-wrong-class"
    REJECTED_UNRESOLVED = "rejected-unresolved-code"
    SUPERSEDED = "superseded-by-duplicate"

    @property
    def is_rejection(self) -> bool:
        return self in (
            OutcomeKind.REJECTED_WRONG_CLASS,
            OutcomeKind.REJECTED_UNRESOLVED,
            OutcomeKind.SUPERSEDED,
        )


@dataclass(frozen=True)
class RowOutcome:
    """Outcome of one spreadsheet row.

    Attributes:
        row_number: 1-based spreadsheet row
        canonical_code: material code after suffix stripping
        outcome: what happened to the row
        rule: rule identifier in UPPER_SNAKE_CASE ("" when the row imported cleanly)
        message: human readable detail for correcting the source sheet
        low_confidence: the row's comparison price skipped the mass/volume step
            because the catalog has no density; set on any outcome kind
    """
    row_number: int
    canonical_code: str
    outcome: OutcomeKind
    rule: str = ""
    message: str = ""
    low_confidence: bool = False

    def to_dict(self) -> dict[str, object]:
        return {
            "row": self.row_number,
            "code": self.canonical_code,
            "outcome": self.outcome.value,
            "rule": self.rule,
            "message": self.message,
            "low_confidence": self.low_confidence,
        }

    def to_json_line(self) -> str:
        return json.dumps(self.to_dict(), ensure_ascii=False)
