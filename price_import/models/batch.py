from __future__ import annotations

from collections import Counter
from dataclasses import dataclass, field

from .material import MaterialClass, ValidatedImportRow
from .outcome import OutcomeKind, RowOutcome

"""Batch-level results of one import run.

ImportBatch is rebuilt from scratch on each run; ImportPlan is what the
persistence layer executes (delete the listed codes, then insert the records).
"""

__all__ = [
    "ImportBatch",
    "ImportRecord",
    "ImportPlan",
]


@dataclass(frozen=True)
class ImportBatch:
    """Validated rows of one run plus one outcome per source row.

    is_admissible is derived: True iff no row carries has_invalid_unit.
    """
    target_class: MaterialClass
    rows: tuple[ValidatedImportRow, ...]
    outcomes: tuple[RowOutcome, ...] = ()
    low_confidence_codes: tuple[str, ...] = ()

    @property
    def is_admissible(self) -> bool:
        return not any(r.has_invalid_unit for r in self.rows)

    @property
    def blocking_rows(self) -> list[ValidatedImportRow]:
        return [r for r in self.rows if r.has_invalid_unit]

    @property
    def warning_rows(self) -> list[ValidatedImportRow]:
        return [r for r in self.rows if r.has_zero_price]

    def outcome_counts(self) -> Counter[OutcomeKind]:
        return Counter(o.outcome for o in self.outcomes)


@dataclass(frozen=True)
class ImportRecord:
    """Persisted shape of one price master row."""
    item_id: str
    item_type: str  # BB / BK
    purchase_unit: str | None
    purchase_price: float | None  # NaN は入れない (float か None)
    currency: str | None
    user_id: str
    normalized_price: float  # audit: value used for duplicate selection
    was_duplicate: bool  # audit: row won a duplicate group


@dataclass(frozen=True)
class ImportPlan:
    material_class: MaterialClass
    records: tuple[ImportRecord, ...]
    delete_codes: tuple[str, ...] = field(default_factory=tuple)
