from __future__ import annotations

import math
from collections.abc import Iterable

from ..models.batch import ImportBatch, ImportPlan, ImportRecord
from ..models.material import MasterPriceRecord, MaterialClass, ValidatedImportRow

__all__ = [
    "BatchNotAdmissibleError",
    "to_import_record",
    "compute_delete_set",
    "build_import_plan",
]


class BatchNotAdmissibleError(Exception):
    """Batch still contains rows with an invalid unit; nothing may be written."""


def _concrete(value: float | None) -> float | None:
    if value is None or not math.isfinite(value):
        return None
    return float(value)


def to_import_record(
    row: ValidatedImportRow, material_class: MaterialClass, submitted_by: str
) -> ImportRecord:
    return ImportRecord(
        item_id=row.canonical_code,
        item_type=material_class.code,
        purchase_unit=row.final_unit,
        purchase_price=_concrete(row.final_price),
        currency=row.final_currency,
        user_id=submitted_by,
        normalized_price=row.normalized_price,
        was_duplicate=row.is_duplicate_group,
    )


def compute_delete_set(
    master: Iterable[MasterPriceRecord], material_class: MaterialClass
) -> tuple[str, ...]:
    """Codes to delete from the price master before the bulk insert.

    Only rows of the target class that carry at least one price field are
    replaced. Placeholder rows (every price field null) stay untouched, even
    when the import contains the same code.
    """
    codes: list[str] = []
    seen: set[str] = set()
    for record in master:
        if record.material_class is not material_class or not record.has_price_data:
            continue
        if record.code not in seen:
            seen.add(record.code)
            codes.append(record.code)
    return tuple(codes)


def build_import_plan(
    batch: ImportBatch, master: Iterable[MasterPriceRecord], submitted_by: str
) -> ImportPlan:
    if not batch.is_admissible:
        blocked = ", ".join(str(r.source_row_number) for r in batch.blocking_rows)
        raise BatchNotAdmissibleError(f"invalid unit on rows: {blocked}")
    records = tuple(to_import_record(r, batch.target_class, submitted_by) for r in batch.rows)
    return ImportPlan(
        material_class=batch.target_class,
        records=records,
        delete_codes=compute_delete_set(master, batch.target_class),
    )
