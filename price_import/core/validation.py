from __future__ import annotations

import math
from collections.abc import Iterable, Sequence

from ..models.batch import ImportBatch
from ..models.material import MaterialClass, NormalizedPriceRow, RawMaterialRow, ValidatedImportRow
from ..models.outcome import OutcomeKind, RowOutcome
from ..models.values import InvalidUnit, KnownPrice, KnownUnit, UnsetPrice

"""Row validator and batch admissibility.

Rules:
- invalid unit (empty, purely numeric, null/undefined/(none)/none) -> blocking;
  one such row makes the whole batch inadmissible
- missing / non-finite / <= 0 price -> warning; price coerced to 0
- class label different from the import's target class -> row rejected
"""

__all__ = [
    "check_class",
    "class_rejection",
    "validate_row",
    "row_outcome",
    "build_batch",
]


def check_class(label: str | None, target_class: MaterialClass) -> bool:
    return MaterialClass.from_label(label) is target_class


def class_rejection(row: RawMaterialRow, canonical_code: str, target_class: MaterialClass) -> RowOutcome:
    return RowOutcome(
        row_number=row.source_row_number,
        canonical_code=canonical_code,
        outcome=OutcomeKind.REJECTED_WRONG_CLASS,
        rule="WRONG_MATERIAL_CLASS",
        message=(
            f"class label {row.material_class_label!r} does not match "
            f"import target {target_class.code}"
        ),
    )


def validate_row(row: NormalizedPriceRow) -> ValidatedImportRow:
    """Attach final importable values and the two quality flags.

    The final values are the row's own price/unit/currency, never the
    normalized comparison price.
    """
    if isinstance(row.unit, KnownUnit):
        final_unit: str | None = row.unit.text.strip()
        has_invalid_unit = False
    elif isinstance(row.unit, InvalidUnit):
        final_unit = None
        has_invalid_unit = True
    else:  # pragma: no cover
        raise TypeError(f"unexpected unit value: {row.unit!r}")

    if isinstance(row.price, KnownPrice) and math.isfinite(row.price.value) and row.price.value > 0:
        final_price = row.price.value
        has_zero_price = False
    elif isinstance(row.price, (KnownPrice, UnsetPrice)):
        final_price = 0.0
        has_zero_price = True
    else:  # pragma: no cover
        raise TypeError(f"unexpected price value: {row.price!r}")

    currency = (row.currency_code or "").strip() or None

    return ValidatedImportRow.from_price_row(
        row,
        final_price=final_price,
        final_unit=final_unit,
        final_currency=currency,
        has_invalid_unit=has_invalid_unit,
        has_zero_price=has_zero_price,
    )


def row_outcome(row: ValidatedImportRow) -> RowOutcome:
    """Reported outcome of a validated row. Blocking beats warning beats success.

    A clean import whose comparison skipped the density step reports rule
    DENSITY_UNAVAILABLE; every other kind carries the flag alone.
    """
    low = row.low_confidence
    if row.has_invalid_unit:
        return RowOutcome(
            row_number=row.source_row_number,
            canonical_code=row.canonical_code,
            outcome=OutcomeKind.BLOCKED_INVALID_UNIT,
            rule="INVALID_UNIT",
            message=f"purchase unit {row.purchase_unit!r} is not a usable unit",
            low_confidence=low,
        )
    if row.has_zero_price:
        return RowOutcome(
            row_number=row.source_row_number,
            canonical_code=row.canonical_code,
            outcome=OutcomeKind.WARNING_ZERO_PRICE,
            rule="NON_POSITIVE_PRICE",
            message=f"purchase price {row.purchase_price!r} imported as 0",
            low_confidence=low,
        )
    if row.is_duplicate_group:
        return RowOutcome(
            row_number=row.source_row_number,
            canonical_code=row.canonical_code,
            outcome=OutcomeKind.DUPLICATE_WINNER,
            rule="DUPLICATE_CODE",
            message=f"highest normalized price {row.normalized_price:g} among duplicates",
            low_confidence=low,
        )
    if low:
        return RowOutcome(
            row_number=row.source_row_number,
            canonical_code=row.canonical_code,
            outcome=OutcomeKind.IMPORTED,
            rule="DENSITY_UNAVAILABLE",
            message="catalog has no density; mass/volume price compared at face value",
            low_confidence=True,
        )
    return RowOutcome(
        row_number=row.source_row_number,
        canonical_code=row.canonical_code,
        outcome=OutcomeKind.IMPORTED,
    )


def build_batch(
    target_class: MaterialClass,
    winners: Sequence[NormalizedPriceRow],
    excluded: Iterable[RowOutcome] = (),
    low_confidence_codes: Sequence[str] = (),
) -> ImportBatch:
    """Validate winners and assemble the batch with one outcome per source row.

    Outcomes are ordered by spreadsheet row number.
    """
    rows = tuple(validate_row(w) for w in winners)
    outcomes = [row_outcome(r) for r in rows]
    outcomes.extend(excluded)
    outcomes.sort(key=lambda o: o.row_number)
    return ImportBatch(
        target_class=target_class,
        rows=rows,
        outcomes=tuple(outcomes),
        low_confidence_codes=tuple(low_confidence_codes),
    )
