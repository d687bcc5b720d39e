from __future__ import annotations

import logging
from collections.abc import Callable, Iterable, Mapping, Sequence
from dataclasses import dataclass

from ..models.material import CatalogEntry, CurrencyRate, NormalizedMaterialRow, NormalizedPriceRow
from ..models.outcome import OutcomeKind, RowOutcome
from .grouping import group_by_code
from .pricing import UnresolvedCurrencyError, normalize_price

"""Duplicate reconciliation: group rows by canonical code, then reduce each group
to a single winner.

The same function serves raw and packaging imports; everything class specific
comes in through the catalog lookup callable.
"""

__all__ = [
    "CatalogLookup",
    "ReconcileResult",
    "select_winner",
    "reconcile",
]

logger = logging.getLogger(__name__)

CatalogLookup = Callable[[str], "CatalogEntry | None"]


@dataclass(frozen=True)
class ReconcileResult:
    winners: tuple[NormalizedPriceRow, ...]
    # rows that did not make it: unresolved code/currency or beaten by a duplicate
    outcomes: tuple[RowOutcome, ...]
    # codes where any priced row skipped the density step
    low_confidence_codes: tuple[str, ...] = ()


def select_winner(rows: Sequence[NormalizedPriceRow]) -> NormalizedPriceRow:
    """Row with the strictly greatest normalized_price; ties keep the earliest row."""
    if not rows:
        raise ValueError("cannot select a winner from an empty group")
    best = rows[0]
    for row in rows[1:]:
        if row.normalized_price > best.normalized_price:
            best = row
    return best


def reconcile(
    rows: Iterable[NormalizedMaterialRow],
    lookup: CatalogLookup,
    rates: Mapping[str, CurrencyRate],
    base_currency: str,
    on_group: Callable[[int], None] | None = None,
) -> ReconcileResult:
    """Resolve, group, price and reduce rows to one winner per canonical code.

    Parameters
    ----------
    rows: normalized rows of a single material class, in source order
    lookup: canonical code -> CatalogEntry (None = unresolved)
    rates: currency rate table keyed by upper-case code
    base_currency: currency of the comparison basis
    on_group: called with the number of rows settled, once per group and once
        per unresolved row (progress display)
    """
    outcomes: list[RowOutcome] = []
    entries: dict[str, CatalogEntry] = {}
    resolved: list[NormalizedMaterialRow] = []

    for row in rows:
        code = row.canonical_code
        if code not in entries:
            entry = lookup(code)
            if entry is None:
                outcomes.append(
                    RowOutcome(
                        row_number=row.source_row_number,
                        canonical_code=code,
                        outcome=OutcomeKind.REJECTED_UNRESOLVED,
                        rule="UNKNOWN_CATALOG_CODE",
                        message=f"code {row.original_code!r} (canonical {code!r}) not found in catalog",
                    )
                )
                if on_group is not None:
                    on_group(1)
                continue
            entries[code] = entry
        resolved.append(row)

    winners: list[NormalizedPriceRow] = []
    low_confidence: list[str] = []

    for group in group_by_code(resolved):
        entry = entries[group.canonical_code]
        priced: list[tuple[NormalizedMaterialRow, float, bool]] = []
        for row in group.rows:
            try:
                result = normalize_price(row, entry, rates, base_currency)
            except UnresolvedCurrencyError as e:
                outcomes.append(
                    RowOutcome(
                        row_number=row.source_row_number,
                        canonical_code=row.canonical_code,
                        outcome=OutcomeKind.REJECTED_UNRESOLVED,
                        rule="UNKNOWN_CURRENCY_RATE",
                        message=f"currency {e.currency!r} has no rate for the selected period",
                    )
                )
                continue
            priced.append((row, result.normalized_price, result.low_confidence))

        if on_group is not None:
            on_group(len(group.rows))
        if not priced:
            continue

        is_duplicate = len(priced) > 1
        candidates = [
            NormalizedPriceRow.from_normalized(
                row,
                normalized_price=price,
                catalog_entry=entry,
                is_duplicate_group=is_duplicate,
                low_confidence=low,
            )
            for row, price, low in priced
        ]
        winner = select_winner(candidates)
        winners.append(winner)
        # 勝者・敗者を問わず、密度なしで比較された行があればコードを記録
        if any(c.low_confidence for c in candidates):
            low_confidence.append(group.canonical_code)

        for loser in candidates:
            if loser is winner:
                continue
            outcomes.append(
                RowOutcome(
                    row_number=loser.source_row_number,
                    canonical_code=loser.canonical_code,
                    outcome=OutcomeKind.SUPERSEDED,
                    rule="DUPLICATE_CODE",
                    message=(
                        f"superseded by row {winner.source_row_number} "
                        f"(normalized {loser.normalized_price:g} <= {winner.normalized_price:g})"
                    ),
                    low_confidence=loser.low_confidence,
                )
            )
        if is_duplicate:
            logger.debug(
                "code=%s duplicates=%d winner_row=%d normalized=%s",
                group.canonical_code,
                len(candidates),
                winner.source_row_number,
                winner.normalized_price,
            )

    return ReconcileResult(
        winners=tuple(winners),
        outcomes=tuple(outcomes),
        low_confidence_codes=tuple(low_confidence),
    )
