from __future__ import annotations

import pytest

from price_import.core.identifiers import normalize_row
from price_import.core.validation import (
    build_batch,
    check_class,
    class_rejection,
    row_outcome,
    validate_row,
)
from price_import.models import CatalogEntry, MaterialClass, NormalizedPriceRow, OutcomeKind

LACTOSE = CatalogEntry("100", "Lactose", MaterialClass.RAW)


def _price_row(raw, normalized: float = 1.0, duplicate: bool = False) -> NormalizedPriceRow:
    return NormalizedPriceRow.from_normalized(
        normalize_row(raw),
        normalized_price=normalized,
        catalog_entry=LACTOSE,
        is_duplicate_group=duplicate,
    )


def test_valid_row_keeps_source_values(make_row) -> None:
    row = validate_row(_price_row(make_row("100", price=10, unit=" kg ", currency="USD"), 150000))
    assert row.final_price == 10
    assert row.final_unit == "kg"
    assert row.final_currency == "USD"
    assert not row.has_invalid_unit
    assert not row.has_zero_price


@pytest.mark.parametrize("unit", ["5", "", None, "undefined", "null", "(none)", "None"])
def test_invalid_unit_blocks_batch(make_row, unit) -> None:
    row = validate_row(_price_row(make_row("100", unit=unit)))
    assert row.has_invalid_unit
    assert row.final_unit is None

    batch = build_batch(MaterialClass.RAW, [_price_row(make_row("100", unit=unit))])
    assert not batch.is_admissible
    assert batch.outcomes[0].outcome is OutcomeKind.BLOCKED_INVALID_UNIT
    assert batch.outcomes[0].rule == "INVALID_UNIT"


@pytest.mark.parametrize("price", [0, None, -3, "n/a"])
def test_non_positive_price_warns_but_stays_admissible(make_row, price) -> None:
    row = validate_row(_price_row(make_row("100", price=price)))
    assert row.has_zero_price
    assert row.final_price == 0.0

    batch = build_batch(MaterialClass.RAW, [_price_row(make_row("100", price=price))])
    assert batch.is_admissible
    assert batch.outcomes[0].outcome is OutcomeKind.WARNING_ZERO_PRICE
    assert batch.warning_rows


def test_blank_currency_becomes_none(make_row) -> None:
    row = validate_row(_price_row(make_row("100", currency="  ")))
    assert row.final_currency is None


def test_outcome_precedence(make_row) -> None:
    both = validate_row(_price_row(make_row("100", price=0, unit="5"), duplicate=True))
    assert row_outcome(both).outcome is OutcomeKind.BLOCKED_INVALID_UNIT

    zero_dup = validate_row(_price_row(make_row("100", price=0), duplicate=True))
    assert row_outcome(zero_dup).outcome is OutcomeKind.WARNING_ZERO_PRICE

    dup = validate_row(_price_row(make_row("100"), duplicate=True))
    assert row_outcome(dup).outcome is OutcomeKind.DUPLICATE_WINNER

    plain = validate_row(_price_row(make_row("100")))
    outcome = row_outcome(plain)
    assert outcome.outcome is OutcomeKind.IMPORTED
    assert outcome.rule == ""
    assert not outcome.low_confidence


def test_low_confidence_import_reports_density_rule(make_row) -> None:
    row = NormalizedPriceRow.from_normalized(
        normalize_row(make_row("ETH", price=100, unit="kg")),
        normalized_price=100,
        catalog_entry=CatalogEntry("ETH", "Ethanol", MaterialClass.RAW, base_unit="l"),
        is_duplicate_group=False,
        low_confidence=True,
    )
    outcome = row_outcome(validate_row(row))
    assert outcome.outcome is OutcomeKind.IMPORTED
    assert outcome.rule == "DENSITY_UNAVAILABLE"
    assert outcome.low_confidence


def test_low_confidence_flag_survives_outcome_precedence(make_row) -> None:
    row = NormalizedPriceRow.from_normalized(
        normalize_row(make_row("ETH", price=0, unit="kg")),
        normalized_price=0,
        catalog_entry=LACTOSE,
        is_duplicate_group=True,
        low_confidence=True,
    )
    outcome = row_outcome(validate_row(row))
    assert outcome.outcome is OutcomeKind.WARNING_ZERO_PRICE
    assert outcome.rule == "NON_POSITIVE_PRICE"
    assert outcome.low_confidence


@pytest.mark.parametrize(
    "label, target, expected",
    [
        ("BB", MaterialClass.RAW, True),
        ("bahan baku", MaterialClass.RAW, True),
        ("Raw", MaterialClass.RAW, True),
        ("BK", MaterialClass.RAW, False),
        ("BK", MaterialClass.PACKAGING, True),
        ("", MaterialClass.RAW, False),
        (None, MaterialClass.PACKAGING, False),
    ],
)
def test_check_class(label, target, expected) -> None:
    assert check_class(label, target) is expected


def test_class_rejection_outcome(make_row) -> None:
    raw = make_row("B-01.000", label="BK", row_number=7)
    outcome = class_rejection(raw, "B-01", MaterialClass.RAW)
    assert outcome.outcome is OutcomeKind.REJECTED_WRONG_CLASS
    assert outcome.rule == "WRONG_MATERIAL_CLASS"
    assert outcome.row_number == 7
    assert "BB" in outcome.message


def test_build_batch_orders_outcomes_by_row(make_row) -> None:
    winners = [_price_row(make_row("100", row_number=8)), _price_row(make_row("X", row_number=3))]
    excluded = [class_rejection(make_row("B", label="BK", row_number=5), "B", MaterialClass.RAW)]
    batch = build_batch(MaterialClass.RAW, winners, excluded)
    assert [o.row_number for o in batch.outcomes] == [3, 5, 8]
    assert len(batch.rows) == 2
