from __future__ import annotations

from typing import Any

import pytest

from price_import.db import batch_insert as bi
from price_import.db.price_master import (
    DELETE_SQL,
    LOCK_SQL,
    MASTER_COLUMNS,
    FetchError,
    PersistenceError,
    PriceMasterRepository,
    lock_key,
)
from price_import.models import ImportPlan, ImportRecord, MaterialClass


class DummyCursor:
    """Records execute() calls and serves canned fetchall() results."""

    def __init__(self, results: list[list[tuple[Any, ...]]] | None = None, fail_on: str | None = None):
        self.executed: list[tuple[str, Any]] = []
        self.results = list(results or [])
        self.fail_on = fail_on

    def execute(self, sql: str, params: Any = None) -> None:
        if self.fail_on and self.fail_on in sql:
            raise RuntimeError(f"boom on {self.fail_on}")
        self.executed.append((sql, params))

    def fetchall(self) -> list[tuple[Any, ...]]:
        return self.results.pop(0) if self.results else []


@pytest.fixture()
def inserted(monkeypatch) -> list[tuple[str, list]]:
    calls: list[tuple[str, list]] = []

    def fake_execute_values(cur, sql, rows, page_size=100):
        cur.execute("INSERT (execute_values)", None)
        calls.append((sql, list(rows)))

    monkeypatch.setattr(bi, "execute_values", fake_execute_values)
    return calls


def _plan(delete_codes=("100", "OLD")) -> ImportPlan:
    return ImportPlan(
        material_class=MaterialClass.RAW,
        records=(
            ImportRecord("100", "BB", "kg", 10.0, "USD", "tester", 150000.0, True),
            ImportRecord("X", "BB", "kg", 0.0, "IDR", "tester", 0.0, False),
        ),
        delete_codes=delete_codes,
    )


def test_fetch_catalog_maps_rows() -> None:
    cur = DummyCursor(
        [[("100", "Lactose", "BB", "kg", 1.0), ("GLY", "Glycerin", "BB", "l", None), ("Z", "?", "ZZ", "kg", 1)]]
    )
    entries = PriceMasterRepository(cur).fetch_catalog()
    assert [e.code for e in entries] == ["100", "GLY"]
    assert entries[1].density is None
    assert entries[1].base_unit == "l"
    assert entries[0].material_class is MaterialClass.RAW


def test_fetch_currency_rates_passes_period() -> None:
    cur = DummyCursor([[("USD", 15000, "2025"), ("EUR", None, "2025")]])
    rates = PriceMasterRepository(cur).fetch_currency_rates("2025")
    assert [(r.code, r.rate_to_base, r.period) for r in rates] == [("USD", 15000.0, "2025")]
    assert cur.executed[0][1] == ("2025",)


def test_fetch_master_records_filters_by_class() -> None:
    cur = DummyCursor([[("100", "BB", "kg", 90000, "IDR"), ("X", "BB", None, None, None)]])
    records = PriceMasterRepository(cur).fetch_master_records(MaterialClass.RAW)
    assert cur.executed[0][1] == ("BB",)
    assert records[0].purchase_price == 90000.0
    assert not records[1].has_price_data


def test_fetch_failure_raises_fetch_error() -> None:
    cur = DummyCursor(fail_on="m_item_manufacturing")
    with pytest.raises(FetchError):
        PriceMasterRepository(cur).fetch_catalog()


def test_replace_prices_runs_one_transaction(inserted) -> None:
    cur = DummyCursor()
    count = PriceMasterRepository(cur).replace_prices(_plan(), "2025")

    assert count == 2
    statements = [sql for sql, _ in cur.executed]
    assert statements == ["BEGIN", LOCK_SQL, DELETE_SQL, "INSERT (execute_values)", "COMMIT"]
    assert cur.executed[1][1] == (lock_key(MaterialClass.RAW, "2025"),)
    assert cur.executed[2][1] == ("BB", ["100", "OLD"])

    ((sql, rows),) = inserted
    assert all(f'"{c}"' in sql for c in MASTER_COLUMNS)
    first = rows[0]
    assert len(first) == len(MASTER_COLUMNS)
    assert first[:6] == ("100", "BB", "kg", 10.0, "USD", "tester")


def test_replace_prices_without_delete_codes(inserted) -> None:
    cur = DummyCursor()
    PriceMasterRepository(cur).replace_prices(_plan(delete_codes=()), "2025")
    assert [sql for sql, _ in cur.executed] == ["BEGIN", LOCK_SQL, "INSERT (execute_values)", "COMMIT"]


def test_replace_prices_rolls_back_on_failure(inserted) -> None:
    cur = DummyCursor(fail_on="DELETE")
    with pytest.raises(PersistenceError, match="rolled back"):
        PriceMasterRepository(cur).replace_prices(_plan(), "2025")
    statements = [sql for sql, _ in cur.executed]
    assert statements[-1] == "ROLLBACK"
    assert "COMMIT" not in statements
    assert inserted == []


def test_lock_key_differs_per_class_and_period() -> None:
    keys = {
        lock_key(MaterialClass.RAW, "2025"),
        lock_key(MaterialClass.PACKAGING, "2025"),
        lock_key(MaterialClass.RAW, "2026"),
    }
    assert len(keys) == 3
