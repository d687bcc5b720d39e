# Shared pytest fixtures
from __future__ import annotations

import tempfile
from pathlib import Path

import pytest

from price_import.logging.init import reset_logging
from price_import.models import (
    CatalogEntry,
    CurrencyRate,
    ImportPlan,
    MasterPriceRecord,
    MaterialClass,
    RawMaterialRow,
)


@pytest.fixture()
def temp_workdir(monkeypatch) -> Path:
    with tempfile.TemporaryDirectory() as d:
        p = Path(d)
        (p / "config").mkdir()
        (p / "data").mkdir()
        (p / "logs").mkdir()
        monkeypatch.chdir(p)
        yield p


@pytest.fixture()
def sample_config_yaml() -> str:
    return """source_file: ./data/harga_bahan.xlsx
sheet_name: Harga
header_row: 2
columns:
  material_class: Tipe
  code: Kode Bahan
  name: Nama Bahan
  unit: Satuan
  currency: Mata Uang
  price: Harga
target_class: raw
period: "2025"
base_currency: IDR
submitted_by: tester
null_sentinels: ["NULL", "(NULL)"]
database:
  host: localhost
  port: 5432
  user: appuser
  password: secret
  database: appdb
"""


@pytest.fixture()
def write_config(temp_workdir: Path, sample_config_yaml: str) -> Path:
    cfg = temp_workdir / "config" / "import.yml"
    cfg.write_text(sample_config_yaml, encoding="utf-8")
    return cfg


@pytest.fixture(autouse=True)
def clean_logging():
    reset_logging()
    yield
    reset_logging()


@pytest.fixture()
def make_row():
    """Factory for RawMaterialRow with sensible raw-material defaults."""
    counter = {"n": 2}

    def _make(
        code: str,
        price: float | None = 100.0,
        unit: str | None = "kg",
        currency: str | None = "IDR",
        label: str = "BB",
        row_number: int | None = None,
        name: str = "",
    ) -> RawMaterialRow:
        counter["n"] += 1
        return RawMaterialRow(
            source_row_number=row_number if row_number is not None else counter["n"],
            material_class_label=label,
            raw_code=code,
            display_name=name or f"material {code}",
            purchase_unit=unit,
            currency_code=currency,
            purchase_price=price,
        )

    return _make


@pytest.fixture()
def catalog_entries() -> list[CatalogEntry]:
    return [
        CatalogEntry(code="100", canonical_name="Lactose", material_class=MaterialClass.RAW),
        CatalogEntry(code="X", canonical_name="Excipient X", material_class=MaterialClass.RAW),
        CatalogEntry(
            code="GLY", canonical_name="Glycerin", material_class=MaterialClass.RAW,
            density=1.25, base_unit="l",
        ),
        CatalogEntry(
            code="ETH", canonical_name="Ethanol", material_class=MaterialClass.RAW,
            density=None, base_unit="l",
        ),
        CatalogEntry(code="B-01", canonical_name="Bottle 60ml", material_class=MaterialClass.PACKAGING,
                     base_unit="pcs"),
    ]


@pytest.fixture()
def rates() -> list[CurrencyRate]:
    return [
        CurrencyRate(code="USD", rate_to_base=15000.0, period="2025"),
        CurrencyRate(code="EUR", rate_to_base=17000.0, period="2025"),
    ]


class FakeRepository:
    """In-memory catalog/currency/master source and price sink."""

    def __init__(
        self,
        catalog: list[CatalogEntry],
        rates: list[CurrencyRate],
        master: list[MasterPriceRecord] | None = None,
    ) -> None:
        self.catalog = catalog
        self.rates = rates
        self.master = master or []
        self.plans: list[tuple[ImportPlan, str]] = []
        self.fail_on: str | None = None

    def fetch_catalog(self) -> list[CatalogEntry]:
        if self.fail_on == "catalog":
            raise ConnectionError("catalog unreachable")
        return list(self.catalog)

    def fetch_currency_rates(self, period: str) -> list[CurrencyRate]:
        if self.fail_on == "rates":
            raise ConnectionError("rates unreachable")
        return [r for r in self.rates if r.period in (None, period)]

    def fetch_master_records(self, material_class: MaterialClass) -> list[MasterPriceRecord]:
        if self.fail_on == "master":
            raise ConnectionError("master unreachable")
        return [m for m in self.master if m.material_class is material_class]

    def replace_prices(self, plan: ImportPlan, period: str) -> int:
        if self.fail_on == "commit":
            raise RuntimeError("deadlock detected")
        self.plans.append((plan, period))
        return len(plan.records)


@pytest.fixture()
def fake_repo(catalog_entries, rates) -> FakeRepository:
    master = [
        MasterPriceRecord("100", MaterialClass.RAW, "kg", 90000.0, "IDR"),
        MasterPriceRecord("OLD", MaterialClass.RAW, "kg", 5000.0, "IDR"),
        MasterPriceRecord("X", MaterialClass.RAW, None, None, None),
        MasterPriceRecord("B-01", MaterialClass.PACKAGING, "pcs", 1200.0, "IDR"),
    ]
    return FakeRepository(catalog_entries, rates, master)
