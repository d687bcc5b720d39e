from __future__ import annotations

from typing import Protocol

from ..models.batch import ImportPlan
from ..models.material import CatalogEntry, CurrencyRate, MasterPriceRecord, MaterialClass

"""External collaborators of the import run.

The orchestrator only talks to these interfaces. PriceMasterRepository
(psycopg2) implements all four; tests pass in-memory fakes.
"""

__all__ = [
    "CatalogSource",
    "CurrencySource",
    "MasterSource",
    "PriceSink",
]


class CatalogSource(Protocol):
    def fetch_catalog(self) -> list[CatalogEntry]: ...


class CurrencySource(Protocol):
    def fetch_currency_rates(self, period: str) -> list[CurrencyRate]: ...


class MasterSource(Protocol):
    def fetch_master_records(self, material_class: MaterialClass) -> list[MasterPriceRecord]: ...


class PriceSink(Protocol):
    def replace_prices(self, plan: ImportPlan, period: str) -> int:
        """Delete plan.delete_codes then insert plan.records atomically.

        Returns the number of inserted records.
        """
        ...
