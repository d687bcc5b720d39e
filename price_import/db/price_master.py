from __future__ import annotations

import logging
import zlib
from datetime import UTC, datetime
from typing import Any

from ..models.batch import ImportPlan
from ..models.material import CatalogEntry, CurrencyRate, MasterPriceRecord, MaterialClass
from .batch_insert import batch_insert

"""PostgreSQL access for the price import (catalog, currency rates, price master).

replace_prices runs as one transaction on the given cursor:

    BEGIN
    SELECT pg_advisory_xact_lock(<class+period>)   -- serialises concurrent imports
    DELETE FROM m_cogs_std_hrg_bahan WHERE item_type = %s AND item_id = ANY(%s)
    INSERT ... (execute_values)
    COMMIT

Any failure rolls back, so a half-applied replace is never visible.
"""

__all__ = [
    "RepositoryError",
    "FetchError",
    "PersistenceError",
    "PriceMasterRepository",
    "MASTER_TABLE",
    "MASTER_COLUMNS",
]

logger = logging.getLogger(__name__)

MASTER_TABLE = "m_cogs_std_hrg_bahan"
MASTER_COLUMNS = (
    "item_id",
    "item_type",
    "item_purchase_unit",
    "item_purchase_std_price",
    "item_currency",
    "user_id",
    "delegated_to",
    "process_date",
    "normalized_price",
    "was_duplicate",
    "created_at",
    "updated_at",
)

CATALOG_SQL = (
    "SELECT item_id, item_name, item_type, item_unit, density "
    "FROM m_item_manufacturing WHERE is_active = '1'"
)
RATES_SQL = "SELECT curr_code, kurs, periode FROM m_cogs_currency WHERE periode = %s"
MASTER_SQL = (
    f"SELECT item_id, item_type, item_purchase_unit, item_purchase_std_price, item_currency "
    f"FROM {MASTER_TABLE} WHERE item_type = %s"
)
DELETE_SQL = f"DELETE FROM {MASTER_TABLE} WHERE item_type = %s AND item_id = ANY(%s)"
LOCK_SQL = "SELECT pg_advisory_xact_lock(%s)"


class RepositoryError(Exception):
    pass


class FetchError(RepositoryError):
    """Catalog / rate / master read failed."""


class PersistenceError(RepositoryError):
    """Replace transaction failed and was rolled back."""


def _float_or_none(value: Any) -> float | None:
    return None if value is None else float(value)


def lock_key(material_class: MaterialClass, period: str) -> int:
    # pg_advisory_xact_lock は bigint キー
    return zlib.crc32(f"{MASTER_TABLE}:{material_class.code}:{period}".encode())


class PriceMasterRepository:
    """Catalog/currency/master reads and the atomic price replace."""

    def __init__(self, cursor: Any, page_size: int = 1000) -> None:
        self.cursor = cursor
        self.page_size = page_size

    def _fetch(self, sql: str, params: tuple[Any, ...] = ()) -> list[tuple[Any, ...]]:
        try:
            self.cursor.execute(sql, params)
            return list(self.cursor.fetchall())
        except Exception as e:
            raise FetchError(str(e)) from e

    def fetch_catalog(self) -> list[CatalogEntry]:
        entries: list[CatalogEntry] = []
        for item_id, name, item_type, unit, density in self._fetch(CATALOG_SQL):
            material_class = MaterialClass.from_label(item_type)
            if material_class is None:
                logger.warning("catalog item=%s has unknown item_type=%r, skipped", item_id, item_type)
                continue
            entries.append(
                CatalogEntry(
                    code=str(item_id),
                    canonical_name=name or "",
                    material_class=material_class,
                    density=_float_or_none(density),
                    base_unit=unit or "kg",
                )
            )
        return entries

    def fetch_currency_rates(self, period: str) -> list[CurrencyRate]:
        return [
            CurrencyRate(code=str(code), rate_to_base=float(rate), period=str(p))
            for code, rate, p in self._fetch(RATES_SQL, (period,))
            if rate is not None
        ]

    def fetch_master_records(self, material_class: MaterialClass) -> list[MasterPriceRecord]:
        return [
            MasterPriceRecord(
                code=str(item_id),
                material_class=material_class,
                purchase_unit=unit,
                purchase_price=_float_or_none(price),
                currency=currency,
            )
            for item_id, _, unit, price, currency in self._fetch(MASTER_SQL, (material_class.code,))
        ]

    def replace_prices(self, plan: ImportPlan, period: str) -> int:
        now = datetime.now(UTC)
        rows = [
            (
                r.item_id,
                r.item_type,
                r.purchase_unit,
                r.purchase_price,
                r.currency,
                r.user_id,
                r.user_id,
                now,
                r.normalized_price,
                r.was_duplicate,
                now,
                now,
            )
            for r in plan.records
        ]
        cur = self.cursor
        try:
            cur.execute("BEGIN")
            cur.execute(LOCK_SQL, (lock_key(plan.material_class, period),))
            if plan.delete_codes:
                cur.execute(DELETE_SQL, (plan.material_class.code, list(plan.delete_codes)))
                logger.debug("deleted codes=%d class=%s", len(plan.delete_codes), plan.material_class.code)
            result = batch_insert(cur, MASTER_TABLE, MASTER_COLUMNS, rows, page_size=self.page_size)
            cur.execute("COMMIT")
        except Exception as e:
            try:
                cur.execute("ROLLBACK")
            except Exception:  # pragma: no cover
                logger.error("rollback failed after: %s", e)
            raise PersistenceError(f"price replace rolled back: {e}") from e
        return result.inserted_rows
