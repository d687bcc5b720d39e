from __future__ import annotations

from dataclasses import dataclass, fields
from enum import Enum
from typing import Any

from .values import Price, Unit

"""Material rows and reference data for the price import.

RawMaterialRow is what the workbook reader emits. Each later stage of the
reconciliation pipeline produces a new, wider frozen row type rather than
mutating the previous one:

    RawMaterialRow -> NormalizedMaterialRow -> NormalizedPriceRow -> ValidatedImportRow
"""

__all__ = [
    "MaterialClass",
    "RawMaterialRow",
    "NormalizedMaterialRow",
    "NormalizedPriceRow",
    "ValidatedImportRow",
    "CatalogEntry",
    "CurrencyRate",
    "MasterPriceRecord",
]


class MaterialClass(Enum):
    """Material class of a price master entry.

    The value is the fixed two-letter ITEM_TYPE code stored in the master table.
    """
    RAW = "BB"        # bahan baku
    PACKAGING = "BK"  # bahan kemas

    @property
    def code(self) -> str:
        return self.value

    @classmethod
    def from_label(cls, label: Any) -> MaterialClass | None:
        """Map a spreadsheet/config label to a class. Unknown labels give None."""
        if label is None:
            return None
        key = str(label).strip().lower()
        return _CLASS_LABELS.get(key)


_CLASS_LABELS: dict[str, MaterialClass] = {
    "bb": MaterialClass.RAW,
    "raw": MaterialClass.RAW,
    "bahan baku": MaterialClass.RAW,
    "bk": MaterialClass.PACKAGING,
    "packaging": MaterialClass.PACKAGING,
    "bahan kemas": MaterialClass.PACKAGING,
}


def _field_values(obj: Any) -> dict[str, Any]:
    # asdict() は入れ子の dataclass (Price/Unit) まで dict 化してしまうため使わない
    return {f.name: getattr(obj, f.name) for f in fields(obj)}


@dataclass(frozen=True)
class RawMaterialRow:
    """One data row as read from the purchase price workbook.

    source_row_number is the 1-based spreadsheet row, used in every report.
    """
    source_row_number: int
    material_class_label: str
    raw_code: str
    display_name: str  # informational only
    purchase_unit: str | None
    currency_code: str | None
    purchase_price: float | None


@dataclass(frozen=True)
class NormalizedMaterialRow(RawMaterialRow):
    canonical_code: str
    original_code: str
    price: Price
    unit: Unit

    @classmethod
    def from_raw(
        cls, raw: RawMaterialRow, canonical_code: str, price: Price, unit: Unit
    ) -> NormalizedMaterialRow:
        return cls(
            **_field_values(raw),
            canonical_code=canonical_code,
            original_code=raw.raw_code,
            price=price,
            unit=unit,
        )


@dataclass(frozen=True)
class CatalogEntry:
    """Read-only catalog data for one material code.

    base_unit is the manufacturing unit of the item (kg, l, pcs, ...); its
    dimension decides whether a density conversion is needed.
    density is mass per volume. None or <= 0 means unavailable.
    """
    code: str
    canonical_name: str
    material_class: MaterialClass
    density: float | None = 1.0
    base_unit: str = "kg"


@dataclass(frozen=True)
class CurrencyRate:
    code: str
    rate_to_base: float
    period: str | None = None


@dataclass(frozen=True)
class NormalizedPriceRow(NormalizedMaterialRow):
    """Row with its comparison price in base currency and base unit.

    normalized_price is used only to pick duplicate winners; it is never persisted
    as the price itself.
    """
    normalized_price: float
    is_duplicate_group: bool
    catalog_entry: CatalogEntry
    low_confidence: bool

    @classmethod
    def from_normalized(
        cls,
        row: NormalizedMaterialRow,
        normalized_price: float,
        catalog_entry: CatalogEntry,
        is_duplicate_group: bool = False,
        low_confidence: bool = False,
    ) -> NormalizedPriceRow:
        return cls(
            **_field_values(row),
            normalized_price=normalized_price,
            is_duplicate_group=is_duplicate_group,
            catalog_entry=catalog_entry,
            low_confidence=low_confidence,
        )


@dataclass(frozen=True)
class ValidatedImportRow(NormalizedPriceRow):
    final_price: float | None
    final_unit: str | None
    final_currency: str | None
    has_invalid_unit: bool
    has_zero_price: bool

    @classmethod
    def from_price_row(
        cls,
        row: NormalizedPriceRow,
        *,
        final_price: float | None,
        final_unit: str | None,
        final_currency: str | None,
        has_invalid_unit: bool,
        has_zero_price: bool,
    ) -> ValidatedImportRow:
        return cls(
            **_field_values(row),
            final_price=final_price,
            final_unit=final_unit,
            final_currency=final_currency,
            has_invalid_unit=has_invalid_unit,
            has_zero_price=has_zero_price,
        )


@dataclass(frozen=True)
class MasterPriceRecord:
    """Existing row of the price master for one material."""
    code: str
    material_class: MaterialClass
    purchase_unit: str | None
    purchase_price: float | None
    currency: str | None

    @property
    def has_price_data(self) -> bool:
        """False for placeholder rows whose every price field is null."""
        return any(
            v is not None for v in (self.purchase_unit, self.purchase_price, self.currency)
        )
