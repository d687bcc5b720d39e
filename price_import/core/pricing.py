from __future__ import annotations

import logging
from collections.abc import Iterable, Mapping
from dataclasses import dataclass
from enum import Enum

from ..models.material import CatalogEntry, CurrencyRate, NormalizedMaterialRow
from ..models.values import KnownPrice, KnownUnit, UnsetPrice

"""Price normalizer: brings every row onto one comparison basis.

The comparison basis is base currency per base unit (kg for mass, l for volume).
Three steps are always evaluated, once each and in this order:

1. currency   price * rate_to_base (no-op for the base currency)
2. unit scale price * 1000 when bought per g / ml
3. dimension  price / density when the purchase unit is mass but the catalog
              unit is volume, or the other way round

The result is only used to rank duplicates; the imported price stays the source
price in its own currency and unit.
"""

__all__ = [
    "Dimension",
    "PriceNormalization",
    "UnresolvedCurrencyError",
    "SUB_UNIT_FACTOR",
    "build_rate_table",
    "convert_to_base",
    "convert_from_base",
    "unit_dimension",
    "unit_scale",
    "normalize_price",
]

logger = logging.getLogger(__name__)

SUB_UNIT_FACTOR = 1000.0


class Dimension(Enum):
    MASS = "mass"
    VOLUME = "volume"


# unit key (lower-case) -> (dimension, multiplier to price-per-base-unit)
_UNITS: dict[str, tuple[Dimension, float]] = {
    "kg": (Dimension.MASS, 1.0),
    "kgs": (Dimension.MASS, 1.0),
    "kilogram": (Dimension.MASS, 1.0),
    "g": (Dimension.MASS, SUB_UNIT_FACTOR),
    "gr": (Dimension.MASS, SUB_UNIT_FACTOR),
    "gram": (Dimension.MASS, SUB_UNIT_FACTOR),
    "l": (Dimension.VOLUME, 1.0),
    "lt": (Dimension.VOLUME, 1.0),
    "ltr": (Dimension.VOLUME, 1.0),
    "liter": (Dimension.VOLUME, 1.0),
    "litre": (Dimension.VOLUME, 1.0),
    "ml": (Dimension.VOLUME, SUB_UNIT_FACTOR),
}


class UnresolvedCurrencyError(Exception):
    """No rate for the row's currency in the current period snapshot."""

    def __init__(self, currency: str) -> None:
        super().__init__(f"no currency rate for {currency!r}")
        self.currency = currency


@dataclass(frozen=True)
class PriceNormalization:
    normalized_price: float
    low_confidence: bool = False  # dimension step needed but density unavailable


def _unit_entry(unit: str | None) -> tuple[Dimension, float] | None:
    if unit is None:
        return None
    return _UNITS.get(unit.strip().lower())


def unit_dimension(unit: str | None) -> Dimension | None:
    entry = _unit_entry(unit)
    return entry[0] if entry else None


def unit_scale(unit: str | None) -> float:
    entry = _unit_entry(unit)
    return entry[1] if entry else 1.0


def _currency_key(code: str | None) -> str:
    return (code or "").strip().upper()


def build_rate_table(rates: Iterable[CurrencyRate]) -> dict[str, CurrencyRate]:
    table: dict[str, CurrencyRate] = {}
    for rate in rates:
        if rate.rate_to_base <= 0:
            logger.warning("ignoring non-positive rate code=%s rate=%s", rate.code, rate.rate_to_base)
            continue
        table[_currency_key(rate.code)] = rate
    return table


def convert_to_base(
    amount: float,
    currency: str | None,
    rates: Mapping[str, CurrencyRate],
    base_currency: str,
) -> float:
    """Convert amount into the base currency.

    A row without a currency code is taken to be priced in the base currency.
    """
    key = _currency_key(currency)
    if key == "" or key == _currency_key(base_currency):
        return amount
    rate = rates.get(key)
    if rate is None:
        raise UnresolvedCurrencyError(key)
    return amount * rate.rate_to_base


def convert_from_base(amount: float, rate: CurrencyRate) -> float:
    return amount / rate.rate_to_base


def normalize_price(
    row: NormalizedMaterialRow,
    entry: CatalogEntry,
    rates: Mapping[str, CurrencyRate],
    base_currency: str,
) -> PriceNormalization:
    """Compute the comparison price of one row.

    Raises:
        UnresolvedCurrencyError: the row's currency has no rate
    """
    if isinstance(row.price, KnownPrice):
        amount = row.price.value
    elif isinstance(row.price, UnsetPrice):
        amount = 0.0
    else:  # pragma: no cover
        raise TypeError(f"unexpected price value: {row.price!r}")

    # 1. currency
    amount = convert_to_base(amount, row.currency_code, rates, base_currency)

    unit_text = row.unit.text if isinstance(row.unit, KnownUnit) else None

    # 2. unit scale
    amount *= unit_scale(unit_text)

    # 3. mass <-> volume
    low_confidence = False
    purchase_dim = unit_dimension(unit_text)
    expected_dim = unit_dimension(entry.base_unit)
    if purchase_dim is not None and expected_dim is not None and purchase_dim != expected_dim:
        if entry.density is None or entry.density <= 0:
            low_confidence = True
            logger.debug(
                "row=%d code=%s density unavailable, dimension step skipped",
                row.source_row_number,
                row.canonical_code,
            )
        else:
            amount /= entry.density

    return PriceNormalization(normalized_price=max(amount, 0.0), low_confidence=low_confidence)
