from __future__ import annotations

import math
import re
from dataclasses import dataclass
from typing import Any, Union

"""Explicit presence types for price and unit cells.

Spreadsheet cells arrive as None, NaN, "", "undefined", numeric strings and so on.
All of those rules are decided once here; downstream code only ever sees

    Price = KnownPrice | UnsetPrice
    Unit  = KnownUnit  | InvalidUnit

and dispatches on the variant with isinstance.
"""

__all__ = [
    "KnownPrice",
    "UnsetPrice",
    "Price",
    "KnownUnit",
    "InvalidUnit",
    "Unit",
    "UNIT_SENTINELS",
    "parse_price",
    "parse_unit",
]

# 比較は小文字化して行う
UNIT_SENTINELS = frozenset({"null", "undefined", "(none)", "none"})

_NUMERIC_RE = re.compile(r"^[+-]?(\d+(\.\d*)?|\.\d+)$")


@dataclass(frozen=True)
class KnownPrice:
    """A finite numeric price. May still be zero or negative."""
    value: float


@dataclass(frozen=True)
class UnsetPrice:
    """Price cell was empty, NaN or not a number."""
    raw: Any = None


@dataclass(frozen=True)
class KnownUnit:
    text: str


@dataclass(frozen=True)
class InvalidUnit:
    """Unit that cannot be imported: empty, purely numeric or a sentinel string."""
    raw: Any = None


Price = Union[KnownPrice, UnsetPrice]
Unit = Union[KnownUnit, InvalidUnit]


def parse_price(raw: Any) -> Price:
    if raw is None or isinstance(raw, bool):
        return UnsetPrice(raw)
    if isinstance(raw, str):
        text = raw.strip().replace(",", "")
        if not _NUMERIC_RE.match(text):
            return UnsetPrice(raw)
        value = float(text)
    else:
        try:
            value = float(raw)
        except (TypeError, ValueError):
            return UnsetPrice(raw)
    if not math.isfinite(value):
        return UnsetPrice(raw)
    return KnownPrice(value)


def parse_unit(raw: Any) -> Unit:
    if raw is None:
        return InvalidUnit(raw)
    if isinstance(raw, float) and math.isnan(raw):
        return InvalidUnit(raw)
    if isinstance(raw, (int, float)) and not isinstance(raw, bool):
        return InvalidUnit(raw)
    text = str(raw).strip()
    if text == "":
        return InvalidUnit(raw)
    if _NUMERIC_RE.match(text):
        return InvalidUnit(raw)
    if text.lower() in UNIT_SENTINELS:
        return InvalidUnit(raw)
    return KnownUnit(text)
