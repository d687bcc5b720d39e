from __future__ import annotations

import re

from ..models.material import NormalizedMaterialRow, RawMaterialRow
from ..models.values import parse_price, parse_unit

__all__ = [
    "normalize_code",
    "normalize_row",
]

# Suppliers append ".000", ".001", ... to the same material code.
# Stacked suffixes are stripped together so normalize_code is idempotent.
_SUFFIX_RE = re.compile(r"(\.\d{3})+$")


def normalize_code(raw_code: str) -> str:
    """Strip the trailing '.NNN' supplier suffix.

    >>> normalize_code("130.000")
    '130'
    >>> normalize_code("AB-12.500")
    'AB-12'
    >>> normalize_code("AB-12")
    'AB-12'
    """
    return _SUFFIX_RE.sub("", raw_code)


def normalize_row(raw: RawMaterialRow) -> NormalizedMaterialRow:
    return NormalizedMaterialRow.from_raw(
        raw,
        canonical_code=normalize_code(raw.raw_code),
        price=parse_price(raw.purchase_price),
        unit=parse_unit(raw.purchase_unit),
    )
