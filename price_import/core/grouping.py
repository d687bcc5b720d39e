from __future__ import annotations

from collections.abc import Iterable
from dataclasses import dataclass
from typing import Generic, TypeVar

from ..models.material import NormalizedMaterialRow

__all__ = [
    "MaterialGroup",
    "group_by_code",
]

R = TypeVar("R", bound=NormalizedMaterialRow)


@dataclass(frozen=True)
class MaterialGroup(Generic[R]):
    """All rows sharing one canonical code, in source order."""
    canonical_code: str
    rows: tuple[R, ...]


def group_by_code(rows: Iterable[R]) -> list[MaterialGroup[R]]:
    """Partition rows by canonical_code.

    Group order follows the first occurrence of each code; dict insertion order
    keeps that for us.
    """
    buckets: dict[str, list[R]] = {}
    for row in rows:
        buckets.setdefault(row.canonical_code, []).append(row)
    return [MaterialGroup(code, tuple(members)) for code, members in buckets.items()]
