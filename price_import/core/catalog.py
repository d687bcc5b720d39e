from __future__ import annotations

from collections.abc import Iterable, Mapping

from ..models.material import CatalogEntry

__all__ = [
    "CatalogError",
    "build_catalog",
    "resolve",
]


class CatalogError(Exception):
    pass


def build_catalog(entries: Iterable[CatalogEntry]) -> dict[str, CatalogEntry]:
    """Index a catalog snapshot by code. Duplicate codes are a data error."""
    catalog: dict[str, CatalogEntry] = {}
    for entry in entries:
        if entry.code in catalog:
            raise CatalogError(f"duplicate catalog code: {entry.code!r}")
        catalog[entry.code] = entry
    return catalog


def resolve(code: str, catalog: Mapping[str, CatalogEntry]) -> CatalogEntry | None:
    """Exact, case-sensitive lookup. None means the code is unresolved."""
    return catalog.get(code)
