from __future__ import annotations

import pytest

from price_import.core.catalog import CatalogError, build_catalog, resolve
from price_import.core.grouping import group_by_code
from price_import.core.identifiers import normalize_row
from price_import.models import CatalogEntry, MaterialClass

"""Catalog resolver and grouper."""


def test_resolve_exact_match(catalog_entries) -> None:
    catalog = build_catalog(catalog_entries)
    entry = resolve("100", catalog)
    assert entry is not None
    assert entry.canonical_name == "Lactose"


def test_resolve_is_case_sensitive(catalog_entries) -> None:
    catalog = build_catalog(catalog_entries)
    assert resolve("x", catalog) is None
    assert resolve("X", catalog) is not None


def test_resolve_unknown_code(catalog_entries) -> None:
    assert resolve("999", build_catalog(catalog_entries)) is None


def test_build_catalog_rejects_duplicate_codes() -> None:
    entries = [
        CatalogEntry("100", "Lactose", MaterialClass.RAW),
        CatalogEntry("100", "Lactose again", MaterialClass.RAW),
    ]
    with pytest.raises(CatalogError, match="duplicate catalog code"):
        build_catalog(entries)


def test_group_by_code_partitions_in_first_seen_order(make_row) -> None:
    rows = [
        normalize_row(make_row("130.000")),
        normalize_row(make_row("X")),
        normalize_row(make_row("130.001")),
        normalize_row(make_row("Y")),
    ]
    groups = group_by_code(rows)

    assert [g.canonical_code for g in groups] == ["130", "X", "Y"]
    assert [r.original_code for r in groups[0].rows] == ["130.000", "130.001"]
    assert [len(g.rows) for g in groups] == [2, 1, 1]
    # every row lands in exactly one group
    assert sum(len(g.rows) for g in groups) == len(rows)


def test_group_by_code_empty() -> None:
    assert group_by_code([]) == []
