"""Pure reconciliation pipeline: no I/O, no shared state between runs."""

from .catalog import CatalogError, build_catalog, resolve
from .grouping import MaterialGroup, group_by_code
from .identifiers import normalize_code, normalize_row
from .pricing import UnresolvedCurrencyError, build_rate_table, normalize_price
from .selection import ReconcileResult, reconcile, select_winner
from .transform import BatchNotAdmissibleError, build_import_plan, compute_delete_set
from .validation import build_batch, check_class, validate_row

__all__ = [
    "BatchNotAdmissibleError",
    "CatalogError",
    "MaterialGroup",
    "ReconcileResult",
    "UnresolvedCurrencyError",
    "build_batch",
    "build_catalog",
    "build_import_plan",
    "build_rate_table",
    "check_class",
    "compute_delete_set",
    "group_by_code",
    "normalize_code",
    "normalize_price",
    "normalize_row",
    "reconcile",
    "resolve",
    "select_winner",
    "validate_row",
]
