"""Domain models for the material price import.

Row types flow through the reconciliation pipeline in this order:
RawMaterialRow -> NormalizedMaterialRow -> NormalizedPriceRow -> ValidatedImportRow.
"""

from .batch import ImportBatch, ImportPlan, ImportRecord
from .config_models import ColumnMapping, DatabaseConfig, ImportConfig
from .material import (
    CatalogEntry,
    CurrencyRate,
    MasterPriceRecord,
    MaterialClass,
    NormalizedMaterialRow,
    NormalizedPriceRow,
    RawMaterialRow,
    ValidatedImportRow,
)
from .outcome import OutcomeKind, RowOutcome
from .values import InvalidUnit, KnownPrice, KnownUnit, Price, Unit, UnsetPrice

__all__ = [
    # Configuration models
    "ColumnMapping",
    "DatabaseConfig",
    "ImportConfig",
    # Reference data
    "CatalogEntry",
    "CurrencyRate",
    "MasterPriceRecord",
    "MaterialClass",
    # Pipeline rows
    "RawMaterialRow",
    "NormalizedMaterialRow",
    "NormalizedPriceRow",
    "ValidatedImportRow",
    # Results
    "ImportBatch",
    "ImportPlan",
    "ImportRecord",
    "OutcomeKind",
    "RowOutcome",
    # Presence types
    "Price",
    "KnownPrice",
    "UnsetPrice",
    "Unit",
    "KnownUnit",
    "InvalidUnit",
]
