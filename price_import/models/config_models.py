from __future__ import annotations

from dataclasses import dataclass

from .material import MaterialClass

"""Config dataclasses for the material price import.

Built by price_import.config.loader from config/import.yml after schema
validation; everything downstream receives these typed objects instead of raw
YAML dicts.
"""


@dataclass(frozen=True)
class DatabaseConfig:
    """Database connection configuration.

    Used as fallback when environment variables are not set.
    Environment variables take precedence over these values.
    """
    host: str | None
    port: int | None
    user: str | None
    password: str | None
    database: str | None
    dsn: str | None


@dataclass(frozen=True)
class ColumnMapping:
    """Workbook header names for each RawMaterialRow field."""
    material_class: str = "Tipe"
    code: str = "Kode Bahan"
    name: str = "Nama Bahan"
    unit: str = "Satuan"
    currency: str = "Mata Uang"
    price: str = "Harga"

    @property
    def required(self) -> set[str]:
        return {self.material_class, self.code, self.unit, self.currency, self.price}


@dataclass(frozen=True)
class ImportConfig:
    """Root configuration object for one import run."""
    source_file: str  # workbook path
    sheet_name: str | None  # None -> first sheet
    header_row: int  # 1-based spreadsheet row holding column names
    columns: ColumnMapping
    target_class: MaterialClass
    period: str  # currency period, also part of the commit lock key
    base_currency: str  # 既定 IDR
    submitted_by: str
    database: DatabaseConfig
    null_sentinels: set[str] | None = None  # 大文字化済
