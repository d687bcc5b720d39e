from __future__ import annotations

from dataclasses import dataclass, field
from pathlib import Path
from typing import Any

import pandas as pd

from ..models.config_models import ColumnMapping
from ..models.material import RawMaterialRow

"""Workbook reader for purchase price sheets.

Layout (same as our other importers): row 1 is a free title, the header row
(default: row 2) holds column names, data rows follow. Row numbers reported
downstream are the real spreadsheet rows (1-based).

Rows whose material code is empty are not emitted; their row numbers are
returned in SheetRows.skipped_rows for the caller to report.
"""


class ReaderError(Exception):
    pass


class SheetHeaderError(ReaderError):
    """Raised when the header row is missing."""


class MissingColumnsError(ReaderError):
    """Raised when mapped columns are missing in the sheet header."""


@dataclass
class SheetRows:
    sheet_name: str
    columns: list[str]
    rows: list[RawMaterialRow]
    skipped_rows: list[int] = field(default_factory=list)  # 空コード行


def read_sheet(path: Path, sheet_name: str | None = None) -> tuple[str, pd.DataFrame]:
    """Read one sheet raw (no header applied). None selects the first sheet."""
    try:
        xls = pd.ExcelFile(path)
    except (OSError, ValueError) as e:
        raise ReaderError(f"cannot open workbook {path}: {e}") from e
    names = [str(n) for n in xls.sheet_names]
    if sheet_name is None:
        if not names:
            raise ReaderError(f"workbook {path} has no sheets")
        sheet_name = names[0]
    elif sheet_name not in names:
        raise ReaderError(f"sheet {sheet_name!r} not found in {path.name} (sheets={names})")
    # 文字列 "NA" 等を NaN にされないよう既定 NA 変換は無効化
    df = xls.parse(sheet_name, header=None, keep_default_na=False, na_values=[""])
    return sheet_name, df


def _cell(value: Any, null_sentinels: set[str] | None) -> Any:
    if value is None:
        return None
    if isinstance(value, float) and pd.isna(value):
        return None
    if isinstance(value, str):
        stripped = value.strip()
        if stripped == "":
            return None
        if null_sentinels and stripped.upper() in null_sentinels:
            return None
        return stripped
    return value


def _code_text(value: Any) -> str | None:
    if value is None:
        return None
    if isinstance(value, float) and value.is_integer():
        # Excel stores numeric codes as float; 130.0 -> "130"
        return str(int(value))
    text = str(value).strip()
    return text or None


def _price_value(value: Any) -> float | None:
    if value is None or isinstance(value, bool):
        return None
    if isinstance(value, (int, float)):
        return float(value)
    try:
        return float(str(value).replace(",", ""))
    except ValueError:
        return None


def normalize_sheet(
    df: pd.DataFrame,
    sheet_name: str,
    columns: ColumnMapping,
    header_row: int = 2,
    null_sentinels: set[str] | None = None,
) -> SheetRows:
    """Turn a raw DataFrame into RawMaterialRow records.

    Steps:
    1. Validate the header row exists
    2. Extract header names from it
    3. Validate mapped columns are present
    4. Build one RawMaterialRow per non-empty data row
    """
    header_idx = header_row - 1
    if df.shape[0] <= header_idx:
        raise SheetHeaderError(f"sheet '{sheet_name}' lacks header row {header_row}")
    header = [str(c).strip() for c in df.iloc[header_idx].tolist()]

    missing = columns.required - set(header)
    if missing:
        raise MissingColumnsError(f"sheet '{sheet_name}' missing columns: {sorted(missing)}")
    index = {name: header.index(name) for name in set(header)}

    def get(values: list[Any], name: str) -> Any:
        pos = index.get(name)
        return _cell(values[pos], null_sentinels) if pos is not None else None

    rows: list[RawMaterialRow] = []
    skipped: list[int] = []
    for offset, (_, raw) in enumerate(df.iloc[header_idx + 1:].iterrows()):
        row_number = header_row + 1 + offset
        values = raw.tolist()
        if all(_cell(v, None) is None for v in values):
            continue
        code = _code_text(get(values, columns.code))
        if code is None:
            skipped.append(row_number)
            continue
        unit = get(values, columns.unit)
        currency = get(values, columns.currency)
        rows.append(
            RawMaterialRow(
                source_row_number=row_number,
                material_class_label=str(get(values, columns.material_class) or ""),
                raw_code=code,
                display_name=str(get(values, columns.name) or ""),
                purchase_unit=None if unit is None else str(unit),
                currency_code=None if currency is None else str(currency),
                purchase_price=_price_value(get(values, columns.price)),
            )
        )
    return SheetRows(sheet_name=sheet_name, columns=header, rows=rows, skipped_rows=skipped)


def read_material_rows(
    path: Path,
    columns: ColumnMapping,
    sheet_name: str | None = None,
    header_row: int = 2,
    null_sentinels: set[str] | None = None,
) -> SheetRows:
    name, df = read_sheet(path, sheet_name)
    return normalize_sheet(df, name, columns, header_row=header_row, null_sentinels=null_sentinels)
