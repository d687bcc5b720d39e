from __future__ import annotations

import logging
import math
import time
from collections.abc import Iterable, Sequence
from dataclasses import dataclass
from typing import Any

from psycopg2.extras import execute_values

"""Paged INSERT into the price master via psycopg2.extras.execute_values.

The caller owns the transaction; a driver error surfaces as BatchInsertError
and the caller rolls back.
"""

__all__ = [
    "BatchInsertError",
    "InsertResult",
    "insert_sql",
    "batch_insert",
]

logger = logging.getLogger(__name__)


class BatchInsertError(Exception):
    pass


@dataclass(frozen=True)
class InsertResult:
    inserted_rows: int
    pages: int
    elapsed_seconds: float


def insert_sql(table: str, columns: Sequence[str]) -> str:
    # table / columns は固定の定数のみ (ユーザー入力を渡さない)
    quoted = ", ".join(f'"{name}"' for name in columns)
    return f"INSERT INTO {table} ({quoted}) VALUES %s"


def batch_insert(
    cursor: Any,
    table: str,
    columns: Sequence[str],
    rows: Iterable[Sequence[Any]],
    page_size: int = 1000,
) -> InsertResult:
    """Insert rows (column order) in pages of page_size. Empty input is a no-op."""
    values = list(rows)
    if not values:
        return InsertResult(inserted_rows=0, pages=0, elapsed_seconds=0.0)

    started = time.perf_counter()
    try:
        execute_values(cursor, insert_sql(table, columns), values, page_size=page_size)
    except Exception as e:
        raise BatchInsertError(f"insert into {table} failed: {e}") from e
    elapsed = time.perf_counter() - started

    result = InsertResult(
        inserted_rows=len(values),
        pages=math.ceil(len(values) / page_size),
        elapsed_seconds=elapsed,
    )
    logger.debug(
        "inserted rows=%d pages=%d table=%s in %.3fs",
        result.inserted_rows,
        result.pages,
        table,
        result.elapsed_seconds,
    )
    return result
