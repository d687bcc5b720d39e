from __future__ import annotations

import argparse
import os
import sys
from collections.abc import Iterator
from contextlib import contextmanager
from pathlib import Path
from typing import Any

import psycopg2
from dotenv import load_dotenv

from price_import.config.loader import DEFAULT_CONFIG_PATH, ConfigError, load_config
from price_import.db.price_master import PriceMasterRepository
from price_import.excel.reader import ReaderError, read_material_rows
from price_import.logging.init import log_summary, set_debug, setup_logging
from price_import.logging.outcome_log import OutcomeLogBuffer
from price_import.models.config_models import ImportConfig
from price_import.services.orchestrator import ImportAbortedError, run_import
from price_import.services.summary import render_summary_line

"""CLI entrypoint: python -m price_import.cli

Flow:
- Load .env, then config/import.yml
- Read the workbook into RawMaterialRow records
- Fetch catalog / rates / master, reconcile, and replace the price master
- Print the SUMMARY line and exit with the contract code
"""

EXIT_SUCCESS = 0
EXIT_FATAL = 1
EXIT_BLOCKED = 2


def _resolve_dsn(cfg: ImportConfig) -> str:
    """Connection string.

    優先順位:
        1. DATABASE_URL / PGDSN (.env で上書き済みの環境変数を含む)
        2. 個別 PGHOST / PGPORT / PGUSER / PGPASSWORD / PGDATABASE
        3. config の database セクション (不足分のフォールバック)
    """
    db_cfg = cfg.database
    dsn = os.getenv("DATABASE_URL") or os.getenv("PGDSN") or db_cfg.dsn
    if dsn:
        return dsn
    host = os.getenv("PGHOST", db_cfg.host or "localhost")
    port = os.getenv("PGPORT", str(db_cfg.port) if db_cfg.port else "5432")
    user = os.getenv("PGUSER", db_cfg.user or "postgres")
    password = os.getenv("PGPASSWORD", db_cfg.password or "")
    database = os.getenv("PGDATABASE", db_cfg.database or "postgres")
    dsn = f"host={host} port={port} user={user} dbname={database}"
    if password:
        dsn += f" password={password}"
    return dsn


@contextmanager
def _db_connection(cfg: ImportConfig) -> Iterator[Any]:  # pragma: no cover (thin wrapper)
    """psycopg2 cursor; the repository issues BEGIN/COMMIT itself."""
    conn = psycopg2.connect(_resolve_dsn(cfg))
    try:
        conn.autocommit = True
        cur = conn.cursor()
        try:
            yield cur
        finally:
            cur.close()
    finally:
        conn.close()


def _load_env_file(path: Path, override: bool = True) -> None:
    """Load .env with python-dotenv; its values win over the process environment."""
    if path.exists():
        load_dotenv(dotenv_path=path, override=override)


def _parse_args(argv: list[str]) -> argparse.Namespace:
    p = argparse.ArgumentParser(description="Material purchase price import")
    p.add_argument("--config", default=str(DEFAULT_CONFIG_PATH), help="Path to import.yml")
    p.add_argument("--dry-run", action="store_true", help="Reconcile and report without writing")
    p.add_argument("--debug", action="store_true", help="Enable debug logging")
    p.add_argument("--inspect-data", action="store_true", help="Print mapped rows then exit")
    return p.parse_args(argv)


def _inspect_data(cfg: ImportConfig, rows: list[Any], skipped: list[int]) -> int:
    print(f"FILE: {cfg.source_file} sheet={cfg.sheet_name or '<first>'} rows={len(rows)}")
    for r in rows[:5]:
        print(
            f"  row={r.source_row_number} class={r.material_class_label!r} code={r.raw_code!r} "
            f"unit={r.purchase_unit!r} currency={r.currency_code!r} price={r.purchase_price!r}"
        )
    if skipped:
        print(f"  skipped (empty code) rows={skipped}")
    return EXIT_SUCCESS


def main(argv: list[str] | None = None) -> int:
    logger = setup_logging()

    # None のときのみ sys.argv を読む (テストで main([]) を呼ぶため)
    if argv is None:
        argv = sys.argv[1:]
    args = _parse_args(argv)
    _load_env_file(Path(".env"), override=True)

    try:
        cfg = load_config(Path(args.config))
    except ConfigError as e:
        logger.error(f"config: {e}")
        return EXIT_FATAL

    if args.debug:
        set_debug()
        logger.debug("debug mode enabled")

    source = Path(cfg.source_file)
    if not source.exists():
        logger.error(f"source file not found: {source}")
        return EXIT_FATAL

    logger.info(f"Reading {source} (class={cfg.target_class.code} period={cfg.period})")
    try:
        sheet = read_material_rows(
            source,
            cfg.columns,
            sheet_name=cfg.sheet_name,
            header_row=cfg.header_row,
            null_sentinels=cfg.null_sentinels,
        )
    except ReaderError as e:
        logger.error(f"reader: {e}")
        return EXIT_FATAL

    for row_number in sheet.skipped_rows:
        logger.warning(f"row={row_number} empty material code, row not imported")

    if args.inspect_data:
        return _inspect_data(cfg, sheet.rows, sheet.skipped_rows)

    try:
        with _db_connection(cfg) as cur:
            repo = PriceMasterRepository(cur)
            result = run_import(
                sheet.rows,
                repo,
                repo,
                repo,
                repo,
                target_class=cfg.target_class,
                period=cfg.period,
                base_currency=cfg.base_currency,
                submitted_by=cfg.submitted_by,
                dry_run=args.dry_run,
                outcome_log=OutcomeLogBuffer(),
            )
    except ImportAbortedError as e:
        logger.error(f"aborted: {e}")
        return EXIT_FATAL
    except psycopg2.Error as e:
        logger.error(f"database connection failed: {e}")
        return EXIT_FATAL

    summary_line = render_summary_line(result)
    log_summary(summary_line[len("SUMMARY "):])

    if not result.batch.is_admissible:
        return EXIT_BLOCKED
    return EXIT_SUCCESS


if __name__ == "__main__":  # pragma: no cover
    raise SystemExit(main())
