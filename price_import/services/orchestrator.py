from __future__ import annotations

import logging
from collections.abc import Mapping, Sequence
from dataclasses import dataclass
from datetime import UTC, datetime

from ..core.catalog import CatalogError, build_catalog, resolve
from ..core.identifiers import normalize_row
from ..core.pricing import build_rate_table
from ..core.selection import reconcile
from ..core.transform import build_import_plan
from ..core.validation import build_batch, check_class, class_rejection
from ..logging.outcome_log import OutcomeLogBuffer
from ..models.batch import ImportBatch, ImportPlan
from ..models.material import CatalogEntry, CurrencyRate, MaterialClass, RawMaterialRow
from ..models.outcome import RowOutcome
from .ports import CatalogSource, CurrencySource, MasterSource, PriceSink
from .progress import ProgressTracker

"""Import run orchestration.

A run is three phases that never interleave:

1. fetch   catalog (indexed by code), currency rates (one period) and the
           current price master
2. compute the pure reconciliation pipeline over the in-memory rows
3. commit  delete-then-insert through the sink, only for an admissible batch

A failure in phase 1 (including a catalog with duplicate codes) or phase 3
aborts the run (ImportAbortedError) with nothing written. There are no
retries; the caller restarts the run.
"""

__all__ = [
    "ProcessingError",
    "ImportAbortedError",
    "ImportRunResult",
    "reconcile_rows",
    "run_import",
]

logger = logging.getLogger(__name__)


class ProcessingError(Exception):
    """Base exception for import run errors."""


class ImportAbortedError(ProcessingError):
    """An external fetch or the commit failed; the run wrote nothing."""


@dataclass(frozen=True)
class ImportRunResult:
    batch: ImportBatch
    plan: ImportPlan | None  # None when blocked or dry-run
    inserted_rows: int
    committed: bool
    start_time: datetime
    end_time: datetime

    @property
    def elapsed_seconds(self) -> float:
        return (self.end_time - self.start_time).total_seconds()


def reconcile_rows(
    raw_rows: Sequence[RawMaterialRow],
    catalog: Mapping[str, CatalogEntry],
    rates: Sequence[CurrencyRate],
    target_class: MaterialClass,
    base_currency: str,
    progress: ProgressTracker | None = None,
) -> ImportBatch:
    """Pure pipeline: normalize -> class filter -> resolve/group/price/select -> validate.

    Rows labelled with another material class are rejected before grouping so
    they can never win a duplicate group.
    """
    rejected: list[RowOutcome] = []
    candidates = []
    for raw in raw_rows:
        row = normalize_row(raw)
        if not check_class(raw.material_class_label, target_class):
            rejected.append(class_rejection(raw, row.canonical_code, target_class))
            continue
        candidates.append(row)
    if progress is not None and rejected:
        progress.advance(len(rejected))

    result = reconcile(
        candidates,
        lambda code: resolve(code, catalog),
        build_rate_table(rates),
        base_currency,
        on_group=progress.advance if progress is not None else None,
    )
    rejected.extend(result.outcomes)
    return build_batch(target_class, result.winners, rejected, result.low_confidence_codes)


def _report(batch: ImportBatch) -> None:
    for code in batch.low_confidence_codes:
        logger.warning("code=%s mass/volume mismatch without density; compared at face value", code)
    for row in batch.warning_rows:
        logger.warning(
            "row=%d code=%s non-positive price %r imported as 0",
            row.source_row_number,
            row.canonical_code,
            row.purchase_price,
        )
    for row in batch.blocking_rows:
        logger.error(
            "row=%d code=%s invalid unit %r blocks the batch",
            row.source_row_number,
            row.canonical_code,
            row.purchase_unit,
        )
    for outcome in batch.outcomes:
        if outcome.outcome.is_rejection:
            logger.debug(
                "row=%d code=%s %s (%s) %s",
                outcome.row_number,
                outcome.canonical_code,
                outcome.outcome.value,
                outcome.rule,
                outcome.message,
            )


def run_import(
    raw_rows: Sequence[RawMaterialRow],
    catalog_source: CatalogSource,
    currency_source: CurrencySource,
    master_source: MasterSource,
    sink: PriceSink,
    *,
    target_class: MaterialClass,
    period: str,
    base_currency: str,
    submitted_by: str,
    dry_run: bool = False,
    outcome_log: OutcomeLogBuffer | None = None,
) -> ImportRunResult:
    """Run one import for a single material class and currency period.

    Raises:
        ImportAbortedError: catalog/rate/master fetch failed, the catalog has
            duplicate codes, or the commit failed
    """
    start_time = datetime.now(UTC)

    try:
        catalog_entries = catalog_source.fetch_catalog()
        rates = currency_source.fetch_currency_rates(period)
        master = master_source.fetch_master_records(target_class)
    except Exception as e:
        raise ImportAbortedError(f"external fetch failed: {e}") from e
    try:
        catalog = build_catalog(catalog_entries)
    except CatalogError as e:
        raise ImportAbortedError(f"catalog snapshot unusable: {e}") from e
    logger.info(
        "fetched catalog=%d rates=%d master=%d (class=%s period=%s)",
        len(catalog_entries),
        len(rates),
        len(master),
        target_class.code,
        period,
    )

    with ProgressTracker(len(raw_rows)) as progress:
        batch = reconcile_rows(
            raw_rows, catalog, rates, target_class, base_currency, progress=progress
        )
        progress.set_postfix(winners=len(batch.rows), admissible=batch.is_admissible)

    _report(batch)
    if outcome_log is not None:
        outcome_log.extend(batch.outcomes)
        try:
            path = outcome_log.flush()
            if path is not None:
                logger.info("outcome log: %s", path)
        except OSError as e:
            logger.warning("failed writing outcome log: %s", e)

    if not batch.is_admissible:
        logger.error("batch blocked: %d row(s) with invalid unit, nothing written", len(batch.blocking_rows))
        return ImportRunResult(batch, None, 0, False, start_time, datetime.now(UTC))

    plan = build_import_plan(batch, master, submitted_by)
    if dry_run:
        logger.info(
            "dry-run: would delete=%d insert=%d", len(plan.delete_codes), len(plan.records)
        )
        return ImportRunResult(batch, plan, 0, False, start_time, datetime.now(UTC))

    try:
        inserted = sink.replace_prices(plan, period)
    except Exception as e:
        raise ImportAbortedError(f"commit failed: {e}") from e

    return ImportRunResult(batch, plan, inserted, True, start_time, datetime.now(UTC))
