from __future__ import annotations

from ..models.outcome import OutcomeKind
from .orchestrator import ImportRunResult

"""SUMMARY line rendering for one import run."""


def _fmt_seconds(value: float) -> str:
    if value == 0:
        return "0"
    if value == int(value):
        return str(int(value))
    if value < 0.01:
        # avoid scientific notation for tiny values
        return f"{value:.6f}".rstrip("0").rstrip(".")
    return f"{value:.3f}".rstrip("0").rstrip(".")


def render_summary_line(result: ImportRunResult) -> str:
    """Render the SUMMARY line.

    Format:
    SUMMARY class={BB|BK} rows={n} imported={n} duplicate_winners={n} superseded={n}
    warnings={n} blocked={n} rejected={n} admissible={yes|no} deleted={n}
    inserted={n} committed={yes|no} elapsed_sec={s}

    rows counts every reported source row, so the outcome counters add up to it.
    """
    batch = result.batch
    counts = batch.outcome_counts()
    rejected = counts[OutcomeKind.REJECTED_WRONG_CLASS] + counts[OutcomeKind.REJECTED_UNRESOLVED]
    deleted = len(result.plan.delete_codes) if result.plan is not None and result.committed else 0
    return (
        f"SUMMARY class={batch.target_class.code} "
        f"rows={len(batch.outcomes)} "
        f"imported={counts[OutcomeKind.IMPORTED]} "
        f"duplicate_winners={counts[OutcomeKind.DUPLICATE_WINNER]} "
        f"superseded={counts[OutcomeKind.SUPERSEDED]} "
        f"warnings={counts[OutcomeKind.WARNING_ZERO_PRICE]} "
        f"blocked={counts[OutcomeKind.BLOCKED_INVALID_UNIT]} "
        f"rejected={rejected} "
        f"admissible={'yes' if batch.is_admissible else 'no'} "
        f"deleted={deleted} "
        f"inserted={result.inserted_rows} "
        f"committed={'yes' if result.committed else 'no'} "
        f"elapsed_sec={_fmt_seconds(result.elapsed_seconds)}"
    )
