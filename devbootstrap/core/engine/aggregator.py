"""
Result aggregation (pure).

Skipped phases count neither as successes nor towards the total, so a
run whose phase 3 was declined at the continuation prompt still
reports overall success.
"""

from __future__ import annotations

from collections.abc import Iterable, Mapping

from devbootstrap.core.models.phase import PhaseResult, Summary


def summarize(results: Mapping[object, PhaseResult] | Iterable[PhaseResult]) -> Summary:
    """Summarise phase results, excluding skipped entries from both counts."""
    values = results.values() if isinstance(results, Mapping) else results

    success_count = 0
    total_count = 0
    skipped_count = 0
    for result in values:
        if result.skipped:
            skipped_count += 1
            continue
        total_count += 1
        if result.success:
            success_count += 1

    return Summary(
        all_succeeded=total_count == 0 or success_count == total_count,
        success_count=success_count,
        total_count=total_count,
        skipped_count=skipped_count,
    )
