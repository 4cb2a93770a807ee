"""Step-function series built from sparse treasury snapshots.

A disclosed average cost is assumed valid until the next disclosure
supersedes it, so the series is right-continuous and piecewise constant.
Each change is emitted as two points sharing a date (old value, then new
value) so a plain line renderer draws a vertical riser instead of a slope.
"""

from __future__ import annotations

from collections.abc import Sequence
from datetime import date

from treasurylens.treasury.models import SeriesPoint, TreasurySnapshot


def step_value_at(snapshots: Sequence[TreasurySnapshot], day: date) -> float | None:
    """Average cost of the latest snapshot dated on or before `day`.

    Expects ascending input. None when `day` precedes every snapshot.
    """
    value: float | None = None
    for snapshot in snapshots:
        if snapshot.resolved_date > day:
            break
        value = snapshot.avg_cost_usd
    return value


def build_step_series(
    snapshots: Sequence[TreasurySnapshot],
    start: date,
    end: date,
) -> list[SeriesPoint]:
    """Average-cost step series over [start, end].

    Args:
        snapshots: Deduplicated snapshots sorted ascending by resolved date
        start: First day of the target range (e.g. first price point)
        end: Last day of the target range (e.g. last price point)

    Returns:
        Points with non-decreasing dates. The range before the first
        snapshot is left uncovered; an empty list means no coverage at all.
    """
    if end < start:
        return []

    points: list[SeriesPoint] = []
    current = step_value_at(snapshots, start)
    if current is not None:
        points.append(SeriesPoint(x=start, y=current))

    for snapshot in snapshots:
        day = snapshot.resolved_date
        if day <= start:
            continue
        if day > end:
            break
        if current is not None:
            if snapshot.avg_cost_usd == current:
                continue
            points.append(SeriesPoint(x=day, y=current))
        points.append(SeriesPoint(x=day, y=snapshot.avg_cost_usd))
        current = snapshot.avg_cost_usd

    if current is not None and points[-1].x < end:
        points.append(SeriesPoint(x=end, y=current))

    return points


def staleness_days(snapshot: TreasurySnapshot, today: date) -> int:
    """Days since the snapshot's resolved date (never negative)."""
    return max(0, (today - snapshot.resolved_date).days)
