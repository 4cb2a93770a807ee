"""Tests for the average-cost step series."""

from __future__ import annotations

from datetime import date

from treasurylens.treasury.models import SeriesPoint, TreasurySnapshot
from treasurylens.treasury.series import build_step_series, staleness_days, step_value_at


def _snapshot(resolved: date, avg: float, holdings: int = 100_000) -> TreasurySnapshot:
    return TreasurySnapshot(
        company="MicroStrategy",
        symbol="MSTR",
        accession_number=f"acc-{resolved.isoformat()}",
        form="8-K",
        as_of_label=None,
        filed_date=resolved,
        resolved_date=resolved,
        source_url="https://www.sec.gov/example",
        holdings_btc=holdings,
        total_cost_usd=holdings * avg,
        avg_cost_usd=avg,
    )


SNAPSHOTS = [
    _snapshot(date(2024, 1, 10), 30_000),
    _snapshot(date(2024, 3, 1), 35_000),
    _snapshot(date(2024, 3, 15), 35_000),
]


def _pairs(points: list[SeriesPoint]) -> list[tuple[date, float]]:
    return [(p.x, p.y) for p in points]


class TestStepValueAt:
    def test_before_first_snapshot(self) -> None:
        assert step_value_at(SNAPSHOTS, date(2024, 1, 9)) is None

    def test_on_snapshot_date(self) -> None:
        assert step_value_at(SNAPSHOTS, date(2024, 3, 1)) == 35_000

    def test_between_snapshots_holds_previous(self) -> None:
        assert step_value_at(SNAPSHOTS, date(2024, 2, 29)) == 30_000


class TestBuildStepSeries:
    def test_uncovered_prefix_then_risers(self) -> None:
        points = build_step_series(SNAPSHOTS, date(2024, 1, 1), date(2024, 6, 1))

        assert _pairs(points) == [
            (date(2024, 1, 10), 30_000),
            (date(2024, 3, 1), 30_000),
            (date(2024, 3, 1), 35_000),
            (date(2024, 6, 1), 35_000),
        ]

    def test_start_inside_coverage(self) -> None:
        points = build_step_series(SNAPSHOTS, date(2024, 2, 1), date(2024, 4, 1))

        assert _pairs(points) == [
            (date(2024, 2, 1), 30_000),
            (date(2024, 3, 1), 30_000),
            (date(2024, 3, 1), 35_000),
            (date(2024, 4, 1), 35_000),
        ]

    def test_snapshots_after_end_ignored(self) -> None:
        points = build_step_series(SNAPSHOTS, date(2024, 1, 1), date(2024, 2, 1))
        assert _pairs(points) == [(date(2024, 1, 10), 30_000), (date(2024, 2, 1), 30_000)]

    def test_last_snapshot_on_end_date(self) -> None:
        points = build_step_series(SNAPSHOTS[:2], date(2024, 1, 1), date(2024, 3, 1))
        assert points[-1].x == date(2024, 3, 1)
        assert points[-1].y == 35_000
        assert len(points) == 3

    def test_dates_never_decrease(self) -> None:
        points = build_step_series(SNAPSHOTS, date(2023, 1, 1), date(2025, 1, 1))
        dates = [p.x for p in points]
        assert dates == sorted(dates)

    def test_no_snapshots(self) -> None:
        assert build_step_series([], date(2024, 1, 1), date(2024, 6, 1)) == []

    def test_inverted_range(self) -> None:
        assert build_step_series(SNAPSHOTS, date(2024, 6, 1), date(2024, 1, 1)) == []


class TestStalenessDays:
    def test_days_since_resolved(self) -> None:
        assert staleness_days(SNAPSHOTS[0], date(2024, 1, 20)) == 10

    def test_never_negative(self) -> None:
        assert staleness_days(SNAPSHOTS[0], date(2024, 1, 1)) == 0
