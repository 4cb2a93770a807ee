"""Filing discovery: merge, filter and down-sample a company's filings."""

from __future__ import annotations

from collections import Counter
from collections.abc import Iterable, Sequence
from datetime import date, timedelta

from treasurylens.providers.sec_edgar.models import FilingReference, SubmissionsFile, SubmissionsIndex


def needs_history_pages(index: SubmissionsIndex, start_date: date) -> bool:
    """True when the inline recent block doesn't reach back to `start_date`."""
    earliest = index.earliest_recent_date
    return earliest is None or earliest > start_date


def select_history_files(
    files: Sequence[SubmissionsFile],
    start_date: date,
    max_pages: int,
) -> list[SubmissionsFile]:
    """History pages overlapping [start_date, ...], newest first, capped at `max_pages`.

    Pages without a date range are kept since they can't be ruled out.
    """
    relevant = [f for f in files if f.filing_to is None or f.filing_to >= start_date]
    relevant.sort(key=lambda f: f.filing_to or date.max, reverse=True)
    return relevant[:max_pages]


def merge_references(*sources: Iterable[FilingReference]) -> list[FilingReference]:
    """Merge filing lists, newest first, one entry per accession number.

    Filings without a date sort last.
    """
    merged = [ref for source in sources for ref in source]
    merged.sort(key=lambda r: r.filed_date or date.min, reverse=True)

    seen: set[str] = set()
    unique: list[FilingReference] = []
    for ref in merged:
        if ref.accession_number in seen:
            continue
        seen.add(ref.accession_number)
        unique.append(ref)
    return unique


def is_relevant_form(form: str, form_types: Sequence[str]) -> bool:
    """Match a form against type prefixes ("8-K" matches "8-K" and "8-K/A")."""
    form = form.upper().strip()
    return any(form == t or form.startswith(f"{t}/") for t in form_types)


def filter_form_types(
    references: Iterable[FilingReference],
    form_types: Sequence[str],
) -> list[FilingReference]:
    return [r for r in references if is_relevant_form(r.form, form_types)]


def sample_candidates(
    references: Sequence[FilingReference],
    *,
    start_date: date,
    today: date,
    recent_window_days: int,
    max_per_month: int,
    max_candidates: int,
) -> list[FilingReference]:
    """Pick a bounded, newest-first candidate subset.

    Every filing inside the recent window is kept; older filings are capped
    at `max_per_month` per calendar month. Stops at `max_candidates` or at
    the first filing older than `start_date`. Expects newest-first input.
    """
    recent_cutoff = today - timedelta(days=recent_window_days)
    per_month: Counter[tuple[int, int]] = Counter()
    selected: list[FilingReference] = []

    for ref in references:
        if len(selected) >= max_candidates:
            break
        if ref.filed_date is None:
            continue
        if ref.filed_date < start_date:
            break
        if ref.filed_date >= recent_cutoff:
            selected.append(ref)
            continue
        month = (ref.filed_date.year, ref.filed_date.month)
        if per_month[month] >= max_per_month:
            continue
        per_month[month] += 1
        selected.append(ref)

    return selected
