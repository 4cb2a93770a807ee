"""Treasury fact extraction from free-text filing documents.

Filings rarely carry a structured Bitcoin holdings feed, so the figures are
mined from prose. Extraction is an ordered rule engine:

    markup → normalize_html_text → scan HOLDINGS rules over the full text
      for each holdings mention:
        window (7.5k chars before, 25k after)
          → AS_OF rules (first rule/first match wins)
          → AVERAGE and TOTAL rules (all matches, with positions)
          → reconcile (scored average × total pairs, else single-sided)
          → bounds check → candidate score = Σ weights of stated fields
    → highest score wins, ties go to the earlier mention

The function is pure: identical input always yields an identical result.
"""

from __future__ import annotations

import re
from dataclasses import dataclass
from enum import Enum
from typing import TYPE_CHECKING

from pydantic import BaseModel, Field

from treasurylens.core.constants import (
    DEFAULT_PAIR_TOLERANCE,
    MAX_AVG_COST_USD,
    MAX_HOLDINGS_BTC,
    MIN_AVG_COST_USD,
    WINDOW_CHARS_AFTER,
    WINDOW_CHARS_BEFORE,
)
from treasurylens.treasury.text import (
    normalize_html_text,
    parse_int,
    parse_number,
    parse_usd_amount,
)

if TYPE_CHECKING:
    from treasurylens.config import Settings


class FactField(str, Enum):
    """Which treasury fact a rule recovers."""

    holdings = "holdings"
    as_of = "as_of"
    average = "average"
    total = "total"


@dataclass(frozen=True)
class ExtractionRule:
    """A pattern whose first group yields one fact, worth `weight` when stated."""

    pattern: re.Pattern[str]
    field: FactField
    weight: int


@dataclass(frozen=True)
class RuleMatch:
    field: FactField
    value: float | int | str
    position: int
    weight: int


@dataclass(frozen=True)
class ExtractionPolicy:
    """Tunable bounds for extraction and reconciliation."""

    max_holdings: int = MAX_HOLDINGS_BTC
    min_avg_usd: float = MIN_AVG_COST_USD
    max_avg_usd: float = MAX_AVG_COST_USD
    pair_tolerance: float = DEFAULT_PAIR_TOLERANCE
    window_before: int = WINDOW_CHARS_BEFORE
    window_after: int = WINDOW_CHARS_AFTER

    @classmethod
    def from_settings(cls, settings: Settings) -> ExtractionPolicy:
        return cls(pair_tolerance=settings.treasury_pair_tolerance)


class ExtractedFacts(BaseModel):
    """Reconciled numeric facts recovered from one document."""

    as_of_label: str | None
    holdings_btc: int = Field(gt=0)
    total_cost_usd: float = Field(gt=0)
    avg_cost_usd: float = Field(gt=0)
    avg_stated: bool = False
    total_stated: bool = False


_I = re.IGNORECASE

RULES: tuple[ExtractionRule, ...] = (
    # Holdings
    ExtractionRule(
        re.compile(
            r"\bheld\s+(?:an\s+aggregate\s+of\s+|a\s+total\s+of\s+)?(?:approximately\s+)?"
            r"([\d,]+)\s+(?:btc|bitcoins?)\b",
            _I,
        ),
        FactField.holdings,
        0,
    ),
    ExtractionRule(
        re.compile(
            r"\bholds?\s+(?:an\s+aggregate\s+of\s+|a\s+total\s+of\s+)?(?:approximately\s+)?"
            r"([\d,]+)\s+(?:btc|bitcoins?)\b",
            _I,
        ),
        FactField.holdings,
        0,
    ),
    ExtractionRule(
        re.compile(
            r"\bbitcoin\s+holdings[^0-9]{0,40}?(?:approximately\s+)?([\d,]+)\s*(?:btc|bitcoins?)\b",
            _I,
        ),
        FactField.holdings,
        0,
    ),
    ExtractionRule(
        re.compile(
            r"\baggregate\s+holdings\s+(?:of|to|were)\s+(?:approximately\s+)?"
            r"([\d,]+)\s+(?:btc|bitcoins?)\b",
            _I,
        ),
        FactField.holdings,
        0,
    ),
    # As-of date
    ExtractionRule(
        re.compile(r"\bAs of\s+([A-Za-z]+\.?\s+\d{1,2},\s+\d{4})\b", _I),
        FactField.as_of,
        1,
    ),
    ExtractionRule(
        re.compile(r"\bAs of\s+(\d{1,2}/\d{1,2}/\d{4})\b", _I),
        FactField.as_of,
        1,
    ),
    # Average cost per BTC
    ExtractionRule(
        re.compile(
            r"\baverage(?:\s+purchase)?\s+(?:price|cost)[^$]{0,120}?\$\s*([\d,]+(?:\.\d+)?)"
            r"\s+per\s+(?:bitcoin|btc)\b",
            _I,
        ),
        FactField.average,
        3,
    ),
    ExtractionRule(
        re.compile(
            r"\baverage(?:\s+purchase)?\s+(?:price|cost)\s+per\s+(?:bitcoin|btc)[^$]{0,120}?"
            r"\$\s*([\d,]+(?:\.\d+)?)\b",
            _I,
        ),
        FactField.average,
        3,
    ),
    # Aggregate acquisition cost
    ExtractionRule(
        re.compile(
            r"\baggregate\s+(?:purchase\s+price|acquisition\s+cost|cost)\b[^$]{0,160}?"
            r"\$\s*([\d.,]+)\s*(billion|million)?\b",
            _I,
        ),
        FactField.total,
        2,
    ),
    ExtractionRule(
        re.compile(
            r"\bacquired\b[^$]{0,200}?\baggregate\s+(?:purchase\s+price|cost)\b[^$]{0,120}?"
            r"\$\s*([\d.,]+)\s*(billion|million)?\b",
            _I,
        ),
        FactField.total,
        2,
    ),
    ExtractionRule(
        re.compile(
            r"\$\s*([\d.,]+)\s*(billion|million)?\s+(?:in\s+)?aggregate\s+"
            r"(?:purchase\s+price|acquisition\s+cost|cost)\b",
            _I,
        ),
        FactField.total,
        2,
    ),
)


def _convert(field: FactField, match: re.Match[str]) -> float | int | str | None:
    raw = match.group(1) or ""
    if field is FactField.holdings:
        return parse_int(raw)
    if field is FactField.as_of:
        return raw
    if field is FactField.average:
        return parse_number(raw)
    return parse_usd_amount(raw, match.group(2))


def scan(text: str, field: FactField, rules: tuple[ExtractionRule, ...] = RULES) -> list[RuleMatch]:
    """All matches of one field's rules, in rule order then text order."""
    matches: list[RuleMatch] = []
    for rule in rules:
        if rule.field is not field:
            continue
        for m in rule.pattern.finditer(text):
            value = _convert(field, m)
            if value is None:
                continue
            matches.append(RuleMatch(field, value, m.start(), rule.weight))
    return matches


@dataclass
class _Reconciled:
    avg: float
    total: float
    avg_match: RuleMatch | None
    total_match: RuleMatch | None


def pair_score(holdings: int, avg: RuleMatch, total: RuleMatch, tolerance: float) -> float | None:
    """Score a stated average against a stated total; None when they disagree.

    Smaller deviation between `total / holdings` and the stated average and
    a shorter distance between the two mentions both score higher.
    """
    avg_value = float(avg.value)
    derived = float(total.value) / holdings
    rel_delta = abs(derived - avg_value) / avg_value
    if rel_delta > tolerance:
        return None
    distance_penalty = min(2.0, abs(total.position - avg.position) / 800)
    return 5 - rel_delta * 4 - distance_penalty


def reconcile(
    holdings: int,
    averages: list[RuleMatch],
    totals: list[RuleMatch],
    policy: ExtractionPolicy,
) -> _Reconciled | None:
    """Pick one consistent (average, total) for a holdings figure."""
    best: _Reconciled | None = None
    best_score = float("-inf")
    for avg in averages:
        for total in totals:
            score = pair_score(holdings, avg, total, policy.pair_tolerance)
            if score is not None and score > best_score:
                best_score = score
                best = _Reconciled(float(avg.value), float(total.value), avg, total)
    if best is not None:
        return best

    if averages:
        avg_value = float(averages[0].value)
        return _Reconciled(avg_value, avg_value * holdings, averages[0], None)

    if totals:
        total_value = float(totals[0].value)
        return _Reconciled(total_value / holdings, total_value, None, totals[0])

    return None


def extract_treasury_facts(
    markup: str,
    policy: ExtractionPolicy | None = None,
    rules: tuple[ExtractionRule, ...] = RULES,
) -> ExtractedFacts | None:
    """Recover holdings, cost basis and as-of label from one filing document.

    Args:
        markup: Raw HTML or plain text
        policy: Bounds and tolerances (defaults when omitted)
        rules: Rule set to evaluate

    Returns:
        The best-scoring ExtractedFacts, or None when the document has no
        usable treasury disclosure
    """
    policy = policy or ExtractionPolicy()
    text = normalize_html_text(markup)

    holdings_matches = sorted(
        scan(text, FactField.holdings, rules), key=lambda m: m.position
    )

    best: ExtractedFacts | None = None
    best_score = -1

    for holdings_match in holdings_matches:
        holdings = int(holdings_match.value)
        if holdings <= 0 or holdings > policy.max_holdings:
            continue

        start = max(0, holdings_match.position - policy.window_before)
        end = min(len(text), holdings_match.position + policy.window_after)
        window = text[start:end]

        as_of = next(iter(scan(window, FactField.as_of, rules)), None)

        averages = [
            m
            for m in scan(window, FactField.average, rules)
            if policy.min_avg_usd <= float(m.value) <= policy.max_avg_usd
        ]
        totals = [
            m
            for m in scan(window, FactField.total, rules)
            if holdings * policy.min_avg_usd <= float(m.value) <= holdings * policy.max_avg_usd
        ]

        result = reconcile(holdings, averages, totals, policy)
        if result is None:
            continue
        if not policy.min_avg_usd <= result.avg <= policy.max_avg_usd:
            continue

        score = sum(
            m.weight for m in (result.avg_match, result.total_match, as_of) if m is not None
        )
        if score > best_score:
            best_score = score
            best = ExtractedFacts(
                as_of_label=str(as_of.value) if as_of else None,
                holdings_btc=holdings,
                total_cost_usd=result.total,
                avg_cost_usd=result.avg,
                avg_stated=result.avg_match is not None,
                total_stated=result.total_match is not None,
            )

    return best
