"""Filing markup normalization and number parsing."""

from __future__ import annotations

import math
import re

_SCRIPT_RE = re.compile(r"<script[\s\S]*?</script>", re.IGNORECASE)
_STYLE_RE = re.compile(r"<style[\s\S]*?</style>", re.IGNORECASE)
_TAG_RE = re.compile(r"<[^>]+>")
_WHITESPACE_RE = re.compile(r"\s+")

# Order matters: &amp; is decoded after the numeric/named entities it could hide
_ENTITIES: list[tuple[re.Pattern[str], str]] = [
    (re.compile(r"&nbsp;|&#160;|&#xA0;", re.IGNORECASE), " "),
    (re.compile(r"&#36;|&#x24;|&#x0024;", re.IGNORECASE), "$"),
    (re.compile(r"&amp;", re.IGNORECASE), "&"),
    (re.compile(r"&lt;", re.IGNORECASE), "<"),
    (re.compile(r"&gt;", re.IGNORECASE), ">"),
    (re.compile(r"&quot;", re.IGNORECASE), '"'),
    (re.compile(r"&#39;"), "'"),
]

# Longer digit runs are never holdings and would trip int()'s string-length limit
_MAX_INT_DIGITS = 15

_UNIT_MULTIPLIERS = {
    "billion": 1_000_000_000,
    "million": 1_000_000,
}


def normalize_html_text(markup: str) -> str:
    """Flatten filing markup into a single line of plain text.

    Script and style blocks are dropped entirely, remaining tags become
    spaces, currency/whitespace entities are decoded and whitespace runs
    collapse to one space.
    """
    text = _SCRIPT_RE.sub(" ", markup)
    text = _STYLE_RE.sub(" ", text)
    text = _TAG_RE.sub(" ", text)
    for pattern, replacement in _ENTITIES:
        text = pattern.sub(replacement, text)
    return _WHITESPACE_RE.sub(" ", text).strip()


def parse_number(value: str) -> float | None:
    """Parse "1,234.5" style numbers; None when not a finite number."""
    normalized = value.replace(",", "").strip().rstrip(".")
    if not normalized:
        return None
    try:
        parsed = float(normalized)
    except ValueError:
        return None
    return parsed if math.isfinite(parsed) else None


def parse_int(value: str) -> int | None:
    """Parse "252,220" style integers; None when not an integer."""
    normalized = value.replace(",", "").strip()
    if not normalized.isdigit() or len(normalized) > _MAX_INT_DIGITS:
        return None
    return int(normalized)


def parse_usd_amount(value: str, unit: str | None) -> float | None:
    """Parse a dollar figure with an optional "billion"/"million" unit word."""
    base = parse_number(value)
    if base is None:
        return None
    multiplier = _UNIT_MULTIPLIERS.get((unit or "").lower(), 1)
    return base * multiplier
