"""Application-wide constants.

These are fixed values that don't change between environments.
For configurable values, see config.py Settings.
"""

from datetime import date

# ─────────────────────────────────────────────────────────────
# API Rate Limits (external constraints)
# ─────────────────────────────────────────────────────────────
SEC_EDGAR_RATE_LIMIT_CALLS_PER_SECOND = 10  # SEC fair-access policy

# ─────────────────────────────────────────────────────────────
# Cache TTLs (sensible defaults)
# ─────────────────────────────────────────────────────────────
SEC_EDGAR_CACHE_TTL_SUBMISSIONS = 3600  # 1 hour for company submissions index
SEC_EDGAR_CACHE_TTL_DOCUMENT = 604800  # 7 days, filed documents don't change
PRICE_CACHE_TTL_SECONDS = 21600  # 6 hours for daily closes

# ─────────────────────────────────────────────────────────────
# Treasury target defaults
# ─────────────────────────────────────────────────────────────
MSTR_CIK = "0001050446"
MSTR_FIRST_PURCHASE_DATE = date(2020, 8, 1)

# ─────────────────────────────────────────────────────────────
# Extraction sanity bounds
# ─────────────────────────────────────────────────────────────
MAX_HOLDINGS_BTC = 5_000_000
MIN_AVG_COST_USD = 1_000.0
MAX_AVG_COST_USD = 2_000_000.0
DEFAULT_PAIR_TOLERANCE = 0.35

# Text window around a holdings mention searched for cost/date context
WINDOW_CHARS_BEFORE = 7_500
WINDOW_CHARS_AFTER = 25_000

# Documents taken from a filing's index, the primary document included
MAX_INDEXED_DOCUMENTS = 10
