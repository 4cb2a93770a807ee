"""SEC EDGAR provider for company submissions and filing documents.

Uses the free SEC EDGAR API (data.sec.gov), no API key required.
"""

from treasurylens.providers.sec_edgar.client import SECEdgarClient
from treasurylens.providers.sec_edgar.models import (
    FilingReference,
    SubmissionsFile,
    SubmissionsIndex,
)

__all__ = [
    "SECEdgarClient",
    "FilingReference",
    "SubmissionsFile",
    "SubmissionsIndex",
]
