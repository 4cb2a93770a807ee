"""TreasuryLens: corporate Bitcoin treasury cost basis from SEC filings."""

__version__ = "0.1.0"
