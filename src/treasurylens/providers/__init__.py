"""External data providers (SEC EDGAR filings, Stooq prices)."""
