"""Pydantic models for SEC EDGAR data."""

from __future__ import annotations

from datetime import date

from pydantic import BaseModel, ConfigDict, Field


class FilingReference(BaseModel):
    """One regulatory filing, as listed in a company's submissions index."""

    model_config = ConfigDict(frozen=True)

    cik: str  # 10-digit, zero padded
    accession_number: str  # "0001050446-24-000123"
    filed_date: date | None
    form: str  # "8-K", "10-Q", "10-K/A", etc.
    primary_document: str | None = None

    @property
    def accession_no_dashes(self) -> str:
        return self.accession_number.replace("-", "")


class SubmissionsFile(BaseModel):
    """Reference to a supplementary submissions history page."""

    name: str  # e.g. "CIK0001050446-submissions-001.json"
    filing_count: int = 0
    filing_from: date | None = None
    filing_to: date | None = None


class SubmissionsIndex(BaseModel):
    """Parsed company submissions index (inline recent block + history pages)."""

    cik: str
    name: str = ""
    recent: list[FilingReference] = Field(default_factory=list)
    files: list[SubmissionsFile] = Field(default_factory=list)

    @property
    def earliest_recent_date(self) -> date | None:
        dates = [f.filed_date for f in self.recent if f.filed_date is not None]
        return min(dates) if dates else None
