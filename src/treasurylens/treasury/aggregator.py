"""Treasury snapshot aggregation across a company's filing history.

Pipeline:
    submissions index (+ history pages when the recent block is too short)
      → merge / dedupe by accession → relevant form types → sampled candidates
      → per filing, document sources in order until one yields facts:
            primary document → complete submission .txt → indexed HTML documents
      → TreasurySnapshot per filing → dedupe by resolved date → ascending order

Filing-level failures are recorded and never abort sibling filings. Only a
total absence of snapshots surfaces as TreasuryDataUnavailableError.
"""

from __future__ import annotations

import re
from collections.abc import Awaitable, Callable, Iterable
from dataclasses import dataclass
from datetime import date, datetime

from treasurylens.config import Settings, get_settings
from treasurylens.core.constants import MAX_INDEXED_DOCUMENTS
from treasurylens.core.exceptions import (
    TreasuryDataUnavailableError,
    TreasuryLensError,
    UpstreamError,
)
from treasurylens.core.logging import get_logger
from treasurylens.providers.sec_edgar.client import (
    SECEdgarClient,
    complete_submission_url,
    document_url,
)
from treasurylens.providers.sec_edgar.models import FilingReference
from treasurylens.treasury.concurrency import run_bounded
from treasurylens.treasury.discovery import (
    filter_form_types,
    merge_references,
    needs_history_pages,
    sample_candidates,
    select_history_files,
)
from treasurylens.treasury.extractor import (
    ExtractedFacts,
    ExtractionPolicy,
    extract_treasury_facts,
)
from treasurylens.treasury.models import TreasurySnapshot

logger = get_logger(__name__)

_HTML_DOC_RE = re.compile(r"\.html?$", re.IGNORECASE)
_EXHIBIT_HINTS = ("ex99", "99-", "99.", "press", "release")
_BODY_HINTS = ("8k", "8-k", "d8k", "10q", "10-q", "10k", "10-k")

_AS_OF_FORMATS = ("%B %d, %Y", "%b %d, %Y", "%m/%d/%Y")


@dataclass(frozen=True)
class DocumentSource:
    """One physical document to try for a filing."""

    url: str
    accept: str = "text/html"


@dataclass(frozen=True)
class FilingExtraction:
    filing: FilingReference
    source_url: str
    facts: ExtractedFacts


DocumentStrategy = Callable[[FilingReference], Awaitable[list[DocumentSource]]]


def resolve_as_of_date(label: str | None) -> date | None:
    """Parse an as-of label ("August 2, 2024", "Sept. 30, 2024", "6/30/2024")."""
    if not label:
        return None
    cleaned = " ".join(label.replace(".", " ").split())
    cleaned = cleaned.replace(" ,", ",")
    parts = cleaned.split(" ", 1)
    if len(parts) == 2 and parts[0].lower().startswith("sept"):
        cleaned = f"Sep {parts[1]}"
    for fmt in _AS_OF_FORMATS:
        try:
            return datetime.strptime(cleaned, fmt).date()
        except ValueError:
            continue
    return None


def prioritize_documents(names: Iterable[str]) -> list[str]:
    """Order a filing's HTML documents: exhibits/press releases, then filing body, then rest."""
    html_docs = [
        n for n in names if _HTML_DOC_RE.search(n) and "index" not in n.lower()
    ]

    def rank(name: str) -> int:
        lower = name.lower()
        if any(hint in lower for hint in _EXHIBIT_HINTS):
            return 0
        if any(hint in lower for hint in _BODY_HINTS):
            return 1
        return 2

    ordered = sorted(html_docs, key=rank)  # stable within a rank
    return list(dict.fromkeys(ordered))


def dedupe_snapshots(snapshots: Iterable[TreasurySnapshot]) -> list[TreasurySnapshot]:
    """One snapshot per resolved date (largest holdings wins), ascending by date."""
    by_date: dict[date, TreasurySnapshot] = {}
    for snapshot in snapshots:
        current = by_date.get(snapshot.resolved_date)
        if current is None or snapshot.holdings_btc > current.holdings_btc:
            by_date[snapshot.resolved_date] = snapshot
    return [by_date[d] for d in sorted(by_date)]


class TreasuryAggregator:
    """Reconstructs a company's treasury snapshot history from SEC filings.

    Usage:
        aggregator = TreasuryAggregator(client)
        snapshots = await aggregator.collect_snapshots()
    """

    def __init__(
        self,
        client: SECEdgarClient,
        settings: Settings | None = None,
        policy: ExtractionPolicy | None = None,
    ) -> None:
        self._client = client
        self._settings = settings or get_settings()
        self._policy = policy or ExtractionPolicy.from_settings(self._settings)
        self._strategies: list[DocumentStrategy] = [
            self._primary_document,
            self._complete_submission,
            self._indexed_documents,
        ]

    # ─────────────────────────────────────────────────────────────
    # Discovery
    # ─────────────────────────────────────────────────────────────

    async def discover_candidates(self, today: date | None = None) -> list[FilingReference]:
        """Enumerate, filter and sample candidate filings, newest first.

        Raises:
            UpstreamError: The submissions index itself could not be loaded
        """
        settings = self._settings
        today = today or date.today()
        cik = settings.treasury_cik
        start_date = settings.treasury_start_date

        index = await self._client.get_submissions(cik)
        sources: list[list[FilingReference]] = [index.recent]

        if needs_history_pages(index, start_date):
            pages = select_history_files(
                index.files, start_date, settings.treasury_max_history_pages
            )
            outcomes = await run_bounded(
                pages,
                lambda page: self._client.get_submissions_page(cik, page.name),
                settings.treasury_concurrency,
            )
            for page, outcome in zip(pages, outcomes):
                if outcome.error is not None:
                    logger.warning(
                        "Submissions history page failed", page=page.name, error=str(outcome.error)
                    )
                elif outcome.value is not None:
                    sources.append(outcome.value)

        merged = merge_references(*sources)
        relevant = filter_form_types(merged, settings.treasury_form_types)
        candidates = sample_candidates(
            relevant,
            start_date=start_date,
            today=today,
            recent_window_days=settings.treasury_recent_window_days,
            max_per_month=settings.treasury_max_per_month,
            max_candidates=settings.treasury_max_candidates,
        )
        logger.debug(
            "Discovered candidate filings",
            cik=cik,
            merged=len(merged),
            relevant=len(relevant),
            candidates=len(candidates),
        )
        return candidates

    # ─────────────────────────────────────────────────────────────
    # Document source strategies
    # ─────────────────────────────────────────────────────────────

    async def _primary_document(self, filing: FilingReference) -> list[DocumentSource]:
        if not filing.primary_document:
            return []
        return [DocumentSource(document_url(filing, filing.primary_document))]

    async def _complete_submission(self, filing: FilingReference) -> list[DocumentSource]:
        return [DocumentSource(complete_submission_url(filing), accept="text/plain")]

    async def _indexed_documents(self, filing: FilingReference) -> list[DocumentSource]:
        try:
            names = await self._client.get_filing_index(filing)
        except UpstreamError as e:
            # Primary document and full submission were already tried
            logger.debug(
                "Filing index unavailable", accession=filing.accession_number, error=str(e)
            )
            return []
        # The cap counts the primary document, which extract_filing skips as already tried
        ordered = prioritize_documents(names)
        if filing.primary_document:
            ordered = list(dict.fromkeys([filing.primary_document, *ordered]))
        return [
            DocumentSource(document_url(filing, name))
            for name in ordered[:MAX_INDEXED_DOCUMENTS]
        ]

    # ─────────────────────────────────────────────────────────────
    # Per-filing extraction
    # ─────────────────────────────────────────────────────────────

    async def extract_filing(self, filing: FilingReference) -> FilingExtraction | None:
        """Try each document source for a filing until one yields facts.

        Returns:
            FilingExtraction, or None when documents were fetched but none
            carried a treasury disclosure

        Raises:
            UpstreamError: Every document fetch failed
        """
        tried: set[str] = set()
        had_successful_fetch = False
        last_error: UpstreamError | None = None

        for strategy in self._strategies:
            for source in await strategy(filing):
                if source.url in tried:
                    continue
                tried.add(source.url)
                try:
                    body = await self._client.fetch_document(source.url, accept=source.accept)
                except UpstreamError as e:
                    last_error = e
                    logger.debug("Document fetch failed", url=source.url, error=str(e))
                    continue
                had_successful_fetch = True

                facts = extract_treasury_facts(body, self._policy)
                if facts is not None:
                    logger.debug(
                        "Extracted treasury facts",
                        accession=filing.accession_number,
                        url=source.url,
                        holdings=facts.holdings_btc,
                        avg_cost=round(facts.avg_cost_usd, 2),
                    )
                    return FilingExtraction(filing=filing, source_url=source.url, facts=facts)

        if not had_successful_fetch and last_error is not None:
            raise last_error
        return None

    def to_snapshot(self, extraction: FilingExtraction) -> TreasurySnapshot | None:
        """Attach identity and a resolved date; None when no date is available."""
        facts = extraction.facts
        filing = extraction.filing
        resolved = resolve_as_of_date(facts.as_of_label) or filing.filed_date
        if resolved is None:
            return None
        return TreasurySnapshot(
            company=self._settings.treasury_company_name,
            symbol=self._settings.treasury_symbol,
            accession_number=filing.accession_number,
            form=filing.form,
            as_of_label=facts.as_of_label,
            filed_date=filing.filed_date,
            resolved_date=resolved,
            source_url=extraction.source_url,
            holdings_btc=facts.holdings_btc,
            total_cost_usd=facts.total_cost_usd,
            avg_cost_usd=facts.avg_cost_usd,
        )

    # ─────────────────────────────────────────────────────────────
    # Aggregation
    # ─────────────────────────────────────────────────────────────

    async def collect_snapshots(self, today: date | None = None) -> list[TreasurySnapshot]:
        """Build the deduplicated, ascending snapshot history.

        Raises:
            UpstreamError: The submissions index could not be loaded
            TreasuryDataUnavailableError: No candidate filing yielded a snapshot
        """
        candidates = await self.discover_candidates(today)
        return await self.snapshots_from_candidates(candidates)

    async def snapshots_from_candidates(
        self, candidates: list[FilingReference]
    ) -> list[TreasurySnapshot]:
        outcomes = await run_bounded(
            candidates, self.extract_filing, self._settings.treasury_concurrency
        )

        snapshots: list[TreasurySnapshot] = []
        last_error: Exception | None = None
        for filing, outcome in zip(candidates, outcomes):
            if outcome.error is not None:
                last_error = outcome.error
                logger.warning(
                    "Filing extraction failed",
                    accession=filing.accession_number,
                    error=str(outcome.error),
                )
                continue
            if outcome.value is None:
                continue
            snapshot = self.to_snapshot(outcome.value)
            if snapshot is not None:
                snapshots.append(snapshot)

        if not snapshots:
            if last_error is not None:
                detail = (
                    last_error.message
                    if isinstance(last_error, TreasuryLensError)
                    else str(last_error)
                )
                raise TreasuryDataUnavailableError(
                    f"Treasury data unavailable: {detail}"
                ) from last_error
            raise TreasuryDataUnavailableError(
                "Treasury data unavailable: no Bitcoin holdings disclosure found in recent filings"
            )

        result = dedupe_snapshots(snapshots)
        logger.info(
            "Collected treasury snapshots",
            candidates=len(candidates),
            extracted=len(snapshots),
            snapshots=len(result),
        )
        return result

    async def latest_snapshot(self, today: date | None = None) -> TreasurySnapshot:
        """Most recent snapshot by resolved date."""
        snapshots = await self.collect_snapshots(today)
        return snapshots[-1]
