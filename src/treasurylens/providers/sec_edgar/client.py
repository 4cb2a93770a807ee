"""SEC EDGAR API client.

Free API, no key required, just a User-Agent header.
- Company submissions: https://data.sec.gov/submissions/CIK{cik}.json
- Submissions history pages: https://data.sec.gov/submissions/{name}
- Filing directory: https://www.sec.gov/Archives/edgar/data/{cik}/{accession}/index.json
- Filing documents: https://www.sec.gov/Archives/edgar/data/{cik}/{accession}/{document}
"""

from __future__ import annotations

import asyncio
import hashlib
from datetime import date
from typing import TYPE_CHECKING, Any

import httpx
import orjson

from treasurylens.config import get_settings
from treasurylens.core.constants import SEC_EDGAR_RATE_LIMIT_CALLS_PER_SECOND
from treasurylens.core.exceptions import UnparseableResponseError, UpstreamUnavailableError
from treasurylens.core.logging import get_logger
from treasurylens.providers.sec_edgar.models import (
    FilingReference,
    SubmissionsFile,
    SubmissionsIndex,
)

if TYPE_CHECKING:
    from redis.asyncio import Redis

logger = get_logger(__name__)

SEC_BASE_URL = "https://data.sec.gov"
SEC_WWW_URL = "https://www.sec.gov"
CACHE_PREFIX = "treasurylens:sec_edgar"


class _SECRateLimiter:
    """Token bucket rate limiter for SEC EDGAR (10 req/sec)."""

    def __init__(self, calls_per_second: int = 10) -> None:
        self._max_calls = calls_per_second
        self._calls: list[float] = []
        self._lock = asyncio.Lock()

    async def acquire(self) -> None:
        async with self._lock:
            now = asyncio.get_running_loop().time()
            self._calls = [t for t in self._calls if t > now - 1.0]
            if len(self._calls) >= self._max_calls:
                sleep_time = 1.0 - (now - self._calls[0]) + 0.05
                if sleep_time > 0:
                    await asyncio.sleep(sleep_time)
                now = asyncio.get_running_loop().time()
                self._calls = [t for t in self._calls if t > now - 1.0]
            self._calls.append(now)


_sec_rate_limiter = _SECRateLimiter(SEC_EDGAR_RATE_LIMIT_CALLS_PER_SECOND)


# ─────────────────────────────────────────────────────────────
# URL builders
# ─────────────────────────────────────────────────────────────


def archive_base_url(cik: str, accession_number: str) -> str:
    """Filing directory URL (CIK without zero padding, accession without dashes)."""
    return (
        f"{SEC_WWW_URL}/Archives/edgar/data/{int(cik)}/{accession_number.replace('-', '')}"
    )


def document_url(filing: FilingReference, name: str) -> str:
    return f"{archive_base_url(filing.cik, filing.accession_number)}/{name}"


def complete_submission_url(filing: FilingReference) -> str:
    """Combined text of every document in the filing."""
    return document_url(filing, f"{filing.accession_no_dashes}.txt")


def filing_index_url(filing: FilingReference) -> str:
    return document_url(filing, "index.json")


class SECEdgarClient:
    """Client for the SEC EDGAR API.

    Provides the company submissions index (including paged history),
    filing directory listings and raw filing documents. Responses are
    cached in Redis when a connection is supplied.

    Usage:
        client = SECEdgarClient(redis=redis_client)
        index = await client.get_submissions("0001050446")
        html = await client.fetch_document(url)
        await client.close()
    """

    def __init__(self, redis: Redis | None = None) -> None:
        self._redis = redis
        self._http_client: httpx.AsyncClient | None = None

    def _get_http_client(self) -> httpx.AsyncClient:
        if self._http_client is None:
            settings = get_settings()
            self._http_client = httpx.AsyncClient(
                timeout=30.0,
                follow_redirects=True,
                headers={
                    "User-Agent": settings.sec_user_agent,
                    "Accept-Encoding": "gzip, deflate",
                },
            )
        return self._http_client

    async def _fetch(self, url: str, accept: str = "application/json") -> httpx.Response:
        """Rate-limited HTTP GET that raises on any non-success outcome."""
        await _sec_rate_limiter.acquire()
        client = self._get_http_client()
        try:
            resp = await client.get(url, headers={"Accept": accept})
            resp.raise_for_status()
        except httpx.HTTPStatusError as exc:
            status = exc.response.status_code
            raise UpstreamUnavailableError(
                f"SEC request failed ({status})", url=url, status_code=status
            ) from exc
        except httpx.HTTPError as exc:
            raise UpstreamUnavailableError(f"SEC request failed ({exc})", url=url) from exc
        return resp

    async def _fetch_json(self, url: str) -> dict[str, Any]:
        resp = await self._fetch(url)
        try:
            data = orjson.loads(resp.content)
        except orjson.JSONDecodeError as exc:
            raise UnparseableResponseError(f"SEC returned invalid JSON for {url}") from exc
        if not isinstance(data, dict):
            raise UnparseableResponseError(f"SEC returned unexpected JSON for {url}")
        return data

    async def _cached_json(self, cache_key: str, url: str, ttl: int) -> dict[str, Any]:
        if self._redis is not None:
            cached = await self._redis.get(cache_key)
            if cached:
                try:
                    data: dict[str, Any] = orjson.loads(cached)
                    return data
                except orjson.JSONDecodeError as e:
                    logger.warning("Cache deserialization failed", key=cache_key, error=str(e))

        data = await self._fetch_json(url)
        if self._redis is not None:
            await self._redis.set(cache_key, orjson.dumps(data), ex=ttl)
        return data

    # ─────────────────────────────────────────────────────────────
    # Submissions index
    # ─────────────────────────────────────────────────────────────

    async def get_submissions(self, cik: str) -> SubmissionsIndex:
        """Get the submissions index for a company.

        Args:
            cik: Company CIK (padded or unpadded)

        Returns:
            SubmissionsIndex with the inline recent filings and history page refs

        Raises:
            UpstreamUnavailableError: Index could not be fetched
            UnparseableResponseError: Index payload was not valid JSON
        """
        cik = str(cik).zfill(10)
        settings = get_settings()
        data = await self._cached_json(
            f"{CACHE_PREFIX}:submissions:{cik}",
            f"{SEC_BASE_URL}/submissions/CIK{cik}.json",
            settings.sec_cache_ttl_submissions,
        )

        filings_block = data.get("filings") or {}
        recent = filings_block.get("recent") or {}
        files = [
            SubmissionsFile(
                name=f["name"],
                filing_count=int(f.get("filingCount") or 0),
                filing_from=_parse_iso_date(f.get("filingFrom")),
                filing_to=_parse_iso_date(f.get("filingTo")),
            )
            for f in filings_block.get("files") or []
            if f.get("name")
        ]

        index = SubmissionsIndex(
            cik=cik,
            name=str(data.get("name") or ""),
            recent=filings_from_columns(cik, recent),
            files=files,
        )
        logger.debug(
            "Loaded SEC submissions index",
            cik=cik,
            recent=len(index.recent),
            history_pages=len(index.files),
        )
        return index

    async def get_submissions_page(self, cik: str, name: str) -> list[FilingReference]:
        """Get the filings listed in one supplementary submissions history page."""
        cik = str(cik).zfill(10)
        settings = get_settings()
        data = await self._cached_json(
            f"{CACHE_PREFIX}:submissions_page:{name}",
            f"{SEC_BASE_URL}/submissions/{name}",
            settings.sec_cache_ttl_submissions,
        )
        return filings_from_columns(cik, data)

    # ─────────────────────────────────────────────────────────────
    # Filing documents
    # ─────────────────────────────────────────────────────────────

    async def get_filing_index(self, filing: FilingReference) -> list[str]:
        """List document names in a filing's directory."""
        settings = get_settings()
        data = await self._cached_json(
            f"{CACHE_PREFIX}:index:{filing.accession_no_dashes}",
            filing_index_url(filing),
            settings.sec_cache_ttl_document,
        )
        items = (data.get("directory") or {}).get("item") or []
        return [str(item["name"]) for item in items if isinstance(item, dict) and item.get("name")]

    async def fetch_document(self, url: str, accept: str = "text/html") -> str:
        """Fetch a raw filing document (HTML or plain text).

        Raises:
            UpstreamUnavailableError: Non-success status or transport failure
        """
        url_hash = hashlib.md5(url.encode()).hexdigest()  # noqa: S324
        cache_key = f"{CACHE_PREFIX}:document:{url_hash}"

        if self._redis is not None:
            cached = await self._redis.get(cache_key)
            if cached:
                return cached.decode() if isinstance(cached, bytes) else str(cached)

        resp = await self._fetch(url, accept=accept)
        text = resp.text

        if self._redis is not None and text:
            settings = get_settings()
            await self._redis.set(cache_key, text, ex=settings.sec_cache_ttl_document)
        return text

    # ─────────────────────────────────────────────────────────────
    # Lifecycle
    # ─────────────────────────────────────────────────────────────

    async def close(self) -> None:
        """Clean up resources."""
        if self._http_client:
            await self._http_client.aclose()
            self._http_client = None
        logger.debug("SECEdgarClient closed")


# ─────────────────────────────────────────────────────────────
# Parsing helpers
# ─────────────────────────────────────────────────────────────


def _parse_iso_date(value: Any) -> date | None:
    if not value:
        return None
    try:
        return date.fromisoformat(str(value)[:10])
    except ValueError:
        return None


def filings_from_columns(cik: str, columns: dict[str, Any]) -> list[FilingReference]:
    """Turn EDGAR's columnar filing block into FilingReference rows.

    Rows without an accession number are dropped; missing dates and
    primary documents are kept as None.
    """
    accession_numbers = columns.get("accessionNumber") or []
    forms = columns.get("form") or []
    filing_dates = columns.get("filingDate") or []
    primary_documents = columns.get("primaryDocument") or []

    filings: list[FilingReference] = []
    for i, accession in enumerate(accession_numbers):
        if not accession:
            continue
        doc = primary_documents[i] if i < len(primary_documents) else None
        filings.append(
            FilingReference(
                cik=cik,
                accession_number=str(accession),
                filed_date=_parse_iso_date(filing_dates[i] if i < len(filing_dates) else None),
                form=str(forms[i]) if i < len(forms) and forms[i] else "",
                primary_document=str(doc) if doc else None,
            )
        )
    return filings
