"""Tests for SEC EDGAR provider."""

from __future__ import annotations

from datetime import date
from unittest.mock import AsyncMock, MagicMock, patch

import httpx
import orjson
import pytest

from treasurylens.core.exceptions import UnparseableResponseError, UpstreamUnavailableError
from treasurylens.providers.sec_edgar.client import (
    SECEdgarClient,
    complete_submission_url,
    document_url,
    filing_index_url,
    filings_from_columns,
)
from treasurylens.providers.sec_edgar.models import FilingReference


# ---------------------------------------------------------------------------
# Sample Data
# ---------------------------------------------------------------------------

SAMPLE_SUBMISSIONS = {
    "cik": "1050446",
    "name": "MicroStrategy Inc",
    "filings": {
        "recent": {
            "form": ["8-K", "4", "10-Q", "8-K"],
            "filingDate": ["2024-08-01", "2024-07-31", "2024-07-31", ""],
            "accessionNumber": [
                "0001050446-24-000101",
                "0001050446-24-000100",
                "0001050446-24-000099",
                "0001050446-24-000098",
            ],
            "primaryDocument": ["mstr-20240801.htm", "xslF345X05/wf-form4.xml", "mstr-10q.htm", ""],
        },
        "files": [
            {
                "name": "CIK0001050446-submissions-001.json",
                "filingCount": 1200,
                "filingFrom": "1998-03-12",
                "filingTo": "2021-02-16",
            }
        ],
    },
}

SAMPLE_PAGE = {
    "form": ["8-K"],
    "filingDate": ["2020-09-14"],
    "accessionNumber": ["0001050446-20-000060"],
    "primaryDocument": ["d8k.htm"],
}

SAMPLE_INDEX = {
    "directory": {
        "item": [
            {"name": "0001050446-24-000101-index.htm"},
            {"name": "ex99-1.htm"},
            {"name": "mstr-20240801.htm"},
            {"size": "12"},
        ]
    }
}

FILING = FilingReference(
    cik="0001050446",
    accession_number="0001050446-24-000101",
    filed_date=date(2024, 8, 1),
    form="8-K",
    primary_document="mstr-20240801.htm",
)


def _response(content: bytes = b"", text: str = "", status_code: int = 200) -> MagicMock:
    resp = MagicMock()
    resp.status_code = status_code
    resp.content = content
    resp.text = text
    if status_code >= 400:
        resp.raise_for_status = MagicMock(
            side_effect=httpx.HTTPStatusError(
                f"{status_code}", request=MagicMock(), response=MagicMock(status_code=status_code)
            )
        )
    else:
        resp.raise_for_status = MagicMock()
    return resp


# ---------------------------------------------------------------------------
# Fixtures
# ---------------------------------------------------------------------------


@pytest.fixture()
def mock_redis():
    redis = AsyncMock()
    redis.get.return_value = None
    redis.set.return_value = True
    return redis


@pytest.fixture()
def client(mock_redis):
    return SECEdgarClient(redis=mock_redis)


# ---------------------------------------------------------------------------
# URL builders
# ---------------------------------------------------------------------------


class TestUrls:
    def test_document_url_strips_padding_and_dashes(self) -> None:
        assert document_url(FILING, "ex99-1.htm") == (
            "https://www.sec.gov/Archives/edgar/data/1050446/000105044624000101/ex99-1.htm"
        )

    def test_complete_submission_url(self) -> None:
        assert complete_submission_url(FILING).endswith("/000105044624000101/000105044624000101.txt")

    def test_filing_index_url(self) -> None:
        assert filing_index_url(FILING).endswith("/000105044624000101/index.json")


# ---------------------------------------------------------------------------
# Submissions
# ---------------------------------------------------------------------------


class TestGetSubmissions:
    async def test_parses_recent_and_files(self, client: SECEdgarClient, mock_redis):
        with patch.object(client, "_get_http_client") as mock_http:
            mock_http.return_value.get = AsyncMock(
                return_value=_response(content=orjson.dumps(SAMPLE_SUBMISSIONS))
            )
            index = await client.get_submissions("1050446")

        assert index.cik == "0001050446"
        assert index.name == "MicroStrategy Inc"
        assert len(index.recent) == 4
        assert index.recent[0].form == "8-K"
        assert index.recent[0].filed_date == date(2024, 8, 1)
        assert index.recent[3].filed_date is None
        assert index.recent[3].primary_document is None
        assert index.files[0].filing_to == date(2021, 2, 16)
        assert index.earliest_recent_date == date(2024, 7, 31)

        url = mock_http.return_value.get.call_args.args[0]
        assert url == "https://data.sec.gov/submissions/CIK0001050446.json"
        mock_redis.set.assert_called()

    async def test_from_cache(self, client: SECEdgarClient, mock_redis):
        mock_redis.get.return_value = orjson.dumps(SAMPLE_SUBMISSIONS)

        with patch.object(client, "_get_http_client") as mock_http:
            index = await client.get_submissions("0001050446")
            mock_http.assert_not_called()

        assert len(index.recent) == 4

    async def test_http_error_raises_unavailable(self, client: SECEdgarClient):
        with patch.object(client, "_get_http_client") as mock_http:
            mock_http.return_value.get = AsyncMock(return_value=_response(status_code=503))
            with pytest.raises(UpstreamUnavailableError) as exc_info:
                await client.get_submissions("1050446")

        assert exc_info.value.status_code == 503

    async def test_transport_error_raises_unavailable(self, client: SECEdgarClient):
        with patch.object(client, "_get_http_client") as mock_http:
            mock_http.return_value.get = AsyncMock(side_effect=httpx.ConnectError("refused"))
            with pytest.raises(UpstreamUnavailableError) as exc_info:
                await client.get_submissions("1050446")

        assert exc_info.value.status_code is None

    async def test_invalid_json_raises_unparseable(self, client: SECEdgarClient):
        with patch.object(client, "_get_http_client") as mock_http:
            mock_http.return_value.get = AsyncMock(return_value=_response(content=b"<html>"))
            with pytest.raises(UnparseableResponseError):
                await client.get_submissions("1050446")

    async def test_history_page(self, client: SECEdgarClient):
        with patch.object(client, "_get_http_client") as mock_http:
            mock_http.return_value.get = AsyncMock(
                return_value=_response(content=orjson.dumps(SAMPLE_PAGE))
            )
            filings = await client.get_submissions_page(
                "1050446", "CIK0001050446-submissions-001.json"
            )

        assert [f.accession_number for f in filings] == ["0001050446-20-000060"]
        assert filings[0].cik == "0001050446"
        url = mock_http.return_value.get.call_args.args[0]
        assert url == "https://data.sec.gov/submissions/CIK0001050446-submissions-001.json"


class TestFilingsFromColumns:
    def test_ragged_columns(self) -> None:
        filings = filings_from_columns(
            "0001050446",
            {"accessionNumber": ["a-1", "", "a-3"], "form": ["8-K"], "filingDate": ["2024-01-02"]},
        )

        assert [f.accession_number for f in filings] == ["a-1", "a-3"]
        assert filings[1].form == ""
        assert filings[1].filed_date is None

    def test_empty(self) -> None:
        assert filings_from_columns("0001050446", {}) == []


# ---------------------------------------------------------------------------
# Documents
# ---------------------------------------------------------------------------


class TestDocuments:
    async def test_filing_index_names(self, client: SECEdgarClient):
        with patch.object(client, "_get_http_client") as mock_http:
            mock_http.return_value.get = AsyncMock(
                return_value=_response(content=orjson.dumps(SAMPLE_INDEX))
            )
            names = await client.get_filing_index(FILING)

        assert names == ["0001050446-24-000101-index.htm", "ex99-1.htm", "mstr-20240801.htm"]

    async def test_fetch_document_sends_accept_and_caches(self, client: SECEdgarClient, mock_redis):
        url = document_url(FILING, "ex99-1.htm")
        with patch.object(client, "_get_http_client") as mock_http:
            mock_http.return_value.get = AsyncMock(return_value=_response(text="<p>held</p>"))
            text = await client.fetch_document(url, accept="text/plain")

        assert text == "<p>held</p>"
        assert mock_http.return_value.get.call_args.kwargs["headers"] == {"Accept": "text/plain"}
        mock_redis.set.assert_called_once()

    async def test_fetch_document_from_cache(self, client: SECEdgarClient, mock_redis):
        mock_redis.get.return_value = b"<p>cached</p>"

        with patch.object(client, "_get_http_client") as mock_http:
            text = await client.fetch_document("https://www.sec.gov/x.htm")
            mock_http.assert_not_called()

        assert text == "<p>cached</p>"

    async def test_fetch_document_404(self, client: SECEdgarClient):
        with patch.object(client, "_get_http_client") as mock_http:
            mock_http.return_value.get = AsyncMock(return_value=_response(status_code=404))
            with pytest.raises(UpstreamUnavailableError) as exc_info:
                await client.fetch_document("https://www.sec.gov/missing.htm")

        assert exc_info.value.url == "https://www.sec.gov/missing.htm"
        assert exc_info.value.status_code == 404

    async def test_without_redis(self):
        client = SECEdgarClient()
        with patch.object(client, "_get_http_client") as mock_http:
            mock_http.return_value.get = AsyncMock(return_value=_response(text="body"))
            assert await client.fetch_document("https://www.sec.gov/x.htm") == "body"


class TestLifecycle:
    async def test_close(self, client: SECEdgarClient):
        http = AsyncMock()
        client._http_client = http

        await client.close()

        http.aclose.assert_awaited_once()
        assert client._http_client is None
