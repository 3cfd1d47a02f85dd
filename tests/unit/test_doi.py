"""Unit tests for DOI parsing and the Crossref client."""

from unittest.mock import AsyncMock, patch

import httpx
import pytest

from pmc_deposit.engines.doi import crossref
from pmc_deposit.engines.doi.crossref import (
    CrossrefClient,
    CrossrefWork,
    DoiLookupError,
    DoiNotFoundError,
)
from pmc_deposit.engines.doi.identifiers import (
    extract_doi,
    is_valid_doi,
    published_date_from_parts,
    select_issn,
)


class TestExtractDoi:
    """Tests for extract_doi."""

    @pytest.mark.parametrize("value, expected", [
        ("10.1234/example.2024.001", "10.1234/example.2024.001"),
        ("  10.1016/j.neuron.2024.01.001 ", "10.1016/j.neuron.2024.01.001"),
        ("https://doi.org/10.1234/abc", "10.1234/abc"),
        ("http://dx.doi.org/10.12345/x(y)z", "10.12345/x(y)z"),
        ("https://journals.example.org/doi/full/10.1234/abc.def", "10.1234/abc.def"),
    ])
    def test_accepts_doi_and_doi_url(self, value, expected):
        assert extract_doi(value) == expected

    @pytest.mark.parametrize("value", ["", None, "not-a-doi", "10.12/too-short-prefix", "doi:10.1234/abc"])
    def test_rejects_other_input(self, value):
        assert extract_doi(value) is None
        assert not is_valid_doi(value)


class TestSelectIssn:

    def test_prefers_electronic(self):
        assert select_issn(["0896-6273", "10974199"]) == ("10974199", "electronic")

    def test_falls_back_to_print(self):
        assert select_issn(["0896-6273"]) == ("0896-6273", "print")

    def test_none(self):
        assert select_issn([]) == (None, None)


class TestPublishedDate:
    """Tests for published_date_from_parts."""

    @pytest.mark.parametrize("parts, expected", [
        ([2024, 1, 15], "2024-01-15"),
        ([2024, 3], "2024-03-01"),
        ([2024], "2024-01-01"),
    ])
    def test_valid_dates(self, parts, expected):
        assert published_date_from_parts(parts) == expected

    @pytest.mark.parametrize("parts", [None, [], [999], [10000, 1, 1], [2023, 2, 30], [2024, 13]])
    def test_invalid_dates(self, parts):
        assert published_date_from_parts(parts) is None


class TestCrossrefWork:
    """Tests for parsing a Crossref message."""

    def test_metadata_patch(self, crossref_message):
        work = CrossrefWork.from_message(crossref_message)
        patch_fields = work.metadata_patch()

        assert patch_fields["doiSuccess"] is True
        assert patch_fields["title"] == "Cortical circuits in the adult mouse"
        assert patch_fields["doiTitle"] == patch_fields["title"]
        assert patch_fields["journalName"] == "Neuron"
        assert patch_fields["doiPublishedDate"] == "2024-01-15"
        assert patch_fields["issn"] == "10974199"
        assert patch_fields["issnType"] == "electronic"
        assert patch_fields["doiUrl"] == "https://doi.org/10.1016/j.neuron.2024.01.001"
        assert patch_fields["doiAuthors"][0]["family"] == "Lovelace"

    def test_missing_container_title(self, crossref_message):
        crossref_message["container-title"] = []
        work = CrossrefWork.from_message(crossref_message)
        assert work.container_title == ""

    def test_missing_published_date(self, crossref_message):
        del crossref_message["published"]
        work = CrossrefWork.from_message(crossref_message)
        assert work.metadata_patch()["doiPublishedDate"] is None


def _response(status_code: int, **kwargs) -> httpx.Response:
    return httpx.Response(status_code, request=httpx.Request("GET", "https://api.crossref.org/works/x"), **kwargs)


class TestCrossrefClient:
    """Tests for CrossrefClient.lookup with the HTTP layer patched."""

    async def test_lookup_success(self, crossref_message):
        client = CrossrefClient("https://api.crossref.org/", mailto="dev@example.org")
        with patch.object(
            crossref,
            "_request_with_retry",
            AsyncMock(return_value=_response(200, json={"message": crossref_message})),
        ) as request:
            work = await client.lookup("10.1016/j.neuron.2024.01.001")

        assert work.title == "Cortical circuits in the adult mouse"
        url = request.call_args.args[1]
        assert url == "https://api.crossref.org/works/10.1016/j.neuron.2024.01.001"
        assert request.call_args.kwargs["params"] == {"mailto": "dev@example.org"}

    async def test_lookup_not_found(self):
        client = CrossrefClient("https://api.crossref.org")
        with patch.object(crossref, "_request_with_retry", AsyncMock(return_value=_response(404))):
            with pytest.raises(DoiNotFoundError) as exc_info:
                await client.lookup("10.1234/missing")
        assert exc_info.value.status_code == 404

    async def test_lookup_server_error(self):
        client = CrossrefClient("https://api.crossref.org")
        with patch.object(crossref, "_request_with_retry", AsyncMock(return_value=_response(503))):
            with pytest.raises(DoiLookupError) as exc_info:
                await client.lookup("10.1234/abc")
        assert not isinstance(exc_info.value, DoiNotFoundError)

    async def test_lookup_unreadable_record(self):
        client = CrossrefClient("https://api.crossref.org")
        with patch.object(
            crossref,
            "_request_with_retry",
            AsyncMock(return_value=_response(200, json={"message": {"title": []}})),
        ):
            with pytest.raises(DoiLookupError, match="could not be read"):
                await client.lookup("10.1234/abc")


class TestRequestWithRetry:
    """Tests for the retry loop."""

    async def test_retries_server_errors(self):
        http = AsyncMock()
        http.get.side_effect = [_response(502), _response(200, json={})]
        with patch.object(crossref.asyncio, "sleep", AsyncMock()) as sleep:
            response = await crossref._request_with_retry(http, "https://example.org")
        assert response.status_code == 200
        assert http.get.call_count == 2
        sleep.assert_awaited_once_with(crossref.RETRY_BACKOFF[0])

    async def test_honours_retry_after(self):
        http = AsyncMock()
        http.get.side_effect = [_response(429, headers={"Retry-After": "7"}), _response(200, json={})]
        with patch.object(crossref.asyncio, "sleep", AsyncMock()) as sleep:
            await crossref._request_with_retry(http, "https://example.org")
        sleep.assert_awaited_once_with(7)

    async def test_last_error_response_returned(self):
        http = AsyncMock()
        http.get.return_value = _response(500)
        with patch.object(crossref.asyncio, "sleep", AsyncMock()):
            response = await crossref._request_with_retry(http, "https://example.org")
        assert response.status_code == 500
        assert http.get.call_count == crossref.MAX_RETRIES

    async def test_timeouts_exhausted(self):
        http = AsyncMock()
        http.get.side_effect = httpx.ConnectTimeout("timed out")
        with patch.object(crossref.asyncio, "sleep", AsyncMock()):
            with pytest.raises(DoiLookupError, match="Crossref request failed"):
                await crossref._request_with_retry(http, "https://example.org")
        assert http.get.call_count == crossref.MAX_RETRIES
