import os

import pytest
import requests
import responses

from rankboard.config import SourceConfig
from rankboard.fetchers.http_client import create_session
from rankboard.fetchers.tsv_fetcher import fetch_tsv_rows, parse_tsv

FIXTURES_DIR = os.path.join(
    os.path.dirname(__file__), "..", "fixtures"
)
COUNTRIES_TSV_URL = SourceConfig().countries_tsv_url


def _read_fixture(filename: str) -> str:
    path = os.path.join(FIXTURES_DIR, filename)
    with open(path, "r", encoding="utf-8") as f:
        return f.read()


class TestParseTsv:
    def test_parse_fixture(self):
        rows = parse_tsv(_read_fixture("sample_countries.tsv"))
        assert len(rows) == 7
        assert rows[0]["country_iso2"] == "KR"
        assert rows[0]["show_title"] == "Harbin"
        assert {row["category"] for row in rows} == {"Films", "TV"}

    def test_values_are_untouched_strings(self):
        rows = parse_tsv(_read_fixture("sample_global.tsv"))
        assert rows[0]["weekly_views"] == "46800000"
        assert rows[0]["season_title"] == "N/A"

    def test_blank_lines_and_extra_cells(self):
        rows = parse_tsv("week\ttitle\n2025-01-06\tA\textra\n\n\t\n2025-01-06\tB\n")
        assert rows == [
            {"week": "2025-01-06", "title": "A"},
            {"week": "2025-01-06", "title": "B"},
        ]

    def test_header_only(self):
        assert parse_tsv("week\ttitle\n") == []


class TestFetchTsvRows:
    @responses.activate
    def test_success(self):
        responses.add(
            responses.GET,
            COUNTRIES_TSV_URL,
            body=_read_fixture("sample_countries.tsv"),
            status=200,
        )
        session = create_session("TestAgent/1.0", retry_count=0)
        rows = fetch_tsv_rows(session, COUNTRIES_TSV_URL, timeout=5)
        assert len(rows) == 7
        assert responses.calls[0].request.headers["User-Agent"] == "TestAgent/1.0"

    @responses.activate
    def test_http_error_raises(self):
        responses.add(responses.GET, COUNTRIES_TSV_URL, status=404)
        session = create_session("TestAgent/1.0", retry_count=0)
        with pytest.raises(requests.HTTPError):
            fetch_tsv_rows(session, COUNTRIES_TSV_URL, timeout=5)


class TestCreateSession:
    def test_retry_configuration(self):
        session = create_session("TestAgent/1.0", retry_count=2)
        retry = session.get_adapter("https://example.com").max_retries
        assert retry.total == 2
        assert 429 in retry.status_forcelist
        assert session.headers["User-Agent"] == "TestAgent/1.0"

    def test_connection_retries_only(self):
        session = create_session("TestAgent/1.0", retry_count=1, retry_statuses=False)
        retry = session.get_adapter("https://example.com").max_retries
        assert retry.total == 1
        assert not retry.status_forcelist
