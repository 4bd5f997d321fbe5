"""Tests for the metadata collaborators. Network access is always mocked."""

from unittest.mock import MagicMock, patch

import fitz
import pytest
import requests

from citegen.config import MAX_RETRIES
from citegen.errors import FetchError
from citegen.fetchers import (
    extract_pdf_additional_info,
    extract_pdf_metadata,
    fetch_website_metadata,
    get_crossref_metadata,
    parse_website_metadata,
    retry_with_backoff,
    sanitize_doi,
    sanitize_url,
    validate_doi,
    validate_url,
)

ARTICLE_HTML = """
<html>
  <head>
    <title> Understanding Citations </title>
    <meta name="author" content="Jane Doe">
    <meta property="article:published_time" content="2021-03-04T10:00:00Z">
    <meta property="og:site_name" content="Example News">
  </head>
  <body><p>Body</p></body>
</html>
"""

CROSSREF_WORK = {
    "message": {
        "title": ["Deep Learning"],
        "author": [{"given": "Yann", "family": "LeCun"}, {"given": "Yoshua", "family": "Bengio"}],
        "published": {"date-parts": [[2015, 5, 28]]},
        "container-title": ["Nature"],
        "volume": "521",
        "issue": "7553",
        "page": "436-444",
        "DOI": "10.1038/nature14539",
    }
}


def _response(status=200, text=""):
    resp = MagicMock()
    resp.status_code = status
    resp.text = text
    return resp


def _pdf_bytes(lines):
    doc = fitz.open()
    page = doc.new_page()
    page.insert_text((72, 72), "\n".join(lines), fontsize=11)
    data = doc.tobytes()
    doc.close()
    return data


# ── Validation ───────────────────────────────────────────────────────


@pytest.mark.parametrize(
    "raw, expected",
    [
        ("doi:10.1038/nature14539", "10.1038/nature14539"),
        ("https://doi.org/10.1038/nature14539", "10.1038/nature14539"),
        ("  https://dx.doi.org/10.1/abc ", "10.1/abc"),
    ],
)
def test_sanitize_doi(raw, expected):
    assert sanitize_doi(raw) == expected


def test_validate_doi():
    assert validate_doi("10.1038/nature14539")
    assert not validate_doi("nature14539")
    assert not validate_doi(None)


def test_sanitize_url_adds_scheme():
    assert sanitize_url("example.com/page") == "https://example.com/page"
    assert validate_url("https://example.com/page")
    assert not validate_url("ftp://example.com")


def test_unparseable_url_is_invalid():
    assert not validate_url("http://[::1")
    with pytest.raises(FetchError):
        fetch_website_metadata("http://[::1")

# ── Retry ────────────────────────────────────────────────────────────


def test_retry_returns_first_success():
    func = MagicMock(side_effect=[requests.ConnectionError("down"), "ok"])
    with patch("citegen.fetchers.time.sleep") as sleep:
        assert retry_with_backoff(func, delay=0.5) == "ok"
    sleep.assert_called_once_with(0.5)


def test_retry_exhausted_raises_fetch_error():
    func = MagicMock(side_effect=requests.Timeout("slow"))
    with patch("citegen.fetchers.time.sleep"):
        with pytest.raises(FetchError):
            retry_with_backoff(func, max_attempts=2)
    assert func.call_count == 2

# ── Websites ─────────────────────────────────────────────────────────


def test_parse_website_metadata():
    metadata = parse_website_metadata(ARTICLE_HTML, "https://www.example.com/a")
    assert metadata["title"] == "Understanding Citations"
    assert metadata["authors"] == "Jane Doe"
    assert metadata["year"] == "2021"
    assert metadata["datePublished"] == "2021-03-04"
    assert metadata["source"] == "Example News"


def test_parse_website_falls_back_to_hostname():
    metadata = parse_website_metadata("<html><body></body></html>", "https://www.example.com/a")
    assert metadata["source"] == "example.com"
    assert "title" not in metadata
    assert "authors" not in metadata


def test_parse_website_byline_authors():
    html = '<html><body><span class="byline">Ada Lovelace</span><a rel="author">Alan Turing</a></body></html>'
    assert parse_website_metadata(html, "https://ex.com")["authors"] == "Ada Lovelace, Alan Turing"


def test_fetch_website_metadata():
    with patch("citegen.fetchers.requests.get", return_value=_response(text=ARTICLE_HTML)) as get:
        metadata = fetch_website_metadata("https://www.example.com/a")
    assert metadata["title"] == "Understanding Citations"
    assert get.call_args.kwargs["timeout"] == 10
    assert "User-Agent" in get.call_args.kwargs["headers"]


def test_fetch_website_non_200_is_retried_then_fails():
    with patch("citegen.fetchers.requests.get", return_value=_response(status=404)) as get, patch(
        "citegen.fetchers.time.sleep"
    ):
        with pytest.raises(FetchError):
            fetch_website_metadata("https://www.example.com/missing")
    assert get.call_count == MAX_RETRIES


def test_fetch_rejects_invalid_url():
    with pytest.raises(FetchError):
        fetch_website_metadata("https://")


def test_doi_link_goes_to_crossref():
    crossref = {"title": "Deep Learning", "authors": "Yann LeCun", "year": "2015", "source": None}
    with patch("citegen.fetchers.get_crossref_metadata", return_value=crossref) as lookup, patch(
        "citegen.fetchers.requests.get"
    ) as get:
        metadata = fetch_website_metadata("https://doi.org/10.1038/nature14539")
    lookup.assert_called_once_with("10.1038/nature14539")
    get.assert_not_called()
    assert metadata["title"] == "Deep Learning"
    assert "source" not in metadata


def test_doi_link_scrapes_page_when_crossref_fails():
    with patch("citegen.fetchers.get_crossref_metadata", side_effect=FetchError("down")), patch(
        "citegen.fetchers.requests.get", return_value=_response(text=ARTICLE_HTML)
    ):
        metadata = fetch_website_metadata("https://doi.org/10.1038/nature14539")
    assert metadata["title"] == "Understanding Citations"

# ── Crossref ─────────────────────────────────────────────────────────


def test_crossref_metadata_mapping():
    with patch("citegen.fetchers.Crossref") as client:
        client.return_value.works.return_value = CROSSREF_WORK
        metadata = get_crossref_metadata("doi:10.1038/nature14539")
    client.return_value.works.assert_called_once_with(ids="10.1038/nature14539")
    assert metadata == {
        "title": "Deep Learning",
        "authors": "Yann LeCun, Yoshua Bengio",
        "year": "2015",
        "source": "Nature",
        "additionalInfo": "Volume 521, Issue 7553, pp. 436–444, DOI: 10.1038/nature14539",
    }


def test_crossref_invalid_doi():
    with pytest.raises(FetchError):
        get_crossref_metadata("not-a-doi")


def test_crossref_client_errors_become_fetch_errors():
    with patch("citegen.fetchers.Crossref") as client:
        client.return_value.works.side_effect = RuntimeError("404 Not Found")
        with pytest.raises(FetchError):
            get_crossref_metadata("10.1038/nature14539")


def test_crossref_empty_response():
    with patch("citegen.fetchers.Crossref") as client:
        client.return_value.works.return_value = {}
        with pytest.raises(FetchError):
            get_crossref_metadata("10.1038/nature14539")

# ── PDF ──────────────────────────────────────────────────────────────

PAPER_LINES = [
    "A Study of Citation Formatting Rules",
    "John Smith, Jane Doe",
    "Journal of Testing, Volume 5, Issue 2, pages 10-20",
    "DOI: 10.1234/test.5678",
    "Published 2021",
]


def test_pdf_additional_info_from_text():
    text = "\n".join(PAPER_LINES)
    assert extract_pdf_additional_info(text) == "Volume 5, Issue 2, pp. 10–20, DOI: 10.1234/test.5678"


def test_pdf_metadata_from_text():
    metadata = extract_pdf_metadata(_pdf_bytes(PAPER_LINES), lookup_doi=False)
    assert metadata["title"] == "A Study of Citation Formatting Rules"
    assert metadata["authors"] == "John Smith, Jane Doe"
    assert metadata["source"] == "Journal of Testing"
    assert metadata["additionalInfo"] == "Volume 5, Issue 2, pp. 10–20, DOI: 10.1234/test.5678"
    assert metadata["year"].isdigit()


def test_pdf_metadata_enriched_from_crossref():
    crossref = {"title": "Published Title", "authors": None, "year": "2019", "source": "Journal of Real Things"}
    with patch("citegen.fetchers.get_crossref_metadata", return_value=crossref) as lookup:
        metadata = extract_pdf_metadata(_pdf_bytes(PAPER_LINES))
    lookup.assert_called_once_with("10.1234/test.5678")
    assert metadata["title"] == "Published Title"
    assert metadata["year"] == "2019"
    assert metadata["authors"] == "John Smith, Jane Doe"


def test_pdf_crossref_failure_keeps_text_metadata():
    with patch("citegen.fetchers.get_crossref_metadata", side_effect=FetchError("offline")):
        metadata = extract_pdf_metadata(_pdf_bytes(PAPER_LINES))
    assert metadata["title"] == "A Study of Citation Formatting Rules"


@pytest.mark.parametrize("data", [b"", b"this is not a pdf"])
def test_invalid_pdf_returns_defaults(data):
    metadata = extract_pdf_metadata(data)
    assert metadata["title"] == "Error Processing PDF"
    assert metadata["authors"] == "Unknown Author"
