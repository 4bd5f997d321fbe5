"""
Metadata collaborators: webpage scraping, PDF extraction, and Crossref lookups.
These are the only parts of citegen that do I/O.
"""

import logging
import re
import time
from datetime import date, datetime
from typing import Any, Dict, List, Optional
from urllib.parse import urlparse

import fitz  # PyMuPDF
import requests
from bs4 import BeautifulSoup
from habanero import Crossref

from citegen.config import (
    BACKOFF_FACTOR,
    MAX_RETRIES,
    PDF_MAX_PAGES,
    REQUEST_TIMEOUT,
    RETRY_DELAY,
    USER_AGENT,
)
from citegen.errors import FetchError

logger = logging.getLogger(__name__)

DOI_PATTERN = r"10\.\d{4,9}/[-._;()/:A-Z0-9]+[A-Z0-9]"

# ═══════════════════════════════════════════════════════════
# VALIDATION & SANITIZATION
# ═══════════════════════════════════════════════════════════


def validate_doi(doi: str) -> bool:
    if not doi or not isinstance(doi, str):
        return False
    return bool(re.match(r"^10\.\d{4,9}/[-._;()/:A-Z0-9]+$", doi.strip(), re.IGNORECASE))


def sanitize_doi(doi: str) -> str:
    if not doi:
        return doi
    doi = doi.strip()
    doi = re.sub(r"^(doi:|DOI:)\s*", "", doi, flags=re.IGNORECASE)
    doi = re.sub(r"^https?://(dx\.)?doi\.org/", "", doi, flags=re.IGNORECASE)
    return doi.strip()


def validate_url(url: str) -> bool:
    if not url or not isinstance(url, str):
        return False
    try:
        result = urlparse(url.strip())
    except ValueError:
        # e.g. an unclosed IPv6 bracket
        return False
    return result.scheme in ("http", "https") and bool(result.netloc)


def sanitize_url(url: str) -> str:
    if not url:
        return url
    url = url.strip()
    if not url.startswith(("http://", "https://")):
        url = "https://" + url
    return url

# ═══════════════════════════════════════════════════════════
# RETRY LOGIC
# ═══════════════════════════════════════════════════════════


def retry_with_backoff(func, *args, max_attempts: int = MAX_RETRIES, delay: float = RETRY_DELAY, **kwargs):
    """Call ``func`` retrying network errors with exponential backoff.

    Raises FetchError once the attempts are exhausted.
    """
    for attempt in range(1, max_attempts + 1):
        try:
            return func(*args, **kwargs)
        except requests.RequestException as exc:
            if attempt == max_attempts:
                raise FetchError(f"Request failed after {attempt} attempts: {exc}") from exc
            logger.debug("Attempt %d/%d failed (%s); retrying in %.1fs", attempt, max_attempts, exc, delay)
            time.sleep(delay)
            delay *= BACKOFF_FACTOR

# ═══════════════════════════════════════════════════════════
# CROSSREF
# ═══════════════════════════════════════════════════════════


def _crossref_additional_info(work: Dict[str, Any]) -> Optional[str]:
    parts = []
    if work.get("volume"):
        parts.append(f"Volume {work['volume']}")
    if work.get("issue"):
        parts.append(f"Issue {work['issue']}")
    pages = re.match(r"^(\d+)\s*[-–]\s*(\d+)$", str(work.get("page", "")))
    if pages:
        parts.append(f"pp. {pages.group(1)}–{pages.group(2)}")
    if work.get("DOI"):
        parts.append(f"DOI: {work['DOI']}")
    return ", ".join(parts) or None


def get_crossref_metadata(doi: str) -> Dict[str, Any]:
    """Look a DOI up on Crossref and map the work onto citegen's record fields."""
    doi = sanitize_doi(doi)
    if not validate_doi(doi):
        raise FetchError(f"Invalid DOI: {doi!r}")

    def fetch():
        result = Crossref().works(ids=doi)
        return result["message"] if result and "message" in result else None

    try:
        work = retry_with_backoff(fetch)
    except FetchError:
        raise
    except Exception as exc:
        # habanero raises its own RequestError for non-2xx responses
        raise FetchError(f"Crossref lookup failed for {doi}: {exc}") from exc
    if not work:
        raise FetchError(f"Crossref returned nothing for {doi}")

    authors = ", ".join(
        f"{a.get('given', '')} {a.get('family', '')}".strip() for a in work.get("author", [])
    )
    try:
        year = (work.get("published") or work.get("issued") or {}).get("date-parts", [[None]])[0][0]
    except (IndexError, TypeError):
        year = None
    return {
        "title": work["title"][0] if work.get("title") else None,
        "authors": authors or None,
        "year": str(year) if year else None,
        "source": work["container-title"][0] if work.get("container-title") else work.get("publisher"),
        "additionalInfo": _crossref_additional_info(work),
    }

# ═══════════════════════════════════════════════════════════
# WEBSITES
# ═══════════════════════════════════════════════════════════


def _meta_content(soup: BeautifulSoup, **attrs) -> Optional[str]:
    tag = soup.find("meta", attrs=attrs)
    if tag and tag.get("content") and tag["content"].strip():
        return tag["content"].strip()
    return None


def parse_website_metadata(html: str, url: str) -> Dict[str, Any]:
    """Pull title, authors, publication date, and site name out of an HTML page."""
    soup = BeautifulSoup(html, "html.parser")
    metadata: Dict[str, Any] = {"url": url, "dateAccessed": date.today().isoformat()}

    title = None
    if soup.title and soup.title.string and soup.title.string.strip():
        title = soup.title.string.strip()
    title = title or _meta_content(soup, property="og:title") or _meta_content(soup, name="twitter:title")
    if title:
        metadata["title"] = title

    authors = _meta_content(soup, name="author") or _meta_content(soup, property="article:author")
    if not authors:
        names = [el.get_text().strip() for el in soup.select(".author, .byline, [rel='author']")]
        names = [n for n in names if n]
        if names:
            authors = ", ".join(names)
    if authors:
        metadata["authors"] = authors

    published = _meta_content(soup, property="article:published_time") or _meta_content(
        soup, name="publication_date"
    )
    if published:
        m = re.match(r"(\d{4})-(\d{2})-(\d{2})", published)
        if m:
            metadata["datePublished"] = m.group(0)
            metadata["year"] = m.group(1)
        else:
            m = re.search(r"\b(\d{4})\b", published)
            if m:
                metadata["year"] = m.group(1)

    metadata["source"] = _meta_content(soup, property="og:site_name") or urlparse(url).netloc.replace("www.", "")
    return metadata


def fetch_website_metadata(url: str) -> Dict[str, Any]:
    """Fetch a webpage (or resolve a doi.org link via Crossref) and return its metadata.

    Raises FetchError on any failure; callers fall back to user-supplied data.
    """
    url = sanitize_url(url)
    if not validate_url(url):
        raise FetchError(f"Invalid URL: {url!r}")

    if "doi.org/" in url.lower():
        doi = sanitize_doi(url)
        if validate_doi(doi):
            try:
                metadata = get_crossref_metadata(doi)
                metadata.update({"url": url, "dateAccessed": date.today().isoformat()})
                return {k: v for k, v in metadata.items() if v}
            except FetchError as exc:
                logger.info("Crossref lookup for %s failed, scraping page instead: %s", doi, exc)

    def fetch():
        resp = requests.get(url, headers={"User-Agent": USER_AGENT}, timeout=REQUEST_TIMEOUT)
        if resp.status_code != 200:
            raise requests.RequestException(f"Status {resp.status_code}")
        return resp.text

    html = retry_with_backoff(fetch)
    return parse_website_metadata(html, url)

# ═══════════════════════════════════════════════════════════
# PDF PROCESSING
# ═══════════════════════════════════════════════════════════


def _pdf_text_and_info(pdf_bytes: bytes):
    doc = fitz.open(stream=pdf_bytes, filetype="pdf")
    try:
        text = ""
        for page_num in range(min(PDF_MAX_PAGES, len(doc))):
            text += doc[page_num].get_text()
        info = dict(doc.metadata or {})
    finally:
        doc.close()
    return text, info


def _lines(text: str, limit: int) -> List[str]:
    return [line.strip() for line in text.split("\n") if line.strip()][:limit]


def extract_pdf_title(text: str, info: Dict[str, Any]) -> str:
    if info.get("title") and str(info["title"]).strip():
        return str(info["title"]).strip()
    for line in _lines(text, 5):
        if len(line) > 10 and not re.match(r"^(abstract|introduction|copyright)", line, re.IGNORECASE):
            return line[:97] + "..." if len(line) > 100 else line
    return "Untitled Document"


def extract_pdf_authors(text: str, info: Dict[str, Any]) -> str:
    if info.get("author") and str(info["author"]).strip():
        return str(info["author"]).strip()
    first_page = " ".join(_lines(text, 20))
    for pattern in (r"authors?[\s:]+([^.]+)", r"\bby[\s:]+([^.]+)"):
        m = re.search(pattern, first_page, re.IGNORECASE)
        if m and 3 < len(m.group(1).strip()) < 150:
            return m.group(1).strip()
    for line in _lines(text, 20):
        if re.match(r"^[^,]+,[^,]+(?:,[^,]+)*$", line) and 3 < len(line) < 150:
            return line
    return "Unknown Author"


def extract_pdf_year(text: str, info: Dict[str, Any]) -> str:
    m = re.search(r"(\d{4})", str(info.get("creationDate") or ""))
    if m:
        return m.group(1)
    m = re.search(r"\b(19\d{2}|20\d{2})\b", text)
    if m:
        return m.group(1)
    return str(datetime.now().year)


def extract_pdf_source(text: str, info: Dict[str, Any]) -> Optional[str]:
    first_page = " ".join(_lines(text, 50))
    for pattern in (
        r"(journal\s+of\s+[^,.]+)",
        r"\bin[\s:]+([^,.]*journal[^,.]+)",
        r"(proceedings\s+of\s+[^,.]+)",
    ):
        m = re.search(pattern, first_page, re.IGNORECASE)
        if m:
            return m.group(1).strip()
    if info.get("producer") and str(info["producer"]).strip():
        return str(info["producer"]).strip()
    return None


def extract_pdf_additional_info(text: str) -> Optional[str]:
    """Rebuild a "Volume N, Issue N, pp. a–b, DOI: x" blob from the first page."""
    first_page = " ".join(_lines(text, 50))
    parts = []
    m = re.search(r"\bvol(?:ume)?\.?\s*(\d+)", first_page, re.IGNORECASE)
    if m:
        parts.append(f"Volume {m.group(1)}")
    m = re.search(r"\b(?:no|issue|num)\.?\s*(\d+)", first_page, re.IGNORECASE)
    if m:
        parts.append(f"Issue {m.group(1)}")
    m = re.search(r"\bpages?\s*(\d+)[\s\-–—]*(\d+)", first_page, re.IGNORECASE)
    if m:
        parts.append(f"pp. {m.group(1)}–{m.group(2)}")
    m = re.search(DOI_PATTERN, first_page, re.IGNORECASE)
    if m:
        parts.append(f"DOI: {m.group(0)}")
    return ", ".join(parts) or None


def default_pdf_metadata() -> Dict[str, Any]:
    return {
        "title": "Error Processing PDF",
        "authors": "Unknown Author",
        "year": str(datetime.now().year),
    }


def extract_pdf_metadata(pdf_bytes: bytes, lookup_doi: bool = True) -> Dict[str, Any]:
    """Extract citation metadata from PDF bytes. Never raises.

    Document info wins over text heuristics. When a DOI is found and
    ``lookup_doi`` is set, Crossref fills in whatever it knows.
    """
    try:
        if not pdf_bytes:
            raise ValueError("Empty PDF data provided")
        text, info = _pdf_text_and_info(pdf_bytes)
        metadata = {
            "title": extract_pdf_title(text, info),
            "authors": extract_pdf_authors(text, info),
            "year": extract_pdf_year(text, info),
            "source": extract_pdf_source(text, info),
            "additionalInfo": extract_pdf_additional_info(text),
        }
    except Exception as exc:
        logger.warning("PDF extraction failed: %s", exc)
        return default_pdf_metadata()

    if lookup_doi:
        m = re.search(DOI_PATTERN, text, re.IGNORECASE)
        if m:
            try:
                crossref = get_crossref_metadata(m.group(0))
            except FetchError as exc:
                logger.info("Crossref enrichment skipped: %s", exc)
            else:
                metadata.update({k: v for k, v in crossref.items() if v})
    return {k: v for k, v in metadata.items() if v}
