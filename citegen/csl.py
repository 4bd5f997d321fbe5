"""
CSL delegate.
Projects a normalized record onto CSL-JSON and hands it to citeproc-py,
using the style files shipped with citeproc-py-styles.
"""

import logging
import re
from datetime import date
from typing import Any, Dict, Optional

from citeproc import Citation as CslCitation
from citeproc import CitationItem, CitationStylesBibliography, CitationStylesStyle, formatter
from citeproc.source.json import CiteProcJSON
from citeproc_styles import get_style_filepath

from citegen.config import SUPPORTED_STYLES
from citegen.errors import CslProcessorError
from citegen.models import BibliographicRecord, NormalizedRecord, StyleId

logger = logging.getLogger(__name__)

CSL_ITEM_ID = "item-1"

# Numeric styles label their single bibliography entry "[1]" or "1."
NUMBERED_STYLES = (StyleId.IEEE, StyleId.AMA)
ENTRY_LABEL_PATTERN = re.compile(r"^(?:\[1\]|1\.)\s*")


def _csl_type(record: BibliographicRecord) -> str:
    source = (record.source or "").lower()
    if record.source_type == "book":
        return "book"
    if record.source_type == "pdf":
        if "conference" in source:
            return "paper-conference"
        if "book" in source:
            return "chapter"
        return "article-journal"
    if record.source_type == "manual":
        if "journal" in source:
            return "article-journal"
        if "conference" in source:
            return "paper-conference"
        if "book" in source:
            return "chapter"
    return "webpage"


def _year(value: Optional[str]) -> Optional[int]:
    if not value:
        return None
    digits = "".join(ch for ch in value if ch.isdigit())[:4]
    return int(digits) if len(digits) == 4 else None


def to_csl_json(
    record: BibliographicRecord,
    normalized: NormalizedRecord,
    accessed: Optional[date] = None,
) -> Dict[str, Any]:
    """CSL-JSON item for a single record."""
    accessed = accessed or date.today()
    meta = normalized.extracted
    csl_type = _csl_type(record)

    item: Dict[str, Any] = {
        "id": CSL_ITEM_ID,
        "type": csl_type,
        "title": record.title or "Untitled",
        "author": [
            {"family": a.surname, "given": a.given_name} if a.given_name else {"family": a.surname}
            for a in normalized.authors
        ],
        "accessed": {"date-parts": [[accessed.year, accessed.month, accessed.day]]},
    }
    year = _year(record.year)
    if year:
        item["issued"] = {"date-parts": [[year]]}

    if csl_type == "article-journal":
        item["container-title"] = record.source or ""
        if meta.volume:
            item["volume"] = meta.volume
        if meta.issue:
            item["issue"] = meta.issue
        if meta.pages:
            item["page-first"] = meta.pages.start
            item["page"] = f"{meta.pages.start}-{meta.pages.end}"
    elif csl_type in ("book", "chapter"):
        item["publisher"] = record.source or ""
        item["publisher-place"] = meta.publisher_place or ""
    elif csl_type == "paper-conference":
        item["container-title"] = record.source or ""
        item["event-place"] = meta.event_place or ""
    else:
        item["container-title"] = record.source or ""
        if record.source_type == "url" and record.source_url:
            item["URL"] = record.source_url

    if meta.doi:
        item["DOI"] = meta.doi
    return item


def render_csl(item: Dict[str, Any], style: StyleId) -> str:
    """Render one CSL-JSON item as plain text with citeproc-py."""
    style_name = SUPPORTED_STYLES[style.value]
    try:
        csl_style = CitationStylesStyle(get_style_filepath(style_name), validate=False)
        bibliography = CitationStylesBibliography(csl_style, CiteProcJSON([item]), formatter.plain)
        bibliography.register(CslCitation([CitationItem(item["id"])]))
        entries = bibliography.bibliography()
    except Exception as exc:
        raise CslProcessorError(f"citeproc failed for style {style_name}: {exc}") from exc
    if not entries:
        raise CslProcessorError(f"citeproc produced no entry for style {style_name}")
    text = " ".join(str(entries[0]).split())
    if style in NUMBERED_STYLES:
        text = ENTRY_LABEL_PATTERN.sub("", text, count=1)
    if not text:
        raise CslProcessorError(f"citeproc produced an empty entry for style {style_name}")
    return text


class CslDelegateFormatter:
    """Formatter backed by an external CSL processor."""

    name = "csl"

    def format(
        self,
        normalized: NormalizedRecord,
        record: BibliographicRecord,
        style: StyleId,
        accessed: Optional[date] = None,
    ) -> str:
        item = to_csl_json(record, normalized, accessed)
        logger.debug("Rendering %s via citeproc (type=%s)", style.value, item["type"])
        return render_csl(item, style)


def fallback_citation(record: BibliographicRecord) -> str:
    """Minimal degraded concatenation used when every formatter has failed."""
    citation = ""
    if record.authors:
        citation += f"{record.authors}. "
    if record.year:
        citation += f"({record.year}). "
    if record.title:
        if record.style in (StyleId.MLA.value, StyleId.CHICAGO.value, StyleId.IEEE.value):
            citation += f'"{record.title}." '
        else:
            citation += f"{record.title}. "
    if record.source:
        citation += f"{record.source}. "
    if record.source_url and record.source_type == "url":
        citation += f"Retrieved from {record.source_url}"
    return citation.strip()
