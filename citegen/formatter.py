"""
Native style formatter.
Renders a normalized record field by field (authors, year, title,
source + publication details, DOI, access URL) from a per-style rule table.
"""

from datetime import date
from typing import Optional, Sequence

from citegen.models import BibliographicRecord, ExtractedMetadata, NormalizedRecord, ParsedAuthor, StyleId

AUTHOR_DATE_STYLES = (StyleId.APA, StyleId.HARVARD)
QUOTED_TITLE_STYLES = (StyleId.MLA, StyleId.CHICAGO, StyleId.ASA, StyleId.IEEE)


def format_access_date(day: Optional[date] = None) -> str:
    """Long US date without zero padding, e.g. "October 5, 2026"."""
    day = day or date.today()
    return f"{day:%B} {day.day}, {day.year}"


def _terminate(text: str, mark: str = ".") -> str:
    """Append ``mark`` unless the text already ends in sentence punctuation."""
    text = text.rstrip()
    if text.endswith((".", "?", "!")):
        return text
    return text + mark

# ═══════════════════════════════════════════════════════════
# AUTHORS
# ═══════════════════════════════════════════════════════════


def _dotted(initials: Sequence[str]) -> str:
    return " ".join(f"{i}." for i in initials)


def format_authors(authors: Sequence[ParsedAuthor], style: StyleId) -> str:
    if not authors:
        return ""

    if style in AUTHOR_DATE_STYLES:
        parts = [a.surname if a.is_single_name else f"{a.surname}, {_dotted(a.initials)}" for a in authors]
        return ", ".join(parts)

    if style in (StyleId.MLA, StyleId.CHICAGO, StyleId.ASA):
        parts = []
        for i, a in enumerate(authors):
            if a.is_single_name:
                parts.append(a.surname)
            elif i == 0:
                parts.append(f"{a.surname}, {a.given_name}")
            else:
                parts.append(f"{a.given_name} {a.surname}")
        return ", and ".join(parts)

    if style == StyleId.IEEE:
        parts = [a.surname if a.is_single_name else f"{_dotted(a.initials)} {a.surname}" for a in authors]
        return ", ".join(parts)

    # AMA
    parts = [a.surname if a.is_single_name else f"{a.surname} {''.join(a.initials)}" for a in authors]
    return ", ".join(parts)

# ═══════════════════════════════════════════════════════════
# YEAR, TITLE
# ═══════════════════════════════════════════════════════════


def format_year(year: Optional[str], meta: ExtractedMetadata, style: StyleId) -> str:
    if not year:
        return "(n.d.). " if style in AUTHOR_DATE_STYLES else ""
    if style in AUTHOR_DATE_STYLES:
        return f"({year}). "
    if style == StyleId.AMA:
        return f"Published {year}. "
    if style == StyleId.CHICAGO and meta.pages:
        return f"{year} ({meta.pages.start}–{meta.pages.end}). "
    if style == StyleId.MLA and meta.pages:
        return f"{year}, pp. {meta.pages.start}-{meta.pages.end}. "
    return f"{year}. "


def format_title(title: Optional[str], source_type: str, style: StyleId) -> str:
    if not title:
        return ""
    if source_type != "book" and style in QUOTED_TITLE_STYLES:
        return f'"{_terminate(title)}" '
    return f"{_terminate(title)} "

# ═══════════════════════════════════════════════════════════
# SOURCE & PUBLICATION DETAILS
# ═══════════════════════════════════════════════════════════


def format_publication_details(meta: ExtractedMetadata, style: StyleId) -> str:
    if not meta.has_details:
        return ""
    pages = meta.pages
    details = ""
    if style in AUTHOR_DATE_STYLES:
        if meta.volume:
            details += f", {meta.volume}"
        if meta.issue:
            details += f"({meta.issue})"
        if pages:
            details += f", {pages.start}-{pages.end}"
    elif style == StyleId.MLA:
        # MLA page range is rendered with the year
        if meta.volume:
            details += f", vol. {meta.volume}"
        if meta.issue:
            details += f", no. {meta.issue}"
    elif style == StyleId.CHICAGO:
        if meta.volume:
            details += f" {meta.volume}"
        if meta.issue:
            details += f", no. {meta.issue}"
        if pages:
            details += f": {pages.start}–{pages.end}"
    elif style == StyleId.IEEE:
        if meta.volume:
            details += f", vol. {meta.volume}"
        if meta.issue:
            details += f", no. {meta.issue}"
        if pages:
            details += f", pp. {pages.start}–{pages.end}"
    elif style == StyleId.AMA:
        if meta.volume:
            details += f". {meta.volume}"
        if pages:
            details += f":{pages.start}-{pages.end}"
    elif style == StyleId.ASA:
        if meta.volume:
            details += f" {meta.volume}"
        if meta.issue:
            details += f"({meta.issue})"
        if pages:
            details += f":{pages.start}-{pages.end}"
    return details


def format_source(source: Optional[str], meta: ExtractedMetadata, style: StyleId) -> str:
    if not source:
        return ""
    details = format_publication_details(meta, style)
    text = source.strip().rstrip(",;")
    if details:
        text = text.rstrip(".") + details
    if style in (StyleId.MLA, StyleId.IEEE):
        return f"{text}, "
    return f"{_terminate(text)} "

# ═══════════════════════════════════════════════════════════
# DOI & ACCESS URL
# ═══════════════════════════════════════════════════════════


def format_doi(doi: Optional[str], style: StyleId) -> str:
    if not doi:
        return ""
    if style in AUTHOR_DATE_STYLES:
        return f"https://doi.org/{doi} "
    if style == StyleId.IEEE:
        return f"doi: {doi}. "
    if style == StyleId.AMA:
        return f"doi:{doi}. "
    return f"DOI: {doi}. "


def format_access(url: Optional[str], style: StyleId, accessed: str) -> str:
    if not url:
        return ""
    if style == StyleId.APA:
        return f"Retrieved from {url}"
    if style == StyleId.MLA:
        return f"{url}. Accessed {accessed}."
    if style == StyleId.CHICAGO:
        return f"Accessed {accessed}. {url}."
    if style == StyleId.HARVARD:
        return f"Available at: {url} (Accessed: {accessed})."
    if style == StyleId.IEEE:
        return f"[Online]. Available: {url}. [Accessed: {accessed}]."
    if style == StyleId.AMA:
        return f"Accessed {accessed}. {url}"
    return f"Retrieved {accessed} ({url})."

# ═══════════════════════════════════════════════════════════
# ASSEMBLY
# ═══════════════════════════════════════════════════════════


def tidy(parts: Sequence[str]) -> str:
    """Join rendered fields with single spaces; a dangling comma ends the citation as a period.

    Only the joins between fields are touched, never the user text inside them.
    """
    citation = " ".join(p.strip() for p in parts if p and p.strip())
    if citation.endswith(","):
        citation = citation[:-1] + "."
    return citation


def format_citation(
    normalized: NormalizedRecord,
    record: BibliographicRecord,
    style,
    accessed: Optional[date] = None,
) -> str:
    """Assemble the citation for ``style``; raises UnsupportedStyleError for unknown styles."""
    style = StyleId.parse(style)
    meta = normalized.extracted

    authors = format_authors(normalized.authors, style)
    if authors and style not in AUTHOR_DATE_STYLES:
        authors = _terminate(authors)
    parts = [
        authors,
        format_year(record.year, meta, style),
        format_title(record.title, record.source_type, style),
        format_source(record.source, meta, style),
        format_doi(meta.doi, style),
    ]
    if record.source_type == "url":
        parts.append(format_access(record.source_url, style, format_access_date(accessed)))
    return tidy(parts)
