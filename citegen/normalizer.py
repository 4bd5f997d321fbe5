"""
Metadata normalizer.
Splits a free-text author string into structured names and mines volume,
issue, pages, and DOI out of the "additional info" blob. Pure functions only.
"""

import re
from typing import List, Optional

from citegen.models import BibliographicRecord, ExtractedMetadata, NormalizedRecord, PageRange, ParsedAuthor

# ═══════════════════════════════════════════════════════════
# PATTERNS
# ═══════════════════════════════════════════════════════════

AUTHOR_GROUP_SPLIT = re.compile(r"\s+and\s+|\s*&\s*|\s*;\s*")
INITIALS_TOKEN = re.compile(r"^(?:[A-Z]\.?-?)+$")

VOLUME_PATTERN = re.compile(r"Volume\s+(\d+)", re.IGNORECASE)
ISSUE_PATTERN = re.compile(r"Issue\s+(\d+)", re.IGNORECASE)
PAGES_PATTERN = re.compile(r"pp\.\s*(\d+)\s*[–—-]+\s*(\d+)", re.IGNORECASE)
DOI_PATTERN = re.compile(r"DOI:\s*(\S+)", re.IGNORECASE)
PUBLISHER_PLACE_PATTERN = re.compile(r"Published in\s+([^,.]+)", re.IGNORECASE)
EVENT_PLACE_PATTERN = re.compile(r"Held in\s+([^,.]+)", re.IGNORECASE)

# ═══════════════════════════════════════════════════════════
# AUTHORS
# ═══════════════════════════════════════════════════════════


def _has_content(segment: str) -> bool:
    return bool(re.search(r"[^\W_]", segment))


def _looks_like_given_names(piece: str) -> bool:
    tokens = piece.split()
    if len(tokens) == 1:
        return True
    return all(INITIALS_TOKEN.match(t) for t in tokens)


def _initials(given_name: str) -> tuple:
    letters = []
    for token in given_name.split():
        for ch in token:
            if ch.isalpha():
                letters.append(ch.upper())
                break
    return tuple(letters)


def split_name(segment: str) -> ParsedAuthor:
    """Last token is the surname, everything before it the given name."""
    tokens = segment.split()
    if len(tokens) == 1:
        return ParsedAuthor(given_name="", surname=tokens[0])
    given = " ".join(tokens[:-1])
    return ParsedAuthor(given_name=given, surname=tokens[-1], initials=_initials(given))


def _inverted(surname: str, given: str) -> ParsedAuthor:
    given = " ".join(given.split())
    return ParsedAuthor(given_name=given, surname=surname, initials=_initials(given))


def parse_authors(raw: Optional[str]) -> List[ParsedAuthor]:
    """Parse a raw author string such as "John Smith, Jane Doe" or "Smith, J. & Doe, J.".

    A one-word comma piece followed by a piece that looks like given names is read
    as an inverted "Surname, Given" pair. Empty or punctuation-only input yields [].
    """
    if not raw or not isinstance(raw, str):
        return []

    authors: List[ParsedAuthor] = []
    for group in AUTHOR_GROUP_SPLIT.split(raw.strip()):
        pieces = [p.strip() for p in group.split(",")]
        pieces = [p for p in pieces if p and _has_content(p)]
        i = 0
        while i < len(pieces):
            piece = pieces[i]
            nxt = pieces[i + 1] if i + 1 < len(pieces) else None
            if len(piece.split()) == 1 and nxt is not None and (len(pieces) == 2 or _looks_like_given_names(nxt)):
                authors.append(_inverted(piece, nxt))
                i += 2
                continue
            authors.append(split_name(piece))
            i += 1
    return authors

# ═══════════════════════════════════════════════════════════
# ADDITIONAL INFO
# ═══════════════════════════════════════════════════════════


def _first_group(pattern, text: str) -> Optional[str]:
    m = pattern.search(text)
    return m.group(1).strip() if m else None


def extract_metadata(additional_info: Optional[str]) -> ExtractedMetadata:
    """Run the independent volume/issue/pages/DOI searches; misses stay None."""
    if not additional_info:
        return ExtractedMetadata()

    pages = None
    pm = PAGES_PATTERN.search(additional_info)
    if pm:
        pages = PageRange(start=pm.group(1), end=pm.group(2))

    doi = _first_group(DOI_PATTERN, additional_info)
    if doi:
        doi = doi.rstrip(".,;") or None

    return ExtractedMetadata(
        volume=_first_group(VOLUME_PATTERN, additional_info),
        issue=_first_group(ISSUE_PATTERN, additional_info),
        pages=pages,
        doi=doi,
        publisher_place=_first_group(PUBLISHER_PLACE_PATTERN, additional_info),
        event_place=_first_group(EVENT_PLACE_PATTERN, additional_info),
    )


def normalize(record: BibliographicRecord) -> NormalizedRecord:
    return NormalizedRecord(
        authors=tuple(parse_authors(record.authors)),
        extracted=extract_metadata(record.additional_info),
    )
