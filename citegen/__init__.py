"""
citegen - citation generation core.
Normalizes raw bibliographic records and formats them in APA, MLA, Chicago,
Harvard, IEEE, AMA, and ASA styles.
"""

from citegen.models import (
    BibliographicRecord,
    Citation,
    ExtractedMetadata,
    NormalizedRecord,
    PageRange,
    ParsedAuthor,
    StyleId,
)
from citegen.normalizer import extract_metadata, normalize, parse_authors
from citegen.formatter import format_citation
from citegen.rendering import render_citation

__version__ = "0.1.0"

__all__ = [
    "BibliographicRecord",
    "Citation",
    "ExtractedMetadata",
    "NormalizedRecord",
    "PageRange",
    "ParsedAuthor",
    "StyleId",
    "extract_metadata",
    "format_citation",
    "normalize",
    "parse_authors",
    "render_citation",
]
