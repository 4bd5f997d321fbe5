"""Word (.docx) export of saved citations, built in memory."""

import io
import logging
from datetime import datetime
from typing import List, Optional

from docx import Document
from docx.enum.text import WD_ALIGN_PARAGRAPH
from docx.shared import Inches, Pt

from citegen.models import Citation
from citegen.normalizer import parse_authors

logger = logging.getLogger(__name__)


def _sort_key(citation: Citation) -> str:
    authors = parse_authors(citation.authors)
    if not authors or citation.authors == "Unknown Author":
        return "zzz"
    return authors[0].surname.lower()


def _add_run(para, text: str, italic: bool = False) -> None:
    if not text:
        return
    run = para.add_run(text)
    run.font.size = Pt(11)
    run.font.name = "Times New Roman"
    if italic:
        run.italic = True


def _add_citation(para, citation: Citation) -> None:
    """Write the citation text, italicizing the source title where it appears."""
    text = citation.citation
    source = citation.source or ""
    idx = text.find(source) if source else -1
    if idx < 0:
        _add_run(para, text)
        return
    _add_run(para, text[:idx])
    _add_run(para, source, italic=True)
    _add_run(para, text[idx + len(source):])


def export_citations_to_word(
    citations: List[Citation],
    title: str = "References",
    sort_by_author: bool = True,
) -> Optional[bytes]:
    """Build a Word document with one hanging-indent paragraph per citation."""
    if not citations:
        return None

    doc = Document()
    for section in doc.sections:
        section.top_margin = Inches(1)
        section.bottom_margin = Inches(1)
        section.left_margin = Inches(1)
        section.right_margin = Inches(1)

    h = doc.add_heading(title, level=1)
    h.alignment = WD_ALIGN_PARAGRAPH.CENTER

    styles = sorted({c.style.upper() for c in citations})
    info = doc.add_paragraph()
    info.add_run(f"Generated on: {datetime.now().strftime('%B %d, %Y at %I:%M %p')}\n").italic = True
    info.add_run(f"Total References: {len(citations)}\n").italic = True
    info.add_run(f"Citation Style: {', '.join(styles)}").italic = True
    doc.add_paragraph()

    refs = sorted(citations, key=_sort_key) if sort_by_author else list(citations)
    for ref in refs:
        p = doc.add_paragraph()
        p.paragraph_format.left_indent = Inches(0.5)
        p.paragraph_format.first_line_indent = Inches(-0.5)
        p.paragraph_format.space_after = Pt(12)
        _add_citation(p, ref)

    buf = io.BytesIO()
    doc.save(buf)
    logger.debug("Exported %d citation(s) to Word", len(refs))
    return buf.getvalue()
