"""
Generation workflow: the endpoint-shaped entry points used by the UI.
Each call is independent and reports failures as ``(status, {"error": ...})``.
"""

import logging
import uuid
from datetime import date
from typing import Any, Callable, Dict, Optional, Tuple

from citegen.config import MAX_PDF_SIZE
from citegen.errors import CitationError, FetchError, UploadError
from citegen.fetchers import extract_pdf_metadata, fetch_website_metadata
from citegen.models import BibliographicRecord, Citation, StyleId
from citegen.rendering import render_citation
from citegen.repository import CitationRepository

logger = logging.getLogger(__name__)

Response = Tuple[int, Dict[str, Any]]


def generate_citation(
    payload: Dict[str, Any],
    authorized: bool = True,
    fetch_metadata: Callable[[str], Dict[str, Any]] = fetch_website_metadata,
    backend: Optional[str] = None,
    accessed: Optional[date] = None,
) -> Response:
    """Validate a request, enrich URL sources, and render the citation."""
    if not authorized:
        return 401, {"error": "Sign in to generate citations"}

    try:
        record = BibliographicRecord.from_dict(payload)
        style = StyleId.parse(record.style)
        record = BibliographicRecord.from_dict({**payload, "style": style.value})

        if record.source_type == "url" and record.source_url:
            try:
                record = record.merged(fetch_metadata(record.source_url))
            except FetchError as exc:
                logger.info("Metadata fetch failed for %s, using supplied fields: %s", record.source_url, exc)

        text = render_citation(record, backend=backend, accessed=accessed)
        return 200, Citation.create(record, text).to_dict()
    except CitationError as exc:
        if exc.status_code >= 500:
            logger.exception("Citation generation failed")
        return exc.status_code, {"error": str(exc)}
    except Exception as exc:
        logger.exception("Citation generation failed")
        return 500, {"error": str(exc) or "Failed to generate citation"}

# ═══════════════════════════════════════════════════════════
# PDF UPLOADS
# ═══════════════════════════════════════════════════════════


def validate_pdf_upload(filename: str, content_type: Optional[str], size: int) -> None:
    if not filename or size <= 0:
        raise UploadError("No file uploaded")
    if size > MAX_PDF_SIZE:
        raise UploadError("File too large (max 10MB)")
    if "application/pdf" not in (content_type or "") and not filename.lower().endswith(".pdf"):
        raise UploadError("Only PDF files are supported")


def prepare_pdf_upload(
    filename: str,
    content_type: Optional[str],
    data: bytes,
    extract: Callable[[bytes], Dict[str, Any]] = extract_pdf_metadata,
) -> Dict[str, Any]:
    """Validate an upload and return its file id, cleaned name, and extracted metadata."""
    validate_pdf_upload(filename, content_type, len(data or b""))
    file_name = "_".join(filename.split())
    metadata = extract(data)
    if not metadata.get("title") or metadata.get("title") == "Error Processing PDF":
        metadata = {**metadata, "title": file_name.rsplit(".", 1)[0]}
    return {"file_id": str(uuid.uuid4()), "file_name": file_name, "metadata": metadata}


def pdf_request(upload: Dict[str, Any], style: str) -> Dict[str, Any]:
    """Generation payload for a prepared PDF upload."""
    metadata = upload["metadata"]
    return {
        "style": style,
        "sourceType": "pdf",
        "fileId": upload["file_id"],
        "title": metadata.get("title"),
        "authors": metadata.get("authors", ""),
        "year": metadata.get("year", ""),
        "source": metadata.get("source") or "Journal Article",
        "additionalInfo": metadata.get("additionalInfo", ""),
    }

# ═══════════════════════════════════════════════════════════
# SAVED CITATIONS
# ═══════════════════════════════════════════════════════════


def save_generated(repository: CitationRepository, body: Dict[str, Any]) -> Citation:
    """Store a successful generation response; an id already present is left as is."""
    citation = Citation.from_dict(body)
    existing = repository.get(citation.id)
    if existing is not None:
        return existing
    return repository.save(citation)


def edit_citation(repository: CitationRepository, citation_id: str, **changes: Any) -> Citation:
    """Apply user edits to a stored citation; untouched fields are preserved."""
    current = repository.get(citation_id)
    if current is None:
        raise KeyError(citation_id)
    return repository.save(current.edited(**changes))
