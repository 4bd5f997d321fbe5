"""
Formatter selection and the fallback chain.
The CSL delegate (when configured) is tried first, then the native rule
table, then a minimal concatenation.
"""

import logging
from datetime import date
from enum import Enum
from typing import List, Optional, Protocol, Union

from citegen.config import get_formatter_backend
from citegen.csl import CslDelegateFormatter, fallback_citation
from citegen.errors import FormatterError
from citegen.formatter import format_citation
from citegen.models import BibliographicRecord, NormalizedRecord, StyleId
from citegen.normalizer import normalize

logger = logging.getLogger(__name__)


class FormatterBackend(str, Enum):
    NATIVE = "native"
    CSL = "csl"


class CitationFormatter(Protocol):
    name: str

    def format(
        self,
        normalized: NormalizedRecord,
        record: BibliographicRecord,
        style: StyleId,
        accessed: Optional[date] = None,
    ) -> str:
        ...


class NativeFormatter:
    """Rule-table formatter; deterministic apart from the access date."""

    name = "native"

    def format(
        self,
        normalized: NormalizedRecord,
        record: BibliographicRecord,
        style: StyleId,
        accessed: Optional[date] = None,
    ) -> str:
        try:
            return format_citation(normalized, record, style, accessed)
        except (AttributeError, TypeError, ValueError) as exc:
            raise FormatterError(f"native formatter failed: {exc}") from exc


def resolve_backend(backend: Union[str, FormatterBackend, None] = None) -> FormatterBackend:
    value = backend if backend is not None else get_formatter_backend()
    try:
        return FormatterBackend(value)
    except ValueError:
        logger.warning("Unknown formatter backend %r, using native", value)
        return FormatterBackend.NATIVE


def build_chain(backend: Union[str, FormatterBackend, None] = None) -> List[CitationFormatter]:
    if resolve_backend(backend) == FormatterBackend.CSL:
        return [CslDelegateFormatter(), NativeFormatter()]
    return [NativeFormatter()]


def render_citation(
    record: BibliographicRecord,
    backend: Union[str, FormatterBackend, None] = None,
    accessed: Optional[date] = None,
    chain: Optional[List[CitationFormatter]] = None,
) -> str:
    """Normalize ``record`` and render it in ``record.style``.

    Unsupported styles raise UnsupportedStyleError before anything is rendered.
    A formatter raising FormatterError hands over to the next one in the chain;
    when the chain is exhausted the minimal fallback string is returned.
    """
    style = StyleId.parse(record.style)
    normalized = normalize(record)

    for formatter in chain if chain is not None else build_chain(backend):
        try:
            return formatter.format(normalized, record, style, accessed)
        except FormatterError as exc:
            logger.warning("Formatter %s failed for style %s: %s", formatter.name, style.value, exc)

    logger.warning("All formatters failed for style %s, using fallback citation", style.value)
    return fallback_citation(record)
