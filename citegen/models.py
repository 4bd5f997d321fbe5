"""Records passed between the normalizer, the formatters, and persistence."""

import uuid
from dataclasses import dataclass, field, fields, replace
from enum import Enum
from typing import Any, Dict, Optional, Tuple

from citegen.errors import MissingFieldError, UnsupportedStyleError


class StyleId(str, Enum):
    APA = "apa"
    MLA = "mla"
    CHICAGO = "chicago"
    HARVARD = "harvard"
    IEEE = "ieee"
    AMA = "ama"
    ASA = "asa"

    @classmethod
    def parse(cls, value: Any) -> "StyleId":
        """Resolve a style id, raising UnsupportedStyleError for anything outside the closed set."""
        if isinstance(value, cls):
            return value
        if not value or not isinstance(value, str):
            raise UnsupportedStyleError(str(value))
        try:
            return cls(value.strip().lower())
        except ValueError:
            raise UnsupportedStyleError(value) from None


# camelCase wire keys → attribute names
_WIRE_KEYS: Dict[str, str] = {
    "sourceType": "source_type",
    "sourceUrl": "source_url",
    "fileId": "file_id",
    "additionalInfo": "additional_info",
    "format": "style",
}


def _from_wire(data: Dict[str, Any]) -> Dict[str, Any]:
    out: Dict[str, Any] = {}
    for key, value in data.items():
        name = _WIRE_KEYS.get(key, key)
        # An explicit snake_case/"style" key wins over its alias
        if name in out and key in _WIRE_KEYS:
            continue
        out[name] = value
    return out


def _clean(value: Any) -> Optional[str]:
    if value is None:
        return None
    value = str(value).strip()
    return value or None


@dataclass(frozen=True)
class BibliographicRecord:
    """Raw input: user-supplied or collaborator-supplied fields, nothing parsed yet."""

    source_type: str
    style: str
    title: Optional[str] = None
    authors: Optional[str] = None
    year: Optional[str] = None
    source: Optional[str] = None
    source_url: Optional[str] = None
    file_id: Optional[str] = None
    additional_info: Optional[str] = None

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "BibliographicRecord":
        values = _from_wire(data)
        if not _clean(values.get("style")):
            raise MissingFieldError("style")
        if not _clean(values.get("source_type")):
            raise MissingFieldError("sourceType")
        known = {f.name for f in fields(cls)}
        return cls(**{k: _clean(v) for k, v in values.items() if k in known})

    def merged(self, metadata: Dict[str, Any]) -> "BibliographicRecord":
        """Overlay collaborator metadata; empty values never replace user data."""
        known = {f.name for f in fields(self)} - {"source_type", "style"}
        updates = {k: _clean(v) for k, v in _from_wire(metadata).items() if k in known and _clean(v)}
        return replace(self, **updates)


@dataclass(frozen=True)
class ParsedAuthor:
    given_name: str
    surname: str
    initials: Tuple[str, ...] = ()

    @property
    def is_single_name(self) -> bool:
        return not self.given_name


@dataclass(frozen=True)
class PageRange:
    start: str
    end: str


@dataclass(frozen=True)
class ExtractedMetadata:
    volume: Optional[str] = None
    issue: Optional[str] = None
    pages: Optional[PageRange] = None
    doi: Optional[str] = None
    publisher_place: Optional[str] = None
    event_place: Optional[str] = None

    @property
    def has_details(self) -> bool:
        return bool(self.volume or self.issue or self.pages)


@dataclass(frozen=True)
class NormalizedRecord:
    authors: Tuple[ParsedAuthor, ...] = ()
    extracted: ExtractedMetadata = field(default_factory=ExtractedMetadata)


_EDITABLE = ("citation", "title", "authors", "year", "source", "additional_info", "source_url")


@dataclass(frozen=True)
class Citation:
    """A generated citation as stored and returned to callers."""

    id: str
    citation: str
    style: str
    source_type: str
    source_url: Optional[str] = None
    file_id: Optional[str] = None
    title: Optional[str] = None
    authors: Optional[str] = None
    year: Optional[str] = None
    source: Optional[str] = None
    additional_info: Optional[str] = None

    @classmethod
    def create(cls, record: BibliographicRecord, text: str) -> "Citation":
        return cls(
            id=str(uuid.uuid4()),
            citation=text,
            style=record.style,
            source_type=record.source_type,
            source_url=record.source_url,
            file_id=record.file_id if record.source_type == "pdf" else None,
            title=record.title,
            authors=record.authors,
            year=record.year,
            source=record.source,
            additional_info=record.additional_info,
        )

    def edited(self, **changes: Any) -> "Citation":
        """Copy with user edits applied; identity and style fields stay fixed."""
        bad = set(changes) - set(_EDITABLE)
        if bad:
            raise ValueError(f"Cannot edit field(s): {', '.join(sorted(bad))}")
        # Blanked optional fields are dropped rather than stored as ""
        cleaned = {k: v if k == "citation" else _clean(v) for k, v in changes.items()}
        return replace(self, **cleaned)

    def to_dict(self) -> Dict[str, Any]:
        data = {
            "id": self.id,
            "citation": self.citation,
            "style": self.style,
            "sourceType": self.source_type,
            "sourceUrl": self.source_url,
            "fileId": self.file_id,
            "title": self.title,
            "authors": self.authors,
            "year": self.year,
            "source": self.source,
            "additionalInfo": self.additional_info,
        }
        return {k: v for k, v in data.items() if v is not None}

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "Citation":
        values = _from_wire(data)
        known = {f.name for f in fields(cls)}
        return cls(**{k: v for k, v in values.items() if k in known})

