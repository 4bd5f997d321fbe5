"""
Citation persistence.
An ordered collection of Citation records keyed by id, newest first.
"""

import json
import logging
from pathlib import Path
from typing import Any, Dict, List, MutableMapping, Optional, Protocol, Union

from citegen.models import Citation

logger = logging.getLogger(__name__)

_REQUIRED_KEYS = ("id", "citation", "style", "sourceType")


class CitationRepository(Protocol):
    def get(self, citation_id: str) -> Optional[Citation]:
        ...

    def list(self) -> List[Citation]:
        ...

    def save(self, citation: Citation) -> Citation:
        ...

    def delete(self, citation_id: str) -> bool:
        ...


class _ListBackedRepository:
    """Shared get/save/delete logic over a list of wire-format dicts."""

    def _load(self) -> List[Dict[str, Any]]:
        raise NotImplementedError

    def _store(self, items: List[Dict[str, Any]]) -> None:
        raise NotImplementedError

    def get(self, citation_id: str) -> Optional[Citation]:
        for item in self._load():
            if item.get("id") == citation_id:
                return Citation.from_dict(item)
        return None

    def list(self) -> List[Citation]:
        return [Citation.from_dict(item) for item in self._load()]

    def save(self, citation: Citation) -> Citation:
        """Insert a new citation at the front, or replace an existing one in place."""
        items = self._load()
        data = citation.to_dict()
        for i, item in enumerate(items):
            if item.get("id") == citation.id:
                items[i] = data
                break
        else:
            items.insert(0, data)
        self._store(items)
        return citation

    def delete(self, citation_id: str) -> bool:
        items = self._load()
        remaining = [item for item in items if item.get("id") != citation_id]
        if len(remaining) == len(items):
            return False
        self._store(remaining)
        return True

    def clear(self) -> None:
        self._store([])


class InMemoryCitationRepository(_ListBackedRepository):
    def __init__(self, citations: Optional[List[Citation]] = None):
        self._items: List[Dict[str, Any]] = [c.to_dict() for c in citations or []]

    def _load(self) -> List[Dict[str, Any]]:
        return list(self._items)

    def _store(self, items: List[Dict[str, Any]]) -> None:
        self._items = list(items)


class SessionStateCitationRepository(_ListBackedRepository):
    """Stores citations in a Streamlit session state (any mutable mapping works)."""

    def __init__(self, state: MutableMapping[str, Any], key: str = "citations"):
        self._state = state
        self._key = key
        if key not in state:
            state[key] = []

    def _load(self) -> List[Dict[str, Any]]:
        return list(self._state[self._key])

    def _store(self, items: List[Dict[str, Any]]) -> None:
        self._state[self._key] = list(items)


def _is_citation_dict(item: Any) -> bool:
    return isinstance(item, dict) and all(item.get(key) for key in _REQUIRED_KEYS)


class JsonFileCitationRepository(_ListBackedRepository):
    """Citations serialized as a JSON list on disk."""

    def __init__(self, path: Union[str, Path]):
        self.path = Path(path)

    def _load(self) -> List[Dict[str, Any]]:
        if not self.path.exists():
            return []
        try:
            data = json.loads(self.path.read_text(encoding="utf-8") or "[]")
        except json.JSONDecodeError as exc:
            logger.warning("Ignoring unreadable citations file %s: %s", self.path, exc)
            return []
        if not isinstance(data, list):
            logger.warning("Ignoring citations file %s: expected a JSON list", self.path)
            return []
        items = [item for item in data if _is_citation_dict(item)]
        if len(items) != len(data):
            logger.warning("Skipped %d malformed entries in %s", len(data) - len(items), self.path)
        return items

    def _store(self, items: List[Dict[str, Any]]) -> None:
        self.path.parent.mkdir(parents=True, exist_ok=True)
        self.path.write_text(json.dumps(items, indent=2, ensure_ascii=False), encoding="utf-8")
