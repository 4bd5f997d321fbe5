"""Shared fixtures for citegen tests."""

from datetime import date

import pytest

from citegen.models import BibliographicRecord

ACCESSED = date(2026, 10, 5)
ACCESSED_TEXT = "October 5, 2026"

JOURNAL_INFO = "Volume 5, Issue 2, pp. 100-110, DOI: 10.1/xyz"


def make_record(style="apa", source_type="manual", **kw) -> BibliographicRecord:
    return BibliographicRecord(source_type=source_type, style=style, **kw)


@pytest.fixture
def journal_record():
    def _make(style="apa", **kw):
        fields = {
            "authors": "Smith, John and Doe, Jane",
            "year": "2020",
            "title": "Deep Learning",
            "source": "Journal X",
            "additional_info": JOURNAL_INFO,
        }
        fields.update(kw)
        return make_record(style=style, **fields)

    return _make


@pytest.fixture
def url_record():
    def _make(style="apa", **kw):
        fields = {"source_url": "https://ex.com", "title": "Page", "source": "Example"}
        fields.update(kw)
        return make_record(style=style, source_type="url", **fields)

    return _make
