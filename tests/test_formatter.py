"""Tests for the native style formatter."""

from datetime import date

import pytest

from citegen.errors import UnsupportedStyleError
from citegen.formatter import (
    format_access_date,
    format_authors,
    format_citation,
    format_publication_details,
    format_source,
    tidy,
)
from citegen.models import StyleId
from citegen.normalizer import extract_metadata, normalize, parse_authors
from tests.conftest import ACCESSED, ACCESSED_TEXT, JOURNAL_INFO, make_record

ALL_STYLES = [s.value for s in StyleId]


def _render(record, style=None, accessed=ACCESSED):
    return format_citation(normalize(record), record, style or record.style, accessed)


# ── Authors ──────────────────────────────────────────────────────────


def test_apa_authors():
    authors = parse_authors("Smith, John and Doe, Jane")
    assert format_authors(authors, StyleId.APA) == "Smith, J., Doe, J."


def test_mla_authors():
    authors = parse_authors("Smith, John and Doe, Jane")
    assert format_authors(authors, StyleId.MLA) == "Smith, John, and Jane Doe"


def test_ieee_authors():
    authors = parse_authors("John Ronald Tolkien, Jane Doe")
    assert format_authors(authors, StyleId.IEEE) == "J. R. Tolkien, J. Doe"


def test_ama_authors_have_no_periods():
    authors = parse_authors("John Ronald Tolkien, Jane Doe")
    assert format_authors(authors, StyleId.AMA) == "Tolkien JR, Doe J"


def test_single_name_rendered_verbatim():
    authors = parse_authors("UNESCO")
    for style in StyleId:
        assert format_authors(authors, style) == "UNESCO"


def test_no_authors_renders_nothing():
    assert format_authors([], StyleId.APA) == ""

# ── Publication Details ─────────────────────────────────────────────


def test_apa_source_with_details():
    meta = extract_metadata(JOURNAL_INFO)
    assert format_source("Journal X", meta, StyleId.APA).strip() == "Journal X, 5(2), 100-110."


@pytest.mark.parametrize(
    "style, expected",
    [
        ("mla", ", vol. 5, no. 2"),
        ("chicago", " 5, no. 2: 100–110"),
        ("ieee", ", vol. 5, no. 2, pp. 100–110"),
        ("ama", ". 5:100-110"),
        ("asa", " 5(2):100-110"),
    ],
)
def test_publication_details_per_style(style, expected):
    meta = extract_metadata(JOURNAL_INFO)
    assert format_publication_details(meta, StyleId(style)) == expected


def test_details_need_a_source():
    meta = extract_metadata(JOURNAL_INFO)
    assert format_source(None, meta, StyleId.APA) == ""

# ── Full Citations ──────────────────────────────────────────────────


@pytest.mark.parametrize(
    "style, expected",
    [
        ("apa", "Smith, J., Doe, J. (2020). Deep Learning. Journal X, 5(2), 100-110. https://doi.org/10.1/xyz"),
        ("harvard", "Smith, J., Doe, J. (2020). Deep Learning. Journal X, 5(2), 100-110. https://doi.org/10.1/xyz"),
        ("mla", 'Smith, John, and Jane Doe. 2020, pp. 100-110. "Deep Learning." Journal X, vol. 5, no. 2, DOI: 10.1/xyz.'),
        ("chicago", 'Smith, John, and Jane Doe. 2020 (100–110). "Deep Learning." Journal X 5, no. 2: 100–110. DOI: 10.1/xyz.'),
        ("ieee", 'J. Smith, J. Doe. 2020. "Deep Learning." Journal X, vol. 5, no. 2, pp. 100–110, doi: 10.1/xyz.'),
        ("ama", "Smith J, Doe J. Published 2020. Deep Learning. Journal X. 5:100-110. doi:10.1/xyz."),
        ("asa", 'Smith, John, and Jane Doe. 2020. "Deep Learning." Journal X 5(2):100-110. DOI: 10.1/xyz.'),
    ],
)
def test_journal_article(journal_record, style, expected):
    assert _render(journal_record(style)) == expected


def test_ieee_trailing_comma_becomes_period(journal_record):
    record = journal_record("ieee", additional_info="Volume 5, Issue 2, pp. 100-110")
    assert _render(record).endswith("Journal X, vol. 5, no. 2, pp. 100–110.")


def test_missing_year_apa(journal_record):
    assert "(n.d.)" in _render(journal_record("apa", year=None))


def test_missing_year_harvard(journal_record):
    assert _render(journal_record("harvard", year=None)).startswith("Smith, J., Doe, J. (n.d.). ")


def test_book_title_is_never_quoted():
    record = make_record("mla", source_type="book", authors="Jane Austen", title="Emma", source="John Murray")
    assert _render(record) == "Austen, Jane. Emma. John Murray."


def test_title_question_mark_not_doubled():
    record = make_record("mla", title="Why Now?")
    assert _render(record) == '"Why Now?"'


def test_author_initial_period_not_doubled():
    record = make_record("mla", authors="Smith, J.", title="Title")
    assert _render(record) == 'Smith, J. "Title."'


def test_source_trailing_period_not_doubled():
    record = make_record("apa", title="T", source="Acme Inc.", year="2001")
    assert _render(record) == "(2001). T. Acme Inc."


@pytest.mark.parametrize("style", ALL_STYLES)
def test_empty_record_never_raises(style):
    text = _render(make_record(style))
    assert ".." not in text
    assert not text.startswith((",", "."))


def test_empty_record_apa_is_nd():
    assert _render(make_record("apa")) == "(n.d.)."


@pytest.mark.parametrize("style", ALL_STYLES)
def test_no_doubled_punctuation_with_partial_fields(style):
    record = make_record(style, title="Only A Title", source="Some Source")
    text = _render(record)
    assert ".." not in text
    assert ",." not in text
    assert ", ," not in text


@pytest.mark.parametrize("style", ["turabian", "", None, "APA-7"])
def test_unsupported_style_rejected(style):
    record = make_record("apa")
    with pytest.raises(UnsupportedStyleError):
        format_citation(normalize(record), record, style)


def test_style_id_is_case_insensitive(journal_record):
    assert _render(journal_record("apa"), style="APA") == _render(journal_record("apa"))


def test_deterministic_without_url(journal_record):
    record = journal_record("chicago")
    assert _render(record, accessed=date(2020, 1, 1)) == _render(record, accessed=date(2030, 6, 6))

# ── Access URL ──────────────────────────────────────────────────────


@pytest.mark.parametrize(
    "style, expected",
    [
        ("apa", "(n.d.). Page. Example. Retrieved from https://ex.com"),
        ("mla", f'"Page." Example, https://ex.com. Accessed {ACCESSED_TEXT}.'),
        ("chicago", f'"Page." Example. Accessed {ACCESSED_TEXT}. https://ex.com.'),
        ("harvard", f"(n.d.). Page. Example. Available at: https://ex.com (Accessed: {ACCESSED_TEXT})."),
        ("ieee", f'"Page." Example, [Online]. Available: https://ex.com. [Accessed: {ACCESSED_TEXT}].'),
        ("ama", f"Page. Example. Accessed {ACCESSED_TEXT}. https://ex.com"),
        ("asa", f'"Page." Example. Retrieved {ACCESSED_TEXT} (https://ex.com).'),
    ],
)
def test_url_access_phrasing(url_record, style, expected):
    assert _render(url_record(style)) == expected


def test_mla_url_tail_uses_today():
    record = make_record("mla", source_type="url", source_url="https://ex.com")
    text = format_citation(normalize(record), record, "mla")
    today = date.today()
    assert text.endswith(f"https://ex.com. Accessed {today:%B} {today.day}, {today.year}.")


def test_url_only_rendered_for_url_sources():
    record = make_record("apa", source_url="https://ex.com", title="T")
    assert "ex.com" not in _render(record)

# ── Helpers ──────────────────────────────────────────────────────────


def test_access_date_has_no_zero_padding():
    assert format_access_date(date(2024, 3, 7)) == "March 7, 2024"


def test_tidy_joins_fields_with_single_spaces():
    assert tidy(["Smith, J.", " (2020). ", "", None, "Source,"]) == "Smith, J. (2020). Source."


def test_ellipsis_in_title_is_kept(journal_record):
    record = journal_record("apa", authors=None, title="Wait for it...", source=None, additional_info=None)
    assert _render(record) == "(2020). Wait for it..."


def test_user_punctuation_inside_fields_is_kept():
    record = make_record("mla", title="A, . B", source="Press")
    assert _render(record) == '"A, . B." Press.'
