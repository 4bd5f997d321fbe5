"""
citegen - Citation Generator
A Streamlit web application that formats citations from a website URL,
an uploaded PDF, or manually entered fields in seven citation styles.
"""

import logging
from datetime import datetime
from typing import Any, Dict

import streamlit as st

from citegen.config import STYLE_DISPLAY_NAMES, get_access_code, get_citations_file
from citegen.errors import UploadError
from citegen.export import export_citations_to_word
from citegen.repository import JsonFileCitationRepository, SessionStateCitationRepository
from citegen.service import edit_citation, generate_citation, pdf_request, prepare_pdf_upload, save_generated

logging.basicConfig(level=logging.INFO, format="%(asctime)s %(levelname)s %(name)s: %(message)s")

# ═══════════════════════════════════════════════════════════
# PAGE CONFIG & SESSION STATE
# ═══════════════════════════════════════════════════════════

st.set_page_config(
    page_title="citegen",
    page_icon="📚",
    layout="wide",
    initial_sidebar_state="expanded",
)

citations_file = get_citations_file()
if citations_file:
    repository = JsonFileCitationRepository(citations_file)
else:
    repository = SessionStateCitationRepository(st.session_state)

if "last_citation" not in st.session_state:
    st.session_state.last_citation = None
if "editing_id" not in st.session_state:
    st.session_state.editing_id = None
if "authorized" not in st.session_state:
    st.session_state.authorized = not get_access_code()

# ═══════════════════════════════════════════════════════════
# HELPERS
# ═══════════════════════════════════════════════════════════


def _generate(payload: Dict[str, Any]) -> None:
    """Run a generation request and store the result in the collection."""
    with st.spinner("Generating citation..."):
        status, body = generate_citation(payload, authorized=st.session_state.authorized)
    if status != 200:
        st.error(f"❌ {body.get('error', 'Unable to generate citation. Please try again.')}")
        return
    citation = save_generated(repository, body)
    st.session_state.last_citation = citation.to_dict()
    st.toast("✅ Citation generated successfully")


def _show_result(result: Dict[str, Any], key_prefix: str) -> None:
    """Show the generated citation with copy (via st.code) and download."""
    st.markdown("---")
    st.markdown("**Generated Citation:**")
    st.code(result["citation"], language=None)
    st.download_button(
        "⬇️ Download (.txt)",
        data=result["citation"],
        file_name=f"citation-{result['style']}.txt",
        mime="text/plain",
        key=f"download_{key_prefix}",
    )

# ═══════════════════════════════════════════════════════════
# SIDEBAR
# ═══════════════════════════════════════════════════════════

with st.sidebar:
    st.title("citegen")
    st.caption("Academic Citation Generator")
    st.divider()

    style_display = st.selectbox("📝 Citation Style", list(STYLE_DISPLAY_NAMES.keys()), index=0)
    style = STYLE_DISPLAY_NAMES[style_display]
    st.divider()

    saved = repository.list()
    st.metric("📚 Saved Citations", len(saved))

    if saved:
        word_bytes = export_citations_to_word(saved, sort_by_author=True)
        if word_bytes:
            st.download_button(
                "⬇️ Download Word (.docx)",
                data=word_bytes,
                file_name=f"citegen_References_{datetime.now().strftime('%Y%m%d')}.docx",
                mime="application/vnd.openxmlformats-officedocument.wordprocessingml.document",
                use_container_width=True,
            )

        if st.button("🗑️ Clear All Citations", use_container_width=True):
            repository.clear()
            st.session_state.last_citation = None
            st.session_state.editing_id = None
            st.rerun()

    if not st.session_state.authorized:
        st.divider()
        code = st.text_input("🔑 Access code", type="password")
        if code and code == get_access_code():
            st.session_state.authorized = True
            st.rerun()
        elif code:
            st.warning("Invalid access code.")

    st.divider()
    st.caption("Supports: URL · PDF · Manual entry")

# ═══════════════════════════════════════════════════════════
# MAIN AREA
# ═══════════════════════════════════════════════════════════

st.title("📚 citegen")
st.caption("Paste a website URL, upload a PDF, or enter details manually to generate a citation.")

if not st.session_state.authorized:
    st.info("Enter the access code in the sidebar to generate citations.")

tab_url, tab_pdf, tab_manual, tab_saved = st.tabs(
    ["🔗 Website URL", "📄 PDF Upload", "✍️ Manual Entry", "📚 My Citations"]
)

# ── Tab 1: Website URL ────────────────────────────────────

with tab_url:
    url = st.text_input("Website URL", placeholder="https://www.example.com/article", key="url_input")
    if st.button("Generate Citation", key="url_go", type="primary", use_container_width=True):
        if not url.strip():
            st.warning("Please enter a valid website URL.")
        else:
            _generate({"style": style, "sourceType": "url", "sourceUrl": url.strip()})

    last = st.session_state.last_citation
    if last and last.get("sourceType") == "url":
        _show_result(last, key_prefix="url")

# ── Tab 2: PDF Upload ─────────────────────────────────────

with tab_pdf:
    uploaded = st.file_uploader("Upload a research paper PDF", type=["pdf"], key="pdf_upload")
    if st.button("Generate Citation", key="pdf_go", type="primary", use_container_width=True):
        if uploaded is None:
            st.warning("Please select a PDF file to upload.")
        else:
            try:
                with st.spinner("Extracting metadata from PDF..."):
                    upload = prepare_pdf_upload(uploaded.name, uploaded.type, uploaded.getvalue())
            except UploadError as exc:
                st.error(f"❌ {exc}")
            else:
                _generate(pdf_request(upload, style))

    last = st.session_state.last_citation
    if last and last.get("sourceType") == "pdf":
        _show_result(last, key_prefix="pdf")

# ── Tab 3: Manual Entry ───────────────────────────────────

with tab_manual:
    with st.form("manual_form"):
        m_title = st.text_input("Title *", placeholder="The Impact of Machine Learning on Healthcare")
        m_authors = st.text_input("Author(s) *", placeholder="John Smith, Jane Doe")
        mc1, mc2 = st.columns(2)
        with mc1:
            m_year = st.text_input("Year", placeholder="2023")
        with mc2:
            m_source = st.text_input("Source (journal, publisher, site)", placeholder="Journal of Examples")
        m_info = st.text_area(
            "Additional Info (optional)",
            placeholder="Volume 5, Issue 2, pp. 100-110, DOI: 10.1234/example",
        )
        m_book = st.checkbox("This is a book")

        submitted = st.form_submit_button("Generate Citation", type="primary", use_container_width=True)
        if submitted:
            if not m_title.strip() or not m_authors.strip():
                st.warning("Please enter both title and authors.")
            else:
                _generate({
                    "style": style,
                    "sourceType": "book" if m_book else "manual",
                    "title": m_title,
                    "authors": m_authors,
                    "year": m_year,
                    "source": m_source,
                    "additionalInfo": m_info,
                })

    last = st.session_state.last_citation
    if last and last.get("sourceType") in ("manual", "book"):
        _show_result(last, key_prefix="manual")

# ── Tab 4: My Citations ───────────────────────────────────

with tab_saved:
    refs = repository.list()
    if not refs:
        st.info("No citations saved yet. Use the other tabs to generate citations.")
    for i, ref in enumerate(refs):
        label = (ref.title or ref.citation)[:80]
        with st.expander(f"**[{i + 1}]** {label}  ·  {ref.style.upper()}", expanded=False):
            st.code(ref.citation, language=None)
            if ref.source_type == "url" and ref.source_url:
                st.markdown(f"**Source:** [{ref.source_url}]({ref.source_url})")
            elif ref.source_type == "pdf" and ref.file_id:
                st.caption(f"PDF reference ID: {ref.file_id}")

            c1, c2 = st.columns(2)
            with c1:
                if st.button("✏️ Edit", key=f"edit_{ref.id}"):
                    st.session_state.editing_id = ref.id
                    st.rerun()
            with c2:
                if st.button("🗑️ Remove", key=f"remove_{ref.id}"):
                    repository.delete(ref.id)
                    st.toast("Citation removed")
                    st.rerun()

            if st.session_state.editing_id == ref.id:
                with st.form(f"edit_form_{ref.id}"):
                    e_citation = st.text_area("Citation", value=ref.citation)
                    e_title = st.text_input("Title", value=ref.title or "")
                    e_authors = st.text_input("Authors", value=ref.authors or "")
                    e_year = st.text_input("Year", value=ref.year or "")
                    e_source = st.text_input("Source", value=ref.source or "")
                    e_info = st.text_area("Additional Info", value=ref.additional_info or "")
                    e_url = st.text_input("Source URL", value=ref.source_url or "")
                    ec1, ec2 = st.columns(2)
                    save = ec1.form_submit_button("Save", type="primary")
                    cancel = ec2.form_submit_button("Cancel")
                if save:
                    edit_citation(
                        repository,
                        ref.id,
                        citation=e_citation,
                        title=e_title or None,
                        authors=e_authors or None,
                        year=e_year or None,
                        source=e_source or None,
                        additional_info=e_info or None,
                        source_url=e_url or None,
                    )
                    st.session_state.editing_id = None
                    st.toast("Citation updated successfully")
                    st.rerun()
                if cancel:
                    st.session_state.editing_id = None
                    st.rerun()
