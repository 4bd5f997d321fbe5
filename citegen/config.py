"""Static configuration and environment overrides."""

import os
from typing import Dict, Optional

# ═══════════════════════════════════════════════════════════
# STYLES
# ═══════════════════════════════════════════════════════════

# Style id → CSL style file name (citeproc-py-styles)
SUPPORTED_STYLES: Dict[str, str] = {
    "apa": "apa",
    "mla": "modern-language-association",
    "chicago": "chicago-author-date",
    "harvard": "harvard-cite-them-right",
    "ieee": "ieee",
    "ama": "american-medical-association",
    "asa": "american-sociological-association",
}

# Display names shown in the UI → style ids
STYLE_DISPLAY_NAMES: Dict[str, str] = {
    "APA 7th Edition": "apa",
    "MLA 9th Edition": "mla",
    "Chicago (Author-Date)": "chicago",
    "Harvard (Cite Them Right)": "harvard",
    "IEEE": "ieee",
    "AMA 11th Edition": "ama",
    "ASA 6th Edition": "asa",
}

# ═══════════════════════════════════════════════════════════
# COLLABORATORS
# ═══════════════════════════════════════════════════════════

MAX_PDF_SIZE = 10 * 1024 * 1024
PDF_MAX_PAGES = 10

MAX_RETRIES = 3
RETRY_DELAY = 1.0
BACKOFF_FACTOR = 2.0
REQUEST_TIMEOUT = 10

USER_AGENT = "Mozilla/5.0 (Windows NT 10.0; Win64; x64) AppleWebKit/537.36"

# ═══════════════════════════════════════════════════════════
# ENVIRONMENT
# ═══════════════════════════════════════════════════════════


def get_formatter_backend() -> str:
    """Formatter backend name, ``native`` unless ``CITEGEN_FORMATTER`` says otherwise."""
    return os.environ.get("CITEGEN_FORMATTER", "native").strip().lower() or "native"


def get_citations_file() -> Optional[str]:
    """Path of a JSON citations file; unset keeps citations in the browser session."""
    return os.environ.get("CITEGEN_CITATIONS_FILE") or None


def get_access_code() -> str:
    return os.environ.get("CITEGEN_ACCESS_CODE", "")
