"""Exception hierarchy for citation generation."""


class CitationError(Exception):
    """Base class for all citegen errors."""

    status_code = 500


class MissingFieldError(CitationError):
    """A required request field (style, sourceType) is absent."""

    status_code = 400

    def __init__(self, field: str):
        super().__init__(f"Missing required field: {field}")
        self.field = field


class UnsupportedStyleError(CitationError):
    status_code = 400

    def __init__(self, style: str):
        super().__init__(f"Unsupported citation style: {style!r}")
        self.style = style


class UploadError(CitationError):
    """Rejected file upload (empty, too large, or not a PDF)."""

    status_code = 400


class FetchError(CitationError):
    """Remote metadata could not be retrieved."""


class FormatterError(CitationError):
    """A formatter in the rendering chain could not produce a citation."""


class CslProcessorError(FormatterError):
    """citeproc-py failed to render the CSL-JSON projection."""
