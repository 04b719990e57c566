"""
Error taxonomy for the parsing pipeline.

Only UnsupportedFormat, DocumentTooLarge, ExtractionFailed and
AllProvidersExhausted reach the caller as failed results. The rest are
recovered inside the stage that raises them.
"""
from typing import List, Optional


EXTRACTION_ALTERNATIVES = [
    "Copy the text from the document and paste it into a .txt file",
    "Export the document as plain text from your word processor or PDF reader",
    "Upload a DOCX or TXT version of the file",
]


class SyllabusParserError(Exception):
    """Base class for all pipeline errors."""


class UnsupportedFormat(SyllabusParserError):
    """Neither MIME type nor extension maps to a supported format."""

    def __init__(self, mime_type: str, filename: str):
        self.mime_type = mime_type
        self.filename = filename
        super().__init__(
            f"Unsupported file type: {mime_type or 'unknown'} ({filename or 'unnamed'})"
        )


class DocumentTooLarge(SyllabusParserError):
    def __init__(self, size: int, limit: int):
        self.size = size
        self.limit = limit
        super().__init__(
            f"File too large: {size / 1024 / 1024:.1f}MB (maximum is {limit / 1024 / 1024:.0f}MB)"
        )


class ExtractionFailed(SyllabusParserError):
    """Corrupt, encrypted or unreadable source document."""

    def __init__(self, message: str, cause: Optional[BaseException] = None):
        self.cause = cause
        self.alternatives = list(EXTRACTION_ALTERNATIVES)
        super().__init__(message)
        if cause is not None:
            self.__cause__ = cause


class OCRPageFailed(SyllabusParserError):
    def __init__(self, page_number: int, cause: BaseException):
        self.page_number = page_number
        self.cause = cause
        super().__init__(f"OCR failed for page {page_number}: {cause}")


class ProviderTimeout(SyllabusParserError):
    def __init__(self, model_id: str, timeout: float):
        self.model_id = model_id
        self.timeout = timeout
        super().__init__(f"{model_id} did not respond within {timeout:.1f}s")


class ProviderUnavailable(SyllabusParserError):
    def __init__(self, model_id: str, cause: BaseException):
        self.model_id = model_id
        self.cause = cause
        super().__init__(f"{model_id} unavailable: {cause}")


class AllProvidersExhausted(SyllabusParserError):
    """Every candidate backend was tried and failed."""

    def __init__(self, capability: str, attempts: List = None):
        self.capability = capability
        self.attempts = list(attempts or [])
        tried = ", ".join(a.model_id for a in self.attempts) or "none available"
        super().__init__(f"All model providers failed for '{capability}' (tried: {tried})")


class SchemaParseFailure(SyllabusParserError):
    """Model output could not be parsed into the record schema."""
