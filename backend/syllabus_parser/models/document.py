"""
Pydantic schemas for document intake and text extraction.
"""
from enum import Enum
from typing import List, Optional

from pydantic import BaseModel, ConfigDict, Field, model_validator


class DocumentFormat(str, Enum):
    """Formats the pipeline can extract text from."""
    PDF = "pdf"
    DOCX = "docx"
    TEXT = "txt"
    IMAGE = "image"


class SourceMethod(str, Enum):
    """Where the final text of an ExtractedText came from."""
    PRIMARY = "primary"  # Direct extraction
    OCR = "ocr"  # Every page recognized by OCR
    MERGED = "merged"  # Some pages primary, some OCR


class ProcessingStage(str, Enum):
    UPLOADING = "uploading"
    EXTRACTING = "extracting"
    OCR = "ocr"
    PARSING = "parsing"
    VALIDATING = "validating"
    COMPLETE = "complete"


# ==================== Core Document Models ====================
class DocumentBlob(BaseModel):
    """
    An uploaded file as received from the caller. Never mutated.
    """
    model_config = ConfigDict(frozen=True)

    data: bytes = Field(..., repr=False, description="Raw file bytes")
    mime_type: str = Field("", description="Declared MIME type, possibly empty or wrong")
    filename: str = Field("", description="Original filename")

    @property
    def size(self) -> int:
        return len(self.data)


class ExtractedText(BaseModel):
    """
    Text extracted from a document, with per-page yield.

    `page_texts` keeps each page separately so OCR can replace single pages.
    """
    text: str = Field(..., description="Full document text")
    format: DocumentFormat
    page_count: int = Field(..., ge=0)
    per_page_yield: List[int] = Field(default_factory=list, description="Character count per page")
    page_texts: List[str] = Field(default_factory=list, repr=False)
    confidence: Optional[float] = Field(None, ge=0.0, le=1.0, description="OCR confidence when OCR was used")
    source_method: SourceMethod = SourceMethod.PRIMARY

    @model_validator(mode="after")
    def check_pages(self) -> "ExtractedText":
        if self.page_texts and len(self.page_texts) != self.page_count:
            raise ValueError("page_texts must have one entry per page")
        if self.per_page_yield and len(self.per_page_yield) != self.page_count:
            raise ValueError("per_page_yield must have one entry per page")
        return self

    @classmethod
    def from_pages(
            cls,
            pages: List[str],
            format: DocumentFormat,
            source_method: SourceMethod = SourceMethod.PRIMARY,
            confidence: Optional[float] = None,
            separator: str = "\n",
    ) -> "ExtractedText":
        """Build an ExtractedText from per-page strings."""
        return cls(
            text=separator.join(pages).strip(),
            format=format,
            page_count=len(pages),
            per_page_yield=[len(p.strip()) for p in pages],
            page_texts=list(pages),
            confidence=confidence,
            source_method=source_method,
        )

    @property
    def total_chars(self) -> int:
        return sum(self.per_page_yield) if self.per_page_yield else len(self.text)

    @property
    def summary(self):
        """Quick summary for logging."""
        return {
            "format": self.format.value,
            "pages": self.page_count,
            "chars": self.total_chars,
            "source": self.source_method.value,
            "confidence": f"{self.confidence:.2f}" if self.confidence is not None else "N/A",
        }


class YieldReport(BaseModel):
    """
    Result of the low-yield check. `needs_ocr` is the low-yield signal.
    """
    low_yield_pages: List[int] = Field(default_factory=list, description="1-indexed pages under the page threshold")
    document_low_yield: bool = False
    total_chars: int = 0

    @property
    def needs_ocr(self) -> bool:
        return self.document_low_yield or bool(self.low_yield_pages)

    def target_pages(self, page_count: int) -> List[int]:
        """Pages to OCR: all of them for a low-yield document, else the flagged ones."""
        if self.document_low_yield:
            return list(range(1, page_count + 1))
        return list(self.low_yield_pages)


class OCRProgress(BaseModel):
    """One tick of OCR progress: `completed` of `total` pages are done."""
    page_number: int
    completed: int
    total: int

    @property
    def message(self) -> str:
        return f"OCR page {self.completed} of {self.total}"


class ParsingProgress(BaseModel):
    stage: ProcessingStage
    progress: int = Field(..., ge=0, le=100)
    message: str
    details: Optional[str] = None
