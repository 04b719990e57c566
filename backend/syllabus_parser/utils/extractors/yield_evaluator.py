"""
Yield Evaluator - Decides whether extracted text looks like a scan.

Two levels: a page is low-yield under `page_threshold` characters, the whole
document under `document_threshold`. A mostly-text document with one sparse
title page only gets that page OCR'd.
"""
from syllabus_parser.core.config import settings
from syllabus_parser.models.document import DocumentFormat, ExtractedText, YieldReport

# Only formats that can be rasterized are worth re-reading with OCR
OCR_FORMATS = {DocumentFormat.PDF, DocumentFormat.IMAGE}


def evaluate_yield(
        extracted: ExtractedText,
        page_threshold: int = None,
        document_threshold: int = None,
) -> YieldReport:
    page_threshold = settings.PAGE_YIELD_THRESHOLD if page_threshold is None else page_threshold
    document_threshold = settings.DOCUMENT_YIELD_THRESHOLD if document_threshold is None else document_threshold

    counts = extracted.per_page_yield or [len(extracted.text.strip())]

    low_pages = [idx for idx, count in enumerate(counts, start=1) if count < page_threshold]
    total = sum(counts)

    return YieldReport(
        low_yield_pages=low_pages,
        document_low_yield=total < document_threshold,
        total_chars=total,
    )


def should_run_ocr(extracted: ExtractedText, report: YieldReport) -> bool:
    return extracted.format in OCR_FORMATS and report.needs_ocr
