"""
Extractors package - Specialized content extractors.

Available extractors:
- detect_format: Classify a blob by MIME type or extension
- TextExtractor: Primary extraction, dispatching to PDFExtractor / DocxExtractor
- evaluate_yield: Flag low-yield pages and documents
- OCRExtractor: OCR for scanned pages and images
"""
from syllabus_parser.utils.extractors.format_detector import detect_format
from syllabus_parser.utils.extractors.ocr_extractor import OCRExtractor, merge_ocr_pages
from syllabus_parser.utils.extractors.text_extractor import TextExtractor
from syllabus_parser.utils.extractors.yield_evaluator import evaluate_yield, should_run_ocr

__all__ = [
    'detect_format',
    'TextExtractor',
    'OCRExtractor',
    'merge_ocr_pages',
    'evaluate_yield',
    'should_run_ocr',
]
