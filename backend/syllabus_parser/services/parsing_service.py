"""
Parsing Service - The one operation callers use: blob in, ParsingResult out.

Pipeline:
1. Size check and format detection
2. Primary text extraction (in a worker thread)
3. Yield check, OCR for low-yield pages of PDFs and images
4. Structured extraction through the model backends
5. Confidence scoring and warnings
6. Redacted training sample (only when a sink is configured)

Fatal conditions come back as ParsingResult(success=False); everything else
degrades into warnings and a lower confidence.
"""
import asyncio
from typing import Callable, List, Optional

from syllabus_parser.core.config import settings
from syllabus_parser.core.exceptions import (
    AllProvidersExhausted, DocumentTooLarge, ExtractionFailed, UnsupportedFormat
)
from syllabus_parser.models.document import (
    DocumentBlob, ExtractedText, OCRProgress, ParsingProgress, ProcessingStage, SourceMethod
)
from syllabus_parser.models.syllabus import ParseMetadata, ParsedRecord, ParsingResult, SyllabusDocument
from syllabus_parser.services.confidence import score_record
from syllabus_parser.services.structured_extraction import StructuredExtractionNormalizer
from syllabus_parser.services.training_sample import (
    TrainingSampleSink, build_training_sample, get_training_sample_sink
)
from syllabus_parser.utils.extractors.format_detector import detect_format
from syllabus_parser.utils.extractors.ocr_extractor import OCRExtractor
from syllabus_parser.utils.extractors.text_extractor import TextExtractor
from syllabus_parser.utils.extractors.yield_evaluator import evaluate_yield, should_run_ocr
from syllabus_parser.utils.logger import get_logger

logger = get_logger(__name__)

ProgressCallback = Callable[[ParsingProgress], None]

FATAL_ERRORS = (UnsupportedFormat, DocumentTooLarge, ExtractionFailed, AllProvidersExhausted)


def collect_warnings(record: ParsedRecord, parsed_ok: bool, extracted: ExtractedText) -> List[str]:
    warnings = []

    if not parsed_ok:
        warnings.append("Could not read structured data from the model response; all fields are empty")

    if not record.course_info.title:
        warnings.append("Course title not found")

    if not record.course_info.instructor:
        warnings.append("Instructor name not found")

    if extracted.source_method != SourceMethod.PRIMARY:
        warnings.append("Text was recovered with OCR and may contain recognition errors")

    return warnings


class ParsingService:
    """
    Composes extraction, OCR fallback, structured extraction and scoring.
    """

    def __init__(
            self,
            text_extractor: Optional[TextExtractor] = None,
            ocr_extractor: Optional[OCRExtractor] = None,
            normalizer: Optional[StructuredExtractionNormalizer] = None,
            sample_sink: Optional[TrainingSampleSink] = None,
            max_upload_size: int = None,
    ):
        self.text_extractor = text_extractor or TextExtractor()
        self.ocr_extractor = ocr_extractor or OCRExtractor()
        self.normalizer = normalizer or StructuredExtractionNormalizer()
        self.sample_sink = sample_sink if sample_sink is not None else get_training_sample_sink()
        self.max_upload_size = max_upload_size or settings.MAX_UPLOAD_SIZE

        logger.info("ParsingService initialized")

    async def parse(self, blob: DocumentBlob, on_progress: Optional[ProgressCallback] = None) -> ParsingResult:
        """
        Parse one uploaded document.

        Never raises for document or provider problems; cancellation of the
        calling task still propagates.
        """
        try:
            return await self._parse(blob, on_progress)
        except FATAL_ERRORS as e:
            logger.error(f"Parsing failed for {blob.filename or '<memory>'}: {e}")
            errors = [str(e)]
            if isinstance(e, ExtractionFailed):
                errors.extend(f"Try instead: {alt}" for alt in e.alternatives)
            return ParsingResult.failure(errors)

    async def _parse(self, blob: DocumentBlob, on_progress: Optional[ProgressCallback]) -> ParsingResult:
        self._report(on_progress, ProcessingStage.UPLOADING, 5, f"Received {blob.filename or 'document'}")

        if blob.size > self.max_upload_size:
            raise DocumentTooLarge(blob.size, self.max_upload_size)

        file_format = detect_format(blob.mime_type, blob.filename)
        logger.info(f"Parsing {blob.filename or '<memory>'} as {file_format.value} ({blob.size} bytes)")

        # ========== Extract ==========
        self._report(on_progress, ProcessingStage.EXTRACTING, 20, "Extracting text")
        extracted = await asyncio.to_thread(self.text_extractor.extract, blob, file_format)

        report = evaluate_yield(extracted)
        if should_run_ocr(extracted, report):
            targets = report.target_pages(extracted.page_count)
            self._report(on_progress, ProcessingStage.OCR, 40, f"Running OCR on {len(targets)} page(s)")
            extracted = await self.ocr_extractor.run(
                blob, extracted, targets, progress=self._ocr_forwarder(on_progress)
            )
        else:
            logger.debug(f"OCR not needed: {report.total_chars} chars, no low-yield pages")

        if not extracted.text.strip():
            raise ExtractionFailed("No text could be extracted from the document")

        # ========== Structure ==========
        self._report(on_progress, ProcessingStage.PARSING, 70, "Extracting course information")
        outcome = await self.normalizer.normalize(extracted.text)

        self._report(on_progress, ProcessingStage.VALIDATING, 90, "Validating results")
        confidence = score_record(outcome.record)
        warnings = collect_warnings(outcome.record, outcome.parsed_ok, extracted)

        document = SyllabusDocument.assemble(
            outcome.record,
            confidence,
            ParseMetadata(source=blob.filename, format=file_format),
        )

        await self._save_sample(outcome.record, extracted.text)

        self._report(on_progress, ProcessingStage.COMPLETE, 100, "Parsing complete")
        logger.info(
            f"Parsed {blob.filename or '<memory>'}: confidence={confidence.score:.2f}, "
            f"review={confidence.requires_review}, model={outcome.model_id}"
        )
        return ParsingResult(
            success=True,
            data=document,
            confidence=confidence.score,
            requiresReview=confidence.requires_review,
            warnings=warnings or None,
        )

    async def _save_sample(self, record: ParsedRecord, raw_text: str) -> None:
        if self.sample_sink is None:
            return
        try:
            sample = build_training_sample(record, raw_text)
            await asyncio.to_thread(self.sample_sink.write, sample)
        except Exception as e:
            logger.warning(f"Training sample not saved: {e}")

    # ==================== Progress ====================

    @staticmethod
    def _report(
            on_progress: Optional[ProgressCallback],
            stage: ProcessingStage,
            progress: int,
            message: str,
            details: Optional[str] = None,
    ) -> None:
        if on_progress is None:
            return
        try:
            on_progress(ParsingProgress(stage=stage, progress=progress, message=message, details=details))
        except Exception as e:
            logger.warning(f"Progress callback failed: {e}")

    def _ocr_forwarder(self, on_progress: Optional[ProgressCallback]) -> Optional[Callable[[OCRProgress], None]]:
        if on_progress is None:
            return None

        def forward(update: OCRProgress) -> None:
            percent = 40 + int(20 * update.completed / max(update.total, 1))
            self._report(on_progress, ProcessingStage.OCR, percent, update.message, f"page {update.page_number}")

        return forward


# ==================== Module-level instance ====================

_parsing_service_instance: Optional[ParsingService] = None


def get_parsing_service() -> ParsingService:
    global _parsing_service_instance

    if _parsing_service_instance is None:
        _parsing_service_instance = ParsingService()

    return _parsing_service_instance
