"""
OCR Extractor - Re-reads low-yield pages with Tesseract.

Single responsibility: rasterize target pages, recognize them, and keep the
OCR text only when it beats the primary extraction.
"""
import asyncio
import io
from dataclasses import dataclass
from typing import Callable, Dict, List, Optional

import pytesseract
from pdf2image import convert_from_bytes
from PIL import Image

from syllabus_parser.core.config import settings
from syllabus_parser.core.exceptions import OCRPageFailed
from syllabus_parser.models.document import (
    DocumentBlob, DocumentFormat, ExtractedText, OCRProgress, SourceMethod
)
from syllabus_parser.utils.logger import get_logger

logger = get_logger(__name__)

ProgressCallback = Callable[[OCRProgress], None]


@dataclass
class OCRPage:
    page_number: int
    text: str
    confidence: Optional[float] = None


def merge_ocr_pages(primary: ExtractedText, ocr_pages: Dict[int, OCRPage]) -> ExtractedText:
    """
    Replace OCR'd pages in the primary extraction and keep whichever version
    has more characters. Ties keep the primary text.
    """
    if not ocr_pages:
        return primary

    primary_pages = primary.page_texts or ([primary.text] + [""] * (primary.page_count - 1))
    candidate = [
        ocr_pages[idx].text if idx in ocr_pages else text
        for idx, text in enumerate(primary_pages, start=1)
    ]

    candidate_total = sum(len(p.strip()) for p in candidate)
    if candidate_total <= primary.total_chars:
        logger.info(
            f"Keeping primary text ({primary.total_chars} chars >= OCR {candidate_total} chars)"
        )
        return primary

    confidences = [p.confidence for p in ocr_pages.values() if p.confidence is not None and p.text]
    confidence = sum(confidences) / len(confidences) if confidences else None
    method = SourceMethod.OCR if len(ocr_pages) >= len(primary_pages) else SourceMethod.MERGED

    logger.info(f"Using OCR text ({candidate_total} chars > primary {primary.total_chars} chars, {method.value})")
    return ExtractedText.from_pages(candidate, primary.format, source_method=method, confidence=confidence)


class OCRExtractor:
    """Extracts text from scanned pages and images using OCR."""

    def __init__(
            self,
            scale: float = None,
            lang: str = None,
            max_workers: int = None
    ):
        """
        Args:
            scale: Upscale factor over 72 dpi when rasterizing PDF pages
            lang: Tesseract language (default: English)
            max_workers: Pages recognized concurrently
        """
        self.scale = scale or settings.OCR_SCALE
        self.lang = lang or settings.OCR_LANG
        self.max_workers = max_workers or settings.OCR_MAX_WORKERS

    @property
    def dpi(self) -> int:
        return int(72 * self.scale)

    # ==================== Per-page work (runs in threads) ====================

    def load_page_image(self, blob: DocumentBlob, file_format: DocumentFormat, page_number: int) -> Image.Image:
        if file_format == DocumentFormat.IMAGE:
            image = Image.open(io.BytesIO(blob.data))
            image.load()
            return image

        images = convert_from_bytes(
            blob.data,
            dpi=self.dpi,
            first_page=page_number,
            last_page=page_number,
        )
        if not images:
            raise ValueError(f"Page {page_number} could not be rasterized")
        return images[0]

    def recognize(self, image: Image.Image) -> OCRPage:
        """
        Run Tesseract on one image. Confidence is the mean word confidence in [0, 1].
        """
        text = pytesseract.image_to_string(image, lang=self.lang)
        data = pytesseract.image_to_data(image, lang=self.lang, output_type=pytesseract.Output.DICT)

        confidences = []
        for raw in data.get("conf", []):
            try:
                value = float(raw)
            except (TypeError, ValueError):
                continue
            if value >= 0:
                confidences.append(value)

        avg_confidence = sum(confidences) / len(confidences) / 100.0 if confidences else 0.0
        return OCRPage(page_number=0, text=text.strip(), confidence=min(max(avg_confidence, 0.0), 1.0))

    def ocr_page(self, blob: DocumentBlob, file_format: DocumentFormat, page_number: int) -> OCRPage:
        """
        Raises:
            OCRPageFailed: rasterization or recognition failed
        """
        image = None
        try:
            image = self.load_page_image(blob, file_format, page_number)
            result = self.recognize(image)
            result.page_number = page_number
            logger.debug(
                f"OCR page {page_number}: confidence={result.confidence:.2f}, "
                f"text_length={len(result.text)}"
            )
            return result
        except Exception as e:
            raise OCRPageFailed(page_number, e) from e
        finally:
            if image is not None:
                image.close()

    # ==================== Orchestration ====================

    async def extract_pages(
            self,
            blob: DocumentBlob,
            file_format: DocumentFormat,
            target_pages: List[int],
            progress: Optional[ProgressCallback] = None,
    ) -> Dict[int, OCRPage]:
        """
        OCR the target pages concurrently. A failed page contributes "".
        Cancelling the caller cancels every pending page.
        """
        total = len(target_pages)
        semaphore = asyncio.Semaphore(self.max_workers)

        async def run_page(page_number: int) -> OCRPage:
            async with semaphore:
                try:
                    return await asyncio.to_thread(self.ocr_page, blob, file_format, page_number)
                except OCRPageFailed as e:
                    logger.warning(str(e))
                    return OCRPage(page_number=page_number, text="", confidence=None)

        tasks = [asyncio.create_task(run_page(p)) for p in target_pages]
        results: Dict[int, OCRPage] = {}
        try:
            for completed, next_done in enumerate(asyncio.as_completed(tasks), start=1):
                page = await next_done
                results[page.page_number] = page
                self._report(progress, OCRProgress(page_number=page.page_number, completed=completed, total=total))
        finally:
            for task in tasks:
                if not task.done():
                    task.cancel()

        return results

    async def run(
            self,
            blob: DocumentBlob,
            primary: ExtractedText,
            target_pages: List[int],
            progress: Optional[ProgressCallback] = None,
    ) -> ExtractedText:
        """
        OCR `target_pages` of the document and merge with the primary text.
        """
        logger.info(f"Running OCR on {len(target_pages)} page(s) of {blob.filename or '<memory>'}")
        ocr_pages = await self.extract_pages(blob, primary.format, target_pages, progress)
        return merge_ocr_pages(primary, ocr_pages)

    @staticmethod
    def _report(progress: Optional[ProgressCallback], update: OCRProgress) -> None:
        if progress is None:
            return
        try:
            progress(update)
        except Exception as e:
            logger.warning(f"Progress callback failed: {e}")
