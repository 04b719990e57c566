"""
Syllabus Routes.

Upload a syllabus for full parsing, or re-extract a single section from text.
"""
from typing import Any

from fastapi import APIRouter, Depends, File, HTTPException, UploadFile, status
from fastapi import Path as FastAPIPath
from fastapi.responses import JSONResponse
from pydantic import BaseModel, Field

from syllabus_parser.api.deps import (
    get_normalizer_dep, get_parsing_service_dep, validate_file_size
)
from syllabus_parser.core.config import settings
from syllabus_parser.core.exceptions import AllProvidersExhausted
from syllabus_parser.models.document import DocumentBlob
from syllabus_parser.services.parsing_service import ParsingService
from syllabus_parser.services.structured_extraction import SECTIONS, StructuredExtractionNormalizer
from syllabus_parser.utils.logger import get_logger

logger = get_logger(__name__)

router = APIRouter()


# ==================== Parse Document ====================

@router.post("/parse")
async def parse_syllabus(
        file: UploadFile = File(..., description="Syllabus (PDF, DOCX, TXT or image)"),
        service: ParsingService = Depends(get_parsing_service_dep)
):
    """
    Parse an uploaded syllabus into a structured record.

    Returns:
        ParsingResult. Unsupported, unreadable documents and provider
        outages come back with success=false and errors.

    Raises:
        413: File too large
    """
    logger.info(f"Received upload: {file.filename} ({file.content_type})")

    # Read one byte past the limit so oversize files are detected without reading them whole
    data = await file.read(settings.MAX_UPLOAD_SIZE + 1)
    validate_file_size(len(data))

    blob = DocumentBlob(
        data=data,
        mime_type=file.content_type or "",
        filename=file.filename or "",
    )
    result = await service.parse(blob)
    return JSONResponse(content=result.to_response())


# ==================== Targeted Section Extraction ====================

class SectionRequest(BaseModel):
    text: str = Field(..., min_length=1, description="Syllabus text to extract from")


def _to_jsonable(value: Any) -> Any:
    if value is None:
        return None
    if isinstance(value, list):
        return [item.model_dump(by_alias=True, mode="json") for item in value]
    return value.model_dump(by_alias=True, mode="json")


@router.post("/sections/{section}")
async def extract_section(
        request: SectionRequest,
        section: str = FastAPIPath(..., description=f"One of: {', '.join(SECTIONS)}"),
        normalizer: StructuredExtractionNormalizer = Depends(get_normalizer_dep)
):
    """
    Re-extract one section (assignments, schedule, grading, readings).

    Raises:
        404: Unknown section
        503: No model backend answered
    """
    if section not in SECTIONS:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail=f"Unknown section '{section}'. Expected one of: {', '.join(SECTIONS)}"
        )

    try:
        data = await normalizer.extract_section(request.text, section)
    except AllProvidersExhausted as e:
        logger.error(f"Section extraction failed: {e}")
        raise HTTPException(status_code=status.HTTP_503_SERVICE_UNAVAILABLE, detail=str(e))

    return {
        "section": section,
        "success": data is not None,
        "data": _to_jsonable(data),
    }
