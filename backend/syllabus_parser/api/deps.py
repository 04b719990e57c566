"""
API Dependencies - Shared dependencies for FastAPI routes.

Every service is injected through one of these functions so tests can swap
it with `app.dependency_overrides`.
"""
from fastapi import HTTPException, status

from syllabus_parser.core.config import settings
from syllabus_parser.services.parsing_service import ParsingService, get_parsing_service
from syllabus_parser.services.provider_catalog import ProviderCatalog, get_provider_catalog
from syllabus_parser.services.structured_extraction import StructuredExtractionNormalizer


# ==================== Services ====================

def get_parsing_service_dep() -> ParsingService:
    return get_parsing_service()


def get_provider_catalog_dep() -> ProviderCatalog:
    return get_provider_catalog()


def get_normalizer_dep() -> StructuredExtractionNormalizer:
    """
    Reuse the normalizer of the parsing service so sections and full parses
    select from the same catalog.
    """
    return get_parsing_service().normalizer


# ==================== Validation ====================

def validate_file_size(content_length: int) -> None:
    """
    Raises:
        HTTPException: 413 if the upload exceeds MAX_UPLOAD_SIZE
    """
    if content_length > settings.MAX_UPLOAD_SIZE:
        max_mb = settings.MAX_UPLOAD_SIZE / 1024 / 1024
        raise HTTPException(
            status_code=status.HTTP_413_REQUEST_ENTITY_TOO_LARGE,
            detail=f"File too large. Maximum size: {max_mb:.0f}MB"
        )
