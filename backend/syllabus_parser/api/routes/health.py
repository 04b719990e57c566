from fastapi import APIRouter, Depends
from fastapi.responses import JSONResponse

from syllabus_parser.api.deps import get_provider_catalog_dep
from syllabus_parser.core.config import settings
from syllabus_parser.services.provider_catalog import ProviderCatalog
from syllabus_parser.utils.logger import get_logger

router = APIRouter()
logger = get_logger(__name__)


@router.get("/health")
async def health_check(catalog: ProviderCatalog = Depends(get_provider_catalog_dep)):
    """Health check endpoint."""
    logger.info("Checking system health...")

    info = catalog.info()
    health_status = {
        "status": "healthy",
        "version": settings.APP_VERSION,
        "services": {"providers": info},
    }

    if info["count"] == 0:
        logger.warning("No model providers available")
        health_status["status"] = "unavailable"
    elif info["stale"] or not info["discovery_ok"]:
        logger.warning("Provider catalog is stale or discovery failed")
        health_status["status"] = "degraded"

    status_code = 503 if health_status["status"] == "unavailable" else 200
    logger.info(f"Health check responded: {status_code}")
    return JSONResponse(content=health_status, status_code=status_code)
