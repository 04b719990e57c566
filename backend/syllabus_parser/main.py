"""
Syllabus Parser API.

Wires middleware, routers and the provider catalog refresher into one
FastAPI app. Run directly for a development server.
"""
from contextlib import asynccontextmanager

import dotenv
from fastapi import FastAPI

from syllabus_parser.api.middleware.cors import setup_cors
from syllabus_parser.api.middleware.error_handler import ErrorMiddleware
from syllabus_parser.api.routes import api_router, health
from syllabus_parser.core.config import settings
from syllabus_parser.services.provider_catalog import get_provider_catalog
from syllabus_parser.utils import get_logger

dotenv.load_dotenv()

logger = get_logger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Start the catalog refresher on startup, stop it on shutdown."""
    mode = "development" if settings.DEBUG else "production"
    logger.info(f"{settings.APP_NAME} {settings.APP_VERSION} starting ({mode})")

    for problem in settings.validate_required_settings():
        logger.warning(f"Configuration: {problem}")

    # The first discovery happens inside the refresher task
    catalog = get_provider_catalog()
    catalog.start()
    logger.info(f"Listening on http://{settings.HOST}:{settings.PORT}")

    yield

    await catalog.stop()
    logger.info(f"{settings.APP_NAME} stopped")


app = FastAPI(
    title=settings.APP_NAME,
    description="Turns uploaded course syllabi into structured, scored records",
    version=settings.APP_VERSION,
    debug=settings.DEBUG,
    lifespan=lifespan,
)

app.add_middleware(ErrorMiddleware)
setup_cors(app)

# Health is served both at the root and under the versioned prefix
api_router.include_router(health.router, tags=["health"])
app.include_router(api_router, prefix=settings.API_V1_PREFIX)
app.include_router(health.router, tags=["health"])


@app.get("/")
async def root():
    return {
        "name": settings.APP_NAME,
        "version": settings.APP_VERSION,
        "status": "running",
        "endpoints": {
            "parse": f"{settings.API_V1_PREFIX}/syllabus/parse",
            "sections": f"{settings.API_V1_PREFIX}/syllabus/sections/{{section}}",
            "health": "/health",
            "docs": "/docs",
        },
    }


if __name__ == "__main__":
    import uvicorn

    try:
        uvicorn.run(
            "syllabus_parser.main:app",
            host=settings.HOST,
            port=settings.PORT,
            reload=settings.DEBUG,
            log_level=settings.LOG_LEVEL.lower(),
        )
    except KeyboardInterrupt:
        logger.info("Interrupted, exiting")
