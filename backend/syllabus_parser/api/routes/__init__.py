from fastapi import APIRouter
from syllabus_parser.api.routes import health, syllabus

api_router = APIRouter()
api_router.include_router(syllabus.router, prefix="/syllabus", tags=["syllabus"])


__all__ = ["api_router", "health"]
