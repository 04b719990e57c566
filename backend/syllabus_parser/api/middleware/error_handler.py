from starlette.middleware.base import BaseHTTPMiddleware
from fastapi import Request
from fastapi.responses import JSONResponse

from syllabus_parser.core.config import settings
from syllabus_parser.utils import get_logger

logger = get_logger("error-handler")


class ErrorMiddleware(BaseHTTPMiddleware):
    """Unhandled exceptions become a 500 JSON body instead of a bare error page."""

    async def dispatch(self, request: Request, call_next):
        try:
            response = await call_next(request)
            return response
        except Exception as e:
            logger.exception(f"Unhandled exception on {request.method} {request.url.path}")
            return JSONResponse(
                status_code=500,
                content={
                    "success": False,
                    "error": "Internal Server Error",
                    "detail": str(e) if settings.DEBUG else "An unexpected error occurred"
                }
            )
