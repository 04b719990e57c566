from typing import List

import httpx

from syllabus_parser.core.config import settings
from syllabus_parser.core.exceptions import UnsupportedFormat
from syllabus_parser.utils.extractors.format_detector import detect_format


def validate_upload(size: int, mime_type: str = "", filename: str = "") -> List[str]:
    """
    Check an upload before it enters the pipeline.

    Returns:
        List of validation errors (empty if valid)
    """
    errors = []

    if size == 0:
        errors.append("File is empty")

    if size > settings.MAX_UPLOAD_SIZE:
        max_mb = settings.MAX_UPLOAD_SIZE / 1024 / 1024
        errors.append(f"File too large. Maximum size: {max_mb:.0f}MB")

    try:
        detect_format(mime_type, filename)
    except UnsupportedFormat as e:
        errors.append(str(e))

    return errors


def validate_ollama_connection() -> bool:
    """
    Check if Ollama is running and accessible.

    Returns:
        bool: True if Ollama is accessible, False otherwise
    """
    try:
        response = httpx.get(f"{settings.OLLAMA_BASE_URL}/api/tags", timeout=settings.DISCOVERY_TIMEOUT)
        return response.status_code == 200
    except httpx.HTTPError:
        return False


def list_installed_models() -> List[str]:
    """
    Model names installed in Ollama, or [] when it is unreachable.
    """
    try:
        response = httpx.get(f"{settings.OLLAMA_BASE_URL}/api/tags", timeout=settings.DISCOVERY_TIMEOUT)
        if response.status_code == 200:
            return [m["name"] for m in response.json().get("models", [])]
        return []
    except httpx.HTTPError:
        return []


if __name__ == "__main__":
    """Test configuration loading."""
    print("=" * 60)
    print("SYLLABUS PARSER - Configuration Test")
    print("=" * 60)

    errors = settings.validate_required_settings()
    if errors:
        print("\nConfiguration Errors:")
        for error in errors:
            print(f"   - {error}")
        print("\nPlease check your .env file")
        exit(1)

    print(f"\nApplication:")
    print(f"   Name: {settings.APP_NAME}")
    print(f"   Version: {settings.APP_VERSION}")
    print(f"   Debug: {settings.DEBUG}")

    print(f"\nModel Providers:")
    print(f"   Ollama URL: {settings.OLLAMA_BASE_URL}")
    print(f"   Groq: {'configured' if settings.GROQ_API_KEY else 'not configured'}")
    print(f"   Gemini: {'configured' if settings.GEMINI_API_KEY else 'not configured'}")
    print(f"   Selection deadline: {settings.SELECTION_DEADLINE}s")

    print(f"\nDocument Processing:")
    print(f"   Max upload: {settings.MAX_UPLOAD_SIZE / 1024 / 1024:.0f}MB")
    print(f"   Yield thresholds: page={settings.PAGE_YIELD_THRESHOLD}, document={settings.DOCUMENT_YIELD_THRESHOLD}")
    print(f"   OCR scale: {settings.OCR_SCALE}")

    print(f"\nValidating Ollama Connection...")
    if validate_ollama_connection():
        print("   Ollama is running")
        print(f"   Installed models: {', '.join(list_installed_models()) or 'none'}")
    else:
        print("   Ollama is not reachable; remote providers or the fallback list will be used")
