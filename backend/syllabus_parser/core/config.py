"""
Syllabus Parser settings.

Every tunable lives on `Settings`; values come from the environment or `.env`.
"""
from functools import lru_cache
from pathlib import Path
from typing import Optional

from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Environment-backed settings. Names are case sensitive."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=True,
        extra="ignore"
    )

    APP_NAME: str = "Syllabus Parser"
    APP_VERSION: str = "1.0.0"
    API_V1_PREFIX: str = "/api/v1"

    # ==================== Server ====================
    DEBUG: bool = True
    HOST: str = "127.0.0.1"
    PORT: int = 8000
    LOG_LEVEL: str = "INFO"

    CORS_ORIGINS: list[str] = [
        "http://localhost:3000",
        "http://localhost:5173",
        "http://127.0.0.1:3000",
        "http://127.0.0.1:5173",
    ]

    # ==================== Storage & Uploads ====================
    DATA_DIR: Path = Path("data")

    @property
    def TRAINING_SAMPLES_DIR(self) -> Path:
        return self.DATA_DIR / "training_samples"

    MAX_UPLOAD_SIZE: int = 10485760  # 10MB in bytes

    # ==================== Model Providers ====================
    # Local Ollama daemon, probed for installed models
    OLLAMA_BASE_URL: str = "http://localhost:11434"

    # Remote providers are only listed when their key is set
    GROQ_API_KEY: Optional[str] = None
    GROQ_MODEL: str = "llama-3.1-8b-instant"
    GEMINI_API_KEY: Optional[str] = None
    GEMINI_MODEL: str = "gemini-1.5-flash"

    # Explicit model ids tried before discovery order within a tier
    MODEL_PREFERENCE: list[str] = []

    # ==================== Provider Catalog & Selection ====================
    CATALOG_REFRESH_INTERVAL: float = 30.0  # seconds
    DISCOVERY_TIMEOUT: float = 5.0
    SELECTION_DEADLINE: float = 60.0
    PROVIDER_ATTEMPT_TIMEOUT: float = 20.0

    # ==================== Text Yield & OCR ====================
    PAGE_YIELD_THRESHOLD: int = 50
    DOCUMENT_YIELD_THRESHOLD: int = 100

    OCR_SCALE: float = 2.0  # rasterization upscale over 72 dpi
    OCR_LANG: str = "eng"
    OCR_MAX_WORKERS: int = 4

    # ==================== Structured Extraction ====================
    REVIEW_THRESHOLD: float = 0.5
    MAX_PROMPT_CHARS: int = 24000

    SAVE_TRAINING_SAMPLES: bool = False

    # ==================== Logging ====================
    LOG_FORMAT: str = "%(asctime)s - %(name)s - [%(levelname)s] - %(message)s"

    def validate_required_settings(self) -> list[str]:
        """Problems that would leave the service unusable or misbehaving."""
        errors = []

        if not self.OLLAMA_BASE_URL and not (self.GROQ_API_KEY or self.GEMINI_API_KEY):
            errors.append("Either OLLAMA_BASE_URL or a remote provider key (GROQ_API_KEY, GEMINI_API_KEY) is required")

        if self.PROVIDER_ATTEMPT_TIMEOUT <= 0:
            errors.append("PROVIDER_ATTEMPT_TIMEOUT must be positive")

        if not 0.0 <= self.REVIEW_THRESHOLD <= 1.0:
            errors.append("REVIEW_THRESHOLD must be between 0 and 1")

        if self.PAGE_YIELD_THRESHOLD > self.DOCUMENT_YIELD_THRESHOLD:
            errors.append("PAGE_YIELD_THRESHOLD should not exceed DOCUMENT_YIELD_THRESHOLD")

        return errors


settings = Settings()


@lru_cache()
def get_settings() -> Settings:
    """For `Depends(get_settings)` in routes."""
    return settings
