"""
Tests for Configuration, Upload Validation and Backend Construction
====================================================================
"""
import pytest
from langchain_ollama import ChatOllama

from conftest import local_model, remote_model
from syllabus_parser.core.config import Settings, get_settings, settings
from syllabus_parser.models.provider import PerformanceTier, TIER_PARAMETERS
from syllabus_parser.services.llm_service import LLMService
from syllabus_parser.validation.validators import validate_upload


class TestSettings:

    def test_defaults(self):
        assert settings.MAX_UPLOAD_SIZE == 10 * 1024 * 1024
        assert settings.PAGE_YIELD_THRESHOLD < settings.DOCUMENT_YIELD_THRESHOLD
        assert 0.0 <= settings.REVIEW_THRESHOLD <= 1.0
        assert settings.TRAINING_SAMPLES_DIR == settings.DATA_DIR / "training_samples"

    def test_dependency_returns_shared_instance(self):
        assert get_settings() is settings

    def test_environment_override(self, monkeypatch):
        monkeypatch.setenv("SELECTION_DEADLINE", "12.5")
        monkeypatch.setenv("MODEL_PREFERENCE", '["gemma2:2b"]')

        overridden = Settings()

        assert overridden.SELECTION_DEADLINE == 12.5
        assert overridden.MODEL_PREFERENCE == ["gemma2:2b"]

    def test_invalid_settings_reported(self):
        broken = Settings(REVIEW_THRESHOLD=1.5, PAGE_YIELD_THRESHOLD=500, DOCUMENT_YIELD_THRESHOLD=100)

        errors = broken.validate_required_settings()

        assert any("REVIEW_THRESHOLD" in e for e in errors)
        assert any("PAGE_YIELD_THRESHOLD" in e for e in errors)


class TestValidateUpload:

    def test_valid(self):
        assert validate_upload(1024, "application/pdf", "s.pdf") == []

    def test_empty_and_unsupported(self):
        errors = validate_upload(0, "application/zip", "s.zip")

        assert len(errors) == 2

    def test_too_large(self):
        errors = validate_upload(settings.MAX_UPLOAD_SIZE + 1, "text/plain", "s.txt")

        assert errors == ["File too large. Maximum size: 10MB"]


class TestLLMService:

    def test_ollama_uses_tier_parameters(self):
        service = LLMService(local_model("gemma2:2b", tier=PerformanceTier.MEDIUM))

        params = TIER_PARAMETERS[PerformanceTier.MEDIUM]
        assert isinstance(service.llm, ChatOllama)
        assert service.llm.num_ctx == params.num_ctx
        assert service.llm.temperature == params.temperature

    def test_remote_without_key_fails(self, monkeypatch):
        monkeypatch.setattr(settings, "GROQ_API_KEY", None)

        with pytest.raises(ValueError, match="API key"):
            LLMService(remote_model("llama-3.1-8b-instant"))
