"""
Tests for the HTTP API
=======================
Routes exercised through FastAPI's TestClient with injected services.
The lifespan (background catalog refresher) is not started.
"""
import asyncio
from unittest.mock import AsyncMock, MagicMock

import pytest
from fastapi.testclient import TestClient

from syllabus_parser.api.deps import (
    get_normalizer_dep, get_parsing_service_dep, get_provider_catalog_dep
)
from syllabus_parser.core.config import settings
from syllabus_parser.main import app
from syllabus_parser.services.parsing_service import ParsingService


@pytest.fixture
def client(make_normalizer, make_catalog, sample_record_json):
    state = {
        "normalizer": make_normalizer(sample_record_json),
        "catalog": make_catalog(["llama3.1:8b"]),
    }

    def parsing_service():
        return ParsingService(
            ocr_extractor=MagicMock(run=AsyncMock()),
            normalizer=state["normalizer"],
            sample_sink=MagicMock(),
        )

    app.dependency_overrides[get_parsing_service_dep] = parsing_service
    app.dependency_overrides[get_normalizer_dep] = lambda: state["normalizer"]
    app.dependency_overrides[get_provider_catalog_dep] = lambda: state["catalog"]

    test_client = TestClient(app)
    test_client.fakes = state
    yield test_client

    app.dependency_overrides.clear()


class TestRoot:

    def test_root(self, client):
        response = client.get("/")

        assert response.status_code == 200
        assert response.json()["name"] == settings.APP_NAME


class TestHealth:

    def test_empty_catalog_is_unavailable(self, client):
        response = client.get("/health")

        assert response.status_code == 503
        assert response.json()["status"] == "unavailable"

    @pytest.mark.parametrize("path", ["/health", f"{settings.API_V1_PREFIX}/health"])
    def test_refreshed_catalog_is_healthy(self, client, path):
        asyncio.run(client.fakes["catalog"].refresh())

        response = client.get(path)

        assert response.status_code == 200
        body = response.json()
        assert body["status"] == "healthy"
        assert body["services"]["providers"]["models"] == ["llama3.1:8b"]


class TestParseRoute:

    url = f"{settings.API_V1_PREFIX}/syllabus/parse"

    def test_parse_text_upload(self, client, sample_text):
        response = client.post(self.url, files={"file": ("syllabus.txt", sample_text.encode(), "text/plain")})

        assert response.status_code == 200
        body = response.json()
        assert body["success"] is True
        assert body["data"]["courseInfo"]["courseCode"] == "DS 101"
        assert body["data"]["metadata"]["format"] == "txt"

    def test_unsupported_upload(self, client):
        response = client.post(self.url, files={"file": ("notes.zip", b"PK\x03\x04", "application/zip")})

        assert response.status_code == 200
        assert response.json()["success"] is False

    def test_too_large_upload(self, client, monkeypatch):
        monkeypatch.setattr(settings, "MAX_UPLOAD_SIZE", 100)

        response = client.post(self.url, files={"file": ("big.txt", b"x" * 101, "text/plain")})

        assert response.status_code == 413


class TestSectionRoute:

    def url(self, section: str) -> str:
        return f"{settings.API_V1_PREFIX}/syllabus/sections/{section}"

    def test_section(self, client, make_normalizer):
        client.fakes["normalizer"] = make_normalizer('[{"name": "Lab report", "dueDate": "2024-11-01"}]')

        response = client.post(self.url("assignments"), json={"text": "Lab report due Nov 1"})

        assert response.status_code == 200
        body = response.json()
        assert body["success"] is True
        assert body["data"][0]["dueDate"] == "2024-11-01"

    def test_unknown_section(self, client):
        response = client.post(self.url("weather"), json={"text": "sunny"})

        assert response.status_code == 404

    def test_empty_text_rejected(self, client):
        response = client.post(self.url("schedule"), json={"text": ""})

        assert response.status_code == 422

    def test_no_provider(self, client, make_normalizer):
        client.fakes["normalizer"] = make_normalizer(ConnectionError("refused"))

        response = client.post(self.url("grading"), json={"text": "Final exam 40%"})

        assert response.status_code == 503
