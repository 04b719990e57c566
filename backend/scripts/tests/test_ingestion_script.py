"""
Tests for the Batch Parsing Runner
===================================
"""
import asyncio
import json
from unittest.mock import AsyncMock, MagicMock

import pytest

import ingestion_script
from syllabus_parser.services.parsing_service import ParsingService


@pytest.fixture
def patched_runner(monkeypatch, make_catalog, make_normalizer, sample_record_json):
    catalog = make_catalog(["llama3.1:8b"])
    normalizer = make_normalizer(sample_record_json)

    monkeypatch.setattr(ingestion_script, "get_provider_catalog", lambda: catalog)
    monkeypatch.setattr(
        ingestion_script,
        "ParsingService",
        lambda: ParsingService(
            ocr_extractor=MagicMock(run=AsyncMock()),
            normalizer=normalizer,
            sample_sink=MagicMock(),
        ),
    )


class TestParseFolder:

    def test_sorts_results_into_parsed_and_failed(self, patched_runner, tmp_path, sample_text):
        source = tmp_path / "raw"
        source.mkdir()
        (source / "good.txt").write_text(sample_text, encoding="utf-8")
        (source / "bad.pdf").write_bytes(b"not a pdf")
        (source / "notes.zip").write_bytes(b"PK\x03\x04")

        failures = asyncio.run(ingestion_script.parse_folder(source, tmp_path / "out"))

        assert failures == 1
        parsed = json.loads((tmp_path / "out" / "parsed" / "good.json").read_text(encoding="utf-8"))
        assert parsed["success"] is True
        assert parsed["data"]["courseInfo"]["courseCode"] == "DS 101"
        assert (tmp_path / "out" / "failed" / "bad.json").exists()
        assert not (tmp_path / "out" / "failed" / "notes.json").exists()

    def test_missing_source_directory(self, patched_runner, tmp_path):
        failures = asyncio.run(ingestion_script.parse_folder(tmp_path / "missing", tmp_path / "out"))

        assert failures == 0
        assert (tmp_path / "out" / "parsed").is_dir()
