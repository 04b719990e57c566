"""
Tests for the Parsing Pipeline
===============================
End to end through ParsingService with faked OCR and model backends.
"""
import asyncio
from unittest.mock import AsyncMock, MagicMock

import pytest

from syllabus_parser.models.document import DocumentBlob, ProcessingStage
from syllabus_parser.services.parsing_service import ParsingService
from syllabus_parser.services.training_sample import JsonlTrainingSampleSink


class RecordingSink:
    def __init__(self, fail: bool = False):
        self.samples = []
        self.fail = fail

    def write(self, sample):
        if self.fail:
            raise OSError("disk full")
        self.samples.append(sample)


@pytest.fixture
def make_service(make_normalizer, sample_record_json):
    def _make(content=None, ocr=None, sink=None, max_upload_size=1024 * 1024) -> ParsingService:
        return ParsingService(
            ocr_extractor=ocr or MagicMock(run=AsyncMock()),
            normalizer=make_normalizer(content if content is not None else sample_record_json),
            sample_sink=sink or RecordingSink(),
            max_upload_size=max_upload_size,
        )
    return _make


def text_blob(text: str, filename: str = "syllabus.txt", mime_type: str = "text/plain") -> DocumentBlob:
    return DocumentBlob(data=text.encode("utf-8"), mime_type=mime_type, filename=filename)


class TestParsingService:

    def test_plain_text_success(self, make_service, sample_text):
        service = make_service()

        result = asyncio.run(service.parse(text_blob(sample_text)))

        assert result.success
        assert result.errors is None
        assert result.data.course_info.title == "Introduction to Data Science"
        assert result.data.metadata.source == "syllabus.txt"
        assert result.confidence == result.data.confidence
        assert not result.requires_review

    def test_response_uses_schema_keys(self, make_service, sample_text):
        result = asyncio.run(make_service().parse(text_blob(sample_text)))

        response = result.to_response()

        assert response["requiresReview"] is False
        assert set(response["data"]) >= {
            "courseInfo", "schedule", "assignments", "gradingPolicy", "readings", "policies", "contacts",
            "confidence", "requiresReview", "extractedFields", "missingFields", "metadata",
        }

    def test_text_rich_pdf_never_runs_ocr(self, make_service, make_pdf):
        ocr = MagicMock(run=AsyncMock())
        pages = ["Course policies and grading are described in detail on this page of the syllabus."] * 3
        blob = DocumentBlob(data=make_pdf(pages), mime_type="application/pdf", filename="s.pdf")

        result = asyncio.run(make_service(ocr=ocr).parse(blob))

        assert result.success
        ocr.run.assert_not_called()

    def test_scanned_pdf_uses_ocr(self, make_service, make_pdf, fake_ocr):
        ocr = fake_ocr({1: "Scanned syllabus: Introduction to Data Science, Dr. Ada Park, Fall 2024"})
        blob = DocumentBlob(data=make_pdf([""]), mime_type="application/pdf", filename="scan.pdf")

        result = asyncio.run(make_service(ocr=ocr).parse(blob))

        assert result.success
        assert ocr.calls == [1]
        assert any("OCR" in w for w in result.warnings)

    def test_nothing_readable_fails(self, make_service, make_pdf, fake_ocr):
        blob = DocumentBlob(data=make_pdf([""]), mime_type="application/pdf", filename="blank.pdf")

        result = asyncio.run(make_service(ocr=fake_ocr({})).parse(blob))

        assert not result.success
        assert "No text" in result.errors[0]

    def test_unsupported_format(self, make_service):
        blob = DocumentBlob(data=b"PK...", mime_type="application/zip", filename="notes.zip")

        result = asyncio.run(make_service().parse(blob))

        assert not result.success
        assert result.data is None
        assert "Unsupported file type" in result.errors[0]

    def test_too_large(self, make_service):
        result = asyncio.run(make_service(max_upload_size=10).parse(text_blob("x" * 11)))

        assert not result.success
        assert "too large" in result.errors[0]

    def test_corrupt_document_lists_alternatives(self, make_service):
        blob = DocumentBlob(data=b"not a pdf", mime_type="application/pdf", filename="bad.pdf")

        result = asyncio.run(make_service().parse(blob))

        assert not result.success
        assert len(result.errors) > 1

    def test_providers_exhausted(self, make_service, sample_text):
        result = asyncio.run(make_service(content=ConnectionError("refused")).parse(text_blob(sample_text)))

        assert not result.success
        assert "All model providers failed" in result.errors[0]

    def test_parse_failure_degrades(self, make_service, sample_text):
        result = asyncio.run(make_service(content="not json").parse(text_blob(sample_text)))

        assert result.success
        assert result.confidence == 0.0
        assert result.requires_review
        assert result.data.extracted_fields == []
        assert "Course title not found" in result.warnings

    def test_training_sample_written_redacted(self, make_service, sample_text):
        sink = RecordingSink()

        asyncio.run(make_service(sink=sink).parse(text_blob(sample_text)))

        assert len(sink.samples) == 1
        assert "ada.park@example.edu" not in sink.samples[0].model_dump_json()

    def test_sink_failure_does_not_fail_parse(self, make_service, sample_text):
        result = asyncio.run(make_service(sink=RecordingSink(fail=True)).parse(text_blob(sample_text)))

        assert result.success

    def test_jsonl_sink(self, make_service, sample_text, tmp_path):
        path = tmp_path / "samples.jsonl"

        asyncio.run(make_service(sink=JsonlTrainingSampleSink(path)).parse(text_blob(sample_text)))

        assert path.exists()

    def test_progress_stages(self, make_service, sample_text):
        updates = []

        asyncio.run(make_service().parse(text_blob(sample_text), on_progress=updates.append))

        stages = [u.stage for u in updates]
        assert stages[0] == ProcessingStage.UPLOADING
        assert stages[-1] == ProcessingStage.COMPLETE
        assert ProcessingStage.OCR not in stages
        assert [u.progress for u in updates] == sorted(u.progress for u in updates)
