"""
Pytest Configuration and Fixtures
==================================
Shared fixtures for the Syllabus Parser test suite. Every external engine
(Ollama, remote APIs, Tesseract) is faked.
"""
import asyncio
import io
import json
import textwrap
from typing import Dict, List, Union

import docx
import fitz  # PyMuPDF
import pytest

from syllabus_parser.core.exceptions import OCRPageFailed
from syllabus_parser.models.provider import (
    Capability, LLMProvider, ModelDescriptor, PerformanceTier
)
from syllabus_parser.services.provider_catalog import ProviderCatalog
from syllabus_parser.services.selection_orchestrator import SelectionOrchestrator
from syllabus_parser.services.structured_extraction import StructuredExtractionNormalizer
from syllabus_parser.utils.extractors.ocr_extractor import OCRExtractor, OCRPage


# =============================================================================
# SAMPLE DATA
# =============================================================================

SAMPLE_RECORD = {
    "courseInfo": {
        "title": "Introduction to Data Science",
        "instructor": "Dr. Ada Park",
        "credits": "3",
        "semester": "Fall",
        "year": "2024",
        "courseCode": "DS 101",
        "department": "Statistics",
    },
    "schedule": [
        {"day": "Monday", "time": "10:00", "location": "Room 204", "type": "lecture", "description": None},
    ],
    "assignments": [
        {"name": "Homework 1", "type": "homework", "dueDate": "2024-09-15", "weight": "10%"},
        {"name": "Midterm", "type": "exam", "dueDate": "2024-10-20", "weight": 30},
    ],
    "gradingPolicy": {
        "breakdown": {"Homework": 40, "Midterm": 30, "Final": 30},
        "scale": {"A": "90-100", "B": "80-89"},
        "policies": ["No extra credit"],
    },
    "readings": [],
    "policies": {
        "attendance": "Attendance is required",
        "late": None,
        "academic_integrity": None,
        "technology": None,
        "other": [],
    },
    "contacts": {
        "instructor": {
            "name": "Dr. Ada Park",
            "email": "ada.park@example.edu",
            "phone": None,
            "office": "Hall 3",
            "office_hours": "Tue 2-4pm",
        },
        "tas": [],
    },
}

SAMPLE_SYLLABUS_TEXT = """DS 101 Introduction to Data Science
Instructor: Dr. Ada Park (ada.park@example.edu)
Office hours: Tuesday 2-4pm
Schedule: Monday 10:00 in Room 204
Grading: Homework 40%, Midterm 30%, Final 30%
Attendance policy: attendance is required
"""


@pytest.fixture
def sample_record_json() -> str:
    return json.dumps(SAMPLE_RECORD)


@pytest.fixture
def sample_text() -> str:
    return SAMPLE_SYLLABUS_TEXT


# =============================================================================
# DOCUMENT BUILDERS
# =============================================================================

def build_pdf(pages: List[str]) -> bytes:
    """One PDF page per string, wrapped so no word falls off the page."""
    doc = fitz.open()
    for text in pages:
        page = doc.new_page()
        if text:
            page.insert_text((72, 72), "\n".join(textwrap.wrap(text, 60)), fontsize=11)
    data = doc.tobytes()
    doc.close()
    return data


def build_docx(paragraphs: List[str]) -> bytes:
    document = docx.Document()
    for paragraph in paragraphs:
        document.add_paragraph(paragraph)
    buffer = io.BytesIO()
    document.save(buffer)
    return buffer.getvalue()


@pytest.fixture
def make_pdf():
    return build_pdf


@pytest.fixture
def make_docx():
    return build_docx


# =============================================================================
# OCR FAKES
# =============================================================================

class FakeOCRExtractor(OCRExtractor):
    """Returns canned text per page instead of calling Tesseract."""

    def __init__(self, page_texts: Dict[int, Union[str, Exception]], confidence: float = 0.9):
        super().__init__(scale=2.0, lang="eng", max_workers=2)
        self.page_texts = page_texts
        self.confidence = confidence
        self.calls: List[int] = []

    def ocr_page(self, blob, file_format, page_number) -> OCRPage:
        self.calls.append(page_number)
        outcome = self.page_texts.get(page_number, "")
        if isinstance(outcome, Exception):
            raise OCRPageFailed(page_number, outcome)
        return OCRPage(page_number=page_number, text=outcome, confidence=self.confidence)


@pytest.fixture
def fake_ocr():
    return FakeOCRExtractor


# =============================================================================
# MODEL BACKEND FAKES
# =============================================================================

class FakeResponse:
    def __init__(self, content: str, total_tokens: int = None):
        self.content = content
        self.total_tokens = total_tokens


class FakeBackend:
    """
    Behaviour per call: a string is returned as content, an exception is
    raised, and a float sleeps that many seconds first (to force timeouts).
    """

    def __init__(self, behaviour):
        self.behaviour = behaviour

    async def agenerate(self, prompt, system_prompt=None):
        if isinstance(self.behaviour, float):
            await asyncio.sleep(self.behaviour)
            return FakeResponse("{}")
        if isinstance(self.behaviour, Exception):
            raise self.behaviour
        return FakeResponse(self.behaviour)


class FakeBackendFactory:
    """Builds FakeBackends by model id and records the order of calls."""

    def __init__(self, behaviours: Dict[str, object]):
        self.behaviours = behaviours
        self.calls: List[str] = []

    def __call__(self, descriptor, params):
        self.calls.append(descriptor.id)
        return FakeBackend(self.behaviours.get(descriptor.id, ConnectionError("not configured")))


def local_model(model_id: str, tier: PerformanceTier = PerformanceTier.HIGH,
                capability: Capability = Capability.GENERAL) -> ModelDescriptor:
    return ModelDescriptor(id=model_id, performance_tier=tier, capability=capability, provider=LLMProvider.OLLAMA)


def remote_model(model_id: str, provider: LLMProvider = LLMProvider.GROQ,
                 tier: PerformanceTier = PerformanceTier.HIGH) -> ModelDescriptor:
    return ModelDescriptor(id=model_id, performance_tier=tier, capability=Capability.GENERAL, provider=provider)


def static_probe(installed: List[str]):
    async def probe():
        return list(installed)
    return probe


def failing_probe(error: Exception = None):
    async def probe():
        raise error or ConnectionError("ollama unreachable")
    return probe


@pytest.fixture
def make_catalog():
    def _make(installed: List[str] = None, remote: List[ModelDescriptor] = None, probe=None) -> ProviderCatalog:
        return ProviderCatalog(
            base_url="http://ollama.test:11434",
            refresh_interval=30.0,
            discovery_timeout=1.0,
            probe=probe or static_probe(installed or []),
            remote_models=remote or [],
        )
    return _make


@pytest.fixture
def make_normalizer(make_catalog):
    """
    Normalizer whose only backend (llama3.1:8b) answers with `content`.
    """
    def _make(content, installed: List[str] = None) -> StructuredExtractionNormalizer:
        factory = FakeBackendFactory({"llama3.1:8b": content})
        orchestrator = SelectionOrchestrator(
            catalog=make_catalog(installed or ["llama3.1:8b"]),
            backend_factory=factory,
            attempt_timeout=1.0,
        )
        return StructuredExtractionNormalizer(orchestrator=orchestrator, deadline_seconds=5.0, preference_order=[])
    return _make
