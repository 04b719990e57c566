"""
Structured Extraction - Turns document text into a ParsedRecord.

Model output is untrusted. Parsing:
1. Strip markdown code fences
2. Take the first '{' through the last '}'
3. json.loads, then lenient validation into ParsedRecord

Any failure degrades to the all-null skeleton; it never raises. Only a
run with no answering provider is fatal (AllProvidersExhausted).
"""
import json
import re
from dataclasses import dataclass, field
from typing import Any, List, Optional, Union

from pydantic import ValidationError

from syllabus_parser.core.config import settings
from syllabus_parser.core.exceptions import AllProvidersExhausted, SchemaParseFailure
from syllabus_parser.models.provider import (
    Capability, ExhaustedFallback, ProviderAttempt, SelectionRequest
)
from syllabus_parser.models.syllabus import (
    Assignment, GradingPolicy, ParsedRecord, Reading, ScheduleItem
)
from syllabus_parser.services.selection_orchestrator import SelectionOrchestrator
from syllabus_parser.utils.logger import get_logger
from syllabus_parser.utils.prompts import (
    SECTION_INSTRUCTIONS, SYSTEM_PROMPT, section_extraction_prompt,
    syllabus_extraction_prompt, truncate_text
)

logger = get_logger(__name__)

_FENCE_RE = re.compile(r"```[a-zA-Z]*\s*(.*?)\s*```", re.DOTALL)

SECTION_MODELS = {
    "assignments": Assignment,
    "schedule": ScheduleItem,
    "readings": Reading,
}
SECTIONS = tuple(SECTION_INSTRUCTIONS)


# ==================== Parsing (pure) ====================

def strip_code_fences(content: str) -> str:
    match = _FENCE_RE.search(content)
    return match.group(1) if match else content.strip()


def load_json_payload(content: str, opener: str = "{", closer: str = "}") -> Any:
    """
    Raises:
        SchemaParseFailure: no parseable JSON between `opener` and `closer`
    """
    cleaned = strip_code_fences(content or "")
    start = cleaned.find(opener)
    end = cleaned.rfind(closer)
    if start == -1 or end <= start:
        raise SchemaParseFailure("No JSON found in model output")

    try:
        return json.loads(cleaned[start:end + 1])
    except (ValueError, RecursionError) as e:
        # ValueError covers JSONDecodeError and over-long integer literals
        raise SchemaParseFailure(f"Invalid JSON in model output: {e}") from e


def parse_record(content: str) -> ParsedRecord:
    """
    Raises:
        SchemaParseFailure: output is not a JSON object matching the schema
    """
    data = load_json_payload(content)
    if not isinstance(data, dict):
        raise SchemaParseFailure("Model output is not a JSON object")

    try:
        return ParsedRecord.model_validate(data)
    except ValidationError as e:
        raise SchemaParseFailure(f"Model output does not match schema: {e.error_count()} error(s)") from e
    except (ValueError, OverflowError) as e:
        raise SchemaParseFailure(f"Model output has unusable values: {e}") from e


def parse_model_output(content: str) -> ParsedRecord:
    """Never raises: unparseable output becomes the null skeleton."""
    try:
        return parse_record(content)
    except SchemaParseFailure as e:
        logger.warning(f"{e}; using empty record")
        return ParsedRecord()


def parse_section(content: str, section: str) -> Union[List[Any], GradingPolicy, None]:
    """
    Parse a targeted extraction. List sections accept a bare array, an
    object wrapping the array under the section name, or a single item.
    """
    if section == "grading":
        try:
            data = load_json_payload(content)
        except SchemaParseFailure as e:
            logger.warning(f"grading: {e}")
            return None
        if isinstance(data, dict):
            data = data.get("gradingPolicy", data)
        return GradingPolicy.model_validate(data) if isinstance(data, dict) else None

    model = SECTION_MODELS[section]
    for opener, closer in (("[", "]"), ("{", "}")):
        try:
            data = load_json_payload(content, opener, closer)
        except SchemaParseFailure:
            continue
        if isinstance(data, dict):
            data = data.get(section, [data])
        if isinstance(data, list):
            return [model.model_validate(item) for item in data if isinstance(item, dict)]

    logger.warning(f"{section}: no parseable JSON in model output")
    return None


# ==================== Normalizer ====================

@dataclass
class NormalizationOutcome:
    record: ParsedRecord
    parsed_ok: bool
    model_id: Optional[str] = None
    attempts: List[ProviderAttempt] = field(default_factory=list)


class StructuredExtractionNormalizer:
    """Drives the orchestrator and validates what comes back."""

    def __init__(
            self,
            orchestrator: Optional[SelectionOrchestrator] = None,
            max_prompt_chars: int = None,
            deadline_seconds: float = None,
            preference_order: Optional[List[str]] = None,
    ):
        self.orchestrator = orchestrator or SelectionOrchestrator()
        self.max_prompt_chars = max_prompt_chars or settings.MAX_PROMPT_CHARS
        self.deadline_seconds = deadline_seconds or settings.SELECTION_DEADLINE
        self.preference_order = list(settings.MODEL_PREFERENCE if preference_order is None else preference_order)

    def _request(self) -> SelectionRequest:
        return SelectionRequest(
            capability=Capability.GENERAL,
            deadline_seconds=self.deadline_seconds,
            preference_order=self.preference_order,
        )

    async def _complete(self, prompt: str):
        result = await self.orchestrator.select(self._request(), prompt, SYSTEM_PROMPT)
        if isinstance(result, ExhaustedFallback):
            raise AllProvidersExhausted(result.capability, result.attempts)
        return result

    async def normalize(self, text: str) -> NormalizationOutcome:
        """
        Raises:
            AllProvidersExhausted: no backend answered
        """
        prompt = syllabus_extraction_prompt(truncate_text(text, self.max_prompt_chars))
        result = await self._complete(prompt)

        try:
            record = parse_record(result.content)
            parsed_ok = True
        except SchemaParseFailure as e:
            logger.warning(f"Output of {result.model_id} unusable ({e}); using empty record")
            record = ParsedRecord()
            parsed_ok = False

        return NormalizationOutcome(
            record=record,
            parsed_ok=parsed_ok,
            model_id=result.model_id,
            attempts=result.attempts,
        )

    async def extract_section(self, text: str, section: str) -> Union[List[Any], GradingPolicy, None]:
        """
        Targeted re-extraction of one section.

        Raises:
            ValueError: unknown section
            AllProvidersExhausted: no backend answered
        """
        if section not in SECTION_INSTRUCTIONS:
            raise ValueError(f"Unknown section '{section}'. Expected one of: {', '.join(SECTIONS)}")

        prompt = section_extraction_prompt(truncate_text(text, self.max_prompt_chars), section)
        result = await self._complete(prompt)
        return parse_section(result.content, section)
