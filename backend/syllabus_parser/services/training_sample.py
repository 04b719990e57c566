"""
Training Sample Builder - Compact, redacted (record, source text) pairs.

Samples are only persisted when SAVE_TRAINING_SAMPLES is on. Writing one
is best effort and never fails a parse.
"""
import json
from pathlib import Path
from typing import List, Optional, Protocol

from syllabus_parser.core.config import settings
from syllabus_parser.models.syllabus import ParsedRecord, RECORD_GROUPS
from syllabus_parser.models.training import (
    MAX_KEYWORD_SAMPLES, MAX_PREVIEW_LINES, SourceSnippets, TrainingSample
)
from syllabus_parser.utils.logger import get_logger

logger = get_logger(__name__)

SNIPPET_KEYWORDS = ("assignment", "exam", "grade", "policy", "office", "hours", "reading", "week", "schedule")


def extract_source_snippets(text: str) -> SourceSnippets:
    lines = (text or "").splitlines()

    hits: List[str] = []
    for line in lines:
        stripped = line.strip()
        if not stripped:
            continue
        lowered = stripped.lower()
        if any(keyword in lowered for keyword in SNIPPET_KEYWORDS):
            hits.append(stripped)
            if len(hits) >= MAX_KEYWORD_SAMPLES:
                break

    return SourceSnippets(
        preview=lines[:MAX_PREVIEW_LINES],
        keywordSamples=hits,
    )


def build_training_sample(record: ParsedRecord, raw_text: str) -> TrainingSample:
    data = record.to_json_dict()
    return TrainingSample(
        fields={group: data.get(group) for group in RECORD_GROUPS},
        snippets=extract_source_snippets(raw_text),
    )


# ==================== Sinks ====================

class TrainingSampleSink(Protocol):
    def write(self, sample: TrainingSample) -> None:
        ...


class JsonlTrainingSampleSink:
    """Appends one JSON object per line."""

    def __init__(self, path: Path = None):
        self.path = Path(path) if path else settings.TRAINING_SAMPLES_DIR / "samples.jsonl"

    def write(self, sample: TrainingSample) -> None:
        self.path.parent.mkdir(parents=True, exist_ok=True)
        with self.path.open("a", encoding="utf-8") as f:
            f.write(json.dumps(sample.to_json_dict(), ensure_ascii=False) + "\n")
        logger.debug(f"Training sample appended to {self.path}")


def get_training_sample_sink() -> Optional[TrainingSampleSink]:
    if not settings.SAVE_TRAINING_SAMPLES:
        return None
    return JsonlTrainingSampleSink()
