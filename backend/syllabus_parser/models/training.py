"""
Pydantic schemas for redacted training samples.

A TrainingSample redacts its own input during validation and is frozen
afterwards, so an unredacted instance cannot exist.
"""
import time
from typing import Any, Dict, List

from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator

from syllabus_parser.services.redaction import redact_data, redact_text

MAX_PREVIEW_LINES = 10
MAX_KEYWORD_SAMPLES = 15
MAX_SNIPPET_CHARS = 300


def _now_ms() -> int:
    return int(time.time() * 1000)


def _bounded(line: Any) -> str:
    # Redaction runs on the full line, before the length cap
    return redact_text(str(line))[:MAX_SNIPPET_CHARS]


class SourceSnippets(BaseModel):
    model_config = ConfigDict(populate_by_name=True, frozen=True)

    preview: List[str] = Field(default_factory=list)
    keyword_samples: List[str] = Field(default_factory=list, alias="keywordSamples")

    @field_validator("preview", mode="before")
    @classmethod
    def _bound_preview(cls, v):
        return [_bounded(line) for line in (v or [])[:MAX_PREVIEW_LINES]]

    @field_validator("keyword_samples", mode="before")
    @classmethod
    def _bound_samples(cls, v):
        return [_bounded(line) for line in (v or [])[:MAX_KEYWORD_SAMPLES]]


class TrainingSample(BaseModel):
    model_config = ConfigDict(populate_by_name=True, frozen=True)

    version: int = 1
    created_at: int = Field(default_factory=_now_ms, alias="createdAt", description="Epoch milliseconds")
    fields: Dict[str, Any] = Field(default_factory=dict)
    snippets: SourceSnippets = Field(default_factory=SourceSnippets)

    @model_validator(mode="before")
    @classmethod
    def _redact(cls, data: Any) -> Any:
        if not isinstance(data, dict):
            return data

        data = dict(data)
        if "fields" in data:
            data["fields"] = redact_data(data["fields"])

        snippets = data.get("snippets")
        if isinstance(snippets, BaseModel):
            snippets = snippets.model_dump(by_alias=True)
        if snippets is not None:
            data["snippets"] = redact_data(snippets)

        return data

    def to_json_dict(self) -> Dict[str, Any]:
        return self.model_dump(by_alias=True, mode="json")
