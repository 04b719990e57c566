"""
Pydantic schemas for the structured syllabus record.

Every leaf is nullable and every key is always serialized, so consumers never
branch on key absence. Model output is untrusted: leaves that fail coercion
become null, malformed list items are dropped and non-object groups are
replaced by empty groups instead of failing the whole record.
"""
import math
import re
from datetime import datetime, timezone
from typing import Any, Dict, List, Optional, Tuple

from pydantic import BaseModel, ConfigDict, Field, field_validator

from syllabus_parser.models.document import DocumentFormat


# ==================== Lenient coercion helpers ====================

_NUMBER_RE = re.compile(r"-?\d+(?:\.\d+)?")


def _to_str(value: Any) -> Optional[str]:
    if value is None or isinstance(value, (dict, list)):
        return None
    if isinstance(value, bool):
        return str(value).lower()
    text = str(value).strip()
    if not text or text.lower() in {"null", "none", "n/a"}:
        return None
    return text


def _to_float(value: Any) -> Optional[float]:
    if value is None or isinstance(value, bool):
        return None
    number = None
    try:
        if isinstance(value, (int, float)):
            number = float(value)
        elif isinstance(value, str):
            match = _NUMBER_RE.search(value.replace(",", ""))
            if match:
                number = float(match.group())
    except OverflowError:
        return None
    # inf and nan (1e400, 400-digit strings) are not usable values
    if number is None or not math.isfinite(number):
        return None
    return number


def _to_int(value: Any) -> Optional[int]:
    number = _to_float(value)
    return int(number) if number is not None else None


def _to_bool(value: Any) -> Optional[bool]:
    if isinstance(value, bool):
        return value
    if isinstance(value, str):
        lowered = value.strip().lower()
        if lowered in {"true", "yes", "required"}:
            return True
        if lowered in {"false", "no", "optional"}:
            return False
    return None


def _to_str_list(value: Any) -> Optional[List[str]]:
    if value is None:
        return None
    if isinstance(value, str):
        value = [value]
    if not isinstance(value, list):
        return None
    return [s for s in (_to_str(v) for v in value) if s is not None]


def _to_model_list(model: type, value: Any) -> Optional[list]:
    if value is None or not isinstance(value, list):
        return None
    items = []
    for raw in value:
        if isinstance(raw, dict):
            items.append(model.model_validate(raw))
    return items


def _to_group(model: type, value: Any):
    if isinstance(value, model):
        return value
    if isinstance(value, dict):
        return model.model_validate(value)
    return model()


class _Lenient(BaseModel):
    model_config = ConfigDict(populate_by_name=True, extra="ignore")


# ==================== Schema groups ====================

class CourseInfo(_Lenient):
    title: Optional[str] = None
    instructor: Optional[str] = None
    credits: Optional[float] = None
    semester: Optional[str] = None
    year: Optional[str] = None
    course_code: Optional[str] = Field(None, alias="courseCode")
    department: Optional[str] = None

    @field_validator("title", "instructor", "semester", "year", "course_code", "department", mode="before")
    @classmethod
    def _strings(cls, v):
        return _to_str(v)

    @field_validator("credits", mode="before")
    @classmethod
    def _credits(cls, v):
        return _to_float(v)


class ScheduleItem(_Lenient):
    day: Optional[str] = None
    time: Optional[str] = None
    location: Optional[str] = None
    type: Optional[str] = None
    description: Optional[str] = None

    @field_validator("*", mode="before")
    @classmethod
    def _strings(cls, v):
        return _to_str(v)


class Assignment(_Lenient):
    name: Optional[str] = None
    type: Optional[str] = None
    due_date: Optional[str] = Field(None, alias="dueDate")
    weight: Optional[float] = None
    description: Optional[str] = None
    instructions: Optional[str] = None

    @field_validator("name", "type", "due_date", "description", "instructions", mode="before")
    @classmethod
    def _strings(cls, v):
        return _to_str(v)

    @field_validator("weight", mode="before")
    @classmethod
    def _weight(cls, v):
        return _to_float(v)


class GradingPolicy(_Lenient):
    breakdown: Optional[Dict[str, float]] = None
    scale: Optional[Dict[str, str]] = None
    policies: Optional[List[str]] = None

    @field_validator("breakdown", mode="before")
    @classmethod
    def _breakdown(cls, v):
        if not isinstance(v, dict):
            return None
        return {str(k): n for k, n in ((k, _to_float(x)) for k, x in v.items()) if n is not None}

    @field_validator("scale", mode="before")
    @classmethod
    def _scale(cls, v):
        if not isinstance(v, dict):
            return None
        return {str(k): s for k, s in ((k, _to_str(x)) for k, x in v.items()) if s is not None}

    @field_validator("policies", mode="before")
    @classmethod
    def _policies(cls, v):
        return _to_str_list(v)


class Reading(_Lenient):
    title: Optional[str] = None
    author: Optional[str] = None
    required: Optional[bool] = None
    week: Optional[int] = None
    chapter: Optional[str] = None
    pages: Optional[str] = None
    type: Optional[str] = None

    @field_validator("title", "author", "chapter", "pages", "type", mode="before")
    @classmethod
    def _strings(cls, v):
        return _to_str(v)

    @field_validator("required", mode="before")
    @classmethod
    def _required(cls, v):
        return _to_bool(v)

    @field_validator("week", mode="before")
    @classmethod
    def _week(cls, v):
        return _to_int(v)


class Policies(_Lenient):
    attendance: Optional[str] = None
    late: Optional[str] = None
    academic_integrity: Optional[str] = None
    technology: Optional[str] = None
    other: Optional[List[str]] = None

    @field_validator("attendance", "late", "academic_integrity", "technology", mode="before")
    @classmethod
    def _strings(cls, v):
        return _to_str(v)

    @field_validator("other", mode="before")
    @classmethod
    def _other(cls, v):
        return _to_str_list(v)


class InstructorContact(_Lenient):
    name: Optional[str] = None
    email: Optional[str] = None
    phone: Optional[str] = None
    office: Optional[str] = None
    office_hours: Optional[str] = None

    @field_validator("*", mode="before")
    @classmethod
    def _strings(cls, v):
        return _to_str(v)


class TAContact(_Lenient):
    name: Optional[str] = None
    email: Optional[str] = None
    office_hours: Optional[str] = None

    @field_validator("*", mode="before")
    @classmethod
    def _strings(cls, v):
        return _to_str(v)


class Contacts(_Lenient):
    instructor: InstructorContact = Field(default_factory=InstructorContact)
    tas: Optional[List[TAContact]] = None

    @field_validator("instructor", mode="before")
    @classmethod
    def _instructor(cls, v):
        return _to_group(InstructorContact, v)

    @field_validator("tas", mode="before")
    @classmethod
    def _tas(cls, v):
        return _to_model_list(TAContact, v)


# ==================== Record ====================

class ParsedRecord(_Lenient):
    """
    The structured syllabus. `ParsedRecord()` is the all-null skeleton.
    """
    course_info: CourseInfo = Field(default_factory=CourseInfo, alias="courseInfo")
    schedule: Optional[List[ScheduleItem]] = None
    assignments: Optional[List[Assignment]] = None
    grading_policy: GradingPolicy = Field(default_factory=GradingPolicy, alias="gradingPolicy")
    readings: Optional[List[Reading]] = None
    policies: Policies = Field(default_factory=Policies)
    contacts: Contacts = Field(default_factory=Contacts)

    @field_validator("course_info", mode="before")
    @classmethod
    def _course_info(cls, v):
        return _to_group(CourseInfo, v)

    @field_validator("grading_policy", mode="before")
    @classmethod
    def _grading_policy(cls, v):
        return _to_group(GradingPolicy, v)

    @field_validator("policies", mode="before")
    @classmethod
    def _policies(cls, v):
        return _to_group(Policies, v)

    @field_validator("contacts", mode="before")
    @classmethod
    def _contacts(cls, v):
        return _to_group(Contacts, v)

    @field_validator("schedule", mode="before")
    @classmethod
    def _schedule(cls, v):
        return _to_model_list(ScheduleItem, v)

    @field_validator("assignments", mode="before")
    @classmethod
    def _assignments(cls, v):
        return _to_model_list(Assignment, v)

    @field_validator("readings", mode="before")
    @classmethod
    def _readings(cls, v):
        return _to_model_list(Reading, v)

    def to_json_dict(self) -> Dict[str, Any]:
        """Serialize with schema key names; nulls are kept."""
        return self.model_dump(by_alias=True, mode="json")

    def leaves(self) -> List[Tuple[str, Any]]:
        """(dotted path, value) for every schema leaf, in schema order."""
        data = self.to_json_dict()
        return [(path, _lookup(data, path)) for path in SCHEMA_LEAF_PATHS]


def _lookup(data: Dict[str, Any], path: str) -> Any:
    node: Any = data
    for key in path.split("."):
        if not isinstance(node, dict):
            return None
        node = node.get(key)
    return node


RECORD_GROUPS = ("courseInfo", "schedule", "assignments", "gradingPolicy", "readings", "policies", "contacts")

SCHEMA_LEAF_PATHS: Tuple[str, ...] = (
    "courseInfo.title",
    "courseInfo.instructor",
    "courseInfo.credits",
    "courseInfo.semester",
    "courseInfo.year",
    "courseInfo.courseCode",
    "courseInfo.department",
    "schedule",
    "assignments",
    "gradingPolicy.breakdown",
    "gradingPolicy.scale",
    "gradingPolicy.policies",
    "readings",
    "policies.attendance",
    "policies.late",
    "policies.academic_integrity",
    "policies.technology",
    "policies.other",
    "contacts.instructor.name",
    "contacts.instructor.email",
    "contacts.instructor.phone",
    "contacts.instructor.office",
    "contacts.instructor.office_hours",
    "contacts.tas",
)


# ==================== Scoring and API Response Models ====================

class ConfidenceReport(BaseModel):
    score: float = Field(..., ge=0.0, le=1.0)
    requires_review: bool
    extracted_fields: List[str] = Field(default_factory=list)
    missing_fields: List[str] = Field(default_factory=list)


class ParseMetadata(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    parsed_at: datetime = Field(default_factory=lambda: datetime.now(timezone.utc), alias="parsedAt")
    source: str
    format: DocumentFormat


class SyllabusDocument(ParsedRecord):
    """
    Output boundary object: the record plus its scoring and metadata.
    """
    confidence: float = Field(0.0, ge=0.0, le=1.0)
    requires_review: bool = Field(True, alias="requiresReview")
    extracted_fields: List[str] = Field(default_factory=list, alias="extractedFields")
    missing_fields: List[str] = Field(default_factory=list, alias="missingFields")
    metadata: ParseMetadata

    @classmethod
    def assemble(cls, record: ParsedRecord, report: ConfidenceReport, metadata: ParseMetadata) -> "SyllabusDocument":
        return cls(
            **record.to_json_dict(),
            confidence=report.score,
            requiresReview=report.requires_review,
            extractedFields=report.extracted_fields,
            missingFields=report.missing_fields,
            metadata=metadata,
        )

    def record(self) -> ParsedRecord:
        """The plain record without scoring fields."""
        return ParsedRecord.model_validate({k: v for k, v in self.to_json_dict().items() if k in RECORD_GROUPS})


class ParsingResult(BaseModel):
    """
    What callers of the pipeline receive. Callers never learn which
    extraction method or model produced the data.
    """
    model_config = ConfigDict(populate_by_name=True)

    success: bool
    data: Optional[SyllabusDocument] = None
    confidence: float = Field(0.0, ge=0.0, le=1.0)
    requires_review: bool = Field(True, alias="requiresReview")
    errors: Optional[List[str]] = None
    warnings: Optional[List[str]] = None

    @classmethod
    def failure(cls, errors: List[str], warnings: Optional[List[str]] = None) -> "ParsingResult":
        return cls(success=False, confidence=0.0, requiresReview=True, errors=errors, warnings=warnings or None)

    def to_response(self) -> Dict[str, Any]:
        return self.model_dump(by_alias=True, mode="json", exclude_none=False)
