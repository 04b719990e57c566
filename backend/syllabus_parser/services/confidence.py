"""
Confidence scoring by field population.

score = populated schema leaves / total schema leaves. A leaf is populated
when it is not null and not an empty string, list or mapping. Whatever
confidence the model claims for itself is ignored.
"""
from typing import Any

from syllabus_parser.core.config import settings
from syllabus_parser.models.syllabus import ConfidenceReport, ParsedRecord, SCHEMA_LEAF_PATHS


def is_populated(value: Any) -> bool:
    if value is None:
        return False
    if isinstance(value, (str, list, dict)):
        return len(value) > 0
    return True


def score_record(record: ParsedRecord, review_threshold: float = None) -> ConfidenceReport:
    threshold = settings.REVIEW_THRESHOLD if review_threshold is None else review_threshold

    extracted, missing = [], []
    for path, value in record.leaves():
        (extracted if is_populated(value) else missing).append(path)

    score = len(extracted) / len(SCHEMA_LEAF_PATHS)
    score = min(max(score, 0.0), 1.0)

    return ConfidenceReport(
        score=score,
        requires_review=score < threshold,
        extracted_fields=extracted,
        missing_fields=missing,
    )
