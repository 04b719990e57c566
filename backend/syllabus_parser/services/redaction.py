"""
PII redaction for anything that leaves the request (training samples).

Rules run in a fixed order: email, URL, phone, identifier, street address.
A phone number must be gone before the address rule sees its digits.

Best effort only: this is pattern matching, not a compliance guarantee.
"""
import re
from typing import Any, NamedTuple, Pattern, Tuple


class RedactionRule(NamedTuple):
    name: str
    pattern: Pattern
    replacement: str


_STREET_SUFFIXES = (
    "Street|St|Avenue|Ave|Road|Rd|Boulevard|Blvd|Drive|Dr|Lane|Ln|Way|Court|Ct|Place|Pl|Terrace|Parkway|Pkwy"
)

REDACTION_RULES: Tuple[RedactionRule, ...] = (
    RedactionRule(
        "email",
        re.compile(r"[A-Z0-9._%+-]+@[A-Z0-9.-]+\.[A-Z]{2,}", re.IGNORECASE),
        "[REDACTED_EMAIL]",
    ),
    RedactionRule(
        "url",
        re.compile(r"(?:https?://|www\.)[^\s<>\"')\]]+", re.IGNORECASE),
        "[REDACTED_URL]",
    ),
    RedactionRule(
        "phone",
        re.compile(r"(?<![\w-])(?:\+?\d{1,2}[\s.-]?)?\(?\d{3}\)?[\s.-]?\d{3}[\s.-]?\d{4}(?!\w)"),
        "[REDACTED_PHONE]",
    ),
    RedactionRule(
        # Token must contain a digit so "ID: required" survives
        "id",
        re.compile(r"\b(?:student\s*id|sid|id)\b[:#\s]*(?=[A-Za-z0-9-]*\d)[A-Za-z0-9-]{4,}\b", re.IGNORECASE),
        "[REDACTED_ID]",
    ),
    RedactionRule(
        "address",
        re.compile(rf"\b\d{{1,5}}\s+(?:[A-Z][A-Za-z0-9.'-]*\s+){{1,4}}(?:{_STREET_SUFFIXES})\b\.?"),
        "[REDACTED_ADDRESS]",
    ),
)


def redact_text(text: str) -> str:
    if not text:
        return text
    for rule in REDACTION_RULES:
        text = rule.pattern.sub(rule.replacement, text)
    return text


def redact_data(value: Any) -> Any:
    """Redact every string inside a JSON-like structure. Keys are kept."""
    if isinstance(value, str):
        return redact_text(value)
    if isinstance(value, dict):
        return {k: redact_data(v) for k, v in value.items()}
    if isinstance(value, (list, tuple)):
        return [redact_data(v) for v in value]
    return value
