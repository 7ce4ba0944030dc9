"""Shape checks and normalization for raw GitHub repository records.

Raw JSON is untrusted: `validate` turns it into a tagged `ValidationResult`
before any field is read, and `sanitize` normalizes the optional fields of a
record that passed.
"""

import math
from dataclasses import dataclass
from typing import Any, List, Mapping, Optional

from gitfolio.domain.models.common import RawRepository
from gitfolio.domain.models.errors import InvalidRecordError
from gitfolio.domain.models.project import parse_github_datetime

COUNTER_FIELDS = ("stargazers_count", "forks_count", "watchers_count", "size")


def _is_number(value: Any) -> bool:
    # bool is an int subclass but never a valid count or id
    return isinstance(value, (int, float)) and not isinstance(value, bool)


def _is_timestamp(value: Any) -> bool:
    if not isinstance(value, str):
        return False
    try:
        parse_github_datetime(value)
    except ValueError:
        return False
    return True


_REQUIRED_FIELDS = (
    ("id", _is_number, "number"),
    ("name", lambda v: isinstance(v, str), "string"),
    ("full_name", lambda v: isinstance(v, str), "string"),
    ("html_url", lambda v: isinstance(v, str), "string"),
    ("stargazers_count", _is_number, "number"),
    ("forks_count", _is_number, "number"),
    ("created_at", _is_timestamp, "timestamp"),
    ("updated_at", _is_timestamp, "timestamp"),
    ("private", lambda v: isinstance(v, bool), "boolean"),
)


def find_problems(raw: Any) -> List[str]:
    """Lists every way `raw` violates the required-shape contract (empty if valid)."""
    if not isinstance(raw, Mapping):
        return [f"expected an object, got {type(raw).__name__}"]

    problems = []
    for field_name, check, expected in _REQUIRED_FIELDS:
        if field_name not in raw:
            problems.append(f"missing '{field_name}'")
        elif not check(raw[field_name]):
            problems.append(f"'{field_name}' must be a {expected}")

    owner = raw.get("owner")
    if not isinstance(owner, Mapping):
        problems.append("'owner' must be an object")
    elif not isinstance(owner.get("login"), str):
        problems.append("'owner.login' must be a string")
    return problems


def is_valid(raw: Any) -> bool:
    return not find_problems(raw)


@dataclass(frozen=True)
class ValidationResult:
    """Either a record that passed validation or the error describing why not."""
    record: Optional[RawRepository] = None
    error: Optional[InvalidRecordError] = None

    @property
    def ok(self) -> bool:
        return self.error is None

    def unwrap(self) -> RawRepository:
        """Returns the validated record or raises the validation error."""
        if self.error is not None:
            raise self.error
        return self.record


def validate(raw: Any) -> ValidationResult:
    problems = find_problems(raw)
    if problems:
        return ValidationResult(error=InvalidRecordError(raw, "; ".join(problems)))
    return ValidationResult(record=raw)


def _non_negative(value: Any) -> int:
    if not _is_number(value) or not math.isfinite(value):
        return 0
    return max(0, int(value))


def sanitize(raw: RawRepository) -> RawRepository:
    """Returns a normalized copy of a validated record.

    - `description` is trimmed; empty or non-string becomes None
    - negative, non-finite or missing counters become 0
    - `topics` keeps only string entries (non-list becomes [])
    """
    sanitized = dict(raw)

    description = raw.get("description")
    if isinstance(description, str):
        sanitized["description"] = description.strip() or None
    else:
        sanitized["description"] = None

    for field_name in COUNTER_FIELDS:
        sanitized[field_name] = _non_negative(raw.get(field_name))

    topics = raw.get("topics")
    sanitized["topics"] = [t for t in topics if isinstance(t, str)] if isinstance(topics, list) else []
    return sanitized
