"""
Validation Service - field-level checks for student payloads.

Runs every check against the raw request body and collects all problems
instead of stopping at the first one, so a client can fix a form in a
single round trip. The order of the returned errors is fixed:

1. Presence of firstName, lastName, studentId, email, dateOfBirth,
   contactNumber, enrollmentDate
2. Email shape
3. dateOfBirth parses as a date
4. enrollmentDate parses as a date

Dates must be ISO 8601: a `YYYY-MM-DD` date or a date-time such as
`2020-01-01T09:30:00Z`. Free-form forms a browser would also accept,
like `2020/01/01` or `Jan 1, 2020`, are reported as invalid.
"""

import re
from datetime import date, datetime
from typing import Any, Dict, List, Optional

from student_records.logging_config import get_logger, log_with_context

logger = get_logger("validation")

# Minimal local@domain.tld shape, not RFC 5322
EMAIL_PATTERN = re.compile(r"[^\s@]+@[^\s@]+\.[^\s@]+")

# (payload key, label used in messages, must be a string)
REQUIRED_FIELDS = [
    ("firstName", "First name", True),
    ("lastName", "Last name", True),
    ("studentId", "Student ID", True),
    ("email", "Email", True),
    ("dateOfBirth", "Date of birth", False),
    ("contactNumber", "Contact number", True),
    ("enrollmentDate", "Enrollment date", False),
]

DATE_FIELDS = [
    ("dateOfBirth", "date of birth"),
    ("enrollmentDate", "enrollment date"),
]


def parse_date(value: Any) -> Optional[date]:
    """
    Parse a calendar date from an ISO 8601 date or date-time string.

    Accepts ``YYYY-MM-DD`` as well as full timestamps such as
    ``2020-01-01T09:30:00Z``; for timestamps only the date part is kept.

    Returns:
        The parsed date, or None if the value is not a valid date
    """
    if isinstance(value, datetime):
        return value.date()
    if isinstance(value, date):
        return value
    if not isinstance(value, str):
        return None

    text = value.strip()
    if not text:
        return None
    try:
        return date.fromisoformat(text)
    except ValueError:
        pass
    if text.endswith("Z"):
        text = text[:-1] + "+00:00"
    try:
        return datetime.fromisoformat(text).date()
    except ValueError:
        return None


def _is_blank(value: Any) -> bool:
    return not isinstance(value, str) or value.strip() == ""


def validate_student(payload: Dict[str, Any]) -> List[Dict[str, str]]:
    """
    Validate a student payload.

    Args:
        payload: Raw request body (camelCase keys)

    Returns:
        List of {"field", "message"} dicts; empty when the payload is valid
    """
    errors = []

    for field, label, must_be_text in REQUIRED_FIELDS:
        value = payload.get(field)
        missing = _is_blank(value) if must_be_text else not value
        if missing:
            errors.append({"field": field, "message": "{} is required".format(label)})

    email = payload.get("email")
    if email and not (isinstance(email, str) and EMAIL_PATTERN.fullmatch(email)):
        errors.append({"field": "email", "message": "Invalid email format"})

    for field, label in DATE_FIELDS:
        value = payload.get(field)
        if value and parse_date(value) is None:
            errors.append({
                "field": field,
                "message": "Invalid date format for {}".format(label)
            })

    if errors:
        log_with_context(logger, "INFO",
            "Student payload rejected with {} error(s)".format(len(errors)),
            extra_data={"fields": [e["field"] for e in errors]})

    return errors
