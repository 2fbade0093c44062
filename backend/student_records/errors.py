"""
Error taxonomy for the student record service.

Every error carries the HTTP status it maps to and knows how to render
its own JSON body; ``main.py`` registers a single handler for the base
class.
"""

from typing import Dict, List, Optional


class StudentServiceError(Exception):
    """Base class for errors raised by the record service."""

    status_code = 500
    error = "Internal server error"

    def __init__(self, message: Optional[str] = None):
        super().__init__(message or self.error)
        self.message = message or self.error

    def to_dict(self) -> dict:
        return {"error": self.error, "message": self.message}


class ValidationFailure(StudentServiceError):
    """One or more client-correctable field problems."""

    status_code = 400
    error = "Validation failed"

    def __init__(self, errors: List[Dict[str, str]]):
        super().__init__(self.error)
        self.errors = list(errors)

    def to_dict(self) -> dict:
        return {"error": self.error, "errors": self.errors}


class NotFound(StudentServiceError):
    """The referenced id has no record."""

    status_code = 404
    error = "Student not found"

    def __init__(self, student_id: Optional[str] = None):
        super().__init__(self.error)
        self.student_id = student_id

    def to_dict(self) -> dict:
        return {"error": self.error}


class Conflict(StudentServiceError):
    """A unique field (studentId, email, contactNumber) is already taken."""

    status_code = 409
    error = "Conflict"

    def __init__(self, field: Optional[str], message: str):
        super().__init__(message)
        self.field = field

    def to_dict(self) -> dict:
        return {"error": self.error, "message": self.message, "field": self.field}


class InternalError(StudentServiceError):
    """Storage or otherwise unexpected failure."""

    status_code = 500
    error = "Internal server error"
