"""
Student Record Service - list, search, read, create, update and delete.

Every operation goes through the request's SQLAlchemy session. Filters
are SQLAlchemy expressions, so search terms always travel as bound
parameters. The flow for writes:

1. Validate the payload (services/validation.py); nothing touches the
   database when validation fails
2. Existence check (update, delete)
3. Uniqueness pre-checks on studentId, email, contactNumber, in that
   order, stopping at the first conflict
4. The mutating statement, committed immediately

The pre-checks and the write are separate statements, so two concurrent
requests can both pass step 3. The unique constraints on the table catch
that case and the resulting IntegrityError is reported as the same
Conflict the pre-check would have produced.
"""

import math
import time
from contextlib import contextmanager
from datetime import date, datetime, timezone
from typing import Any, Dict, Optional

from sqlalchemy import or_
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.orm import Query, Session

from student_records.config import DEFAULT_PAGE, DEFAULT_PAGE_LIMIT, DEFAULT_STATUS
from student_records.errors import Conflict, InternalError, NotFound, ValidationFailure
from student_records.logging_config import get_logger, log_with_context
from student_records.models.student import Student
from student_records.services.validation import parse_date, validate_student

logger = get_logger("students")
db_logger = get_logger("db")

# Largest value a LIMIT/OFFSET bind accepts (signed 64-bit)
MAX_SQL_INT = 2 ** 63 - 1

LIKE_ESCAPE = "\\"

# Checked in this order; the first taken value wins
UNIQUE_FIELDS = [
    ("studentId", "student_id", "A student with this Student ID already exists"),
    ("email", "email", "A student with this email already exists"),
    ("contactNumber", "contact_number", "A student with this contact number already exists"),
]


def _format_value(value: Any) -> Any:
    if isinstance(value, datetime):
        return value.isoformat(timespec="microseconds")
    if isinstance(value, date):
        return value.isoformat()
    return value


def serialize_student(student: Student) -> Dict[str, Any]:
    """Serialize a Student ORM object to a dict for API response."""
    return {
        "id": str(student.id),
        "firstName": student.first_name,
        "lastName": student.last_name,
        "studentId": student.student_id,
        "email": student.email,
        "dateOfBirth": _format_value(student.date_of_birth),
        "contactNumber": student.contact_number,
        "enrollmentDate": _format_value(student.enrollment_date),
        "profilePicture": student.profile_picture,
        "status": student.status,
        "createdAt": _format_value(student.created_at),
        "updatedAt": _format_value(student.updated_at),
    }


def escape_like(value: str) -> str:
    """Escape LIKE metacharacters so the value matches literally."""
    return (
        value.replace(LIKE_ESCAPE, LIKE_ESCAPE * 2)
        .replace("%", LIKE_ESCAPE + "%")
        .replace("_", LIKE_ESCAPE + "_")
    )


def contains(column, value: str):
    """Case-insensitive substring match of ``value`` against ``column``."""
    return column.ilike("%{}%".format(escape_like(value)), escape=LIKE_ESCAPE)


def name_matches(value: str):
    """First name OR last name contains ``value``."""
    return or_(contains(Student.first_name, value), contains(Student.last_name, value))


def _apply_payload(student: Student, payload: Dict[str, Any]):
    """Copy every field of a validated payload onto the ORM object."""
    status = payload.get("status")
    student.first_name = payload["firstName"]
    student.last_name = payload["lastName"]
    student.student_id = payload["studentId"]
    student.email = payload["email"]
    student.date_of_birth = parse_date(payload["dateOfBirth"])
    student.contact_number = payload["contactNumber"]
    student.enrollment_date = parse_date(payload["enrollmentDate"])
    student.profile_picture = payload.get("profilePicture")
    student.status = status if status else DEFAULT_STATUS


def _conflict_from_integrity_error(exc: IntegrityError) -> Optional[Conflict]:
    """
    Work out which unique field a storage-level violation refers to.

    Returns None for integrity errors that are not uniqueness violations
    (NOT NULL, CHECK, ...).
    """
    detail = str(exc.orig) if exc.orig is not None else str(exc)
    lowered = detail.lower()
    if "unique" not in lowered and "duplicate" not in lowered:
        return None
    for field, column, message in UNIQUE_FIELDS:
        if column in detail:
            return Conflict(field, message)
    return Conflict(None, "A student with these details already exists")


@contextmanager
def storage_guard(db: Session, operation: str, record_id: Optional[str] = None):
    """
    Translate storage failures raised inside the block.

    IntegrityError from a unique constraint becomes Conflict, any other
    SQLAlchemyError becomes InternalError carrying the driver message.
    The session is rolled back in both cases so it can be reused.
    """
    try:
        yield
    except IntegrityError as e:
        db.rollback()
        conflict = _conflict_from_integrity_error(e)
        if conflict is None:
            log_with_context(db_logger, "ERROR",
                "Integrity error during {}: {}".format(operation, str(e)),
                context={"record_id": record_id}, exc_info=True)
            raise InternalError(str(e)) from e
        log_with_context(db_logger, "WARNING",
            "Unique constraint rejected {}: {}".format(operation, conflict.message),
            context={"record_id": record_id, "field": conflict.field})
        raise conflict from e
    except SQLAlchemyError as e:
        db.rollback()
        log_with_context(db_logger, "ERROR",
            "Storage failure during {}: {}".format(operation, str(e)),
            context={"record_id": record_id}, exc_info=True)
        raise InternalError(str(e)) from e


def _find(db: Session, record_id: str) -> Optional[Student]:
    return db.query(Student).filter(Student.id == record_id).first()


def _find_conflict(db: Session, payload: Dict[str, Any],
                   exclude_id: Optional[str] = None) -> Optional[Conflict]:
    """Return a Conflict for the first unique field already taken, if any."""
    for field, column, message in UNIQUE_FIELDS:
        query = db.query(Student.id).filter(getattr(Student, column) == payload[field])
        if exclude_id is not None:
            query = query.filter(Student.id != exclude_id)
        if query.first() is not None:
            return Conflict(field, message)
    return None


def _positive_int(name: str, value: Any) -> int:
    """Accept an int or a string of ASCII digits between 1 and MAX_SQL_INT."""
    number = None
    if isinstance(value, int) and not isinstance(value, bool):
        number = value
    elif isinstance(value, str) and value.strip().isascii() and value.strip().isdigit():
        number = int(value.strip())
    if number is None or number < 1 or number > MAX_SQL_INT:
        raise ValidationFailure([{
            "field": name,
            "message": "{} must be a positive integer no larger than {}".format(name, MAX_SQL_INT)
        }])
    return number


def list_query(db: Session, search: str = "") -> Query:
    """
    Base query for the paginated listing.

    The name predicate is always present; an empty term becomes the
    pattern ``%%`` and matches every row.
    """
    return db.query(Student).filter(name_matches(search or ""))


def search_query(db: Session, name: Optional[str] = "", student_id: Optional[str] = "",
                 email: Optional[str] = "") -> Query:
    """Query for the unpaginated search; empty filters add no predicate."""
    query = db.query(Student)
    if name:
        query = query.filter(name_matches(name))
    if student_id:
        query = query.filter(contains(Student.student_id, student_id))
    if email:
        query = query.filter(contains(Student.email, email))
    return query


def list_students(db: Session, page: Any = DEFAULT_PAGE, limit: Any = DEFAULT_PAGE_LIMIT,
                  search: Optional[str] = "") -> Dict[str, Any]:
    """Paginated listing, newest first, filtered by a first/last name substring."""
    page = _positive_int("page", page)
    limit = _positive_int("limit", limit)
    offset = (page - 1) * limit
    if offset > MAX_SQL_INT:
        raise ValidationFailure([{"field": "page", "message": "page is out of range"}])
    search = search or ""
    start_time = time.time()

    query = list_query(db, search)
    with storage_guard(db, "list"):
        total = query.count()
        students = query.order_by(Student.created_at.desc()).offset(offset).limit(limit).all()

    duration_ms = (time.time() - start_time) * 1000
    log_with_context(logger, "INFO",
        "Listed {} students (page {}, total {})".format(len(students), page, total),
        extra_data={"duration_ms": round(duration_ms, 2), "search": search})

    return {
        "students": [serialize_student(s) for s in students],
        "pagination": {
            "currentPage": page,
            "totalPages": math.ceil(total / limit),
            "totalStudents": total,
            "limit": limit,
        }
    }


def search_students(db: Session, name: Optional[str] = "", student_id: Optional[str] = "",
                    email: Optional[str] = "") -> Dict[str, Any]:
    """
    Unpaginated search; each non-empty filter narrows the result (AND).

    With no filters at all the query has no WHERE clause and returns
    every row.
    """
    query = search_query(db, name=name, student_id=student_id, email=email)
    with storage_guard(db, "search"):
        students = query.order_by(Student.created_at.desc()).all()

    log_with_context(logger, "INFO", "Search matched {} students".format(len(students)))

    return {
        "students": [serialize_student(s) for s in students],
        "count": len(students),
    }


def get_student(db: Session, record_id: str) -> Dict[str, Any]:
    """Fetch one student by id or raise NotFound."""
    with storage_guard(db, "get", record_id):
        student = _find(db, record_id)
    if student is None:
        raise NotFound(record_id)
    return serialize_student(student)


def create_student(db: Session, payload: Dict[str, Any]) -> Dict[str, Any]:
    """Validate, check uniqueness and insert a new student."""
    errors = validate_student(payload)
    if errors:
        raise ValidationFailure(errors)

    with storage_guard(db, "create"):
        conflict = _find_conflict(db, payload)
        if conflict:
            log_with_context(logger, "INFO", "Create rejected: {}".format(conflict.message),
                             context={"field": conflict.field})
            raise conflict

        student = Student()
        _apply_payload(student, payload)
        db.add(student)
        db.commit()
        db.refresh(student)

    log_with_context(logger, "INFO", "Created student {}".format(student.student_id),
                     context={"record_id": str(student.id)})
    return serialize_student(student)


def update_student(db: Session, record_id: str, payload: Dict[str, Any]) -> Dict[str, Any]:
    """
    Replace every field of an existing student.

    Fields missing from the payload are not kept from the stored record:
    ``status`` falls back to the default and ``profilePicture`` to null.
    """
    errors = validate_student(payload)
    if errors:
        raise ValidationFailure(errors)

    with storage_guard(db, "update", record_id):
        student = _find(db, record_id)
        if student is None:
            raise NotFound(record_id)

        conflict = _find_conflict(db, payload, exclude_id=record_id)
        if conflict:
            log_with_context(logger, "INFO", "Update rejected: {}".format(conflict.message),
                             context={"record_id": record_id, "field": conflict.field})
            raise conflict

        _apply_payload(student, payload)
        student.updated_at = datetime.now(timezone.utc)
        db.commit()
        db.refresh(student)

    log_with_context(logger, "INFO", "Updated student {}".format(student.student_id),
                     context={"record_id": record_id})
    return serialize_student(student)


def delete_student(db: Session, record_id: str) -> Dict[str, Any]:
    """Delete a student and return the record as it was before removal."""
    with storage_guard(db, "delete", record_id):
        student = _find(db, record_id)
        if student is None:
            raise NotFound(record_id)
        deleted = serialize_student(student)
        db.delete(student)
        db.commit()

    log_with_context(logger, "INFO", "Deleted student {}".format(deleted["studentId"]),
                     context={"record_id": record_id})
    return deleted
