"""
Students API routes - CRUD, search and paginated listing.

Provides endpoints for:
- Listing students with name search and pagination
- Searching by name, student ID and email
- Viewing, creating, updating and deleting a student

Handlers stay thin: the record service does the work and raises
StudentServiceError subclasses, which the handlers in main.py turn into
JSON error bodies.
"""

from typing import Any, List, Optional
from fastapi import APIRouter, Depends, Query
from pydantic import BaseModel, ConfigDict, Field
from sqlalchemy.orm import Session

from student_records.config import DEFAULT_PAGE, DEFAULT_PAGE_LIMIT
from student_records.database import get_db
from student_records.services import students as student_service

router = APIRouter()


# ── Pydantic schemas ─────────────────────────────────────────

class StudentPayload(BaseModel):
    """
    Request body for create and update.

    Fields are deliberately loose; the record service validates the raw
    values itself so that every problem is reported in one response.
    """
    model_config = ConfigDict(extra="allow")

    firstName: Optional[Any] = Field(None, examples=["Ada"])
    lastName: Optional[Any] = Field(None, examples=["Lovelace"])
    studentId: Optional[Any] = Field(None, examples=["S1"])
    email: Optional[Any] = Field(None, examples=["ada@example.com"])
    dateOfBirth: Optional[Any] = Field(None, examples=["1990-01-01"])
    contactNumber: Optional[Any] = Field(None, examples=["555-0001"])
    enrollmentDate: Optional[Any] = Field(None, examples=["2020-01-01"])
    profilePicture: Optional[Any] = Field(None, description="URL or path to a picture")
    status: Optional[Any] = Field(None, description='Defaults to "Enrolled"')


class StudentRecord(BaseModel):
    """A stored student as returned by the API."""
    id: str
    firstName: str
    lastName: str
    studentId: str
    email: str
    dateOfBirth: str
    contactNumber: str
    enrollmentDate: str
    profilePicture: Optional[str] = None
    status: str
    createdAt: str
    updatedAt: str


class Pagination(BaseModel):
    currentPage: int
    totalPages: int
    totalStudents: int
    limit: int


class StudentListResponse(BaseModel):
    students: List[StudentRecord]
    pagination: Pagination


class StudentSearchResponse(BaseModel):
    students: List[StudentRecord]
    count: int


class StudentMutationResponse(BaseModel):
    message: str
    student: StudentRecord


class StudentDeleteResponse(BaseModel):
    message: str
    deletedStudent: StudentRecord


def _payload_dict(payload: StudentPayload) -> dict:
    """Only keys the client actually sent, so absent and null stay distinguishable."""
    return payload.model_dump(exclude_unset=True)


@router.get("/api/students", response_model=StudentListResponse)
def list_students(
    page: int = Query(DEFAULT_PAGE, ge=1, description="Page number"),
    limit: int = Query(DEFAULT_PAGE_LIMIT, ge=1, description="Results per page"),
    search: str = Query("", description="Substring of first or last name"),
    db: Session = Depends(get_db)
):
    """List students, newest first, with optional name search."""
    return student_service.list_students(db, page=page, limit=limit, search=search)


@router.get("/api/students/search", response_model=StudentSearchResponse)
def search_students(
    name: str = Query("", description="Substring of first or last name"),
    student_id: str = Query("", alias="studentId", description="Substring of the student ID"),
    email: str = Query("", description="Substring of the email address"),
    db: Session = Depends(get_db)
):
    """Search students; every supplied filter must match."""
    return student_service.search_students(db, name=name, student_id=student_id, email=email)


@router.get("/api/students/{record_id}", response_model=StudentRecord)
def get_student(record_id: str, db: Session = Depends(get_db)):
    """Get a single student by id."""
    return student_service.get_student(db, record_id)


@router.post("/api/students", response_model=StudentMutationResponse, status_code=201)
def create_student(payload: StudentPayload, db: Session = Depends(get_db)):
    """Create a student record."""
    student = student_service.create_student(db, _payload_dict(payload))
    return {"message": "Student created successfully", "student": student}


@router.put("/api/students/{record_id}", response_model=StudentMutationResponse)
def update_student(record_id: str, payload: StudentPayload, db: Session = Depends(get_db)):
    """Replace every field of an existing student."""
    student = student_service.update_student(db, record_id, _payload_dict(payload))
    return {"message": "Student updated successfully", "student": student}


@router.delete("/api/students/{record_id}", response_model=StudentDeleteResponse)
def delete_student(record_id: str, db: Session = Depends(get_db)):
    """Delete a student and return the removed record."""
    student = student_service.delete_student(db, record_id)
    return {"message": "Student deleted successfully", "deletedStudent": student}
