"""
Student model - the single record type managed by the service.

The ORM class describes the ``students`` table so the schema can be
created directly on SQLite and stays in step with the Alembic revision.
``services/students.py`` reads and writes it through the ORM query API.
"""

import uuid
from datetime import datetime, timezone
from sqlalchemy import Column, Text, Date, DateTime, String, Index, UniqueConstraint
from student_records.database import Base


class Student(Base):
    """
    SQLAlchemy model for the students table.

    ``student_id``, ``email`` and ``contact_number`` each carry a unique
    constraint; the service pre-checks them to produce specific conflict
    messages, and the constraints reject whatever a concurrent writer
    slipped past the pre-check.
    """
    __tablename__ = "students"
    __table_args__ = (
        UniqueConstraint("student_id", name="uq_students_student_id"),
        UniqueConstraint("email", name="uq_students_email"),
        UniqueConstraint("contact_number", name="uq_students_contact_number"),
        Index("ix_students_created_at", "created_at"),
        Index("ix_students_last_name", "last_name"),
        Index("ix_students_first_name", "first_name"),
    )

    id = Column(String(36), primary_key=True, default=lambda: str(uuid.uuid4()),
                doc="Opaque record identifier, immutable")
    first_name = Column(Text, nullable=False)
    last_name = Column(Text, nullable=False)
    student_id = Column(Text, nullable=False,
                        doc="Institution-issued student number")
    email = Column(Text, nullable=False)
    date_of_birth = Column(Date, nullable=False)
    contact_number = Column(Text, nullable=False)
    enrollment_date = Column(Date, nullable=False)
    profile_picture = Column(Text, nullable=True,
                             doc="URL or path, stored verbatim")
    status = Column(Text, nullable=False, default="Enrolled",
                    doc="Free-text enrollment status")
    created_at = Column(DateTime(timezone=True), nullable=False,
                        default=lambda: datetime.now(timezone.utc))
    updated_at = Column(DateTime(timezone=True), nullable=False,
                        default=lambda: datetime.now(timezone.utc))

    def __repr__(self):
        return f"<Student(id={self.id}, student_id='{self.student_id}', email='{self.email}')>"
