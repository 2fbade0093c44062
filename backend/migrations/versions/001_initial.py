"""Initial migration - create the students table

Revision ID: 001_initial
Revises: None
Create Date: 2026-10-18

Creates the students table with unique constraints on student_id, email
and contact_number, plus indexes for the listing order (created_at) and
name search.
"""
from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa

# revision identifiers
revision: str = '001_initial'
down_revision: Union[str, None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def upgrade() -> None:
    # ── Students Table ────────────────────────────────────────
    op.create_table(
        'students',
        sa.Column('id', sa.String(36), primary_key=True),
        sa.Column('first_name', sa.Text(), nullable=False),
        sa.Column('last_name', sa.Text(), nullable=False),
        sa.Column('student_id', sa.Text(), nullable=False),
        sa.Column('email', sa.Text(), nullable=False),
        sa.Column('date_of_birth', sa.Date(), nullable=False),
        sa.Column('contact_number', sa.Text(), nullable=False),
        sa.Column('enrollment_date', sa.Date(), nullable=False),
        sa.Column('profile_picture', sa.Text(), nullable=True),
        sa.Column('status', sa.Text(), nullable=False, server_default='Enrolled'),
        sa.Column('created_at', sa.DateTime(timezone=True),
                  server_default=sa.func.now(), nullable=False),
        sa.Column('updated_at', sa.DateTime(timezone=True),
                  server_default=sa.func.now(), nullable=False),
        sa.UniqueConstraint('student_id', name='uq_students_student_id'),
        sa.UniqueConstraint('email', name='uq_students_email'),
        sa.UniqueConstraint('contact_number', name='uq_students_contact_number'),
    )

    # Listing is ordered by creation time and filtered by name
    op.create_index('ix_students_created_at', 'students', ['created_at'])
    op.create_index('ix_students_last_name', 'students', ['last_name'])
    op.create_index('ix_students_first_name', 'students', ['first_name'])


def downgrade() -> None:
    op.drop_index('ix_students_first_name', table_name='students')
    op.drop_index('ix_students_last_name', table_name='students')
    op.drop_index('ix_students_created_at', table_name='students')
    op.drop_table('students')
