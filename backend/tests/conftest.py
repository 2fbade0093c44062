import os

# Point the module-level engine at a throwaway database before the app is imported
os.environ["DATABASE_URL"] = "sqlite://"

import pytest
from fastapi.testclient import TestClient
from sqlalchemy import create_engine, event
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

from student_records.database import create_tables, get_db
from student_records.main import app


@pytest.fixture
def engine():
    engine = create_engine(
        "sqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    create_tables(bind=engine)
    yield engine
    engine.dispose()


@pytest.fixture
def session_factory(engine):
    return sessionmaker(autocommit=False, autoflush=False, bind=engine)


@pytest.fixture
def db(session_factory):
    session = session_factory()
    try:
        yield session
    finally:
        session.close()


@pytest.fixture
def client(session_factory):
    def override_get_db():
        session = session_factory()
        try:
            yield session
        finally:
            session.close()

    app.dependency_overrides[get_db] = override_get_db
    with TestClient(app) as test_client:
        yield test_client
    app.dependency_overrides.clear()


@pytest.fixture
def statements(engine):
    """SQL statements sent to the test engine while the fixture is active."""
    captured = []

    def before_cursor_execute(conn, cursor, statement, parameters, context, executemany):
        captured.append(statement.strip().upper())

    event.listen(engine, "before_cursor_execute", before_cursor_execute)
    yield captured
    event.remove(engine, "before_cursor_execute", before_cursor_execute)


@pytest.fixture
def make_payload():
    """Build a valid student payload; keyword arguments override fields."""
    def _make(n=1, **overrides):
        payload = {
            "firstName": "Ada",
            "lastName": "Lovelace",
            "studentId": f"S{n}",
            "email": f"student{n}@example.com",
            "dateOfBirth": "1990-01-01",
            "contactNumber": f"555-{n:04d}",
            "enrollmentDate": "2020-01-01",
        }
        payload.update(overrides)
        return payload
    return _make
