import pytest
from sqlalchemy import text

from student_records.errors import Conflict, InternalError, NotFound, ValidationFailure
from student_records.services import students as student_service


def _inserts(statements):
    return [s for s in statements if s.startswith("INSERT")]


def test_create_then_get_round_trip(db, make_payload):
    payload = make_payload()
    created = student_service.create_student(db, payload)

    assert created["status"] == "Enrolled"
    assert created["profilePicture"] is None
    assert created["createdAt"] and created["updatedAt"]

    fetched = student_service.get_student(db, created["id"])
    for field, value in payload.items():
        assert fetched[field] == value
    assert fetched["status"] == "Enrolled"


def test_create_keeps_supplied_status_and_picture(db, make_payload):
    created = student_service.create_student(
        db, make_payload(status="Graduated", profilePicture="https://cdn.example.com/ada.png"))
    assert created["status"] == "Graduated"
    assert created["profilePicture"] == "https://cdn.example.com/ada.png"


def test_invalid_payload_never_reaches_storage(db, statements):
    with pytest.raises(ValidationFailure) as excinfo:
        student_service.create_student(db, {"firstName": "Ada"})
    assert len(excinfo.value.errors) == 6
    assert statements == []


@pytest.mark.parametrize("field, column_value, message", [
    ("studentId", "S1", "Student ID"),
    ("email", "student1@example.com", "email"),
    ("contactNumber", "555-0001", "contact number"),
])
def test_duplicate_unique_field_conflicts_without_insert(db, statements, make_payload,
                                                         field, column_value, message):
    student_service.create_student(db, make_payload(1))
    statements.clear()

    with pytest.raises(Conflict) as excinfo:
        student_service.create_student(db, make_payload(2, **{field: column_value}))

    assert excinfo.value.field == field
    assert message in excinfo.value.message
    assert _inserts(statements) == []


def test_first_conflicting_field_wins(db, make_payload):
    student_service.create_student(db, make_payload(1))
    duplicate = make_payload(2, studentId="S1", email="student1@example.com")
    with pytest.raises(Conflict) as excinfo:
        student_service.create_student(db, duplicate)
    assert excinfo.value.field == "studentId"
    assert excinfo.value.message == "A student with this Student ID already exists"


def test_unique_constraint_backstops_missed_precheck(db, make_payload, monkeypatch):
    student_service.create_student(db, make_payload(1))
    monkeypatch.setattr(student_service, "_find_conflict", lambda *args, **kwargs: None)

    with pytest.raises(Conflict) as excinfo:
        student_service.create_student(db, make_payload(2, studentId="S1"))

    assert excinfo.value.field == "studentId"
    # Session is usable after the rollback
    assert student_service.list_students(db)["pagination"]["totalStudents"] == 1


def test_get_missing_student(db):
    with pytest.raises(NotFound):
        student_service.get_student(db, "does-not-exist")


def test_update_with_own_unique_fields_succeeds(db, make_payload):
    created = student_service.create_student(db, make_payload(1))
    updated = student_service.update_student(
        db, created["id"], make_payload(1, firstName="Augusta", status="Suspended"))

    assert updated["id"] == created["id"]
    assert updated["firstName"] == "Augusta"
    assert updated["status"] == "Suspended"
    assert updated["studentId"] == "S1"
    assert updated["createdAt"] == created["createdAt"]
    assert updated["updatedAt"] > created["updatedAt"]


def test_update_is_full_replacement(db, make_payload):
    created = student_service.create_student(
        db, make_payload(1, status="Graduated", profilePicture="ada.png"))
    updated = student_service.update_student(db, created["id"], make_payload(1))
    assert updated["status"] == "Enrolled"
    assert updated["profilePicture"] is None


def test_update_conflicts_with_other_record(db, make_payload):
    student_service.create_student(db, make_payload(1))
    second = student_service.create_student(db, make_payload(2))

    with pytest.raises(Conflict) as excinfo:
        student_service.update_student(db, second["id"], make_payload(2, email="student1@example.com"))
    assert excinfo.value.field == "email"
    assert student_service.get_student(db, second["id"])["email"] == "student2@example.com"


def test_update_missing_student(db, make_payload):
    with pytest.raises(NotFound):
        student_service.update_student(db, "does-not-exist", make_payload())


def test_update_validates_before_looking_up_the_record(db, statements):
    with pytest.raises(ValidationFailure):
        student_service.update_student(db, "does-not-exist", {"email": "bad"})
    assert statements == []


def test_delete_returns_removed_record(db, make_payload):
    created = student_service.create_student(db, make_payload(1))
    deleted = student_service.delete_student(db, created["id"])
    assert deleted == created

    with pytest.raises(NotFound):
        student_service.get_student(db, created["id"])
    with pytest.raises(NotFound):
        student_service.delete_student(db, created["id"])


def test_list_pagination(db, make_payload):
    for n in range(1, 6):
        student_service.create_student(db, make_payload(n))

    first = student_service.list_students(db, page=1, limit=2)
    assert len(first["students"]) == 2
    assert first["pagination"] == {
        "currentPage": 1, "totalPages": 3, "totalStudents": 5, "limit": 2,
    }

    last = student_service.list_students(db, page=3, limit=2)
    assert len(last["students"]) == 1

    beyond = student_service.list_students(db, page=4, limit=2)
    assert beyond["students"] == []
    assert beyond["pagination"]["totalStudents"] == 5


def test_list_defaults_and_ordering(db, make_payload):
    ids = [student_service.create_student(db, make_payload(n))["id"] for n in range(1, 4)]
    result = student_service.list_students(db)
    assert [s["id"] for s in result["students"]] == list(reversed(ids))
    assert result["pagination"]["limit"] == 10
    assert result["pagination"]["currentPage"] == 1


def test_list_search_is_case_insensitive_on_either_name(db, make_payload):
    student_service.create_student(db, make_payload(1, firstName="Ada", lastName="Lovelace"))
    student_service.create_student(db, make_payload(2, firstName="Alan", lastName="Turing"))

    assert [s["firstName"] for s in student_service.list_students(db, search="ADA")["students"]] == ["Ada"]
    assert [s["lastName"] for s in student_service.list_students(db, search="turi")["students"]] == ["Turing"]
    assert student_service.list_students(db, search="zzz")["pagination"]["totalPages"] == 0


@pytest.mark.parametrize("page, limit", [(0, 10), (1, 0), ("abc", 10), (1, "-5"), (True, 10)])
def test_list_rejects_bad_pagination(db, page, limit):
    with pytest.raises(ValidationFailure):
        student_service.list_students(db, page=page, limit=limit)


def test_list_accepts_numeric_strings(db):
    result = student_service.list_students(db, page="2", limit="5")
    assert result["pagination"]["currentPage"] == 2
    assert result["pagination"]["limit"] == 5


def test_search_without_filters_matches_list_with_empty_search(db, make_payload):
    for n in range(1, 4):
        student_service.create_student(db, make_payload(n))

    searched = student_service.search_students(db)
    listed = student_service.list_students(db, search="")
    assert searched["count"] == 3
    assert [s["id"] for s in searched["students"]] == [s["id"] for s in listed["students"]]


def test_search_combines_filters_with_and(db, make_payload):
    student_service.create_student(db, make_payload(1, firstName="Ada", studentId="CS-100"))
    student_service.create_student(db, make_payload(2, firstName="Ada", studentId="EE-200"))
    student_service.create_student(db, make_payload(3, firstName="Alan", studentId="CS-300"))

    result = student_service.search_students(db, name="ada", student_id="cs")
    assert result["count"] == 1
    assert result["students"][0]["studentId"] == "CS-100"

    by_email = student_service.search_students(db, email="STUDENT3@")
    assert [s["firstName"] for s in by_email["students"]] == ["Alan"]


def test_search_treats_wildcards_literally(db, make_payload):
    student_service.create_student(db, make_payload(1))
    assert student_service.search_students(db, name="%")["count"] == 0
    assert student_service.search_students(db, student_id="_")["count"] == 0


def test_storage_failure_becomes_internal_error(db):
    db.execute(text("DROP TABLE students"))
    db.commit()
    with pytest.raises(InternalError) as excinfo:
        student_service.list_students(db)
    assert "students" in excinfo.value.message


@pytest.mark.parametrize("page, limit", [(1, 10 ** 30), (10 ** 30, 1), ("1", str(2 ** 63))])
def test_list_rejects_pagination_beyond_sql_integer_range(db, page, limit):
    with pytest.raises(ValidationFailure):
        student_service.list_students(db, page=page, limit=limit)


def test_list_rejects_offset_beyond_sql_integer_range(db):
    with pytest.raises(ValidationFailure) as excinfo:
        student_service.list_students(db, page=2 ** 62, limit=10)
    assert excinfo.value.errors[0]["field"] == "page"
