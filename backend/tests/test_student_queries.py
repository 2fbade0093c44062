from student_records.services.students import escape_like, list_query, search_query


def _compile(query):
    compiled = query.statement.compile()
    return str(compiled), list(compiled.params.values())


def test_escape_like_escapes_metacharacters():
    assert escape_like("50%_off\\") == "50\\%\\_off\\\\"
    assert escape_like("plain") == "plain"


def test_search_without_filters_has_no_where_clause(db):
    sql, params = _compile(search_query(db))
    assert "WHERE" not in sql
    assert params == []


def test_search_filters_are_bound_parameters(db):
    hostile = "x' OR '1'='1"
    sql, params = _compile(search_query(db, name=hostile, email="ada"))

    assert hostile not in sql
    assert sql.count("LIKE") == 3
    assert " OR " in sql and " AND " in sql
    assert params == ["%" + hostile + "%", "%" + hostile + "%", "%ada%"]


def test_search_skips_empty_filters(db):
    sql, params = _compile(search_query(db, name="", student_id="CS", email=""))
    assert sql.count("LIKE") == 1
    assert params == ["%CS%"]


def test_list_query_always_filters_on_names(db):
    sql, params = _compile(list_query(db))
    assert sql.count("LIKE") == 2
    assert params == ["%%", "%%"]


def test_wildcards_in_search_terms_are_escaped(db):
    _, params = _compile(search_query(db, student_id="10%"))
    assert params == ["%10\\%%"]
