from contextlib import contextmanager, nullcontext

import pytest

from conftest import BrokenHandle, CaseSensitiveHandle, SCHEMA
from conformance_grader.config import GradingConfig
from conformance_grader.errors import DatabaseConnectionError
from conformance_grader.expectations import load_expectations
from conformance_grader.grading.pipeline import RunContext, grade, plan_checks, run_checks
from conformance_grader.models import FailureKind


@pytest.fixture
def expectations():
    return load_expectations()


def make_ctx(handle, expectations, query_file=None):
    text = query_file.read_text(encoding="utf-8") if query_file else None
    return RunContext(handle, expectations, SCHEMA, text, str(query_file))


def test_plan_order(handle, expectations, query_file):
    names = [name for name, _, _ in plan_checks(make_ctx(handle, expectations, query_file))]
    assert names == [
        "schema ltimindtree_db",
        "table Admin", "table User", "table Product", "table Payment_method",
        "primary key User.id",
        "query file: ALTER statement",
        "row count Product",
        "dataset Product",
        "row User.user_name=mansi",
        "learner query output",
    ]


def test_conforming_database_passes_every_check(handle, expectations, query_file):
    report = run_checks(make_ctx(handle, expectations, query_file))
    assert not report.aborted
    assert report.passed, [r.describe() for r in report.results if not r.passed]
    assert report.passed_count == 11


def test_failures_do_not_stop_the_run(sqlite_conn, handle, expectations, query_file):
    sqlite_conn.execute("DROP TABLE Admin")
    sqlite_conn.execute("DELETE FROM Product WHERE id = '2'")
    report = run_checks(make_ctx(handle, expectations, query_file))

    assert not report.aborted
    assert len(report.results) == 11
    failed = [r.name for r in report.results if not r.passed]
    assert failed == ["table Admin", "row count Product", "dataset Product"]


def test_missing_query_file_is_malformed_input(handle, expectations, tmp_path):
    ctx = RunContext(handle, expectations, SCHEMA, None, str(tmp_path / "queries.sql"))
    report = run_checks(ctx)
    by_name = {r.name: r for r in report.results}
    alter = by_name["query file: ALTER TABLE User ADD PRIMARY KEY (id)"]
    assert alter.failures[0].kind is FailureKind.MALFORMED_INPUT
    assert by_name["learner query output"].failures[0].kind is FailureKind.MALFORMED_INPUT


def test_query_without_second_statement(handle, expectations, tmp_path):
    path = tmp_path / "queries.sql"
    path.write_text("SELECT product_name FROM Product WHERE LOWER(category) = 'electronics' "
                    "AND price < 2000", encoding="utf-8")
    report = run_checks(make_ctx(handle, expectations, path))
    alter = report.results[6]
    assert "No second statement" in alter.failures[0].message
    assert report.results[-1].passed


def test_connection_loss_aborts_run(handle, expectations, query_file):
    report = run_checks(make_ctx(BrokenHandle(handle, ok_calls=1), expectations, query_file))
    assert report.aborted
    assert "Communication link failure" in report.error
    assert [r.name for r in report.results] == ["schema ltimindtree_db"]
    assert not report.passed


def test_grade_uses_connection_factory(handle, query_file):
    opened = []

    def connect(config, schema):
        opened.append(schema)
        return nullcontext(handle)

    report = grade(GradingConfig(query_file=str(query_file)), connect=connect)
    assert opened == ["ltimindtree_db"]
    assert report.passed


def test_grade_schema_override(handle, query_file):
    config = GradingConfig(query_file=str(query_file), schema="other_db")
    report = grade(config, connect=lambda config, schema: nullcontext(handle))
    assert not report.results[0].passed
    assert "other_db" in report.results[0].failures[0].message


def test_grade_reports_unreachable_database(query_file):
    @contextmanager
    def connect(config, schema):
        raise DatabaseConnectionError("Can't connect to MySQL server")
        yield

    report = grade(GradingConfig(query_file=str(query_file)), connect=connect)
    assert report.aborted
    assert report.results == []
    assert "Can't connect" in report.error


class RecordingConnection:
    """Connection context manager that records whether it was released."""

    def __init__(self, handle):
        self.handle = handle
        self.exited = False
        self.exc_type = None

    def __enter__(self):
        return self.handle

    def __exit__(self, exc_type, exc, tb):
        self.exited = True
        self.exc_type = exc_type
        return False


class FailingHandle:
    def fetch(self, sql, *params):
        raise RuntimeError("driver crashed")


def test_connection_released_after_successful_run(handle, query_file):
    conn = RecordingConnection(handle)
    report = grade(GradingConfig(query_file=str(query_file)), connect=lambda config, schema: conn)
    assert report.passed
    assert conn.exited


def test_connection_released_after_aborted_run(handle, query_file):
    conn = RecordingConnection(BrokenHandle(handle, ok_calls=3))
    report = grade(GradingConfig(query_file=str(query_file)), connect=lambda config, schema: conn)
    assert report.aborted
    assert conn.exited


def test_connection_released_after_unexpected_error(query_file):
    conn = RecordingConnection(FailingHandle())
    with pytest.raises(RuntimeError):
        grade(GradingConfig(query_file=str(query_file)), connect=lambda config, schema: conn)
    assert conn.exited
    assert conn.exc_type is RuntimeError


def test_catalog_spelling_used_for_data_checks(lowercase_product, expectations, query_file):
    handle = CaseSensitiveHandle(lowercase_product)
    report = run_checks(make_ctx(handle, expectations, query_file))
    assert report.passed, [r.describe() for r in report.results if not r.passed]
    data_sql = [sql for sql, _ in handle.calls if "INFORMATION_SCHEMA" not in sql]
    assert any("FROM `product`" in sql for sql in data_sql)
    assert not any("FROM `Product`" in sql for sql in data_sql)


def test_table_name_looked_up_once_per_run(handle, expectations):
    ctx = make_ctx(handle, expectations)
    assert ctx.table_name("Product") == "Product"
    calls = len(handle.calls)
    assert ctx.table_name("PRODUCT") == "Product"
    assert len(handle.calls) == calls
