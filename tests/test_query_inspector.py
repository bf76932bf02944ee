import pytest

from conformance_grader.grading.query_inspector import (
    check_statement_pattern, primary_key_pattern, read_query_file, split_statements,
)
from conformance_grader.models import StatementOutcome

PK_USER_ID = primary_key_pattern("User", "id")


def test_alter_statement_matches():
    check = check_statement_pattern("SELECT ...;ALTER TABLE User ADD PRIMARY KEY (id);", PK_USER_ID)
    assert check.outcome is StatementOutcome.MATCHED
    assert check
    assert check.statement == "ALTER TABLE User ADD PRIMARY KEY (id);"


def test_other_statement_is_wrong_shape():
    check = check_statement_pattern("SELECT ...;DROP TABLE User;", PK_USER_ID)
    assert check.outcome is StatementOutcome.WRONG_SHAPE
    assert not check
    assert check.statement == "DROP TABLE User;"


def test_no_terminator_means_no_second_statement():
    check = check_statement_pattern("SELECT product_name FROM Product", PK_USER_ID)
    assert check.outcome is StatementOutcome.NO_SECOND_STATEMENT
    assert check.statement is None


def test_empty_second_statement():
    check = check_statement_pattern("SELECT 1;\n  \n", PK_USER_ID)
    assert check.outcome is StatementOutcome.NO_SECOND_STATEMENT


@pytest.mark.parametrize("statement", [
    "alter table user add primary key (id)",
    "ALTER TABLE `User` ADD PRIMARY KEY (`id`);",
    "ALTER  TABLE\nUser\n  ADD PRIMARY KEY(id) ;  \n",
    "Alter Table User Add Primary Key ( ID )",
    'ALTER TABLE "User" ADD PRIMARY KEY ("id")',
    "ALTER TABLE [User] ADD PRIMARY KEY ([id])",
])
def test_pattern_is_case_and_whitespace_tolerant(statement):
    assert check_statement_pattern("SELECT 1;" + statement, PK_USER_ID).matched


@pytest.mark.parametrize("statement", [
    "ALTER TABLE User ADD PRIMARY KEY (user_name);",
    "ALTER TABLE Users ADD PRIMARY KEY (id);",
    "ALTER TABLE User ADD UNIQUE (id);",
    "ALTER TABLE User ADD PRIMARY KEY (id); DROP TABLE Admin;",
    "ALTER TABLE `User\" ADD PRIMARY KEY ([id`);",
    "ALTER TABLE `User ADD PRIMARY KEY (id);",
    "ALTER TABLE User ADD PRIMARY KEY (id]);",
])
def test_pattern_rejects_other_shapes(statement):
    check = check_statement_pattern("SELECT 1;" + statement, PK_USER_ID)
    assert check.outcome is StatementOutcome.WRONG_SHAPE


def test_pattern_given_as_string():
    check = check_statement_pattern("SELECT 1; alter table User add primary key (id)",
                                    r"^ALTER\s+TABLE\s+User\s+ADD\s+PRIMARY\s+KEY\s*\(id\)$")
    assert check.matched


def test_split_statements():
    assert split_statements("SELECT 1 ; ALTER x;") == ("SELECT 1", "ALTER x;")
    assert split_statements("SELECT 1") is None


def test_read_query_file(query_file, tmp_path):
    assert read_query_file(query_file).startswith("SELECT product_name")
    assert read_query_file(tmp_path / "missing.sql") is None
