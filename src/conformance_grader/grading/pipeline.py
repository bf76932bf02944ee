"""
Grading pipeline: runs every check of one run in a fixed order.

A run-scoped context carries the open handle and the expectations; it is
passed explicitly, there is no module-level connection state. Recorded
failures never stop the run. Only DatabaseConnectionError aborts it.
"""

from dataclasses import dataclass
from typing import Any, Callable, Dict, Iterator, Optional, Tuple

from ..db.schema_reader import SchemaIntrospector
from ..errors import DatabaseConnectionError, QueryError
from ..expectations import Expectations, load_expectations
from ..models import CheckResult, FailureKind, GradingReport, StatementOutcome
from ..utils.log import get_logger
from .conformance import ConformanceChecker
from .data_verifier import DataVerifier
from .query_inspector import check_statement_pattern, primary_key_pattern, read_query_file, split_statements

logger = get_logger(__name__)

PlannedCheck = Tuple[str, FailureKind, Callable[[], CheckResult]]


@dataclass
class RunContext:
    """Everything one run needs, built once and handed to every check."""
    handle: Any
    expectations: Expectations
    schema: str
    query_text: Optional[str] = None
    query_file: Optional[str] = None

    def __post_init__(self):
        self.introspector = SchemaIntrospector(self.handle, self.schema)
        self.checker = ConformanceChecker(self.introspector)
        self.verifier = DataVerifier(self.handle, resolve_table=self.table_name)
        self.table_names: Dict[str, Optional[str]] = {}

    def table_name(self, name: str) -> Optional[str]:
        """Catalog spelling of an expected table name, looked up once per run."""
        key = name.lower()
        if key not in self.table_names:
            self.table_names[key] = self.introspector.resolve_table(name)
        return self.table_names[key]


def check_alter_statement(ctx: RunContext) -> CheckResult:
    table, column = ctx.expectations.alter_table
    result = CheckResult(f"query file: ALTER TABLE {table} ADD PRIMARY KEY ({column})")

    if ctx.query_text is None:
        result.fail(FailureKind.MALFORMED_INPUT,
                    f"Query file not found: {ctx.query_file}",
                    expected=ctx.query_file, observed=None)
        return result

    check = check_statement_pattern(ctx.query_text, primary_key_pattern(table, column))
    if check.outcome is StatementOutcome.NO_SECOND_STATEMENT:
        result.fail(FailureKind.MALFORMED_INPUT,
                    "No second statement found after the first ';' in the query file",
                    expected=f"ALTER TABLE {table} ADD PRIMARY KEY ({column})", observed=None)
    elif check.outcome is StatementOutcome.WRONG_SHAPE:
        result.fail(FailureKind.MALFORMED_INPUT,
                    f"Second statement should add a primary key on {table}({column}) "
                    f"but was: {check.statement}",
                    expected=f"ALTER TABLE {table} ADD PRIMARY KEY ({column})",
                    observed=check.statement)
    logger.info(result.describe())
    return result


def check_query_output(ctx: RunContext) -> CheckResult:
    expected = ctx.expectations.query_output

    if ctx.query_text is None:
        result = CheckResult("learner query output")
        result.fail(FailureKind.MALFORMED_INPUT,
                    f"Query file not found: {ctx.query_file}",
                    expected=ctx.query_file, observed=None)
        return result

    parts = split_statements(ctx.query_text)
    query = parts[0] if parts else ctx.query_text.strip()
    if not query:
        result = CheckResult("learner query output")
        result.fail(FailureKind.MALFORMED_INPUT, "Query file has no first statement",
                    expected="SELECT ...", observed=None)
        return result

    return ctx.verifier.verify_query_output(query, expected)


def plan_checks(ctx: RunContext) -> Iterator[PlannedCheck]:
    """Yield (name, failure kind, check) in execution order."""
    exp = ctx.expectations
    checker, verifier = ctx.checker, ctx.verifier

    yield f"schema {ctx.schema}", FailureKind.SCHEMA_MISMATCH, checker.check_schema_exists

    for spec in exp.tables:
        yield f"table {spec.name}", FailureKind.SCHEMA_MISMATCH, lambda spec=spec: checker.check_table(spec)

    for table, column in exp.primary_keys:
        yield (f"primary key {table}.{column}", FailureKind.SCHEMA_MISMATCH,
               lambda t=table, c=column: checker.check_primary_key(t, c))

    if exp.alter_table is not None:
        yield "query file: ALTER statement", FailureKind.MALFORMED_INPUT, lambda: check_alter_statement(ctx)

    for table, count in exp.row_counts:
        yield (f"row count {table}", FailureKind.DATA_MISMATCH,
               lambda t=table, n=count: verifier.verify_row_count(t, n))

    for dataset in exp.datasets:
        yield f"dataset {dataset.table}", FailureKind.DATA_MISMATCH, lambda d=dataset: verifier.verify_rows(d)

    for lookup in exp.lookups:
        yield (f"row {lookup.table}.{lookup.key_column}={lookup.key}", FailureKind.DATA_MISMATCH,
               lambda lk=lookup: verifier.verify_row(lk.table, lk.key, lk.fields,
                                                     key_column=lk.key_column,
                                                     ignore_case=lk.ignore_case))

    if exp.query_output is not None:
        yield "learner query output", FailureKind.DATA_MISMATCH, lambda: check_query_output(ctx)


def run_checks(ctx: RunContext) -> GradingReport:
    """Run every planned check against an open handle.

    Returns:
        GradingReport: all results in order; `aborted` is set if the
        connection was lost part-way
    """
    report = GradingReport()

    for name, kind, check in plan_checks(ctx):
        try:
            result = check()
        except DatabaseConnectionError as e:
            logger.error(f"Connection lost during '{name}', aborting run: {e}")
            report.aborted = True
            report.error = str(e)
            break
        except QueryError as e:
            result = CheckResult(name)
            result.fail(kind, f"Query failed: {e}")
            logger.info(result.describe())
        report.results.append(result)

    logger.info(f"Run finished: {report.passed_count} passed, {report.failed_count} failed"
                + (" (aborted)" if report.aborted else ""))
    return report


def grade(config, connect: Optional[Callable[..., Any]] = None) -> GradingReport:
    """Load inputs, open one connection, run all checks and release it.

    Args:
        config: GradingConfig
        connect: Factory returning an unopened connection context manager;
            defaults to the pyodbc-backed DatabaseConnection

    Returns:
        GradingReport
    """
    expectations = load_expectations(config.expectations_file)
    schema = config.schema or expectations.schema
    query_text = read_query_file(config.query_file) if expectations.uses_query_file else None

    if connect is None:
        # pyodbc needs the ODBC driver manager at import time
        from ..db.connection import open_connection
        connect = open_connection

    try:
        with connect(config, schema) as handle:
            ctx = RunContext(handle, expectations, schema, query_text, config.query_file)
            return run_checks(ctx)
    except DatabaseConnectionError as e:
        logger.error(f"Could not grade {schema}: {e}")
        return GradingReport(aborted=True, error=str(e))
