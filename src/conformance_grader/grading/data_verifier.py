"""
Data verification against fixed expected datasets.

Row counts, single rows and whole tables are compared field by field:
floats within an absolute tolerance, strings exactly (unless a normalisation
is requested), NULLs with an explicit "is absent" check. Statement errors
such as a missing table become recorded failures; connectivity loss
propagates.
"""

import math
from decimal import Decimal
from typing import Any, Callable, Dict, Iterable, List, Optional, Sequence, Tuple

from ..errors import QueryError
from ..models import CheckResult, Dataset, ExpectedField, FailureKind, QueryOutput
from ..utils.constants import IDENTIFIER_QUOTE
from ..utils.log import get_logger

logger = get_logger(__name__)


def quote_identifier(name: str, quote: str = IDENTIFIER_QUOTE) -> str:
    """Quote a table or column name, doubling embedded quote characters."""
    return f"{quote}{name.replace(quote, quote * 2)}{quote}"


def _normalize(value: str, how: Optional[str]) -> str:
    if how == "lower":
        return value.lower()
    if how == "upper":
        return value.upper()
    return value


def compare_field(name: str, expected: ExpectedField, actual: Any) -> Optional[str]:
    """Compare one field value.

    Returns:
        Optional[str]: None if the value matches, otherwise a message citing
        both values
    """
    want = expected.value

    if want is None:
        if actual is None:
            return None
        return f"{name}: expected no value but got {actual!r}"

    if actual is None:
        return f"{name}: expected {want!r} but got no value"

    if isinstance(want, bool):
        if bool(actual) == want:
            return None
        return f"{name}: expected {want!r} but got {actual!r}"

    if isinstance(want, (int, float)):
        try:
            got = float(actual)
        except (TypeError, ValueError):
            return f"{name}: expected {want!r} but got non-numeric {actual!r}"
        if isinstance(want, float):
            if math.isclose(got, want, rel_tol=0.0, abs_tol=expected.tolerance):
                return None
            return f"{name}: expected {want!r} (±{expected.tolerance}) but got {got!r}"
        if got == want:
            return None
        return f"{name}: expected {want!r} but got {actual!r}"

    want_s = _normalize(str(want), expected.normalize)
    got_s = _normalize(str(actual), expected.normalize)
    if want_s == got_s:
        return None
    return f"{name}: expected {want_s!r} but got {got_s!r}"


class DataVerifier:
    """Runs literal read queries and compares rows against expectations.

    Args:
        handle: Open connection exposing fetch(sql, *params)
        quote: Identifier quote character of the target engine
        resolve_table: Maps an expected table name to its catalog spelling
    """

    def __init__(self, handle, quote: str = IDENTIFIER_QUOTE,
                 resolve_table: Optional[Callable[[str], Optional[str]]] = None):
        self.handle = handle
        self.quote = quote
        self.resolve_table = resolve_table

    def _q(self, name: str) -> str:
        return quote_identifier(name, self.quote)

    def _table(self, name: str) -> str:
        # Unknown tables keep their expected name so the engine reports them
        actual = self.resolve_table(name) if self.resolve_table else None
        return self._q(actual or name)

    def verify_row_count(self, table: str, expected: int) -> CheckResult:
        """Check that `table` holds exactly `expected` rows."""
        result = CheckResult(f"row count {table}")
        sql = f"SELECT COUNT(*) AS total FROM {self._table(table)}"
        try:
            rows = self.handle.fetch(sql)
        except QueryError as e:
            result.fail(FailureKind.DATA_MISMATCH,
                        f"Could not count rows of {table}: {e}",
                        expected=expected, observed=None)
            logger.info(result.describe())
            return result

        total = int(rows[0]['total']) if rows else 0
        if total != expected:
            result.fail(FailureKind.DATA_MISMATCH,
                        f"{table} table should contain {expected} records but has {total}",
                        expected=expected, observed=total)
        logger.info(result.describe())
        return result

    def _compare_fields(self, result: CheckResult, label: str,
                        fields: Iterable[Tuple[str, ExpectedField]],
                        row: Dict[str, Any]) -> None:
        for col, expected in fields:
            key = col.lower()
            if key not in row:
                result.fail(FailureKind.DATA_MISMATCH,
                            f"{label}: column '{col}' not returned",
                            expected=expected.value, observed=None)
                continue
            problem = compare_field(col, expected, row[key])
            if problem:
                result.fail(FailureKind.DATA_MISMATCH, f"{label}: {problem}",
                            expected=expected.value, observed=row[key])

    def verify_row(self, table: str, key: Any,
                   expected_fields: Sequence[Tuple[str, ExpectedField]],
                   key_column: str = "id", ignore_case: bool = False) -> CheckResult:
        """Check the single row of `table` whose `key_column` equals `key`.

        Args:
            table: Table name
            key: Row identifier
            expected_fields: (column, ExpectedField) pairs
            key_column: Column holding the identifier
            ignore_case: Match the key with LOWER() on both sides

        Returns:
            CheckResult: fails if the row is missing, duplicated, or any
            field differs
        """
        result = CheckResult(f"row {table}.{key_column}={key}")
        if ignore_case:
            where = f"LOWER({self._q(key_column)}) = LOWER(?)"
        else:
            where = f"{self._q(key_column)} = ?"
        sql = f"SELECT * FROM {self._table(table)} WHERE {where}"

        try:
            rows = self.handle.fetch(sql, key)
        except QueryError as e:
            result.fail(FailureKind.DATA_MISMATCH,
                        f"Could not read {table}: {e}", expected=key, observed=None)
            logger.info(result.describe())
            return result

        if not rows:
            result.fail(FailureKind.DATA_MISMATCH,
                        f"{table} row with {key_column} '{key}' should be present",
                        expected=key, observed=None)
        elif len(rows) > 1:
            result.fail(FailureKind.DATA_MISMATCH,
                        f"Expected exactly one {table} row with {key_column} '{key}' but found {len(rows)}",
                        expected=1, observed=len(rows))
        else:
            self._compare_fields(result, f"{table} {key_column}={key}", expected_fields, rows[0])

        logger.info(result.describe())
        return result

    def verify_rows(self, dataset: Dataset) -> CheckResult:
        """Check the full content of a table against a dataset.

        Rows are read in ascending key order. Every returned row must carry a
        known key; expected keys that never show up are failures too.
        """
        table, key_column = dataset.table, dataset.key_column
        result = CheckResult(f"dataset {table}")
        sql = f"SELECT * FROM {self._table(table)} ORDER BY {self._q(key_column)}"

        try:
            rows = self.handle.fetch(sql)
        except QueryError as e:
            result.fail(FailureKind.DATA_MISMATCH,
                        f"Could not read {table}: {e}",
                        expected=len(dataset.rows), observed=None)
            logger.info(result.describe())
            return result

        expected_by_key = {str(row.key): row for row in dataset.rows}
        seen = set()

        for row in rows:
            raw_key = row.get(key_column.lower())
            row_key = _key_str(raw_key)
            expected = expected_by_key.get(row_key)
            if expected is None:
                result.fail(FailureKind.DATA_MISMATCH,
                            f"Unexpected {table} {key_column}: {raw_key}",
                            expected=sorted(expected_by_key), observed=raw_key)
                continue
            if row_key in seen:
                result.fail(FailureKind.DATA_MISMATCH,
                            f"Duplicate {table} {key_column}: {raw_key}",
                            expected=1, observed=2)
                continue
            seen.add(row_key)
            self._compare_fields(result, f"{table} {key_column}={row_key}", expected.fields, row)

        for key in expected_by_key:
            if key not in seen:
                result.fail(FailureKind.DATA_MISMATCH,
                            f"{table} row with {key_column} '{key}' should be present",
                            expected=key, observed=None)

        logger.info(result.describe())
        return result

    def verify_query_output(self, query: str, expected: QueryOutput) -> CheckResult:
        """Run the learner's query and compare one output column.

        Both sides are sorted before comparison; with `ignore_case` both are
        lower-cased as well.
        """
        result = CheckResult("learner query output")
        try:
            rows = self.handle.fetch(query)
        except QueryError as e:
            result.fail(FailureKind.MALFORMED_INPUT,
                        f"Learner query failed: {e}",
                        expected=list(expected.values), observed=None)
            logger.info(result.describe())
            return result

        key = expected.column.lower()
        if rows and key not in rows[0]:
            result.fail(FailureKind.DATA_MISMATCH,
                        f"Learner query does not return column '{expected.column}'",
                        expected=expected.column, observed=sorted(rows[0]))
            logger.info(result.describe())
            return result

        actual = _output_values((row[key] for row in rows), expected.ignore_case)
        wanted = _output_values(expected.values, expected.ignore_case)
        if actual != wanted:
            result.fail(FailureKind.DATA_MISMATCH,
                        f"Learner output should be {wanted} but was {actual}",
                        expected=wanted, observed=actual)
        logger.info(result.describe())
        return result


def _key_str(value: Any) -> str:
    # Integral numeric keys compare like their int form: 1.0 and Decimal("1") are "1"
    if isinstance(value, (float, Decimal)) and value == int(value):
        return str(int(value))
    return str(value)


def _output_values(values: Iterable[Any], ignore_case: bool) -> List[str]:
    out = ["" if v is None else str(v) for v in values]
    if ignore_case:
        out = [v.lower() for v in out]
    return sorted(out)
