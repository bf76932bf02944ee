"""
Schema conformance checks.

Compares declared tables, columns and type categories against what the
database reports. Every column is checked independently and every problem is
reported, so one run shows all of them at once.
"""

from typing import Iterable, List

from ..matching.type_check import type_matches
from ..models import ConformanceResult, FailureKind, TableSpec
from ..utils.fuzzy import closest_name
from ..utils.log import get_logger

logger = get_logger(__name__)


class ConformanceChecker:
    """Checks tables against TableSpecs using a SchemaIntrospector."""

    def __init__(self, introspector):
        self.introspector = introspector

    def check_table(self, spec: TableSpec) -> ConformanceResult:
        """Check one table.

        Args:
            spec: Expected table definition

        Returns:
            ConformanceResult: passes iff the table exists and every
            expected column exists with a compatible type
        """
        result = ConformanceResult(f"table {spec.name}")

        if not self.introspector.table_exists(spec.name):
            result.fail(FailureKind.SCHEMA_MISMATCH,
                        f"Table {spec.name} is missing",
                        expected=spec.name, observed=None)
            logger.info(result.describe())
            return result

        observed = self.introspector.columns(spec.name)

        for col, expected_type in spec.columns:
            key = col.lower()
            if key not in observed:
                hint = closest_name(key, observed.keys())
                message = f"Column '{col}' is missing in table {spec.name}"
                if hint:
                    message += f" (closest: '{hint}')"
                result.fail(FailureKind.SCHEMA_MISMATCH, message, expected=col, observed=hint)
                continue

            actual_type = observed[key]
            if not type_matches(expected_type, actual_type):
                result.fail(FailureKind.SCHEMA_MISMATCH,
                            f"Column '{col}' in table {spec.name} expected type "
                            f"{expected_type.upper()} but got {actual_type}",
                            expected=expected_type.upper(), observed=actual_type)

        logger.info(result.describe())
        return result

    def check_schema(self, specs: Iterable[TableSpec]) -> List[ConformanceResult]:
        return [self.check_table(spec) for spec in specs]

    def check_schema_exists(self) -> ConformanceResult:
        schema = self.introspector.schema
        result = ConformanceResult(f"schema {schema}")
        if not self.introspector.schema_exists():
            result.fail(FailureKind.SCHEMA_MISMATCH,
                        f"Schema '{schema}' should exist",
                        expected=schema, observed=None)
        logger.info(result.describe())
        return result

    def check_primary_key(self, table: str, column: str) -> ConformanceResult:
        """Check that `table` has a PRIMARY KEY constraint covering `column`."""
        result = ConformanceResult(f"primary key {table}.{column}")

        if not self.introspector.table_exists(table):
            result.fail(FailureKind.SCHEMA_MISMATCH,
                        f"Table {table} is missing",
                        expected=table, observed=None)
            logger.info(result.describe())
            return result

        pk_cols = self.introspector.primary_key_columns(table)
        if not pk_cols:
            result.fail(FailureKind.SCHEMA_MISMATCH,
                        f"{table} table must have a PRIMARY KEY constraint defined",
                        expected=column, observed=None)
        elif column.lower() not in pk_cols:
            result.fail(FailureKind.SCHEMA_MISMATCH,
                        f"Primary key should be set on '{column}' column of {table} table",
                        expected=column, observed=", ".join(pk_cols))

        logger.info(result.describe())
        return result
