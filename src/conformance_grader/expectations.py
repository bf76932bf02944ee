"""
Declarative expectations for a grading run.

The expected schema, primary keys, row counts, datasets, row lookups and
query-file checks are read from a JSON document rather than written inline,
so the checks stay independent of the assignment they grade.

Field values in datasets and lookups are either literals (`"Laptop"`,
`50000.0`, `null`) or objects with a `value` plus optional `normalize`
('lower'/'upper') and `tolerance` keys.
"""

import json
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Dict, Optional, Tuple, Union

from .errors import ExpectationsError
from .matching.type_check import is_type_category
from .models import Dataset, ExpectedField, ExpectedRow, QueryOutput, RowLookup, TableSpec
from .utils.constants import DEFAULT_SCHEMA, FLOAT_TOLERANCE, NORMALIZERS, TYPE_CATEGORIES
from .utils.log import get_logger

logger = get_logger(__name__)

DEFAULT_EXPECTATIONS = Path(__file__).parent / 'data' / 'default_expectations.json'


@dataclass(frozen=True)
class Expectations:
    schema: str = DEFAULT_SCHEMA
    tables: Tuple[TableSpec, ...] = ()
    primary_keys: Tuple[Tuple[str, str], ...] = ()
    row_counts: Tuple[Tuple[str, int], ...] = ()
    datasets: Tuple[Dataset, ...] = ()
    lookups: Tuple[RowLookup, ...] = ()
    alter_table: Optional[Tuple[str, str]] = None
    query_output: Optional[QueryOutput] = None
    source: Optional[str] = field(default=None, compare=False)

    @property
    def uses_query_file(self) -> bool:
        return self.alter_table is not None or self.query_output is not None


def parse_field(name: str, raw: Any) -> ExpectedField:
    """Parse one field spec (literal or {'value': ..., 'normalize': ..., 'tolerance': ...})."""
    if not isinstance(raw, dict):
        return ExpectedField(raw)

    if 'value' not in raw:
        raise ExpectationsError(f"Field '{name}' needs a 'value' key")
    normalize = raw.get('normalize')
    if normalize is not None and normalize not in NORMALIZERS:
        raise ExpectationsError(f"Field '{name}': normalize must be one of {NORMALIZERS}, got {normalize!r}")
    tolerance = raw.get('tolerance', FLOAT_TOLERANCE)
    if not isinstance(tolerance, (int, float)) or tolerance < 0:
        raise ExpectationsError(f"Field '{name}': tolerance must be a non-negative number")
    return ExpectedField(raw['value'], normalize, float(tolerance))


def _parse_fields(raw: Dict[str, Any]) -> Tuple[Tuple[str, ExpectedField], ...]:
    if not isinstance(raw, dict):
        raise ExpectationsError(f"Expected an object of fields, got {type(raw).__name__}")
    return tuple((col, parse_field(col, spec)) for col, spec in raw.items())


def _parse_table(name: str, columns: Any) -> TableSpec:
    if not isinstance(columns, dict) or not columns:
        raise ExpectationsError(f"Table '{name}' needs a non-empty column mapping")
    for col, category in columns.items():
        if not isinstance(category, str) or not is_type_category(category):
            raise ExpectationsError(
                f"Column '{name}.{col}': type must be one of {TYPE_CATEGORIES}, got {category!r}")
    return TableSpec.from_mapping(name, columns)


def _parse_dataset(raw: Dict[str, Any]) -> Dataset:
    try:
        table = raw['table']
        rows = raw['rows']
    except KeyError as e:
        raise ExpectationsError(f"Dataset is missing {e}") from e
    if not isinstance(rows, dict):
        raise ExpectationsError(f"Dataset '{table}': rows must map key -> fields")
    key_column = raw.get('key_column', 'id')
    return Dataset(
        table=table,
        key_column=key_column,
        rows=tuple(ExpectedRow(str(key), _parse_fields(fields)) for key, fields in rows.items()),
    )


def _parse_lookup(raw: Dict[str, Any]) -> RowLookup:
    try:
        return RowLookup(
            table=raw['table'],
            key_column=raw.get('key_column', 'id'),
            key=str(raw['key']),
            fields=_parse_fields(raw['fields']),
            ignore_case=bool(raw.get('ignore_case', False)),
        )
    except KeyError as e:
        raise ExpectationsError(f"Lookup is missing {e}") from e


def parse_expectations(data: Dict[str, Any], source: Optional[str] = None) -> Expectations:
    """Build Expectations from an already-decoded JSON document."""
    if not isinstance(data, dict):
        raise ExpectationsError("Expectations document must be a JSON object")

    tables = tuple(_parse_table(name, cols) for name, cols in data.get('tables', {}).items())

    row_counts = []
    for table, count in data.get('row_counts', {}).items():
        if not isinstance(count, int) or isinstance(count, bool) or count < 0:
            raise ExpectationsError(f"Row count for '{table}' must be a non-negative integer")
        row_counts.append((table, count))

    primary_keys = []
    for table, column in data.get('primary_keys', {}).items():
        if not isinstance(column, str) or not column:
            raise ExpectationsError(f"Primary key for '{table}' must be a column name")
        primary_keys.append((table, column))

    alter_table = None
    query_output = None
    query_file = data.get('query_file') or {}
    if 'alter_primary_key' in query_file:
        spec = query_file['alter_primary_key']
        try:
            alter_table = (spec['table'], spec['column'])
        except (KeyError, TypeError) as e:
            raise ExpectationsError("query_file.alter_primary_key needs 'table' and 'column'") from e
    if 'output' in query_file:
        spec = query_file['output']
        try:
            query_output = QueryOutput(
                column=spec['column'],
                values=tuple(str(v) for v in spec['values']),
                ignore_case=bool(spec.get('ignore_case', True)),
            )
        except (KeyError, TypeError) as e:
            raise ExpectationsError("query_file.output needs 'column' and 'values'") from e

    return Expectations(
        schema=data.get('schema', DEFAULT_SCHEMA),
        tables=tables,
        primary_keys=tuple(primary_keys),
        row_counts=tuple(row_counts),
        datasets=tuple(_parse_dataset(d) for d in data.get('datasets', [])),
        lookups=tuple(_parse_lookup(lk) for lk in data.get('lookups', [])),
        alter_table=alter_table,
        query_output=query_output,
        source=source,
    )


def load_expectations(path: Optional[Union[str, Path]] = None) -> Expectations:
    """Load expectations from a JSON file (the bundled assignment by default).

    Raises:
        ExpectationsError: If the file is missing, not JSON, or malformed
    """
    exp_path = Path(path) if path else DEFAULT_EXPECTATIONS
    if not exp_path.exists():
        raise ExpectationsError(f"Expectations file not found: {exp_path}")

    try:
        with open(exp_path, 'r', encoding='utf-8') as f:
            data = json.load(f)
    except json.JSONDecodeError as e:
        raise ExpectationsError(f"Invalid JSON in {exp_path}: {e}") from e

    expectations = parse_expectations(data, source=str(exp_path))
    logger.info(f"Loaded expectations from {exp_path}: {len(expectations.tables)} tables, "
                f"{len(expectations.datasets)} datasets, {len(expectations.lookups)} lookups")
    return expectations
