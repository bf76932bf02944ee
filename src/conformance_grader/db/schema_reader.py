"""
Database schema reading utilities for conformance checks.

All queries go through INFORMATION_SCHEMA and are filtered by the schema
under test. Table names are matched case-insensitively, because MySQL folds
them differently per platform. Statements that name a table directly must
use the spelling returned by `resolve_table()`.
"""

from typing import Dict, List, Optional

from ..models import ColumnMetadata
from ..utils.log import get_logger

logger = get_logger(__name__)

SCHEMA_SQL = """
    SELECT SCHEMA_NAME AS schema_name
    FROM INFORMATION_SCHEMA.SCHEMATA
    WHERE SCHEMA_NAME = ?"""

TABLE_SQL = """
    SELECT TABLE_NAME AS table_name
    FROM INFORMATION_SCHEMA.TABLES
    WHERE TABLE_SCHEMA = ?
      AND TABLE_TYPE = 'BASE TABLE'
      AND LOWER(TABLE_NAME) = LOWER(?)"""

COLUMNS_SQL = """
    SELECT COLUMN_NAME AS column_name, DATA_TYPE AS data_type
    FROM INFORMATION_SCHEMA.COLUMNS
    WHERE TABLE_SCHEMA = ?
      AND LOWER(TABLE_NAME) = LOWER(?)
    ORDER BY ORDINAL_POSITION"""

PRIMARY_KEY_SQL = """
    SELECT KU.COLUMN_NAME AS column_name
    FROM INFORMATION_SCHEMA.TABLE_CONSTRAINTS AS TC
    JOIN INFORMATION_SCHEMA.KEY_COLUMN_USAGE AS KU
        ON TC.CONSTRAINT_NAME = KU.CONSTRAINT_NAME
       AND TC.TABLE_SCHEMA = KU.TABLE_SCHEMA
       AND TC.TABLE_NAME = KU.TABLE_NAME
    WHERE TC.CONSTRAINT_TYPE = 'PRIMARY KEY'
      AND TC.TABLE_SCHEMA = ?
      AND LOWER(TC.TABLE_NAME) = LOWER(?)
    ORDER BY KU.ORDINAL_POSITION"""


class SchemaIntrospector:
    """Read-only metadata queries against one schema.

    Args:
        handle: Open connection exposing fetch(sql, *params)
        schema: Schema (database) name under test
    """

    def __init__(self, handle, schema: str):
        self.handle = handle
        self.schema = schema

    def schema_exists(self) -> bool:
        rows = self.handle.fetch(SCHEMA_SQL, self.schema)
        return bool(rows)

    def resolve_table(self, name: str) -> Optional[str]:
        """Get the table name as the catalog spells it, or None if there is no such table."""
        rows = self.handle.fetch(TABLE_SQL, self.schema, name)
        actual = str(rows[0]['table_name']) if rows else None
        logger.debug(f"Table {self.schema}.{name}: {actual or 'not found'}")
        return actual

    def table_exists(self, name: str) -> bool:
        """Check if a base table exists. Absence is a normal outcome, not an error."""
        return self.resolve_table(name) is not None

    def column_metadata(self, name: str) -> List[ColumnMetadata]:
        """Get column metadata of a table in ordinal order, names and types as reported."""
        return [ColumnMetadata(str(row['column_name']), str(row['data_type'] or ''))
                for row in self.handle.fetch(COLUMNS_SQL, self.schema, name)]

    def columns(self, name: str) -> Dict[str, str]:
        """Get observed columns of a table.

        Args:
            name: Table name

        Returns:
            Dict[str, str]: lower-cased column name -> upper-cased type name,
            in ordinal order
        """
        observed = {col.name.lower(): col.type_name.upper() for col in self.column_metadata(name)}
        logger.debug(f"Columns of {name}: {observed}")
        return observed

    def primary_key_columns(self, name: str) -> List[str]:
        """Get the primary key columns of a table, lower-cased, in key order."""
        return [str(row['column_name']).lower()
                for row in self.handle.fetch(PRIMARY_KEY_SQL, self.schema, name)]
