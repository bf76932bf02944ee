"""
Database access: schema introspection.

The pyodbc-backed DatabaseConnection lives in `db.connection` and is imported
explicitly where a live handle is opened.
"""

from .schema_reader import SchemaIntrospector

__all__ = ['SchemaIntrospector']
