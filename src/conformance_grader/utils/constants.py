"""
Constants and configuration values for the conformance grading harness.

This module centralizes type categories, tolerances, query-text markers and
connection defaults.
"""

from typing import Final

# === Type Categories ===
TYPE_VARCHAR: Final[str] = "VARCHAR"
TYPE_CHAR: Final[str] = "CHAR"
TYPE_FLOAT: Final[str] = "FLOAT"
TYPE_SMALLINT: Final[str] = "SMALLINT"
TYPE_DATE: Final[str] = "DATE"
TYPE_CATEGORIES: Final[tuple] = (TYPE_VARCHAR, TYPE_CHAR, TYPE_FLOAT, TYPE_SMALLINT, TYPE_DATE)

# Observed type names accepted for FLOAT besides the prefix rule
FLOAT_ALIASES: Final[tuple] = ("REAL", "FLOAT")

# === Data Verification ===
FLOAT_TOLERANCE: Final[float] = 0.01
NORMALIZERS: Final[tuple] = ("lower", "upper")

# === Query Text ===
STATEMENT_TERMINATOR: Final[str] = ";"

# === Matching Thresholds ===
# Minimum rapidfuzz score for suggesting a column name in "column missing" messages
SUGGESTION_THRESHOLD: Final[int] = 70

# === Database Settings ===
DEFAULT_DRIVER: Final[str] = "MySQL ODBC 8.0 Unicode Driver"
DEFAULT_SERVER: Final[str] = "localhost"
DEFAULT_PORT: Final[int] = 3306
DEFAULT_SCHEMA: Final[str] = "ltimindtree_db"
DEFAULT_USER: Final[str] = "root"
DEFAULT_TIMEOUT: Final[int] = 30
IDENTIFIER_QUOTE: Final[str] = "`"

# === Files ===
DEFAULT_QUERY_FILE: Final[str] = "queries.sql"
DEFAULT_OUTPUT_FOLDER: Final[str] = "results"
RESULTS_CSV: Final[str] = "conformance_results.csv"
CSV_ENCODING: Final[str] = "utf-8-sig"
