"""
Conformance Grader

Grades a learner-populated database: checks that expected tables, columns
and constraints exist, verifies seeded rows against fixed expected values,
and inspects the learner's SQL file for the required statements.
"""

__version__ = "1.0.0"
__author__ = "Database Grading Team"

# Configuration and expectations
from .config import GradingConfig
from .expectations import Expectations, load_expectations

# Database utilities
from .db.schema_reader import SchemaIntrospector

# Checks
from .grading.conformance import ConformanceChecker
from .grading.data_verifier import DataVerifier
from .grading.query_inspector import check_statement_pattern, primary_key_pattern
from .grading.pipeline import RunContext, run_checks, grade

# Models and errors
from .models import (
    TableSpec, ColumnMetadata, ExpectedField, ExpectedRow, Dataset, RowLookup,
    CheckResult, ConformanceResult, Failure, FailureKind, StatementCheck,
    StatementOutcome, GradingReport,
)
from .errors import GradingError, DatabaseConnectionError, QueryError, ExpectationsError, ConfigError
from .matching.type_check import type_matches

# Utilities
from .utils.log import get_logger

__all__ = [
    # Configuration
    'GradingConfig', 'Expectations', 'load_expectations',
    # Database
    'SchemaIntrospector',
    # Checks
    'ConformanceChecker', 'DataVerifier', 'check_statement_pattern', 'primary_key_pattern',
    'RunContext', 'run_checks', 'grade',
    # Models
    'TableSpec', 'ColumnMetadata', 'ExpectedField', 'ExpectedRow', 'Dataset', 'RowLookup',
    'CheckResult', 'ConformanceResult', 'Failure', 'FailureKind', 'StatementCheck',
    'StatementOutcome', 'GradingReport', 'type_matches',
    # Errors
    'GradingError', 'DatabaseConnectionError', 'QueryError', 'ExpectationsError', 'ConfigError',
    # Utilities
    'get_logger',
]
