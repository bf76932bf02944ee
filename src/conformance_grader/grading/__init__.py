"""
Grading checks: schema conformance, data verification and query-text inspection.
"""

from .conformance import ConformanceChecker
from .data_verifier import DataVerifier, compare_field
from .query_inspector import check_statement_pattern, primary_key_pattern, split_statements, read_query_file
from .pipeline import RunContext, run_checks, grade
from .reporter import save_results_csv, format_summary

__all__ = [
    'ConformanceChecker', 'DataVerifier', 'compare_field',
    'check_statement_pattern', 'primary_key_pattern', 'split_statements', 'read_query_file',
    'RunContext', 'run_checks', 'grade',
    'save_results_csv', 'format_summary',
]
