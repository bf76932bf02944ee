"""
Type matching for schema conformance checks.
"""

from .type_check import type_matches, is_type_category

__all__ = ['type_matches', 'is_type_category']
