"""
Type checking utilities for column type conformance.

Database engines report type names inconsistently (a column declared FLOAT
may come back as REAL, a VARCHAR as 'varchar' or 'VARCHAR(255)'), so expected
types are engine-agnostic categories matched against observed names by
prefix and a small equivalence table.
"""

from typing import Optional

from ..utils.constants import TYPE_CATEGORIES, TYPE_CHAR, TYPE_FLOAT, FLOAT_ALIASES


def is_type_category(category: str) -> bool:
    """Check whether `category` is one of the supported expected type categories."""
    return category.upper() in TYPE_CATEGORIES


def type_matches(expected: str, observed: Optional[str]) -> bool:
    """Check whether an observed type name satisfies an expected category.

    - FLOAT: observed REAL or FLOAT
    - CHAR: any observed type starting with CHAR
    - anything else: observed type starts with the expected category

    Args:
        expected: Expected type category (e.g. 'VARCHAR')
        observed: Type name reported by the database (e.g. 'varchar(255)')

    Returns:
        bool: True if the observed type is acceptable
    """
    if not observed:
        return False

    expected_upper = expected.strip().upper()
    observed_upper = observed.strip().upper()

    if observed_upper.startswith(expected_upper):
        return True
    if expected_upper == TYPE_FLOAT and observed_upper in FLOAT_ALIASES:
        return True
    if expected_upper == TYPE_CHAR and observed_upper.startswith(TYPE_CHAR):
        return True
    return False
