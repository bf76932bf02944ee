"""
Query-text inspection for learner-submitted SQL files.

The file is expected to hold exactly two statements separated by a single
terminator: a SELECT whose output is checked against the database, then an
ALTER TABLE adding a primary key. The second statement is only
pattern-matched, never executed.
"""

import re
from pathlib import Path
from typing import Optional, Tuple, Union

from ..models import StatementCheck, StatementOutcome
from ..utils.constants import STATEMENT_TERMINATOR
from ..utils.log import get_logger

logger = get_logger(__name__)

# Identifier, bare or quoted with a matching pair: `name`, "name" or [name]
_IDENTIFIER_FORMS = ('`{0}`', '"{0}"', r'\[{0}\]', '{0}')


def _identifier(name: str) -> str:
    escaped = re.escape(name)
    return '(?:' + '|'.join(form.format(escaped) for form in _IDENTIFIER_FORMS) + ')'


def primary_key_pattern(table: str, column: str) -> re.Pattern:
    """Build the pattern for `ALTER TABLE <table> ADD PRIMARY KEY (<column>)`.

    Case-insensitive; an optional trailing terminator and whitespace are
    allowed.
    """
    return re.compile(
        r'^ALTER\s+TABLE\s+' + _identifier(table) +
        r'\s+ADD\s+PRIMARY\s+KEY\s*\(\s*' + _identifier(column) +
        r'\s*\)\s*' + re.escape(STATEMENT_TERMINATOR) + r'?\s*$',
        re.IGNORECASE,
    )


def split_statements(contents: str) -> Optional[Tuple[str, str]]:
    """Split on the first terminator.

    Returns:
        Optional[Tuple[str, str]]: (first statement, candidate statement),
        both trimmed, or None if there is no terminator
    """
    first, sep, rest = contents.partition(STATEMENT_TERMINATOR)
    if not sep:
        return None
    return first.strip(), rest.strip()


def check_statement_pattern(contents: str, pattern: Union[str, re.Pattern]) -> StatementCheck:
    """Check the statement after the first terminator against `pattern`.

    Args:
        contents: Raw text of the query file
        pattern: Compiled pattern, or a pattern string compiled case-insensitively

    Returns:
        StatementCheck: matched, statement-present-but-wrong-shape, or
        no-second-statement-found
    """
    if isinstance(pattern, str):
        pattern = re.compile(pattern, re.IGNORECASE)

    parts = split_statements(contents)
    if parts is None or not parts[1]:
        logger.info("No second statement found in query file")
        return StatementCheck(StatementOutcome.NO_SECOND_STATEMENT)

    candidate = parts[1]
    if STATEMENT_TERMINATOR in candidate.rstrip().rstrip(STATEMENT_TERMINATOR):
        # Only two-statement files are supported; extra statements make the candidate fail to match
        logger.warning(f"Query file holds more than two statements; checking everything after the first "
                       f"'{STATEMENT_TERMINATOR}' as one statement")

    if pattern.search(candidate):
        return StatementCheck(StatementOutcome.MATCHED, candidate)
    return StatementCheck(StatementOutcome.WRONG_SHAPE, candidate)


def read_query_file(path: Union[str, Path]) -> Optional[str]:
    """Read the learner's query file; None if it is missing or unreadable."""
    query_path = Path(path)
    if not query_path.is_file():
        logger.warning(f"Query file not found: {query_path}")
        return None
    try:
        return query_path.read_text(encoding='utf-8')
    except (OSError, UnicodeDecodeError) as e:
        logger.error(f"Error reading query file {query_path}: {e}")
        return None
