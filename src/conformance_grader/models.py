"""
Data model for conformance checks.

Expectations (TableSpec, ExpectedField, ExpectedRow, Dataset, RowLookup) are
built once from the expectations document and never mutated. Results
(Failure, CheckResult, StatementCheck, GradingReport) are built fresh per run.
"""

from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict, List, Optional, Tuple

from .utils.constants import FLOAT_TOLERANCE


class FailureKind(str, Enum):
    SCHEMA_MISMATCH = "SchemaMismatch"
    DATA_MISMATCH = "DataMismatch"
    MALFORMED_INPUT = "MalformedInput"


class StatementOutcome(str, Enum):
    MATCHED = "matched"
    WRONG_SHAPE = "statement-present-but-wrong-shape"
    NO_SECOND_STATEMENT = "no-second-statement-found"


@dataclass(frozen=True)
class TableSpec:
    """Expected table: name plus ordered (column, type category) pairs."""
    name: str
    columns: Tuple[Tuple[str, str], ...]

    @classmethod
    def from_mapping(cls, name: str, columns: Dict[str, str]) -> 'TableSpec':
        return cls(name, tuple((col, typ.upper()) for col, typ in columns.items()))

    def column_names(self) -> List[str]:
        return [col for col, _ in self.columns]


@dataclass(frozen=True)
class ColumnMetadata:
    name: str
    type_name: str


@dataclass(frozen=True)
class ExpectedField:
    """Expected value of one field.

    A value of None means the field must be absent (SQL NULL). `normalize`
    ('lower' or 'upper') is applied to both sides of a string comparison.
    """
    value: Any
    normalize: Optional[str] = None
    tolerance: float = FLOAT_TOLERANCE


@dataclass(frozen=True)
class ExpectedRow:
    key: str
    fields: Tuple[Tuple[str, ExpectedField], ...]


@dataclass(frozen=True)
class Dataset:
    """Full expected content of a table, keyed by `key_column`."""
    table: str
    key_column: str
    rows: Tuple[ExpectedRow, ...]

    def keys(self) -> List[str]:
        return [row.key for row in self.rows]


@dataclass(frozen=True)
class RowLookup:
    """A single row located by key, optionally matched case-insensitively."""
    table: str
    key_column: str
    key: str
    fields: Tuple[Tuple[str, ExpectedField], ...]
    ignore_case: bool = False


@dataclass(frozen=True)
class QueryOutput:
    """Expected output of the learner's query: values of one column."""
    column: str
    values: Tuple[str, ...]
    ignore_case: bool = True


@dataclass(frozen=True)
class Failure:
    kind: FailureKind
    message: str
    expected: Any = None
    observed: Any = None

    def __str__(self) -> str:
        return f"[{self.kind.value}] {self.message}"


@dataclass
class CheckResult:
    """Outcome of one named check. Truthy iff it passed."""
    name: str
    failures: List[Failure] = field(default_factory=list)

    @property
    def passed(self) -> bool:
        return not self.failures

    def fail(self, kind: FailureKind, message: str, expected: Any = None, observed: Any = None) -> None:
        self.failures.append(Failure(kind, message, expected, observed))

    def __bool__(self) -> bool:
        return self.passed

    def describe(self) -> str:
        if self.passed:
            return f"PASS {self.name}"
        return f"FAIL {self.name}: " + "; ".join(f.message for f in self.failures)


# Conformance checks share the generic result shape
ConformanceResult = CheckResult


@dataclass(frozen=True)
class StatementCheck:
    outcome: StatementOutcome
    statement: Optional[str] = None

    @property
    def matched(self) -> bool:
        return self.outcome is StatementOutcome.MATCHED

    def __bool__(self) -> bool:
        return self.matched


@dataclass
class GradingReport:
    """Ordered results of one run."""
    results: List[CheckResult] = field(default_factory=list)
    aborted: bool = False
    error: Optional[str] = None

    @property
    def passed(self) -> bool:
        return not self.aborted and all(r.passed for r in self.results)

    @property
    def passed_count(self) -> int:
        return sum(1 for r in self.results if r.passed)

    @property
    def failed_count(self) -> int:
        return len(self.results) - self.passed_count
