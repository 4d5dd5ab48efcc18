"""
report.py - validation errors, results, and their machine-consumable shapes
==========================================================================

Every problem found in a record is *data*: a :class:`ValidationError`
appended to a :class:`ValidationResult`.  Nothing in here raises for bad
input.

Public API
----------
ErrorKind
    Closed taxonomy of validation failures.

ValidationError
    One finding (field, kind, message, batch index, triggering fields, value).

ValidationResult
    Ordered findings plus the overall ``valid`` flag, with ``to_dict``,
    ``to_json``, ``to_frame`` and ``summary`` exporters.
"""

from __future__ import annotations

import enum
import json
from collections import Counter
from dataclasses import dataclass, field
from typing import Any, Iterable, Optional

import pandas as pd

__all__ = [
    "ErrorKind",
    "ValidationError",
    "ValidationResult",
]


class ErrorKind(str, enum.Enum):
    """Rule violated by a :class:`ValidationError`."""

    MISSING_REQUIRED_FIELD = "MissingRequiredField"
    UNKNOWN_FIELD = "UnknownField"
    TYPE_MISMATCH = "TypeMismatch"
    FORMAT_MISMATCH = "FormatMismatch"
    ENUM_MISMATCH = "EnumMismatch"
    RANGE_VIOLATION = "RangeViolation"
    CONDITIONAL_REQUIREMENT_VIOLATION = "ConditionalRequirementViolation"

    def __str__(self) -> str:
        return self.value


@dataclass(frozen=True)
class ValidationError:
    """A single validation finding.

    ``field`` is ``None`` for record-level problems (e.g. a batch element
    that is not a mapping).  ``index`` is the record's position in a batch
    and ``None`` in single-record mode.
    """

    field: Optional[str]
    kind: ErrorKind
    message: str
    index: Optional[int] = None
    triggers: tuple[str, ...] = ()
    value: Any = None

    def with_index(self, index: Optional[int]) -> "ValidationError":
        return ValidationError(
            field=self.field,
            kind=self.kind,
            message=self.message,
            index=index,
            triggers=self.triggers,
            value=self.value,
        )

    def to_dict(self) -> dict[str, Any]:
        out: dict[str, Any] = {
            "field": self.field,
            "kind": self.kind.value,
            "message": self.message,
        }
        if self.index is not None:
            out["index"] = self.index
        if self.triggers:
            out["triggers"] = list(self.triggers)
        if self.value is not None:
            out["value"] = self.value
        return out


@dataclass
class ValidationResult:
    """Outcome of one ``validate`` call."""

    errors: list[ValidationError] = field(default_factory=list)
    records: int = 1
    batch: bool = False

    @property
    def valid(self) -> bool:
        return not self.errors

    def __bool__(self) -> bool:
        return self.valid

    # ------------------------------------------------------------------ #
    # Accessors                                                          #
    # ------------------------------------------------------------------ #
    def for_record(self, index: int) -> list[ValidationError]:
        """Errors belonging to the batch record at *index*."""
        return [e for e in self.errors if e.index == index]

    def kinds(self) -> list[ErrorKind]:
        return [e.kind for e in self.errors]

    def summary(self) -> dict[str, int]:
        """Count of errors per kind, in taxonomy order."""
        counts = Counter(e.kind for e in self.errors)
        return {k.value: counts[k] for k in ErrorKind if counts[k]}

    # ------------------------------------------------------------------ #
    # Exporters                                                          #
    # ------------------------------------------------------------------ #
    def to_dict(self) -> dict[str, Any]:
        return {
            "valid": self.valid,
            "errors": [e.to_dict() for e in self.errors],
        }

    def to_json(self, *, indent: int | None = 2) -> str:
        return json.dumps(self.to_dict(), indent=indent, ensure_ascii=False, default=str)

    def to_frame(self) -> pd.DataFrame:
        """One row per error; an empty frame keeps the column layout."""
        columns = ["index", "field", "kind", "message", "triggers", "value"]
        rows = [
            {
                "index": e.index,
                "field": e.field,
                "kind": e.kind.value,
                "message": e.message,
                "triggers": ", ".join(e.triggers),
                "value": e.value,
            }
            for e in self.errors
        ]
        return pd.DataFrame(rows, columns=columns)

    @classmethod
    def merge(cls, parts: Iterable[list[ValidationError]], *, batch: bool) -> "ValidationResult":
        """Concatenate per-record error lists, stamping batch indexes."""
        errors: list[ValidationError] = []
        count = 0
        for idx, part in enumerate(parts):
            count += 1
            errors.extend(e.with_index(idx if batch else None) for e in part)
        return cls(errors=errors, records=count, batch=batch)
