"""
engine.py - validate one record or a batch of records against a catalog
=======================================================================

Public API
----------
validate(catalog, subject, *, strict=False, workers=None) -> ValidationResult
    *subject* is a mapping (single record), a list/tuple of mappings, or a
    :class:`pandas.DataFrame` (one record per row).  Every step runs for
    every record; errors accumulate, nothing short-circuits.

validate_record(catalog, record, *, strict=False) -> list[ValidationError]
    The per-record pass, without batch indexing.

The engine performs no I/O and keeps no state between calls, so a single
compiled catalog can be shared by concurrent callers.
"""

from __future__ import annotations

from concurrent.futures import ThreadPoolExecutor
from functools import partial
from typing import Any, Mapping, Optional

import pandas as pd

from . import utils
from .catalog import SchemaCatalog
from .conditions import evaluate_all
from .parser import frame_to_records
from .report import ErrorKind, ValidationError, ValidationResult
from .validator import validate_field

__all__ = ["validate", "validate_record"]


def validate_record(catalog: SchemaCatalog, record: Any, *, strict: bool = False) -> list[ValidationError]:
    if not isinstance(record, Mapping):
        return [
            ValidationError(
                field=None,
                kind=ErrorKind.TYPE_MISMATCH,
                message=f"record: expected object, got {utils._type_name(record)}",
            )
        ]

    errors: list[ValidationError] = []

    # 1) required presence -------------------------------------------------
    for ident in catalog.required_fields:
        if utils._is_missing(record.get(ident)):
            errors.append(
                ValidationError(
                    field=ident,
                    kind=ErrorKind.MISSING_REQUIRED_FIELD,
                    message=f"{ident}: missing required field",
                )
            )

    # 2) undeclared fields (strict mode only) ------------------------------
    if strict:
        for key in record:
            if key not in catalog:
                errors.append(
                    ValidationError(
                        field=str(key),
                        kind=ErrorKind.UNKNOWN_FIELD,
                        message=f"{key}: field is not declared in {catalog.title or 'the catalog'}",
                    )
                )

    # 3) per-field checks, in catalog order --------------------------------
    for fdef in catalog:
        value = record.get(fdef.identifier)
        if not utils._is_missing(value):
            errors.extend(validate_field(fdef, value))

    # 4) conditional rules -------------------------------------------------
    errors.extend(evaluate_all(catalog, record))
    return errors


def validate(
    catalog: SchemaCatalog,
    subject: Any,
    *,
    strict: bool = False,
    workers: Optional[int] = None,
) -> ValidationResult:
    """Validate *subject* and return every problem found."""
    if isinstance(subject, pd.DataFrame):
        records = frame_to_records(subject)
    elif isinstance(subject, (list, tuple)):
        records = list(subject)
    else:
        return ValidationResult.merge([validate_record(catalog, subject, strict=strict)], batch=False)

    check = partial(validate_record, catalog, strict=strict)
    if workers and workers > 1 and len(records) > 1:
        # map() yields in submission order, so record order is preserved
        with ThreadPoolExecutor(max_workers=workers) as pool:
            parts = list(pool.map(check, records))
    else:
        parts = [check(r) for r in records]
    return ValidationResult.merge(parts, batch=True)
