"""
validator.py - per-field type, format, enumeration and range checks
===================================================================

One generic interpreter for every :class:`~findatex_schema.catalog.FieldDefinition`.
Dispatch is on the definition's closed :class:`~findatex_schema.catalog.FieldType`;
no value is silently coerced (``"12"`` is not a number).

Public API
----------
validate_field(definition, value) -> list[ValidationError]
    Empty list means the value is acceptable.  Presence is *not* checked
    here; callers only pass values that are present.
"""

from __future__ import annotations

from typing import Any, Callable

from . import utils
from .catalog import FieldDefinition, FieldType
from .iso4217 import is_currency_code
from .report import ErrorKind, ValidationError

__all__ = ["validate_field"]


def _error(fdef: FieldDefinition, kind: ErrorKind, message: str, value: Any) -> ValidationError:
    return ValidationError(field=fdef.identifier, kind=kind, message=f"{fdef.identifier}: {message}", value=value)


def _type_error(fdef: FieldDefinition, expected: str, value: Any) -> list[ValidationError]:
    return [_error(fdef, ErrorKind.TYPE_MISMATCH, f"expected {expected}, got {utils._type_name(value)}", value)]


# --------------------------------------------------------------------------- #
# Per-type checks                                                             #
# --------------------------------------------------------------------------- #

def _check_string(fdef: FieldDefinition, value: Any) -> list[ValidationError]:
    if not isinstance(value, str):
        return _type_error(fdef, "string", value)
    errors: list[ValidationError] = []
    if fdef.min_length is not None and len(value) < fdef.min_length:
        errors.append(_error(fdef, ErrorKind.FORMAT_MISMATCH, f"shorter than {fdef.min_length} characters", value))
    if fdef.max_length is not None and len(value) > fdef.max_length:
        errors.append(_error(fdef, ErrorKind.FORMAT_MISMATCH, f"longer than {fdef.max_length} characters", value))
    if fdef.pattern is not None and not fdef.pattern.fullmatch(value):
        errors.append(_error(fdef, ErrorKind.FORMAT_MISMATCH, f"'{value}' does not match pattern {fdef.pattern.pattern!r}", value))
    return errors


def _check_range(fdef: FieldDefinition, value: Any) -> list[ValidationError]:
    if fdef.minimum is not None and value < fdef.minimum:
        return [_error(fdef, ErrorKind.RANGE_VIOLATION, f"{value} is below minimum {fdef.minimum}", value)]
    if fdef.maximum is not None and value > fdef.maximum:
        return [_error(fdef, ErrorKind.RANGE_VIOLATION, f"{value} is above maximum {fdef.maximum}", value)]
    return []


def _check_integer(fdef: FieldDefinition, value: Any) -> list[ValidationError]:
    if not utils._is_integer(value):
        return _type_error(fdef, "integer", value)
    return _check_range(fdef, value)


def _check_number(fdef: FieldDefinition, value: Any) -> list[ValidationError]:
    if not utils._is_number(value):
        return _type_error(fdef, "number", value)
    return _check_range(fdef, value)


def _check_enum(fdef: FieldDefinition, value: Any) -> list[ValidationError]:
    if fdef.type is FieldType.STRING_ENUM:
        if not isinstance(value, str):
            return _type_error(fdef, "string", value)
    elif not utils._is_integer(value):
        return _type_error(fdef, "integer", value)
    if value not in fdef.enum:
        return [_error(fdef, ErrorKind.ENUM_MISMATCH, f"'{value}' not in {list(fdef.enum)}", value)]
    return []


def _check_date(fdef: FieldDefinition, value: Any) -> list[ValidationError]:
    if not isinstance(value, str):
        return _type_error(fdef, "string", value)
    if not utils._is_date(value):
        return [_error(fdef, ErrorKind.FORMAT_MISMATCH, f"'{value}' is not an ISO-8601 date (YYYY-MM-DD)", value)]
    return []


def _check_datetime(fdef: FieldDefinition, value: Any) -> list[ValidationError]:
    if not isinstance(value, str):
        return _type_error(fdef, "string", value)
    if not utils._is_datetime(value):
        return [_error(fdef, ErrorKind.FORMAT_MISMATCH, f"'{value}' is not ISO-8601 date-time", value)]
    return []


def _check_currency(fdef: FieldDefinition, value: Any) -> list[ValidationError]:
    if not isinstance(value, str):
        return _type_error(fdef, "string", value)
    if not is_currency_code(value):
        return [_error(fdef, ErrorKind.ENUM_MISMATCH, f"'{value}' is not an ISO 4217 currency code", value)]
    return []


_CHECKS: dict[FieldType, Callable[[FieldDefinition, Any], list[ValidationError]]] = {
    FieldType.STRING: _check_string,
    FieldType.INTEGER: _check_integer,
    FieldType.NUMBER: _check_number,
    FieldType.STRING_ENUM: _check_enum,
    FieldType.INTEGER_ENUM: _check_enum,
    FieldType.DATE: _check_date,
    FieldType.DATE_TIME: _check_datetime,
    FieldType.CURRENCY: _check_currency,
}


# --------------------------------------------------------------------------- #
# Public API                                                                  #
# --------------------------------------------------------------------------- #

def validate_field(definition: FieldDefinition, value: Any) -> list[ValidationError]:
    """Return every problem with *value* under *definition* (empty = valid)."""
    return _CHECKS[definition.type](definition, value)
