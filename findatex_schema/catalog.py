"""
catalog.py - compile a declarative field schema into an immutable catalog
=========================================================================

A schema definition is plain data (usually a JSON file) describing every
numbered template field::

    {
      "title": "EPT", "version": "V21",
      "fields": {
        "00006_EPT_Data_Reporting_Narratives": {"type": "string-enum", "enum": ["Y", "N"], "required": true},
        "01130_Maturity_Date": {
          "type": "date",
          "rules": [{"if": {"field": "01125_Has_A_Contractual_Maturity_Date", "equals": "Y"},
                     "then": "required"}]
        }
      },
      "exclusive": [["0018_Quantity", "0019_Nominal_amount"]]
    }

:func:`compile_catalog` checks the definition once and returns a
:class:`SchemaCatalog`.  Every structural problem is raised here as a
:class:`SchemaError`; the validation engine trusts a compiled catalog
unconditionally.

The compact JSON-Schema-lite spellings (``{"type": "string", "enum": [...]}``,
``{"type": "string", "format": "date"}``) are normalised to the explicit
field types below.
"""

from __future__ import annotations

import enum
import logging
import re
from dataclasses import dataclass, field
from types import MappingProxyType
from typing import Any, Iterator, Mapping, Optional

from . import utils

__all__ = [
    "SchemaError",
    "FieldType",
    "Consequence",
    "Condition",
    "ConditionalRule",
    "FieldDefinition",
    "SchemaCatalog",
    "compile_catalog",
]

log = logging.getLogger(__name__)

# --------------------------------------------------------------------------- #
# Exceptions                                                                  #
# --------------------------------------------------------------------------- #

class SchemaError(ValueError):
    """Raised when a schema definition is malformed and cannot be compiled."""


# --------------------------------------------------------------------------- #
# Catalog types                                                               #
# --------------------------------------------------------------------------- #

class FieldType(str, enum.Enum):
    """Closed set of field kinds understood by the field validators."""

    STRING = "string"
    INTEGER = "integer"
    NUMBER = "number"
    STRING_ENUM = "string-enum"
    INTEGER_ENUM = "integer-enum"
    DATE = "date"
    DATE_TIME = "date-time"
    CURRENCY = "currency-code"


class Consequence(str, enum.Enum):
    REQUIRED = "required"
    FORBIDDEN = "forbidden"
    EQUALS = "equals"


@dataclass(frozen=True)
class Condition:
    """Trigger on another field: ``equals`` one value, ``in`` a set, or ``present``."""

    field: str
    op: str
    values: tuple[Any, ...] = ()

    def describe(self) -> str:
        if self.op == "present":
            return f"{self.field} is present"
        if self.op == "equals":
            return f"{self.field} = {self.values[0]!r}"
        return f"{self.field} in {list(self.values)!r}"


@dataclass(frozen=True)
class ConditionalRule:
    """If ``condition`` holds, apply ``consequence`` to ``target``."""

    target: str
    condition: Condition
    consequence: Consequence
    expected: Any = None


@dataclass(frozen=True)
class FieldDefinition:
    identifier: str
    type: FieldType
    required: bool = False
    enum: Optional[tuple[Any, ...]] = None
    minimum: Optional[float] = None
    maximum: Optional[float] = None
    pattern: Optional[re.Pattern] = None
    min_length: Optional[int] = None
    max_length: Optional[int] = None
    description: str = ""
    rules: tuple[ConditionalRule, ...] = ()


@dataclass(frozen=True)
class SchemaCatalog:
    """Ordered, read-only collection of :class:`FieldDefinition` objects.

    Safe to share between threads: nothing in it is mutated after
    :func:`compile_catalog` returns.
    """

    fields: Mapping[str, FieldDefinition]
    rules: tuple[ConditionalRule, ...] = ()
    title: str = ""
    version: str = ""
    description: str = ""
    _required: tuple[str, ...] = field(default=(), repr=False)

    def __contains__(self, identifier: object) -> bool:
        return identifier in self.fields

    def __getitem__(self, identifier: str) -> FieldDefinition:
        return self.fields[identifier]

    def __iter__(self) -> Iterator[FieldDefinition]:
        return iter(self.fields.values())

    def __len__(self) -> int:
        return len(self.fields)

    def get(self, identifier: str) -> Optional[FieldDefinition]:
        return self.fields.get(identifier)

    @property
    def identifiers(self) -> tuple[str, ...]:
        return tuple(self.fields)

    @property
    def required_fields(self) -> tuple[str, ...]:
        return self._required


# --------------------------------------------------------------------------- #
# Compilation helpers                                                         #
# --------------------------------------------------------------------------- #

_DESCRIPTOR_KEYS = {
    "type", "format", "required", "enum", "minimum", "maximum", "pattern",
    "minLength", "maxLength", "description", "rules",
}

_FORMAT_TYPES = {
    "date": FieldType.DATE,
    "date-time": FieldType.DATE_TIME,
    "currency": FieldType.CURRENCY,
    "currency-code": FieldType.CURRENCY,
}

_ENUM_TYPES = {FieldType.STRING_ENUM, FieldType.INTEGER_ENUM}
_NUMERIC_TYPES = {FieldType.INTEGER, FieldType.NUMBER}


def _resolve_type(path: str, spec: Mapping[str, Any]) -> FieldType:
    raw = spec.get("type", "string")
    if not isinstance(raw, str):
        raise SchemaError(f"{path}: 'type' must be a string, got {utils._type_name(raw)}")

    fmt = spec.get("format")
    if fmt is not None:
        if raw != "string" or fmt not in _FORMAT_TYPES:
            raise SchemaError(f"{path}: unsupported format {fmt!r} for type {raw!r}")
        return _FORMAT_TYPES[fmt]

    if raw in ("string", "integer") and "enum" in spec:
        raw = f"{raw}-enum"
    try:
        return FieldType(raw)
    except ValueError:
        allowed = ", ".join(t.value for t in FieldType)
        raise SchemaError(f"{path}: unknown type {raw!r} (allowed: {allowed})") from None


def _compile_enum(path: str, ftype: FieldType, spec: Mapping[str, Any]) -> Optional[tuple[Any, ...]]:
    values = spec.get("enum")
    if ftype not in _ENUM_TYPES:
        if values is not None:
            raise SchemaError(f"{path}: 'enum' is not allowed on type {ftype.value!r}")
        return None
    if not isinstance(values, (list, tuple)) or not values:
        raise SchemaError(f"{path}: enumeration must be a non-empty list")
    if ftype is FieldType.STRING_ENUM:
        ok = all(isinstance(v, str) for v in values)
    else:
        ok = all(isinstance(v, int) and not isinstance(v, bool) for v in values)
    if not ok:
        raise SchemaError(f"{path}: enum values do not match type {ftype.value!r}")
    if len(set(values)) != len(values):
        raise SchemaError(f"{path}: enum values are not unique")
    return tuple(values)


def _compile_bounds(path: str, ftype: FieldType, spec: Mapping[str, Any]) -> tuple[Optional[float], Optional[float]]:
    lo, hi = spec.get("minimum"), spec.get("maximum")
    if lo is None and hi is None:
        return None, None
    if ftype not in _NUMERIC_TYPES:
        raise SchemaError(f"{path}: bounds are only allowed on numeric types")
    for name, bound in (("minimum", lo), ("maximum", hi)):
        if bound is not None and not utils._is_number(bound):
            raise SchemaError(f"{path}: '{name}' must be a number")
    if lo is not None and hi is not None and lo > hi:
        raise SchemaError(f"{path}: minimum {lo} is greater than maximum {hi}")
    return lo, hi


def _compile_string_facets(path: str, ftype: FieldType, spec: Mapping[str, Any]):
    pattern, lo, hi = spec.get("pattern"), spec.get("minLength"), spec.get("maxLength")
    if (pattern, lo, hi) == (None, None, None):
        return None, None, None
    if ftype is not FieldType.STRING:
        raise SchemaError(f"{path}: pattern/length facets are only allowed on type 'string'")

    compiled = None
    if pattern is not None:
        if not isinstance(pattern, str):
            raise SchemaError(f"{path}: 'pattern' must be a string")
        try:
            compiled = re.compile(pattern)
        except re.error as exc:
            raise SchemaError(f"{path}: invalid pattern {pattern!r}: {exc}") from exc

    for name, n in (("minLength", lo), ("maxLength", hi)):
        if n is not None and (not isinstance(n, int) or isinstance(n, bool) or n < 0):
            raise SchemaError(f"{path}: '{name}' must be a non-negative integer")
    if lo is not None and hi is not None and lo > hi:
        raise SchemaError(f"{path}: minLength {lo} is greater than maxLength {hi}")
    return compiled, lo, hi


def _compile_condition(path: str, spec: Any) -> Condition:
    if not isinstance(spec, Mapping) or not isinstance(spec.get("field"), str):
        raise SchemaError(f"{path}: 'if' must be an object naming a 'field'")
    ops = [op for op in ("equals", "in", "present") if op in spec]
    if len(ops) != 1 or set(spec) - {"field", *ops}:
        raise SchemaError(f"{path}: 'if' needs exactly one of 'equals', 'in', 'present'")

    op = ops[0]
    if op == "equals":
        return Condition(spec["field"], op, (spec["equals"],))
    if op == "in":
        values = spec["in"]
        if not isinstance(values, (list, tuple)) or not values:
            raise SchemaError(f"{path}: 'in' must be a non-empty list")
        return Condition(spec["field"], op, tuple(values))
    if spec["present"] is not True:
        raise SchemaError(f"{path}: 'present' only accepts true")
    return Condition(spec["field"], op)


def _compile_rule(path: str, target: str, spec: Any) -> ConditionalRule:
    if not isinstance(spec, Mapping) or set(spec) != {"if", "then"}:
        raise SchemaError(f"{path}: a rule needs exactly the keys 'if' and 'then'")
    cond = _compile_condition(f"{path}.if", spec["if"])
    if cond.field == target:
        raise SchemaError(f"{path}: rule on {target!r} cannot be triggered by itself")

    then = spec["then"]
    if isinstance(then, Mapping) and set(then) == {"equals"}:
        return ConditionalRule(target, cond, Consequence.EQUALS, then["equals"])
    if then in (Consequence.REQUIRED.value, Consequence.FORBIDDEN.value):
        return ConditionalRule(target, cond, Consequence(then))
    raise SchemaError(f"{path}: 'then' must be 'required', 'forbidden' or {{'equals': value}}")


def _compile_field(identifier: str, spec: Any) -> FieldDefinition:
    path = f"fields.{identifier}"
    if not isinstance(spec, Mapping):
        raise SchemaError(f"{path}: descriptor must be an object")
    unknown = set(spec) - _DESCRIPTOR_KEYS
    if unknown:
        raise SchemaError(f"{path}: unknown descriptor keys {sorted(unknown)}")

    ftype = _resolve_type(path, spec)
    required = spec.get("required", False)
    if not isinstance(required, bool):
        raise SchemaError(f"{path}: 'required' must be a boolean")

    rules_spec = spec.get("rules", [])
    if not isinstance(rules_spec, (list, tuple)):
        raise SchemaError(f"{path}: 'rules' must be a list")

    lo, hi = _compile_bounds(path, ftype, spec)
    pattern, min_len, max_len = _compile_string_facets(path, ftype, spec)
    return FieldDefinition(
        identifier=identifier,
        type=ftype,
        required=required,
        enum=_compile_enum(path, ftype, spec),
        minimum=lo,
        maximum=hi,
        pattern=pattern,
        min_length=min_len,
        max_length=max_len,
        description=str(spec.get("description", "")),
        rules=tuple(
            _compile_rule(f"{path}.rules[{i}]", identifier, r) for i, r in enumerate(rules_spec)
        ),
    )


def _iter_field_specs(fields: Any) -> Iterator[tuple[str, Any]]:
    """Yield ``(identifier, descriptor)`` from a mapping or a list of ``{"id": ...}``."""
    if isinstance(fields, Mapping):
        yield from fields.items()
        return
    if not isinstance(fields, (list, tuple)):
        raise SchemaError("fields: must be an object or a list of descriptors")
    for i, spec in enumerate(fields):
        if not isinstance(spec, Mapping) or not isinstance(spec.get("id"), str):
            raise SchemaError(f"fields[{i}]: list entries need a string 'id'")
        yield spec["id"], {k: v for k, v in spec.items() if k != "id"}


def _exclusive_rules(groups: Any, known: Mapping[str, FieldDefinition]) -> list[ConditionalRule]:
    """Expand each group into "forbidden if an earlier member is present" rules."""
    if not isinstance(groups, (list, tuple)):
        raise SchemaError("exclusive: must be a list of field groups")
    out: list[ConditionalRule] = []
    for g, group in enumerate(groups):
        path = f"exclusive[{g}]"
        if not isinstance(group, (list, tuple)) or len(group) < 2:
            raise SchemaError(f"{path}: a group needs at least two field identifiers")
        if len(set(group)) != len(group):
            raise SchemaError(f"{path}: duplicate identifiers in group")
        for ident in group:
            if ident not in known:
                raise SchemaError(f"{path}: unknown field {ident!r}")
        for j, later in enumerate(group):
            for earlier in group[:j]:
                out.append(ConditionalRule(later, Condition(earlier, "present"), Consequence.FORBIDDEN))
    return out


def _check_expected(rule: ConditionalRule, target: FieldDefinition, path: str) -> None:
    if rule.consequence is Consequence.EQUALS and target.enum is not None and rule.expected not in target.enum:
        raise SchemaError(f"{path}: expected value {rule.expected!r} is not in the enumeration of {target.identifier!r}")


# --------------------------------------------------------------------------- #
# Public API                                                                  #
# --------------------------------------------------------------------------- #

def compile_catalog(definition: Mapping[str, Any]) -> SchemaCatalog:
    """Compile *definition* into a :class:`SchemaCatalog` or raise :class:`SchemaError`."""
    if not isinstance(definition, Mapping):
        raise SchemaError("root: schema definition must be an object")
    if "fields" not in definition:
        raise SchemaError("root: missing required key 'fields'")

    compiled: dict[str, FieldDefinition] = {}
    for identifier, spec in _iter_field_specs(definition["fields"]):
        if not isinstance(identifier, str) or not identifier:
            raise SchemaError(f"fields: identifier must be a non-empty string, got {identifier!r}")
        if identifier in compiled:
            raise SchemaError(f"fields.{identifier}: duplicate field identifier")
        compiled[identifier] = _compile_field(identifier, spec)

    # references are checked once every identifier is known
    rules: list[ConditionalRule] = []
    for fdef in compiled.values():
        for i, rule in enumerate(fdef.rules):
            path = f"fields.{fdef.identifier}.rules[{i}]"
            if rule.condition.field not in compiled:
                raise SchemaError(f"{path}: unknown trigger field {rule.condition.field!r}")
            _check_expected(rule, fdef, path)
            rules.append(rule)
    rules.extend(_exclusive_rules(definition.get("exclusive", []), compiled))

    catalog = SchemaCatalog(
        fields=MappingProxyType(compiled),
        rules=tuple(rules),
        title=str(definition.get("title", "")),
        version=str(definition.get("version", "")),
        description=str(definition.get("description", "")),
        _required=tuple(k for k, v in compiled.items() if v.required),
    )
    log.debug(
        "Compiled catalog %r: %d fields (%d required), %d rules",
        catalog.title, len(catalog), len(catalog.required_fields), len(catalog.rules),
    )
    return catalog
