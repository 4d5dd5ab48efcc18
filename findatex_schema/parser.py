"""
parser.py - format readers for EPT / TPT producer files
=======================================================

Turns whatever the caller holds (a file, a JSON or YAML literal, a mapping,
a list of mappings, a DataFrame) into the in-memory shape the engine
validates: one ``dict`` or a ``list`` of them.  No validation happens here.

Public API
----------
`parse_input(source, catalog=None) -> dict | list`
    Supported variants:
    * ``Mapping`` - copied directly.
    * ``list`` / ``tuple`` - a batch, returned as a list.
    * ``pandas.DataFrame`` - one record per row, empty cells dropped.
    * ``Path`` - JSON (``.json``), YAML (``.yaml``/``.yml``) or CSV (``.csv``).
    * ``str`` - existing file path → read; else JSON literal; else YAML text.

`read_json(text)`, `read_yaml(text)`, `read_csv(path, catalog)`, `frame_to_records(df)`
    The individual readers.

JSON and YAML decode to the same shapes: the YAML reader follows the YAML 1.2
scalar rules, so ``2024-01-01`` stays a string, ``1e5`` is a number and
``NO`` is not a boolean, exactly as in JSON.  CSV cells are text unless a
catalog marks the column numeric.
"""

from __future__ import annotations

import json
import logging
import re
from pathlib import Path
from typing import Any, Mapping, Optional

import pandas as pd
import yaml

from . import utils
from .catalog import FieldType, SchemaCatalog

__all__ = [
    "parse_input",
    "read_file",
    "read_json",
    "read_yaml",
    "read_csv",
    "frame_to_records",
]

log = logging.getLogger(__name__)

# --------------------------------------------------------------------------- #
# YAML loader with JSON-compatible scalars                                    #
# --------------------------------------------------------------------------- #

class _Loader(yaml.SafeLoader):
    """Safe loader that resolves plain scalars the way YAML 1.2 / JSON do.

    ISO dates and date-times stay strings, only ``true``/``false`` are
    booleans (``NO`` is Norway), and exponent floats such as ``1e5`` are
    numbers.
    """


_REPLACED_TAGS = {
    "tag:yaml.org,2002:bool",
    "tag:yaml.org,2002:int",
    "tag:yaml.org,2002:float",
    "tag:yaml.org,2002:timestamp",
}

_Loader.yaml_implicit_resolvers = {
    first: [(tag, rx) for tag, rx in resolvers if tag not in _REPLACED_TAGS]
    for first, resolvers in yaml.SafeLoader.yaml_implicit_resolvers.items()
}

# int before float: every integer literal also matches the float pattern
_Loader.add_implicit_resolver(
    "tag:yaml.org,2002:bool",
    re.compile(r"^(?:true|True|TRUE|false|False|FALSE)$"),
    list("tTfF"),
)
_Loader.add_implicit_resolver(
    "tag:yaml.org,2002:int",
    re.compile(r"^(?:[-+]?[0-9]+|0o[0-7]+|0x[0-9a-fA-F]+)$"),
    list("-+0123456789"),
)
_Loader.add_implicit_resolver(
    "tag:yaml.org,2002:float",
    re.compile(
        r"""^(?:[-+]?(?:\.[0-9]+|[0-9]+(?:\.[0-9]*)?)(?:[eE][-+]?[0-9]+)?
            |[-+]?\.(?:inf|Inf|INF)
            |\.(?:nan|NaN|NAN))$""",
        re.X,
    ),
    list("-+.0123456789"),
)


def _construct_int(loader: yaml.SafeLoader, node: yaml.ScalarNode) -> int:
    """Decimal, ``0o`` octal or ``0x`` hex; a leading zero is still decimal."""
    text = loader.construct_scalar(node)
    if text[:2] in ("0o", "0x"):
        return int(text, 0)
    return int(text)


_Loader.add_constructor("tag:yaml.org,2002:int", _construct_int)


# --------------------------------------------------------------------------- #
# Readers                                                                     #
# --------------------------------------------------------------------------- #

def read_json(text: str) -> Any:
    try:
        return json.loads(text)
    except json.JSONDecodeError as exc:
        raise ValueError(f"Invalid JSON: {exc}") from exc


def read_yaml(text: str) -> Any:
    try:
        return yaml.load(text, Loader=_Loader)
    except yaml.YAMLError as exc:
        raise ValueError(f"Invalid YAML: {exc}") from exc


def frame_to_records(frame: pd.DataFrame) -> list[dict[str, Any]]:
    """One dict per row; NaN / None cells are dropped rather than kept as values."""
    records: list[dict[str, Any]] = []
    for row in frame.to_dict(orient="records"):
        rec: dict[str, Any] = {}
        for key, value in row.items():
            if hasattr(value, "item") and not isinstance(value, (str, bytes)):
                value = value.item()  # numpy scalar → Python scalar
            if not utils._is_missing(value):
                rec[str(key)] = value
        records.append(rec)
    return records


_NUMERIC_TYPES = {FieldType.INTEGER, FieldType.NUMBER, FieldType.INTEGER_ENUM}
_INT_RE = re.compile(r"[-+]?[0-9]+")
_FLOAT_RE = re.compile(r"[-+]?(?:[0-9]+\.?[0-9]*|\.[0-9]+)(?:[eE][-+]?[0-9]+)?")


def _to_number(text: str) -> Any:
    """``"1500"`` -> 1500, ``"0.5"`` -> 0.5; anything else is returned unchanged."""
    stripped = text.strip()
    if _INT_RE.fullmatch(stripped):
        return int(stripped)
    if _FLOAT_RE.fullmatch(stripped):
        return float(stripped)
    return text


def read_csv(path: str | Path, catalog: Optional[SchemaCatalog] = None) -> list[dict[str, Any]]:
    """Read a TPT-style CSV (one holding per row) into records.

    Every cell is read as text, so identifiers such as ``037833100`` keep
    their leading zeros.  With a *catalog*, columns of ``integer``,
    ``number`` and ``integer-enum`` fields are converted to numbers; a cell
    that is not a numeric literal is left as text for the validator to
    report.  Only empty cells count as missing (``"NA"`` stays a string).
    """
    frame = pd.read_csv(path, dtype=str, keep_default_na=False, na_values=[""])
    records = frame_to_records(frame)
    if catalog is None:
        return records

    numeric = {d.identifier for d in catalog if d.type in _NUMERIC_TYPES}
    for rec in records:
        for key in numeric.intersection(rec):
            rec[key] = _to_number(rec[key])
    return records


_SUFFIX_READERS = {
    ".json": read_json,
    ".yaml": read_yaml,
    ".yml": read_yaml,
}


def read_file(path: str | Path, catalog: Optional[SchemaCatalog] = None) -> Any:
    """Dispatch on the file suffix; raise crisp errors on failure.

    *catalog* only matters for CSV, where it decides which columns are numeric.
    """
    p = Path(path)
    suffix = p.suffix.lower()
    if suffix == ".csv":
        if not p.is_file():
            raise FileNotFoundError(f"Input not found: {p}")
        data: Any = read_csv(p, catalog)
    else:
        reader = _SUFFIX_READERS.get(suffix)
        if reader is None:
            raise ValueError(f"Unsupported input format '{suffix or p.name}' (expected .json, .yaml, .yml or .csv)")
        try:
            text = p.read_text(encoding="utf-8")
        except FileNotFoundError as exc:
            raise FileNotFoundError(f"Input not found: {p}") from exc
        try:
            data = reader(text)
        except ValueError as exc:
            raise ValueError(f"{p}: {exc}") from exc

    log.debug(
        "Read %s from %s",
        f"{len(data)} record(s)" if isinstance(data, list) else "1 record",
        p,
    )
    return data


def _is_file(text: str) -> bool:
    if "\n" in text or len(text) > 1024:
        return False
    try:
        return Path(text).is_file()
    except OSError:
        return False


# --------------------------------------------------------------------------- #
# Input parsing utility                                                       #
# --------------------------------------------------------------------------- #

def parse_input(source: Any, catalog: Optional[SchemaCatalog] = None) -> Any:
    """Convert *source* to a raw record or list of records (no validation)."""

    # DataFrame - batch of rows -------------------------------------------
    if isinstance(source, pd.DataFrame):
        return frame_to_records(source)

    # Mapping / sequence - already in memory -------------------------------
    if isinstance(source, Mapping):
        return dict(source)
    if isinstance(source, (list, tuple)):
        return list(source)

    # Path - read from disk ------------------------------------------------
    if isinstance(source, Path):
        return read_file(source, catalog)

    # str - file, JSON literal, or YAML text -------------------------------
    if isinstance(source, str):
        if _is_file(source):
            return read_file(source, catalog)
        try:
            return json.loads(source)
        except json.JSONDecodeError:
            return read_yaml(source)

    raise TypeError(f"Unsupported type for parse_input: {type(source)}")
