"""
loader.py - read schema definitions from disk or from the bundled catalogs.

Public API
----------
load_schema(path) : function helper to obtain a fresh copy
bundled_schemas() : names of the catalogs shipped with the package
"""

from __future__ import annotations

import json
import logging
from importlib import resources
from pathlib import Path
from typing import Any

from .catalog import SchemaError

__all__ = ["load_schema", "bundled_schemas"]

log = logging.getLogger(__name__)

# short names accepted in place of the bundled file names
_ALIASES = {
    "ept": "ept_schema.json",
    "tpt": "tpt_schema.json",
}

# --------------------------------------------------------------------------- #
# Helpers                                                                     #
# --------------------------------------------------------------------------- #

def _no_duplicates(pairs: list[tuple[str, Any]]) -> dict[str, Any]:
    """``object_pairs_hook`` that refuses repeated keys instead of keeping the last."""
    out: dict[str, Any] = {}
    for key, value in pairs:
        if key in out:
            raise SchemaError(f"duplicate key {key!r} in schema definition")
        out[key] = value
    return out


def _parse(text: str, origin: str) -> dict:
    """Parse JSON schema text, raising crisp errors on failure."""
    try:
        return json.loads(text, object_pairs_hook=_no_duplicates)
    except json.JSONDecodeError as exc:
        raise ValueError(f"Invalid JSON in {origin}: {exc}") from exc


# --------------------------------------------------------------------------- #
# Public utilities                                                            #
# --------------------------------------------------------------------------- #

def bundled_schemas() -> list[str]:
    pkg = resources.files("findatex_schema.schemas")
    return sorted(p.name for p in pkg.iterdir() if p.name.endswith(".json"))


def load_schema(path: str | Path) -> dict:
    p = Path(path)

    # 1) direct file on disk ------------------------------------------------
    if p.is_file():
        log.debug("Loading schema definition from %s", p)
        return _parse(p.read_text(encoding="utf-8"), str(p))

    # 2) bundled resource (alias, basename, or exact string) ---------------
    pkg = resources.files("findatex_schema.schemas")
    candidates = (_ALIASES.get(str(path).lower(), ""), p.name, str(path))
    for name in filter(None, candidates):
        try:
            text = pkg.joinpath(name).read_text(encoding="utf-8")
        except (FileNotFoundError, IsADirectoryError, NotADirectoryError):
            continue   # try the next candidate
        log.debug("Loading bundled schema definition %s", name)
        return _parse(text, name)

    # 3) give up -----------------------------------------------------------
    raise FileNotFoundError(
        f"Schema '{path}' not found on disk or in package data"
    )
