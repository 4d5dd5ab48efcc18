# findatex_schema/card.py
from __future__ import annotations
from typing import Any, Optional

from .report import ValidationResult

__all__ = ["to_markdown_card"]

def _format_scalar(v: Any) -> str:
    """Return a Markdown-safe scalar string."""
    if v is True:   return "true"
    if v is False:  return "false"
    if v is None:   return "null"
    return str(v)

def _record_label(index: Optional[int]) -> str:
    return "Record" if index is None else f"Record {index}"

def to_markdown_card(result: ValidationResult, *, title: str = "Validation Report", heading_level: int = 2) -> str:
    """
    Convert *result* into a Markdown report.

    Parameters
    ----------
    result : ValidationResult
        Output of :func:`findatex_schema.engine.validate`.
    title : str
        Text of the top-level heading.
    heading_level : int, default 2
        Markdown heading level for the title (##, ###, …); each record
        section sits one level below it.

    Returns
    -------
    str
        Markdown document.
    """
    h = "#" * heading_level
    parts: list[str] = [f"{h} {title}", ""]
    status = "valid" if result.valid else "invalid"
    parts.append(f"**Status**: {status} ({result.records} record(s), {len(result.errors)} error(s))")
    parts.append("")

    if result.valid:
        return "\n".join(parts).rstrip()

    parts.append("| Kind | Count |")
    parts.append("|---|---|")
    for kind, count in result.summary().items():
        parts.append(f"| {kind} | {count} |")
    parts.append("")

    # one section per record, in first-seen order
    indexes: list[Optional[int]] = []
    for err in result.errors:
        if err.index not in indexes:
            indexes.append(err.index)
    for idx in indexes:
        parts.append(f"{h}# {_record_label(idx)}")
        for err in result.errors:
            if err.index == idx:
                parts.append(f"- **{err.kind.value}** `{_format_scalar(err.field)}`: {_format_scalar(err.message)}")
        parts.append("")             # blank line after each section
    return "\n".join(parts).rstrip()
