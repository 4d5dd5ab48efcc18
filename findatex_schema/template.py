"""
template.py - High-level API for validating producer files against a template.
"""

from __future__ import annotations

import logging
from pathlib import Path
from typing import Any, Mapping, Optional

from . import loader
from . import parser
from .catalog import SchemaCatalog, compile_catalog
from .engine import validate
from .report import ValidationResult

log = logging.getLogger(__name__)


class Template:
    """A compiled regulatory template (EPT, TPT, or any catalog on disk)."""

    def __init__(self, catalog: SchemaCatalog, *, strict: bool = False):
        self.catalog = catalog
        self.strict = strict

    @property
    def title(self) -> str:
        return self.catalog.title

    @property
    def version(self) -> str:
        return self.catalog.version

    @property
    def description(self) -> str:
        return self.catalog.description

    @classmethod
    def from_definition(cls, definition: Mapping[str, Any], *, strict: bool = False) -> "Template":
        return cls(compile_catalog(definition), strict=strict)

    @classmethod
    def load(cls, path: str | Path, *, strict: bool = False) -> "Template":
        """Load and compile a schema definition (a path, a bundled file name, or ``ept``/``tpt``)."""
        template = cls.from_definition(loader.load_schema(path), strict=strict)
        log.info(
            "Loaded template %s (%s): %d fields",
            template.title or path, template.version or "unversioned", len(template.catalog),
        )
        return template

    def validate(
        self,
        source: Any,
        *,
        strict: Optional[bool] = None,
        workers: Optional[int] = None,
    ) -> ValidationResult:
        """
        End-to-end helper.
        1. Read *source* into a record or a batch (file / literal / mapping / DataFrame).
        2. Validate it against the compiled catalog.
        """
        subject = parser.parse_input(source, self.catalog)
        return validate(
            self.catalog,
            subject,
            strict=self.strict if strict is None else strict,
            workers=workers,
        )
