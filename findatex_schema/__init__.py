"""
findatex_schema – schema-driven validation for FinDatEx EPT and TPT reports.
"""
from .catalog import SchemaCatalog, FieldDefinition, FieldType, SchemaError, compile_catalog
from .engine import validate
from .report import ErrorKind, ValidationError, ValidationResult
from .template import Template
from .parser import parse_input
from .card import to_markdown_card

__all__ = [
    "SchemaCatalog",
    "FieldDefinition",
    "FieldType",
    "SchemaError",
    "compile_catalog",
    "validate",
    "ErrorKind",
    "ValidationError",
    "ValidationResult",
    "Template",
    "parse_input",
    "to_markdown_card",
]
