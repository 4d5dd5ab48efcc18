"""
cli.py - ``findatex-validate`` command-line entry point
=======================================================

    findatex-validate --schema ept fund.yaml
    findatex-validate --schema tpt --format table holdings.json holdings.csv
    findatex-validate --schema ./my_schema.json --strict report.json

Exit status: 0 when every file is valid, 1 when any file is invalid,
2 when the schema or an input file cannot be read.
"""

from __future__ import annotations

import argparse
import logging
import sys
from pathlib import Path
from typing import Sequence

from .card import to_markdown_card
from .catalog import SchemaError
from .report import ValidationResult
from .template import Template

log = logging.getLogger("findatex_schema.cli")

EXIT_OK, EXIT_INVALID, EXIT_ERROR = 0, 1, 2


def build_arg_parser() -> argparse.ArgumentParser:
    p = argparse.ArgumentParser(
        prog="findatex-validate",
        description="Validate EPT / TPT producer files against a field catalog.",
        fromfile_prefix_chars="@",
    )
    p.add_argument("files", nargs="+", metavar="FILE", help="JSON, YAML or CSV input file(s).")
    p.add_argument(
        "--schema",
        required=True,
        help="'ept', 'tpt', a bundled schema file name, or a path to a schema JSON file.",
    )
    p.add_argument("--strict", action="store_true", help="Report fields not declared in the schema.")
    p.add_argument(
        "--format",
        choices=["json", "markdown", "table"],
        default="json",
        help="Report format written to stdout (default: json).",
    )
    p.add_argument("--workers", type=int, default=None, help="Threads used for batch files.")
    p.add_argument(
        "--verbosity",
        choices=["DEBUG", "INFO", "WARNING", "ERROR"],
        default="WARNING",
        help="Log level for messages on stderr (default: WARNING).",
    )
    return p


def _render(result: ValidationResult, path: str, fmt: str) -> str:
    if fmt == "markdown":
        return to_markdown_card(result, title=f"Validation Report: {path}")
    if fmt == "table":
        if result.valid:
            return f"{path}: valid"
        return f"{path}: invalid\n{result.to_frame().to_string(index=False)}"
    return result.to_json()


def main(argv: Sequence[str] | None = None) -> int:
    args = build_arg_parser().parse_args(argv)
    logging.basicConfig(
        level=args.verbosity,
        format="%(asctime)s %(levelname)s %(message)s",
    )

    try:
        template = Template.load(args.schema, strict=args.strict)
    except (SchemaError, FileNotFoundError, ValueError) as exc:
        log.error("Cannot load schema %s: %s", args.schema, exc)
        return EXIT_ERROR

    status = EXIT_OK
    for name in args.files:
        try:
            result = template.validate(Path(name), workers=args.workers)
        except (FileNotFoundError, ValueError) as exc:
            log.error("Cannot read %s: %s", name, exc)
            status = EXIT_ERROR
            continue

        if result.valid:
            log.info("%s: valid (%d record(s))", name, result.records)
        else:
            log.warning("%s: %d error(s) in %d record(s)", name, len(result.errors), result.records)
            if status == EXIT_OK:
                status = EXIT_INVALID
        print(_render(result, name, args.format))

    return status


if __name__ == "__main__":  # pragma: no cover
    sys.exit(main())
