from __future__ import annotations

import argparse
import base64
import dataclasses
import logging
import sys
from pathlib import Path
from signal import SIGINT, signal
from typing import TYPE_CHECKING

from dotenv import load_dotenv

from claimledger.app import (
    import_csv_file,
    import_extracted_documents,
    in_memory_unit_of_work_factory,
)
from claimledger.config import ConfigurationError, configure_logging, get_import_config

if TYPE_CHECKING:
    from collections.abc import Sequence
    from types import FrameType

    from claimledger.config import ImportConfig
    from claimledger.domain.model import ImportResult

log = logging.getLogger(__name__)


def _add_common_arguments(parser: argparse.ArgumentParser) -> None:
    parser.add_argument("file", type=Path, help="Input file to import")
    parser.add_argument(
        "--in-memory",
        action="store_true",
        help="Reconcile against an empty in-memory store instead of the database",
    )
    parser.add_argument(
        "--corrections-out",
        type=Path,
        help="Write the CSV of rejected and dropped rows to this path",
    )
    parser.add_argument(
        "--tolerance",
        type=float,
        help="Allowed difference between declared total and line sum (defaults to config)",
    )
    parser.add_argument(
        "--default-adjuster",
        type=str,
        help="Adjuster attached to accounts created without one",
    )


def _parse_args(argv: Sequence[str]) -> argparse.Namespace:
    parser = argparse.ArgumentParser(description="Reconcile claim communications into storage")
    subparsers = parser.add_subparsers(dest="command", required=True)

    csv_import = subparsers.add_parser("import-csv", help="Import a delimited file")
    _add_common_arguments(csv_import)
    csv_import.add_argument(
        "--delimiter",
        type=str,
        help="Field delimiter (defaults to config)",
    )
    csv_import.add_argument(
        "--decimal-separator",
        type=str,
        choices=(".", ","),
        help="Decimal separator used in amounts (defaults to config)",
    )

    json_import = subparsers.add_parser(
        "import-json",
        help="Import documents produced by the extraction service",
    )
    _add_common_arguments(json_import)

    return parser.parse_args(list(argv))


def _build_config(args: argparse.Namespace) -> ImportConfig:
    config = get_import_config()
    overrides: dict[str, object] = {}
    if args.tolerance is not None:
        overrides["tolerance"] = args.tolerance
    if args.default_adjuster:
        overrides["default_adjuster"] = args.default_adjuster
    if getattr(args, "delimiter", None):
        overrides["delimiter"] = args.delimiter
    if getattr(args, "decimal_separator", None):
        overrides["decimal_separator"] = args.decimal_separator
    return dataclasses.replace(config, **overrides) if overrides else config


def _report(result: ImportResult, corrections_out: Path | None) -> None:
    if not result.success:
        suffix = f" (phase {result.failed_phase})" if result.failed_phase else ""
        log.error("Import failed%s: %s", suffix, result.message)
        return

    log.info("Import finished: %s", result.message)
    for table, count in result.created.items():
        log.info("Created %s %s", count, table)
    for rejected in result.rejected:
        log.warning(
            "Rejected %s/%s (%s): %s",
            rejected.account_ref,
            rejected.communication_code,
            rejected.kind,
            rejected.reason,
        )
    for note in result.corrections:
        log.info("Corrected %s/%s: %s", note.account_ref, note.communication_code, note.message)

    if corrections_out is not None and result.corrective_csv is not None:
        corrections_out.write_bytes(base64.b64decode(result.corrective_csv))
        log.info("Wrote corrections to %s", corrections_out)


def main(argv: Sequence[str] | None = None) -> None:
    """Main application entry point."""
    load_dotenv()
    configure_logging()
    parsed_args: argparse.Namespace
    args_list = list(argv) if argv is not None else list(sys.argv[1:])
    try:
        parsed_args = _parse_args(args_list)
        config = _build_config(parsed_args)
    except (ValueError, ConfigurationError):
        log.exception("CLI validation error")
        sys.exit(2)

    factory = in_memory_unit_of_work_factory() if parsed_args.in_memory else None
    try:
        if parsed_args.command == "import-csv":
            result = import_csv_file(
                parsed_args.file, unit_of_work_factory=factory, config=config
            )
        elif parsed_args.command == "import-json":
            result = import_extracted_documents(
                parsed_args.file, unit_of_work_factory=factory, config=config
            )
        else:
            raise ValueError(f"Unsupported command: {parsed_args.command}")  # noqa: TRY301
        _report(result, parsed_args.corrections_out)
    except Exception:
        log.exception("Fatal error during import")
        sys.exit(1)

    if not result.success:
        sys.exit(1)


def sigint_handler(_signal_received: int, _frame: FrameType | None) -> None:
    """Handle SIGINT (Ctrl+C) gracefully."""
    log.info("Closed by user (Ctrl+C)")
    sys.exit(0)


if __name__ == "__main__":
    signal(SIGINT, sigint_handler)
    main()
