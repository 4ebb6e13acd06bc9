# File: schemagen/cli.py
"""
schemagen - Command-Line Interface
===================================

Built with the standard-library ``argparse`` module.

Usage examples::

    # Summarise a DDL file
    schemagen parse schema.sql
    schemagen parse schema.sql --json

    # Generate a project archive
    schemagen generate schema.sql -o shop.zip --data-store mysql --date-logs

    # Settings from a file, flags win
    schemagen generate schema.sql --config schemagen.yaml --no-swagger

    # Serve the HTTP API
    schemagen serve --port 8080

Exit codes:
    0 — success
    1 — parse error (no tables found)
    2 — generation error
    3 — export (write) error
    4 — input/argument error
"""

from __future__ import annotations

import argparse
import json
import logging
import sys
from datetime import datetime
from pathlib import Path
from typing import Any, Dict, List, NoReturn, Optional, Sequence

# ---------------------------------------------------------------------------
# Logger (configured in _setup_logging)
# ---------------------------------------------------------------------------
logger: logging.Logger = logging.getLogger("schemagen")


# ---------------------------------------------------------------------------
# Exit codes
# ---------------------------------------------------------------------------

EXIT_SUCCESS: int = 0
EXIT_PARSE_ERROR: int = 1
EXIT_GENERATION_ERROR: int = 2
EXIT_EXPORT_ERROR: int = 3
EXIT_INPUT_ERROR: int = 4

_DATA_STORE_CHOICES: List[str] = ["postgresql", "mysql", "mssql", "oracle", "mongodb"]


# ---------------------------------------------------------------------------
# Logging setup
# ---------------------------------------------------------------------------


def _setup_logging(verbosity: int) -> None:
    """
    Configure the ``schemagen`` logger based on verbosity level.

    Args:
        verbosity: -1 = ERROR, 0 = WARNING, 1 = INFO, 2+ = DEBUG.
    """
    if verbosity >= 2:
        level = logging.DEBUG
    elif verbosity >= 1:
        level = logging.INFO
    elif verbosity == 0:
        level = logging.WARNING
    else:
        level = logging.ERROR

    handler: logging.StreamHandler = logging.StreamHandler(sys.stderr)
    handler.setLevel(level)

    fmt: str = "%(asctime)s │ %(levelname)-8s │ %(name)s │ %(message)s"
    datefmt: str = "%H:%M:%S"
    formatter: logging.Formatter = logging.Formatter(fmt, datefmt=datefmt)
    handler.setFormatter(formatter)

    root_logger: logging.Logger = logging.getLogger("schemagen")
    root_logger.setLevel(level)

    # Remove existing handlers to prevent duplication
    root_logger.handlers.clear()
    root_logger.addHandler(handler)

    # Prevent propagation to root logger
    root_logger.propagate = False


# ---------------------------------------------------------------------------
# Argument parser
# ---------------------------------------------------------------------------


def _add_verbosity(parser: argparse.ArgumentParser) -> None:
    verbosity_group = parser.add_argument_group("verbosity")
    verbosity_group.add_argument(
        "-v", "--verbose",
        action="count",
        default=0,
        help="Increase verbosity (-v for INFO, -vv for DEBUG).",
    )
    verbosity_group.add_argument(
        "-q", "--quiet",
        action="store_true",
        default=False,
        help="Suppress all output except errors.",
    )


def _build_parser() -> argparse.ArgumentParser:
    """Build and return the argument parser."""
    from schemagen import __version__

    parser: argparse.ArgumentParser = argparse.ArgumentParser(
        prog="schemagen",
        description=(
            "schemagen — SQL DDL to FastAPI project generator.\n\n"
            "Reads CREATE TABLE statements in PostgreSQL, MySQL, SQL Server "
            "or Oracle syntax and emits a zipped FastAPI + SQLAlchemy 2.0 "
            "backend."
        ),
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog=(
            "Examples:\n"
            "  %(prog)s parse schema.sql --json\n"
            "  %(prog)s generate schema.sql -o shop.zip --date-logs\n"
            "  %(prog)s serve --port 8080\n"
        ),
    )
    parser.add_argument(
        "--version",
        action="version",
        version=f"schemagen v{__version__}",
    )
    subparsers = parser.add_subparsers(dest="command", metavar="COMMAND")
    subparsers.required = True

    # --- parse ---
    parse_cmd = subparsers.add_parser("parse", help="Summarise the tables of a DDL file.")
    parse_cmd.add_argument("file", metavar="FILE", help="SQL file to parse.")
    parse_cmd.add_argument(
        "--json",
        dest="as_json",
        action="store_true",
        default=False,
        help="Print the summary as JSON.",
    )
    _add_verbosity(parse_cmd)

    # --- generate ---
    gen_cmd = subparsers.add_parser("generate", help="Generate a FastAPI project archive.")
    gen_cmd.add_argument("file", metavar="FILE", help="SQL file to generate from.")
    gen_cmd.add_argument(
        "-o", "--output",
        type=str,
        default=None,
        metavar="OUT.zip",
        help="Archive path (default: ./<project>-fastapi-app.zip).",
    )
    gen_cmd.add_argument(
        "--project-name",
        type=str,
        default=None,
        metavar="NAME",
        help="Override the project name derived from the file name.",
    )
    gen_cmd.add_argument(
        "--timestamp",
        type=str,
        default=None,
        metavar="ISO",
        help="Generation timestamp written to the README (ISO-8601).",
    )
    gen_cmd.add_argument(
        "--manifest",
        type=str,
        default=None,
        metavar="PATH",
        help="Also write a JSON manifest of the archive entries.",
    )

    config_group = gen_cmd.add_argument_group("configuration overrides")
    config_group.add_argument(
        "--config",
        type=str,
        default=None,
        metavar="PATH",
        help="YAML or JSON file with generation settings.",
    )
    config_group.add_argument(
        "--data-store",
        type=str,
        default=None,
        choices=_DATA_STORE_CHOICES,
        help="Target data store of the generated project.",
    )
    config_group.add_argument(
        "--no-validations",
        dest="full_validations",
        action="store_const",
        const=False,
        default=None,
        help="Omit validation annotations on request contracts.",
    )
    config_group.add_argument(
        "--no-swagger",
        dest="with_swagger",
        action="store_const",
        const=False,
        default=None,
        help="Omit OpenAPI documentation annotations.",
    )
    config_group.add_argument(
        "--date-logs",
        dest="date_logs",
        action="store_const",
        const=True,
        default=None,
        help="Add created_at / updated_at audit columns.",
    )
    config_group.add_argument(
        "--ftp",
        dest="with_ftp",
        action="store_const",
        const=True,
        default=None,
        help="Include the FTP file-transfer helper.",
    )
    config_group.add_argument(
        "--google-auth",
        dest="with_google_auth",
        action="store_const",
        const=True,
        default=None,
        help="Include the Google OAuth 2.0 strategy.",
    )
    config_group.add_argument(
        "--jwt-auth",
        dest="with_jwt_auth",
        action="store_const",
        const=True,
        default=None,
        help="Reserved; accepted for compatibility.",
    )
    _add_verbosity(gen_cmd)

    # --- serve ---
    serve_cmd = subparsers.add_parser("serve", help="Run the HTTP API with uvicorn.")
    serve_cmd.add_argument("--host", type=str, default="127.0.0.1", help="Bind address.")
    serve_cmd.add_argument("--port", type=int, default=8000, help="Bind port.")
    serve_cmd.add_argument(
        "--max-upload-bytes",
        type=int,
        default=None,
        metavar="N",
        help="Largest accepted SQL upload (default: 5 MiB).",
    )
    _add_verbosity(serve_cmd)

    return parser


# ---------------------------------------------------------------------------
# Config override builder
# ---------------------------------------------------------------------------


def _build_config_overrides(args: argparse.Namespace) -> Dict[str, Any]:
    """Collect the config flags that were actually given."""
    overrides: Dict[str, Any] = {}
    for key in (
        "full_validations",
        "with_swagger",
        "date_logs",
        "with_ftp",
        "with_google_auth",
        "with_jwt_auth",
    ):
        value: Optional[bool] = getattr(args, key)
        if value is not None:
            overrides[key] = value
    if args.data_store is not None:
        overrides["data_store"] = args.data_store
    return overrides


def _read_input(path_arg: str) -> bytes:
    path: Path = Path(path_arg)
    if not path.is_file():
        raise FileNotFoundError(f"SQL file not found: {path}")
    return path.read_bytes()


# ---------------------------------------------------------------------------
# Commands
# ---------------------------------------------------------------------------


def _run_parse(args: argparse.Namespace) -> int:
    from schemagen.errors import SchemaGenError
    from schemagen.service import parse_document

    try:
        summary = parse_document(_read_input(args.file))
    except FileNotFoundError as exc:
        logger.error("%s", exc)
        return EXIT_INPUT_ERROR
    except SchemaGenError as exc:
        logger.error("%s", exc.message)
        return EXIT_INPUT_ERROR

    if args.as_json:
        print(json.dumps(summary.to_dict(), indent=2))
        return EXIT_SUCCESS

    print(f"\n{'='*50}")
    print("  Schema Summary")
    print(f"{'='*50}")
    print(f"  File:     {Path(args.file).name}")
    print(f"  Dialect:  {summary.dialect}")
    print(f"  Tables:   {summary.table_count}")
    print(f"  Roles:    {', '.join(summary.user_roles)}")
    if summary.tables:
        print()
        for table in summary.tables:
            marker: str = "  ⇄" if table.has_relationships else ""
            print(f"    • {table.name:<30s} {table.column_count:>3d} columns{marker}")
    print(f"{'='*50}\n")
    return EXIT_SUCCESS


def _run_generation(args: argparse.Namespace) -> int:
    """
    Run the full generation pipeline through ``service.generate_archive``.

    Returns the appropriate exit code.
    """
    from schemagen.config import build_config, load_config_file
    from schemagen.errors import GenerationError, InputError, ParseError
    from schemagen.exporters import ArchiveResult
    from schemagen.generator import GenerationReport
    from schemagen.models import GenerationConfig
    from schemagen.service import (
        archive_filename,
        ensure_sql_filename,
        generate_archive,
        project_name_from_filename,
    )
    from schemagen.utils import write_bytes_atomic

    # --- Inputs ---
    try:
        ensure_sql_filename(Path(args.file).name)
        data: bytes = _read_input(args.file)
        file_values: Dict[str, Any] = (
            load_config_file(Path(args.config)) if args.config else {}
        )
        config: GenerationConfig = build_config(file_values, _build_config_overrides(args))
        generated_at: Optional[datetime] = (
            datetime.fromisoformat(args.timestamp) if args.timestamp else None
        )
    except InputError as exc:
        logger.error("%s", exc.message)
        return EXIT_INPUT_ERROR
    except (FileNotFoundError, ValueError) as exc:
        logger.error("%s", exc)
        return EXIT_INPUT_ERROR

    project_name: str = args.project_name or project_name_from_filename(Path(args.file).name)
    output: Path = Path(args.output) if args.output else Path(archive_filename(project_name))

    logger.info("Input:   %s", args.file)
    logger.info("Output:  %s", output)
    logger.info("Project: %s", project_name)

    def _print_report(report: GenerationReport) -> None:
        if not args.quiet:
            print(report.summary())

    # --- Parse, generate, bundle ---
    try:
        result: ArchiveResult = generate_archive(
            data, config, project_name, generated_at, on_report=_print_report
        )
    except InputError as exc:
        logger.error("%s", exc.message)
        return EXIT_INPUT_ERROR
    except ParseError as exc:
        logger.error("%s", exc.message)
        return EXIT_PARSE_ERROR
    except GenerationError as exc:
        logger.error("%s: %s", exc.message, exc.detail)
        return EXIT_GENERATION_ERROR

    # --- Export ---
    try:
        written: int = write_bytes_atomic(output, result.data)
        if args.manifest:
            write_bytes_atomic(Path(args.manifest), result.to_json().encode("utf-8"))
    except OSError as exc:
        logger.error("Could not write %s: %s", output, exc)
        return EXIT_EXPORT_ERROR

    logger.info("Wrote %s (%d bytes, %d files).", output, written, result.total_files)
    return EXIT_SUCCESS


def _run_serve(args: argparse.Namespace) -> int:
    import uvicorn

    from schemagen.server import create_app
    from schemagen.service import MAX_DOCUMENT_BYTES

    max_bytes: int = (
        MAX_DOCUMENT_BYTES if args.max_upload_bytes is None else args.max_upload_bytes
    )
    if max_bytes <= 0:
        logger.error("--max-upload-bytes must be positive.")
        return EXIT_INPUT_ERROR

    log_level: str = "debug" if args.verbose >= 2 else "info" if args.verbose else "warning"
    uvicorn.run(create_app(max_upload_bytes=max_bytes), host=args.host, port=args.port, log_level=log_level)
    return EXIT_SUCCESS


_COMMANDS = {
    "parse": _run_parse,
    "generate": _run_generation,
    "serve": _run_serve,
}


# ---------------------------------------------------------------------------
# Main entry point
# ---------------------------------------------------------------------------


def main(argv: Optional[Sequence[str]] = None) -> int:
    """
    Run one command and return its exit code.

    Args:
        argv: Optional argument list (defaults to sys.argv[1:]).
    """
    parser: argparse.ArgumentParser = _build_parser()
    args: argparse.Namespace = parser.parse_args(argv)

    verbosity: int = -1 if args.quiet else args.verbose
    _setup_logging(verbosity)

    exit_code: int = _COMMANDS[args.command](args)
    if exit_code != EXIT_SUCCESS:
        logger.debug("Command '%s' finished with exit code %d.", args.command, exit_code)
    return exit_code


def cli_main(argv: Optional[Sequence[str]] = None) -> NoReturn:
    """Console entry point; exits the process with the command's code."""
    sys.exit(main(argv))


# ---------------------------------------------------------------------------
# Module-level exports
# ---------------------------------------------------------------------------

__all__: List[str] = [
    "main",
    "cli_main",
    "EXIT_SUCCESS",
    "EXIT_PARSE_ERROR",
    "EXIT_GENERATION_ERROR",
    "EXIT_EXPORT_ERROR",
    "EXIT_INPUT_ERROR",
]

logger.debug("schemagen.cli loaded.")
