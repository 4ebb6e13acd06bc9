# File: schemagen/service.py
"""
schemagen - Boundary Operations
================================

The two operations every surface (HTTP, CLI, library) goes through:

    parse_document(document)                       → ParseSummary
    generate_archive(document, config, project)     → ArchiveResult

Both take the raw uploaded document (``str`` or ``bytes``), enforce the
input rules and raise typed errors from ``schemagen.errors``:

    - missing document            InputError  "No SQL file provided"
    - larger than the size bound  InputError
    - blank after cleaning        InputError  "SQL file is empty"
    - no CREATE TABLE recognised  ParseError  (generate only)
    - any build or archive fault  GenerationError

Cleaning removes double quotes and backticks before parsing.
"""

from __future__ import annotations

import logging
import re
from datetime import datetime
from typing import Callable, List, Optional, Union

from schemagen.errors import GenerationError, InputError, ParseError
from schemagen.exporters import ArchiveResult, ArchiveWriter
from schemagen.generator import GenerationReport, ProjectGenerator
from schemagen.models import GenerationConfig, ParseSummary, SchemaDefinition
from schemagen.parser import SchemaParser

# ---------------------------------------------------------------------------
# Logger
# ---------------------------------------------------------------------------
logger: logging.Logger = logging.getLogger("schemagen.service")

MAX_DOCUMENT_BYTES: int = 5 * 1024 * 1024
DEFAULT_PROJECT_NAME: str = "generated-app"

NO_FILE_MESSAGE: str = "No SQL file provided"
EMPTY_FILE_MESSAGE: str = "SQL file is empty"
BAD_EXTENSION_MESSAGE: str = "Please upload a .sql file"
NO_TABLES_MESSAGE: str = (
    "No valid tables found in SQL file. "
    "Please ensure your SQL contains CREATE TABLE statements."
)

_STRIPPED_CHARACTERS: tuple[str, ...] = ('"', "`")
_SQL_SUFFIX_RE: re.Pattern[str] = re.compile(r"\.sql$", re.IGNORECASE)
_NON_ALNUM_RE: re.Pattern[str] = re.compile(r"[^a-zA-Z0-9]")

Document = Union[str, bytes]


# ---------------------------------------------------------------------------
# Input rules
# ---------------------------------------------------------------------------


def clean_document(text: str) -> str:
    """Remove double quotes and backticks."""
    for ch in _STRIPPED_CHARACTERS:
        text = text.replace(ch, "")
    return text


def ensure_sql_filename(filename: Optional[str]) -> str:
    """
    Check that an uploaded file name ends in ``.sql`` (any case).

    Raises:
        InputError: If the name is missing or has another extension.
    """
    if not filename:
        raise InputError(NO_FILE_MESSAGE)
    if not filename.lower().endswith(".sql"):
        raise InputError(BAD_EXTENSION_MESSAGE)
    return filename


def project_name_from_filename(filename: str) -> str:
    """
    Derive the project name from an upload's file name.

    Examples:
        >>> project_name_from_filename("My Shop.sql")
        'my-shop'
    """
    stem: str = _SQL_SUFFIX_RE.sub("", filename.replace("\\", "/").rsplit("/", 1)[-1])
    name: str = _NON_ALNUM_RE.sub("-", stem).lower()
    return name or DEFAULT_PROJECT_NAME


def archive_filename(project_name: str) -> str:
    return f"{project_name}-fastapi-app.zip"


def read_document(
    document: Optional[Document],
    max_bytes: int = MAX_DOCUMENT_BYTES,
) -> str:
    """
    Decode, bound and clean an uploaded document.

    Raises:
        InputError: If the document is missing, too large, not UTF-8 text
            or blank after cleaning.
    """
    if document is None:
        raise InputError(NO_FILE_MESSAGE)

    raw: bytes = document.encode("utf-8") if isinstance(document, str) else document
    if len(raw) > max_bytes:
        raise InputError(
            f"SQL file is too large ({len(raw):,} bytes); "
            f"the limit is {max_bytes:,} bytes"
        )

    if isinstance(document, str):
        text: str = document
    else:
        try:
            text = document.decode("utf-8-sig")
        except UnicodeDecodeError as exc:
            raise InputError("SQL file must be UTF-8 text", detail=str(exc)) from exc

    cleaned: str = clean_document(text)
    if not cleaned.strip():
        raise InputError(EMPTY_FILE_MESSAGE)
    return cleaned


# ---------------------------------------------------------------------------
# Boundary operations
# ---------------------------------------------------------------------------


def parse_document(
    document: Optional[Document],
    max_bytes: int = MAX_DOCUMENT_BYTES,
) -> ParseSummary:
    """
    Parse a document and summarise it.

    Zero tables is a valid result here (``tableCount`` = 0).

    Raises:
        InputError: See ``read_document``.
    """
    text: str = read_document(document, max_bytes)
    schema: SchemaDefinition = SchemaParser().parse(text)
    summary: ParseSummary = ParseSummary.from_schema(schema)
    logger.info(
        "Parsed document: %d tables, dialect %s.", summary.table_count, summary.dialect
    )
    return summary


def generate_archive(
    document: Optional[Document],
    config: Optional[GenerationConfig] = None,
    project_name: str = DEFAULT_PROJECT_NAME,
    generated_at: Optional[datetime] = None,
    max_bytes: int = MAX_DOCUMENT_BYTES,
    on_report: Optional[Callable[[GenerationReport], None]] = None,
) -> ArchiveResult:
    """
    Parse a document, generate the project and zip it.

    Args:
        on_report: Called with the generation report before its outcome is
            checked, so callers can show the step summary of failed runs too.

    Raises:
        InputError: See ``read_document``.
        ParseError: If the document contains no recognisable table.
        GenerationError: If any generation step or the archive fails.
    """
    text: str = read_document(document, max_bytes)
    schema: SchemaDefinition = SchemaParser().parse(text)
    if schema.table_count == 0:
        raise ParseError(NO_TABLES_MESSAGE)

    name: str = project_name or DEFAULT_PROJECT_NAME
    report: GenerationReport = ProjectGenerator(config).generate(schema, name, generated_at)
    logger.debug("\n%s", report.summary())
    if on_report is not None:
        on_report(report)
    if not report.success or report.project is None:
        raise GenerationError("; ".join(report.generation_errors) or "no artifacts produced")

    try:
        return ArchiveWriter(project_name=name).write(report.project.artifacts)
    except GenerationError:
        raise
    except Exception as exc:
        logger.error("Archive failed for project '%s'", name, exc_info=True)
        raise GenerationError(f"{type(exc).__name__}: {exc}") from exc


# ---------------------------------------------------------------------------
# Module-level exports
# ---------------------------------------------------------------------------

__all__: List[str] = [
    "MAX_DOCUMENT_BYTES",
    "DEFAULT_PROJECT_NAME",
    "NO_FILE_MESSAGE",
    "EMPTY_FILE_MESSAGE",
    "BAD_EXTENSION_MESSAGE",
    "NO_TABLES_MESSAGE",
    "clean_document",
    "ensure_sql_filename",
    "project_name_from_filename",
    "archive_filename",
    "read_document",
    "parse_document",
    "generate_archive",
]

logger.debug("schemagen.service loaded.")
