# File: schemagen/__init__.py
"""
schemagen — SQL DDL to FastAPI Project Generator
=================================================

Reads ``CREATE TABLE`` statements written for PostgreSQL, MySQL, SQL Server
or Oracle and produces a complete FastAPI + SQLAlchemy 2.0 backend as a zip
archive: one module per table with entity, router, service and request
contracts, plus an auth module and shared helpers.

Architecture overview::

    ┌──────────────┐     ┌───────────────┐     ┌──────────────────┐
    │ CLI / Server │────▶│    service    │────▶│   SchemaParser   │
    │ (cli/server) │     │ (service.py)  │     │   (parser.py)    │
    └──────────────┘     └───────┬───────┘     └──────────────────┘
                                 │
                    ┌────────────┼────────────┐
                    ▼            ▼            ▼
             ┌──────────┐ ┌───────────┐ ┌───────────┐
             │generator │ │ builders  │ │ exporters │
             │  (.py)   │ │ templates │ │  (.py)    │
             └──────────┘ └───────────┘ └───────────┘

Usage::

    # As a library
    from schemagen import GenerationConfig, generate_archive
    result = generate_archive(sql_text, GenerationConfig(date_logs=True), "shop")
    Path("shop.zip").write_bytes(result.data)

    # From the command line
    schemagen generate schema.sql -o shop.zip -v

Public API:
    - parse_document     — Summarise a DDL document
    - generate_archive   — DDL document → zipped project
    - SchemaParser       — DDL → SchemaDefinition
    - ProjectGenerator   — SchemaDefinition → ordered artifacts
    - ArchiveWriter      — artifacts → zip bytes
"""

from __future__ import annotations

__version__: str = "1.0.0"
__license__: str = "MIT"

from schemagen.errors import GenerationError, InputError, ParseError, SchemaGenError
from schemagen.models import (
    Artifact,
    CanonicalType,
    ColumnInfo,
    DataStoreKind,
    ForeignKeyInfo,
    GeneratedProject,
    GenerationConfig,
    ParseSummary,
    RelationshipInfo,
    SchemaDefinition,
    SqlDialect,
    TableInfo,
)
from schemagen.dialects import detect_dialect, map_type
from schemagen.parser import SchemaParser, parse_schema
from schemagen.builders import build_table_artifacts
from schemagen.generator import GenerationReport, ProjectGenerator
from schemagen.exporters import ArchiveResult, ArchiveWriter
from schemagen.service import generate_archive, parse_document

# ---------------------------------------------------------------------------
# Public API surface
# ---------------------------------------------------------------------------

__all__: list[str] = [
    # Version info
    "__version__",
    "__license__",
    # Errors
    "SchemaGenError",
    "InputError",
    "ParseError",
    "GenerationError",
    # Models
    "Artifact",
    "CanonicalType",
    "ColumnInfo",
    "DataStoreKind",
    "ForeignKeyInfo",
    "GeneratedProject",
    "GenerationConfig",
    "ParseSummary",
    "RelationshipInfo",
    "SchemaDefinition",
    "SqlDialect",
    "TableInfo",
    # Parsing
    "detect_dialect",
    "map_type",
    "SchemaParser",
    "parse_schema",
    # Generation
    "build_table_artifacts",
    "ProjectGenerator",
    "GenerationReport",
    "ArchiveWriter",
    "ArchiveResult",
    # Boundary
    "parse_document",
    "generate_archive",
]
