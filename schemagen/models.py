# File: schemagen/models.py
"""
schemagen - Core Data Models
=============================
Pydantic V2 models for the parsed schema, the generation switches and the
generated artifacts.  They are the single source of truth for the pipeline:

    DDL text → SchemaParser → SchemaDefinition → builders → GeneratedProject

Every model is frozen: a schema is parsed once per document and a
configuration is supplied whole by the caller, and neither changes afterward.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from datetime import datetime
from enum import Enum
from typing import Any, Dict, List, Optional, Set

from pydantic import (
    AliasChoices,
    BaseModel,
    ConfigDict,
    Field,
    computed_field,
    field_validator,
    model_validator,
)

from schemagen.utils import count_lines, sha256_hex

# ---------------------------------------------------------------------------
# Logger
# ---------------------------------------------------------------------------
logger: logging.Logger = logging.getLogger("schemagen.models")

# ---------------------------------------------------------------------------
# Enums
# ---------------------------------------------------------------------------


class CanonicalType(str, Enum):
    """Cross-dialect value kinds every raw column type is normalised to."""

    STRING = "string"
    NUMBER = "number"
    BOOLEAN = "boolean"
    DATE = "date"
    OBJECT = "object"


class SqlDialect(str, Enum):
    """DDL syntax families recognised by the dialect detector."""

    POSTGRESQL = "postgresql"
    MYSQL = "mysql"
    MSSQL = "mssql"
    ORACLE = "oracle"


class DataStoreKind(str, Enum):
    """Database the generated project connects to."""

    POSTGRESQL = "postgresql"
    MYSQL = "mysql"
    MSSQL = "mssql"
    ORACLE = "oracle"
    MONGODB = "mongodb"


class RelationshipType(str, Enum):
    """Cardinality of a derived relationship (foreign keys are many-to-one)."""

    MANY_TO_ONE = "many-to-one"


# ---------------------------------------------------------------------------
# Data-store profiles
# ---------------------------------------------------------------------------


@dataclass(frozen=True, slots=True)
class DataStoreProfile:
    """Connection facts for one data-store kind."""

    kind: str
    label: str
    legacy_id: int
    port: int
    url_scheme: str
    driver_package: str


DATA_STORE_PROFILES: Dict[str, DataStoreProfile] = {
    "postgresql": DataStoreProfile(
        "postgresql", "PostgreSQL", 1, 5432, "postgresql+psycopg2", "psycopg2-binary>=2.9.9"
    ),
    "mysql": DataStoreProfile(
        "mysql", "MySQL", 2, 3306, "mysql+pymysql", "pymysql>=1.1.0"
    ),
    "mssql": DataStoreProfile(
        "mssql", "SQL Server", 3, 1433, "mssql+pyodbc", "pyodbc>=5.0.0"
    ),
    "oracle": DataStoreProfile(
        "oracle", "Oracle", 4, 1521, "oracle+oracledb", "oracledb>=2.0.0"
    ),
    # Reserved: the generated scaffold is relational.
    "mongodb": DataStoreProfile(
        "mongodb", "MongoDB", 5, 27017, "mongodb", "pymongo>=4.6.0"
    ),
}

_LEGACY_DATA_STORE_IDS: Dict[int, str] = {
    profile.legacy_id: kind for kind, profile in DATA_STORE_PROFILES.items()
}


def get_data_store_profile(kind: str) -> DataStoreProfile:
    """Return the profile for *kind*; raises KeyError for unknown kinds."""
    key: str = kind.value if isinstance(kind, Enum) else kind
    return DATA_STORE_PROFILES[key]


# ---------------------------------------------------------------------------
# Shared model configuration
# ---------------------------------------------------------------------------

_SHARED_CONFIG: ConfigDict = ConfigDict(
    strict=False,
    populate_by_name=True,
    use_enum_values=True,
    validate_default=True,
    frozen=True,
    extra="forbid",
)


# ---------------------------------------------------------------------------
# Schema primitives
# ---------------------------------------------------------------------------


class ColumnInfo(BaseModel):
    """
    One column recovered from a CREATE TABLE column block.

    ``raw_type`` keeps the upper-cased source type with its size suffix
    removed, e.g. ``VARCHAR`` for ``varchar(255)``.
    """

    model_config = _SHARED_CONFIG

    name: str = Field(..., min_length=1, description="Column name.")
    canonical_type: CanonicalType = Field(
        default=CanonicalType.STRING, description="Normalised value kind."
    )
    raw_type: str = Field(default="", description="Source type token, upper-cased.")
    nullable: bool = Field(default=True, description="No NOT NULL marker.")
    primary_key: bool = Field(default=False, description="Part of the primary key.")
    unique: bool = Field(default=False, description="Has a UNIQUE marker.")
    auto_generated: bool = Field(
        default=False, description="Auto-increment, identity or serial column."
    )
    length: Optional[int] = Field(
        default=None, ge=1, description="Size suffix for sized types."
    )
    default: Optional[str] = Field(
        default=None, description="First token after DEFAULT, quotes stripped."
    )

    @computed_field  # type: ignore[misc]
    @property
    def is_email(self) -> bool:
        return "email" in self.name.lower()

    def __repr__(self) -> str:
        pk_flag: str = " PK" if self.primary_key else ""
        null_flag: str = " NULL" if self.nullable else " NOT NULL"
        return f"<Column {self.name} {self.canonical_type}{pk_flag}{null_flag}>"


class ForeignKeyInfo(BaseModel):
    """A single-column reference from the owning table to another table."""

    model_config = _SHARED_CONFIG

    column: str = Field(..., min_length=1, description="Local column name.")
    referenced_table: str = Field(..., min_length=1, description="Target table.")
    referenced_column: str = Field(..., min_length=1, description="Target column.")

    def __repr__(self) -> str:
        return f"<FK {self.column} → {self.referenced_table}.{self.referenced_column}>"


class RelationshipInfo(BaseModel):
    """Derived relationship, one per foreign key."""

    model_config = _SHARED_CONFIG

    from_table: str = Field(..., alias="from", description="Owning table.")
    to_table: str = Field(..., alias="to", description="Referenced table.")
    relationship_type: RelationshipType = Field(
        default=RelationshipType.MANY_TO_ONE, alias="type"
    )


# ---------------------------------------------------------------------------
# Table
# ---------------------------------------------------------------------------


class TableInfo(BaseModel):
    """
    One parsed table.

    Columns keep declaration order; constraint-only lines never appear here.
    ``indexes`` holds one column-name group per recognised index.
    """

    model_config = _SHARED_CONFIG

    name: str = Field(..., min_length=1, description="Table name.")
    columns: List[ColumnInfo] = Field(default_factory=list)
    foreign_keys: List[ForeignKeyInfo] = Field(default_factory=list)
    indexes: List[List[str]] = Field(default_factory=list)

    @computed_field  # type: ignore[misc]
    @property
    def column_names(self) -> List[str]:
        return [c.name for c in self.columns]

    @computed_field  # type: ignore[misc]
    @property
    def has_relationships(self) -> bool:
        return len(self.foreign_keys) > 0

    def get_column(self, name: str) -> Optional[ColumnInfo]:
        """Column lookup by exact name."""
        for column in self.columns:
            if column.name == name:
                return column
        return None

    def identifier_column(self) -> Optional[ColumnInfo]:
        """
        Column used as the record identifier by generated routes.

        First primary column; else a column named ``id``; else the first
        column.  ``None`` only for a table without columns.
        """
        for column in self.columns:
            if column.primary_key:
                return column
        for column in self.columns:
            if column.name.lower() == "id":
                return column
        return self.columns[0] if self.columns else None

    @model_validator(mode="after")
    def _validate_unique_column_names(self) -> "TableInfo":
        names: List[str] = [c.name for c in self.columns]
        if len(names) != len(set(names)):
            dupes: List[str] = sorted({n for n in names if names.count(n) > 1})
            raise ValueError(f"Duplicate columns in table '{self.name}': {dupes}")
        return self

    @model_validator(mode="after")
    def _validate_fk_columns_exist(self) -> "TableInfo":
        col_set: Set[str] = {c.name for c in self.columns}
        for fk in self.foreign_keys:
            if fk.column not in col_set:
                raise ValueError(
                    f"ForeignKey references column '{fk.column}' "
                    f"which does not exist in table '{self.name}'."
                )
        return self

    def __repr__(self) -> str:
        return (
            f"<Table {self.name} "
            f"({len(self.columns)} cols, {len(self.foreign_keys)} FKs)>"
        )


# ---------------------------------------------------------------------------
# Schema Definition
# ---------------------------------------------------------------------------

DEFAULT_ROLES: List[str] = ["admin", "user"]


class SchemaDefinition(BaseModel):
    """
    The whole parsed document.

    ``relationships`` holds one entry per foreign key and ``user_roles`` is
    never empty.  An empty ``tables`` list is valid: the parser reports zero
    tables instead of raising.
    """

    model_config = _SHARED_CONFIG

    tables: List[TableInfo] = Field(default_factory=list)
    relationships: List[RelationshipInfo] = Field(default_factory=list)
    user_roles: List[str] = Field(
        default_factory=lambda: list(DEFAULT_ROLES), min_length=1
    )
    dialect: SqlDialect = Field(default=SqlDialect.POSTGRESQL)

    @field_validator("user_roles")
    @classmethod
    def _dedupe_roles(cls, v: List[str]) -> List[str]:
        seen: Set[str] = set()
        result: List[str] = []
        for role in v:
            if role not in seen:
                seen.add(role)
                result.append(role)
        return result

    @model_validator(mode="after")
    def _validate_unique_table_names(self) -> "SchemaDefinition":
        names: List[str] = [t.name for t in self.tables]
        if len(names) != len(set(names)):
            dupes: List[str] = sorted({n for n in names if names.count(n) > 1})
            raise ValueError(f"Duplicate table names: {dupes}")
        return self

    @computed_field  # type: ignore[misc]
    @property
    def table_count(self) -> int:
        return len(self.tables)

    @computed_field  # type: ignore[misc]
    @property
    def table_names(self) -> List[str]:
        return [t.name for t in self.tables]

    def get_table(self, name: str) -> Optional[TableInfo]:
        """Table lookup by exact name."""
        for table in self.tables:
            if table.name == name:
                return table
        return None

    def find_identity_table(self) -> Optional[TableInfo]:
        """First table whose name contains ``user`` (case-insensitive)."""
        for table in self.tables:
            if "user" in table.name.lower():
                return table
        return None

    def __repr__(self) -> str:
        return (
            f"<SchemaDefinition {self.table_count} tables, "
            f"{len(self.relationships)} relationships, dialect={self.dialect}>"
        )


# ---------------------------------------------------------------------------
# Generation configuration
# ---------------------------------------------------------------------------


class GenerationConfig(BaseModel):
    """
    Feature switches for one generation request.

    ``with_crud`` is accepted for compatibility but every table always gets
    the full set of five operations.  ``with_jwt_auth`` is reserved.
    """

    model_config = _SHARED_CONFIG

    data_store: DataStoreKind = Field(
        default=DataStoreKind.POSTGRESQL,
        validation_alias=AliasChoices("data_store", "database_type"),
        description="Target data store of the generated project.",
    )
    with_crud: bool = Field(default=True, description="CRUD operations (always on).")
    full_validations: bool = Field(
        default=True, description="Validation annotations on contracts."
    )
    with_swagger: bool = Field(
        default=True, description="OpenAPI documentation annotations."
    )
    date_logs: bool = Field(
        default=False, description="created_at / updated_at audit columns."
    )
    with_ftp: bool = Field(default=False, description="FTP file-transfer helper.")
    with_google_auth: bool = Field(
        default=False, description="Google OAuth 2.0 strategy."
    )
    with_jwt_auth: bool = Field(default=False, description="Reserved.")

    @field_validator("data_store", mode="before")
    @classmethod
    def _coerce_legacy_id(cls, v: Any) -> Any:
        if isinstance(v, bool):
            return v
        if isinstance(v, int) or (isinstance(v, str) and v.isdigit()):
            kind: Optional[str] = _LEGACY_DATA_STORE_IDS.get(int(v))
            if kind is None:
                raise ValueError(f"Unknown database_type id: {v}")
            return kind
        if isinstance(v, str):
            return v.lower()
        return v

    @property
    def data_store_profile(self) -> DataStoreProfile:
        return get_data_store_profile(self.data_store)


# ---------------------------------------------------------------------------
# Generated output
# ---------------------------------------------------------------------------


class Artifact(BaseModel):
    """A single generated file."""

    model_config = _SHARED_CONFIG

    path: str = Field(..., min_length=1, description="Relative file path.")
    content: str = Field(..., description="Full file content.")

    @computed_field  # type: ignore[misc]
    @property
    def line_count(self) -> int:
        return count_lines(self.content)

    @computed_field  # type: ignore[misc]
    @property
    def size_bytes(self) -> int:
        return len(self.content.encode("utf-8"))

    @computed_field  # type: ignore[misc]
    @property
    def checksum(self) -> str:
        return sha256_hex(self.content)

    def __repr__(self) -> str:
        return f"<Artifact {self.path} ({self.size_bytes} bytes)>"


class GeneratedProject(BaseModel):
    """The ordered artifact set of one generation run."""

    model_config = _SHARED_CONFIG

    project_name: str = Field(..., min_length=1)
    generated_at: datetime = Field(..., description="Generation timestamp.")
    artifacts: List[Artifact] = Field(default_factory=list)

    @computed_field  # type: ignore[misc]
    @property
    def total_files(self) -> int:
        return len(self.artifacts)

    @computed_field  # type: ignore[misc]
    @property
    def total_lines(self) -> int:
        return sum(a.line_count for a in self.artifacts)

    @computed_field  # type: ignore[misc]
    @property
    def total_bytes(self) -> int:
        return sum(a.size_bytes for a in self.artifacts)

    def paths(self) -> List[str]:
        return [a.path for a in self.artifacts]

    def get(self, path: str) -> Optional[Artifact]:
        """Last artifact written to *path*, mirroring archive semantics."""
        found: Optional[Artifact] = None
        for artifact in self.artifacts:
            if artifact.path == path:
                found = artifact
        return found

    def __repr__(self) -> str:
        return (
            f"<GeneratedProject {self.project_name} "
            f"{self.total_files} files, {self.total_lines} lines>"
        )


# ---------------------------------------------------------------------------
# Parse summary (boundary result)
# ---------------------------------------------------------------------------


class TableSummary(BaseModel):
    """Per-table line of the parse summary."""

    model_config = _SHARED_CONFIG

    name: str
    column_count: int = Field(..., ge=0, alias="columnCount")
    has_relationships: bool = Field(..., alias="hasRelationships")


class ParseSummary(BaseModel):
    """Result of the parse boundary; dump with ``by_alias=True`` for JSON."""

    model_config = _SHARED_CONFIG

    table_count: int = Field(..., ge=0, alias="tableCount")
    tables: List[TableSummary] = Field(default_factory=list)
    dialect: SqlDialect
    user_roles: List[str] = Field(..., alias="userRoles")

    @classmethod
    def from_schema(cls, schema: SchemaDefinition) -> "ParseSummary":
        return cls(
            table_count=schema.table_count,
            tables=[
                TableSummary(
                    name=t.name,
                    column_count=len(t.columns),
                    has_relationships=t.has_relationships,
                )
                for t in schema.tables
            ],
            dialect=schema.dialect,
            user_roles=list(schema.user_roles),
        )

    def to_dict(self) -> Dict[str, Any]:
        return self.model_dump(by_alias=True, mode="json")


# ---------------------------------------------------------------------------
# Module-level exports
# ---------------------------------------------------------------------------

__all__: List[str] = [
    "CanonicalType",
    "SqlDialect",
    "DataStoreKind",
    "RelationshipType",
    "DataStoreProfile",
    "DATA_STORE_PROFILES",
    "get_data_store_profile",
    "ColumnInfo",
    "ForeignKeyInfo",
    "RelationshipInfo",
    "TableInfo",
    "DEFAULT_ROLES",
    "SchemaDefinition",
    "GenerationConfig",
    "Artifact",
    "GeneratedProject",
    "TableSummary",
    "ParseSummary",
]

logger.debug("schemagen.models loaded — %d public symbols.", len(__all__))
