# File: schemagen/parser.py
"""
schemagen - DDL Schema Parser
==============================
Heuristic, pattern-based extraction of tables, columns, keys and indexes from
free-form ``CREATE TABLE`` text in any of the four supported dialects.

This is deliberately not a SQL grammar.  Anything the patterns do not
recognise is skipped rather than reported, and a document with no
recognisable tables yields an empty schema, never an exception.

Pipeline for one document::

    strip comments → detect dialect → CREATE TABLE blocks → declarations
        → ALTER TABLE foreign keys → CREATE INDEX groups → roles → model
"""

from __future__ import annotations

import logging
import re
from dataclasses import dataclass, field
from typing import Dict, List, Optional, Set, Tuple

from schemagen.dialects import detect_dialect, map_type, normalize_type
from schemagen.models import (
    DEFAULT_ROLES,
    CanonicalType,
    ColumnInfo,
    ForeignKeyInfo,
    RelationshipInfo,
    RelationshipType,
    SchemaDefinition,
    SqlDialect,
    TableInfo,
)

# ---------------------------------------------------------------------------
# Logger
# ---------------------------------------------------------------------------
logger: logging.Logger = logging.getLogger("schemagen.parser")

# ---------------------------------------------------------------------------
# Patterns
# ---------------------------------------------------------------------------

_IDENT: str = r"\[?(\w+)\]?"
_QUALIFIER: str = r"(?:\[?\w+\]?\.)?"

_BLOCK_COMMENT_RE: re.Pattern[str] = re.compile(r"/\*.*?\*/", re.DOTALL)
_LINE_COMMENT_RE: re.Pattern[str] = re.compile(r"--[^\n]*")
_WHITESPACE_RE: re.Pattern[str] = re.compile(r"\s+")

_TABLE_RE: re.Pattern[str] = re.compile(
    r"CREATE\s+TABLE\s+(?:IF\s+NOT\s+EXISTS\s+)?"
    + _QUALIFIER
    + _IDENT
    + r"[^(]*\(([\s\S]*?)"
    r"(?=\)(?:\s*(?:ENGINE|TABLESPACE|PARTITION\s+BY|INHERITS|DEFAULT\s+CHARSET"
    r"|ON\s+\[?PRIMARY\]?|GO\b)|\s*;|\s*$))",
    re.IGNORECASE,
)

_COLUMN_RE: re.Pattern[str] = re.compile(
    r"^" + _IDENT + r"\s+(\w+(?:\s*\([^)]*\))?(?:\s*\[\])*)(?:\s+(.*))?$"
)

# Keywords double as column names (``key``, ``index``, ``unique``), so a line
# only counts as a constraint when the keyword is followed by constraint
# syntax. A name list never starts with a digit or ``MAX``, unlike the size
# suffix of ``VARCHAR(255)`` or ``NVARCHAR(MAX)``.
_NAME_LIST_OPEN: str = r"\(\s*(?!MAX\s*\))[A-Za-z_\[]"
_CONSTRAINT_LINE_RE: re.Pattern[str] = re.compile(
    r"^(?:"
    r"CONSTRAINT\s+\S+\s+(?:PRIMARY|FOREIGN|UNIQUE|CHECK|EXCLUDE)\b"
    r"|PRIMARY\s+KEY\b"
    r"|FOREIGN\s+KEY\b"
    r"|CHECK\s*\("
    r"|EXCLUDE\s+(?:USING\b|\()"
    r"|UNIQUE\s+(?:KEY|INDEX|CLUSTERED|NONCLUSTERED)\b"
    r"|UNIQUE\s*(?:\[?\w+\]?\s*)?" + _NAME_LIST_OPEN
    + r"|(?:(?:FULLTEXT|SPATIAL)(?:\s+(?:KEY|INDEX))?|KEY|INDEX)\s*(?:\[?\w+\]?\s*)?"
    + _NAME_LIST_OPEN
    + r")",
    re.IGNORECASE,
)

_LENGTH_RE: re.Pattern[str] = re.compile(r"^\w+\s*\(\s*(\d+)\s*\)")
_DEFAULT_RE: re.Pattern[str] = re.compile(r"\bDEFAULT\s+([^,\s]+)", re.IGNORECASE)
_UNIQUE_RE: re.Pattern[str] = re.compile(r"\bUNIQUE\b", re.IGNORECASE)
_AUTO_RE: re.Pattern[str] = re.compile(
    r"\b(?:AUTO_INCREMENT|AUTOINCREMENT|IDENTITY)\b", re.IGNORECASE
)
_SERIAL_TYPES: Set[str] = {"SERIAL", "BIGSERIAL", "SMALLSERIAL"}

_INLINE_REFERENCE_RE: re.Pattern[str] = re.compile(
    r"\bREFERENCES\s+" + _QUALIFIER + _IDENT + r"\s*\(\s*" + _IDENT + r"\s*\)",
    re.IGNORECASE,
)
_FOREIGN_KEY_RE: re.Pattern[str] = re.compile(
    r"FOREIGN\s+KEY\s*\(\s*" + _IDENT + r"\s*\)\s*REFERENCES\s+"
    + _QUALIFIER + _IDENT + r"\s*\(\s*" + _IDENT + r"\s*\)",
    re.IGNORECASE,
)
_ALTER_FOREIGN_KEY_RE: re.Pattern[str] = re.compile(
    r"ALTER\s+TABLE\s+(?:ONLY\s+)?(?:IF\s+EXISTS\s+)?" + _QUALIFIER + _IDENT
    + r"\s+(?:WITH\s+(?:NO)?CHECK\s+)?ADD\s+(?:CONSTRAINT\s+\[?\w+\]?\s+)?"
    r"FOREIGN\s+KEY\s*\(\s*" + _IDENT + r"\s*\)\s*REFERENCES\s+"
    + _QUALIFIER + _IDENT + r"\s*\(\s*" + _IDENT + r"\s*\)",
    re.IGNORECASE,
)
_CREATE_INDEX_RE: re.Pattern[str] = re.compile(
    r"CREATE\s+(?:UNIQUE\s+)?(?:CLUSTERED\s+|NONCLUSTERED\s+)?INDEX\s+"
    r"(?:CONCURRENTLY\s+)?(?:IF\s+NOT\s+EXISTS\s+)?[\w.\[\]]+\s+ON\s+(?:ONLY\s+)?"
    + _QUALIFIER + _IDENT + r"\s*(?:USING\s+\w+\s*)?\(([^)]+)\)",
    re.IGNORECASE,
)

_TABLE_PRIMARY_KEY_RE: re.Pattern[str] = re.compile(
    r"\bPRIMARY\s+KEY\s*(?:CLUSTERED\s*|NONCLUSTERED\s*)?\(([^)]*)\)", re.IGNORECASE
)
_TABLE_UNIQUE_RE: re.Pattern[str] = re.compile(
    r"\bUNIQUE\b(?:\s+(KEY|INDEX))?(?:\s+\[?\w+\]?)?\s*\(([^)]*)\)", re.IGNORECASE
)
_INLINE_INDEX_RE: re.Pattern[str] = re.compile(
    r"^(?:FULLTEXT\s+|SPATIAL\s+)?(?:KEY|INDEX)\s+(?:\[?\w+\]?\s*)?\(([^)]*)\)",
    re.IGNORECASE,
)
_SORT_SUFFIX_RE: re.Pattern[str] = re.compile(r"\s+(?:ASC|DESC)\s*$", re.IGNORECASE)
_PREFIX_LENGTH_RE: re.Pattern[str] = re.compile(r"\s*\(\s*\d+\s*\)\s*$")
_PLAIN_NAME_RE: re.Pattern[str] = re.compile(r"^\w+$")

# Role detection
_ROLE_MARKERS: Tuple[str, ...] = ("role", "permission")
_EXTENDED_ROLES: List[str] = ["admin", "user", "moderator"]


# ---------------------------------------------------------------------------
# Text helpers
# ---------------------------------------------------------------------------


def strip_comments(sql: str) -> str:
    """Remove ``/* ... */`` block comments and ``--`` line comments."""
    without_blocks: str = _BLOCK_COMMENT_RE.sub(" ", sql)
    return _LINE_COMMENT_RE.sub("", without_blocks)


def split_declarations(block: str) -> List[str]:
    """
    Split a column block on top-level commas.

    Commas nested inside parentheses (``DECIMAL(10,2)``, ``CHECK (a IN (1,2))``)
    do not split.  Each declaration is returned with whitespace collapsed;
    empty pieces are dropped.
    """
    parts: List[str] = []
    current: List[str] = []
    depth: int = 0

    for char in block:
        if char == "(":
            depth += 1
        elif char == ")":
            depth = max(depth - 1, 0)
        elif char == "," and depth == 0:
            parts.append("".join(current))
            current = []
            continue
        current.append(char)
    parts.append("".join(current))

    collapsed: List[str] = [_WHITESPACE_RE.sub(" ", p).strip() for p in parts]
    return [p for p in collapsed if p]


def _split_name_list(raw: str) -> List[str]:
    """Clean a parenthesised column list into bare column names."""
    names: List[str] = []
    for piece in raw.split(","):
        name: str = piece.strip().strip("[]")
        name = _SORT_SUFFIX_RE.sub("", name)
        name = _PREFIX_LENGTH_RE.sub("", name).strip().strip("[]")
        if _PLAIN_NAME_RE.match(name):
            names.append(name)
    return names


# ---------------------------------------------------------------------------
# Mutable per-table working state
# ---------------------------------------------------------------------------


@dataclass(slots=True)
class _TableDraft:
    """Accumulates one table while its statement and later ALTERs are read."""

    name: str
    columns: List[ColumnInfo] = field(default_factory=list)
    foreign_keys: List[ForeignKeyInfo] = field(default_factory=list)
    indexes: List[List[str]] = field(default_factory=list)
    primary_columns: Set[str] = field(default_factory=set)
    unique_columns: Set[str] = field(default_factory=set)

    def find_column(self, name: str) -> Optional[ColumnInfo]:
        """Look a column up the way SQL does, ignoring case."""
        wanted: str = name.casefold()
        return next((c for c in self.columns if c.name.casefold() == wanted), None)

    def has_column(self, name: str) -> bool:
        return self.find_column(name) is not None

    def add_foreign_key(self, fk: ForeignKeyInfo) -> None:
        column: Optional[ColumnInfo] = self.find_column(fk.column)
        if column is None:
            logger.warning(
                "Dropping foreign key %s.%s → %s.%s: no such column in '%s'",
                self.name,
                fk.column,
                fk.referenced_table,
                fk.referenced_column,
                self.name,
            )
            return
        if column.name != fk.column:
            fk = fk.model_copy(update={"column": column.name})
        if fk in self.foreign_keys:
            return
        self.foreign_keys.append(fk)

    def add_index(self, names: List[str]) -> None:
        if names and names not in self.indexes:
            self.indexes.append(names)

    def freeze(self) -> TableInfo:
        primary: Set[str] = {n.casefold() for n in self.primary_columns}
        unique: Set[str] = {n.casefold() for n in self.unique_columns}
        columns: List[ColumnInfo] = []
        for column in self.columns:
            updates: Dict[str, bool] = {}
            if column.name.casefold() in primary and not column.primary_key:
                updates["primary_key"] = True
            if column.name.casefold() in unique and not column.unique:
                updates["unique"] = True
            columns.append(column.model_copy(update=updates) if updates else column)
        return TableInfo(
            name=self.name,
            columns=columns,
            foreign_keys=list(self.foreign_keys),
            indexes=[list(group) for group in self.indexes],
        )


# ---------------------------------------------------------------------------
# Parser
# ---------------------------------------------------------------------------


class SchemaParser:
    """
    Turns DDL text into a :class:`SchemaDefinition`.

    Instances hold no state between calls; construct one per document or
    reuse freely.

    Usage::

        schema = SchemaParser().parse(sql_text)
        print(schema.table_count, schema.dialect)
    """

    def parse(self, sql: str) -> SchemaDefinition:
        """Parse *sql*; zero recognised tables yields an empty schema."""
        dialect: SqlDialect = detect_dialect(sql)
        text: str = strip_comments(sql)

        drafts: List[_TableDraft] = self._extract_tables(text, dialect)
        by_name: Dict[str, _TableDraft] = {d.name.lower(): d for d in drafts}
        self._apply_alter_foreign_keys(text, by_name)
        self._apply_create_indexes(text, by_name)

        tables: List[TableInfo] = [d.freeze() for d in drafts]
        relationships: List[RelationshipInfo] = derive_relationships(tables)
        roles: List[str] = detect_roles(tables)

        schema: SchemaDefinition = SchemaDefinition(
            tables=tables,
            relationships=relationships,
            user_roles=roles,
            dialect=dialect,
        )
        logger.info(
            "Parsed %d tables, %d relationships (dialect=%s)",
            schema.table_count,
            len(relationships),
            dialect.value,
        )
        return schema

    # ------------------------------------------------------------------
    # CREATE TABLE statements
    # ------------------------------------------------------------------

    def _extract_tables(self, text: str, dialect: SqlDialect) -> List[_TableDraft]:
        drafts: List[_TableDraft] = []
        seen: Set[str] = set()

        for match in _TABLE_RE.finditer(text):
            name: str = match.group(1)
            block: str = match.group(2)
            if name.lower() in seen:
                logger.warning("Table '%s' declared more than once; keeping the first", name)
                continue
            seen.add(name.lower())

            draft: _TableDraft = _TableDraft(name=name)
            for declaration in split_declarations(block):
                if _CONSTRAINT_LINE_RE.match(declaration):
                    self._apply_constraint_line(draft, declaration)
                else:
                    self._apply_column_line(draft, declaration, dialect)

            for fk_match in _FOREIGN_KEY_RE.finditer(block):
                draft.add_foreign_key(
                    ForeignKeyInfo(
                        column=fk_match.group(1),
                        referenced_table=fk_match.group(2),
                        referenced_column=fk_match.group(3),
                    )
                )

            logger.debug(
                "Table %s: %d columns, %d FKs",
                name,
                len(draft.columns),
                len(draft.foreign_keys),
            )
            drafts.append(draft)

        return drafts

    def _apply_column_line(
        self, draft: _TableDraft, declaration: str, dialect: SqlDialect
    ) -> None:
        column: Optional[ColumnInfo] = parse_column(declaration, dialect)
        if column is None:
            logger.debug("Skipping unrecognised declaration in %s: %r", draft.name, declaration)
            return
        if draft.has_column(column.name):
            logger.warning(
                "Column '%s' repeated in table '%s'; keeping the first",
                column.name,
                draft.name,
            )
            return
        draft.columns.append(column)

        tail: str = declaration[len(column.name):]
        reference = _INLINE_REFERENCE_RE.search(tail)
        if reference:
            draft.add_foreign_key(
                ForeignKeyInfo(
                    column=column.name,
                    referenced_table=reference.group(1),
                    referenced_column=reference.group(2),
                )
            )

    def _apply_constraint_line(self, draft: _TableDraft, declaration: str) -> None:
        primary = _TABLE_PRIMARY_KEY_RE.search(declaration)
        if primary:
            draft.primary_columns.update(_split_name_list(primary.group(1)))
            return

        unique = _TABLE_UNIQUE_RE.search(declaration)
        if unique:
            names: List[str] = _split_name_list(unique.group(2))
            if len(names) == 1:
                draft.unique_columns.add(names[0])
            if unique.group(1):
                draft.add_index(names)
            return

        index = _INLINE_INDEX_RE.match(declaration)
        if index:
            draft.add_index(_split_name_list(index.group(1)))

    # ------------------------------------------------------------------
    # Statements outside CREATE TABLE
    # ------------------------------------------------------------------

    def _apply_alter_foreign_keys(
        self, text: str, by_name: Dict[str, _TableDraft]
    ) -> None:
        for match in _ALTER_FOREIGN_KEY_RE.finditer(text):
            draft: Optional[_TableDraft] = by_name.get(match.group(1).lower())
            if draft is None:
                logger.debug("ALTER TABLE for unknown table '%s' ignored", match.group(1))
                continue
            draft.add_foreign_key(
                ForeignKeyInfo(
                    column=match.group(2),
                    referenced_table=match.group(3),
                    referenced_column=match.group(4),
                )
            )

    def _apply_create_indexes(
        self, text: str, by_name: Dict[str, _TableDraft]
    ) -> None:
        for match in _CREATE_INDEX_RE.finditer(text):
            draft: Optional[_TableDraft] = by_name.get(match.group(1).lower())
            if draft is None:
                continue
            draft.add_index(_split_name_list(match.group(2)))


# ---------------------------------------------------------------------------
# Column parsing
# ---------------------------------------------------------------------------


def parse_column(declaration: str, dialect: SqlDialect) -> Optional[ColumnInfo]:
    """
    Parse one whitespace-collapsed column declaration.

    Returns ``None`` when the text does not look like ``name type [tail]``.
    """
    match = _COLUMN_RE.match(declaration)
    if not match:
        return None

    name: str = match.group(1)
    type_token: str = match.group(2)
    tail: str = match.group(3) or ""
    upper_tail: str = tail.upper()
    raw_type: str = normalize_type(type_token)

    length: Optional[int] = None
    length_match = _LENGTH_RE.match(type_token)
    if length_match and int(length_match.group(1)) > 0:
        length = int(length_match.group(1))

    default: Optional[str] = None
    default_match = _DEFAULT_RE.search(tail)
    if default_match:
        default = default_match.group(1).replace("'", "").replace('"', "")

    return ColumnInfo(
        name=name,
        canonical_type=map_type(dialect, raw_type),
        raw_type=raw_type,
        nullable="NOT NULL" not in upper_tail,
        primary_key="PRIMARY KEY" in upper_tail,
        unique=bool(_UNIQUE_RE.search(tail)),
        auto_generated=bool(_AUTO_RE.search(tail)) or raw_type in _SERIAL_TYPES,
        length=length,
        default=default,
    )


# ---------------------------------------------------------------------------
# Derived facts
# ---------------------------------------------------------------------------


def derive_relationships(tables: List[TableInfo]) -> List[RelationshipInfo]:
    """One many-to-one relationship per foreign key, in table order."""
    relationships: List[RelationshipInfo] = []
    for table in tables:
        for fk in table.foreign_keys:
            relationships.append(
                RelationshipInfo(
                    from_table=table.name,
                    to_table=fk.referenced_table,
                    relationship_type=RelationshipType.MANY_TO_ONE,
                )
            )
    return relationships


def detect_roles(tables: List[TableInfo]) -> List[str]:
    """
    Infer the role set from column names.

    A column whose name contains ``role`` or ``permission``, or a string
    column named exactly ``type``, switches the set to
    ``admin, user, moderator``; otherwise ``admin, user``.
    """
    for table in tables:
        for column in table.columns:
            lowered: str = column.name.lower()
            if any(marker in lowered for marker in _ROLE_MARKERS):
                return list(_EXTENDED_ROLES)
            if lowered == "type" and column.canonical_type == CanonicalType.STRING.value:
                return list(_EXTENDED_ROLES)
    return list(DEFAULT_ROLES)


def parse_schema(sql: str) -> SchemaDefinition:
    """Convenience wrapper: ``SchemaParser().parse(sql)``."""
    return SchemaParser().parse(sql)


# ---------------------------------------------------------------------------
# Module-level exports
# ---------------------------------------------------------------------------

__all__: List[str] = [
    "SchemaParser",
    "strip_comments",
    "split_declarations",
    "parse_column",
    "derive_relationships",
    "detect_roles",
    "parse_schema",
]

logger.debug("schemagen.parser loaded.")
