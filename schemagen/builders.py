# File: schemagen/builders.py
"""
schemagen - Per-Table Artifact Builders
========================================
One builder per generated per-table file:

    EntityBuilder          app/modules/<module>/entity.py
    ControllerBuilder      app/modules/<module>/router.py
    ServiceBuilder         app/modules/<module>/service.py
    CreateContractBuilder  app/modules/<module>/create_schema.py
    UpdateContractBuilder  app/modules/<module>/update_schema.py
    ModuleBuilder          app/modules/<module>/__init__.py

Builders are immutable values.  Every fluent method returns a new builder via
``dataclasses.replace``; ``build()`` renders one :class:`Artifact`.

The generated code targets FastAPI with synchronous SQLAlchemy 2.0 sessions
and Pydantic V2 contracts.  The validation and documentation switches only
add or remove annotation fragments (``Field`` constraints, ``EmailStr``,
attribute docstrings, OpenAPI ``summary`` arguments); the member list, its
order and the control flow of every generated function never change.

All string assembly uses ``List[str]`` + ``"\\n".join()``.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, replace
from typing import ClassVar, Dict, Iterable, List, Optional, Set, Tuple, TypeVar

from schemagen.models import (
    Artifact,
    CanonicalType,
    ColumnInfo,
    DataStoreKind,
    ForeignKeyInfo,
    GenerationConfig,
    TableInfo,
)
from schemagen.utils import (
    build_import_block,
    column_to_field_name,
    merge_import_dicts,
    safe_identifier,
    table_to_class_name,
    table_to_module_name,
    table_to_route_prefix,
    table_to_route_tag,
    wrap_in_quotes,
)

# ---------------------------------------------------------------------------
# Logger
# ---------------------------------------------------------------------------
logger: logging.Logger = logging.getLogger("schemagen.builders")

# ---------------------------------------------------------------------------
# Constants
# ---------------------------------------------------------------------------

_INDENT: str = "    "
_DOUBLE_INDENT: str = "        "
_TRIPLE_INDENT: str = "            "
_WRAP_AT: int = 88

_SERIAL_TYPES: Set[str] = {"SERIAL", "BIGSERIAL", "SMALLSERIAL"}
_BIG_INTEGER_TYPES: Set[str] = {"BIGINT", "BIGSERIAL"}
_TIMESTAMP_DEFAULT_MARKERS: Tuple[str, ...] = ("time", "getdate", "sysdate")

ImportMap = Dict[str, Set[str]]

# Canonical type → (Python annotation, imports it needs)
_PYTHON_TYPES: Dict[str, Tuple[str, ImportMap]] = {
    "string": ("str", {}),
    "number": ("int", {}),
    "boolean": ("bool", {}),
    "date": ("datetime", {"datetime": {"datetime"}}),
    "object": ("Dict[str, Any]", {"typing": {"Any", "Dict"}}),
}


# ---------------------------------------------------------------------------
# Column helpers
# ---------------------------------------------------------------------------


def effective_type(column: ColumnInfo) -> str:
    """
    Canonical type used for code generation.

    Serial columns are numbers even in dialects whose type table does not
    list the serial variant.
    """
    if column.raw_type in _SERIAL_TYPES:
        return CanonicalType.NUMBER.value
    return CanonicalType(column.canonical_type).value


def python_type(column: ColumnInfo) -> Tuple[str, ImportMap]:
    """Python annotation for a column, plus the imports it requires."""
    annotation, imports = _PYTHON_TYPES[effective_type(column)]
    return annotation, {k: set(v) for k, v in imports.items()}


def sqlalchemy_type(column: ColumnInfo, data_store: str) -> Tuple[str, ImportMap]:
    """
    SQLAlchemy column type expression for a column, plus its imports.

    Strings with a known length become ``String(n)``; key-like strings
    without one get ``String(255)`` so they stay indexable; everything else
    textual is ``Text``.  Objects use ``JSONB`` only on PostgreSQL.
    """
    kind: str = effective_type(column)
    if kind == "number":
        name: str = "BigInteger" if column.raw_type in _BIG_INTEGER_TYPES else "Integer"
        return name, {"sqlalchemy": {name}}
    if kind == "boolean":
        return "Boolean", {"sqlalchemy": {"Boolean"}}
    if kind == "date":
        return "DateTime", {"sqlalchemy": {"DateTime"}}
    if kind == "object":
        if data_store == DataStoreKind.POSTGRESQL.value:
            return "JSONB", {"sqlalchemy.dialects.postgresql": {"JSONB"}}
        return "JSON", {"sqlalchemy": {"JSON"}}
    if column.length:
        return f"String({column.length})", {"sqlalchemy": {"String"}}
    if column.primary_key or column.unique:
        return "String(255)", {"sqlalchemy": {"String"}}
    return "Text", {"sqlalchemy": {"Text"}}


def server_default_arg(default: Optional[str]) -> Optional[str]:
    """
    ``server_default=...`` argument for a column default, or ``None``.

    Time-like defaults (``CURRENT_TIMESTAMP``, ``now()``, ``GETDATE()``)
    become ``func.now()``; ``NULL`` is ignored; anything else is a literal.
    """
    if default is None or default.upper() == "NULL":
        return None
    lowered: str = default.lower()
    if lowered.startswith("now") or any(m in lowered for m in _TIMESTAMP_DEFAULT_MARKERS):
        return "server_default=func.now()"
    return f"server_default={wrap_in_quotes(default)}"


def describe_column(column: ColumnInfo) -> str:
    """One-line human description used for attribute docstrings."""
    parts: List[str] = []
    type_text: str = column.raw_type or effective_type(column).upper()
    if column.length:
        type_text = f"{type_text}({column.length})"
    parts.append(type_text)
    if column.primary_key:
        parts.append("primary key")
    if column.auto_generated:
        parts.append("generated by the database")
    if not column.nullable and not column.primary_key:
        parts.append("required")
    if column.unique:
        parts.append("unique")
    return f"Column ``{column.name}``: {', '.join(parts)}."


def assign_field_names(columns: Iterable[ColumnInfo]) -> Dict[str, str]:
    """Map column names to unique Python attribute names, order preserved."""
    taken: Set[str] = set()
    result: Dict[str, str] = {}
    for column in columns:
        base: str = column_to_field_name(column.name)
        name: str = base
        suffix: int = 2
        while name in taken:
            name = f"{base}_{suffix}"
            suffix += 1
        taken.add(name)
        result[column.name] = name
    return result


# ---------------------------------------------------------------------------
# Rendering helpers
# ---------------------------------------------------------------------------


def _file_header(title: str) -> List[str]:
    return [
        '"""',
        title,
        "",
        "Generated by schemagen.",
        '"""',
        "",
        "from __future__ import annotations",
        "",
    ]


def _import_sections(*groups: ImportMap) -> List[str]:
    """Render stdlib / third-party / local import groups, blank-line separated."""
    lines: List[str] = []
    for group in groups:
        if not group:
            continue
        if lines:
            lines.append("")
        lines.extend(build_import_block(group).split("\n"))
    return lines


def _call_lines(prefix: str, callee: str, args: List[str], level: int) -> List[str]:
    """
    Render ``prefix + callee(args)`` on one line, or one argument per line
    when the single-line form would run past the wrap column.
    """
    pad: str = _INDENT * level
    single: str = f"{pad}{prefix}{callee}({', '.join(args)})"
    if len(single) <= _WRAP_AT or not args:
        return [single]
    lines: List[str] = [f"{pad}{prefix}{callee}("]
    lines.extend(f"{pad}{_INDENT}{arg}," for arg in args)
    lines.append(f"{pad})")
    return lines


def _decorator_lines(method: str, path: str, extra: List[str]) -> List[str]:
    args: List[str] = [wrap_in_quotes(path)] + extra
    return _call_lines("", f"@router.{method}", args, 0)


# ---------------------------------------------------------------------------
# Base builder
# ---------------------------------------------------------------------------

B = TypeVar("B", bound="ArtifactBuilder")


@dataclass(frozen=True, slots=True)
class ArtifactBuilder:
    """
    Immutable description of one per-table artifact.

    Subclasses set ``file_name`` and implement ``render()``.
    """

    table_name: str = ""
    columns: Tuple[ColumnInfo, ...] = ()
    foreign_keys: Tuple[ForeignKeyInfo, ...] = ()
    validation: bool = True
    documentation: bool = True
    audit_columns: bool = False
    data_store: str = DataStoreKind.POSTGRESQL.value
    known_tables: Tuple[str, ...] = ()

    file_name: ClassVar[str] = ""

    # ------------------------------------------------------------------
    # Fluent API
    # ------------------------------------------------------------------

    def named(self: B, table_name: str) -> B:
        return replace(self, table_name=table_name)

    def add_column(self: B, column: ColumnInfo) -> B:
        return replace(self, columns=self.columns + (column,))

    def add_foreign_key(self: B, foreign_key: ForeignKeyInfo) -> B:
        return replace(self, foreign_keys=self.foreign_keys + (foreign_key,))

    def with_validation(self: B, enabled: bool = True) -> B:
        return replace(self, validation=enabled)

    def with_documentation(self: B, enabled: bool = True) -> B:
        return replace(self, documentation=enabled)

    def with_audit_columns(self: B, enabled: bool = True) -> B:
        return replace(self, audit_columns=enabled)

    def targeting(self: B, data_store: DataStoreKind | str) -> B:
        return replace(self, data_store=DataStoreKind(data_store).value)

    def knowing(self: B, table_names: Iterable[str]) -> B:
        """Record the other tables of the schema (used for typing imports)."""
        return replace(self, known_tables=tuple(table_names))

    @classmethod
    def for_table(
        cls: type[B],
        table: TableInfo,
        config: GenerationConfig,
        known_tables: Iterable[str] = (),
    ) -> B:
        """Builder pre-loaded with *table* and the switches of *config*."""
        builder: B = cls().named(table.name)
        for column in table.columns:
            builder = builder.add_column(column)
        for fk in table.foreign_keys:
            builder = builder.add_foreign_key(fk)
        return (
            builder.with_validation(config.full_validations)
            .with_documentation(config.with_swagger)
            .with_audit_columns(config.date_logs)
            .targeting(config.data_store)
            .knowing(known_tables)
        )

    # ------------------------------------------------------------------
    # Derived names
    # ------------------------------------------------------------------

    @property
    def class_name(self) -> str:
        return table_to_class_name(self.table_name)

    @property
    def module_name(self) -> str:
        return table_to_module_name(self.table_name)

    @property
    def module_path(self) -> str:
        return f"app.modules.{self.module_name}"

    @property
    def directory(self) -> str:
        return f"app/modules/{self.module_name}"

    @property
    def path(self) -> str:
        return f"{self.directory}/{self.file_name}"

    @property
    def service_class(self) -> str:
        return f"{self.class_name}Service"

    @property
    def create_contract_class(self) -> str:
        return f"Create{self.class_name}Schema"

    @property
    def update_contract_class(self) -> str:
        return f"Update{self.class_name}Schema"

    def table(self) -> TableInfo:
        """The builder's content as a validated :class:`TableInfo`."""
        return TableInfo(
            name=self.table_name,
            columns=list(self.columns),
            foreign_keys=list(self.foreign_keys),
        )

    def field_names(self) -> Dict[str, str]:
        return assign_field_names(self.columns)

    def identifier_field(self) -> str:
        identifier: Optional[ColumnInfo] = self.table().identifier_column()
        if identifier is None:
            return "id"
        return self.field_names()[identifier.name]

    def identifier_type(self) -> str:
        identifier: Optional[ColumnInfo] = self.table().identifier_column()
        if identifier is None or effective_type(identifier) == "number":
            return "int"
        return "str"

    def relationship_members(self) -> List[Tuple[str, ForeignKeyInfo]]:
        """
        ``(member name, foreign key)`` pairs, one per foreign key.

        A member is named after the referenced table; when that name is
        already taken it gets a ``_by_<column>`` suffix.
        """
        fields: Dict[str, str] = self.field_names()
        taken: Set[str] = set(fields.values())
        members: List[Tuple[str, ForeignKeyInfo]] = []
        for fk in self.foreign_keys:
            name: str = safe_identifier(fk.referenced_table)
            if name in taken:
                name = f"{name}_by_{fields.get(fk.column, safe_identifier(fk.column))}"
            base: str = name
            suffix: int = 2
            while name in taken:
                name = f"{base}_{suffix}"
                suffix += 1
            taken.add(name)
            members.append((name, fk))
        return members

    # ------------------------------------------------------------------
    # Output
    # ------------------------------------------------------------------

    def render(self) -> str:
        raise NotImplementedError

    def build(self) -> Artifact:
        if not self.table_name:
            raise ValueError(f"{type(self).__name__} has no table name")
        content: str = self.render()
        logger.debug(
            "Built %s for '%s': %d lines.",
            self.file_name,
            self.table_name,
            content.count("\n"),
        )
        return Artifact(path=self.path, content=content)


# ---------------------------------------------------------------------------
# Entity
# ---------------------------------------------------------------------------


@dataclass(frozen=True, slots=True)
class EntityBuilder(ArtifactBuilder):
    """SQLAlchemy 2.0 declarative entity for one table."""

    file_name: ClassVar[str] = "entity.py"

    def render(self) -> str:
        table: TableInfo = self.table()
        fields: Dict[str, str] = self.field_names()
        identifier: Optional[ColumnInfo] = table.identifier_column()
        has_primary: bool = any(c.primary_key for c in table.columns)
        fk_by_column: Dict[str, ForeignKeyInfo] = {}
        for fk in table.foreign_keys:
            fk_by_column.setdefault(fk.column, fk)

        stdlib: ImportMap = {}
        third_party: ImportMap = {"sqlalchemy.orm": {"Mapped", "mapped_column"}}
        local: ImportMap = {"app.configs.database": {"Base"}}

        # --- Columns ---
        body: List[str] = []
        if not table.columns:
            third_party.setdefault("sqlalchemy", set()).add("Integer")
            body.append(
                f"{_INDENT}id: Mapped[int] = "
                "mapped_column(Integer, primary_key=True, autoincrement=True)"
            )

        for column in table.columns:
            field: str = fields[column.name]
            sa_type, sa_imports = sqlalchemy_type(column, self.data_store)
            py_type, py_imports = python_type(column)
            third_party = merge_import_dicts(third_party, sa_imports)
            stdlib = merge_import_dicts(stdlib, py_imports)

            as_primary: bool = column.primary_key or (
                not has_primary
                and identifier is not None
                and column.name == identifier.name
            )

            args: List[str] = []
            if column.name != field:
                args.append(wrap_in_quotes(column.name))
            args.append(sa_type)
            fk: Optional[ForeignKeyInfo] = fk_by_column.get(column.name)
            if fk is not None:
                target: str = f"{fk.referenced_table}.{fk.referenced_column}"
                args.append(f"ForeignKey({wrap_in_quotes(target)})")
                third_party.setdefault("sqlalchemy", set()).add("ForeignKey")

            if as_primary:
                args.append("primary_key=True")
                if column.auto_generated:
                    args.append("autoincrement=True")
                annotation: str = f"Mapped[{py_type}]"
            else:
                args.append(f"nullable={column.nullable}")
                if column.unique:
                    args.append("unique=True")
                default_arg: Optional[str] = server_default_arg(column.default)
                if default_arg is not None:
                    args.append(default_arg)
                    if "func." in default_arg:
                        third_party.setdefault("sqlalchemy", set()).add("func")
                if column.nullable:
                    stdlib.setdefault("typing", set()).add("Optional")
                    annotation = f"Mapped[Optional[{py_type}]]"
                else:
                    annotation = f"Mapped[{py_type}]"

            body.extend(_call_lines(f"{field}: {annotation} = ", "mapped_column", args, 1))
            if self.documentation:
                body.append(f'{_INDENT}"""{describe_column(column)}"""')

        # --- Relationships ---
        relationship_lines: List[str] = []
        type_checking: List[str] = []
        for member, fk in self.relationship_members():
            target_class: str = table_to_class_name(fk.referenced_table)
            args = [
                wrap_in_quotes(target_class),
                f"foreign_keys=[{fields.get(fk.column, safe_identifier(fk.column))}]",
            ]
            if fk.referenced_table == table.name and fk.referenced_column in fields:
                args.append(f"remote_side=[{fields[fk.referenced_column]}]")
            elif fk.referenced_table in self.known_tables:
                import_line: str = (
                    f"from app.modules.{table_to_module_name(fk.referenced_table)}"
                    f".entity import {target_class}"
                )
                if import_line not in type_checking:
                    type_checking.append(import_line)
            stdlib.setdefault("typing", set()).add("Optional")
            third_party.setdefault("sqlalchemy.orm", set()).add("relationship")
            relationship_lines.extend(
                _call_lines(
                    f'{member}: Mapped[Optional["{target_class}"]] = ',
                    "relationship",
                    args,
                    1,
                )
            )
            if self.documentation:
                relationship_lines.append(
                    f'{_INDENT}"""Referenced ``{fk.referenced_table}`` row '
                    f'(via ``{fk.column}``)."""'
                )

        # --- Audit columns ---
        audit_lines: List[str] = []
        if self.audit_columns:
            existing: Set[str] = set(fields.values())
            audit_members: List[Tuple[str, List[str], str]] = [
                ("created_at", ["DateTime", "server_default=func.now()"], "Creation time."),
                (
                    "updated_at",
                    ["DateTime", "server_default=func.now()", "onupdate=func.now()"],
                    "Last modification time.",
                ),
            ]
            for name, args, doc in audit_members:
                if name in existing:
                    continue
                audit_lines.extend(
                    _call_lines(f"{name}: Mapped[datetime] = ", "mapped_column", args, 1)
                )
                if self.documentation:
                    audit_lines.append(f'{_INDENT}"""{doc}"""')
            if audit_lines:
                stdlib.setdefault("datetime", set()).add("datetime")
                third_party.setdefault("sqlalchemy", set()).update({"DateTime", "func"})

        if type_checking:
            stdlib.setdefault("typing", set()).add("TYPE_CHECKING")

        # --- Assemble ---
        lines: List[str] = _file_header(f"Entity for the {self.table_name} table.")
        lines.extend(_import_sections(stdlib, third_party, local))
        if type_checking:
            lines.append("")
            lines.append("if TYPE_CHECKING:")
            lines.extend(f"{_INDENT}{line}" for line in type_checking)
        lines.append("")
        lines.append("")
        lines.append(f"class {self.class_name}(Base):")
        if self.documentation:
            lines.append(f'{_INDENT}"""Row of the ``{self.table_name}`` table."""')
            lines.append("")
        lines.append(f"{_INDENT}__tablename__ = {wrap_in_quotes(self.table_name)}")
        lines.append("")
        lines.extend(body)
        if relationship_lines:
            lines.append("")
            lines.extend(relationship_lines)
        if audit_lines:
            lines.append("")
            lines.extend(audit_lines)
        lines.append("")
        return "\n".join(lines)


# ---------------------------------------------------------------------------
# Service
# ---------------------------------------------------------------------------


@dataclass(frozen=True, slots=True)
class ServiceBuilder(ArtifactBuilder):
    """Data-access service: create, paginated list, get, partial update, delete."""

    file_name: ClassVar[str] = "service.py"

    def render(self) -> str:
        cls: str = self.class_name
        id_field: str = self.identifier_field()
        id_type: str = self.identifier_type()
        members: List[Tuple[str, ForeignKeyInfo]] = self.relationship_members()

        stdlib: ImportMap = {"math": set(), "typing": {"Any", "Dict"}}
        third_party: ImportMap = {
            "sqlalchemy": {"func", "select"},
            "sqlalchemy.exc": {"SQLAlchemyError"},
            "sqlalchemy.orm": {"Session"},
        }
        if members:
            third_party["sqlalchemy.orm"].add("selectinload")
        local: ImportMap = {
            f"{self.module_path}.create_schema": {self.create_contract_class},
            f"{self.module_path}.entity": {cls},
            f"{self.module_path}.update_schema": {self.update_contract_class},
        }

        lines: List[str] = _file_header(f"Data-access service for the {self.table_name} table.")
        lines.extend(_import_sections(stdlib, third_party, local))
        lines.append("")
        lines.append("")
        lines.append(f"class {self.service_class}:")
        if self.documentation:
            lines.append(f'{_INDENT}"""CRUD operations on ``{cls}`` records."""')
            lines.append("")
        lines.append(f"{_INDENT}def __init__(self, db: Session) -> None:")
        lines.append(f"{_DOUBLE_INDENT}self.db = db")
        lines.append("")

        # --- create ---
        lines.append(f"{_INDENT}def create(self, payload: {self.create_contract_class}) -> {cls}:")
        lines.append(f"{_DOUBLE_INDENT}record = {cls}(**payload.model_dump(exclude_unset=True))")
        lines.append(f"{_DOUBLE_INDENT}self.db.add(record)")
        lines.append(f"{_DOUBLE_INDENT}self._commit()")
        lines.append(f"{_DOUBLE_INDENT}self.db.refresh(record)")
        lines.append(f"{_DOUBLE_INDENT}return record")
        lines.append("")

        # --- find_all ---
        lines.append(
            f"{_INDENT}def find_all(self, page: int = 1, limit: int = 10) -> Dict[str, Any]:"
        )
        lines.append(
            f"{_DOUBLE_INDENT}total = self.db.scalar(select(func.count()).select_from({cls})) or 0"
        )
        lines.append(f"{_DOUBLE_INDENT}stmt = (")
        lines.append(f"{_TRIPLE_INDENT}select({cls})")
        if self.audit_columns:
            lines.append(f"{_TRIPLE_INDENT}.order_by({cls}.created_at.desc())")
        lines.append(f"{_TRIPLE_INDENT}.offset((page - 1) * limit)")
        lines.append(f"{_TRIPLE_INDENT}.limit(limit)")
        lines.append(f"{_DOUBLE_INDENT})")
        lines.append(f"{_DOUBLE_INDENT}rows = self.db.scalars(stmt).all()")
        lines.append(f"{_DOUBLE_INDENT}return {{")
        lines.append(f'{_TRIPLE_INDENT}"data": [row.to_dict() for row in rows],')
        lines.append(f'{_TRIPLE_INDENT}"total": total,')
        lines.append(f'{_TRIPLE_INDENT}"page": page,')
        lines.append(f'{_TRIPLE_INDENT}"total_pages": math.ceil(total / limit) if limit > 0 else 0,')
        lines.append(f"{_DOUBLE_INDENT}}}")
        lines.append("")

        # --- find_one ---
        lines.append(f"{_INDENT}def find_one(self, record_id: {id_type}) -> {cls}:")
        lines.append(f"{_DOUBLE_INDENT}stmt = (")
        lines.append(f"{_TRIPLE_INDENT}select({cls})")
        for member, _fk in members:
            lines.append(f"{_TRIPLE_INDENT}.options(selectinload({cls}.{member}))")
        lines.append(f"{_TRIPLE_INDENT}.where({cls}.{id_field} == record_id)")
        lines.append(f"{_DOUBLE_INDENT})")
        lines.append(f"{_DOUBLE_INDENT}record = self.db.scalars(stmt).first()")
        lines.append(f"{_DOUBLE_INDENT}if record is None:")
        lines.append(
            f'{_TRIPLE_INDENT}raise LookupError(f"{cls} with ID {{record_id}} not found")'
        )
        lines.append(f"{_DOUBLE_INDENT}return record")
        lines.append("")

        # --- update ---
        lines.append(
            f"{_INDENT}def update(self, record_id: {id_type}, "
            f"payload: {self.update_contract_class}) -> {cls}:"
        )
        lines.append(f"{_DOUBLE_INDENT}record = self.find_one(record_id)")
        lines.append(
            f"{_DOUBLE_INDENT}for key, value in payload.model_dump(exclude_unset=True).items():"
        )
        lines.append(f"{_TRIPLE_INDENT}setattr(record, key, value)")
        lines.append(f"{_DOUBLE_INDENT}self._commit()")
        lines.append(f"{_DOUBLE_INDENT}self.db.refresh(record)")
        lines.append(f"{_DOUBLE_INDENT}return record")
        lines.append("")

        # --- remove ---
        lines.append(f"{_INDENT}def remove(self, record_id: {id_type}) -> Dict[str, str]:")
        lines.append(f"{_DOUBLE_INDENT}record = self.find_one(record_id)")
        lines.append(f"{_DOUBLE_INDENT}self.db.delete(record)")
        lines.append(f"{_DOUBLE_INDENT}self._commit()")
        lines.append(
            f'{_DOUBLE_INDENT}return {{"message": f"{cls} with ID {{record_id}} deleted successfully"}}'
        )
        lines.append("")

        # --- commit helper ---
        lines.append(f"{_INDENT}def _commit(self) -> None:")
        lines.append(f"{_DOUBLE_INDENT}try:")
        lines.append(f"{_TRIPLE_INDENT}self.db.commit()")
        lines.append(f"{_DOUBLE_INDENT}except SQLAlchemyError:")
        lines.append(f"{_TRIPLE_INDENT}self.db.rollback()")
        lines.append(f"{_TRIPLE_INDENT}raise")
        lines.append("")
        return "\n".join(lines)


# ---------------------------------------------------------------------------
# Controller
# ---------------------------------------------------------------------------


@dataclass(frozen=True, slots=True)
class ControllerBuilder(ArtifactBuilder):
    """FastAPI router exposing the five operations of one table."""

    file_name: ClassVar[str] = "router.py"

    def _docs(self, summary: str, response: str) -> List[str]:
        if not self.documentation:
            return []
        return [
            f"summary={wrap_in_quotes(summary)}",
            f"response_description={wrap_in_quotes(response)}",
        ]

    def _docstring(self, text: str) -> List[str]:
        if not self.documentation:
            return []
        return [f'{_INDENT}"""{text}"""']

    def render(self) -> str:
        cls: str = self.class_name
        module: str = self.module_name
        service: str = self.service_class
        id_type: str = self.identifier_type()
        dep: str = f"service: {service} = Depends(get_service),"

        stdlib: ImportMap = {"typing": {"Any", "Dict"}}
        third_party: ImportMap = {
            "fastapi": {"APIRouter", "Depends", "HTTPException", "Query", "status"},
            "sqlalchemy.exc": {"SQLAlchemyError"},
            "sqlalchemy.orm": {"Session"},
        }
        local: ImportMap = {
            "app.configs.database": {"get_db"},
            f"{self.module_path}.create_schema": {self.create_contract_class},
            f"{self.module_path}.service": {service},
            f"{self.module_path}.update_schema": {self.update_contract_class},
        }

        not_found: List[str] = [
            f"{_INDENT}except LookupError as exc:",
            f"{_DOUBLE_INDENT}raise HTTPException(",
            f"{_TRIPLE_INDENT}status_code=status.HTTP_404_NOT_FOUND, detail=str(exc)",
            f"{_DOUBLE_INDENT}) from exc",
        ]
        bad_request: List[str] = [
            f"{_INDENT}except SQLAlchemyError as exc:",
            f"{_DOUBLE_INDENT}raise HTTPException(",
            f"{_TRIPLE_INDENT}status_code=status.HTTP_400_BAD_REQUEST, detail=str(exc)",
            f"{_DOUBLE_INDENT}) from exc",
        ]

        lines: List[str] = _file_header(f"HTTP routes for the {self.table_name} table.")
        lines.extend(_import_sections(stdlib, third_party, local))
        lines.append("")
        lines.append(
            f"router = APIRouter(prefix={wrap_in_quotes(table_to_route_prefix(self.table_name))}, "
            f"tags=[{wrap_in_quotes(table_to_route_tag(self.table_name))}])"
        )
        lines.append("")
        lines.append("")
        lines.append(f"def get_service(db: Session = Depends(get_db)) -> {service}:")
        lines.append(f"{_INDENT}return {service}(db)")
        lines.append("")
        lines.append("")

        # --- create ---
        lines.extend(
            _decorator_lines(
                "post",
                "/",
                ["status_code=status.HTTP_201_CREATED"]
                + self._docs(f"Create a {cls} record", "The created record"),
            )
        )
        lines.append(f"def create_{module}(")
        lines.append(f"{_INDENT}payload: {self.create_contract_class},")
        lines.append(f"{_INDENT}{dep}")
        lines.append(") -> Dict[str, Any]:")
        lines.extend(self._docstring(f"Insert a new {cls} record."))
        lines.append(f"{_INDENT}try:")
        lines.append(f"{_DOUBLE_INDENT}return service.create(payload).to_dict()")
        lines.extend(bad_request)
        lines.append("")
        lines.append("")

        # --- find_all ---
        lines.extend(
            _decorator_lines(
                "get", "/", self._docs(f"List {cls} records", "One page of records")
            )
        )
        lines.append(f"def find_all_{module}(")
        lines.append(f"{_INDENT}page: int = Query(1, ge=1),")
        lines.append(f"{_INDENT}limit: int = Query(10, ge=1, le=100),")
        lines.append(f"{_INDENT}{dep}")
        lines.append(") -> Dict[str, Any]:")
        lines.extend(self._docstring(f"Page through {cls} records."))
        lines.append(f"{_INDENT}return service.find_all(page=page, limit=limit)")
        lines.append("")
        lines.append("")

        # --- find_one ---
        lines.extend(
            _decorator_lines(
                "get",
                "/{record_id}",
                self._docs(f"Get a {cls} record", "The requested record"),
            )
        )
        lines.append(f"def find_one_{module}(")
        lines.append(f"{_INDENT}record_id: {id_type},")
        lines.append(f"{_INDENT}{dep}")
        lines.append(") -> Dict[str, Any]:")
        lines.extend(self._docstring(f"Fetch one {cls} record by identifier."))
        lines.append(f"{_INDENT}try:")
        lines.append(f"{_DOUBLE_INDENT}return service.find_one(record_id).to_dict()")
        lines.extend(not_found)
        lines.append("")
        lines.append("")

        # --- update ---
        lines.extend(
            _decorator_lines(
                "patch",
                "/{record_id}",
                self._docs(f"Update a {cls} record", "The updated record"),
            )
        )
        lines.append(f"def update_{module}(")
        lines.append(f"{_INDENT}record_id: {id_type},")
        lines.append(f"{_INDENT}payload: {self.update_contract_class},")
        lines.append(f"{_INDENT}{dep}")
        lines.append(") -> Dict[str, Any]:")
        lines.extend(self._docstring(f"Apply a partial update to one {cls} record."))
        lines.append(f"{_INDENT}try:")
        lines.append(f"{_DOUBLE_INDENT}return service.update(record_id, payload).to_dict()")
        lines.extend(not_found)
        lines.extend(bad_request)
        lines.append("")
        lines.append("")

        # --- remove ---
        lines.extend(
            _decorator_lines(
                "delete",
                "/{record_id}",
                self._docs(f"Delete a {cls} record", "Confirmation message"),
            )
        )
        lines.append(f"def remove_{module}(")
        lines.append(f"{_INDENT}record_id: {id_type},")
        lines.append(f"{_INDENT}{dep}")
        lines.append(") -> Dict[str, str]:")
        lines.extend(self._docstring(f"Delete one {cls} record."))
        lines.append(f"{_INDENT}try:")
        lines.append(f"{_DOUBLE_INDENT}return service.remove(record_id)")
        lines.extend(not_found)
        lines.extend(bad_request)
        lines.append("")
        return "\n".join(lines)


# ---------------------------------------------------------------------------
# Contracts
# ---------------------------------------------------------------------------


@dataclass(frozen=True, slots=True)
class CreateContractBuilder(ArtifactBuilder):
    """Pydantic payload for creating a record."""

    file_name: ClassVar[str] = "create_schema.py"
    all_optional: ClassVar[bool] = False

    @property
    def contract_class(self) -> str:
        return self.create_contract_class

    @property
    def contract_purpose(self) -> str:
        return "creating"

    def contract_columns(self) -> List[ColumnInfo]:
        """Non-primary, non-generated columns, in declaration order."""
        return [c for c in self.columns if not c.primary_key and not c.auto_generated]

    def field_line(self, column: ColumnInfo, field: str) -> Tuple[str, ImportMap]:
        """One contract field declaration plus the imports it needs."""
        imports: ImportMap = {}
        kind: str = effective_type(column)
        annotation, py_imports = python_type(column)
        imports = merge_import_dicts(imports, py_imports)

        if self.validation and kind == "string" and column.is_email:
            annotation = "EmailStr"
            imports.setdefault("pydantic", set()).add("EmailStr")

        required: bool = not column.nullable and not self.all_optional
        constraints: List[str] = []
        if self.validation and kind == "string" and annotation != "EmailStr":
            if required:
                constraints.append("min_length=1")
            if column.length:
                constraints.append(f"max_length={column.length}")
        if field != column.name:
            constraints.append(f"alias={wrap_in_quotes(column.name)}")

        if constraints:
            imports.setdefault("pydantic", set()).add("Field")

        if required:
            if constraints:
                return f"{field}: {annotation} = Field(..., {', '.join(constraints)})", imports
            return f"{field}: {annotation}", imports

        imports.setdefault("typing", set()).add("Optional")
        if constraints:
            return (
                f"{field}: Optional[{annotation}] = "
                f"Field(default=None, {', '.join(constraints)})"
            ), imports
        return f"{field}: Optional[{annotation}] = None", imports

    def render(self) -> str:
        fields: Dict[str, str] = self.field_names()
        stdlib: ImportMap = {}
        third_party: ImportMap = {"pydantic": {"BaseModel", "ConfigDict"}}

        body: List[str] = []
        for column in self.contract_columns():
            line, imports = self.field_line(column, fields[column.name])
            for module, names in imports.items():
                target: ImportMap = third_party if module == "pydantic" else stdlib
                target.setdefault(module, set()).update(names)
            body.append(f"{_INDENT}{line}")
            if self.documentation:
                body.append(f'{_INDENT}"""{describe_column(column)}"""')

        config_args: List[str] = ["populate_by_name=True"]
        if self.documentation:
            config_args.append("use_attribute_docstrings=True")

        lines: List[str] = _file_header(
            f"Payload contract for {self.contract_purpose} {self.table_name} records."
        )
        lines.extend(_import_sections(stdlib, third_party))
        lines.append("")
        lines.append("")
        lines.append(f"class {self.contract_class}(BaseModel):")
        if self.documentation:
            lines.append(
                f'{_INDENT}"""Request body for {self.contract_purpose} a ``{self.class_name}``."""'
            )
            lines.append("")
        lines.append(f"{_INDENT}model_config = ConfigDict({', '.join(config_args)})")
        if body:
            lines.append("")
            lines.extend(body)
        lines.append("")
        return "\n".join(lines)


@dataclass(frozen=True, slots=True)
class UpdateContractBuilder(CreateContractBuilder):
    """Pydantic payload for a partial update; every field is optional."""

    file_name: ClassVar[str] = "update_schema.py"
    all_optional: ClassVar[bool] = True

    @property
    def contract_class(self) -> str:
        return self.update_contract_class

    @property
    def contract_purpose(self) -> str:
        return "updating"


# ---------------------------------------------------------------------------
# Module wiring
# ---------------------------------------------------------------------------


@dataclass(frozen=True, slots=True)
class ModuleBuilder(ArtifactBuilder):
    """Package ``__init__`` re-exporting the entity, service and router."""

    file_name: ClassVar[str] = "__init__.py"

    def render(self) -> str:
        cls: str = self.class_name
        lines: List[str] = [
            f'"""{cls} module: entity, service and HTTP routes."""',
            "",
            f"from {self.module_path}.entity import {cls}",
            f"from {self.module_path}.router import router",
            f"from {self.module_path}.service import {self.service_class}",
            "",
            f'__all__ = ["{cls}", "{self.service_class}", "router"]',
            "",
        ]
        return "\n".join(lines)


# ---------------------------------------------------------------------------
# Table-level entry point
# ---------------------------------------------------------------------------

TABLE_BUILDERS: Tuple[type[ArtifactBuilder], ...] = (
    EntityBuilder,
    ControllerBuilder,
    ServiceBuilder,
    CreateContractBuilder,
    UpdateContractBuilder,
    ModuleBuilder,
)


def build_table_artifacts(
    table: TableInfo,
    config: GenerationConfig,
    known_tables: Iterable[str] = (),
) -> List[Artifact]:
    """The six artifacts of one table, in emission order."""
    names: Tuple[str, ...] = tuple(known_tables)
    return [
        builder_cls.for_table(table, config, names).build()
        for builder_cls in TABLE_BUILDERS
    ]


# ---------------------------------------------------------------------------
# Module-level exports
# ---------------------------------------------------------------------------

__all__: List[str] = [
    "effective_type",
    "python_type",
    "sqlalchemy_type",
    "server_default_arg",
    "describe_column",
    "assign_field_names",
    "ArtifactBuilder",
    "EntityBuilder",
    "ServiceBuilder",
    "ControllerBuilder",
    "CreateContractBuilder",
    "UpdateContractBuilder",
    "ModuleBuilder",
    "TABLE_BUILDERS",
    "build_table_artifacts",
]

logger.debug("schemagen.builders loaded.")
