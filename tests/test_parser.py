"""
tests/test_parser.py
Unit tests for schemagen.parser (SchemaParser and its helpers).

Tests cover:
- Table and column extraction for all four dialects
- Column flags: nullability, primary key, unique, auto-generation, length, default
- Foreign keys: table-level, inline REFERENCES, ALTER TABLE
- Table-level PRIMARY KEY / UNIQUE constraints and index groups
- Relationship derivation and role detection
- Heuristic tolerance: comments, duplicates, unrecognised text
"""

from __future__ import annotations

import textwrap
from typing import List

import pytest

from schemagen.models import (
    CanonicalType,
    ColumnInfo,
    SchemaDefinition,
    SqlDialect,
    TableInfo,
)
from schemagen.parser import (
    SchemaParser,
    detect_roles,
    parse_column,
    parse_schema,
    split_declarations,
    strip_comments,
)


def _parse(sql: str) -> SchemaDefinition:
    return SchemaParser().parse(sql)


def _column(schema: SchemaDefinition, table: str, column: str) -> ColumnInfo:
    found_table = schema.get_table(table)
    assert found_table is not None, f"table {table} missing"
    found = found_table.get_column(column)
    assert found is not None, f"column {table}.{column} missing"
    return found


# ===========================================================================
# Text helpers
# ===========================================================================


class TestTextHelpers:
    """Tests for strip_comments() and split_declarations()."""

    def test_strip_line_comments(self) -> None:
        assert strip_comments("a -- note\nb").split() == ["a", "b"]

    def test_strip_block_comments(self) -> None:
        assert strip_comments("a /* multi\nline */ b").split() == ["a", "b"]

    def test_split_keeps_nested_commas(self) -> None:
        parts = split_declarations("id INT, price DECIMAL(10,2), CHECK (a IN (1,2))")
        assert parts == ["id INT", "price DECIMAL(10,2)", "CHECK (a IN (1,2))"]

    def test_split_collapses_whitespace(self) -> None:
        assert split_declarations("  id \n  INT  ,\n\n") == ["id INT"]


# ===========================================================================
# Single-table scenarios
# ===========================================================================


class TestMysqlUsers:
    """CREATE TABLE users (id INT PRIMARY KEY AUTO_INCREMENT, ...)."""

    def test_summary_facts(self, mysql_users_sql: str) -> None:
        schema = _parse(mysql_users_sql)
        assert schema.table_count == 1
        assert schema.dialect == SqlDialect.MYSQL
        assert schema.user_roles == ["admin", "user", "moderator"]
        assert schema.relationships == []

    def test_id_column(self, mysql_users_sql: str) -> None:
        col = _column(_parse(mysql_users_sql), "users", "id")
        assert col.canonical_type == CanonicalType.NUMBER
        assert col.primary_key is True
        assert col.auto_generated is True

    def test_email_column(self, mysql_users_sql: str) -> None:
        col = _column(_parse(mysql_users_sql), "users", "email")
        assert col.canonical_type == CanonicalType.STRING
        assert col.nullable is False
        assert col.unique is True
        assert col.length == 255
        assert col.is_email is True

    def test_role_column_is_nullable(self, mysql_users_sql: str) -> None:
        col = _column(_parse(mysql_users_sql), "users", "role")
        assert col.nullable is True
        assert col.length == 50

    def test_columns_keep_declaration_order(self, mysql_users_sql: str) -> None:
        table = _parse(mysql_users_sql).tables[0]
        assert table.column_names == ["id", "email", "role"]


class TestOtherDialects:
    """Per-dialect column recovery."""

    def test_postgres_products(self, products_schema: SchemaDefinition) -> None:
        assert products_schema.dialect == SqlDialect.POSTGRESQL
        assert products_schema.table_names == ["products"]
        assert _column(products_schema, "products", "id").auto_generated is True
        assert _column(products_schema, "products", "attributes").canonical_type == CanonicalType.OBJECT
        active = _column(products_schema, "products", "is_active")
        assert active.canonical_type == CanonicalType.BOOLEAN
        assert active.default == "true"
        assert _column(products_schema, "products", "created_at").default == "now()"

    def test_postgres_create_index(self, products_schema: SchemaDefinition) -> None:
        assert products_schema.tables[0].indexes == [["name"]]

    def test_mssql_customers(self, mssql_customers_sql: str) -> None:
        schema = _parse(mssql_customers_sql)
        assert schema.dialect == SqlDialect.MSSQL
        assert schema.table_names == ["Customers"]
        ident = _column(schema, "Customers", "Id")
        assert ident.primary_key is True
        assert ident.auto_generated is True
        assert ident.canonical_type == CanonicalType.NUMBER
        name = _column(schema, "Customers", "Name")
        assert name.canonical_type == CanonicalType.STRING
        assert name.length == 100
        assert name.nullable is False
        assert _column(schema, "Customers", "IsActive").canonical_type == CanonicalType.BOOLEAN
        assert _column(schema, "Customers", "CreatedAt").default == "GETDATE()"

    def test_oracle_employees(self, oracle_employees_sql: str) -> None:
        schema = _parse(oracle_employees_sql)
        assert schema.dialect == SqlDialect.ORACLE
        emp_id = _column(schema, "employees", "emp_id")
        assert emp_id.canonical_type == CanonicalType.NUMBER
        assert emp_id.length == 10
        assert _column(schema, "employees", "bio").canonical_type == CanonicalType.STRING
        assert _column(schema, "employees", "hired_on").canonical_type == CanonicalType.DATE

    def test_decimal_keeps_whole_declaration(self) -> None:
        schema = _parse("CREATE TABLE items (id INTEGER, price DECIMAL(10,2) NOT NULL);")
        table = schema.tables[0]
        assert table.column_names == ["id", "price"]
        price = table.get_column("price")
        assert price is not None
        assert price.raw_type == "DECIMAL"
        assert price.length is None
        assert price.nullable is False

    def test_mysql_table_options_are_ignored(self) -> None:
        sql = (
            "CREATE TABLE `posts` (id INT AUTO_INCREMENT, title VARCHAR(80), "
            "PRIMARY KEY (id)) ENGINE=InnoDB DEFAULT CHARSET=utf8mb4;"
        )
        schema = _parse(sql.replace("`", ""))
        table = schema.tables[0]
        assert table.name == "posts"
        assert table.column_names == ["id", "title"]


# ===========================================================================
# Keys and constraints
# ===========================================================================


class TestKeysAndConstraints:
    """Foreign keys, table-level constraints and index groups."""

    def test_table_level_foreign_key(self, users_orders_schema: SchemaDefinition) -> None:
        orders = users_orders_schema.get_table("orders")
        assert orders is not None
        assert len(orders.foreign_keys) == 1
        fk = orders.foreign_keys[0]
        assert (fk.column, fk.referenced_table, fk.referenced_column) == ("user_id", "users", "id")
        assert orders.has_relationships is True

    def test_relationship_derived(self, users_orders_schema: SchemaDefinition) -> None:
        assert len(users_orders_schema.relationships) == 1
        rel = users_orders_schema.relationships[0]
        assert rel.from_table == "orders"
        assert rel.to_table == "users"
        assert rel.relationship_type == "many-to-one"

    def test_relationship_dumps_with_aliases(self, users_orders_schema: SchemaDefinition) -> None:
        dumped = users_orders_schema.relationships[0].model_dump(by_alias=True)
        assert dumped == {"from": "orders", "to": "users", "type": "many-to-one"}

    def test_constraint_lines_are_not_columns(self, users_orders_schema: SchemaDefinition) -> None:
        orders = users_orders_schema.get_table("orders")
        assert orders is not None
        assert orders.column_names == ["id", "user_id", "total", "created_at"]

    def test_inline_references(self) -> None:
        sql = textwrap.dedent("""\
            CREATE TABLE authors (id INTEGER PRIMARY KEY, name TEXT);
            CREATE TABLE books (
                id INTEGER PRIMARY KEY,
                author_id INTEGER REFERENCES authors(id) ON DELETE CASCADE
            );
        """)
        books = _parse(sql).get_table("books")
        assert books is not None
        assert [(fk.column, fk.referenced_table) for fk in books.foreign_keys] == [
            ("author_id", "authors")
        ]

    def test_alter_table_foreign_key(self) -> None:
        sql = textwrap.dedent("""\
            CREATE TABLE teams (id INTEGER PRIMARY KEY);
            CREATE TABLE players (id INTEGER PRIMARY KEY, team_id INTEGER);
            ALTER TABLE players ADD CONSTRAINT fk_team FOREIGN KEY (team_id) REFERENCES teams(id);
        """)
        schema = _parse(sql)
        players = schema.get_table("players")
        assert players is not None
        assert players.foreign_keys[0].referenced_table == "teams"
        assert len(schema.relationships) == 1

    def test_alter_table_on_unknown_table_is_ignored(self) -> None:
        sql = (
            "CREATE TABLE a (id INTEGER);\n"
            "ALTER TABLE ghost ADD FOREIGN KEY (x) REFERENCES a(id);"
        )
        schema = _parse(sql)
        assert schema.table_names == ["a"]
        assert schema.relationships == []

    def test_foreign_key_on_missing_column_is_dropped(self) -> None:
        sql = (
            "CREATE TABLE a (id INTEGER);\n"
            "CREATE TABLE b (id INTEGER, FOREIGN KEY (nope) REFERENCES a(id));"
        )
        b = _parse(sql).get_table("b")
        assert b is not None
        assert b.foreign_keys == []

    def test_table_level_primary_key_and_unique(self) -> None:
        sql = textwrap.dedent("""\
            CREATE TABLE accounts (
                account_no INTEGER NOT NULL,
                handle VARCHAR(40),
                CONSTRAINT pk_accounts PRIMARY KEY (account_no),
                CONSTRAINT uq_handle UNIQUE (handle)
            );
        """)
        schema = _parse(sql)
        assert _column(schema, "accounts", "account_no").primary_key is True
        assert _column(schema, "accounts", "handle").unique is True

    def test_inline_key_index(self) -> None:
        sql = (
            "CREATE TABLE logs (id INT AUTO_INCREMENT, level TINYINT, msg TEXT, "
            "PRIMARY KEY (id), KEY idx_level (level));"
        )
        table = _parse(sql).tables[0]
        assert table.indexes == [["level"]]
        assert table.get_column("id") is not None
        assert table.get_column("id").primary_key is True  # type: ignore[union-attr]

    def test_multi_column_create_index(self) -> None:
        sql = (
            "CREATE TABLE events (id INTEGER, kind TEXT, at TIMESTAMP);\n"
            "CREATE UNIQUE INDEX ix_events ON events (kind, at DESC);"
        )
        assert _parse(sql).tables[0].indexes == [["kind", "at"]]

    def test_keyword_named_columns_are_columns(self) -> None:
        sql = (
            "CREATE TABLE settings (id INT PRIMARY KEY AUTO_INCREMENT, "
            "key VARCHAR(255) NOT NULL, value TEXT) ENGINE=InnoDB;"
        )
        table = _parse(sql).tables[0]
        assert table.column_names == ["id", "key", "value"]
        assert table.indexes == []
        assert _column(_parse(sql), "settings", "key").nullable is False

    @pytest.mark.parametrize(
        "declaration",
        ["index INTEGER NOT NULL", "unique VARCHAR(10)", "check BOOLEAN", "key NVARCHAR(MAX)"],
    )
    def test_keyword_named_column_kept(self, declaration: str) -> None:
        table = _parse(f"CREATE TABLE t (id INTEGER, {declaration});").tables[0]
        assert table.column_names == ["id", declaration.split()[0]]
        assert table.indexes == []

    def test_keyword_column_next_to_real_index(self) -> None:
        sql = (
            "CREATE TABLE kv (id INT, key VARCHAR(64) NOT NULL, "
            "KEY idx_key (key), UNIQUE (id));"
        )
        schema = _parse(sql)
        table = schema.tables[0]
        assert table.column_names == ["id", "key"]
        assert table.indexes == [["key"]]
        assert _column(schema, "kv", "id").unique is True

    def test_foreign_key_column_case_differs(self) -> None:
        sql = textwrap.dedent("""\
            CREATE TABLE users (id INTEGER PRIMARY KEY);
            CREATE TABLE orders (
                id INTEGER PRIMARY KEY,
                user_id INTEGER NOT NULL,
                FOREIGN KEY (USER_ID) REFERENCES users(id)
            );
        """)
        schema = _parse(sql)
        orders = schema.get_table("orders")
        assert orders is not None
        assert [fk.column for fk in orders.foreign_keys] == ["user_id"]
        assert len(schema.relationships) == 1

    def test_primary_key_constraint_case_differs(self) -> None:
        sql = "CREATE TABLE t (Code VARCHAR(8), CONSTRAINT pk_t PRIMARY KEY (code));"
        assert _column(_parse(sql), "t", "Code").primary_key is True


# ===========================================================================
# Column parsing
# ===========================================================================


class TestParseColumn:
    """Tests for parse_column() on single declarations."""

    def test_not_a_column(self) -> None:
        assert parse_column("(((", SqlDialect.POSTGRESQL) is None

    def test_default_quotes_are_stripped(self) -> None:
        col = parse_column("status VARCHAR(20) DEFAULT 'active'", SqlDialect.POSTGRESQL)
        assert col is not None
        assert col.default == "active"

    def test_serial_is_auto_generated(self) -> None:
        col = parse_column("id BIGSERIAL PRIMARY KEY", SqlDialect.POSTGRESQL)
        assert col is not None
        assert col.auto_generated is True
        assert col.raw_type == "BIGSERIAL"

    def test_defaults_for_bare_column(self) -> None:
        col = parse_column("note TEXT", SqlDialect.POSTGRESQL)
        assert col is not None
        assert col.nullable is True
        assert col.primary_key is False
        assert col.unique is False
        assert col.auto_generated is False
        assert col.length is None
        assert col.default is None


# ===========================================================================
# Roles
# ===========================================================================


class TestRoleDetection:
    """Tests for detect_roles()."""

    def _tables(self, *columns: ColumnInfo) -> List[TableInfo]:
        return [TableInfo(name="t", columns=list(columns))]

    def test_default_roles(self) -> None:
        assert detect_roles(self._tables(ColumnInfo(name="id"))) == ["admin", "user"]

    def test_permission_column(self) -> None:
        roles = detect_roles(self._tables(ColumnInfo(name="permissions")))
        assert roles == ["admin", "user", "moderator"]

    def test_string_type_column(self) -> None:
        roles = detect_roles(self._tables(ColumnInfo(name="type", canonical_type="string")))
        assert roles == ["admin", "user", "moderator"]

    def test_numeric_type_column_is_ignored(self) -> None:
        roles = detect_roles(self._tables(ColumnInfo(name="type", canonical_type="number")))
        assert roles == ["admin", "user"]

    def test_no_tables(self) -> None:
        assert detect_roles([]) == ["admin", "user"]


# ===========================================================================
# Tolerance
# ===========================================================================


class TestTolerance:
    """The parser skips what it does not understand instead of failing."""

    def test_no_tables(self, no_tables_sql: str) -> None:
        schema = _parse(no_tables_sql)
        assert schema.table_count == 0
        assert schema.user_roles == ["admin", "user"]
        assert schema.dialect == SqlDialect.POSTGRESQL

    def test_empty_document(self) -> None:
        assert _parse("").table_count == 0

    def test_commented_out_table_is_ignored(self) -> None:
        sql = "/* CREATE TABLE ghost (id INTEGER); */\nCREATE TABLE real (id INTEGER);"
        assert _parse(sql).table_names == ["real"]

    def test_duplicate_table_keeps_first(self) -> None:
        sql = (
            "CREATE TABLE things (id INTEGER, a TEXT);\n"
            "CREATE TABLE things (id INTEGER, b TEXT, c TEXT);"
        )
        schema = _parse(sql)
        assert schema.table_count == 1
        assert schema.tables[0].column_names == ["id", "a"]

    def test_duplicate_column_keeps_first(self) -> None:
        sql = "CREATE TABLE t (a INTEGER NOT NULL, a TEXT);"
        table = _parse(sql).tables[0]
        assert table.column_names == ["a"]
        assert table.columns[0].canonical_type == CanonicalType.NUMBER

    def test_parse_schema_wrapper(self, mysql_users_sql: str) -> None:
        assert parse_schema(mysql_users_sql).table_names == ["users"]

    @pytest.mark.parametrize("keyword", ["create table", "Create Table", "CREATE TABLE"])
    def test_keywords_are_case_insensitive(self, keyword: str) -> None:
        assert _parse(f"{keyword} t (id INTEGER);").table_names == ["t"]
