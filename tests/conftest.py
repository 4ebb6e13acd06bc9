"""
tests/conftest.py
Shared fixtures for the schemagen test suite.

DDL documents cover the four dialects plus the edge cases the parser must
survive (blank documents, documents without tables).  No external mocking
libraries are used; file I/O happens inside pytest's tmp_path directories.
"""

from __future__ import annotations

import ast
import io
import logging
import textwrap
import zipfile
from datetime import datetime, timezone
from typing import Dict, Iterator

import pytest

from schemagen.models import GenerationConfig, SchemaDefinition
from schemagen.parser import SchemaParser


# ---------------------------------------------------------------------------
# Logging isolation
# ---------------------------------------------------------------------------


@pytest.fixture(autouse=True)
def _reset_schemagen_logger() -> Iterator[None]:
    """The CLI installs its own handler on ``schemagen``; undo it after each test."""
    yield
    root_logger: logging.Logger = logging.getLogger("schemagen")
    root_logger.handlers.clear()
    root_logger.setLevel(logging.NOTSET)
    root_logger.propagate = True


# ---------------------------------------------------------------------------
# DDL documents
# ---------------------------------------------------------------------------


@pytest.fixture()
def mysql_users_sql() -> str:
    """Single MySQL table with an auto-increment key and a role column."""
    return (
        "CREATE TABLE users (id INT PRIMARY KEY AUTO_INCREMENT, "
        "email VARCHAR(255) NOT NULL UNIQUE, role VARCHAR(50));"
    )


@pytest.fixture()
def users_orders_sql() -> str:
    """PostgreSQL pair linked by a table-level FOREIGN KEY clause."""
    return textwrap.dedent("""\
        CREATE TABLE users (
            id SERIAL PRIMARY KEY,
            email VARCHAR(255) NOT NULL UNIQUE,
            password VARCHAR(255) NOT NULL,
            full_name VARCHAR(100)
        );

        CREATE TABLE orders (
            id SERIAL PRIMARY KEY,
            user_id INTEGER NOT NULL,
            total INTEGER DEFAULT 0,
            created_at TIMESTAMP DEFAULT CURRENT_TIMESTAMP,
            FOREIGN KEY (user_id) REFERENCES users(id)
        );
    """)


@pytest.fixture()
def postgres_products_sql() -> str:
    """PostgreSQL table with JSONB, a boolean default and a separate index."""
    return textwrap.dedent("""\
        -- catalogue
        CREATE TABLE IF NOT EXISTS public.products (
            id SERIAL PRIMARY KEY,
            name VARCHAR(120) NOT NULL,
            attributes JSONB,
            is_active BOOLEAN DEFAULT true,
            created_at TIMESTAMP DEFAULT now()
        );

        CREATE INDEX idx_products_name ON products (name);
    """)


@pytest.fixture()
def mssql_customers_sql() -> str:
    """SQL Server table with bracketed identifiers and an IDENTITY key."""
    return textwrap.dedent("""\
        CREATE TABLE [dbo].[Customers] (
            [Id] INT IDENTITY(1,1) PRIMARY KEY,
            [Name] NVARCHAR(100) NOT NULL,
            [IsActive] BIT DEFAULT 1,
            [CreatedAt] DATETIME2 DEFAULT GETDATE()
        );
    """)


@pytest.fixture()
def oracle_employees_sql() -> str:
    """Oracle table using VARCHAR2, NUMBER and CLOB."""
    return textwrap.dedent("""\
        CREATE TABLE employees (
            emp_id NUMBER(10) PRIMARY KEY,
            full_name VARCHAR2(100) NOT NULL,
            bio CLOB,
            hired_on DATE
        );
    """)


@pytest.fixture()
def whitespace_sql() -> str:
    return "   \n\t  \n"


@pytest.fixture()
def no_tables_sql() -> str:
    return "SELECT 1;\nINSERT INTO t VALUES (1);\n"


# ---------------------------------------------------------------------------
# Parsed schemas
# ---------------------------------------------------------------------------


@pytest.fixture()
def users_orders_schema(users_orders_sql: str) -> SchemaDefinition:
    return SchemaParser().parse(users_orders_sql)


@pytest.fixture()
def products_schema(postgres_products_sql: str) -> SchemaDefinition:
    return SchemaParser().parse(postgres_products_sql)


# ---------------------------------------------------------------------------
# Configuration & time
# ---------------------------------------------------------------------------


@pytest.fixture()
def default_config() -> GenerationConfig:
    return GenerationConfig()


@pytest.fixture()
def full_config() -> GenerationConfig:
    """Every optional feature switched on."""
    return GenerationConfig(
        date_logs=True,
        with_ftp=True,
        with_google_auth=True,
        with_jwt_auth=True,
    )


@pytest.fixture()
def fixed_timestamp() -> datetime:
    return datetime(2024, 1, 1, 12, 0, tzinfo=timezone.utc)


# ---------------------------------------------------------------------------
# Helpers shared by several test modules
# ---------------------------------------------------------------------------


def read_zip(data: bytes) -> Dict[str, str]:
    """Return ``{path: text}`` for every member of a zip archive."""
    with zipfile.ZipFile(io.BytesIO(data)) as archive:
        return {name: archive.read(name).decode("utf-8") for name in archive.namelist()}


def is_valid_python(code: str, filename: str = "<generated>") -> bool:
    """Check if a string of Python code is syntactically valid."""
    try:
        ast.parse(code, filename=filename)
        return True
    except SyntaxError:
        return False
