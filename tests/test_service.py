"""
tests/test_service.py
Unit tests for schemagen.service (the parse / generate boundary operations)
and the error taxonomy they raise.

Tests cover:
- Input rules: missing, oversize, non-UTF-8 and blank documents
- Quote / backtick cleaning before parsing
- File-name checks and project-name derivation
- parse_document() summaries
- generate_archive() success and failure paths
"""

from __future__ import annotations

from datetime import datetime

import pytest

from conftest import read_zip
from schemagen.errors import GenerationError, InputError, ParseError, SchemaGenError
from schemagen.exporters import ArchiveWriter
from schemagen.generator import ProjectGenerator
from schemagen.models import GenerationConfig
from schemagen.scaffolds import ScaffoldTemplates
from schemagen.service import (
    BAD_EXTENSION_MESSAGE,
    EMPTY_FILE_MESSAGE,
    NO_FILE_MESSAGE,
    NO_TABLES_MESSAGE,
    archive_filename,
    clean_document,
    ensure_sql_filename,
    generate_archive,
    parse_document,
    project_name_from_filename,
    read_document,
)


# ===========================================================================
# Errors
# ===========================================================================


class TestErrors:
    """Status codes and JSON bodies."""

    def test_status_codes(self) -> None:
        assert InputError("x").status_code == 400
        assert ParseError("x").status_code == 400
        assert GenerationError("boom").status_code == 500

    def test_to_dict(self) -> None:
        assert InputError("SQL file is empty").to_dict() == {"error": "SQL file is empty"}
        assert GenerationError("boom").to_dict() == {
            "error": "Failed to generate project",
            "details": "boom",
        }

    def test_hierarchy(self) -> None:
        for cls in (InputError, ParseError, GenerationError):
            assert issubclass(cls, SchemaGenError)


# ===========================================================================
# Input rules
# ===========================================================================


class TestReadDocument:
    """read_document() decoding, bounds and cleaning."""

    def test_missing(self) -> None:
        with pytest.raises(InputError) as exc_info:
            read_document(None)
        assert exc_info.value.message == NO_FILE_MESSAGE

    def test_whitespace_only(self, whitespace_sql: str) -> None:
        with pytest.raises(InputError) as exc_info:
            read_document(whitespace_sql)
        assert exc_info.value.message == EMPTY_FILE_MESSAGE

    def test_only_quotes_is_empty(self) -> None:
        with pytest.raises(InputError) as exc_info:
            read_document(' "" `` ')
        assert exc_info.value.message == EMPTY_FILE_MESSAGE

    def test_too_large(self) -> None:
        with pytest.raises(InputError) as exc_info:
            read_document(b"x" * 11, max_bytes=10)
        assert "too large" in exc_info.value.message

    def test_exact_limit_is_accepted(self) -> None:
        assert read_document(b"x" * 10, max_bytes=10) == "x" * 10

    def test_not_utf8(self) -> None:
        with pytest.raises(InputError) as exc_info:
            read_document(b"\xff\xfe\xfa")
        assert exc_info.value.message == "SQL file must be UTF-8 text"

    def test_bom_is_dropped(self) -> None:
        assert read_document("\ufeffCREATE".encode("utf-8")) == "CREATE"

    def test_cleaning(self) -> None:
        assert clean_document('CREATE TABLE "users" (`id` INT);') == "CREATE TABLE users (id INT);"


class TestFileNames:
    """ensure_sql_filename(), project_name_from_filename(), archive_filename()."""

    @pytest.mark.parametrize("name", ["schema.sql", "SCHEMA.SQL", "my shop.Sql"])
    def test_sql_accepted(self, name: str) -> None:
        assert ensure_sql_filename(name) == name

    @pytest.mark.parametrize("name", [None, ""])
    def test_missing_name(self, name: str) -> None:
        with pytest.raises(InputError) as exc_info:
            ensure_sql_filename(name)
        assert exc_info.value.message == NO_FILE_MESSAGE

    @pytest.mark.parametrize("name", ["schema.txt", "schema.sql.bak", "schema"])
    def test_other_extension(self, name: str) -> None:
        with pytest.raises(InputError) as exc_info:
            ensure_sql_filename(name)
        assert exc_info.value.message == BAD_EXTENSION_MESSAGE

    @pytest.mark.parametrize(
        "filename, expected",
        [
            ("My Shop.sql", "my-shop"),
            ("inventory_v2.SQL", "inventory-v2"),
            ("dumps/prod/shop.sql", "shop"),
            ("C:\\dumps\\Shop.sql", "shop"),
            (".sql", "generated-app"),
        ],
    )
    def test_project_name(self, filename: str, expected: str) -> None:
        assert project_name_from_filename(filename) == expected

    def test_archive_filename(self) -> None:
        assert archive_filename("my-shop") == "my-shop-fastapi-app.zip"


# ===========================================================================
# parse_document
# ===========================================================================


class TestParseDocument:
    """parse_document() summaries."""

    def test_mysql_users(self, mysql_users_sql: str) -> None:
        summary = parse_document(mysql_users_sql).to_dict()
        assert summary == {
            "tableCount": 1,
            "tables": [{"name": "users", "columnCount": 3, "hasRelationships": False}],
            "dialect": "mysql",
            "userRoles": ["admin", "user", "moderator"],
        }

    def test_relationships_flag(self, users_orders_sql: str) -> None:
        summary = parse_document(users_orders_sql.encode("utf-8"))
        flags = {t.name: t.has_relationships for t in summary.tables}
        assert flags == {"users": False, "orders": True}

    def test_zero_tables_is_not_an_error(self, no_tables_sql: str) -> None:
        summary = parse_document(no_tables_sql)
        assert summary.table_count == 0
        assert summary.tables == []

    def test_backticks_are_cleaned(self) -> None:
        summary = parse_document("CREATE TABLE `users` (`id` INT AUTO_INCREMENT);")
        assert [t.name for t in summary.tables] == ["users"]
        assert summary.dialect == "mysql"

    def test_empty_document(self, whitespace_sql: str) -> None:
        with pytest.raises(InputError):
            parse_document(whitespace_sql)


# ===========================================================================
# generate_archive
# ===========================================================================


class TestGenerateArchive:
    """generate_archive() end to end."""

    def test_archive_contents(self, users_orders_sql: str, fixed_timestamp: datetime) -> None:
        result = generate_archive(users_orders_sql, project_name="shop", generated_at=fixed_timestamp)
        files = read_zip(result.data)
        assert "app/modules/orders/router.py" in files
        assert "app/modules/auth/service.py" in files
        assert result.project_name == "shop"
        assert result.total_files == len(files) == 31

    def test_reproducible(self, users_orders_sql: str, fixed_timestamp: datetime) -> None:
        first = generate_archive(users_orders_sql, generated_at=fixed_timestamp)
        second = generate_archive(users_orders_sql, generated_at=fixed_timestamp)
        assert first.data == second.data

    def test_config_is_applied(self, users_orders_sql: str) -> None:
        result = generate_archive(users_orders_sql, GenerationConfig(with_ftp=True))
        assert "app/common/utils/ftp_util.py" in read_zip(result.data)

    def test_no_tables(self, no_tables_sql: str) -> None:
        with pytest.raises(ParseError) as exc_info:
            generate_archive(no_tables_sql)
        assert exc_info.value.message == NO_TABLES_MESSAGE

    def test_empty(self, whitespace_sql: str) -> None:
        with pytest.raises(InputError) as exc_info:
            generate_archive(whitespace_sql)
        assert exc_info.value.message == EMPTY_FILE_MESSAGE

    def test_generation_failure(
        self, users_orders_sql: str, monkeypatch: pytest.MonkeyPatch
    ) -> None:
        def _boom(self: ScaffoldTemplates) -> str:
            raise RuntimeError("template exploded")

        monkeypatch.setattr(ScaffoldTemplates, "jwt_strategy", _boom)
        with pytest.raises(GenerationError) as exc_info:
            generate_archive(users_orders_sql)
        assert exc_info.value.message == "Failed to generate project"
        assert "template exploded" in exc_info.value.detail

    def test_archive_failure_is_generation_error(
        self, users_orders_sql: str, monkeypatch: pytest.MonkeyPatch
    ) -> None:
        def _boom(self: ArchiveWriter, artifacts: object) -> None:
            raise RuntimeError("zip exploded")

        monkeypatch.setattr(ArchiveWriter, "write", _boom)
        with pytest.raises(GenerationError) as exc_info:
            generate_archive(users_orders_sql)
        assert exc_info.value.status_code == 500
        assert exc_info.value.detail == "RuntimeError: zip exploded"

    def test_report_callback_sees_failed_run(
        self, users_orders_sql: str, monkeypatch: pytest.MonkeyPatch
    ) -> None:
        def _boom(self: ScaffoldTemplates) -> str:
            raise RuntimeError("template exploded")

        monkeypatch.setattr(ScaffoldTemplates, "jwt_strategy", _boom)
        reports: list = []
        with pytest.raises(GenerationError):
            generate_archive(users_orders_sql, on_report=reports.append)
        assert len(reports) == 1
        assert reports[0].success is False

    def test_blank_project_name_falls_back(self, mysql_users_sql: str) -> None:
        assert generate_archive(mysql_users_sql, project_name="").project_name == "generated-app"

    def test_generator_default_config(self) -> None:
        assert ProjectGenerator().config == GenerationConfig()
