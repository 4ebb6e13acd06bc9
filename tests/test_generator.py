"""
tests/test_generator.py
Tests for schemagen.generator (ProjectGenerator pipeline) and the project /
scaffold templates it drives.

Tests cover:
- Emission order and file counts per configuration
- Generated code correctness (valid Python syntax via ast.parse())
- Determinism: only the README depends on the timestamp
- Identity binding and the fallback Users entity
- Feature switches (FTP, Google, swagger, data store)
- Reserved / colliding module names and step failures
- GenerationReport.summary()
"""

from __future__ import annotations

from datetime import datetime, timezone
from typing import Dict, List

import pytest

from conftest import is_valid_python
from schemagen.generator import GenerationReport, ProjectGenerator, generate_project
from schemagen.models import GenerationConfig, SchemaDefinition
from schemagen.parser import SchemaParser
from schemagen.scaffolds import ScaffoldTemplates, resolve_identity, role_member_name
from schemagen.templates import ProjectTemplates

_TABLE_FILES: List[str] = [
    "entity.py",
    "router.py",
    "service.py",
    "create_schema.py",
    "update_schema.py",
    "__init__.py",
]

_BOOTSTRAP: List[str] = [
    "pyproject.toml",
    "ruff.toml",
    ".gitignore",
    ".env",
    "app/main.py",
    "README.md",
]

_AUTH: List[str] = [
    "app/modules/auth/service.py",
    "app/modules/auth/router.py",
    "app/modules/auth/__init__.py",
    "app/modules/auth/login_schema.py",
    "app/modules/auth/register_schema.py",
]

_UTILITIES: List[str] = [
    "app/common/strategies/jwt_strategy.py",
    "app/common/guards/jwt_auth_guard.py",
    "app/common/guards/roles_guard.py",
    "app/common/decorators/roles.py",
    "app/common/constants/roles.py",
    "app/common/utils/date_util.py",
]

_CONFIGS: List[str] = ["app/configs/database.py", "app/configs/settings.py"]


def _generate(
    schema: SchemaDefinition,
    config: GenerationConfig,
    stamp: datetime,
    name: str = "shop",
) -> GenerationReport:
    report = ProjectGenerator(config).generate(schema, name, stamp)
    assert report.success, report.generation_errors
    assert report.project is not None
    return report


def _files(report: GenerationReport) -> Dict[str, str]:
    assert report.project is not None
    return {a.path: a.content for a in report.project.artifacts}


# ===========================================================================
# Emission order
# ===========================================================================


class TestEmissionOrder:
    """Artifact list shape for the default configuration."""

    def test_users_orders_paths(
        self,
        users_orders_schema: SchemaDefinition,
        default_config: GenerationConfig,
        fixed_timestamp: datetime,
    ) -> None:
        report = _generate(users_orders_schema, default_config, fixed_timestamp)
        assert report.project is not None
        expected: List[str] = (
            _BOOTSTRAP
            + [f"app/modules/users/{f}" for f in _TABLE_FILES]
            + [f"app/modules/orders/{f}" for f in _TABLE_FILES]
            + _AUTH
            + _UTILITIES
            + _CONFIGS
        )
        assert report.project.paths() == expected
        assert report.total_files == 31
        assert report.total_tables_processed == 2

    def test_fallback_identity_entity(
        self,
        products_schema: SchemaDefinition,
        default_config: GenerationConfig,
        fixed_timestamp: datetime,
    ) -> None:
        report = _generate(products_schema, default_config, fixed_timestamp)
        files = _files(report)
        assert "app/modules/users/entity.py" in files
        assert "app/modules/users/router.py" not in files
        assert report.total_files == 26
        assert "class Users(Base):" in files["app/modules/users/entity.py"]
        assert "from app.modules.users.entity import Users" in files["app/modules/auth/service.py"]

    def test_optional_utilities(
        self,
        users_orders_schema: SchemaDefinition,
        full_config: GenerationConfig,
        fixed_timestamp: datetime,
    ) -> None:
        paths = _files(_generate(users_orders_schema, full_config, fixed_timestamp))
        listed = list(paths)
        assert listed.index("app/common/utils/ftp_util.py") == listed.index("app/common/utils/date_util.py") + 1
        assert listed.index("app/common/strategies/google_strategy.py") == listed.index("app/common/utils/ftp_util.py") + 1
        assert len(listed) == 33

    def test_every_python_file_parses(
        self,
        users_orders_schema: SchemaDefinition,
        full_config: GenerationConfig,
        fixed_timestamp: datetime,
    ) -> None:
        for path, content in _files(_generate(users_orders_schema, full_config, fixed_timestamp)).items():
            if path.endswith(".py"):
                assert is_valid_python(content, path), path

    @pytest.mark.parametrize("store", ["postgresql", "mysql", "mssql", "oracle", "mongodb"])
    def test_every_data_store_parses(
        self, users_orders_schema: SchemaDefinition, fixed_timestamp: datetime, store: str
    ) -> None:
        config = GenerationConfig(data_store=store, full_validations=False, with_swagger=False)
        for path, content in _files(_generate(users_orders_schema, config, fixed_timestamp)).items():
            if path.endswith(".py"):
                assert is_valid_python(content, path), path


# ===========================================================================
# Determinism
# ===========================================================================


class TestDeterminism:
    """Same input and timestamp → same output."""

    def test_identical_runs(
        self,
        users_orders_schema: SchemaDefinition,
        default_config: GenerationConfig,
        fixed_timestamp: datetime,
    ) -> None:
        first = _files(_generate(users_orders_schema, default_config, fixed_timestamp))
        second = _files(_generate(users_orders_schema, default_config, fixed_timestamp))
        assert first == second

    def test_only_readme_depends_on_timestamp(
        self,
        users_orders_schema: SchemaDefinition,
        default_config: GenerationConfig,
        fixed_timestamp: datetime,
    ) -> None:
        later = datetime(2030, 6, 1, tzinfo=timezone.utc)
        first = _files(_generate(users_orders_schema, default_config, fixed_timestamp))
        second = _files(_generate(users_orders_schema, default_config, later))
        changed = [path for path in first if first[path] != second[path]]
        assert changed == ["README.md"]
        assert "2030-06-01" in second["README.md"]

    def test_default_timestamp_is_set(self, users_orders_schema: SchemaDefinition) -> None:
        report = generate_project(users_orders_schema)
        assert report.project is not None
        assert report.project.generated_at.tzinfo is not None
        assert report.project_name == "generated-app"


# ===========================================================================
# Project templates
# ===========================================================================


class TestProjectTemplates:
    """Bootstrap and configuration files."""

    def test_main_wires_every_router(
        self,
        users_orders_schema: SchemaDefinition,
        default_config: GenerationConfig,
        fixed_timestamp: datetime,
    ) -> None:
        main = _files(_generate(users_orders_schema, default_config, fixed_timestamp))["app/main.py"]
        assert 'app.include_router(auth_router, prefix="/api")' in main
        assert 'app.include_router(users_router, prefix="/api")' in main
        assert 'app.include_router(orders_router, prefix="/api")' in main
        assert '@app.get("/health", tags=["Health"])' in main
        assert 'docs_url="/docs"' in main

    def test_swagger_off_hides_docs(self, users_orders_schema: SchemaDefinition) -> None:
        templates = ProjectTemplates(users_orders_schema, GenerationConfig(with_swagger=False), "shop")
        assert "docs_url=None" in templates.main_module()

    @pytest.mark.parametrize(
        "store, scheme, driver",
        [
            ("postgresql", "postgresql+psycopg2://", "psycopg2-binary"),
            ("mysql", "mysql+pymysql://", "pymysql"),
            ("mssql", "mssql+pyodbc://", "pyodbc"),
            ("oracle", "oracle+oracledb://", "oracledb"),
            ("mongodb", "mongodb://", "pymongo"),
        ],
    )
    def test_data_store_profiles(
        self, users_orders_schema: SchemaDefinition, store: str, scheme: str, driver: str
    ) -> None:
        templates = ProjectTemplates(users_orders_schema, GenerationConfig(data_store=store), "My Shop")
        assert templates.database_url().startswith(scheme)
        assert templates.database_url().endswith("/my_shop") or "?driver=" in templates.database_url()
        assert any(dep.startswith(driver) for dep in templates.dependencies())
        assert f"DATABASE_URL={scheme}" in templates.env_file()

    def test_names(self, users_orders_schema: SchemaDefinition) -> None:
        templates = ProjectTemplates(users_orders_schema, GenerationConfig(), "My Shop")
        assert templates.package_name == "my-shop"
        assert templates.title == "My Shop"
        assert 'name = "my-shop"' in templates.pyproject_toml()

    def test_dependencies_follow_switches(self, users_orders_schema: SchemaDefinition) -> None:
        on = ProjectTemplates(users_orders_schema, GenerationConfig(with_google_auth=True), "x")
        off = ProjectTemplates(users_orders_schema, GenerationConfig(full_validations=False), "x")
        assert "pydantic[email]>=2.7.0" in on.dependencies()
        assert any(dep.startswith("httpx") for dep in on.dependencies())
        assert "pydantic>=2.7.0" in off.dependencies()
        assert not any(dep.startswith("httpx") for dep in off.dependencies())

    def test_bcrypt_pinned_for_passlib(self, users_orders_schema: SchemaDefinition) -> None:
        # passlib 1.7.4 cannot hash with bcrypt 4.1 and later
        templates = ProjectTemplates(users_orders_schema, GenerationConfig(), "shop")
        assert "bcrypt>=4.0.1,<4.1" in templates.dependencies()
        assert '"bcrypt>=4.0.1,<4.1",' in templates.pyproject_toml()

    def test_settings_follow_switches(self, users_orders_schema: SchemaDefinition) -> None:
        settings = ProjectTemplates(users_orders_schema, GenerationConfig(with_ftp=True), "x").settings_config()
        assert "ftp_host: str" in settings
        assert "google_client_id" not in settings
        assert is_valid_python(settings)

    def test_readme_lists_tables(
        self, users_orders_schema: SchemaDefinition, fixed_timestamp: datetime
    ) -> None:
        readme = ProjectTemplates(users_orders_schema, GenerationConfig(), "shop").readme(fixed_timestamp)
        assert "## Orders" in readme
        assert "`/api/orders/{record_id}`" in readme
        assert "2024-01-01T12:00:00+00:00" in readme
        assert "- Roles: admin, user" in readme


# ===========================================================================
# Auth scaffold
# ===========================================================================


class TestScaffolds:
    """Identity binding and the auth / common files."""

    def test_identity_from_users_table(self, users_orders_schema: SchemaDefinition) -> None:
        identity = resolve_identity(users_orders_schema)
        assert identity.module == "users"
        assert identity.class_name == "Users"
        assert identity.email_field == "email"
        assert identity.password_field == "password"
        assert identity.role_field is None
        assert identity.generated is False
        assert identity.import_path == "app.modules.users.entity"

    def test_identity_with_role_column(self, mysql_users_sql: str) -> None:
        identity = resolve_identity(SchemaParser().parse(mysql_users_sql))
        assert identity.role_field == "role"

    def test_identity_fallback(self, products_schema: SchemaDefinition) -> None:
        identity = resolve_identity(products_schema)
        assert identity.generated is True
        assert identity.role_field == "role"

    def test_identity_table_by_substring(self) -> None:
        schema = SchemaParser().parse(
            "CREATE TABLE app_user_accounts (uid INTEGER PRIMARY KEY, mail_address TEXT, passwd TEXT);"
        )
        identity = resolve_identity(schema)
        assert identity.class_name == "AppUserAccounts"
        assert identity.id_field == "uid"
        assert identity.password_field == "passwd"
        # no column mentions "email"
        assert identity.email_field == "email"

    @pytest.mark.parametrize(
        "role, member",
        [("admin", "ADMIN"), ("super-admin", "SUPER_ADMIN"), ("2fa", "R_2FA"), ("!!", "ROLE")],
    )
    def test_role_member_name(self, role: str, member: str) -> None:
        assert role_member_name(role) == member

    def test_roles_constants(self, mysql_users_sql: str) -> None:
        scaffolds = ScaffoldTemplates(SchemaParser().parse(mysql_users_sql), GenerationConfig())
        code = scaffolds.roles_constants()
        assert is_valid_python(code)
        assert "class Role(str, Enum):" in code
        assert 'MODERATOR = "moderator"' in code

    def test_auth_service_uses_identity(self, mysql_users_sql: str) -> None:
        scaffolds = ScaffoldTemplates(SchemaParser().parse(mysql_users_sql), GenerationConfig())
        code = scaffolds.auth_service()
        assert is_valid_python(code)
        assert "from app.modules.users.entity import Users" in code
        assert 'CryptContext(schemes=["bcrypt"], deprecated="auto")' in code
        assert '"role": user.role,' in code
        assert 'raise PermissionError("Invalid email or password")' in code

    def test_auth_router_routes(self, users_orders_schema: SchemaDefinition) -> None:
        code = ScaffoldTemplates(users_orders_schema, GenerationConfig()).auth_router()
        assert is_valid_python(code)
        assert 'router = APIRouter(prefix="/auth", tags=["Auth"])' in code
        for route in ('"/register"', '"/login"', '"/profile"', '"/roles"'):
            assert route in code
        assert "@roles(Role.ADMIN)" in code
        assert "/google" not in code

    def test_google_routes(self, users_orders_schema: SchemaDefinition) -> None:
        scaffolds = ScaffoldTemplates(users_orders_schema, GenerationConfig(with_google_auth=True))
        router = scaffolds.auth_router()
        assert is_valid_python(router)
        assert '"/google/callback"' in router
        strategy = scaffolds.google_strategy()
        assert is_valid_python(strategy)
        assert "import httpx" in strategy

    def test_register_contract(self, mysql_users_sql: str) -> None:
        scaffolds = ScaffoldTemplates(SchemaParser().parse(mysql_users_sql), GenerationConfig())
        code = scaffolds.register_schema()
        assert is_valid_python(code)
        assert "password: str = Field(..., min_length=8)" in code
        assert "role:" not in code
        assert 'extra="allow"' in code

    def test_register_assigns_default_role(self, mysql_users_sql: str) -> None:
        scaffolds = ScaffoldTemplates(SchemaParser().parse(mysql_users_sql), GenerationConfig())
        code = scaffolds.auth_service()
        assert is_valid_python(code)
        assert 'data.pop("role", None)' in code
        assert 'data["role"] = "user"' in code

    def test_register_role_skips_admin(self) -> None:
        schema = SchemaParser().parse(
            "CREATE TABLE app_users (id INT PRIMARY KEY, email VARCHAR(255), "
            "password VARCHAR(255), user_role VARCHAR(20));"
        )
        schema = schema.model_copy(update={"user_roles": ["admin", "editor"]})
        code = ScaffoldTemplates(schema, GenerationConfig()).auth_service()
        assert 'data["user_role"] = "editor"' in code

    def test_login_contract_without_validation(self, users_orders_schema: SchemaDefinition) -> None:
        code = ScaffoldTemplates(
            users_orders_schema, GenerationConfig(full_validations=False, with_swagger=False)
        ).login_schema()
        assert is_valid_python(code)
        assert "EmailStr" not in code
        assert "from pydantic import BaseModel, ConfigDict" in code

    def test_ftp_helper(self, users_orders_schema: SchemaDefinition) -> None:
        code = ScaffoldTemplates(users_orders_schema, GenerationConfig(with_ftp=True)).ftp_util()
        assert is_valid_python(code)
        assert "class FtpClient" in code
        for method in ("upload", "download", "list_files", "delete"):
            assert f"def {method}(" in code


# ===========================================================================
# Warnings, failures and the report
# ===========================================================================


class TestReport:
    """Report contents for unusual schemas and failing steps."""

    def test_reserved_module_name_warns(self, fixed_timestamp: datetime) -> None:
        schema = SchemaParser().parse("CREATE TABLE auth (id INTEGER PRIMARY KEY, token TEXT);")
        report = _generate(schema, GenerationConfig(), fixed_timestamp)
        assert any("reserved module 'auth'" in w for w in report.warnings)
        assert report.project is not None
        router = report.project.get("app/modules/auth/router.py")
        assert router is not None
        assert '@router.post("/register", status_code=status.HTTP_201_CREATED)' in router.content

    def test_shared_module_name_warns(self, fixed_timestamp: datetime) -> None:
        schema = SchemaParser().parse(
            "CREATE TABLE OrderItems (id INTEGER);\nCREATE TABLE order_items (id INTEGER);"
        )
        report = _generate(schema, GenerationConfig(), fixed_timestamp)
        assert any("share module 'order_items'" in w for w in report.warnings)

    def test_failed_step_is_reported(
        self,
        users_orders_schema: SchemaDefinition,
        fixed_timestamp: datetime,
        monkeypatch: pytest.MonkeyPatch,
    ) -> None:
        def _boom(self: ScaffoldTemplates) -> str:
            raise RuntimeError("template exploded")

        monkeypatch.setattr(ScaffoldTemplates, "auth_service", _boom)
        report = ProjectGenerator().generate(users_orders_schema, "shop", fixed_timestamp)
        assert report.success is False
        assert report.project is None
        assert report.generation_errors == [
            "Auth Scaffold failed: RuntimeError: template exploded"
        ]
        failed = [m for m in report.step_metrics if not m.success]
        assert [m.step_name for m in failed] == ["Auth Scaffold"]
        assert failed[0].detail == "failed"
        # later steps still ran
        assert [m.step_name for m in report.step_metrics][-1] == "Configuration"

    def test_summary(
        self,
        users_orders_schema: SchemaDefinition,
        default_config: GenerationConfig,
        fixed_timestamp: datetime,
    ) -> None:
        summary = _generate(users_orders_schema, default_config, fixed_timestamp).summary()
        assert "schemagen — Generation Report" in summary
        assert "✅ SUCCESS" in summary
        assert "Files generated:  31" in summary
        for step in ("Bootstrap", "Table Modules", "Auth Scaffold", "Shared Utilities", "Configuration"):
            assert step in summary

    def test_step_metrics_count_files(
        self,
        users_orders_schema: SchemaDefinition,
        default_config: GenerationConfig,
        fixed_timestamp: datetime,
    ) -> None:
        report = _generate(users_orders_schema, default_config, fixed_timestamp)
        details = {m.step_name: m.detail for m in report.step_metrics}
        assert details == {
            "Bootstrap": "6 files",
            "Table Modules": "12 files",
            "Auth Scaffold": "5 files",
            "Shared Utilities": "6 files",
            "Configuration": "2 files",
        }

    def test_generator_is_reusable(self, users_orders_schema: SchemaDefinition) -> None:
        generator = ProjectGenerator(GenerationConfig(date_logs=True))
        assert generator.config.date_logs is True
        first = generator.generate(users_orders_schema, "a")
        second = generator.generate(users_orders_schema, "b")
        assert first.success and second.success
        assert first.total_files == second.total_files
