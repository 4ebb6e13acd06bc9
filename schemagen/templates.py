# File: schemagen/templates.py
"""
schemagen - Project Templates
==============================
Project-level artifacts that depend on the whole schema rather than one
table:

    1. ``pyproject.toml``         package manifest and dependency list
    2. ``ruff.toml``/``.gitignore`` build and lint configuration
    3. ``.env``                   environment template
    4. ``app/main.py``            FastAPI application wiring every router
    5. ``README.md``              generated documentation
    6. ``app/configs/database.py`` engine, session factory and declarative base
    7. ``app/configs/settings.py`` pydantic-settings application config

Every method returns the complete file content as a string; the generator
decides where it goes.  Only ``readme()`` depends on the generation
timestamp.
"""

from __future__ import annotations

import logging
from datetime import datetime
from typing import List

from schemagen.models import (
    DataStoreKind,
    DataStoreProfile,
    GenerationConfig,
    SchemaDefinition,
)
from schemagen.utils import (
    slugify,
    table_to_class_name,
    table_to_module_name,
    table_to_route_prefix,
    to_title_human,
    wrap_in_quotes,
)

# ---------------------------------------------------------------------------
# Logger
# ---------------------------------------------------------------------------
logger: logging.Logger = logging.getLogger("schemagen.templates")

_INDENT: str = "    "
_DOUBLE_INDENT: str = "        "

# Pinned runtime dependencies of every generated project
_BASE_DEPENDENCIES: List[str] = [
    "fastapi>=0.110.0",
    "uvicorn[standard]>=0.27.0",
    "sqlalchemy>=2.0.25",
    "pydantic-settings>=2.1.0",
    "python-jose[cryptography]>=3.3.0",
    "passlib[bcrypt]>=1.7.4",
    "bcrypt>=4.0.1,<4.1",
]


class ProjectTemplates:
    """
    Renders the project-level files for one schema and configuration.

    Stateless apart from its constructor arguments; safe to reuse.
    """

    def __init__(
        self,
        schema: SchemaDefinition,
        config: GenerationConfig,
        project_name: str,
    ) -> None:
        self._schema: SchemaDefinition = schema
        self._config: GenerationConfig = config
        self._project_name: str = project_name
        self._profile: DataStoreProfile = config.data_store_profile
        if config.data_store == DataStoreKind.MONGODB.value:
            logger.warning(
                "Data store 'mongodb' is reserved; generating a relational scaffold."
            )

    # ------------------------------------------------------------------
    # Naming
    # ------------------------------------------------------------------

    @property
    def package_name(self) -> str:
        """Distribution name for the generated ``pyproject.toml``."""
        return slugify(self._project_name).strip("-") or "generated-app"

    @property
    def title(self) -> str:
        return to_title_human(self._project_name) or self.package_name

    @property
    def database_name(self) -> str:
        return self.package_name.replace("-", "_")

    def database_url(self) -> str:
        """Default connection URL for the selected data store."""
        profile: DataStoreProfile = self._profile
        if profile.kind == DataStoreKind.MONGODB.value:
            return f"mongodb://localhost:{profile.port}/{self.database_name}"
        url: str = (
            f"{profile.url_scheme}://app:app@localhost:{profile.port}/{self.database_name}"
        )
        if profile.kind == DataStoreKind.MSSQL.value:
            url += "?driver=ODBC+Driver+18+for+SQL+Server"
        return url

    def dependencies(self) -> List[str]:
        """Runtime dependency list; varies with the configuration."""
        deps: List[str] = list(_BASE_DEPENDENCIES)
        deps.insert(
            3,
            "pydantic[email]>=2.7.0" if self._config.full_validations else "pydantic>=2.7.0",
        )
        deps.append(self._profile.driver_package)
        if self._config.with_google_auth:
            deps.append("httpx>=0.26.0")
        return deps

    # ------------------------------------------------------------------
    # 1. Package manifest
    # ------------------------------------------------------------------

    def pyproject_toml(self) -> str:
        lines: List[str] = [
            "[build-system]",
            'requires = ["setuptools>=68.0", "wheel"]',
            'build-backend = "setuptools.build_meta"',
            "",
            "[project]",
            f"name = {wrap_in_quotes(self.package_name)}",
            'version = "0.1.0"',
            f"description = {wrap_in_quotes(f'{self.title} API generated by schemagen')}",
            'requires-python = ">=3.10"',
            "dependencies = [",
        ]
        lines.extend(f"{_INDENT}{wrap_in_quotes(dep)}," for dep in self.dependencies())
        lines.append("]")
        lines.append("")
        lines.append("[project.optional-dependencies]")
        lines.append("dev = [")
        lines.append(f'{_INDENT}"pytest>=7.4.0",')
        lines.append(f'{_INDENT}"httpx>=0.26.0",')
        lines.append(f'{_INDENT}"ruff>=0.3.0",')
        lines.append("]")
        lines.append("")
        lines.append("[tool.setuptools.packages.find]")
        lines.append('include = ["app*"]')
        lines.append("")
        return "\n".join(lines)

    # ------------------------------------------------------------------
    # 2. Build / lint configuration
    # ------------------------------------------------------------------

    def ruff_toml(self) -> str:
        lines: List[str] = [
            "line-length = 99",
            'target-version = "py310"',
            "",
            "[lint]",
            'select = ["E", "F", "W", "I", "B", "UP"]',
            "",
            "[lint.per-file-ignores]",
            '"app/modules/*/__init__.py" = ["F401"]',
            "",
        ]
        return "\n".join(lines)

    def gitignore(self) -> str:
        lines: List[str] = [
            "# Python",
            "__pycache__/",
            "*.py[cod]",
            "*.egg-info/",
            ".eggs/",
            "build/",
            "dist/",
            "",
            "# Virtual environments",
            ".venv/",
            "venv/",
            "",
            "# Tooling",
            ".pytest_cache/",
            ".ruff_cache/",
            ".mypy_cache/",
            "",
            "# Local configuration",
            ".env",
            "",
        ]
        return "\n".join(lines)

    # ------------------------------------------------------------------
    # 3. Environment template
    # ------------------------------------------------------------------

    def env_file(self) -> str:
        lines: List[str] = [
            f"APP_NAME={self.title}",
            f"DATABASE_URL={self.database_url()}",
            "JWT_SECRET=change-me",
            "JWT_ALGORITHM=HS256",
            "JWT_EXPIRES_MINUTES=60",
        ]
        if self._config.with_ftp:
            lines.extend([
                "",
                "FTP_HOST=localhost",
                "FTP_PORT=21",
                "FTP_USER=anonymous",
                "FTP_PASSWORD=",
            ])
        if self._config.with_google_auth:
            lines.extend([
                "",
                "GOOGLE_CLIENT_ID=",
                "GOOGLE_CLIENT_SECRET=",
                "GOOGLE_REDIRECT_URI=http://localhost:8000/api/auth/google/callback",
            ])
        lines.append("")
        return "\n".join(lines)

    # ------------------------------------------------------------------
    # 4. Application entry point
    # ------------------------------------------------------------------

    def main_module(self) -> str:
        """``app/main.py``: lifespan, router wiring and a health check."""
        docs_url: str = '"/docs"' if self._config.with_swagger else "None"
        redoc_url: str = '"/redoc"' if self._config.with_swagger else "None"

        lines: List[str] = [
            '"""',
            f"{self.title} application entry point.",
            "",
            "Generated by schemagen.",
            '"""',
            "",
            "from __future__ import annotations",
            "",
            "from contextlib import asynccontextmanager",
            "from typing import AsyncIterator, Dict",
            "",
            "from fastapi import FastAPI",
            "",
            "from app.configs.database import Base, engine",
            "from app.configs.settings import settings",
            "from app.modules.auth import router as auth_router",
        ]
        modules: List[str] = [table_to_module_name(t.name) for t in self._schema.tables]
        lines.extend(
            f"from app.modules.{module} import router as {module}_router" for module in modules
        )
        lines.extend([
            "",
            "",
            "@asynccontextmanager",
            "async def lifespan(app: FastAPI) -> AsyncIterator[None]:",
            f"{_INDENT}Base.metadata.create_all(bind=engine)",
            f"{_INDENT}yield",
            f"{_INDENT}engine.dispose()",
            "",
            "",
            "app = FastAPI(",
            f"{_INDENT}title=settings.app_name,",
            f'{_INDENT}version="0.1.0",',
            f"{_INDENT}lifespan=lifespan,",
            f"{_INDENT}docs_url={docs_url},",
            f"{_INDENT}redoc_url={redoc_url},",
            ")",
            "",
            'app.include_router(auth_router, prefix="/api")',
        ])
        lines.extend(
            f'app.include_router({module}_router, prefix="/api")' for module in modules
        )
        lines.extend([
            "",
            "",
            '@app.get("/health", tags=["Health"])',
            "def health() -> Dict[str, str]:",
            f'{_INDENT}return {{"status": "ok"}}',
            "",
        ])
        return "\n".join(lines)

    # ------------------------------------------------------------------
    # 5. Documentation
    # ------------------------------------------------------------------

    def readme(self, generated_at: datetime) -> str:
        """README with setup steps and one endpoint table per module."""
        config: GenerationConfig = self._config
        lines: List[str] = [
            f"# {self.title}",
            "",
            f"FastAPI backend generated by schemagen on {generated_at.isoformat()}.",
            "",
            "## Setup",
            "",
            "```bash",
            "python -m venv .venv && source .venv/bin/activate",
            'pip install -e ".[dev]"',
            "uvicorn app.main:app --reload",
            "```",
            "",
            f"Edit `.env` to point `DATABASE_URL` at your {self._profile.label} instance.",
            "Tables are created on startup.",
            "",
            "## Features",
            "",
            f"- Data store: {self._profile.label} (port {self._profile.port})",
            f"- Request validation: {'on' if config.full_validations else 'off'}",
            f"- OpenAPI docs: {'/docs' if config.with_swagger else 'off'}",
            f"- Audit columns: {'on' if config.date_logs else 'off'}",
            f"- FTP helper: {'on' if config.with_ftp else 'off'}",
            f"- Google sign-in: {'on' if config.with_google_auth else 'off'}",
            f"- Roles: {', '.join(self._schema.user_roles)}",
            "",
            "## Authentication",
            "",
            "| Method | Path | Description |",
            "|---|---|---|",
            "| POST | `/api/auth/register` | Create an account |",
            "| POST | `/api/auth/login` | Exchange credentials for a bearer token |",
            "| GET | `/api/auth/profile` | Claims of the current token |",
            "| GET | `/api/auth/roles` | Role list (admin only) |",
        ]
        if config.with_google_auth:
            lines.append("| GET | `/api/auth/google` | Start Google sign-in |")
            lines.append("| GET | `/api/auth/google/callback` | Google sign-in callback |")

        for table in self._schema.tables:
            prefix: str = f"/api{table_to_route_prefix(table.name)}"
            cls: str = table_to_class_name(table.name)
            lines.extend([
                "",
                f"## {cls}",
                "",
                f"Table `{table.name}`, module `app/modules/{table_to_module_name(table.name)}`.",
                "",
                "| Method | Path | Description |",
                "|---|---|---|",
                f"| POST | `{prefix}/` | Create a record |",
                f"| GET | `{prefix}/?page=1&limit=10` | List records |",
                f"| GET | `{prefix}/{{record_id}}` | Get one record |",
                f"| PATCH | `{prefix}/{{record_id}}` | Update a record |",
                f"| DELETE | `{prefix}/{{record_id}}` | Delete a record |",
            ])
        lines.append("")
        return "\n".join(lines)

    # ------------------------------------------------------------------
    # 6. Data-store connection
    # ------------------------------------------------------------------

    def database_config(self) -> str:
        lines: List[str] = [
            '"""',
            f"{self._profile.label} engine, session factory and declarative base.",
            "",
            "Generated by schemagen.",
            '"""',
            "",
            "from __future__ import annotations",
            "",
            "from typing import Any, Dict, Iterator",
            "",
            "from sqlalchemy import create_engine",
            "from sqlalchemy.orm import DeclarativeBase, Session, sessionmaker",
            "",
            "from app.configs.settings import settings",
            "",
            "engine = create_engine(settings.database_url, pool_pre_ping=True)",
            "",
            "SessionLocal = sessionmaker(",
            f"{_INDENT}bind=engine,",
            f"{_INDENT}autoflush=False,",
            f"{_INDENT}expire_on_commit=False,",
            ")",
            "",
            "",
            "class Base(DeclarativeBase):",
            f'{_INDENT}"""Declarative base shared by every entity."""',
            "",
            f"{_INDENT}def to_dict(self) -> Dict[str, Any]:",
            f"{_DOUBLE_INDENT}return {{",
            f"{_DOUBLE_INDENT}{_INDENT}attr.key: getattr(self, attr.key)",
            f"{_DOUBLE_INDENT}{_INDENT}for attr in self.__mapper__.column_attrs",
            f"{_DOUBLE_INDENT}}}",
            "",
            "",
            "def get_db() -> Iterator[Session]:",
            f'{_INDENT}"""FastAPI dependency yielding one session per request."""',
            f"{_INDENT}db = SessionLocal()",
            f"{_INDENT}try:",
            f"{_DOUBLE_INDENT}yield db",
            f"{_INDENT}finally:",
            f"{_DOUBLE_INDENT}db.close()",
            "",
        ]
        return "\n".join(lines)

    # ------------------------------------------------------------------
    # 7. Application settings
    # ------------------------------------------------------------------

    def settings_config(self) -> str:
        lines: List[str] = [
            '"""',
            "Application settings, read from the environment and ``.env``.",
            "",
            "Generated by schemagen.",
            '"""',
            "",
            "from __future__ import annotations",
            "",
            "from pydantic_settings import BaseSettings, SettingsConfigDict",
            "",
            "",
            "class Settings(BaseSettings):",
            f'{_INDENT}model_config = SettingsConfigDict(env_file=".env", extra="ignore")',
            "",
            f"{_INDENT}app_name: str = {wrap_in_quotes(self.title)}",
            f"{_INDENT}database_url: str = {wrap_in_quotes(self.database_url())}",
            f'{_INDENT}jwt_secret: str = "change-me"',
            f'{_INDENT}jwt_algorithm: str = "HS256"',
            f"{_INDENT}jwt_expires_minutes: int = 60",
        ]
        if self._config.with_ftp:
            lines.extend([
                "",
                f"{_INDENT}# FTP",
                f'{_INDENT}ftp_host: str = "localhost"',
                f"{_INDENT}ftp_port: int = 21",
                f'{_INDENT}ftp_user: str = "anonymous"',
                f'{_INDENT}ftp_password: str = ""',
            ])
        if self._config.with_google_auth:
            lines.extend([
                "",
                f"{_INDENT}# Google OAuth 2.0",
                f'{_INDENT}google_client_id: str = ""',
                f'{_INDENT}google_client_secret: str = ""',
                f"{_INDENT}google_redirect_uri: str = "
                '"http://localhost:8000/api/auth/google/callback"',
            ])
        lines.extend([
            "",
            "",
            "settings = Settings()",
            "",
        ])
        return "\n".join(lines)


# ---------------------------------------------------------------------------
# Module-level exports
# ---------------------------------------------------------------------------

__all__: List[str] = [
    "ProjectTemplates",
]

logger.debug("schemagen.templates loaded.")
