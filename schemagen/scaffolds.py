# File: schemagen/scaffolds.py
"""
schemagen - Auth & Shared Utility Scaffolds
============================================
Artifacts that exist once per project regardless of the schema's tables:

- the auth module (``app/modules/auth``): register / login service, router
  and the two request contracts;
- the shared helpers under ``app/common``: JWT strategy, access and role
  guards, the role decorator and constants, a date helper, and the optional
  FTP helper and Google OAuth 2.0 strategy.

The auth scaffold is bound to an identity table: the first table whose name
contains ``user``.  Without one, a generic ``Users`` entity is generated in
``app/modules/users`` so the scaffold still imports.
"""

from __future__ import annotations

import logging
import re
from dataclasses import dataclass
from typing import Dict, List, Optional

from schemagen.builders import assign_field_names
from schemagen.models import ColumnInfo, GenerationConfig, SchemaDefinition, TableInfo
from schemagen.utils import table_to_class_name, table_to_module_name, wrap_in_quotes

# ---------------------------------------------------------------------------
# Logger
# ---------------------------------------------------------------------------
logger: logging.Logger = logging.getLogger("schemagen.scaffolds")

_INDENT: str = "    "
_DOUBLE_INDENT: str = "        "
_TRIPLE_INDENT: str = "            "

_ROLE_MEMBER_RE: re.Pattern[str] = re.compile(r"[^A-Za-z0-9]+")


# ---------------------------------------------------------------------------
# Identity binding
# ---------------------------------------------------------------------------


@dataclass(frozen=True, slots=True)
class IdentityBinding:
    """Where the auth scaffold finds its users and which attributes it uses."""

    module: str
    class_name: str
    id_field: str
    email_field: str
    password_field: str
    role_field: Optional[str]
    generated: bool

    @property
    def import_path(self) -> str:
        return f"app.modules.{self.module}.entity"


def _first_field(
    table: TableInfo, fields: Dict[str, str], markers: tuple[str, ...]
) -> Optional[str]:
    for column in table.columns:
        lowered: str = column.name.lower()
        if any(marker in lowered for marker in markers):
            return fields[column.name]
    return None


def resolve_identity(schema: SchemaDefinition) -> IdentityBinding:
    """
    Bind the auth scaffold to the schema's identity table.

    Attribute names are taken from the table where they exist (the first
    column mentioning ``email``, ``password`` and ``role``); missing ones
    default to ``email`` and ``password``.
    """
    table: Optional[TableInfo] = schema.find_identity_table()
    if table is None:
        logger.info("No identity table found; generating a generic Users entity.")
        return IdentityBinding(
            module="users",
            class_name="Users",
            id_field="id",
            email_field="email",
            password_field="password",
            role_field="role",
            generated=True,
        )

    fields: Dict[str, str] = assign_field_names(table.columns)
    identifier: Optional[ColumnInfo] = table.identifier_column()
    email_field: Optional[str] = _first_field(table, fields, ("email",))
    password_field: Optional[str] = _first_field(table, fields, ("password", "passwd"))
    if email_field is None or password_field is None:
        logger.warning(
            "Identity table '%s' has no %s column; login will reject every attempt.",
            table.name,
            "email" if email_field is None else "password",
        )
    binding: IdentityBinding = IdentityBinding(
        module=table_to_module_name(table.name),
        class_name=table_to_class_name(table.name),
        id_field=fields[identifier.name] if identifier is not None else "id",
        email_field=email_field or "email",
        password_field=password_field or "password",
        role_field=_first_field(table, fields, ("role",)),
        generated=False,
    )
    logger.debug("Identity table: %s → %s", table.name, binding)
    return binding


def role_member_name(role: str) -> str:
    """Enum member name for a role value, e.g. ``super-admin`` → ``SUPER_ADMIN``."""
    name: str = _ROLE_MEMBER_RE.sub("_", role).strip("_").upper() or "ROLE"
    if name[0].isdigit():
        name = f"R_{name}"
    return name


# ---------------------------------------------------------------------------
# Scaffold templates
# ---------------------------------------------------------------------------


class ScaffoldTemplates:
    """
    Renders the auth module and the ``app/common`` helpers.

    Usage::

        scaffolds = ScaffoldTemplates(schema, config)
        source = scaffolds.auth_service()
    """

    def __init__(self, schema: SchemaDefinition, config: GenerationConfig) -> None:
        self._schema: SchemaDefinition = schema
        self._config: GenerationConfig = config
        self._identity: IdentityBinding = resolve_identity(schema)

    @property
    def identity(self) -> IdentityBinding:
        return self._identity

    @staticmethod
    def _header(title: str) -> List[str]:
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

    def _admin_member(self) -> str:
        roles: List[str] = list(self._schema.user_roles)
        return role_member_name("admin" if "admin" in roles else roles[0])

    def _default_role(self) -> str:
        """Role given to self-registered accounts: the first one that is not admin."""
        roles: List[str] = list(self._schema.user_roles)
        return next((role for role in roles if role != "admin"), roles[-1])

    # ==================================================================
    # Auth module
    # ==================================================================

    def auth_service(self) -> str:
        ident: IdentityBinding = self._identity
        cls: str = ident.class_name
        lines: List[str] = self._header("Registration and login against the identity table.")
        lines.extend([
            "from typing import Any, Dict",
            "",
            "from passlib.context import CryptContext",
            "from sqlalchemy import select",
            "from sqlalchemy.exc import SQLAlchemyError",
            "from sqlalchemy.orm import Session",
            "",
            "from app.common.strategies.jwt_strategy import create_access_token",
            "from app.modules.auth.login_schema import LoginSchema",
            "from app.modules.auth.register_schema import RegisterSchema",
            f"from {ident.import_path} import {cls}",
            "",
            'pwd_context = CryptContext(schemes=["bcrypt"], deprecated="auto")',
            "",
            "",
            "class AuthService:",
            f"{_INDENT}def __init__(self, db: Session) -> None:",
            f"{_DOUBLE_INDENT}self.db = db",
            "",
            f"{_INDENT}def register(self, payload: RegisterSchema) -> Dict[str, Any]:",
            f'{_DOUBLE_INDENT}"""Hash the password and store a new identity row."""',
            f"{_DOUBLE_INDENT}data = payload.model_dump(exclude_none=True)",
            f'{_DOUBLE_INDENT}hashed = pwd_context.hash(data.pop("password"))',
            f"{_DOUBLE_INDENT}data[{wrap_in_quotes(ident.password_field)}] = hashed",
        ])
        if ident.email_field != "email":
            lines.append(
                f'{_DOUBLE_INDENT}data[{wrap_in_quotes(ident.email_field)}] = data.pop("email")'
            )
        if ident.role_field is not None:
            # extra keys are accepted, so a client-sent role is replaced
            lines.append(f'{_DOUBLE_INDENT}data.pop("role", None)')
            lines.append(
                f"{_DOUBLE_INDENT}data[{wrap_in_quotes(ident.role_field)}] = "
                f"{wrap_in_quotes(self._default_role())}"
            )
        lines.extend([
            f"{_DOUBLE_INDENT}columns = set({cls}.__mapper__.column_attrs.keys())",
            f"{_DOUBLE_INDENT}record = {cls}(**{{k: v for k, v in data.items() if k in columns}})",
            f"{_DOUBLE_INDENT}self.db.add(record)",
            f"{_DOUBLE_INDENT}try:",
            f"{_TRIPLE_INDENT}self.db.commit()",
            f"{_DOUBLE_INDENT}except SQLAlchemyError:",
            f"{_TRIPLE_INDENT}self.db.rollback()",
            f"{_TRIPLE_INDENT}raise",
            f"{_DOUBLE_INDENT}self.db.refresh(record)",
            f"{_DOUBLE_INDENT}profile = record.to_dict()",
            f"{_DOUBLE_INDENT}profile.pop({wrap_in_quotes(ident.password_field)}, None)",
            f"{_DOUBLE_INDENT}return profile",
            "",
            f"{_INDENT}def login(self, payload: LoginSchema) -> Dict[str, str]:",
            f'{_DOUBLE_INDENT}"""Verify credentials and issue a bearer token."""',
            f"{_DOUBLE_INDENT}email_column = getattr({cls}, {wrap_in_quotes(ident.email_field)}, None)",
            f"{_DOUBLE_INDENT}if email_column is None:",
            f'{_TRIPLE_INDENT}raise PermissionError("Invalid email or password")',
            f"{_DOUBLE_INDENT}user = self.db.scalars(select({cls}).where(email_column == payload.email)).first()",
            f"{_DOUBLE_INDENT}hashed = getattr(user, {wrap_in_quotes(ident.password_field)}, None)",
            f"{_DOUBLE_INDENT}if user is None or not hashed or not pwd_context.verify(payload.password, hashed):",
            f'{_TRIPLE_INDENT}raise PermissionError("Invalid email or password")',
            f"{_DOUBLE_INDENT}claims: Dict[str, Any] = {{",
            f'{_TRIPLE_INDENT}"sub": str(user.{ident.id_field}),',
            f'{_TRIPLE_INDENT}"email": user.{ident.email_field},',
        ])
        if ident.role_field is not None:
            lines.append(f'{_TRIPLE_INDENT}"role": user.{ident.role_field},')
        lines.extend([
            f"{_DOUBLE_INDENT}}}",
            f'{_DOUBLE_INDENT}return {{"access_token": create_access_token(claims), '
            f'"token_type": "bearer"}}',
            "",
        ])
        return "\n".join(lines)

    def auth_router(self) -> str:
        admin: str = self._admin_member()
        google: bool = self._config.with_google_auth
        lines: List[str] = self._header("Authentication routes.")
        lines.append("from typing import Any, Dict, List")
        lines.append("")
        if google:
            lines.append("import httpx")
        lines.append("from fastapi import APIRouter, Depends, HTTPException, status")
        if google:
            lines.append("from fastapi.responses import RedirectResponse")
        lines.extend([
            "from sqlalchemy.exc import SQLAlchemyError",
            "from sqlalchemy.orm import Session",
            "",
            "from app.common.constants.roles import Role",
            "from app.common.decorators.roles import roles",
            "from app.common.guards.jwt_auth_guard import jwt_auth_guard",
            "from app.common.guards.roles_guard import roles_guard",
        ])
        if google:
            lines.append("from app.common.strategies.google_strategy import (")
            lines.append(f"{_INDENT}build_authorization_url,")
            lines.append(f"{_INDENT}exchange_code,")
            lines.append(f"{_INDENT}fetch_user_info,")
            lines.append(")")
            lines.append("from app.common.strategies.jwt_strategy import create_access_token")
        lines.extend([
            "from app.configs.database import get_db",
            "from app.modules.auth.login_schema import LoginSchema",
            "from app.modules.auth.register_schema import RegisterSchema",
            "from app.modules.auth.service import AuthService",
            "",
            'router = APIRouter(prefix="/auth", tags=["Auth"])',
            "",
            "",
            "def get_auth_service(db: Session = Depends(get_db)) -> AuthService:",
            f"{_INDENT}return AuthService(db)",
            "",
            "",
            '@router.post("/register", status_code=status.HTTP_201_CREATED)',
            "def register(",
            f"{_INDENT}payload: RegisterSchema,",
            f"{_INDENT}service: AuthService = Depends(get_auth_service),",
            ") -> Dict[str, Any]:",
            f"{_INDENT}try:",
            f"{_DOUBLE_INDENT}return service.register(payload)",
            f"{_INDENT}except SQLAlchemyError as exc:",
            f"{_DOUBLE_INDENT}raise HTTPException(",
            f"{_TRIPLE_INDENT}status_code=status.HTTP_400_BAD_REQUEST, detail=str(exc)",
            f"{_DOUBLE_INDENT}) from exc",
            "",
            "",
            '@router.post("/login")',
            "def login(",
            f"{_INDENT}payload: LoginSchema,",
            f"{_INDENT}service: AuthService = Depends(get_auth_service),",
            ") -> Dict[str, str]:",
            f"{_INDENT}try:",
            f"{_DOUBLE_INDENT}return service.login(payload)",
            f"{_INDENT}except PermissionError as exc:",
            f"{_DOUBLE_INDENT}raise HTTPException(",
            f"{_TRIPLE_INDENT}status_code=status.HTTP_401_UNAUTHORIZED, detail=str(exc)",
            f"{_DOUBLE_INDENT}) from exc",
            "",
            "",
            '@router.get("/profile")',
            "def profile(user: Dict[str, Any] = Depends(jwt_auth_guard)) -> Dict[str, Any]:",
            f"{_INDENT}return user",
            "",
            "",
            '@router.get("/roles")',
            f"@roles(Role.{admin})",
            "def list_roles(user: Dict[str, Any] = Depends(roles_guard)) -> List[str]:",
            f"{_INDENT}return [role.value for role in Role]",
            "",
        ])
        if google:
            lines.extend([
                "",
                '@router.get("/google")',
                "def google_login() -> RedirectResponse:",
                f"{_INDENT}return RedirectResponse(build_authorization_url())",
                "",
                "",
                '@router.get("/google/callback")',
                "def google_callback(code: str) -> Dict[str, str]:",
                f"{_INDENT}try:",
                f"{_DOUBLE_INDENT}tokens = exchange_code(code)",
                f'{_DOUBLE_INDENT}info = fetch_user_info(tokens["access_token"])',
                f"{_INDENT}except (httpx.HTTPError, KeyError) as exc:",
                f"{_DOUBLE_INDENT}raise HTTPException(",
                f"{_TRIPLE_INDENT}status_code=status.HTTP_401_UNAUTHORIZED,",
                f'{_TRIPLE_INDENT}detail="Google sign-in failed",',
                f"{_DOUBLE_INDENT}) from exc",
                f"{_INDENT}claims = {{",
                f'{_DOUBLE_INDENT}"sub": info.get("sub", ""),',
                f'{_DOUBLE_INDENT}"email": info.get("email", ""),',
                f'{_DOUBLE_INDENT}"provider": "google",',
                f"{_INDENT}}}",
                f'{_INDENT}return {{"access_token": create_access_token(claims), '
                f'"token_type": "bearer"}}',
                "",
            ])
        return "\n".join(lines)

    def auth_init(self) -> str:
        lines: List[str] = [
            '"""Authentication module: registration, login and protected routes."""',
            "",
            "from app.modules.auth.router import router",
            "from app.modules.auth.service import AuthService",
            "",
            '__all__ = ["AuthService", "router"]',
            "",
        ]
        return "\n".join(lines)

    def _contract(self, class_name: str, title: str, fields: List[tuple[str, str]]) -> str:
        """Shared rendering of the two auth contracts."""
        validation: bool = self._config.full_validations
        documentation: bool = self._config.with_swagger
        pydantic_names: List[str] = ["BaseModel", "ConfigDict"]
        body: str = "\n".join(line for line, _doc in fields)
        if validation and "EmailStr" in body:
            pydantic_names.append("EmailStr")
        if "Field(" in body:
            pydantic_names.append("Field")

        config_args: List[str] = []
        if class_name == "RegisterSchema":
            config_args.append('extra="allow"')
        if documentation:
            config_args.append("use_attribute_docstrings=True")

        lines: List[str] = self._header(title)
        if "Optional[" in body:
            lines.append("from typing import Optional")
            lines.append("")
        lines.append(f"from pydantic import {', '.join(sorted(pydantic_names))}")
        lines.append("")
        lines.append("")
        lines.append(f"class {class_name}(BaseModel):")
        lines.append(f"{_INDENT}model_config = ConfigDict({', '.join(config_args)})")
        lines.append("")
        for line, doc in fields:
            lines.append(f"{_INDENT}{line}")
            if documentation:
                lines.append(f'{_INDENT}"""{doc}"""')
        lines.append("")
        return "\n".join(lines)

    def login_schema(self) -> str:
        validation: bool = self._config.full_validations
        fields: List[tuple[str, str]] = [
            ("email: EmailStr" if validation else "email: str", "Account e-mail address."),
            (
                "password: str = Field(..., min_length=1)" if validation else "password: str",
                "Plain-text password.",
            ),
        ]
        return self._contract("LoginSchema", "Login request contract.", fields)

    def register_schema(self) -> str:
        validation: bool = self._config.full_validations
        fields: List[tuple[str, str]] = [
            ("email: EmailStr" if validation else "email: str", "Account e-mail address."),
            (
                "password: str = Field(..., min_length=8)" if validation else "password: str",
                "Plain-text password; stored as a bcrypt hash.",
            ),
        ]
        return self._contract(
            "RegisterSchema",
            "Registration request contract; extra keys map onto identity columns.",
            fields,
        )

    def fallback_identity_entity(self) -> str:
        """Generic ``Users`` entity used when the schema has no identity table."""
        lines: List[str] = self._header("Generic identity entity used by the auth module.")
        lines.extend([
            "from typing import Optional",
            "",
            "from sqlalchemy import Integer, String",
            "from sqlalchemy.orm import Mapped, mapped_column",
            "",
            "from app.configs.database import Base",
            "",
            "",
            "class Users(Base):",
            f'{_INDENT}__tablename__ = "users"',
            "",
            f"{_INDENT}id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)",
            f"{_INDENT}email: Mapped[str] = mapped_column(String(255), nullable=False, unique=True)",
            f"{_INDENT}password: Mapped[str] = mapped_column(String(255), nullable=False)",
            f"{_INDENT}role: Mapped[Optional[str]] = mapped_column(",
            f'{_DOUBLE_INDENT}String(50), nullable=True, server_default="user"',
            f"{_INDENT})",
            "",
        ])
        return "\n".join(lines)

    # ==================================================================
    # Shared utilities
    # ==================================================================

    def jwt_strategy(self) -> str:
        lines: List[str] = self._header("Bearer token creation and verification.")
        lines.extend([
            "from datetime import datetime, timedelta, timezone",
            "from typing import Any, Dict, Optional",
            "",
            "from jose import jwt",
            "",
            "from app.configs.settings import settings",
            "",
            "",
            "def create_access_token(",
            f"{_INDENT}claims: Dict[str, Any], expires_minutes: Optional[int] = None",
            ") -> str:",
            f'{_INDENT}"""Sign *claims* with an ``exp`` claim added."""',
            f"{_INDENT}minutes = (",
            f"{_DOUBLE_INDENT}expires_minutes if expires_minutes is not None "
            "else settings.jwt_expires_minutes",
            f"{_INDENT})",
            f"{_INDENT}payload = dict(claims)",
            f'{_INDENT}payload["exp"] = datetime.now(timezone.utc) + timedelta(minutes=minutes)',
            f"{_INDENT}return jwt.encode(payload, settings.jwt_secret, algorithm=settings.jwt_algorithm)",
            "",
            "",
            "def decode_access_token(token: str) -> Dict[str, Any]:",
            f'{_INDENT}"""Verify *token*; raises ``jose.JWTError`` when invalid or expired."""',
            f"{_INDENT}return jwt.decode(token, settings.jwt_secret, algorithms=[settings.jwt_algorithm])",
            "",
        ])
        return "\n".join(lines)

    def jwt_auth_guard(self) -> str:
        lines: List[str] = self._header("Access guard: requires a valid bearer token.")
        lines.extend([
            "from typing import Any, Dict, Optional",
            "",
            "from fastapi import Depends, HTTPException, status",
            "from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer",
            "from jose import JWTError",
            "",
            "from app.common.strategies.jwt_strategy import decode_access_token",
            "",
            "bearer_scheme = HTTPBearer(auto_error=False)",
            "",
            "",
            "def jwt_auth_guard(",
            f"{_INDENT}credentials: Optional[HTTPAuthorizationCredentials] = Depends(bearer_scheme),",
            ") -> Dict[str, Any]:",
            f'{_INDENT}"""Return the token claims or answer 401."""',
            f"{_INDENT}if credentials is None:",
            f"{_DOUBLE_INDENT}raise HTTPException(",
            f"{_TRIPLE_INDENT}status_code=status.HTTP_401_UNAUTHORIZED,",
            f'{_TRIPLE_INDENT}detail="Missing bearer token",',
            f'{_TRIPLE_INDENT}headers={{"WWW-Authenticate": "Bearer"}},',
            f"{_DOUBLE_INDENT})",
            f"{_INDENT}try:",
            f"{_DOUBLE_INDENT}return decode_access_token(credentials.credentials)",
            f"{_INDENT}except JWTError as exc:",
            f"{_DOUBLE_INDENT}raise HTTPException(",
            f"{_TRIPLE_INDENT}status_code=status.HTTP_401_UNAUTHORIZED,",
            f'{_TRIPLE_INDENT}detail="Invalid or expired token",',
            f'{_TRIPLE_INDENT}headers={{"WWW-Authenticate": "Bearer"}},',
            f"{_DOUBLE_INDENT}) from exc",
            "",
        ])
        return "\n".join(lines)

    def roles_guard(self) -> str:
        lines: List[str] = self._header(
            "Role guard: compares the token's role with the endpoint's required roles."
        )
        lines.extend([
            "from typing import Any, Dict",
            "",
            "from fastapi import Depends, HTTPException, Request, status",
            "",
            "from app.common.guards.jwt_auth_guard import jwt_auth_guard",
            "",
            "",
            "def roles_guard(",
            f"{_INDENT}request: Request,",
            f"{_INDENT}user: Dict[str, Any] = Depends(jwt_auth_guard),",
            ") -> Dict[str, Any]:",
            f'{_INDENT}"""Answer 403 unless the endpoint allows the caller\'s role."""',
            f'{_INDENT}endpoint = request.scope.get("endpoint")',
            f'{_INDENT}required = getattr(endpoint, "__required_roles__", ())',
            f'{_INDENT}if required and user.get("role") not in required:',
            f"{_DOUBLE_INDENT}raise HTTPException(",
            f"{_TRIPLE_INDENT}status_code=status.HTTP_403_FORBIDDEN,",
            f'{_TRIPLE_INDENT}detail="Insufficient role",',
            f"{_DOUBLE_INDENT})",
            f"{_INDENT}return user",
            "",
        ])
        return "\n".join(lines)

    def roles_decorator(self) -> str:
        lines: List[str] = self._header("Role annotation for route handlers.")
        lines.extend([
            "from typing import Callable, TypeVar",
            "",
            'F = TypeVar("F", bound=Callable[..., object])',
            "",
            "",
            "def roles(*names: str) -> Callable[[F], F]:",
            f'{_INDENT}"""Record the roles allowed to call the decorated handler."""',
            "",
            f"{_INDENT}def decorator(func: F) -> F:",
            f"{_DOUBLE_INDENT}func.__required_roles__ = tuple(names)  # type: ignore[attr-defined]",
            f"{_DOUBLE_INDENT}return func",
            "",
            f"{_INDENT}return decorator",
            "",
        ])
        return "\n".join(lines)

    def roles_constants(self) -> str:
        lines: List[str] = self._header("Roles known to the application.")
        lines.extend([
            "from enum import Enum",
            "",
            "",
            "class Role(str, Enum):",
        ])
        seen: Dict[str, str] = {}
        for role in self._schema.user_roles:
            member: str = role_member_name(role)
            if member in seen:
                continue
            seen[member] = role
            lines.append(f"{_INDENT}{member} = {wrap_in_quotes(role)}")
        lines.append("")
        return "\n".join(lines)

    def date_util(self) -> str:
        lines: List[str] = self._header("Date normalisation helpers; every value is returned in UTC.")
        lines.extend([
            "from datetime import date, datetime, time, timezone",
            "from typing import Optional, Union",
            "",
            "DateLike = Union[str, date, datetime]",
            "",
            "",
            "def now_utc() -> datetime:",
            f"{_INDENT}return datetime.now(timezone.utc)",
            "",
            "",
            "def to_utc(value: datetime) -> datetime:",
            f'{_INDENT}"""Attach UTC to naive values and convert aware ones."""',
            f"{_INDENT}if value.tzinfo is None:",
            f"{_DOUBLE_INDENT}return value.replace(tzinfo=timezone.utc)",
            f"{_INDENT}return value.astimezone(timezone.utc)",
            "",
            "",
            "def parse_datetime(value: DateLike) -> datetime:",
            f'{_INDENT}"""Accept ISO-8601 strings, dates and datetimes."""',
            f"{_INDENT}if isinstance(value, datetime):",
            f"{_DOUBLE_INDENT}return to_utc(value)",
            f"{_INDENT}if isinstance(value, date):",
            f"{_DOUBLE_INDENT}return datetime.combine(value, time.min, tzinfo=timezone.utc)",
            f'{_INDENT}return to_utc(datetime.fromisoformat(value.replace("Z", "+00:00")))',
            "",
            "",
            "def to_iso(value: Optional[DateLike]) -> Optional[str]:",
            f"{_INDENT}if value is None:",
            f"{_DOUBLE_INDENT}return None",
            f"{_INDENT}return parse_datetime(value).isoformat()",
            "",
            "",
            "def start_of_day(value: DateLike) -> datetime:",
            f"{_INDENT}parsed = parse_datetime(value)",
            f"{_INDENT}return parsed.replace(hour=0, minute=0, second=0, microsecond=0)",
            "",
        ])
        return "\n".join(lines)

    def ftp_util(self) -> str:
        lines: List[str] = self._header("FTP file-transfer helper configured from settings.")
        lines.extend([
            "import ftplib",
            "from pathlib import Path",
            "from types import TracebackType",
            "from typing import List, Optional, Type",
            "",
            "from app.configs.settings import settings",
            "",
            "",
            "class FtpClient:",
            f'{_INDENT}"""Context-managed FTP session.',
            "",
            f"{_INDENT}Usage::",
            "",
            f"{_DOUBLE_INDENT}with FtpClient() as ftp:",
            f'{_DOUBLE_INDENT}{_INDENT}ftp.upload(Path("report.csv"), "reports/report.csv")',
            f'{_INDENT}"""',
            "",
            f"{_INDENT}def __init__(",
            f"{_DOUBLE_INDENT}self,",
            f"{_DOUBLE_INDENT}host: Optional[str] = None,",
            f"{_DOUBLE_INDENT}port: Optional[int] = None,",
            f"{_DOUBLE_INDENT}user: Optional[str] = None,",
            f"{_DOUBLE_INDENT}password: Optional[str] = None,",
            f"{_DOUBLE_INDENT}timeout: float = 30.0,",
            f"{_INDENT}) -> None:",
            f"{_DOUBLE_INDENT}self.host = host or settings.ftp_host",
            f"{_DOUBLE_INDENT}self.port = port or settings.ftp_port",
            f"{_DOUBLE_INDENT}self.user = user or settings.ftp_user",
            f"{_DOUBLE_INDENT}self.password = password if password is not None else settings.ftp_password",
            f"{_DOUBLE_INDENT}self.timeout = timeout",
            f"{_DOUBLE_INDENT}self._ftp: Optional[ftplib.FTP] = None",
            "",
            f'{_INDENT}def __enter__(self) -> "FtpClient":',
            f"{_DOUBLE_INDENT}ftp = ftplib.FTP(timeout=self.timeout)",
            f"{_DOUBLE_INDENT}ftp.connect(self.host, self.port)",
            f"{_DOUBLE_INDENT}ftp.login(self.user, self.password)",
            f"{_DOUBLE_INDENT}self._ftp = ftp",
            f"{_DOUBLE_INDENT}return self",
            "",
            f"{_INDENT}def __exit__(",
            f"{_DOUBLE_INDENT}self,",
            f"{_DOUBLE_INDENT}exc_type: Optional[Type[BaseException]],",
            f"{_DOUBLE_INDENT}exc: Optional[BaseException],",
            f"{_DOUBLE_INDENT}tb: Optional[TracebackType],",
            f"{_INDENT}) -> None:",
            f"{_DOUBLE_INDENT}if self._ftp is not None:",
            f"{_TRIPLE_INDENT}self._ftp.quit()",
            f"{_TRIPLE_INDENT}self._ftp = None",
            "",
            f"{_INDENT}@property",
            f"{_INDENT}def connection(self) -> ftplib.FTP:",
            f"{_DOUBLE_INDENT}if self._ftp is None:",
            f'{_TRIPLE_INDENT}raise RuntimeError("FtpClient used outside a with block")',
            f"{_DOUBLE_INDENT}return self._ftp",
            "",
            f"{_INDENT}def upload(self, local_path: Path, remote_path: str) -> None:",
            f'{_DOUBLE_INDENT}with local_path.open("rb") as handle:',
            f'{_TRIPLE_INDENT}self.connection.storbinary(f"STOR {{remote_path}}", handle)',
            "",
            f"{_INDENT}def download(self, remote_path: str, local_path: Path) -> Path:",
            f'{_DOUBLE_INDENT}with local_path.open("wb") as handle:',
            f'{_TRIPLE_INDENT}self.connection.retrbinary(f"RETR {{remote_path}}", handle.write)',
            f"{_DOUBLE_INDENT}return local_path",
            "",
            f'{_INDENT}def list_files(self, directory: str = ".") -> List[str]:',
            f"{_DOUBLE_INDENT}return self.connection.nlst(directory)",
            "",
            f"{_INDENT}def delete(self, remote_path: str) -> None:",
            f"{_DOUBLE_INDENT}self.connection.delete(remote_path)",
            "",
        ])
        return "\n".join(lines)

    def google_strategy(self) -> str:
        lines: List[str] = self._header("Google OAuth 2.0 authorization-code flow.")
        lines.extend([
            "from typing import Any, Dict",
            "from urllib.parse import urlencode",
            "",
            "import httpx",
            "",
            "from app.configs.settings import settings",
            "",
            'AUTHORIZATION_URL = "https://accounts.google.com/o/oauth2/v2/auth"',
            'TOKEN_URL = "https://oauth2.googleapis.com/token"',
            'USERINFO_URL = "https://openidconnect.googleapis.com/v1/userinfo"',
            "",
            "",
            'def build_authorization_url(state: str = "") -> str:',
            f"{_INDENT}params = {{",
            f'{_DOUBLE_INDENT}"client_id": settings.google_client_id,',
            f'{_DOUBLE_INDENT}"redirect_uri": settings.google_redirect_uri,',
            f'{_DOUBLE_INDENT}"response_type": "code",',
            f'{_DOUBLE_INDENT}"scope": "openid email profile",',
            f'{_DOUBLE_INDENT}"access_type": "offline",',
            f"{_INDENT}}}",
            f"{_INDENT}if state:",
            f'{_DOUBLE_INDENT}params["state"] = state',
            f'{_INDENT}return f"{{AUTHORIZATION_URL}}?{{urlencode(params)}}"',
            "",
            "",
            "def exchange_code(code: str) -> Dict[str, Any]:",
            f'{_INDENT}"""Trade an authorization code for tokens."""',
            f"{_INDENT}response = httpx.post(",
            f"{_DOUBLE_INDENT}TOKEN_URL,",
            f"{_DOUBLE_INDENT}data={{",
            f'{_TRIPLE_INDENT}"code": code,',
            f'{_TRIPLE_INDENT}"client_id": settings.google_client_id,',
            f'{_TRIPLE_INDENT}"client_secret": settings.google_client_secret,',
            f'{_TRIPLE_INDENT}"redirect_uri": settings.google_redirect_uri,',
            f'{_TRIPLE_INDENT}"grant_type": "authorization_code",',
            f"{_DOUBLE_INDENT}}},",
            f"{_DOUBLE_INDENT}timeout=10.0,",
            f"{_INDENT})",
            f"{_INDENT}response.raise_for_status()",
            f"{_INDENT}return response.json()",
            "",
            "",
            "def fetch_user_info(access_token: str) -> Dict[str, Any]:",
            f"{_INDENT}response = httpx.get(",
            f"{_DOUBLE_INDENT}USERINFO_URL,",
            f'{_DOUBLE_INDENT}headers={{"Authorization": f"Bearer {{access_token}}"}},',
            f"{_DOUBLE_INDENT}timeout=10.0,",
            f"{_INDENT})",
            f"{_INDENT}response.raise_for_status()",
            f"{_INDENT}return response.json()",
            "",
        ])
        return "\n".join(lines)


# ---------------------------------------------------------------------------
# Module-level exports
# ---------------------------------------------------------------------------

__all__: List[str] = [
    "IdentityBinding",
    "resolve_identity",
    "role_member_name",
    "ScaffoldTemplates",
]

logger.debug("schemagen.scaffolds loaded.")
