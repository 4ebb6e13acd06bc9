# File: schemagen/utils.py
"""
schemagen - Utility Functions & Helpers
========================================
String transformation, checksum and code-formatting helpers shared by the
parser, the builders and the exporters.

- Every naming function is wrapped in ``@lru_cache(maxsize=None)``; the same
  table and column names are converted many times per generation run.
- File output goes through a temp file and a rename so a crash never leaves
  a half-written archive behind.
"""

from __future__ import annotations

import functools
import hashlib
import logging
import os
import re
import tempfile
import time
from pathlib import Path
from typing import Dict, FrozenSet, List, Optional, Set, Tuple

# ---------------------------------------------------------------------------
# Logger
# ---------------------------------------------------------------------------
logger: logging.Logger = logging.getLogger("schemagen.utils")

# ---------------------------------------------------------------------------
# Pre-compiled regex patterns
# ---------------------------------------------------------------------------

_CAMEL_TO_SNAKE_RE1: re.Pattern[str] = re.compile(r"([A-Z]+)([A-Z][a-z])")
_CAMEL_TO_SNAKE_RE2: re.Pattern[str] = re.compile(r"([a-z0-9])([A-Z])")
_NON_ALPHANUM_RE: re.Pattern[str] = re.compile(r"[^a-zA-Z0-9]")
_MULTI_UNDERSCORE_RE: re.Pattern[str] = re.compile(r"_{2,}")
_LEADING_TRAILING_UNDERSCORE_RE: re.Pattern[str] = re.compile(r"^_+|_+$")
_SPLIT_WORDS_RE: re.Pattern[str] = re.compile(
    r"[A-Z]?[a-z]+|[A-Z]+(?=[A-Z][a-z]|\d|\b)|[A-Z]|\d+"
)
_SLUG_RE: re.Pattern[str] = re.compile(r"[^a-zA-Z0-9]")

# Python keywords that cannot be used as identifiers
_PYTHON_KEYWORDS: FrozenSet[str] = frozenset({
    "False", "None", "True", "and", "as", "assert", "async", "await",
    "break", "class", "continue", "def", "del", "elif", "else",
    "except", "finally", "for", "from", "global", "if", "import",
    "in", "is", "lambda", "nonlocal", "not", "or", "pass", "raise",
    "return", "try", "while", "with", "yield", "match", "case",
})

# Attribute names already taken on a generated declarative entity
_RESERVED_ATTRIBUTES: FrozenSet[str] = frozenset({
    "metadata", "registry", "to_dict", "model_config",
})


# ---------------------------------------------------------------------------
# Cached string transformation functions
# ---------------------------------------------------------------------------


@functools.lru_cache(maxsize=None)
def to_snake_case(name: str) -> str:
    """
    Convert any string to snake_case.

    Examples:
        >>> to_snake_case("UserProfile")
        'user_profile'
        >>> to_snake_case("createdAt")
        'created_at'
        >>> to_snake_case("order-items")
        'order_items'
    """
    if not name:
        return ""
    s: str = _CAMEL_TO_SNAKE_RE1.sub(r"\1_\2", name)
    s = _CAMEL_TO_SNAKE_RE2.sub(r"\1_\2", s)
    s = _NON_ALPHANUM_RE.sub("_", s)
    s = _MULTI_UNDERSCORE_RE.sub("_", s)
    s = _LEADING_TRAILING_UNDERSCORE_RE.sub("", s)
    return s.lower()


@functools.lru_cache(maxsize=None)
def _extract_words(name: str) -> Tuple[str, ...]:
    """Split any casing style into a tuple of lowercase words."""
    cleaned: str = _NON_ALPHANUM_RE.sub(" ", name)
    words: List[str] = _SPLIT_WORDS_RE.findall(cleaned)
    return tuple(w.lower() for w in words if w)


@functools.lru_cache(maxsize=None)
def to_pascal_case(name: str) -> str:
    """
    Convert any string to PascalCase.

    Examples:
        >>> to_pascal_case("order_items")
        'OrderItems'
        >>> to_pascal_case("users")
        'Users'
    """
    if not name:
        return ""
    return "".join(word.capitalize() for word in _extract_words(name))


@functools.lru_cache(maxsize=None)
def to_kebab_case(name: str) -> str:
    """Convert any string to kebab-case (used in URL paths)."""
    if not name:
        return ""
    return "-".join(_extract_words(name))


@functools.lru_cache(maxsize=None)
def to_title_human(name: str) -> str:
    """
    Convert an identifier to a human-readable title.

    Examples:
        >>> to_title_human("order_items")
        'Order Items'
    """
    if not name:
        return ""
    return " ".join(w.capitalize() for w in _extract_words(name))


@functools.lru_cache(maxsize=None)
def safe_identifier(name: str) -> str:
    """
    Turn a column or table name into a usable Python attribute name.

    - Converts to snake_case
    - Prefixes with ``f_`` if the result starts with a digit
    - Appends ``_`` for keywords and names taken on generated entities
    """
    result: str = to_snake_case(name)
    if not result:
        return "_unnamed"
    if result[0].isdigit():
        result = f"f_{result}"
    if result in _PYTHON_KEYWORDS or result in _RESERVED_ATTRIBUTES:
        result = f"{result}_"
    return result


@functools.lru_cache(maxsize=None)
def table_to_class_name(table_name: str) -> str:
    """Convert a table name to a PascalCase entity class name."""
    result: str = to_pascal_case(table_name)
    if not result:
        return "Unnamed"
    if result[0].isdigit():
        result = f"T{result}"
    return result


@functools.lru_cache(maxsize=None)
def table_to_module_name(table_name: str) -> str:
    """Convert a table name to the package name of its generated module."""
    return safe_identifier(table_name)


@functools.lru_cache(maxsize=None)
def table_to_route_prefix(table_name: str) -> str:
    """Convert a table name to the URL prefix of its generated router."""
    return f"/{to_kebab_case(table_name) or 'unnamed'}"


@functools.lru_cache(maxsize=None)
def table_to_route_tag(table_name: str) -> str:
    """Convert a table name to the OpenAPI tag of its generated router."""
    return to_title_human(table_name) or table_name


@functools.lru_cache(maxsize=None)
def column_to_field_name(column_name: str) -> str:
    """Convert a column name to a safe Python field name."""
    return safe_identifier(column_name)


def slugify(value: str) -> str:
    """
    Replace every non-alphanumeric character with ``-`` and lowercase.

    Runs of separators are kept as-is, so ``"My Schema"`` becomes
    ``"my-schema"`` and ``"a  b"`` becomes ``"a--b"``.
    """
    return _SLUG_RE.sub("-", value).lower()


# ---------------------------------------------------------------------------
# Code formatting helpers
# ---------------------------------------------------------------------------


def wrap_in_quotes(value: str) -> str:
    """Wrap a string value in double quotes, escaping internals."""
    escaped: str = value.replace("\\", "\\\\").replace('"', '\\"')
    return f'"{escaped}"'


def build_import_block(imports: Dict[str, Set[str]]) -> str:
    """
    Build a sorted, de-duplicated import block from a mapping of
    module → set of names.

    Example:
        >>> build_import_block({"typing": {"List", "Optional"}, "math": set()})
        'import math\\nfrom typing import List, Optional'
    """
    plain: List[str] = []
    from_lines: List[str] = []
    for module in sorted(imports.keys()):
        names: List[str] = sorted(imports[module])
        if names:
            from_lines.append(f"from {module} import {', '.join(names)}")
        else:
            plain.append(f"import {module}")
    return "\n".join(plain + from_lines)


def merge_import_dicts(*dicts: Dict[str, Set[str]]) -> Dict[str, Set[str]]:
    """Merge multiple import dictionaries into one, unifying sets."""
    result: Dict[str, Set[str]] = {}
    for d in dicts:
        for module, names in d.items():
            result.setdefault(module, set()).update(names)
    return result


# ---------------------------------------------------------------------------
# File I/O helpers
# ---------------------------------------------------------------------------


def write_bytes_atomic(path: Path, data: bytes) -> int:
    """
    Write *data* to *path* through a temporary sibling file and a rename.

    Returns the number of bytes written.
    """
    path.parent.mkdir(parents=True, exist_ok=True)
    fd, tmp_path = tempfile.mkstemp(
        dir=str(path.parent), prefix=f".{path.name}.", suffix=".tmp"
    )
    try:
        with os.fdopen(fd, "wb") as handle:
            handle.write(data)
        os.replace(tmp_path, path)
    except OSError:
        if os.path.exists(tmp_path):
            os.unlink(tmp_path)
        raise

    logger.debug("Wrote %d bytes to %s", len(data), path)
    return len(data)


# ---------------------------------------------------------------------------
# Checksum & metrics
# ---------------------------------------------------------------------------


def sha256_hex(content: str | bytes) -> str:
    """Return the SHA-256 hex digest of a string or byte string."""
    if isinstance(content, str):
        content = content.encode("utf-8")
    return hashlib.sha256(content).hexdigest()


def count_lines(content: str) -> int:
    """Count the number of lines in a string."""
    if not content:
        return 0
    return content.count("\n") + (1 if not content.endswith("\n") else 0)


# ---------------------------------------------------------------------------
# Timer context manager
# ---------------------------------------------------------------------------


class Timer:
    """
    Context-manager timer for profiling generation steps.

    Usage:
        with Timer("build tables") as t:
            ...
        print(t.elapsed)
    """

    __slots__ = ("label", "start_time", "end_time", "elapsed")

    def __init__(self, label: str = "operation") -> None:
        self.label: str = label
        self.start_time: float = 0.0
        self.end_time: float = 0.0
        self.elapsed: float = 0.0

    def __enter__(self) -> "Timer":
        self.start_time = time.perf_counter()
        return self

    def __exit__(
        self,
        exc_type: Optional[type],
        exc_val: Optional[BaseException],
        exc_tb: Optional[object],
    ) -> None:
        self.end_time = time.perf_counter()
        self.elapsed = self.end_time - self.start_time
        logger.info("Timer [%s]: %.4f seconds", self.label, self.elapsed)

    def __repr__(self) -> str:
        return f"<Timer {self.label}: {self.elapsed:.4f}s>"


# ---------------------------------------------------------------------------
# Module-level exports
# ---------------------------------------------------------------------------

__all__: List[str] = [
    "to_snake_case",
    "to_pascal_case",
    "to_kebab_case",
    "to_title_human",
    "safe_identifier",
    "table_to_class_name",
    "table_to_module_name",
    "table_to_route_prefix",
    "table_to_route_tag",
    "column_to_field_name",
    "slugify",
    "wrap_in_quotes",
    "build_import_block",
    "merge_import_dicts",
    "write_bytes_atomic",
    "sha256_hex",
    "count_lines",
    "Timer",
]

logger.debug("schemagen.utils loaded (%d public symbols).", len(__all__))
