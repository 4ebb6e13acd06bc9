# File: schemagen/dialects.py
"""
schemagen - Dialect Detection & Type Mapping
=============================================
Two small pure functions used by the parser:

- ``detect_dialect`` sniffs keyword signatures in the raw DDL text.
- ``map_type`` turns a dialect-native type token into a canonical type.

Detection is a fixed-priority keyword check, not a grammar: the first rule
that matches decides and later rules are never consulted.
"""

from __future__ import annotations

import logging
import re
from typing import Dict, List, Tuple

from schemagen.models import CanonicalType, SqlDialect

# ---------------------------------------------------------------------------
# Logger
# ---------------------------------------------------------------------------
logger: logging.Logger = logging.getLogger("schemagen.dialects")

# ---------------------------------------------------------------------------
# Detection rules (priority order)
# ---------------------------------------------------------------------------

_DETECTION_RULES: List[Tuple[SqlDialect, Tuple[str, ...]]] = [
    (SqlDialect.MSSQL, ("NVARCHAR", "DATETIME2")),
    (SqlDialect.MYSQL, ("AUTO_INCREMENT", "TINYINT")),
    (SqlDialect.ORACLE, ("VARCHAR2", "CLOB")),
]

# ---------------------------------------------------------------------------
# Per-dialect type tables
# ---------------------------------------------------------------------------

_S = CanonicalType.STRING
_N = CanonicalType.NUMBER
_B = CanonicalType.BOOLEAN
_D = CanonicalType.DATE
_O = CanonicalType.OBJECT

TYPE_MAPPINGS: Dict[SqlDialect, Dict[str, CanonicalType]] = {
    SqlDialect.POSTGRESQL: {
        "VARCHAR": _S, "TEXT": _S, "UUID": _S,
        "INTEGER": _N, "BIGINT": _N, "SERIAL": _N,
        "BOOLEAN": _B,
        "TIMESTAMP": _D, "DATE": _D,
        "JSONB": _O, "JSON": _O,
    },
    SqlDialect.MYSQL: {
        "VARCHAR": _S, "TEXT": _S,
        "INT": _N, "BIGINT": _N,
        "TINYINT": _B,
        "DATETIME": _D, "DATE": _D,
        "JSON": _O,
    },
    SqlDialect.MSSQL: {
        "NVARCHAR": _S, "VARCHAR": _S, "TEXT": _S,
        "INT": _N, "BIGINT": _N,
        "BIT": _B,
        "DATETIME": _D, "DATE": _D,
    },
    SqlDialect.ORACLE: {
        "VARCHAR2": _S, "CLOB": _S,
        "NUMBER": _N,
        "DATE": _D, "TIMESTAMP": _D,
    },
}

_SIZE_SUFFIX_RE: re.Pattern[str] = re.compile(r"\s*\([^)]*\)")
_ARRAY_SUFFIX_RE: re.Pattern[str] = re.compile(r"(?:\[\])+$")


# ---------------------------------------------------------------------------
# Public API
# ---------------------------------------------------------------------------


def detect_dialect(sql: str) -> SqlDialect:
    """
    Classify *sql* into one of four dialects.

    Rules, first match wins (case-insensitive substring checks):

    1. ``NVARCHAR`` or ``DATETIME2`` → mssql
    2. ``AUTO_INCREMENT`` or ``TINYINT`` → mysql
    3. ``VARCHAR2`` or ``CLOB`` → oracle
    4. anything else → postgresql
    """
    upper: str = sql.upper()
    for dialect, keywords in _DETECTION_RULES:
        if any(keyword in upper for keyword in keywords):
            logger.debug("Dialect detected: %s", dialect.value)
            return dialect
    logger.debug("Dialect detected: %s (fallback)", SqlDialect.POSTGRESQL.value)
    return SqlDialect.POSTGRESQL


def normalize_type(raw_type: str) -> str:
    """
    Upper-case a type token and drop its size suffix.

    Examples:
        >>> normalize_type("varchar(255)")
        'VARCHAR'
        >>> normalize_type("DECIMAL(10, 2)")
        'DECIMAL'
    """
    stripped: str = _SIZE_SUFFIX_RE.sub("", raw_type.strip())
    stripped = _ARRAY_SUFFIX_RE.sub("", stripped)
    return stripped.upper()


def map_type(dialect: SqlDialect | str, raw_type: str) -> CanonicalType:
    """
    Map a dialect-native type to its canonical type.

    Unknown dialects and unknown type names both resolve to ``string``.
    """
    try:
        key: SqlDialect = SqlDialect(dialect)
    except ValueError:
        logger.debug("Unknown dialect %r; mapping %r to string", dialect, raw_type)
        return CanonicalType.STRING
    return TYPE_MAPPINGS[key].get(normalize_type(raw_type), CanonicalType.STRING)


# ---------------------------------------------------------------------------
# Module-level exports
# ---------------------------------------------------------------------------

__all__: List[str] = [
    "TYPE_MAPPINGS",
    "detect_dialect",
    "normalize_type",
    "map_type",
]

logger.debug("schemagen.dialects loaded.")
