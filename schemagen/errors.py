# File: schemagen/errors.py
"""
schemagen - Error Taxonomy
===========================

Every failure surfaced by the boundary operations is one of three kinds:

    InputError       no document, empty document, bad file name, too large
    ParseError       a well-formed document that yields zero tables
    GenerationError  anything that goes wrong while building or bundling

All three carry a user-facing ``message`` plus an optional ``detail`` string
and the HTTP status the server answers with.  None of them is retryable.

Usage::

    from schemagen.errors import InputError

    raise InputError("SQL file is empty")
"""

from __future__ import annotations

import logging
from typing import Any, Dict, List

logger: logging.Logger = logging.getLogger("schemagen.errors")


class SchemaGenError(Exception):
    """Base exception for all schemagen failures.

    Attributes:
        message: Short user-facing description.
        detail: Underlying cause, when there is one.
        status_code: HTTP status the server maps this error to.
    """

    status_code: int = 500

    def __init__(self, message: str, detail: str = "") -> None:
        super().__init__(message)
        self.message: str = message
        self.detail: str = detail

    def to_dict(self) -> Dict[str, Any]:
        """JSON body returned by the HTTP boundary."""
        body: Dict[str, Any] = {"error": self.message}
        if self.detail:
            body["details"] = self.detail
        return body


class InputError(SchemaGenError):
    """The uploaded document is missing, empty, too large or not a .sql file."""

    status_code = 400


class ParseError(SchemaGenError):
    """The document was read but no CREATE TABLE statement was recognised."""

    status_code = 400


class GenerationError(SchemaGenError):
    """Artifact building or archive bundling failed.

    The public message is always the generic one; the cause travels in
    ``detail``.
    """

    status_code = 500

    def __init__(self, detail: str, message: str = "Failed to generate project") -> None:
        super().__init__(message, detail=detail)


__all__: List[str] = [
    "SchemaGenError",
    "InputError",
    "ParseError",
    "GenerationError",
]

logger.debug("schemagen.errors loaded.")
