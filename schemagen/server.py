# File: schemagen/server.py
"""
schemagen - HTTP Server
========================

FastAPI application exposing the boundary operations::

    POST /api/parse      multipart ``file``             → JSON summary
    POST /api/generate   multipart ``file`` + ``config`` → application/zip
    GET  /health                                         → {"status": "ok"}

Typed errors become JSON bodies ``{"error": message[, "details": detail]}``
with the error's status code.  Endpoints are sync, so FastAPI runs them in
its threadpool.
"""

from __future__ import annotations

import logging
from typing import Any, Dict, List, Optional

from fastapi import FastAPI, File, Form, Request, UploadFile
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse, Response

import schemagen
from schemagen.config import parse_config_json
from schemagen.errors import GenerationError, InputError, SchemaGenError
from schemagen.exporters import ArchiveResult
from schemagen.models import GenerationConfig, ParseSummary
from schemagen.service import (
    MAX_DOCUMENT_BYTES,
    NO_FILE_MESSAGE,
    archive_filename,
    ensure_sql_filename,
    generate_archive,
    parse_document,
    project_name_from_filename,
)

# ---------------------------------------------------------------------------
# Logger
# ---------------------------------------------------------------------------
logger: logging.Logger = logging.getLogger("schemagen.server")

PARSE_FAILED_MESSAGE: str = "Failed to parse SQL file"


def _read_upload(upload: Optional[UploadFile], max_bytes: int) -> bytes:
    """Read at most ``max_bytes + 1`` bytes so oversize uploads are detectable."""
    if upload is None:
        raise InputError(NO_FILE_MESSAGE)
    return upload.file.read(max_bytes + 1)


def create_app(max_upload_bytes: int = MAX_DOCUMENT_BYTES) -> FastAPI:
    """
    Build the FastAPI application.

    Args:
        max_upload_bytes: Upper bound on uploaded document size.
    """
    app: FastAPI = FastAPI(
        title="schemagen",
        description="SQL DDL → FastAPI project generator",
        version=schemagen.__version__,
    )
    app.add_middleware(
        CORSMiddleware,
        allow_origins=["*"],
        allow_methods=["*"],
        allow_headers=["*"],
        expose_headers=["Content-Disposition"],
    )

    @app.exception_handler(SchemaGenError)
    def _schemagen_error_handler(request: Request, exc: SchemaGenError) -> JSONResponse:
        if exc.status_code >= 500:
            logger.error("%s %s failed: %s (%s)", request.method, request.url.path, exc.message, exc.detail)
        else:
            logger.info("%s %s rejected: %s", request.method, request.url.path, exc.message)
        return JSONResponse(status_code=exc.status_code, content=exc.to_dict())

    @app.get("/health")
    def health() -> Dict[str, str]:
        return {"status": "ok"}

    @app.post("/api/parse")
    def parse(file: Optional[UploadFile] = File(None)) -> Dict[str, Any]:
        data: bytes = _read_upload(file, max_upload_bytes)
        try:
            summary: ParseSummary = parse_document(data, max_bytes=max_upload_bytes)
        except SchemaGenError:
            raise
        except Exception as exc:
            logger.error("Unexpected parse failure", exc_info=True)
            raise SchemaGenError(PARSE_FAILED_MESSAGE) from exc
        return {"success": True, "schema": summary.to_dict()}

    @app.post("/api/generate")
    def generate(
        file: Optional[UploadFile] = File(None),
        config: Optional[str] = Form(None),
    ) -> Response:
        data: bytes = _read_upload(file, max_upload_bytes)
        filename: str = ensure_sql_filename(file.filename if file is not None else None)
        try:
            generation_config: GenerationConfig = parse_config_json(config)
        except ValueError as exc:
            raise InputError("Invalid generation config", detail=str(exc)) from exc

        project_name: str = project_name_from_filename(filename)
        try:
            result: ArchiveResult = generate_archive(
                data,
                generation_config,
                project_name,
                max_bytes=max_upload_bytes,
            )
        except SchemaGenError:
            raise
        except Exception as exc:
            logger.error("Unexpected generation failure", exc_info=True)
            raise GenerationError(str(exc)) from exc

        return Response(
            content=result.data,
            media_type="application/zip",
            headers={
                "Content-Disposition": (
                    f'attachment; filename="{archive_filename(project_name)}"'
                ),
            },
        )

    logger.debug("FastAPI app created (max upload %d bytes).", max_upload_bytes)
    return app


# ---------------------------------------------------------------------------
# Module-level exports
# ---------------------------------------------------------------------------

__all__: List[str] = [
    "PARSE_FAILED_MESSAGE",
    "create_app",
]

logger.debug("schemagen.server loaded.")
