# File: schemagen/exporters.py
"""
schemagen - Archive Writer
===========================

Packs an ordered artifact set into a single zip held in memory.

Responsible for:
    1. Rejecting paths that would escape the archive root.
    2. Resolving duplicate paths: the last artifact wins, but the entry keeps
       the position of the first occurrence.
    3. Writing every entry with a fixed timestamp and permission bits so
       identical artifact sets produce identical bytes.
    4. Producing a manifest with size, line count and SHA-256 per entry.
"""

from __future__ import annotations

import io
import json
import logging
import zipfile
from dataclasses import dataclass, field
from pathlib import PurePosixPath
from typing import Any, Dict, Iterable, List, Tuple

import schemagen
from schemagen.errors import GenerationError
from schemagen.models import Artifact
from schemagen.utils import Timer, count_lines, sha256_hex

# ---------------------------------------------------------------------------
# Logger
# ---------------------------------------------------------------------------
logger: logging.Logger = logging.getLogger("schemagen.exporters")

# Earliest timestamp the zip format can represent
FIXED_DATE_TIME: Tuple[int, int, int, int, int, int] = (1980, 1, 1, 0, 0, 0)
FILE_MODE: int = 0o644


# ---------------------------------------------------------------------------
# Data classes for archive results
# ---------------------------------------------------------------------------


@dataclass(frozen=True, slots=True)
class ArchiveEntry:
    """Immutable record of a single archived file."""

    path: str
    size_bytes: int
    line_count: int
    sha256: str


@dataclass(frozen=False, slots=True)
class ArchiveResult:
    """
    Result returned by ``ArchiveWriter.write()``.

    ``data`` holds the zip bytes; the rest is the manifest.
    """

    data: bytes = b""
    project_name: str = ""
    generator_version: str = ""
    entries: List[ArchiveEntry] = field(default_factory=list)
    duplicates: List[str] = field(default_factory=list)
    elapsed_seconds: float = 0.0

    @property
    def total_files(self) -> int:
        return len(self.entries)

    @property
    def total_bytes(self) -> int:
        return sum(e.size_bytes for e in self.entries)

    @property
    def total_lines(self) -> int:
        return sum(e.line_count for e in self.entries)

    @property
    def archive_size(self) -> int:
        return len(self.data)

    def to_dict(self) -> Dict[str, Any]:
        """Convert the manifest to a JSON-serialisable dictionary."""
        return {
            "project_name": self.project_name,
            "generator_version": self.generator_version,
            "archive_bytes": self.archive_size,
            "archive_sha256": sha256_hex(self.data),
            "total_files": self.total_files,
            "total_bytes": self.total_bytes,
            "total_lines": self.total_lines,
            "duplicates": list(self.duplicates),
            "files": [
                {
                    "path": e.path,
                    "size_bytes": e.size_bytes,
                    "line_count": e.line_count,
                    "sha256": e.sha256,
                }
                for e in self.entries
            ],
        }

    def to_json(self, indent_size: int = 2) -> str:
        """Serialise the manifest to pretty-printed JSON."""
        return json.dumps(self.to_dict(), indent=indent_size, ensure_ascii=False)


# ---------------------------------------------------------------------------
# Path safety
# ---------------------------------------------------------------------------


def normalize_archive_path(path: str) -> str:
    """
    Return *path* as a clean relative POSIX path.

    Raises:
        GenerationError: If the path is absolute or climbs above the root.
    """
    candidate: str = path.replace("\\", "/")
    pure: PurePosixPath = PurePosixPath(candidate)
    if not candidate or pure.is_absolute() or (len(candidate) > 1 and candidate[1] == ":"):
        raise GenerationError(f"Refusing to archive absolute path: {path!r}")
    if ".." in pure.parts:
        raise GenerationError(f"Refusing to archive path outside the project: {path!r}")
    parts: List[str] = [part for part in pure.parts if part not in ("", ".")]
    if not parts:
        raise GenerationError(f"Refusing to archive empty path: {path!r}")
    return "/".join(parts)


# ---------------------------------------------------------------------------
# ArchiveWriter
# ---------------------------------------------------------------------------


class ArchiveWriter:
    """
    Zips an ordered artifact set.

    Usage::

        writer = ArchiveWriter(project_name="shop")
        result = writer.write(project.artifacts)
        Path("shop.zip").write_bytes(result.data)
    """

    def __init__(
        self,
        project_name: str = "",
        compression: int = zipfile.ZIP_DEFLATED,
    ) -> None:
        self._project_name: str = project_name
        self._compression: int = compression

    def write(self, artifacts: Iterable[Artifact]) -> ArchiveResult:
        """
        Build the archive.

        Raises:
            GenerationError: On an unsafe artifact path.
        """
        with Timer("archive") as t:
            ordered, duplicates = self._resolve(artifacts)

            buffer: io.BytesIO = io.BytesIO()
            entries: List[ArchiveEntry] = []
            with zipfile.ZipFile(buffer, mode="w", compression=self._compression) as archive:
                for path, content in ordered.items():
                    data: bytes = content.encode("utf-8")
                    info: zipfile.ZipInfo = zipfile.ZipInfo(path, date_time=FIXED_DATE_TIME)
                    info.compress_type = self._compression
                    info.external_attr = FILE_MODE << 16
                    archive.writestr(info, data)
                    entries.append(ArchiveEntry(
                        path=path,
                        size_bytes=len(data),
                        line_count=count_lines(content),
                        sha256=sha256_hex(data),
                    ))

        result: ArchiveResult = ArchiveResult(
            data=buffer.getvalue(),
            project_name=self._project_name,
            generator_version=schemagen.__version__,
            entries=entries,
            duplicates=duplicates,
            elapsed_seconds=t.elapsed,
        )
        logger.info(
            "Archived %d files (%s bytes compressed) in %.3fs.",
            result.total_files,
            f"{result.archive_size:,}",
            t.elapsed,
        )
        return result

    @staticmethod
    def _resolve(artifacts: Iterable[Artifact]) -> Tuple[Dict[str, str], List[str]]:
        """Map paths to their final content; dicts keep first-insertion order."""
        ordered: Dict[str, str] = {}
        duplicates: List[str] = []
        for artifact in artifacts:
            path: str = normalize_archive_path(artifact.path)
            if path in ordered:
                logger.warning("Duplicate artifact path %s; keeping the last one.", path)
                if path not in duplicates:
                    duplicates.append(path)
            ordered[path] = artifact.content
        return ordered, duplicates


def write_archive(artifacts: Iterable[Artifact], project_name: str = "") -> ArchiveResult:
    """Convenience wrapper around ``ArchiveWriter(project_name).write(...)``."""
    return ArchiveWriter(project_name=project_name).write(artifacts)


# ---------------------------------------------------------------------------
# Module-level exports
# ---------------------------------------------------------------------------

__all__: List[str] = [
    "ArchiveEntry",
    "ArchiveResult",
    "ArchiveWriter",
    "normalize_archive_path",
    "write_archive",
]

logger.debug("schemagen.exporters loaded.")
