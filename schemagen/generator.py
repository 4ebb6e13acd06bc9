# File: schemagen/generator.py
"""
schemagen - Generation Pipeline (Orchestrator)
===============================================

Connects the parsed schema to the artifact builders and templates:

    SchemaDefinition + GenerationConfig → ordered Artifact set

The ``ProjectGenerator`` runs five timed steps, each producing artifacts in
a fixed order:

    1. Bootstrap      pyproject.toml, ruff.toml, .gitignore, .env,
                      app/main.py, README.md
    2. Tables         six files per table under ``app/modules/<module>/``
    3. Auth           ``app/modules/auth/`` (plus a generic identity entity
                      when the schema has no user table)
    4. Utilities      ``app/common/`` strategies, guards, decorators,
                      constants and utils
    5. Configs        ``app/configs/database.py`` and ``settings.py``

Error handling strategy:
    - Any exception inside a step is recorded in the ``GenerationReport``
      and logged with its traceback.
    - A report with errors carries no project; callers never see a
      partial artifact set.

Identical inputs (including ``generated_at``) produce identical artifacts.
"""

from __future__ import annotations

import logging
import time
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Callable, List, Optional

from schemagen.builders import build_table_artifacts
from schemagen.models import (
    Artifact,
    GeneratedProject,
    GenerationConfig,
    SchemaDefinition,
    TableInfo,
)
from schemagen.scaffolds import ScaffoldTemplates
from schemagen.templates import ProjectTemplates
from schemagen.utils import Timer, table_to_module_name

# ---------------------------------------------------------------------------
# Logger
# ---------------------------------------------------------------------------
logger: logging.Logger = logging.getLogger("schemagen.generator")

_RESERVED_MODULES: frozenset[str] = frozenset({"auth"})


# ---------------------------------------------------------------------------
# Generation report
# ---------------------------------------------------------------------------


@dataclass(frozen=False, slots=True)
class GenerationStepMetric:
    """Timing and outcome for a single pipeline step."""

    step_name: str = ""
    success: bool = True
    elapsed_seconds: float = 0.0
    detail: str = ""


@dataclass(frozen=False, slots=True)
class GenerationReport:
    """
    Report produced by ``ProjectGenerator.generate()``.

    ``project`` is only set when every step succeeded.
    """

    success: bool = False
    project_name: str = ""

    # Metrics
    total_files: int = 0
    total_bytes: int = 0
    total_lines: int = 0
    total_tables_processed: int = 0
    total_elapsed_seconds: float = 0.0

    # Sub-reports
    step_metrics: List[GenerationStepMetric] = field(default_factory=list)
    generation_errors: List[str] = field(default_factory=list)
    warnings: List[str] = field(default_factory=list)

    project: Optional[GeneratedProject] = None

    def summary(self) -> str:
        """Return a human-readable summary string."""
        lines: List[str] = []
        status: str = "✅ SUCCESS" if self.success else "❌ FAILED"
        lines.append(f"{'='*60}")
        lines.append("  schemagen — Generation Report")
        lines.append(f"{'='*60}")
        lines.append(f"  Status:           {status}")
        lines.append(f"  Project:          {self.project_name}")
        lines.append(f"  Tables processed: {self.total_tables_processed}")
        lines.append(f"  Files generated:  {self.total_files}")
        lines.append(f"  Total lines:      {self.total_lines:,}")
        lines.append(f"  Total bytes:      {self.total_bytes:,}")
        lines.append(f"  Total time:       {self.total_elapsed_seconds:.3f}s")
        lines.append(f"{'─'*60}")

        if self.step_metrics:
            lines.append("  Pipeline Steps:")
            for step in self.step_metrics:
                icon: str = "✓" if step.success else "✗"
                lines.append(
                    f"    {icon} {step.step_name:<28s} "
                    f"{step.elapsed_seconds:>7.3f}s  "
                    f"{step.detail}"
                )

        if self.warnings:
            lines.append(f"{'─'*60}")
            lines.append(f"  Warnings ({len(self.warnings)}):")
            for warn in self.warnings:
                lines.append(f"    ⚠ {warn}")

        if self.generation_errors:
            lines.append(f"{'─'*60}")
            lines.append(f"  Generation Errors ({len(self.generation_errors)}):")
            for err in self.generation_errors:
                lines.append(f"    ✗ {err}")

        lines.append(f"{'='*60}")
        return "\n".join(lines)


# ---------------------------------------------------------------------------
# Generator
# ---------------------------------------------------------------------------


class ProjectGenerator:
    """
    Pipeline orchestrator turning a schema into a FastAPI project.

    Usage::

        generator = ProjectGenerator(config)
        report = generator.generate(schema, "shop")
        if report.success:
            for artifact in report.project.artifacts:
                ...
        print(report.summary())

    The generator holds no state between calls and can be reused.
    """

    def __init__(self, config: Optional[GenerationConfig] = None) -> None:
        self._config: GenerationConfig = config or GenerationConfig()
        logger.debug(
            "ProjectGenerator initialised: data_store=%s, validations=%s, "
            "swagger=%s, date_logs=%s.",
            self._config.data_store,
            self._config.full_validations,
            self._config.with_swagger,
            self._config.date_logs,
        )

    @property
    def config(self) -> GenerationConfig:
        return self._config

    # -----------------------------------------------------------------
    # Public API
    # -----------------------------------------------------------------

    def generate(
        self,
        schema: SchemaDefinition,
        project_name: str,
        generated_at: Optional[datetime] = None,
    ) -> GenerationReport:
        """
        Run every step and collect the artifacts in emission order.

        Args:
            schema: Parsed schema.
            project_name: Name used for the package manifest and README.
            generated_at: Timestamp written to the README; defaults to now.

        Returns:
            GenerationReport; ``report.project`` is None on failure.
        """
        report: GenerationReport = GenerationReport(project_name=project_name)
        stamp: datetime = generated_at or datetime.now(timezone.utc)
        pipeline_start: float = time.perf_counter()
        artifacts: List[Artifact] = []

        self._check_module_names(schema, report)

        project_templates: ProjectTemplates = ProjectTemplates(
            schema, self._config, project_name
        )
        steps: List[tuple[str, Callable[[], List[Artifact]]]] = [
            ("Bootstrap", lambda: self._step_bootstrap(project_templates, stamp)),
            ("Table Modules", lambda: self._step_tables(schema, report)),
            ("Auth Scaffold", lambda: self._step_auth(schema)),
            ("Shared Utilities", lambda: self._step_utilities(schema)),
            ("Configuration", lambda: self._step_configs(project_templates)),
        ]
        for step_name, step in steps:
            artifacts.extend(self._run_step(step_name, step, report))

        total_elapsed: float = time.perf_counter() - pipeline_start
        return self._finalise_report(report, artifacts, project_name, stamp, total_elapsed)

    # -----------------------------------------------------------------
    # Internal: step runner
    # -----------------------------------------------------------------

    def _run_step(
        self,
        step_name: str,
        step: Callable[[], List[Artifact]],
        report: GenerationReport,
    ) -> List[Artifact]:
        """Time one step and record its outcome; failures yield no artifacts."""
        produced: List[Artifact] = []
        success: bool = True
        with Timer(step_name) as t:
            try:
                produced = step()
            except Exception as exc:
                success = False
                error_msg: str = f"{step_name} failed: {type(exc).__name__}: {exc}"
                report.generation_errors.append(error_msg)
                logger.error(error_msg, exc_info=True)

        detail: str = f"{len(produced)} files" if success else "failed"
        report.step_metrics.append(GenerationStepMetric(
            step_name=step_name,
            success=success,
            elapsed_seconds=t.elapsed,
            detail=detail,
        ))
        return produced

    def _check_module_names(self, schema: SchemaDefinition, report: GenerationReport) -> None:
        seen: dict[str, str] = {}
        for table in schema.tables:
            module: str = table_to_module_name(table.name)
            if module in _RESERVED_MODULES:
                report.warnings.append(
                    f"Table '{table.name}' maps to reserved module '{module}'; "
                    "the auth scaffold overwrites its files."
                )
            elif module in seen:
                report.warnings.append(
                    f"Tables '{seen[module]}' and '{table.name}' share module '{module}'; "
                    "the later table wins."
                )
            seen.setdefault(module, table.name)
        for warn in report.warnings:
            logger.warning(warn)

    # -----------------------------------------------------------------
    # Pipeline steps
    # -----------------------------------------------------------------

    def _step_bootstrap(
        self, templates: ProjectTemplates, generated_at: datetime
    ) -> List[Artifact]:
        return [
            Artifact(path="pyproject.toml", content=templates.pyproject_toml()),
            Artifact(path="ruff.toml", content=templates.ruff_toml()),
            Artifact(path=".gitignore", content=templates.gitignore()),
            Artifact(path=".env", content=templates.env_file()),
            Artifact(path="app/main.py", content=templates.main_module()),
            Artifact(path="README.md", content=templates.readme(generated_at)),
        ]

    def _step_tables(
        self, schema: SchemaDefinition, report: GenerationReport
    ) -> List[Artifact]:
        artifacts: List[Artifact] = []
        known: List[str] = schema.table_names
        for table in schema.tables:
            table_artifacts: List[Artifact] = build_table_artifacts(
                table, self._config, known
            )
            artifacts.extend(table_artifacts)
            logger.debug(
                "Table '%s' → %d files (%d columns, %d foreign keys).",
                table.name,
                len(table_artifacts),
                len(table.columns),
                len(table.foreign_keys),
            )
        report.total_tables_processed = len(schema.tables)
        return artifacts

    def _step_auth(self, schema: SchemaDefinition) -> List[Artifact]:
        scaffolds: ScaffoldTemplates = ScaffoldTemplates(schema, self._config)
        artifacts: List[Artifact] = [
            Artifact(path="app/modules/auth/service.py", content=scaffolds.auth_service()),
            Artifact(path="app/modules/auth/router.py", content=scaffolds.auth_router()),
            Artifact(path="app/modules/auth/__init__.py", content=scaffolds.auth_init()),
            Artifact(path="app/modules/auth/login_schema.py", content=scaffolds.login_schema()),
            Artifact(
                path="app/modules/auth/register_schema.py",
                content=scaffolds.register_schema(),
            ),
        ]
        if scaffolds.identity.generated:
            artifacts.append(Artifact(
                path="app/modules/users/entity.py",
                content=scaffolds.fallback_identity_entity(),
            ))
        return artifacts

    def _step_utilities(self, schema: SchemaDefinition) -> List[Artifact]:
        scaffolds: ScaffoldTemplates = ScaffoldTemplates(schema, self._config)
        artifacts: List[Artifact] = [
            Artifact(
                path="app/common/strategies/jwt_strategy.py",
                content=scaffolds.jwt_strategy(),
            ),
            Artifact(
                path="app/common/guards/jwt_auth_guard.py",
                content=scaffolds.jwt_auth_guard(),
            ),
            Artifact(path="app/common/guards/roles_guard.py", content=scaffolds.roles_guard()),
            Artifact(path="app/common/decorators/roles.py", content=scaffolds.roles_decorator()),
            Artifact(path="app/common/constants/roles.py", content=scaffolds.roles_constants()),
            Artifact(path="app/common/utils/date_util.py", content=scaffolds.date_util()),
        ]
        if self._config.with_ftp:
            artifacts.append(Artifact(
                path="app/common/utils/ftp_util.py", content=scaffolds.ftp_util()
            ))
        if self._config.with_google_auth:
            artifacts.append(Artifact(
                path="app/common/strategies/google_strategy.py",
                content=scaffolds.google_strategy(),
            ))
        return artifacts

    def _step_configs(self, templates: ProjectTemplates) -> List[Artifact]:
        return [
            Artifact(path="app/configs/database.py", content=templates.database_config()),
            Artifact(path="app/configs/settings.py", content=templates.settings_config()),
        ]

    # -----------------------------------------------------------------
    # Internal: finalise report
    # -----------------------------------------------------------------

    def _finalise_report(
        self,
        report: GenerationReport,
        artifacts: List[Artifact],
        project_name: str,
        generated_at: datetime,
        total_elapsed: float,
    ) -> GenerationReport:
        """Set final status and totals; attach the project only on success."""
        report.total_elapsed_seconds = total_elapsed
        report.success = len(report.generation_errors) == 0

        if not report.success:
            logger.error(
                "Generation failed with %d error(s) in %.3fs.",
                len(report.generation_errors),
                total_elapsed,
            )
            return report

        project: GeneratedProject = GeneratedProject(
            project_name=project_name,
            generated_at=generated_at,
            artifacts=artifacts,
        )
        report.project = project
        report.total_files = project.total_files
        report.total_lines = project.total_lines
        report.total_bytes = project.total_bytes
        logger.info(
            "Generated %d files (%s lines) for %d tables in %.3fs.",
            project.total_files,
            f"{project.total_lines:,}",
            report.total_tables_processed,
            total_elapsed,
        )
        return report


def generate_project(
    schema: SchemaDefinition,
    config: Optional[GenerationConfig] = None,
    project_name: str = "generated-app",
    generated_at: Optional[datetime] = None,
) -> GenerationReport:
    """Convenience wrapper around ``ProjectGenerator(config).generate(...)``."""
    return ProjectGenerator(config).generate(schema, project_name, generated_at)


# ---------------------------------------------------------------------------
# Module-level exports
# ---------------------------------------------------------------------------

__all__: List[str] = [
    "GenerationStepMetric",
    "GenerationReport",
    "ProjectGenerator",
    "generate_project",
]

logger.debug("schemagen.generator loaded.")
