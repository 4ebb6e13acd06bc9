# File: schemagen/config.py
"""
schemagen - Configuration Loading
==================================

Reads generation settings from a YAML or JSON file and merges command-line
overrides on top::

    # schemagen.yaml
    config:
      data_store: mysql
      date_logs: true
      with_swagger: false

The top-level ``config`` / ``generation_config`` wrapper is optional.
Unknown keys are rejected by ``GenerationConfig``.
"""

from __future__ import annotations

import json
import logging
from pathlib import Path
from typing import Any, Dict, List, Mapping, Optional

import yaml
from pydantic import ValidationError

from schemagen.models import GenerationConfig

# ---------------------------------------------------------------------------
# Logger
# ---------------------------------------------------------------------------
logger: logging.Logger = logging.getLogger("schemagen.config")

_WRAPPER_KEYS: tuple[str, ...] = ("config", "generation_config")


# ---------------------------------------------------------------------------
# File loaders
# ---------------------------------------------------------------------------


def _load_json_file(path: Path) -> Dict[str, Any]:
    """Load and parse a JSON file. Raises ValueError on parse errors."""
    try:
        text: str = path.read_text(encoding="utf-8")
        data: Any = json.loads(text)
    except json.JSONDecodeError as exc:
        raise ValueError(f"Invalid JSON in {path}: {exc}") from exc
    if not isinstance(data, dict):
        raise ValueError(
            f"Expected a JSON object at top level, got {type(data).__name__}."
        )
    return data


def _load_yaml_file(path: Path) -> Dict[str, Any]:
    """Load and parse a YAML file. Raises ValueError on parse errors."""
    try:
        text: str = path.read_text(encoding="utf-8")
        data: Any = yaml.safe_load(text)
    except yaml.YAMLError as exc:
        raise ValueError(f"Invalid YAML in {path}: {exc}") from exc
    if data is None:
        return {}
    if not isinstance(data, dict):
        raise ValueError(
            f"Expected a YAML mapping at top level, got {type(data).__name__}."
        )
    return data


def _unwrap(raw: Dict[str, Any]) -> Dict[str, Any]:
    for key in _WRAPPER_KEYS:
        if key in raw:
            inner: Any = raw[key]
            if not isinstance(inner, dict):
                raise ValueError(f"'{key}' must be a mapping, got {type(inner).__name__}.")
            return dict(inner)
    return dict(raw)


def load_config_file(path: Path) -> Dict[str, Any]:
    """
    Load a configuration file (YAML or JSON).

    Dispatches on the file extension; unknown extensions try JSON first and
    then YAML.

    Raises:
        FileNotFoundError: If the file doesn't exist.
        ValueError: If the file can't be parsed.
    """
    if not path.exists():
        raise FileNotFoundError(f"Config file not found: {path}")

    if not path.is_file():
        raise ValueError(f"Config path is not a file: {path}")

    suffix: str = path.suffix.lower()

    if suffix in (".yaml", ".yml"):
        raw: Dict[str, Any] = _load_yaml_file(path)
    elif suffix == ".json":
        raw = _load_json_file(path)
    else:
        logger.info("Unknown extension '%s'; trying JSON then YAML.", suffix)
        try:
            raw = _load_json_file(path)
        except ValueError:
            raw = _load_yaml_file(path)

    values: Dict[str, Any] = _unwrap(raw)
    logger.info("Loaded config file: %s (%d keys).", path, len(values))
    return values


def build_config(
    base: Optional[Mapping[str, Any]] = None,
    overrides: Optional[Mapping[str, Any]] = None,
) -> GenerationConfig:
    """
    Validate *base* with *overrides* applied on top.

    ``None`` override values are ignored so unset CLI flags keep file values.

    Raises:
        ValueError: If validation fails.
    """
    merged: Dict[str, Any] = dict(base or {})
    for key, value in (overrides or {}).items():
        if value is not None:
            merged[key] = value
    if "database_type" in merged and "data_store" in merged:
        merged.pop("database_type")
    try:
        config: GenerationConfig = GenerationConfig.model_validate(merged)
    except ValidationError as exc:
        raise ValueError(f"Config validation failed: {exc}") from exc
    logger.debug("Effective config: %s", config.model_dump())
    return config


def parse_config_json(text: Optional[str]) -> GenerationConfig:
    """
    Validate a JSON config string, as sent by the HTTP form field.

    An absent or blank string yields the defaults.

    Raises:
        ValueError: If the string is not a JSON object or fails validation.
    """
    if text is None or not text.strip():
        return GenerationConfig()
    try:
        data: Any = json.loads(text)
    except json.JSONDecodeError as exc:
        raise ValueError(f"Invalid config JSON: {exc}") from exc
    if not isinstance(data, dict):
        raise ValueError(
            f"Expected a JSON object for config, got {type(data).__name__}."
        )
    return build_config(_unwrap(data))


# ---------------------------------------------------------------------------
# Module-level exports
# ---------------------------------------------------------------------------

__all__: List[str] = [
    "load_config_file",
    "build_config",
    "parse_config_json",
]

logger.debug("schemagen.config loaded.")
