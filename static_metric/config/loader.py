"""Generator configuration loading & normalization.

Responsibilities:
  * Load an optional YAML config file.
  * Validate it against SCHEMA (jsonschema draft-07); violations are fatal.
  * Apply environment overrides on top.

Environment Flags:
  STATIC_METRIC_FLUSH_INTERVAL      -> auto-flush threshold in seconds (float > 0).
  STATIC_METRIC_RUNTIME_PACKAGE     -> package generated modules import runtime support from.
  STATIC_METRIC_CASE_FOLD_LABELS    -> case-fold label strings of bare identifiers.
  STATIC_METRIC_EXPORT_INNER        -> bind `<Name>Inner` at module level in generated code.

Precedence (lowest first): defaults, YAML file, environment, explicit overrides.
"""
from __future__ import annotations

import logging
import os
from dataclasses import asdict, dataclass, replace
from pathlib import Path
from typing import Any

import jsonschema
import yaml

from ..utils.env_flags import ENV_PREFIX, env_bool, env_float, env_str
from ..utils.exceptions import ConfigError

logger = logging.getLogger(__name__)

SCHEMA: dict[str, Any] = {
    "$schema": "http://json-schema.org/draft-07/schema#",
    "type": "object",
    "additionalProperties": False,
    "properties": {
        "flush_interval": {"type": "number", "exclusiveMinimum": 0},
        "runtime_package": {
            "type": "string",
            "pattern": r"^[A-Za-z_][A-Za-z0-9_]*(\.[A-Za-z_][A-Za-z0-9_]*)*$",
        },
        "case_fold_labels": {"type": "boolean"},
        "export_inner": {"type": "boolean"},
    },
}


@dataclass(frozen=True)
class GeneratorConfig:
    flush_interval: float = 1.0
    runtime_package: str = "static_metric.metrics"
    case_fold_labels: bool = True
    export_inner: bool = True

    @staticmethod
    def from_mapping(data: dict[str, Any]) -> GeneratorConfig:
        try:
            jsonschema.validate(instance=data, schema=SCHEMA)
        except jsonschema.ValidationError as e:
            path = '.'.join(str(p) for p in e.absolute_path) or '<root>'
            raise ConfigError(f"invalid generator config at {path}: {e.message}") from e
        return replace(GeneratorConfig(), **data)

    @staticmethod
    def from_file(path: str | os.PathLike[str]) -> GeneratorConfig:
        p = Path(path)
        try:
            with p.open(encoding='utf-8') as fh:
                data = yaml.safe_load(fh)
        except FileNotFoundError as e:
            raise ConfigError(f"config file not found: {p}") from e
        except yaml.YAMLError as e:
            raise ConfigError(f"config file {p} is not valid YAML: {e}") from e
        if data is None:
            data = {}
        if not isinstance(data, dict):
            raise ConfigError(f"config file {p} must contain a mapping, got {type(data).__name__}")
        logger.debug("config.file.loaded path=%s keys=%s", p, sorted(data))
        return GeneratorConfig.from_mapping(data)

    def with_env(self) -> GeneratorConfig:
        overrides: dict[str, Any] = {}
        try:
            interval = env_float(ENV_PREFIX + "FLUSH_INTERVAL")
            case_fold = env_bool(ENV_PREFIX + "CASE_FOLD_LABELS")
            export_inner = env_bool(ENV_PREFIX + "EXPORT_INNER")
        except ValueError as e:
            raise ConfigError(str(e)) from e
        if interval is not None:
            overrides['flush_interval'] = interval
        runtime_package = env_str(ENV_PREFIX + "RUNTIME_PACKAGE")
        if runtime_package is not None:
            overrides['runtime_package'] = runtime_package
        if case_fold is not None:
            overrides['case_fold_labels'] = case_fold
        if export_inner is not None:
            overrides['export_inner'] = export_inner
        if not overrides:
            return self
        logger.debug("config.env.overrides %s", overrides)
        return GeneratorConfig.from_mapping({**asdict(self), **overrides})

    def with_overrides(self, **overrides: Any) -> GeneratorConfig:
        given = {k: v for k, v in overrides.items() if v is not None}
        if not given:
            return self
        return GeneratorConfig.from_mapping({**asdict(self), **given})


def load_config(path: str | os.PathLike[str] | None = None, **overrides: Any) -> GeneratorConfig:
    """Resolve the effective config: defaults < file < env < overrides."""
    cfg = GeneratorConfig.from_file(path) if path is not None else GeneratorConfig()
    return cfg.with_env().with_overrides(**overrides)


__all__ = ["SCHEMA", "GeneratorConfig", "load_config"]
