"""Configuration objects for parsing and lifting runs.

Configuration is optional: every field has a default matching the Luau
version 2 container format.  Files may be JSON or YAML; both are mapped onto
the same dataclasses through :meth:`LiftConfig.from_mapping`.
"""

from __future__ import annotations

import json
import logging
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Mapping, Optional

import yaml

from .exceptions import ConfigError

LOGGER = logging.getLogger(__name__)

LUAU_VERSION = 2

__all__ = ["LUAU_VERSION", "ParserConfig", "LiftConfig", "load_config"]


def _coerce_int(value: object, name: str) -> int:
    if isinstance(value, bool):
        raise ConfigError(f"{name} must be an integer, not a boolean")
    if isinstance(value, int):
        return value
    if isinstance(value, str):
        try:
            return int(value, 0)
        except ValueError as exc:
            raise ConfigError(f"{name} must be an integer: {value!r}") from exc
    raise ConfigError(f"{name} must be an integer: {value!r}")


@dataclass(frozen=True)
class ParserConfig:
    """Settings consumed by :func:`luau_lift.container.parse_module`."""

    expected_version: int = LUAU_VERSION

    @classmethod
    def from_mapping(cls, payload: Mapping[str, Any]) -> "ParserConfig":
        version = _coerce_int(payload.get("expected_version", LUAU_VERSION), "expected_version")
        if not 0 <= version <= 0xFF:
            raise ConfigError(f"expected_version must fit in one byte: {version}")
        return cls(expected_version=version)


@dataclass(frozen=True)
class LiftConfig:
    """Top level configuration for a parse/lift run."""

    parser: ParserConfig = field(default_factory=ParserConfig)
    stop_on_decode_error: bool = False
    debug_dir: Optional[Path] = None

    @classmethod
    def from_mapping(cls, payload: Mapping[str, Any]) -> "LiftConfig":
        if not isinstance(payload, Mapping):
            raise ConfigError("configuration root must be a mapping")
        unknown = set(payload) - {"parser", "stop_on_decode_error", "debug_dir"}
        if unknown:
            raise ConfigError(f"unknown configuration keys: {', '.join(sorted(unknown))}")

        parser_payload = payload.get("parser")
        if parser_payload is None:
            parser_payload = {}
        if not isinstance(parser_payload, Mapping):
            raise ConfigError("'parser' must be a mapping")

        stop = payload.get("stop_on_decode_error", False)
        if not isinstance(stop, bool):
            raise ConfigError("stop_on_decode_error must be a boolean")

        debug_dir = payload.get("debug_dir")
        if debug_dir is not None and not isinstance(debug_dir, str):
            raise ConfigError(f"debug_dir must be a path string: {debug_dir!r}")
        return cls(
            parser=ParserConfig.from_mapping(parser_payload),
            stop_on_decode_error=stop,
            debug_dir=Path(debug_dir) if debug_dir else None,
        )


def load_config(path: Path) -> LiftConfig:
    """Load a :class:`LiftConfig` from a JSON or YAML file."""

    try:
        text = Path(path).read_text(encoding="utf-8")
    except OSError as exc:
        raise ConfigError(f"cannot read config {path}: {exc}") from exc

    suffix = Path(path).suffix.lower()
    try:
        if suffix in {".yaml", ".yml"}:
            payload = yaml.safe_load(text) or {}
        else:
            payload = json.loads(text) if text.strip() else {}
    except (yaml.YAMLError, json.JSONDecodeError) as exc:
        raise ConfigError(f"invalid config {path}: {exc}") from exc

    config = LiftConfig.from_mapping(payload)
    LOGGER.debug("Loaded configuration from %s: %s", path, config)
    return config
