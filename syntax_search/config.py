"""Configuration for the command line front end.

Settings come from a JSON or YAML file and can be overridden by flags:

.. code-block:: yaml

    language: ruby      # or "braces"
    context: true       # show enclosing lines around the error
    color: true         # highlight with rich styles
    log_level: WARNING
"""

from __future__ import annotations

import json
import logging
from dataclasses import dataclass, fields, replace
from pathlib import Path
from typing import Any, Mapping, Optional

import yaml

from .oracle import LANGUAGES

logger = logging.getLogger(__name__)

LOG_LEVELS = ("CRITICAL", "ERROR", "WARNING", "INFO", "DEBUG")


class ConfigError(ValueError):
    """Raised when a configuration file is malformed."""


@dataclass(frozen=True)
class SearchConfig:
    language: str = "ruby"
    context: bool = True
    color: bool = True
    log_level: str = "WARNING"

    def __post_init__(self) -> None:
        if self.language not in LANGUAGES:
            choices = ", ".join(sorted(LANGUAGES))
            raise ConfigError(f"language must be one of: {choices} (got {self.language!r})")
        for name in ("context", "color"):
            if not isinstance(getattr(self, name), bool):
                raise ConfigError(f"{name} must be a boolean")
        if self.log_level not in LOG_LEVELS:
            raise ConfigError(f"log_level must be one of: {', '.join(LOG_LEVELS)}")

    def with_overrides(self, **overrides: Any) -> "SearchConfig":
        """Return a copy with every non-``None`` override applied."""

        changes = {key: value for key, value in overrides.items() if value is not None}
        return replace(self, **changes) if changes else self


def _parse(path: Path) -> Any:
    text = path.read_text(encoding="utf-8")
    try:
        if path.suffix.lower() in {".yaml", ".yml"}:
            return yaml.safe_load(text)
        return json.loads(text)
    except (yaml.YAMLError, json.JSONDecodeError) as exc:
        raise ConfigError(f"Could not parse {path}: {exc}") from exc


def config_from_mapping(payload: Mapping[str, Any]) -> SearchConfig:
    known = {field.name for field in fields(SearchConfig)}
    unknown = sorted(set(payload) - known)
    if unknown:
        raise ConfigError(f"Unknown configuration keys: {', '.join(unknown)}")
    values = dict(payload)
    if isinstance(values.get("log_level"), str):
        values["log_level"] = values["log_level"].upper()
    return SearchConfig(**values)


def load_config(path: Optional[str | Path]) -> SearchConfig:
    """Load a :class:`SearchConfig` from *path*, or the defaults for ``None``."""

    if path is None:
        return SearchConfig()
    config_path = Path(path)
    payload = _parse(config_path)
    if payload is None:
        payload = {}
    if not isinstance(payload, Mapping):
        raise ConfigError(f"{config_path} must contain a mapping at the top level")
    config = config_from_mapping(payload)
    logger.debug("Loaded configuration from %s: %s", config_path, config)
    return config


__all__ = ["ConfigError", "LOG_LEVELS", "SearchConfig", "config_from_mapping", "load_config"]
