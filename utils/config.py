"""
Extractor configuration.

Loaded from a YAML file, then overridden by environment variables, then by
command-line flags in extract.py.
"""
from __future__ import annotations

import logging
import os
from dataclasses import dataclass, fields
from pathlib import Path
from typing import Any, Optional

import yaml

logger = logging.getLogger(__name__)

USER_CONFIG_PATH = Path.home() / '.atlyss-kb' / 'config.yaml'

ENV_OVERRIDES = {
    'ATLYSS_PROJECT_PATH': 'project_path',
    'ATLYSS_RAW_DATA_PATH': 'raw_data_path',
    'ATLYSS_EXPORT_JSON': 'export_json',
    'ATLYSS_LOG_LEVEL': 'log_level',
}

_TRUE_STRINGS = {'1', 'true', 'yes', 'on'}


@dataclass
class ExtractorConfig:
    project_path: Path = Path('.')
    raw_data_path: Optional[Path] = None
    export_json: bool = False
    use_cache: bool = True
    file_workers: int = 1
    pass_jobs: int = 4
    log_level: str = 'INFO'

    @property
    def corpus_path(self) -> Path:
        """Root of the converted JSON corpus (data/output by default)."""
        if self.raw_data_path is not None:
            return Path(self.raw_data_path)
        return Path(self.project_path) / 'data' / 'output'

    @property
    def parsed_path(self) -> Path:
        return Path(self.project_path) / 'data' / 'parsed'

    @property
    def cache_path(self) -> Path:
        return Path(self.project_path) / 'data' / 'cache.sqlite3'

    def update(self, values: dict[str, Any]) -> None:
        """Apply known keys from values, coercing them to the field types."""
        known = {f.name for f in fields(self)}
        for key, value in values.items():
            if key not in known:
                logger.debug("Ignoring unknown config key %r", key)
                continue
            if value is None:
                continue
            setattr(self, key, _coerce(key, value))


def _coerce(key: str, value: Any) -> Any:
    if key in ('project_path', 'raw_data_path'):
        return Path(value)
    if key in ('export_json', 'use_cache'):
        if isinstance(value, str):
            return value.strip().lower() in _TRUE_STRINGS
        return bool(value)
    if key in ('file_workers', 'pass_jobs'):
        return max(1, int(value))
    if key == 'log_level':
        return str(value).upper()
    return value


def _search_paths(explicit: Optional[Path], project_path: Path) -> list[Path]:
    if explicit is not None:
        return [explicit]
    return [project_path / 'data' / 'config.yaml', USER_CONFIG_PATH]


def load_config(
    config_path: Optional[str | Path] = None,
    project_path: Optional[str | Path] = None,
) -> ExtractorConfig:
    """
    Build the effective configuration.

    A missing config file means defaults; an unreadable or malformed one is
    logged and skipped.
    """
    config = ExtractorConfig()
    if project_path is not None:
        config.project_path = Path(project_path)
    elif os.environ.get('ATLYSS_PROJECT_PATH'):
        config.project_path = Path(os.environ['ATLYSS_PROJECT_PATH'])

    explicit = Path(config_path) if config_path else None
    for path in _search_paths(explicit, config.project_path):
        if not path.exists():
            continue
        try:
            with open(path, 'r', encoding='utf-8') as f:
                user_config = yaml.safe_load(f) or {}
            if not isinstance(user_config, dict):
                raise ValueError(f"expected a mapping, got {type(user_config).__name__}")
            config.update(user_config)
            logger.debug("Loaded config from %s", path)
            break
        except (OSError, yaml.YAMLError, ValueError) as e:
            logger.warning("Failed to load config from %s: %s", path, e)

    env_values = {
        key: os.environ[env]
        for env, key in ENV_OVERRIDES.items()
        if os.environ.get(env)
    }
    config.update(env_values)
    if project_path is not None:
        config.project_path = Path(project_path)
    return config
