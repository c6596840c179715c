"""Project configuration loaded from ``reverso.toml`` or ``[tool.reverso]`` in ``pyproject.toml``."""

from __future__ import annotations

import logging
import os
import tomllib
from pathlib import Path
from typing import Any, Literal

from pydantic import BaseModel, ConfigDict, Field
from pydantic import ValidationError as PydanticValidationError

from reverso.constants import (
    DEFAULT_DATABASE_URL,
    DEFAULT_EXCLUDE_PATTERNS,
    DEFAULT_INCLUDE_PATTERNS,
    DEFAULT_OUTPUT_DIR,
    DEFAULT_SRC_DIR,
    DEFAULT_WATCH_DEBOUNCE_MS,
)
from reverso.errors import ConfigError

logger = logging.getLogger(__name__)

CONFIG_FILE_NAME = "reverso.toml"
PYPROJECT_FILE_NAME = "pyproject.toml"


class _Settings(BaseModel):
    model_config = ConfigDict(extra="forbid", populate_by_name=True)


class ScannerSettings(_Settings):
    src_dir: str = DEFAULT_SRC_DIR
    include: list[str] = Field(default_factory=lambda: list(DEFAULT_INCLUDE_PATTERNS))
    exclude: list[str] = Field(default_factory=lambda: list(DEFAULT_EXCLUDE_PATTERNS))
    output_dir: str = DEFAULT_OUTPUT_DIR
    watch_debounce_ms: int = Field(default=DEFAULT_WATCH_DEBOUNCE_MS, ge=0)
    include_text_content: bool = True
    generate_types: bool = True
    workers: int = Field(default=8, ge=1)
    conflict_policy: Literal["first-wins", "error"] = "first-wins"
    field_order: list[str] = Field(default_factory=list)


class DatabaseSettings(_Settings):
    url: str = DEFAULT_DATABASE_URL


class SyncSettings(_Settings):
    delete_removed: bool = False


class ReversoSettings(_Settings):
    scanner: ScannerSettings = Field(default_factory=ScannerSettings)
    database: DatabaseSettings = Field(default_factory=DatabaseSettings)
    sync: SyncSettings = Field(default_factory=SyncSettings)


def _normalize_keys(data: Any) -> Any:
    """Accept kebab-case keys (``src-dir``) as written in TOML files."""
    if isinstance(data, dict):
        return {str(key).replace("-", "_"): _normalize_keys(value) for key, value in data.items()}
    return data


def _read_toml(path: Path) -> dict[str, Any]:
    try:
        with path.open("rb") as fh:
            return tomllib.load(fh)
    except (OSError, tomllib.TOMLDecodeError) as exc:
        raise ConfigError(f"Cannot read {path}: {exc}") from exc


def find_config_file(start: Path | None = None) -> Path | None:
    directory = (start or Path.cwd()).resolve()
    candidate = directory / CONFIG_FILE_NAME
    if candidate.is_file():
        return candidate
    pyproject = directory / PYPROJECT_FILE_NAME
    if pyproject.is_file() and "reverso" in _read_toml(pyproject).get("tool", {}):
        return pyproject
    return None


def load_settings(path: str | Path | None = None) -> ReversoSettings:
    """Load settings from ``path`` or from the first config file in the working directory.

    ``DATABASE_URL`` from the environment overrides ``database.url``.

    Raises:
        ConfigError: when the file cannot be read or does not validate.
    """
    config_path = Path(path) if path is not None else find_config_file()
    raw: dict[str, Any] = {}
    if config_path is not None:
        data = _read_toml(config_path)
        raw = data.get("tool", {}).get("reverso", {}) if config_path.name == PYPROJECT_FILE_NAME else data
        logger.debug("Loaded configuration from %s", config_path)

    try:
        settings = ReversoSettings.model_validate(_normalize_keys(raw))
    except PydanticValidationError as exc:
        raise ConfigError(f"Invalid configuration in {config_path}: {exc}") from exc

    env_url = os.getenv("DATABASE_URL")
    if env_url:
        settings.database.url = env_url
    return settings
