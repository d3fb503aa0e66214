# src/hoconvault/settings/loaders.py

"""Settings loaders for the environment and TOML files.

Each loader returns a plain dictionary; validation and precedence belong to
the core resolver.
"""

from __future__ import annotations

import logging
import os
from typing import TYPE_CHECKING, Any

import tomllib

from . import utils

if TYPE_CHECKING:
    from collections.abc import Mapping
    from pathlib import Path

logger = logging.getLogger(__name__)

# Variables that steer resolution but are not settings fields
META_ENV_FIELDS = {"profile", "pyproject_path", "config_home"}


def _coerce_bool(v: str) -> bool:
    return v.strip().lower() in {"1", "true", "yes", "on"}


# --- Environment Loading ---


def load_env() -> Mapping[str, Any]:
    """Load settings from ``HOCONVAULT_*`` environment variables.

    Booleans and integers are coerced using the ``Settings`` schema; other
    values are passed through as strings for the schema to validate.
    """
    from .core import Settings  # local import keeps loaders import-light

    config: dict[str, Any] = {}
    for key, value in os.environ.items():
        if not key.startswith(utils.ENV_PREFIX):
            continue
        field_name = key[len(utils.ENV_PREFIX) :].lower()
        if field_name in META_ENV_FIELDS:
            continue
        info = Settings.model_fields.get(field_name)
        target_type = info.annotation if info is not None else None
        config[field_name] = _coerce_env_value(value, target_type)
    return config


def _coerce_env_value(value: str, target_type: Any) -> Any:
    """Coerce an env string to bool/int; anything else stays a string."""
    if target_type is bool:
        return _coerce_bool(value)
    if target_type is int:
        try:
            return int(value)
        except ValueError:
            return value
    return value


# --- Profile and file loading helpers ---


def list_profiles() -> list[str]:
    """Profile names available in the home and project TOML files."""
    names: set[str] = set()
    for path in (utils.get_pyproject_path(), utils.get_home_config_path()):
        data = _read_toml(path)
        profiles = data.get("tool", {}).get(utils.TOOL_NAME, {}).get("profiles", {})
        names.update(name for name in profiles if isinstance(name, str) and name)
    return sorted(names)


def _read_toml(path: Path) -> dict[str, Any]:
    """Read a TOML file; a missing or invalid file reads as empty."""
    if not path.exists():
        return {}
    try:
        with path.open("rb") as f:
            return tomllib.load(f)
    except (OSError, tomllib.TOMLDecodeError) as exc:
        logger.warning("Ignoring unreadable settings file %s: %s", path, exc)
        return {}


def _extract_tables(data: dict[str, Any], profile: str | None) -> dict[str, Any]:
    """``[tool.hoconvault]`` with ``[tool.hoconvault.profiles.<profile>]`` on top."""
    section = data.get("tool", {}).get(utils.TOOL_NAME, {})
    base = {k: v for k, v in section.items() if k != "profiles"}
    if profile:
        base.update(section.get("profiles", {}).get(profile, {}))
    return base


def _load_config_file(path: Path, profile: str | None = None) -> Mapping[str, Any]:
    return _extract_tables(_read_toml(path), profile or utils.get_effective_profile())


def load_pyproject(profile: str | None = None) -> Mapping[str, Any]:
    """Settings from ``pyproject.toml`` in the working directory."""
    return _load_config_file(utils.get_pyproject_path(), profile)


def load_home(profile: str | None = None) -> Mapping[str, Any]:
    """Settings from ``~/.config/hoconvault.toml``."""
    return _load_config_file(utils.get_home_config_path(), profile)
