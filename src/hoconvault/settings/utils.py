# src/hoconvault/settings/utils.py

"""Settings utilities: environment variable names and file locations.

Pure helpers with no dependency on the schema, importable from both the
loaders and the core resolver without cycles.
"""

from __future__ import annotations

import os
from pathlib import Path
from typing import TYPE_CHECKING, Literal

if TYPE_CHECKING:
    from collections.abc import Callable

# --- Constants ---

TOOL_NAME = "hoconvault"

ENV_PREFIX = "HOCONVAULT_"

CONFIG_HOME_VAR = "HOCONVAULT_CONFIG_HOME"
PYPROJECT_PATH_VAR = "HOCONVAULT_PYPROJECT_PATH"
PROFILE_VAR = "HOCONVAULT_PROFILE"

# --- Path Utilities ---


def get_config_path(path_type: Literal["project", "home"]) -> Path:
    """Get a settings file path, honouring the override variables.

    Falls back to a cwd-based path for the "home" type when the home
    directory cannot be determined.
    """
    specs: dict[str, tuple[str, Callable[[], Path]]] = {
        "project": (
            PYPROJECT_PATH_VAR,
            lambda: Path.cwd() / "pyproject.toml",
        ),
        "home": (
            CONFIG_HOME_VAR,
            lambda: Path.home() / ".config" / f"{TOOL_NAME}.toml",
        ),
    }
    env_var, default_factory = specs[path_type]
    if override := os.environ.get(env_var):
        return Path(override)
    try:
        return default_factory()
    except RuntimeError:
        if path_type == "home":
            return Path.cwd() / f"{TOOL_NAME}.toml"
        raise


def get_pyproject_path() -> Path:
    return get_config_path("project")


def get_home_config_path() -> Path:
    return get_config_path("home")


# --- Environment Utilities ---


def get_effective_profile() -> str | None:
    """Profile selected through the environment, if any."""
    return os.environ.get(PROFILE_VAR) or None


def env_key(field: str) -> str:
    return f"{ENV_PREFIX}{field.upper()}"


def field_spec_hint(field: str) -> str:
    """Return a compact hint for setting a field via env or files."""
    return (
        f"Set {env_key(field)} or [tool.{TOOL_NAME}] {field} in pyproject.toml "
        f"(or ~/.config/{TOOL_NAME}.toml)."
    )
