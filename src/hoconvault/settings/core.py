# src/hoconvault/settings/core.py

"""Tool settings: schema, layered resolution and audit.

Defaults for the command line tools (store type, key generation, output
format, logging) resolve once per invocation:

- ``Settings`` is the single schema for fields, defaults and validation,
- ``FrozenSettings`` is the immutable result handed to the tools,
- ``SourceMap`` records which layer supplied each field.

Precedence, last wins: defaults < home file < project file < environment <
overrides.
"""

from __future__ import annotations

from dataclasses import asdict, dataclass
from enum import Enum
from functools import cache
import logging
from typing import TYPE_CHECKING, Any, Literal, overload
import warnings

from pydantic import BaseModel, Field, ValidationError, field_validator

from hoconvault.errors import SettingsError
from hoconvault.keystore.store import DEFAULT_ITERATIONS
from hoconvault.keystore.types import KeyStoreType

from . import utils

if TYPE_CHECKING:
    from collections.abc import Mapping, Sequence

# --- Schema (Pydantic wall) ---


class Settings(BaseModel):
    """Pydantic schema for tool settings."""

    store_type: KeyStoreType | None = Field(default=None)
    key_alg: str = Field(default="HmacSHA256", min_length=1)
    key_size: int = Field(default=2048, gt=0)
    json_output: bool = Field(default=False)
    kdf_iterations: int = Field(default=DEFAULT_ITERATIONS, ge=1)
    log_level: str = Field(default="WARNING")

    model_config = {"extra": "allow"}

    @field_validator("store_type", mode="before")
    @classmethod
    def normalize_store_type(cls, v: Any) -> Any:
        """Accept ``jks``/``JCEKS``/enum members; reject ``UNKNOWN``."""
        if v is None or (isinstance(v, str) and not v.strip()):
            return None
        parsed = KeyStoreType.parse(v)
        if not parsed.is_supported:
            raise ValueError("store_type must be one of jks, jceks, pkcs12")
        return parsed

    @field_validator("key_alg", mode="before")
    @classmethod
    def normalize_key_alg(cls, v: Any) -> Any:
        return v.strip() if isinstance(v, str) else v

    @field_validator("key_size")
    @classmethod
    def validate_key_size(cls, v: int) -> int:
        if v % 8:
            raise ValueError("key_size must be a multiple of 8")
        return v

    @field_validator("log_level", mode="before")
    @classmethod
    def normalize_log_level(cls, v: Any) -> Any:
        if not isinstance(v, str):
            return v
        level = v.strip().upper()
        if level not in logging.getLevelNamesMapping():
            raise ValueError(f"unknown log level '{v}'")
        return level


@cache
def _default_settings() -> dict[str, Any]:
    return Settings().model_dump()


# --- Immutable runtime payload ---


@dataclass(frozen=True)
class FrozenSettings:
    """Validated settings for one tool invocation."""

    store_type: KeyStoreType | None
    key_alg: str
    key_size: int
    json_output: bool
    kdf_iterations: int
    log_level: str

    def to_dict(self) -> dict[str, Any]:
        out = asdict(self)
        out["store_type"] = self.store_type.value if self.store_type else None
        return out


# --- Audit types ---


class Origin(str, Enum):
    """Layer a settings value came from."""

    DEFAULT = "default"
    HOME = "home"
    PROJECT = "project"
    ENV = "env"
    OVERRIDES = "overrides"


@dataclass(frozen=True)
class FieldOrigin:
    origin: Origin
    env_key: str | None = None  # e.g., "HOCONVAULT_KEY_SIZE"
    file: str | None = None  # e.g., "~/.config/hoconvault.toml"


SourceMap = dict[str, FieldOrigin]


_DOTENV_LOADED: bool = False


def _try_load_dotenv() -> None:
    """Load a ``.env`` file once per process, before the environment is read."""
    global _DOTENV_LOADED
    if _DOTENV_LOADED:
        return
    from dotenv import load_dotenv

    load_dotenv()
    _DOTENV_LOADED = True


# --- Public resolution API ---


@overload
def resolve_settings(
    overrides: Mapping[str, Any] | None = ...,
    profile: str | None = ...,
    *,
    explain: Literal[True],
) -> tuple[FrozenSettings, SourceMap]: ...


@overload
def resolve_settings(
    overrides: Mapping[str, Any] | None = ...,
    profile: str | None = ...,
    *,
    explain: Literal[False] = ...,
) -> FrozenSettings: ...


def resolve_settings(
    overrides: Mapping[str, Any] | None = None,
    profile: str | None = None,
    *,
    explain: bool = False,
) -> FrozenSettings | tuple[FrozenSettings, SourceMap]:
    """Resolve settings from every layer.

    Args:
        overrides: Programmatic values; ``None`` entries are ignored so
            callers can pass unset command line flags straight through.
        profile: Profile name to overlay from the TOML files. Defaults to
            ``HOCONVAULT_PROFILE``.
        explain: Also return the ``SourceMap``.

    Raises:
        SettingsError: A value fails validation.
    """
    _try_load_dotenv()

    from .loaders import load_env, load_home, load_pyproject

    effective_profile = profile if profile is not None else utils.get_effective_profile()

    merged, sources = _resolve_layers(
        overrides={k: v for k, v in (overrides or {}).items() if v is not None},
        env=load_env(),
        project=load_pyproject(profile=effective_profile),
        home=load_home(profile=effective_profile),
    )

    try:
        settings = Settings.model_validate(merged)
    except ValidationError as e:
        err = e.errors()[0]
        field = ".".join(str(part) for part in err.get("loc", ())) or "settings"
        msg = err.get("msg") or "invalid value"
        if msg.startswith("Value error, "):
            msg = msg[len("Value error, ") :]
        raise SettingsError(
            f"Settings validation failed for '{field}': {msg}",
            hint=utils.field_spec_hint(field),
        ) from e

    frozen = _freeze(settings, merged)
    return (frozen, sources) if explain else frozen


# --- Internal helpers ---


def _freeze(settings: Settings, merged: Mapping[str, Any]) -> FrozenSettings:
    known_fields = set(Settings.model_fields)
    for name in sorted(k for k in merged if k not in known_fields):
        warnings.warn(f"Unknown setting '{name}' ignored", UserWarning, stacklevel=3)
    return FrozenSettings(
        store_type=settings.store_type,
        key_alg=settings.key_alg,
        key_size=settings.key_size,
        json_output=settings.json_output,
        kdf_iterations=settings.kdf_iterations,
        log_level=settings.log_level,
    )


def _resolve_layers(
    *,
    overrides: Mapping[str, Any],
    env: Mapping[str, Any],
    project: Mapping[str, Any],
    home: Mapping[str, Any],
) -> tuple[dict[str, Any], SourceMap]:
    """Merge layers with last-wins precedence, recording each field's origin."""
    layers = [
        (Origin.HOME, home),
        (Origin.PROJECT, project),
        (Origin.ENV, env),
        (Origin.OVERRIDES, overrides),
    ]

    out: dict[str, Any] = {}
    src: SourceMap = {}

    for k, v in _default_settings().items():
        out[k] = v
        src[k] = FieldOrigin(origin=Origin.DEFAULT)

    def record(k: str, v: Any, origin: Origin) -> None:
        out[k] = v
        hints: dict[str, str] = {}
        if origin is Origin.ENV:
            hints["env_key"] = utils.env_key(k)
        elif origin is Origin.PROJECT:
            hints["file"] = str(utils.get_pyproject_path())
        elif origin is Origin.HOME:
            hints["file"] = str(utils.get_home_config_path())
        src[k] = FieldOrigin(origin=origin, **hints)

    for origin, payload in layers:
        for k, v in payload.items():
            record(k, v, origin)

    return out, src


# --- Audit helpers ---


def _origin_label(field: str, where: FieldOrigin) -> str:
    match where.origin:
        case Origin.ENV:
            return f"env:{where.env_key or utils.env_key(field)}"
        case Origin.PROJECT:
            return f"file:{where.file or 'pyproject.toml'}"
        case Origin.HOME:
            return f"file:{where.file or f'~/.config/{utils.TOOL_NAME}.toml'}"
        case _:
            return str(where.origin.value)


def audit_lines(sources: SourceMap, fields: Sequence[str] | None = None) -> list[str]:
    """One ``field: origin`` line per settings field."""
    order = fields if fields is not None else list(Settings.model_fields)
    return [f"{field}: {_origin_label(field, sources[field])}" for field in order if field in sources]


def audit_text(sources: SourceMap) -> str:
    return "\n".join(audit_lines(sources))


def was_field_overridden(sources: SourceMap, field: str) -> bool:
    """True if ``field`` did not come from the schema defaults."""
    fo = sources.get(field)
    return bool(fo and fo.origin is not Origin.DEFAULT)


# --- Minimal CLI entrypoint ---


def main(argv: Sequence[str] | None = None) -> int:
    """``hoconvault-settings show|audit|profiles``."""
    import argparse
    import json
    import sys

    from .loaders import list_profiles

    parser = argparse.ArgumentParser("hoconvault-settings")
    parser.add_argument("--profile", default=None)
    sub = parser.add_subparsers(dest="cmd", required=True)
    sub.add_parser("show")
    sub.add_parser("audit")
    sub.add_parser("profiles")
    args = parser.parse_args(argv)

    try:
        if args.cmd == "show":
            cfg = resolve_settings(profile=args.profile)
            sys.stdout.write(json.dumps(cfg.to_dict(), indent=2) + "\n")
        elif args.cmd == "audit":
            _, src = resolve_settings(profile=args.profile, explain=True)
            sys.stdout.write(audit_text(src) + "\n")
        else:
            for name in list_profiles():
                sys.stdout.write(name + "\n")
    except SettingsError as exc:
        sys.stderr.write(f"{exc}\n")
        if exc.hint:
            sys.stderr.write(f"hint: {exc.hint}\n")
        return 3
    return 0


if __name__ == "__main__":  # pragma: no cover
    raise SystemExit(main())
