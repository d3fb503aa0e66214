"""Tool settings with layered resolution and provenance."""

from .core import (
    FieldOrigin,
    FrozenSettings,
    Origin,
    Settings,
    SourceMap,
    audit_lines,
    audit_text,
    resolve_settings,
    was_field_overridden,
)

__all__ = [
    "FieldOrigin",
    "FrozenSettings",
    "Origin",
    "Settings",
    "SourceMap",
    "audit_lines",
    "audit_text",
    "resolve_settings",
    "was_field_overridden",
]
