"""HOCON config model: parsing, fallback composition, leaf access, rendering."""

from .model import EMPTY_ORIGIN, HARDCODED_ORIGIN, Config
from .properties import SYSTEM_PROPERTIES_ORIGIN, system_properties
from .render import RenderOptions

__all__ = [
    "EMPTY_ORIGIN",
    "HARDCODED_ORIGIN",
    "SYSTEM_PROPERTIES_ORIGIN",
    "Config",
    "RenderOptions",
    "system_properties",
]
