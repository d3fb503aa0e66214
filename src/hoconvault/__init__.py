"""hoconvault: hierarchical HOCON configs with keystore-backed secrets.

Public API:
    - Config: HOCON config values with fallback composition
    - HoconHiera: fact-driven hierarchy resolution
    - KeyStoreEditor / SecretStore: redact, reveal and store secrets
    - resolve_settings(): tool defaults with provenance
"""

from __future__ import annotations

import logging

from hoconvault.errors import (
    AlgorithmUnavailableError,
    ArgumentError,
    CliError,
    ConfigError,
    HieraError,
    HierarchyKeyMissingError,
    HierarchyMissingError,
    HoconVaultError,
    InvalidEntryError,
    InvalidEntryReason,
    IOFailureError,
    KeyStoreError,
    MissingKeyError,
    ParseError,
    SettingsError,
    StoreOpenCause,
    StoreOpenError,
    UnknownCommandError,
    UnresolvedSubstitutionError,
)
from hoconvault.hiera import HoconHiera
from hoconvault.hocon import Config, RenderOptions
from hoconvault.keystore import (
    SENTINEL,
    KeyStoreEditor,
    KeyStoreType,
    SecretKey,
    SecretStore,
    is_redacted,
)
from hoconvault.settings import FrozenSettings, resolve_settings

try:
    from importlib.metadata import PackageNotFoundError, version

    __version__ = version("hoconvault")
except PackageNotFoundError:
    __version__ = "0.0.0+unknown"

# Library-level NullHandler: stay silent unless the consumer configures logging.
logging.getLogger("hoconvault").addHandler(logging.NullHandler())

__all__ = [
    "SENTINEL",
    "AlgorithmUnavailableError",
    "ArgumentError",
    "CliError",
    "Config",
    "ConfigError",
    "FrozenSettings",
    "HieraError",
    "HierarchyKeyMissingError",
    "HierarchyMissingError",
    "HoconHiera",
    "HoconVaultError",
    "IOFailureError",
    "InvalidEntryError",
    "InvalidEntryReason",
    "KeyStoreEditor",
    "KeyStoreError",
    "KeyStoreType",
    "MissingKeyError",
    "ParseError",
    "RenderOptions",
    "SecretKey",
    "SecretStore",
    "SettingsError",
    "StoreOpenCause",
    "StoreOpenError",
    "UnknownCommandError",
    "UnresolvedSubstitutionError",
    "is_redacted",
    "resolve_settings",
]
