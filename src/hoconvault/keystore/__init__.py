"""Keystore-backed secret management for HOCON configs."""

from .editor import KeyStoreEditor
from .engine import (
    SENTINEL,
    assert_valid_secret,
    is_redacted,
    redact,
    reveal,
    update,
    upsert,
)
from .store import SecretKey, SecretStore
from .types import KeyStoreType

__all__ = [
    "SENTINEL",
    "KeyStoreEditor",
    "KeyStoreType",
    "SecretKey",
    "SecretStore",
    "assert_valid_secret",
    "is_redacted",
    "redact",
    "reveal",
    "update",
    "upsert",
]
