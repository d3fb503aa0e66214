"""Redact/reveal protocol between a config and a secret store.

A string value starting with ``*****`` is *redacted*: it stands for a secret
held in the store under the value's full dotted path. ``redact`` replaces
values whose keys are in the store with the sentinel; ``reveal`` swaps
sentinels back for the stored cleartext.

``upsert`` and ``update`` write config values into the store. Both check
every entry before the first ``put``, so a failing call leaves the store
exactly as it was.
"""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING, Any

from hoconvault.errors import InvalidEntryError, InvalidEntryReason, MissingKeyError
from hoconvault.hocon import SYSTEM_PROPERTIES_ORIGIN, Config

if TYPE_CHECKING:
    from collections.abc import Sequence

    from .store import SecretStore

logger = logging.getLogger(__name__)

SENTINEL = "*****"

REDACTED_ORIGIN = "redacted by key store"
REVEALED_ORIGIN = "revealed from key store"


def is_redacted(value: Any) -> bool:
    """True for strings that start with the five-asterisk sentinel."""
    return isinstance(value, str) and value.startswith(SENTINEL)


def assert_valid_secret(config: Config, key: str, value: Any) -> None:
    """Reject entries that must never be written to the store.

    Raises:
        InvalidEntryError: The value comes from system properties, or is not
            a string.
    """
    if config.origin_description(key) == SYSTEM_PROPERTIES_ORIGIN:
        raise InvalidEntryError(InvalidEntryReason.SYSTEM_PROPERTY, key)
    if not isinstance(value, str):
        raise InvalidEntryError(InvalidEntryReason.NON_STRING_VALUE, key)


def redact(config: Config, store: SecretStore) -> Config:
    """Replace every value whose key is in ``store`` with the sentinel."""
    overlay: dict[str, str] = {}
    for key, _ in config.entries():
        if store.get(key) is not None:
            overlay[key] = SENTINEL
            logger.info("Redacting value for key '%s'", key)
    if not overlay:
        return config
    return Config.parse_map(overlay, description=REDACTED_ORIGIN).with_fallback(config)


def reveal(config: Config, store: SecretStore) -> Config:
    """Replace every redacted value with its cleartext from ``store``.

    Raises:
        MissingKeyError: Some redacted keys are not in the store. Nothing is
            revealed in that case.
    """
    secrets: dict[str, str] = {}
    missing: list[str] = []
    for key, value in config.entries():
        if not is_redacted(value):
            continue
        secret = store.get(key)
        if secret is None:
            logger.warning("Cannot find entry for key '%s' in the key store", key)
            missing.append(key)
        else:
            secrets[key] = secret
    if missing:
        raise MissingKeyError(missing, origins=_origins(config, missing))
    if not secrets:
        return config
    return Config.parse_map(secrets, description=REVEALED_ORIGIN).with_fallback(config)


def upsert(config: Config, store: SecretStore) -> SecretStore:
    """Insert or update a store entry for every leaf of ``config``.

    Redacted values carry no new information: they are skipped when the key
    is already stored and are an error when it is not.

    Raises:
        InvalidEntryError: A leaf is a system property or not a string.
        MissingKeyError: Redacted leaves whose keys are not in the store.
    """
    entries = config.entries()
    for key, value in entries:
        assert_valid_secret(config, key, value)

    pending: dict[str, str] = {}
    missing: list[str] = []
    for key, value in entries:
        if not is_redacted(value):
            pending[key] = value
        elif store.contains(key):
            logger.warning("Not updating redacted value for key '%s'", key)
        else:
            missing.append(key)
    if missing:
        raise MissingKeyError(missing, origins=_origins(config, missing))

    _commit(store, pending)
    return store


def update(config: Config, store: SecretStore) -> SecretStore:
    """Update store entries for the leaves of ``config``; every key must exist.

    Raises:
        MissingKeyError: Keys of ``config`` that are not in the store.
        InvalidEntryError: A leaf is a system property or not a string.
    """
    entries = config.entries()
    missing = [key for key, _ in entries if not store.contains(key)]
    if missing:
        raise MissingKeyError(missing, origins=_origins(config, missing))

    pending: dict[str, str] = {}
    for key, value in entries:
        assert_valid_secret(config, key, value)
        if is_redacted(value):
            logger.warning("Not updating redacted value for key '%s'", key)
        else:
            pending[key] = value

    _commit(store, pending)
    return store


def _commit(store: SecretStore, pending: dict[str, str]) -> None:
    for key, value in pending.items():
        store.put(key, value)
    logger.debug("Wrote %d entries to the key store", len(pending))


def _origins(config: Config, keys: Sequence[str]) -> dict[str, str]:
    return {key: config.origin_description(key) for key in keys}
