"""Fluent façade binding configs to secret store mutations."""

from __future__ import annotations

from collections.abc import Mapping
from typing import TYPE_CHECKING, BinaryIO

from hoconvault.hocon import Config

from . import engine
from .store import DEFAULT_ITERATIONS, SecretKey, SecretStore
from .types import KeyStoreType

if TYPE_CHECKING:
    from pathlib import Path


class KeyStoreEditor:
    """Edit a ``SecretStore`` with configs or flat ``{dotted.key: value}`` maps.

    Mutating methods return ``self`` so calls chain::

        KeyStoreEditor.from_path(path, "pw").upsert(config).to(path)
    """

    def __init__(self, store: SecretStore) -> None:
        self._store = store

    @classmethod
    def with_store(cls, store: SecretStore) -> KeyStoreEditor:
        return cls(store)

    @classmethod
    def from_path(
        cls,
        path: str | Path,
        password: str,
        store_type: KeyStoreType = KeyStoreType.JCEKS,
    ) -> KeyStoreEditor:
        return cls(SecretStore.open(path, password, store_type))

    @classmethod
    def from_stream(
        cls,
        reader: BinaryIO,
        password: str,
        store_type: KeyStoreType = KeyStoreType.JCEKS,
    ) -> KeyStoreEditor:
        return cls(SecretStore.load(reader, password, store_type))

    @classmethod
    def create(
        cls,
        password: str,
        store_type: KeyStoreType = KeyStoreType.JCEKS,
        *,
        iterations: int = DEFAULT_ITERATIONS,
    ) -> KeyStoreEditor:
        return cls(SecretStore.create(password, store_type, iterations=iterations))

    @property
    def store(self) -> SecretStore:
        return self._store

    # --- Config operations ---

    def redact(self, config: Config) -> Config:
        return engine.redact(config, self._store)

    def reveal(self, config: Config) -> Config:
        return engine.reveal(config, self._store)

    def upsert(self, config: Config | Mapping[str, str]) -> KeyStoreEditor:
        engine.upsert(_as_config(config), self._store)
        return self

    def update(self, config: Config | Mapping[str, str]) -> KeyStoreEditor:
        engine.update(_as_config(config), self._store)
        return self

    @staticmethod
    def is_redacted(value: object) -> bool:
        return engine.is_redacted(value)

    # --- Single entries ---

    def put(self, key: str, secret: str) -> KeyStoreEditor:
        self._store.put(key, secret)
        return self

    def get(self, key: str) -> str | None:
        return self._store.get(key)

    def get_secret_key(self, alias: str) -> SecretKey | None:
        return self._store.get_secret_key(alias)

    def contains(self, key: str) -> bool:
        return self._store.contains(key)

    def delete(self, key: str) -> KeyStoreEditor:
        self._store.delete(key)
        return self

    def generate(self, alias: str, algorithm: str, size: int) -> KeyStoreEditor:
        self._store.generate(alias, algorithm, size)
        return self

    # --- Persistence ---

    def to(self, path: str | Path) -> KeyStoreEditor:
        """Atomically save the store to ``path``."""
        self._store.save(path)
        return self

    def to_stream(self, writer: BinaryIO) -> KeyStoreEditor:
        self._store.save_to_stream(writer)
        return self


def _as_config(config: Config | Mapping[str, str]) -> Config:
    if isinstance(config, Config):
        return config
    if isinstance(config, Mapping):
        return Config.parse_map(config)
    raise TypeError(f"Expected Config or mapping, got {type(config).__name__}")
