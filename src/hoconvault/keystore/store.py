"""Password-protected secret store.

A ``SecretStore`` maps aliases to opaque ``SecretKey`` entries and is held in
memory between ``open``/``create`` and ``save``. On disk it is a JSON
envelope:

- ``kdf``: PBKDF2-HMAC-SHA256 salt and work factor used to turn the store
  password into a Fernet key,
- ``check``: a Fernet token over a fixed marker, so a wrong password is
  reported as such instead of as corruption,
- ``entries``: one Fernet token per alias. Each token carries the alias,
  algorithm and key bytes, binding an entry to the name it was stored under.

The envelope records the keystore type it was created with; opening it as a
different type is refused.
"""

from __future__ import annotations

import base64
import binascii
from dataclasses import dataclass, field
from datetime import UTC, datetime
import json
import logging
from pathlib import Path
import secrets
from typing import TYPE_CHECKING, Any, BinaryIO

from cryptography.fernet import Fernet, InvalidToken
from cryptography.hazmat.primitives import hashes
from cryptography.hazmat.primitives.kdf.pbkdf2 import PBKDF2HMAC

from hoconvault import _fs
from hoconvault.errors import (
    InvalidEntryError,
    InvalidEntryReason,
    StoreOpenCause,
    StoreOpenError,
)

from . import algorithms
from .algorithms import PBE_ALGORITHM
from .types import KeyStoreType

if TYPE_CHECKING:
    from collections.abc import Iterator

logger = logging.getLogger(__name__)

FORMAT_NAME = "hoconvault-keystore"
FORMAT_VERSION = 1
KDF_NAME = "pbkdf2-sha256"
DEFAULT_ITERATIONS = 390_000
SALT_BYTES = 16

_CHECK_PLAINTEXT = b"hoconvault:password-check"


@dataclass(frozen=True)
class SecretKey:
    """An opaque key entry: algorithm name plus raw key bytes."""

    algorithm: str
    encoded: bytes = field(repr=False)
    created_at: str = ""

    @property
    def is_password(self) -> bool:
        return self.algorithm == PBE_ALGORITHM

    def marker(self) -> str:
        """``ENC(<algorithm>:<base64 raw key>)``."""
        return f"ENC({self.algorithm}:{base64.b64encode(self.encoded).decode('ascii')})"


def _derive_fernet(password: str, salt: bytes, iterations: int) -> Fernet:
    kdf = PBKDF2HMAC(
        algorithm=hashes.SHA256(),
        length=32,
        salt=salt,
        iterations=iterations,
    )
    return Fernet(base64.urlsafe_b64encode(kdf.derive(password.encode("utf-8"))))


def _now() -> str:
    return datetime.now(UTC).isoformat(timespec="seconds")


class SecretStore:
    """In-memory keystore bound to one password and one keystore type."""

    def __init__(
        self,
        store_type: KeyStoreType,
        *,
        fernet: Fernet,
        salt: bytes,
        iterations: int,
        entries: dict[str, SecretKey] | None = None,
    ) -> None:
        self._type = store_type
        self._fernet = fernet
        self._salt = salt
        self._iterations = iterations
        self._entries: dict[str, SecretKey] = dict(entries or {})

    # --- Lifecycle ---

    @classmethod
    def create(
        cls,
        password: str,
        store_type: KeyStoreType = KeyStoreType.JCEKS,
        *,
        iterations: int = DEFAULT_ITERATIONS,
    ) -> SecretStore:
        """Return a new, empty store."""
        _require_supported(store_type)
        salt = secrets.token_bytes(SALT_BYTES)
        return cls(
            store_type,
            fernet=_derive_fernet(password, salt, iterations),
            salt=salt,
            iterations=iterations,
        )

    @classmethod
    def open(
        cls,
        path: str | Path,
        password: str,
        store_type: KeyStoreType = KeyStoreType.JCEKS,
    ) -> SecretStore:
        """Load the store saved at ``path``.

        Raises:
            StoreOpenError: The file is missing or unreadable (``IO``), the
                password is wrong (``WRONG_PASSWORD``), the type is not
                supported or does not match the file (``UNKNOWN_TYPE``,
                ``TYPE_MISMATCH``), or the content is damaged (``CORRUPT``).
        """
        _require_supported(store_type)
        path = Path(path)
        try:
            with path.open("rb") as reader:
                return cls.load(reader, password, store_type, source=str(path))
        except FileNotFoundError as exc:
            raise StoreOpenError(
                f"Key store {path} does not exist",
                cause=StoreOpenCause.IO,
                path=str(path),
                hint="Pass --create to start a new key store.",
            ) from exc
        except OSError as exc:
            raise StoreOpenError(
                f"Could not read key store {path}: {exc.strerror or exc}",
                cause=StoreOpenCause.IO,
                path=str(path),
            ) from exc

    @classmethod
    def load(
        cls,
        reader: BinaryIO,
        password: str,
        store_type: KeyStoreType = KeyStoreType.JCEKS,
        *,
        source: str = "<stream>",
    ) -> SecretStore:
        """Load a store from a binary stream; see ``open`` for failures."""
        _require_supported(store_type)
        document = _read_document(reader.read(), source)

        try:
            kdf = document["kdf"]
            if kdf["name"] != KDF_NAME:
                raise ValueError(f"unsupported kdf {kdf['name']!r}")
            salt = base64.b64decode(kdf["salt"], validate=True)
            iterations = int(kdf["iterations"])
            check = document["check"].encode("ascii")
            tokens = dict(document["entries"])
        except (AttributeError, KeyError, TypeError, ValueError, binascii.Error) as exc:
            raise _corrupt(source, f"bad envelope: {exc}") from exc

        fernet = _derive_fernet(password, salt, iterations)
        try:
            if fernet.decrypt(check) != _CHECK_PLAINTEXT:
                raise _corrupt(source, "password check mismatch")
        except InvalidToken as exc:
            raise StoreOpenError(
                f"Wrong password for key store {source}",
                cause=StoreOpenCause.WRONG_PASSWORD,
                path=source,
            ) from exc

        # Only a caller holding the password learns the recorded type.
        stored_type = document.get("type")
        if stored_type != store_type.value:
            raise StoreOpenError(
                f"Key store {source} is of type {stored_type}, not {store_type.value}",
                cause=StoreOpenCause.TYPE_MISMATCH,
                path=source,
                hint=f"Open it with --store-type {str(stored_type).lower()}.",
            )

        entries = {
            alias: _decrypt_entry(fernet, alias, token, source)
            for alias, token in tokens.items()
        }
        logger.debug("Loaded %d entries from %s", len(entries), source)
        return cls(
            store_type, fernet=fernet, salt=salt, iterations=iterations, entries=entries
        )

    def save(self, path: str | Path) -> None:
        """Atomically replace ``path`` with this store.

        Raises:
            IOFailureError: The file could not be written; the previous
                content of ``path`` is untouched.
        """
        _fs.atomic_write(path, self.save_to_stream)
        logger.info("Saved key store %s (%d entries)", path, len(self._entries))

    def save_to_stream(self, writer: BinaryIO) -> None:
        writer.write(self._serialise())

    # --- Entries ---

    @property
    def store_type(self) -> KeyStoreType:
        return self._type

    @property
    def iterations(self) -> int:
        return self._iterations

    def aliases(self) -> list[str]:
        return sorted(self._entries)

    def contains(self, key: str) -> bool:
        return key in self._entries

    def get_secret_key(self, alias: str) -> SecretKey | None:
        return self._entries.get(alias)

    def get(self, key: str) -> str | None:
        """Cleartext for password entries, the ``ENC(...)`` marker for generated keys."""
        entry = self._entries.get(key)
        if entry is None:
            return None
        if entry.is_password:
            return entry.encoded.decode("utf-8")
        return entry.marker()

    def put(self, key: str, secret: str) -> None:
        """Store ``secret`` under ``key``, replacing any existing entry."""
        if not isinstance(secret, str):
            raise InvalidEntryError(InvalidEntryReason.NON_STRING_VALUE, key)
        self._entries[key] = SecretKey(PBE_ALGORITHM, secret.encode("utf-8"), _now())
        logger.debug("Stored value for key '%s'", key)

    def delete(self, key: str) -> bool:
        """Remove ``key``; returns whether it was present. Absent keys are a no-op."""
        removed = self._entries.pop(key, None) is not None
        if not removed:
            logger.debug("No entry for key '%s' to delete", key)
        return removed

    def generate(self, alias: str, algorithm: str, size: int) -> str:
        """Generate and store a random key; returns ``ENC(<algorithm>:<base64>)``.

        Raises:
            AlgorithmUnavailableError: Unknown algorithm or unsupported size.
        """
        spec = algorithms.lookup(algorithm, size)
        entry = SecretKey(spec.name, spec.generate(size), _now())
        self._entries[alias] = entry
        logger.info("Generated %d-bit %s key for alias '%s'", size, spec.name, alias)
        return entry.marker()

    def __contains__(self, key: object) -> bool:
        return key in self._entries

    def __iter__(self) -> Iterator[str]:
        return iter(self.aliases())

    def __len__(self) -> int:
        return len(self._entries)

    def __repr__(self) -> str:
        return f"SecretStore(type={self._type.value}, entries={len(self._entries)})"

    # --- Serialisation ---

    def _serialise(self) -> bytes:
        entries = {
            alias: self._fernet.encrypt(_entry_payload(alias, entry)).decode("ascii")
            for alias, entry in sorted(self._entries.items())
        }
        document = {
            "format": FORMAT_NAME,
            "version": FORMAT_VERSION,
            "type": self._type.value,
            "kdf": {
                "name": KDF_NAME,
                "salt": base64.b64encode(self._salt).decode("ascii"),
                "iterations": self._iterations,
            },
            "check": self._fernet.encrypt(_CHECK_PLAINTEXT).decode("ascii"),
            "entries": entries,
        }
        return (json.dumps(document, indent=2) + "\n").encode("utf-8")


def _require_supported(store_type: KeyStoreType) -> None:
    if not store_type.is_supported:
        raise StoreOpenError(
            f"Unsupported key store type {store_type.value}",
            cause=StoreOpenCause.UNKNOWN_TYPE,
            hint="Use one of: "
            + ", ".join(t.value.lower() for t in KeyStoreType.supported()),
        )


def _corrupt(source: str, detail: str) -> StoreOpenError:
    return StoreOpenError(
        f"Key store {source} is corrupt ({detail})",
        cause=StoreOpenCause.CORRUPT,
        path=source,
    )


def _read_document(data: bytes, source: str) -> dict[str, Any]:
    try:
        document = json.loads(data.decode("utf-8"))
    except (UnicodeDecodeError, ValueError) as exc:
        raise _corrupt(source, "not a key store document") from exc
    if not isinstance(document, dict) or document.get("format") != FORMAT_NAME:
        raise _corrupt(source, "not a key store document")
    if document.get("version") != FORMAT_VERSION:
        raise _corrupt(source, f"unsupported version {document.get('version')!r}")
    return document


def _entry_payload(alias: str, entry: SecretKey) -> bytes:
    return json.dumps(
        {
            "alias": alias,
            "algorithm": entry.algorithm,
            "key": base64.b64encode(entry.encoded).decode("ascii"),
            "created": entry.created_at,
        }
    ).encode("utf-8")


def _decrypt_entry(fernet: Fernet, alias: str, token: Any, source: str) -> SecretKey:
    try:
        payload = json.loads(fernet.decrypt(str(token).encode("ascii")))
        if payload["alias"] != alias:
            raise ValueError(f"entry stored as '{payload['alias']}'")
        return SecretKey(
            payload["algorithm"],
            base64.b64decode(payload["key"], validate=True),
            payload.get("created", ""),
        )
    except (InvalidToken, KeyError, TypeError, ValueError, binascii.Error) as exc:
        raise _corrupt(source, f"unreadable entry '{alias}'") from exc
