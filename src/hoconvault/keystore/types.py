"""Keystore type identifiers."""

from __future__ import annotations

from contextlib import suppress
from enum import Enum
from pathlib import PurePath


class KeyStoreType(str, Enum):
    """Keystore container types; ``UNKNOWN`` cannot be opened or created."""

    JKS = "JKS"
    JCEKS = "JCEKS"
    PKCS12 = "PKCS12"
    UNKNOWN = "UNKNOWN"

    @classmethod
    def from_filename(cls, filename: str | PurePath) -> KeyStoreType:
        """Infer the type from the last extension, case-insensitively.

        ``.jks`` is JKS, ``.jceks`` is JCEKS, ``.p12`` and ``.pfx`` are PKCS12;
        anything else is UNKNOWN.
        """
        _, dot, extension = PurePath(filename).name.rpartition(".")
        if not dot:
            return cls.UNKNOWN
        return _EXTENSIONS.get(extension.lower(), cls.UNKNOWN)

    @classmethod
    def parse(cls, value: str | KeyStoreType) -> KeyStoreType:
        """Accept enum instances, values or names in any case."""
        if isinstance(value, KeyStoreType):
            return value
        text = value.strip().upper()
        with suppress(ValueError):
            return cls(text)
        raise ValueError(
            f"Unknown keystore type '{value}'; expected one of "
            + ", ".join(t.value.lower() for t in cls.supported())
        )

    @classmethod
    def supported(cls) -> tuple[KeyStoreType, ...]:
        return (cls.JKS, cls.JCEKS, cls.PKCS12)

    @property
    def is_supported(self) -> bool:
        return self is not KeyStoreType.UNKNOWN


_EXTENSIONS = {
    "jks": KeyStoreType.JKS,
    "jceks": KeyStoreType.JCEKS,
    "p12": KeyStoreType.PKCS12,
    "pfx": KeyStoreType.PKCS12,
}
