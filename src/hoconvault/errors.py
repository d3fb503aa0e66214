"""Exception hierarchy for hoconvault."""

from __future__ import annotations

from enum import Enum
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from collections.abc import Iterable, Iterator, Mapping


class HoconVaultError(Exception):
    """Base exception for all hoconvault errors."""

    def __init__(self, message: str, *, hint: str | None = None) -> None:
        super().__init__(message)
        self.hint = hint


# --- Config model ---


class ConfigError(HoconVaultError):
    """A HOCON document could not be parsed, resolved, or read."""


class ParseError(ConfigError):
    """Malformed HOCON or a config file that could not be read."""

    def __init__(
        self, message: str, *, path: str | None = None, hint: str | None = None
    ) -> None:
        super().__init__(message, hint=hint)
        self.path = path


class ConfigMissingError(ConfigError, KeyError):
    """A typed accessor was asked for a path the config does not hold."""

    def __init__(self, path: str) -> None:
        super().__init__(f"No configuration setting found for key '{path}'")
        self.path = path

    def __str__(self) -> str:
        return str(self.args[0])


class ConfigWrongTypeError(ConfigError):
    """A typed accessor found a value of the wrong type."""

    def __init__(self, path: str, expected: str, actual: str) -> None:
        super().__init__(f"'{path}' has type {actual} rather than {expected}")
        self.path = path
        self.expected = expected
        self.actual = actual


class UnresolvedSubstitutionError(ConfigError):
    """One or more required ``${name}`` references could not be resolved."""

    def __init__(self, names: Iterable[str], *, detail: str | None = None) -> None:
        self.names = tuple(names)
        self.name = self.names[0] if self.names else ""
        listed = ", ".join(f"${{{n}}}" for n in self.names) or "<unknown>"
        message = f"Could not resolve substitution to a value: {listed}"
        if detail:
            message = f"{message} ({detail})"
        super().__init__(
            message,
            hint="Provide the missing fact or define the key in the configuration.",
        )


# --- Hierarchy ---


class HieraError(HoconVaultError):
    """Hierarchy description problems."""


class HierarchyMissingError(HieraError):
    """``hiera.conf`` is absent from the hierarchy root."""

    def __init__(self, path: str) -> None:
        super().__init__(
            f"Hierarchy description not found: {path}",
            hint="Create hiera.conf at the root with a `hierarchy = [...]` list.",
        )
        self.path = path


class HierarchyKeyMissingError(HieraError):
    """The hierarchy description has no ``hierarchy`` key."""

    def __init__(self, path: str) -> None:
        super().__init__(f"No 'hierarchy' list defined in {path}")
        self.path = path


# --- Keystore ---


class KeyStoreError(HoconVaultError):
    """Secret store failures."""


class StoreOpenCause(str, Enum):
    """Why a keystore could not be opened."""

    WRONG_PASSWORD = "wrong_password"
    UNKNOWN_TYPE = "unknown_type"
    TYPE_MISMATCH = "type_mismatch"
    IO = "io"
    CORRUPT = "corrupt"


class StoreOpenError(KeyStoreError):
    """The keystore could not be loaded."""

    def __init__(
        self,
        message: str,
        *,
        cause: StoreOpenCause,
        path: str | None = None,
        hint: str | None = None,
    ) -> None:
        super().__init__(message, hint=hint)
        self.cause = cause
        self.path = path


class AlgorithmUnavailableError(KeyStoreError):
    """No key generator exists for the requested algorithm and size."""

    def __init__(self, algorithm: str, size: int, *, reason: str | None = None) -> None:
        message = f"Cannot generate {algorithm} key of {size} bits"
        if reason:
            message = f"{message}: {reason}"
        super().__init__(message)
        self.algorithm = algorithm
        self.size = size


class MissingKeyError(KeyStoreError, KeyError):
    """One or more expected keys are absent from the store."""

    def __init__(
        self, keys: Iterable[str], *, origins: Mapping[str, str] | None = None
    ) -> None:
        self.keys = tuple(keys)
        self.origins = dict(origins or {})
        lines = ["Could not find one or more entries in the key store:"]
        for key in self.keys:
            origin = self.origins.get(key)
            lines.append(f" - '{key}' key from {origin}" if origin else f" - '{key}'")
        super().__init__("\n".join(lines))

    def __str__(self) -> str:
        return str(self.args[0])


class InvalidEntryReason(str, Enum):
    """Why a config entry cannot be written to the store."""

    SYSTEM_PROPERTY = "system_property"
    NON_STRING_VALUE = "non_string_value"


class InvalidEntryError(KeyStoreError):
    """A config entry is not a storable secret."""

    def __init__(self, reason: InvalidEntryReason, key: str) -> None:
        if reason is InvalidEntryReason.SYSTEM_PROPERTY:
            message = f"'{key}' is a system property and cannot be stored"
        else:
            message = f"'{key}' does not have a string value"
        super().__init__(message)
        self.reason = reason
        self.key = key


# --- Filesystem ---


class IOFailureError(HoconVaultError):
    """A filesystem error while saving or replacing a file."""

    def __init__(
        self, message: str, *, path: str | None = None, hint: str | None = None
    ) -> None:
        super().__init__(message, hint=hint)
        self.path = path


# --- Tool settings and CLI ---


class SettingsError(HoconVaultError):
    """Tool settings validation or resolution failed."""


class CliError(HoconVaultError):
    """Command line usage errors."""


class ArgumentError(CliError):
    """A command argument is malformed."""


class UnknownCommandError(ArgumentError):
    """The command name is not recognised."""

    def __init__(self, command: str, *, known: Iterable[str] = ()) -> None:
        known = tuple(known)
        super().__init__(
            f"Unknown command '{command}'",
            hint=f"Use one of: {', '.join(known)}" if known else None,
        )
        self.command = command


def walk_exception_chain(exc: BaseException) -> Iterator[BaseException]:
    """Yield *exc* and its ``__cause__``/``__context__`` chain, with cycle protection."""
    seen: set[int] = set()
    stack: list[BaseException] = [exc]
    while stack:
        cur = stack.pop()
        if id(cur) in seen:
            continue
        seen.add(id(cur))
        yield cur

        # Push context first so the explicit cause is visited next.
        context = cur.__context__
        if isinstance(context, BaseException) and not cur.__suppress_context__:
            stack.append(context)
        cause = cur.__cause__
        if isinstance(cause, BaseException):
            stack.append(cause)
