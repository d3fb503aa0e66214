"""Secret key algorithms supported by ``SecretStore.generate``."""

from __future__ import annotations

from dataclasses import dataclass
import secrets

from hoconvault.errors import AlgorithmUnavailableError

# Algorithm name for entries written by ``SecretStore.put``: the key bytes are
# the UTF-8 encoding of the stored password text.
PBE_ALGORITHM = "PBE"


@dataclass(frozen=True)
class KeyAlgorithm:
    """A generator spec: canonical name plus the key sizes it accepts."""

    name: str
    sizes: tuple[int, ...] | None = None  # None: any positive multiple of 8

    def check_size(self, size: int) -> None:
        if size <= 0 or size % 8:
            raise AlgorithmUnavailableError(
                self.name, size, reason="key size must be a positive multiple of 8"
            )
        if self.sizes is not None and size not in self.sizes:
            allowed = ", ".join(str(s) for s in self.sizes)
            raise AlgorithmUnavailableError(
                self.name, size, reason=f"supported sizes are {allowed}"
            )

    def generate(self, size: int) -> bytes:
        self.check_size(size)
        return secrets.token_bytes(size // 8)


_ALGORITHMS = {
    algorithm.name.lower(): algorithm
    for algorithm in (
        KeyAlgorithm("AES", sizes=(128, 192, 256)),
        KeyAlgorithm("HmacMD5"),
        KeyAlgorithm("HmacSHA1"),
        KeyAlgorithm("HmacSHA224"),
        KeyAlgorithm("HmacSHA256"),
        KeyAlgorithm("HmacSHA384"),
        KeyAlgorithm("HmacSHA512"),
    )
}


def lookup(name: str, size: int) -> KeyAlgorithm:
    """Find a generator by case-insensitive name (``HMacSHA256`` -> ``HmacSHA256``)."""
    algorithm = _ALGORITHMS.get(name.strip().lower())
    if algorithm is None:
        raise AlgorithmUnavailableError(name, size, reason="unknown algorithm")
    return algorithm


def available() -> list[str]:
    return sorted(a.name for a in _ALGORITHMS.values())
