"""Atomic file replacement: write a sibling temp file, then rename it over the target."""

from __future__ import annotations

from contextlib import suppress
import errno
import logging
import os
from pathlib import Path
import stat
import tempfile
from typing import TYPE_CHECKING, BinaryIO

from hoconvault.errors import IOFailureError

if TYPE_CHECKING:
    from collections.abc import Callable

logger = logging.getLogger(__name__)


def atomic_write(path: str | Path, write: Callable[[BinaryIO], None]) -> None:
    """Replace ``path`` with the bytes ``write`` produces.

    The temp file is created in the target's directory so the final
    ``os.replace`` never crosses a filesystem. On any failure the temp file
    is removed and the target is left as it was.

    Raises:
        IOFailureError: The temp file could not be written or renamed.
    """
    target = Path(path)
    directory = target.parent
    tmp: str | None = None
    try:
        fd, tmp = tempfile.mkstemp(
            prefix=f".{target.name}.", suffix=".tmp", dir=directory
        )
        with os.fdopen(fd, "wb") as fh:
            write(fh)
            fh.flush()
            os.fsync(fh.fileno())
        _copy_mode(target, tmp)
        os.replace(tmp, target)
        tmp = None
    except OSError as exc:
        if exc.errno == errno.EXDEV:
            raise IOFailureError(
                f"Cannot atomically replace {target}: temp file is on another device",
                path=str(target),
            ) from exc
        raise IOFailureError(
            f"Cannot write {target}: {exc.strerror or exc}", path=str(target)
        ) from exc
    finally:
        if tmp is not None:
            with suppress(FileNotFoundError):
                os.unlink(tmp)
    logger.debug("Replaced %s", target)


def atomic_write_bytes(path: str | Path, data: bytes) -> None:
    atomic_write(path, lambda fh: fh.write(data))


def atomic_write_text(path: str | Path, text: str, *, encoding: str = "utf-8") -> None:
    atomic_write_bytes(path, text.encode(encoding))


def _copy_mode(target: Path, tmp: str) -> None:
    # mkstemp creates 0600; keep the permissions of a file being replaced.
    try:
        mode = stat.S_IMODE(target.stat().st_mode)
    except FileNotFoundError:
        return
    os.chmod(tmp, mode)
