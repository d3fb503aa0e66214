from __future__ import annotations

import errno
import os
import stat

import pytest

from hoconvault import _fs
from hoconvault.errors import IOFailureError

pytestmark = pytest.mark.unit


def test_atomic_write_text_replaces_content(tmp_path) -> None:
    target = tmp_path / "app.conf"
    target.write_text("old\n")

    _fs.atomic_write_text(target, "new\n")

    assert target.read_text() == "new\n"
    assert [p.name for p in tmp_path.iterdir()] == ["app.conf"]


def test_atomic_write_creates_missing_target(tmp_path) -> None:
    target = tmp_path / "fresh.bin"

    _fs.atomic_write_bytes(target, b"\x00\x01")

    assert target.read_bytes() == b"\x00\x01"


def test_atomic_write_keeps_permissions(tmp_path) -> None:
    target = tmp_path / "app.conf"
    target.write_text("old\n")
    target.chmod(0o640)

    _fs.atomic_write_text(target, "new\n")

    assert stat.S_IMODE(target.stat().st_mode) == 0o640


def test_failed_writer_leaves_target_and_no_temp(tmp_path) -> None:
    target = tmp_path / "app.conf"
    target.write_text("original\n")

    def explode(fh) -> None:
        fh.write(b"partial")
        raise OSError(errno.ENOSPC, "No space left on device")

    with pytest.raises(IOFailureError, match="No space left"):
        _fs.atomic_write(target, explode)

    assert target.read_text() == "original\n"
    assert [p.name for p in tmp_path.iterdir()] == ["app.conf"]


def test_crash_before_rename_leaves_original(tmp_path, monkeypatch) -> None:
    target = tmp_path / "app.conf"
    target.write_text("original\n")

    def fail_replace(src, dst) -> None:
        raise OSError(errno.EXDEV, "Invalid cross-device link")

    monkeypatch.setattr(os, "replace", fail_replace)

    with pytest.raises(IOFailureError, match="another device"):
        _fs.atomic_write_text(target, "redacted\n")

    assert target.read_text() == "original\n"
    assert [p.name for p in tmp_path.iterdir()] == ["app.conf"]


def test_missing_directory_is_io_failure(tmp_path) -> None:
    with pytest.raises(IOFailureError) as exc:
        _fs.atomic_write_text(tmp_path / "nope" / "app.conf", "x")

    assert exc.value.path == str(tmp_path / "nope" / "app.conf")
