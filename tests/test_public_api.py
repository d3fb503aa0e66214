"""Public surface of the top-level package."""

from __future__ import annotations

import logging

import pytest

import hoconvault

pytestmark = pytest.mark.smoke


def test_version_is_a_string() -> None:
    assert isinstance(hoconvault.__version__, str)
    assert hoconvault.__version__


def test_exports_resolve() -> None:
    for name in hoconvault.__all__:
        assert getattr(hoconvault, name) is not None


def test_library_logger_has_null_handler() -> None:
    handlers = logging.getLogger("hoconvault").handlers

    assert any(isinstance(h, logging.NullHandler) for h in handlers)


def test_redact_reveal_through_public_api(tmp_path) -> None:
    editor = hoconvault.KeyStoreEditor.create("pw", iterations=1_000).put("db.password", "tiger")
    config = hoconvault.Config.parse_string('db { user = "scott", password = "tiger" }')

    redacted = editor.redact(config)
    editor.to(tmp_path / "ks.jceks")
    reopened = hoconvault.KeyStoreEditor.from_path(tmp_path / "ks.jceks", "pw")

    assert redacted.get_string("db.password") == hoconvault.SENTINEL
    assert reopened.reveal(redacted) == config
