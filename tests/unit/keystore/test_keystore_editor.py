from __future__ import annotations

import io

import pytest

from hoconvault.errors import MissingKeyError
from hoconvault.hocon import Config
from hoconvault.keystore import KeyStoreEditor, KeyStoreType, SecretStore

pytestmark = pytest.mark.unit


def test_fluent_put_delete_chain(editor: KeyStoreEditor) -> None:
    result = editor.put("a", "1").put("b", "2").delete("a")

    assert result is editor
    assert editor.get("a") is None
    assert editor.get("b") == "2"


def test_upsert_accepts_flat_mappings(editor: KeyStoreEditor) -> None:
    editor.upsert({"db.user": "scott", "db.password": "tiger"})

    assert editor.get("db.password") == "tiger"
    assert editor.contains("db.user")


def test_update_accepts_flat_mappings(editor: KeyStoreEditor) -> None:
    editor.update({"Config.Redacted": "NEW_VALUE"})

    assert editor.get("Config.Redacted") == "NEW_VALUE"


def test_update_with_unknown_key_raises(editor: KeyStoreEditor) -> None:
    with pytest.raises(MissingKeyError):
        editor.update({"unknown": "x"})


def test_rejects_other_config_inputs(editor: KeyStoreEditor) -> None:
    with pytest.raises(TypeError):
        editor.upsert(["not", "a", "mapping"])  # type: ignore[arg-type]


def test_redact_and_reveal_delegate(editor: KeyStoreEditor) -> None:
    config = Config.parse_string('Config.Secret = "SECRET"')

    redacted = editor.redact(config)

    assert editor.is_redacted(redacted.get("Config.Secret"))
    assert editor.reveal(redacted) == config


def test_generate_then_get_secret_key(editor: KeyStoreEditor) -> None:
    editor.generate("signing", "HmacSHA512", 512)

    entry = editor.get_secret_key("signing")
    assert entry is not None
    assert entry.algorithm == "HmacSHA512"
    assert editor.get("signing").startswith("ENC(HmacSHA512:")


def test_to_path_and_from_path(tmp_path, editor: KeyStoreEditor, password: str) -> None:
    path = tmp_path / "ks.jceks"

    editor.put("k", "v").to(path)
    reopened = KeyStoreEditor.from_path(path, password, KeyStoreType.JCEKS)

    assert reopened.get("k") == "v"
    assert reopened.get("Config.Secret") == "SECRET"


def test_stream_round_trip(editor: KeyStoreEditor, password: str) -> None:
    buffer = io.BytesIO()
    editor.to_stream(buffer)
    buffer.seek(0)

    assert KeyStoreEditor.from_stream(buffer, password).get("Config.Redacted") == "REDACTED"


def test_create_starts_empty(password: str) -> None:
    editor = KeyStoreEditor.create(password, KeyStoreType.PKCS12, iterations=1_000)

    assert isinstance(editor.store, SecretStore)
    assert len(editor.store) == 0
    assert editor.store.store_type is KeyStoreType.PKCS12
