"""Redact / reveal / upsert / update between configs and a store."""

from __future__ import annotations

import logging

from hypothesis import given, settings
from hypothesis import strategies as st
import pytest

from hoconvault.errors import InvalidEntryError, InvalidEntryReason, MissingKeyError
from hoconvault.hocon import Config
from hoconvault.keystore import (
    SENTINEL,
    SecretStore,
    assert_valid_secret,
    is_redacted,
    redact,
    reveal,
    update,
    upsert,
)
from hoconvault.keystore.engine import REDACTED_ORIGIN

pytestmark = pytest.mark.unit


@pytest.fixture
def app_config(fixtures_dir) -> Config:
    return Config.parse_file(fixtures_dir / "application.conf")


# --- Sentinel ---


def test_sentinel_is_five_asterisks() -> None:
    assert SENTINEL == "*****"
    assert is_redacted("*****")
    assert is_redacted("******")
    assert is_redacted("***** trailing")
    assert not is_redacted("****")
    assert not is_redacted(" *****")
    assert not is_redacted(5)
    assert not is_redacted(None)


@settings(max_examples=10, deadline=None, derandomize=True)
@given(st.text())
def test_anything_after_the_sentinel_is_redacted(suffix: str) -> None:
    assert is_redacted(SENTINEL + suffix)


@settings(max_examples=10, deadline=None, derandomize=True)
@given(st.text().filter(lambda s: not s.startswith("*")))
def test_four_stars_prefix_is_never_redacted(suffix: str) -> None:
    assert not is_redacted("****" + suffix)


# --- Redact / reveal ---


def test_redact_replaces_stored_keys(app_config: Config, secret_store: SecretStore) -> None:
    redacted = redact(app_config, secret_store)

    assert redacted.get_string("Config.Secret") == SENTINEL
    assert redacted.get_string("Config.Redacted") == SENTINEL
    assert redacted.get_string("Config.NoSecret") == "NO_SECRET"
    assert redacted.get_string("Config.FourStars") == "****"
    assert redacted.origin_description("Config.Secret") == REDACTED_ORIGIN


def test_redact_without_matches_returns_config_unchanged(
    app_config: Config, store: SecretStore
) -> None:
    assert redact(app_config, store) == app_config


def test_redact_then_reveal_restores_values(
    app_config: Config, secret_store: SecretStore
) -> None:
    revealed = reveal(redact(app_config, secret_store), secret_store)

    assert revealed == app_config


def test_reveal_collects_every_missing_key(store: SecretStore, caplog) -> None:
    config = Config.parse_string(
        'a = "*****"\nb = "*****"\nc = "plain"', description="app.conf"
    )

    with caplog.at_level(logging.WARNING, logger="hoconvault.keystore"):
        with pytest.raises(MissingKeyError) as exc:
            reveal(config, store)

    assert set(exc.value.keys) == {"a", "b"}
    assert exc.value.origins["a"] == "app.conf"
    assert "'a' key from app.conf" in str(exc.value)
    assert "Cannot find entry for key 'a'" in caplog.text


def test_reveal_leaves_unredacted_values_alone(secret_store: SecretStore) -> None:
    config = Config.parse_string('Config.Secret = "visible"')

    assert reveal(config, secret_store).get_string("Config.Secret") == "visible"


# --- Validation ---


def test_system_properties_are_not_valid_secrets(tmp_path, store: SecretStore) -> None:
    path = tmp_path / "app.conf"
    path.write_text('app.secret = "x"\n')
    config = Config.load(path)

    with pytest.raises(InvalidEntryError) as exc:
        upsert(config, store)

    assert exc.value.reason is InvalidEntryReason.SYSTEM_PROPERTY
    assert len(store) == 0


def test_non_string_values_are_not_valid_secrets(store: SecretStore) -> None:
    config = Config.parse_string('name = "x"\nport = 8080')

    with pytest.raises(InvalidEntryError) as exc:
        upsert(config, store)

    assert exc.value.reason is InvalidEntryReason.NON_STRING_VALUE
    assert exc.value.key == "port"
    assert len(store) == 0


def test_assert_valid_secret_accepts_file_strings() -> None:
    config = Config.parse_string('a = "x"')

    assert_valid_secret(config, "a", "x")


# --- Upsert ---


def test_upsert_inserts_and_updates(secret_store: SecretStore) -> None:
    config = Config.parse_string('Config.Secret = "NEW"\nnew.key = "v"')

    upsert(config, secret_store)

    assert secret_store.get("Config.Secret") == "NEW"
    assert secret_store.get("new.key") == "v"


def test_upsert_skips_redacted_values_already_stored(
    secret_store: SecretStore, caplog
) -> None:
    config = Config.parse_string('Config.Secret = "*****"\nother = "v"')

    with caplog.at_level(logging.WARNING, logger="hoconvault.keystore"):
        upsert(config, secret_store)

    assert secret_store.get("Config.Secret") == "SECRET"
    assert secret_store.get("other") == "v"
    assert "Not updating redacted value for key 'Config.Secret'" in caplog.text


def test_upsert_redacted_absent_key_fails_without_writing(store: SecretStore) -> None:
    config = Config.parse_string('missing = "*****"\nother = "v"')

    with pytest.raises(MissingKeyError) as exc:
        upsert(config, store)

    assert exc.value.keys == ("missing",)
    assert len(store) == 0


# --- Update ---


def test_update_missing_key_leaves_store_empty(store: SecretStore) -> None:
    with pytest.raises(MissingKeyError) as exc:
        update(Config.parse_string('k = "v"'), store)

    assert exc.value.keys == ("k",)
    assert len(store) == 0


def test_update_rewrites_existing_keys(secret_store: SecretStore) -> None:
    update(Config.parse_string('Config.Redacted = "NEW_VALUE"'), secret_store)

    assert secret_store.get("Config.Redacted") == "NEW_VALUE"


def test_update_is_all_or_nothing(secret_store: SecretStore) -> None:
    config = Config.parse_string('Config.Secret = "NEW"\nabsent = "v"')

    with pytest.raises(MissingKeyError):
        update(config, secret_store)

    assert secret_store.get("Config.Secret") == "SECRET"


def test_update_skips_redacted_values(secret_store: SecretStore) -> None:
    update(Config.parse_string('Config.Secret = "*****"'), secret_store)

    assert secret_store.get("Config.Secret") == "SECRET"


def test_update_with_non_string_leaf_changes_nothing(secret_store: SecretStore) -> None:
    config = Config.parse_string('Config.Secret = "NEW"\nConfig.Redacted = 42')

    with pytest.raises(InvalidEntryError) as exc:
        update(config, secret_store)

    assert exc.value.reason is InvalidEntryReason.NON_STRING_VALUE
    assert exc.value.key == "Config.Redacted"
    assert secret_store.get("Config.Secret") == "SECRET"
    assert secret_store.get("Config.Redacted") == "REDACTED"


# --- Round trip ---

_keys = st.text(alphabet="abcdefgh", min_size=1, max_size=6)
_values = st.text(alphabet=st.characters(codec="utf-8", exclude_characters="*"), max_size=12)


@settings(max_examples=10, deadline=None, derandomize=True)
@given(st.dictionaries(_keys, st.tuples(_values, st.booleans()), min_size=1, max_size=6))
def test_reveal_undoes_redact(leaves: dict[str, tuple[str, bool]]) -> None:
    config = Config.parse_map({key: value for key, (value, _) in leaves.items()})
    store = SecretStore.create("pw", iterations=1_000)
    for key, (value, stored) in leaves.items():
        if stored:
            store.put(key, value)

    redacted = redact(config, store)

    assert reveal(redacted, store) == config
    for key, (value, stored) in leaves.items():
        assert redacted.get(key) == (SENTINEL if stored else value)
