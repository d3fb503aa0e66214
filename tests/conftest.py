"""Pytest configuration and fixtures.

Provides environment isolation, fixture paths and low-cost key stores. The
isolation fixtures are autouse.
"""

from __future__ import annotations

from contextlib import suppress
import logging
import os
from pathlib import Path
import shutil

import pytest

from hoconvault.keystore import KeyStoreEditor, KeyStoreType, SecretStore
from hoconvault.settings import core as settings_core

FIXTURES = Path(__file__).parent / "fixtures"

# PBKDF2 work factor for test stores; production default is far higher.
TEST_ITERATIONS = 1_000

PASSWORD = "CHANGEME"

# =============================================================================
# Environment Isolation (Autouse)
# =============================================================================


@pytest.fixture(autouse=True)
def block_dotenv(request, monkeypatch):
    """Prevent python-dotenv from loading project .env files during tests.

    Opt-out: @pytest.mark.allow_dotenv
    """
    if request.node.get_closest_marker("allow_dotenv"):
        return
    with suppress(Exception):
        monkeypatch.setattr(
            "dotenv.load_dotenv", lambda *_args, **_kwargs: False, raising=False
        )
    monkeypatch.setattr(settings_core, "_DOTENV_LOADED", False)


@pytest.fixture(autouse=True)
def isolate_settings_env(monkeypatch, tmp_path_factory):
    """Clear HOCONVAULT_* variables and point settings files at empty paths."""
    for key in list(os.environ.keys()):
        if key.startswith("HOCONVAULT_"):
            monkeypatch.delenv(key, raising=False)
    empty = tmp_path_factory.mktemp("settings")
    monkeypatch.setenv("HOCONVAULT_PYPROJECT_PATH", str(empty / "pyproject.toml"))
    monkeypatch.setenv("HOCONVAULT_CONFIG_HOME", str(empty / "hoconvault.toml"))


@pytest.fixture(scope="session", autouse=True)
def quiet_noisy_libraries():
    """Suppress noisy third-party loggers."""
    logging.getLogger("pyhocon").setLevel(logging.WARNING)


# =============================================================================
# Fixture trees
# =============================================================================


@pytest.fixture
def fixtures_dir() -> Path:
    return FIXTURES


@pytest.fixture
def hiera_root() -> Path:
    return FIXTURES / "hiera_root"


@pytest.fixture
def simple_root() -> Path:
    return FIXTURES / "simple_root"


@pytest.fixture
def hiera_facts() -> dict[str, str]:
    return {
        "groupId": "com.richemont.dms.commerce",
        "artifactId": "dms-commerce-core",
        "env": "prd",
        "dtc": "chvsg",
        "hostname": "dtcmeawsp01",
    }


@pytest.fixture
def application_conf(tmp_path) -> Path:
    """A writable copy of the application config used by redact/reveal tests."""
    target = tmp_path / "application.conf"
    shutil.copyfile(FIXTURES / "application.conf", target)
    return target


# =============================================================================
# Key stores
# =============================================================================


@pytest.fixture
def password() -> str:
    return PASSWORD


@pytest.fixture
def store() -> SecretStore:
    """An empty JCEKS store with a cheap work factor."""
    return SecretStore.create(PASSWORD, KeyStoreType.JCEKS, iterations=TEST_ITERATIONS)


@pytest.fixture
def secret_store(store: SecretStore) -> SecretStore:
    """Store holding ``Config.Secret`` and ``Config.Redacted``."""
    store.put("Config.Secret", "SECRET")
    store.put("Config.Redacted", "REDACTED")
    return store


@pytest.fixture
def editor(secret_store: SecretStore) -> KeyStoreEditor:
    return KeyStoreEditor.with_store(secret_store)


@pytest.fixture
def keystore_path(tmp_path, secret_store: SecretStore) -> Path:
    """``secret_store`` saved as ``keystore.jceks``."""
    path = tmp_path / "keystore.jceks"
    secret_store.save(path)
    return path
