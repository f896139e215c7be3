"""
Tests for configuration
"""

import logging

import pytest
from pydantic import ValidationError

from bridgecore.core.settings import (
    BridgeSettings,
    ProtocolSettings,
    StorageSettings,
    build_store,
    get_settings,
)
from bridgecore.state.store import InMemoryAccountStore, SqliteAccountStore
from bridgecore.utils.logging import configure_logging


@pytest.fixture(autouse=True)
def clear_cache():
    get_settings.cache_clear()
    yield
    get_settings.cache_clear()


class TestBridgeSettings:
    """Tests for BridgeSettings."""

    def test_defaults(self):
        settings = BridgeSettings()
        assert settings.protocol.network_tag == "Solana"
        assert settings.protocol.withdraw_seed == "withdraw"
        assert settings.protocol.max_address_size == 100
        assert settings.protocol.max_network_size == 20
        assert settings.storage.backend == "memory"
        assert settings.runtime.log_level == "INFO"

    def test_environment_override(self, monkeypatch):
        monkeypatch.setenv("BRIDGECORE_PROTOCOL_NETWORK_TAG", "Devnet")
        monkeypatch.setenv("BRIDGECORE_STORAGE_BACKEND", "SQLITE")
        settings = get_settings()
        assert settings.protocol.network_tag == "Devnet"
        assert settings.storage.backend == "sqlite"

    def test_cached(self):
        assert get_settings() is get_settings()

    def test_invalid_backend(self):
        with pytest.raises(ValidationError):
            StorageSettings(backend="redis")

    def test_seed_too_long(self):
        with pytest.raises(ValidationError):
            ProtocolSettings(withdraw_seed="x" * 33)

    def test_non_ascii_tag(self):
        with pytest.raises(ValidationError):
            ProtocolSettings(network_tag="Sölana")


class TestBuildStore:
    """Tests for build_store."""

    def test_memory_backend(self):
        assert isinstance(build_store(BridgeSettings()), InMemoryAccountStore)

    def test_sqlite_backend(self, tmp_path):
        settings = BridgeSettings(
            storage=StorageSettings(backend="sqlite", sqlite_path=str(tmp_path / "bridge.db"))
        )
        store = build_store(settings)
        try:
            assert isinstance(store, SqliteAccountStore)
            assert len(store) == 0
        finally:
            store.close()


class TestConfigureLogging:
    """Tests for configure_logging."""

    def test_applies_level_once(self):
        configure_logging("debug")
        configure_logging("warning")
        logger = logging.getLogger("bridgecore")
        assert logger.level == logging.WARNING
        assert sum(1 for h in logger.handlers if getattr(h, "_bridgecore", False)) == 1

    def test_uses_runtime_settings(self, monkeypatch):
        monkeypatch.setenv("BRIDGECORE_RUNTIME_LOG_LEVEL", "ERROR")
        configure_logging()
        assert logging.getLogger("bridgecore").level == logging.ERROR
