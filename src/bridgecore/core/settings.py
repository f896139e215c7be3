"""
Central configuration for bridgecore.

Typed configuration read from environment variables (12-factor style) using
pydantic-settings. Each section owns its own prefix:

    BRIDGECORE_PROTOCOL_NETWORK_TAG=Solana
    BRIDGECORE_STORAGE_BACKEND=sqlite
    BRIDGECORE_STORAGE_SQLITE_PATH=/var/lib/bridge/accounts.db
    BRIDGECORE_RUNTIME_LOG_LEVEL=DEBUG

Usage:

    from bridgecore.core.settings import get_settings

    settings = get_settings()
    store = build_store(settings)
"""

from __future__ import annotations

from functools import lru_cache
from typing import Optional

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

from bridgecore.state.addresses import MAX_SEED_LEN
from bridgecore.state.store import AccountStore, InMemoryAccountStore, SqliteAccountStore


class ProtocolSettings(BaseSettings):
    """
    Values shared with relayers and the commission program. Changing any of
    them changes leaf hashes or derived addresses.
    """

    network_tag: str = Field(
        default="Solana",
        description="Destination network tag hashed into every content leaf.",
    )
    commission_admin_seed: str = Field(
        default="commission-admin",
        description="Seed of the commission-admin account in the commission program.",
    )
    withdraw_seed: str = Field(
        default="withdraw",
        description="Domain seed of per-origin withdraw records.",
    )
    max_address_size: int = Field(
        default=100,
        description="Maximum receiver address length (bytes) accepted on deposit.",
    )
    max_network_size: int = Field(
        default=20,
        description="Maximum destination network name length (bytes) accepted on deposit.",
    )

    model_config = SettingsConfigDict(env_prefix="BRIDGECORE_PROTOCOL_")

    @field_validator("network_tag")
    @classmethod
    def _validate_tag(cls, v: str) -> str:
        if not v or not v.isascii():
            raise ValueError("network_tag must be a non-empty ASCII string")
        return v

    @field_validator("commission_admin_seed", "withdraw_seed")
    @classmethod
    def _validate_seed(cls, v: str) -> str:
        if len(v.encode("utf-8")) > MAX_SEED_LEN:
            raise ValueError(f"seed must be at most {MAX_SEED_LEN} bytes")
        return v

    @field_validator("max_address_size", "max_network_size")
    @classmethod
    def _validate_size(cls, v: int) -> int:
        if v <= 0:
            raise ValueError("size limits must be positive")
        return v


class StorageSettings(BaseSettings):
    backend: str = Field(
        default="memory",
        description="Account store backend: 'memory' or 'sqlite'.",
    )
    sqlite_path: str = Field(
        default="bridgecore.db",
        description="Database file for the sqlite backend.",
    )
    sqlite_timeout: float = Field(
        default=5.0,
        description="Seconds a unit waits for the sqlite write lock.",
    )

    model_config = SettingsConfigDict(env_prefix="BRIDGECORE_STORAGE_")

    @field_validator("backend")
    @classmethod
    def _normalize_backend(cls, v: str) -> str:
        v = (v or "memory").lower()
        if v not in ("memory", "sqlite"):
            raise ValueError("backend must be 'memory' or 'sqlite'")
        return v


class RuntimeSettings(BaseSettings):
    log_level: str = Field(
        default="INFO",
        description="bridgecore log level (DEBUG/INFO/WARNING/ERROR).",
    )

    model_config = SettingsConfigDict(env_prefix="BRIDGECORE_RUNTIME_")


class BridgeSettings(BaseSettings):
    """
    Root configuration object.

    Aggregates:
      - Protocol
      - Storage
      - Runtime
    """

    protocol: ProtocolSettings = Field(default_factory=ProtocolSettings)
    storage: StorageSettings = Field(default_factory=StorageSettings)
    runtime: RuntimeSettings = Field(default_factory=RuntimeSettings)

    model_config = SettingsConfigDict(env_prefix="BRIDGECORE_")


@lru_cache(maxsize=1)
def get_settings() -> BridgeSettings:
    """
    Cached accessor for BridgeSettings.

    Tests that change the environment call ``get_settings.cache_clear()``.
    """
    return BridgeSettings()


def build_store(settings: Optional[BridgeSettings] = None) -> AccountStore:
    """Account store for the configured backend."""
    settings = settings or get_settings()
    if settings.storage.backend == "sqlite":
        return SqliteAccountStore(settings.storage.sqlite_path, timeout=settings.storage.sqlite_timeout)
    return InMemoryAccountStore()
