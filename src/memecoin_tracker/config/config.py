# -*- coding: utf-8 -*-
"""Configuration loaded from environment via Pydantic Settings.

Nested env vars use <section>__<key>, e.g. LOGGING__CONSOLE_LEVEL, RPC__TIMEOUT_SECONDS.
"""

from __future__ import annotations

from functools import lru_cache
from typing import Any, Literal, Optional

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict

DEFAULT_RPC_URL = "https://api.mainnet-beta.solana.com"
DEFAULT_TOKEN_ADDRESS = "4k3Dyjzvzp8eMZWUXbBCjEvwSkkk59S5iCNLY3QrkX6R"
DEFAULT_POOL_ADDRESS = "WLHv2UAZm6z4KyaaELi5pjdbJh6RESMva1Rnn8pJVVh"
TOKEN_PROGRAM_ID = "TokenkegQfeZyiNwAJbNbGKPFXCWuBvf9Ss623VQ5DA"


class AppSettings(BaseSettings):
    """General application configuration."""

    model_config = SettingsConfigDict(extra="ignore")

    app_name: str = "memecoin-tracker"
    service_name: Optional[str] = None
    service_version: Optional[str] = None
    environment: Literal["development", "test", "production"] = "development"


class LoggingSettings(BaseSettings):
    """Structured logging configuration for structlog/stdlib/Logfire."""

    model_config = SettingsConfigDict(extra="ignore")

    console_level: Literal["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"] = "INFO"
    file_level: Literal["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"] = "INFO"
    logfire_level: Literal["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"] = "INFO"

    log_to_console: bool = True
    log_to_file: bool = False
    log_file_path: str = "logs/memecoin_tracker.log"
    # TimedRotatingFileHandler: when to rotate (S/M/H/D/W0–W6/midnight), interval, backups to keep
    log_file_when: Literal[
        "S", "M", "H", "D", "W0", "W1", "W2", "W3", "W4", "W5", "W6", "midnight"
    ] = "midnight"
    log_file_interval: int = 1
    log_file_backup_count: int = 30
    log_file_utc: bool = True

    json_format: bool = False
    # Third-party loggers held at WARNING (aiohttp logs every request at INFO)
    quiet_loggers: list[str] = Field(default_factory=lambda: ["aiohttp.access", "aiohttp.client", "asyncio"])

    logfire_enabled: bool = False
    logfire_token: Optional[str] = None


class RpcSettings(BaseSettings):
    """Solana JSON-RPC connection (HTTP)."""

    model_config = SettingsConfigDict(extra="ignore")

    endpoint_url: str = Field(
        default=DEFAULT_RPC_URL,
        description="Default RPC endpoint; detection control may override it.",
    )
    timeout_seconds: float = Field(
        default=5.0,
        ge=0.5,
        le=120.0,
        description="Per-request timeout in seconds. Expiry is a transient failure.",
    )
    max_retries: int = Field(
        default=2,
        ge=1,
        le=20,
        description="Attempts per request before giving up until the next tick.",
    )
    commitment: Literal["processed", "confirmed", "finalized"] = "confirmed"
    signatures_limit: int = Field(
        default=25,
        ge=1,
        le=1000,
        description="Signatures listed per poll.",
    )


class TokenSettings(BaseSettings):
    """Watched token and its liquidity pool."""

    model_config = SettingsConfigDict(extra="ignore")

    token_address: str = DEFAULT_TOKEN_ADDRESS
    pool_address: str = DEFAULT_POOL_ADDRESS
    token_program_id: str = TOKEN_PROGRAM_ID
    watch_address: Optional[str] = Field(
        default=None,
        description="Address whose signatures are polled. Defaults to the token address.",
    )


class PollingSettings(BaseSettings):
    """Transaction polling loop."""

    model_config = SettingsConfigDict(extra="ignore")

    mode: Literal["signatures", "block"] = "signatures"
    poll_seconds: float = Field(default=5.0, ge=0.5, le=60.0)
    backfill_on_start: bool = Field(
        default=False,
        description="Process the first page of signatures when no watermark exists.",
    )
    max_signature_pages: int = Field(
        default=8,
        ge=1,
        le=100,
        description="Pages of signatures walked back per poll before the backlog is cut.",
    )
    queue_size: int = Field(default=500, ge=1, le=10000)


class CountdownSettings(BaseSettings):
    """Launch and holding-reward countdowns."""

    model_config = SettingsConfigDict(extra="ignore")

    launch_default_seconds: int = Field(default=5 * 60, ge=1, le=1440 * 60)
    reward_default_seconds: int = Field(default=20 * 60, ge=1, le=1440 * 60)
    ceiling_seconds: int = Field(
        default=10 * 60,
        ge=1,
        le=1440 * 60,
        description="Maximum remaining time an extension may produce.",
    )
    tick_seconds: float = Field(default=1.0, ge=0.1, le=60.0)


class ReactionSettings(BaseSettings):
    """Large-transaction reactions."""

    model_config = SettingsConfigDict(extra="ignore")

    large_transaction_threshold: int = Field(default=1_000_000, ge=0)
    extension_seconds: int = Field(default=30, ge=1, le=3600)
    max_notifications: int = Field(default=50, ge=1, le=1000)
    max_success_addresses: int = Field(default=5, ge=1, le=100)


class LedgerSettings(BaseSettings):
    """Transaction ledgers (frontend and backend mirrors)."""

    model_config = SettingsConfigDict(extra="ignore")

    max_frontend_records: int = Field(default=100, ge=1, le=10000)
    max_backend_records: int = Field(default=100, ge=1, le=10000)


class HolderSettings(BaseSettings):
    """Top-holder scans and snapshots."""

    model_config = SettingsConfigDict(extra="ignore")

    refresh_seconds: float = Field(default=10.0, ge=1.0, le=3600.0)
    top_n: int = Field(default=20, ge=1, le=1000)
    max_snapshots: int = Field(default=20, ge=1, le=1000)


class StorageSettings(BaseSettings):
    """Local (per-process) and shared (remote) key-value stores."""

    model_config = SettingsConfigDict(extra="ignore")

    local_path: str = "data/local_store.json"
    local_quota_bytes: int = Field(
        default=5 * 1024 * 1024,
        ge=1024,
        description="Upper bound for the serialized local document.",
    )
    remote_url: Optional[str] = Field(
        default=None,
        description="Realtime database base URL. In-memory shared store when unset.",
    )
    remote_auth_token: Optional[str] = None
    remote_poll_seconds: float = Field(default=1.0, ge=0.2, le=60.0)


class DetectionSettings(BaseSettings):
    """Bootstrap of the detection control document."""

    model_config = SettingsConfigDict(extra="ignore")

    auto_start: bool = False
    rpc_url: Optional[str] = None
    token_address: Optional[str] = None


class TelegramNotificationSettings(BaseSettings):
    """Community Telegram channel (from env TELEGRAM__*)."""

    model_config = SettingsConfigDict(extra="ignore")

    enabled: bool = False
    bot_token: Optional[str] = Field(default=None, description="Telegram bot API token.")
    chat_id: Optional[str] = Field(default=None, description="Channel or group receiving announcements.")
    # Raw comma-separated string so pydantic-settings does not JSON-decode it
    event_types_raw: str = Field(
        default="large_buy,large_sell,large_transaction,round_complete,reward_round_complete",
        validation_alias="event_types",
        description="Event types forwarded to the channel; empty forwards everything.",
    )
    messages_per_minute: int = Field(default=20, ge=1, le=120)
    max_retries: int = Field(default=3, ge=1, le=20)
    backoff_base_seconds: float = Field(default=1.0, ge=0.1, le=60.0)
    connect_timeout: float = Field(default=10.0, ge=0.1, le=60.0)
    read_timeout: float = Field(default=20.0, ge=0.1, le=120.0)

    @property
    def event_types(self) -> frozenset[str]:
        return frozenset(t.strip() for t in self.event_types_raw.split(",") if t.strip())


class ConsoleNotificationSettings(BaseSettings):
    """Console notification settings."""

    model_config = SettingsConfigDict(extra="ignore")

    enabled: bool = True


class PointsSettings(BaseSettings):
    """External points / token-exchange ledger (cloud functions)."""

    model_config = SettingsConfigDict(extra="ignore")

    functions_url: Optional[str] = None
    exchange_ratio: int = Field(default=10, ge=1, le=1_000_000)


class Settings(BaseSettings):
    """Root application configuration.

    Groups all sub-configurations so the rest of the code does not
    read environment variables directly. Nested overrides use
    <section>__<key>, e.g. LOGGING__CONSOLE_LEVEL, RPC__TIMEOUT_SECONDS.
    """

    model_config = SettingsConfigDict(
        env_nested_delimiter="__",
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
        frozen=True,
    )

    app: AppSettings = Field(default_factory=AppSettings)
    logging: LoggingSettings = Field(default_factory=LoggingSettings)
    rpc: RpcSettings = Field(default_factory=RpcSettings)
    token: TokenSettings = Field(default_factory=TokenSettings)
    polling: PollingSettings = Field(default_factory=PollingSettings)
    countdown: CountdownSettings = Field(default_factory=CountdownSettings)
    reactions: ReactionSettings = Field(default_factory=ReactionSettings)
    ledger: LedgerSettings = Field(default_factory=LedgerSettings)
    holders: HolderSettings = Field(default_factory=HolderSettings)
    storage: StorageSettings = Field(default_factory=StorageSettings)
    detection: DetectionSettings = Field(default_factory=DetectionSettings)
    telegram: TelegramNotificationSettings = Field(default_factory=TelegramNotificationSettings)
    console: ConsoleNotificationSettings = Field(default_factory=ConsoleNotificationSettings)
    points: PointsSettings = Field(default_factory=PointsSettings)

    @classmethod
    def from_env(cls, **overrides: Any) -> Settings:
        """Build settings from environment (and .env), with optional overrides.

        Nested overrides can be passed as nested dicts, e.g.
        from_env(rpc={"timeout_seconds": 3}).
        """
        return cls(**overrides)


@lru_cache
def get_settings() -> Settings:
    """Return a single cached instance of Settings.

    Typical usage:

        from memecoin_tracker.config import get_settings

        settings = get_settings()
        timeout = settings.rpc.timeout_seconds
    """
    return Settings()
