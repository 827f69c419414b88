"""Versioned admin configuration persisted under the adminConfig key.

Older documents (no version, or version 1) are upgraded by
migrate_admin_config(), which merges section by section over the defaults
instead of replacing whole sections.
"""

from __future__ import annotations

from typing import Any

from pydantic import BaseModel, ConfigDict, Field, field_validator

from memecoin_tracker.utils.timeutils import to_iso, utc_now
from memecoin_tracker.utils.validation import is_rpc_url, is_solana_address

ADMIN_CONFIG_VERSION = 2


class _Section(BaseModel):
    model_config = ConfigDict(populate_by_name=True, extra="ignore")


class RpcSection(_Section):
    url: str = ""
    connected: bool = False
    last_test: str | None = Field(default=None, alias="lastTest")

    @field_validator("url")
    @classmethod
    def _check_url(cls, value: str) -> str:
        if value and not is_rpc_url(value):
            raise ValueError("RPC URL must be an http(s) URL of 10-200 characters")
        return value


class TokenSection(_Section):
    address: str = ""
    name: str = ""
    validated: bool = False

    @field_validator("address")
    @classmethod
    def _check_address(cls, value: str) -> str:
        if value and not is_solana_address(value):
            raise ValueError("token address must be a base58 public key (30-50 chars)")
        return value


class CountdownSection(_Section):
    minutes: int = Field(default=5, ge=1, le=1440)
    message: str = "TO THE MOON!!! 🚀"


class RewardCountdownSection(_Section):
    minutes: int = Field(default=20, ge=1, le=1440)
    seconds: int = Field(default=0, ge=0, le=59)
    last_update: str | None = Field(default=None, alias="lastUpdate")


class SystemSection(_Section):
    last_update: str = Field(default_factory=lambda: to_iso(utc_now()), alias="lastUpdate")
    uptime: str = Field(default_factory=lambda: to_iso(utc_now()))


class AdminConfig(_Section):
    """Admin console configuration (schema version 2)."""

    version: int = ADMIN_CONFIG_VERSION
    rpc: RpcSection = Field(default_factory=RpcSection)
    token: TokenSection = Field(default_factory=TokenSection)
    countdown: CountdownSection = Field(default_factory=CountdownSection)
    reward_countdown: RewardCountdownSection = Field(
        default_factory=RewardCountdownSection, alias="rewardCountdown"
    )
    system: SystemSection = Field(default_factory=SystemSection)

    def to_document(self) -> dict[str, Any]:
        return self.model_dump(by_alias=True, mode="json")


def migrate_admin_config(raw: Any) -> AdminConfig:
    """Upgrade a stored document of any version to AdminConfig.

    Unknown keys are dropped; each known section is merged key by key over
    its defaults so a partial section keeps the default values it lacks.
    Raises pydantic.ValidationError if a present value is invalid.
    """
    if not isinstance(raw, dict):
        return AdminConfig()
    defaults = AdminConfig().to_document()
    merged: dict[str, Any] = {}
    for section, default_value in defaults.items():
        if section == "version":
            continue
        stored = raw.get(section)
        if isinstance(default_value, dict) and isinstance(stored, dict):
            merged[section] = {**default_value, **stored}
        else:
            merged[section] = default_value
    merged["version"] = ADMIN_CONFIG_VERSION
    return AdminConfig.model_validate(merged)
