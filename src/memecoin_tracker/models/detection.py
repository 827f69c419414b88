"""Detection control document and poller result types."""

from __future__ import annotations

from dataclasses import dataclass, field, replace
from datetime import datetime
from enum import Enum
from typing import Any

from memecoin_tracker.utils.timeutils import parse_iso, to_iso


class ConnectionStatus(str, Enum):
    CONNECTED = "connected"
    DISCONNECTED = "disconnected"
    CONNECTING = "connecting"


@dataclass(frozen=True, slots=True)
class ConnectResult:
    """Outcome of a liveness handshake against an RPC endpoint."""

    success: bool
    endpoint_url: str
    version: str | None = None
    error: str | None = None


@dataclass(frozen=True, slots=True)
class NewTransactionRef:
    """A transaction newer than the watermark, with its fetched payload."""

    signature: str
    slot: int | None
    block_time: int | None
    transaction: dict[str, Any] = field(repr=False)
    """getTransaction result (jsonParsed) or one entry of getBlock's transactions."""


@dataclass(frozen=True, slots=True)
class DetectionControl:
    """Single source of truth for whether polling is active, shared across processes."""

    is_running: bool
    rpc_url: str
    token_address: str
    start_time: datetime | None
    last_update: datetime

    @classmethod
    def started(cls, rpc_url: str, token_address: str, *, now: datetime) -> DetectionControl:
        return cls(
            is_running=True,
            rpc_url=rpc_url,
            token_address=token_address,
            start_time=now,
            last_update=now,
        )

    def stopped(self, *, now: datetime) -> DetectionControl:
        return replace(self, is_running=False, last_update=now)

    def to_dict(self) -> dict[str, Any]:
        return {
            "isRunning": self.is_running,
            "rpcUrl": self.rpc_url,
            "tokenAddress": self.token_address,
            "startTime": to_iso(self.start_time) if self.start_time else None,
            "lastUpdate": to_iso(self.last_update),
        }

    @classmethod
    def from_dict(cls, raw: Any) -> DetectionControl | None:
        """Parse the stored document; None if absent or malformed."""
        if not isinstance(raw, dict):
            return None
        last_update = parse_iso(raw.get("lastUpdate"))
        if last_update is None:
            return None
        return cls(
            is_running=bool(raw.get("isRunning", False)),
            rpc_url=str(raw.get("rpcUrl") or ""),
            token_address=str(raw.get("tokenAddress") or ""),
            start_time=parse_iso(raw.get("startTime")),
            last_update=last_update,
        )
