# -*- coding: utf-8 -*-
"""AdminService: operator actions on detection, countdowns, configuration and stored history."""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from typing import TYPE_CHECKING, Any, Callable, Optional

import structlog
from pydantic import ValidationError

from memecoin_tracker.clients.solana_rpc import SolanaRpcClient
from memecoin_tracker.exceptions import ConfigValidationError, RpcApiError, RpcRequestError
from memecoin_tracker.models.admin_config import AdminConfig, migrate_admin_config
from memecoin_tracker.models.countdown import CountdownKind, CountdownState
from memecoin_tracker.models.detection import ConnectResult, DetectionControl
from memecoin_tracker.storage import keys
from memecoin_tracker.utils.timeutils import to_iso, utc_now
from memecoin_tracker.utils.validation import is_rpc_url, is_solana_address, mask_address

if TYPE_CHECKING:
    from memecoin_tracker.clients.http import AsyncHttpClient
    from memecoin_tracker.config import Settings
    from memecoin_tracker.services.countdown import CountdownEngine
    from memecoin_tracker.services.holders import HolderSnapshotEngine
    from memecoin_tracker.services.ledger import TransactionLedger
    from memecoin_tracker.services.reactions import Leaderboard, NotificationLog, NotificationStats
    from memecoin_tracker.storage import KeyValueStore

MIN_COUNTDOWN_MINUTES = 1
MAX_COUNTDOWN_MINUTES = 1440


@dataclass(frozen=True, slots=True)
class DetectionStatus:
    """What the admin console shows about detection."""

    control: DetectionControl | None
    frontend_count: int
    backend_count: int
    last_update: datetime | None

    @property
    def is_running(self) -> bool:
        return self.control is not None and self.control.is_running


def _validation_errors(exc: ValidationError) -> list[str]:
    return [f"{'.'.join(str(p) for p in err['loc'])}: {err['msg']}" for err in exc.errors()]


class AdminService:
    """Operations behind the admin console.

    Every input is validated here; invalid input raises ConfigValidationError
    and leaves the stores untouched.
    """

    def __init__(
        self,
        settings: Settings,
        http_client: AsyncHttpClient,
        shared_store: KeyValueStore,
        local_store: KeyValueStore,
        *,
        countdowns: dict[CountdownKind, CountdownEngine],
        frontend_ledger: TransactionLedger,
        backend_ledger: TransactionLedger,
        notification_log: NotificationLog,
        leaderboard: Leaderboard,
        holder_engine: HolderSnapshotEngine,
        clock: Callable[[], datetime] = utc_now,
        get_logger: Callable[[str], Any] = structlog.get_logger,
        logger_name: Optional[str] = None,
    ) -> None:
        self._settings = settings
        self._http = http_client
        self._shared = shared_store
        self._local = local_store
        self._countdowns = countdowns
        self._frontend = frontend_ledger
        self._backend = backend_ledger
        self._notifications = notification_log
        self._leaderboard = leaderboard
        self._holders = holder_engine
        self._clock = clock
        self._get_logger = get_logger
        self._logger = get_logger(logger_name or self.__class__.__name__)

    @staticmethod
    def validate_token_address(address: str) -> bool:
        """Base58 public key: 30-50 characters decoding to 32 bytes."""
        return is_solana_address(address.strip() if isinstance(address, str) else address)

    async def test_rpc_connection(self, rpc_url: str) -> ConnectResult:
        """Check rpc_url with getVersion without touching the running poller."""
        url = rpc_url.strip()
        if not is_rpc_url(url):
            return ConnectResult(success=False, endpoint_url=url, error="Invalid RPC URL")
        candidate = SolanaRpcClient(self._http, self._settings, endpoint_url=url, get_logger=self._get_logger)
        try:
            version = await candidate.get_version()
        except (RpcRequestError, RpcApiError) as e:
            self._logger.warning(
                "admin_rpc_test_failed",
                endpoint_url=url,
                error_type=type(e).__name__,
                error_message=str(e),
            )
            return ConnectResult(success=False, endpoint_url=url, error=str(e))
        solana_core = version.get("solana-core")
        self._logger.info("admin_rpc_test_ok", endpoint_url=url, solana_core=solana_core)
        return ConnectResult(
            success=True,
            endpoint_url=url,
            version=str(solana_core) if solana_core is not None else None,
        )

    async def start_detection(self, rpc_url: str, token_address: str) -> DetectionControl:
        """Publish a running DetectionControl to the shared store and the local mirror.

        Raises:
            ConfigValidationError: If the URL or the address is invalid.
        """
        rpc_url = rpc_url.strip()
        token_address = token_address.strip()
        errors: list[str] = []
        if not is_rpc_url(rpc_url):
            errors.append("rpcUrl: must be an http(s) URL of 10-200 characters")
        if not self.validate_token_address(token_address):
            errors.append("tokenAddress: must be a base58 public key of 30-50 characters")
        if errors:
            raise ConfigValidationError("Invalid detection settings", errors=errors)
        control = DetectionControl.started(rpc_url, token_address, now=self._clock())
        await self._write_control(control)
        self._logger.info(
            "admin_detection_started",
            rpc_url=rpc_url,
            token_masked=mask_address(token_address),
        )
        return control

    async def stop_detection(self) -> DetectionControl:
        now = self._clock()
        current = await self._read_control()
        if current is None:
            control = DetectionControl(
                is_running=False,
                rpc_url=self._settings.detection.rpc_url or self._settings.rpc.endpoint_url,
                token_address=self._settings.detection.token_address or self._settings.token.token_address,
                start_time=None,
                last_update=now,
            )
        else:
            control = current.stopped(now=now)
        await self._write_control(control)
        self._logger.info("admin_detection_stopped")
        return control

    async def reset_countdown(
        self, kind: CountdownKind, minutes: int, seconds: int = 0
    ) -> CountdownState:
        """Restart the countdown at now + minutes:seconds.

        Raises:
            ConfigValidationError: If minutes is outside 1-1440 or seconds outside 0-59.
        """
        if not MIN_COUNTDOWN_MINUTES <= minutes <= MAX_COUNTDOWN_MINUTES:
            raise ConfigValidationError(
                f"Countdown minutes must be between {MIN_COUNTDOWN_MINUTES} and {MAX_COUNTDOWN_MINUTES}"
            )
        if not 0 <= seconds <= 59:
            raise ConfigValidationError("Countdown seconds must be between 0 and 59")
        engine = self._countdowns.get(kind)
        if engine is None:
            raise ConfigValidationError(f"Unknown countdown: {kind}")
        state = await engine.reset(minutes * 60 + seconds, reset_by="admin")
        self._logger.info(
            "admin_countdown_reset",
            kind=kind.value,
            minutes=minutes,
            seconds=seconds,
            target=to_iso(state.target),
        )
        return state

    async def save_config(self, config: AdminConfig | dict[str, Any]) -> AdminConfig:
        """Validate and persist the admin configuration under adminConfig.

        Raises:
            ConfigValidationError: If a dict input fails validation.
        """
        if isinstance(config, dict):
            try:
                config = migrate_admin_config(config)
            except ValidationError as e:
                raise ConfigValidationError("Invalid admin configuration", errors=_validation_errors(e)) from e
        config.system.last_update = to_iso(self._clock())
        document = config.to_document()
        await self._shared.set(keys.ADMIN_CONFIG, document)
        await self._local.set(keys.ADMIN_CONFIG, document)
        self._logger.info("admin_config_saved", version=config.version)
        return config

    async def load_config(self) -> AdminConfig:
        """Stored configuration upgraded to the current version; defaults if unreadable."""
        raw = await self._shared.get(keys.ADMIN_CONFIG)
        if raw is None:
            raw = await self._local.get(keys.ADMIN_CONFIG)
        try:
            return migrate_admin_config(raw)
        except ValidationError as e:
            self._logger.warning("admin_config_invalid_using_defaults", errors=_validation_errors(e))
            return AdminConfig()

    async def detection_status(self) -> DetectionStatus:
        frontend = await self._frontend.stats()
        backend = await self._backend.stats()
        updates = [t for t in (frontend.last_update, backend.last_update) if t is not None]
        return DetectionStatus(
            control=await self._read_control(),
            frontend_count=frontend.total,
            backend_count=backend.total,
            last_update=max(updates) if updates else None,
        )

    async def clear_transactions(self) -> None:
        await self._frontend.clear()
        await self._backend.clear()

    async def clear_notifications(self) -> None:
        await self._notifications.clear()

    async def clear_success_addresses(self) -> None:
        await self._leaderboard.clear()

    async def clear_snapshots(self) -> None:
        await self._holders.clear_snapshots()

    async def notification_stats(self) -> NotificationStats:
        return await self._notifications.stats(self._clock())

    async def _read_control(self) -> DetectionControl | None:
        control = DetectionControl.from_dict(await self._shared.get(keys.DETECTION_CONTROL))
        if control is None:
            control = DetectionControl.from_dict(await self._local.get(keys.DETECTION_CONTROL))
        return control

    async def _write_control(self, control: DetectionControl) -> None:
        document = control.to_dict()
        await self._shared.set(keys.DETECTION_CONTROL, document)
        await self._local.set(keys.DETECTION_CONTROL, document)
