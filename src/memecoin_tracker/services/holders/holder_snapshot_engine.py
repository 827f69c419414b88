# -*- coding: utf-8 -*-
"""HolderSnapshotEngine: top-holder scans, the holdersData document and snapshot history."""

from __future__ import annotations

from datetime import datetime
from typing import TYPE_CHECKING, Any, Callable, Optional

import structlog

from memecoin_tracker.events.detection import CountdownExpiredEvent
from memecoin_tracker.exceptions import AccountParseError, RpcApiError, RpcRequestError, StorageError
from memecoin_tracker.models.countdown import CountdownKind
from memecoin_tracker.models.holder import REWARD_END_SNAPSHOT, HolderRecord, HolderSnapshot
from memecoin_tracker.services.holders.account_parser import (
    account_bytes,
    decode_token_account,
    rank_holders,
)
from memecoin_tracker.storage import keys
from memecoin_tracker.utils.timeutils import to_iso, utc_now
from memecoin_tracker.utils.validation import mask_address

if TYPE_CHECKING:
    from bubus import EventBus  # type: ignore[import-untyped]

    from memecoin_tracker.clients.solana_rpc import SolanaRpcClient
    from memecoin_tracker.storage import KeyValueStore


class HolderSnapshotEngine:
    """Ranks current holders of the watched mint and keeps a bounded snapshot history.

    Only one scan runs at a time; a call that arrives while a scan is in
    flight is skipped and gets the last known ranking.
    """

    def __init__(
        self,
        rpc_client: SolanaRpcClient,
        shared_store: KeyValueStore,
        *,
        token_address: str,
        pool_address: str,
        token_program_id: str,
        top_n: int = 20,
        max_snapshots: int = 20,
        clock: Callable[[], datetime] = utc_now,
        get_logger: Callable[[str], Any] = structlog.get_logger,
        logger_name: Optional[str] = None,
    ) -> None:
        self._rpc = rpc_client
        self._store = shared_store
        self._token_address = token_address
        self._pool_address = pool_address
        self._token_program_id = token_program_id
        self._top_n = top_n
        self._max_snapshots = max_snapshots
        self._clock = clock
        self._in_flight = False
        self._last_holders: list[HolderRecord] = []
        self._event_bus: Optional[EventBus] = None
        self._logger = get_logger(logger_name or self.__class__.__name__)

    @property
    def token_address(self) -> str:
        return self._token_address

    @property
    def last_holders(self) -> list[HolderRecord]:
        return list(self._last_holders)

    def use_token(self, token_address: str) -> None:
        """Switch the watched mint (detection control changed it)."""
        if token_address and token_address != self._token_address:
            self._token_address = token_address
            self._last_holders = []

    async def fetch_top_holders(self, token_address: str | None = None) -> list[HolderRecord]:
        """Scan every token account of the mint and return the top holders.

        Raises:
            RpcRequestError / RpcApiError: If the scan itself fails.
        """
        if self._in_flight:
            self._logger.debug("holders_fetch_skipped_in_flight")
            return list(self._last_holders)
        mint = token_address or self._token_address
        self._in_flight = True
        try:
            accounts = await self._rpc.get_token_accounts_for_mint(mint, self._token_program_id)
            owners: list[tuple[str, int]] = []
            skipped = 0
            for entry in accounts:
                try:
                    owners.append(decode_token_account(account_bytes(entry)))
                except AccountParseError as e:
                    skipped += 1
                    self._logger.debug(
                        "holder_account_unparsable",
                        pubkey=entry.get("pubkey"),
                        error_message=str(e),
                    )
            holders = rank_holders(owners, exclude=(self._pool_address,), top_n=self._top_n)
            self._last_holders = holders
            self._logger.info(
                "holders_fetched",
                token_masked=mask_address(mint),
                accounts=len(accounts),
                skipped=skipped,
                holders=len(holders),
            )
            return list(holders)
        finally:
            self._in_flight = False

    async def tick(self) -> None:
        """Refresh holders and publish them under holdersData; failures are logged."""
        try:
            holders = await self.fetch_top_holders()
        except (RpcRequestError, RpcApiError) as e:
            self._logger.warning(
                "holders_refresh_failed",
                error_type=type(e).__name__,
                error_message=str(e),
            )
            return
        await self._store.set(
            keys.HOLDERS_DATA,
            {
                "holders": [h.to_dict() for h in holders],
                "tokenAddress": self._token_address,
                "lastUpdate": to_iso(self._clock()),
            },
        )

    async def snapshot(self, kind: str = REWARD_END_SNAPSHOT) -> HolderSnapshot:
        """Capture current holders (freshly fetched when possible) into the history.

        The snapshot is returned but not saved when the stored history cannot be read.
        """
        try:
            holders = await self.fetch_top_holders()
        except (RpcRequestError, RpcApiError) as e:
            self._logger.warning(
                "holders_snapshot_using_last_known",
                error_type=type(e).__name__,
                error_message=str(e),
            )
            holders = list(self._last_holders)
        snapshot = HolderSnapshot.create(
            holders,
            token_address=self._token_address,
            kind=kind,
            now=self._clock(),
        )
        try:
            history = await self._raw_snapshots(strict=True)
        except StorageError as e:
            self._logger.warning(
                "holders_snapshot_not_saved",
                snapshot_id=snapshot.snapshot_id,
                error_type=type(e.cause or e).__name__,
                error_message=str(e),
            )
            return snapshot
        history.append(snapshot.to_dict())
        del history[: max(0, len(history) - self._max_snapshots)]
        await self._store.set(keys.HOLDERS_SNAPSHOTS, history)
        self._logger.info(
            "holders_snapshot_taken",
            snapshot_id=snapshot.snapshot_id,
            kind=kind,
            holders=len(holders),
            history_size=len(history),
        )
        return snapshot

    async def snapshots(self) -> list[HolderSnapshot]:
        """History oldest first (unreadable entries skipped)."""
        result: list[HolderSnapshot] = []
        for raw in await self._raw_snapshots():
            try:
                result.append(HolderSnapshot.from_dict(raw))
            except (KeyError, ValueError) as e:
                self._logger.warning("holders_snapshot_unreadable", error_message=str(e))
        return result

    async def clear_snapshots(self) -> None:
        await self._store.remove(keys.HOLDERS_SNAPSHOTS)
        self._logger.info("holders_snapshots_cleared")

    async def _raw_snapshots(self, *, strict: bool = False) -> list[dict[str, Any]]:
        history = await self._store.get(keys.HOLDERS_SNAPSHOTS, strict=strict)
        if not isinstance(history, list):
            return []
        return [h for h in history if isinstance(h, dict)]

    def start(self, event_bus: EventBus) -> None:
        """Take a reward_end snapshot whenever the reward countdown expires."""
        self._event_bus = event_bus
        event_bus.on(CountdownExpiredEvent, self._on_countdown_expired)
        self._logger.debug("holder_snapshot_engine_started")

    def stop(self) -> None:
        if self._event_bus is None:
            return
        key = CountdownExpiredEvent.__name__
        handlers = getattr(self._event_bus, "handlers", {})
        if key in handlers:
            handlers[key] = [h for h in handlers[key] if h != self._on_countdown_expired]
        self._event_bus = None
        self._logger.debug("holder_snapshot_engine_stopped")

    async def _on_countdown_expired(self, event: CountdownExpiredEvent) -> None:
        if event.kind != CountdownKind.REWARD.value:
            return
        await self.snapshot(REWARD_END_SNAPSHOT)
