"""TransactionPoller: finds transactions newer than the persisted watermark."""

from __future__ import annotations

from collections.abc import Callable
from datetime import datetime
from typing import TYPE_CHECKING, Any, Literal

import structlog

from memecoin_tracker.exceptions import RpcApiError, RpcRequestError
from memecoin_tracker.models.detection import ConnectionStatus, ConnectResult, NewTransactionRef
from memecoin_tracker.storage import keys
from memecoin_tracker.utils.timeutils import to_iso, utc_now
from memecoin_tracker.utils.validation import mask_address

if TYPE_CHECKING:
    from memecoin_tracker.clients.solana_rpc import SolanaRpcClient
    from memecoin_tracker.storage import KeyValueStore

PollMode = Literal["signatures", "block"]

# Upper bound on blocks walked per poll in block mode.
MAX_BLOCKS_PER_POLL = 10


class TransactionPoller:
    """Lists new transactions for the watched address (or watched mint, in block mode).

    The watermark lives under transactionWatermark in the given store and
    only moves past transactions whose details were fetched, so a failed
    fetch is retried on the next poll.
    """

    def __init__(
        self,
        rpc_client: SolanaRpcClient,
        watermark_store: KeyValueStore,
        *,
        token_address: str,
        watch_address: str | None = None,
        mode: PollMode = "signatures",
        backfill_on_start: bool = False,
        signatures_limit: int = 25,
        max_signature_pages: int = 8,
        clock: Callable[[], datetime] = utc_now,
        get_logger: Callable[[str], Any] = structlog.get_logger,
        logger_name: str | None = None,
    ) -> None:
        """Initialize the poller.

        Args:
            rpc_client: Solana RPC client (injected).
            watermark_store: Store holding the watermark (the per-process local store).
            token_address: Watched mint.
            watch_address: Address whose signatures are listed; defaults to token_address.
            mode: "signatures" (getSignaturesForAddress) or "block" (getSlot + getBlock).
            backfill_on_start: Process the first page when no watermark exists.
            signatures_limit: Signatures requested per page.
            max_signature_pages: Pages walked back towards the watermark per poll;
                older signatures beyond them are skipped with a warning.
        """
        self._rpc = rpc_client
        self._store = watermark_store
        self._token_address = token_address
        self._watch_address = watch_address
        self._mode: PollMode = mode
        self._backfill_on_start = backfill_on_start
        self._limit = signatures_limit
        self._max_pages = max_signature_pages
        self._clock = clock
        self._status = ConnectionStatus.DISCONNECTED
        self._logger = get_logger(logger_name or self.__class__.__name__)

    @property
    def status(self) -> ConnectionStatus:
        return self._status

    @property
    def endpoint_url(self) -> str:
        return self._rpc.endpoint_url

    @property
    def token_address(self) -> str:
        return self._token_address

    @property
    def watch_address(self) -> str:
        return self._watch_address or self._token_address

    def use_token(self, token_address: str) -> None:
        """Watch another mint; the stored watermark no longer applies and is ignored."""
        self._token_address = token_address

    def mark_disconnected(self) -> None:
        self._status = ConnectionStatus.DISCONNECTED

    async def connect(self, endpoint_url: str) -> ConnectResult:
        """Switch to endpoint_url and verify it answers getVersion."""
        self._status = ConnectionStatus.CONNECTING
        self._rpc.use_endpoint(endpoint_url)
        try:
            version = await self._rpc.get_version()
        except (RpcRequestError, RpcApiError) as e:
            self._status = ConnectionStatus.DISCONNECTED
            self._logger.warning(
                "rpc_connect_failed",
                endpoint_url=endpoint_url,
                error_type=type(e).__name__,
                error_message=str(e),
            )
            return ConnectResult(success=False, endpoint_url=endpoint_url, error=str(e))
        self._status = ConnectionStatus.CONNECTED
        solana_core = version.get("solana-core")
        self._logger.info("rpc_connected", endpoint_url=endpoint_url, solana_core=solana_core)
        return ConnectResult(
            success=True,
            endpoint_url=endpoint_url,
            version=str(solana_core) if solana_core is not None else None,
        )

    async def poll(self) -> list[NewTransactionRef]:
        """Return transactions newer than the watermark, oldest first.

        Raises:
            RpcRequestError / RpcApiError: If listing signatures (or the slot) fails.
        """
        if self._mode == "block":
            return await self._poll_blocks()
        return await self._poll_signatures()

    async def _load_watermark(self) -> dict[str, Any] | None:
        raw = await self._store.get(keys.TRANSACTION_WATERMARK)
        if not isinstance(raw, dict):
            return None
        if raw.get("mode") != self._mode or raw.get("address") != self.watch_address:
            return None
        return raw

    async def _save_watermark(self, *, signature: str | None = None, slot: int | None = None) -> None:
        await self._store.set(
            keys.TRANSACTION_WATERMARK,
            {
                "mode": self._mode,
                "address": self.watch_address,
                "signature": signature,
                "slot": slot,
                "updatedAt": to_iso(self._clock()),
            },
        )

    async def _poll_signatures(self) -> list[NewTransactionRef]:
        address = self.watch_address
        watermark = await self._load_watermark()
        last_signature = watermark.get("signature") if watermark else None

        fresh = await self._list_new_signatures(address, last_signature)

        if watermark is None and not self._backfill_on_start:
            if fresh:
                newest = fresh[0]
                await self._save_watermark(signature=newest["signature"], slot=newest.get("slot"))
            self._logger.info(
                "poll_baseline_established",
                address_masked=mask_address(address),
                signature=fresh[0]["signature"] if fresh else None,
            )
            return []

        refs: list[NewTransactionRef] = []
        for entry in reversed(fresh):
            signature = entry["signature"]
            try:
                payload = await self._rpc.get_transaction(signature)
            except (RpcRequestError, RpcApiError) as e:
                self._logger.warning(
                    "poll_transaction_fetch_failed",
                    signature=signature,
                    error_type=type(e).__name__,
                    error_message=str(e),
                )
                break
            if payload is None:
                self._logger.debug("poll_transaction_not_available", signature=signature)
                break
            refs.append(
                NewTransactionRef(
                    signature=signature,
                    slot=entry.get("slot"),
                    block_time=entry.get("blockTime"),
                    transaction=payload,
                )
            )

        if refs:
            newest_ref = refs[-1]
            await self._save_watermark(signature=newest_ref.signature, slot=newest_ref.slot)
        self._logger.debug(
            "poll_completed",
            address_masked=mask_address(address),
            listed=len(fresh),
            fetched=len(refs),
        )
        return refs

    async def _list_new_signatures(self, address: str, until: str | None) -> list[dict[str, Any]]:
        """Signatures newer than until, newest first, paging back with before=.

        Without a watermark only the first page is listed.
        """
        fresh: list[dict[str, Any]] = []
        before: str | None = None
        for _ in range(self._max_pages):
            page = await self._rpc.get_signatures_for_address(
                address, limit=self._limit, until=until, before=before
            )
            oldest: str | None = None
            for entry in page:
                signature = entry.get("signature")
                if not isinstance(signature, str):
                    continue
                if signature == until:
                    return fresh
                fresh.append(entry)
                oldest = signature
            if until is None or oldest is None or len(page) < self._limit:
                return fresh
            before = oldest
        self._logger.warning(
            "poll_backlog_truncated",
            address_masked=mask_address(address),
            listed=len(fresh),
            max_pages=self._max_pages,
            oldest_listed=fresh[-1]["signature"] if fresh else None,
        )
        return fresh

    async def _poll_blocks(self) -> list[NewTransactionRef]:
        watermark = await self._load_watermark()
        current_slot = await self._rpc.get_slot()
        if watermark is None or not isinstance(watermark.get("slot"), int):
            if not self._backfill_on_start:
                await self._save_watermark(slot=current_slot)
                self._logger.info("poll_baseline_established", slot=current_slot)
                return []
            last_slot = current_slot - 1
        else:
            last_slot = watermark["slot"]

        refs: list[NewTransactionRef] = []
        processed_slot = last_slot
        for slot in range(last_slot + 1, min(current_slot, last_slot + MAX_BLOCKS_PER_POLL) + 1):
            try:
                block = await self._rpc.get_block(slot)
            except (RpcRequestError, RpcApiError) as e:
                self._logger.warning(
                    "poll_block_fetch_failed",
                    slot=slot,
                    error_type=type(e).__name__,
                    error_message=str(e),
                )
                break
            processed_slot = slot
            if block is None:
                continue
            refs.extend(self._token_transactions(block, slot))

        if processed_slot != last_slot:
            await self._save_watermark(slot=processed_slot)
        self._logger.debug(
            "poll_blocks_completed",
            from_slot=last_slot + 1,
            to_slot=processed_slot,
            matched=len(refs),
        )
        return refs

    def _token_transactions(self, block: dict[str, Any], slot: int) -> list[NewTransactionRef]:
        """Transactions of block whose post token balances include the watched mint."""
        block_time = block.get("blockTime")
        refs: list[NewTransactionRef] = []
        for tx in block.get("transactions") or []:
            if not isinstance(tx, dict):
                continue
            meta = tx.get("meta") or {}
            balances = meta.get("postTokenBalances") or []
            if not any(b.get("mint") == self._token_address for b in balances if isinstance(b, dict)):
                continue
            signatures = (tx.get("transaction") or {}).get("signatures") or []
            if not signatures:
                continue
            refs.append(
                NewTransactionRef(
                    signature=signatures[0],
                    slot=slot,
                    block_time=block_time if isinstance(block_time, int) else None,
                    transaction=tx,
                )
            )
        return refs
