"""Solana JSON-RPC client for signatures, transactions, blocks and token accounts."""

from __future__ import annotations

import itertools
from collections.abc import Callable
from typing import TYPE_CHECKING, Any, cast

import structlog

from memecoin_tracker.exceptions import RpcApiError
from memecoin_tracker.utils.validation import mask_address

if TYPE_CHECKING:
    from memecoin_tracker.clients.http import AsyncHttpClient
    from memecoin_tracker.config import Settings

# SPL token account layout: mint [0,32), owner [32,64), amount u64 LE [64,72)
TOKEN_ACCOUNT_SIZE = 165

# getBlock errors for slots that will never hold a block (skipped, or missing
# from a snapshot or long-term storage). -32004 means "not yet" and is raised.
SKIPPED_SLOT_ERROR_CODES = frozenset({-32007, -32009})


class SolanaRpcClient:
    """JSON-RPC 2.0 over HTTPS against one Solana endpoint.

    The endpoint defaults to settings.rpc.endpoint_url and can be switched
    at runtime with use_endpoint() when detection control points elsewhere.
    """

    def __init__(
        self,
        http_client: AsyncHttpClient,
        settings: Settings,
        *,
        endpoint_url: str | None = None,
        get_logger: Callable[[str], Any] = structlog.get_logger,
        logger_name: str | None = None,
    ) -> None:
        """Initialize the RPC client.

        Args:
            http_client: HTTP client for POST requests (JSON-RPC).
            settings: Configuration (rpc.endpoint_url, rpc.commitment, rpc.timeout_seconds).
            endpoint_url: Optional endpoint overriding settings.rpc.endpoint_url.
            get_logger: Logger factory (injected).
            logger_name: Optional logger name (defaults to class name).
        """
        self._http = http_client
        self._settings = settings
        self._endpoint_url = (endpoint_url or settings.rpc.endpoint_url).rstrip("/")
        self._ids = itertools.count(1)
        self._logger = get_logger(logger_name or self.__class__.__name__)

    @property
    def endpoint_url(self) -> str:
        return self._endpoint_url

    @property
    def commitment(self) -> str:
        return self._settings.rpc.commitment

    def use_endpoint(self, endpoint_url: str) -> None:
        """Point subsequent calls at another endpoint."""
        self._endpoint_url = endpoint_url.rstrip("/")

    async def call(self, method: str, params: list[Any] | None = None) -> Any:
        """Perform one JSON-RPC call and return its result.

        Raises:
            RpcRequestError: If the HTTP request fails (timeout, transport, 5xx).
            RpcApiError: If the response carries an error object or is not JSON-RPC.
        """
        payload = {
            "jsonrpc": "2.0",
            "id": next(self._ids),
            "method": method,
            "params": params or [],
        }
        response = await self._http.post(
            self._endpoint_url,
            json=payload,
            timeout_seconds=self._settings.rpc.timeout_seconds,
        )
        if not isinstance(response, dict):
            raise RpcApiError(f"Unexpected RPC response type: {type(response)}", method=method)
        resp_dict = cast(dict[str, Any], response)
        if "error" in resp_dict:
            err = resp_dict["error"]
            if isinstance(err, dict):
                err_d = cast(dict[str, Any], err)
                msg = str(err_d.get("message", err_d))
                code = err_d.get("code")
            else:
                msg = str(err)
                code = None
            raise RpcApiError(
                f"RPC error: {msg}",
                method=method,
                code=code if isinstance(code, int) else None,
            )
        return resp_dict.get("result")

    async def get_version(self) -> dict[str, Any]:
        """Liveness handshake; returns e.g. {"solana-core": "1.18.4", "feature-set": ...}."""
        result = await self.call("getVersion")
        return cast(dict[str, Any], result) if isinstance(result, dict) else {}

    async def get_signatures_for_address(
        self,
        address: str,
        *,
        limit: int | None = None,
        until: str | None = None,
        before: str | None = None,
    ) -> list[dict[str, Any]]:
        """Recent signatures for address, newest first.

        Each entry has signature, slot, blockTime, err and confirmationStatus.
        """
        options: dict[str, Any] = {
            "limit": limit or self._settings.rpc.signatures_limit,
            "commitment": self.commitment,
        }
        if until:
            options["until"] = until
        if before:
            options["before"] = before
        result = await self.call("getSignaturesForAddress", [address, options])
        entries = [e for e in result or [] if isinstance(e, dict)]
        self._logger.debug(
            "rpc_signatures_listed",
            address_masked=mask_address(address),
            count=len(entries),
        )
        return entries

    async def get_transaction(self, signature: str) -> dict[str, Any] | None:
        """Fetch one transaction (jsonParsed, versioned); None if the node does not have it yet."""
        result = await self.call(
            "getTransaction",
            [
                signature,
                {
                    "encoding": "jsonParsed",
                    "maxSupportedTransactionVersion": 0,
                    "commitment": self.commitment,
                },
            ],
        )
        return cast(dict[str, Any], result) if isinstance(result, dict) else None

    async def get_program_accounts(
        self,
        program_id: str,
        *,
        data_size: int | None = None,
        memcmp: list[tuple[int, str]] | None = None,
    ) -> list[dict[str, Any]]:
        """Accounts owned by program_id, base64-encoded, filtered by size and (offset, base58 bytes) matches."""
        filters: list[dict[str, Any]] = []
        if data_size is not None:
            filters.append({"dataSize": data_size})
        for offset, bytes_b58 in memcmp or []:
            filters.append({"memcmp": {"offset": offset, "bytes": bytes_b58}})
        config: dict[str, Any] = {"encoding": "base64", "commitment": self.commitment}
        if filters:
            config["filters"] = filters
        result = await self.call("getProgramAccounts", [program_id, config])
        return [a for a in result or [] if isinstance(a, dict)]

    async def get_token_accounts_for_mint(self, mint: str, token_program_id: str) -> list[dict[str, Any]]:
        """Every SPL token account of mint (dataSize 165, mint at offset 0)."""
        return await self.get_program_accounts(
            token_program_id,
            data_size=TOKEN_ACCOUNT_SIZE,
            memcmp=[(0, mint)],
        )

    async def get_slot(self) -> int:
        result = await self.call("getSlot", [{"commitment": self.commitment}])
        return int(result)

    async def get_block(self, slot: int) -> dict[str, Any] | None:
        """Full block with jsonParsed transactions; None for a skipped slot.

        Raises:
            RpcApiError: For any other error, including a block not available yet.
        """
        try:
            result = await self.call(
                "getBlock",
                [
                    slot,
                    {
                        "encoding": "jsonParsed",
                        "maxSupportedTransactionVersion": 0,
                        "transactionDetails": "full",
                        "rewards": False,
                        "commitment": self.commitment,
                    },
                ],
            )
        except RpcApiError as e:
            if e.code not in SKIPPED_SLOT_ERROR_CODES:
                raise
            self._logger.debug("rpc_slot_skipped", slot=slot, code=e.code)
            return None
        return cast(dict[str, Any], result) if isinstance(result, dict) else None
