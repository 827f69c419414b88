"""Normalized view of a fetched transaction: account keys and token balance deltas."""

from __future__ import annotations

from dataclasses import dataclass
from decimal import Decimal, InvalidOperation
from typing import Any

from memecoin_tracker.exceptions import TransactionParseError


@dataclass(frozen=True, slots=True)
class AccountKey:
    pubkey: str
    writable: bool
    signer: bool


@dataclass(frozen=True, slots=True)
class TokenBalanceChange:
    """Pre/post balance of one token account (missing side counts as zero)."""

    account_index: int
    account: str | None
    owner: str | None
    mint: str
    pre: Decimal
    post: Decimal
    in_pre: bool
    in_post: bool

    @property
    def delta(self) -> Decimal:
        return self.post - self.pre

    def belongs_to(self, address: str) -> bool:
        return address in (self.owner, self.account)


@dataclass(frozen=True, slots=True)
class ParsedTransaction:
    signature: str
    slot: int | None
    block_time: int | None
    failed: bool
    account_keys: tuple[AccountKey, ...]
    balance_changes: tuple[TokenBalanceChange, ...]

    @property
    def fee_payer(self) -> str | None:
        return self.account_keys[0].pubkey if self.account_keys else None

    def changes_for_mint(self, mint: str) -> list[TokenBalanceChange]:
        return [c for c in self.balance_changes if c.mint == mint]

    def touches_mint(self, mint: str) -> bool:
        return any(c.mint == mint for c in self.balance_changes)

    @classmethod
    def from_rpc(
        cls,
        payload: dict[str, Any],
        *,
        signature: str | None = None,
        block_time: int | None = None,
    ) -> ParsedTransaction:
        """Build from a getTransaction result (or a getBlock transaction entry).

        Raises:
            TransactionParseError: If the payload lacks meta or message data.
        """
        if not isinstance(payload, dict):
            raise TransactionParseError("transaction payload is not an object")
        meta = payload.get("meta")
        tx = payload.get("transaction")
        if not isinstance(meta, dict) or not isinstance(tx, dict):
            raise TransactionParseError("transaction payload has no meta/transaction")
        message = tx.get("message")
        if not isinstance(message, dict):
            raise TransactionParseError("transaction has no message")

        signatures = tx.get("signatures") or []
        sig = signature or (signatures[0] if signatures and isinstance(signatures[0], str) else None)
        if not sig:
            raise TransactionParseError("transaction has no signature")

        account_keys = _account_keys(message, meta)
        raw_block_time = payload.get("blockTime", block_time)
        raw_slot = payload.get("slot")
        return cls(
            signature=sig,
            slot=int(raw_slot) if isinstance(raw_slot, int) else None,
            block_time=int(raw_block_time) if isinstance(raw_block_time, (int, float)) else None,
            failed=meta.get("err") is not None,
            account_keys=account_keys,
            balance_changes=_balance_changes(meta, account_keys),
        )


def _account_keys(message: dict[str, Any], meta: dict[str, Any]) -> tuple[AccountKey, ...]:
    raw_keys = message.get("accountKeys")
    if not isinstance(raw_keys, list):
        raise TransactionParseError("message has no accountKeys")

    keys: list[AccountKey] = []
    if raw_keys and isinstance(raw_keys[0], dict):
        # jsonParsed: [{"pubkey", "writable", "signer", "source"}]
        for entry in raw_keys:
            pubkey = entry.get("pubkey") if isinstance(entry, dict) else None
            if not isinstance(pubkey, str):
                raise TransactionParseError("account key without pubkey")
            keys.append(
                AccountKey(
                    pubkey=pubkey,
                    writable=bool(entry.get("writable")),
                    signer=bool(entry.get("signer")),
                )
            )
        return tuple(keys)

    # Raw encoding: plain strings, writability derived from the header,
    # then lookup-table addresses appended writable first.
    header = message.get("header") or {}
    if not isinstance(header, dict):
        raise TransactionParseError("message header is not an object")
    n = len(raw_keys)
    required = _header_count(header, "numRequiredSignatures", 1)
    ro_signed = _header_count(header, "numReadonlySignedAccounts", 0)
    ro_unsigned = _header_count(header, "numReadonlyUnsignedAccounts", 0)
    for i, pubkey in enumerate(raw_keys):
        if not isinstance(pubkey, str):
            raise TransactionParseError("account key is not a string")
        signer = i < required
        writable = i < required - ro_signed if signer else i < n - ro_unsigned
        keys.append(AccountKey(pubkey=pubkey, writable=writable, signer=signer))
    loaded = meta.get("loadedAddresses") or {}
    if not isinstance(loaded, dict):
        raise TransactionParseError("loadedAddresses is not an object")
    for field, writable in (("writable", True), ("readonly", False)):
        addresses = loaded.get(field) or []
        if not isinstance(addresses, list):
            raise TransactionParseError(f"loadedAddresses.{field} is not a list")
        for pubkey in addresses:
            keys.append(AccountKey(pubkey=str(pubkey), writable=writable, signer=False))
    return tuple(keys)


def _header_count(header: dict[str, Any], field: str, default: int) -> int:
    value = header.get(field, default)
    try:
        count = int(value)
    except (TypeError, ValueError) as e:
        raise TransactionParseError(f"unreadable header {field}: {value!r}") from e
    if count < 0:
        raise TransactionParseError(f"negative header {field}: {count}")
    return count


def _ui_amount(entry: dict[str, Any]) -> Decimal:
    ui = entry.get("uiTokenAmount")
    if not isinstance(ui, dict):
        raise TransactionParseError("token balance without uiTokenAmount")
    try:
        if ui.get("uiAmountString") is not None:
            return Decimal(str(ui["uiAmountString"]))
        decimals = int(ui.get("decimals", 0))
        return Decimal(str(ui.get("amount", "0"))).scaleb(-decimals)
    except (InvalidOperation, ValueError) as e:
        raise TransactionParseError(f"unreadable token amount: {ui!r}") from e


def _balance_changes(
    meta: dict[str, Any], account_keys: tuple[AccountKey, ...]
) -> tuple[TokenBalanceChange, ...]:
    pre_raw = meta.get("preTokenBalances") or []
    post_raw = meta.get("postTokenBalances") or []
    if not isinstance(pre_raw, list) or not isinstance(post_raw, list):
        raise TransactionParseError("token balances are not lists")

    merged: dict[tuple[int, str], dict[str, Any]] = {}
    for side, entries in (("pre", pre_raw), ("post", post_raw)):
        for entry in entries:
            if not isinstance(entry, dict):
                raise TransactionParseError("token balance entry is not an object")
            index = entry.get("accountIndex")
            mint = entry.get("mint")
            if not isinstance(index, int) or not isinstance(mint, str):
                raise TransactionParseError("token balance without accountIndex/mint")
            slot = merged.setdefault((index, mint), {"owner": None})
            slot[side] = _ui_amount(entry)
            slot["owner"] = slot["owner"] or entry.get("owner")

    changes: list[TokenBalanceChange] = []
    for (index, mint), slot in sorted(merged.items()):
        account = account_keys[index].pubkey if 0 <= index < len(account_keys) else None
        changes.append(
            TokenBalanceChange(
                account_index=index,
                account=account,
                owner=slot["owner"] if isinstance(slot["owner"], str) else None,
                mint=mint,
                pre=slot.get("pre", Decimal(0)),
                post=slot.get("post", Decimal(0)),
                in_pre="pre" in slot,
                in_post="post" in slot,
            )
        )
    return tuple(changes)
