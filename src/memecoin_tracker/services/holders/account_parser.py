"""Decoding of raw SPL token accounts into ranked holders."""

from __future__ import annotations

import base64
import binascii
import struct
from collections.abc import Iterable
from typing import Any

import base58

from memecoin_tracker.exceptions import AccountParseError
from memecoin_tracker.models.holder import HolderRecord

# SPL token account layout: mint [0,32), owner [32,64), amount u64 LE [64,72)
OWNER_OFFSET = 32
AMOUNT_OFFSET = 64
_AMOUNT = struct.Struct("<Q")


def decode_token_account(data: bytes) -> tuple[str, int]:
    """Return (owner base58, raw amount) from token account bytes."""
    if len(data) < AMOUNT_OFFSET + _AMOUNT.size:
        raise AccountParseError(f"token account too short: {len(data)} bytes")
    owner = base58.b58encode(data[OWNER_OFFSET:AMOUNT_OFFSET]).decode("ascii")
    (amount,) = _AMOUNT.unpack_from(data, AMOUNT_OFFSET)
    return owner, amount


def account_bytes(entry: dict[str, Any]) -> bytes:
    """Raw bytes of one getProgramAccounts entry ({"account": {"data": [b64, "base64"]}})."""
    account = entry.get("account")
    data = account.get("data") if isinstance(account, dict) else None
    if isinstance(data, list) and data and isinstance(data[0], str):
        encoded = data[0]
    elif isinstance(data, str):
        encoded = data
    else:
        raise AccountParseError("account entry has no base64 data")
    try:
        return base64.b64decode(encoded, validate=True)
    except (binascii.Error, ValueError) as e:
        raise AccountParseError(f"account data is not base64: {e}") from e


def rank_holders(
    owners: Iterable[tuple[str, int]],
    *,
    exclude: Iterable[str] = (),
    top_n: int = 20,
) -> list[HolderRecord]:
    """Drop excluded and zero balances, keep the first occurrence of each owner,
    sort by balance descending and assign 1-based ranks."""
    excluded = set(exclude)
    seen: set[str] = set()
    kept: list[tuple[str, int]] = []
    for owner, balance in owners:
        if owner in excluded or balance <= 0 or owner in seen:
            continue
        seen.add(owner)
        kept.append((owner, balance))
    kept.sort(key=lambda item: item[1], reverse=True)
    return [
        HolderRecord(address=owner, balance=balance, rank=rank)
        for rank, (owner, balance) in enumerate(kept[:top_n], start=1)
    ]
