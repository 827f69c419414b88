"""Validation helpers for Solana addresses and RPC endpoints."""

from __future__ import annotations

from typing import Any
from urllib.parse import urlparse

import base58

MIN_ADDRESS_LENGTH = 30
MAX_ADDRESS_LENGTH = 50
MIN_RPC_URL_LENGTH = 10
MAX_RPC_URL_LENGTH = 200


def is_solana_address(addr: Any) -> bool:
    """Return True if addr is base58 text of 30-50 chars decoding to a 32-byte public key."""
    if not isinstance(addr, str):
        return False
    s = addr.strip()
    if not MIN_ADDRESS_LENGTH <= len(s) <= MAX_ADDRESS_LENGTH:
        return False
    try:
        return len(base58.b58decode(s)) == 32
    except ValueError:
        return False


def is_rpc_url(url: Any) -> bool:
    """Return True if url is an http(s) URL of 10-200 chars with a host."""
    if not isinstance(url, str):
        return False
    s = url.strip()
    if not MIN_RPC_URL_LENGTH <= len(s) <= MAX_RPC_URL_LENGTH:
        return False
    parsed = urlparse(s)
    return parsed.scheme in ("http", "https") and bool(parsed.netloc)


def mask_address(addr: str | None) -> str:
    """Return a masked address for logging (e.g. 4k3Dyj...kX6R)."""
    if not addr or len(addr) < 10:
        return "***"
    return f"{addr[:6]}...{addr[-4:]}"


def display_address(addr: str | None) -> str:
    """Short form shown next to a transaction: first 6 and last 4 characters."""
    if not addr:
        return "Unknown"
    if len(addr) <= 10:
        return addr
    return f"{addr[:6]}...{addr[-4:]}"
