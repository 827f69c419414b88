# -*- coding: utf-8 -*-
"""Utility modules."""

from memecoin_tracker.utils.validation import (
    display_address,
    is_rpc_url,
    is_solana_address,
    mask_address,
)

__all__ = ["display_address", "is_rpc_url", "is_solana_address", "mask_address"]
