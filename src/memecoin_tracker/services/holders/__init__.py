"""Holder ranking and snapshots."""

from memecoin_tracker.services.holders.account_parser import (
    decode_token_account,
    rank_holders,
)
from memecoin_tracker.services.holders.holder_snapshot_engine import HolderSnapshotEngine

__all__ = ["HolderSnapshotEngine", "decode_token_account", "rank_holders"]
