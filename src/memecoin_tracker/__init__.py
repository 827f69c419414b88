"""Meme coin tracker: transaction detection, countdown sync and holder snapshots."""

from memecoin_tracker.clients import AsyncHttpClient, SolanaRpcClient
from memecoin_tracker.config import get_settings
from memecoin_tracker.DI import Container
from memecoin_tracker.services import (
    CountdownEngine,
    TransactionClassifier,
    TransactionTracker,
)

__version__ = "0.1.0"
__all__ = [
    "AsyncHttpClient",
    "Container",
    "CountdownEngine",
    "SolanaRpcClient",
    "TransactionClassifier",
    "TransactionTracker",
    "get_settings",
]
