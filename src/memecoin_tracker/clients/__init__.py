"""HTTP and API clients."""

from memecoin_tracker.clients.http import AsyncHttpClient
from memecoin_tracker.clients.points import (
    CloudFunctionsPointsLedger,
    InMemoryPointsLedger,
    PointsBalance,
    PointsLedger,
)
from memecoin_tracker.clients.solana_rpc import SolanaRpcClient

__all__ = [
    "AsyncHttpClient",
    "CloudFunctionsPointsLedger",
    "InMemoryPointsLedger",
    "PointsBalance",
    "PointsLedger",
    "SolanaRpcClient",
]
