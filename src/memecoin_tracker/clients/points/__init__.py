"""Points / token-exchange ledger clients."""

from memecoin_tracker.clients.points.base import PointsBalance, PointsLedger
from memecoin_tracker.clients.points.cloud_functions import CloudFunctionsPointsLedger
from memecoin_tracker.clients.points.in_memory import InMemoryPointsLedger

__all__ = [
    "CloudFunctionsPointsLedger",
    "InMemoryPointsLedger",
    "PointsBalance",
    "PointsLedger",
]
