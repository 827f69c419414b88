"""Transaction classification."""

from memecoin_tracker.services.classification.classifier import (
    UNKNOWN_ADDRESS,
    TransactionClassifier,
)
from memecoin_tracker.services.classification.parsed_transaction import (
    AccountKey,
    ParsedTransaction,
    TokenBalanceChange,
)
from memecoin_tracker.services.classification.strategies import (
    DEFAULT_STRATEGIES,
    AccountCountStrategy,
    ClassificationContext,
    DefaultStrategy,
    DirectionResult,
    DirectionStrategy,
    MintDeltaStrategy,
    PoolDeltaStrategy,
)

__all__ = [
    "DEFAULT_STRATEGIES",
    "UNKNOWN_ADDRESS",
    "AccountCountStrategy",
    "AccountKey",
    "ClassificationContext",
    "DefaultStrategy",
    "DirectionResult",
    "DirectionStrategy",
    "MintDeltaStrategy",
    "ParsedTransaction",
    "PoolDeltaStrategy",
    "TokenBalanceChange",
    "TransactionClassifier",
]
