"""Large-transaction reactions."""

from memecoin_tracker.services.reactions.reaction_engine import (
    LargeTransactionReactionEngine,
    ReactionResult,
)
from memecoin_tracker.services.reactions.records import (
    Leaderboard,
    NotificationLog,
    NotificationStats,
)

__all__ = [
    "LargeTransactionReactionEngine",
    "Leaderboard",
    "NotificationLog",
    "NotificationStats",
    "ReactionResult",
]
