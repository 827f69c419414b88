# -*- coding: utf-8 -*-
"""Domain models."""

from memecoin_tracker.models.admin_config import (
    ADMIN_CONFIG_VERSION,
    AdminConfig,
    migrate_admin_config,
)
from memecoin_tracker.models.countdown import CountdownKind, CountdownState
from memecoin_tracker.models.detection import (
    ConnectionStatus,
    ConnectResult,
    DetectionControl,
    NewTransactionRef,
)
from memecoin_tracker.models.holder import REWARD_END_SNAPSHOT, HolderRecord, HolderSnapshot
from memecoin_tracker.models.reaction import LeaderboardEntry, NotificationRecord
from memecoin_tracker.models.transaction import (
    ClassificationMethod,
    LedgerStats,
    TransactionDirection,
    TransactionRecord,
    TransactionStatus,
    format_amount,
)

__all__ = [
    "ADMIN_CONFIG_VERSION",
    "AdminConfig",
    "ClassificationMethod",
    "ConnectResult",
    "ConnectionStatus",
    "CountdownKind",
    "CountdownState",
    "DetectionControl",
    "HolderRecord",
    "HolderSnapshot",
    "LeaderboardEntry",
    "LedgerStats",
    "NewTransactionRef",
    "NotificationRecord",
    "REWARD_END_SNAPSHOT",
    "TransactionDirection",
    "TransactionRecord",
    "TransactionStatus",
    "format_amount",
    "migrate_admin_config",
]
