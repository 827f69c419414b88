# -*- coding: utf-8 -*-
"""Application services."""

from memecoin_tracker.services.admin import AdminService, DetectionStatus
from memecoin_tracker.services.classification import TransactionClassifier
from memecoin_tracker.services.countdown import CountdownEngine
from memecoin_tracker.services.detection import TransactionPoller, TransactionTracker
from memecoin_tracker.services.export import ExportService
from memecoin_tracker.services.holders import HolderSnapshotEngine
from memecoin_tracker.services.ledger import TransactionLedger
from memecoin_tracker.services.notifications import ReactionNotifier
from memecoin_tracker.services.processing import ProcessingOutcome, TransactionProcessorService
from memecoin_tracker.services.reactions import (
    LargeTransactionReactionEngine,
    Leaderboard,
    NotificationLog,
    ReactionResult,
)

__all__ = [
    "AdminService",
    "CountdownEngine",
    "DetectionStatus",
    "ExportService",
    "HolderSnapshotEngine",
    "LargeTransactionReactionEngine",
    "Leaderboard",
    "NotificationLog",
    "ProcessingOutcome",
    "ReactionNotifier",
    "ReactionResult",
    "TransactionClassifier",
    "TransactionLedger",
    "TransactionPoller",
    "TransactionProcessorService",
    "TransactionTracker",
]
