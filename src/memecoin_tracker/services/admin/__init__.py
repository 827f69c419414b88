"""Admin console operations."""

from memecoin_tracker.services.admin.admin_service import (
    MAX_COUNTDOWN_MINUTES,
    MIN_COUNTDOWN_MINUTES,
    AdminService,
    DetectionStatus,
)

__all__ = ["AdminService", "DetectionStatus", "MAX_COUNTDOWN_MINUTES", "MIN_COUNTDOWN_MINUTES"]
