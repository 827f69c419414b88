"""Configuration subpackage."""

from memecoin_tracker.config.config import (
    AppSettings,
    ConsoleNotificationSettings,
    CountdownSettings,
    DetectionSettings,
    HolderSettings,
    LedgerSettings,
    LoggingSettings,
    PointsSettings,
    PollingSettings,
    ReactionSettings,
    RpcSettings,
    Settings,
    StorageSettings,
    TokenSettings,
    get_settings,
)

__all__ = [
    "AppSettings",
    "ConsoleNotificationSettings",
    "CountdownSettings",
    "DetectionSettings",
    "HolderSettings",
    "LedgerSettings",
    "LoggingSettings",
    "PointsSettings",
    "PollingSettings",
    "ReactionSettings",
    "RpcSettings",
    "Settings",
    "StorageSettings",
    "TokenSettings",
    "get_settings",
]
