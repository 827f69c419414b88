"""Logging setup (structlog + Logfire)."""

from memecoin_tracker.logging.config import configure_logging

__all__ = ["configure_logging"]
