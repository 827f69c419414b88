"""Dependency injection."""

from memecoin_tracker.DI.container import Container

__all__ = ["Container"]
