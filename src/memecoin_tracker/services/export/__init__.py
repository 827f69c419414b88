"""Ledger export."""

from memecoin_tracker.services.export.export_service import CSV_HEADERS, EXPORT_VERSION, ExportService

__all__ = ["CSV_HEADERS", "EXPORT_VERSION", "ExportService"]
