# -*- coding: utf-8 -*-
"""Plain-text styler with emoji headings for console output."""

from __future__ import annotations

import html
from decimal import Decimal, InvalidOperation
from typing import Any

from memecoin_tracker.notifications.types import NotificationMessage, NotificationStyler

_TITLES: dict[str, tuple[str, str]] = {
    "large_buy": ("🟢", "Large Buy"),
    "large_sell": ("🔴", "Large Sell"),
    "large_transaction": ("🐋", "Large Transaction"),
    "round_complete": ("🏁", "Round Complete"),
    "reward_round_complete": ("🎁", "Reward Round Complete"),
    "detection_started": ("▶️", "Detection Started"),
    "detection_stopped": ("⏹️", "Detection Stopped"),
    "system_started": ("🚀", "System Started"),
    "system_stopped": ("🛑", "System Stopped"),
}


class EventNotificationStyler(NotificationStyler):
    """Render by event_type: heading line, message, then a short detail section."""

    def render(self, message: NotificationMessage) -> str:
        emoji, title = self._title(message.event_type)
        heading = f"{emoji} {message.title or title}"
        lines = [heading, message.message]
        payload = message.payload or {}
        if message.event_type in ("large_buy", "large_sell", "large_transaction"):
            lines.append(self._transaction_section(payload))
        elif payload:
            lines.append(self._section([(k, payload[k]) for k in sorted(payload)]))
        return "\n".join(line for line in lines if line).strip()

    def _transaction_section(self, payload: dict[str, Any]) -> str:
        rows: list[tuple[str, Any]] = [
            ("Amount", self._format_amount(payload.get("amount"))),
            ("Trader", payload.get("address_display")),
            ("Signature", payload.get("signature")),
            ("Countdown extended", "yes" if payload.get("countdown_extended") else None),
            ("Leaderboard", "updated" if payload.get("leaderboard_updated") else None),
        ]
        return self._section(rows)

    @staticmethod
    def _title(event_type: str) -> tuple[str, str]:
        return _TITLES.get(event_type, ("ℹ️", event_type.replace("_", " ").title()))

    @staticmethod
    def _section(rows: list[tuple[str, Any]]) -> str:
        content = [f"  {label}: {value}" for label, value in rows if value not in (None, "")]
        if not content:
            return ""
        return "─" * 12 + "\n" + "\n".join(content)

    @staticmethod
    def _format_amount(value: Any) -> str | None:
        """Thousands separators, two decimals; non-numeric values pass through."""
        if value is None:
            return None
        try:
            number = Decimal(str(value))
        except InvalidOperation:
            return str(value)
        return f"{number:,.2f}"


class HtmlNotificationStyler(EventNotificationStyler):
    """Telegram HTML parse mode: escaped text, bold heading, signature as a Solscan link."""

    def render(self, message: NotificationMessage) -> str:
        heading, _, body = super().render(message).partition("\n")
        parts = [f"<b>{html.escape(heading)}</b>"]
        if body:
            parts.append(html.escape(body))
        signature = (message.payload or {}).get("signature")
        if isinstance(signature, str) and signature:
            parts.append(f'<a href="https://solscan.io/tx/{html.escape(signature)}">View on Solscan</a>')
        return "\n".join(parts)
