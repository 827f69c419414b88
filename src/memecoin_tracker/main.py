# -*- coding: utf-8 -*-
"""
Entry point for the meme coin tracker.

Orchestrates: logging, settings, container, optional detection auto-start,
countdown ticks, transaction consumer, tracker (detection control follower),
holder snapshots, notifications, shutdown (SIGINT or CancelledError).
Transactions flow: tracker -> queue -> consumer -> TransactionProcessorService
(classify, ledgers, large-transaction reactions).

Run with: python -m memecoin_tracker.main [run]
One-shot commands: export PATH [--csv PATH], points WALLET.
"""
from __future__ import annotations

import argparse
import asyncio
import signal
import structlog
from pathlib import Path
from typing import Any, Optional, Sequence

from memecoin_tracker.clients.points import PointsBalance
from memecoin_tracker.DI import Container
from memecoin_tracker.exceptions import ConfigValidationError
from memecoin_tracker.logging.config import configure_logging
from memecoin_tracker.notifications.types import NotificationMessage
from memecoin_tracker.scheduling import CancelToken
from memecoin_tracker.utils import mask_address


def _setup_sigint(shutdown_event: asyncio.Event) -> None:
    try:
        loop = asyncio.get_running_loop()
        loop.add_signal_handler(signal.SIGINT, shutdown_event.set)
        loop.add_signal_handler(signal.SIGTERM, shutdown_event.set)
    except NotImplementedError:
        pass  # Windows has no add_signal_handler


async def _auto_start_detection(container: Container, logger: Any) -> None:
    settings = container.config()
    rpc_url = settings.detection.rpc_url or settings.rpc.endpoint_url
    token_address = settings.detection.token_address or settings.token.token_address
    try:
        await container.admin_service().start_detection(rpc_url, token_address)
    except ConfigValidationError as e:
        logger.error(
            "main_auto_start_rejected",
            token_masked=mask_address(token_address),
            errors=e.errors,
        )


async def run() -> None:
    configure_logging()
    logger = structlog.get_logger("main")
    container = Container()
    settings = container.config()

    event_bus = container.event_bus()
    scheduler = container.scheduler()
    tracker = container.transaction_tracker()
    consumer = container.transaction_consumer()
    transaction_queue = container.transaction_queue()
    holder_engine = container.holder_engine()
    reaction_notifier = container.reaction_notifier()
    notification_service = container.notification_service()
    launch_countdown = container.launch_countdown()
    reward_countdown = container.reward_countdown()

    await notification_service.initialize()
    reaction_notifier.start()
    holder_engine.start(event_bus)
    shutdown_event = asyncio.Event()
    _setup_sigint(shutdown_event)

    if settings.detection.auto_start:
        await _auto_start_detection(container, logger)

    countdown_jobs: list[CancelToken] = [
        scheduler.schedule(settings.countdown.tick_seconds, launch_countdown.tick, name="launch_countdown"),
        scheduler.schedule(settings.countdown.tick_seconds, reward_countdown.tick, name="reward_countdown"),
    ]

    await consumer.start()
    await tracker.start()
    logger.info(
        "main_started",
        token_masked=mask_address(settings.token.token_address),
        poll_seconds=settings.polling.poll_seconds,
        polling_mode=settings.polling.mode,
        shared_store="remote" if settings.storage.remote_url else "in_memory",
    )
    notification_service.notify(
        NotificationMessage(event_type="system_started", message="Meme coin tracker started")
    )

    try:
        await shutdown_event.wait()
    finally:
        await tracker.stop()
        for job in countdown_jobs:
            job.cancel()
        await scheduler.shutdown()
        transaction_queue.shutdown()
        await transaction_queue.join()
        await consumer.stop()

        holder_engine.stop()
        reaction_notifier.stop()
        notification_service.notify(
            NotificationMessage(event_type="system_stopped", message="Meme coin tracker stopped")
        )
        await notification_service.shutdown()
        await _close(container)
        logger.info("main_shutdown_complete")


async def _close(container: Container) -> None:
    await container.shared_store().aclose()
    await container.local_store().aclose()
    await container.http_client().aclose()


async def export(path: str, csv_path: Optional[str] = None) -> Path:
    """Write the JSON export (and optionally the transactions CSV) from the shared store."""
    configure_logging()
    container = Container()
    try:
        service = container.export_service()
        target = await service.write_document(path)
        if csv_path:
            csv_target = Path(csv_path)
            csv_target.parent.mkdir(parents=True, exist_ok=True)
            csv_target.write_text(await service.transactions_csv(), encoding="utf-8")
        return target
    finally:
        await _close(container)


async def points_balance(wallet: str) -> PointsBalance:
    """Look up one wallet on the configured points ledger."""
    configure_logging()
    container = Container()
    try:
        return await container.points_ledger().get_balance(wallet)
    finally:
        await _close(container)


def _parse_args(argv: Optional[Sequence[str]]) -> argparse.Namespace:
    parser = argparse.ArgumentParser(prog="memecoin-tracker", description="Meme coin transaction tracker")
    commands = parser.add_subparsers(dest="command")
    commands.add_parser("run", help="Run the tracker until SIGINT (default)")
    export_cmd = commands.add_parser("export", help="Export stored history as JSON")
    export_cmd.add_argument("path", help="JSON output file")
    export_cmd.add_argument("--csv", dest="csv_path", help="Also write the backend ledger as CSV")
    points_cmd = commands.add_parser("points", help="Show a wallet's points balance")
    points_cmd.add_argument("wallet")
    return parser.parse_args(argv)


def main(argv: Optional[Sequence[str]] = None) -> None:
    args = _parse_args(argv)
    if args.command == "export":
        target = asyncio.run(export(args.path, args.csv_path))
        print(f"Export written to {target}")
    elif args.command == "points":
        balance = asyncio.run(points_balance(args.wallet))
        print(f"{balance.wallet}: {balance.points} points, {balance.tokens} tokens")
    else:
        asyncio.run(run())


__all__ = ["export", "main", "points_balance", "run"]

if __name__ == "__main__":
    main()
