# -*- coding: utf-8 -*-
"""Dependency injection container (dependency-injector)."""

from __future__ import annotations

from dependency_injector import containers, providers

from memecoin_tracker.clients.http import AsyncHttpClient
from memecoin_tracker.clients.points import CloudFunctionsPointsLedger, InMemoryPointsLedger, PointsLedger
from memecoin_tracker.clients.solana_rpc import SolanaRpcClient
from memecoin_tracker.config import Settings, get_settings
from memecoin_tracker.consumers.transaction_consumer import TransactionConsumer
from memecoin_tracker.events.bus import get_event_bus
from memecoin_tracker.models.countdown import CountdownKind
from memecoin_tracker.models.detection import NewTransactionRef
from memecoin_tracker.notifications.notification_manager import NotificationService
from memecoin_tracker.notifications.strategies.base import BaseNotificationStrategy
from memecoin_tracker.notifications.strategies.console import ConsoleNotifier
from memecoin_tracker.notifications.strategies.telegram import TelegramNotifier
from memecoin_tracker.notifications.stylers.notification_styler import (
    EventNotificationStyler,
    HtmlNotificationStyler,
)
from memecoin_tracker.queue import InMemoryQueue, QueueMessage
from memecoin_tracker.scheduling import AsyncioScheduler, Scheduler
from memecoin_tracker.services.admin import AdminService
from memecoin_tracker.services.classification import TransactionClassifier
from memecoin_tracker.services.countdown import CountdownEngine
from memecoin_tracker.services.detection import TransactionPoller, TransactionTracker
from memecoin_tracker.services.export import ExportService
from memecoin_tracker.services.holders import HolderSnapshotEngine
from memecoin_tracker.services.ledger import TransactionLedger
from memecoin_tracker.services.notifications import ReactionNotifier
from memecoin_tracker.services.processing import TransactionProcessorService
from memecoin_tracker.services.reactions import LargeTransactionReactionEngine, Leaderboard, NotificationLog
from memecoin_tracker.storage import (
    InMemoryKeyValueStore,
    JsonFileKeyValueStore,
    KeyValueStore,
    RealtimeDatabaseStore,
    keys,
)


def _build_transaction_queue(settings: Settings) -> InMemoryQueue[QueueMessage[NewTransactionRef]]:
    return InMemoryQueue[QueueMessage[NewTransactionRef]](maxsize=settings.polling.queue_size)


def _build_shared_store(
    settings: Settings,
    http_client: AsyncHttpClient,
    scheduler: Scheduler,
) -> KeyValueStore:
    """Realtime database when storage.remote_url is set, else a process-local in-memory store."""
    storage = settings.storage
    if not storage.remote_url:
        return InMemoryKeyValueStore()
    return RealtimeDatabaseStore(
        http_client,
        storage.remote_url,
        scheduler,
        auth_token=storage.remote_auth_token,
        poll_seconds=storage.remote_poll_seconds,
    )


def _build_points_ledger(settings: Settings, http_client: AsyncHttpClient) -> PointsLedger:
    points = settings.points
    if points.functions_url:
        return CloudFunctionsPointsLedger(
            http_client, points.functions_url, exchange_ratio=points.exchange_ratio
        )
    return InMemoryPointsLedger(exchange_ratio=points.exchange_ratio)


def _build_countdowns(
    launch: CountdownEngine, reward: CountdownEngine
) -> dict[CountdownKind, CountdownEngine]:
    return {CountdownKind.LAUNCH: launch, CountdownKind.REWARD: reward}


def _build_notification_notifiers(
    settings: Settings,
    styler: EventNotificationStyler,
) -> list[BaseNotificationStrategy]:
    notifiers: list[BaseNotificationStrategy] = []
    if settings.console.enabled:
        notifiers.append(ConsoleNotifier(settings=settings, styler=styler))
    if settings.telegram.enabled:
        notifiers.append(TelegramNotifier(settings=settings, styler=HtmlNotificationStyler()))
    return notifiers


class Container(containers.DeclarativeContainer):
    """Application container. Wires settings, clients, stores, engines and workers."""

    config = providers.Callable(get_settings)

    http_client = providers.Singleton(AsyncHttpClient, settings=config)

    rpc_client = providers.Singleton(SolanaRpcClient, http_client=http_client, settings=config)

    scheduler = providers.Singleton(AsyncioScheduler)

    event_bus = providers.Callable(get_event_bus)

    local_store = providers.Singleton(
        JsonFileKeyValueStore,
        path=config.provided.storage.local_path,
        quota_bytes=config.provided.storage.local_quota_bytes,
    )

    shared_store = providers.Singleton(_build_shared_store, config, http_client, scheduler)

    points_ledger = providers.Singleton(_build_points_ledger, config, http_client)

    launch_countdown = providers.Singleton(
        CountdownEngine,
        CountdownKind.LAUNCH,
        shared_store,
        local_store,
        default_seconds=config.provided.countdown.launch_default_seconds,
        ceiling_seconds=config.provided.countdown.ceiling_seconds,
        event_bus=event_bus,
    )

    reward_countdown = providers.Singleton(
        CountdownEngine,
        CountdownKind.REWARD,
        shared_store,
        local_store,
        default_seconds=config.provided.countdown.reward_default_seconds,
        ceiling_seconds=config.provided.countdown.reward_default_seconds,
        event_bus=event_bus,
    )

    frontend_ledger = providers.Singleton(
        TransactionLedger,
        local_store,
        keys.FRONTEND_TRANSACTIONS,
        capacity=config.provided.ledger.max_frontend_records,
    )

    backend_ledger = providers.Singleton(
        TransactionLedger,
        shared_store,
        keys.BACKEND_TRANSACTIONS,
        capacity=config.provided.ledger.max_backend_records,
    )

    notification_log = providers.Singleton(
        NotificationLog,
        shared_store,
        capacity=config.provided.reactions.max_notifications,
    )

    leaderboard = providers.Singleton(
        Leaderboard,
        shared_store,
        capacity=config.provided.reactions.max_success_addresses,
    )

    reaction_engine = providers.Singleton(
        LargeTransactionReactionEngine,
        notification_log,
        leaderboard,
        launch_countdown,
        threshold=config.provided.reactions.large_transaction_threshold,
        extension_seconds=config.provided.reactions.extension_seconds,
        event_bus=event_bus,
    )

    classifier = providers.Singleton(
        TransactionClassifier,
        token_mint=config.provided.token.token_address,
        pool_address=config.provided.token.pool_address,
    )

    holder_engine = providers.Singleton(
        HolderSnapshotEngine,
        rpc_client,
        shared_store,
        token_address=config.provided.token.token_address,
        pool_address=config.provided.token.pool_address,
        token_program_id=config.provided.token.token_program_id,
        top_n=config.provided.holders.top_n,
        max_snapshots=config.provided.holders.max_snapshots,
    )

    transaction_poller = providers.Singleton(
        TransactionPoller,
        rpc_client,
        local_store,
        token_address=config.provided.token.token_address,
        watch_address=config.provided.token.watch_address,
        mode=config.provided.polling.mode,
        backfill_on_start=config.provided.polling.backfill_on_start,
        signatures_limit=config.provided.rpc.signatures_limit,
        max_signature_pages=config.provided.polling.max_signature_pages,
    )

    transaction_queue = providers.Singleton(_build_transaction_queue, config)

    transaction_tracker = providers.Singleton(
        TransactionTracker,
        transaction_poller,
        transaction_queue,
        shared_store,
        local_store,
        scheduler,
        poll_seconds=config.provided.polling.poll_seconds,
        holder_engine=holder_engine,
        holder_refresh_seconds=config.provided.holders.refresh_seconds,
        event_bus=event_bus,
    )

    transaction_processor_service = providers.Singleton(
        TransactionProcessorService,
        classifier,
        frontend_ledger,
        backend_ledger,
        reaction_engine,
    )

    transaction_consumer = providers.Singleton(
        TransactionConsumer,
        queue=transaction_queue,
        processor=transaction_processor_service,
    )

    notification_styler = providers.Singleton(EventNotificationStyler)

    notification_service = providers.Singleton(
        NotificationService,
        notifiers=providers.Callable(_build_notification_notifiers, config, notification_styler),
    )

    reaction_notifier = providers.Singleton(
        ReactionNotifier,
        notification_service=notification_service,
        event_bus=event_bus,
    )

    admin_service = providers.Singleton(
        AdminService,
        config,
        http_client,
        shared_store,
        local_store,
        countdowns=providers.Callable(_build_countdowns, launch_countdown, reward_countdown),
        frontend_ledger=frontend_ledger,
        backend_ledger=backend_ledger,
        notification_log=notification_log,
        leaderboard=leaderboard,
        holder_engine=holder_engine,
    )

    export_service = providers.Singleton(
        ExportService,
        backend_ledger,
        notification_log,
        leaderboard,
        holder_engine,
    )
