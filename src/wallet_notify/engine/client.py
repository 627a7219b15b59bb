"""NotifyEngine — central engine client owning all pipeline components."""

from __future__ import annotations

from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from wallet_notify.cache.client import CacheClient
    from wallet_notify.config.settings import AppConfig
    from wallet_notify.datastore.client import Datastore
    from wallet_notify.engine.directory import EndpointDirectory, FollowDirectory, PreferenceStore
    from wallet_notify.engine.drainer import QueueDrainer
    from wallet_notify.engine.eligibility import EligibilityFilter
    from wallet_notify.engine.reconciler import OutcomeReconciler
    from wallet_notify.engine.services.history_service import HistoryService
    from wallet_notify.engine.services.queue_service import QueueService
    from wallet_notify.engine.targets import TargetResolver
    from wallet_notify.metrics.collector import NotifyMetrics
    from wallet_notify.push.client import ExpoPushClient
    from wallet_notify.push.dispatcher import BatchDispatcher
    from wallet_notify.taskmanager.manager import TaskManager

# Error messages
_ERR_NOT_INITIALIZED = "Engine not initialized. Call initialize() first."


class NotifyEngine:
    """Central engine that builds, wires and tears down the pipeline.

    Every component receives its collaborators explicitly; the engine is the
    only place that knows how they fit together.
    """

    def __init__(self, config: AppConfig, *, metrics: NotifyMetrics | None = None) -> None:
        """Initialize engine with configuration.

        Args:
            config: Application configuration.
            metrics: Metrics shared with the HTTP layer; created on demand if omitted.
        """
        self._config = config
        self._initialized = False

        # Infrastructure
        self._datastore: Datastore | None = None
        self._cache: CacheClient | None = None
        self._push_client: ExpoPushClient | None = None
        self._metrics: NotifyMetrics | None = metrics

        # Pipeline
        self._preferences: PreferenceStore | None = None
        self._endpoints: EndpointDirectory | None = None
        self._follows: FollowDirectory | None = None
        self._resolver: TargetResolver | None = None
        self._eligibility: EligibilityFilter | None = None
        self._dispatcher: BatchDispatcher | None = None
        self._reconciler: OutcomeReconciler | None = None
        self._drainer: QueueDrainer | None = None

        # Services
        self._queue_service: QueueService | None = None
        self._history_service: HistoryService | None = None
        self._task_manager: TaskManager | None = None

    async def initialize(self) -> None:
        """Open the datastore and cache, build the pipeline, start cron jobs.

        Raises:
            RuntimeError: If already initialized.
        """
        if self._initialized:
            msg = "Engine already initialized"
            raise RuntimeError(msg)

        # Import here to avoid circular deps
        from wallet_notify.cache.client import CacheClient
        from wallet_notify.datastore.client import Datastore
        from wallet_notify.datastore.migrations import run_auto_migrate

        # Initialize datastore
        self._datastore = Datastore(self._config.db)
        await self._datastore.open()
        await run_auto_migrate(self._datastore.engine)

        # Initialize cache
        self._cache = CacheClient(self._config.cache)
        await self._cache.connect()

        # Initialize metrics
        from wallet_notify.metrics.collector import NotifyMetrics

        if self._metrics is None and self._config.metrics.enabled:
            self._metrics = NotifyMetrics()

        # Initialize push transport
        from wallet_notify.push.client import ExpoPushClient
        from wallet_notify.push.dispatcher import BatchDispatcher

        push = self._config.push
        self._push_client = ExpoPushClient(push)
        await self._push_client.connect()
        self._dispatcher = BatchDispatcher(
            self._push_client,
            chunk_size=push.chunk_size,
            workers=push.workers,
            ttl=push.ttl_seconds,
            priority=push.priority.value,
            sound=push.sound or None,
            metrics=self._metrics,
        )

        # Initialize pipeline components
        from wallet_notify.engine.directory import EndpointDirectory, FollowDirectory, PreferenceStore
        from wallet_notify.engine.drainer import QueueDrainer
        from wallet_notify.engine.eligibility import EligibilityFilter
        from wallet_notify.engine.reconciler import OutcomeReconciler
        from wallet_notify.engine.targets import TargetResolver

        queue = self._config.queue
        self._preferences = PreferenceStore(self._datastore, timeout=queue.lookup_timeout)
        self._endpoints = EndpointDirectory(self._datastore, timeout=queue.lookup_timeout)
        self._follows = FollowDirectory(self._datastore, timeout=queue.lookup_timeout)
        self._resolver = TargetResolver(self._preferences, self._endpoints, self._follows)
        self._eligibility = EligibilityFilter(
            self._preferences,
            fail_closed_categories=queue.fail_closed_categories,
        )
        self._reconciler = OutcomeReconciler(
            self._datastore,
            self._endpoints,
            cache=self._cache,
            metrics=self._metrics,
        )
        self._drainer = QueueDrainer(
            self._datastore,
            self._resolver,
            self._endpoints,
            self._eligibility,
            self._dispatcher,
            self._reconciler,
            metrics=self._metrics,
        )

        # Initialize services
        from wallet_notify.engine.services.history_service import HistoryService
        from wallet_notify.engine.services.queue_service import QueueService

        self._queue_service = QueueService(self)
        self._history_service = HistoryService(self)

        # Initialize task manager and register cron jobs
        from functools import partial

        from wallet_notify.taskmanager.manager import CronJob, TaskManager
        from wallet_notify.taskmanager.tasks import DRAIN_QUEUE_JOB, task_drain_queue

        if self._config.task.enabled:
            self._task_manager = TaskManager(metrics=self._metrics)
            self._task_manager.register(
                DRAIN_QUEUE_JOB,
                CronJob(handler=partial(task_drain_queue, self), period=queue.drain_period),
            )
            await self._task_manager.start()

        self._initialized = True

    async def close(self) -> None:
        """Gracefully shut down all components.

        Can be called multiple times (idempotent).
        """
        if not self._initialized:
            return

        # Stop claiming, then let the in-flight intent finish
        if self._drainer is not None:
            self._drainer.request_stop()
        if self._task_manager is not None:
            await self._task_manager.stop()
            self._task_manager = None

        # Tear down pipeline and services
        self._queue_service = None
        self._history_service = None
        self._drainer = None
        self._reconciler = None
        self._eligibility = None
        self._resolver = None
        self._dispatcher = None
        self._preferences = None
        self._endpoints = None
        self._follows = None

        # Close push client
        if self._push_client is not None:
            await self._push_client.close()
            self._push_client = None

        # Close cache
        if self._cache is not None:
            await self._cache.close()
            self._cache = None

        # Close datastore
        if self._datastore is not None:
            await self._datastore.close()
            self._datastore = None

        self._initialized = False

    @property
    def is_initialized(self) -> bool:
        """Check if the engine is initialized."""
        return self._initialized

    @property
    def config(self) -> AppConfig:
        """Get the application configuration."""
        return self._config

    @property
    def datastore(self) -> Datastore:
        """Get the datastore instance.

        Raises:
            RuntimeError: If engine not initialized.
        """
        if self._datastore is None:
            raise RuntimeError(_ERR_NOT_INITIALIZED)
        return self._datastore

    @property
    def cache(self) -> CacheClient:
        """Get the cache client instance.

        Raises:
            RuntimeError: If engine not initialized.
        """
        if self._cache is None:
            raise RuntimeError(_ERR_NOT_INITIALIZED)
        return self._cache

    @property
    def push_client(self) -> ExpoPushClient:
        """Get the Expo push client."""
        if self._push_client is None:
            raise RuntimeError(_ERR_NOT_INITIALIZED)
        return self._push_client

    @property
    def dispatcher(self) -> BatchDispatcher:
        """Get the batch dispatcher."""
        if self._dispatcher is None:
            raise RuntimeError(_ERR_NOT_INITIALIZED)
        return self._dispatcher

    @property
    def preferences(self) -> PreferenceStore:
        """Get the preference store."""
        if self._preferences is None:
            raise RuntimeError(_ERR_NOT_INITIALIZED)
        return self._preferences

    @property
    def endpoints(self) -> EndpointDirectory:
        """Get the endpoint directory."""
        if self._endpoints is None:
            raise RuntimeError(_ERR_NOT_INITIALIZED)
        return self._endpoints

    @property
    def follows(self) -> FollowDirectory:
        """Get the follow directory."""
        if self._follows is None:
            raise RuntimeError(_ERR_NOT_INITIALIZED)
        return self._follows

    @property
    def resolver(self) -> TargetResolver:
        """Get the target resolver."""
        if self._resolver is None:
            raise RuntimeError(_ERR_NOT_INITIALIZED)
        return self._resolver

    @property
    def eligibility(self) -> EligibilityFilter:
        """Get the eligibility filter."""
        if self._eligibility is None:
            raise RuntimeError(_ERR_NOT_INITIALIZED)
        return self._eligibility

    @property
    def reconciler(self) -> OutcomeReconciler:
        """Get the outcome reconciler."""
        if self._reconciler is None:
            raise RuntimeError(_ERR_NOT_INITIALIZED)
        return self._reconciler

    @property
    def drainer(self) -> QueueDrainer:
        """Get the queue drainer."""
        if self._drainer is None:
            raise RuntimeError(_ERR_NOT_INITIALIZED)
        return self._drainer

    @property
    def queue_service(self) -> QueueService:
        """Get the queue service."""
        if self._queue_service is None:
            raise RuntimeError(_ERR_NOT_INITIALIZED)
        return self._queue_service

    @property
    def history_service(self) -> HistoryService:
        """Get the history service."""
        if self._history_service is None:
            raise RuntimeError(_ERR_NOT_INITIALIZED)
        return self._history_service

    @property
    def metrics(self) -> NotifyMetrics | None:
        """Get the pipeline metrics (None if disabled)."""
        return self._metrics

    @property
    def task_manager(self) -> TaskManager | None:
        """Get the task manager (None if not enabled)."""
        return self._task_manager

    async def health_check(self) -> dict[str, str]:
        """Check health status of engine components.

        Returns:
            Dictionary with component statuses ('ok', 'error', 'not_initialized').
        """
        status = {
            "engine": "ok" if self._initialized else "not_initialized",
            "datastore": "unknown",
            "cache": "unknown",
            "push": "unknown",
        }
        if self._initialized:
            status["datastore"] = "ok" if self._datastore and await self._datastore.ping() else "error"
            status["cache"] = "ok" if self._cache and self._cache.is_connected else "error"
            status["push"] = (
                "ok" if self._push_client and self._push_client.is_connected else "error"
            )
        return status
