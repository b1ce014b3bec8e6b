"""Application initialization."""

from dataclasses import dataclass
from typing import Optional

from gymledger.api.interfaces import PrimaryStore
from gymledger.api.supabase_store import SupabaseStore
from gymledger.config.error_aggregator import init_error_aggregator, shutdown_error_aggregator
from gymledger.config.types import AppConfig
from gymledger.services.cache.fallback_cache import FallbackCache, KeyValueStorage, SQLiteStorage
from gymledger.services.membership_service import MembershipService
from gymledger.services.notification_service import LoggingNotifier, Notifier
from gymledger.services.persistence import PersistenceFacade
from gymledger.services.report_service import ReportService
from gymledger.utils.logging_utils import get_logger

logger = get_logger(__name__)


@dataclass
class GymLedgerApp:
    """Long-lived services, built once by :func:`create_app`."""
    config: AppConfig
    store: Optional[PrimaryStore]
    cache: FallbackCache
    notifier: Notifier
    persistence: PersistenceFacade
    membership: MembershipService
    reports: ReportService

    def close(self) -> None:
        """Release the HTTP session and flush pending error reports."""
        self.persistence.close()
        shutdown_error_aggregator()


def create_app(
    config: AppConfig,
    notifier: Optional[Notifier] = None,
    store: Optional[PrimaryStore] = None,
    storage: Optional[KeyValueStorage] = None,
) -> GymLedgerApp:
    """Create the application services from a loaded configuration.

    Args:
        config: Loaded application configuration
        notifier: Where user notices go (default: the log)
        store: Primary store to use instead of one built from ``config.store``
        storage: Cache backend to use instead of the configured SQLite file
    """
    init_error_aggregator(config.error_aggregation)

    if store is None and config.store.configured:
        store = SupabaseStore(config.store)
    if store is None:
        logger.info("No primary store configured, using the local cache only")

    if storage is None and config.cache.enabled:
        storage = SQLiteStorage(config.cache.path)
    cache = FallbackCache(storage, key_prefix=config.cache.key_prefix)

    notifier = notifier or LoggingNotifier()
    persistence = PersistenceFacade(store, cache, notifier)

    return GymLedgerApp(
        config=config,
        store=store,
        cache=cache,
        notifier=notifier,
        persistence=persistence,
        membership=MembershipService(persistence, notifier),
        reports=ReportService(),
    )
