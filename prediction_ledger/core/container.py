"""Simple dependency container for wiring core services."""

from __future__ import annotations

from dataclasses import dataclass, field
from functools import lru_cache

from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from prediction_ledger.core.config import Settings, get_settings
from prediction_ledger.infrastructure.database.ledger_store import LedgerStore
from prediction_ledger.infrastructure.database.repositories.catalog_repository import SqlCatalogRepository
from prediction_ledger.infrastructure.database.session import get_session_factory
from prediction_ledger.modules.entitlements import EntitlementService
from prediction_ledger.modules.notifications import LoggingNotificationDispatcher, NotificationDispatcher
from prediction_ledger.modules.trial import TrialService
from prediction_ledger.modules.wallets import WalletService


@dataclass(slots=True)
class ApplicationContainer:
    settings: Settings
    session_factory: async_sessionmaker[AsyncSession]
    notifier: NotificationDispatcher = field(default_factory=LoggingNotificationDispatcher)
    store: LedgerStore = field(init=False)
    catalog: SqlCatalogRepository = field(init=False)
    trial: TrialService = field(init=False)
    wallet: WalletService = field(init=False)
    entitlements: EntitlementService = field(init=False)

    def __post_init__(self) -> None:
        ledger = self.settings.ledger
        self.store = LedgerStore.from_settings(self.session_factory, self.settings)
        self.catalog = SqlCatalogRepository(self.session_factory)
        self.trial = TrialService(self.store, timezone_name=ledger.trial_timezone)
        self.wallet = WalletService(
            self.store,
            notifier=self.notifier,
            trial=self.trial,
            currency=ledger.currency,
        )
        self.entitlements = EntitlementService(
            self.store,
            self.wallet,
            catalog=self.catalog,
            notifier=self.notifier,
            timezone_name=ledger.trial_timezone,
        )


@lru_cache()
def get_container() -> ApplicationContainer:
    return ApplicationContainer(settings=get_settings(), session_factory=get_session_factory())


def get_app_container() -> ApplicationContainer:
    """FastAPI dependency; tests override it to point at a scratch database."""
    return get_container()


__all__ = ["ApplicationContainer", "get_app_container", "get_container"]
