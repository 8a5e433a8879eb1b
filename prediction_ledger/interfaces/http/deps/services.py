"""Service dependency providers."""

from fastapi import Depends
from sqlalchemy.ext.asyncio import AsyncSession

from prediction_ledger.core.container import ApplicationContainer, get_app_container
from prediction_ledger.infrastructure.database.repositories.catalog_repository import SqlCatalogRepository
from prediction_ledger.modules.accounts import AccountService
from prediction_ledger.modules.entitlements import EntitlementService
from prediction_ledger.modules.trial import TrialService
from prediction_ledger.modules.wallets import WalletService

from .database import get_db_session


def get_account_service(
    db: AsyncSession = Depends(get_db_session),
    container: ApplicationContainer = Depends(get_app_container),
) -> AccountService:
    return AccountService.with_session(db, trial_days=container.settings.ledger.trial_days)


def get_wallet_service(container: ApplicationContainer = Depends(get_app_container)) -> WalletService:
    return container.wallet


def get_entitlement_service(container: ApplicationContainer = Depends(get_app_container)) -> EntitlementService:
    return container.entitlements


def get_trial_service(container: ApplicationContainer = Depends(get_app_container)) -> TrialService:
    return container.trial


def get_catalog(container: ApplicationContainer = Depends(get_app_container)) -> SqlCatalogRepository:
    return container.catalog


__all__ = [
    "get_account_service",
    "get_catalog",
    "get_entitlement_service",
    "get_trial_service",
    "get_wallet_service",
]
