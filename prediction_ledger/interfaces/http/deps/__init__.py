"""Reusable FastAPI dependencies."""

from prediction_ledger.core.container import get_app_container

from .database import get_db_session
from .services import (
    get_account_service,
    get_catalog,
    get_entitlement_service,
    get_trial_service,
    get_wallet_service,
)

__all__ = [
    "get_app_container",
    "get_db_session",
    "get_account_service",
    "get_catalog",
    "get_entitlement_service",
    "get_trial_service",
    "get_wallet_service",
]
