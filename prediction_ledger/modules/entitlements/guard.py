"""Purchase idempotency guard: at most one completed purchase per (account, item).

The check runs inside the same account unit that would charge, before the
charge. The partial unique index on ``purchase_records`` backs it up for
writers that bypass the per-account lock (another process, for instance).
"""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING

from sqlalchemy.exc import IntegrityError

from prediction_ledger.infrastructure.database.models import PurchaseRecord as PurchaseRecordModel
from prediction_ledger.infrastructure.database.repositories.purchase_repository import (
    is_completed_purchase_violation,
)
from prediction_ledger.modules.wallets.exceptions import AlreadyPurchasedError

from .models import PaymentStatus

if TYPE_CHECKING:
    from prediction_ledger.infrastructure.database.ledger_store import AccountUnit, LedgerReader

logger = logging.getLogger(__name__)


class PurchaseGuard:
    async def find_completed(self, reader: "LedgerReader", account_id: str, item_id: str) -> PurchaseRecordModel | None:
        return await reader.purchases.get_completed(account_id, item_id)

    async def complete(
        self,
        unit: "AccountUnit",
        record: PurchaseRecordModel,
        *,
        transaction_ref: str | None,
    ) -> PurchaseRecordModel:
        """Mark ``record`` completed; a unique-index hit becomes ``AlreadyPurchasedError``.

        Identifiers are read up front: after a failed flush the session needs
        a rollback and the ORM objects can no longer be loaded.
        """
        account_id, item_id = unit.account_id, record.item_id
        try:
            return await unit.purchases.update_status(
                record,
                payment_status=PaymentStatus.COMPLETED.value,
                transaction_ref=transaction_ref,
            )
        except IntegrityError as exc:
            if not is_completed_purchase_violation(exc):
                raise
            logger.warning("Completed purchase index rejected %s for %s", item_id, account_id)
            raise AlreadyPurchasedError(account_id, item_id) from exc
