"""Administrative ledger operations: bonuses and refunds."""
from fastapi import APIRouter, Depends, HTTPException, status

from prediction_ledger.core.security import get_current_admin
from prediction_ledger.interfaces.http.deps import get_entitlement_service, get_wallet_service
from prediction_ledger.modules.accounts import Account as AccountDomain
from prediction_ledger.modules.entitlements import EntitlementService, PurchaseNotFoundError
from prediction_ledger.modules.wallets import (
    AccountNotFoundError,
    InvalidTransactionError,
    TransientLedgerError,
    WalletService,
)
from prediction_ledger.schemas import (
    BonusRequest,
    PurchaseResponse,
    RefundRequest,
    RefundResponse,
    TransactionResponse,
)

router = APIRouter()


@router.post(
    "/accounts/{account_id}/bonus",
    response_model=TransactionResponse,
    status_code=status.HTTP_201_CREATED,
    summary="Grant a bonus credit",
)
async def grant_bonus(
    account_id: str,
    payload: BonusRequest,
    admin: AccountDomain = Depends(get_current_admin),
    wallet_service: WalletService = Depends(get_wallet_service),
) -> TransactionResponse:
    try:
        transaction = await wallet_service.grant_bonus(
            account_id,
            payload.amount,
            campaign=payload.campaign,
            granted_by=admin.email,
            description=payload.description,
        )
    except AccountNotFoundError as exc:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=str(exc)) from exc
    except InvalidTransactionError as exc:
        raise HTTPException(status_code=status.HTTP_422_UNPROCESSABLE_ENTITY, detail=str(exc)) from exc
    except TransientLedgerError as exc:
        raise HTTPException(status_code=status.HTTP_503_SERVICE_UNAVAILABLE, detail=str(exc)) from exc
    return TransactionResponse.model_validate(transaction)


@router.post(
    "/accounts/{account_id}/purchases/{item_id}/refund",
    response_model=RefundResponse,
    summary="Refund a completed purchase",
)
async def refund_purchase(
    account_id: str,
    item_id: str,
    payload: RefundRequest,
    _: AccountDomain = Depends(get_current_admin),
    entitlements: EntitlementService = Depends(get_entitlement_service),
) -> RefundResponse:
    try:
        result = await entitlements.refund_purchase(account_id, item_id, payload.reason)
    except (AccountNotFoundError, PurchaseNotFoundError) as exc:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=str(exc)) from exc
    except TransientLedgerError as exc:
        raise HTTPException(status_code=status.HTTP_503_SERVICE_UNAVAILABLE, detail=str(exc)) from exc
    return RefundResponse(
        purchase=PurchaseResponse.model_validate(result.purchase),
        transaction=TransactionResponse.model_validate(result.transaction) if result.transaction else None,
    )
