"""Access and purchase of predictions."""
from typing import Optional

from fastapi import APIRouter, Depends, HTTPException, Query, Response, status

from prediction_ledger.core.security import get_current_account
from prediction_ledger.infrastructure.database.repositories.catalog_repository import SqlCatalogRepository
from prediction_ledger.interfaces.http.deps import get_catalog, get_entitlement_service
from prediction_ledger.modules.accounts import Account as AccountDomain
from prediction_ledger.modules.entitlements import (
    AccessResult,
    AlreadyPurchased,
    EntitlementService,
    FreeAccess,
    InsufficientBalance,
    ItemUnavailable,
    Owned,
    PaymentIntent,
    PaymentRequired,
    PurchaseNotFoundError,
    Purchased,
    RedundantDuringTrial,
    TrialExhaustedToday,
)
from prediction_ledger.modules.wallets import TransientLedgerError
from prediction_ledger.schemas import (
    AccessRequest,
    AccessResponse,
    PurchaseListResponse,
    PurchaseResponse,
    TransactionResponse,
)

router = APIRouter()

RESULT_STATUS = {
    Owned: status.HTTP_200_OK,
    FreeAccess: status.HTTP_200_OK,
    TrialExhaustedToday: status.HTTP_200_OK,
    Purchased: status.HTTP_200_OK,
    PaymentIntent: status.HTTP_200_OK,
    PaymentRequired: status.HTTP_402_PAYMENT_REQUIRED,
    InsufficientBalance: status.HTTP_402_PAYMENT_REQUIRED,
    RedundantDuringTrial: status.HTTP_409_CONFLICT,
    AlreadyPurchased: status.HTTP_409_CONFLICT,
    ItemUnavailable: status.HTTP_404_NOT_FOUND,
}


def to_access_response(result: AccessResult) -> AccessResponse:
    response = AccessResponse(kind=result.kind, item_id=_item_id(result))
    if isinstance(result, (Owned, Purchased)):
        response.purchase = PurchaseResponse.model_validate(result.purchase)
    if isinstance(result, Purchased) and result.transaction is not None:
        response.transaction = TransactionResponse.model_validate(result.transaction)
    if isinstance(result, FreeAccess):
        response.access_date = result.access_date
    if isinstance(result, TrialExhaustedToday):
        response.next_free_access_date = result.next_free_access_date
    if isinstance(result, (PaymentRequired, PaymentIntent)):
        response.amount = result.amount
    if isinstance(result, PaymentIntent):
        response.purchase_id = result.purchase_id
    if isinstance(result, InsufficientBalance):
        response.required = result.required
        response.available = result.available
    return response


def _item_id(result: AccessResult) -> str:
    if isinstance(result, (Owned, Purchased)):
        return result.purchase.item_id
    return result.item_id


@router.post("/{item_id}/access", response_model=AccessResponse, summary="Open or buy a prediction")
async def request_access(
    item_id: str,
    response: Response,
    payload: Optional[AccessRequest] = None,
    account: AccountDomain = Depends(get_current_account),
    entitlements: EntitlementService = Depends(get_entitlement_service),
    catalog: SqlCatalogRepository = Depends(get_catalog),
) -> AccessResponse:
    item = await catalog.get_item(item_id)
    if item is None:
        result: AccessResult = ItemUnavailable(item_id)
    else:
        method = payload.payment_method if payload is not None else None
        try:
            result = await entitlements.request_access(account.id, item, method)
        except TransientLedgerError as exc:
            raise HTTPException(status_code=status.HTTP_503_SERVICE_UNAVAILABLE, detail=str(exc)) from exc
    response.status_code = RESULT_STATUS[type(result)]
    return to_access_response(result)


@router.get("/my-purchases", response_model=PurchaseListResponse, summary="Completed purchases, newest first")
async def my_purchases(
    limit: int = Query(20, ge=1, le=100),
    offset: int = Query(0, ge=0),
    account: AccountDomain = Depends(get_current_account),
    entitlements: EntitlementService = Depends(get_entitlement_service),
) -> PurchaseListResponse:
    page = await entitlements.list_purchases(account.id, limit, offset)
    return PurchaseListResponse(
        purchases=[PurchaseResponse.model_validate(purchase) for purchase in page.purchases],
        total=page.total,
        limit=page.limit,
        offset=page.offset,
    )


@router.post("/{item_id}/view", response_model=PurchaseResponse, summary="Record a view of an owned prediction")
async def view_prediction(
    item_id: str,
    account: AccountDomain = Depends(get_current_account),
    entitlements: EntitlementService = Depends(get_entitlement_service),
) -> PurchaseResponse:
    try:
        purchase = await entitlements.record_view(account.id, item_id)
    except PurchaseNotFoundError as exc:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=str(exc)) from exc
    except TransientLedgerError as exc:
        raise HTTPException(status_code=status.HTTP_503_SERVICE_UNAVAILABLE, detail=str(exc)) from exc
    return PurchaseResponse.model_validate(purchase)
