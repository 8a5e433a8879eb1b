"""Settlement callback from the external payment gateway."""
import hmac

from fastapi import APIRouter, Depends, Header, HTTPException, Response, status

from prediction_ledger.core.container import ApplicationContainer, get_app_container
from prediction_ledger.interfaces.http.deps import get_entitlement_service
from prediction_ledger.modules.entitlements import (
    AlreadyPurchased,
    EntitlementService,
    PaymentDeclined,
    PurchaseNotFoundError,
    Purchased,
)
from prediction_ledger.modules.wallets import InvalidTransactionError, TransientLedgerError
from prediction_ledger.schemas import GatewayCallbackRequest, PurchaseResponse, SettlementResponse

router = APIRouter()


def verify_gateway_secret(
    x_gateway_secret: str = Header(""),
    container: ApplicationContainer = Depends(get_app_container),
) -> None:
    expected = container.settings.gateway.callback_secret
    if not hmac.compare_digest(x_gateway_secret.encode("utf-8"), expected.encode("utf-8")):
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="Invalid gateway secret")


@router.post(
    "/gateway/callback",
    response_model=SettlementResponse,
    dependencies=[Depends(verify_gateway_secret)],
    summary="Gateway reports the outcome of a payment intent",
)
async def gateway_callback(
    payload: GatewayCallbackRequest,
    response: Response,
    entitlements: EntitlementService = Depends(get_entitlement_service),
) -> SettlementResponse:
    try:
        result = await entitlements.settle_gateway_payment(
            payload.purchase_id,
            payload.success,
            payload.gateway_reference,
        )
    except PurchaseNotFoundError as exc:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=str(exc)) from exc
    except InvalidTransactionError as exc:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(exc)) from exc
    except TransientLedgerError as exc:
        raise HTTPException(status_code=status.HTTP_503_SERVICE_UNAVAILABLE, detail=str(exc)) from exc

    if isinstance(result, (Purchased, PaymentDeclined)):
        return SettlementResponse(
            kind=result.kind,
            item_id=result.purchase.item_id,
            purchase=PurchaseResponse.model_validate(result.purchase),
        )
    if isinstance(result, AlreadyPurchased):
        response.status_code = status.HTTP_409_CONFLICT
        return SettlementResponse(kind=result.kind, item_id=result.item_id)
    raise HTTPException(
        status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
        detail=f"unexpected settlement result: {type(result).__name__}",
    )
