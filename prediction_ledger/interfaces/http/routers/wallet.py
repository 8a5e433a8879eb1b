"""Wallet balance, history, deposits, withdrawals and payments for the signed-in account."""
from typing import Optional

from fastapi import APIRouter, Depends, HTTPException, Query, status

from prediction_ledger.core.security import get_current_account
from prediction_ledger.interfaces.http.deps import get_wallet_service
from prediction_ledger.modules.accounts import Account as AccountDomain
from prediction_ledger.modules.wallets import (
    InsufficientBalanceError,
    InvalidTransactionError,
    TransientLedgerError,
    WalletService,
)
from prediction_ledger.schemas import (
    DepositRequest,
    PaymentRequest,
    TransactionListResponse,
    TransactionResponse,
    WalletSnapshotResponse,
    WalletStatsResponse,
    WithdrawRequest,
)

router = APIRouter()


@router.get("", response_model=WalletSnapshotResponse, summary="Balance, totals and trial status")
async def get_wallet(
    account: AccountDomain = Depends(get_current_account),
    wallet_service: WalletService = Depends(get_wallet_service),
) -> WalletSnapshotResponse:
    snapshot = await wallet_service.get_snapshot(account.id)
    return WalletSnapshotResponse.model_validate(snapshot)


@router.get("/transactions", response_model=TransactionListResponse, summary="Transaction history, newest first")
async def list_transactions(
    limit: int = Query(20, ge=1, le=100),
    offset: int = Query(0, ge=0),
    type: Optional[str] = Query(None),
    status_filter: Optional[str] = Query(None, alias="status"),
    account: AccountDomain = Depends(get_current_account),
    wallet_service: WalletService = Depends(get_wallet_service),
) -> TransactionListResponse:
    page = await wallet_service.list_transactions(account.id, limit, offset, type=type, status=status_filter)
    return TransactionListResponse(
        transactions=[TransactionResponse.model_validate(tx) for tx in page.transactions],
        total=page.total,
        limit=page.limit,
        offset=page.offset,
        has_next=page.has_next,
    )


@router.post("/deposit", response_model=TransactionResponse, status_code=status.HTTP_201_CREATED, summary="Credit the wallet")
async def deposit(
    payload: DepositRequest,
    account: AccountDomain = Depends(get_current_account),
    wallet_service: WalletService = Depends(get_wallet_service),
) -> TransactionResponse:
    try:
        transaction = await wallet_service.deposit(
            account.id,
            payload.amount,
            source=payload.source,
            external_reference=payload.external_reference,
        )
    except InvalidTransactionError as exc:
        raise HTTPException(status_code=status.HTTP_422_UNPROCESSABLE_ENTITY, detail=str(exc)) from exc
    except TransientLedgerError as exc:
        raise HTTPException(status_code=status.HTTP_503_SERVICE_UNAVAILABLE, detail=str(exc)) from exc
    return TransactionResponse.model_validate(transaction)


@router.post("/withdraw", response_model=TransactionResponse, status_code=status.HTTP_201_CREATED, summary="Request a withdrawal")
async def withdraw(
    payload: WithdrawRequest,
    account: AccountDomain = Depends(get_current_account),
    wallet_service: WalletService = Depends(get_wallet_service),
) -> TransactionResponse:
    try:
        transaction = await wallet_service.withdraw(account.id, payload.amount, destination=payload.destination)
    except InsufficientBalanceError as exc:
        raise HTTPException(status_code=status.HTTP_402_PAYMENT_REQUIRED, detail=str(exc)) from exc
    except InvalidTransactionError as exc:
        raise HTTPException(status_code=status.HTTP_422_UNPROCESSABLE_ENTITY, detail=str(exc)) from exc
    except TransientLedgerError as exc:
        raise HTTPException(status_code=status.HTTP_503_SERVICE_UNAVAILABLE, detail=str(exc)) from exc
    return TransactionResponse.model_validate(transaction)


@router.post("/payment", response_model=TransactionResponse, status_code=status.HTTP_201_CREATED, summary="Pay for an item from the wallet")
async def make_payment(
    payload: PaymentRequest,
    account: AccountDomain = Depends(get_current_account),
    wallet_service: WalletService = Depends(get_wallet_service),
) -> TransactionResponse:
    try:
        transaction = await wallet_service.pay(
            account.id,
            payload.amount,
            item_id=payload.item_id,
            category=payload.category,
            description=payload.description,
        )
    except InsufficientBalanceError as exc:
        raise HTTPException(status_code=status.HTTP_402_PAYMENT_REQUIRED, detail=str(exc)) from exc
    except InvalidTransactionError as exc:
        raise HTTPException(status_code=status.HTTP_422_UNPROCESSABLE_ENTITY, detail=str(exc)) from exc
    except TransientLedgerError as exc:
        raise HTTPException(status_code=status.HTTP_503_SERVICE_UNAVAILABLE, detail=str(exc)) from exc
    return TransactionResponse.model_validate(transaction)


@router.get("/stats", response_model=WalletStatsResponse, summary="Deposit and spending summaries")
async def wallet_stats(
    account: AccountDomain = Depends(get_current_account),
    wallet_service: WalletService = Depends(get_wallet_service),
) -> WalletStatsResponse:
    stats = await wallet_service.get_stats(account.id)
    return WalletStatsResponse.model_validate(stats)
