"""Registration, login and the caller's own profile."""
from fastapi import APIRouter, Depends, HTTPException, status
from sqlalchemy.ext.asyncio import AsyncSession

from prediction_ledger.core.security import create_access_token, get_current_account
from prediction_ledger.interfaces.http.deps import get_account_service, get_db_session, get_trial_service
from prediction_ledger.modules.accounts import (
    Account as AccountDomain,
    AccountAlreadyExistsError,
    AccountCreateInput,
    AccountService,
    InvalidCategoryError,
)
from prediction_ledger.modules.trial import TrialService
from prediction_ledger.modules.wallets.exceptions import TransientLedgerError
from prediction_ledger.schemas import (
    AccountProfileResponse,
    AccountResponse,
    LoginRequest,
    RegisterRequest,
    TokenResponse,
    TrialStatusResponse,
)

router = APIRouter()


@router.post("/register", response_model=TokenResponse, status_code=status.HTTP_201_CREATED, summary="Create an account")
async def register(
    payload: RegisterRequest,
    account_service: AccountService = Depends(get_account_service),
    db: AsyncSession = Depends(get_db_session),
) -> TokenResponse:
    try:
        account = await account_service.register(
            AccountCreateInput(
                email=payload.email,
                password=payload.password,
                first_name=payload.first_name,
                last_name=payload.last_name,
                selected_category=payload.selected_category,
                phone=payload.phone,
            )
        )
    except AccountAlreadyExistsError as exc:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="Email already registered") from exc
    except InvalidCategoryError as exc:
        raise HTTPException(status_code=status.HTTP_422_UNPROCESSABLE_ENTITY, detail=str(exc)) from exc
    await db.commit()

    access_token = create_access_token(account.id, account.email, account.role)
    return TokenResponse(access_token=access_token, account=AccountResponse.model_validate(account))


@router.post("/login", response_model=TokenResponse, summary="Exchange credentials for a bearer token")
async def login(
    payload: LoginRequest,
    account_service: AccountService = Depends(get_account_service),
    trial_service: TrialService = Depends(get_trial_service),
    db: AsyncSession = Depends(get_db_session),
) -> TokenResponse:
    account = await account_service.authenticate(payload.email, payload.password)
    if not account:
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="Invalid email or password")

    await account_service.set_last_login(account.id)
    await db.commit()
    try:
        await trial_service.observe(account.id)
    except TransientLedgerError as exc:
        raise HTTPException(status_code=status.HTTP_503_SERVICE_UNAVAILABLE, detail=str(exc)) from exc
    account = await account_service.get_by_id(account.id)

    access_token = create_access_token(account.id, account.email, account.role)
    return TokenResponse(access_token=access_token, account=AccountResponse.model_validate(account))


@router.get("/me", response_model=AccountProfileResponse, summary="Current account with trial status")
async def me(
    account: AccountDomain = Depends(get_current_account),
    trial_service: TrialService = Depends(get_trial_service),
) -> AccountProfileResponse:
    trial = await trial_service.status(account.id)
    profile = AccountResponse.model_validate(account).model_dump()
    return AccountProfileResponse(**profile, trial=TrialStatusResponse.model_validate(trial))
