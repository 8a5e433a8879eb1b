"""JWT helpers and the authenticated-account dependencies."""
from datetime import datetime, timedelta, timezone
from typing import Optional

from fastapi import Depends, HTTPException, status
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from jose import JWTError, jwt

from prediction_ledger.core.config import get_settings
from prediction_ledger.core.container import ApplicationContainer, get_app_container
from prediction_ledger.modules.accounts import Account as AccountDomain
from prediction_ledger.modules.accounts import AccountService
from prediction_ledger.modules.wallets.exceptions import AccountNotFoundError, TransientLedgerError
from prediction_ledger.schemas import TokenData

settings = get_settings()
security = HTTPBearer()


def create_access_token(account_id: str, email: str, role: str, expires_delta: Optional[timedelta] = None) -> str:
    expire_delta = expires_delta or timedelta(minutes=settings.access_token_expire_minutes)
    payload = {
        "sub": account_id,
        "email": email,
        "role": role,
        "exp": datetime.now(timezone.utc) + expire_delta,
    }
    return jwt.encode(payload, settings.secret_key, algorithm=settings.algorithm)


def decode_access_token(token: str) -> TokenData:
    try:
        payload = jwt.decode(token, settings.secret_key, algorithms=[settings.algorithm])
    except JWTError as exc:
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="Could not validate credentials") from exc

    account_id = payload.get("sub")
    email = payload.get("email")
    role = payload.get("role")
    if not all([account_id, email, role]):
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="Could not validate credentials")
    return TokenData(account_id=account_id, email=email, role=role)


async def get_current_account(
    credentials: HTTPAuthorizationCredentials = Depends(security),
    container: ApplicationContainer = Depends(get_app_container),
) -> AccountDomain:
    token_data = decode_access_token(credentials.credentials)
    try:
        # Every authenticated request is an observation of the trial window.
        await container.trial.observe(token_data.account_id)
    except AccountNotFoundError as exc:
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="Account not found or disabled") from exc
    except TransientLedgerError as exc:
        raise HTTPException(status_code=status.HTTP_503_SERVICE_UNAVAILABLE, detail=str(exc)) from exc

    async with container.session_factory() as session:
        account = await AccountService.with_session(session).get_by_id(token_data.account_id)
    if account is None or not account.is_active:
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="Account not found or disabled")
    return account


async def get_current_admin(account: AccountDomain = Depends(get_current_account)) -> AccountDomain:
    if not account.is_admin():
        raise HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail="Administrator privileges required")
    return account
