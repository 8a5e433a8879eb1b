"""Pydantic schemas used across the project."""
from datetime import date, datetime
from decimal import Decimal
from typing import Any, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator

from prediction_ledger.modules.entitlements.models import PaymentMethod, PaymentStatus
from prediction_ledger.modules.wallets.models import TransactionStatus, TransactionType
from prediction_ledger.utils.money import MAX_AMOUNT

EMAIL_PATTERN = r"^[^@\s]+@[^@\s]+\.[^@\s]+$"


class TokenData(BaseModel):
    account_id: str
    email: str
    role: str


# ==================== ACCOUNTS ====================

class RegisterRequest(BaseModel):
    email: str = Field(..., max_length=100, pattern=EMAIL_PATTERN)
    password: str = Field(..., min_length=6)
    first_name: str = Field(..., min_length=1, max_length=50)
    last_name: str = Field(..., min_length=1, max_length=50)
    phone: Optional[str] = Field(None, max_length=30)
    selected_category: str


class LoginRequest(BaseModel):
    email: str
    password: str = Field(..., min_length=6)


class TrialStatusResponse(BaseModel):
    active: bool
    consumed: bool
    selected_category: str
    trial_start_at: datetime
    trial_end_at: datetime
    days_remaining: int
    free_access_available_today: bool

    model_config = ConfigDict(from_attributes=True)


class AccountResponse(BaseModel):
    id: str
    email: str
    first_name: str
    last_name: str
    phone: Optional[str] = None
    role: str
    is_active: bool
    balance: Decimal
    selected_category: str
    trial_start_at: Optional[datetime] = None
    trial_end_at: Optional[datetime] = None
    trial_consumed: bool
    created_at: Optional[datetime] = None
    last_login_at: Optional[datetime] = None

    model_config = ConfigDict(from_attributes=True)


class AccountProfileResponse(AccountResponse):
    trial: Optional[TrialStatusResponse] = None


class TokenResponse(BaseModel):
    access_token: str
    token_type: str = "bearer"
    account: AccountResponse


# ==================== WALLET ====================

class TransactionResponse(BaseModel):
    id: str
    sequence: int
    type: TransactionType
    amount: Decimal
    status: TransactionStatus
    description: str
    reference: Optional[str] = None
    metadata: dict[str, Any] = Field(default_factory=dict)
    created_at: datetime

    model_config = ConfigDict(from_attributes=True)

    @field_validator("metadata", mode="before")
    @classmethod
    def _dump_metadata(cls, value: Any) -> Any:
        if isinstance(value, BaseModel):
            return value.model_dump(exclude_none=True)
        return value


class TransactionListResponse(BaseModel):
    transactions: list[TransactionResponse] = Field(default_factory=list)
    total: int
    limit: int
    offset: int
    has_next: bool


class WalletSnapshotResponse(BaseModel):
    balance: Decimal
    currency: str
    total_credited: Decimal
    total_debited: Decimal
    transaction_count: int
    last_transaction_at: Optional[datetime] = None
    trial: Optional[TrialStatusResponse] = None

    model_config = ConfigDict(from_attributes=True)


class DepositRequest(BaseModel):
    amount: Decimal = Field(..., gt=0, le=MAX_AMOUNT, decimal_places=2)
    source: str = "deposit"
    external_reference: Optional[str] = Field(None, max_length=100)


class WithdrawRequest(BaseModel):
    amount: Decimal = Field(..., gt=0, le=MAX_AMOUNT, decimal_places=2)
    destination: Optional[str] = Field(None, max_length=100)


class PaymentRequest(BaseModel):
    amount: Decimal = Field(..., gt=0, le=MAX_AMOUNT, decimal_places=2)
    item_id: str = Field(..., min_length=1, max_length=36)
    category: Optional[str] = Field(None, max_length=20)
    description: Optional[str] = Field(None, max_length=255)


class FlowSummaryResponse(BaseModel):
    last_7_days: Decimal
    last_30_days: Decimal
    this_month: Decimal
    recent: list[TransactionResponse] = Field(default_factory=list)

    model_config = ConfigDict(from_attributes=True)


class WalletStatsResponse(BaseModel):
    current_balance: Decimal
    total_credited: Decimal
    total_debited: Decimal
    transaction_count: int
    last_transaction_at: Optional[datetime] = None
    transactions_this_month: int
    transactions_last_month: int
    deposits: FlowSummaryResponse
    spending: FlowSummaryResponse

    model_config = ConfigDict(from_attributes=True)


# ==================== PURCHASES ====================

class PurchaseResponse(BaseModel):
    id: str
    item_id: str
    amount: Decimal
    payment_method: PaymentMethod
    payment_status: PaymentStatus
    transaction_ref: Optional[str] = None
    view_count: int
    last_viewed_at: Optional[datetime] = None
    created_at: datetime
    refund_reason: Optional[str] = None
    refunded_at: Optional[datetime] = None

    model_config = ConfigDict(from_attributes=True)


class PurchaseListResponse(BaseModel):
    purchases: list[PurchaseResponse] = Field(default_factory=list)
    total: int
    limit: int
    offset: int


class AccessRequest(BaseModel):
    payment_method: Optional[PaymentMethod] = None


class AccessResponse(BaseModel):
    """Flattened access result; ``kind`` says which fields are meaningful."""

    kind: str
    item_id: str
    purchase: Optional[PurchaseResponse] = None
    transaction: Optional[TransactionResponse] = None
    purchase_id: Optional[str] = None
    amount: Optional[Decimal] = None
    required: Optional[Decimal] = None
    available: Optional[Decimal] = None
    access_date: Optional[date] = None
    next_free_access_date: Optional[date] = None


class GatewayCallbackRequest(BaseModel):
    purchase_id: str
    success: bool
    gateway_reference: Optional[str] = Field(None, max_length=90)


class SettlementResponse(BaseModel):
    kind: str
    item_id: str
    purchase: Optional[PurchaseResponse] = None


# ==================== ADMIN ====================

class BonusRequest(BaseModel):
    amount: Decimal = Field(..., gt=0, le=MAX_AMOUNT, decimal_places=2)
    campaign: Optional[str] = Field(None, max_length=100)
    description: Optional[str] = Field(None, max_length=255)


class RefundRequest(BaseModel):
    reason: Optional[str] = Field(None, max_length=255)


class RefundResponse(BaseModel):
    purchase: PurchaseResponse
    transaction: Optional[TransactionResponse] = None
