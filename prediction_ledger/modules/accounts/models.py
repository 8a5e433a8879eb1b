"""Domain models for accounts."""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import date, datetime
from decimal import Decimal
from typing import Optional


@dataclass(slots=True)
class Account:
    id: str
    email: str
    first_name: str
    last_name: str
    role: str
    is_active: bool
    password_hash: str = field(repr=False)
    phone: Optional[str] = None
    balance: Decimal = Decimal("0.00")
    total_credited: Decimal = Decimal("0.00")
    total_debited: Decimal = Decimal("0.00")
    transaction_count: int = 0
    last_transaction_at: Optional[datetime] = None
    trial_start_at: Optional[datetime] = None
    trial_end_at: Optional[datetime] = None
    selected_category: str = ""
    trial_consumed: bool = False
    last_trial_access_date: Optional[date] = None
    notifications_enabled: bool = True
    created_at: Optional[datetime] = None
    last_login_at: Optional[datetime] = None

    @property
    def full_name(self) -> str:
        return f"{self.first_name} {self.last_name}"

    def is_admin(self) -> bool:
        return self.role == "admin"


@dataclass(slots=True)
class AccountCreateInput:
    email: str
    password: str
    first_name: str
    last_name: str
    selected_category: str
    phone: Optional[str] = None
    role: str = "user"
