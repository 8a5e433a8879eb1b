"""Trial window rules.

Everything here is a pure function of an account snapshot and ``now``. The
one mutating helper, :func:`mark_consumed_if_expired`, only touches the
object it is given; persisting the change is the caller's business.
"""

from __future__ import annotations

import math
from dataclasses import dataclass
from datetime import date, datetime, timedelta, timezone, tzinfo
from typing import Optional, Protocol
from zoneinfo import ZoneInfo

DEFAULT_TRIAL_DAYS = 7


class TrialAccount(Protocol):
    trial_start_at: datetime
    trial_end_at: datetime
    selected_category: str
    trial_consumed: bool
    last_trial_access_date: Optional[date]


@dataclass(slots=True, frozen=True)
class TrialStatus:
    active: bool
    consumed: bool
    selected_category: str
    trial_start_at: datetime
    trial_end_at: datetime
    days_remaining: int
    free_access_available_today: bool


def resolve_timezone(tz: tzinfo | str | None) -> tzinfo:
    if tz is None:
        return timezone.utc
    if isinstance(tz, str):
        return timezone.utc if tz.upper() == "UTC" else ZoneInfo(tz)
    return tz


def trial_window(start: datetime, days: int = DEFAULT_TRIAL_DAYS) -> tuple[datetime, datetime]:
    return start, start + timedelta(days=days)


def local_date(moment: datetime, tz: tzinfo | str | None = None) -> date:
    """Calendar date of ``moment`` in the reference timezone."""
    return moment.astimezone(resolve_timezone(tz)).date()


def is_trial_active(account: TrialAccount, now: datetime) -> bool:
    return now <= account.trial_end_at


def can_start_trial(account: TrialAccount) -> bool:
    return not account.trial_consumed


def mark_consumed_if_expired(account: TrialAccount, now: datetime) -> bool:
    """Flip ``trial_consumed`` once the window has closed. Returns True only on the flip."""
    if is_trial_active(account, now) or account.trial_consumed:
        return False
    account.trial_consumed = True
    return True


def has_free_access_today(
    account: TrialAccount,
    category: str,
    now: datetime,
    tz: tzinfo | str | None = None,
) -> bool:
    if not is_trial_active(account, now):
        return False
    if category != account.selected_category:
        return False
    last_access = account.last_trial_access_date
    return last_access is None or last_access < local_date(now, tz)


def trial_status(account: TrialAccount, now: datetime, tz: tzinfo | str | None = None) -> TrialStatus:
    active = is_trial_active(account, now)
    remaining = account.trial_end_at - now
    days_remaining = math.ceil(remaining.total_seconds() / 86400) if active else 0
    return TrialStatus(
        active=active,
        consumed=account.trial_consumed,
        selected_category=account.selected_category,
        trial_start_at=account.trial_start_at,
        trial_end_at=account.trial_end_at,
        days_remaining=days_remaining,
        free_access_available_today=has_free_access_today(account, account.selected_category, now, tz),
    )


__all__ = [
    "DEFAULT_TRIAL_DAYS",
    "TrialAccount",
    "TrialStatus",
    "can_start_trial",
    "has_free_access_today",
    "is_trial_active",
    "local_date",
    "mark_consumed_if_expired",
    "resolve_timezone",
    "trial_status",
    "trial_window",
]
