"""Trial window policy and the service that applies it lazily."""

from .policy import (
    DEFAULT_TRIAL_DAYS,
    TrialStatus,
    can_start_trial,
    has_free_access_today,
    is_trial_active,
    local_date,
    mark_consumed_if_expired,
    trial_status,
    trial_window,
)
from .service import TrialService

__all__ = [
    "DEFAULT_TRIAL_DAYS",
    "TrialStatus",
    "TrialService",
    "can_start_trial",
    "has_free_access_today",
    "is_trial_active",
    "local_date",
    "mark_consumed_if_expired",
    "trial_status",
    "trial_window",
]
