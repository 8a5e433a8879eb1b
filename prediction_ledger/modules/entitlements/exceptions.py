"""Entitlement domain errors.

Access outcomes are typed results (see ``models``); these cover the
operations that have no sensible result value.
"""

from prediction_ledger.modules.wallets.exceptions import LedgerError


class PurchaseNotFoundError(LedgerError):
    """Raised when the referenced purchase record does not exist or is not owned."""
