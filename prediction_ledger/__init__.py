"""Wallet ledger and entitlement service for the prediction store."""

__version__ = "0.3.0"
