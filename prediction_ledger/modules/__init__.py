"""Domain modules (accounts, trial, wallets, entitlements, catalog, notifications)."""
