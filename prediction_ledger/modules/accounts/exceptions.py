"""Account domain specific exceptions."""


class AccountError(Exception):
    """Base class for account domain errors."""


class AccountAlreadyExistsError(AccountError):
    """Raised when attempting to register an email that is already taken."""


class InvalidCategoryError(AccountError, ValueError):
    """Raised when the selected trial category is not a known catalog category."""
