"""
Error types raised by the pricing engine and the stores around it.
"""
from typing import Optional


class ConfigurationError(Exception):
    """Pricing configuration cannot produce a price (bad or empty tier schedule)."""

    def __init__(self, errors, message: Optional[str] = None):
        if isinstance(errors, str):
            errors = [errors]
        self.errors = list(errors)
        super().__init__(message or "; ".join(self.errors))


class InvalidInputError(ValueError):
    """Quote request carries a value the engine cannot interpret."""


class InvalidStatusTransition(Exception):
    """Quote status change that the pipeline does not allow."""

    def __init__(self, current: str, requested: str):
        self.current = current
        self.requested = requested
        super().__init__(f"Cannot move quote from '{current}' to '{requested}'")


class AccountNotFound(LookupError):
    def __init__(self, account_id: str):
        self.account_id = account_id
        super().__init__(f"Account '{account_id}' not found")


class QuoteNotFound(LookupError):
    def __init__(self, quote_id: str):
        self.quote_id = quote_id
        super().__init__(f"Quote '{quote_id}' not found")


class ClientNotFound(LookupError):
    def __init__(self, client_id: str):
        self.client_id = client_id
        super().__init__(f"Client '{client_id}' not found")
