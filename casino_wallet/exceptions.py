"""
Error taxonomy for wallet operations.

Every error derives from WalletError, which is itself a
ValueError. Code that only cares that an operation was
refused can keep catching ValueError; the API layer looks
at the concrete class to pick a status code.
"""


class WalletError(ValueError):
    """Base class for all refused wallet operations."""


class ValidationError(WalletError):
    """Malformed or out-of-range input. Nothing was written."""


class AccountNotFound(WalletError):
    def __init__(self, account_id):
        self.account_id = account_id
        super().__init__(f"Account {account_id} not found")


class RequestNotFound(WalletError):
    def __init__(self, request_id):
        self.request_id = request_id
        super().__init__(f"Request {request_id} not found")


class AlreadyProcessed(WalletError):
    """The request already left PENDING. No side effects were performed."""

    def __init__(self, request_id, status):
        self.request_id = request_id
        self.status = status
        super().__init__(
            f"Request {request_id} already processed "
            f"(status: {getattr(status, 'value', status)})"
        )


class InsufficientBalance(WalletError):
    def __init__(self, available, requested):
        self.available = available
        self.requested = requested
        super().__init__(
            f"Insufficient balance: available={available}, "
            f"requested={requested}"
        )
