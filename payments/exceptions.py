class LedgerError(Exception):
    """Base class for transaction ledger failures."""

    code = "ledger_error"
    status_code = 400


class ValidationError(LedgerError):
    code = "validation_error"
    status_code = 400

    def __init__(self, message: str, field: str = ""):
        self.field = field
        super().__init__(message)


class LimitExceeded(LedgerError):
    code = "limit_exceeded"
    status_code = 403

    def __init__(self, amount_usd, limit_usd):
        self.amount_usd = amount_usd
        self.limit_usd = limit_usd
        super().__init__(f"Guests cannot complete transactions above ${limit_usd}. Please login.")


class NotFound(LedgerError):
    code = "not_found"
    status_code = 404

    def __init__(self, message: str = "Transaction not found"):
        super().__init__(message)


class InvalidTransition(LedgerError):
    code = "invalid_transition"
    status_code = 409

    def __init__(self, transaction_id, current: str, target: str):
        self.transaction_id = transaction_id
        self.current = current
        self.target = target
        super().__init__(f"Transaction {transaction_id} is {current} and cannot become {target}")
