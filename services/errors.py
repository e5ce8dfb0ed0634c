"""Errores del motor de consistencia.

Todos heredan de ``LedgerError``. Los recuperables se muestran al usuario como
operación rechazada sin efectos; ``InconsistentLedger`` es fatal y requiere
conciliación manual.
"""


class LedgerError(Exception):
    code = "LEDGER_ERROR"
    http_status = 400

    def __init__(self, message: str, **context):
        super().__init__(message)
        self.message = message
        self.context = context

    def to_dict(self) -> dict:
        return {"error": self.code, "message": self.message}


class InvalidRequest(LedgerError):
    code = "INVALID_REQUEST"


class NotFound(LedgerError):
    code = "NOT_FOUND"
    http_status = 404


class InvalidState(LedgerError):
    code = "INVALID_STATE"
    http_status = 409


class AlreadyCancelled(InvalidState):
    code = "ALREADY_CANCELLED"


class AlreadySettled(InvalidState):
    code = "ALREADY_SETTLED"


class InvalidTransition(InvalidState):
    code = "INVALID_TRANSITION"


class CreditAccountHasPayments(InvalidState):
    code = "CREDIT_ACCOUNT_HAS_PAYMENTS"


class CreditLimitExceeded(InvalidState):
    code = "CREDIT_LIMIT_EXCEEDED"


class ConcurrentModification(InvalidState):
    code = "CONCURRENT_MODIFICATION"


class InsufficientStock(LedgerError):
    code = "INSUFFICIENT_STOCK"
    http_status = 409


class StockInsufficientForReversal(InsufficientStock):
    code = "STOCK_INSUFFICIENT_FOR_REVERSAL"


class OverpaymentNotAllowed(LedgerError):
    code = "OVERPAYMENT_NOT_ALLOWED"
    http_status = 409


class UnitNotFound(LedgerError):
    code = "UNIT_NOT_FOUND"
    http_status = 404


class InvalidQuantity(LedgerError):
    code = "INVALID_QUANTITY"


class InconsistentLedger(LedgerError):
    code = "INCONSISTENT_LEDGER"
    http_status = 500
