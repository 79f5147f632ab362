"""Domain exceptions for the settlement service.

Each error carries a stable ``code`` the client can switch on and the HTTP
status the API layer answers with.
"""


class SettlementError(Exception):
    """Base exception for all settlement service errors."""

    code = "SETTLEMENT_ERROR"
    status_code = 500

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message


class ValidationError(SettlementError):
    """Required input missing or malformed. Nothing was written."""

    code = "VALIDATION_ERROR"
    status_code = 400


class NotFoundOrUnauthorized(SettlementError):
    """Settlement does not exist or the caller is not its receiver."""

    code = "NOT_FOUND_OR_UNAUTHORIZED"
    status_code = 404


class PreconditionFailed(SettlementError):
    """Receipt confirmed before the payer confirmed payment."""

    code = "PRECONDITION_FAILED"
    status_code = 409


class StorageError(SettlementError):
    """Underlying persistence failure."""

    code = "STORAGE_ERROR"
    status_code = 500
