class EstateError(Exception):
    """Base class for booking and payment failures."""

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message

class ValidationError(EstateError):
    """Request is incomplete or malformed. Raised before any write."""

class UnitUnavailableError(EstateError):
    """Unit is not in the `available` state at transaction time."""

    def __init__(self, unit_id, message: str = "Unit is not available for booking"):
        super().__init__(message)
        self.unit_id = unit_id

class NotFoundError(EstateError):
    pass

class ServerError(EstateError):
    """Store failure. `original` keeps the underlying exception for diagnostics."""

    def __init__(self, message: str, original: Exception = None):
        super().__init__(message)
        self.original = original
