class AppError(Exception):
    """Base exception for application errors."""

    kind = "app_error"

    def __init__(self, message: str, original_error: Exception = None):
        super().__init__(message)
        self.message = message
        self.original_error = original_error

    def to_dict(self) -> dict:
        """Error payload used in HTTP error responses."""
        return {"error": self.kind, "message": self.message}


class DatabaseError(AppError):
    """Raised when a database operation fails."""

    kind = "database_error"


class StoreUnavailableError(DatabaseError):
    """Raised when the contact store cannot be read at all."""

    kind = "store_unavailable"


class PolicyLineLookupError(DatabaseError):
    """Raised when a single policy-line table cannot be read."""

    kind = "policy_line_lookup_failed"

    def __init__(self, line: str, message: str, original_error: Exception = None):
        super().__init__(message, original_error=original_error)
        self.line = line


class ReconciliationWriteError(DatabaseError):
    """Raised when the bulk status update fails."""

    kind = "reconciliation_write_failed"


class ContactNotFoundError(AppError):
    """Raised when a contact id does not exist."""

    kind = "not_found"

    def __init__(self, contact_id: int):
        super().__init__(f"Contacto no encontrado: {contact_id}")
        self.contact_id = contact_id


class ValidationError(AppError):
    """Raised when input validation fails."""

    kind = "validation_error"
