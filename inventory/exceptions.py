"""
Typed exceptions raised by the service layer.

Services raise these instead of returning error codes; blueprints let
them propagate and the handlers registered in ``create_app()`` turn
them into JSON error responses.

    InventoryError (base)
    |
    +-- ResourceNotFoundError   -> 404  (also a ValueError)
    +-- ConflictError           -> 409
    +-- ValidationFailedError   -> 400  (carries every violation)
"""


class InventoryError(Exception):
    """Base class for all inventory service errors."""

    code: str = "INVENTORY_ERROR"
    http_status: int = 500

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message

    def to_dict(self) -> dict:
        """Serialize for an API error body."""
        return {"error": self.code, "message": self.message}


class ResourceNotFoundError(InventoryError, ValueError):
    """A referenced record does not exist (or is soft-deleted)."""

    code = "NOT_FOUND"
    http_status = 404

    def __init__(self, resource: str, field: str, value):
        super().__init__(f"{resource} not found with {field}: {value}")
        self.resource = resource
        self.field = field
        self.value = value


class ConflictError(InventoryError):
    """A uniqueness rule or identifier collision was violated."""

    code = "CONFLICT"
    http_status = 409


class ValidationFailedError(InventoryError):
    """
    One or more business rules failed.

    ``errors`` holds every violation found, in check order, so a caller
    can show all problems at once.
    """

    code = "VALIDATION_FAILED"
    http_status = 400

    def __init__(self, errors: list[str] | str):
        if isinstance(errors, str):
            errors = [errors]
        self.errors = list(errors)
        super().__init__("; ".join(self.errors) or "Validation failed")

    def to_dict(self) -> dict:
        body = super().to_dict()
        body["errors"] = self.errors
        return body
