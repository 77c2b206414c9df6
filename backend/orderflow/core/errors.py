"""Error taxonomy shared by the services and the HTTP layer."""


class FulfillmentError(Exception):
    """Base class for failures reported to callers.

    Attributes:
        message: Human readable description including the entity involved
        kind: Stable machine readable category
        status_code: HTTP status used when rendered by the API
    """

    kind = "error"
    status_code = 400

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message

    def to_dict(self) -> dict[str, str]:
        return {"kind": self.kind, "message": self.message}


class ValidationError(FulfillmentError):
    """Bad or missing input, rejected before any transaction opens."""

    kind = "validation"
    status_code = 422


class NotFoundError(FulfillmentError):
    kind = "not_found"
    status_code = 404


class InvalidStateError(FulfillmentError):
    """The entity exists but is not in a state that allows the operation."""

    kind = "invalid_state"
    status_code = 409


class BOMIntegrityError(FulfillmentError):
    """The bill of materials references a material that no longer exists."""

    kind = "integrity"
    status_code = 500
