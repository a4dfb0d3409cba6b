"""Domain exceptions raised by the service layer.

Routers translate these into HTTP responses; services never raise
``HTTPException`` themselves.
"""

from dataclasses import dataclass, field


@dataclass(slots=True)
class FieldError:
    field: str
    message: str


class ServiceError(Exception):
    status_code = 400

    def __init__(self, message: str) -> None:
        super().__init__(message)
        self.message = message


class NotFoundError(ServiceError):
    status_code = 404


class AuthenticationError(ServiceError):
    status_code = 401


class InvalidRequestError(ServiceError):
    status_code = 422

    def __init__(self, message: str, errors: list[FieldError] | None = None) -> None:
        super().__init__(message)
        self.errors = errors or []


class ConflictError(ServiceError):
    status_code = 409


class PolicyViolationError(ServiceError):
    status_code = 400


class PermissionDeniedError(ServiceError):
    status_code = 403


class PaymentGatewayError(ServiceError):
    """The payment provider failed or could not be reached; the request may be retried."""

    status_code = 502


class PaymentVerificationError(ServiceError):
    """Payment confirmation signature did not match the stored order."""

    status_code = 400


@dataclass(slots=True)
class ErrorBody:
    message: str
    errors: list[FieldError] = field(default_factory=list)

    def as_dict(self) -> dict:
        return {
            "success": False,
            "message": self.message,
            "errors": [{"field": e.field, "message": e.message} for e in self.errors],
        }
