from typing import Any, Dict, Optional

from fastapi import status


class ServiceError(Exception):
    status_code: int = status.HTTP_500_INTERNAL_SERVER_ERROR

    def __init__(self, message: str, extra: Optional[Dict[str, Any]] = None):
        super().__init__(message)
        self.message = message
        self.extra: Dict[str, Any] = dict(extra or {})

    def to_body(self) -> Dict[str, Any]:
        return {"success": False, "error": self.message, **self.extra}


class NotFound(ServiceError):
    status_code = status.HTTP_404_NOT_FOUND


class Forbidden(ServiceError):
    status_code = status.HTTP_403_FORBIDDEN


class PaymentRequired(Forbidden):
    """The viewer has no access record; carries the price so the client can pay."""

    def __init__(self, price: float, message: str = "Access not granted"):
        super().__init__(message, {"needsPayment": True, "price": price})
        self.price = price


class Conflict(ServiceError):
    """Duplicate payment or interaction. Rendered as 400 with the existing record."""

    status_code = status.HTTP_400_BAD_REQUEST

    def __init__(self, message: str, record: Any = None, extra: Optional[Dict[str, Any]] = None):
        super().__init__(message, extra)
        self.record = record


class ValidationFailure(ServiceError):
    status_code = status.HTTP_400_BAD_REQUEST


class UpstreamFailure(ServiceError):
    status_code = status.HTTP_502_BAD_GATEWAY
