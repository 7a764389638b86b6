"""Typed failures raised by the cart, checkout and order operations.

Every failure carries a machine-readable ``kind`` and a human-readable
message. The HTTP layer maps each kind to a status code via ``status_code``.
"""


class StorefrontError(Exception):
    kind = "Unclassified"
    status_code = 500

    def __init__(self, message: str, details: dict | None = None) -> None:
        super().__init__(message)
        self.message = message
        self.details = details or {}

    def to_dict(self) -> dict:
        payload = {"kind": self.kind, "message": self.message}
        if self.details:
            payload["details"] = self.details
        return payload


# ---------------------------------------------------------------------------
# Validation errors: the request itself is wrong
# ---------------------------------------------------------------------------
class InvalidRequest(StorefrontError):
    status_code = 400


class InvalidOwner(InvalidRequest):
    kind = "InvalidOwner"


class UnknownProduct(InvalidRequest):
    kind = "UnknownProduct"


class EmptyCheckout(InvalidRequest):
    kind = "EmptyCheckout"


class InvalidLineItem(InvalidRequest):
    kind = "InvalidLineItem"


class InvalidPaymentStatus(InvalidRequest):
    kind = "InvalidPaymentStatus"


class InvalidCheckoutData(InvalidRequest):
    kind = "InvalidCheckoutData"


class InvalidOrderStatus(InvalidRequest):
    kind = "InvalidOrderStatus"


# ---------------------------------------------------------------------------
# State errors: the record is in the wrong state for the operation
# ---------------------------------------------------------------------------
class StateConflict(StorefrontError):
    status_code = 409


class AlreadyFinalized(StateConflict):
    kind = "AlreadyFinalized"


class CheckoutNotPaid(StateConflict):
    kind = "CheckoutNotPaid"


class InvalidStateTransition(StateConflict):
    kind = "InvalidStateTransition"


class LineNotFound(StorefrontError):
    kind = "LineNotFound"
    status_code = 404


# ---------------------------------------------------------------------------
# Authorization and lookup errors
# ---------------------------------------------------------------------------
class Forbidden(StorefrontError):
    kind = "Forbidden"
    status_code = 403


class NotFound(StorefrontError):
    kind = "NotFound"
    status_code = 404


class ProductNotFound(NotFound):
    kind = "ProductNotFound"


class Unauthenticated(StorefrontError):
    kind = "Unauthenticated"
    status_code = 401
