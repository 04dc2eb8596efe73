"""
Typed failures raised by the booking engine.

Every error carries a stable ``kind`` and a human message so callers can
decide whether to retry, pick another slot, or give up.
"""


class BookingError(Exception):
    kind = "BookingError"
    status_code = 400

    def __init__(self, message: str = None, **details):
        super().__init__(message or self.kind)
        self.message = message or self.kind
        self.details = details

    def to_dict(self):
        out = {"error": self.message, "kind": self.kind}
        if self.details:
            out["details"] = self.details
        return out


class NotFound(BookingError):
    kind = "NotFound"
    status_code = 404


class NoCapacity(BookingError):
    kind = "NoCapacity"
    status_code = 409


class SlotNotFound(NotFound):
    kind = "SlotNotFound"


class SlotNotAvailable(BookingError):
    kind = "SlotNotAvailable"
    status_code = 409


class UnsupportedVehicleType(BookingError):
    kind = "UnsupportedVehicleType"


class InvalidInterval(BookingError):
    kind = "InvalidInterval"


class InvalidTransition(BookingError):
    kind = "InvalidTransition"
    status_code = 409


class PaymentFailed(BookingError):
    kind = "PaymentFailed"
    status_code = 402


class ConcurrentModification(BookingError):
    kind = "ConcurrentModification"
    status_code = 409


class ValidationFailed(BookingError):
    kind = "ValidationFailed"
