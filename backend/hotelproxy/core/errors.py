from typing import Any, Optional


class TBOApiError(Exception):
    """Raised when the TBO API answers with a non-2xx status or can't be reached."""

    def __init__(self, status_code: int, message: str, details: Any = None):
        super().__init__(message)
        self.status_code = status_code
        self.message = message
        self.details = details

    @property
    def tbo_status_code(self) -> Optional[int]:
        if isinstance(self.details, dict):
            return (self.details.get("Status") or {}).get("Code")
        return None


class PaymentGatewayError(Exception):
    """Razorpay rejected a request or could not be reached."""

    def __init__(self, message: str, status_code: int = 502, details: Any = None):
        super().__init__(message)
        self.status_code = status_code
        self.details = details


class PaymentVerificationError(Exception):
    """Payment signature did not match."""


class BookingNotFoundError(Exception):
    """No pending/history record exists for an order id."""


def map_tbo_error(error: TBOApiError, label: str) -> tuple[int, dict]:
    """
    Convert a TBO failure into (status, body) for the HTTP layer.
    TBO's own status code and description are passed through.
    """
    return error.status_code, {
        "error": label,
        "message": error.message,
        "statusCode": error.tbo_status_code,
        "details": error.details,
    }
