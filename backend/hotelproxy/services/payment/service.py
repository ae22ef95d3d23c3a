"""
Payment + booking flow.

    create_order   → Razorpay order, pending booking stored
    verify_payment → signature check → TBO Book → history record, pending removed

A TBO failure after a successful payment is its own outcome
(success=False, paymentCompleted=True) so the storefront can tell the guest
that the money was taken but the booking needs support.
"""
import logging
from datetime import datetime, timezone
from typing import Any, Dict, List, Optional, Tuple

from hotelproxy.core.cache import CacheStore
from hotelproxy.core.errors import BookingNotFoundError, PaymentVerificationError
from hotelproxy.models.payment_models import CreateOrderRequest
from hotelproxy.services.payment.razorpay import RazorpayClient, verify_signature

logger = logging.getLogger("HotelProxy-Payment")

PENDING_PREFIX = "bookings:pending:"
HISTORY_PREFIX = "bookings:history:"

STATUS_NAMES = {1: "Confirmed", 0: "BookFailed", 3: "VerifyPrice"}
SUCCESS_STATUSES = {"Confirmed", "Pending"}


def _now() -> str:
    return datetime.now(timezone.utc).isoformat()


def booking_status(book_result: Dict[str, Any]) -> str:
    """
    Status name from a Book response. "Status" is an int on the
    BookResult-wrapped shape and a {Code, Description} object otherwise.
    """
    if book_result.get("HotelBookingStatus"):
        return book_result["HotelBookingStatus"]

    status = book_result.get("Status")
    if isinstance(status, dict):
        if status.get("Code") == 200 or book_result.get("ConfirmationNumber"):
            return "Confirmed"
        return "BookFailed"
    if isinstance(status, int) and not isinstance(status, bool):
        return STATUS_NAMES.get(status, "Unknown")
    return "Unknown"


def is_booking_successful(book_result: Dict[str, Any], status: str) -> bool:
    raw = book_result.get("Status")
    if isinstance(raw, int) and not isinstance(raw, bool) and raw == 1:
        return True
    return status in SUCCESS_STATUSES


def booking_error_message(book_result: Dict[str, Any]) -> str:
    error = book_result.get("Error")
    if isinstance(error, dict) and error.get("ErrorMessage"):
        return error["ErrorMessage"]
    status = book_result.get("Status")
    if isinstance(status, dict) and status.get("Description"):
        return status["Description"]
    return "Booking failed"


def summarize_book_result(book_result: Dict[str, Any], status: str) -> Dict[str, Any]:
    error = book_result.get("Error")
    return {
        "status": book_result.get("Status"),
        "hotelBookingStatus": status,
        "bookingId": book_result.get("BookingId"),
        "bookingRefNo": book_result.get("BookingRefNo"),
        "confirmationNo": book_result.get("ConfirmationNo") or book_result.get("ConfirmationNumber"),
        "voucherStatus": book_result.get("VoucherStatus", False),
        "isPriceChanged": book_result.get("IsPriceChanged", False),
        "isCancellationPolicyChanged": book_result.get("IsCancellationPolicyChanged", False),
        "responseStatus": book_result.get("ResponseStatus"),
        "error": {
            "errorCode": error.get("ErrorCode"),
            "errorMessage": error.get("ErrorMessage"),
        } if isinstance(error, dict) and error else None,
        "tboReferenceNo": book_result.get("TBOReferenceNo"),
        "traceId": book_result.get("TraceId"),
    }


class PaymentService:

    def __init__(self, razorpay: RazorpayClient, tbo, store: CacheStore):
        self.razorpay = razorpay
        self.tbo = tbo
        self.store = store

    # ═══════════════════════════════════════════════════════════════════
    # CREATE ORDER
    # ═══════════════════════════════════════════════════════════════════

    async def create_order(self, request: CreateOrderRequest) -> Dict[str, Any]:
        logger.info(f"💳 Creating order | {request.amount} {request.currency} | {request.booking_code}")

        order = await self.razorpay.create_order(
            amount=request.amount,
            currency=request.currency,
            notes={
                "bookingCode": request.booking_code,
                "guestNationality": request.guest_nationality,
            },
        )
        order_id = order["id"]

        await self.store.set(f"{PENDING_PREFIX}{order_id}", {
            "orderId": order_id,
            "bookingCode": request.booking_code,
            "amount": request.amount,
            "currency": request.currency,
            "guestNationality": request.guest_nationality,
            "hotelRoomsDetails": request.hotel_rooms_details,
            "isPackageFare": request.is_package_fare,
            "isPackageDetailsMandatory": request.is_package_details_mandatory,
            "hotelInfo": request.hotel_info,
            "roomInfo": request.room_info,
            "searchParams": request.search_params,
            "contactDetails": request.contact_details,
            "status": "pending",
            "createdAt": _now(),
        })
        logger.info(f"Pending booking stored: {order_id}")

        return {
            "success": True,
            "orderId": order_id,
            "amount": order.get("amount"),
            "currency": order.get("currency"),
            "keyId": self.razorpay.key_id,
        }

    # ═══════════════════════════════════════════════════════════════════
    # VERIFY + BOOK
    # ═══════════════════════════════════════════════════════════════════

    async def verify_payment(
        self,
        order_id: str,
        payment_id: str,
        signature: str,
        end_user_ip: str = "127.0.0.1",
    ) -> Tuple[int, Dict[str, Any]]:
        """Returns (http_status, body). Raises before any booking on a bad signature."""
        if not verify_signature(order_id, payment_id, signature, self.razorpay.key_secret):
            logger.error(f"❌ Payment signature verification failed for {order_id}")
            raise PaymentVerificationError("Invalid payment signature")

        logger.info(f"✅ Payment signature verified for {order_id}")

        pending_key = f"{PENDING_PREFIX}{order_id}"
        pending = await self.store.get(pending_key)
        if not pending:
            raise BookingNotFoundError("Pending booking data not found for this order")

        book_request = {
            "EndUserIp": end_user_ip,
            "BookingCode": pending["bookingCode"],
            "GuestNationality": pending["guestNationality"],
            "IsVoucherBooking": False,
            "NetAmount": pending["amount"],
            "HotelRoomsDetails": pending["hotelRoomsDetails"],
            "IsPackageFare": pending.get("isPackageFare", False),
            "IsPackageDetailsMandatory": pending.get("isPackageDetailsMandatory", False),
        }

        response = await self.tbo.book(book_request)
        book_result = response.get("BookResult") or response

        status = booking_status(book_result)
        is_success = is_booking_successful(book_result, status)

        await self.store.set(f"{HISTORY_PREFIX}{order_id}", {
            **pending,
            "paymentId": payment_id,
            "paymentSignature": signature,
            "tboResponse": summarize_book_result(book_result, status),
            "status": "confirmed" if is_success else "failed",
            "completedAt": _now(),
        })
        await self.store.delete(pending_key)
        logger.info(f"Booking {order_id} moved to history ({status})")

        common = {
            "orderId": order_id,
            "paymentId": payment_id,
            "bookingStatus": status,
        }

        if not is_success:
            message = booking_error_message(book_result)
            return 400, {
                "success": False,
                "error": "Hotel booking failed",
                "message": message,
                "paymentCompleted": True,
                **common,
                "tboResponse": book_result,
            }

        booking_refs = {
            "bookingId": book_result.get("BookingId"),
            "bookingRefNo": book_result.get("BookingRefNo"),
            "confirmationNo": book_result.get("ConfirmationNo") or book_result.get("ConfirmationNumber"),
            "voucherStatus": book_result.get("VoucherStatus"),
        }

        if book_result.get("IsPriceChanged") or book_result.get("IsCancellationPolicyChanged"):
            logger.warning(f"⚠️ Price or cancellation policy changed for {order_id}")
            return 200, {
                "success": True,
                "warning": "Price or cancellation policy has changed",
                "isPriceChanged": book_result.get("IsPriceChanged", False),
                "isCancellationPolicyChanged": book_result.get("IsCancellationPolicyChanged", False),
                **common,
                **booking_refs,
                "tboResponse": book_result,
            }

        return 200, {
            "success": True,
            "message": "Booking confirmed successfully",
            **common,
            **booking_refs,
            "hotelInfo": pending.get("hotelInfo"),
            "roomInfo": pending.get("roomInfo"),
            "searchParams": pending.get("searchParams"),
            "contactDetails": pending.get("contactDetails"),
        }

    # ═══════════════════════════════════════════════════════════════════
    # HISTORY
    # ═══════════════════════════════════════════════════════════════════

    async def booking_history(self, email: Optional[str] = None, phone: Optional[str] = None) -> List[Dict[str, Any]]:
        keys = await self.store.keys(HISTORY_PREFIX)
        entries = await self.store.get_many(keys)
        bookings = list(entries.values())

        if email:
            bookings = [
                b for b in bookings
                if ((b.get("contactDetails") or {}).get("email") or "").lower() == email.lower()
            ]
        if phone:
            bookings = [b for b in bookings if (b.get("contactDetails") or {}).get("phone") == phone]

        bookings.sort(key=lambda b: b.get("completedAt") or "", reverse=True)
        return bookings

    async def booking_details(self, order_id: str) -> Dict[str, Any]:
        booking = await self.store.get(f"{HISTORY_PREFIX}{order_id}")
        if not booking:
            booking = await self.store.get(f"{PENDING_PREFIX}{order_id}")
        if not booking:
            raise BookingNotFoundError(f"No booking found with order ID: {order_id}")
        return booking
