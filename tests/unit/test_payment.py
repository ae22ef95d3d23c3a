import json

import httpx
import pytest

from hotelproxy.core.errors import BookingNotFoundError, PaymentGatewayError, PaymentVerificationError
from hotelproxy.models.payment_models import CreateOrderRequest
from hotelproxy.services.payment.razorpay import (
    RazorpayClient,
    generate_signature,
    to_subunits,
    verify_signature,
)
from hotelproxy.services.payment.service import PaymentService

SECRET = "rzp_test_secret"


def razorpay_client(handler=None):
    def default_handler(request: httpx.Request):
        body = json.loads(request.content)
        return httpx.Response(200, json={"id": "order_ABC123", "amount": body["amount"], "currency": body["currency"]})

    http = httpx.AsyncClient(transport=httpx.MockTransport(handler or default_handler))
    return RazorpayClient("rzp_test_key", SECRET, base_url="https://razorpay.test/v1", http_client=http)


def order_request(**overrides):
    body = {
        "amount": 4599.5,
        "bookingCode": "BC-1",
        "guestNationality": "IN",
        "hotelRoomsDetails": [{"HotelPassenger": [{"FirstName": "Asha", "LastName": "Rao"}]}],
        "hotelInfo": {"name": "Taj Palace"},
        "contactDetails": {"email": "Asha@Example.com", "phone": "9999999999"},
    }
    body.update(overrides)
    return CreateOrderRequest(**body)


@pytest.fixture
def tbo(mocker):
    client = mocker.AsyncMock()
    client.book.return_value = {
        "BookResult": {
            "Status": 1,
            "HotelBookingStatus": "Confirmed",
            "BookingId": 5551,
            "BookingRefNo": "REF1",
            "ConfirmationNo": "CNF1",
            "VoucherStatus": True,
        }
    }
    return client


@pytest.fixture
def service(tbo, store):
    return PaymentService(razorpay_client(), tbo, store)


async def create_pending(service):
    return (await service.create_order(order_request()))["orderId"]


# ═══════════════════════════════════════════════════════════════════
# SIGNATURES
# ═══════════════════════════════════════════════════════════════════

def test_signature_is_hmac_sha256_of_order_and_payment():
    import hashlib
    import hmac

    expected = hmac.new(SECRET.encode(), b"order_1|pay_1", hashlib.sha256).hexdigest()

    assert generate_signature("order_1", "pay_1", SECRET) == expected
    assert verify_signature("order_1", "pay_1", expected, SECRET) is True
    assert verify_signature("order_1", "pay_2", expected, SECRET) is False
    assert verify_signature("order_1", "pay_1", expected, None) is False


def test_to_subunits():
    assert to_subunits(4599.5) == 459950
    assert to_subunits(0.1 + 0.2) == 30


# ═══════════════════════════════════════════════════════════════════
# ORDERS
# ═══════════════════════════════════════════════════════════════════

@pytest.mark.asyncio
async def test_create_order_stores_pending_booking(service, store):
    result = await service.create_order(order_request())

    assert result == {
        "success": True,
        "orderId": "order_ABC123",
        "amount": 459950,
        "currency": "INR",
        "keyId": "rzp_test_key",
    }
    pending = await store.get("bookings:pending:order_ABC123")
    assert pending["bookingCode"] == "BC-1"
    assert pending["amount"] == 4599.5
    assert pending["status"] == "pending"


@pytest.mark.asyncio
async def test_create_order_gateway_error(tbo, store):
    def handler(request):
        return httpx.Response(400, json={"error": {"description": "amount exceeds maximum"}})

    service = PaymentService(razorpay_client(handler), tbo, store)

    with pytest.raises(PaymentGatewayError) as exc:
        await service.create_order(order_request())

    assert exc.value.status_code == 400
    assert str(exc.value) == "amount exceeds maximum"
    assert await store.keys("bookings:pending:") == []


@pytest.mark.asyncio
async def test_create_order_without_keys(tbo, store):
    razorpay = RazorpayClient(None, None, http_client=httpx.AsyncClient())
    service = PaymentService(razorpay, tbo, store)

    with pytest.raises(PaymentGatewayError):
        await service.create_order(order_request())


def test_order_request_requires_rooms():
    with pytest.raises(ValueError):
        order_request(hotelRoomsDetails=[])


# ═══════════════════════════════════════════════════════════════════
# VERIFY + BOOK
# ═══════════════════════════════════════════════════════════════════

@pytest.mark.asyncio
async def test_tampered_signature_never_books(service, tbo, store):
    order_id = await create_pending(service)
    good = generate_signature(order_id, "pay_1", SECRET)
    tampered = ("0" if good[0] != "0" else "1") + good[1:]

    with pytest.raises(PaymentVerificationError):
        await service.verify_payment(order_id, "pay_1", tampered)

    tbo.book.assert_not_called()
    assert await store.get(f"bookings:pending:{order_id}") is not None


@pytest.mark.asyncio
async def test_missing_pending_booking(service, tbo):
    signature = generate_signature("order_GONE", "pay_1", SECRET)

    with pytest.raises(BookingNotFoundError):
        await service.verify_payment("order_GONE", "pay_1", signature)

    tbo.book.assert_not_called()


@pytest.mark.asyncio
async def test_verified_payment_books_and_moves_to_history(service, tbo, store):
    order_id = await create_pending(service)
    signature = generate_signature(order_id, "pay_1", SECRET)

    status, body = await service.verify_payment(order_id, "pay_1", signature, end_user_ip="10.0.0.1")

    assert status == 200
    assert body["success"] is True
    assert body["bookingId"] == 5551
    assert body["confirmationNo"] == "CNF1"
    assert body["bookingStatus"] == "Confirmed"
    assert body["hotelInfo"] == {"name": "Taj Palace"}

    book_request = tbo.book.call_args.args[0]
    assert book_request["EndUserIp"] == "10.0.0.1"
    assert book_request["BookingCode"] == "BC-1"
    assert book_request["NetAmount"] == 4599.5
    assert book_request["IsVoucherBooking"] is False

    history = await store.get(f"bookings:history:{order_id}")
    assert history["status"] == "confirmed"
    assert history["paymentId"] == "pay_1"
    assert history["tboResponse"]["confirmationNo"] == "CNF1"
    assert await store.get(f"bookings:pending:{order_id}") is None


@pytest.mark.asyncio
async def test_failed_booking_after_payment(service, tbo, store):
    tbo.book.return_value = {"BookResult": {"Status": 0, "Error": {"ErrorCode": 2, "ErrorMessage": "Room sold out"}}}
    order_id = await create_pending(service)
    signature = generate_signature(order_id, "pay_1", SECRET)

    status, body = await service.verify_payment(order_id, "pay_1", signature)

    assert status == 400
    assert body["success"] is False
    assert body["paymentCompleted"] is True
    assert body["message"] == "Room sold out"
    assert body["bookingStatus"] == "BookFailed"
    assert (await store.get(f"bookings:history:{order_id}"))["status"] == "failed"


@pytest.mark.asyncio
async def test_price_change_is_a_warning(service, tbo):
    tbo.book.return_value = {"Status": 1, "IsPriceChanged": True, "BookingId": 1}
    order_id = await create_pending(service)
    signature = generate_signature(order_id, "pay_1", SECRET)

    status, body = await service.verify_payment(order_id, "pay_1", signature)

    assert status == 200
    assert body["success"] is True
    assert body["isPriceChanged"] is True
    assert "warning" in body


@pytest.mark.asyncio
async def test_unwrapped_book_response_with_status_object(service, tbo, store):
    tbo.book.return_value = {
        "Status": {"Code": 200, "Description": "Successful"},
        "ConfirmationNumber": "CNF9",
    }
    order_id = await create_pending(service)
    signature = generate_signature(order_id, "pay_1", SECRET)

    status, body = await service.verify_payment(order_id, "pay_1", signature)

    assert status == 200
    assert body["success"] is True
    assert body["bookingStatus"] == "Confirmed"
    assert body["confirmationNo"] == "CNF9"

    history = await store.get(f"bookings:history:{order_id}")
    assert history["status"] == "confirmed"
    assert history["tboResponse"]["confirmationNo"] == "CNF9"
    assert await store.get(f"bookings:pending:{order_id}") is None


@pytest.mark.asyncio
async def test_unwrapped_book_failure_uses_status_description(service, tbo, store):
    tbo.book.return_value = {"Status": {"Code": 500, "Description": "Booking failed at supplier"}}
    order_id = await create_pending(service)
    signature = generate_signature(order_id, "pay_1", SECRET)

    status, body = await service.verify_payment(order_id, "pay_1", signature)

    assert status == 400
    assert body["paymentCompleted"] is True
    assert body["bookingStatus"] == "BookFailed"
    assert body["message"] == "Booking failed at supplier"
    assert (await store.get(f"bookings:history:{order_id}"))["status"] == "failed"


# ═══════════════════════════════════════════════════════════════════
# HISTORY
# ═══════════════════════════════════════════════════════════════════

@pytest.mark.asyncio
async def test_booking_history_filters_and_sorts(service, store):
    await store.set("bookings:history:order_1", {
        "orderId": "order_1", "completedAt": "2026-01-01T00:00:00+00:00",
        "contactDetails": {"email": "asha@example.com", "phone": "1"},
    })
    await store.set("bookings:history:order_2", {
        "orderId": "order_2", "completedAt": "2026-03-01T00:00:00+00:00",
        "contactDetails": {"email": "ASHA@example.com", "phone": "2"},
    })
    await store.set("bookings:history:order_3", {
        "orderId": "order_3", "completedAt": "2026-02-01T00:00:00+00:00",
        "contactDetails": {"email": "ravi@example.com", "phone": "1"},
    })

    by_email = await service.booking_history(email="Asha@Example.com")
    assert [b["orderId"] for b in by_email] == ["order_2", "order_1"]

    by_phone = await service.booking_history(phone="1")
    assert [b["orderId"] for b in by_phone] == ["order_3", "order_1"]

    assert len(await service.booking_history()) == 3


@pytest.mark.asyncio
async def test_booking_details_falls_back_to_pending(service):
    order_id = await create_pending(service)

    booking = await service.booking_details(order_id)
    assert booking["status"] == "pending"

    with pytest.raises(BookingNotFoundError):
        await service.booking_details("order_UNKNOWN")
