"""
TBO Hotel Proxy - Payment Routes

Endpoints:
    POST /payment/create-order          - Razorpay order + pending booking
    POST /payment/verify                - Signature check, then TBO Book
    GET  /payment/bookings              - Booking history (email/phone filter)
    GET  /payment/bookings/{order_id}   - One booking (history, then pending)
"""
import logging
from typing import Optional

from fastapi import APIRouter, Depends, Query, Request
from fastapi.responses import JSONResponse

from hotelproxy.api.deps import get_services
from hotelproxy.core.container import ServiceContainer
from hotelproxy.core.errors import (
    BookingNotFoundError,
    PaymentGatewayError,
    PaymentVerificationError,
    TBOApiError,
    map_tbo_error,
)
from hotelproxy.models.payment_models import CreateOrderRequest, VerifyPaymentRequest

router = APIRouter(prefix="/payment", tags=["Payment"])
logger = logging.getLogger("HotelProxy-PaymentRoutes")


@router.post("/create-order")
async def create_order(request: CreateOrderRequest, services: ServiceContainer = Depends(get_services)):
    try:
        return await services.payments.create_order(request)
    except PaymentGatewayError as e:
        return JSONResponse(
            status_code=e.status_code,
            content={"error": "Failed to create payment order", "message": str(e), "details": e.details},
        )


@router.post("/verify")
async def verify_payment(
    body: VerifyPaymentRequest,
    request: Request,
    services: ServiceContainer = Depends(get_services),
):
    end_user_ip = request.client.host if request.client else "127.0.0.1"
    try:
        status, result = await services.payments.verify_payment(
            body.razorpay_order_id,
            body.razorpay_payment_id,
            body.razorpay_signature,
            end_user_ip=end_user_ip,
        )
    except PaymentVerificationError as e:
        return JSONResponse(
            status_code=400,
            content={"error": "Payment verification failed", "message": str(e)},
        )
    except BookingNotFoundError as e:
        return JSONResponse(status_code=404, content={"error": "Booking not found", "message": str(e)})
    except TBOApiError as e:
        # Payment already captured at this point
        status_code, content = map_tbo_error(e, "Hotel booking failed")
        content.update({
            "success": False,
            "paymentCompleted": True,
            "orderId": body.razorpay_order_id,
            "paymentId": body.razorpay_payment_id,
        })
        return JSONResponse(status_code=status_code, content=content)

    return JSONResponse(status_code=status, content=result)


@router.get("/bookings")
async def get_booking_history(
    email: Optional[str] = Query(default=None),
    phone: Optional[str] = Query(default=None),
    services: ServiceContainer = Depends(get_services),
):
    bookings = await services.payments.booking_history(email=email, phone=phone)
    return {"success": True, "count": len(bookings), "bookings": bookings}


@router.get("/bookings/{order_id}")
async def get_booking_details(order_id: str, services: ServiceContainer = Depends(get_services)):
    try:
        booking = await services.payments.booking_details(order_id)
    except BookingNotFoundError as e:
        return JSONResponse(status_code=404, content={"error": "Booking not found", "message": str(e)})
    return {"success": True, "booking": booking}
