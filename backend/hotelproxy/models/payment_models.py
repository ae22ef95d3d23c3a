from pydantic import BaseModel, ConfigDict, Field
from typing import Any, Dict, List, Optional


class CreateOrderRequest(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    amount: float = Field(..., gt=0)
    currency: str = "INR"
    booking_code: str = Field(..., alias="bookingCode", min_length=1)
    guest_nationality: str = Field(..., alias="guestNationality", min_length=1)
    hotel_rooms_details: List[Dict[str, Any]] = Field(..., alias="hotelRoomsDetails", min_length=1)
    is_package_fare: bool = Field(default=False, alias="isPackageFare")
    is_package_details_mandatory: bool = Field(default=False, alias="isPackageDetailsMandatory")

    # Kept with the booking for history screens
    hotel_info: Optional[Dict[str, Any]] = Field(default=None, alias="hotelInfo")
    room_info: Optional[Dict[str, Any]] = Field(default=None, alias="roomInfo")
    search_params: Optional[Dict[str, Any]] = Field(default=None, alias="searchParams")
    contact_details: Optional[Dict[str, Any]] = Field(default=None, alias="contactDetails")


class VerifyPaymentRequest(BaseModel):
    razorpay_order_id: str = Field(..., min_length=1)
    razorpay_payment_id: str = Field(..., min_length=1)
    razorpay_signature: str = Field(..., min_length=1)
