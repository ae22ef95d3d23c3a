"""
Hotel models - request bodies of the proxy and derived cache records.

Wire format stays camelCase (storefront contract); attributes are snake_case.
"""
from pydantic import BaseModel, ConfigDict, Field
from typing import Any, Dict, List, Literal, Optional, Union


class CamelModel(BaseModel):
    model_config = ConfigDict(populate_by_name=True)


# ═══════════════════════════════════════════════════════════════════
# REQUESTS
# ═══════════════════════════════════════════════════════════════════

class CitiesRequest(CamelModel):
    country_code: str = Field(..., alias="countryCode", min_length=1)


class HotelsRequest(CamelModel):
    city_code: str = Field(..., alias="cityCode", min_length=1)


class HotelDetailsRequest(CamelModel):
    hotel_code: str = Field(..., alias="hotelCode", min_length=1)
    language: str = "EN"
    is_room_detail_required: bool = Field(default=True, alias="isRoomDetailRequired")


class HotelBasicInfoRequest(CamelModel):
    hotel_code: str = Field(..., alias="hotelCode", min_length=1)


class PaxRoom(CamelModel):
    """One room's occupancy, in TBO's own field names."""
    adults: int = Field(default=2, alias="Adults", ge=1)
    children: int = Field(default=0, alias="Children", ge=0)
    children_ages: List[int] = Field(default_factory=list, alias="ChildrenAges")

    def to_tbo(self) -> Dict[str, Any]:
        return self.model_dump(by_alias=True)


class HotelSearchRequest(CamelModel):
    """Live availability/pricing query (never cached)."""
    check_in: str = Field(..., alias="checkIn")
    check_out: str = Field(..., alias="checkOut")
    hotel_codes: Union[str, List[Union[str, int]]] = Field(..., alias="hotelCodes")
    guest_nationality: str = Field(default="IN", alias="guestNationality")
    no_of_rooms: int = Field(default=1, alias="noOfRooms", ge=1)
    pax_rooms: List[PaxRoom] = Field(default_factory=lambda: [PaxRoom()], alias="paxRooms")
    is_detailed_response: bool = Field(default=True, alias="isDetailedResponse")


class CardInfoRequest(CamelModel):
    hotel_codes: List[Union[str, int]] = Field(..., alias="hotelCodes")


class HotelRoomsRequest(CamelModel):
    """Catalog rooms of one hotel joined against its live availability."""
    hotel_code: str = Field(..., alias="hotelCode", min_length=1)
    check_in: str = Field(..., alias="checkIn")
    check_out: str = Field(..., alias="checkOut")
    guest_nationality: str = Field(default="IN", alias="guestNationality")
    no_of_rooms: int = Field(default=1, alias="noOfRooms", ge=1)
    pax_rooms: List[PaxRoom] = Field(default_factory=lambda: [PaxRoom()], alias="paxRooms")


class PreBookRequest(BaseModel):
    BookingCode: str = Field(..., min_length=1)


class BookRequest(BaseModel):
    """Forwarded to TBO Book as-is; extra fields are kept."""
    model_config = ConfigDict(extra="allow")

    BookingCode: str = Field(..., min_length=1)
    GuestNationality: str
    NetAmount: float
    HotelRoomsDetails: List[Dict[str, Any]]
    IsVoucherBooking: bool = False
    IsPackageFare: bool = False
    IsPackageDetailsMandatory: bool = False


# ═══════════════════════════════════════════════════════════════════
# DERIVED RECORDS
# ═══════════════════════════════════════════════════════════════════

class HotelCardInfo(CamelModel):
    """Cacheable per-hotel summary shown on search result cards."""
    image_url: Optional[str] = Field(default=None, alias="imageUrl")
    amenities: List[str] = Field(default_factory=list, max_length=10)
    rating: Optional[float] = None
    reviews: int = 0
    rating_text: Optional[str] = Field(default=None, alias="ratingText")
    description: Optional[str] = None
    last_updated: Optional[str] = Field(default=None, alias="lastUpdated")


class CardInfoResult(CamelModel):
    hotel_info: Dict[str, Dict[str, Any]] = Field(default_factory=dict, alias="hotelInfo")
    source: Literal["cache", "api", "mixed"] = "cache"
    cached_count: int = Field(default=0, alias="cachedCount")
    fetched_count: int = Field(default=0, alias="fetchedCount")


class MergedRoom(CamelModel):
    """A catalog room annotated with live availability (or an unmatched live room)."""
    name: str
    available: bool
    pricing: Optional[Dict[str, Any]] = None
    catalog: Optional[Dict[str, Any]] = None
    matched_by: Optional[Literal["exact", "prefix", "unmatched"]] = Field(default=None, alias="matchedBy")
