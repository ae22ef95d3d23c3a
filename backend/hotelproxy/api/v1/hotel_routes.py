"""
TBO Hotel Proxy - Hotel Routes

Endpoints:
    GET  /hotels/countries          - Country list (cache first)
    POST /hotels/cities             - Cities of a country (cache first)
    POST /hotels/hotels             - Hotel codes of a city (cache first)
    POST /hotels/hotel-details      - Full hotel details (cache first)
    POST /hotels/hotel-basic-info   - Hotel stub from cached city lists
    GET  /hotels/search-names       - Hotel name autocomplete
    POST /hotels/search             - Live availability/pricing (never cached)
    POST /hotels/hotel-card-info    - Card summaries, cache-fill on miss
    POST /hotels/hotel-rooms        - Catalog rooms merged with live availability
    POST /hotels/prebook            - Re-price a booking code
    POST /hotels/book               - Book with TBO
"""
import logging

from fastapi import APIRouter, Depends, Query
from fastapi.responses import JSONResponse

from hotelproxy.api.deps import get_services
from hotelproxy.core.container import ServiceContainer
from hotelproxy.core.errors import TBOApiError, map_tbo_error
from hotelproxy.models.hotel_models import (
    BookRequest,
    CardInfoRequest,
    CitiesRequest,
    HotelBasicInfoRequest,
    HotelDetailsRequest,
    HotelRoomsRequest,
    HotelSearchRequest,
    HotelsRequest,
    PreBookRequest,
)
from hotelproxy.services.rooms.merge import merge_rooms
from hotelproxy.services.tbo.client import build_search_request

router = APIRouter(prefix="/hotels", tags=["Hotels"])
logger = logging.getLogger("HotelProxy-HotelRoutes")


def _tbo_error_response(error: TBOApiError, label: str) -> JSONResponse:
    status, body = map_tbo_error(error, label)
    return JSONResponse(status_code=status, content=body)


# ═══════════════════════════════════════════════════════════════════
# STATIC DATA (cache first, background fill on miss)
# ═══════════════════════════════════════════════════════════════════

@router.get("/countries")
async def get_countries(services: ServiceContainer = Depends(get_services)):
    cached = await services.static_data.get_countries()
    if cached:
        return {"CountryList": cached, "source": "cache"}

    try:
        data = await services.tbo.country_list()
    except TBOApiError as e:
        return _tbo_error_response(e, "Failed to fetch country list")

    countries = data.get("CountryList")
    if countries:
        services.writer.spawn(services.static_data.save_countries(countries), label="countries")
    return {**data, "source": "api"}


@router.post("/cities")
async def get_cities(request: CitiesRequest, services: ServiceContainer = Depends(get_services)):
    cached = await services.static_data.get_cities(request.country_code)
    if cached:
        return {"CityList": cached, "source": "cache"}

    try:
        data = await services.tbo.city_list(request.country_code)
    except TBOApiError as e:
        return _tbo_error_response(e, "Failed to fetch city list")

    cities = data.get("CityList")
    if cities:
        services.writer.spawn(
            services.static_data.save_cities(request.country_code, cities),
            label=f"cities:{request.country_code}",
        )
    return {**data, "source": "api"}


@router.post("/hotels")
async def get_hotels(request: HotelsRequest, services: ServiceContainer = Depends(get_services)):
    cached = await services.static_data.get_hotels(request.city_code)
    if cached:
        return {"Hotels": cached, "source": "cache"}

    try:
        data = await services.tbo.hotel_code_list(request.city_code)
    except TBOApiError as e:
        return _tbo_error_response(e, "Failed to fetch hotel list")

    hotels = data.get("Hotels")
    if hotels:
        services.writer.spawn(
            services.static_data.save_hotels(request.city_code, hotels),
            label=f"hotels:{request.city_code}",
        )
    return {**data, "source": "api"}


@router.post("/hotel-details")
async def get_hotel_details(request: HotelDetailsRequest, services: ServiceContainer = Depends(get_services)):
    cached = await services.static_data.get_hotel_details(request.hotel_code)
    if cached:
        return {"HotelDetails": [cached], "source": "cache"}

    try:
        data = await services.tbo.hotel_details(
            request.hotel_code,
            language=request.language,
            is_room_detail_required=request.is_room_detail_required,
        )
    except TBOApiError as e:
        return _tbo_error_response(e, "Failed to fetch hotel details")

    for hotel in data.get("HotelDetails") or []:
        code = str(hotel.get("HotelCode") or request.hotel_code)
        services.writer.spawn(services.static_data.save_hotel_details(code, hotel), label=f"hotelDetails:{code}")
    return {**data, "source": "api"}


@router.post("/hotel-basic-info")
async def get_hotel_basic_info(request: HotelBasicInfoRequest, services: ServiceContainer = Depends(get_services)):
    """Fallback when Hoteldetails fails: the stub from whichever cached city list has it."""
    hotel = await services.static_data.find_hotel_by_code(request.hotel_code)
    if not hotel:
        return JSONResponse(
            status_code=404,
            content={
                "error": "Hotel not found",
                "message": f"Hotel {request.hotel_code} not found in cached hotel lists",
            },
        )
    return {"HotelInfo": hotel, "source": "cache", "isBasicInfo": True}


@router.get("/search-names")
async def search_hotel_names(
    query: str = Query(default=""),
    limit: int = Query(default=10, ge=1, le=50),
    services: ServiceContainer = Depends(get_services),
):
    suggestions = await services.static_data.search_hotel_names(query, limit=limit)
    return {"suggestions": suggestions}


# ═══════════════════════════════════════════════════════════════════
# LIVE SEARCH
# ═══════════════════════════════════════════════════════════════════

@router.post("/search")
async def search_hotels(request: HotelSearchRequest, services: ServiceContainer = Depends(get_services)):
    """Availability and pricing straight from TBO. Never cached."""
    body = build_search_request(
        check_in=request.check_in,
        check_out=request.check_out,
        hotel_codes=request.hotel_codes,
        guest_nationality=request.guest_nationality,
        no_of_rooms=request.no_of_rooms,
        pax_rooms=[room.to_tbo() for room in request.pax_rooms],
        is_detailed_response=request.is_detailed_response,
    )
    try:
        return await services.tbo.search(body)
    except TBOApiError as e:
        return _tbo_error_response(e, "Hotel search failed")


@router.post("/hotel-card-info")
async def get_hotel_card_info(request: CardInfoRequest, services: ServiceContainer = Depends(get_services)):
    result = await services.card_info.get_card_info(request.hotel_codes)
    return result.model_dump(by_alias=True)


@router.post("/hotel-rooms")
async def get_hotel_rooms(request: HotelRoomsRequest, services: ServiceContainer = Depends(get_services)):
    """
    Catalog rooms (Hoteldetails with room details) joined with the live
    rooms of one hotel. Catalog failures degrade to live-only rooms.
    """
    catalog_rooms = []
    details = await services.static_data.get_hotel_details(request.hotel_code)
    if not details or not details.get("Rooms"):
        try:
            data = await services.tbo.hotel_details(request.hotel_code, is_room_detail_required=True)
            details = (data.get("HotelDetails") or [None])[0]
        except TBOApiError as e:
            logger.warning(f"⚠️ Room catalog unavailable for {request.hotel_code}: {e.message}")
            details = None
    if details:
        catalog_rooms = details.get("Rooms") or []

    body = build_search_request(
        check_in=request.check_in,
        check_out=request.check_out,
        hotel_codes=request.hotel_code,
        guest_nationality=request.guest_nationality,
        no_of_rooms=request.no_of_rooms,
        pax_rooms=[room.to_tbo() for room in request.pax_rooms],
    )
    try:
        search = await services.tbo.search(body)
    except TBOApiError as e:
        return _tbo_error_response(e, "Hotel search failed")

    live_rooms = []
    for hotel in search.get("HotelResult") or []:
        if str(hotel.get("HotelCode")) == request.hotel_code:
            live_rooms = hotel.get("Rooms") or []
            break

    rooms = merge_rooms(catalog_rooms, live_rooms, matcher=services.room_matcher)
    logger.info(
        f"🛏️ Rooms for {request.hotel_code}: catalog={len(catalog_rooms)} live={len(live_rooms)} "
        f"available={sum(1 for r in rooms if r.available)}"
    )
    return {
        "hotelCode": request.hotel_code,
        "rooms": [room.model_dump(by_alias=True) for room in rooms],
        "availableCount": sum(1 for r in rooms if r.available),
    }


# ═══════════════════════════════════════════════════════════════════
# PREBOOK / BOOK
# ═══════════════════════════════════════════════════════════════════

@router.post("/prebook")
async def prebook_hotel(request: PreBookRequest, services: ServiceContainer = Depends(get_services)):
    try:
        data = await services.tbo.prebook(request.BookingCode)
    except TBOApiError as e:
        return _tbo_error_response(e, "PreBook failed")

    status = data.get("Status") or {}
    if status.get("Code") != 200:
        logger.warning(f"PreBook rejected: {status}")
        return JSONResponse(
            status_code=400,
            content={
                "error": "PreBook failed",
                "message": status.get("Description") or "Room is no longer available at this price",
                "statusCode": status.get("Code"),
                "details": data,
            },
        )
    return data


@router.post("/book")
async def book_hotel(request: BookRequest, services: ServiceContainer = Depends(get_services)):
    try:
        return await services.tbo.book(request.model_dump())
    except TBOApiError as e:
        return _tbo_error_response(e, "Booking failed")
