"""
TBO Hotel API Client
TBO Hotel Proxy - Inventory/Pricing Integration

Static data (CountryList, CityList, TBOHotelCodeList, Hoteldetails) and
live calls (Search, PreBook, Book) use different basic-auth credentials.
"""

import json
import logging
from typing import Any, Dict, List, Optional, Union

import httpx

from hotelproxy.core.config import Settings, TBOCredentials
from hotelproxy.core.errors import TBOApiError
from hotelproxy.core.metrics import track_external_api

logger = logging.getLogger("HotelProxy-TBO")

HotelCodes = Union[str, int, List[Union[str, int]]]

DEFAULT_PAX_ROOMS = [{"Adults": 2, "Children": 0, "ChildrenAges": []}]


def join_hotel_codes(hotel_codes: HotelCodes) -> str:
    """TBO expects hotel codes as one comma-separated string."""
    if isinstance(hotel_codes, (list, tuple)):
        return ",".join(str(code).strip() for code in hotel_codes if str(code).strip())
    return str(hotel_codes).strip()


def build_search_request(
    check_in: str,
    check_out: str,
    hotel_codes: HotelCodes,
    guest_nationality: str = "IN",
    no_of_rooms: int = 1,
    pax_rooms: Optional[List[Dict[str, Any]]] = None,
    is_detailed_response: bool = True,
) -> Dict[str, Any]:
    """Search request body in the exact shape TBO documents."""
    return {
        "CheckIn": check_in,
        "CheckOut": check_out,
        "HotelCodes": join_hotel_codes(hotel_codes),
        "GuestNationality": guest_nationality,
        "PaxRooms": [
            {
                "Adults": room.get("Adults"),
                "Children": room.get("Children") or 0,
                "ChildrenAges": room.get("ChildrenAges") or [],
            }
            for room in (pax_rooms or DEFAULT_PAX_ROOMS)
        ],
        "ResponseTime": 23,
        "IsDetailedResponse": is_detailed_response,
        "Filters": {
            "Refundable": False,
            "NoOfRooms": no_of_rooms,
            "MealType": "All",
        },
    }


class TBOClient:
    """Async client for the TBO hotel API over one shared httpx.AsyncClient."""

    def __init__(self, settings: Settings, http_client: Optional[httpx.AsyncClient] = None):
        self.settings = settings
        self.http = http_client or httpx.AsyncClient(
            timeout=settings.http_timeout,
            headers={"Content-Type": "application/json"},
        )

    async def close(self):
        await self.http.aclose()

    # ═══════════════════════════════════════════════════════════════════
    # LOW-LEVEL
    # ═══════════════════════════════════════════════════════════════════

    async def _request(
        self,
        method: str,
        url: str,
        credentials: TBOCredentials,
        body: Optional[Dict[str, Any]] = None,
    ) -> Dict[str, Any]:
        with track_external_api("tbo"):
            try:
                response = await self.http.request(
                    method,
                    url,
                    json=body,
                    auth=credentials.as_auth(),
                )
            except httpx.HTTPError as e:
                logger.error(f"TBO {method} {url} transport error: {e}")
                raise TBOApiError(502, f"TBO API unreachable: {e}")

            if response.status_code >= 400:
                details = _safe_json(response)
                message = _status_description(details) or f"TBO API error {response.status_code}"
                logger.error(
                    f"TBO {method} {url} failed: {response.status_code} | "
                    f"request={json.dumps(body)[:500] if body else None} | "
                    f"response={str(details)[:500]}"
                )
                raise TBOApiError(response.status_code, message, details)

            data = _safe_json(response)
            if not isinstance(data, dict):
                raise TBOApiError(
                    502,
                    f"TBO API contract violation: expected dict, got {type(data).__name__}",
                    data,
                )
            return data

    def _static(self, method: str, path: str, body: Optional[Dict[str, Any]] = None):
        return self._request(method, f"{self.settings.tbo_base_url}/{path}", self.settings.tbo_static_auth, body)

    # ═══════════════════════════════════════════════════════════════════
    # STATIC DATA
    # ═══════════════════════════════════════════════════════════════════

    async def country_list(self) -> Dict[str, Any]:
        logger.info("Fetching country list")
        return await self._static("GET", "CountryList")

    async def city_list(self, country_code: str) -> Dict[str, Any]:
        logger.info(f"Fetching cities for country: {country_code}")
        data = await self._static("POST", "CityList", {"CountryCode": country_code})
        logger.info(f"Cities fetched: {len(data.get('CityList') or [])} cities")
        return data

    async def hotel_code_list(self, city_code: str) -> Dict[str, Any]:
        logger.info(f"Fetching hotels for city code: {city_code}")
        data = await self._static("POST", "TBOHotelCodeList", {"CityCode": city_code})
        logger.info(f"Hotels fetched: {len(data.get('Hotels') or [])} hotels")
        return data

    async def hotel_details(
        self,
        hotel_codes: HotelCodes,
        language: str = "EN",
        is_room_detail_required: bool = True,
    ) -> Dict[str, Any]:
        codes = join_hotel_codes(hotel_codes)
        logger.info(f"Fetching details for hotel code(s): {codes}")
        return await self._static("POST", "Hoteldetails", {
            "Hotelcodes": codes,
            "Language": language,
            "IsRoomDetailRequired": is_room_detail_required,
        })

    # ═══════════════════════════════════════════════════════════════════
    # LIVE (SEARCH / PREBOOK / BOOK)
    # ═══════════════════════════════════════════════════════════════════

    async def search(self, request: Dict[str, Any]) -> Dict[str, Any]:
        """Availability and pricing. Never cached."""
        logger.info(
            f"🔎 Hotel search | codes={str(request.get('HotelCodes'))[:80]} | "
            f"{request.get('CheckIn')} → {request.get('CheckOut')}"
        )
        data = await self._request("POST", self.settings.tbo_search_url, self.settings.tbo_api_auth, request)
        logger.info(
            f"Search status={(data.get('Status') or {}).get('Code')} | "
            f"hotels={len(data.get('HotelResult') or [])}"
        )
        return data

    async def prebook(self, booking_code: str) -> Dict[str, Any]:
        logger.info(f"PreBook | {booking_code}")
        return await self._request(
            "POST",
            self.settings.tbo_prebook_url,
            self.settings.tbo_api_auth,
            {"BookingCode": booking_code, "PaymentMode": "Limit"},
        )

    async def book(self, request: Dict[str, Any]) -> Dict[str, Any]:
        logger.info(f"📝 Book | {request.get('BookingCode')}")
        return await self._request("POST", self.settings.tbo_book_url, self.settings.tbo_api_auth, request)


def _safe_json(response: httpx.Response) -> Any:
    try:
        return response.json()
    except ValueError:
        return {"raw": response.text[:500]}


def _status_description(data: Any) -> Optional[str]:
    if isinstance(data, dict):
        status = data.get("Status")
        if isinstance(status, dict):
            return status.get("Description")
    return None
