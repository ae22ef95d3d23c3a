"""
HTTP inventory backed by the proxy's own /api/hotels endpoints.

This is what a storefront (or the CLI in scripts/) uses to drive a
HotelSearchSession against a running proxy.
"""
import logging
from typing import Any, Dict, List, Optional

import httpx

logger = logging.getLogger("HotelProxy-ProxyInventory")


class ProxyInventory:

    def __init__(self, base_url: str = "http://localhost:5000", http_client: Optional[httpx.AsyncClient] = None):
        self.base_url = base_url.rstrip("/")
        self.http = http_client or httpx.AsyncClient(base_url=self.base_url, timeout=60.0)

    async def close(self):
        await self.http.aclose()

    async def fetch_city_hotels(self, city_code: str) -> List[Dict[str, Any]]:
        response = await self.http.post("/api/hotels/hotels", json={"cityCode": city_code})
        response.raise_for_status()
        data = response.json()
        logger.info(f"City {city_code}: {len(data.get('Hotels') or [])} hotels (source={data.get('source')})")
        return data.get("Hotels") or []

    async def search_hotels(self, payload: Dict[str, Any]) -> Dict[str, Any]:
        response = await self.http.post("/api/hotels/search", json=payload)
        response.raise_for_status()
        return response.json()

    async def fetch_card_info(self, hotel_codes: List[str]) -> Dict[str, Dict[str, Any]]:
        try:
            response = await self.http.post("/api/hotels/hotel-card-info", json={"hotelCodes": hotel_codes})
            response.raise_for_status()
        except httpx.HTTPError as e:
            # Card info only decorates results; an empty map keeps the page usable
            logger.error(f"Error fetching hotel card info: {e}")
            return {}
        return response.json().get("hotelInfo") or {}
