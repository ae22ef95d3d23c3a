"""
Static data cache - typed access to cached TBO static data.

Layout (all under the ``tbo_static_data:`` namespace):
    countries
    cities:{countryCode}
    hotels:{cityCode}
    hotelDetails:{hotelCode}
    hotelCardInfo:{hotelCode}

Every entry is stored as {"lastUpdated": <iso8601>, "data": <payload>}.
Reads are soft (a store error is logged and treated as a miss); explicit
saves propagate store errors to the caller.
"""

import logging
from datetime import datetime, timezone
from typing import Any, Dict, Iterable, List, Optional

from hotelproxy.core.cache import CacheStore
from hotelproxy.core.metrics import record_cache_lookup

logger = logging.getLogger("HotelProxy-StaticData")

STATIC_DATA_PATH = "tbo_static_data"


def utc_now_iso() -> str:
    return datetime.now(timezone.utc).isoformat()


def _key(*parts: Any) -> str:
    return ":".join([STATIC_DATA_PATH, *(str(p) for p in parts)])


class StaticDataCache:

    def __init__(self, store: CacheStore):
        self.store = store

    # ─────────── generic helpers ───────────

    async def _save(self, key: str, data: Any) -> None:
        await self.store.set(key, {"lastUpdated": utc_now_iso(), "data": data})

    async def _load(self, key: str, entity: str) -> Optional[Any]:
        try:
            entry = await self.store.get(key)
        except Exception as e:
            logger.error(f"Cache read failed for {key}: {e}")
            record_cache_lookup(entity, hit=False)
            return None

        if isinstance(entry, dict) and entry.get("data") is not None:
            record_cache_lookup(entity, hit=True)
            return entry["data"]

        record_cache_lookup(entity, hit=False)
        return None

    # ─────────── countries / cities / hotels ───────────

    async def save_countries(self, data: List[dict]) -> None:
        await self._save(_key("countries"), data)
        logger.info(f"Countries saved to cache ({len(data)})")

    async def get_countries(self) -> Optional[List[dict]]:
        return await self._load(_key("countries"), "countries")

    async def save_cities(self, country_code: str, data: List[dict]) -> None:
        await self._save(_key("cities", country_code), data)
        logger.info(f"Cities for {country_code} saved to cache ({len(data)})")

    async def get_cities(self, country_code: str) -> Optional[List[dict]]:
        return await self._load(_key("cities", country_code), "cities")

    async def save_hotels(self, city_code: str, data: List[dict]) -> None:
        await self._save(_key("hotels", city_code), data)
        logger.info(f"Hotels for city {city_code} saved to cache ({len(data)})")

    async def get_hotels(self, city_code: str) -> Optional[List[dict]]:
        return await self._load(_key("hotels", city_code), "hotels")

    # ─────────── hotel details ───────────

    async def save_hotel_details(self, hotel_code: str, data: dict) -> None:
        await self._save(_key("hotelDetails", hotel_code), data)
        logger.info(f"Hotel details for {hotel_code} saved to cache")

    async def get_hotel_details(self, hotel_code: str) -> Optional[dict]:
        return await self._load(_key("hotelDetails", hotel_code), "hotel_details")

    # ─────────── hotel card info ───────────

    async def save_card_info(self, hotel_code: str, info: dict) -> None:
        await self._save(_key("hotelCardInfo", hotel_code), info)

    async def get_card_info_many(self, hotel_codes: Iterable[str]) -> Dict[str, dict]:
        """Batch read of card info. Codes without an entry are left out."""
        codes = [str(c) for c in hotel_codes]
        if not codes:
            return {}

        keys = [_key("hotelCardInfo", code) for code in codes]
        try:
            entries = await self.store.get_many(keys)
        except Exception as e:
            logger.error(f"Card info batch read failed: {e}")
            entries = {}

        found: Dict[str, dict] = {}
        for code, key in zip(codes, keys):
            entry = entries.get(key)
            if isinstance(entry, dict) and entry.get("data") is not None:
                found[code] = entry["data"]

        record_cache_lookup("card_info", hit=True, count=len(found))
        record_cache_lookup("card_info", hit=False, count=len(codes) - len(found))
        return found

    # ─────────── lookups over cached city lists ───────────

    async def _iter_city_hotel_lists(self):
        prefix = _key("hotels", "")
        try:
            keys = await self.store.keys(prefix)
        except Exception as e:
            logger.error(f"Could not enumerate cached hotel lists: {e}")
            return

        for key in sorted(keys):
            entry = await self.store.get(key)
            if isinstance(entry, dict) and isinstance(entry.get("data"), list):
                yield key[len(prefix):], entry["data"]

    async def find_hotel_by_code(self, hotel_code: Any) -> Optional[dict]:
        """Find a hotel stub in any cached city hotel list (codes compared as strings)."""
        wanted = str(hotel_code)
        try:
            async for city_code, hotels in self._iter_city_hotel_lists():
                for hotel in hotels:
                    if str(hotel.get("HotelCode")) == wanted:
                        logger.info(f"Found hotel {wanted} in cached hotels for city {city_code}")
                        return hotel
        except Exception as e:
            logger.error(f"Error finding hotel by code: {e}")
            return None

        logger.info(f"Hotel {wanted} not found in any cached city hotel lists")
        return None

    async def search_hotel_names(self, query: str, limit: int = 10) -> List[dict]:
        """Case-insensitive substring match on cached hotel names."""
        needle = (query or "").strip().lower()
        if len(needle) < 2:
            return []

        suggestions: List[dict] = []
        try:
            async for city_code, hotels in self._iter_city_hotel_lists():
                for hotel in hotels:
                    name = hotel.get("HotelName") or ""
                    if needle in name.lower():
                        suggestions.append({
                            "hotelCode": hotel.get("HotelCode"),
                            "hotelName": name,
                            "cityCode": city_code,
                            "cityName": hotel.get("CityName"),
                        })
                        if len(suggestions) >= limit:
                            return suggestions
        except Exception as e:
            logger.error(f"Hotel name search failed: {e}")
        return suggestions

    # ─────────── admin ───────────

    async def get_cache_metadata(self) -> dict:
        countries_entry = await self.store.get(_key("countries"))
        return {
            "countries": (countries_entry or {}).get("lastUpdated"),
            "citiesCount": len(await self.store.keys(_key("cities", ""))),
            "hotelsCount": len(await self.store.keys(_key("hotels", ""))),
            "hotelDetailsCount": len(await self.store.keys(_key("hotelDetails", ""))),
            "hotelCardInfoCount": len(await self.store.keys(_key("hotelCardInfo", ""))),
        }

    async def clear_all_cache(self) -> int:
        removed = await self.store.delete_prefix(f"{STATIC_DATA_PATH}:")
        logger.warning(f"🧹 All static data cache cleared ({removed} keys)")
        return removed
