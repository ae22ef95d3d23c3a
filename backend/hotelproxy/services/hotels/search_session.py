"""
Incremental hotel search.

A city search loads the city's full hotel-code list once, then prices it in
fixed-size chunks. Each chunk goes through:

    pricing search → keep bookable hotels → card info for those → merge

and the merged hotels are appended to the result list (replaced on the first
page). One page is in flight at a time. Every search carries a generation
number; responses belonging to an older generation are dropped.
"""
import logging
from enum import Enum
from typing import Any, Dict, List, Optional, Protocol, runtime_checkable

from pydantic import BaseModel, Field, model_validator

from hotelproxy.services.hotels.merge import merge_hotels

logger = logging.getLogger("HotelProxy-SearchSession")

CHUNK_SIZE = 100

NO_HOTELS_MESSAGE = "No hotels found for this city."
CITY_LIST_FAILED_MESSAGE = "Failed to load hotels for this city. Please try again."
SEARCH_FAILED_MESSAGE = "Failed to fetch hotels. Please try again."


# ═══════════════════════════════════════════════════════════════════
# MODELS
# ═══════════════════════════════════════════════════════════════════

class SearchState(str, Enum):
    IDLE = "idle"
    LIST_LOADED = "list_loaded"
    PAGE_LOADING = "page_loading"
    PAGE_LOADED = "page_loaded"
    EXHAUSTED = "exhausted"
    ERRORED = "errored"


class SearchTarget(BaseModel):
    """Either a whole city or a single hotel."""
    city_code: Optional[str] = None
    hotel_code: Optional[str] = None

    @model_validator(mode="after")
    def exactly_one(self):
        if bool(self.city_code) == bool(self.hotel_code):
            raise ValueError("Provide exactly one of city_code or hotel_code")
        return self


class DateRange(BaseModel):
    check_in: str   # YYYY-MM-DD
    check_out: str  # YYYY-MM-DD


class PartyComposition(BaseModel):
    rooms: int = Field(default=1, ge=1)
    adults: int = Field(default=2, ge=1)
    children: int = Field(default=0, ge=0)
    children_ages: List[int] = Field(default_factory=list)
    guest_nationality: str = "IN"


class SearchParams(BaseModel):
    target: SearchTarget
    dates: DateRange
    party: PartyComposition


@runtime_checkable
class HotelInventory(Protocol):
    """What the session needs from the proxy."""

    async def fetch_city_hotels(self, city_code: str) -> List[Dict[str, Any]]:
        ...

    async def search_hotels(self, payload: Dict[str, Any]) -> Dict[str, Any]:
        ...

    async def fetch_card_info(self, hotel_codes: List[str]) -> Dict[str, Dict[str, Any]]:
        ...


def build_search_payload(codes: List[str], params: SearchParams) -> Dict[str, Any]:
    party = params.party
    return {
        "checkIn": params.dates.check_in,
        "checkOut": params.dates.check_out,
        "hotelCodes": ",".join(codes),
        "guestNationality": party.guest_nationality,
        "noOfRooms": party.rooms,
        "paxRooms": [{
            "Adults": party.adults,
            "Children": party.children,
            "ChildrenAges": party.children_ages,
        }],
    }


# ═══════════════════════════════════════════════════════════════════
# SESSION
# ═══════════════════════════════════════════════════════════════════

class HotelSearchSession:

    def __init__(self, inventory: HotelInventory, chunk_size: int = CHUNK_SIZE):
        if chunk_size < 1:
            raise ValueError("chunk_size must be >= 1")
        self.inventory = inventory
        self.chunk_size = chunk_size

        self.state = SearchState.IDLE
        self.hotels: List[Dict[str, Any]] = []
        self.error: Optional[str] = None
        self.has_more = False

        self.all_hotel_codes: List[str] = []
        self._static_by_code: Dict[str, Dict[str, Any]] = {}
        self._params: Optional[SearchParams] = None
        self._next_page = 0
        self._loading = False
        self._generation = 0

    @property
    def generation(self) -> int:
        return self._generation

    @property
    def is_loading(self) -> bool:
        return self._loading

    @property
    def pages_loaded(self) -> int:
        return self._next_page

    def _is_stale(self, generation: int) -> bool:
        if generation != self._generation:
            logger.info(f"Discarding response from stale search generation {generation}")
            return True
        return False

    # ─────────── public API ───────────

    async def start(
        self,
        target: SearchTarget,
        dates: DateRange,
        party: Optional[PartyComposition] = None,
    ) -> None:
        """Begin a new search, superseding any search in progress."""
        self._generation += 1
        generation = self._generation

        self._params = SearchParams(target=target, dates=dates, party=party or PartyComposition())
        self.hotels = []
        self.error = None
        self.has_more = False
        self.all_hotel_codes = []
        self._static_by_code = {}
        self._next_page = 0
        self._loading = True
        self.state = SearchState.IDLE

        try:
            if target.hotel_code:
                self.all_hotel_codes = [str(target.hotel_code)]
            else:
                try:
                    hotels = await self.inventory.fetch_city_hotels(target.city_code)
                except Exception as e:
                    if self._is_stale(generation):
                        return
                    logger.error(f"❌ City hotel list failed for {target.city_code}: {e}")
                    self._fail(CITY_LIST_FAILED_MESSAGE)
                    return

                if self._is_stale(generation):
                    return

                self._static_by_code = {str(h.get("HotelCode")): h for h in hotels or [] if h.get("HotelCode") is not None}
                self.all_hotel_codes = list(self._static_by_code)

                if not self.all_hotel_codes:
                    self._fail(NO_HOTELS_MESSAGE)
                    return

            self.state = SearchState.LIST_LOADED
            self.has_more = target.city_code is not None and len(self.all_hotel_codes) > 0
            logger.info(
                f"Search gen={generation} | {len(self.all_hotel_codes)} hotel codes | "
                f"chunk={self.chunk_size}"
            )

            await self._load_page(generation)
        finally:
            if generation == self._generation:
                self._loading = False

    async def load_more(self) -> bool:
        """
        Load the next chunk. Returns False without calling the proxy when a
        page is already in flight, nothing is left, or no search is active.
        """
        if self._loading or self._params is None:
            return False
        if self.state == SearchState.ERRORED:
            # Retry the page that failed, if one was ever scheduled
            if not self.all_hotel_codes or self._next_page * self.chunk_size >= len(self.all_hotel_codes):
                return False
        elif not self.has_more:
            return False

        generation = self._generation
        self._loading = True
        try:
            await self._load_page(generation)
        finally:
            if generation == self._generation:
                self._loading = False
        return True

    # ─────────── internals ───────────

    def _fail(self, message: str) -> None:
        self.error = message
        self.state = SearchState.ERRORED

    async def _load_page(self, generation: int) -> None:
        page = self._next_page
        start = page * self.chunk_size
        end = start + self.chunk_size
        codes = self.all_hotel_codes[start:end]

        self.state = SearchState.PAGE_LOADING
        self.error = None
        payload = build_search_payload(codes, self._params)

        try:
            response = await self.inventory.search_hotels(payload)
        except Exception as e:
            if self._is_stale(generation):
                return
            logger.error(f"❌ Pricing search failed on page {page}: {e}")
            self._fail(SEARCH_FAILED_MESSAGE)
            return

        if self._is_stale(generation):
            return

        bookable = [
            result for result in (response or {}).get("HotelResult") or []
            if result.get("Rooms")
        ]
        bookable_codes = [str(result.get("HotelCode")) for result in bookable]

        card_info: Dict[str, Dict[str, Any]] = {}
        if bookable_codes:
            try:
                card_info = await self.inventory.fetch_card_info(bookable_codes)
            except Exception as e:
                logger.warning(f"⚠️ Card info unavailable for page {page}: {e}")
            if self._is_stale(generation):
                return

        merged = merge_hotels(bookable, self._static_by_code, card_info or {})
        self.hotels = merged if page == 0 else self.hotels + merged

        self._next_page = page + 1
        self.has_more = self._params.target.city_code is not None and end < len(self.all_hotel_codes)
        self.state = SearchState.PAGE_LOADED if self.has_more else SearchState.EXHAUSTED

        logger.info(
            f"Page {page} | priced={len(codes)} bookable={len(bookable)} "
            f"total={len(self.hotels)} has_more={self.has_more}"
        )

    def snapshot(self) -> Dict[str, Any]:
        return {
            "state": self.state.value,
            "generation": self._generation,
            "pagesLoaded": self._next_page,
            "totalHotelCodes": len(self.all_hotel_codes),
            "hasMore": self.has_more,
            "error": self.error,
            "hotels": self.hotels,
        }
