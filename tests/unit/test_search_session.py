import asyncio

import httpx
import pytest

from hotelproxy.services.hotels.proxy_inventory import ProxyInventory
from hotelproxy.services.hotels.search_session import (
    CITY_LIST_FAILED_MESSAGE,
    NO_HOTELS_MESSAGE,
    SEARCH_FAILED_MESSAGE,
    DateRange,
    HotelSearchSession,
    PartyComposition,
    SearchState,
    SearchTarget,
    build_search_payload,
    SearchParams,
)

DATES = DateRange(check_in="2026-12-01", check_out="2026-12-03")


class FakeInventory:
    """Every hotel is bookable unless listed in ``sold_out``."""

    def __init__(self, city_size=0, sold_out=()):
        self.city_hotels = [{"HotelCode": str(i), "HotelName": f"Hotel {i}"} for i in range(city_size)]
        self.sold_out = set(sold_out)
        self.search_calls = []
        self.card_info_calls = []
        self.fail_searches = 0

    async def fetch_city_hotels(self, city_code):
        return self.city_hotels

    async def search_hotels(self, payload):
        codes = payload["hotelCodes"].split(",")
        self.search_calls.append(codes)
        if self.fail_searches:
            self.fail_searches -= 1
            raise httpx.HTTPError("search failed")
        return {
            "Status": {"Code": 200},
            "HotelResult": [
                {"HotelCode": code, "Rooms": [] if code in self.sold_out else [{"Name": ["Standard"], "TotalFare": 100}]}
                for code in codes
            ],
        }

    async def fetch_card_info(self, hotel_codes):
        self.card_info_calls.append(list(hotel_codes))
        return {code: {"rating": 4.0, "imageUrl": f"{code}.jpg"} for code in hotel_codes}


def city(code="130443"):
    return SearchTarget(city_code=code)


# ═══════════════════════════════════════════════════════════════════
# PAGINATION
# ═══════════════════════════════════════════════════════════════════

@pytest.mark.asyncio
async def test_pagination_until_exhausted():
    inventory = FakeInventory(city_size=250)
    session = HotelSearchSession(inventory)

    await session.start(city(), DATES)
    assert len(session.hotels) == 100
    assert session.has_more is True
    assert session.state == SearchState.PAGE_LOADED

    assert await session.load_more() is True
    assert len(session.hotels) == 200
    assert session.has_more is True

    assert await session.load_more() is True
    assert len(session.hotels) == 250
    assert session.has_more is False
    assert session.state == SearchState.EXHAUSTED

    assert await session.load_more() is False
    assert [len(c) for c in inventory.search_calls] == [100, 100, 50]
    assert inventory.search_calls[1][0] == "100"


@pytest.mark.asyncio
async def test_only_bookable_hotels_are_kept_and_enriched():
    inventory = FakeInventory(city_size=5, sold_out={"1", "3"})
    session = HotelSearchSession(inventory)

    await session.start(city(), DATES)

    assert [h["HotelCode"] for h in session.hotels] == ["0", "2", "4"]
    assert inventory.card_info_calls == [["0", "2", "4"]]
    assert session.hotels[0]["HotelName"] == "Hotel 0"
    assert session.hotels[0]["Rating"] == 4.0
    assert session.hotels[0]["HotelPicture"] == "0.jpg"


@pytest.mark.asyncio
async def test_page_with_nothing_bookable_skips_card_info():
    inventory = FakeInventory(city_size=3, sold_out={"0", "1", "2"})
    session = HotelSearchSession(inventory)

    await session.start(city(), DATES)

    assert session.hotels == []
    assert inventory.card_info_calls == []
    assert session.state == SearchState.EXHAUSTED
    assert session.error is None


@pytest.mark.asyncio
async def test_single_hotel_target():
    inventory = FakeInventory()
    session = HotelSearchSession(inventory)

    await session.start(SearchTarget(hotel_code="1279415"), DATES)

    assert inventory.search_calls == [["1279415"]]
    assert session.has_more is False
    assert await session.load_more() is False


def test_target_requires_exactly_one_code():
    with pytest.raises(ValueError):
        SearchTarget()
    with pytest.raises(ValueError):
        SearchTarget(city_code="1", hotel_code="2")


def test_search_payload_shape():
    params = SearchParams(
        target=city(),
        dates=DATES,
        party=PartyComposition(rooms=1, adults=2, children=1, children_ages=[5], guest_nationality="AE"),
    )

    payload = build_search_payload(["1", "2"], params)

    assert payload["hotelCodes"] == "1,2"
    assert payload["checkIn"] == "2026-12-01"
    assert payload["guestNationality"] == "AE"
    assert payload["paxRooms"] == [{"Adults": 2, "Children": 1, "ChildrenAges": [5]}]


# ═══════════════════════════════════════════════════════════════════
# FAILURES
# ═══════════════════════════════════════════════════════════════════

@pytest.mark.asyncio
async def test_empty_city_is_an_error():
    session = HotelSearchSession(FakeInventory(city_size=0))

    await session.start(city(), DATES)

    assert session.state == SearchState.ERRORED
    assert session.error == NO_HOTELS_MESSAGE
    assert await session.load_more() is False


@pytest.mark.asyncio
async def test_city_list_failure(mocker):
    inventory = FakeInventory()
    mocker.patch.object(inventory, "fetch_city_hotels", side_effect=httpx.HTTPError("boom"))
    session = HotelSearchSession(inventory)

    await session.start(city(), DATES)

    assert session.state == SearchState.ERRORED
    assert session.error == CITY_LIST_FAILED_MESSAGE
    assert inventory.search_calls == []


@pytest.mark.asyncio
async def test_search_failure_keeps_page_and_load_more_retries_it():
    inventory = FakeInventory(city_size=150)
    session = HotelSearchSession(inventory)
    await session.start(city(), DATES)

    inventory.fail_searches = 1
    assert await session.load_more() is True
    assert session.state == SearchState.ERRORED
    assert session.error == SEARCH_FAILED_MESSAGE
    assert session.pages_loaded == 1
    assert len(session.hotels) == 100

    assert await session.load_more() is True
    assert session.state == SearchState.EXHAUSTED
    assert len(session.hotels) == 150
    assert inventory.search_calls[1] == inventory.search_calls[2]


@pytest.mark.asyncio
async def test_card_info_failure_still_shows_hotels(mocker):
    inventory = FakeInventory(city_size=2)
    mocker.patch.object(inventory, "fetch_card_info", side_effect=httpx.HTTPError("card info down"))
    session = HotelSearchSession(inventory)

    await session.start(city(), DATES)

    assert len(session.hotels) == 2
    assert "Rating" not in session.hotels[0]


# ═══════════════════════════════════════════════════════════════════
# CONCURRENCY
# ═══════════════════════════════════════════════════════════════════

class GatedInventory(FakeInventory):
    """Search blocks until the test releases it."""

    def __init__(self, city_size):
        super().__init__(city_size=city_size)
        self.gate = asyncio.Event()
        self.gate.set()

    async def search_hotels(self, payload):
        await self.gate.wait()
        return await super().search_hotels(payload)


@pytest.mark.asyncio
async def test_concurrent_load_more_is_rejected():
    inventory = GatedInventory(city_size=300)
    session = HotelSearchSession(inventory)
    await session.start(city(), DATES)

    inventory.gate.clear()
    first = asyncio.create_task(session.load_more())
    await asyncio.sleep(0)
    assert session.is_loading is True

    assert await session.load_more() is False

    inventory.gate.set()
    assert await first is True
    assert len(inventory.search_calls) == 2
    assert len(session.hotels) == 200


@pytest.mark.asyncio
async def test_stale_generation_is_discarded():
    inventory = GatedInventory(city_size=50)
    session = HotelSearchSession(inventory)

    inventory.gate.clear()
    old = asyncio.create_task(session.start(city("OLD"), DATES))
    await asyncio.sleep(0)
    await asyncio.sleep(0)

    inventory.city_hotels = [{"HotelCode": "NEW-1", "HotelName": "New"}]
    inventory.gate.set()
    await session.start(city("NEW"), DATES)
    await old

    assert session.generation == 2
    assert [h["HotelCode"] for h in session.hotels] == ["NEW-1"]
    assert session.is_loading is False


# ═══════════════════════════════════════════════════════════════════
# PROXY INVENTORY
# ═══════════════════════════════════════════════════════════════════

@pytest.mark.asyncio
async def test_proxy_inventory_against_mock_proxy():
    seen = []

    def handler(request: httpx.Request):
        seen.append(request.url.path)
        if request.url.path == "/api/hotels/hotels":
            return httpx.Response(200, json={"Hotels": [{"HotelCode": "1"}], "source": "cache"})
        if request.url.path == "/api/hotels/search":
            return httpx.Response(200, json={"HotelResult": [{"HotelCode": "1", "Rooms": [{"Name": ["A"]}]}]})
        return httpx.Response(500, json={"error": "card info down"})

    client = httpx.AsyncClient(transport=httpx.MockTransport(handler), base_url="http://proxy.test")
    inventory = ProxyInventory(base_url="http://proxy.test", http_client=client)
    session = HotelSearchSession(inventory)

    await session.start(city(), DATES)
    await inventory.close()

    assert seen == ["/api/hotels/hotels", "/api/hotels/search", "/api/hotels/hotel-card-info"]
    assert [h["HotelCode"] for h in session.hotels] == ["1"]
