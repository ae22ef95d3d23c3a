#!/usr/bin/env python3
"""
Run a paged hotel search against a running proxy.

Usage:
    python scripts/search_hotels.py --city 130443 --check-in 2026-12-01 --check-out 2026-12-03
    python scripts/search_hotels.py --hotel 1279415 --check-in 2026-12-01 --check-out 2026-12-03 --adults 1
    python scripts/search_hotels.py --city 130443 ... --pages 3
"""

import argparse
import asyncio

from hotelproxy.services.hotels.proxy_inventory import ProxyInventory
from hotelproxy.services.hotels.search_session import (
    DateRange,
    HotelSearchSession,
    PartyComposition,
    SearchState,
    SearchTarget,
)


def print_hotels(hotels, offset: int = 0):
    for i, hotel in enumerate(hotels, start=offset + 1):
        rooms = hotel.get("Rooms") or []
        price = rooms[0].get("TotalFare") if rooms else None
        rating = hotel.get("Rating")
        print(f"  {i:4d}. {hotel.get('HotelName') or hotel.get('HotelCode')}"
              f"  | rating={rating if rating is not None else 'NA'}"
              f"  | rooms={len(rooms)}"
              f"  | from={price if price is not None else 'NA'}")


async def run(args) -> int:
    inventory = ProxyInventory(base_url=args.base_url)
    session = HotelSearchSession(inventory, chunk_size=args.chunk_size)

    target = SearchTarget(city_code=args.city, hotel_code=args.hotel)
    dates = DateRange(check_in=args.check_in, check_out=args.check_out)
    party = PartyComposition(
        rooms=args.rooms,
        adults=args.adults,
        children=len(args.child_age),
        children_ages=args.child_age,
        guest_nationality=args.nationality,
    )

    try:
        await session.start(target, dates, party)
        shown = 0
        pages = 1
        while True:
            if session.state == SearchState.ERRORED:
                print(f"\n✗ {session.error}")
                return 1

            print_hotels(session.hotels[shown:], offset=shown)
            shown = len(session.hotels)

            if not session.has_more or pages >= args.pages:
                break
            await session.load_more()
            pages += 1
    finally:
        await inventory.close()

    print(f"\n✓ {shown} bookable hotel(s) out of {len(session.all_hotel_codes)} code(s), "
          f"{session.pages_loaded} page(s) loaded, more available: {session.has_more}")
    return 0


def main():
    parser = argparse.ArgumentParser(description="Paged hotel search through the TBO Hotel Proxy")
    where = parser.add_mutually_exclusive_group(required=True)
    where.add_argument("--city", help="TBO city code")
    where.add_argument("--hotel", help="TBO hotel code")
    parser.add_argument("--check-in", required=True, help="YYYY-MM-DD")
    parser.add_argument("--check-out", required=True, help="YYYY-MM-DD")
    parser.add_argument("--rooms", type=int, default=1)
    parser.add_argument("--adults", type=int, default=2)
    parser.add_argument("--child-age", type=int, action="append", default=[], help="Repeat per child")
    parser.add_argument("--nationality", default="IN")
    parser.add_argument("--pages", type=int, default=1, help="Number of pages to load")
    parser.add_argument("--chunk-size", type=int, default=100)
    parser.add_argument("--base-url", default="http://localhost:5000")
    args = parser.parse_args()

    print("=" * 60)
    print("TBO Hotel Proxy - Hotel Search")
    print("=" * 60)
    raise SystemExit(asyncio.run(run(args)))


if __name__ == "__main__":
    main()
