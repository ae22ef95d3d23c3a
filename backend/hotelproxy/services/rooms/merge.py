"""
Room availability merge.

Joins a hotel's static room catalog with the live search's available rooms:

    1. live rooms but no catalog → live rooms, all available
    2. nothing on either side    → []
    3. index live rooms by normalized name (exact + prefix)
    4. match each catalog room; matched live rooms are consumed
    5. available rooms first (stable)
    6. live rooms nobody matched go in front as extra entries
"""
import logging
from typing import Any, Dict, List, Optional, Sequence

from hotelproxy.models.hotel_models import MergedRoom
from hotelproxy.services.rooms.matching import (
    PrefixRoomMatcher,
    RoomMatcher,
    catalog_room_name,
    live_room_name,
)

logger = logging.getLogger("HotelProxy-RoomMerge")


def _live_only(room: Dict[str, Any], matched_by: Optional[str]) -> MergedRoom:
    return MergedRoom(name=live_room_name(room), available=True, pricing=room, matched_by=matched_by)


def merge_rooms(
    catalog_rooms: Optional[Sequence[Dict[str, Any]]],
    live_rooms: Optional[Sequence[Dict[str, Any]]],
    matcher: Optional[RoomMatcher] = None,
) -> List[MergedRoom]:
    catalog = list(catalog_rooms or [])
    live = list(live_rooms or [])

    if not catalog:
        return [_live_only(room, None) for room in live]

    index = (matcher or PrefixRoomMatcher()).index([live_room_name(room) for room in live])

    consumed = set()
    merged: List[MergedRoom] = []
    for room in catalog:
        name = catalog_room_name(room)
        match = index.find(name)
        if match is None:
            merged.append(MergedRoom(name=name, available=False, pricing=None, catalog=room))
            continue

        consumed.add(match.index)
        merged.append(MergedRoom(
            name=name,
            available=True,
            pricing=live[match.index],
            catalog=room,
            matched_by=match.strategy,
        ))

    merged.sort(key=lambda r: not r.available)

    extras = [_live_only(room, "unmatched") for i, room in enumerate(live) if i not in consumed]
    if extras:
        logger.info(f"{len(extras)} live room(s) had no catalog entry")

    return extras + merged
