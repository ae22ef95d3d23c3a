from typing import Optional, Sequence

from hotelproxy.services.rooms.matching import RoomMatch, normalize_room_name
from hotelproxy.services.rooms.merge import merge_rooms


def live(name, fare=100.0):
    return {"Name": [name], "BookingCode": f"BC-{name}", "TotalFare": fare}


def test_normalize_room_name():
    assert normalize_room_name("Deluxe Room, King-Bed (Sea View)") == "deluxeroomkingbedseaview"
    assert normalize_room_name(None) == ""


def test_exact_match_after_normalization():
    catalog = [{"RoomName": "Deluxe Room - King"}]
    rooms = merge_rooms(catalog, [live("deluxe room king")])

    assert len(rooms) == 1
    assert rooms[0].available is True
    assert rooms[0].matched_by == "exact"
    assert rooms[0].pricing["BookingCode"] == "BC-deluxe room king"
    assert rooms[0].catalog == {"RoomName": "Deluxe Room - King"}


def test_prefix_match_on_first_twenty_characters():
    catalog = [{"RoomName": "Superior Double Room Deluxe City View"}]
    rooms = merge_rooms(catalog, [live("Superior Double Room Deluxe, Non-Smoking")])

    assert rooms[0].available is True
    assert rooms[0].matched_by == "prefix"


def test_short_names_do_not_prefix_match():
    rooms = merge_rooms([{"RoomName": "Deluxe Twin"}], [live("Deluxe Twin Garden")])

    unmatched_live, catalog_room = rooms
    assert unmatched_live.matched_by == "unmatched"
    assert catalog_room.available is False


def test_unmatched_catalog_rooms_are_unavailable_and_sorted_last():
    catalog = [{"RoomName": "Presidential Suite"}, {"RoomName": "Standard Room"}]
    rooms = merge_rooms(catalog, [live("Standard Room")])

    assert [r.name for r in rooms] == ["Standard Room", "Presidential Suite"]
    assert rooms[1].available is False
    assert rooms[1].pricing is None
    assert rooms[1].matched_by is None


def test_unmatched_live_rooms_go_first():
    catalog = [{"RoomName": "Standard Room"}]
    rooms = merge_rooms(catalog, [live("Standard Room"), live("Family Suite With Balcony")])

    assert rooms[0].name == "Family Suite With Balcony"
    assert rooms[0].available is True
    assert rooms[0].matched_by == "unmatched"
    assert rooms[1].matched_by == "exact"


def test_no_catalog_returns_live_rooms():
    rooms = merge_rooms([], [live("A"), live("B")])

    assert [r.name for r in rooms] == ["A", "B"]
    assert all(r.available for r in rooms)
    assert all(r.matched_by is None for r in rooms)


def test_nothing_on_either_side():
    assert merge_rooms(None, None) == []


def test_duplicate_live_names_first_wins():
    rooms = merge_rooms([{"RoomName": "Standard"}], [live("Standard", 100.0), live("Standard", 200.0)])

    matched = [r for r in rooms if r.matched_by == "exact"]
    assert matched[0].pricing["TotalFare"] == 100.0
    extras = [r for r in rooms if r.matched_by == "unmatched"]
    assert extras[0].pricing["TotalFare"] == 200.0


def test_custom_matcher_is_used():

    class FirstLiveRoomMatcher:
        def index(self, live_names: Sequence[str]):
            class Index:
                def find(self, catalog_name: str) -> Optional[RoomMatch]:
                    return RoomMatch(index=0, strategy="exact") if live_names else None
            return Index()

    rooms = merge_rooms([{"RoomName": "Anything"}], [live("Completely Different")], matcher=FirstLiveRoomMatcher())

    assert len(rooms) == 1
    assert rooms[0].available is True
    assert rooms[0].name == "Anything"
