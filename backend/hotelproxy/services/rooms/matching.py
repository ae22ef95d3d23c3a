"""
Room-name matching between catalog rooms (Hoteldetails) and live rooms (Search).

The two systems share no room id, so rooms are joined by name. Matching is a
heuristic; PrefixRoomMatcher is the default and can be replaced by any
RoomMatcher implementation.
"""
import re
from typing import Any, Dict, List, Literal, Optional, Protocol, Sequence

from pydantic import BaseModel

_NON_ALNUM = re.compile(r"[^a-z0-9]")

PREFIX_LENGTH = 20


def normalize_room_name(name: Any) -> str:
    """Lowercase and drop everything that is not a letter or digit."""
    if name is None:
        return ""
    return _NON_ALNUM.sub("", str(name).lower())


def catalog_room_name(room: Dict[str, Any]) -> str:
    return str(room.get("RoomName") or room.get("Name") or room.get("RoomTypeName") or "")


def live_room_name(room: Dict[str, Any]) -> str:
    """Live rooms carry Name as a list (one entry per booked room)."""
    name = room.get("Name")
    if isinstance(name, list):
        return str(name[0]) if name else ""
    return str(name or room.get("RoomTypeName") or "")


class RoomMatch(BaseModel):
    index: int
    strategy: Literal["exact", "prefix"]


class RoomIndex(Protocol):
    def find(self, catalog_name: str) -> Optional[RoomMatch]:
        ...


class RoomMatcher(Protocol):
    def index(self, live_names: Sequence[str]) -> RoomIndex:
        ...


class PrefixRoomIndex:

    def __init__(self, live_names: Sequence[str], prefix_length: int):
        self.prefix_length = prefix_length
        self.exact: Dict[str, int] = {}
        self.by_prefix: Dict[str, List[int]] = {}

        for i, name in enumerate(live_names):
            key = normalize_room_name(name)
            if not key:
                continue
            # First occurrence wins on duplicate names
            self.exact.setdefault(key, i)
            if len(key) >= prefix_length:
                self.by_prefix.setdefault(key[:prefix_length], []).append(i)

    def find(self, catalog_name: str) -> Optional[RoomMatch]:
        key = normalize_room_name(catalog_name)
        if not key:
            return None

        if key in self.exact:
            return RoomMatch(index=self.exact[key], strategy="exact")

        if len(key) >= self.prefix_length:
            candidates = self.by_prefix.get(key[:self.prefix_length])
            if candidates:
                return RoomMatch(index=candidates[0], strategy="prefix")

        return None


class PrefixRoomMatcher:
    """Exact normalized-name match, then shared-prefix fallback (first candidate wins)."""

    def __init__(self, prefix_length: int = PREFIX_LENGTH):
        if prefix_length < 1:
            raise ValueError("prefix_length must be >= 1")
        self.prefix_length = prefix_length

    def index(self, live_names: Sequence[str]) -> PrefixRoomIndex:
        return PrefixRoomIndex(live_names, self.prefix_length)
