"""
Field precedence for merged hotel results.

A merged hotel overlays three sources:
    card   - cached card info (imageUrl, amenities, rating, ...)
    static - the city hotel-list stub
    live   - the search result (rooms, pricing)

Precedence is declared once in HOTEL_FIELD_RULES; the first non-empty value
along a rule's source list wins.
"""
from pydantic import BaseModel, ConfigDict
from typing import Any, Dict, List, Mapping, Optional, Sequence, Tuple

CARD = "card"
STATIC = "static"
LIVE = "live"


class FieldRule(BaseModel):
    model_config = ConfigDict(frozen=True)

    target: str
    sources: Tuple[Tuple[str, str], ...]  # (source name, field on that source)


def rule(target: str, *sources: Tuple[str, str]) -> FieldRule:
    return FieldRule(target=target, sources=tuple(sources))


HOTEL_FIELD_RULES: Tuple[FieldRule, ...] = (
    rule("HotelPicture", (CARD, "imageUrl"), (STATIC, "HotelPicture"), (LIVE, "HotelPicture")),
    rule("HotelDescription", (CARD, "description"), (STATIC, "Description"), (LIVE, "HotelDescription")),
    rule("Amenities", (CARD, "amenities"), (STATIC, "HotelFacilities"), (LIVE, "HotelFacilities")),
    rule("Rating", (CARD, "rating"), (STATIC, "TripAdvisorRating"), (LIVE, "TripAdvisorRating")),
    rule("Reviews", (CARD, "reviews")),
    rule("RatingText", (CARD, "ratingText")),
    rule("HotelName", (STATIC, "HotelName"), (LIVE, "HotelName")),
    rule("StarRating", (STATIC, "HotelRating"), (STATIC, "StarRating"), (LIVE, "StarRating")),
    rule("HotelAddress", (STATIC, "Address"), (LIVE, "HotelAddress")),
    rule("Latitude", (STATIC, "Latitude"), (LIVE, "Latitude")),
    rule("Longitude", (STATIC, "Longitude"), (LIVE, "Longitude")),
)


def is_empty(value: Any) -> bool:
    return value is None or value == "" or value == [] or value == {}


def resolve_field(field_rule: FieldRule, sources: Mapping[str, Optional[Mapping[str, Any]]]) -> Any:
    for source_name, field in field_rule.sources:
        source = sources.get(source_name) or {}
        value = source.get(field)
        if not is_empty(value):
            return value
    return None


def merge_hotel(
    card: Optional[Mapping[str, Any]],
    static: Optional[Mapping[str, Any]],
    live: Mapping[str, Any],
    rules: Sequence[FieldRule] = HOTEL_FIELD_RULES,
) -> Dict[str, Any]:
    """
    Build the view model for one bookable hotel.

    Non-overlapping live fields (Rooms, Currency, ...) are kept verbatim;
    overlapping fields are resolved through ``rules``.
    """
    sources = {CARD: card, STATIC: static, LIVE: live}
    merged: Dict[str, Any] = {**(static or {}), **live}

    for field_rule in rules:
        value = resolve_field(field_rule, sources)
        if value is not None:
            merged[field_rule.target] = value

    # Live data owns availability/pricing no matter what the stub carries
    merged["Rooms"] = live.get("Rooms") or []
    return merged


def merge_hotels(
    live_results: List[Mapping[str, Any]],
    static_by_code: Mapping[str, Mapping[str, Any]],
    card_info_by_code: Mapping[str, Mapping[str, Any]],
) -> List[Dict[str, Any]]:
    merged = []
    for result in live_results:
        code = str(result.get("HotelCode"))
        merged.append(merge_hotel(card_info_by_code.get(code), static_by_code.get(code), result))
    return merged
