"""
Hotel card info - cache-fill service.

Given hotel codes, returns image/amenities/rating summaries. Cached entries
are served as-is; missing ones are fetched from TBO Hoteldetails in small
batches, normalized, returned, and written back to the cache in the
background.
"""
import logging
from typing import Any, Dict, Iterable, List, Optional, Union

from hotelproxy.core.background import BackgroundWriter
from hotelproxy.core.metrics import record_card_info_batch
from hotelproxy.core.rate_limit import NoopRateLimiter
from hotelproxy.models.hotel_models import CardInfoResult, HotelCardInfo
from hotelproxy.services.static_data import StaticDataCache, utc_now_iso

logger = logging.getLogger("HotelProxy-CardInfo")

MAX_AMENITIES = 10

STAR_NAMES = {
    "onestar": 1,
    "twostar": 2,
    "threestar": 3,
    "fourstar": 4,
    "fivestar": 5,
}


# ═══════════════════════════════════════════════════════════════════
# NORMALIZATION
# ═══════════════════════════════════════════════════════════════════

def parse_rating(value: Any) -> Optional[float]:
    """Numeric rating from a number, numeric string or TBO star name ("FourStar")."""
    if value is None or isinstance(value, bool):
        return None
    if isinstance(value, (int, float)):
        return float(value) if value > 0 else None

    text = str(value).strip()
    if not text:
        return None
    if text.lower() in STAR_NAMES:
        return float(STAR_NAMES[text.lower()])
    try:
        rating = float(text)
    except ValueError:
        return None
    return rating if rating > 0 else None


def rating_text(rating: Optional[float]) -> Optional[str]:
    if rating is None:
        return None
    if rating >= 4.5:
        return "Excellent"
    if rating >= 4:
        return "Very Good"
    if rating >= 3.5:
        return "Good"
    return "Fair"


def _as_list(value: Any) -> List[str]:
    if isinstance(value, list):
        return [str(v).strip() for v in value if v and str(v).strip()]
    if isinstance(value, str) and value.strip():
        return [part.strip() for part in value.split(",") if part.strip()]
    return []


def _as_int(value: Any) -> int:
    try:
        return int(value)
    except (TypeError, ValueError):
        return 0


def extract_card_info(hotel: Dict[str, Any]) -> HotelCardInfo:
    """Build a card-info record from one TBO Hoteldetails entry."""
    images = _as_list(hotel.get("Images"))
    image_url = images[0] if images else (hotel.get("HotelPicture") or None)

    rating = parse_rating(hotel.get("TripAdvisorRating"))
    if rating is None:
        rating = parse_rating(hotel.get("HotelRating"))

    reviews = _as_int(hotel.get("TripAdvisorReviewCount") or hotel.get("ReviewCount"))

    return HotelCardInfo(
        image_url=image_url,
        amenities=_as_list(hotel.get("HotelFacilities"))[:MAX_AMENITIES],
        rating=rating,
        reviews=reviews,
        rating_text=rating_text(rating),
        description=hotel.get("Description") or hotel.get("HotelDescription"),
        last_updated=utc_now_iso(),
    )


def chunked(items: List[str], size: int) -> Iterable[List[str]]:
    for start in range(0, len(items), size):
        yield items[start:start + size]


# ═══════════════════════════════════════════════════════════════════
# SERVICE
# ═══════════════════════════════════════════════════════════════════

class CardInfoService:

    def __init__(
        self,
        tbo,
        cache: StaticDataCache,
        writer: BackgroundWriter,
        rate_limiter=None,
        batch_size: int = 5,
    ):
        if batch_size < 1:
            raise ValueError("batch_size must be >= 1")
        self.tbo = tbo
        self.cache = cache
        self.writer = writer
        self.rate_limiter = rate_limiter or NoopRateLimiter()
        self.batch_size = batch_size

    async def get_card_info(self, hotel_codes: List[Union[str, int]]) -> CardInfoResult:
        codes = list(dict.fromkeys(str(c).strip() for c in hotel_codes if str(c).strip()))
        if not codes:
            return CardInfoResult()

        cached = await self.cache.get_card_info_many(codes)
        missing = [code for code in codes if code not in cached]

        logger.info(f"Card info | requested={len(codes)} cached={len(cached)} missing={len(missing)}")

        if not missing:
            return CardInfoResult(hotel_info=cached, source="cache", cached_count=len(cached))

        fetched: Dict[str, Dict[str, Any]] = {}
        for batch in chunked(missing, self.batch_size):
            async with self.rate_limiter:
                fetched.update(await self._fetch_batch(batch))

        source = "api" if not cached else "mixed"
        if not fetched and cached:
            source = "cache"

        return CardInfoResult(
            hotel_info={**cached, **fetched},
            source=source,
            cached_count=len(cached),
            fetched_count=len(fetched),
        )

    async def _fetch_batch(self, batch: List[str]) -> Dict[str, Dict[str, Any]]:
        """One Hoteldetails call. A failure only loses this batch."""
        try:
            response = await self.tbo.hotel_details(batch, is_room_detail_required=False)
        except Exception as e:
            logger.error(f"❌ Card info batch failed ({','.join(batch)}): {e}")
            record_card_info_batch("error")
            return {}

        record_card_info_batch("success")

        wanted = set(batch)
        results: Dict[str, Dict[str, Any]] = {}
        for hotel in response.get("HotelDetails") or []:
            code = str(hotel.get("HotelCode", "")).strip()
            if code not in wanted:
                continue

            try:
                info = extract_card_info(hotel).model_dump(by_alias=True)
            except Exception as e:
                logger.warning(f"⚠️ Skipping malformed card info for {code}: {e}")
                continue

            results[code] = info
            self.writer.spawn(self.cache.save_card_info(code, info), label=f"card_info:{code}")

        return results
