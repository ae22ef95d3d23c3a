"""
TBO Hotel Proxy - Configuration
Environment-driven settings (.env is loaded via python-dotenv)
"""

import os
from typing import Optional

from dotenv import load_dotenv
from pydantic import BaseModel

load_dotenv()


class TBOCredentials(BaseModel):
    username: Optional[str] = None
    password: Optional[str] = None

    def as_auth(self) -> Optional[tuple]:
        if not self.username:
            return None
        return (self.username, self.password or "")


class Settings(BaseModel):
    """Runtime settings for the proxy."""

    port: int = 5000

    # TBO endpoints
    tbo_base_url: str = "http://api.tbotechnology.in/TBOHolidays_HotelAPI"
    tbo_search_url: str = "https://affiliate.tektravels.com/HotelAPI/Search"
    tbo_prebook_url: str = "https://affiliate.tektravels.com/HotelAPI/PreBook"
    tbo_book_url: str = "https://HotelBE.tektravels.com/hotelservice.svc/rest/book/"

    # Static data (country/city/hotel lists, details) vs search/prebook/book
    tbo_static_auth: TBOCredentials = TBOCredentials()
    tbo_api_auth: TBOCredentials = TBOCredentials()

    # Razorpay
    razorpay_key_id: Optional[str] = None
    razorpay_key_secret: Optional[str] = None
    razorpay_base_url: str = "https://api.razorpay.com/v1"

    # Cache store
    cache_backend: str = "redis"  # redis | memory
    redis_url: str = "redis://localhost:6379/0"

    # Card-info backfill
    card_info_batch_size: int = 5
    card_info_batch_interval: float = 0.1

    http_timeout: float = 30.0


def get_settings() -> Settings:
    """Build settings from the current environment."""
    return Settings(
        port=int(os.getenv("PORT", "5000")),
        tbo_base_url=os.getenv("TBO_API_BASE_URL", Settings.model_fields["tbo_base_url"].default),
        tbo_search_url=os.getenv("TBO_SEARCH_URL", Settings.model_fields["tbo_search_url"].default),
        tbo_prebook_url=os.getenv("TBO_PREBOOK_URL", Settings.model_fields["tbo_prebook_url"].default),
        tbo_book_url=os.getenv("TBO_BOOK_URL", Settings.model_fields["tbo_book_url"].default),
        tbo_static_auth=TBOCredentials(
            username=os.getenv("TBO_STATIC_USERNAME", "TBOStaticAPITest"),
            password=os.getenv("TBO_STATIC_PASSWORD", "Tbo@11530818"),
        ),
        tbo_api_auth=TBOCredentials(
            username=os.getenv("TBO_API_USERNAME"),
            password=os.getenv("TBO_API_PASSWORD"),
        ),
        razorpay_key_id=os.getenv("RAZORPAY_KEY_ID"),
        razorpay_key_secret=os.getenv("RAZORPAY_KEY_SECRET"),
        cache_backend=os.getenv("CACHE_BACKEND", "redis").lower(),
        redis_url=os.getenv("REDIS_URL", "redis://localhost:6379/0"),
        card_info_batch_size=int(os.getenv("CARD_INFO_BATCH_SIZE", "5")),
        card_info_batch_interval=float(os.getenv("CARD_INFO_BATCH_INTERVAL", "0.1")),
        http_timeout=float(os.getenv("HTTP_TIMEOUT", "30")),
    )
