"""
Service wiring.

Everything with a connection (cache store, HTTP clients) is built once at
startup and handed to the routes through ``app.state.services``.
"""
import logging
from typing import Optional

from hotelproxy.core.background import BackgroundWriter
from hotelproxy.core.cache import CacheStore, create_cache_store
from hotelproxy.core.config import Settings, get_settings
from hotelproxy.core.rate_limit import IntervalRateLimiter
from hotelproxy.services.hotels.card_info import CardInfoService
from hotelproxy.services.payment.razorpay import RazorpayClient
from hotelproxy.services.payment.service import PaymentService
from hotelproxy.services.rooms.matching import PrefixRoomMatcher, RoomMatcher
from hotelproxy.services.static_data import StaticDataCache
from hotelproxy.services.tbo.client import TBOClient

logger = logging.getLogger("HotelProxy-Container")


class ServiceContainer:

    def __init__(
        self,
        settings: Settings,
        store: CacheStore,
        tbo: TBOClient,
        razorpay: RazorpayClient,
        writer: Optional[BackgroundWriter] = None,
        rate_limiter=None,
        room_matcher: Optional[RoomMatcher] = None,
    ):
        self.settings = settings
        self.store = store
        self.tbo = tbo
        self.razorpay = razorpay
        self.writer = writer or BackgroundWriter()
        self.static_data = StaticDataCache(store)
        self.room_matcher = room_matcher or PrefixRoomMatcher()
        self.card_info = CardInfoService(
            tbo,
            self.static_data,
            self.writer,
            rate_limiter=rate_limiter or IntervalRateLimiter(settings.card_info_batch_interval),
            batch_size=settings.card_info_batch_size,
        )
        self.payments = PaymentService(razorpay, tbo, store)

    @classmethod
    def from_settings(cls, settings: Optional[Settings] = None) -> "ServiceContainer":
        settings = settings or get_settings()
        return cls(
            settings=settings,
            store=create_cache_store(settings.cache_backend, settings.redis_url),
            tbo=TBOClient(settings),
            razorpay=RazorpayClient(
                settings.razorpay_key_id,
                settings.razorpay_key_secret,
                base_url=settings.razorpay_base_url,
            ),
        )

    async def close(self) -> None:
        """Finish pending cache writes, then release connections."""
        if self.writer.pending:
            logger.info(f"Waiting for {self.writer.pending} background write(s)")
        await self.writer.drain()

        for name, resource in (("tbo", self.tbo), ("razorpay", self.razorpay), ("cache", self.store)):
            try:
                await resource.close()
            except Exception as e:
                logger.warning(f"⚠️ {name} close error: {e}")
