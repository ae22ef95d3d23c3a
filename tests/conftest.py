import sys
from pathlib import Path
import pytest

# 1. Force the backend directory into sys.path
BACKEND_DIR = Path(__file__).resolve().parents[1] / "backend"
if str(BACKEND_DIR) not in sys.path:
    sys.path.insert(0, str(BACKEND_DIR))

# 2. Mock environment variables for testing
import os
os.environ["CACHE_BACKEND"] = "memory"
os.environ["RAZORPAY_KEY_ID"] = "rzp_test_key"
os.environ["RAZORPAY_KEY_SECRET"] = "rzp_test_secret"

# 3. Now imports will work across all test files
from hotelproxy.core.background import BackgroundWriter
from hotelproxy.core.cache import InMemoryCacheStore
from hotelproxy.core.config import Settings, TBOCredentials
from hotelproxy.services.static_data import StaticDataCache


@pytest.fixture
def settings():
    return Settings(
        cache_backend="memory",
        tbo_base_url="https://tbo.test/HotelAPI",
        tbo_search_url="https://tbo.test/Search",
        tbo_prebook_url="https://tbo.test/PreBook",
        tbo_book_url="https://tbo.test/Book",
        tbo_static_auth=TBOCredentials(username="static_user", password="static_pass"),
        tbo_api_auth=TBOCredentials(username="api_user", password="api_pass"),
        razorpay_key_id="rzp_test_key",
        razorpay_key_secret="rzp_test_secret",
        razorpay_base_url="https://razorpay.test/v1",
    )


@pytest.fixture
def store():
    return InMemoryCacheStore()


@pytest.fixture
def static_data(store):
    return StaticDataCache(store)


@pytest.fixture
def writer():
    return BackgroundWriter()
