import os
import sys
from datetime import datetime

import pytest

sys.path.insert(0, os.path.abspath(os.path.join(os.path.dirname(__file__), '..')))
os.environ.setdefault('APP_ENV', 'testing')
os.environ.setdefault('CELERY_TASK_ALWAYS_EAGER', '1')

from bharatmart import create_context
from bharatmart.config import TestingConfig
from bharatmart.services.cart_store import CartStore
from bharatmart.services.location import LocationStore
from bharatmart.utils.storage import MemoryStorage

FIXED_NOW = datetime(2026, 10, 19, 9, 5, 0)


class FailingStorage:
    """Storage whose every call blows up, like a full or locked disk."""

    def get_item(self, key):
        raise OSError("storage unavailable")

    def set_item(self, key, value):
        raise OSError("quota exceeded")

    def remove_item(self, key):
        raise OSError("storage unavailable")


class RecordingOrderWriter:
    def __init__(self, fail=False):
        self.fail = fail
        self.payloads = []

    def submit(self, payload):
        if self.fail:
            raise RuntimeError("orders store down")
        self.payloads.append(payload)


class FakeGeocoder:
    def __init__(self, result=None, error=None):
        self.result = result or {}
        self.error = error
        self.calls = []

    async def reverse(self, lat, lng):
        self.calls.append((lat, lng))
        if self.error:
            raise self.error
        return dict(self.result)


@pytest.fixture
def storage():
    return MemoryStorage()


@pytest.fixture
def clock():
    return lambda: FIXED_NOW


@pytest.fixture
def cart(storage):
    return CartStore.load(storage)


@pytest.fixture
def locations(storage, clock):
    return LocationStore(storage, clock=clock)


@pytest.fixture
def order_writer():
    return RecordingOrderWriter()


@pytest.fixture
def geocoder():
    return FakeGeocoder({'pincode': '423651', 'city': 'Nashik', 'state': 'Maharashtra'})


@pytest.fixture
def context(storage, clock, order_writer, geocoder, tmp_path):
    class Config(TestingConfig):
        ORDERS_DATABASE_URL = f"sqlite:///{tmp_path / 'orders.db'}"

    return create_context(
        Config,
        storage=storage,
        clock=clock,
        order_writer=order_writer,
        geocoder=geocoder,
    )


@pytest.fixture
def kettle():
    return {'productId': 'p1', 'title': 'Kettle', 'price': 499}
