import asyncio
import json
from datetime import datetime

import httpx
import pytest

from bharatmart.errors import GeolocationError, ReverseGeocodeError
from bharatmart.services.geocoding import (
    Coordinates,
    NominatimReverseGeocoder,
    StaticCoordinateProvider,
    UnsupportedCoordinateProvider,
)
from bharatmart.services.location import LocationStore, location_label
from conftest import FIXED_NOW, FakeGeocoder


def _store(storage, **kwargs):
    kwargs.setdefault("clock", lambda: FIXED_NOW)
    return LocationStore(storage, **kwargs)


def test_detect_saves_coordinates_and_locality(storage, geocoder):
    store = _store(storage, coordinates=StaticCoordinateProvider(19.99, 73.78), geocoder=geocoder)
    record = asyncio.run(store.detect_and_save())

    assert (record.lat, record.lng) == (19.99, 73.78)
    assert record.pincode == "423651"
    assert record.city == "Nashik"
    assert record.source == "gps"
    assert record.updated_at == int(FIXED_NOW.timestamp() * 1000)
    assert store.load() == record
    assert geocoder.calls == [(19.99, 73.78)]


def test_reverse_geocode_failure_keeps_coordinates(storage):
    geocoder = FakeGeocoder(error=ReverseGeocodeError("down"))
    store = _store(storage, coordinates=StaticCoordinateProvider(19.99, 73.78), geocoder=geocoder)
    record = asyncio.run(store.detect_and_save())

    assert record.pincode is None
    assert location_label(store.load()) == "Current location"


def test_coordinate_failure_rejects_and_saves_nothing(storage, geocoder):
    store = _store(storage, coordinates=UnsupportedCoordinateProvider(), geocoder=geocoder)
    with pytest.raises(GeolocationError) as exc:
        asyncio.run(store.detect_and_save())
    assert exc.value.reason == "Geolocation not supported"
    assert store.load() is None
    assert geocoder.calls == []


def test_permission_denied_is_reported(storage):
    async def denied():
        raise PermissionError("User denied Geolocation")

    store = _store(storage, coordinates=denied)
    with pytest.raises(GeolocationError, match="User denied Geolocation"):
        asyncio.run(store.detect_and_save())


def test_detection_times_out(storage):
    async def slow():
        await asyncio.sleep(5)
        return Coordinates(1.0, 2.0)

    store = _store(storage, coordinates=slow, timeout=0.01)
    with pytest.raises(GeolocationError, match="Timed out"):
        asyncio.run(store.detect_and_save())


def _racing_provider():
    """First call is slow and stale, second is fast."""
    calls = []

    async def provider():
        calls.append(1)
        if len(calls) == 1:
            await asyncio.sleep(0.05)
            return Coordinates(10.0, 10.0)
        return Coordinates(20.0, 20.0)

    return provider


async def _race(store):
    auto = asyncio.ensure_future(store.detect_and_save())
    await asyncio.sleep(0)
    manual = asyncio.ensure_future(store.detect_and_save())
    return await asyncio.gather(auto, manual)


def test_racing_detections_last_completion_wins(storage):
    store = _store(storage, coordinates=_racing_provider())
    auto, manual = asyncio.run(_race(store))

    assert manual.lat == 20.0
    # the slow automatic attempt finished last and overwrote the manual one
    assert store.load().lat == 10.0


def test_discard_stale_keeps_newest_request(storage):
    store = _store(storage, coordinates=_racing_provider(), discard_stale=True)
    auto, manual = asyncio.run(_race(store))

    assert auto.lat == 10.0
    assert store.load().lat == 20.0


# -------------------- Nominatim --------------------

def _geocoder(handler):
    return NominatimReverseGeocoder(
        base_url="https://geocode.test/reverse", transport=httpx.MockTransport(handler)
    )


def test_nominatim_maps_address_fields():
    seen = {}

    def handler(request):
        seen["params"] = dict(request.url.params)
        seen["ua"] = request.headers.get("user-agent")
        return httpx.Response(200, json={"address": {
            "postcode": "423651", "town": "Yeola", "state": "Maharashtra", "country": "India",
        }})

    result = asyncio.run(_geocoder(handler).reverse(20.04, 74.48))
    assert result == {"pincode": "423651", "city": "Yeola", "state": "Maharashtra"}
    assert seen["params"]["format"] == "jsonv2"
    assert seen["params"]["lat"] == "20.04"
    assert seen["params"]["lon"] == "74.48"
    assert seen["ua"] == "bharatmart-cart"


def test_nominatim_omits_unknown_fields():
    handler = lambda request: httpx.Response(200, json={"address": {"village": "Ozar"}})  # noqa: E731
    assert asyncio.run(_geocoder(handler).reverse(1, 2)) == {"city": "Ozar"}


def test_nominatim_error_status_raises():
    handler = lambda request: httpx.Response(503, text="busy")  # noqa: E731
    with pytest.raises(ReverseGeocodeError):
        asyncio.run(_geocoder(handler).reverse(1, 2))


def test_nominatim_transport_error_raises():
    def handler(request):
        raise httpx.ConnectError("no route", request=request)

    with pytest.raises(ReverseGeocodeError):
        asyncio.run(_geocoder(handler).reverse(1, 2))


def test_nominatim_failure_degrades_detection(storage):
    handler = lambda request: httpx.Response(500)  # noqa: E731
    store = _store(
        storage,
        coordinates=StaticCoordinateProvider(19.99, 73.78),
        geocoder=_geocoder(handler),
    )
    record = asyncio.run(store.detect_and_save())
    assert record.has_coordinates
    assert record.city is None
