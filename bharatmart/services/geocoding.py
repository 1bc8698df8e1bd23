"""
Coordinate providers and reverse geocoding.

Coordinate providers are async callables returning ``Coordinates``; they
raise ``GeolocationError`` when the device position cannot be had. The
reverse geocoder turns coordinates into locality text on a best-effort
basis.
"""

import logging
from dataclasses import dataclass
from typing import Optional

import httpx

from bharatmart.errors import GeolocationError, ReverseGeocodeError

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class Coordinates:
    lat: float
    lng: float


class StaticCoordinateProvider:
    """Returns fixed coordinates, e.g. typed on the command line."""

    def __init__(self, lat: float, lng: float):
        self.coordinates = Coordinates(lat=float(lat), lng=float(lng))

    async def __call__(self) -> Coordinates:
        return self.coordinates


class UnsupportedCoordinateProvider:
    """Stand-in when no position source is configured."""

    async def __call__(self) -> Coordinates:
        raise GeolocationError("Geolocation not supported")


class NominatimReverseGeocoder:
    """
    Reverse geocoding against OpenStreetMap Nominatim.

    Returns only the fields Nominatim actually knew, keyed the way
    ``LocationRecord`` names them (pincode, city, state).
    """

    def __init__(
        self,
        base_url: str = "https://nominatim.openstreetmap.org/reverse",
        timeout: float = 10.0,
        user_agent: str = "bharatmart-cart",
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        self.base_url = base_url
        self.timeout = timeout
        self.user_agent = user_agent
        self._transport = transport

    async def reverse(self, lat: float, lng: float) -> dict:
        params = {
            "format": "jsonv2",
            "lat": lat,
            "lon": lng,
            "addressdetails": 1,
        }
        headers = {"Accept": "application/json", "User-Agent": self.user_agent}
        async with httpx.AsyncClient(timeout=self.timeout, transport=self._transport) as client:
            try:
                response = await client.get(self.base_url, params=params, headers=headers)
            except httpx.HTTPError as e:
                raise ReverseGeocodeError(f"Reverse geocoding request failed: {e}") from e
        if response.status_code >= 400:
            raise ReverseGeocodeError(
                f"Reverse geocoding failed with status {response.status_code}"
            )
        try:
            address = (response.json() or {}).get("address") or {}
        except ValueError as e:
            raise ReverseGeocodeError("Reverse geocoding returned invalid JSON") from e

        decoded = {
            "pincode": address.get("postcode"),
            "city": address.get("city")
            or address.get("town")
            or address.get("village")
            or address.get("suburb"),
            "state": address.get("state"),
        }
        return {k: v for k, v in decoded.items() if v}
