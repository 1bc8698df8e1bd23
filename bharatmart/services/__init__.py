from .cart_store import CartStore
from .checkout import (
    CeleryOrderWriter,
    CheckoutResult,
    CheckoutService,
    CheckoutSettings,
    build_checkout_message,
    build_whatsapp_checkout_url,
)
from .geocoding import (
    Coordinates,
    NominatimReverseGeocoder,
    StaticCoordinateProvider,
    UnsupportedCoordinateProvider,
)
from .location import LocationStore, format_full_address, location_label

__all__ = [
    "CartStore",
    "CeleryOrderWriter",
    "CheckoutResult",
    "CheckoutService",
    "CheckoutSettings",
    "build_checkout_message",
    "build_whatsapp_checkout_url",
    "Coordinates",
    "NominatimReverseGeocoder",
    "StaticCoordinateProvider",
    "UnsupportedCoordinateProvider",
    "LocationStore",
    "format_full_address",
    "location_label",
]
