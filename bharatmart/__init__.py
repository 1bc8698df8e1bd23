from dataclasses import dataclass
from datetime import datetime
from typing import Any, Callable

from bharatmart.config import get_config_class
from bharatmart.logging import configure_logging
from bharatmart.services.cart_store import CartStore
from bharatmart.services.checkout import CeleryOrderWriter, CheckoutService, CheckoutSettings
from bharatmart.services.geocoding import NominatimReverseGeocoder
from bharatmart.services.location import LocationStore
from bharatmart.utils.storage import open_storage


@dataclass
class StorefrontContext:
    """Everything one buyer session needs, wired together."""

    config: Any
    storage: Any
    cart: CartStore
    locations: LocationStore
    checkout: CheckoutService
    clock: Callable[[], datetime]


def create_context(
    config_object=None,
    *,
    storage=None,
    coordinates=None,
    geocoder=None,
    order_writer=None,
    clock: Callable[[], datetime] = datetime.now,
) -> StorefrontContext:
    """Context factory: load config, open storage and restore the stores."""
    config = config_object if config_object is not None else get_config_class()
    configure_logging(config)

    if storage is None:
        storage = open_storage(config.STORAGE_URL)
    if geocoder is None:
        geocoder = NominatimReverseGeocoder(
            base_url=config.REVERSE_GEOCODE_URL,
            timeout=config.REVERSE_GEOCODE_TIMEOUT_SECONDS,
        )
    if order_writer is None and config.ORDERS_DATABASE_URL:
        order_writer = CeleryOrderWriter(config.ORDERS_DATABASE_URL)

    cart = CartStore.load(storage)
    locations = LocationStore(
        storage,
        coordinates=coordinates,
        geocoder=geocoder,
        clock=clock,
        timeout=config.GEOLOCATION_TIMEOUT_SECONDS,
        discard_stale=config.LOCATION_DISCARD_STALE,
    )
    checkout = CheckoutService(
        cart,
        locations,
        settings=CheckoutSettings.from_config(config),
        clock=clock,
        order_writer=order_writer,
    )
    return StorefrontContext(
        config=config,
        storage=storage,
        cart=cart,
        locations=locations,
        checkout=checkout,
        clock=clock,
    )


__all__ = ["StorefrontContext", "create_context"]
