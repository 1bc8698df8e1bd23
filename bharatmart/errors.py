"""Exception types raised by the storefront core."""


class StorefrontError(Exception):
    """Base class for errors surfaced to callers."""


class StorageError(StorefrontError):
    pass


class GeolocationError(StorefrontError):
    """Coordinates could not be acquired (denied, unsupported, timeout)."""

    def __init__(self, reason: str = "Unable to detect location"):
        super().__init__(reason)
        self.reason = reason


class ReverseGeocodeError(StorefrontError):
    pass
