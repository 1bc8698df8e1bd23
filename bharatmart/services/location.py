import asyncio
import json
import logging
from datetime import datetime
from typing import Callable, Mapping, Optional, Union

from pydantic import ValidationError

from bharatmart.errors import GeolocationError
from bharatmart.schemas.location import (
    AUTO_PROMPTED_KEY,
    LOCATION_STORAGE_KEY,
    LocationRecord,
)
from bharatmart.services.geocoding import UnsupportedCoordinateProvider

logger = logging.getLogger(__name__)

EMPTY_ADDRESS = "—"
NO_LOCATION_LABEL = "Set location"


def location_label(loc: Optional[LocationRecord]) -> str:
    """Short summary for the location picker, most specific first."""
    if not loc:
        return NO_LOCATION_LABEL
    if loc.area and loc.pincode:
        return f"{loc.area} {loc.pincode}"
    if loc.city and loc.pincode:
        return f"{loc.city} {loc.pincode}"
    if loc.pincode:
        return loc.pincode
    if loc.area:
        return loc.area
    if loc.city:
        return loc.city
    if loc.has_coordinates:
        return "Current location"
    return NO_LOCATION_LABEL


def format_full_address(loc: Optional[LocationRecord]) -> str:
    """Postal-style address block; lines with nothing to show are left out."""
    if not loc:
        return EMPTY_ADDRESS
    line1 = ", ".join(
        part
        for part in (
            loc.house_no,
            f"Floor {loc.floor_no}" if loc.floor_no else None,
            f"Block {loc.block_no}" if loc.block_no else None,
            loc.building_name,
        )
        if part
    )
    line2 = ", ".join(
        part
        for part in (loc.area, f"Landmark: {loc.landmark}" if loc.landmark else None)
        if part
    )
    line3 = " ".join(
        part
        for part in (
            ", ".join(p for p in (loc.city, loc.state) if p),
            f"({loc.pincode})" if loc.pincode else None,
            loc.country,
        )
        if part
    )
    return "\n".join(line for line in (line1, line2, line3) if line.strip())


class LocationStore:
    """Holds the single delivery location and runs GPS detection.

    ``discard_stale`` turns on a generation check for racing
    ``detect_and_save`` calls: a detection that finishes after a newer
    one was started is returned but not saved. Off by default, so the
    last detection to complete wins.
    """

    def __init__(
        self,
        storage,
        coordinates=None,
        geocoder=None,
        clock: Callable[[], datetime] = datetime.now,
        timeout: float = 10.0,
        discard_stale: bool = False,
        key: str = LOCATION_STORAGE_KEY,
    ):
        self._storage = storage
        self._coordinates = coordinates or UnsupportedCoordinateProvider()
        self._geocoder = geocoder
        self._clock = clock
        self._timeout = timeout
        self._discard_stale = discard_stale
        self._key = key
        self._generation = 0

    def load(self) -> Optional[LocationRecord]:
        try:
            raw = self._storage.get_item(self._key)
        except Exception:
            logger.warning("Location storage read failed", exc_info=True)
            return None
        if not raw:
            return None
        try:
            parsed = json.loads(raw)
        except (TypeError, ValueError):
            return None
        if not isinstance(parsed, dict):
            return None
        try:
            record = LocationRecord.model_validate(parsed)
        except ValidationError:
            logger.warning("Discarding invalid stored location")
            return None
        return record if record.is_present else None

    def save(self, record: Union[LocationRecord, Mapping]) -> LocationRecord:
        if not isinstance(record, LocationRecord):
            record = LocationRecord.model_validate(dict(record))
        try:
            self._storage.set_item(
                self._key, json.dumps(record.to_storage(), ensure_ascii=False)
            )
        except Exception:
            logger.error("Failed to persist location", exc_info=True)
        else:
            logger.info({
                "event": "location_saved",
                "source": record.source,
                "pincode": record.pincode,
                "house_no": record.house_no,
                "lat": record.lat,
                "lng": record.lng,
                "delivery_instructions": record.delivery_instructions,
            })
        return record

    def clear(self) -> None:
        try:
            self._storage.remove_item(self._key)
        except Exception:
            logger.error("Failed to clear location", exc_info=True)

    def was_auto_prompted(self) -> bool:
        try:
            return self._storage.get_item(AUTO_PROMPTED_KEY) == "1"
        except Exception:
            logger.warning("Location storage read failed", exc_info=True)
            return False

    def mark_auto_prompted(self) -> None:
        try:
            self._storage.set_item(AUTO_PROMPTED_KEY, "1")
        except Exception:
            logger.error("Failed to persist auto-prompt flag", exc_info=True)

    def now_ms(self) -> int:
        return int(self._clock().timestamp() * 1000)

    async def detect_and_save(self, coordinates=None) -> LocationRecord:
        """Detect the device position, add locality text if possible, save it.

        Raises ``GeolocationError`` only when coordinates cannot be
        acquired; a failed reverse lookup leaves pincode/city/state empty.
        """
        self._generation += 1
        generation = self._generation

        position = await self._acquire(coordinates or self._coordinates)
        decoded = {}
        if self._geocoder is not None:
            try:
                decoded = await self._geocoder.reverse(position.lat, position.lng)
            except Exception as e:
                logger.warning("Reverse geocoding failed, keeping coordinates only: %s", e)

        record = LocationRecord(
            **decoded,
            lat=position.lat,
            lng=position.lng,
            source="gps",
            updated_at=self.now_ms(),
        )
        if self._discard_stale and generation != self._generation:
            logger.info("Discarding superseded location detection")
            return record
        return self.save(record)

    async def _acquire(self, provider):
        try:
            return await asyncio.wait_for(provider(), timeout=self._timeout)
        except asyncio.TimeoutError as e:
            raise GeolocationError("Timed out while detecting location") from e
        except GeolocationError:
            raise
        except Exception as e:
            raise GeolocationError(str(e) or "Unable to detect location") from e
