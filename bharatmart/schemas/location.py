import math
from typing import Literal, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator

LOCATION_STORAGE_KEY = "bharatmart:location"
AUTO_PROMPTED_KEY = "bharatmart:location:autoPrompted"

_TEXT_FIELDS = (
    "house_no",
    "floor_no",
    "block_no",
    "building_name",
    "area",
    "landmark",
    "country",
    "delivery_instructions",
    "pincode",
    "city",
    "state",
)


def _is_number(value) -> bool:
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        return False
    return math.isfinite(value)


class LocationRecord(BaseModel):
    """The buyer's delivery address and/or detected coordinates."""

    model_config = ConfigDict(
        populate_by_name=True, frozen=True, coerce_numbers_to_str=True
    )

    # Full address
    house_no: Optional[str] = Field(default=None, alias="houseNo")  # house/flat/shop number
    floor_no: Optional[str] = Field(default=None, alias="floorNo")
    block_no: Optional[str] = Field(default=None, alias="blockNo")
    building_name: Optional[str] = Field(default=None, alias="buildingName")
    area: Optional[str] = None  # street / locality / sector / village
    landmark: Optional[str] = None
    country: Optional[str] = None
    delivery_instructions: Optional[str] = Field(default=None, alias="deliveryInstructions")
    is_default_address: Optional[bool] = Field(default=None, alias="isDefaultAddress")

    pincode: Optional[str] = None
    city: Optional[str] = None
    state: Optional[str] = None
    lat: Optional[float] = None
    lng: Optional[float] = None
    source: Optional[Literal["manual", "gps"]] = None
    updated_at: Optional[int] = Field(default=None, alias="updatedAt")  # epoch ms

    @model_validator(mode="before")
    @classmethod
    def pair_coordinates(cls, data):
        if not isinstance(data, dict):
            return data
        data = dict(data)
        if not (_is_number(data.get("lat")) and _is_number(data.get("lng"))):
            data.pop("lat", None)
            data.pop("lng", None)
        return data

    @field_validator(*_TEXT_FIELDS, mode="before")
    @classmethod
    def blank_to_none(cls, v):
        if isinstance(v, str) and not v.strip():
            return None
        return v

    # source and updatedAt are bookkeeping; a bad value never costs the address
    @field_validator("source", mode="before")
    @classmethod
    def known_source(cls, v):
        return v if v in ("manual", "gps") else None

    @field_validator("updated_at", mode="before")
    @classmethod
    def epoch_millis(cls, v):
        if not _is_number(v):
            return None
        return int(v)

    @property
    def has_coordinates(self) -> bool:
        return self.lat is not None and self.lng is not None

    @property
    def is_present(self) -> bool:
        return bool(self.pincode or self.house_no or self.area or self.has_coordinates)

    def to_storage(self) -> dict:
        return self.model_dump(by_alias=True, exclude_none=True)
