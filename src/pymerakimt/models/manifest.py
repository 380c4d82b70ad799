"""Device-catalog change-set models."""

from __future__ import annotations

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel

from pymerakimt._constants import DEVICE_TYPE_SENSOR, MANUFACTURER
from pymerakimt.models.capability import Capability


class _CatalogModel(BaseModel):
    model_config = ConfigDict(
        frozen=True,
        populate_by_name=True,
        alias_generator=to_camel,
    )


class DeviceInfo(_CatalogModel):
    model: str = ""
    manufacturer: str = MANUFACTURER
    serial_number: str = ""


class DeviceManifest(_CatalogModel):
    """How one sensor is announced to the device catalog.

    ``model_dump(by_alias=True)`` produces the catalog wire shape
    (``nativeId``, ``info.serialNumber``...).
    """

    native_id: str
    name: str
    type: str = DEVICE_TYPE_SENSOR
    info: DeviceInfo = Field(default_factory=DeviceInfo)
    interfaces: list[Capability] = Field(default_factory=list)
