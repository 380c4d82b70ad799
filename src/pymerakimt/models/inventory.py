"""Organization inventory models."""

from __future__ import annotations

from pydantic import Field, field_validator

from pymerakimt.models._base import MerakiBaseModel
from pymerakimt.models.identity import DeviceIdentity


class SensorProfile(MerakiBaseModel):
    """The ``sensor`` block of an MT inventory entry."""

    metrics: list[str] = Field(default_factory=list)
    """Raw metric names the device declares (``temperature``, ``door``...)."""

    @field_validator("metrics", mode="before")
    @classmethod
    def _coerce_metrics(cls, value: object) -> list[str]:
        if not isinstance(value, (list, tuple)):
            return []
        return [str(item) for item in value if isinstance(item, str) and item]


class InventoryDevice(MerakiBaseModel):
    """A device returned by ``/organizations/{orgId}/devices``."""

    serial: str
    """Serial number (stable primary key)."""
    mac: str = ""
    """Bluetooth hardware address, used to derive the MQTT topic."""
    model: str = ""
    """Hardware model (e.g. ``"MT10"``)."""
    name: str = ""
    """User-assigned display name."""
    network_id: str = ""
    product_type: str = ""
    sensor: SensorProfile = Field(default_factory=SensorProfile)

    @field_validator("serial")
    @classmethod
    def _require_serial(cls, value: str) -> str:
        value = value.strip()
        if not value:
            raise ValueError("serial must be non-empty")
        return value

    @property
    def metrics(self) -> list[str]:
        return list(self.sensor.metrics)

    def to_identity(self) -> DeviceIdentity:
        return DeviceIdentity(
            serial_number=self.serial,
            hardware_address=self.mac,
            model=self.model,
            display_name=self.name or self.serial,
        )
