"""Device identity."""

from __future__ import annotations

from pydantic import BaseModel, ConfigDict, field_validator


class DeviceIdentity(BaseModel):
    """Who a sensor is. Created at discovery time and never mutated."""

    model_config = ConfigDict(frozen=True, extra="forbid", str_strip_whitespace=True)

    serial_number: str
    hardware_address: str = ""
    model: str = ""
    display_name: str = ""

    @field_validator("serial_number")
    @classmethod
    def _require_serial(cls, value: str) -> str:
        if not value:
            raise ValueError("serial_number must be non-empty")
        return value

    @property
    def normalized_hardware_address(self) -> str:
        """Hardware address as it appears in MQTT topics."""
        return self.hardware_address.upper()
