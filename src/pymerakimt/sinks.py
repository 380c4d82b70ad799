"""Outward-facing collaborators: the device catalog and per-device state sinks.

A host application (a home-automation bridge, a dashboard...) plugs in its
own implementations; the in-memory ones here are used by default.
"""

from __future__ import annotations

import copy
import logging
from collections.abc import Callable, Sequence
from typing import Any, Protocol

from pymerakimt.exceptions import MerakiUnsupportedOperationError
from pymerakimt.models.capability import AirQuality
from pymerakimt.models.identity import DeviceIdentity
from pymerakimt.models.manifest import DeviceManifest
from pymerakimt.state.registry import DeviceStateSink

_logger = logging.getLogger(__name__)

StateListener = Callable[[str, str, Any], None]
"""``listener(serial, attribute, value)``"""

__all__ = [
    "DeviceCatalog",
    "DeviceStateSink",
    "InMemoryDeviceCatalog",
    "MerakiSensor",
    "StateListener",
]


class DeviceCatalog(Protocol):
    """Receives the full device list after every discovery."""

    async def on_devices_changed(self, devices: Sequence[DeviceManifest]) -> None:
        ...


class InMemoryDeviceCatalog:
    """Keeps the most recent device list."""

    def __init__(self) -> None:
        self._devices: list[DeviceManifest] = []
        self.change_count = 0

    @property
    def devices(self) -> list[DeviceManifest]:
        return list(self._devices)

    def get(self, native_id: str) -> DeviceManifest | None:
        for device in self._devices:
            if device.native_id == native_id:
                return device
        return None

    async def on_devices_changed(self, devices: Sequence[DeviceManifest]) -> None:
        # Replace the whole list so readers never see a half-applied change-set.
        self._devices = list(devices)
        self.change_count += 1


class MerakiSensor:
    """Default device-state sink for one MT sensor."""

    def __init__(
        self,
        identity: DeviceIdentity,
        *,
        listeners: Sequence[StateListener] = (),
        logger: logging.Logger | None = None,
    ) -> None:
        self.identity = identity
        self._values: dict[str, Any] = {}
        self._listeners = list(listeners)
        self._logger = logger or _logger

    @property
    def native_id(self) -> str:
        return self.identity.serial_number

    def add_listener(self, listener: StateListener) -> None:
        self._listeners.append(listener)

    def update_state(self, attribute: str, value: Any) -> None:
        self._values[attribute] = value
        self._logger.debug("[%s] %s=%r", self.native_id, attribute, value)
        for listener in self._listeners:
            try:
                listener(self.native_id, attribute, value)
            except Exception:
                self._logger.warning("State listener failed for %s", self.native_id, exc_info=True)

    def values(self) -> dict[str, Any]:
        return copy.deepcopy(self._values)

    @property
    def battery_level(self) -> float | None:
        return self._values.get("battery_level")

    @property
    def temperature(self) -> float | None:
        return self._values.get("temperature")

    @property
    def humidity(self) -> float | None:
        return self._values.get("humidity")

    @property
    def flooded(self) -> bool | None:
        return self._values.get("flooded")

    @property
    def binary_state(self) -> bool | None:
        return self._values.get("binary_state")

    @property
    def air_quality(self) -> AirQuality | None:
        return self._values.get("air_quality")

    @property
    def voc_density(self) -> float | None:
        return self._values.get("voc_density")

    @property
    def pm25_density(self) -> float | None:
        return self._values.get("pm25_density")

    def set_temperature_unit(self, unit: str) -> None:
        """MT sensors always report Celsius; unit changes are not supported."""
        raise MerakiUnsupportedOperationError(f"[{self.native_id}] set_temperature_unit {unit}: not implemented")
