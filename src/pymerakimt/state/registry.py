"""In-memory device registry.

The registry owns one :class:`RegistryEntry` per serial number. Entries are
created by discovery and mutated in place by both reconcilers.

Concurrency: every mutation runs on the owning asyncio event loop (the MQTT
network thread hands messages over with ``call_soon_threadsafe``), and each
:meth:`DeviceRegistry.apply_update` is a single synchronous step. A write to
one attribute is therefore atomic and immediately visible; there is no
cross-attribute transaction.
"""

from __future__ import annotations

import logging
from collections.abc import Iterable, Iterator
from dataclasses import dataclass
from typing import Any, Protocol

from pydantic import BaseModel, ConfigDict, Field

from pymerakimt.models.capability import CAPABILITY_ATTRIBUTES, AirQuality, Capability
from pymerakimt.models.identity import DeviceIdentity
from pymerakimt.state.events import AttributeUpdate, IngestionSource

_logger = logging.getLogger(__name__)


class DeviceStateSink(Protocol):
    """The object representing a device to the outside world."""

    def update_state(self, attribute: str, value: Any) -> None:
        ...


class CanonicalState(BaseModel):
    """Last known value per capability. Last write wins, no history."""

    model_config = ConfigDict(extra="forbid")

    battery_level: float | None = None
    temperature: float | None = None
    humidity: float | None = None
    flooded: bool | None = None
    binary_state: bool | None = None
    air_quality: AirQuality | None = None
    voc_density: float | None = None
    pm25_density: float | None = None

    sources: dict[str, IngestionSource] = Field(default_factory=dict)
    """Feed that produced the current value of each attribute."""


@dataclass
class RegistryEntry:
    identity: DeviceIdentity
    capabilities: frozenset[Capability]
    state: CanonicalState
    sink: DeviceStateSink | None = None

    @property
    def serial_number(self) -> str:
        return self.identity.serial_number

    def supports(self, capability: Capability) -> bool:
        return capability in self.capabilities


class DeviceRegistry:
    """Serial number -> (identity, capabilities, canonical state, sink).

    The registry is additive: entries are never removed and capabilities
    are never retracted, even when a later inventory omits them.
    """

    def __init__(self) -> None:
        self._entries: dict[str, RegistryEntry] = {}

    def __len__(self) -> int:
        return len(self._entries)

    def __contains__(self, serial: object) -> bool:
        return serial in self._entries

    def __iter__(self) -> Iterator[RegistryEntry]:
        return iter(list(self._entries.values()))

    def entries(self) -> list[RegistryEntry]:
        return list(self._entries.values())

    def upsert(self, identity: DeviceIdentity, capabilities: Iterable[Capability]) -> RegistryEntry:
        """Create the entry for *identity* or merge into the existing one.

        On rediscovery the identity is replaced (display name and model may
        change, the serial cannot) and the capability set becomes the union
        of old and new. Canonical state is left untouched.
        """
        caps = frozenset(capabilities)
        if not caps:
            raise ValueError(f"Refusing to register {identity.serial_number} without capabilities")

        entry = self._entries.get(identity.serial_number)
        if entry is None:
            entry = RegistryEntry(identity=identity, capabilities=caps, state=CanonicalState())
            self._entries[identity.serial_number] = entry
            return entry

        entry.identity = identity
        added = caps - entry.capabilities
        if added:
            _logger.debug("Device %s gained capabilities %s", identity.serial_number, sorted(added))
            entry.capabilities = entry.capabilities | added
        return entry

    def lookup(self, serial: str) -> RegistryEntry | None:
        return self._entries.get(serial)

    def apply_update(
        self,
        serial: str,
        capability: Capability,
        value: Any,
        *,
        source: IngestionSource | None = None,
    ) -> bool:
        """Write *value* for *capability* on device *serial*.

        Returns ``False`` without touching anything when the device is unknown
        or was not discovered to support *capability*. Otherwise the canonical
        state is updated and the value forwarded to the device's sink.
        """
        entry = self._entries.get(serial)
        if entry is None:
            return False
        if capability not in entry.capabilities:
            return False

        attribute = CAPABILITY_ATTRIBUTES[capability]
        setattr(entry.state, attribute, value)
        if source is not None:
            entry.state.sources[attribute] = source

        if entry.sink is not None:
            entry.sink.update_state(attribute, value)
        return True

    def apply(self, serial: str, update: AttributeUpdate, *, source: IngestionSource | None = None) -> bool:
        return self.apply_update(serial, update.capability, update.value, source=source)

    def snapshot(self, serial: str) -> dict[str, Any]:
        """Copy of the canonical state of *serial* (empty for unknown devices)."""
        entry = self._entries.get(serial)
        if entry is None:
            return {}
        return entry.state.model_dump(exclude={"sources"})
