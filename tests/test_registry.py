from __future__ import annotations

from typing import Any

import pytest

from pymerakimt.models.capability import AirQuality, Capability
from pymerakimt.models.identity import DeviceIdentity
from pymerakimt.state.events import AttributeUpdate, IngestionSource
from pymerakimt.state.registry import DeviceRegistry

THERMO_CAPS = {Capability.THERMOMETER, Capability.HUMIDITY_SENSOR, Capability.BATTERY}


class RecordingSink:
    def __init__(self) -> None:
        self.calls: list[tuple[str, Any]] = []

    def update_state(self, attribute: str, value: Any) -> None:
        self.calls.append((attribute, value))


def test_upsert_creates_entry(thermo_identity: DeviceIdentity) -> None:
    registry = DeviceRegistry()

    entry = registry.upsert(thermo_identity, THERMO_CAPS)

    assert registry.lookup(thermo_identity.serial_number) is entry
    assert entry.capabilities == frozenset(THERMO_CAPS)
    assert entry.state.temperature is None
    assert len(registry) == 1
    assert thermo_identity.serial_number in registry


def test_upsert_rejects_empty_capability_set(thermo_identity: DeviceIdentity) -> None:
    registry = DeviceRegistry()

    with pytest.raises(ValueError):
        registry.upsert(thermo_identity, [])

    assert registry.lookup(thermo_identity.serial_number) is None


def test_lookup_miss_returns_none() -> None:
    assert DeviceRegistry().lookup("missing") is None


def test_apply_update_sets_state_and_forwards_to_sink(thermo_identity: DeviceIdentity) -> None:
    registry = DeviceRegistry()
    entry = registry.upsert(thermo_identity, THERMO_CAPS)
    sink = RecordingSink()
    entry.sink = sink

    assert registry.apply_update(thermo_identity.serial_number, Capability.THERMOMETER, 21.5, source=IngestionSource.POLL)

    assert entry.state.temperature == 21.5
    assert entry.state.sources["temperature"] == IngestionSource.POLL
    assert sink.calls == [("temperature", 21.5)]


def test_apply_update_unknown_device_is_noop() -> None:
    registry = DeviceRegistry()

    assert registry.apply_update("missing", Capability.THERMOMETER, 21.5) is False
    assert registry.snapshot("missing") == {}


def test_apply_update_capability_mismatch_is_noop(thermo_identity: DeviceIdentity) -> None:
    registry = DeviceRegistry()
    entry = registry.upsert(thermo_identity, THERMO_CAPS)
    sink = RecordingSink()
    entry.sink = sink
    before = registry.snapshot(thermo_identity.serial_number)

    assert registry.apply_update(thermo_identity.serial_number, Capability.FLOOD_SENSOR, True) is False

    assert registry.snapshot(thermo_identity.serial_number) == before
    assert entry.state.flooded is None
    assert sink.calls == []


def test_applying_same_update_twice_is_idempotent(thermo_identity: DeviceIdentity) -> None:
    registry = DeviceRegistry()
    registry.upsert(thermo_identity, THERMO_CAPS)
    update = AttributeUpdate(capability=Capability.HUMIDITY_SENSOR, value=44.0, metric="humidity")

    registry.apply(thermo_identity.serial_number, update, source=IngestionSource.PUSH)
    once = registry.snapshot(thermo_identity.serial_number)
    registry.apply(thermo_identity.serial_number, update, source=IngestionSource.PUSH)

    assert registry.snapshot(thermo_identity.serial_number) == once


def test_last_write_wins_across_feeds(thermo_identity: DeviceIdentity) -> None:
    registry = DeviceRegistry()
    entry = registry.upsert(thermo_identity, THERMO_CAPS)

    registry.apply_update(thermo_identity.serial_number, Capability.THERMOMETER, 20.0, source=IngestionSource.PUSH)
    registry.apply_update(thermo_identity.serial_number, Capability.THERMOMETER, 19.0, source=IngestionSource.POLL)

    assert entry.state.temperature == 19.0
    assert entry.state.sources["temperature"] == IngestionSource.POLL


def test_attributes_are_independent(thermo_identity: DeviceIdentity) -> None:
    registry = DeviceRegistry()
    entry = registry.upsert(thermo_identity, THERMO_CAPS)

    registry.apply_update(thermo_identity.serial_number, Capability.THERMOMETER, 20.0)
    registry.apply_update(thermo_identity.serial_number, Capability.BATTERY, 88.0)

    assert entry.state.temperature == 20.0
    assert entry.state.battery_level == 88.0
    assert entry.state.humidity is None


def test_rediscovery_adds_capabilities_and_keeps_state(thermo_identity: DeviceIdentity) -> None:
    registry = DeviceRegistry()
    entry = registry.upsert(thermo_identity, THERMO_CAPS)
    registry.apply_update(thermo_identity.serial_number, Capability.THERMOMETER, 22.0)

    renamed = thermo_identity.model_copy(update={"display_name": "Server room (rack 2)"})
    again = registry.upsert(renamed, {Capability.AIR_QUALITY_SENSOR, Capability.BATTERY})

    assert again is entry
    assert entry.identity.display_name == "Server room (rack 2)"
    assert entry.capabilities == frozenset(THERMO_CAPS | {Capability.AIR_QUALITY_SENSOR})
    assert entry.state.temperature == 22.0
    assert registry.apply_update(thermo_identity.serial_number, Capability.AIR_QUALITY_SENSOR, AirQuality.FAIR)
