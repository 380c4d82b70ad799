from __future__ import annotations

import asyncio
import json
import logging
from typing import Any

import pytest
from dashboard_fakes import NETWORK_ID, THERMO_SERIAL

from pymerakimt._mqtt import PushMessage
from pymerakimt.exceptions import MerakiDecodeError
from pymerakimt.ingestion.push import (
    PushReconciler,
    build_device_topic,
    decode_payload,
    hardware_address_from_topic,
    metric_from_topic,
)
from pymerakimt.models.capability import AirQuality, Capability
from pymerakimt.models.identity import DeviceIdentity
from pymerakimt.sinks import MerakiSensor
from pymerakimt.state.events import IngestionSource
from pymerakimt.state.registry import DeviceRegistry

THERMO_TOPIC_PREFIX = f"meraki/v1/mt/{NETWORK_ID}/ble/AA:BB:CC:DD:EE:FF"


class RecordingSubscriber:
    def __init__(self) -> None:
        self.subscribed: list[str] = []
        self.unsubscribed: list[str] = []

    def subscribe(self, topic: str) -> None:
        self.subscribed.append(topic)

    def unsubscribe(self, topic: str) -> None:
        self.unsubscribed.append(topic)


def _message(metric: str, payload: Any, prefix: str = THERMO_TOPIC_PREFIX) -> PushMessage:
    raw = payload if isinstance(payload, bytes) else json.dumps(payload).encode()
    return PushMessage(topic=f"{prefix}/{metric}", payload=raw)


@pytest.fixture
def registry(thermo_identity: DeviceIdentity) -> DeviceRegistry:
    registry = DeviceRegistry()
    entry = registry.upsert(
        thermo_identity,
        {Capability.THERMOMETER, Capability.HUMIDITY_SENSOR, Capability.AIR_QUALITY_SENSOR, Capability.BATTERY},
    )
    entry.sink = MerakiSensor(thermo_identity)
    return registry


@pytest.fixture
def reconciler(registry: DeviceRegistry, thermo_identity: DeviceIdentity) -> PushReconciler:
    push = PushReconciler(registry=registry, network_id=NETWORK_ID)
    push.subscribe(thermo_identity)
    return push


def test_device_topic_uses_uppercase_hardware_address() -> None:
    assert build_device_topic("N_1", "aa:bb:cc:dd:ee:ff") == "meraki/v1/mt/N_1/ble/AA:BB:CC:DD:EE:FF/+"


def test_topic_segments() -> None:
    topic = "meraki/v1/mt/N_1/ble/aa:bb:cc:dd:ee:ff/temperature"
    assert metric_from_topic(topic) == "temperature"
    assert hardware_address_from_topic(topic) == "AA:BB:CC:DD:EE:FF"
    assert metric_from_topic("meraki/v1/mt/N_1/ble/AA:BB") is None
    assert hardware_address_from_topic("meraki/v1/mt") is None


def test_decode_payload_rejects_non_objects() -> None:
    assert decode_payload(_message("temperature", {"celsius": 1})) == {"celsius": 1}
    with pytest.raises(MerakiDecodeError):
        decode_payload(_message("temperature", b"{not json"))
    with pytest.raises(MerakiDecodeError):
        decode_payload(_message("temperature", [1, 2]))
    with pytest.raises(MerakiDecodeError):
        decode_payload(_message("temperature", b"\xff\xfe"))


def test_iaq_push_message_classifies_as_poor(registry: DeviceRegistry, reconciler: PushReconciler) -> None:
    assert reconciler.handle_message(_message("iaqIndex", {"iaqIndex": 45})) is True

    entry = registry.lookup(THERMO_SERIAL)
    assert entry is not None
    assert entry.state.air_quality == AirQuality.POOR
    assert entry.state.sources["air_quality"] == IngestionSource.PUSH
    assert entry.sink.air_quality == AirQuality.POOR  # type: ignore[union-attr]


def test_push_message_topic_case_is_ignored(registry: DeviceRegistry, reconciler: PushReconciler) -> None:
    prefix = THERMO_TOPIC_PREFIX.lower().replace("n_1", NETWORK_ID)
    assert reconciler.handle_message(_message("temperature", {"celsius": 19.5}, prefix=prefix)) is True
    assert registry.lookup(THERMO_SERIAL).state.temperature == 19.5  # type: ignore[union-attr]


def test_unknown_metric_and_unknown_device_are_ignored(registry: DeviceRegistry, reconciler: PushReconciler) -> None:
    before = registry.snapshot(THERMO_SERIAL)

    assert reconciler.handle_message(_message("noise", {"level": 40})) is False
    other = f"meraki/v1/mt/{NETWORK_ID}/ble/00:00:00:00:00:01"
    assert reconciler.handle_message(_message("temperature", {"celsius": 30}, prefix=other)) is False
    # Flood is not a capability of this device.
    assert reconciler.handle_message(_message("waterDetection", {"wet": True})) is False

    assert registry.snapshot(THERMO_SERIAL) == before


def test_malformed_payload_is_logged_and_dropped(
    registry: DeviceRegistry,
    reconciler: PushReconciler,
    caplog: pytest.LogCaptureFixture,
) -> None:
    with caplog.at_level(logging.WARNING, logger="pymerakimt.ingestion.push"):
        assert reconciler.handle_message(_message("temperature", b"not-json")) is False

    assert registry.lookup(THERMO_SERIAL).state.temperature is None  # type: ignore[union-attr]
    assert any("malformed push message" in record.getMessage() for record in caplog.records)


@pytest.mark.asyncio
async def test_consumer_keeps_running_after_bad_message(registry: DeviceRegistry, reconciler: PushReconciler) -> None:
    task = asyncio.create_task(reconciler.run())
    try:
        reconciler.deliver(_message("temperature", b"\x00garbage"))
        reconciler.deliver(_message("temperature", {"celsius": 21.0}))
        reconciler.deliver(_message("humidity", {"humidity": 38}))
        await asyncio.wait_for(reconciler.drain(), timeout=1)
    finally:
        task.cancel()

    entry = registry.lookup(THERMO_SERIAL)
    assert entry is not None
    assert entry.state.temperature == 21.0
    assert entry.state.humidity == 38.0
    assert reconciler.pending == 0


@pytest.mark.asyncio
async def test_messages_apply_in_arrival_order(registry: DeviceRegistry, reconciler: PushReconciler) -> None:
    task = asyncio.create_task(reconciler.run())
    try:
        for value in (20.0, 20.5, 21.0, 19.0):
            reconciler.deliver(_message("temperature", {"celsius": value}))
        await asyncio.wait_for(reconciler.drain(), timeout=1)
    finally:
        task.cancel()

    assert registry.lookup(THERMO_SERIAL).state.temperature == 19.0  # type: ignore[union-attr]


def test_subscribe_is_idempotent(registry: DeviceRegistry, thermo_identity: DeviceIdentity) -> None:
    subscriber = RecordingSubscriber()
    push = PushReconciler(registry=registry, network_id=NETWORK_ID, subscriber=subscriber)

    first = push.subscribe(thermo_identity)
    second = push.subscribe(thermo_identity)

    assert first == second == f"{THERMO_TOPIC_PREFIX}/+"
    assert subscriber.subscribed == [first]
    assert push.topics == [first]


def test_device_without_hardware_address_gets_no_topic(registry: DeviceRegistry) -> None:
    identity = DeviceIdentity(serial_number="Q3CA-NOMAC-0009", hardware_address="", model="MT10", display_name="x")
    push = PushReconciler(registry=registry, network_id=NETWORK_ID)

    assert push.subscribe(identity) is None
    assert push.topics == []


def test_attach_replays_known_topics(reconciler: PushReconciler) -> None:
    subscriber = RecordingSubscriber()

    reconciler.attach(subscriber)

    assert subscriber.subscribed == [f"{THERMO_TOPIC_PREFIX}/+"]


def test_close_unsubscribes_everything(reconciler: PushReconciler) -> None:
    subscriber = RecordingSubscriber()
    reconciler.attach(subscriber)

    reconciler.close()

    assert subscriber.unsubscribed == [f"{THERMO_TOPIC_PREFIX}/+"]
    assert reconciler.topics == []
    assert reconciler.handle_message(_message("temperature", {"celsius": 25})) is False


def test_changed_hardware_address_moves_the_subscription(
    registry: DeviceRegistry,
    thermo_identity: DeviceIdentity,
) -> None:
    subscriber = RecordingSubscriber()
    push = PushReconciler(registry=registry, network_id=NETWORK_ID, subscriber=subscriber)
    old_topic = push.subscribe(thermo_identity)

    moved = thermo_identity.model_copy(update={"hardware_address": "aa:bb:cc:00:00:01"})
    new_topic = push.subscribe(moved)

    assert new_topic == f"meraki/v1/mt/{NETWORK_ID}/ble/AA:BB:CC:00:00:01/+"
    assert subscriber.subscribed == [old_topic, new_topic]
    assert subscriber.unsubscribed == [old_topic]
    assert push.topics == [new_topic]

    new_prefix = f"meraki/v1/mt/{NETWORK_ID}/ble/AA:BB:CC:00:00:01"
    assert push.handle_message(_message("temperature", {"celsius": 18.0}, prefix=new_prefix)) is True
    assert push.handle_message(_message("temperature", {"celsius": 30.0})) is False
    assert registry.lookup(THERMO_SERIAL).state.temperature == 18.0  # type: ignore[union-attr]
