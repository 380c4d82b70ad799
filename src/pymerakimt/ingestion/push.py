"""Push feed reconciliation.

Each known device gets one topic subscription derived from its hardware
address. Inbound messages are queued in arrival order and applied by a
single long-lived consumer task, which keeps per-device ordering.
"""

from __future__ import annotations

import asyncio
import json
import logging
from typing import Any, Protocol

from pymerakimt._constants import MQTT_TOPIC_TEMPLATE, TOPIC_MAC_SEGMENT, TOPIC_METRIC_SEGMENT
from pymerakimt._mqtt import PushMessage
from pymerakimt.exceptions import MerakiDecodeError
from pymerakimt.ingestion.normalize import PUSH_METRICS, normalize_push_message
from pymerakimt.models.identity import DeviceIdentity
from pymerakimt.state.events import IngestionSource
from pymerakimt.state.registry import DeviceRegistry

_logger = logging.getLogger(__name__)


class PushSubscriber(Protocol):
    def subscribe(self, topic: str) -> None: ...

    def unsubscribe(self, topic: str) -> None: ...


def build_device_topic(network_id: str, hardware_address: str) -> str:
    return MQTT_TOPIC_TEMPLATE.format(network_id=network_id, mac=hardware_address.upper())


def _topic_segment(topic: str, index: int) -> str | None:
    parts = topic.split("/")
    if len(parts) <= index or not parts[index]:
        return None
    return parts[index]


def metric_from_topic(topic: str) -> str | None:
    return _topic_segment(topic, TOPIC_METRIC_SEGMENT)


def hardware_address_from_topic(topic: str) -> str | None:
    mac = _topic_segment(topic, TOPIC_MAC_SEGMENT)
    return mac.upper() if mac else None


def decode_payload(message: PushMessage) -> dict[str, Any]:
    """Decode a push payload into a JSON object."""
    try:
        decoded = json.loads(message.payload.decode("utf-8"))
    except (UnicodeDecodeError, ValueError) as exc:
        raise MerakiDecodeError(f"Payload on {message.topic} is not JSON: {exc}", topic=message.topic) from exc
    if not isinstance(decoded, dict):
        raise MerakiDecodeError(f"Payload on {message.topic} is not a JSON object", topic=message.topic)
    return decoded


class PushReconciler:
    """Applies MQTT messages to the registry."""

    def __init__(
        self,
        *,
        registry: DeviceRegistry,
        network_id: str,
        subscriber: PushSubscriber | None = None,
    ) -> None:
        self._registry = registry
        self._network_id = network_id
        self._subscriber = subscriber
        self._queue: asyncio.Queue[PushMessage] = asyncio.Queue()
        # Upper-cased hardware address -> serial number.
        self._serial_by_mac: dict[str, str] = {}
        self._topics: dict[str, str] = {}

    @property
    def topics(self) -> list[str]:
        return list(self._topics.values())

    def attach(self, subscriber: PushSubscriber) -> None:
        """Use *subscriber* and replay every known topic onto it."""
        self._subscriber = subscriber
        for topic in self._topics.values():
            subscriber.subscribe(topic)

    def subscribe(self, identity: DeviceIdentity) -> str | None:
        """Make sure *identity* has a topic subscription. Idempotent."""
        mac = identity.normalized_hardware_address
        if not mac:
            _logger.debug("Device %s has no hardware address; push feed unavailable", identity.serial_number)
            return None
        topic = build_device_topic(self._network_id, mac)
        previous = self._topics.get(identity.serial_number)
        if previous == topic:
            return topic
        if previous is not None:
            # Hardware address changed since the last discovery.
            stale_mac = hardware_address_from_topic(previous)
            if stale_mac is not None:
                self._serial_by_mac.pop(stale_mac, None)
            if self._subscriber is not None:
                self._subscriber.unsubscribe(previous)

        self._serial_by_mac[mac] = identity.serial_number
        self._topics[identity.serial_number] = topic
        if self._subscriber is not None:
            self._subscriber.subscribe(topic)
        return topic

    def deliver(self, message: PushMessage) -> None:
        """Queue *message*. Must be called on the event loop thread."""
        self._queue.put_nowait(message)

    @property
    def pending(self) -> int:
        return self._queue.qsize()

    def handle_message(self, message: PushMessage) -> bool:
        """Decode, normalize and apply one message.

        Returns ``True`` when the registry accepted an update. Malformed
        payloads are logged and dropped; unknown metrics and devices are
        ignored.
        """
        metric = metric_from_topic(message.topic)
        mac = hardware_address_from_topic(message.topic)
        if metric is None or mac is None:
            _logger.debug("Ignoring message on unexpected topic %s", message.topic)
            return False

        serial = self._serial_by_mac.get(mac)
        if serial is None or metric not in PUSH_METRICS:
            return False

        try:
            payload = decode_payload(message)
        except MerakiDecodeError as exc:
            _logger.warning("Dropping malformed push message: %s", exc)
            return False

        _logger.debug("[%s] MQTT: %s %s", serial, metric, payload)
        update = normalize_push_message(metric, payload)
        if update is None:
            return False
        return self._registry.apply(serial, update, source=IngestionSource.PUSH)

    async def run(self) -> None:
        """Consume queued messages until cancelled."""
        while True:
            message = await self._queue.get()
            try:
                self.handle_message(message)
            except Exception:
                _logger.exception("Unexpected failure handling push message on %s", message.topic)
            finally:
                self._queue.task_done()

    async def drain(self) -> None:
        """Wait until every queued message has been handled."""
        await self._queue.join()

    def close(self) -> None:
        """Unsubscribe every device topic."""
        subscriber = self._subscriber
        if subscriber is not None:
            for topic in self._topics.values():
                subscriber.unsubscribe(topic)
        self._topics.clear()
        self._serial_by_mac.clear()
