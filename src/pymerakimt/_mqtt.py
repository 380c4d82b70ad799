"""Internal MQTT runtime for the push feed.

MT gateways publish every sensor metric to
``meraki/v1/mt/{networkId}/ble/{MAC}/{metric}`` on a broker configured in
the Dashboard. One paho client multiplexes the topics of all devices.
"""

from __future__ import annotations

import asyncio
import logging
import threading
from collections.abc import Callable
from dataclasses import dataclass
from typing import Any, cast

import paho.mqtt.client as mqtt

from pymerakimt._constants import DEFAULT_MQTT_BROKER, MQTT_PORT, MQTT_TLS_PORT


@dataclass(frozen=True)
class BrokerAddress:
    host: str
    port: int
    tls: bool = False


@dataclass(frozen=True)
class PushMessage:
    """An inbound MQTT message, not yet decoded."""

    topic: str
    payload: bytes


def parse_broker(raw_broker: str | None) -> BrokerAddress:
    """Parse ``mqtt://host:port``, ``mqtts://host:port`` or ``host[:port]``."""
    value = (raw_broker or "").strip() or DEFAULT_MQTT_BROKER

    tls = False
    if "://" in value:
        scheme, value = value.split("://", 1)
        tls = scheme.lower() in {"mqtts", "ssl", "tls"}
    if "/" in value:
        value = value.split("/", 1)[0]
    if not value:
        raise ValueError(f"Broker value has no host: {raw_broker!r}")

    default_port = MQTT_TLS_PORT if tls else MQTT_PORT
    host, _, maybe_port = value.rpartition(":")
    if host and maybe_port.isdigit():
        return BrokerAddress(host=host, port=int(maybe_port), tls=tls)
    return BrokerAddress(host=value, port=default_port, tls=tls)


class MerakiMqttRuntime:
    """Threaded paho-mqtt runtime that hands messages to an asyncio loop.

    Subscriptions are remembered and replayed on every (re)connect, so a
    broker restart or network drop is recovered without rediscovery.
    """

    def __init__(
        self,
        *,
        loop: asyncio.AbstractEventLoop,
        on_message: Callable[[PushMessage], None],
        client_id: str,
        keepalive: int = 60,
        logger: logging.Logger | None = None,
    ) -> None:
        self._loop = loop
        self._on_message = on_message
        self._client_id = client_id
        self._keepalive = keepalive
        self._logger = logger or logging.getLogger(__name__)
        self._client: mqtt.Client | None = None
        self._running = False
        self._connected = False
        self._topics: set[str] = set()
        self._lock = threading.Lock()

    @property
    def is_running(self) -> bool:
        """Whether the MQTT runtime is actively running."""
        return self._running

    @property
    def topics(self) -> frozenset[str]:
        with self._lock:
            return frozenset(self._topics)

    def subscribe(self, topic: str) -> None:
        """Remember *topic* and subscribe now if connected."""
        with self._lock:
            if topic in self._topics:
                return
            self._topics.add(topic)
            client = self._client if self._connected else None
        if client is not None:
            self._logger.debug("MQTT subscribing topic=%s", topic)
            client.subscribe(topic, qos=0)

    def unsubscribe(self, topic: str) -> None:
        with self._lock:
            if topic not in self._topics:
                return
            self._topics.discard(topic)
            client = self._client if self._connected else None
        if client is not None:
            self._logger.debug("MQTT unsubscribing topic=%s", topic)
            client.unsubscribe(topic)

    def start(self, broker: BrokerAddress) -> None:
        """Start the network loop; connection happens in the background."""
        self.stop()
        self._logger.debug(
            "MQTT runtime start requested host=%s port=%s tls=%s client_id=%s",
            broker.host,
            broker.port,
            broker.tls,
            self._client_id,
        )

        client = mqtt.Client(
            callback_api_version=cast(Any, mqtt).CallbackAPIVersion.VERSION2,
            client_id=self._client_id,
            protocol=mqtt.MQTTv311,
        )
        client.enable_logger(self._logger)
        client.reconnect_delay_set(min_delay=1, max_delay=60)
        if broker.tls:
            client.tls_set()

        def on_connect(
            c: mqtt.Client,
            _userdata: Any,
            _flags: Any,
            reason_code: Any,
            _properties: Any,
        ) -> None:
            if reason_code.value != 0:
                self._logger.warning("MQTT connect failed: %s", reason_code)
                return
            with self._lock:
                self._connected = True
                topics = sorted(self._topics)
            self._logger.info("MQTT connected to %s:%s, subscribing %d topic(s)", broker.host, broker.port, len(topics))
            for topic in topics:
                c.subscribe(topic, qos=0)

        def on_message(_c: mqtt.Client, _userdata: Any, msg: mqtt.MQTTMessage) -> None:
            message = PushMessage(topic=msg.topic, payload=bytes(msg.payload))
            try:
                self._loop.call_soon_threadsafe(self._on_message, message)
            except RuntimeError:
                # Event loop already closed during shutdown.
                self._logger.debug("Dropping MQTT message for closed loop topic=%s", msg.topic)

        def on_disconnect(
            _client: mqtt.Client,
            _userdata: Any,
            _disconnect_flags: Any,
            reason_code: Any,
            _properties: Any,
        ) -> None:
            with self._lock:
                self._connected = False
            if self._running:
                self._logger.warning("MQTT disconnected: %s (reconnecting)", reason_code)

        client.on_connect = on_connect
        client.on_message = on_message
        client.on_disconnect = on_disconnect

        client.connect_async(broker.host, broker.port, keepalive=self._keepalive)
        client.loop_start()

        self._client = client
        self._running = True
        self._logger.debug("MQTT network loop started")

    def stop(self) -> None:
        """Unsubscribe, disconnect and stop the network loop."""
        client = self._client
        self._client = None
        was_running = self._running
        self._running = False
        with self._lock:
            connected = self._connected
            self._connected = False
            topics = sorted(self._topics)

        if client is None:
            return
        try:
            if was_running and connected:
                if topics:
                    self._logger.debug("MQTT unsubscribing %d topic(s)", len(topics))
                    client.unsubscribe(topics)
                self._logger.debug("MQTT disconnect requested")
                client.disconnect()
        finally:
            client.loop_stop()
            self._logger.debug("MQTT network loop stopped")
