"""High-level async client reconciling Meraki MT sensor telemetry."""

from __future__ import annotations

import asyncio
import contextlib
import logging
from collections.abc import Awaitable, Callable
from typing import Any

import aiohttp

from pymerakimt._mqtt import MerakiMqttRuntime, PushMessage, parse_broker
from pymerakimt._transport import HttpTransport, Transport
from pymerakimt.config import MerakiConfig
from pymerakimt.exceptions import MerakiError
from pymerakimt.ingestion.discovery import DiscoveryCoordinator, DiscoveryResult, SinkFactory
from pymerakimt.ingestion.polling import PollingReconciler
from pymerakimt.ingestion.push import PushReconciler
from pymerakimt.models.identity import DeviceIdentity
from pymerakimt.sinks import DeviceCatalog, InMemoryDeviceCatalog, MerakiSensor, StateListener
from pymerakimt.state.registry import DeviceRegistry, DeviceStateSink, RegistryEntry

_logger = logging.getLogger(__name__)


class MerakiMtClient:
    """Async client tracking every MT sensor of one network.

    Usage::

        async with MerakiMtClient(config) as client:
            await client.start()
            ...

    ``start()`` discovers devices once, then keeps three tasks running:
    periodic rediscovery, periodic polling and the push-feed consumer.
    """

    def __init__(
        self,
        config: MerakiConfig,
        *,
        session: aiohttp.ClientSession | None = None,
        transport: Transport | None = None,
        catalog: DeviceCatalog | None = None,
        sink_factory: SinkFactory | None = None,
        on_state_change: StateListener | None = None,
    ) -> None:
        config.validate()
        self._config = config
        self._external_session = session is not None
        self._http_session = session
        self._transport: Transport | None = transport
        self._external_transport = transport is not None
        self._catalog: DeviceCatalog = catalog if catalog is not None else InMemoryDeviceCatalog()
        self._on_state_change = on_state_change
        self._sink_factory: SinkFactory = sink_factory or self._default_sink
        self._registry = DeviceRegistry()
        self._loop: asyncio.AbstractEventLoop | None = None
        self._mqtt_runtime: MerakiMqttRuntime | None = None
        self._push: PushReconciler | None = None
        self._polling: PollingReconciler | None = None
        self._discovery: DiscoveryCoordinator | None = None
        self._tasks: list[asyncio.Task[None]] = []

    # ------------------------------------------------------------------
    # Context manager lifecycle
    # ------------------------------------------------------------------

    async def __aenter__(self) -> MerakiMtClient:
        self._loop = asyncio.get_running_loop()
        if self._transport is None:
            if self._http_session is None:
                self._http_session = aiohttp.ClientSession()
            self._transport = HttpTransport(self._config, self._http_session)

        self._push = PushReconciler(registry=self._registry, network_id=self._config.network_id)
        self._polling = PollingReconciler(config=self._config, transport=self._transport, registry=self._registry)
        self._discovery = DiscoveryCoordinator(
            config=self._config,
            transport=self._transport,
            registry=self._registry,
            catalog=self._catalog,
            sink_factory=self._sink_factory,
            push=self._push,
        )
        return self

    async def __aexit__(self, *exc: Any) -> None:
        await self.close()

    async def close(self) -> None:
        """Cancel running tasks, unsubscribe and release the HTTP session."""
        tasks, self._tasks = self._tasks, []
        for task in tasks:
            task.cancel()
        for task in tasks:
            with contextlib.suppress(asyncio.CancelledError):
                await task

        if self._push is not None:
            self._push.close()
        self._stop_mqtt()

        if not self._external_session and self._http_session is not None:
            await self._http_session.close()
            self._http_session = None
        if not self._external_transport:
            self._transport = None
        self._loop = None

    # ------------------------------------------------------------------
    # Accessors
    # ------------------------------------------------------------------

    @property
    def config(self) -> MerakiConfig:
        return self._config

    @property
    def registry(self) -> DeviceRegistry:
        return self._registry

    @property
    def catalog(self) -> DeviceCatalog:
        return self._catalog

    @property
    def push(self) -> PushReconciler:
        if self._push is None:
            raise MerakiError("Client not initialized. Use 'async with MerakiMtClient(...) as client:'")
        return self._push

    def get_device(self, serial: str) -> RegistryEntry | None:
        return self._registry.lookup(serial)

    def _default_sink(self, identity: DeviceIdentity) -> DeviceStateSink:
        listeners = [self._on_state_change] if self._on_state_change is not None else []
        return MerakiSensor(identity, listeners=listeners)

    def _require_discovery(self) -> DiscoveryCoordinator:
        if self._discovery is None:
            raise MerakiError("Client not initialized. Use 'async with MerakiMtClient(...) as client:'")
        return self._discovery

    def _require_polling(self) -> PollingReconciler:
        if self._polling is None:
            raise MerakiError("Client not initialized. Use 'async with MerakiMtClient(...) as client:'")
        return self._polling

    # ------------------------------------------------------------------
    # One-shot operations
    # ------------------------------------------------------------------

    async def discover(self) -> DiscoveryResult:
        """Run one discovery cycle."""
        return await self._require_discovery().discover()

    async def poll(self) -> int:
        """Run one polling tick; returns the number of applied updates."""
        return await self._require_polling().poll_once()

    # ------------------------------------------------------------------
    # Long-running operation
    # ------------------------------------------------------------------

    async def start(self) -> None:
        """Discover devices, then start the periodic and push tasks.

        A failed initial discovery is logged and retried by the periodic
        discovery task straight away instead of after a full interval.
        """
        if self._tasks:
            return
        discovery = self._require_discovery()
        discovered = True
        try:
            await discovery.discover()
        except MerakiError as exc:
            _logger.warning("Initial discovery failed: %s", exc)
            discovered = False

        self._ensure_mqtt_started()
        self._tasks = [
            asyncio.create_task(
                self._run_periodic("discovery", self._config.discovery_interval, discovery.discover, delay_first=discovered),
                name="pymerakimt-discovery",
            ),
            asyncio.create_task(
                self._run_periodic("poll", self._config.poll_interval, self.poll),
                name="pymerakimt-poll",
            ),
            asyncio.create_task(self.push.run(), name="pymerakimt-push"),
        ]

    async def _run_periodic(
        self,
        name: str,
        interval: float,
        fn: Callable[[], Awaitable[Any]],
        *,
        delay_first: bool = False,
    ) -> None:
        if delay_first:
            await asyncio.sleep(interval)
        while True:
            try:
                await fn()
            except MerakiError as exc:
                _logger.warning("%s cycle abandoned: %s", name, exc)
            except Exception:
                _logger.exception("%s cycle failed unexpectedly", name)
            await asyncio.sleep(interval)

    # ------------------------------------------------------------------
    # MQTT
    # ------------------------------------------------------------------

    def _ensure_mqtt_started(self) -> None:
        """Best-effort MQTT startup (failures must not break the polling feed)."""
        if not self._config.mqtt_enabled:
            return
        if self._mqtt_runtime is not None and self._mqtt_runtime.is_running:
            return
        loop = self._loop or asyncio.get_running_loop()
        push = self.push
        try:
            runtime = MerakiMqttRuntime(
                loop=loop,
                on_message=self._on_push_message,
                client_id=f"merakimt/{self._config.network_id}",
                keepalive=self._config.mqtt_keepalive,
                logger=_logger,
            )
            runtime.start(parse_broker(self._config.broker))
            self._mqtt_runtime = runtime
            push.attach(runtime)
        except Exception:
            _logger.warning("MQTT startup failed; continuing with polling only", exc_info=True)

    def _on_push_message(self, message: PushMessage) -> None:
        """Called on the event loop via ``call_soon_threadsafe``."""
        if self._push is not None:
            self._push.deliver(message)

    def _stop_mqtt(self) -> None:
        runtime = self._mqtt_runtime
        self._mqtt_runtime = None
        if runtime is not None:
            runtime.stop()
