"""Device discovery.

Fetches the sensor inventory, derives each device's capabilities, upserts
the registry, publishes the device list to the catalog in one call, and
wires up state sinks and push subscriptions.
"""

from __future__ import annotations

import logging
from collections.abc import Callable
from dataclasses import dataclass, field

from pydantic import ValidationError

from pymerakimt._api.inventory import fetch_sensor_devices
from pymerakimt._transport import Transport
from pymerakimt.config import MerakiConfig
from pymerakimt.ingestion.capabilities import classify_capabilities, is_sensor_device, ordered_interfaces
from pymerakimt.ingestion.push import PushReconciler
from pymerakimt.models.capability import Capability
from pymerakimt.models.identity import DeviceIdentity
from pymerakimt.models.manifest import DeviceInfo, DeviceManifest
from pymerakimt.sinks import DeviceCatalog
from pymerakimt.state.registry import DeviceRegistry, DeviceStateSink, RegistryEntry

_logger = logging.getLogger(__name__)

SinkFactory = Callable[[DeviceIdentity], DeviceStateSink]


@dataclass
class DiscoveryResult:
    added: list[str] = field(default_factory=list)
    updated: list[str] = field(default_factory=list)
    skipped: list[str] = field(default_factory=list)
    manifests: list[DeviceManifest] = field(default_factory=list)


def build_manifest(entry: RegistryEntry) -> DeviceManifest:
    identity = entry.identity
    return DeviceManifest(
        native_id=identity.serial_number,
        name=identity.display_name,
        info=DeviceInfo(model=identity.model, serial_number=identity.serial_number),
        interfaces=ordered_interfaces(entry.capabilities),
    )


class DiscoveryCoordinator:
    def __init__(
        self,
        *,
        config: MerakiConfig,
        transport: Transport,
        registry: DeviceRegistry,
        catalog: DeviceCatalog,
        sink_factory: SinkFactory | None = None,
        push: PushReconciler | None = None,
    ) -> None:
        self._config = config
        self._transport = transport
        self._registry = registry
        self._catalog = catalog
        self._sink_factory = sink_factory
        self._push = push

    async def discover(self) -> DiscoveryResult:
        """Run one discovery cycle.

        Transport errors propagate before anything is registered.
        """
        devices = await fetch_sensor_devices(self._config, self._transport)
        result = DiscoveryResult()
        staged: dict[str, tuple[DeviceIdentity, frozenset[Capability]]] = {}

        for device in devices:
            if not is_sensor_device(device.product_type):
                _logger.debug("Skipping non-sensor device %s (%s)", device.serial, device.product_type)
                result.skipped.append(device.serial)
                continue

            _logger.info(
                "Discovered %s (%s) %s %s",
                device.name or device.serial,
                device.model,
                device.mac,
                device.metrics,
            )
            capabilities = classify_capabilities(device.metrics)
            if not capabilities:
                _logger.info("%s No interfaces matched.", device.serial)
                result.skipped.append(device.serial)
                continue

            try:
                identity = device.to_identity()
            except ValidationError as exc:
                _logger.debug("Skipping device %r with unusable identity: %s", device.serial, exc)
                result.skipped.append(device.serial)
                continue
            if device.serial in staged:
                capabilities = capabilities | staged[device.serial][1]
            staged[device.serial] = (identity, capabilities)

        # Nothing is registered until every device of the cycle has been classified.
        entries: dict[str, RegistryEntry] = {}
        for serial, (identity, capabilities) in staged.items():
            (result.updated if serial in self._registry else result.added).append(serial)
            entries[serial] = self._registry.upsert(identity, capabilities)

        result.manifests = [build_manifest(entry) for entry in entries.values()]
        await self._catalog.on_devices_changed(result.manifests)

        for entry in entries.values():
            if entry.sink is None and self._sink_factory is not None:
                entry.sink = self._sink_factory(entry.identity)
            if self._push is not None:
                self._push.subscribe(entry.identity)

        _logger.info(
            "Discovery finished: %d added, %d updated, %d skipped",
            len(result.added),
            len(result.updated),
            len(result.skipped),
        )
        return result
