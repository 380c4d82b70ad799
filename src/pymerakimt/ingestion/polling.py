"""Polling feed reconciliation.

One tick fetches the latest readings for every sensor in the network in a
single call and applies them. The fetch completes before the registry is
touched, so a failed or timed-out tick leaves state as it was.
"""

from __future__ import annotations

import logging

from pymerakimt._api.readings import fetch_latest_readings
from pymerakimt._transport import Transport
from pymerakimt.config import MerakiConfig
from pymerakimt.ingestion.normalize import normalize_poll_reading
from pymerakimt.state.events import IngestionSource
from pymerakimt.state.registry import DeviceRegistry

_logger = logging.getLogger(__name__)


class PollingReconciler:
    def __init__(self, *, config: MerakiConfig, transport: Transport, registry: DeviceRegistry) -> None:
        self._config = config
        self._transport = transport
        self._registry = registry

    async def poll_once(self) -> int:
        """Run one tick. Returns the number of attribute updates applied."""
        blocks = await fetch_latest_readings(self._config, self._transport)

        applied = 0
        for block in blocks:
            # Devices outside the registry (undiscovered or out of scope) are skipped.
            if self._registry.lookup(block.serial) is None:
                continue
            for reading in block.readings:
                _logger.debug("[%s] API: %s %s", block.serial, reading.get("metric"), reading)
                update = normalize_poll_reading(reading)
                if update is None:
                    continue
                if self._registry.apply(block.serial, update, source=IngestionSource.POLL):
                    applied += 1
        return applied
