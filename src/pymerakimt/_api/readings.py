"""Latest readings endpoint: /organizations/{orgId}/sensor/readings/latest."""

from __future__ import annotations

from pymerakimt._api._common import network_scope, parse_items, require_list
from pymerakimt._transport import Transport
from pymerakimt.config import MerakiConfig
from pymerakimt.models.readings import DeviceReadings


async def fetch_latest_readings(config: MerakiConfig, transport: Transport) -> list[DeviceReadings]:
    """Fetch the latest reading of every metric for every sensor in scope."""
    endpoint = f"organizations/{config.org_id}/sensor/readings/latest"
    body = await transport.get_json(endpoint, network_scope(config))
    return parse_items(require_list(body, endpoint), DeviceReadings, endpoint)
