"""Sensor inventory endpoint: /organizations/{orgId}/devices."""

from __future__ import annotations

from pymerakimt._api._common import network_scope, parse_items, require_list
from pymerakimt._constants import SENSOR_PRODUCT_TYPE
from pymerakimt._transport import Transport
from pymerakimt.config import MerakiConfig
from pymerakimt.models.inventory import InventoryDevice


async def fetch_sensor_devices(config: MerakiConfig, transport: Transport) -> list[InventoryDevice]:
    """Fetch the sensor-class devices of the configured network."""
    endpoint = f"organizations/{config.org_id}/devices"
    params = [("productTypes[]", SENSOR_PRODUCT_TYPE), *network_scope(config)]
    body = await transport.get_json(endpoint, params)
    return parse_items(require_list(body, endpoint), InventoryDevice, endpoint)
