"""Capability discovery from a device's declared metric list."""

from __future__ import annotations

from collections.abc import Iterable

from pymerakimt._constants import SENSOR_PRODUCT_TYPE
from pymerakimt.models.capability import Capability

# Declared metric name -> capability granted.
_METRIC_CAPABILITIES: dict[str, Capability] = {
    "temperature": Capability.THERMOMETER,
    "humidity": Capability.HUMIDITY_SENSOR,
    "water": Capability.FLOOD_SENSOR,
    "door": Capability.BINARY_SENSOR,
    "indoorAirQuality": Capability.AIR_QUALITY_SENSOR,
    "pm25": Capability.PM25_SENSOR,
    "tvoc": Capability.VOC_SENSOR,
}

_ORDER: dict[Capability, int] = {cap: index for index, cap in enumerate(Capability)}


def is_sensor_device(product_type: str | None) -> bool:
    """Whether an inventory entry belongs to the sensor product class.

    Entries without a product type are accepted: the inventory request is
    already filtered to ``productTypes[]=sensor``.
    """
    if not product_type:
        return True
    return product_type.strip().lower() == SENSOR_PRODUCT_TYPE


def classify_capabilities(metrics: Iterable[str]) -> frozenset[Capability]:
    """Derive the capability set from declared metric names.

    Unknown metric names are ignored. Battery is granted to every device
    that matched at least one base metric; a device matching none gets an
    empty set and must not be registered.
    """
    matched = {_METRIC_CAPABILITIES[name] for name in metrics if name in _METRIC_CAPABILITIES}
    if not matched:
        return frozenset()
    matched.add(Capability.BATTERY)
    return frozenset(matched)


def ordered_interfaces(capabilities: Iterable[Capability]) -> list[Capability]:
    """Capabilities in catalog order (declaration order, Battery last)."""
    return sorted(set(capabilities), key=_ORDER.__getitem__)
