"""Sensor capabilities and the air-quality category scale."""

from __future__ import annotations

from enum import StrEnum


class Capability(StrEnum):
    """A sensing function a device exposes.

    Declaration order is the order interfaces are reported to the device
    catalog; ``BATTERY`` always comes last.
    """

    THERMOMETER = "Thermometer"
    HUMIDITY_SENSOR = "HumiditySensor"
    FLOOD_SENSOR = "FloodSensor"
    BINARY_SENSOR = "BinarySensor"
    AIR_QUALITY_SENSOR = "AirQualitySensor"
    PM25_SENSOR = "PM25Sensor"
    VOC_SENSOR = "VOCSensor"
    BATTERY = "Battery"


class AirQuality(StrEnum):
    """Five-level air-quality category plus ``UNKNOWN``."""

    UNKNOWN = "Unknown"
    EXCELLENT = "Excellent"
    GOOD = "Good"
    FAIR = "Fair"
    POOR = "Poor"
    INFERIOR = "Inferior"


#: Canonical state attribute written for each capability.
CAPABILITY_ATTRIBUTES: dict[Capability, str] = {
    Capability.THERMOMETER: "temperature",
    Capability.HUMIDITY_SENSOR: "humidity",
    Capability.FLOOD_SENSOR: "flooded",
    Capability.BINARY_SENSOR: "binary_state",
    Capability.AIR_QUALITY_SENSOR: "air_quality",
    Capability.PM25_SENSOR: "pm25_density",
    Capability.VOC_SENSOR: "voc_density",
    Capability.BATTERY: "battery_level",
}
