"""Pydantic models for Dashboard API payloads and catalog manifests."""

from pymerakimt.models.capability import CAPABILITY_ATTRIBUTES, AirQuality, Capability
from pymerakimt.models.identity import DeviceIdentity
from pymerakimt.models.inventory import InventoryDevice, SensorProfile
from pymerakimt.models.manifest import DeviceInfo, DeviceManifest
from pymerakimt.models.readings import DeviceReadings, ReadingsNetwork

__all__ = [
    "CAPABILITY_ATTRIBUTES",
    "AirQuality",
    "Capability",
    "DeviceIdentity",
    "DeviceInfo",
    "DeviceManifest",
    "DeviceReadings",
    "InventoryDevice",
    "ReadingsNetwork",
    "SensorProfile",
]
