"""pymerakimt - Async reconciliation of Meraki MT sensor telemetry."""

from importlib.metadata import PackageNotFoundError, version

try:
    __version__ = version("pymerakimt")
except PackageNotFoundError:
    __version__ = "0+local"
from pymerakimt.client import MerakiMtClient
from pymerakimt.config import MerakiConfig
from pymerakimt.exceptions import (
    MerakiApiError,
    MerakiConfigError,
    MerakiDecodeError,
    MerakiError,
    MerakiTransportError,
    MerakiUnsupportedOperationError,
)
from pymerakimt.ingestion.discovery import DiscoveryResult
from pymerakimt.models import (
    CAPABILITY_ATTRIBUTES,
    AirQuality,
    Capability,
    DeviceIdentity,
    DeviceInfo,
    DeviceManifest,
)
from pymerakimt.sinks import DeviceCatalog, DeviceStateSink, InMemoryDeviceCatalog, MerakiSensor
from pymerakimt.state.registry import CanonicalState, DeviceRegistry, RegistryEntry

__all__ = [
    "__version__",
    "CAPABILITY_ATTRIBUTES",
    "AirQuality",
    "CanonicalState",
    "Capability",
    "DeviceCatalog",
    "DeviceIdentity",
    "DeviceInfo",
    "DeviceManifest",
    "DeviceRegistry",
    "DeviceStateSink",
    "DiscoveryResult",
    "InMemoryDeviceCatalog",
    "MerakiApiError",
    "MerakiConfig",
    "MerakiConfigError",
    "MerakiDecodeError",
    "MerakiError",
    "MerakiMtClient",
    "MerakiSensor",
    "MerakiTransportError",
    "MerakiUnsupportedOperationError",
    "RegistryEntry",
]
