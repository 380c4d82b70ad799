from __future__ import annotations

import pytest
from dashboard_fakes import NETWORK_ID, ORG_ID, THERMO_MAC, THERMO_SERIAL, FakeDashboard

from pymerakimt.config import MerakiConfig
from pymerakimt.models.identity import DeviceIdentity


@pytest.fixture
def config() -> MerakiConfig:
    return MerakiConfig(
        api_key="test-api-key",
        org_id=ORG_ID,
        network_id=NETWORK_ID,
        mqtt_enabled=False,
        poll_interval=3600.0,
        discovery_interval=3600.0,
    )


@pytest.fixture
def dashboard() -> FakeDashboard:
    return FakeDashboard()


@pytest.fixture
def thermo_identity() -> DeviceIdentity:
    return DeviceIdentity(
        serial_number=THERMO_SERIAL,
        hardware_address=THERMO_MAC,
        model="MT10",
        display_name="Server room",
    )
