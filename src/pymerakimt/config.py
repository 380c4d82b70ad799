"""Client configuration for pymerakimt."""

from __future__ import annotations

import dataclasses
import os
from typing import Any

from pymerakimt._constants import BASE_URL, DEFAULT_MQTT_BROKER, DEFAULT_REQUEST_TIMEOUT
from pymerakimt.exceptions import MerakiConfigError


def _env_bool(value: str | None, default: bool) -> bool:
    if value is None:
        return default
    normalized = value.strip().lower()
    if normalized in {"1", "true", "yes", "y", "on"}:
        return True
    if normalized in {"0", "false", "no", "n", "off"}:
        return False
    return default


@dataclasses.dataclass(frozen=True)
class MerakiConfig:
    """Client configuration.

    Parameters
    ----------
    api_key : str
        Meraki Dashboard API key.
    org_id : str
        Organization whose sensors are tracked.
    network_id : str
        Network scope for inventory, readings and MQTT topics.
    base_url : str
        Dashboard API base URL.
    mqtt_broker : str
        Broker the MT gateways publish to. Accepts ``mqtt://host:port``,
        ``mqtts://host:port`` or a bare ``host[:port]``. Empty falls back
        to ``mqtt://localhost:1883``.
    mqtt_enabled : bool
        Subscribe to the push feed in addition to REST polling.
    mqtt_keepalive : int
        MQTT keepalive in seconds.
    request_timeout : float
        Upper bound in seconds for a single REST call.
    poll_interval : float
        Seconds between latest-readings polls.
    discovery_interval : float
        Seconds between inventory rediscoveries.
    api_trace_enabled : bool
        Log every REST request/response at DEBUG level (API key redacted).
    """

    api_key: str
    org_id: str
    network_id: str
    base_url: str = BASE_URL
    mqtt_broker: str = DEFAULT_MQTT_BROKER
    mqtt_enabled: bool = True
    mqtt_keepalive: int = 60
    request_timeout: float = DEFAULT_REQUEST_TIMEOUT
    poll_interval: float = 60.0
    discovery_interval: float = 3600.0
    api_trace_enabled: bool = False

    @property
    def broker(self) -> str:
        """Broker address with the local default applied."""
        value = (self.mqtt_broker or "").strip()
        return value or DEFAULT_MQTT_BROKER

    def validate(self) -> None:
        """Raise :class:`MerakiConfigError` when a required setting is missing."""
        missing = [
            name
            for name in ("api_key", "org_id", "network_id")
            if not str(getattr(self, name) or "").strip()
        ]
        if missing:
            raise MerakiConfigError(f"Missing required setting(s): {', '.join(missing)}")
        if self.poll_interval <= 0 or self.discovery_interval <= 0:
            raise MerakiConfigError("poll_interval and discovery_interval must be positive")
        if self.request_timeout <= 0:
            raise MerakiConfigError("request_timeout must be positive")

    @classmethod
    def from_env(cls, **overrides: Any) -> MerakiConfig:
        """Create configuration from ``MERAKI_*`` environment variables.

        Explicit keyword arguments override environment values.
        """
        env = os.environ

        _ENV_CONFIG_MAP = {
            "MERAKI_API_KEY": "api_key",
            "MERAKI_ORG_ID": "org_id",
            "MERAKI_NETWORK_ID": "network_id",
            "MERAKI_BASE_URL": "base_url",
            "MERAKI_MQTT_BROKER": "mqtt_broker",
        }
        config_kwargs: dict[str, Any] = {"api_key": "", "org_id": "", "network_id": ""}
        for env_key, field_name in _ENV_CONFIG_MAP.items():
            val = env.get(env_key)
            if val is not None:
                config_kwargs[field_name] = val

        _ENV_FLOAT_MAP = {
            "MERAKI_REQUEST_TIMEOUT": "request_timeout",
            "MERAKI_POLL_INTERVAL": "poll_interval",
            "MERAKI_DISCOVERY_INTERVAL": "discovery_interval",
        }
        for env_key, field_name in _ENV_FLOAT_MAP.items():
            val = env.get(env_key)
            if val is not None and field_name not in overrides:
                config_kwargs[field_name] = float(val)

        keepalive_env = env.get("MERAKI_MQTT_KEEPALIVE")
        if keepalive_env is not None and "mqtt_keepalive" not in overrides:
            config_kwargs["mqtt_keepalive"] = int(keepalive_env)

        if "mqtt_enabled" not in overrides:
            config_kwargs["mqtt_enabled"] = _env_bool(env.get("MERAKI_MQTT_ENABLED"), True)

        if "api_trace_enabled" not in overrides:
            config_kwargs["api_trace_enabled"] = _env_bool(
                env.get("MERAKI_API_TRACE_ENABLED"),
                False,
            )

        config_kwargs.update(overrides)

        return cls(**config_kwargs)
