"""Latest sensor readings models.

Individual readings stay as raw dicts: their shape depends on the metric
and is checked by :mod:`pymerakimt.ingestion.normalize`, which can drop a
single malformed reading without rejecting the whole device block.
"""

from __future__ import annotations

from typing import Any

from pydantic import Field, field_validator

from pymerakimt.models._base import MerakiBaseModel


class ReadingsNetwork(MerakiBaseModel):
    id: str = ""
    name: str = ""


class DeviceReadings(MerakiBaseModel):
    """One device block from ``/organizations/{orgId}/sensor/readings/latest``."""

    serial: str
    network: ReadingsNetwork = Field(default_factory=ReadingsNetwork)
    readings: list[dict[str, Any]] = Field(default_factory=list)

    @field_validator("readings", mode="before")
    @classmethod
    def _keep_dict_readings(cls, value: Any) -> list[dict[str, Any]]:
        if not isinstance(value, list):
            return []
        return [item for item in value if isinstance(item, dict)]
