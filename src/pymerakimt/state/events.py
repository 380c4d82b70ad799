"""Normalized attribute updates.

Both feeds convert their raw readings into :class:`AttributeUpdate`
objects. Only the registry is allowed to apply them.
"""

from __future__ import annotations

from enum import StrEnum
from typing import Any

from pydantic import BaseModel, ConfigDict

from pymerakimt.models.capability import CAPABILITY_ATTRIBUTES, Capability


class IngestionSource(StrEnum):
    POLL = "poll"
    PUSH = "push"


class AttributeUpdate(BaseModel):
    """One canonical attribute assignment derived from a raw metric."""

    model_config = ConfigDict(frozen=True)

    capability: Capability
    value: Any
    metric: str = ""
    """Raw metric name the update was derived from."""

    @property
    def attribute(self) -> str:
        return CAPABILITY_ATTRIBUTES[self.capability]
