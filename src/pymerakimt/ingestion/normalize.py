"""Metric normalization.

Maps one raw reading, from either feed, onto a canonical
:class:`~pymerakimt.state.events.AttributeUpdate`.

The two feeds name metrics and fields differently:

=================  =====================  ==================  ==================
capability         polling metric.field   push metric         push field
=================  =====================  ==================  ==================
Battery            battery.percentage     batteryPercentage   batteryPercentage
Thermometer        temperature.celsius    temperature         celsius
HumiditySensor     humidity.              humidity            humidity
                   relativePercentage
FloodSensor        water.present          waterDetection      wet
BinarySensor       door.open              door                open
AirQualitySensor   indoorAirQuality.score iaqIndex            iaqIndex
VOCSensor          tvoc.concentration     -                   -
PM25Sensor         pm25.concentration     -                   -
=================  =====================  ==================  ==================

Unknown metrics return ``None`` silently. Readings missing the expected
field, or carrying a value of the wrong type, also return ``None`` and are
logged at DEBUG level.
"""

from __future__ import annotations

import logging
import math
from collections.abc import Callable, Mapping
from dataclasses import dataclass
from typing import Any

from pymerakimt.models.capability import AirQuality, Capability
from pymerakimt.state.events import AttributeUpdate

_logger = logging.getLogger(__name__)

# Strictly-greater-than thresholds, evaluated top down.
_AIR_QUALITY_THRESHOLDS: tuple[tuple[float, AirQuality], ...] = (
    (92, AirQuality.EXCELLENT),
    (79, AirQuality.GOOD),
    (59, AirQuality.FAIR),
    (39, AirQuality.POOR),
    (19, AirQuality.INFERIOR),
)


def safe_float(value: Any) -> float | None:
    """Finite JSON number as ``float``; strings and booleans are malformed."""
    if not isinstance(value, (int, float)) or isinstance(value, bool):
        return None
    try:
        result = float(value)
    except OverflowError:
        return None
    if not math.isfinite(result):
        return None
    return result


def safe_bool(value: Any) -> bool | None:
    if isinstance(value, bool):
        return value
    if isinstance(value, (int, float)) and value in (0, 1):
        return bool(value)
    return None


def iaq_index_to_air_quality(score: float) -> AirQuality:
    """Classify an indoor air quality index (0-100) into a category.

    ``93`` is Excellent, ``92`` Good, ``20`` Inferior, ``19`` Unknown.
    """
    for threshold, category in _AIR_QUALITY_THRESHOLDS:
        if score > threshold:
            return category
    return AirQuality.UNKNOWN


def _to_air_quality(value: Any) -> AirQuality | None:
    score = safe_float(value)
    if score is None:
        return None
    return iaq_index_to_air_quality(score)


@dataclass(frozen=True, slots=True)
class _MetricRule:
    capability: Capability
    field: str
    convert: Callable[[Any], Any]


_POLL_RULES: dict[str, _MetricRule] = {
    "battery": _MetricRule(Capability.BATTERY, "percentage", safe_float),
    "temperature": _MetricRule(Capability.THERMOMETER, "celsius", safe_float),
    "humidity": _MetricRule(Capability.HUMIDITY_SENSOR, "relativePercentage", safe_float),
    "water": _MetricRule(Capability.FLOOD_SENSOR, "present", safe_bool),
    "door": _MetricRule(Capability.BINARY_SENSOR, "open", safe_bool),
    "indoorAirQuality": _MetricRule(Capability.AIR_QUALITY_SENSOR, "score", _to_air_quality),
    "tvoc": _MetricRule(Capability.VOC_SENSOR, "concentration", safe_float),
    "pm25": _MetricRule(Capability.PM25_SENSOR, "concentration", safe_float),
}

_PUSH_RULES: dict[str, _MetricRule] = {
    "batteryPercentage": _MetricRule(Capability.BATTERY, "batteryPercentage", safe_float),
    "temperature": _MetricRule(Capability.THERMOMETER, "celsius", safe_float),
    "humidity": _MetricRule(Capability.HUMIDITY_SENSOR, "humidity", safe_float),
    "waterDetection": _MetricRule(Capability.FLOOD_SENSOR, "wet", safe_bool),
    "door": _MetricRule(Capability.BINARY_SENSOR, "open", safe_bool),
    "iaqIndex": _MetricRule(Capability.AIR_QUALITY_SENSOR, "iaqIndex", _to_air_quality),
}

PUSH_METRICS: frozenset[str] = frozenset(_PUSH_RULES)


def _apply_rule(rule: _MetricRule, metric: str, container: Any) -> AttributeUpdate | None:
    if not isinstance(container, Mapping) or rule.field not in container:
        _logger.debug("Dropping %s reading without %r field: %s", metric, rule.field, container)
        return None
    value = rule.convert(container[rule.field])
    if value is None:
        _logger.debug("Dropping %s reading with unusable %r value: %r", metric, rule.field, container[rule.field])
        return None
    return AttributeUpdate(capability=rule.capability, value=value, metric=metric)


def normalize_poll_reading(reading: Mapping[str, Any]) -> AttributeUpdate | None:
    """Normalize one entry of a latest-readings ``readings`` list.

    The value lives in a sub-object named after the metric, e.g.
    ``{"metric": "temperature", "temperature": {"celsius": 21.4}}``.
    """
    metric = reading.get("metric")
    if not isinstance(metric, str):
        return None
    rule = _POLL_RULES.get(metric)
    if rule is None:
        return None
    return _apply_rule(rule, metric, reading.get(metric))


def normalize_push_message(metric: str, payload: Any) -> AttributeUpdate | None:
    """Normalize one decoded MQTT payload for *metric* (taken from the topic)."""
    rule = _PUSH_RULES.get(metric)
    if rule is None:
        return None
    return _apply_rule(rule, metric, payload)
