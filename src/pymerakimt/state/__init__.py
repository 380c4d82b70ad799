"""State layer.

This package is the single source of truth for how readings from the REST
polling feed and the MQTT push feed are merged into one canonical
per-device state record.
"""
