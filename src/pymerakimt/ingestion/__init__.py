"""Ingestion layer.

This package contains the adapters that bring data in from the Dashboard
inventory, the REST polling feed and the MQTT push feed, and translate it
into registry upserts and attribute updates.
"""

__all__: list[str] = []
