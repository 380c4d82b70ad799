"""Shared helpers for Dashboard API endpoint modules.

It is internal to pymerakimt and may change at any time.
"""

from __future__ import annotations

import logging
from typing import Any, TypeVar

from pydantic import BaseModel, ValidationError

from pymerakimt.config import MerakiConfig
from pymerakimt.exceptions import MerakiApiError

_logger = logging.getLogger(__name__)

TModel = TypeVar("TModel", bound=BaseModel)


def network_scope(config: MerakiConfig) -> list[tuple[str, str]]:
    return [("networkIds[]", config.network_id)]


def require_list(body: Any, endpoint: str) -> list[Any]:
    """Return *body* if it is a JSON array, else raise :class:`MerakiApiError`.

    The Dashboard API reports failures inside 2xx-looking bodies as
    ``{"errors": [...]}``; those are surfaced with their messages.
    """
    if isinstance(body, list):
        return body
    errors: list[str] = []
    if isinstance(body, dict) and isinstance(body.get("errors"), list):
        errors = [str(item) for item in body["errors"]]
    detail = "; ".join(errors) if errors else f"expected a list, got {type(body).__name__}"
    raise MerakiApiError(f"{endpoint} failed: {detail}", endpoint=endpoint, errors=errors)


def parse_items(items: list[Any], model: type[TModel], endpoint: str) -> list[TModel]:
    """Validate each item on its own; invalid items are skipped."""
    parsed: list[TModel] = []
    for item in items:
        try:
            parsed.append(model.model_validate(item))
        except ValidationError:
            _logger.debug("Skipping invalid %s item from %s: %s", model.__name__, endpoint, item, exc_info=True)
    return parsed
