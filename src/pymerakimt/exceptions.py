"""Custom exception hierarchy for pymerakimt."""

from __future__ import annotations


class MerakiError(Exception):
    """Base exception for all pymerakimt errors."""


class MerakiConfigError(MerakiError):
    """Invalid or missing configuration."""


class MerakiTransportError(MerakiError):
    """HTTP-level failure (network, timeout, non-2xx, invalid JSON)."""

    def __init__(
        self,
        message: str,
        *,
        status_code: int | None = None,
        endpoint: str = "",
    ) -> None:
        self.status_code = status_code
        self.endpoint = endpoint
        super().__init__(message)


class MerakiApiError(MerakiError):
    """Dashboard API answered, but the body is not what the endpoint promises."""

    def __init__(
        self,
        message: str,
        *,
        endpoint: str = "",
        errors: list[str] | None = None,
    ) -> None:
        self.endpoint = endpoint
        self.errors = list(errors or [])
        super().__init__(message)


class MerakiDecodeError(MerakiError):
    """A push payload could not be decoded into a JSON object."""

    def __init__(self, message: str, *, topic: str = "") -> None:
        self.topic = topic
        super().__init__(message)


class MerakiUnsupportedOperationError(MerakiError, NotImplementedError):
    """A device operation was requested that the sensor cannot fulfil.

    Unlike feed data problems, which are logged and dropped, this is raised
    straight to the caller: it means the caller asked for something outside
    the device's capability contract (e.g. switching temperature units).
    """
