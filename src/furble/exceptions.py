"""Exceptions raised by the Furby protocol engine."""

from __future__ import annotations


class FurbyError(Exception):
    """Base exception for all furble errors."""


class ArgumentError(FurbyError, ValueError):
    """Caller passed an invalid argument (rejected before any I/O)."""


class InvalidArityError(ArgumentError):
    """Action command built with zero or more than four parameters."""


class SlotOutOfRangeError(ArgumentError):
    """DLC slot index outside 0-13."""


class InvalidNameError(ArgumentError):
    """Device filename is not exactly 12 ASCII characters."""


class ProtocolError(FurbyError):
    """Malformed or unexpected frame from the device."""


class FrameTooShortError(ProtocolError):
    """Notification frame shorter than its fixed layout."""


class InvalidResponseError(ProtocolError):
    """Response does not match the request it answers."""


class DeviceError(FurbyError):
    """Device explicitly rejected an operation."""


class BLEConnectionError(FurbyError):
    """BLE connection failed, dropped, or a write did not go through."""


class BLETimeoutError(BLEConnectionError):
    """Timed out waiting on the BLE transport."""
