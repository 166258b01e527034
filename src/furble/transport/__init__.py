"""BLE transport layer."""

from .connection import FurbyConnection

__all__ = ["FurbyConnection"]
