"""Data models for Furby devices."""

from .enums import (
    Antenna,
    FailureReason,
    Orientation,
    Sensor,
    SlotStatus,
    TransferMode,
    TransferState,
    WriteTarget,
)
from .events import (
    Connected,
    Disconnected,
    SlotStatusChanged,
    StateChanged,
    SupervisorEvent,
    TransferCompleted,
    TransferFailed,
    TransferProgress,
)
from .state import FurbyState, decode_state

__all__ = [
    "Antenna",
    "FailureReason",
    "Orientation",
    "Sensor",
    "SlotStatus",
    "TransferMode",
    "TransferState",
    "WriteTarget",
    "Connected",
    "Disconnected",
    "SlotStatusChanged",
    "StateChanged",
    "SupervisorEvent",
    "TransferCompleted",
    "TransferFailed",
    "TransferProgress",
    "FurbyState",
    "decode_state",
]
