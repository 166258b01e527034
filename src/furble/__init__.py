"""Furby Connect BLE Protocol Package.

  Pure Python package for controlling Furby Connect toys over BLE and
  uploading DLC content to them.
  """

from .catalog import ButtonBinding, DlcEntry, catalog_from_json, load_catalog
from .exceptions import (
    ArgumentError,
    BLEConnectionError,
    BLETimeoutError,
    DeviceError,
    FrameTooShortError,
    FurbyError,
    InvalidArityError,
    InvalidNameError,
    InvalidResponseError,
    ProtocolError,
    SlotOutOfRangeError,
)
from .models import (
    Antenna,
    Connected,
    Disconnected,
    FailureReason,
    FurbyState,
    Orientation,
    Sensor,
    SlotStatus,
    SlotStatusChanged,
    StateChanged,
    SupervisorEvent,
    TransferCompleted,
    TransferFailed,
    TransferMode,
    TransferProgress,
    TransferState,
    decode_state,
)
from .protocol import (
    SERVICE_UUID,
    SLOT_COUNT,
    ActionArity,
    TransferSession,
    adler32,
    decode_notification,
    make_dlc_filename,
    matches_prefix,
    to_hex,
)
from .retry import RetryPolicy
from .supervisor import ConnectionSupervisor
from .transport import FurbyConnection

__version__ = "0.1.0"

__all__ = [
    # Main API
    "ConnectionSupervisor",
    "FurbyConnection",
    "TransferSession",
    "RetryPolicy",
    "ActionArity",
    # Exceptions
    "FurbyError",
    "ArgumentError",
    "InvalidArityError",
    "SlotOutOfRangeError",
    "InvalidNameError",
    "ProtocolError",
    "FrameTooShortError",
    "InvalidResponseError",
    "DeviceError",
    "BLEConnectionError",
    "BLETimeoutError",
    # Models
    "FurbyState",
    "Antenna",
    "Orientation",
    "Sensor",
    "SlotStatus",
    "TransferMode",
    "TransferState",
    "FailureReason",
    # Events
    "SupervisorEvent",
    "Connected",
    "Disconnected",
    "StateChanged",
    "TransferProgress",
    "TransferCompleted",
    "TransferFailed",
    "SlotStatusChanged",
    # Catalog
    "ButtonBinding",
    "DlcEntry",
    "catalog_from_json",
    "load_catalog",
    # Utilities
    "adler32",
    "decode_notification",
    "decode_state",
    "make_dlc_filename",
    "matches_prefix",
    "to_hex",
    # Constants
    "SERVICE_UUID",
    "SLOT_COUNT",
]
