"""Enumerations for Furby state, DLC slots and the transfer protocol."""

from __future__ import annotations

from enum import Enum, IntEnum, IntFlag
from typing import Final


class Antenna(Enum):
    """Antenna position reported in a sensor state frame."""
    UNKNOWN = "unknown"
    LEFT = "left"
    RIGHT = "right"
    FORWARD = "forward"
    BACK = "back"
    DOWN = "down"


class Orientation(Enum):
    """Body orientation reported in a sensor state frame."""
    UNKNOWN = "unknown"
    UPRIGHT = "upright"
    UPSIDE_DOWN = "upside_down"
    LYING_RIGHT = "lying_right"
    LYING_LEFT = "lying_left"
    LEANING_BACK = "leaning_back"
    TILTED_RIGHT = "tilted_right"
    TILTED_LEFT = "tilted_left"


class Sensor(IntFlag):
    """Touch sensor bits (byte 2, bits 0-5 of a sensor state frame)."""
    NONE = 0
    TICKLE_HEAD_BACK = 0x01
    TICKLE_TUMMY = 0x02
    TICKLE_RIGHT_SIDE = 0x04
    TICKLE_LEFT_SIDE = 0x08
    PULL_TAIL = 0x10
    PUSH_TONGUE = 0x20


class SlotStatus(IntEnum):
    """DLC slot states."""
    EMPTY = 0
    UPLOADING = 1
    FILLED = 2
    ACTIVE = 3


class TransferMode(IntEnum):
    """File transfer mode signals exchanged during a DLC upload."""
    END_CURRENT_TRANSFER = 1
    READY_TO_RECEIVE = 2
    FILE_TRANSFER_TIMEOUT = 3
    READY_TO_APPEND = 4
    FILE_RECEIVED_OK = 5
    FILE_RECEIVED_ERR = 6


class TransferState(Enum):
    """Transfer session state machine states."""
    IDLE = "idle"
    AWAITING_READY = "awaiting_ready"
    SENDING = "sending"
    AWAITING_CHUNK_ACK = "awaiting_chunk_ack"
    AWAITING_FINAL_RESULT = "awaiting_final_result"
    COMPLETED = "completed"
    FAILED = "failed"


TERMINAL_STATES: Final[frozenset[TransferState]] = frozenset({
    TransferState.COMPLETED,
    TransferState.FAILED,
})


class FailureReason(Enum):
    """Why a transfer session ended in FAILED."""
    RETRIES_EXHAUSTED = "retries_exhausted"
    DEVICE_REJECTED = "device_rejected"
    ABORTED = "aborted"
    CANCELLED = "cancelled"
    CONNECTION_LOST = "connection_lost"


class WriteTarget(Enum):
    """Characteristic an outbound frame is written to."""
    COMMAND = "command"      # GeneralPlus write
    FILE_DATA = "file_data"  # DLC file write
