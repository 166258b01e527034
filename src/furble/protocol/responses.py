"""BLE notification parsing and routing helpers."""

from __future__ import annotations

from dataclasses import dataclass
from enum import IntEnum
from typing import Union

from ..exceptions import FrameTooShortError, InvalidResponseError
from ..models.enums import SlotStatus, TransferMode
from ..models.state import FurbyState, decode_state
from .commands import SLOT_COUNT


class ResponseCode(IntEnum):
    """First byte of notifications on the GeneralPlus listen characteristic."""

    SENSOR_STATE = 0x21
    FILE_TRANSFER_MODE = 0x24
    DLC_SLOT_INFO = 0x72
    FIRMWARE_VERSION = 0xFE


TRANSFER_MODE_PREFIX = bytes([ResponseCode.FILE_TRANSFER_MODE])


@dataclass(frozen=True)
class SensorStateNotification:
    state: FurbyState


@dataclass(frozen=True)
class TransferModeNotification:
    mode: TransferMode


@dataclass(frozen=True)
class SlotInfoNotification:
    slots: tuple[SlotStatus, ...]


@dataclass(frozen=True)
class FirmwareVersionNotification:
    version: int


@dataclass(frozen=True)
class UnknownNotification:
    """Notification with an opcode this package does not interpret."""

    code: int
    payload: bytes


Notification = Union[
    SensorStateNotification,
    TransferModeNotification,
    SlotInfoNotification,
    FirmwareVersionNotification,
    UnknownNotification,
]


def matches_prefix(prefix: bytes | None, frame: bytes) -> bool:
    """Check whether ``frame`` starts with ``prefix``.

    Args:
        prefix: Expected leading bytes, or None to match anything
        frame: Raw notification data

    Returns:
        True if prefix is None or every prefix byte equals the frame byte
        at the same position; False on mismatch or if frame is shorter
    """
    if prefix is None:
        return True
    if len(frame) < len(prefix):
        return False
    return bytes(frame[:len(prefix)]) == bytes(prefix)


def to_hex(data: bytes) -> str:
    """Format bytes as lowercase hex without separators."""
    return bytes(data).hex()


def parse_slot_info(filled_bitmap: int, active_bitmap: int) -> tuple[SlotStatus, ...]:
    """Derive per-slot status from the device's filled and active bitmaps.

    Bit ``i`` of each bitmap refers to slot ``i``. An active slot is
    reported as ACTIVE whether or not its filled bit is set.
    """
    slots = []
    for i in range(SLOT_COUNT):
        status = SlotStatus.EMPTY
        if filled_bitmap & (1 << i):
            status = SlotStatus.FILLED
        if active_bitmap & (1 << i):
            status = SlotStatus.ACTIVE
        slots.append(status)
    return tuple(slots)


def parse_slot_info_response(data: bytes) -> tuple[SlotStatus, ...]:
    """Parse a DLC slot info response.

    Format: [echo:1][filled:2 BE][active:2 BE]

    Raises:
        FrameTooShortError: If response shorter than 5 bytes
        InvalidResponseError: If echo is not 0x72
    """
    if len(data) < 5:
        raise FrameTooShortError(f"Slot info response too short: {len(data)} bytes (need 5)")
    if data[0] != ResponseCode.DLC_SLOT_INFO:
        raise InvalidResponseError(
            f"Slot info echo mismatch: expected 0x72, got 0x{data[0]:02x}"
        )

    filled = int.from_bytes(data[1:3], byteorder="big")
    active = int.from_bytes(data[3:5], byteorder="big")
    return parse_slot_info(filled, active)


def parse_transfer_mode(data: bytes) -> TransferMode:
    """Parse a file transfer mode notification.

    Format: [0x24][mode:1]

    Raises:
        FrameTooShortError: If shorter than 2 bytes
        InvalidResponseError: If echo wrong or mode unknown
    """
    if len(data) < 2:
        raise FrameTooShortError(f"Transfer mode frame too short: {len(data)} bytes (need 2)")
    if data[0] != ResponseCode.FILE_TRANSFER_MODE:
        raise InvalidResponseError(
            f"Transfer mode echo mismatch: expected 0x24, got 0x{data[0]:02x}"
        )
    try:
        return TransferMode(data[1])
    except ValueError as e:
        raise InvalidResponseError(f"Unknown transfer mode: {data[1]}") from e


def parse_firmware_version(data: bytes) -> int:
    """Parse firmware version response.

    Format: [echo:1][version:1]
    """
    if len(data) < 2:
        raise FrameTooShortError(
            f"Firmware version response too short: {len(data)} bytes (need 2)"
        )
    if data[0] != ResponseCode.FIRMWARE_VERSION:
        raise InvalidResponseError(
            f"Firmware version echo mismatch: expected 0xfe, got 0x{data[0]:02x}"
        )
    return data[1]


def decode_notification(data: bytes) -> Notification:
    """Decode one notification frame into a typed notification.

    Raises:
        FrameTooShortError: If the frame is empty or shorter than its layout
        InvalidResponseError: If a known frame carries invalid content
    """
    if not data:
        raise FrameTooShortError("Empty notification frame")

    code = data[0]
    if code == ResponseCode.SENSOR_STATE:
        return SensorStateNotification(decode_state(data))
    if code == ResponseCode.FILE_TRANSFER_MODE:
        return TransferModeNotification(parse_transfer_mode(data))
    if code == ResponseCode.DLC_SLOT_INFO:
        return SlotInfoNotification(parse_slot_info_response(data))
    if code == ResponseCode.FIRMWARE_VERSION:
        return FirmwareVersionNotification(parse_firmware_version(data))
    return UnknownNotification(code=code, payload=bytes(data[1:]))
