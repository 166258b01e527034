"""BLE protocol commands for Furby Connect devices."""

from __future__ import annotations

from dataclasses import dataclass
from enum import IntEnum
from typing import Iterable

from ..exceptions import ArgumentError, InvalidArityError, InvalidNameError, SlotOutOfRangeError
from ..models.enums import TransferMode, WriteTarget
from .checksum import adler32


class CommandCode(IntEnum):
    """Opcodes written to the GeneralPlus characteristic."""

    # Action triggers (opcode selected by parameter count)
    ACTION_1 = 0x10
    ACTION_2 = 0x11
    ACTION_3 = 0x12
    ACTION_4 = 0x13

    ANTENNA_COLOR = 0x14          # [r, g, b]

    # DLC transfer
    FILE_TRANSFER_MODE = 0x24     # [mode]
    DLC_UPLOAD_START = 0x50       # [0x00, size:3][slot][name:12][adler32:4]

    # DLC slot management
    DLC_LOAD = 0x60               # [slot]
    DLC_ACTIVATE = 0x61
    DLC_DEACTIVATE = 0x62
    DLC_SLOT_INFO = 0x72
    DLC_DELETE = 0x74             # [slot]

    FIRMWARE_VERSION = 0xFE


# GATT UUIDs
_UUID_SUFFIX = "-b5a1-e29c-b041-bcd562613bde"
SERVICE_UUID = "dab91435" + _UUID_SUFFIX
GENERALPLUS_LISTEN_UUID = "dab91382" + _UUID_SUFFIX
GENERALPLUS_WRITE_UUID = "dab91383" + _UUID_SUFFIX
FILE_WRITE_UUID = "dab90758" + _UUID_SUFFIX

DEVICE_NAME = "Furby"

# DLC constants
SLOT_COUNT = 14
DEVICE_FILENAME_LENGTH = 12
CHUNK_SIZE = 20  # File data bytes per BLE write
MAX_DLC_SIZE = 0xFFFFFF  # Size field is 3 bytes


@dataclass(frozen=True)
class OutboundFrame:
    """A frame to be written to the device, with its target characteristic."""

    data: bytes
    target: WriteTarget = WriteTarget.COMMAND


def _check_u8(name: str, value: int) -> None:
    if not isinstance(value, int) or not 0 <= value <= 0xFF:
        raise ArgumentError(f"{name} out of range: {value!r} (must be 0-255)")


def check_slot(slot: int) -> None:
    """Raise SlotOutOfRangeError unless ``slot`` is a valid DLC slot index."""
    if not isinstance(slot, int) or not 0 <= slot < SLOT_COUNT:
        raise SlotOutOfRangeError(
            f"Slot {slot!r} out of range (must be 0-{SLOT_COUNT - 1})"
        )


def make_dlc_filename(path: str) -> str:
    """Derive the on-device filename for a DLC file.

    Takes the basename (text after the last ``/``), left-pads it with ``_``
    to 12 characters and upper-cases it. Longer basenames are kept whole.

    Example:
        ``"dlc/test.dlc"`` -> ``"____TEST.DLC"``
    """
    basename = path[path.rfind("/") + 1:]
    return basename.rjust(DEVICE_FILENAME_LENGTH, "_").upper()


def encode_dlc_filename(name: str) -> bytes:
    """Encode a device filename to its fixed 12-byte wire form.

    Raises:
        InvalidNameError: If name is not exactly 12 ASCII characters
    """
    if len(name) != DEVICE_FILENAME_LENGTH:
        raise InvalidNameError(
            f"Device filename must be exactly {DEVICE_FILENAME_LENGTH} characters, "
            f"got {len(name)}: {name!r}"
        )
    try:
        return name.encode("ascii")
    except UnicodeEncodeError as e:
        raise InvalidNameError(f"Device filename must be ASCII: {name!r}") from e


@dataclass(frozen=True)
class ActionArity:
    """Parameters of an action trigger command (one to four bytes).

    Build with the named constructors rather than the raw tuple:

        ActionArity.one(39)
        ActionArity.four(39, 4, 2, 0)
    """

    params: tuple[int, ...]

    def __post_init__(self) -> None:
        if not 1 <= len(self.params) <= 4:
            raise InvalidArityError(
                f"Action needs 1-4 parameters, got {len(self.params)}"
            )
        for i, value in enumerate(self.params):
            _check_u8(f"action parameter {i}", value)

    @classmethod
    def one(cls, input: int) -> ActionArity:
        return cls((input,))

    @classmethod
    def two(cls, input: int, index: int) -> ActionArity:
        return cls((input, index))

    @classmethod
    def three(cls, input: int, index: int, subindex: int) -> ActionArity:
        return cls((input, index, subindex))

    @classmethod
    def four(cls, input: int, index: int, subindex: int, specific: int) -> ActionArity:
        return cls((input, index, subindex, specific))

    @classmethod
    def from_sequence(cls, params: Iterable[int]) -> ActionArity:
        """Build from a catalog action list such as ``[39, 4, 2, 0]``."""
        return cls(tuple(params))

    @property
    def opcode(self) -> CommandCode:
        return CommandCode(CommandCode.ACTION_1 + len(self.params) - 1)


def build_action_command(action: ActionArity) -> bytes:
    """Build an action trigger command.

    Format:
        [opcode:1][0x00][params:1-4]
        - opcode: 0x10-0x13 for 1-4 parameters
    """
    return bytes([action.opcode, 0x00, *action.params])


def build_antenna_color_command(red: int, green: int, blue: int) -> bytes:
    """Build command to set the antenna LED colour.

    Returns:
        Command bytes: [0x14, r, g, b]
    """
    _check_u8("red", red)
    _check_u8("green", green)
    _check_u8("blue", blue)
    return bytes([CommandCode.ANTENNA_COLOR, red, green, blue])


def build_dlc_load_command(slot: int) -> bytes:
    """Build command to load the DLC stored in ``slot``.

    Raises:
        SlotOutOfRangeError: If slot not in 0-13
    """
    check_slot(slot)
    return bytes([CommandCode.DLC_LOAD, slot])


def build_dlc_delete_command(slot: int) -> bytes:
    """Build command to delete the DLC stored in ``slot``.

    Raises:
        SlotOutOfRangeError: If slot not in 0-13
    """
    check_slot(slot)
    return bytes([CommandCode.DLC_DELETE, slot])


def build_dlc_activate_command() -> bytes:
    return bytes([CommandCode.DLC_ACTIVATE])


def build_dlc_deactivate_command() -> bytes:
    return bytes([CommandCode.DLC_DEACTIVATE])


def build_slot_info_command() -> bytes:
    return bytes([CommandCode.DLC_SLOT_INFO])


def build_firmware_version_command() -> bytes:
    return bytes([CommandCode.FIRMWARE_VERSION])


def build_dlc_upload_start_command(slot: int, name: str, payload: bytes) -> bytes:
    """Build command announcing a DLC upload.

    Args:
        slot: Target slot (0-13)
        name: 12-character device filename (see make_dlc_filename)
        payload: Complete DLC file contents

    Returns:
        Command bytes

    Format:
        [cmd:1][0x00][size:3][slot:1][name:12][checksum:4]
        - size: Payload length (big-endian uint24)
        - name: ASCII device filename
        - checksum: Adler-32 of the payload (big-endian uint32)

    Raises:
        SlotOutOfRangeError: If slot not in 0-13
        InvalidNameError: If name not exactly 12 ASCII characters
        ArgumentError: If payload exceeds the 24-bit size field
    """
    check_slot(slot)
    encoded_name = encode_dlc_filename(name)
    if len(payload) > MAX_DLC_SIZE:
        raise ArgumentError(
            f"DLC payload too large: {len(payload)} bytes (max {MAX_DLC_SIZE})"
        )

    return (
        bytes([CommandCode.DLC_UPLOAD_START, 0x00])
        + len(payload).to_bytes(3, byteorder="big")
        + bytes([slot])
        + encoded_name
        + adler32(payload).to_bytes(4, byteorder="big")
    )


def build_end_transfer_command() -> bytes:
    """Build command telling the device to abandon the current transfer.

    Returns:
        Command bytes: [0x24, 0x01]
    """
    return bytes([CommandCode.FILE_TRANSFER_MODE, TransferMode.END_CURRENT_TRANSFER])
