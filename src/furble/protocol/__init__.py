"""BLE protocol implementation."""

from .checksum import adler32
from .commands import (
    CHUNK_SIZE,
    DEVICE_FILENAME_LENGTH,
    FILE_WRITE_UUID,
    GENERALPLUS_LISTEN_UUID,
    GENERALPLUS_WRITE_UUID,
    SERVICE_UUID,
    SLOT_COUNT,
    ActionArity,
    CommandCode,
    OutboundFrame,
    build_action_command,
    build_antenna_color_command,
    build_dlc_activate_command,
    build_dlc_deactivate_command,
    build_dlc_delete_command,
    build_dlc_load_command,
    build_dlc_upload_start_command,
    build_end_transfer_command,
    build_firmware_version_command,
    build_slot_info_command,
    make_dlc_filename,
)
from .responses import (
    Notification,
    ResponseCode,
    decode_notification,
    matches_prefix,
    parse_slot_info,
    to_hex,
)
from .transfer import TransferSession

__all__ = [
    "adler32",
    "CHUNK_SIZE",
    "DEVICE_FILENAME_LENGTH",
    "FILE_WRITE_UUID",
    "GENERALPLUS_LISTEN_UUID",
    "GENERALPLUS_WRITE_UUID",
    "SERVICE_UUID",
    "SLOT_COUNT",
    "ActionArity",
    "CommandCode",
    "OutboundFrame",
    "build_action_command",
    "build_antenna_color_command",
    "build_dlc_activate_command",
    "build_dlc_deactivate_command",
    "build_dlc_delete_command",
    "build_dlc_load_command",
    "build_dlc_upload_start_command",
    "build_end_transfer_command",
    "build_firmware_version_command",
    "build_slot_info_command",
    "make_dlc_filename",
    "Notification",
    "ResponseCode",
    "decode_notification",
    "matches_prefix",
    "parse_slot_info",
    "to_hex",
    "TransferSession",
]
