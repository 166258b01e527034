"""Test notification parsing against captured frames."""

import pytest

from furble.exceptions import FrameTooShortError, InvalidResponseError, ProtocolError
from furble.models.enums import Antenna, Orientation, SlotStatus, TransferMode
from furble.protocol.responses import (
    FirmwareVersionNotification,
    SensorStateNotification,
    SlotInfoNotification,
    TransferModeNotification,
    UnknownNotification,
    decode_notification,
    matches_prefix,
    parse_firmware_version,
    parse_slot_info,
    parse_slot_info_response,
    parse_transfer_mode,
    to_hex,
)


class TestMatchesPrefix:
    """Test prefix matching used for routing."""

    def test_none_matches_anything(self):
        assert matches_prefix(None, b"")
        assert matches_prefix(None, b"\x21\x00")

    def test_empty_prefix_matches(self):
        assert matches_prefix(b"", b"")
        assert matches_prefix(b"", b"\x24")

    def test_every_prefix_of_frame_matches(self):
        frame = b"\x72\x00\x0d\x00\x04"
        for n in range(len(frame) + 1):
            assert matches_prefix(frame[:n], frame)

    def test_mismatch(self):
        assert not matches_prefix(b"\x24", b"\x21\x00")
        assert not matches_prefix(b"\x72\x01", b"\x72\x00\x0d")

    def test_frame_shorter_than_prefix(self):
        assert not matches_prefix(b"\x24\x02", b"\x24")


class TestToHex:
    def test_format(self):
        assert to_hex(b"\x00\x0a\xff") == "000aff"

    def test_round_trip(self):
        data = bytes(range(256))
        text = to_hex(data)
        assert len(text) == 2 * len(data)
        assert bytes(int(text[i:i + 2], 16) for i in range(0, len(text), 2)) == data


class TestSlotInfo:
    """Test slot bitmap decoding."""

    def test_parse_slot_info(self):
        slots = parse_slot_info(0b1101, 0b0100)
        assert len(slots) == 14
        assert slots[:5] == (
            SlotStatus.FILLED,
            SlotStatus.EMPTY,
            SlotStatus.ACTIVE,
            SlotStatus.FILLED,
            SlotStatus.EMPTY,
        )

    def test_active_without_filled_bit(self):
        """An active slot reads ACTIVE even if its filled bit is clear."""
        assert parse_slot_info(0, 1 << 13)[13] == SlotStatus.ACTIVE

    def test_empty(self):
        assert parse_slot_info(0, 0) == (SlotStatus.EMPTY,) * 14

    def test_parse_slot_info_response(self, slot_info_frame):
        slots = parse_slot_info_response(slot_info_frame)
        assert slots[0] == SlotStatus.FILLED
        assert slots[2] == SlotStatus.ACTIVE
        assert slots[3] == SlotStatus.FILLED

    def test_short_response(self):
        with pytest.raises(FrameTooShortError):
            parse_slot_info_response(b"\x72\x00")

    def test_wrong_echo(self):
        with pytest.raises(InvalidResponseError):
            parse_slot_info_response(b"\x73\x00\x00\x00\x00")


class TestTransferMode:
    def test_parse(self):
        assert parse_transfer_mode(b"\x24\x02") == TransferMode.READY_TO_RECEIVE
        assert parse_transfer_mode(b"\x24\x05\x00") == TransferMode.FILE_RECEIVED_OK

    def test_unknown_mode(self):
        with pytest.raises(InvalidResponseError, match="Unknown transfer mode"):
            parse_transfer_mode(b"\x24\x09")

    def test_short(self):
        with pytest.raises(FrameTooShortError):
            parse_transfer_mode(b"\x24")


class TestFirmwareVersion:
    def test_parse(self, firmware_version_frame):
        assert parse_firmware_version(firmware_version_frame) == 3

    def test_wrong_echo(self):
        with pytest.raises(InvalidResponseError):
            parse_firmware_version(b"\x21\x03")


class TestDecodeNotification:
    """Test dispatch by first byte."""

    def test_sensor_state(self, tickled_state_frame):
        notification = decode_notification(tickled_state_frame)
        assert isinstance(notification, SensorStateNotification)
        assert notification.state.antenna == Antenna.LEFT
        assert notification.state.orientation == Orientation.UPRIGHT
        assert notification.state.tickle_tummy

    def test_transfer_mode(self):
        notification = decode_notification(b"\x24\x04")
        assert notification == TransferModeNotification(TransferMode.READY_TO_APPEND)

    def test_slot_info(self, slot_info_frame):
        assert isinstance(decode_notification(slot_info_frame), SlotInfoNotification)

    def test_firmware_version(self, firmware_version_frame):
        assert decode_notification(firmware_version_frame) == FirmwareVersionNotification(3)

    def test_unknown(self):
        assert decode_notification(b"\x99\x01\x02") == UnknownNotification(0x99, b"\x01\x02")

    def test_empty_frame(self):
        with pytest.raises(FrameTooShortError):
            decode_notification(b"")

    def test_short_state_frame_is_protocol_error(self):
        with pytest.raises(ProtocolError):
            decode_notification(b"\x21\x00\x00")
