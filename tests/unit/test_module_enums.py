"""Test model enums and conversions."""


from furble.models.enums import (
    TERMINAL_STATES,
    Sensor,
    SlotStatus,
    TransferMode,
    TransferState,
)


class TestTransferMode:
    """Test TransferMode wire values."""

    def test_transfer_mode_values(self):
        assert TransferMode.END_CURRENT_TRANSFER == 1
        assert TransferMode.READY_TO_RECEIVE == 2
        assert TransferMode.FILE_TRANSFER_TIMEOUT == 3
        assert TransferMode.READY_TO_APPEND == 4
        assert TransferMode.FILE_RECEIVED_OK == 5
        assert TransferMode.FILE_RECEIVED_ERR == 6

    def test_from_wire_byte(self):
        assert TransferMode(0x05) is TransferMode.FILE_RECEIVED_OK


class TestSlotStatus:
    def test_slot_status_values(self):
        assert SlotStatus.EMPTY == 0
        assert SlotStatus.UPLOADING == 1
        assert SlotStatus.FILLED == 2
        assert SlotStatus.ACTIVE == 3


class TestSensor:
    """Test sensor flag combination."""

    def test_flags_combine(self):
        sensors = Sensor.TICKLE_TUMMY | Sensor.PULL_TAIL
        assert Sensor.TICKLE_TUMMY in sensors
        assert Sensor.PUSH_TONGUE not in sensors
        assert int(sensors) == 0x12

    def test_all_bits(self):
        assert Sensor(0x3F) == (
            Sensor.TICKLE_HEAD_BACK
            | Sensor.TICKLE_TUMMY
            | Sensor.TICKLE_RIGHT_SIDE
            | Sensor.TICKLE_LEFT_SIDE
            | Sensor.PULL_TAIL
            | Sensor.PUSH_TONGUE
        )


class TestTransferState:
    def test_terminal_states(self):
        assert TERMINAL_STATES == {TransferState.COMPLETED, TransferState.FAILED}
        assert TransferState.AWAITING_FINAL_RESULT not in TERMINAL_STATES
