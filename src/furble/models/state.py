"""Furby sensor state snapshot and its frame decoder."""

from __future__ import annotations

from dataclasses import dataclass

from ..exceptions import FrameTooShortError
from .enums import Antenna, Orientation, Sensor

STATE_FRAME_MIN_LENGTH = 5

_SENSOR_MASK = 0x3F
_ANTENNA_DOWN = 0xC0

# byte 4, checked in order; first match wins
_ORIENTATION_BITS: tuple[tuple[int, Orientation], ...] = (
    (0x01, Orientation.UPRIGHT),
    (0x02, Orientation.UPSIDE_DOWN),
    (0x04, Orientation.LYING_RIGHT),
    (0x08, Orientation.LYING_LEFT),
    (0x20, Orientation.LEANING_BACK),
    (0x40, Orientation.TILTED_RIGHT),
    (0x80, Orientation.TILTED_LEFT),
)


@dataclass(frozen=True)
class FurbyState:
    """Decoded sensor snapshot from one state notification.

    Attributes:
        antenna: Antenna position
        orientation: Body orientation
        sensors: Set of touch sensors currently triggered
    """

    antenna: Antenna = Antenna.UNKNOWN
    orientation: Orientation = Orientation.UNKNOWN
    sensors: Sensor = Sensor.NONE

    @property
    def tickle_head_back(self) -> bool:
        return bool(self.sensors & Sensor.TICKLE_HEAD_BACK)

    @property
    def tickle_tummy(self) -> bool:
        return bool(self.sensors & Sensor.TICKLE_TUMMY)

    @property
    def tickle_right_side(self) -> bool:
        return bool(self.sensors & Sensor.TICKLE_RIGHT_SIDE)

    @property
    def tickle_left_side(self) -> bool:
        return bool(self.sensors & Sensor.TICKLE_LEFT_SIDE)

    @property
    def pull_tail(self) -> bool:
        return bool(self.sensors & Sensor.PULL_TAIL)

    @property
    def push_tongue(self) -> bool:
        return bool(self.sensors & Sensor.PUSH_TONGUE)


def _decode_antenna(lateral: int, longitudinal: int) -> Antenna:
    antenna = Antenna.UNKNOWN
    if lateral & 0x02:
        antenna = Antenna.LEFT
    # Not an elif: right overrides left when both bits are set
    if lateral & 0x01:
        antenna = Antenna.RIGHT

    if longitudinal == _ANTENNA_DOWN:
        antenna = Antenna.DOWN
    elif longitudinal & 0x40:
        antenna = Antenna.FORWARD
    elif longitudinal & 0x80:
        antenna = Antenna.BACK
    return antenna


def _decode_orientation(value: int) -> Orientation:
    for bit, orientation in _ORIENTATION_BITS:
        if value & bit:
            return orientation
    return Orientation.UNKNOWN


def decode_state(frame: bytes) -> FurbyState:
    """Decode a sensor state notification.

    Layout (only the bytes used here):
    - [1]: Antenna left (bit 1) / right (bit 0)
    - [2]: Antenna forward (bit 6) / back (bit 7), 0xC0 = down;
      bits 0-5 = touch sensors
    - [4]: Orientation bits

    Args:
        frame: Raw notification bytes (at least 5)

    Returns:
        FurbyState snapshot

    Raises:
        FrameTooShortError: If frame is shorter than 5 bytes
    """
    if len(frame) < STATE_FRAME_MIN_LENGTH:
        raise FrameTooShortError(
            f"State frame too short: {len(frame)} bytes (need at least {STATE_FRAME_MIN_LENGTH})"
        )

    return FurbyState(
        antenna=_decode_antenna(frame[1], frame[2]),
        orientation=_decode_orientation(frame[4]),
        sensors=Sensor(frame[2] & _SENSOR_MASK),
    )
