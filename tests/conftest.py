"""Shared fixtures: frames captured from a Furby Connect."""

from __future__ import annotations

import pytest


@pytest.fixture
def idle_state_frame() -> bytes:
    """Sensor state of a Furby standing upright with nothing touched."""
    return bytes.fromhex("2100000001000000")


@pytest.fixture
def tickled_state_frame() -> bytes:
    """Sensor state while the tummy is tickled and the antenna leans left."""
    return bytes.fromhex("2102020001000000")


@pytest.fixture
def slot_info_frame() -> bytes:
    """Slot info: slots 0, 2 and 3 filled, slot 2 active."""
    return bytes.fromhex("72000d0004")


@pytest.fixture
def firmware_version_frame() -> bytes:
    return bytes.fromhex("fe03")


@pytest.fixture
def dlc_payload() -> bytes:
    """45-byte DLC payload: three chunks of 20, 20 and 5 bytes."""
    return bytes(range(45))
