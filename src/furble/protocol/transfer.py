"""DLC upload state machine."""

from __future__ import annotations

import logging

from ..models.enums import (
    TERMINAL_STATES,
    FailureReason,
    TransferMode,
    TransferState,
    WriteTarget,
)
from .checksum import adler32
from .commands import (
    CHUNK_SIZE,
    OutboundFrame,
    build_dlc_upload_start_command,
    build_end_transfer_command,
)
from .responses import TRANSFER_MODE_PREFIX

_LOGGER = logging.getLogger(__name__)

DEFAULT_MAX_RETRIES = 3

_READY_MODES = (TransferMode.READY_TO_RECEIVE, TransferMode.READY_TO_APPEND)
_AWAITING_STATES = (TransferState.AWAITING_READY, TransferState.AWAITING_CHUNK_ACK)


class TransferSession:
    """Drives one DLC upload to a numbered slot.

    The session performs no I/O. ``begin`` returns the start command and
    every signal handler returns the frames the caller must write, so the
    owner decides how and when they reach the transport.

    Flow:
        IDLE -> AWAITING_READY -> SENDING -> AWAITING_CHUNK_ACK -> SENDING ...
        -> AWAITING_FINAL_RESULT -> COMPLETED | FAILED

    Usage:
        session = TransferSession()
        await write(session.begin(slot, name, payload))
        for frame in session.handle_mode(mode):
            await write(frame)
    """

    expected_prefix = TRANSFER_MODE_PREFIX

    def __init__(self, chunk_size: int = CHUNK_SIZE, max_retries: int = DEFAULT_MAX_RETRIES):
        """Initialize transfer session.

        Args:
            chunk_size: Maximum file bytes per chunk (default: 20)
            max_retries: Timeouts tolerated per chunk before giving up (default: 3)
        """
        if chunk_size < 1:
            raise ValueError(f"chunk_size must be positive, got {chunk_size}")
        if max_retries < 0:
            raise ValueError(f"max_retries must be >= 0, got {max_retries}")

        self.chunk_size = chunk_size
        self.max_retries = max_retries

        self.state = TransferState.IDLE
        self.slot: int | None = None
        self.name: str | None = None
        self.checksum: int | None = None
        self.bytes_sent = 0
        self.retry_count = 0
        self.last_mode: TransferMode | None = None
        self.failure: FailureReason | None = None

        self._payload = b""
        self._last_frame: OutboundFrame | None = None

    @property
    def total(self) -> int:
        return len(self._payload)

    @property
    def is_terminal(self) -> bool:
        return self.state in TERMINAL_STATES

    @property
    def is_active(self) -> bool:
        """True between begin() and a terminal state."""
        return self.state is not TransferState.IDLE and not self.is_terminal

    def begin(self, slot: int, name: str, payload: bytes) -> bytes:
        """Start the upload.

        Args:
            slot: Target slot (0-13)
            name: 12-character device filename
            payload: DLC file contents

        Returns:
            Start-transfer command to write to the device

        Raises:
            SlotOutOfRangeError: If slot not in 0-13
            InvalidNameError: If name not exactly 12 ASCII characters
            RuntimeError: If the session was already started
        """
        if self.state is not TransferState.IDLE:
            raise RuntimeError(f"Transfer already started (state={self.state.value})")

        payload = bytes(payload)
        start_cmd = build_dlc_upload_start_command(slot, name, payload)

        self.slot = slot
        self.name = name
        self._payload = payload
        self.checksum = adler32(payload)
        self._last_frame = OutboundFrame(start_cmd)
        self.state = TransferState.AWAITING_READY

        _LOGGER.info(
            "Starting DLC upload of %s to slot %d (%d bytes, adler32=0x%08x)",
            name,
            slot,
            self.total,
            self.checksum,
        )
        return start_cmd

    def handle_mode(self, mode: TransferMode) -> list[OutboundFrame]:
        """Apply a transfer mode signal from the device.

        Args:
            mode: Signal received (or FILE_TRANSFER_TIMEOUT for a local timeout)

        Returns:
            Frames to write, in order (possibly empty)
        """
        if self.state is TransferState.IDLE or self.is_terminal:
            _LOGGER.debug(
                "Ignoring transfer mode %s in state %s", mode.name, self.state.value
            )
            return []

        self.last_mode = mode

        if mode in _READY_MODES:
            return self._on_ready(mode)
        if mode is TransferMode.FILE_TRANSFER_TIMEOUT:
            return self._on_timeout()
        if mode is TransferMode.FILE_RECEIVED_OK:
            if self.bytes_sent < self.total:
                _LOGGER.warning(
                    "Device reported success after %d/%d bytes", self.bytes_sent, self.total
                )
            self.state = TransferState.COMPLETED
            _LOGGER.info("DLC upload to slot %d complete", self.slot)
            return []
        if mode is TransferMode.FILE_RECEIVED_ERR:
            self._fail(FailureReason.DEVICE_REJECTED)
            return []

        # END_CURRENT_TRANSFER we did not ask for
        self._fail(FailureReason.ABORTED)
        return []

    def cancel(self) -> list[OutboundFrame]:
        """Abandon the upload.

        Returns:
            End-transfer command to write, or nothing if already terminal
        """
        if self.is_terminal:
            return []
        self._fail(FailureReason.CANCELLED)
        return [OutboundFrame(build_end_transfer_command())]

    def fail(self, reason: FailureReason) -> bool:
        """Fail the session from outside (e.g. connection lost).

        Returns:
            True if the session transitioned, False if it was already terminal
        """
        if self.is_terminal:
            return False
        self._fail(reason)
        return True

    def _on_ready(self, mode: TransferMode) -> list[OutboundFrame]:
        if self.state not in _AWAITING_STATES:
            _LOGGER.debug("Ignoring %s in state %s", mode.name, self.state.value)
            return []

        if self.bytes_sent >= self.total:
            self.state = TransferState.AWAITING_FINAL_RESULT
            _LOGGER.debug("All %d bytes sent, awaiting final result", self.total)
            return []

        self.state = TransferState.SENDING
        chunk = self._payload[self.bytes_sent:self.bytes_sent + self.chunk_size]
        self.bytes_sent += len(chunk)
        self.retry_count = 0
        self._last_frame = OutboundFrame(chunk, WriteTarget.FILE_DATA)
        self.state = TransferState.AWAITING_CHUNK_ACK

        _LOGGER.debug(
            "Sent %d/%d bytes (%.1f%%)",
            self.bytes_sent,
            self.total,
            self.bytes_sent / self.total * 100,
        )
        return [self._last_frame]

    def _on_timeout(self) -> list[OutboundFrame]:
        self.retry_count += 1
        if self.retry_count > self.max_retries:
            self._fail(FailureReason.RETRIES_EXHAUSTED)
            return []

        _LOGGER.warning(
            "Transfer timeout in state %s (retry %d/%d)",
            self.state.value,
            self.retry_count,
            self.max_retries,
        )
        if self.state is TransferState.AWAITING_FINAL_RESULT or self._last_frame is None:
            return []
        return [self._last_frame]

    def _fail(self, reason: FailureReason) -> None:
        self.state = TransferState.FAILED
        self.failure = reason
        _LOGGER.warning(
            "DLC upload to slot %s failed: %s (%d/%d bytes sent)",
            self.slot,
            reason.value,
            self.bytes_sent,
            self.total,
        )
