"""Connection supervisor: owns the BLE session, routes frames, drives uploads."""

from __future__ import annotations

import asyncio
import logging
from typing import TYPE_CHECKING, Callable

from .exceptions import (
    BLEConnectionError,
    BLETimeoutError,
    DeviceError,
    FurbyError,
    ProtocolError,
)
from .models.enums import FailureReason, SlotStatus, TransferMode, TransferState, WriteTarget
from .models.events import (
    Connected,
    Disconnected,
    SlotStatusChanged,
    StateChanged,
    SupervisorEvent,
    TransferCompleted,
    TransferFailed,
    TransferProgress,
)
from .models.state import FurbyState
from .protocol import (
    CHUNK_SIZE,
    SLOT_COUNT,
    ActionArity,
    OutboundFrame,
    ResponseCode,
    TransferSession,
    build_action_command,
    build_antenna_color_command,
    build_dlc_activate_command,
    build_dlc_deactivate_command,
    build_dlc_delete_command,
    build_dlc_load_command,
    build_firmware_version_command,
    build_slot_info_command,
    decode_notification,
    make_dlc_filename,
    matches_prefix,
    to_hex,
)
from .protocol.responses import (
    FirmwareVersionNotification,
    SensorStateNotification,
    SlotInfoNotification,
    parse_firmware_version,
    parse_slot_info_response,
    parse_transfer_mode,
)
from .protocol.transfer import DEFAULT_MAX_RETRIES
from .retry import RetryPolicy
from .transport import FurbyConnection

if TYPE_CHECKING:
    from bleak.backends.device import BLEDevice

_LOGGER = logging.getLogger(__name__)

ConnectionFactory = Callable[[], FurbyConnection]

# Exception raised by upload() for each way a transfer can fail
_FAILURE_ERRORS: dict[FailureReason, type[FurbyError]] = {
    FailureReason.RETRIES_EXHAUSTED: BLETimeoutError,
    FailureReason.DEVICE_REJECTED: DeviceError,
    FailureReason.ABORTED: DeviceError,
    FailureReason.CANCELLED: FurbyError,
    FailureReason.CONNECTION_LOST: BLEConnectionError,
}


class ConnectionSupervisor:
    """Keeps one Furby connected and serializes all protocol traffic.

    A single background task reads notifications in receipt order and routes
    each one to the pending request, the active DLC transfer, or the state
    decoder. After a disconnect it reconnects with exponential backoff until
    stopped. Results are published on ``events`` (an asyncio.Queue meant for
    one consumer).

    Usage:
        supervisor = ConnectionSupervisor("AA:BB:CC:DD:EE:FF")
        await supervisor.connect()
        await supervisor.send_action(ActionArity.four(39, 4, 2, 0))
        event = await supervisor.events.get()
        ...
        await supervisor.disconnect()
    """

    def __init__(
            self,
            address: str | None = None,
            ble_device: BLEDevice | None = None,
            *,
            retry_policy: RetryPolicy | None = None,
            chunk_timeout: float = 5.0,
            max_chunk_retries: int = DEFAULT_MAX_RETRIES,
            chunk_size: int = CHUNK_SIZE,
            request_timeout: float = 5.0,
            connection_factory: ConnectionFactory | None = None,
    ):
        """Initialize supervisor.

        Args:
            address: Device MAC address (None scans for a device named "Furby")
            ble_device: Optional BLEDevice from an existing scan
            retry_policy: Reconnect backoff (default: 1s doubling, capped at 5s)
            chunk_timeout: Seconds to wait for each transfer signal (default: 5)
            max_chunk_retries: Timeouts tolerated per chunk (default: 3)
            chunk_size: DLC bytes per chunk (default: 20)
            request_timeout: Seconds to wait for request responses (default: 5)
            connection_factory: Creates a fresh transport per connection attempt
        """
        self.address = address
        self.retry_policy = retry_policy or RetryPolicy()
        self.chunk_timeout = chunk_timeout
        self.max_chunk_retries = max_chunk_retries
        self.chunk_size = chunk_size
        self.request_timeout = request_timeout

        if connection_factory is None:
            def connection_factory() -> FurbyConnection:
                return FurbyConnection(address, ble_device)
        self._connection_factory = connection_factory

        self.events: asyncio.Queue[SupervisorEvent] = asyncio.Queue()
        self.attempt = 0
        self.firmware_version: int | None = None

        self._connection: FurbyConnection | None = None
        self._transfer: TransferSession | None = None
        self._transfer_done: asyncio.Future[TransferSession] | None = None
        self._pending: tuple[bytes, asyncio.Future[bytes]] | None = None
        self._state: FurbyState | None = None
        self._slots: tuple[SlotStatus, ...] = (SlotStatus.EMPTY,) * SLOT_COUNT
        self._slot_before_upload = SlotStatus.EMPTY
        self._stopped = asyncio.Event()
        self._connected = asyncio.Event()
        self._task: asyncio.Task[None] | None = None
        self._chunk_deadline = 0.0

    async def __aenter__(self) -> ConnectionSupervisor:
        """Connect (context manager entry)."""
        await self.connect()
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb) -> None:
        """Disconnect (context manager exit)."""
        await self.disconnect()

    @property
    def is_connected(self) -> bool:
        return self._connection is not None and self._connection.is_connected

    @property
    def state(self) -> FurbyState | None:
        """Last decoded sensor state, if any."""
        return self._state

    @property
    def slots(self) -> tuple[SlotStatus, ...]:
        """Last known status of every DLC slot."""
        return self._slots

    @property
    def transfer(self) -> TransferSession | None:
        """The in-flight DLC upload, if any."""
        return self._transfer

    # Lifecycle

    async def connect(self) -> bool:
        """Connect, retrying with backoff until connected or stopped.

        Once connected, a background task pumps notifications and
        reconnects after connection loss.

        Returns:
            True if connected, False if stop_reconnecting() ended the attempts
        """
        self._stopped.clear()
        if self._task is not None and not self._task.done():
            # The background task owns (re)connection while it runs
            return await self._wait_connected(self._task)

        if self._connection is None and not await self._acquire():
            return False
        self._task = asyncio.create_task(self._run())
        self._task.add_done_callback(self._on_task_done)
        return True

    def stop_reconnecting(self) -> None:
        """Stop any ongoing or future reconnect attempts.

        Takes effect at the next backoff wait. From another thread, call it
        through ``loop.call_soon_threadsafe``.
        """
        self._stopped.set()

    async def disconnect(self) -> None:
        """Cancel any upload, stop reconnecting and drop the connection."""
        self.stop_reconnecting()

        task, self._task = self._task, None
        if task is not None and not task.done() and task is not asyncio.current_task():
            task.cancel()
            try:
                await task
            except asyncio.CancelledError:
                pass

        connection = self._connection
        if connection is None:
            return

        if self._transfer is not None:
            frames = self._transfer.cancel()
            self._finish_transfer()
            for frame in frames:
                try:
                    await self._send(connection, frame)
                except BLEConnectionError as e:
                    _LOGGER.warning("Could not end transfer before disconnect: %s", e)

        self._connection = None
        self._connected.clear()
        await connection.disconnect()
        self._fail_pending(BLEConnectionError("Disconnected"))
        self._emit(Disconnected(connection.address))
        _LOGGER.info("Disconnected from %s", connection.address)

    async def _acquire(self) -> bool:
        while not self._stopped.is_set():
            if self._connection is not None:
                return True

            connection = self._connection_factory()
            try:
                await connection.connect()
            except BLEConnectionError as e:
                await connection.disconnect()
                self.attempt += 1
                delay = self.retry_policy.delay_seconds(self.attempt)
                _LOGGER.warning(
                    "Connection attempt %d failed: %s (retrying in %.1fs)",
                    self.attempt,
                    e,
                    delay,
                )
                if await self._wait_stopped(delay):
                    break
                continue

            self._connection = connection
            self._connected.set()
            self.attempt = 0
            _LOGGER.info("Connected to %s", connection.address)
            self._emit(Connected(connection.address))
            return True

        _LOGGER.info("Reconnecting stopped")
        return False

    async def _wait_stopped(self, delay: float) -> bool:
        """Sleep for ``delay`` seconds; True if stopped meanwhile."""
        try:
            await asyncio.wait_for(self._stopped.wait(), timeout=delay)
        except asyncio.TimeoutError:
            return False
        return True

    async def _wait_connected(self, task: asyncio.Task[None]) -> bool:
        """Wait until the background task holds a connection or ends."""
        if self._connection is not None:
            return True
        connected = asyncio.ensure_future(self._connected.wait())
        try:
            await asyncio.wait({connected, task}, return_when=asyncio.FIRST_COMPLETED)
        finally:
            connected.cancel()
        return self._connection is not None

    def _on_task_done(self, task: asyncio.Task[None]) -> None:
        if task.cancelled():
            return
        error = task.exception()
        if error is not None:
            _LOGGER.error("Connection supervisor task failed", exc_info=error)

    async def _run(self) -> None:
        reconnecting = False
        while not self._stopped.is_set():
            if self._connection is None:
                if reconnecting:
                    self.attempt += 1
                    if await self._wait_stopped(self.retry_policy.delay_seconds(self.attempt)):
                        break
                # Another caller may have connected during the backoff
                if self._connection is None and not await self._acquire():
                    break
            await self._pump()
            reconnecting = True

    async def _pump(self) -> None:
        connection = self._connection
        loop = asyncio.get_running_loop()
        while connection is not None and connection is self._connection:
            try:
                try:
                    frame = await connection.read_notification(self._read_timeout())
                except BLETimeoutError:
                    # Idle reads also time out; only an expired chunk deadline counts
                    if self._transfer_waiting() and loop.time() >= self._chunk_deadline:
                        await self.on_chunk_timeout()
                    continue
                await self.on_notification(frame)
            except BLEConnectionError as e:
                _LOGGER.warning("Connection to %s lost: %s", connection.address, e)
                if connection is self._connection:
                    await self.on_disconnected()
                return

    def _read_timeout(self) -> float:
        if self._transfer_waiting():
            return max(self._chunk_deadline - asyncio.get_running_loop().time(), 0.0)
        return self.chunk_timeout

    # Inbound

    async def on_notification(self, frame: bytes) -> None:
        """Route one inbound frame.

        Raises:
            BLEConnectionError: If writing a transfer response fails
        """
        _LOGGER.debug("Notification: %s", to_hex(frame))

        if self._pending is not None:
            prefix, future = self._pending
            if matches_prefix(prefix, frame) and not future.done():
                future.set_result(bytes(frame))
                return

        transfer = self._transfer
        if transfer is not None and transfer.is_active and matches_prefix(
                transfer.expected_prefix, frame):
            try:
                mode = parse_transfer_mode(frame)
            except ProtocolError as e:
                _LOGGER.warning("Dropping malformed transfer frame %s: %s", to_hex(frame), e)
                return
            await self._drive_transfer(transfer.handle_mode(mode))
            return

        try:
            notification = decode_notification(frame)
        except ProtocolError as e:
            _LOGGER.warning("Dropping malformed frame %s: %s", to_hex(frame), e)
            return

        if isinstance(notification, SensorStateNotification):
            self._state = notification.state
            self._emit(StateChanged(notification.state))
        elif isinstance(notification, SlotInfoNotification):
            self._set_slots(notification.slots)
        elif isinstance(notification, FirmwareVersionNotification):
            self.firmware_version = notification.version
        else:
            _LOGGER.debug("Unrouted frame: %s", to_hex(frame))

    async def on_chunk_timeout(self) -> None:
        """Handle expiry of the per-chunk wait."""
        if self._transfer_waiting():
            await self._drive_transfer(
                self._transfer.handle_mode(TransferMode.FILE_TRANSFER_TIMEOUT)
            )

    async def on_disconnected(self) -> None:
        """Handle loss of the transport.

        Fails any in-flight upload with CONNECTION_LOST; the background task
        reconnects according to the retry policy.
        """
        connection, self._connection = self._connection, None
        if connection is None:
            return
        self._connected.clear()

        _LOGGER.info("Disconnected from %s", connection.address)
        self._emit(Disconnected(connection.address))

        if self._transfer is not None:
            self._transfer.fail(FailureReason.CONNECTION_LOST)
            self._finish_transfer()
        self._fail_pending(BLEConnectionError("Disconnected"))
        await connection.disconnect()

    # Commands

    async def send_action(self, action: ActionArity) -> None:
        """Trigger a Furby action (see ActionArity)."""
        await self._write(OutboundFrame(build_action_command(action)))

    async def set_antenna_color(self, red: int, green: int, blue: int) -> None:
        await self._write(OutboundFrame(build_antenna_color_command(red, green, blue)))

    async def load_slot(self, slot: int) -> None:
        await self._write(OutboundFrame(build_dlc_load_command(slot)))

    async def delete_slot(self, slot: int) -> None:
        await self._write(OutboundFrame(build_dlc_delete_command(slot)))

    async def activate_slot(self) -> None:
        """Activate the most recently loaded DLC."""
        await self._write(OutboundFrame(build_dlc_activate_command()))

    async def deactivate_slot(self) -> None:
        await self._write(OutboundFrame(build_dlc_deactivate_command()))

    async def begin_upload(self, slot: int, file: str, payload: bytes) -> TransferSession:
        """Start uploading a DLC file to ``slot``.

        Progress and the outcome are reported as TransferProgress,
        TransferCompleted and TransferFailed events.

        Args:
            slot: Target slot (0-13)
            file: Source filename or path; its basename names the file on the device
            payload: DLC file contents

        Returns:
            The transfer session (read-only for callers)

        Raises:
            ArgumentError: If slot or filename invalid (nothing is sent)
            RuntimeError: If another upload is in progress
            BLEConnectionError: If not connected or the start command fails
        """
        if self._transfer is not None and self._transfer.is_active:
            raise RuntimeError("A DLC upload is already in progress")

        session = TransferSession(self.chunk_size, self.max_chunk_retries)
        start_cmd = session.begin(slot, make_dlc_filename(file), payload)
        self._require_connection()

        self._transfer = session
        self._transfer_done = asyncio.get_running_loop().create_future()
        self._slot_before_upload = self._slots[slot]
        self._set_slot(slot, SlotStatus.UPLOADING)

        await self._write(OutboundFrame(start_cmd))
        self._arm_chunk_timer()
        return session

    async def upload(self, slot: int, file: str, payload: bytes) -> None:
        """Upload a DLC file and wait until the device confirms it.

        Events are emitted exactly as for begin_upload().

        Raises:
            ArgumentError: If slot or filename invalid (nothing is sent)
            DeviceError: If the device rejected or aborted the transfer
            BLETimeoutError: If a chunk went unanswered after all retries
            BLEConnectionError: If the connection was lost
            FurbyError: If the upload was cancelled
        """
        await self.begin_upload(slot, file, payload)
        session = await asyncio.shield(self._transfer_done)
        if session.failure is not None:
            raise _FAILURE_ERRORS[session.failure](
                f"Upload of {session.name} to slot {session.slot} failed: "
                f"{session.failure.value}"
            )

    async def cancel_upload(self) -> None:
        """Cancel the in-flight upload, if any (idempotent)."""
        transfer = self._transfer
        if transfer is None:
            return

        frames = transfer.cancel()
        self._finish_transfer()
        if self._connection is not None:
            for frame in frames:
                await self._write(frame)

    async def request_slot_info(self) -> tuple[SlotStatus, ...]:
        """Query which DLC slots are filled and active.

        Raises:
            BLETimeoutError: If the device does not answer in time
        """
        response = await self._request(
            build_slot_info_command(), bytes([ResponseCode.DLC_SLOT_INFO])
        )
        self._set_slots(parse_slot_info_response(response))
        return self._slots

    async def read_firmware_version(self) -> int:
        """Read the firmware version byte.

        Raises:
            BLETimeoutError: If the device does not answer in time
        """
        response = await self._request(
            build_firmware_version_command(), bytes([ResponseCode.FIRMWARE_VERSION])
        )
        self.firmware_version = parse_firmware_version(response)
        _LOGGER.info("Firmware version: %d", self.firmware_version)
        return self.firmware_version

    # Internals

    def _emit(self, event: SupervisorEvent) -> None:
        _LOGGER.debug("Event: %s", event)
        self.events.put_nowait(event)

    def _require_connection(self) -> FurbyConnection:
        if self._connection is None:
            raise BLEConnectionError("Not connected")
        return self._connection

    def _transfer_waiting(self) -> bool:
        return self._transfer is not None and self._transfer.is_active

    @staticmethod
    async def _send(connection: FurbyConnection, frame: OutboundFrame) -> None:
        if frame.target is WriteTarget.FILE_DATA:
            await connection.write_file_data(frame.data)
        else:
            await connection.write_command(frame.data)

    async def _write(self, frame: OutboundFrame) -> None:
        connection = self._require_connection()
        try:
            await self._send(connection, frame)
        except BLEConnectionError:
            # The disconnect reaches the pump through the transport
            await connection.disconnect()
            raise

    async def _request(self, command: bytes, response_prefix: bytes) -> bytes:
        if self._pending is not None:
            raise RuntimeError("Another request is already awaiting a response")

        future: asyncio.Future[bytes] = asyncio.get_running_loop().create_future()
        self._pending = (response_prefix, future)
        try:
            await self._write(OutboundFrame(command))
            return await asyncio.wait_for(future, timeout=self.request_timeout)
        except asyncio.TimeoutError as e:
            raise BLETimeoutError(
                f"No response to 0x{command[0]:02x} within {self.request_timeout}s"
            ) from e
        finally:
            self._pending = None

    def _fail_pending(self, error: Exception) -> None:
        if self._pending is not None:
            _, future = self._pending
            if not future.done():
                future.set_exception(error)

    async def _drive_transfer(self, frames: list[OutboundFrame]) -> None:
        transfer = self._transfer
        for frame in frames:
            await self._write(frame)
            if frame.target is WriteTarget.FILE_DATA:
                self._emit(TransferProgress(transfer.bytes_sent, transfer.total))
        if transfer.is_terminal:
            self._finish_transfer()
        else:
            self._arm_chunk_timer()

    def _arm_chunk_timer(self) -> None:
        self._chunk_deadline = asyncio.get_running_loop().time() + self.chunk_timeout

    def _finish_transfer(self) -> None:
        transfer, self._transfer = self._transfer, None
        if transfer is None:
            return
        if self._transfer_done is not None and not self._transfer_done.done():
            self._transfer_done.set_result(transfer)

        if transfer.state is TransferState.COMPLETED:
            self._set_slot(transfer.slot, SlotStatus.FILLED)
            self._emit(TransferCompleted(transfer.slot))
        else:
            self._set_slot(transfer.slot, self._slot_before_upload)
            self._emit(TransferFailed(transfer.failure))

    def _set_slot(self, slot: int, status: SlotStatus) -> None:
        slots = list(self._slots)
        slots[slot] = status
        self._slots = tuple(slots)
        self._emit(SlotStatusChanged(self._slots))

    def _set_slots(self, slots: tuple[SlotStatus, ...]) -> None:
        if self._transfer is not None and self._transfer.is_active:
            self._slot_before_upload = slots[self._transfer.slot]
            overlaid = list(slots)
            overlaid[self._transfer.slot] = SlotStatus.UPLOADING
            slots = tuple(overlaid)
        self._slots = slots
        self._emit(SlotStatusChanged(self._slots))
