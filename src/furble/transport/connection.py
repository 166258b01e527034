"""BLE connection management."""

from __future__ import annotations

import asyncio
import logging
from typing import TYPE_CHECKING

from bleak import BleakClient, BleakScanner
from bleak_retry_connector import BleakClientWithServiceCache, establish_connection

from ..exceptions import BLEConnectionError, BLETimeoutError
from ..protocol.commands import (
    DEVICE_NAME,
    FILE_WRITE_UUID,
    GENERALPLUS_LISTEN_UUID,
    GENERALPLUS_WRITE_UUID,
    SERVICE_UUID,
)
from ..protocol.responses import to_hex

if TYPE_CHECKING:
    from bleak.backends.device import BLEDevice

_LOGGER = logging.getLogger(__name__)


class FurbyConnection:
    """Manages the BLE connection to one Furby.

    Features:
    - Automatic retry logic with bleak-retry-connector
    - Service caching for faster reconnections
    - Context manager for automatic cleanup
    - Notification queue; a disconnect is delivered through the same queue
    """

    def __init__(
            self,
            address: str | None = None,
            ble_device: BLEDevice | None = None,
            timeout: float = 10.0,
            max_attempts: int = 4,
            use_services_cache: bool = True,
    ):
        """Initialize BLE connection manager.

        Args:
            address: Device MAC address (None scans for a device named "Furby")
            ble_device: Optional BLEDevice from an existing scan
            timeout: Connection timeout in seconds (default: 10)
            max_attempts: Maximum connection attempts for bleak-retry-connector (default: 4)
            use_services_cache: Enable GATT service caching for faster reconnections (default: True)
        """
        self.address = address
        self.ble_device = ble_device
        self.timeout = timeout
        self.max_attempts = max_attempts
        self.use_services_cache = use_services_cache

        self._client: BleakClient | None = None
        # None is the disconnect sentinel
        self._notification_queue: asyncio.Queue[bytes | None] = asyncio.Queue()

    async def __aenter__(self) -> FurbyConnection:
        """Connect to device (context manager entry)."""
        await self.connect()
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb) -> None:
        """Disconnect from device (context manager exit)."""
        await self.disconnect()

    async def _resolve_device(self) -> BLEDevice:
        if self.ble_device:
            return self.ble_device

        if self.address:
            device = await BleakScanner.find_device_by_address(
                self.address,
                timeout=self.timeout,
            )
        else:
            device = await BleakScanner.find_device_by_name(
                DEVICE_NAME,
                timeout=self.timeout,
            )
        if device is None:
            raise BLEConnectionError(
                f"Device {self.address or DEVICE_NAME} not found during scan"
            )
        return device

    async def connect(self) -> None:
        """Establish BLE connection to device.

        Raises:
            BLEConnectionError: If connection fails
            BLETimeoutError: If connection times out
        """
        if self._client and self._client.is_connected:
            return

        try:
            device = await self._resolve_device()
            _LOGGER.debug(
                "Connecting to %s with bleak-retry-connector (max_attempts=%d)",
                device.address,
                self.max_attempts,
            )

            self._client = await establish_connection(
                client_class=BleakClientWithServiceCache,
                device=device,
                name=device.name or DEVICE_NAME,
                disconnected_callback=self._disconnected_callback,
                max_attempts=self.max_attempts,
                use_services_cache=self.use_services_cache,
                timeout=self.timeout,
            )
            self.address = device.address

            _LOGGER.debug("Connected to %s", self.address)

            try:
                await self._setup_notifications()
            except Exception:
                # Do not leave a half-set-up link open
                await self.disconnect()
                self._client = None
                raise

        except BLEConnectionError:
            raise
        except asyncio.TimeoutError as e:
            raise BLETimeoutError(
                f"Connection timeout after {self.timeout}s"
            ) from e
        except Exception as e:
            raise BLEConnectionError(
                f"Failed to connect: {e}"
            ) from e

    async def disconnect(self) -> None:
        """Disconnect from device."""
        if self._client and self._client.is_connected:
            try:
                _LOGGER.debug("Disconnecting from %s", self.address)
                await self._client.disconnect()
            except Exception as e:
                _LOGGER.warning("Error during disconnect: %s", e)
            finally:
                self._client = None

    async def _setup_notifications(self) -> None:
        """Subscribe to the GeneralPlus listen characteristic.

        Raises:
            BLEConnectionError: If the Furby service is not found
        """
        if not self._client or not self._client.is_connected:
            raise BLEConnectionError("Not connected")

        if self._client.services.get_service(SERVICE_UUID) is None:
            raise BLEConnectionError(f"Service {SERVICE_UUID} not found")

        # Drop anything left over from a previous session
        while not self._notification_queue.empty():
            self._notification_queue.get_nowait()

        await self._client.start_notify(
            GENERALPLUS_LISTEN_UUID,
            self._notification_callback,
        )

        _LOGGER.debug("Notifications started")

    def _notification_callback(self, sender, data: bytearray) -> None:
        self._notification_queue.put_nowait(bytes(data))

    def _disconnected_callback(self, client: BleakClient) -> None:
        _LOGGER.debug("Device %s disconnected", self.address)
        self._notification_queue.put_nowait(None)

    async def _write(self, characteristic: str, data: bytes) -> None:
        if not self._client or not self._client.is_connected:
            raise BLEConnectionError("Not connected")

        _LOGGER.debug("Write %s: %s", characteristic[:8], to_hex(data))
        try:
            await self._client.write_gatt_char(
                characteristic,
                data,
                response=True,  # Wait for write confirmation
            )
        except Exception as e:
            raise BLEConnectionError(f"Write failed: {e}") from e

    async def write_command(self, data: bytes) -> None:
        """Write a command to the GeneralPlus characteristic.

        Raises:
            BLEConnectionError: If not connected or write fails
        """
        await self._write(GENERALPLUS_WRITE_UUID, data)

    async def write_file_data(self, data: bytes) -> None:
        """Write a DLC chunk to the file-write characteristic.

        Raises:
            BLEConnectionError: If not connected or write fails
        """
        await self._write(FILE_WRITE_UUID, data)

    async def read_notification(self, timeout: float | None = None) -> bytes:
        """Read the next notification.

        Args:
            timeout: Seconds to wait, or None to wait indefinitely

        Returns:
            Notification data from device

        Raises:
            BLETimeoutError: If nothing arrives within timeout
            BLEConnectionError: If the device disconnected
        """
        try:
            data = await asyncio.wait_for(
                self._notification_queue.get(),
                timeout=timeout,
            )
        except asyncio.TimeoutError as e:
            raise BLETimeoutError(
                f"No notification received within {timeout}s"
            ) from e

        if data is None:
            self._client = None
            raise BLEConnectionError("Device disconnected")
        return data

    @property
    def is_connected(self) -> bool:
        """Check if currently connected to device."""
        return self._client is not None and self._client.is_connected
