"""Test FurbyConnection notification queue and writes without a radio."""

from __future__ import annotations

from types import SimpleNamespace

import pytest

from furble.exceptions import BLEConnectionError, BLETimeoutError
from furble.protocol.commands import FILE_WRITE_UUID, GENERALPLUS_WRITE_UUID
from furble.transport import FurbyConnection


class _FakeClient:
    def __init__(self, fail: bool = False):
        self.is_connected = True
        self.fail = fail
        self.writes: list[tuple[str, bytes, bool]] = []

    async def write_gatt_char(self, characteristic: str, data: bytes, response: bool) -> None:
        if self.fail:
            raise OSError("GATT write rejected")
        self.writes.append((characteristic, bytes(data), response))

    async def disconnect(self) -> None:
        self.is_connected = False


class TestNotificationQueue:
    """Test notification delivery through the queue."""

    @pytest.mark.asyncio
    async def test_notifications_in_order(self):
        connection = FurbyConnection("AA:BB:CC:DD:EE:FF")
        connection._notification_callback(None, bytearray(b"\x21\x00"))
        connection._notification_callback(None, bytearray(b"\x24\x02"))

        assert await connection.read_notification(timeout=0.1) == b"\x21\x00"
        assert await connection.read_notification(timeout=0.1) == b"\x24\x02"

    @pytest.mark.asyncio
    async def test_timeout(self):
        connection = FurbyConnection("AA:BB:CC:DD:EE:FF")
        with pytest.raises(BLETimeoutError, match="within 0.01s"):
            await connection.read_notification(timeout=0.01)

    @pytest.mark.asyncio
    async def test_disconnect_delivered_after_pending_frames(self):
        """Frames queued before the disconnect are still read first."""
        connection = FurbyConnection("AA:BB:CC:DD:EE:FF")
        connection._client = _FakeClient()
        connection._notification_callback(None, bytearray(b"\x24\x05"))
        connection._disconnected_callback(None)

        assert await connection.read_notification(timeout=0.1) == b"\x24\x05"
        with pytest.raises(BLEConnectionError, match="disconnected"):
            await connection.read_notification(timeout=0.1)
        assert not connection.is_connected

    @pytest.mark.asyncio
    async def test_timeout_is_connection_error(self):
        """Callers catching BLEConnectionError also see timeouts."""
        connection = FurbyConnection()
        with pytest.raises(BLEConnectionError):
            await connection.read_notification(timeout=0.01)


class TestWrites:
    """Test characteristic selection for writes."""

    @pytest.mark.asyncio
    async def test_write_command(self):
        connection = FurbyConnection("AA:BB:CC:DD:EE:FF")
        client = _FakeClient()
        connection._client = client  # Inject fake client

        await connection.write_command(b"\x60\x02")

        assert client.writes == [(GENERALPLUS_WRITE_UUID, b"\x60\x02", True)]

    @pytest.mark.asyncio
    async def test_write_file_data(self):
        connection = FurbyConnection("AA:BB:CC:DD:EE:FF")
        client = _FakeClient()
        connection._client = client  # Inject fake client

        await connection.write_file_data(b"\x00" * 20)

        assert client.writes == [(FILE_WRITE_UUID, b"\x00" * 20, True)]

    @pytest.mark.asyncio
    async def test_write_requires_connection(self):
        connection = FurbyConnection("AA:BB:CC:DD:EE:FF")
        with pytest.raises(BLEConnectionError, match="Not connected"):
            await connection.write_command(b"\x61")

    @pytest.mark.asyncio
    async def test_write_failure_wrapped(self):
        connection = FurbyConnection("AA:BB:CC:DD:EE:FF")
        connection._client = _FakeClient(fail=True)  # Inject fake client

        with pytest.raises(BLEConnectionError, match="Write failed: GATT write rejected"):
            await connection.write_command(b"\x61")

    @pytest.mark.asyncio
    async def test_disconnect_clears_client(self):
        connection = FurbyConnection("AA:BB:CC:DD:EE:FF")
        connection._client = _FakeClient()

        await connection.disconnect()

        assert not connection.is_connected


class _FakeServices:
    def __init__(self, has_service: bool):
        self._has_service = has_service

    def get_service(self, uuid: str):
        return object() if self._has_service else None


class _ConnectingClient(_FakeClient):
    def __init__(self, has_service: bool = True, notify_error: Exception | None = None):
        super().__init__()
        self.services = _FakeServices(has_service)
        self.notify_error = notify_error
        self.disconnect_calls = 0

    async def start_notify(self, characteristic: str, callback) -> None:
        if self.notify_error is not None:
            raise self.notify_error

    async def disconnect(self) -> None:
        self.disconnect_calls += 1
        await super().disconnect()


def _patch_establish(monkeypatch, client: _ConnectingClient) -> None:
    async def establish_connection(**kwargs):
        return client

    monkeypatch.setattr(
        "furble.transport.connection.establish_connection", establish_connection
    )


_DEVICE = SimpleNamespace(address="AA:BB:CC:DD:EE:FF", name="Furby")


class TestConnect:
    """Test that a failed setup never leaves a link open."""

    @pytest.mark.asyncio
    async def test_connect_subscribes(self, monkeypatch):
        client = _ConnectingClient()
        _patch_establish(monkeypatch, client)
        connection = FurbyConnection(ble_device=_DEVICE)

        await connection.connect()

        assert connection.is_connected
        assert connection.address == "AA:BB:CC:DD:EE:FF"

    @pytest.mark.asyncio
    async def test_missing_service_disconnects(self, monkeypatch):
        client = _ConnectingClient(has_service=False)
        _patch_establish(monkeypatch, client)
        connection = FurbyConnection(ble_device=_DEVICE)

        with pytest.raises(BLEConnectionError, match="not found"):
            await connection.connect()

        assert client.disconnect_calls == 1
        assert not client.is_connected
        assert not connection.is_connected

    @pytest.mark.asyncio
    async def test_start_notify_failure_disconnects(self, monkeypatch):
        client = _ConnectingClient(notify_error=OSError("notify rejected"))
        _patch_establish(monkeypatch, client)
        connection = FurbyConnection(ble_device=_DEVICE)

        with pytest.raises(BLEConnectionError, match="notify rejected"):
            await connection.connect()

        assert client.disconnect_calls == 1
        assert not connection.is_connected
