"""Test Adler-32 checksum."""

from furble.protocol.checksum import ADLER32_INITIAL, adler32


class TestAdler32:
    """Test adler32 against known values."""

    def test_empty_input(self):
        """Empty input yields the initial value 1."""
        assert adler32(b"") == 1
        assert adler32(b"") == ADLER32_INITIAL

    def test_wikipedia(self):
        """Reference value from the Adler-32 article."""
        assert adler32("Wikipedia".encode("utf-8")) == 0x11E60398

    def test_different_inputs_differ(self):
        assert adler32(b"abc") != adler32(b"abd")
        assert adler32(b"\x00") != adler32(b"")

    def test_running_checksum_matches_whole(self):
        """Folding chunks through value equals checksumming the whole payload."""
        payload = bytes(range(256)) * 3
        running = ADLER32_INITIAL
        for i in range(0, len(payload), 20):
            running = adler32(payload[i:i + 20], running)
        assert running == adler32(payload)

    def test_accepts_bytearray(self):
        assert adler32(bytearray(b"Wikipedia")) == 0x11E60398

    def test_result_is_unsigned_32bit(self):
        value = adler32(b"\xff" * 5000)
        assert 0 <= value <= 0xFFFFFFFF
