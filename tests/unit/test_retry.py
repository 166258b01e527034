"""Test reconnect backoff."""

import pytest

from furble.retry import RetryPolicy


class TestRetryPolicy:
    def test_default_backoff(self):
        policy = RetryPolicy()
        assert [policy.delay(n) for n in range(1, 6)] == [1000, 2000, 4000, 5000, 5000]

    def test_delay_seconds(self):
        assert RetryPolicy().delay_seconds(2) == 2.0

    def test_custom_policy(self):
        policy = RetryPolicy(initial_delay_ms=100, max_delay_ms=1000, multiplier=3)
        assert [policy.delay(n) for n in range(1, 5)] == [100, 300, 900, 1000]

    def test_zero_delay(self):
        assert RetryPolicy(0, 0).delay(10) == 0

    def test_attempt_must_be_positive(self):
        with pytest.raises(ValueError):
            RetryPolicy().delay(0)

    @pytest.mark.parametrize(
        "kwargs",
        [
            {"initial_delay_ms": -1},
            {"initial_delay_ms": 2000, "max_delay_ms": 1000},
            {"multiplier": 0},
        ],
    )
    def test_invalid_policy(self, kwargs):
        with pytest.raises(ValueError):
            RetryPolicy(**kwargs)
