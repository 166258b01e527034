"""Reconnect backoff policy."""

from __future__ import annotations

from dataclasses import dataclass

INITIAL_RETRY_DELAY_MS = 1000
MAX_RETRY_DELAY_MS = 5000


@dataclass(frozen=True)
class RetryPolicy:
    """Exponential backoff for (re)establishing the BLE connection.

    delay(attempt) = min(initial_delay_ms * multiplier ** (attempt - 1), max_delay_ms)
    """

    initial_delay_ms: int = INITIAL_RETRY_DELAY_MS
    max_delay_ms: int = MAX_RETRY_DELAY_MS
    multiplier: int = 2

    def __post_init__(self) -> None:
        if self.initial_delay_ms < 0:
            raise ValueError(f"initial_delay_ms must be >= 0, got {self.initial_delay_ms}")
        if self.max_delay_ms < self.initial_delay_ms:
            raise ValueError(
                f"max_delay_ms ({self.max_delay_ms}) must be >= "
                f"initial_delay_ms ({self.initial_delay_ms})"
            )
        if self.multiplier < 1:
            raise ValueError(f"multiplier must be >= 1, got {self.multiplier}")

    def delay(self, attempt: int) -> int:
        """Delay in milliseconds before retry number ``attempt`` (1-based)."""
        if attempt < 1:
            raise ValueError(f"attempt must be >= 1, got {attempt}")
        return min(self.initial_delay_ms * self.multiplier ** (attempt - 1), self.max_delay_ms)

    def delay_seconds(self, attempt: int) -> float:
        return self.delay(attempt) / 1000.0
