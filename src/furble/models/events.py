"""Events emitted by the connection supervisor for a presentation layer."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Union

from .enums import FailureReason, SlotStatus
from .state import FurbyState


@dataclass(frozen=True)
class Connected:
    address: str | None = None


@dataclass(frozen=True)
class Disconnected:
    address: str | None = None


@dataclass(frozen=True)
class StateChanged:
    state: FurbyState


@dataclass(frozen=True)
class TransferProgress:
    bytes_sent: int
    total: int


@dataclass(frozen=True)
class TransferCompleted:
    slot: int


@dataclass(frozen=True)
class TransferFailed:
    reason: FailureReason


@dataclass(frozen=True)
class SlotStatusChanged:
    """Status of all 14 DLC slots, indexed by slot number."""

    slots: tuple[SlotStatus, ...]


SupervisorEvent = Union[
    Connected,
    Disconnected,
    StateChanged,
    TransferProgress,
    TransferCompleted,
    TransferFailed,
    SlotStatusChanged,
]
