"""DLC content catalog parsing.

The catalog is a JSON list of records:

    [
        {
            "file": "dlc/halloween.dlc",
            "title": "Halloween",
            "buttons": [{"title": "Scream", "action": [39, 4, 2, 0]}]
        }
    ]

Only the fields used to build uploads and action commands are read.
"""

from __future__ import annotations

import json
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any

from .exceptions import ArgumentError
from .protocol.commands import ActionArity, make_dlc_filename


@dataclass(frozen=True)
class ButtonBinding:
    """A titled action trigger offered for one DLC."""

    title: str
    action: ActionArity


@dataclass(frozen=True)
class DlcEntry:
    """One uploadable DLC file and its actions."""

    file: str
    title: str
    buttons: tuple[ButtonBinding, ...] = field(default_factory=tuple)

    @property
    def device_filename(self) -> str:
        """12-character on-device name for this file."""
        return make_dlc_filename(self.file)


def _require(record: dict[str, Any], key: str, kind: type, where: str) -> Any:
    try:
        value = record[key]
    except KeyError as e:
        raise ArgumentError(f"{where}: missing '{key}'") from e
    if not isinstance(value, kind):
        raise ArgumentError(
            f"{where}: '{key}' must be {kind.__name__}, got {type(value).__name__}"
        )
    return value


def _parse_button(record: Any, where: str) -> ButtonBinding:
    if not isinstance(record, dict):
        raise ArgumentError(f"{where}: expected object, got {type(record).__name__}")
    title = _require(record, "title", str, where)
    action = _require(record, "action", list, where)
    return ButtonBinding(title=title, action=ActionArity.from_sequence(action))


def catalog_from_json(data: list[dict[str, Any]]) -> list[DlcEntry]:
    """Build catalog entries from decoded JSON.

    Args:
        data: Decoded JSON list of DLC records

    Returns:
        Entries in catalog order

    Raises:
        ArgumentError: If a record is missing fields or has invalid actions
    """
    if not isinstance(data, list):
        raise ArgumentError(f"Catalog must be a list, got {type(data).__name__}")

    entries = []
    for i, record in enumerate(data):
        where = f"catalog[{i}]"
        if not isinstance(record, dict):
            raise ArgumentError(f"{where}: expected object, got {type(record).__name__}")

        buttons = tuple(
            _parse_button(button, f"{where}.buttons[{j}]")
            for j, button in enumerate(record.get("buttons", []))
        )
        entries.append(DlcEntry(
            file=_require(record, "file", str, where),
            title=_require(record, "title", str, where),
            buttons=buttons,
        ))
    return entries


def load_catalog(path: str | Path) -> list[DlcEntry]:
    """Read and parse a catalog JSON file."""
    with open(path, encoding="utf-8") as f:
        return catalog_from_json(json.load(f))
