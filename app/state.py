from __future__ import annotations

from collections.abc import Mapping
from dataclasses import dataclass, field
from enum import Enum
from typing import Any

from nicegui import binding


@dataclass(frozen=True)
class Device:
    name: str
    attributes: Mapping[str, Any] = field(default_factory=dict)  # raw jsonlist record


@dataclass(frozen=True)
class ListGroup:
    name: str | None
    devices: list[Device] = field(default_factory=list)


# Ordered groups as delivered by the server
InventoryPayload = list[ListGroup]


@dataclass
class TreeNode:
    label: str
    expanded: bool = False
    is_leaf: bool = True
    children: list[TreeNode] = field(default_factory=list)
    payload: Device | None = None


class RecoveryPhase(str, Enum):
    IDLE = "idle"
    AWAITING_RESTART = "awaiting_restart"
    POLLING = "polling"
    DONE = "done"
    GAVE_UP = "gave_up"
    ABANDONED = "abandoned"


# One per page; a finished restart reloads the page and discards it
@binding.bindable_dataclass
class ReconnectState:
    active: bool = False
    interval_ms: int = 1000
    attempts: int = 0
    phase: RecoveryPhase = RecoveryPhase.IDLE


@dataclass
class ConsoleState:
    status_text: str = ""
    server_version: str | None = None
    selected_device: str | None = None
    device_count: int = 0
