from __future__ import annotations

import json
from typing import TYPE_CHECKING

import pytest

from app.services.fhem_client import TransportFailure

pytest_plugins = ["nicegui.testing.user_plugin"]


if TYPE_CHECKING:
    from collections.abc import Iterable

# Scripted reply meaning "no answer from the server"
FAIL = object()

INVENTORY = {
    "Results": [
        {"list": "Lamps", "devices": [{"NAME": "Kitchen", "STATE": "on"}]},
        {"list": "", "devices": []},
        {"list": "Sensors", "devices": []},
    ]
}


class ScriptedClient:
    """
    Stands in for FhemClient: replies come from per-command scripts, every
    command is recorded (also into the shared event list, as "request:<cmd>").
    """

    def __init__(
        self,
        replies: dict[str, Iterable[object]] | None = None,
        default: object = "",
        version: str | None = None,
        events: list[str] | None = None,
    ) -> None:
        self.replies = {k: list(v) for k, v in (replies or {}).items()}
        self.default = default
        self.version = version
        self.events = events if events is not None else []
        self.commands: list[str] = []

    async def request(self, command: str, xhr: bool = True) -> str:
        self.commands.append(command)
        self.events.append(f"request:{command}")
        script = self.replies.get(command)
        reply = script.pop(0) if script else self.default
        if reply is FAIL:
            raise TransportFailure(command, "connection refused")
        return str(reply)

    async def jsonlist(self) -> str:
        return await self.request("jsonlist")

    async def server_version(self) -> str | None:
        return self.version

    async def aclose(self) -> None:
        return None


class RecordingSurface:
    """Records every UI effect as (method, argument) and into the event list."""

    def __init__(self, events: list[str] | None = None) -> None:
        self.calls: list[tuple[str, str]] = []
        self.events = events if events is not None else []
        # set when the page behind the surface goes away
        self.closed = False

    def _record(self, name: str, arg: str = "") -> None:
        self.calls.append((name, arg))
        self.events.append(f"{name}:{arg}" if arg else name)

    def alert(self, title: str, message: str) -> None:
        self._record("alert", message)

    def show_response(self, body: str) -> None:
        self._record("show_response", body)

    def notice(self, message: str) -> None:
        self._record("notice", message)

    def mask(self, message: str) -> None:
        self._record("mask", message)

    def unmask(self) -> None:
        self._record("unmask")

    def reload(self) -> None:
        self._record("reload")


@pytest.fixture
def events() -> list[str]:
    return []


@pytest.fixture
def surface(events: list[str]) -> RecordingSurface:
    return RecordingSurface(events)


@pytest.fixture
def fake_sleep(events: list[str]):
    """Replacement for asyncio.sleep that only records the requested delay."""

    async def _sleep(delay: float) -> None:
        events.append(f"sleep:{delay}")

    return _sleep


@pytest.fixture
def inventory_json() -> str:
    return json.dumps(INVENTORY)

