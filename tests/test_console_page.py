from __future__ import annotations

import asyncio
import json
from typing import TYPE_CHECKING

import pytest
from nicegui import events, ui

from conftest import FAIL, INVENTORY, ScriptedClient

import app.pages.console as console_mod
from app import main
from app.constants import FRONTEND_VERSION
from app.services.restart_recovery import RESTART_COMMAND, RESTART_MASK_TEXT

if TYPE_CHECKING:
    from nicegui.testing import User
    from pytest import MonkeyPatch


def _install(monkeypatch: MonkeyPatch, **kwargs) -> ScriptedClient:
    fake = ScriptedClient(**kwargs)
    monkeypatch.setattr(console_mod, "client", fake, raising=True)
    return fake


@pytest.mark.unit
@pytest.mark.module_under_test(main)
async def test_page_builds_tree_from_inventory(user: User, monkeypatch: MonkeyPatch):
    _install(
        monkeypatch,
        replies={"jsonlist": [json.dumps(INVENTORY)]},
        version="Latest Revision: 26000",
    )

    await user.open("/")
    await user.should_see(f"Latest Revision: 26000; Frontend Version: {FRONTEND_VERSION}")

    tree = user.find(marker="device-tree").elements.pop()
    nodes = tree._props["nodes"]
    assert [n["label"] for n in nodes] == ["Lamps", "Sensors"]
    assert [c["label"] for c in nodes[0]["children"]] == ["Kitchen"]
    assert "children" not in nodes[1]
    await user.should_see("1 devices in 2 lists")


@pytest.mark.unit
@pytest.mark.module_under_test(main)
async def test_page_survives_unreachable_server(user: User, monkeypatch: MonkeyPatch):
    _install(monkeypatch, replies={"jsonlist": [FAIL]})

    await user.open("/")
    await user.should_see(f"Frontend Version: {FRONTEND_VERSION}")

    tree = user.find(marker="device-tree").elements.pop()
    assert tree._props["nodes"] == []


@pytest.mark.unit
@pytest.mark.module_under_test(main)
async def test_enter_submits_command_and_shows_notice(user: User, monkeypatch: MonkeyPatch):
    fake = _install(monkeypatch, replies={"jsonlist": [json.dumps(INVENTORY)]})

    await user.open("/")
    user.find(marker="command-input").type("set Kitchen on").trigger("keydown.enter")

    await user.should_see("Command submitted!")
    assert fake.commands[-1] == "set Kitchen on"


@pytest.mark.unit
@pytest.mark.module_under_test(main)
async def test_execute_button_shows_text_response(user: User, monkeypatch: MonkeyPatch):
    fake = _install(
        monkeypatch,
        replies={"jsonlist": [json.dumps(INVENTORY)], "list": ["Kitchen=on\nLiving=off"]},
    )

    await user.open("/")
    user.find(marker="command-input").type("list")
    user.find("Execute").click()

    await user.should_see("Response")
    await user.should_see("Living=off")
    assert fake.commands.count("list") == 1


async def _wait_for(condition, timeout: float = 2.0) -> None:
    loop = asyncio.get_running_loop()
    deadline = loop.time() + timeout
    while not condition():
        assert loop.time() < deadline, "condition not reached in time"
        await asyncio.sleep(0.01)


def _select_node(user: User, tree: ui.tree, key: str | None) -> None:
    # what the browser sends when a tree node is clicked
    with user.client:
        for listener in list(tree._event_listeners.values()):
            if listener.type == "update:selected":
                events.handle_event(
                    listener.handler,
                    events.GenericEventArguments(sender=tree, client=user.client, args=key),
                )


@pytest.mark.unit
@pytest.mark.module_under_test(main)
async def test_failed_command_opens_alert(user: User, monkeypatch: MonkeyPatch):
    _install(monkeypatch, replies={"jsonlist": [json.dumps(INVENTORY)], "set Kitchen on": [FAIL]})

    await user.open("/")
    user.find(marker="command-input").type("set Kitchen on")
    user.find("Execute").click()

    await user.should_see("Could not submit the command!")
    await user.should_not_see("Command submitted!")


@pytest.mark.unit
@pytest.mark.module_under_test(main)
async def test_response_shows_markup_as_text(user: User, monkeypatch: MonkeyPatch):
    _install(monkeypatch, replies={"jsonlist": [json.dumps(INVENTORY)], "list": ["<b>x</b>"]})

    await user.open("/")
    user.find(marker="command-input").type("list")
    user.find("Execute").click()

    await user.should_see("<b>x</b>")
    shown = user.find("<b>x</b>").elements
    assert shown and all(type(el) is ui.label for el in shown)
    assert all(el.text == "<b>x</b>" for el in shown)


@pytest.mark.unit
@pytest.mark.module_under_test(main)
async def test_restart_masks_then_reloads_when_ready(user: User, monkeypatch: MonkeyPatch):
    monkeypatch.setattr(console_mod, "RECONNECT_INTERVAL_S", 0.01)
    inventory = json.dumps(INVENTORY)
    fake = _install(monkeypatch, replies={"jsonlist": [inventory]}, default=FAIL)

    await user.open("/")
    first_client = user.client
    user.find("Restart").click()

    await user.should_see(RESTART_MASK_TEXT)
    assert RESTART_COMMAND in fake.commands

    fake.default = inventory
    await _wait_for(lambda: user.client is not first_client)
    await user.should_not_see(RESTART_MASK_TEXT)
    await user.should_see("1 devices in 2 lists")


@pytest.mark.unit
@pytest.mark.module_under_test(main)
async def test_restart_polling_stops_when_client_is_deleted(
    user: User, monkeypatch: MonkeyPatch
):
    monkeypatch.setattr(console_mod, "RECONNECT_INTERVAL_S", 0.01)
    fake = _install(monkeypatch, replies={"jsonlist": [json.dumps(INVENTORY)]}, default=FAIL)

    await user.open("/")
    user.find("Restart").click()
    await user.should_see(RESTART_MASK_TEXT)
    await _wait_for(lambda: fake.commands.count("jsonlist") >= 3)

    user.client.delete()
    await asyncio.sleep(0.05)
    sent = fake.commands.count("jsonlist")
    await asyncio.sleep(0.2)

    assert fake.commands.count("jsonlist") == sent


@pytest.mark.unit
@pytest.mark.module_under_test(main)
async def test_clicking_selected_device_again_shows_it(user: User, monkeypatch: MonkeyPatch):
    _install(monkeypatch, replies={"jsonlist": [json.dumps(INVENTORY)]})

    await user.open("/")
    tree = user.find(marker="device-tree").elements.pop()
    kitchen = next(n["id"] for n in tree.nodes() if n["label"] == "Kitchen")

    _select_node(user, tree, kitchen)
    panel = user.find(marker="device-panel").elements.pop()
    assert panel.visible
    user.find("Overview").click()
    assert not panel.visible

    # Quasar reports a click on the selected node as deselection
    _select_node(user, tree, None)
    assert panel.visible
    assert tree.props["selected"] == kitchen
