from __future__ import annotations

import asyncio
import logging

from nicegui import background_tasks, events, ui

from app.common.logging_config import attach_ui_log
from app.common.panels import PanelRegistry
from app.common.surfaces import NiceGuiSurface
from app.common.theme import apply_theme, get_theme, inject_layout_css, toggle_theme
from app.constants import (
    FHEM_DOC_URL,
    FRONTEND_VERSION,
    RECONNECT_DEADLINE_S,
    RECONNECT_INTERVAL_S,
    RECONNECT_MAX_ATTEMPTS,
)
from app.pages.device_panel import DevicePanel
from app.services.command_channel import CommandChannel
from app.services.device_tree import (
    build_tree,
    count_devices,
    expanded_ids,
    parse_inventory,
    to_ui_nodes,
)
from app.services.fhem_client import TransportFailure, client
from app.services.restart_recovery import RestartRecovery
from app.state import ConsoleState, Device, ReconnectState, TreeNode


def status_text(server_version: str | None) -> str:
    if server_version:
        return f"{server_version}; Frontend Version: {FRONTEND_VERSION}"
    return f"Frontend Version: {FRONTEND_VERSION}"


class ConsolePage:
    """The whole console: device tree, centre panels, command bar."""

    def __init__(self) -> None:
        self.state = ConsoleState()
        self.reconnect = ReconnectState(interval_ms=int(RECONNECT_INTERVAL_S * 1000))
        self.panels = PanelRegistry()
        self.device_panel = DevicePanel()

        # UI refs
        self.tree: ui.tree | None = None
        self.tree_index: dict[str, TreeNode] = {}
        self._selected_key: str | None = None
        self.command_input: ui.input | None = None
        self.status_label: ui.label | None = None
        self.overview_label: ui.label | None = None
        self.response_log: ui.log | None = None

        # Wired in build()
        self.surface: NiceGuiSurface | None = None
        self.channel: CommandChannel | None = None
        self.recovery: RestartRecovery | None = None
        self._recovery_task: asyncio.Task | None = None

    # ---- Data ----

    async def load_tree(self) -> TreeNode:
        try:
            body = await client.jsonlist()
        except TransportFailure as e:
            logging.error("Loading device list failed: %s", e)
            ui.notify("Could not load the device list!", color="negative")
            return build_tree([])
        return build_tree(parse_inventory(body))

    # ---- Actions ----

    def show_device(self, device: Device) -> None:
        self.state.selected_device = device.name
        self.device_panel.show(device)
        self.panels.show("device")

    def _on_select(self, e: events.ValueChangeEventArguments) -> None:
        # clicking the selected node again deselects it; still show that device
        key = e.value if e.value is not None else self._selected_key
        node = self.tree_index.get(key) if key is not None else None
        if node is None or node.payload is None:
            return
        if e.value is None and self.tree:
            self.tree.select(key)
        self._selected_key = key
        self.show_device(node.payload)

    async def submit_command(self) -> None:
        if not self.channel or not self.command_input:
            return
        try:
            await self.channel.submit(self.command_input.value)
        except Exception as e:
            logging.error("Submit command failed: %s", e)
            ui.notify(f"Submit command failed: {e}", color="negative")

    async def save_config(self) -> None:
        if not self.channel:
            return
        try:
            # a pending command goes out before the save
            pending = self.command_input.value if self.command_input else None
            if pending and pending.strip():
                await self.channel.submit(pending)
            await self.channel.save_config()
        except Exception as e:
            logging.error("Save config failed: %s", e)
            ui.notify(f"Save config failed: {e}", color="negative")

    async def shutdown(self) -> None:
        if not self.channel:
            return
        try:
            await self.channel.shutdown()
        except Exception as e:
            logging.error("Shutdown failed: %s", e)
            ui.notify(f"Shutdown failed: {e}", color="negative")

    def restart(self) -> None:
        if not self.recovery:
            return
        if self._recovery_task is not None and not self._recovery_task.done():
            logging.info("Restart already in progress")
            return
        # owned by the page, not by the click event: stopped when the tab goes away
        self._recovery_task = background_tasks.create(
            self._run_restart(), name="fhem restart recovery"
        )

    async def _run_restart(self) -> None:
        try:
            await self.recovery.restart()
        except Exception as e:
            logging.error("Restart failed: %s", e)
            if self.surface and not self.surface.closed:
                self.surface.unmask()
                with self.surface.container:
                    ui.notify(f"Restart failed: {e}", color="negative")

    def _stop_recovery(self) -> None:
        if self._recovery_task is not None and not self._recovery_task.done():
            logging.info("Client disconnected, cancelling restart polling")
            self._recovery_task.cancel()

    # ---- UI ----

    def _build_header(self) -> None:
        with ui.header().classes("items-center justify-between px-3 py-1"):
            ui.label("FHEM Console").classes("text-lg font-medium")
            self.status_label = ui.label(self.state.status_text).classes("text-sm")
            self.status_label.mark("status")
            with ui.row().classes("items-center gap-2"):
                ui.button("Overview", on_click=lambda: self.panels.show("overview")).props(
                    "flat dense"
                )
                ui.button("Log", on_click=lambda: self.panels.show("log")).props("flat dense")
                ui.button(icon="contrast", on_click=lambda: toggle_theme()).props(
                    "flat round dense"
                )
                ui.button(
                    "?",
                    on_click=lambda: ui.navigate.to(FHEM_DOC_URL, new_tab=True),
                ).props("round unelevated")

    def _build_tree(self, root: TreeNode) -> None:
        with ui.left_drawer(value=True, bordered=True).classes("p-2"):
            ui.label("Devices").classes("text-md font-medium")
            nodes, self.tree_index = to_ui_nodes(root)
            self.tree = ui.tree(nodes, label_key="label", on_select=self._on_select).classes(
                "device-tree w-full"
            )
            self.tree.expand(expanded_ids(self.tree_index))
            self.tree.mark("device-tree")

    def _build_center(self, root: TreeNode) -> ui.column:
        with ui.column().classes("w-full p-3") as center:
            with ui.card().classes("w-full") as overview:
                ui.label("Overview").classes("text-md font-medium")
                self.overview_label = ui.label(
                    f"{self.state.device_count} devices in {len(root.children)} lists. "
                    "Select a device on the left to see its details."
                ).classes("text-sm")
            self.panels.register("overview", overview, visible=True)
            self.panels.register("device", self.device_panel.build())
            with ui.card().classes("w-full") as log_card:
                ui.label("Log").classes("text-md font-medium")
                self.response_log = ui.log(max_lines=500).classes("w-full h-96")
            attach_ui_log(self.response_log)
            self.panels.register("log", log_card)
        return center

    def _build_footer(self) -> None:
        with ui.footer().classes("items-center gap-2 px-3 py-1"):
            self.command_input = ui.input(
                label="Command", placeholder="e.g. set Kitchen on"
            ).classes("grow")
            self.command_input.mark("command-input")
            self.command_input.on("keydown.enter", self.submit_command)
            ui.button("Execute", on_click=self.submit_command).props("color=primary")
            ui.button("Save config", on_click=self.save_config)
            ui.button("Shutdown", on_click=self.shutdown).props("color=negative")
            ui.button("Restart", on_click=self.restart).props("color=warning")

    async def build(self) -> None:
        apply_theme(get_theme())
        inject_layout_css()

        root = await self.load_tree()
        self.state.device_count = count_devices(root)
        self.state.server_version = await client.server_version()
        self.state.status_text = status_text(self.state.server_version)

        self._build_header()
        self._build_tree(root)
        center = self._build_center(root)
        self._build_footer()

        self.surface = NiceGuiSurface(center, self.reconnect)
        self.channel = CommandChannel(client, self.surface)
        self.recovery = RestartRecovery(
            client,
            self.surface,
            self.reconnect,
            interval_s=RECONNECT_INTERVAL_S,
            max_attempts=RECONNECT_MAX_ATTEMPTS,
            deadline_s=RECONNECT_DEADLINE_S,
        )
        ui.context.client.on_disconnect(self._stop_recovery)
        logging.info("Console ready: %s", self.state.status_text)
