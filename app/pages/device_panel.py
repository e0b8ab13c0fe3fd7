from __future__ import annotations

import json
from collections.abc import Mapping
from typing import Any

from nicegui import ui

from app.state import Device

_COLUMNS = [
    {"name": "key", "label": "Key", "field": "key", "align": "left"},
    {"name": "value", "label": "Value", "field": "value", "align": "left"},
]


def _format_value(value: Any) -> str:
    if isinstance(value, (Mapping, list)):
        return json.dumps(value, indent=1, ensure_ascii=False, default=str)
    return "" if value is None else str(value)


def device_rows(device: Device) -> list[dict[str, str]]:
    """One table row per key of the raw device record, in record order."""
    return [{"key": str(k), "value": _format_value(v)} for k, v in device.attributes.items()]


class DevicePanel:
    """Centre panel showing the raw record of the selected device."""

    def __init__(self) -> None:
        self.card: ui.card | None = None
        self.title_label: ui.label | None = None
        self.table: ui.table | None = None
        self.device: Device | None = None

    def show(self, device: Device) -> None:
        self.device = device
        if self.title_label:
            self.title_label.text = device.name
        if self.table:
            self.table.rows = device_rows(device)
            self.table.update()

    def build(self) -> ui.card:
        with ui.card().classes("w-full") as self.card:
            self.title_label = ui.label("-").classes("text-md font-medium")
            self.table = ui.table(columns=_COLUMNS, rows=[], row_key="key").classes(
                "w-full"
            ).props("dense flat wrap-cells")
        self.card.mark("device-panel")
        return self.card
