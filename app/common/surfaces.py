from __future__ import annotations

import logging

from nicegui import ui

from app.constants import NOTICE_FADE_S, NOTICE_HOLD_S
from app.state import ReconnectState

logger = logging.getLogger(__name__)


class NiceGuiSurface:
    """
    NiceGUI rendering of command outcomes and of the restart mask.

    Every element is created inside `container` so the surface also works from
    background tasks that carry no slot context of their own.
    """

    def __init__(self, container: ui.element, reconnect: ReconnectState | None = None) -> None:
        self.container = container
        self.reconnect = reconnect
        self._mask: ui.dialog | None = None

    @property
    def closed(self) -> bool:
        # deleting the client deletes every element it holds
        return self.container.is_deleted

    def alert(self, title: str, message: str) -> None:
        with self.container, ui.dialog().props("persistent") as dialog, ui.card():
            ui.label(title).classes("text-md font-medium")
            ui.label(message).classes("text-sm")
            with ui.row().classes("w-full justify-end"):
                ui.button("OK", on_click=dialog.close).props("unelevated")
        dialog.on("hide", dialog.delete)
        dialog.open()

    def show_response(self, body: str) -> None:
        # ui.label renders text, never markup
        with self.container, ui.dialog() as dialog, ui.card().style("max-width: 600px"):
            with ui.row().classes("w-full items-center justify-between"):
                ui.label("Response").classes("text-md font-medium")
                ui.button(icon="close", on_click=dialog.close).props("flat round dense")
            with ui.scroll_area().style("max-height: 500px; min-width: 320px"):
                ui.label(body).classes("response-text")
        dialog.on("hide", dialog.delete)
        dialog.open()

    def notice(self, message: str) -> None:
        with self.container:
            card = ui.card().classes("console-notice").props("flat bordered")
            with card:
                ui.label(message).classes("text-sm")
            ui.timer(NOTICE_HOLD_S + NOTICE_FADE_S, card.delete, once=True)

    def mask(self, message: str) -> None:
        if self._mask is not None:
            return
        with self.container, ui.dialog().props("persistent maximized").classes(
            "restart-mask"
        ) as dialog:
            with ui.column().classes("w-full h-full items-center justify-center"):
                ui.spinner(size="xl")
                ui.label(message).classes("text-lg")
                if self.reconnect is not None:
                    ui.label().bind_text_from(
                        self.reconnect,
                        "attempts",
                        backward=lambda n: f"Connection attempts: {n}" if n else "",
                    ).classes("text-sm text-[var(--fc-muted)]")
        self._mask = dialog
        dialog.open()

    def unmask(self) -> None:
        if self._mask is None:
            return
        self._mask.close()
        self._mask.delete()
        self._mask = None

    def reload(self) -> None:
        with self.container:
            ui.navigate.reload()
