from __future__ import annotations

import logging

from nicegui import ui

logger = logging.getLogger(__name__)


class PanelRegistry:
    """
    Owns the visibility of the centre-region panels.

    Panels are registered by name; showing one hides all others, so at most one
    centre panel is visible at a time.
    """

    def __init__(self) -> None:
        self._panels: dict[str, ui.element] = {}
        self.visible: str | None = None

    def register(self, name: str, panel: ui.element, visible: bool = False) -> ui.element:
        self._panels[name] = panel
        panel.set_visibility(visible)
        if visible:
            self.show(name)
        return panel

    def show(self, name: str) -> None:
        if name not in self._panels:
            raise KeyError(f"Unknown panel: {name}")
        for key, panel in self._panels.items():
            panel.set_visibility(key == name)
        self.visible = name
        logger.debug("Showing panel %s", name)

    def hide_all(self) -> None:
        for panel in self._panels.values():
            panel.set_visibility(False)
        self.visible = None

    def is_visible(self, name: str) -> bool:
        return self.visible == name
