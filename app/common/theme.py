from __future__ import annotations

import logging
from typing import Literal, cast, get_args

from nicegui import app, ui

from app.constants import NOTICE_FADE_S, NOTICE_HOLD_S, THEME_MODE

ThemeMode = Literal["light", "dark", "system"]


def get_palette(mode: ThemeMode) -> dict[str, str]:
    """Return palette tokens for the given mode."""
    if mode == "dark":
        return {
            "primary": "#3A6EA5",
            "primary_hover": "#2B5380",
            "background": "#1B1D21",
            "surface": "#24272C",
            "surface_top": "#2E3238",
            "text": "#D8DDE3",
            "muted": "#8C949C",
            "notice_bg": "#2E3238",
            "mask_bg": "rgba(0, 0, 0, 0.65)",
            "accent": "#5BC0DE",
            "positive": "#21BA45",
            "negative": "#DB2828",
            "info": "#31CCEC",
            "warning": "#F2C037",
        }
    # light
    return {
        "primary": "#157FCC",
        "primary_hover": "#0F5E98",
        "background": "#F2F4F7",
        "surface": "#FFFFFF",
        "surface_top": "#DFE8F6",
        "text": "#1F2328",
        "muted": "#8A9099",
        "notice_bg": "#FFFFFF",
        "mask_bg": "rgba(255, 255, 255, 0.6)",
        "accent": "#5BC0DE",
        "positive": "#21BA45",
        "negative": "#DB2828",
        "info": "#31CCEC",
        "warning": "#F2C037",
    }


def _inject_css_vars(p: dict[str, str]) -> None:
    """Inject global CSS variables and basic background/text mappings."""
    ui.add_css(
        f"""
:root {{
  --fc-primary: {p["primary"]};
  --fc-primary-hover: {p["primary_hover"]};
  --fc-bg: {p["background"]};
  --fc-surface: {p["surface"]};
  --fc-surface-top: {p["surface_top"]};
  --fc-text: {p["text"]};
  --fc-muted: {p["muted"]};
  --fc-notice-bg: {p["notice_bg"]};
  --fc-mask-bg: {p["mask_bg"]};
}}

body, .q-page {{ background: var(--fc-bg); color: var(--fc-text); }}
"""
    )


def apply_theme(mode: ThemeMode) -> None:
    """Set Quasar colors and dark mode, then inject the CSS variables."""
    choice = mode
    if mode == "system":
        choice = "dark" if ui.dark_mode().client.page.dark else "light"
        logging.debug(f"System theme: {choice}")

    pal = get_palette(choice)

    ui.colors(
        primary=pal["primary"],
        secondary=pal["primary_hover"],
        accent=pal["accent"],
        positive=pal["positive"],
        negative=pal["negative"],
        info=pal["info"],
        warning=pal["warning"],
    )

    if choice == "dark":
        ui.dark_mode().enable()
    else:
        ui.dark_mode().disable()

    _inject_css_vars(pal)


def set_theme(mode: ThemeMode) -> ThemeMode:
    """Persist, set and apply theme mode."""
    app.storage.general["theme_mode"] = mode
    apply_theme(mode)
    return mode


def get_theme() -> ThemeMode:
    """Return the stored mode, falling back to FHEM_CONSOLE_THEME."""
    mode = app.storage.general.get("theme_mode", THEME_MODE)
    if isinstance(mode, str) and mode in get_args(ThemeMode):
        return cast("ThemeMode", mode)
    return cast("ThemeMode", "system")


def toggle_theme() -> ThemeMode:
    """Cycle through modes: system -> light -> dark -> system."""
    order: list[ThemeMode] = ["system", "light", "dark"]
    current = get_theme()
    try:
        idx = order.index(current)
    except ValueError:
        idx = 0
    return set_theme(order[(idx + 1) % len(order)])


def inject_layout_css() -> None:
    """Console layout, transient notice and restart mask styles."""
    ui.add_css(
        f"""
.q-header, .q-footer, .q-drawer {{ background: var(--fc-surface); color: var(--fc-text); }}
.q-card {{ background: var(--fc-surface); color: var(--fc-text); }}
.q-btn:not(.q-btn--round) {{ border-radius: 4px; }}

/* Device tree */
.device-tree .q-tree__node-header {{ padding: 2px 4px; }}
.device-tree .q-tree__node--selected {{ background: var(--fc-surface-top); }}

/* Command response */
.response-text {{ white-space: pre-wrap; font-family: monospace; font-size: 0.85rem; }}

/* Transient notice: top centre, held then faded out */
.console-notice {{
  position: fixed;
  top: 30px;
  left: 50%;
  transform: translateX(-50%);
  z-index: 7000;
  min-width: 130px;
  padding: 10px 16px;
  background: var(--fc-notice-bg);
  color: var(--fc-text);
  pointer-events: none;
  animation: console-notice-fade {NOTICE_FADE_S}s ease-out {NOTICE_HOLD_S}s forwards;
}}
@keyframes console-notice-fade {{
  from {{ opacity: 1; }}
  to {{ opacity: 0; }}
}}

/* Restart mask */
.restart-mask .q-dialog__backdrop {{ background: var(--fc-mask-bg); }}
"""
    )
