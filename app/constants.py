from __future__ import annotations

import logging
import os

FRONTEND_VERSION = "0.1.0"

# FHEM command reference
FHEM_DOC_URL = "https://fhem.de/commandref.html"

# FHEM command endpoint (what the console talks to)
FHEM_URL: str = os.getenv("FHEM_URL", "http://127.0.0.1:8083/fhem").rstrip("/")
FHEM_TIMEOUT_S: float = float(os.getenv("FHEM_TIMEOUT_S", "10"))

# Webserver bind (NiceGUI host/port)
SERVER_HOST: str = os.getenv("FHEM_CONSOLE_HOST", "0.0.0.0")
SERVER_PORT: int = int(os.getenv("FHEM_CONSOLE_PORT", "8080"))

THEME_MODE: str = os.getenv("FHEM_CONSOLE_THEME", "system").strip().lower()

# Transient "submitted" notice: hold, then fade out
NOTICE_HOLD_S: float = 2.0
NOTICE_FADE_S: float = 3.0


def _opt_int(name: str) -> int | None:
    v = os.getenv(name)
    if v is None or v.strip() == "":
        return None
    try:
        return int(v)
    except ValueError:
        return None


def _opt_float(name: str) -> float | None:
    v = os.getenv(name)
    if v is None or v.strip() == "":
        return None
    try:
        return float(v)
    except ValueError:
        return None


# Restart recovery polling (unbounded unless a limit is configured)
RECONNECT_INTERVAL_S: float = float(os.getenv("FHEM_RECONNECT_INTERVAL_S", "1.0"))
RECONNECT_MAX_ATTEMPTS: int | None = _opt_int("FHEM_RECONNECT_MAX_ATTEMPTS")
RECONNECT_DEADLINE_S: float | None = _opt_float("FHEM_RECONNECT_DEADLINE_S")


def _resolve_log_level() -> int:
    s = os.getenv("FHEM_CONSOLE_LOG_LEVEL")
    if s:
        name = s.strip().upper()
        mapping = {
            "DEBUG": logging.DEBUG,
            "INFO": logging.INFO,
            "WARNING": logging.WARNING,
            "ERROR": logging.ERROR,
            "CRITICAL": logging.CRITICAL,
        }
        return mapping.get(name, logging.WARNING)
    else:
        return logging.WARNING


LOG_LEVEL: int = _resolve_log_level()
