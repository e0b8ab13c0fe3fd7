from __future__ import annotations

from typing import Protocol


class NotificationSurface(Protocol):
    """Where command outcomes are shown. Each method is one UI effect."""

    def alert(self, title: str, message: str) -> None:
        """Blocking modal the user has to acknowledge."""

    def show_response(self, body: str) -> None:
        """Persistent, scrollable panel displaying body as literal text."""

    def notice(self, message: str) -> None:
        """Transient top-centre notice that removes itself."""


class RecoverySurface(NotificationSurface, Protocol):
    @property
    def closed(self) -> bool:
        """True once the page behind the surface is gone."""

    def mask(self, message: str) -> None: ...

    def unmask(self) -> None: ...

    def reload(self) -> None:
        """Full page reload, discarding all client state."""
