from __future__ import annotations

import logging
from dataclasses import dataclass
from enum import Enum
from typing import Protocol

from app.services.fhem_client import TransportFailure
from app.services.surfaces import NotificationSurface

logger = logging.getLogger(__name__)


class CommandTransport(Protocol):
    async def request(self, command: str, xhr: bool = True) -> str: ...


class OutcomeKind(str, Enum):
    EMPTY = "empty"
    TEXT = "text"
    FAILED = "failed"


@dataclass(frozen=True)
class CommandOutcome:
    kind: OutcomeKind
    body: str = ""
    error: str | None = None


@dataclass(frozen=True)
class CommandMessages:
    """User-facing texts for one kind of action."""

    submitted: str
    failed: str
    failed_title: str = "Error"


COMMAND_MESSAGES = CommandMessages(
    submitted="Command submitted!", failed="Could not submit the command!"
)
SAVE_MESSAGES = CommandMessages(
    submitted="Save successful!", failed="Could not save the current configuration!"
)
SHUTDOWN_MESSAGES = CommandMessages(
    submitted="Shutdown submitted!", failed="Could not submit the shutdown command!"
)

SAVE_COMMAND = "save"
SHUTDOWN_COMMAND = "shutdown"


def classify_reply(body: str) -> CommandOutcome:
    # FHEM answers state-changing commands with nothing
    if not body:
        return CommandOutcome(OutcomeKind.EMPTY)
    return CommandOutcome(OutcomeKind.TEXT, body=body)


def render_outcome(
    outcome: CommandOutcome, surface: NotificationSurface, messages: CommandMessages
) -> None:
    """Exactly one UI effect per outcome."""
    if outcome.kind is OutcomeKind.FAILED:
        surface.alert(messages.failed_title, messages.failed)
    elif outcome.kind is OutcomeKind.TEXT:
        surface.show_response(outcome.body)
    else:
        surface.notice(messages.submitted)


class CommandChannel:
    """
    Sends one textual command per call and renders its outcome.

    Holds no state between calls: overlapping submissions are independent and may
    settle in any order.
    """

    def __init__(self, client: CommandTransport, surface: NotificationSurface) -> None:
        self.client = client
        self.surface = surface

    async def execute(self, command: str) -> CommandOutcome:
        try:
            body = await self.client.request(command)
        except TransportFailure as e:
            logger.error("Command %r failed: %s", command, e.reason)
            return CommandOutcome(OutcomeKind.FAILED, error=e.reason)
        return classify_reply(body)

    async def submit(
        self, command: str | None, messages: CommandMessages = COMMAND_MESSAGES
    ) -> CommandOutcome | None:
        """Submit a command; blank input is ignored and returns None."""
        if not command or not command.strip():
            return None
        command = command.strip()
        logger.info("Submitting %r", command)
        outcome = await self.execute(command)
        logger.debug("%r -> %s", command, outcome.kind.value)
        render_outcome(outcome, self.surface, messages)
        return outcome

    async def save_config(self) -> CommandOutcome | None:
        return await self.submit(SAVE_COMMAND, SAVE_MESSAGES)

    async def shutdown(self) -> CommandOutcome | None:
        return await self.submit(SHUTDOWN_COMMAND, SHUTDOWN_MESSAGES)
