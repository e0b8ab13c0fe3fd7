from __future__ import annotations

import asyncio
import json
import logging
from collections.abc import Awaitable, Callable
from enum import Enum

from app.constants import RECONNECT_INTERVAL_S
from app.services.command_channel import CommandTransport
from app.services.fhem_client import TransportFailure
from app.services.surfaces import RecoverySurface
from app.state import ReconnectState, RecoveryPhase

logger = logging.getLogger(__name__)

RESTART_COMMAND = "shutdown restart"
PROBE_COMMAND = "jsonlist"
RESTART_MASK_TEXT = "Please wait while FHEM is restarting..."

# Legacy reply of a server that is up but has not finished restarting.
# TODO: switch to a dedicated health-check command instead of matching this error text
NOT_READY_MARKER = "Unknown command JsonList, try help"


class ProbeOutcome(str, Enum):
    DOWN = "down"
    NOT_READY = "not_ready"
    READY = "ready"


def is_server_ready(response: str | None) -> bool:
    """
    True when a probe reply shows a fully restarted server.

    The legacy marker (with any line terminator) means "not yet". Otherwise the
    reply must decode as a jsonlist document: a JSON object with a Results list.
    """
    if not response:
        return False
    if response.rstrip("\r\n") == NOT_READY_MARKER:
        return False
    try:
        doc = json.loads(response)
    except ValueError:
        return False
    return isinstance(doc, dict) and isinstance(doc.get("Results"), list)


class RestartRecovery:
    """
    Restart FHEM and wait for it to come back: Idle -> AwaitingRestart -> Polling -> Done.

    Polling has no attempt limit or deadline unless `max_attempts`/`deadline_s` are
    given; a bounded run that runs out ends in GAVE_UP. Once the surface reports
    its page closed, polling stops in ABANDONED without touching the UI. Probes
    are strictly sequential, one interval apart, the first one interval after
    the restart.
    """

    def __init__(
        self,
        client: CommandTransport,
        surface: RecoverySurface,
        state: ReconnectState | None = None,
        *,
        interval_s: float = RECONNECT_INTERVAL_S,
        max_attempts: int | None = None,
        deadline_s: float | None = None,
        is_ready: Callable[[str], bool] = is_server_ready,
        sleep: Callable[[float], Awaitable[None]] = asyncio.sleep,
    ) -> None:
        self.client = client
        self.surface = surface
        self.state = state or ReconnectState()
        self.interval_s = interval_s
        self.max_attempts = max_attempts
        self.deadline_s = deadline_s
        self.is_ready = is_ready
        self._sleep = sleep
        self._background: set[asyncio.Task] = set()
        self.state.interval_ms = int(interval_s * 1000)

    async def restart(self) -> RecoveryPhase:
        self._set_phase(RecoveryPhase.AWAITING_RESTART)
        self.state.active = True
        self.state.attempts = 0
        logger.warning("Restart requested")
        self._fire_and_forget(RESTART_COMMAND)
        # let the restart request start before the UI is masked
        await asyncio.sleep(0)
        self.surface.mask(RESTART_MASK_TEXT)
        return await self.poll()

    async def poll(self) -> RecoveryPhase:
        self._set_phase(RecoveryPhase.POLLING)
        loop = asyncio.get_running_loop()
        started = loop.time()
        while True:
            if self.surface.closed:
                return self._abandon()
            if self._exhausted(loop.time() - started):
                return self._give_up()
            await self._sleep(self.interval_s)
            if self.surface.closed:
                return self._abandon()
            outcome = await self.probe()
            self.state.attempts += 1
            logger.debug("Probe %d: %s", self.state.attempts, outcome.value)
            if outcome is ProbeOutcome.READY:
                break

        if self.surface.closed:
            return self._abandon()
        self._set_phase(RecoveryPhase.DONE)
        self.state.active = False
        logger.info("FHEM is back after %d probe(s), reloading", self.state.attempts)
        self.surface.reload()
        return RecoveryPhase.DONE

    async def probe(self) -> ProbeOutcome:
        try:
            body = await self.client.request(PROBE_COMMAND)
        except TransportFailure as e:
            logger.debug("Probe failed: %s", e.reason)
            return ProbeOutcome.DOWN
        return ProbeOutcome.READY if self.is_ready(body) else ProbeOutcome.NOT_READY

    def _exhausted(self, elapsed_s: float) -> bool:
        if self.max_attempts is not None and self.state.attempts >= self.max_attempts:
            return True
        return self.deadline_s is not None and elapsed_s >= self.deadline_s

    def _give_up(self) -> RecoveryPhase:
        self._set_phase(RecoveryPhase.GAVE_UP)
        self.state.active = False
        logger.error("FHEM did not come back after %d probe(s)", self.state.attempts)
        self.surface.unmask()
        self.surface.alert("Error", "FHEM did not come back after the restart!")
        return RecoveryPhase.GAVE_UP

    def _abandon(self) -> RecoveryPhase:
        self._set_phase(RecoveryPhase.ABANDONED)
        self.state.active = False
        logger.info("Page closed, restart polling stopped after %d probe(s)", self.state.attempts)
        return RecoveryPhase.ABANDONED

    def _set_phase(self, phase: RecoveryPhase) -> None:
        self.state.phase = phase

    def _fire_and_forget(self, command: str) -> None:
        task = asyncio.create_task(self._send_ignoring_reply(command))
        self._background.add(task)
        task.add_done_callback(self._background.discard)

    async def _send_ignoring_reply(self, command: str) -> None:
        try:
            await self.client.request(command)
        except TransportFailure as e:
            # the server usually drops the connection while going down
            logger.debug("%r: %s (ignored)", command, e.reason)
