from __future__ import annotations

import logging

import httpx

from app.common.logging_config import TRACE
from app.constants import FHEM_TIMEOUT_S, FHEM_URL

logger = logging.getLogger(__name__)


class TransportFailure(Exception):
    """No usable reply: connect error, timeout or non-success status."""

    def __init__(self, command: str, reason: str) -> None:
        super().__init__(f"{command!r}: {reason}")
        self.command = command
        self.reason = reason


class FhemClient:
    """
    Single-shot GET client for the FHEM command endpoint.

    Every request is `GET <base_url>?cmd=<command>[&XHR=1]`. `XHR=1` asks FHEM for
    the plain programmatic reply instead of the rendered HTML page. All transport
    problems are raised as TransportFailure; callers never see httpx exceptions.
    """

    def __init__(
        self,
        base_url: str,
        timeout: float = 10.0,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        self.base_url = base_url
        self.timeout = timeout
        self._transport = transport
        self._http: httpx.AsyncClient | None = None

    def _client(self) -> httpx.AsyncClient:
        if self._http is None or self._http.is_closed:
            self._http = httpx.AsyncClient(
                timeout=self.timeout, transport=self._transport
            )
        return self._http

    async def request(self, command: str, xhr: bool = True) -> str:
        """Send one command and return the reply body (possibly empty)."""
        params = {"cmd": command}
        if xhr:
            params["XHR"] = "1"
        try:
            resp = await self._client().get(self.base_url, params=params)
            resp.raise_for_status()
        except httpx.HTTPStatusError as e:
            raise TransportFailure(command, f"HTTP {e.response.status_code}") from e
        except httpx.HTTPError as e:
            raise TransportFailure(command, str(e) or type(e).__name__) from e
        logger.log(TRACE, "cmd=%r -> %d bytes", command, len(resp.content))
        return resp.text

    async def jsonlist(self) -> str:
        return await self.request("jsonlist")

    async def server_version(self) -> str | None:
        """First non-empty line of the `version` reply, None if unavailable."""
        try:
            body = await self.request("version")
        except TransportFailure as e:
            logger.warning("Could not read server version: %s", e)
            return None
        for line in body.splitlines():
            if line.strip():
                return line.strip()
        return None

    async def aclose(self) -> None:
        if self._http is not None:
            await self._http.aclose()
            self._http = None


# Module-level singleton instance
client = FhemClient(base_url=FHEM_URL, timeout=FHEM_TIMEOUT_S)
