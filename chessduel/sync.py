import logging

import httpx

from chessduel.errors import SyncFailure
from chessduel.models import Move, SessionState

logger = logging.getLogger(__name__)

MOVE_PATH = "/move"

# Both carry the server's canonical position in the body
POSITION_STATUSES = (httpx.codes.OK, httpx.codes.NOT_ACCEPTABLE)


class MoveSyncProtocol:
    """Sends the local player's moves to the server and returns its canonical position."""

    def __init__(self, http: httpx.AsyncClient) -> None:
        self.http = http

    async def submit(self, state: SessionState, move: Move) -> str | None:
        if state.terminal:
            logger.debug("Game is over, not submitting %s", move.coordinate)
            return None
        return await self._post(move.coordinate)

    async def request_opening_move(self, state: SessionState) -> str | None:
        """Ask the server to open the game when the local side does not move first."""
        if state.terminal:
            return None
        return await self._post("")

    async def _post(self, body: str) -> str:
        try:
            response = await self.http.post(
                MOVE_PATH,
                content=body,
                headers={"Content-Type": "text/plain"},
            )
        except httpx.HTTPError as exc:
            raise SyncFailure(f"POST {MOVE_PATH} failed: {exc!r}") from exc

        if response.status_code not in POSITION_STATUSES and not response.is_success:
            raise SyncFailure(
                f"POST {MOVE_PATH} answered {response.status_code}",
                status=response.status_code,
            )
        if response.status_code == httpx.codes.NOT_ACCEPTABLE:
            logger.info("Server rejected move %r, taking its position", body)

        fen = response.text.strip()
        if not fen:
            raise SyncFailure(f"POST {MOVE_PATH} returned no position", status=response.status_code)
        return fen
