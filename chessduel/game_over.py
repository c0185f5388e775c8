import logging

import httpx

from chessduel.errors import TerminalCheckFailure
from chessduel.models import ServerCorrection, SessionState, TerminalOutcome

logger = logging.getLogger(__name__)

GAME_END_PATH = "/game_end"


class GameOverProtocol:
    """Confirms a locally detected game end with the server."""

    def __init__(self, http: httpx.AsyncClient) -> None:
        self.http = http

    async def check_terminal(
        self, state: SessionState
    ) -> TerminalOutcome | ServerCorrection | None:
        """
        None when the local position is not over (no request is made).
        A TerminalOutcome when the server confirms, a ServerCorrection when it
        disagrees and sends its own position.
        """
        outcome = state.rules.outcome()
        if outcome is None:
            return None

        try:
            response = await self.http.get(GAME_END_PATH)
        except httpx.HTTPError as exc:
            raise TerminalCheckFailure(f"GET {GAME_END_PATH} failed: {exc!r}") from exc

        if response.is_success:
            return outcome

        if response.status_code == httpx.codes.NOT_ACCEPTABLE:
            fen = response.text.strip()
            if not fen:
                raise TerminalCheckFailure(
                    f"GET {GAME_END_PATH} disputed the game end without a position",
                    status=response.status_code,
                )
            logger.info("Server disputes the game end")
            return ServerCorrection(fen=fen)

        raise TerminalCheckFailure(
            f"Unexpected status while fetching game over: {response.status_code}",
            status=response.status_code,
        )
