import logging
from typing import Awaitable, Callable

import httpx
from pydantic import ValidationError

from chessduel.errors import AdvisoryFailure, AssistIntegrationFailure, IllegalMoveAttempt
from chessduel.models import AssistSuggestion, Move, SessionState

logger = logging.getLogger(__name__)

PlayMove = Callable[[Move], Awaitable[None]]


class AssistClient:
    """Asks an external advisory service for the local side's move and plays it."""

    def __init__(self, http: httpx.AsyncClient, url: str) -> None:
        self.http = http
        self.url = url

    async def suggest(self, fen: str) -> AssistSuggestion:
        try:
            response = await self.http.post(self.url, json={"fen": fen})
            response.raise_for_status()
            return AssistSuggestion.model_validate(response.json())
        except (httpx.HTTPError, ValueError, ValidationError) as exc:
            raise AdvisoryFailure(f"No suggestion from {self.url}: {exc!r}") from exc

    async def suggest_and_play(self, state: SessionState, play: PlayMove) -> bool:
        """
        Play one suggested move through `play`, the same path a dropped piece takes.
        Returns False without asking when assist is off, the game is over or it is
        not the local side's turn.
        """
        if not state.assist_enabled or state.terminal or not state.is_local_turn:
            return False

        suggestion = await self.suggest(state.current_position)
        logger.info("Advisory service suggests %s (%s)", suggestion.san, suggestion.move)
        try:
            move = suggestion.to_move()
            await play(move)
        except (ValueError, IllegalMoveAttempt) as exc:
            raise AssistIntegrationFailure(suggestion) from exc
        return True
