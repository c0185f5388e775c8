"""
Turn sequencing for one match.

A move's lifecycle runs strictly in order:
local apply -> render -> submit -> apply reply -> terminal check -> turn highlight,
followed by assist turns when assist is on. Only one lifecycle runs at a time.
"""

import logging
from contextlib import contextmanager
from typing import Iterator

from chessduel.assist import AssistClient
from chessduel.errors import (
    AdvisoryFailure,
    AssistIntegrationFailure,
    IllegalMoveAttempt,
    InvalidPositionError,
    RemoteCallFailure,
)
from chessduel.game_over import GameOverProtocol
from chessduel.models import (
    Move,
    Phase,
    ServerCorrection,
    SessionState,
    TerminalOutcome,
    TerminalReason,
)
from chessduel.scoreboard import ScoreboardClient
from chessduel.sync import MoveSyncProtocol
from chessduel.view import BoardView

logger = logging.getLogger(__name__)

SNAPBACK = "snapback"
ACCEPTED = "accepted"

MAX_CORRECTIONS = 3


class GameSessionController:
    def __init__(
        self,
        state: SessionState,
        view: BoardView,
        sync: MoveSyncProtocol,
        game_over: GameOverProtocol,
        scoreboard: ScoreboardClient,
        assist: AssistClient | None = None,
        scoreboard_count: int = 1000,
    ) -> None:
        self.state = state
        self.rules = state.rules
        self.view = view
        self.sync = sync
        self.game_over = game_over
        self.scoreboard = scoreboard
        self.assist = assist
        self.scoreboard_count = scoreboard_count
        self._busy = False

    @property
    def phase(self) -> Phase:
        if self.state.terminal:
            return Phase.TERMINAL
        if self.state.is_local_turn:
            return Phase.AWAITING_LOCAL_MOVE
        return Phase.AWAITING_REMOTE_MOVE

    @property
    def busy(self) -> bool:
        return self._busy

    @contextmanager
    def _pending(self) -> Iterator[None]:
        self._busy = True
        try:
            yield
        finally:
            self._busy = False

    # ---- Entry points ----
    async def start(self) -> None:
        """Draw the opening position; ask the server to move first if the local side does not."""
        self.view.render(self.rules.fen())
        with self._pending():
            if self.rules.is_terminal():
                await self._settle()
                return
            self._show_turn()
            if not self.state.is_local_turn:
                await self._request_opening_move()
            await self._run_assist()

    def on_drag_start(self, square: str, piece: str | None = None) -> bool:
        """Allow the drag only for the local side's own pieces on its turn, and mark destinations."""
        if self._busy or self.phase is not Phase.AWAITING_LOCAL_MOVE:
            return False
        destinations = self.rules.legal_destinations(square, self.state.local_side)
        if not destinations:
            return False
        for destination in sorted(destinations):
            self.view.add_circle(destination)
        return True

    async def on_drop(self, source: str, destination: str, promotion: str | None = None) -> str:
        self.view.clear_circles()
        if self._busy:
            logger.info("Dropped %s%s while a move is still pending", source, destination)
            return SNAPBACK

        with self._pending():
            try:
                await self._play_local(Move(source, destination, promotion))
            except IllegalMoveAttempt as exc:
                logger.debug("Snapback: %s", exc)
                return SNAPBACK
            await self._run_assist()
        return ACCEPTED

    async def check_game_over(self) -> None:
        if self._busy:
            return
        with self._pending():
            await self._settle()

    # ---- Move lifecycle ----
    async def _play_local(self, move: Move) -> None:
        if self.phase is not Phase.AWAITING_LOCAL_MOVE:
            raise IllegalMoveAttempt(move, "not the local side's turn")
        fen = self.rules.apply_move(move)
        if fen is None:
            raise IllegalMoveAttempt(move)
        self.view.render(fen)
        # Send the move as played, promotion piece included
        move = self.rules.last_move() or move

        # A move that ends the game is still sent so the server can confirm it,
        # but its reply does not replace the finished position.
        ended_locally = self.rules.is_terminal()
        try:
            reply = await self.sync.submit(self.state, move)
        except RemoteCallFailure as exc:
            self._stall(f"Move {move.coordinate} not synchronised", exc)
        else:
            self._recover()
            if reply is not None and not ended_locally:
                self._replace_position(reply)
        await self._settle()

    async def _request_opening_move(self) -> None:
        try:
            reply = await self.sync.request_opening_move(self.state)
        except RemoteCallFailure as exc:
            self._stall("Opening move not received", exc)
        else:
            self._recover()
            if reply is not None:
                self._replace_position(reply)
        await self._settle()

    async def _run_assist(self) -> None:
        if self.assist is None:
            return
        while self.state.assist_enabled and self.phase is Phase.AWAITING_LOCAL_MOVE:
            before = self.rules.fen()
            try:
                played = await self.assist.suggest_and_play(self.state, self._play_local)
            except AdvisoryFailure as exc:
                logger.warning("Assist skipped: %s", exc)
                return
            except AssistIntegrationFailure as exc:
                logger.error("Assist disabled: %s", exc)
                self.state.assist_enabled = False
                self.view.show_error(str(exc))
                return
            # The server bounced the move back; asking again would repeat it
            if not played or self.rules.fen() == before:
                return

    def _replace_position(self, fen: str) -> None:
        try:
            self.rules.load(fen)
        except InvalidPositionError as exc:
            self._stall("Server sent an unreadable position", exc)
            return
        self.view.render(self.rules.fen())

    # ---- Terminal handling ----
    async def _settle(self) -> None:
        """Decide the phase after the position changed: confirm a game end or resume play."""
        if self.state.terminal and self.state.announced:
            return

        corrected = False
        for _ in range(MAX_CORRECTIONS):
            if not self.rules.is_terminal():
                break
            # Terminal until the server says otherwise: no moves in between
            self.state.terminal = True
            self.state.terminal_reason = self.rules.terminal_reason()
            try:
                result = await self.game_over.check_terminal(self.state)
            except RemoteCallFailure as exc:
                self._stall("Game end not confirmed", exc)
                break
            self._recover()

            if isinstance(result, ServerCorrection):
                if not self._apply_correction(result):
                    self._stall("Server disputes the game end but keeps the same position")
                    break
                corrected = True
                continue
            if isinstance(result, TerminalOutcome):
                await self._enter_terminal(result, corrected)
                return
            break
        else:
            if self.rules.is_terminal():
                self._stall(f"Server keeps correcting the game end after {MAX_CORRECTIONS} rounds")

        self._resume()

    def _apply_correction(self, correction: ServerCorrection) -> bool:
        """Take the server's position. False when it matches the current one."""
        if correction.fen == self.rules.fen():
            return False
        try:
            self.rules.load(correction.fen)
        except InvalidPositionError as exc:
            self._stall("Server correction unreadable", exc)
            return False
        logger.info("Position corrected by server")
        self.state.terminal = False
        self.state.terminal_reason = TerminalReason.NONE
        self.state.announced = False
        self.view.render(self.rules.fen())
        return True

    async def _enter_terminal(self, outcome: TerminalOutcome, corrected: bool) -> None:
        self.state.terminal = True
        self.state.terminal_reason = TerminalReason.SERVER_OVERRIDE if corrected else outcome.reason
        self._show_check()
        if self.state.announced:
            return
        self.state.announced = True
        self.state.episodes += 1
        logger.info("Game over: %s", outcome.description)
        self.view.announce_game_over(outcome.description)
        entries = await self.scoreboard.fetch_top(self.scoreboard_count)
        self.view.render_scoreboard(entries)

    def _resume(self) -> None:
        self.state.terminal = False
        self.state.terminal_reason = TerminalReason.NONE
        self._show_turn()

    # ---- Presentation ----
    def _show_turn(self) -> None:
        self.view.show_turn(self.state.is_local_turn)
        self._show_check()

    def _show_check(self) -> None:
        king = self.rules.checked_king_square()
        if king is None:
            self.view.clear_highlights()
        else:
            self.view.highlight({king})

    def _stall(self, message: str, exc: Exception | None = None) -> None:
        if exc is None:
            logger.warning("%s", message)
        else:
            logger.warning("%s: %s", message, exc)
        self.state.stalled = True
        self.view.show_status(f"{message}; waiting on the server")

    def _recover(self) -> None:
        if self.state.stalled:
            self.state.stalled = False
            self.view.show_status("")
