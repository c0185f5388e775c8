"""
Shared fixtures: a fake game server (FastAPI), a recording board view and
factories for httpx clients and wired-up sessions.
"""

from typing import Callable

import chess
import httpx
import pytest
from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse, PlainTextResponse

from chessduel.client import build_session
from chessduel.config import ClientConfig
from chessduel.controller import GameSessionController
from chessduel.models import Side

BASE_URL = "http://testserver"
ADVISORY_URL = f"{BASE_URL}/assist"


class StubServer:
    """Remote game server stand-in. The opponent always plays its first legal move in UCI order."""

    def __init__(
        self,
        fen: str = chess.STARTING_FEN,
        scores: list[dict] | None = None,
        suggestions: list[str] | None = None,
    ) -> None:
        self.board = chess.Board(fen)
        self.scores = scores or []
        # Scripted advisor answers; None means "first legal move"
        self.suggestions = suggestions
        self.move_bodies: list[str] = []
        self.calls: list[str] = []
        self.app = self._build_app()

    def _opponent_reply(self) -> None:
        if self.board.is_game_over(claim_draw=True):
            return
        reply = sorted(self.board.legal_moves, key=lambda m: m.uci())[0]
        self.board.push(reply)

    def _parse(self, body: str) -> chess.Move | None:
        """Strict UCI: a promotion without its piece letter is rejected."""
        try:
            move = chess.Move.from_uci(body)
        except ValueError:
            return None
        return move if move in self.board.legal_moves else None

    def _build_app(self) -> FastAPI:
        app = FastAPI()

        @app.post("/move")
        async def post_move(request: Request) -> PlainTextResponse:
            body = (await request.body()).decode()
            self.calls.append("/move")
            self.move_bodies.append(body)
            if body:
                move = self._parse(body)
                if move is None:
                    return PlainTextResponse(self.board.fen(), status_code=406)
                self.board.push(move)
            self._opponent_reply()
            return PlainTextResponse(self.board.fen())

        @app.get("/game_end")
        async def game_end() -> PlainTextResponse:
            self.calls.append("/game_end")
            if self.board.is_game_over(claim_draw=True):
                return PlainTextResponse("")
            return PlainTextResponse(self.board.fen(), status_code=406)

        @app.get("/scoreboard")
        async def scoreboard(count: int) -> JSONResponse:
            self.calls.append("/scoreboard")
            return JSONResponse(self.scores[:count])

        @app.post("/assist")
        async def assist(request: Request) -> JSONResponse:
            self.calls.append("/assist")
            board = chess.Board((await request.json())["fen"])
            if self.suggestions is None:
                move = sorted(board.legal_moves, key=lambda m: m.uci())[0]
            elif self.suggestions:
                move = chess.Move.from_uci(self.suggestions.pop(0))
            else:
                return JSONResponse({"error": "no suggestion"}, status_code=503)
            return JSONResponse({"san": board.san(move), "move": move.uci(), "eval": 0.0})

        return app


class RecordingView:
    """BoardView that remembers what it was asked to show."""

    def __init__(self) -> None:
        self.renders: list[str] = []
        self.highlighted: set[str] = set()
        self.circles: set[str] = set()
        self.turns: list[bool] = []
        self.announcements: list[str] = []
        self.scoreboards: list[list] = []
        self.statuses: list[str] = []
        self.errors: list[str] = []

    def render(self, fen: str) -> None:
        self.renders.append(fen)

    def highlight(self, squares) -> None:
        self.highlighted = set(squares)

    def clear_highlights(self) -> None:
        self.highlighted = set()

    def add_circle(self, square: str) -> None:
        self.circles.add(square)

    def clear_circles(self) -> None:
        self.circles = set()

    def show_turn(self, local_active: bool) -> None:
        self.turns.append(local_active)

    def announce_game_over(self, text: str) -> None:
        self.announcements.append(text)

    def render_scoreboard(self, entries) -> None:
        self.scoreboards.append(list(entries))

    def show_status(self, text: str) -> None:
        self.statuses.append(text)

    def show_error(self, text: str) -> None:
        self.errors.append(text)

    def bind(self, on_drag_start, on_drop) -> None:
        pass


@pytest.fixture
def stub_server() -> Callable[..., StubServer]:
    return StubServer


@pytest.fixture
def asgi_http() -> Callable[[FastAPI], httpx.AsyncClient]:
    def _make(app: FastAPI) -> httpx.AsyncClient:
        return httpx.AsyncClient(transport=httpx.ASGITransport(app=app), base_url=BASE_URL)

    return _make


@pytest.fixture
def mock_http() -> Callable[[Callable], httpx.AsyncClient]:
    """Client whose requests are answered by `handler(request) -> httpx.Response`."""

    def _make(handler: Callable) -> httpx.AsyncClient:
        return httpx.AsyncClient(transport=httpx.MockTransport(handler), base_url=BASE_URL)

    return _make


@pytest.fixture
def make_session() -> Callable[..., GameSessionController]:
    def _make(
        http: httpx.AsyncClient,
        side: Side = Side.WHITE,
        fen: str = chess.STARTING_FEN,
        assist: bool = False,
    ) -> GameSessionController:
        config = ClientConfig(
            side=side,
            base_url=BASE_URL,
            assist=assist,
            advisory_url=ADVISORY_URL,
            scoreboard_count=10,
            starting_fen=fen,
        )
        return build_session(config, http, view=RecordingView())

    return _make
