import httpx
import pytest

from chessduel.errors import SyncFailure
from chessduel.game_state import ChessRules
from chessduel.models import Move, SessionState, Side
from chessduel.sync import MoveSyncProtocol
from positions import AFTER_E4_FEN, SCHOLAR_FEN


def new_state(**kwargs) -> SessionState:
    return SessionState(rules=ChessRules(), local_side=Side.WHITE, **kwargs)


@pytest.mark.asyncio
async def test_submit_posts_coordinates_and_returns_server_position(mock_http):
    seen = []

    def handler(request: httpx.Request) -> httpx.Response:
        seen.append((request.method, request.url.path, request.content, request.headers["content-type"]))
        return httpx.Response(200, text=AFTER_E4_FEN + "\n")

    async with mock_http(handler) as http:
        fen = await MoveSyncProtocol(http).submit(new_state(), Move("e2", "e4"))

    assert fen == AFTER_E4_FEN
    assert seen == [("POST", "/move", b"e2e4", "text/plain")]


@pytest.mark.asyncio
async def test_opening_request_has_empty_body(mock_http):
    bodies = []

    def handler(request: httpx.Request) -> httpx.Response:
        bodies.append(request.content)
        return httpx.Response(200, text=AFTER_E4_FEN)

    async with mock_http(handler) as http:
        state = SessionState(rules=ChessRules(), local_side=Side.BLACK)
        assert await MoveSyncProtocol(http).request_opening_move(state) == AFTER_E4_FEN

    assert bodies == [b""]


@pytest.mark.asyncio
async def test_rejected_move_still_carries_the_canonical_position(mock_http):
    async with mock_http(lambda request: httpx.Response(406, text=SCHOLAR_FEN)) as http:
        fen = await MoveSyncProtocol(http).submit(new_state(), Move("e2", "e4"))

    assert fen == SCHOLAR_FEN


@pytest.mark.asyncio
async def test_server_error_is_a_sync_failure(mock_http):
    async with mock_http(lambda request: httpx.Response(500, text="Could not generate stockfish move")) as http:
        with pytest.raises(SyncFailure) as excinfo:
            await MoveSyncProtocol(http).submit(new_state(), Move("e2", "e4"))

    assert excinfo.value.status == 500


@pytest.mark.asyncio
async def test_empty_reply_is_a_sync_failure(mock_http):
    async with mock_http(lambda request: httpx.Response(200, text="")) as http:
        with pytest.raises(SyncFailure):
            await MoveSyncProtocol(http).submit(new_state(), Move("e2", "e4"))


@pytest.mark.asyncio
async def test_transport_error_is_a_sync_failure(mock_http):
    def handler(request: httpx.Request) -> httpx.Response:
        raise httpx.ConnectError("connection refused", request=request)

    async with mock_http(handler) as http:
        with pytest.raises(SyncFailure):
            await MoveSyncProtocol(http).submit(new_state(), Move("e2", "e4"))


@pytest.mark.asyncio
async def test_nothing_is_sent_once_the_game_is_over(mock_http):
    calls = []

    def handler(request: httpx.Request) -> httpx.Response:
        calls.append(request)
        return httpx.Response(200, text=AFTER_E4_FEN)

    async with mock_http(handler) as http:
        sync = MoveSyncProtocol(http)
        state = new_state(terminal=True)
        assert await sync.submit(state, Move("e2", "e4")) is None
        assert await sync.request_opening_move(state) is None

    assert calls == []
