import logging

import httpx
import pytest

from chessduel.models import ScoreEntry
from chessduel.scoreboard import ScoreboardClient


@pytest.mark.asyncio
async def test_fetch_top_keeps_server_order(mock_http):
    params = []

    def handler(request: httpx.Request) -> httpx.Response:
        params.append(dict(request.url.params))
        return httpx.Response(
            200,
            json=[{"winner": "Anna", "score": 91.5}, {"winner": "Bo", "score": 12}],
        )

    async with mock_http(handler) as http:
        entries = await ScoreboardClient(http).fetch_top(1000)

    assert params == [{"count": "1000"}]
    assert entries == [ScoreEntry(winner="Anna", score=91.5), ScoreEntry(winner="Bo", score=12.0)]


@pytest.mark.asyncio
@pytest.mark.parametrize(
    "response",
    [
        httpx.Response(500),
        httpx.Response(200, text="<html>oops</html>"),
        httpx.Response(200, json=[{"name": "Anna"}]),
    ],
)
async def test_failures_give_an_empty_scoreboard(mock_http, caplog, response):
    async with mock_http(lambda request: response) as http:
        with caplog.at_level(logging.WARNING, logger="chessduel.scoreboard"):
            assert await ScoreboardClient(http).fetch_top(10) == []

    assert "Failed to fetch scoreboard" in caplog.text


@pytest.mark.asyncio
async def test_against_stub_server(stub_server, asgi_http):
    server = stub_server(scores=[{"winner": "Anna", "score": 3}, {"winner": "Bo", "score": 2}])

    async with asgi_http(server.app) as http:
        entries = await ScoreboardClient(http).fetch_top(1)

    assert [e.winner for e in entries] == ["Anna"]
