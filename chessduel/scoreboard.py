import logging

import httpx
from pydantic import TypeAdapter, ValidationError

from chessduel.models import ScoreEntry

logger = logging.getLogger(__name__)

SCOREBOARD_PATH = "/scoreboard"

_entries = TypeAdapter(list[ScoreEntry])


class ScoreboardClient:
    def __init__(self, http: httpx.AsyncClient) -> None:
        self.http = http

    async def fetch_top(self, count: int) -> list[ScoreEntry]:
        """Best results first, as ranked by the server. Empty on any failure."""
        try:
            response = await self.http.get(SCOREBOARD_PATH, params={"count": count})
            response.raise_for_status()
            return _entries.validate_python(response.json())
        except (httpx.HTTPError, ValueError, ValidationError) as exc:
            logger.warning("Failed to fetch scoreboard: %r", exc)
            return []
