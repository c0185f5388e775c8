import argparse
import os
from dataclasses import dataclass

import chess
import httpx

from chessduel.models import Difficulty, Side

# ---- Defaults ----
DEFAULT_BASE_URL = "http://localhost:8000"
DEFAULT_ADVISORY_URL = "https://chess-api.com/v1"
DEFAULT_SCOREBOARD_COUNT = 1000
DEFAULT_TIMEOUT = 10.0


@dataclass(frozen=True)
class ClientConfig:
    side: Side
    base_url: str = DEFAULT_BASE_URL
    assist: bool = False
    advisory_url: str = DEFAULT_ADVISORY_URL
    scoreboard_count: int = DEFAULT_SCOREBOARD_COUNT
    request_timeout: float = DEFAULT_TIMEOUT
    starting_fen: str = chess.STARTING_FEN
    username: str = "You"
    difficulty: Difficulty = Difficulty.EASY


def _env_flag(name: str) -> bool:
    return os.environ.get(name, "").strip().lower() in ("1", "true", "yes", "on")


def build_parser() -> argparse.ArgumentParser:
    env = os.environ
    parser = argparse.ArgumentParser(
        prog="chessduel",
        description="Play a chess match against a remote opponent over HTTP.",
    )
    parser.add_argument(
        "--side",
        default=env.get("CHESSDUEL_SIDE", "w"),
        help="Side assigned by the server: w/white or b/black.",
    )
    parser.add_argument("--base-url", default=env.get("CHESSDUEL_BASE_URL", DEFAULT_BASE_URL))
    parser.add_argument(
        "--assist",
        action="store_true",
        default=_env_flag("CHESSDUEL_ASSIST"),
        help="Let the advisory service play the local side's moves.",
    )
    parser.add_argument(
        "--advisory-url", default=env.get("CHESSDUEL_ADVISORY_URL", DEFAULT_ADVISORY_URL)
    )
    parser.add_argument(
        "--scoreboard-count",
        type=int,
        default=int(env.get("CHESSDUEL_SCOREBOARD_COUNT", DEFAULT_SCOREBOARD_COUNT)),
    )
    parser.add_argument(
        "--timeout",
        type=float,
        default=float(env.get("CHESSDUEL_TIMEOUT", DEFAULT_TIMEOUT)),
        help="Seconds before a request to the server counts as stalled.",
    )
    parser.add_argument("--fen", default=env.get("CHESSDUEL_FEN", chess.STARTING_FEN))
    parser.add_argument("--username", default=env.get("CHESSDUEL_USERNAME", "You"))
    parser.add_argument(
        "--difficulty",
        type=int,
        choices=[d.value for d in Difficulty],
        default=int(env.get("CHESSDUEL_DIFFICULTY", Difficulty.EASY)),
    )
    parser.add_argument("-v", "--verbose", action="store_true")
    return parser


def config_from_args(args: argparse.Namespace) -> ClientConfig:
    return ClientConfig(
        side=Side.from_code(args.side),
        base_url=args.base_url,
        assist=args.assist,
        advisory_url=args.advisory_url,
        scoreboard_count=args.scoreboard_count,
        request_timeout=args.timeout,
        starting_fen=args.fen,
        username=args.username,
        difficulty=Difficulty(args.difficulty),
    )


def make_http_client(config: ClientConfig, **kwargs) -> httpx.AsyncClient:
    """One client per session; `kwargs` lets tests swap in a transport."""
    return httpx.AsyncClient(
        base_url=config.base_url,
        timeout=config.request_timeout,
        headers={"Cache-Control": "no-cache"},
        **kwargs,
    )
