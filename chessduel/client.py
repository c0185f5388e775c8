import asyncio
import logging
import sys

import httpx

from chessduel.assist import AssistClient
from chessduel.config import ClientConfig, build_parser, config_from_args, make_http_client
from chessduel.controller import GameSessionController
from chessduel.game_over import GameOverProtocol
from chessduel.game_state import ChessRules
from chessduel.models import Phase, SessionState
from chessduel.scoreboard import ScoreboardClient
from chessduel.sync import MoveSyncProtocol
from chessduel.view import TerminalBoardView

logger = logging.getLogger(__name__)


def build_session(
    config: ClientConfig, http: httpx.AsyncClient, view: TerminalBoardView | None = None
) -> GameSessionController:
    """Wire one match: state, board view, protocol clients and controller."""
    state = SessionState(
        rules=ChessRules(config.starting_fen),
        local_side=config.side,
        assist_enabled=config.assist,
    )
    if view is None:
        view = TerminalBoardView(
            orientation=config.side,
            player_name=config.username,
            opponent_name=config.difficulty.opponent_name,
        )
    controller = GameSessionController(
        state=state,
        view=view,
        sync=MoveSyncProtocol(http),
        game_over=GameOverProtocol(http),
        scoreboard=ScoreboardClient(http),
        assist=AssistClient(http, config.advisory_url),
        scoreboard_count=config.scoreboard_count,
    )
    view.bind(controller.on_drag_start, controller.on_drop)
    return controller


async def run(config: ClientConfig, transport: httpx.AsyncBaseTransport | None = None) -> None:
    async with make_http_client(config, transport=transport) as http:
        controller = build_session(config, http)
        view = controller.view
        await controller.start()

        while controller.phase is not Phase.TERMINAL:
            # Keep the event loop free while waiting on the keyboard
            line = await asyncio.to_thread(sys.stdin.readline)
            if not line:
                break
            if not line.strip():
                continue
            if line.strip().lower() == "retry":
                await controller.check_game_over()
                continue
            result = await view.handle_input(line)
            if result == "snapback":
                view.write("Move not possible.")


def main(argv: list[str] | None = None) -> None:
    args = build_parser().parse_args(argv)
    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.INFO,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )
    config = config_from_args(args)
    logger.info("Playing %s against %s", config.side.value, config.base_url)
    try:
        asyncio.run(run(config))
    except KeyboardInterrupt:
        pass


if __name__ == "__main__":
    main()
