from typing import Awaitable, Callable, Iterable, Protocol, Sequence

import chess

from chessduel.models import ScoreEntry, Side

DragStartHandler = Callable[[str, str | None], bool]
DropHandler = Callable[[str, str, str | None], Awaitable[str]]


class BoardView(Protocol):
    """Presentation side of a session. Never decides legality."""

    def render(self, fen: str) -> None: ...

    def highlight(self, squares: Iterable[str]) -> None: ...

    def clear_highlights(self) -> None: ...

    def add_circle(self, square: str) -> None: ...

    def clear_circles(self) -> None: ...

    def show_turn(self, local_active: bool) -> None: ...

    def announce_game_over(self, text: str) -> None: ...

    def render_scoreboard(self, entries: Sequence[ScoreEntry]) -> None: ...

    def show_status(self, text: str) -> None: ...

    def show_error(self, text: str) -> None: ...


# ---- Helpers ----
files = ["a", "b", "c", "d", "e", "f", "g", "h"]
ranks = [1, 2, 3, 4, 5, 6, 7, 8]

glyphs = {
    chess.PAWN: {True: "♙", False: "♟"},
    chess.ROOK: {True: "♖", False: "♜"},
    chess.KNIGHT: {True: "♘", False: "♞"},
    chess.BISHOP: {True: "♗", False: "♝"},
    chess.QUEEN: {True: "♕", False: "♛"},
    chess.KING: {True: "♔", False: "♚"},
}


class TerminalBoardView:
    """
    Text rendering of the board for a terminal.
    Output goes through `write` (print by default) so tests can capture it.
    """

    def __init__(
        self,
        orientation: Side = Side.WHITE,
        player_name: str = "You",
        opponent_name: str = "Opponent",
        write: Callable[[str], None] = print,
    ) -> None:
        self.orientation = orientation
        self.player_name = player_name
        self.opponent_name = opponent_name
        self.write = write

        self.fen: str | None = None
        self.highlighted: set[str] = set()
        self.circles: set[str] = set()
        self.local_active = False
        self.status = ""

        self._on_drag_start: DragStartHandler | None = None
        self._on_drop: DropHandler | None = None

    # ---- Rendering ----
    def render(self, fen: str) -> None:
        self.fen = fen
        self.write(self.board_text())

    def board_text(self) -> str:
        if self.fen is None:
            return ""
        board = chess.Board(self.fen)
        oriented_files = files if self.orientation is Side.WHITE else list(reversed(files))
        oriented_ranks = list(reversed(ranks)) if self.orientation is Side.WHITE else ranks

        lines = []
        for r in oriented_ranks:
            cells = []
            for f in oriented_files:
                sq = f"{f}{r}"
                piece = board.piece_at(chess.parse_square(sq))
                glyph = glyphs[piece.piece_type][piece.color] if piece else "·"
                if sq in self.highlighted:
                    cells.append(f"[{glyph}]")
                elif sq in self.circles:
                    cells.append(f"({glyph})")
                else:
                    cells.append(f" {glyph} ")
            lines.append(f"{r} " + "".join(cells))
        lines.append("  " + "".join(f" {f} " for f in oriented_files))
        return "\n".join(lines)

    def highlight(self, squares: Iterable[str]) -> None:
        self.highlighted = set(squares)

    def clear_highlights(self) -> None:
        self.highlighted = set()

    def add_circle(self, square: str) -> None:
        self.circles.add(square)

    def clear_circles(self) -> None:
        self.circles = set()

    def show_turn(self, local_active: bool) -> None:
        self.local_active = local_active
        player = f"{'>' if local_active else ' '} {self.player_name}"
        opponent = f"{' ' if local_active else '>'} {self.opponent_name}"
        self.write(f"{player}    {opponent}")

    def announce_game_over(self, text: str) -> None:
        self.write(f"Game over: {text}")

    def render_scoreboard(self, entries: Sequence[ScoreEntry]) -> None:
        if not entries:
            self.write("There are no Scores yet.")
            return
        self.write("Take a look at the Scoreboard:")
        self.write(f"{'Rank':<6}{'Winner':<24}{'Score':>8}")
        for index, entry in enumerate(entries):
            self.write(f"{index + 1:<6}{entry.winner:<24}{entry.score:>8.1f}")

    def show_status(self, text: str) -> None:
        if text == self.status:
            return
        self.status = text
        if text:
            self.write(f"[status] {text}")

    def show_error(self, text: str) -> None:
        self.write(f"[error] {text}")

    # ---- Input ----
    def bind(self, on_drag_start: DragStartHandler, on_drop: DropHandler) -> None:
        self._on_drag_start = on_drag_start
        self._on_drop = on_drop

    async def handle_input(self, line: str) -> str | None:
        """
        "e2" picks a piece up (shows its destinations), "e2e4" drags and drops it,
        "e7e8n" also names the promotion piece.
        Returns the drop result, or None when nothing was dropped.
        """
        text = line.strip().lower()
        if self._on_drag_start is None or self._on_drop is None:
            return None

        if len(text) == 2 and text in chess.SQUARE_NAMES:
            if self._on_drag_start(text, self._piece_at(text)):
                self.write(self.board_text())
            return None

        if (
            len(text) in (4, 5)
            and text[:2] in chess.SQUARE_NAMES
            and text[2:4] in chess.SQUARE_NAMES
            and text[4:] in ("", "q", "r", "b", "n")
        ):
            source, destination, promotion = text[:2], text[2:4], text[4:] or None
            if not self._on_drag_start(source, self._piece_at(source)):
                self.clear_circles()
                return "snapback"
            return await self._on_drop(source, destination, promotion)

        self.write(f"Cannot read {line.strip()!r}; type a square (e2) or a move (e2e4, e7e8n).")
        return None

    def _piece_at(self, square: str) -> str | None:
        if self.fen is None:
            return None
        piece = chess.Board(self.fen).piece_at(chess.parse_square(square))
        return piece.symbol() if piece else None
