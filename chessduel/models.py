from __future__ import annotations

from dataclasses import dataclass
from enum import Enum, IntEnum
from typing import TYPE_CHECKING

import chess
from pydantic import BaseModel

if TYPE_CHECKING:
    from chessduel.game_state import RulesEngine


class Side(str, Enum):
    WHITE = "white"
    BLACK = "black"

    @classmethod
    def from_code(cls, code: str) -> Side:
        """Accept the short page codes ("w"/"b") as well as full names."""
        value = (code or "").strip().lower()
        if value in ("w", "white"):
            return cls.WHITE
        if value in ("b", "black"):
            return cls.BLACK
        raise ValueError(f"Unknown side: {code!r}")

    @classmethod
    def from_chess(cls, color: chess.Color) -> Side:
        return cls.WHITE if color == chess.WHITE else cls.BLACK

    @property
    def chess_color(self) -> chess.Color:
        return chess.WHITE if self is Side.WHITE else chess.BLACK

    @property
    def opponent(self) -> Side:
        return Side.BLACK if self is Side.WHITE else Side.WHITE


class TerminalReason(str, Enum):
    NONE = "none"
    CHECKMATE = "checkmate"
    DRAW = "draw"
    SERVER_OVERRIDE = "server_override"


class Phase(str, Enum):
    AWAITING_LOCAL_MOVE = "awaiting_local_move"
    AWAITING_REMOTE_MOVE = "awaiting_remote_move"
    TERMINAL = "terminal"


class Difficulty(IntEnum):
    EASY = 1
    MEDIUM = 2
    HARD = 3

    @property
    def opponent_name(self) -> str:
        return {
            Difficulty.EASY: "Martin",
            Difficulty.MEDIUM: "Maggus Reischl",
            Difficulty.HARD: "Maggus Carlsen",
        }[self]


@dataclass(frozen=True)
class Move:
    source: str
    destination: str
    # None promotes to a queen when a pawn reaches the last rank
    promotion: str | None = None

    @classmethod
    def from_coordinate(cls, text: str) -> Move:
        """Parse coordinate notation such as "e2e4" or "e7e8n"."""
        text = (text or "").strip().lower()
        if len(text) not in (4, 5):
            raise ValueError(f"Not a coordinate move: {text!r}")
        source, destination = text[:2], text[2:4]
        for square in (source, destination):
            if square not in chess.SQUARE_NAMES:
                raise ValueError(f"Not a square: {square!r}")
        if len(text) == 5:
            if text[4] not in "qrbn":
                raise ValueError(f"Not a promotion piece: {text[4]!r}")
            return cls(source, destination, text[4])
        return cls(source, destination)

    @property
    def coordinate(self) -> str:
        return f"{self.source}{self.destination}{self.promotion or ''}"


@dataclass(frozen=True)
class TerminalOutcome:
    reason: TerminalReason
    winner: Side | None
    description: str


@dataclass(frozen=True)
class ServerCorrection:
    """Canonical position sent back by the server when it disputes a game end."""

    fen: str


@dataclass
class SessionState:
    """
    Everything one match needs. Mutated only by the controller that owns it.
    Position and turn are read through the rules adapter, never stored here.
    """

    rules: RulesEngine
    local_side: Side
    assist_enabled: bool = False
    terminal: bool = False
    terminal_reason: TerminalReason = TerminalReason.NONE
    stalled: bool = False
    announced: bool = False
    episodes: int = 0

    @property
    def current_position(self) -> str:
        return self.rules.fen()

    @property
    def turn_to_move(self) -> Side:
        return self.rules.turn()

    @property
    def is_local_turn(self) -> bool:
        return self.rules.turn() is self.local_side


# --- WIRE MODELS ---
class ScoreEntry(BaseModel):
    winner: str
    score: float


class AssistSuggestion(BaseModel):
    san: str
    move: str

    def to_move(self) -> Move:
        return Move.from_coordinate(self.move)
