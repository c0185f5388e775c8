from typing import Protocol

import chess

from chessduel.errors import InvalidPositionError
from chessduel.models import Move, Side, TerminalOutcome, TerminalReason


class RulesEngine(Protocol):
    """What the session needs from a rules engine. Positions travel as FEN strings."""

    def fen(self) -> str: ...

    def load(self, fen: str) -> None: ...

    def turn(self) -> Side: ...

    def piece_at(self, square: str) -> str | None: ...

    def legal_destinations(self, square: str, side: Side) -> set[str]: ...

    def apply_move(self, move: Move) -> str | None: ...

    def last_move(self) -> Move | None: ...

    def is_terminal(self) -> bool: ...

    def terminal_reason(self) -> TerminalReason: ...

    def outcome(self) -> TerminalOutcome | None: ...

    def checked_king_square(self) -> str | None: ...


# Local mirror of the game; the server stays authoritative
class ChessRules:
    def __init__(self, fen: str = chess.STARTING_FEN) -> None:
        self.board = chess.Board()
        self.load(fen)

    def fen(self) -> str:
        return self.board.fen()

    def load(self, fen: str) -> None:
        """Replace the whole position. A bad FEN leaves the current one untouched."""
        try:
            board = chess.Board(fen)
        except ValueError as exc:
            raise InvalidPositionError(fen) from exc
        self.board = board

    def turn(self) -> Side:
        return Side.from_chess(self.board.turn)

    def piece_at(self, square: str) -> str | None:
        try:
            piece = self.board.piece_at(chess.parse_square(square))
        except ValueError:
            return None
        return piece.symbol() if piece else None

    def legal_destinations(self, square: str, side: Side) -> set[str]:
        """
        Destinations for the piece on `square`.
        Empty unless it is `side`'s turn and the piece belongs to `side`.
        """
        if self.board.turn != side.chess_color:
            return set()
        try:
            src = chess.parse_square(square)
        except ValueError:
            return set()
        piece = self.board.piece_at(src)
        if piece is None or piece.color != side.chess_color:
            return set()
        return {
            chess.square_name(mv.to_square)
            for mv in self.board.legal_moves
            if mv.from_square == src
        }

    def apply_move(self, move: Move) -> str | None:
        """
        Try to play a move.
        Returns the new FEN if it was legal and applied, None otherwise.
        """
        try:
            src = chess.parse_square(move.source)
            dst = chess.parse_square(move.destination)
        except ValueError:
            return None

        promotion = None
        piece = self.board.piece_at(src)
        if piece and piece.piece_type == chess.PAWN:
            rank = chess.square_rank(dst)
            if (piece.color and rank == 7) or ((not piece.color) and rank == 0):
                try:
                    promotion = chess.Piece.from_symbol(move.promotion or "q").piece_type
                except ValueError:
                    return None

        candidate = chess.Move(src, dst, promotion=promotion)
        if candidate not in self.board.legal_moves:
            return None
        self.board.push(candidate)
        return self.board.fen()

    def last_move(self) -> Move | None:
        """The last move as played, with the promotion piece it actually used."""
        if not self.board.move_stack:
            return None
        return Move.from_coordinate(self.board.peek().uci())

    def is_terminal(self) -> bool:
        return self.board.is_game_over(claim_draw=True)

    def terminal_reason(self) -> TerminalReason:
        if not self.is_terminal():
            return TerminalReason.NONE
        if self.board.is_checkmate():
            return TerminalReason.CHECKMATE
        return TerminalReason.DRAW

    def outcome(self) -> TerminalOutcome | None:
        reason = self.terminal_reason()
        if reason is TerminalReason.NONE:
            return None
        if reason is TerminalReason.CHECKMATE:
            loser = self.turn()
            return TerminalOutcome(
                reason=reason,
                winner=loser.opponent,
                description=f"{loser.value.title()} is checkmated",
            )
        return TerminalOutcome(reason=reason, winner=None, description="Draw")

    def checked_king_square(self) -> str | None:
        if not self.board.is_check():
            return None
        king = self.board.king(self.board.turn)
        return chess.square_name(king) if king is not None else None
