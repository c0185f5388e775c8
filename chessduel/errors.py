"""
Error taxonomy for a game session.

Network failures are raised by the protocol clients and caught by the controller,
which logs them and carries on with the best-known local position.
"""

from __future__ import annotations

from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from chessduel.models import AssistSuggestion, Move


class SessionError(Exception):
    """Base class for everything a session raises."""


class IllegalMoveAttempt(SessionError):
    """Local rules rejected a move. A normal rejection: the drag snaps back."""

    def __init__(self, move: Move, reason: str = "illegal in the current position") -> None:
        super().__init__(f"{move.coordinate}: {reason}")
        self.move = move
        self.reason = reason


class InvalidPositionError(SessionError):
    def __init__(self, fen: str) -> None:
        super().__init__(f"Cannot load position {fen!r}")
        self.fen = fen


class RemoteCallFailure(SessionError):
    """A request to the game server failed (transport error or unexpected status)."""

    def __init__(self, message: str, status: int | None = None) -> None:
        super().__init__(message)
        self.status = status


class SyncFailure(RemoteCallFailure):
    pass


class TerminalCheckFailure(RemoteCallFailure):
    pass


class AdvisoryFailure(SessionError):
    """Advisory service unreachable or answered with something unusable."""


class AssistIntegrationFailure(SessionError):
    """The advisory service suggested a move the local rules engine rejects."""

    def __init__(self, suggestion: AssistSuggestion) -> None:
        super().__init__(
            f"Advisory service suggested {suggestion.move!r} ({suggestion.san}), "
            "which is illegal in the current position"
        )
        self.suggestion = suggestion
