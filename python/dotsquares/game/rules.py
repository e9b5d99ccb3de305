"""Game session state and the move engine built on :mod:`dotsquares.game.grid`."""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Dict, List, Optional, Tuple

from .grid import Edge, GridModel, PlayerId, Square


LOG = logging.getLogger("dotsquares.rules")

PLAYER_1: PlayerId = "PLAYER_1"
PLAYER_2: PlayerId = "PLAYER_2"
PLAYERS = (PLAYER_1, PLAYER_2)

# Rejection codes carried on MoveResult.error
GAME_OVER = "game_over"
OUT_OF_BOUNDS = "out_of_bounds"
ALREADY_CLAIMED = "already_claimed"


# Flip between players
def opponent(player: PlayerId) -> PlayerId:
    return PLAYER_2 if player == PLAYER_1 else PLAYER_1


@dataclass
class MoveResult:
    legal: bool
    error: Optional[str] = None
    edge: Optional[Edge] = None
    player: Optional[PlayerId] = None
    completed: Tuple[Square, ...] = ()
    scores: Dict[PlayerId, int] = field(default_factory=dict)
    turn_changed: bool = False
    game_over: bool = False


class GameSession:
    """Everything that describes one running game.

    Mutated only through :meth:`apply_move`.
    """

    def __init__(self, grid: GridModel) -> None:
        self.grid = grid
        self.current_player: PlayerId = PLAYER_1
        self.scores: Dict[PlayerId, int] = {player: 0 for player in PLAYERS}
        self.is_over = False
        self.move_count = 0

    @classmethod
    def new(cls, rows: int, cols: int) -> "GameSession":
        return cls(GridModel(rows, cols))

    @property
    def rows(self) -> int:
        return self.grid.rows

    @property
    def cols(self) -> int:
        return self.grid.cols

    def legal_moves(self) -> List[Edge]:
        if self.is_over:
            return []
        return self.grid.unclaimed_edges()

    def winner(self) -> Optional[PlayerId]:
        # None while playing and on a tie
        if not self.is_over:
            return None
        first, second = self.scores[PLAYER_1], self.scores[PLAYER_2]
        if first > second:
            return PLAYER_1
        if second > first:
            return PLAYER_2
        return None

    def copy(self) -> "GameSession":
        clone = GameSession(self.grid.copy())
        clone.current_player = self.current_player
        clone.scores = dict(self.scores)
        clone.is_over = self.is_over
        clone.move_count = self.move_count
        return clone

    def apply_move(self, kind: str, r: int, c: int) -> MoveResult:
        return apply_move(self, kind, r, c)


def _reject(session: GameSession, edge: Edge, error: str) -> MoveResult:
    LOG.debug("Rejected %s for %s: %s", edge, session.current_player, error)
    return MoveResult(legal=False, error=error, edge=edge, scores=dict(session.scores))


def apply_move(session: GameSession, kind: str, r: int, c: int) -> MoveResult:
    # Validate, claim the edge and settle ownership and turn
    edge = Edge(kind, r, c)
    grid = session.grid

    if session.is_over:
        return _reject(session, edge, GAME_OVER)
    if not grid.in_bounds(edge):
        return _reject(session, edge, OUT_OF_BOUNDS)
    if grid.is_claimed(edge):
        return _reject(session, edge, ALREADY_CLAIMED)

    mover = session.current_player
    grid.claim(edge)
    session.move_count += 1

    completed: List[Square] = []
    for sq_r, sq_c in grid.adjacent_squares(edge):
        if grid.owner(sq_r, sq_c) is not None:
            continue
        if grid.side_count(sq_r, sq_c) == 4:
            grid.set_owner(sq_r, sq_c, mover)
            session.scores[mover] += 1
            completed.append((sq_r, sq_c))

    turn_changed = not completed
    if turn_changed:
        session.current_player = opponent(mover)

    session.is_over = grid.is_full()

    return MoveResult(
        legal=True,
        edge=edge,
        player=mover,
        completed=tuple(completed),
        scores=dict(session.scores),
        turn_changed=turn_changed,
        game_over=session.is_over,
    )


__all__ = [
    "ALREADY_CLAIMED",
    "GAME_OVER",
    "GameSession",
    "MoveResult",
    "OUT_OF_BOUNDS",
    "PLAYERS",
    "PLAYER_1",
    "PLAYER_2",
    "apply_move",
    "opponent",
]
