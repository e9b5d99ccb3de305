from __future__ import annotations

import logging
import random
from typing import List, Optional

from .game.grid import Edge, GridModel, NO_SQUARE
from .game.rules import GameSession


LOG = logging.getLogger("dotsquares.ai")


# Side counts of the real squares touching an edge
def _neighbour_counts(grid: GridModel, edge: Edge) -> List[int]:
    counts = [grid.side_count(r, c) for r, c in grid.adjacent_squares(edge)]
    return [count for count in counts if count != NO_SQUARE]


def completes_square(grid: GridModel, edge: Edge) -> bool:
    return any(count == 3 for count in _neighbour_counts(grid, edge))


def gives_third_side(grid: GridModel, edge: Edge) -> bool:
    return any(count == 2 for count in _neighbour_counts(grid, edge))


class HeuristicAgent:
    """Greedy opponent: take free squares, otherwise never hand one over.

    Ties inside a tier are broken uniformly at random.
    """

    def __init__(self, seed: Optional[int] = None, rng: Optional[random.Random] = None) -> None:
        self.rng = rng if rng is not None else random.Random(seed)

    def choose_move(self, session: GameSession) -> Optional[Edge]:
        moves = session.legal_moves()
        if not moves:
            return None

        grid = session.grid

        completing = [edge for edge in moves if completes_square(grid, edge)]
        if completing:
            LOG.debug("Completing a square (%d candidates)", len(completing))
            return self.rng.choice(completing)

        safe = [edge for edge in moves if not gives_third_side(grid, edge)]
        if safe:
            LOG.debug("Playing safe (%d candidates)", len(safe))
            return self.rng.choice(safe)

        LOG.debug("No safe edge left, sacrificing (%d candidates)", len(moves))
        return self.rng.choice(moves)

    @property
    def description(self) -> str:
        return "Heuristic(complete, then safe, then any)"


__all__ = ["HeuristicAgent", "completes_square", "gives_third_side"]
