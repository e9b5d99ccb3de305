"""Dot grid geometry: edge occupancy and square ownership.

A grid of ``rows x cols`` squares has ``(rows + 1) x cols`` horizontal edges
and ``rows x (cols + 1)`` vertical edges. Horizontal edge ``(r, c)`` runs along
dot-row ``r`` from dot-column ``c`` to ``c + 1``; vertical edge ``(r, c)`` runs
down dot-column ``c`` from dot-row ``r`` to ``r + 1``.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Iterator, List, Optional, Tuple


PlayerId = str
Square = Tuple[int, int]

HORIZONTAL = "h"
VERTICAL = "v"
EDGE_KINDS = (HORIZONTAL, VERTICAL)

# side_count() result for coordinates that are not a square of the grid
NO_SQUARE = -1


@dataclass(frozen=True)
class Edge:
    """A single claimable segment between two adjacent dots.

    Attributes
    ----------
    kind:
        ``"h"`` for horizontal, ``"v"`` for vertical.
    r, c:
        Row and column in the matrix selected by ``kind``.
    """

    kind: str
    r: int
    c: int

    def to_dict(self) -> dict:
        return {"type": self.kind, "r": self.r, "c": self.c}


class GridModel:
    def __init__(self, rows: int, cols: int) -> None:
        if rows < 1 or cols < 1:
            raise ValueError(f"Grid needs at least one square, got {rows}x{cols}")
        self.rows = rows
        self.cols = cols
        self.horizontal: List[List[bool]] = [[False] * cols for _ in range(rows + 1)]
        self.vertical: List[List[bool]] = [[False] * (cols + 1) for _ in range(rows)]
        self.owners: List[List[Optional[PlayerId]]] = [[None] * cols for _ in range(rows)]

    def in_bounds(self, edge: Edge) -> bool:
        # bool is an int subclass but never a coordinate
        if not all(isinstance(v, int) and not isinstance(v, bool) for v in (edge.r, edge.c)):
            return False
        if edge.kind == HORIZONTAL:
            return 0 <= edge.r <= self.rows and 0 <= edge.c < self.cols
        if edge.kind == VERTICAL:
            return 0 <= edge.r < self.rows and 0 <= edge.c <= self.cols
        return False

    def is_claimed(self, edge: Edge) -> bool:
        lines = self.horizontal if edge.kind == HORIZONTAL else self.vertical
        return lines[edge.r][edge.c]

    def claim(self, edge: Edge) -> None:
        # Edges only ever go from False to True
        lines = self.horizontal if edge.kind == HORIZONTAL else self.vertical
        lines[edge.r][edge.c] = True

    def is_square(self, r: int, c: int) -> bool:
        return 0 <= r < self.rows and 0 <= c < self.cols

    def owner(self, r: int, c: int) -> Optional[PlayerId]:
        return self.owners[r][c]

    def set_owner(self, r: int, c: int, player: PlayerId) -> None:
        if self.owners[r][c] is not None:
            raise ValueError(f"Square {(r, c)} already belongs to {self.owners[r][c]}")
        self.owners[r][c] = player

    def side_count(self, r: int, c: int) -> int:
        """Number of claimed sides of square ``(r, c)``, or ``NO_SQUARE``."""

        if not self.is_square(r, c):
            return NO_SQUARE
        return sum(
            (
                self.horizontal[r][c],
                self.horizontal[r + 1][c],
                self.vertical[r][c],
                self.vertical[r][c + 1],
            )
        )

    def adjacent_squares(self, edge: Edge) -> List[Square]:
        # At most two squares touch any edge
        if edge.kind == HORIZONTAL:
            candidates = [(edge.r - 1, edge.c), (edge.r, edge.c)]
        else:
            candidates = [(edge.r, edge.c - 1), (edge.r, edge.c)]
        return [(r, c) for r, c in candidates if self.is_square(r, c)]

    def iter_edges(self) -> Iterator[Edge]:
        for r in range(self.rows + 1):
            for c in range(self.cols):
                yield Edge(HORIZONTAL, r, c)
        for r in range(self.rows):
            for c in range(self.cols + 1):
                yield Edge(VERTICAL, r, c)

    def unclaimed_edges(self) -> List[Edge]:
        return [edge for edge in self.iter_edges() if not self.is_claimed(edge)]

    def owned_count(self, player: Optional[PlayerId] = None) -> int:
        # Count owned squares, optionally for one player only
        return sum(
            1
            for row in self.owners
            for owner in row
            if owner is not None and (player is None or owner == player)
        )

    def is_full(self) -> bool:
        return all(owner is not None for row in self.owners for owner in row)

    def copy(self) -> "GridModel":
        clone = GridModel(self.rows, self.cols)
        clone.horizontal = [list(row) for row in self.horizontal]
        clone.vertical = [list(row) for row in self.vertical]
        clone.owners = [list(row) for row in self.owners]
        return clone


__all__ = [
    "EDGE_KINDS",
    "Edge",
    "GridModel",
    "HORIZONTAL",
    "NO_SQUARE",
    "PlayerId",
    "Square",
    "VERTICAL",
]
