"""JSON snapshot helpers for saving and restoring a game session."""

from __future__ import annotations

import json
from typing import Any, Dict, Optional, Protocol

from .game.grid import GridModel
from .game.rules import PLAYERS, GameSession


ENCODING = "utf-8"
VERSION = 1
DEFAULT_KEY = "dots_game_v1"


class CorruptSnapshotError(ValueError):
    pass


class SnapshotStore(Protocol):
    def get(self, key: str) -> Optional[bytes]: ...

    def set(self, key: str, blob: bytes) -> None: ...


class MemoryStore:
    """In-process key-value store, enough for tests and single-process front ends."""

    def __init__(self) -> None:
        self._items: Dict[str, bytes] = {}

    def get(self, key: str) -> Optional[bytes]:
        return self._items.get(key)

    def set(self, key: str, blob: bytes) -> None:
        self._items[key] = blob

    def __contains__(self, key: str) -> bool:
        return key in self._items


def to_dict(session: GameSession) -> Dict[str, Any]:
    grid = session.grid
    return {
        "version": VERSION,
        "rows": grid.rows,
        "cols": grid.cols,
        "horizontalLines": [list(row) for row in grid.horizontal],
        "verticalLines": [list(row) for row in grid.vertical],
        "squares": [list(row) for row in grid.owners],
        "currentPlayer": session.current_player,
        "scores": dict(session.scores),
        "isGameOver": session.is_over,
        "moveCount": session.move_count,
    }


def serialize(session: GameSession) -> bytes:
    """Serialize a session to compact UTF-8 JSON."""

    return json.dumps(to_dict(session), separators=(",", ":")).encode(ENCODING)


def deserialize(blob: bytes) -> GameSession:
    """Rebuild a session, raising :class:`CorruptSnapshotError` on any inconsistency."""

    try:
        data = json.loads(blob.decode(ENCODING))
    except (AttributeError, UnicodeDecodeError, json.JSONDecodeError) as exc:
        raise CorruptSnapshotError("Malformed snapshot") from exc

    if not isinstance(data, dict):
        raise CorruptSnapshotError("Snapshot must be a JSON object")
    if data.get("version") != VERSION:
        raise CorruptSnapshotError(f"Unsupported snapshot version: {data.get('version')!r}")

    try:
        return from_dict(data)
    except (KeyError, TypeError) as exc:
        raise CorruptSnapshotError(f"Snapshot is missing or mistypes a field: {exc}") from exc


def from_dict(data: Dict[str, Any]) -> GameSession:
    rows = _positive_int(data["rows"], "rows")
    cols = _positive_int(data["cols"], "cols")
    grid = GridModel(rows, cols)

    grid.horizontal = _matrix(data["horizontalLines"], rows + 1, cols, _bool, "horizontalLines")
    grid.vertical = _matrix(data["verticalLines"], rows, cols + 1, _bool, "verticalLines")
    grid.owners = _matrix(data["squares"], rows, cols, _owner, "squares")

    session = GameSession(grid)
    session.current_player = _owner(data["currentPlayer"], "currentPlayer", allow_none=False)
    session.scores = {player: _count(data["scores"][player], "scores") for player in PLAYERS}
    session.is_over = _bool(data["isGameOver"], "isGameOver")
    session.move_count = _count(data["moveCount"], "moveCount")

    _check_consistency(session)
    return session


def _check_consistency(session: GameSession) -> None:
    # The snapshot must describe a position the move engine could have reached
    grid = session.grid
    for r in range(grid.rows):
        for c in range(grid.cols):
            complete = grid.side_count(r, c) == 4
            if complete != (grid.owner(r, c) is not None):
                raise CorruptSnapshotError(f"Square {(r, c)} ownership disagrees with its edges")

    for player in PLAYERS:
        if session.scores[player] != grid.owned_count(player):
            raise CorruptSnapshotError(f"Score for {player} disagrees with owned squares")

    if session.is_over != grid.is_full():
        raise CorruptSnapshotError("Game-over flag disagrees with the board")

    claimed = sum(1 for edge in grid.iter_edges() if grid.is_claimed(edge))
    if session.move_count != claimed:
        raise CorruptSnapshotError("Move count disagrees with claimed edges")


def _positive_int(value: Any, name: str) -> int:
    if not isinstance(value, int) or isinstance(value, bool) or value < 1:
        raise CorruptSnapshotError(f"{name} must be a positive integer")
    return value


def _count(value: Any, name: str) -> int:
    if not isinstance(value, int) or isinstance(value, bool) or value < 0:
        raise CorruptSnapshotError(f"{name} must be a non-negative integer")
    return value


def _bool(value: Any, name: str) -> bool:
    if not isinstance(value, bool):
        raise CorruptSnapshotError(f"{name} must hold booleans")
    return value


def _owner(value: Any, name: str, allow_none: bool = True) -> Optional[str]:
    if value is None and allow_none:
        return None
    if value not in PLAYERS:
        raise CorruptSnapshotError(f"{name} holds an unknown player: {value!r}")
    return value


def _matrix(value: Any, rows: int, cols: int, cell, name: str) -> list:
    if not isinstance(value, list) or len(value) != rows:
        raise CorruptSnapshotError(f"{name} must have {rows} rows")
    matrix = []
    for row in value:
        if not isinstance(row, list) or len(row) != cols:
            raise CorruptSnapshotError(f"{name} rows must have {cols} entries")
        matrix.append([cell(item, name) for item in row])
    return matrix


__all__ = [
    "CorruptSnapshotError",
    "DEFAULT_KEY",
    "MemoryStore",
    "SnapshotStore",
    "deserialize",
    "from_dict",
    "serialize",
    "to_dict",
]
