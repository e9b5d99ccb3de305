"""Turn orchestration between the human player and the computer opponent."""

from __future__ import annotations

import logging
from typing import Any, Callable, Dict, List, Optional

from .ai import HeuristicAgent
from .game.grid import Edge
from .game.rules import PLAYER_1, GameSession, MoveResult, PlayerId, opponent
from .oracle import OracleAdvisor, OracleError
from .snapshot import DEFAULT_KEY, CorruptSnapshotError, SnapshotStore, deserialize, serialize


LOG = logging.getLogger("dotsquares.match")

HUMAN_TO_MOVE = "human_to_move"
COMPUTER_TO_MOVE = "computer_to_move"
COMPUTER_THINKING = "computer_thinking"
GAME_OVER = "game_over"

# Orchestration-level rejection codes
NOT_YOUR_TURN = "not_your_turn"
COMPUTER_BUSY = "computer_busy"

Listener = Callable[["Match", MoveResult], None]


class Match:
    def __init__(
        self,
        rows: int = 4,
        cols: int = 4,
        agent: Optional[HeuristicAgent] = None,
        advisor: Optional[OracleAdvisor] = None,
        human: PlayerId = PLAYER_1,
        snapshot_key: str = DEFAULT_KEY,
    ) -> None:
        self.rows = rows
        self.cols = cols
        self.human = human
        self.computer = opponent(human)
        self.agent = agent or HeuristicAgent()
        self.advisor = advisor
        self.snapshot_key = snapshot_key
        self.session = GameSession.new(rows, cols)
        self.thinking = False
        self._listeners: List[Listener] = []

    @property
    def state(self) -> str:
        if self.session.is_over:
            return GAME_OVER
        if self.thinking:
            return COMPUTER_THINKING
        if self.session.current_player == self.human:
            return HUMAN_TO_MOVE
        return COMPUTER_TO_MOVE

    def subscribe(self, listener: Listener) -> Callable[[], None]:
        self._listeners.append(listener)

        def unsubscribe() -> None:
            if listener in self._listeners:
                self._listeners.remove(listener)

        return unsubscribe

    def submit_human_move(self, kind: str, r: int, c: int) -> MoveResult:
        if self.thinking:
            return MoveResult(legal=False, error=COMPUTER_BUSY, scores=dict(self.session.scores))
        if not self.session.is_over and self.session.current_player != self.human:
            return MoveResult(legal=False, error=NOT_YOUR_TURN, scores=dict(self.session.scores))
        return self._apply(kind, r, c)

    async def play_computer_turn(self) -> List[MoveResult]:
        # Keep moving while the extra-turn rule hands the move back
        results: List[MoveResult] = []
        while self.state == COMPUTER_TO_MOVE:
            session = self.session
            self.thinking = True
            try:
                edge = await self._decide()
            finally:
                if self.session is session:
                    self.thinking = False

            # A reset or restore while thinking makes the decision stale
            if self.session is not session or session.current_player != self.computer:
                LOG.info("Session replaced while thinking, dropping %s", edge)
                break

            result = self._apply(edge.kind, edge.r, edge.c)
            if not result.legal:
                # Only reachable if the session changed underneath the decision
                LOG.error("Computer produced an illegal move %s: %s", edge, result.error)
                break
            LOG.info("Computer claims %s, completed %s", edge, list(result.completed))
            results.append(result)
        return results

    async def submit_and_respond(self, kind: str, r: int, c: int) -> List[MoveResult]:
        result = self.submit_human_move(kind, r, c)
        if not result.legal:
            return [result]
        return [result] + await self.play_computer_turn()

    async def _decide(self) -> Edge:
        if self.advisor is not None:
            try:
                edge = await self.advisor.request_advised_move(self.session)
            except OracleError as exc:
                LOG.warning("Oracle unavailable, using heuristic: %s", exc)
            else:
                if edge is not None:
                    return edge

        edge = self.agent.choose_move(self.session)
        if edge is None:  # pragma: no cover - state guarantees a legal move exists
            raise RuntimeError("No legal moves left for the computer")
        return edge

    def _apply(self, kind: str, r: int, c: int) -> MoveResult:
        result = self.session.apply_move(kind, r, c)
        if not result.legal:
            return result

        if result.game_over:
            LOG.info(
                "Game over after %d moves: %s",
                self.session.move_count,
                self.session.winner() or "tie",
            )
        for listener in list(self._listeners):
            listener(self, result)
        return result

    def reset(self) -> None:
        self.session = GameSession.new(self.rows, self.cols)
        self.thinking = False

    def save(self, store: SnapshotStore, key: Optional[str] = None) -> None:
        store.set(key or self.snapshot_key, serialize(self.session))

    def restore(self, store: SnapshotStore, key: Optional[str] = None) -> bool:
        key = key or self.snapshot_key
        blob = store.get(key)
        if blob is None:
            return False
        try:
            session = deserialize(blob)
        except CorruptSnapshotError as exc:
            LOG.warning("Ignoring corrupt snapshot %r: %s", key, exc)
            return False

        self.session = session
        self.rows = session.rows
        self.cols = session.cols
        self.thinking = False
        return True

    def view(self) -> Dict[str, Any]:
        grid = self.session.grid
        return {
            "rows": grid.rows,
            "cols": grid.cols,
            "horizontal": [list(row) for row in grid.horizontal],
            "vertical": [list(row) for row in grid.vertical],
            "owners": [list(row) for row in grid.owners],
            "scores": dict(self.session.scores),
            "current_player": self.session.current_player,
            "is_over": self.session.is_over,
            "winner": self.session.winner(),
            "thinking": self.thinking,
            "state": self.state,
        }


__all__ = [
    "COMPUTER_BUSY",
    "COMPUTER_THINKING",
    "COMPUTER_TO_MOVE",
    "GAME_OVER",
    "HUMAN_TO_MOVE",
    "Listener",
    "Match",
    "NOT_YOUR_TURN",
]
