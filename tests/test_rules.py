import random

import pytest

from dotsquares.game.rules import (
    ALREADY_CLAIMED,
    GAME_OVER,
    OUT_OF_BOUNDS,
    PLAYER_1,
    PLAYER_2,
    GameSession,
    apply_move,
    opponent,
)


def _claimed(session):
    grid = session.grid
    return {edge for edge in grid.iter_edges() if grid.is_claimed(edge)}


def test_fresh_session():
    session = GameSession.new(3, 3)
    assert session.current_player == PLAYER_1
    assert session.scores == {PLAYER_1: 0, PLAYER_2: 0}
    assert not session.is_over
    assert session.move_count == 0
    assert len(session.legal_moves()) == 24


def test_opponent_flips():
    assert opponent(PLAYER_1) == PLAYER_2
    assert opponent(PLAYER_2) == PLAYER_1


@pytest.mark.parametrize(
    "kind, r, c",
    [("h", 3, 0), ("h", 0, 2), ("h", -1, 0), ("v", 2, 0), ("v", 0, 3), ("x", 0, 0)],
)
def test_out_of_bounds_is_rejected_without_mutation(kind, r, c):
    session = GameSession.new(2, 2)
    result = apply_move(session, kind, r, c)
    assert not result.legal
    assert result.error == OUT_OF_BOUNDS
    assert session.move_count == 0
    assert session.current_player == PLAYER_1


def test_already_claimed_is_rejected():
    session = GameSession.new(2, 2)
    assert apply_move(session, "h", 0, 0).legal
    result = apply_move(session, "h", 0, 0)
    assert result.error == ALREADY_CLAIMED
    assert session.move_count == 1
    assert session.current_player == PLAYER_2


def test_turn_passes_when_nothing_completed():
    session = GameSession.new(2, 2)
    result = session.apply_move("v", 1, 2)
    assert result.legal and result.turn_changed
    assert result.player == PLAYER_1
    assert result.completed == ()
    assert session.current_player == PLAYER_2


def test_completing_square_keeps_the_turn():
    session = GameSession.new(2, 2)
    # top, left, right by alternating players; bottom placed last
    session.apply_move("h", 0, 0)
    session.apply_move("v", 0, 0)
    session.apply_move("v", 0, 1)
    mover = session.current_player
    result = session.apply_move("h", 1, 0)

    assert result.legal
    assert result.completed == ((0, 0),)
    assert session.grid.owner(0, 0) == mover
    assert session.scores[mover] == 1
    assert not result.turn_changed
    assert session.current_player == mover


def test_double_cross_completes_two_squares():
    session = GameSession.new(1, 2)
    for kind, r, c in [("h", 0, 0), ("h", 0, 1), ("h", 1, 0), ("h", 1, 1), ("v", 0, 0)]:
        session.apply_move(kind, r, c)
    session.apply_move("v", 0, 2)
    mover = session.current_player
    result = session.apply_move("v", 0, 1)

    assert set(result.completed) == {(0, 0), (0, 1)}
    assert session.scores[mover] == 2
    assert result.game_over
    assert session.is_over
    assert session.winner() == mover


def test_no_moves_after_game_over():
    session = GameSession.new(1, 1)
    for kind, r, c in [("h", 0, 0), ("h", 1, 0), ("v", 0, 0), ("v", 0, 1)]:
        session.apply_move(kind, r, c)
    assert session.is_over
    assert session.legal_moves() == []
    result = session.apply_move("h", 0, 0)
    assert result.error == GAME_OVER


def test_tie_has_no_winner():
    session = GameSession.new(1, 2)
    assert session.winner() is None
    session.is_over = True
    session.scores = {PLAYER_1: 1, PLAYER_2: 1}
    assert session.winner() is None


@pytest.mark.parametrize("seed", range(10))
def test_random_games_hold_invariants(seed):
    rng = random.Random(seed)
    session = GameSession.new(3, 4)
    seen = set()
    over_transitions = 0

    while not session.is_over:
        edge = rng.choice(session.legal_moves())
        before_player = session.current_player
        before_over = session.is_over
        result = session.apply_move(edge.kind, edge.r, edge.c)
        assert result.legal

        claimed = _claimed(session)
        assert seen <= claimed
        seen = claimed

        grid = session.grid
        assert sum(session.scores.values()) == grid.owned_count()
        for player in (PLAYER_1, PLAYER_2):
            assert session.scores[player] == grid.owned_count(player)
        for r in range(grid.rows):
            for c in range(grid.cols):
                assert (grid.side_count(r, c) == 4) == (grid.owner(r, c) is not None)
        for sq in result.completed:
            assert grid.owner(*sq) == before_player

        if result.completed:
            assert session.current_player == before_player
        else:
            assert session.current_player == opponent(before_player)

        if session.is_over and not before_over:
            over_transitions += 1

    assert over_transitions == 1
    assert session.move_count == 3 * 5 + 4 * 4
    assert sum(session.scores.values()) == 12


@pytest.mark.parametrize("r, c", [(0.5, 0), (0, "1"), (True, 0), (None, 0)])
def test_non_integer_coordinates_are_out_of_bounds(r, c):
    session = GameSession.new(2, 2)
    result = apply_move(session, "h", r, c)
    assert result.error == OUT_OF_BOUNDS
    assert session.move_count == 0
