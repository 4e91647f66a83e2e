import random

import pytest

from minesolver import (
    BoardSnapshot,
    BudgetExceededError,
    DeterministicSolver,
    InconsistentConstraintsError,
    Minesweeper,
)


def test_zero_clue_clears_its_neighbors():
    snapshot = BoardSnapshot.from_grid(["....", ".0..", "...."], total_mines=2)

    result = DeterministicSolver().solve(snapshot)

    assert result.safe == frozenset({0, 1, 2, 4, 6, 8, 9, 10})
    assert result.mined == frozenset()


def test_one_two_one_pattern():
    snapshot = BoardSnapshot.from_grid(["...", "121"], total_mines=2)

    result = DeterministicSolver().solve(snapshot)

    assert result.safe == frozenset({1})
    assert result.mined == frozenset({0, 2})


def test_corner_pattern():
    """A 1 touching a single covered tile pins it; the zeros clear the rest."""
    snapshot = BoardSnapshot.from_grid(
        [".10..", "110..", "000.."], total_mines=2
    )

    result = DeterministicSolver().solve(snapshot)

    assert 0 in result.mined
    assert result.safe == frozenset({3, 8, 13})


def test_global_mine_count_rules():
    all_safe = BoardSnapshot.from_grid(["F..", "..."], total_mines=1)
    all_mined = BoardSnapshot.from_grid(["...", "..."], total_mines=6)

    assert DeterministicSolver().solve(all_safe).safe == frozenset({1, 2, 3, 4, 5})
    assert DeterministicSolver().solve(all_mined).mined == frozenset(range(6))


def test_nothing_is_certain_on_an_open_board():
    snapshot = BoardSnapshot.from_grid(["...", "..."], total_mines=2)

    result = DeterministicSolver().solve(snapshot)

    assert result.safe == frozenset()
    assert result.mined == frozenset()


def test_inconsistent_clue_raises():
    snapshot = BoardSnapshot.from_grid(["3.."], total_mines=1)

    with pytest.raises(InconsistentConstraintsError):
        DeterministicSolver().solve(snapshot)


def test_mine_count_is_checked_against_the_clues():
    """Both global rules must agree with what the clues already prove."""
    cleared_but_all_mined = BoardSnapshot.from_grid(["0.."], total_mines=2)
    forced_but_none_left = BoardSnapshot.from_grid(["1."], total_mines=0)

    with pytest.raises(InconsistentConstraintsError):
        DeterministicSolver().solve(cleared_but_all_mined)
    with pytest.raises(InconsistentConstraintsError):
        DeterministicSolver().solve(forced_but_none_left)


def test_mine_count_rule_keeps_consistent_clues():
    snapshot = BoardSnapshot.from_grid(["1..1"], total_mines=2)

    result = DeterministicSolver().solve(snapshot)

    assert result.mined == frozenset({1, 2})
    assert result.safe == frozenset()


def test_step_budget_is_reported(two_row_board):
    with pytest.raises(BudgetExceededError):
        DeterministicSolver(max_steps=1).solve(two_row_board)


@pytest.mark.parametrize("seed", range(8))
def test_certainties_hold_in_every_solution(seed, brute_force_solutions):
    """Tiles reported safe are mine-free, and mined tiles mined, in every layout."""
    game = Minesweeper(5, 5, 4, rng=random.Random(seed))
    game.reveal(2, 2)
    snapshot = game.snapshot()
    if len(snapshot.covered) > 16:
        pytest.skip("too many covered tiles to enumerate")

    result = DeterministicSolver().solve(snapshot)
    solutions = brute_force_solutions(snapshot)

    assert solutions
    for mines in solutions:
        assert not result.safe & mines
        assert result.mined <= mines
    assert not result.safe & game.mine_tiles()
    assert result.mined <= game.mine_tiles()
