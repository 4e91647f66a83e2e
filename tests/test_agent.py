from fractions import Fraction

import pytest

from minesolver import (
    BoardSnapshot,
    BudgetExceededError,
    EnumerationBudget,
    Guess,
    InconsistentBoardError,
    MinesweeperAgent,
    TurnResult,
    solve_turn,
)


def test_certain_tiles_skip_the_probabilistic_pass():
    snapshot = BoardSnapshot.from_grid(["...", "121"], total_mines=2)

    turn = solve_turn(snapshot)

    assert turn == TurnResult(frozenset({1}), frozenset({0, 2}))


def test_guess_when_nothing_is_certain():
    snapshot = BoardSnapshot.from_grid([".1."], total_mines=1)

    turn = MinesweeperAgent().solve_turn(snapshot)

    assert turn.safe == frozenset()
    assert turn.guess == Guess(0, Fraction(1, 2), True)
    assert turn.probabilities is not None
    assert turn.probabilities.probabilities[2] == Fraction(1, 2)


def test_every_covered_tile_mined():
    """Nothing is left to guess once every covered tile is known to be a mine."""
    snapshot = BoardSnapshot.from_grid(["1..1"], total_mines=2)

    turn = solve_turn(snapshot)

    assert turn == TurnResult(frozenset(), frozenset({1, 2}))


def test_fully_revealed_board():
    snapshot = BoardSnapshot.from_grid(["00", "00"], total_mines=0)

    assert solve_turn(snapshot) == TurnResult(frozenset(), frozenset())


def test_inconsistent_board():
    snapshot = BoardSnapshot.from_grid(["3.."], total_mines=1)

    with pytest.raises(InconsistentBoardError):
        solve_turn(snapshot)


def test_impossible_settled_clue_is_inconsistent():
    snapshot = BoardSnapshot.from_grid(["F20.."], total_mines=2)

    with pytest.raises(InconsistentBoardError):
        solve_turn(snapshot)


def test_mine_count_contradicting_clues_is_inconsistent():
    snapshot = BoardSnapshot.from_grid(["1.0."], total_mines=2)

    with pytest.raises(InconsistentBoardError):
        solve_turn(snapshot)


def test_solve_turn_uses_the_given_budget():
    budget = EnumerationBudget()
    budget.cancel()

    with pytest.raises(BudgetExceededError):
        solve_turn(BoardSnapshot.from_grid([".1."], total_mines=1), budget=budget)


def test_solve_turn_forwards_configuration():
    snapshot = BoardSnapshot.from_grid(["...", "121"], total_mines=2)

    with pytest.raises(BudgetExceededError):
        solve_turn(snapshot, max_deduction_steps=1)


def test_configuration_is_validated():
    with pytest.raises(ValueError):
        MinesweeperAgent(section_width=0)
    with pytest.raises(ValueError):
        MinesweeperAgent(max_deduction_steps=0)
    with pytest.raises(ValueError):
        MinesweeperAgent(time_limit=-1.0)
