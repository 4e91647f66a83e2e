from fractions import Fraction
from math import comb

import pytest

from minesolver import (
    BoardSnapshot,
    BudgetExceededError,
    EmptyAssignmentSetError,
    EnumerationBudget,
    Guess,
    ProbabilisticSolver,
    case_weight,
)
from minesolver.probability import aggregate


def test_case_weight_is_a_binomial_ratio():
    assert case_weight(3, 10, 1) == 12
    assert case_weight(3, 10, 1) == Fraction(comb(10, 3), comb(10, 1))
    assert case_weight(2, 2, 2) == 1
    assert case_weight(11, 10, 0) == 0
    with pytest.raises(ValueError):
        case_weight(0, 10, 1)


def test_aggregate_without_outside_tiles():
    result = aggregate([0b01, 0b10], [5, 6], remaining_mines=1, non_boundary=0)

    assert result.probabilities == {5: Fraction(1, 2), 6: Fraction(1, 2)}
    assert result.non_boundary_probability is None
    assert result.scenarios == 2


def test_aggregate_drops_placements_that_cannot_be_completed():
    with pytest.raises(EmptyAssignmentSetError):
        aggregate([0b11], [5, 6], remaining_mines=1, non_boundary=3)


def test_symmetric_pair():
    snapshot = BoardSnapshot.from_grid([".1."], total_mines=1)
    solver = ProbabilisticSolver()

    result = solver.analyse(snapshot)

    assert result.probabilities == {0: Fraction(1, 2), 2: Fraction(1, 2)}
    assert solver.recommend(snapshot, result) == Guess(0, Fraction(1, 2), True)


def test_outside_tile_wins_when_it_is_safer():
    snapshot = BoardSnapshot.from_grid([".1..."], total_mines=1)
    solver = ProbabilisticSolver()

    result = solver.analyse(snapshot)

    assert result.non_boundary_probability == 0
    assert solver.recommend(snapshot, result) == Guess(3, Fraction(0), False)


def test_boundary_tile_wins_when_outside_is_mined():
    snapshot = BoardSnapshot.from_grid([".1..."], total_mines=3)
    solver = ProbabilisticSolver()

    result = solver.analyse(snapshot)

    assert result.non_boundary_probability == 1
    assert solver.recommend(snapshot, result) == Guess(0, Fraction(1, 2), True)


def test_no_boundary_uses_global_density():
    snapshot = BoardSnapshot.from_grid(["...", "..."], total_mines=2)
    solver = ProbabilisticSolver()

    result = solver.analyse(snapshot)

    assert result.probabilities == {}
    assert result.non_boundary_probability == Fraction(1, 3)
    assert solver.recommend(snapshot, result) == Guess(0, Fraction(1, 3), False)


def test_forced_tiles():
    snapshot = BoardSnapshot.from_grid(["...", "121"], total_mines=2)

    result = ProbabilisticSolver().analyse(snapshot)

    assert result.forced_safe() == [1]
    assert result.forced_mined() == [0, 2]
    assert result.scenarios == 1


def test_exact_probabilities_match_brute_force(
    board_with_interior, brute_force_frequencies
):
    expected = brute_force_frequencies(board_with_interior)

    result = ProbabilisticSolver(section_width=3).analyse(board_with_interior)

    for tile, p in result.probabilities.items():
        assert float(p) == pytest.approx(expected[tile])
    for tile in board_with_interior.non_boundary_tiles():
        assert float(result.non_boundary_probability) == pytest.approx(expected[tile])
    assert result.expected_mines() == board_with_interior.remaining_mines


def test_workers_do_not_change_the_result(board_with_interior):
    serial = ProbabilisticSolver(section_width=3).analyse(board_with_interior)
    threaded = ProbabilisticSolver(section_width=3, workers=3).analyse(
        board_with_interior
    )

    assert threaded.probabilities == serial.probabilities
    assert threaded.non_boundary_probability == serial.non_boundary_probability


def test_contradictory_clues_leave_no_placement():
    snapshot = BoardSnapshot.from_grid(["1..1"], total_mines=1)

    with pytest.raises(EmptyAssignmentSetError):
        ProbabilisticSolver().analyse(snapshot)


def test_budget_is_enforced(two_row_board):
    with pytest.raises(BudgetExceededError):
        ProbabilisticSolver(max_assignments=10).analyse(two_row_board)

    budget = EnumerationBudget()
    budget.cancel()
    with pytest.raises(BudgetExceededError):
        ProbabilisticSolver().analyse(two_row_board, budget)


@pytest.mark.parametrize(
    "kwargs",
    [{"section_width": 0}, {"section_width": 21}, {"workers": 0}, {"max_assignments": 0}],
)
def test_invalid_settings(kwargs):
    with pytest.raises(ValueError):
        ProbabilisticSolver(**kwargs)
