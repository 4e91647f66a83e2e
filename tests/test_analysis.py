import random

import pytest

from minesolver import (
    BoardSnapshot,
    Minesweeper,
    MinesweeperSolver,
    ProbabilisticSolver,
    format_probabilities,
    format_solver_knowledge,
    run_solver_many_tests,
    run_solver_single_test,
)


def test_format_probabilities():
    snapshot = BoardSnapshot.from_grid([".1..."], total_mines=1)
    result = ProbabilisticSolver().analyse(snapshot)

    assert format_probabilities(snapshot, result).split() == ["50", "1", "50", "0~", "0~"]


def test_format_solver_knowledge():
    game = Minesweeper(5, 5, 3, rng=random.Random(0))
    solver = MinesweeperSolver(game, record_steps=False)
    solver.solve()

    lines = format_solver_knowledge(solver).splitlines()

    assert len(lines) == 5 + 2
    assert format_solver_knowledge(solver, show_coords=False).count("\n") == 4


def test_single_run_reports_status():
    payload = run_solver_single_test(5, 5, 3, seed=1)

    assert payload["status"] in (-1, 1)
    assert payload["reveal_moves_count"] >= 1


def test_many_runs_average_counters():
    results = run_solver_many_tests(6, 6, 4, runs=3, seed=0)

    assert 0.0 <= results["win_rate"] <= 1.0
    assert results["avg_reveal_moves_count"] >= 1.0
    assert 0.0 <= results["mean_guess_risk"] <= 1.0
    assert "avg_inferred_enumeration_count" in results

    with pytest.raises(ValueError):
        run_solver_many_tests(6, 6, 4, runs=0)


def test_parallel_runs_match_serial_runs():
    serial = run_solver_many_tests(6, 6, 4, runs=4, seed=3)
    parallel = run_solver_many_tests(6, 6, 4, runs=4, seed=3, n_jobs=2)

    assert parallel == serial
