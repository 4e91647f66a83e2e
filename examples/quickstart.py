"""
Quickstart example for the Minesweeper inference core.

This script demonstrates basic usage of the agent on a hand-written board
and of the game-playing solver.
"""

import random

from minesolver import (
    BoardSnapshot,
    Minesweeper,
    MinesweeperSolver,
    format_probabilities,
    run_solver_many_tests,
    solve_turn,
)


def main():
    print("=" * 60)
    print("Minesweeper Inference Core - Quickstart Example")
    print("=" * 60)

    # Example 1: One turn on a hand-written board
    print("\n1. One turn on a hand-written 5x5 board with 4 mines...")
    print("-" * 60)

    snapshot = BoardSnapshot.from_grid(
        [
            ".....",
            ".....",
            "12...",
            "01...",
            "01...",
        ],
        total_mines=4,
    )
    turn = solve_turn(snapshot)
    print(f"Safe tiles:  {sorted(turn.safe)}")
    print(f"Mined tiles: {sorted(turn.mined)}")
    if turn.guess is not None and turn.probabilities is not None:
        where = "boundary" if turn.guess.from_boundary else "non-boundary"
        print(
            f"Guess: tile {turn.guess.tile} ({where}), "
            f"mine probability {float(turn.guess.probability):.3f}"
        )
        print(format_probabilities(snapshot, turn.probabilities))

    # Example 2: Solve a single game
    print("\n2. Solving a single Intermediate game (16x16, 40 mines)...")
    print("-" * 60)

    game = Minesweeper(
        width=16,
        height=16,
        mines_count=40,
        mines_generation_algorithm="safe_neighborhood_rule",
        rng=random.Random(7),
    )
    solver = MinesweeperSolver(game)
    status, payload = solver.solve()

    print(f"Result: {'WON' if status == 1 else 'LOST'}")
    print(f"Reveal moves: {payload['reveal_moves_count']}")
    print(f"Deterministic inferences: {payload['inferred_deterministic_count']}")
    print(f"Enumeration inferences: {payload['inferred_enumeration_count']}")
    guesses = (
        payload["probabilistic_guesses_boundary_count"]
        + payload["probabilistic_guesses_non_boundary_count"]
    )
    print(f"Probabilistic guesses: {guesses}")
    print(game.format_board(reveal_all=True))

    # Example 3: Win rates by difficulty level
    print("\n3. Win rates by difficulty level (10 games each)...")
    print("-" * 60)

    difficulties = [
        ("Beginner", 9, 9, 10),
        ("Intermediate", 16, 16, 40),
        ("Expert", 30, 16, 99),
    ]
    for name, w, h, m in difficulties:
        results = run_solver_many_tests(w, h, m, runs=10, seed=0)
        print(f"{name:15s} ({w}x{h}, {m:2d} mines): {results['win_rate']*100:5.1f}% win rate")

    print("\n" + "=" * 60)
    print("Done!")
    print("=" * 60)


if __name__ == "__main__":
    main()
