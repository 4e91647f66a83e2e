"""Analysis and benchmarking tools for the Minesweeper solver."""

import random
from collections import defaultdict
from typing import Dict, List, Optional, Tuple

import matplotlib.pyplot as plt
import numpy as np
from joblib import Parallel, delayed

from .engine import Minesweeper
from .probability import ProbabilityResult
from .snapshot import BoardSnapshot
from .solver import MinesweeperSolver
from .utils import format_grid

LEVELS: Dict[str, Tuple[int, int, int]] = {
    "beginner": (9, 9, 10),
    "intermediate": (16, 16, 40),
    "expert": (30, 16, 99),
}

_COUNTER_KEYS = (
    "reveal_moves_count",
    "turns_count",
    "revealed_cells_count",
    "markings_count",
    "inferred_deterministic_count",
    "attempted_deterministic_count",
    "inferred_enumeration_count",
    "probabilistic_guesses_boundary_count",
    "probabilistic_guesses_non_boundary_count",
    "fallback_guesses_count",
    "max_boundary_width",
    "max_scenarios",
)


def format_solver_knowledge(
    solver: MinesweeperSolver, *, show_coords: bool = True
) -> str:
    """
    Render what the solver knows: ``.`` for unknown tiles, ``M`` for its
    flags, digits for revealed clues (and ``X``/``!`` for mines after a loss).
    """
    def cell(tile: int) -> str:
        x, y = solver.game.coords(tile)
        v = solver.knowledge[y][x]
        return "." if v is None else str(v)

    return format_grid(solver.board_width, solver.board_height, cell, show_coords)


def format_probabilities(snapshot: BoardSnapshot, result: ProbabilityResult) -> str:
    """
    Render mine probabilities as a grid of percentages.

    Boundary tiles show their own probability, other covered tiles the
    shared non-boundary probability; flags show ``F`` and clues their value.
    """
    floats = result.as_floats()
    lines: List[str] = []
    for y in range(snapshot.height):
        cells: List[str] = []
        for x in range(snapshot.width):
            tile = y * snapshot.width + x
            if tile in snapshot.clues:
                cells.append(f"{snapshot.clues[tile].value:>4}")
            elif tile in snapshot.flagged:
                cells.append("   F")
            elif tile in floats:
                cells.append(f"{100 * floats[tile]:>4.0f}")
            elif result.non_boundary_probability is not None:
                cells.append(f"{100 * float(result.non_boundary_probability):>3.0f}~")
            else:
                cells.append("   ?")
        lines.append(" ".join(cells))
    return "\n".join(lines)


def run_solver_single_test(
    width: int,
    height: int,
    mines_count: int,
    mines_generation_algorithm: str = "safe_neighborhood_rule",
    *,
    seed: Optional[int] = None,
    show_boards: bool = False,
    guessing_strategy: str = "exact",
    section_width: int = 12,
) -> Dict[str, object]:
    """
    Run one end-to-end game with MinesweeperSolver on a fresh Minesweeper instance.

    Args:
        width: Board width.
        height: Board height.
        mines_count: Total number of mines on the board.
        mines_generation_algorithm: Mine placement rule.
        seed: Seed for mine placement; random if omitted.
        show_boards: If True, print the underlying board and the solver's final
            knowledge state.
        guessing_strategy: "exact" or "local_density".
        section_width: Target boundary section width.

    Returns:
        The solver's terminal payload augmented with "status" (-1 loss, 1 win).
    """
    game = Minesweeper(
        width,
        height,
        mines_count,
        mines_generation_algorithm=mines_generation_algorithm,
        rng=random.Random(seed),
    )
    solver = MinesweeperSolver(
        game,
        record_steps=False,
        guessing_strategy=guessing_strategy,
        section_width=section_width,
    )

    status, payload = solver.solve()

    if show_boards:
        print(f"Generation mode: {mines_generation_algorithm}")
        print("Underlying board (mines visible):")
        game.print_full_board()
        print()
        print("Solver knowledge (unknowns shown as '.'):")
        print(format_solver_knowledge(solver, show_coords=True))
        print()
        print(f"Finished with status {status}.")

    out = dict(payload)
    out["status"] = status
    return out


def run_solver_many_tests(
    width: int,
    height: int,
    mines_count: int,
    runs: int,
    mines_generation_algorithm: str = "safe_neighborhood_rule",
    *,
    seed: Optional[int] = None,
    guessing_strategy: str = "exact",
    section_width: int = 12,
    n_jobs: int = 1,
) -> Dict[str, float]:
    """
    Run many independent games and return averaged terminal metrics plus win rate.

    Args:
        width: Board width.
        height: Board height.
        mines_count: Total number of mines on the board.
        runs: Number of independent games to run.
        mines_generation_algorithm: Mine placement rule.
        seed: Base seed; game ``i`` uses ``seed + i``. Random if omitted.
        guessing_strategy: "exact" or "local_density".
        section_width: Target boundary section width.
        n_jobs: Games played concurrently by joblib (-1 for every core).

    Returns:
        Averages of solver counters (prefixed with "avg_"), plus:
        - win_rate
        - avg_guesses_total
        - guess_failure_rate
        - mean_guess_risk: average predicted mine probability of the guesses
    """
    if runs <= 0:
        raise ValueError("runs must be positive.")

    sums: Dict[str, float] = defaultdict(float)
    wins = 0
    total_guesses = 0.0
    failed_guesses = 0.0
    risks: List[float] = []

    payloads = Parallel(n_jobs=n_jobs)(
        delayed(run_solver_single_test)(
            width,
            height,
            mines_count,
            mines_generation_algorithm,
            seed=None if seed is None else seed + i,
            guessing_strategy=guessing_strategy,
            section_width=section_width,
        )
        for i in range(runs)
    )

    for payload in payloads:
        status = payload["status"]
        if status == 1:
            wins += 1
        elif status != -1:
            raise RuntimeError(f"Unexpected solver status: {status}")

        missing = set(_COUNTER_KEYS) - set(payload)
        if missing:
            raise KeyError(f"Missing payload keys: {sorted(missing)}")

        for key in _COUNTER_KEYS:
            sums[f"avg_{key}"] += float(payload[key])  # type: ignore[arg-type]

        guesses = float(payload["probabilistic_guesses_boundary_count"]) + float(  # type: ignore[arg-type]
            payload["probabilistic_guesses_non_boundary_count"]  # type: ignore[arg-type]
        )
        total_guesses += guesses
        # losses only happen on guesses
        if status == -1:
            failed_guesses += 1.0
        risks.extend(payload["guess_probabilities"])  # type: ignore[arg-type]

    out: Dict[str, float] = {k: total / runs for k, total in sums.items()}
    out["win_rate"] = wins / runs
    out["avg_guesses_total"] = total_guesses / runs
    out["guess_failure_rate"] = (
        failed_guesses / total_guesses if total_guesses > 0 else 0.0
    )
    out["mean_guess_risk"] = float(np.mean(risks)) if risks else 0.0
    return out


def run_solver_level_analysis(
    runs: int,
    mines_generation_algorithm: str = "safe_neighborhood_rule",
    *,
    seed: Optional[int] = None,
    show_plots: bool = True,
    n_jobs: int = 1,
) -> Dict[str, Dict[str, float]]:
    """
    Run both guessing strategies on the standard difficulty levels and plot
    win rates and guess counts side by side.

    Standard difficulty levels:
        - Beginner: 9x9, 10 mines
        - Intermediate: 16x16, 40 mines
        - Expert: 30x16, 99 mines

    Returns:
        Mapping "<level>/<strategy>" to the dict from run_solver_many_tests().
    """
    strategies = ("exact", "local_density")
    results: Dict[str, Dict[str, float]] = {}
    for level, (w, h, m) in LEVELS.items():
        for strategy in strategies:
            results[f"{level}/{strategy}"] = run_solver_many_tests(
                w,
                h,
                m,
                runs,
                mines_generation_algorithm,
                seed=seed,
                guessing_strategy=strategy,
                n_jobs=n_jobs,
            )

    if not show_plots:
        return results

    level_names = list(LEVELS)
    x = np.arange(len(level_names))
    bar_w = 0.35

    # 1) Win rate by level and strategy
    plt.figure()  # type: ignore[misc]
    for offset, strategy in zip((-bar_w / 2, bar_w / 2), strategies):
        rates = [results[f"{n}/{strategy}"]["win_rate"] for n in level_names]
        plt.bar(x + offset, rates, width=bar_w, label=strategy)  # type: ignore[misc]
    plt.xticks(x, level_names)  # type: ignore[misc]
    plt.ylabel("Win rate")  # type: ignore[misc]
    plt.ylim(0.0, 1.0)  # type: ignore[misc]
    plt.title("Win rate by difficulty level")  # type: ignore[misc]
    plt.legend()  # type: ignore[misc]
    plt.tight_layout()
    plt.show()  # type: ignore[misc]

    # 2) Guesses per game by level and strategy
    plt.figure()  # type: ignore[misc]
    for offset, strategy in zip((-bar_w / 2, bar_w / 2), strategies):
        guesses = [results[f"{n}/{strategy}"]["avg_guesses_total"] for n in level_names]
        plt.bar(x + offset, guesses, width=bar_w, label=strategy)  # type: ignore[misc]
    plt.xticks(x, level_names)  # type: ignore[misc]
    plt.ylabel("Average guesses per game")  # type: ignore[misc]
    plt.title("Guesses by difficulty level")  # type: ignore[misc]
    plt.legend()  # type: ignore[misc]
    plt.tight_layout()
    plt.show()  # type: ignore[misc]

    return results
