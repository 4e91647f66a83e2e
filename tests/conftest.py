import itertools
from typing import Callable, Dict, FrozenSet, List

import pytest

from minesolver import BoardSnapshot


def _solutions(snapshot: BoardSnapshot) -> List[FrozenSet[int]]:
    """Every mine layout over the covered tiles that fits all clues and the mine count."""
    covered = sorted(snapshot.covered)
    constraints = snapshot.clue_constraints()
    out: List[FrozenSet[int]] = []
    for combo in itertools.combinations(covered, snapshot.remaining_mines):
        mines = frozenset(combo)
        if all(len(tiles & mines) == count for tiles, count in constraints):
            out.append(mines)
    return out


def _frequencies(snapshot: BoardSnapshot) -> Dict[int, float]:
    sols = _solutions(snapshot)
    return {
        t: sum(1 for s in sols if t in s) / len(sols) for t in sorted(snapshot.covered)
    }


@pytest.fixture
def brute_force_solutions() -> Callable[[BoardSnapshot], List[FrozenSet[int]]]:
    return _solutions


@pytest.fixture
def brute_force_frequencies() -> Callable[[BoardSnapshot], Dict[int, float]]:
    return _frequencies


@pytest.fixture
def two_row_board() -> BoardSnapshot:
    """7x4 board: covered top and bottom rows, two revealed rows in between.

    Mines at (1,0), (4,0), (0,3), (3,3), (6,3); all 14 covered tiles are on
    the boundary.
    """
    return BoardSnapshot.from_grid(
        [
            ".......",
            "1111110",
            "1111111",
            ".......",
        ],
        total_mines=5,
    )


@pytest.fixture
def board_with_interior() -> BoardSnapshot:
    """4x4 board whose bottom row is covered but not on the boundary.

    Mines at (1,0), (3,2), (0,3), (2,3).
    """
    return BoardSnapshot.from_grid(
        [
            "....",
            "1121",
            "....",
            "....",
        ],
        total_mines=4,
    )
