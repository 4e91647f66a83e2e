"""
Minesweeper inference core

Decides, for one board snapshot, which covered tiles are provably safe or
mined and, when nothing is certain, which tile is least likely to be a mine:
- Deterministic solver: subset/difference bound propagation to fixpoint
- Probabilistic solver: section-wise enumeration of boundary placements,
  pairwise merge, and weighting by the ways to place the remaining mines
"""

from .agent import MinesweeperAgent, TurnResult, solve_turn
from .analysis import (
    format_probabilities,
    format_solver_knowledge,
    run_solver_level_analysis,
    run_solver_many_tests,
    run_solver_single_test,
)
from .bitset import CAPACITY, BitSet128
from .constraints import AT_LEAST, AT_MOST, Constraint, ConstraintStore
from .deductions import Deductions, DeterministicSolver
from .engine import Minesweeper
from .errors import (
    BoundaryTooWideError,
    BudgetExceededError,
    EmptyAssignmentSetError,
    InconsistentBoardError,
    InconsistentConstraintsError,
    SolverError,
)
from .probability import Guess, ProbabilisticSolver, ProbabilityResult, case_weight
from .sections import EnumerationBudget
from .snapshot import BoardSnapshot, Clue
from .solver import MinesweeperSolver

__version__ = "1.0.0"

__all__ = [
    # Inference core
    "BitSet128",
    "CAPACITY",
    "Constraint",
    "ConstraintStore",
    "AT_MOST",
    "AT_LEAST",
    "DeterministicSolver",
    "Deductions",
    "ProbabilisticSolver",
    "ProbabilityResult",
    "Guess",
    "EnumerationBudget",
    "case_weight",
    "MinesweeperAgent",
    "TurnResult",
    "solve_turn",
    # Board input
    "BoardSnapshot",
    "Clue",
    # Errors
    "SolverError",
    "InconsistentBoardError",
    "InconsistentConstraintsError",
    "EmptyAssignmentSetError",
    "BudgetExceededError",
    "BoundaryTooWideError",
    # Game collaborators
    "Minesweeper",
    "MinesweeperSolver",
    # Analysis functions
    "format_probabilities",
    "format_solver_knowledge",
    "run_solver_single_test",
    "run_solver_many_tests",
    "run_solver_level_analysis",
]
