"""One solving turn: certain deductions first, a probabilistic guess otherwise."""

from dataclasses import dataclass
from typing import Any, FrozenSet, Optional

from .deductions import DeterministicSolver
from .probability import Guess, ProbabilisticSolver, ProbabilityResult
from .sections import EnumerationBudget
from .snapshot import BoardSnapshot


@dataclass(frozen=True)
class TurnResult:
    """
    Outcome of one turn.

    ``guess`` and ``probabilities`` are only filled in when ``safe`` is empty.
    """

    safe: FrozenSet[int]
    mined: FrozenSet[int]
    guess: Optional[Guess] = None
    probabilities: Optional[ProbabilityResult] = None


class MinesweeperAgent:
    """
    Stateless turn solver; configuration is fixed at construction and every
    call to :meth:`solve_turn` builds its structures from the snapshot alone.
    """

    def __init__(
        self,
        section_width: int = 12,
        max_deduction_steps: int = 200_000,
        max_assignments: int = 2_000_000,
        time_limit: Optional[float] = None,
        workers: int = 1,
    ) -> None:
        """
        Args:
            section_width: Target number of boundary tiles per section.
            max_deduction_steps: Worklist budget of the constraint store.
            max_assignments: Candidate budget of the probabilistic pass.
            time_limit: Seconds allowed for the probabilistic pass, or None.
            workers: Threads used by the probabilistic pass.

        Raises:
            ValueError: If any setting is out of range.
        """
        self.deterministic = DeterministicSolver(max_steps=max_deduction_steps)
        self.probabilistic = ProbabilisticSolver(
            section_width=section_width,
            max_assignments=max_assignments,
            time_limit=time_limit,
            workers=workers,
        )

    def solve_turn(
        self, snapshot: BoardSnapshot, budget: Optional[EnumerationBudget] = None
    ) -> TurnResult:
        """
        Solve one turn of ``snapshot``.

        Raises:
            InconsistentBoardError: If the snapshot contradicts itself.
            BudgetExceededError: If a search budget runs out.
            BoundaryTooWideError: If the boundary exceeds the bit-set capacity.
        """
        deductions = self.deterministic.solve(snapshot)
        if deductions.safe or not snapshot.covered - deductions.mined:
            return TurnResult(deductions.safe, deductions.mined)

        result = self.probabilistic.analyse(snapshot, budget)
        guess = self.probabilistic.recommend(snapshot, result)
        return TurnResult(deductions.safe, deductions.mined, guess, result)


def solve_turn(
    snapshot: BoardSnapshot, budget: Optional[EnumerationBudget] = None, **config: Any
) -> TurnResult:
    """
    Solve one turn with a throwaway :class:`MinesweeperAgent`.

    ``config`` is passed to the agent; ``budget`` replaces the one it would
    build for the probabilistic pass, so another thread can cancel it.
    """
    return MinesweeperAgent(**config).solve_turn(snapshot, budget)
