"""Weighted mine probabilities over every consistent boundary placement."""

import time
from collections import Counter
from dataclasses import dataclass
from fractions import Fraction
from typing import Dict, List, NamedTuple, Optional, Sequence, Tuple

from joblib import Parallel

from .bitset import iter_bits, popcount
from .boundary import Boundary
from .errors import EmptyAssignmentSetError
from .sections import EnumerationBudget, enumerate_boundary
from .snapshot import BoardSnapshot


def case_weight(omitted: int, non_boundary: int, min_omitted: int) -> Fraction:
    """
    Relative likelihood of a placement that leaves ``omitted`` mines off the
    boundary.

    The true weight is ``C(non_boundary, omitted)``; dividing every weight by
    ``C(non_boundary, min_omitted)`` leaves

        prod(non_boundary - omitted + 1 .. non_boundary - min_omitted)
        / prod(min_omitted + 1 .. omitted)

    with ``omitted - min_omitted`` factors on each side.
    """
    if omitted < min_omitted:
        raise ValueError("omitted must be at least min_omitted.")
    if omitted > non_boundary:
        return Fraction(0)

    numerator = 1
    for i in range(non_boundary - omitted + 1, non_boundary - min_omitted + 1):
        numerator *= i
    denominator = 1
    for i in range(min_omitted + 1, omitted + 1):
        denominator *= i
    return Fraction(numerator, denominator)


class Guess(NamedTuple):
    """Tile to uncover when nothing is certain."""

    tile: int
    probability: Fraction
    from_boundary: bool


@dataclass
class ProbabilityResult:
    """
    Mine probability of every boundary tile, plus the shared probability of
    any covered tile off the boundary (``None`` when there is no such tile).
    """

    probabilities: Dict[int, Fraction]
    non_boundary_probability: Optional[Fraction]
    non_boundary_count: int
    remaining_mines: int
    scenarios: int = 0
    candidates: int = 0
    elapsed: float = 0.0

    def best_boundary_tile(self) -> Optional[Tuple[int, Fraction]]:
        """Boundary tile with the lowest mine probability; ties to the lowest index."""
        if not self.probabilities:
            return None
        tile = min(self.probabilities, key=lambda t: (self.probabilities[t], t))
        return tile, self.probabilities[tile]

    def forced_safe(self) -> List[int]:
        return sorted(t for t, p in self.probabilities.items() if p == 0)

    def forced_mined(self) -> List[int]:
        return sorted(t for t, p in self.probabilities.items() if p == 1)

    def expected_mines(self) -> Fraction:
        """Expected number of covered mines; equals ``remaining_mines``."""
        total = sum(self.probabilities.values(), Fraction(0))
        if self.non_boundary_probability is not None:
            total += self.non_boundary_probability * self.non_boundary_count
        return total

    def as_floats(self) -> Dict[int, float]:
        return {t: float(p) for t, p in self.probabilities.items()}


def aggregate(
    assignments: Sequence[int],
    boundary_tiles: Sequence[int],
    remaining_mines: int,
    non_boundary: int,
) -> ProbabilityResult:
    """
    Weight each complete boundary placement and sum per-tile mine mass.

    Args:
        assignments: Bomb masks over the local boundary numbering.
        boundary_tiles: Board tile of each local index.
        remaining_mines: Mines not yet flagged (M).
        non_boundary: Covered tiles off the boundary (N).

    Raises:
        EmptyAssignmentSetError: If no placement leaves between 0 and N mines
            for the tiles off the boundary.
    """
    totals: Counter = Counter()
    per_tile: List[Counter] = [Counter() for _ in boundary_tiles]

    for bombs in assignments:
        b = popcount(bombs)
        if not 0 <= remaining_mines - b <= non_boundary:
            continue
        totals[b] += 1
        for i in iter_bits(bombs):
            per_tile[i][b] += 1

    if not totals:
        raise EmptyAssignmentSetError(
            "No boundary placement is consistent with the remaining mine count."
        )

    min_omitted = min(remaining_mines - b for b in totals)
    weights = {
        b: case_weight(remaining_mines - b, non_boundary, min_omitted) for b in totals
    }
    total_weight = sum((weights[b] * n for b, n in totals.items()), Fraction(0))

    probabilities: Dict[int, Fraction] = {}
    for i, tile in enumerate(boundary_tiles):
        mass = sum((weights[b] * n for b, n in per_tile[i].items()), Fraction(0))
        probabilities[tile] = mass / total_weight

    non_boundary_probability: Optional[Fraction] = None
    if non_boundary:
        omitted_mass = sum(
            (weights[b] * n * (remaining_mines - b) for b, n in totals.items()),
            Fraction(0),
        )
        non_boundary_probability = omitted_mass / (total_weight * non_boundary)

    return ProbabilityResult(
        probabilities=probabilities,
        non_boundary_probability=non_boundary_probability,
        non_boundary_count=non_boundary,
        remaining_mines=remaining_mines,
        scenarios=sum(totals.values()),
    )


class ProbabilisticSolver:
    """
    Boundary partition, section enumeration, merge and weighting for one pass.
    """

    def __init__(
        self,
        section_width: int = 12,
        max_assignments: int = 2_000_000,
        time_limit: Optional[float] = None,
        workers: int = 1,
    ) -> None:
        """
        Args:
            section_width: Target tiles per section; each section enumerates
                ``2 ** width`` candidates.
            max_assignments: Candidate budget across enumeration and merges.
            time_limit: Seconds before the pass is abandoned, or None.
            workers: Threads used for sections and same-level merges.
        """
        if not 1 <= section_width <= 20:
            raise ValueError("section_width must be between 1 and 20.")
        if workers < 1:
            raise ValueError("workers must be at least 1.")
        self.section_width = section_width
        self.max_assignments = max_assignments
        self.time_limit = time_limit
        self.workers = workers
        # validates the budget settings eagerly
        self.make_budget()

    def make_budget(self) -> EnumerationBudget:
        return EnumerationBudget(self.max_assignments, self.time_limit)

    def analyse(
        self, snapshot: BoardSnapshot, budget: Optional[EnumerationBudget] = None
    ) -> ProbabilityResult:
        """
        Compute mine probabilities for every covered tile of ``snapshot``.

        Raises:
            BoundaryTooWideError: If the boundary exceeds the bit-set capacity.
            EmptyAssignmentSetError: If no placement fits the clues.
            BudgetExceededError: If the budget runs out or is cancelled.
        """
        start = time.perf_counter()
        remaining = snapshot.remaining_mines
        non_boundary = len(snapshot.non_boundary_tiles())

        if not snapshot.boundary_tiles():
            nb_prob = Fraction(remaining, non_boundary) if non_boundary else None
            return ProbabilityResult(
                probabilities={},
                non_boundary_probability=nb_prob,
                non_boundary_count=non_boundary,
                remaining_mines=remaining,
                elapsed=time.perf_counter() - start,
            )

        boundary = Boundary(snapshot, self.section_width)
        if budget is None:
            budget = self.make_budget()
        budget.start()

        if self.workers > 1:
            with Parallel(n_jobs=self.workers, prefer="threads") as parallel:
                final = enumerate_boundary(boundary, remaining, budget, parallel)
        else:
            final = enumerate_boundary(boundary, remaining, budget)

        if not final.bombs:
            raise EmptyAssignmentSetError("No bomb placement satisfies every clue.")

        result = aggregate(final.bombs, boundary.tiles, remaining, non_boundary)
        result.candidates = budget.candidates
        result.elapsed = time.perf_counter() - start
        return result

    def recommend(
        self, snapshot: BoardSnapshot, result: ProbabilityResult
    ) -> Optional[Guess]:
        """
        Pick the covered tile least likely to hold a mine.

        A tile off the boundary wins when its probability is not higher than
        the best boundary tile's. Returns None when nothing is covered.
        """
        if not snapshot.covered:
            return None

        best = result.best_boundary_tile()
        nb_prob = result.non_boundary_probability
        if best is not None and (nb_prob is None or best[1] < nb_prob):
            return Guess(best[0], best[1], True)

        if nb_prob is None:
            return None
        return Guess(self.non_boundary_tile(snapshot), nb_prob, False)

    @staticmethod
    def non_boundary_tile(snapshot: BoardSnapshot) -> int:
        """
        The covered tile off the boundary with the fewest covered neighbours
        that are also off the boundary, then the lowest index.
        """
        outside = set(snapshot.non_boundary_tiles())
        if not outside:
            raise ValueError("Every covered tile is on the boundary.")
        return min(
            outside,
            key=lambda t: (sum(1 for n in snapshot.neighbors(t) if n in outside), t),
        )
