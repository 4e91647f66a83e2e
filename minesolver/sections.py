"""Section enumeration and the pairwise merge of section assignment lists."""

import threading
import time
from typing import Dict, List, NamedTuple, Optional, Sequence, Tuple

from joblib import Parallel, delayed

from .bitset import low_mask, popcount
from .boundary import Boundary
from .errors import BudgetExceededError

# (mask, count) over local boundary indices
BoundaryConstraint = Tuple[int, int]

# How many candidates are tried between deadline/cancel checks
_CHECK_EVERY = 4096


class SectionAssignments(NamedTuple):
    """
    Every surviving bomb placement over the tiles of ``mask``.

    All placements share the same decided-tiles mask, so it is stored once;
    each entry of ``bombs`` is a subset of ``mask``.
    """

    mask: int
    bombs: List[int]


class EnumerationBudget:
    """
    Candidate and time limits for one probabilistic pass.

    ``cancel()`` may be called from another thread; the running enumeration
    or merge stops at its next check and raises BudgetExceededError.
    """

    def __init__(
        self, max_assignments: int = 2_000_000, time_limit: Optional[float] = None
    ) -> None:
        if max_assignments <= 0:
            raise ValueError("max_assignments must be positive.")
        if time_limit is not None and time_limit <= 0:
            raise ValueError("time_limit must be positive when given.")
        self.max_assignments = max_assignments
        self.time_limit = time_limit
        self.candidates = 0
        self.deadline: Optional[float] = None
        self._cancelled = threading.Event()
        self._lock = threading.Lock()

    def start(self) -> None:
        """Arm the deadline; called once per pass before enumeration begins."""
        if self.time_limit is not None:
            self.deadline = time.monotonic() + self.time_limit

    def cancel(self) -> None:
        self._cancelled.set()

    @property
    def cancelled(self) -> bool:
        return self._cancelled.is_set()

    def charge(self, count: int) -> None:
        """Account for ``count`` candidates about to be examined."""
        with self._lock:
            self.candidates += count
            total = self.candidates
        if total > self.max_assignments:
            raise BudgetExceededError(
                f"{total} candidate placements exceed the budget of {self.max_assignments}."
            )
        self.check()

    def check(self) -> None:
        if self._cancelled.is_set():
            raise BudgetExceededError("Enumeration was cancelled.")
        if self.deadline is not None and time.monotonic() > self.deadline:
            raise BudgetExceededError(
                f"Enumeration exceeded its time limit of {self.time_limit}s."
            )


def _bounds_for(
    constraints: Sequence[BoundaryConstraint], mask: int
) -> List[Tuple[int, int, int]]:
    """
    Turn constraints into ``(constraint_mask, low, high)`` checks for placements
    deciding exactly the tiles of ``mask``.

    A fully decided constraint needs ``count`` bombs; otherwise the bombs
    already placed must lie in ``[count - undecided, count]``.
    """
    out: List[Tuple[int, int, int]] = []
    for cmask, count in constraints:
        undecided = popcount(cmask & ~mask)
        out.append((cmask, count - undecided, count))
    return out


def is_feasible(
    bombs: int, mask: int, constraints: Sequence[BoundaryConstraint]
) -> bool:
    """Whether a placement over ``mask`` can still satisfy every constraint."""
    return _within(bombs, _bounds_for(constraints, mask))


def _within(bombs: int, checks: Sequence[Tuple[int, int, int]]) -> bool:
    for cmask, low, high in checks:
        placed = popcount(bombs & cmask)
        if placed < low or placed > high:
            return False
    return True


def enumerate_section(
    offset: int,
    width: int,
    constraints: Sequence[BoundaryConstraint],
    max_bombs: Optional[int] = None,
    budget: Optional[EnumerationBudget] = None,
) -> SectionAssignments:
    """
    Enumerate every bomb placement on bits ``offset..offset+width-1`` that
    does not already violate a constraint touching the section.

    Args:
        offset: Local index of the section's first tile.
        width: Number of tiles in the section.
        constraints: All boundary constraints; those not touching the section
            are ignored.
        max_bombs: Placements with more bombs than this are dropped.
        budget: Optional candidate/time budget.

    Returns:
        The surviving placements; an empty list means the section is
        contradictory on its own.
    """
    mask = low_mask(width) << offset
    checks = _bounds_for([c for c in constraints if c[0] & mask], mask)
    if budget is not None:
        budget.charge(1 << width)

    bombs: List[int] = []
    for i in range(1 << width):
        if budget is not None and not i % _CHECK_EVERY:
            budget.check()
        if max_bombs is not None and popcount(i) > max_bombs:
            continue
        candidate = i << offset
        if _within(candidate, checks):
            bombs.append(candidate)

    return SectionAssignments(mask, bombs)


def _group(
    assignments: SectionAssignments, masks: Sequence[int]
) -> Dict[Tuple[int, ...], List[int]]:
    """Group placements by their bomb count inside each mask, plus their total."""
    groups: Dict[Tuple[int, ...], List[int]] = {}
    for bombs in assignments.bombs:
        key = tuple(popcount(bombs & m) for m in masks) + (popcount(bombs),)
        groups.setdefault(key, []).append(bombs)
    return groups


def merge_sections(
    left: SectionAssignments,
    right: SectionAssignments,
    constraints: Sequence[BoundaryConstraint],
    max_bombs: Optional[int] = None,
    budget: Optional[EnumerationBudget] = None,
) -> SectionAssignments:
    """
    Combine two disjoint assignment lists into one over ``left.mask | right.mask``.

    Only constraints touching both sides are re-checked; constraints inside
    one side were settled when that side was built. Placements are grouped by
    their bomb count inside each of those constraints first, so whole groups
    are accepted or rejected together; the result is the same as checking
    every pair of the cartesian product.
    """
    if left.mask & right.mask:
        raise ValueError("Cannot merge overlapping sections.")
    mask = left.mask | right.mask
    if not left.bombs or not right.bombs:
        return SectionAssignments(mask, [])

    spanning = [c for c in constraints if c[0] & left.mask and c[0] & right.mask]
    checks = _bounds_for(spanning, mask)
    masks = [cmask for cmask, _, _ in checks]

    left_groups = _group(left, masks)
    right_groups = _group(right, masks)
    if budget is not None:
        budget.charge(len(left_groups) * len(right_groups))

    merged: List[int] = []
    for lkey, lbombs in left_groups.items():
        if budget is not None:
            budget.check()
        for rkey, rbombs in right_groups.items():
            if max_bombs is not None and lkey[-1] + rkey[-1] > max_bombs:
                continue
            ok = True
            for j, (_, low, high) in enumerate(checks):
                placed = lkey[j] + rkey[j]
                if placed < low or placed > high:
                    ok = False
                    break
            if not ok:
                continue
            if budget is not None:
                budget.charge(len(lbombs) * len(rbombs))
            merged.extend(lb | rb for lb in lbombs for rb in rbombs)

    return SectionAssignments(mask, merged)


def _run(calls: List[Tuple], parallel: Optional[Parallel]) -> List[SectionAssignments]:
    """Evaluate ``delayed`` calls in order, on ``parallel`` when one is given."""
    if parallel is None:
        return [func(*args, **kwargs) for func, args, kwargs in calls]
    return list(parallel(calls))


def merge_all(
    sections: Sequence[SectionAssignments],
    constraints: Sequence[BoundaryConstraint],
    max_bombs: Optional[int] = None,
    budget: Optional[EnumerationBudget] = None,
    parallel: Optional[Parallel] = None,
) -> SectionAssignments:
    """
    Merge adjacent sections pairwise, level by level, until one list remains.

    Merges on the same level are independent and are dispatched together to
    ``parallel`` (a thread-backed ``joblib.Parallel``) when one is given.
    """
    if not sections:
        return SectionAssignments(0, [])

    level = list(sections)
    if any(not s.bombs for s in level):
        full = 0
        for s in level:
            full |= s.mask
        return SectionAssignments(full, [])

    while len(level) > 1:
        calls = [
            delayed(merge_sections)(level[i], level[i + 1], constraints, max_bombs, budget)
            for i in range(0, len(level) - 1, 2)
        ]
        merged = _run(calls, parallel)
        if len(level) % 2:
            merged.append(level[-1])
        level = merged

    return level[0]


def enumerate_boundary(
    boundary: Boundary,
    max_bombs: Optional[int] = None,
    budget: Optional[EnumerationBudget] = None,
    parallel: Optional[Parallel] = None,
) -> SectionAssignments:
    """Enumerate every section of ``boundary`` and merge them into one list."""
    calls = []
    offset = 0
    for section in boundary.sections_tiles:
        calls.append(
            delayed(enumerate_section)(
                offset, len(section), boundary.constraints, max_bombs, budget
            )
        )
        offset += len(section)

    sections = _run(calls, parallel)
    return merge_all(sections, boundary.constraints, max_bombs, budget, parallel)
