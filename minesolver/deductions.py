"""Deterministic solver: tiles that every consistent board agrees on."""

from typing import FrozenSet, List, NamedTuple

from .bitset import BitSet128
from .boundary import Component, frontier_components
from .constraints import Constraint, ConstraintStore
from .errors import InconsistentConstraintsError
from .snapshot import BoardSnapshot


class Deductions(NamedTuple):
    """Tiles proven safe and tiles proven mined; disjoint, possibly empty."""

    safe: FrozenSet[int]
    mined: FrozenSet[int]
    derived_count: int = 0


class DeterministicSolver:
    """
    Runs the constraint store to fixpoint on every frontier component.

    Components do not share tiles, so each gets its own store and its own
    local numbering; only the widest component has to fit in a bit set.
    """

    def __init__(self, max_steps: int = 200_000) -> None:
        """
        Args:
            max_steps: Worklist budget per component; exceeding it raises
                BudgetExceededError.
        """
        if max_steps <= 0:
            raise ValueError("max_steps must be positive.")
        self.max_steps = max_steps

    def solve(self, snapshot: BoardSnapshot) -> Deductions:
        """
        Derive certain safe and mined tiles for one board snapshot.

        Raises:
            InconsistentConstraintsError: If the clues contradict each other.
            BudgetExceededError: If a component exhausts the step budget.
            BoundaryTooWideError: If a component exceeds the bit-set capacity.
        """
        covered = snapshot.covered
        remaining = snapshot.remaining_mines

        safe: List[int] = []
        mined: List[int] = []
        derived_count = 0

        for component in frontier_components(snapshot):
            store = self._build_store(component)
            derived_count += len(store.deduce())
            safe_bits, mined_bits = store.certainties()
            safe.extend(component.tiles[i] for i in safe_bits)
            mined.extend(component.tiles[i] for i in mined_bits)

        # global mine count, checked against what the clues proved
        if covered and remaining == 0:
            if mined:
                raise InconsistentConstraintsError(
                    f"No mines remain but the clues force tiles {sorted(mined)}."
                )
            return Deductions(frozenset(covered), frozenset(), derived_count)
        if covered and remaining == len(covered):
            if safe:
                raise InconsistentConstraintsError(
                    f"Every covered tile must be a mine but the clues clear {sorted(safe)}."
                )
            return Deductions(frozenset(), frozenset(covered), derived_count)

        return Deductions(frozenset(safe), frozenset(mined), derived_count)

    def _build_store(self, component: Component) -> ConstraintStore:
        index = {tile: i for i, tile in enumerate(component.tiles)}
        store = ConstraintStore(max_steps=self.max_steps)
        for tiles, count in component.constraints:
            mask = BitSet128.from_indices(index[t] for t in tiles)
            store.add_all(Constraint.exactly(mask, count))
        return store
