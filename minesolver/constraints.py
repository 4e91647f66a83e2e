"""Bound constraints over boundary tiles and the deduction rules that tighten them."""

from collections import defaultdict, deque
from dataclasses import dataclass
from typing import DefaultDict, Deque, Dict, Iterable, List, Optional, Set, Tuple

from .bitset import BitSet128, iter_bits, popcount
from .errors import BudgetExceededError, InconsistentConstraintsError

AT_MOST = "max"
AT_LEAST = "min"


@dataclass(frozen=True)
class Constraint:
    """
    A one-sided bound on the number of bombs inside ``mask``.

    An exact clue is the pair returned by :meth:`exactly`.
    """

    mask: BitSet128
    count: int
    bound: str

    def __post_init__(self) -> None:
        if self.bound not in (AT_MOST, AT_LEAST):
            raise ValueError(f'bound must be "{AT_MOST}" or "{AT_LEAST}".')

    @classmethod
    def at_most(cls, mask: BitSet128, count: int) -> "Constraint":
        return cls(mask, count, AT_MOST)

    @classmethod
    def at_least(cls, mask: BitSet128, count: int) -> "Constraint":
        return cls(mask, count, AT_LEAST)

    @classmethod
    def exactly(cls, mask: BitSet128, count: int) -> Tuple["Constraint", "Constraint"]:
        return cls.at_most(mask, count), cls.at_least(mask, count)


class ConstraintStore:
    """
    Tightest known bounds per mask, closed under the deduction rules.

    Rules (applied by :meth:`deduce` until nothing tightens):
    1. a mask of size n holds at most n and at least 0 bombs (never stored);
    2. a subset inherits the at-most bound of any superset;
    3. (t, at most k) and (s, at least m) with s in t give (t - s, at most k - m);
    4. (t, at least k) and (s, at most m) with s in t give (t - s, at least k - m).

    Every derived mask is an intersection or difference of stored masks, so
    it stays inside one of the masks that were added and the fixpoint is
    reached in a finite number of steps.
    """

    def __init__(self, max_steps: int = 200_000) -> None:
        if max_steps <= 0:
            raise ValueError("max_steps must be positive.")
        self.max_steps = max_steps
        self.steps = 0

        self._upper: Dict[int, int] = {}
        self._lower: Dict[int, int] = {}

        # tile -> stored masks containing it
        self._by_tile: DefaultDict[int, Set[int]] = defaultdict(set)
        self._known: Set[int] = set()

        self._queue: Deque[int] = deque()
        self._queued: Set[int] = set()
        self._changed: Set[int] = set()

    def __len__(self) -> int:
        return len(self._known)

    # -------------------------------------------------------------------------
    # Public API
    # -------------------------------------------------------------------------

    def add(self, constraint: Constraint) -> None:
        """Record a constraint and queue its mask for deduction."""
        if constraint.bound == AT_MOST:
            self._tighten(constraint.mask.bits, upper=constraint.count)
        else:
            self._tighten(constraint.mask.bits, lower=constraint.count)

    def add_all(self, constraints: Iterable[Constraint]) -> None:
        for constraint in constraints:
            self.add(constraint)

    def deduce(self) -> Set[Constraint]:
        """
        Apply the deduction rules until fixpoint.

        Returns:
            The tightest bounds, as constraints, of every mask whose bounds
            changed during this call and that was not changed by ``add``.

        Raises:
            InconsistentConstraintsError: If the bounds contradict each other.
            BudgetExceededError: If more than ``max_steps`` masks are processed.
        """
        self._changed = set()
        while self._queue:
            self.steps += 1
            if self.steps > self.max_steps:
                raise BudgetExceededError(
                    f"constraint deduction exceeded {self.max_steps} steps."
                )
            t = self._queue.popleft()
            self._queued.discard(t)
            self._process(t)

        derived: Set[Constraint] = set()
        for mask in self._changed:
            bitset = BitSet128(mask)
            if mask in self._upper:
                derived.add(Constraint.at_most(bitset, self._upper[mask]))
            if mask in self._lower:
                derived.add(Constraint.at_least(bitset, self._lower[mask]))
        return derived

    def upper_bound(self, mask: int) -> int:
        """Derived at-most bound of ``mask`` (rules 1 and 2 over stored bounds)."""
        best = popcount(mask)
        for t in self._supersets(mask):
            k = self._upper.get(t)
            if k is not None and k < best:
                best = k
        return best

    def lower_bound(self, mask: int) -> int:
        """Derived at-least bound of ``mask`` (stored bounds plus rule 4 with rule 1)."""
        size = popcount(mask)
        best = 0
        for t in self._supersets(mask):
            k = self._lower.get(t)
            if k is None:
                continue
            implied = k - (popcount(t) - size)
            if implied > best:
                best = implied
        return best

    def certainties(self) -> Tuple[BitSet128, BitSet128]:
        """
        Return ``(safe, mined)`` tiles implied by the stored bounds.

        Raises:
            InconsistentConstraintsError: If a tile is both safe and mined.
        """
        safe = 0
        mined = 0
        for mask, k in self._upper.items():
            if k == 0:
                safe |= mask
        for mask, k in self._lower.items():
            if k == popcount(mask):
                mined |= mask
        if safe & mined:
            raise InconsistentConstraintsError(
                f"tiles {list(iter_bits(safe & mined))} are both safe and mined."
            )
        return BitSet128(safe), BitSet128(mined)

    def constraints(self) -> List[Constraint]:
        """All stored bounds, ordered by mask then bound kind."""
        out: List[Constraint] = []
        for mask in sorted(self._known):
            bitset = BitSet128(mask)
            if mask in self._upper:
                out.append(Constraint.at_most(bitset, self._upper[mask]))
            if mask in self._lower:
                out.append(Constraint.at_least(bitset, self._lower[mask]))
        return out

    # -------------------------------------------------------------------------
    # Worklist internals
    # -------------------------------------------------------------------------

    def _supersets(self, mask: int) -> List[int]:
        if mask == 0:
            return []
        lowest = (mask & -mask).bit_length() - 1
        return [t for t in self._by_tile.get(lowest, ()) if t & mask == mask]

    def _overlapping(self, t: int) -> List[int]:
        seen: Set[int] = set()
        for tile in iter_bits(t):
            seen.update(self._by_tile.get(tile, ()))
        seen.discard(t)
        return sorted(seen)

    def _process(self, t: int) -> None:
        for u in self._overlapping(t):
            inter = t & u
            for outer in (t, u):
                if inter == outer:
                    continue
                self._split(outer, inter)
                self._split(outer, outer & ~inter)

    def _split(self, t: int, s: int) -> None:
        """Apply rules 2-4 to ``t`` and its proper, non-empty subset ``s``."""
        d = t & ~s
        hi_t = self.upper_bound(t)
        lo_t = self.lower_bound(t)

        self._tighten(s, upper=hi_t)
        if hi_t < popcount(t):
            self._tighten(d, upper=hi_t - self.lower_bound(s))
        if lo_t > 0:
            self._tighten(d, lower=lo_t - self.upper_bound(s))

    def _tighten(
        self, mask: int, lower: Optional[int] = None, upper: Optional[int] = None
    ) -> None:
        size = popcount(mask)
        changed = False

        if upper is not None:
            if upper < 0:
                raise InconsistentConstraintsError(
                    f"mask {list(iter_bits(mask))} needs at most {upper} bombs."
                )
            if upper < size and upper < self._upper.get(mask, size):
                self._upper[mask] = upper
                changed = True

        if lower is not None:
            if lower > size:
                raise InconsistentConstraintsError(
                    f"mask {list(iter_bits(mask))} of size {size} needs at least {lower} bombs."
                )
            if lower > 0 and lower > self._lower.get(mask, 0):
                self._lower[mask] = lower
                changed = True

        if not changed:
            return

        if mask not in self._known:
            self._known.add(mask)
            for tile in iter_bits(mask):
                self._by_tile[tile].add(mask)

        lo = self.lower_bound(mask)
        hi = self.upper_bound(mask)
        if lo > hi:
            raise InconsistentConstraintsError(
                f"mask {list(iter_bits(mask))} needs at least {lo} "
                f"but at most {hi} bombs."
            )

        self._changed.add(mask)
        if mask not in self._queued:
            self._queue.append(mask)
            self._queued.add(mask)
