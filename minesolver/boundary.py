"""Frontier components, boundary renumbering and the furthest-pair section split."""

from typing import Callable, Dict, FrozenSet, Iterable, List, NamedTuple, Sequence, Set, Tuple

from .bitset import CAPACITY, BitSet128, iter_bits, low_mask, popcount
from .errors import BoundaryTooWideError, InconsistentConstraintsError
from .snapshot import BoardSnapshot

Distance = Callable[[int, int], int]


class Component(NamedTuple):
    """Clues that share covered tiles, directly or through other clues."""

    tiles: List[int]
    constraints: List[Tuple[FrozenSet[int], int]]


def frontier_components(snapshot: BoardSnapshot) -> List[Component]:
    """
    Partition the clue constraints into connected components.

    Two clues are connected when they share a covered tile. Components are
    independent for deduction, so each can be solved in its own store.

    Returns:
        Components ordered by their smallest tile; tiles within a component
        are ascending.
    """
    constraints = snapshot.clue_constraints()

    by_tile: Dict[int, List[int]] = {}
    for ci, (tiles, _) in enumerate(constraints):
        for tile in tiles:
            by_tile.setdefault(tile, []).append(ci)

    components: List[Component] = []
    seen: Set[int] = set()

    for start in range(len(constraints)):
        if start in seen:
            continue

        stack: List[int] = [start]
        seen.add(start)
        members: List[int] = []
        tiles: Set[int] = set()

        while stack:
            ci = stack.pop()
            members.append(ci)
            for tile in constraints[ci][0]:
                if tile in tiles:
                    continue
                tiles.add(tile)
                for other in by_tile[tile]:
                    if other not in seen:
                        seen.add(other)
                        stack.append(other)

        members.sort()
        components.append(
            Component(sorted(tiles), [constraints[ci] for ci in members])
        )

    return sorted(components, key=lambda c: c.tiles[0])


def furthest_pair(tiles: Sequence[int], distance: Distance) -> Tuple[int, int]:
    """
    The two tiles with the largest board distance, ``a < b``.

    Ties go to the pair that comes first in ascending tile order.
    """
    if len(tiles) < 2:
        raise ValueError("furthest_pair needs at least two tiles.")
    ordered = sorted(tiles)
    best = (ordered[0], ordered[1])
    best_d = distance(*best)
    for i, a in enumerate(ordered):
        for b in ordered[i + 1:]:
            d = distance(a, b)
            if d > best_d:
                best, best_d = (a, b), d
    return best


def partition_boundary(
    tiles: Iterable[int], distance: Distance, section_width: int
) -> List[List[int]]:
    """
    Split boundary tiles into sections of at most ``section_width`` tiles.

    The tiles are split around their furthest pair, each tile going to the
    nearer end (ties to the lower-indexed end), and each half is split again
    until it fits. Halves are concatenated so that neighbouring sections are
    close on the board; the order only affects speed, never the result.
    """
    if section_width <= 0:
        raise ValueError("section_width must be positive.")
    ordered = sorted(tiles)
    if not ordered:
        return []
    return _split(ordered, distance, section_width)


def _split(tiles: List[int], distance: Distance, section_width: int) -> List[List[int]]:
    if len(tiles) <= section_width:
        return [tiles]

    a, b = furthest_pair(tiles, distance)
    near_a: List[int] = []
    near_b: List[int] = []
    for tile in tiles:
        if distance(tile, a) <= distance(tile, b):
            near_a.append(tile)
        else:
            near_b.append(tile)

    left = _split(near_a, distance, section_width)
    right = _split(near_b, distance, section_width)

    # flip the right half when that puts its nearer end next to the seam
    tail = left[-1][-1]
    if distance(tail, right[0][0]) > distance(tail, right[-1][-1]):
        right = [section[::-1] for section in reversed(right)]

    return left + right


class Boundary:
    """
    The boundary of one snapshot, renumbered ``0..width-1`` section by section.

    Section ``k`` occupies a contiguous run of bits, so its mask is a shifted
    block of ones. Clue constraints are translated to ``(mask, count)`` pairs
    over the local numbering.
    """

    def __init__(self, snapshot: BoardSnapshot, section_width: int = 12) -> None:
        """
        Args:
            snapshot: Board state to take the boundary from.
            section_width: Target number of tiles per section.

        Raises:
            BoundaryTooWideError: If the boundary exceeds the bit-set capacity.
            InconsistentConstraintsError: If a clue cannot be satisfied on its
                own or two clues demand different counts on the same tiles.
        """
        board_tiles = snapshot.boundary_tiles()
        if len(board_tiles) > CAPACITY:
            raise BoundaryTooWideError(
                f"Boundary has {len(board_tiles)} tiles; at most {CAPACITY} are supported."
            )

        self.sections_tiles: List[List[int]] = partition_boundary(
            board_tiles, snapshot.distance, section_width
        )
        self.tiles: List[int] = [t for section in self.sections_tiles for t in section]
        self.index: Dict[int, int] = {t: i for i, t in enumerate(self.tiles)}

        self.section_masks: List[int] = []
        offset = 0
        for section in self.sections_tiles:
            self.section_masks.append(low_mask(len(section)) << offset)
            offset += len(section)

        counts: Dict[int, int] = {}
        for tiles, count in snapshot.clue_constraints():
            mask = self.to_local(tiles).bits
            if count < 0 or count > popcount(mask):
                raise InconsistentConstraintsError(
                    f"A clue needs {count} bombs among {popcount(mask)} covered tiles."
                )
            if counts.setdefault(mask, count) != count:
                raise InconsistentConstraintsError(
                    f"Clues disagree on tiles {sorted(tiles)}: "
                    f"{counts[mask]} vs {count} bombs."
                )
        self.constraints: List[Tuple[int, int]] = sorted(counts.items())

    @property
    def width(self) -> int:
        return len(self.tiles)

    @property
    def mask(self) -> int:
        return low_mask(len(self.tiles))

    def to_local(self, tiles: Iterable[int]) -> BitSet128:
        return BitSet128.from_indices(self.index[t] for t in tiles)

    def to_tiles(self, bits: int) -> List[int]:
        return [self.tiles[i] for i in iter_bits(bits)]
