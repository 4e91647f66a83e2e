"""Read-only description of what a player can see on the board for one turn."""

from dataclasses import dataclass
from typing import Dict, FrozenSet, List, Mapping, NamedTuple, Sequence, Tuple

from .errors import InconsistentConstraintsError
from .utils import get_neighborhoods, squared_distance

COVERED_CHAR = "."
FLAG_CHAR = "F"


class Clue(NamedTuple):
    """A revealed numbered tile: its neighbor tiles and the number shown."""

    neighbors: FrozenSet[int]
    value: int


@dataclass(frozen=True)
class BoardSnapshot:
    """
    Board state handed to the inference core.

    Tiles are row-major indices. A tile is either covered, flagged, or
    revealed; revealed tiles are the keys of ``clues``.
    """

    width: int
    height: int
    clues: Mapping[int, Clue]
    covered: FrozenSet[int]
    flagged: FrozenSet[int]
    total_mines: int

    def __post_init__(self) -> None:
        n = self.total_tiles
        if self.width <= 0 or self.height <= 0:
            raise ValueError("width and height must be positive.")
        if self.total_mines < 0:
            raise ValueError("total_mines must be non-negative.")
        if self.total_mines < len(self.flagged):
            raise ValueError("More tiles are flagged than there are mines.")
        if self.covered & self.flagged:
            raise ValueError("A tile cannot be both covered and flagged.")

        for tile in self.covered | self.flagged:
            if not 0 <= tile < n:
                raise ValueError(f"Tile {tile} is outside the board.")

        for tile, clue in self.clues.items():
            if not 0 <= tile < n:
                raise ValueError(f"Clue tile {tile} is outside the board.")
            if tile in self.covered or tile in self.flagged:
                raise ValueError(f"Clue tile {tile} is also covered or flagged.")
            if not 0 <= clue.value <= 8:
                raise ValueError(f"Clue value {clue.value} at tile {tile} is not 0..8.")

        if self.total_mines > len(self.covered) + len(self.flagged):
            raise ValueError("More mines than covered and flagged tiles.")

    # -------------------------------------------------------------------------
    # Construction
    # -------------------------------------------------------------------------

    @classmethod
    def from_grid(cls, rows: Sequence[str], total_mines: int) -> "BoardSnapshot":
        """
        Build a snapshot from text rows.

        Each row holds one character per tile: ``.`` covered, ``F`` flagged,
        ``0``-``8`` revealed. Spaces are ignored.

        Raises:
            ValueError: If rows are ragged, empty, or contain other characters.
        """
        cleaned = [row.replace(" ", "") for row in rows]
        if not cleaned or not cleaned[0]:
            raise ValueError("Grid must have at least one row and one column.")
        width = len(cleaned[0])
        if any(len(row) != width for row in cleaned):
            raise ValueError("All grid rows must have the same length.")
        height = len(cleaned)

        neighborhoods = get_neighborhoods(width, height)
        clues: Dict[int, Clue] = {}
        covered: List[int] = []
        flagged: List[int] = []

        for y, row in enumerate(cleaned):
            for x, ch in enumerate(row):
                tile = y * width + x
                if ch == COVERED_CHAR:
                    covered.append(tile)
                elif ch == FLAG_CHAR:
                    flagged.append(tile)
                elif ch.isdigit():
                    clues[tile] = Clue(frozenset(neighborhoods[tile]), int(ch))
                else:
                    raise ValueError(f"Unexpected grid character {ch!r}.")

        return cls(
            width=width,
            height=height,
            clues=clues,
            covered=frozenset(covered),
            flagged=frozenset(flagged),
            total_mines=total_mines,
        )

    def to_grid(self) -> List[str]:
        """Inverse of :meth:`from_grid`."""
        rows: List[str] = []
        for y in range(self.height):
            chars: List[str] = []
            for x in range(self.width):
                tile = y * self.width + x
                if tile in self.clues:
                    chars.append(str(self.clues[tile].value))
                elif tile in self.flagged:
                    chars.append(FLAG_CHAR)
                else:
                    chars.append(COVERED_CHAR)
            rows.append("".join(chars))
        return rows

    # -------------------------------------------------------------------------
    # Derived views
    # -------------------------------------------------------------------------

    @property
    def total_tiles(self) -> int:
        return self.width * self.height

    @property
    def remaining_mines(self) -> int:
        return self.total_mines - len(self.flagged)

    def neighbors(self, tile: int) -> Tuple[int, ...]:
        return get_neighborhoods(self.width, self.height)[tile]

    def distance(self, a: int, b: int) -> int:
        return squared_distance(a, b, self.width)

    def clue_constraints(self) -> List[Tuple[FrozenSet[int], int]]:
        """
        One ``(covered_neighbors, remaining_count)`` pair per clue that still
        touches a covered tile, ordered by clue tile.

        ``remaining_count`` is the clue value minus its flagged neighbors and
        may be out of range on an inconsistent board; callers validate it.

        Raises:
            InconsistentConstraintsError: If a clue with no covered neighbor
                does not match its flagged neighbors.
        """
        out: List[Tuple[FrozenSet[int], int]] = []
        for tile in sorted(self.clues):
            clue = self.clues[tile]
            covered = clue.neighbors & self.covered
            remaining = clue.value - len(clue.neighbors & self.flagged)
            if not covered:
                if remaining:
                    raise InconsistentConstraintsError(
                        f"Clue {clue.value} at tile {tile} has no covered neighbors "
                        f"left but {remaining} unflagged mines."
                    )
                continue
            out.append((covered, remaining))
        return out

    def boundary_tiles(self) -> List[int]:
        """Covered tiles adjacent to at least one revealed clue, ascending."""
        boundary = set()
        for clue in self.clues.values():
            boundary |= clue.neighbors & self.covered
        return sorted(boundary)

    def non_boundary_tiles(self) -> List[int]:
        boundary = set(self.boundary_tiles())
        return sorted(t for t in self.covered if t not in boundary)
