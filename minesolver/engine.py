"""Minesweeper game engine used as the board collaborator of the solver."""

import random
from collections import deque
from typing import Deque, Dict, FrozenSet, Iterable, List, Optional, Set, Tuple

from .snapshot import BoardSnapshot, Clue
from .utils import format_grid, get_neighborhoods

MINE = "M"


class Minesweeper:
    """Minesweeper board with first-click safety, flagging and flood-fill reveals."""

    def __init__(
        self,
        width: int,
        height: int,
        mines_count: int,
        mines_generation_algorithm: str = "safe_neighborhood_rule",
        rng: Optional[random.Random] = None,
    ) -> None:
        """
        Initialize a Minesweeper game engine.

        Args:
            width: Board width (number of columns), must be > 0.
            height: Board height (number of rows), must be > 0.
            mines_count: Total number of mines to place, must be >= 0.
            mines_generation_algorithm: Mine placement rule; one of
                {"safe_first_action_rule", "safe_neighborhood_rule"}.
            rng: Random source for mine placement; a fresh one if omitted.

        Raises:
            ValueError: If dimensions are invalid, the algorithm is
                unrecognized, or the mines cannot be placed.
        """
        if width <= 0 or height <= 0:
            raise ValueError("Width and height must be positive.")
        if mines_count < 0:
            raise ValueError("mines_count must be non-negative.")
        if mines_generation_algorithm not in (
            "safe_first_action_rule",
            "safe_neighborhood_rule",
        ):
            raise ValueError(
                'mines_generation_algorithm must be "safe_first_action_rule" '
                'or "safe_neighborhood_rule".'
            )

        reserved = 1 if mines_generation_algorithm == "safe_first_action_rule" else 9
        if mines_count > width * height - reserved:
            raise ValueError(
                f"Cannot place {mines_count} mines and keep the first move safe "
                f"under {mines_generation_algorithm}."
            )

        self.width: int = width
        self.height: int = height
        self.mines_count: int = mines_count
        self.mines_generation_algorithm: str = mines_generation_algorithm
        self.rng: random.Random = rng if rng is not None else random.Random()

        self._neighborhoods: Tuple[Tuple[int, ...], ...] = get_neighborhoods(
            width, height
        )

        # board[tile] is "M" or the adjacent mine count as a string
        self.board: List[str] = [" "] * (width * height)
        self.board_blank: bool = True
        self.first_move: bool = True
        self.reset()

    @classmethod
    def from_mines(
        cls, width: int, height: int, mines: Iterable[Tuple[int, int]]
    ) -> "Minesweeper":
        """Build a game with a fixed layout; the first reveal is not protected."""
        mine_set = set(mines)
        game = cls(
            width,
            height,
            0,
            mines_generation_algorithm="safe_first_action_rule",
        )
        game.mines_count = len(mine_set)
        for x, y in mine_set:
            game.board[y * width + x] = MINE
        game.get_adjacent_mine_counts()
        game.board_blank = False
        game.first_move = False
        game.reset()
        return game

    def reset(self) -> None:
        """
        Clear revealed tiles and flags, keeping the mine layout.
        """
        n = self.width * self.height
        self.revealed: List[bool] = [False] * n
        self.flagged: Set[int] = set()
        self.unrevealed_count: int = n - self.mines_count
        self.game_over: bool = False

    def tile(self, x: int, y: int) -> int:
        if not (0 <= x < self.width and 0 <= y < self.height):
            raise ValueError("Cell coordinates are outside the board.")
        return y * self.width + x

    def coords(self, tile: int) -> Tuple[int, int]:
        return tile % self.width, tile // self.width

    def neighbors(self, x: int, y: int) -> Tuple[Tuple[int, int], ...]:
        """All valid (nx, ny) neighbors of (x, y) in the 8-neighborhood."""
        return tuple(self.coords(t) for t in self._neighborhoods[self.tile(x, y)])

    def value(self, x: int, y: int) -> str:
        return self.board[self.tile(x, y)]

    def is_revealed(self, x: int, y: int) -> bool:
        return self.revealed[self.tile(x, y)]

    def mine_tiles(self) -> FrozenSet[int]:
        return frozenset(t for t, v in enumerate(self.board) if v == MINE)

    # -------------------------------------------------------------------------
    # Board generation
    # -------------------------------------------------------------------------

    def place_mines(self, first_x: int, first_y: int) -> None:
        """
        Place mines once, keeping the first click (and, under
        "safe_neighborhood_rule", its neighbors) free of mines.

        Raises:
            ValueError: If the board already has mines.
        """
        if not self.board_blank:
            raise ValueError("The board is not blank.")

        first = self.tile(first_x, first_y)
        safe: Set[int] = {first}
        if self.mines_generation_algorithm == "safe_neighborhood_rule":
            safe.update(self._neighborhoods[first])

        eligible = [t for t in range(self.width * self.height) if t not in safe]
        for t in self.rng.sample(eligible, self.mines_count):
            self.board[t] = MINE

        self.board_blank = False

    def get_adjacent_mine_counts(self) -> None:
        """Populate every non-mine tile with its adjacent mine count."""
        for t, v in enumerate(self.board):
            if v == MINE:
                continue
            count = sum(1 for n in self._neighborhoods[t] if self.board[n] == MINE)
            self.board[t] = str(count)

    # -------------------------------------------------------------------------
    # Moves
    # -------------------------------------------------------------------------

    def flood_fill(self, x: int, y: int) -> List[Tuple[int, int, str]]:
        """
        Reveal the region starting at (x, y): zeros open their neighbors.

        Returns:
            Newly revealed cells as (x, y, value_str).
        """
        start = self.tile(x, y)
        frontier: Deque[int] = deque([start])
        visited: Set[int] = {start}
        revealed_cells: List[Tuple[int, int, str]] = []

        while frontier:
            t = frontier.popleft()
            if self.revealed[t] or t in self.flagged:
                continue

            self.revealed[t] = True
            self.unrevealed_count -= 1
            cx, cy = self.coords(t)
            revealed_cells.append((cx, cy, self.board[t]))

            if self.board[t] == "0":
                for n in self._neighborhoods[t]:
                    if n in visited or self.revealed[n]:
                        continue
                    visited.add(n)
                    frontier.append(n)

        return revealed_cells

    def reveal(self, x: int, y: int) -> Tuple[int, Dict[str, object]]:
        """
        Reveal a single cell and return a status code plus payload.

        Returns:
            Tuple of (status, payload) where status is:
                - -1: Mine hit (loss)
                - 0: Non-terminal reveal (or no-op)
                - 1: Win (all safe cells revealed)

            Payload contains:
                - For status 0 or 1: {"revealed_cells": List[(x, y, value_str)]}
                - For status -1: {"revealed_cells_count": int, "all_mines": FrozenSet}

        Raises:
            ValueError: If coordinates are out of bounds.
        """
        t = self.tile(x, y)

        if self.game_over or self.revealed[t] or t in self.flagged:
            return 0, {}

        if self.first_move:
            self.place_mines(x, y)
            self.get_adjacent_mine_counts()
            self.first_move = False

        if self.board[t] == MINE:
            self.revealed[t] = True
            self.game_over = True
            revealed_cells_count = (
                self.width * self.height - self.mines_count
            ) - self.unrevealed_count
            all_mines = frozenset(self.coords(m) for m in self.mine_tiles())
            return -1, {
                "revealed_cells_count": revealed_cells_count,
                "all_mines": all_mines,
            }

        revealed_cells = self.flood_fill(x, y)

        if self.unrevealed_count == 0:
            self.game_over = True
            return 1, {"revealed_cells": revealed_cells}

        return 0, {"revealed_cells": revealed_cells}

    def toggle_flag(self, x: int, y: int) -> bool:
        """Flag or unflag a covered tile; returns whether it is now flagged."""
        t = self.tile(x, y)
        if self.revealed[t]:
            return False
        if t in self.flagged:
            self.flagged.remove(t)
            return False
        self.flagged.add(t)
        return True

    # -------------------------------------------------------------------------
    # Views
    # -------------------------------------------------------------------------

    def snapshot(self) -> BoardSnapshot:
        """What a player sees: revealed numbers, covered tiles and flags."""
        clues: Dict[int, Clue] = {}
        covered: List[int] = []
        for t, is_open in enumerate(self.revealed):
            if is_open:
                if self.board[t] != MINE:
                    clues[t] = Clue(frozenset(self._neighborhoods[t]), int(self.board[t]))
            elif t not in self.flagged:
                covered.append(t)

        return BoardSnapshot(
            width=self.width,
            height=self.height,
            clues=clues,
            covered=frozenset(covered),
            flagged=frozenset(self.flagged),
            total_mines=self.mines_count,
        )

    def format_board(self, reveal_all: bool = False) -> str:
        """
        Render the board as text with coordinate labels.

        Args:
            reveal_all: If True, show mines and all underlying values.
        """
        def cell_str(t: int) -> str:
            if reveal_all or self.revealed[t]:
                return self.board[t]
            if t in self.flagged:
                return "F"
            return "."

        return format_grid(self.width, self.height, cell_str)

    def print_full_board(self) -> None:
        """Print the fully revealed underlying board to stdout (for debugging)."""
        print(self.format_board(reveal_all=True))
