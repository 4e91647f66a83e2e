"""Game-loop driver: plays a Minesweeper engine turn by turn with the agent."""

from fractions import Fraction
from typing import Any, Dict, FrozenSet, List, Optional, Set, Tuple

from .agent import MinesweeperAgent, TurnResult
from .deductions import Deductions
from .engine import Minesweeper
from .errors import BoundaryTooWideError, BudgetExceededError
from .probability import Guess, ProbabilisticSolver
from .snapshot import BoardSnapshot, Clue
from .utils import coords_to_tile, get_neighborhoods, tile_to_coords


class MinesweeperSolver:
    """
    Plays a game by repeatedly snapshotting its own knowledge and asking a
    :class:`MinesweeperAgent` for the next turn.

    Each turn:
    1. Deterministic deduction: reveal every safe tile, flag every mined tile.
    2. Exact probabilities over the boundary: apply tiles forced to 0 or 1.
    3. Otherwise uncover the recommended lowest-risk tile.
    When the exact pass is over budget or the boundary is too wide, the
    local-density estimate is used for that turn instead.
    """

    def __init__(
        self,
        game: Minesweeper,
        record_steps: bool = True,
        guessing_strategy: str = "exact",
        section_width: int = 12,
        max_deduction_steps: int = 200_000,
        max_assignments: int = 2_000_000,
        time_limit: Optional[float] = None,
        workers: int = 1,
    ) -> None:
        """
        Initialize a solving agent bound to a specific game instance.

        Args:
            game: The Minesweeper engine instance to interact with.
            record_steps: If True, keep a per-move history with a copy of the
                knowledge grid. Set to False for benchmarks.
            guessing_strategy: Strategy for guessing when no forced moves exist.
                "exact" (default): weighted enumeration of boundary placements.
                "local_density": always use the local constraint density estimate.
            section_width: Target boundary section width for enumeration.
            max_deduction_steps: Worklist budget of the deterministic pass.
            max_assignments: Candidate budget per probabilistic pass.
            time_limit: Seconds allowed per probabilistic pass, or None.
            workers: Threads used by the probabilistic pass.
        """
        if guessing_strategy not in ("exact", "local_density"):
            raise ValueError('guessing_strategy must be "exact" or "local_density".')
        self.game = game
        self.record_steps = record_steps
        self.guessing_strategy = guessing_strategy
        self.board_height: int = game.height
        self.board_width: int = game.width

        self.agent = MinesweeperAgent(
            section_width=section_width,
            max_deduction_steps=max_deduction_steps,
            max_assignments=max_assignments,
            time_limit=time_limit,
            workers=workers,
        )

        self._neighborhoods = get_neighborhoods(self.board_width, self.board_height)

        # reported by metrics()
        self.reveal_moves_count: int = 0
        self.turns_count: int = 0
        self.inferred_deterministic_count: int = 0
        self.attempted_deterministic_count: int = 0
        self.inferred_enumeration_count: int = 0
        self.probabilistic_guesses_boundary_count: int = 0
        self.probabilistic_guesses_non_boundary_count: int = 0
        self.fallback_guesses_count: int = 0
        self.max_boundary_width: int = 0
        self.max_scenarios: int = 0
        self.guess_probabilities: List[float] = []

        self.moves_sequence: List[Tuple[int, int, str]] = []
        self.steps_history: List[Dict[str, Any]] = []
        self._current_method: str = "first_move"

        # None unknown, "M" flagged, digit strings revealed; "X" and "!" mark
        # mines after a loss
        self.knowledge: List[List[object]] = [
            [None for _ in range(game.width)] for _ in range(game.height)
        ]

    # -------------------------------------------------------------------------
    # Knowledge bookkeeping
    # -------------------------------------------------------------------------

    def snapshot(self) -> BoardSnapshot:
        """Build the board snapshot for the current knowledge grid."""
        clues: Dict[int, Clue] = {}
        covered: List[int] = []
        flagged: List[int] = []
        for y, row in enumerate(self.knowledge):
            for x, v in enumerate(row):
                tile = coords_to_tile(x, y, self.board_width)
                if v is None:
                    covered.append(tile)
                elif v == "M":
                    flagged.append(tile)
                else:
                    clues[tile] = Clue(
                        frozenset(self._neighborhoods[tile]), int(str(v))
                    )
        return BoardSnapshot(
            width=self.board_width,
            height=self.board_height,
            clues=clues,
            covered=frozenset(covered),
            flagged=frozenset(flagged),
            total_mines=self.game.mines_count,
        )

    def _coords(self, tile: int) -> Tuple[int, int]:
        return tile_to_coords(tile, self.board_width)

    def _record_step(self, action: str, x: int, y: int) -> None:
        if not self.record_steps:
            return
        knowledge = [list(row) for row in self.knowledge]
        self.steps_history.append(
            dict(
                step_number=len(self.steps_history),
                action=action,
                cell=(x, y),
                method=self._current_method,
                knowledge_snapshot=knowledge,
            )
        )

    def mark_cell(self, x: int, y: int) -> None:
        """Mark a cell as a mine in solver state and flag it on the board."""
        if self.knowledge[y][x] is not None:
            return
        self.knowledge[y][x] = "M"
        self.game.toggle_flag(x, y)
        self.moves_sequence.append((x, y, "M"))
        self._record_step("mark", x, y)

    def metrics(self) -> Dict[str, Any]:
        return {
            "reveal_moves_count": self.reveal_moves_count,
            "turns_count": self.turns_count,
            "moves_sequence": self.moves_sequence,
            "steps_history": self.steps_history,
            "inferred_deterministic_count": self.inferred_deterministic_count,
            "attempted_deterministic_count": self.attempted_deterministic_count,
            "inferred_enumeration_count": self.inferred_enumeration_count,
            "probabilistic_guesses_boundary_count": self.probabilistic_guesses_boundary_count,
            "probabilistic_guesses_non_boundary_count": self.probabilistic_guesses_non_boundary_count,
            "fallback_guesses_count": self.fallback_guesses_count,
            "max_boundary_width": self.max_boundary_width,
            "max_scenarios": self.max_scenarios,
            "guess_probabilities": list(self.guess_probabilities),
        }

    def terminal_payload(
        self, status: int, game_payload: Dict[str, Any]
    ) -> Dict[str, Any]:
        """
        Metrics of a finished game plus how many safe tiles were uncovered
        and how many tiles were flagged.

        Raises:
            ValueError: If ``status`` is not terminal, or a loss payload lacks
                its revealed count.
        """
        if status not in (-1, 1):
            raise ValueError(f"Game is still running (status {status}).")

        out = self.metrics()
        if status == 1:
            safe_tiles = self.game.width * self.game.height - self.game.mines_count
            out["revealed_cells_count"] = safe_tiles
            out["markings_count"] = self.game.mines_count
            return out

        if "revealed_cells_count" not in game_payload:
            raise ValueError("Loss payload has no 'revealed_cells_count'.")
        out["revealed_cells_count"] = game_payload["revealed_cells_count"]
        out["markings_count"] = len(self.game.flagged)
        return out

    def reveal_cell(self, x: int, y: int) -> Tuple[int, Dict[str, Any]]:
        """
        Uncover (x, y) on the engine and copy what it shows into ``knowledge``.

        Returns:
            (status, payload): the engine payload while the game goes on, the
            dict from :meth:`terminal_payload` once it is won or lost.
        """
        self.moves_sequence.append((x, y, "S"))
        self.reveal_moves_count += 1
        status, payload = self.game.reveal(x, y)

        if status == -1:
            self._expose_mines(payload["all_mines"], x, y)
        elif status == 1:
            self._copy_revealed()
        else:
            cells = payload.get("revealed_cells")
            if not isinstance(cells, list):
                raise ValueError("Engine payload has no 'revealed_cells' list.")
            for cx, cy, value in cells:
                self.knowledge[cy][cx] = value
        self._record_step("reveal", x, y)

        if status == 0:
            return status, payload
        return status, self.terminal_payload(status, payload)

    def _expose_mines(self, mines: FrozenSet[Tuple[int, int]], hit_x: int, hit_y: int) -> None:
        for mx, my in mines:
            if self.knowledge[my][mx] != "M":
                self.knowledge[my][mx] = "X"
        self.knowledge[hit_y][hit_x] = "!"

    def _copy_revealed(self) -> None:
        for tile, is_open in enumerate(self.game.revealed):
            if is_open:
                x, y = self._coords(tile)
                self.knowledge[y][x] = self.game.board[tile]

    # -------------------------------------------------------------------------
    # Turn selection
    # -------------------------------------------------------------------------

    def _safe_deductions(self, snapshot: BoardSnapshot) -> Deductions:
        try:
            return self.agent.deterministic.solve(snapshot)
        except (BudgetExceededError, BoundaryTooWideError):
            return Deductions(frozenset(), frozenset())

    def local_density_guess(
        self, snapshot: BoardSnapshot, exclude: FrozenSet[int] = frozenset()
    ) -> Optional[Guess]:
        """
        Estimate mine probabilities without enumeration.

        Each boundary tile gets the average, over its adjacent clues, of
        remaining-mines / covered-neighbours; every other covered tile gets
        the global density.
        """
        covered = snapshot.covered - exclude
        if not covered:
            return None

        densities: Dict[int, Fraction] = {}
        for tile, clue in snapshot.clues.items():
            around = clue.neighbors & snapshot.covered
            if around:
                remaining = clue.value - len(clue.neighbors & snapshot.flagged)
                densities[tile] = Fraction(remaining, len(around))

        candidates: List[Tuple[Fraction, int]] = []
        for tile in snapshot.boundary_tiles():
            if tile not in covered:
                continue
            around = [densities[n] for n in self._neighborhoods[tile] if n in densities]
            candidates.append((sum(around, Fraction(0)) / len(around), tile))

        best: Optional[Guess] = None
        if candidates:
            p, tile = min(candidates)
            best = Guess(tile, p, True)

        outside = [t for t in snapshot.non_boundary_tiles() if t in covered]
        if outside:
            global_density = Fraction(snapshot.remaining_mines, len(snapshot.covered))
            if best is None or global_density <= best.probability:
                tile = ProbabilisticSolver.non_boundary_tile(snapshot)
                best = Guess(tile, global_density, False)

        return best

    def next_turn(self, snapshot: BoardSnapshot) -> TurnResult:
        """Ask the agent for a turn, falling back to local density when needed."""
        self.attempted_deterministic_count += 1
        if self.guessing_strategy == "exact":
            try:
                return self.agent.solve_turn(snapshot)
            except (BudgetExceededError, BoundaryTooWideError):
                self.fallback_guesses_count += 1

        deductions = self._safe_deductions(snapshot)
        if deductions.safe:
            return TurnResult(deductions.safe, deductions.mined)
        guess = self.local_density_guess(snapshot, deductions.mined)
        return TurnResult(deductions.safe, deductions.mined, guess)

    def _apply_certain(
        self, safe: Set[int], mined: Set[int]
    ) -> Tuple[int, Dict[str, Any]]:
        for tile in sorted(mined):
            x, y = self._coords(tile)
            self.mark_cell(x, y)
        for tile in sorted(safe):
            x, y = self._coords(tile)
            if self.knowledge[y][x] is None:
                status, payload = self.reveal_cell(x, y)
                if status in (-1, 1):
                    return status, payload
        return 0, {}

    # -------------------------------------------------------------------------
    # Main solving loop
    # -------------------------------------------------------------------------

    def solve(self) -> Tuple[int, Dict[str, Any]]:
        """
        Solve the game end-to-end by iterating turns until termination.

        Returns:
            Tuple of (status, payload) where status is -1 (loss) or 1 (win),
            and payload is the solver's terminal metrics dictionary.
        """
        if self.game.mines_generation_algorithm == "safe_first_action_rule":
            first_x, first_y = 0, 0
        else:
            first_x, first_y = self.board_width // 2, self.board_height // 2

        self._current_method = "first_move"
        status, payload = self.reveal_cell(first_x, first_y)
        if status in (-1, 1):
            return status, payload

        while True:
            self.turns_count += 1
            snapshot = self.snapshot()
            turn = self.next_turn(snapshot)

            # 1) Deterministic deductions
            self._current_method = "deterministic"
            if turn.safe or turn.mined:
                self.inferred_deterministic_count += len(turn.safe) + len(turn.mined)
                status, payload = self._apply_certain(set(turn.safe), set(turn.mined))
                if status in (-1, 1):
                    return status, payload
                if turn.safe:
                    continue

            # 2) Tiles forced by the enumeration
            result = turn.probabilities
            if result is not None:
                self.max_boundary_width = max(
                    self.max_boundary_width, len(result.probabilities)
                )
                self.max_scenarios = max(self.max_scenarios, result.scenarios)

                forced_safe = set(result.forced_safe())
                forced_mined = set(result.forced_mined()) - set(turn.mined)
                if forced_safe or forced_mined:
                    self._current_method = "enumeration"
                    self.inferred_enumeration_count += len(forced_safe) + len(forced_mined)
                    status, payload = self._apply_certain(forced_safe, forced_mined)
                    if status in (-1, 1):
                        return status, payload
                    if forced_safe:
                        continue

            # 3) Probabilistic guess
            guess = turn.guess
            if guess is None:
                raise RuntimeError("No covered tile is left to uncover.")

            self._current_method = "probabilistic_guess"
            if guess.from_boundary:
                self.probabilistic_guesses_boundary_count += 1
            else:
                self.probabilistic_guesses_non_boundary_count += 1
            self.guess_probabilities.append(float(guess.probability))

            x, y = self._coords(guess.tile)
            status, payload = self.reveal_cell(x, y)
            if status in (-1, 1):
                return status, payload
