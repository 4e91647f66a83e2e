"""Exception hierarchy for the inference core."""


class SolverError(RuntimeError):
    """Base class for failures raised while solving a board snapshot."""


class InconsistentBoardError(SolverError):
    """The snapshot cannot describe a real board; callers should not retry."""


class InconsistentConstraintsError(InconsistentBoardError):
    """Clues or the mine count demand a bound that cannot be met."""


class EmptyAssignmentSetError(InconsistentBoardError):
    """No bomb placement on the boundary satisfies every clue."""


class BudgetExceededError(SolverError):
    """
    Search was abandoned because a step, candidate or time budget ran out,
    or because it was cancelled from another thread.

    Recoverable: the caller is expected to fall back to a cheaper guess.
    """


class BoundaryTooWideError(ValueError):
    """The boundary holds more tiles than a bit mask can represent."""
