import pytest

from minesolver import BoardSnapshot, Clue, InconsistentConstraintsError


def test_from_grid_round_trip():
    rows = ["..F", "121", "000"]
    snapshot = BoardSnapshot.from_grid(rows, total_mines=2)

    assert snapshot.width == 3
    assert snapshot.height == 3
    assert snapshot.covered == frozenset({0, 1})
    assert snapshot.flagged == frozenset({2})
    assert snapshot.remaining_mines == 1
    assert snapshot.clues[4] == Clue(frozenset({0, 1, 2, 3, 5, 6, 7, 8}), 2)
    assert snapshot.to_grid() == rows


def test_clue_constraints_subtract_flags():
    """Flagged neighbours reduce a clue; clues with no covered neighbour are skipped."""
    snapshot = BoardSnapshot.from_grid(["..F", "121", "000"], total_mines=2)

    assert snapshot.clue_constraints() == [
        (frozenset({0, 1}), 1),
        (frozenset({0, 1}), 1),
        (frozenset({1}), 0),
    ]


def test_clue_without_covered_neighbors_must_match_its_flags():
    snapshot = BoardSnapshot.from_grid(["F20.."], total_mines=2)

    assert snapshot.total_tiles == 5
    with pytest.raises(InconsistentConstraintsError):
        snapshot.clue_constraints()


def test_boundary_and_non_boundary(board_with_interior):
    assert board_with_interior.boundary_tiles() == [0, 1, 2, 3, 8, 9, 10, 11]
    assert board_with_interior.non_boundary_tiles() == [12, 13, 14, 15]


@pytest.mark.parametrize(
    "rows, mines",
    [
        (["..", ".."], 5),
        (["F.", ".."], 0),
        (["9.", ".."], 1),
        (["ab"], 0),
        ([".", ".."], 0),
        ([], 0),
    ],
)
def test_invalid_grids_are_rejected(rows, mines):
    with pytest.raises(ValueError):
        BoardSnapshot.from_grid(rows, total_mines=mines)


def test_overlapping_states_are_rejected():
    with pytest.raises(ValueError):
        BoardSnapshot(
            width=2,
            height=1,
            clues={},
            covered=frozenset({0, 1}),
            flagged=frozenset({1}),
            total_mines=1,
        )
    with pytest.raises(ValueError):
        BoardSnapshot(
            width=2,
            height=1,
            clues={0: Clue(frozenset({1}), 1)},
            covered=frozenset({0, 1}),
            flagged=frozenset(),
            total_mines=1,
        )


def test_distance_is_squared_euclidean():
    snapshot = BoardSnapshot.from_grid(["....", "...."], total_mines=0)

    assert snapshot.distance(0, 7) == 9 + 1
    assert snapshot.neighbors(0) == (1, 4, 5)
