import random

import pytest

from minesolver import Minesweeper


def test_flood_fill_opens_the_zero_region():
    game = Minesweeper.from_mines(3, 3, [(0, 0)])

    status, payload = game.reveal(2, 2)

    assert status == 1
    assert len(payload["revealed_cells"]) == 8
    assert (1, 1, "1") in payload["revealed_cells"]


def test_hitting_a_mine():
    game = Minesweeper.from_mines(3, 3, [(0, 0)])

    status, payload = game.reveal(0, 0)

    assert status == -1
    assert payload == {"revealed_cells_count": 0, "all_mines": frozenset({(0, 0)})}
    assert game.reveal(1, 1) == (0, {})


@pytest.mark.parametrize("algorithm", ["safe_first_action_rule", "safe_neighborhood_rule"])
def test_first_move_is_safe(algorithm):
    game = Minesweeper(9, 9, 10, mines_generation_algorithm=algorithm, rng=random.Random(3))

    status, _ = game.reveal(4, 4)

    assert status in (0, 1)
    assert len(game.mine_tiles()) == 10
    assert game.tile(4, 4) not in game.mine_tiles()
    if algorithm == "safe_neighborhood_rule":
        for nx, ny in game.neighbors(4, 4):
            assert game.value(nx, ny) != "M"


def test_flags_block_reveals():
    game = Minesweeper.from_mines(3, 3, [(0, 0)])

    assert game.toggle_flag(0, 0)
    assert game.reveal(0, 0) == (0, {})
    assert not game.toggle_flag(0, 0)


def test_snapshot_reflects_visible_state():
    game = Minesweeper.from_mines(3, 1, [(0, 0)])
    game.reveal(1, 0)
    game.toggle_flag(0, 0)

    snapshot = game.snapshot()

    assert snapshot.to_grid() == ["F1."]
    assert snapshot.remaining_mines == 0


@pytest.mark.parametrize(
    "args, kwargs",
    [
        ((0, 5, 1), {}),
        ((5, 5, -1), {}),
        ((3, 3, 1), {}),
        ((3, 3, 1), {"mines_generation_algorithm": "anywhere"}),
    ],
)
def test_invalid_games(args, kwargs):
    with pytest.raises(ValueError):
        Minesweeper(*args, **kwargs)


def test_format_board():
    game = Minesweeper.from_mines(2, 1, [(1, 0)])

    assert game.format_board().splitlines()[-1] == " 0 | .  ."
    assert game.format_board(reveal_all=True).splitlines()[-1] == " 0 | 1  M"
