"""Board geometry helpers shared by the engine, the snapshot and the solvers."""

from typing import Callable, Dict, List, Tuple

# Module-level cache: (width, height) -> tuple indexed by tile -> neighbor tiles
_NEIGHBORHOODS_CACHE: Dict[Tuple[int, int], Tuple[Tuple[int, ...], ...]] = {}


def get_neighborhoods(width: int, height: int) -> Tuple[Tuple[int, ...], ...]:
    """
    Precompute and cache 8-connected neighbor tiles for every tile in a grid.

    Tiles are row-major indices, ``tile = y * width + x``.

    Args:
        width: Grid width (number of columns). Must be positive.
        height: Grid height (number of rows). Must be positive.

    Returns:
        A tuple whose entry ``t`` holds the neighbor indices of tile ``t``
        under 8-connectivity, in ascending order.

    Raises:
        ValueError: If width or height is non-positive.
    """
    if width <= 0 or height <= 0:
        raise ValueError("width and height must be positive.")

    key = (width, height)
    cached = _NEIGHBORHOODS_CACHE.get(key)
    if cached is not None:
        return cached

    neighborhoods: List[Tuple[int, ...]] = []
    for y in range(height):
        for x in range(width):
            nbrs: List[int] = []
            for dy in (-1, 0, 1):
                for dx in (-1, 0, 1):
                    if dx == 0 and dy == 0:
                        continue
                    nx, ny = x + dx, y + dy
                    if 0 <= nx < width and 0 <= ny < height:
                        nbrs.append(ny * width + nx)
            neighborhoods.append(tuple(nbrs))

    result = tuple(neighborhoods)
    _NEIGHBORHOODS_CACHE[key] = result
    return result


def tile_to_coords(tile: int, width: int) -> Tuple[int, int]:
    """Return the (x, y) coordinates of a row-major tile index."""
    return tile % width, tile // width


def coords_to_tile(x: int, y: int, width: int) -> int:
    """Return the row-major tile index of (x, y)."""
    return y * width + x


def squared_distance(a: int, b: int, width: int) -> int:
    """Squared Euclidean board distance between two tiles."""
    ax, ay = a % width, a // width
    bx, by = b % width, b // width
    return (ax - bx) ** 2 + (ay - by) ** 2


def format_grid(
    width: int,
    height: int,
    cell: Callable[[int], str],
    show_coords: bool = True,
) -> str:
    """
    Lay out one short string per tile as a text grid.

    Args:
        width: Grid width.
        height: Grid height.
        cell: Maps a tile index to the text shown for it.
        show_coords: If True, add column labels and row labels.
    """
    lines: List[str] = []
    if show_coords:
        lines.append("   " + " ".join(f"{x:2d}" for x in range(width)))
        lines.append("   " + "-" * (3 * width - 1))
    for y in range(height):
        row = " ".join(f"{cell(y * width + x):>2}" for x in range(width))
        lines.append(f"{y:2d} |" + row if show_coords else row)
    return "\n".join(lines)
