"""Fixed-capacity bit sets over locally renumbered boundary tiles."""

from typing import Iterable, Iterator, List

from .errors import BoundaryTooWideError

CAPACITY = 128
FULL = (1 << CAPACITY) - 1


def popcount(bits: int) -> int:
    """Number of set bits in a non-negative integer."""
    return bin(bits).count("1")


def iter_bits(bits: int) -> Iterator[int]:
    """Yield the positions of the set bits, lowest first."""
    while bits:
        low = bits & -bits
        yield low.bit_length() - 1
        bits ^= low


def low_mask(width: int) -> int:
    """Mask with the lowest ``width`` bits set."""
    return (1 << width) - 1


class BitSet128:
    """
    Immutable set of tile indices in ``range(CAPACITY)``, stored as one int.

    The same type is used both for membership ("these tiles") and for
    assignment ("these tiles hold a bomb"); which one is meant is decided
    by the operation using it. Hot loops work on ``.bits`` directly.
    """

    __slots__ = ("bits",)

    def __init__(self, bits: int = 0) -> None:
        if bits < 0 or bits > FULL:
            raise BoundaryTooWideError(
                f"bit set value does not fit in {CAPACITY} bits."
            )
        self.bits = bits

    @classmethod
    def from_indices(cls, indices: Iterable[int]) -> "BitSet128":
        """Build a set from tile indices, validating each against CAPACITY."""
        bits = 0
        for i in indices:
            if i < 0 or i >= CAPACITY:
                raise BoundaryTooWideError(
                    f"tile index {i} outside of 0..{CAPACITY - 1}."
                )
            bits |= 1 << i
        return cls(bits)

    @classmethod
    def full(cls, width: int) -> "BitSet128":
        """The set {0, ..., width - 1}."""
        if width < 0 or width > CAPACITY:
            raise BoundaryTooWideError(
                f"cannot hold {width} tiles in a {CAPACITY}-bit set."
            )
        return cls(low_mask(width))

    def indices(self) -> List[int]:
        return list(iter_bits(self.bits))

    def popcount(self) -> int:
        return popcount(self.bits)

    def union(self, other: "BitSet128") -> "BitSet128":
        return BitSet128(self.bits | other.bits)

    def intersection(self, other: "BitSet128") -> "BitSet128":
        return BitSet128(self.bits & other.bits)

    def difference(self, other: "BitSet128") -> "BitSet128":
        return BitSet128(self.bits & ~other.bits)

    def complement(self, within: "BitSet128") -> "BitSet128":
        """Tiles of ``within`` that are not in this set."""
        return BitSet128(within.bits & ~self.bits)

    def issubset(self, other: "BitSet128") -> bool:
        return self.bits & ~other.bits == 0

    def isdisjoint(self, other: "BitSet128") -> bool:
        return self.bits & other.bits == 0

    __or__ = union
    __and__ = intersection
    __sub__ = difference
    __le__ = issubset

    def __len__(self) -> int:
        return popcount(self.bits)

    def __iter__(self) -> Iterator[int]:
        return iter_bits(self.bits)

    def __contains__(self, index: object) -> bool:
        return isinstance(index, int) and 0 <= index < CAPACITY and bool(
            self.bits >> index & 1
        )

    def __bool__(self) -> bool:
        return self.bits != 0

    def __eq__(self, other: object) -> bool:
        if isinstance(other, BitSet128):
            return self.bits == other.bits
        return NotImplemented

    def __hash__(self) -> int:
        return hash(self.bits)

    def __repr__(self) -> str:
        return f"BitSet128({self.indices()})"
