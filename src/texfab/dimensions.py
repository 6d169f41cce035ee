"""
Texture Dimensions - 1D, 2D and 3D extents and their mip chains.
"""

from __future__ import annotations

from typing import Iterable, Iterator

from .errors import DimensionError


class Dimensions:
    """Immutable texture extents in (width, height, depth) order."""

    __slots__ = ("_extents",)

    def __init__(self, *extents: int) -> None:
        if len(extents) == 1 and not isinstance(extents[0], int):
            extents = tuple(extents[0])  # Dimensions([w, h]) or Dimensions((w, h))

        if not 1 <= len(extents) <= 3:
            raise DimensionError(
                f"Dimensions must have between 1 and 3 extents, got {len(extents)}"
            )
        for extent in extents:
            if not isinstance(extent, int) or isinstance(extent, bool):
                raise DimensionError(f"Extent {extent!r} is not an integer")
            if extent < 1:
                raise DimensionError(f"Extent {extent} must be at least 1")

        self._extents: tuple[int, ...] = tuple(extents)

    @classmethod
    def of(cls, extents: Iterable[int]) -> Dimensions:
        return cls(*extents)

    @property
    def ndim(self) -> int:
        return len(self._extents)

    @property
    def width(self) -> int:
        return self._extents[0]

    @property
    def height(self) -> int:
        return self._extents[1] if self.ndim >= 2 else 1

    @property
    def depth(self) -> int:
        return self._extents[2] if self.ndim == 3 else 1

    def mips(self) -> Iterator[Dimensions]:
        """
        Yield the mip chain starting with these dimensions.

        Each level halves every extent (never below 1). The chain ends after
        the first level whose extents are all 1.
        """
        current = self
        while True:
            yield current
            if all(x <= 1 for x in current._extents):
                return
            current = Dimensions(*(max(x // 2, 1) for x in current._extents))

    def mip_count(self) -> int:
        return sum(1 for _ in self.mips())

    def __iter__(self) -> Iterator[int]:
        return iter(self._extents)

    def __len__(self) -> int:
        return self.ndim

    def as_tuple(self) -> tuple[int, ...]:
        return self._extents

    def __eq__(self, other: object) -> bool:
        if isinstance(other, Dimensions):
            return self._extents == other._extents
        if isinstance(other, tuple):
            return self._extents == other
        return NotImplemented

    def __hash__(self) -> int:
        return hash(self._extents)

    def __repr__(self) -> str:
        return f"Dimensions({', '.join(str(x) for x in self._extents)})"

    def __str__(self) -> str:
        return "x".join(str(x) for x in self._extents)
