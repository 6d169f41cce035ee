"""
Texture Shape - Tree structure of texture surfaces.

A texture is made up of one or more surfaces arranged by any combination of
an array structure, a cubemap structure and a mipmap structure. The shape
tree guarantees:

- it contains at least one surface
- each structure appears at most once on any path (no arrays of arrays, no
  cubes of cubes)
- all surfaces with the same mip index have matching dimensions
- mip i+1 has half the dimensions of mip i
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from itertools import islice
from typing import Any, Callable, Generic, Iterable, Iterator, Optional, Protocol, TypeVar

from .dimensions import Dimensions
from .errors import ShapeError


class CubeFace(Enum):
    """One face of a cubemap, in canonical order."""

    POSITIVE_X = 0
    NEGATIVE_X = 1
    POSITIVE_Y = 2
    NEGATIVE_Y = 3
    POSITIVE_Z = 4
    NEGATIVE_Z = 5

    @property
    def suffix(self) -> str:
        """Suffix used by Blender, cmft and nvassemble file names (``+X``, ``-Z`` ...)."""
        sign = "+" if self.value % 2 == 0 else "-"
        return sign + "XYZ"[self.value // 2]

    def __lt__(self, other: CubeFace) -> bool:
        return self.value < other.value


ALL_FACES: tuple[CubeFace, ...] = tuple(CubeFace)


class Dimensioned(Protocol):
    @property
    def dimensions(self) -> Dimensions: ...


S = TypeVar("S", bound=Dimensioned)


class ShapeKind(str, Enum):
    ARRAY = "array"
    CUBE = "cube"
    MIPMAP = "mipmap"
    SURFACE = "surface"


@dataclass(frozen=True)
class TextureIndex:
    """Index into one structure of a texture shape."""

    kind: ShapeKind
    value: Any

    @classmethod
    def layer(cls, index: int | slice) -> TextureIndex:
        return cls(ShapeKind.ARRAY, index)

    @classmethod
    def face(cls, face: CubeFace) -> TextureIndex:
        return cls(ShapeKind.CUBE, face)

    @classmethod
    def mip(cls, index: int | slice) -> TextureIndex:
        return cls(ShapeKind.MIPMAP, index)


@dataclass(frozen=True)
class SurfaceIndex(Generic[S]):
    """A single surface together with its position in the texture."""

    layer: Optional[int]
    face: Optional[CubeFace]
    mip: Optional[int]
    surface: S


def _select(items: list, index: int | slice) -> list:
    if isinstance(index, slice):
        return items[index]
    if 0 <= index < len(items):
        return [items[index]]
    return []


class TextureShape(Generic[S]):
    """One node of the texture shape tree."""

    __slots__ = ("kind", "_children", "_surface")

    def __init__(
        self,
        kind: ShapeKind,
        children: list[TextureShape[S]] | dict[CubeFace, TextureShape[S]] | None = None,
        surface: S | None = None,
    ) -> None:
        self.kind = kind
        self._children = children
        self._surface = surface

    # Construction

    @classmethod
    def from_surface(cls, surface: S) -> TextureShape[S]:
        return cls(ShapeKind.SURFACE, surface=surface)

    @classmethod
    def _wrap(cls, item: S | TextureShape[S]) -> TextureShape[S]:
        return item if isinstance(item, TextureShape) else cls.from_surface(item)

    @classmethod
    def from_mips(cls, mips: Iterable[S | TextureShape[S]]) -> TextureShape[S]:
        """
        Build a mipmap from textures ordered from largest to smallest.

        The chain may stop before 1x1: DDS files routinely store only the top
        few levels, so each texture only has to halve the one before it.

        Raises ShapeError if there are no textures, if any of them already has a
        mipmap, if they do not share layers and faces, or if their dimensions do
        not follow the mip chain of the first texture.
        """
        nodes = [cls._wrap(m) for m in mips]
        if not nodes:
            raise ShapeError("mipmap cannot be empty")

        expected = list(islice(nodes[0].dimensions.mips(), len(nodes)))
        if [n.dimensions for n in nodes] != expected:
            raise ShapeError("Textures do not have dimensions that form a valid mipchain")

        _check_uniform(nodes, lambda n: n.layers(), "layers")
        _check_uniform(nodes, lambda n: n.faces(), "faces")
        _check_not_nested(nodes, lambda n: n.mips(), "mipmap")

        return cls(ShapeKind.MIPMAP, children=nodes)

    @classmethod
    def from_faces(
        cls, faces: Iterable[tuple[CubeFace, S | TextureShape[S]]]
    ) -> TextureShape[S]:
        """
        Build a cubemap from (face, texture) pairs. Partial cubemaps are allowed.

        Raises ShapeError on duplicate faces, empty input, nested cubemaps, or
        faces that differ in dimensions, mips or layers.
        """
        by_face: dict[CubeFace, TextureShape[S]] = {}
        for face, item in faces:
            if face in by_face:
                raise ShapeError("Multiple textures provided for the same cubemap face")
            by_face[face] = cls._wrap(item)

        if not by_face:
            raise ShapeError("cube cannot be empty")

        nodes = list(by_face.values())
        _check_uniform(nodes, lambda n: n.dimensions, "dimensions")
        _check_uniform(nodes, lambda n: n.mips(), "mips")
        _check_uniform(nodes, lambda n: n.layers(), "layers")
        _check_not_nested(nodes, lambda n: n.faces(), "cube")

        ordered = {face: by_face[face] for face in sorted(by_face)}
        return cls(ShapeKind.CUBE, children=ordered)

    @classmethod
    def from_layers(cls, layers: Iterable[S | TextureShape[S]]) -> TextureShape[S]:
        """Build a texture array. All layers must share dimensions, mips and faces."""
        nodes = [cls._wrap(layer) for layer in layers]
        if not nodes:
            raise ShapeError("array cannot be empty")

        _check_uniform(nodes, lambda n: n.dimensions, "dimensions")
        _check_uniform(nodes, lambda n: n.mips(), "mips")
        _check_uniform(nodes, lambda n: n.faces(), "faces")
        _check_not_nested(nodes, lambda n: n.layers(), "array")

        return cls(ShapeKind.ARRAY, children=nodes)

    # Structure queries

    def _first_inner(self) -> TextureShape[S]:
        if self.kind == ShapeKind.SURFACE:
            return self
        if self.kind == ShapeKind.CUBE:
            return next(iter(self._children.values()))
        return self._children[0]

    @property
    def dimensions(self) -> Dimensions:
        if self.kind == ShapeKind.SURFACE:
            return self._surface.dimensions
        return self._first_inner().dimensions

    def mips(self) -> Optional[int]:
        """Number of mips, or None if there is no mipmap structure."""
        if self.kind == ShapeKind.SURFACE:
            return None
        if self.kind == ShapeKind.MIPMAP:
            return len(self._children)
        return self._first_inner().mips()

    def layers(self) -> Optional[int]:
        """Number of array layers, or None if there is no array structure."""
        if self.kind == ShapeKind.SURFACE:
            return None
        if self.kind == ShapeKind.ARRAY:
            return len(self._children)
        return self._first_inner().layers()

    def faces(self) -> Optional[list[CubeFace]]:
        """Cubemap faces present, in canonical order, or None if there is no cubemap."""
        if self.kind == ShapeKind.SURFACE:
            return None
        if self.kind == ShapeKind.CUBE:
            return list(self._children.keys())
        return self._first_inner().faces()

    def __len__(self) -> int:
        faces = self.faces()
        return (self.mips() or 1) * (self.layers() or 1) * (len(faces) if faces else 1)

    @property
    def is_surface(self) -> bool:
        """True when the shape holds exactly one surface, such as a one-level mipmap."""
        return len(self) == 1

    def try_into_surface(self) -> Optional[S]:
        return self._surface if self.kind == ShapeKind.SURFACE else None

    # Slicing

    def get(self, index: TextureIndex) -> Optional[TextureShape[S]]:
        """
        Return the texture made of all surfaces matching ``index``.

        Returns None if the indexed structure is not present or nothing matches.
        Selecting a single element unwraps the structure.
        """
        if self.kind == ShapeKind.SURFACE:
            return None

        if self.kind == ShapeKind.CUBE:
            if index.kind == ShapeKind.CUBE:
                return self._children.get(index.value)
            sliced = {}
            for face, child in self._children.items():
                sub = child.get(index)
                if sub is None:
                    return None
                sliced[face] = sub
            return TextureShape(ShapeKind.CUBE, children=sliced)

        if self.kind == index.kind:
            selected = _select(self._children, index.value)
            if not selected:
                return None
            if len(selected) == 1:
                return selected[0]
            return TextureShape(self.kind, children=selected)

        sliced_list = []
        for child in self._children:
            sub = child.get(index)
            if sub is None:
                return None
            sliced_list.append(sub)
        return TextureShape(self.kind, children=sliced_list)

    def get_layer(self, index: int | slice) -> Optional[TextureShape[S]]:
        return self.get(TextureIndex.layer(index))

    def get_face(self, face: CubeFace) -> Optional[TextureShape[S]]:
        return self.get(TextureIndex.face(face))

    def get_mip(self, index: int | slice) -> Optional[TextureShape[S]]:
        return self.get(TextureIndex.mip(index))

    # Iteration

    def iter_layers(self) -> Iterator[tuple[Optional[int], TextureShape[S]]]:
        """Yield (layer, texture) pairs, or a single (None, self) without an array."""
        layers = self.layers()
        if layers is None:
            yield None, self
            return
        for layer in range(layers):
            yield layer, self.get_layer(layer)

    def iter_faces(self) -> Iterator[tuple[Optional[CubeFace], TextureShape[S]]]:
        """Yield (face, texture) pairs, or a single (None, self) without a cubemap."""
        faces = self.faces()
        if faces is None:
            yield None, self
            return
        for face in faces:
            yield face, self.get_face(face)

    def iter_mips(self) -> Iterator[tuple[Optional[int], TextureShape[S]]]:
        """Yield (mip, texture) pairs, or a single (None, self) without a mipmap."""
        mips = self.mips()
        if mips is None:
            yield None, self
            return
        for mip in range(mips):
            yield mip, self.get_mip(mip)

    def iter_surfaces(self) -> Iterator[SurfaceIndex[S]]:
        """Iterate over every surface with its layer, face and mip index."""
        for mip, by_mip in self.iter_mips():
            for face, by_face in by_mip.iter_faces():
                for layer, by_layer in by_face.iter_layers():
                    surface = by_layer.try_into_surface()
                    assert surface is not None, "innermost shape is not a surface"
                    yield SurfaceIndex(layer=layer, face=face, mip=mip, surface=surface)

    def primary(self) -> S:
        """Layer 0, mip 0 of the first cubemap face present (if any)."""
        node: TextureShape[S] = self
        faces = node.faces()
        if faces:
            node = node.get_face(faces[0])
        node = node.get_layer(0) or node
        node = node.get_mip(0) or node
        surface = node.try_into_surface()
        assert surface is not None
        return surface

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, TextureShape):
            return NotImplemented
        return (
            self.kind == other.kind
            and self._children == other._children
            and self._surface == other._surface
        )

    def __repr__(self) -> str:
        if self.kind == ShapeKind.SURFACE:
            return f"TextureShape(surface={self._surface!r})"
        return f"TextureShape({self.kind.value}, {self._children!r})"


def _check_uniform(
    nodes: list[TextureShape], fn: Callable[[TextureShape], Any], what: str
) -> None:
    values = [fn(n) for n in nodes]
    if any(v != values[0] for v in values[1:]):
        raise ShapeError(f"Non-uniform {what} in provided textures")


def _check_not_nested(
    nodes: list[TextureShape], fn: Callable[[TextureShape], Any], what: str
) -> None:
    if any(fn(n) is not None for n in nodes):
        raise ShapeError(f"Tried to form {what} out of textures that already have {what}s")
