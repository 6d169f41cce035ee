"""Tests for the texture shape tree."""

import pytest

from texfab.dimensions import Dimensions
from texfab.errors import ShapeError
from texfab.shape import ALL_FACES, CubeFace, TextureShape
from texfab.texture import Surface


def surf(*extents: int, tag: bytes = b"") -> Surface:
    """Helper to create a surface; ``tag`` makes surfaces distinguishable."""
    return Surface(Dimensions(*extents), tag)


def mipmap(width: int, height: int, levels: int | None = None, tag: bytes = b"") -> TextureShape:
    chain = list(Dimensions(width, height).mips())[:levels]
    return TextureShape.from_mips(surf(*d, tag=tag) for d in chain)


def cube(width: int = 4, mips: int | None = None) -> TextureShape:
    if mips is None:
        return TextureShape.from_faces(
            (f, surf(width, width, tag=f.suffix.encode())) for f in ALL_FACES
        )
    return TextureShape.from_faces(
        (f, mipmap(width, width, mips, tag=f.suffix.encode())) for f in ALL_FACES
    )


class TestCubeFace:
    def test_suffixes(self) -> None:
        assert [f.suffix for f in CubeFace] == ["+X", "-X", "+Y", "-Y", "+Z", "-Z"]


class TestConstruction:
    """Tests for shape constructors and their invariants."""

    def test_surface(self) -> None:
        shape = TextureShape.from_surface(surf(4, 4))
        assert shape.is_surface
        assert shape.mips() is None
        assert shape.layers() is None
        assert shape.faces() is None
        assert len(shape) == 1

    def test_full_mip_chain(self) -> None:
        shape = mipmap(8, 8)
        assert shape.mips() == 4
        assert shape.dimensions == (8, 8)

    def test_partial_mip_chain(self) -> None:
        assert mipmap(8, 8, 2).mips() == 2

    def test_invalid_mip_chain(self) -> None:
        with pytest.raises(ShapeError, match="valid mipchain"):
            TextureShape.from_mips([surf(8, 8), surf(2, 2)])

    def test_empty_inputs(self) -> None:
        with pytest.raises(ShapeError, match="mipmap cannot be empty"):
            TextureShape.from_mips([])
        with pytest.raises(ShapeError, match="cube cannot be empty"):
            TextureShape.from_faces([])
        with pytest.raises(ShapeError, match="array cannot be empty"):
            TextureShape.from_layers([])

    def test_nested_structures_rejected(self) -> None:
        with pytest.raises(ShapeError, match="Tried to form mipmap"):
            TextureShape.from_mips([mipmap(4, 4)])
        with pytest.raises(ShapeError, match="Tried to form array"):
            TextureShape.from_layers([TextureShape.from_layers([surf(2, 2)])])
        with pytest.raises(ShapeError, match="Tried to form cube"):
            TextureShape.from_faces([(CubeFace.POSITIVE_X, cube())])

    def test_duplicate_face(self) -> None:
        with pytest.raises(ShapeError, match="same cubemap face"):
            TextureShape.from_faces(
                [(CubeFace.POSITIVE_X, surf(2, 2)), (CubeFace.POSITIVE_X, surf(2, 2))]
            )

    def test_non_uniform_layers(self) -> None:
        with pytest.raises(ShapeError, match="Non-uniform dimensions"):
            TextureShape.from_layers([surf(2, 2), surf(4, 4)])
        with pytest.raises(ShapeError, match="Non-uniform mips"):
            TextureShape.from_layers([mipmap(4, 4), mipmap(4, 4, 2)])

    def test_faces_sorted_and_partial(self) -> None:
        shape = TextureShape.from_faces(
            [(CubeFace.NEGATIVE_Z, surf(2, 2)), (CubeFace.POSITIVE_Y, surf(2, 2))]
        )
        assert shape.faces() == [CubeFace.POSITIVE_Y, CubeFace.NEGATIVE_Z]

    def test_single_surface_structures(self) -> None:
        """Any shape holding exactly one surface counts as a surface."""
        one_level = mipmap(4, 4, 1)
        assert one_level.is_surface
        assert one_level.try_into_surface() is None
        assert TextureShape.from_faces([(CubeFace.POSITIVE_Z, surf(2, 2))]).is_surface
        assert not mipmap(4, 4, 2).is_surface
        assert not cube(2).is_surface

    def test_len_counts_every_surface(self) -> None:
        shape = TextureShape.from_layers([cube(4, mips=3), cube(4, mips=3)])
        assert shape.layers() == 2
        assert len(shape.faces()) == 6
        assert shape.mips() == 3
        assert len(shape) == 36


class TestSlicing:
    """Tests for get/get_layer/get_face/get_mip."""

    def test_single_index_unwraps(self) -> None:
        shape = mipmap(4, 4)
        level = shape.get_mip(1)
        assert level.is_surface
        assert level.dimensions == (2, 2)

    def test_out_of_range_and_absent(self) -> None:
        shape = mipmap(4, 4)
        assert shape.get_mip(7) is None
        assert shape.get_layer(0) is None
        assert shape.get_face(CubeFace.POSITIVE_X) is None

    def test_slice_keeps_structure(self) -> None:
        shape = mipmap(8, 8)
        top = shape.get_mip(slice(0, 2))
        assert top.mips() == 2

    def test_index_through_other_structures(self) -> None:
        shape = cube(4, mips=3)
        smallest = shape.get_mip(2)
        assert smallest.faces() == list(ALL_FACES)
        assert smallest.mips() is None
        assert smallest.dimensions == (1, 1)

    def test_face_lookup(self) -> None:
        shape = cube()
        face = shape.get_face(CubeFace.NEGATIVE_Y)
        assert face.try_into_surface().buffer == b"-Y"


class TestIteration:
    def test_absent_structures_yield_self(self) -> None:
        shape = TextureShape.from_surface(surf(2, 2))
        assert list(shape.iter_layers()) == [(None, shape)]
        assert list(shape.iter_faces()) == [(None, shape)]
        assert list(shape.iter_mips()) == [(None, shape)]

    def test_iter_surfaces_order(self) -> None:
        shape = cube(2, mips=2)
        indices = [(s.mip, s.face) for s in shape.iter_surfaces()]
        assert indices[:6] == [(0, f) for f in ALL_FACES]
        assert indices[6:] == [(1, f) for f in ALL_FACES]

    def test_primary_is_first_face_top_mip(self) -> None:
        shape = TextureShape.from_faces(
            [
                (CubeFace.NEGATIVE_X, mipmap(4, 4, tag=b"nx")),
                (CubeFace.POSITIVE_Z, mipmap(4, 4, tag=b"pz")),
            ]
        )
        primary = shape.primary()
        assert primary.buffer == b"nx"
        assert primary.dimensions == (4, 4)
