"""
DDS Container - DirectDraw Surface reader and writer.

Supports the legacy header (pixel format masks or a fourCC code, partial
cubemaps, no arrays) and the DX10 extension header (DXGI formats, arrays,
1D textures, complete cubemaps only).

Surfaces are stored layer by layer; within a layer face by face in
+X, -X, +Y, -Y, +Z, -Z order; within a face from the largest mip down.
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import BinaryIO, Optional

import structlog

from ...dimensions import Dimensions
from ...errors import CapabilityError, FormatError, TextureError
from ...format import Format, S3TCFormat, UncompressedFormat
from ...shape import ALL_FACES, CubeFace, TextureShape
from ...texture import Surface, SurfaceReader, Texture
from .. import ContainerHeader
from .dx10_header import (
    AlphaMode,
    Dimensionality,
    DX10Header,
    DXGIFormat,
    dxgi_from_format,
    format_from_dxgi,
)
from .header import CUBEMAP_FACES, Caps1, Caps2, DDSFlags, RawDDSHeader, cubemap_order
from .pixel_format import PixelFormat

logger = structlog.get_logger()


class DDSHeaderMode(str, Enum):
    PREFER_LEGACY = "prefer-legacy"
    FORCE_LEGACY = "force-legacy"
    FORCE_DX10 = "force-dx10"


@dataclass
class DDSHeaderArgs:
    """Options for building a header from a texture."""

    mode: DDSHeaderMode = DDSHeaderMode.PREFER_LEGACY


class DDSHeader(ContainerHeader):
    """A parsed DDS header; either a LegacyDDSHeader or a DX10DDSHeader."""

    def __init__(self, dimensions: Dimensions, mips: Optional[int] = None) -> None:
        self._dimensions = dimensions
        self._mips = mips

    def dimensions(self) -> Dimensions:
        return self._dimensions

    def mips(self) -> Optional[int]:
        return self._mips

    @property
    def is_dx10(self) -> bool:
        return False

    # Reading

    @classmethod
    def read(cls, stream: BinaryIO) -> DDSHeader:
        return cls.from_raw(RawDDSHeader.read(stream))

    @classmethod
    def from_raw(cls, raw: RawDDSHeader) -> DDSHeader:
        if raw.dx10 is not None:
            return DX10DDSHeader.from_raw(raw)
        return LegacyDDSHeader.from_raw(raw)

    @staticmethod
    def _raw_mips(raw: RawDDSHeader) -> Optional[int]:
        has_mips = bool(raw.flags & DDSFlags.MIPMAP_COUNT) or raw.mipmap_count > 1
        if has_mips and raw.mipmap_count > 0:
            return raw.mipmap_count
        return None

    def read_surfaces(self, stream: BinaryIO) -> TextureShape[Surface]:
        reader = SurfaceReader(self.format(), stream)
        faces = self.faces()
        if faces is not None:
            faces = sorted(faces, key=cubemap_order)
        mips = self.mips()

        def read_mips(r: SurfaceReader, dims: Dimensions) -> TextureShape[Surface]:
            return r.read_mips(dims, mips, SurfaceReader.read_surface)

        def read_faces(r: SurfaceReader, dims: Dimensions) -> TextureShape[Surface]:
            return r.read_faces(dims, faces, read_mips)

        return reader.read_layers(self.dimensions(), self.layers(), read_faces)

    # Writing

    @classmethod
    def from_texture(cls, texture: Texture, args: DDSHeaderArgs | None = None) -> DDSHeader:
        """
        Build a header for ``texture``.

        In PREFER_LEGACY mode a legacy header is tried first and DX10 is used if
        the texture has layers or a format the legacy pixel format cannot express.
        """
        mode = (args or DDSHeaderArgs()).mode
        if mode != DDSHeaderMode.FORCE_DX10:
            try:
                return LegacyDDSHeader.for_texture(texture)
            except (CapabilityError, FormatError) as e:
                if mode == DDSHeaderMode.FORCE_LEGACY:
                    raise
                logger.debug("Using DX10 header", reason=str(e))
        return DX10DDSHeader.for_texture(texture)

    def to_raw(self) -> RawDDSHeader:
        dims = self.dimensions()
        raw = RawDDSHeader(
            flags=DDSFlags.CAPS | DDSFlags.HEIGHT | DDSFlags.WIDTH | DDSFlags.PIXEL_FORMAT,
            height=dims.height,
            width=dims.width,
        )

        fmt = self.format()
        if isinstance(fmt, UncompressedFormat):
            raw.flags |= DDSFlags.PITCH
            raw.pitch_or_linear_size = fmt.pitch * dims.width
        elif isinstance(fmt, S3TCFormat):
            raw.flags |= DDSFlags.LINEAR_SIZE
            raw.pitch_or_linear_size = fmt.size_for(Dimensions(dims.width, dims.height))

        if self.mips() is not None:
            raw.flags |= DDSFlags.MIPMAP_COUNT
            raw.mipmap_count = self.mips()
            raw.caps1 |= Caps1.COMPLEX | Caps1.MIPMAP

        faces = self.faces()
        if faces is not None:
            raw.caps1 |= Caps1.COMPLEX
            raw.caps2 |= Caps2.CUBEMAP
            for face in faces:
                raw.caps2 |= CUBEMAP_FACES[face]

        if self.layers() is not None:
            raw.caps1 |= Caps1.COMPLEX

        if dims.ndim == 3:
            raw.flags |= DDSFlags.DEPTH
            raw.depth = dims.depth
            raw.caps1 |= Caps1.COMPLEX
            raw.caps2 |= Caps2.VOLUME

        return raw

    def write(self, stream: BinaryIO) -> None:
        self.to_raw().write(stream)

    def write_surfaces(self, stream: BinaryIO, surfaces: TextureShape[Surface]) -> None:
        fmt = self.format()
        for _, layer in surfaces.iter_layers():
            by_face = sorted(
                layer.iter_faces(),
                key=lambda pair: -1 if pair[0] is None else cubemap_order(pair[0]),
            )
            for _, face in by_face:
                for _, mip in face.iter_mips():
                    surface = mip.try_into_surface()
                    expected = fmt.size_for(surface.dimensions)
                    if len(surface.buffer) != expected:
                        raise TextureError(
                            f"Surface {surface.dimensions} holds {len(surface.buffer)} bytes, "
                            f"expected {expected} for {fmt.name}"
                        )
                    stream.write(surface.buffer)

    def __eq__(self, other: object) -> bool:
        if type(self) is not type(other):
            return NotImplemented
        return vars(self) == vars(other)

    def __repr__(self) -> str:
        fields = ", ".join(f"{k.lstrip('_')}={v!r}" for k, v in vars(self).items())
        return f"{type(self).__name__}({fields})"


class LegacyDDSHeader(DDSHeader):
    def __init__(
        self,
        dimensions: Dimensions,
        mips: Optional[int],
        faces: Optional[list[CubeFace]],
        pixel_format: PixelFormat,
    ) -> None:
        super().__init__(dimensions, mips)
        self._faces = faces
        self.pixel_format = pixel_format

    @classmethod
    def from_raw(cls, raw: RawDDSHeader) -> LegacyDDSHeader:
        if raw.flags & DDSFlags.DEPTH:
            dims = Dimensions(raw.width, raw.height, raw.depth)
        else:
            dims = Dimensions(raw.width, raw.height)
        return cls(dims, cls._raw_mips(raw), raw.faces(), raw.pixel_format)

    @classmethod
    def for_texture(cls, texture: Texture) -> LegacyDDSHeader:
        if texture.layers() is not None:
            raise CapabilityError("legacy DDS headers cannot store texture arrays")
        if texture.dimensions.ndim == 1:
            raise CapabilityError("legacy DDS headers cannot store 1D textures")
        return cls(
            texture.dimensions,
            texture.mips(),
            texture.faces(),
            PixelFormat.from_format(texture.format),
        )

    def layers(self) -> Optional[int]:
        return None

    def faces(self) -> Optional[list[CubeFace]]:
        return self._faces

    def format(self) -> Format:
        return self.pixel_format.to_format()

    def to_raw(self) -> RawDDSHeader:
        raw = super().to_raw()
        raw.pixel_format = self.pixel_format
        return raw


class DX10DDSHeader(DDSHeader):
    def __init__(
        self,
        dimensions: Dimensions,
        mips: Optional[int],
        layers: Optional[int],
        cube: bool,
        dxgi_format: int,
        alpha_mode: int = AlphaMode.UNKNOWN,
    ) -> None:
        super().__init__(dimensions, mips)
        self._layers = layers
        self.cube = cube
        self.dxgi_format = dxgi_format
        self.alpha_mode = alpha_mode

    @property
    def is_dx10(self) -> bool:
        return True

    @classmethod
    def from_raw(cls, raw: RawDDSHeader) -> DX10DDSHeader:
        dx10 = raw.dx10
        dims = dx10.dimensionality.dimensions(raw.width, raw.height, raw.depth)
        layers = dx10.array_size if dx10.array_size > 1 else None
        return cls(dims, cls._raw_mips(raw), layers, dx10.cube, dx10.dxgi_format, dx10.alpha_mode)

    @classmethod
    def for_texture(cls, texture: Texture) -> DX10DDSHeader:
        faces = texture.faces()
        if faces is not None and len(faces) != len(ALL_FACES):
            raise CapabilityError("DX10 DDS headers cannot store partial cubemaps")
        dxgi, alpha_mode = dxgi_from_format(texture.format)
        return cls(
            texture.dimensions,
            texture.mips(),
            texture.layers(),
            faces is not None,
            dxgi,
            alpha_mode,
        )

    def layers(self) -> Optional[int]:
        return self._layers

    def faces(self) -> Optional[list[CubeFace]]:
        return list(ALL_FACES) if self.cube else None

    def format(self) -> Format:
        return format_from_dxgi(self.dxgi_format, self.alpha_mode)

    def to_raw(self) -> RawDDSHeader:
        raw = super().to_raw()
        raw.pixel_format = PixelFormat.dx10()
        raw.dx10 = DX10Header(
            dxgi_format=self.dxgi_format,
            dimensionality=Dimensionality.of(self.dimensions()),
            cube=self.cube,
            array_size=self._layers or 1,
            alpha_mode=self.alpha_mode,
        )
        return raw


def read_dds(stream: BinaryIO) -> Texture:
    return DDSHeader.read_texture(stream)


def write_dds(stream: BinaryIO, texture: Texture, args: DDSHeaderArgs | None = None) -> None:
    DDSHeader.write_texture(stream, texture, args)


__all__ = [
    "AlphaMode",
    "DDSHeader",
    "DDSHeaderArgs",
    "DDSHeaderMode",
    "DX10DDSHeader",
    "DXGIFormat",
    "LegacyDDSHeader",
    "PixelFormat",
    "RawDDSHeader",
    "read_dds",
    "write_dds",
]
