"""
Textures - Surfaces, shaped textures and pixel conversion.
"""

from __future__ import annotations

from dataclasses import dataclass
from itertools import islice
from typing import BinaryIO, Callable, Iterator, Optional

import numpy as np

from . import s3tc
from .dimensions import Dimensions
from .errors import FormatError, HeaderError
from .format import ColorKind, Format, S3TCFormat, UncompressedFormat
from .shape import CubeFace, SurfaceIndex, TextureShape


@dataclass(frozen=True)
class Surface:
    """A single image (or volume slice stack) stored in a texture format."""

    dimensions: Dimensions
    buffer: bytes

    def __repr__(self) -> str:
        return f"Surface({self.dimensions}, {len(self.buffer)} bytes)"


@dataclass
class Texture:
    """A formatted texture made of one or more surfaces."""

    format: Format
    surfaces: TextureShape[Surface]

    @classmethod
    def from_surface(cls, fmt: Format, surface: Surface) -> Texture:
        return cls(fmt, TextureShape.from_surface(surface))

    @property
    def dimensions(self) -> Dimensions:
        return self.surfaces.dimensions

    def mips(self) -> Optional[int]:
        return self.surfaces.mips()

    def layers(self) -> Optional[int]:
        return self.surfaces.layers()

    def faces(self) -> Optional[list[CubeFace]]:
        return self.surfaces.faces()

    def iter_faces(self) -> Iterator[tuple[Optional[CubeFace], TextureShape[Surface]]]:
        return self.surfaces.iter_faces()

    def iter_surfaces(self) -> Iterator[SurfaceIndex[Surface]]:
        return self.surfaces.iter_surfaces()

    def primary(self) -> Surface:
        return self.surfaces.primary()

    def __len__(self) -> int:
        return len(self.surfaces)

    def decode(self, surface: Surface | None = None) -> np.ndarray:
        """Decode ``surface`` (default: the primary surface) to pixels."""
        return decode_surface(self.format, surface or self.primary())


SurfaceFn = Callable[["SurfaceReader", Dimensions], TextureShape[Surface]]


class SurfaceReader:
    """Reads surfaces sequentially from a stream and assembles the shape tree."""

    def __init__(self, fmt: Format, stream: BinaryIO) -> None:
        self.format = fmt
        self.stream = stream

    def read_surface(self, dimensions: Dimensions) -> TextureShape[Surface]:
        size = self.format.size_for(dimensions)
        buffer = self.stream.read(size)
        if len(buffer) != size:
            raise HeaderError(
                f"Unexpected end of data: expected {size} bytes for a {dimensions} "
                f"{self.format.name} surface, got {len(buffer)}"
            )
        return TextureShape.from_surface(Surface(dimensions, buffer))

    def read_mips(
        self, dimensions: Dimensions, mips: Optional[int], inner: SurfaceFn
    ) -> TextureShape[Surface]:
        if mips is None:
            return inner(self, dimensions)
        chain = list(islice(dimensions.mips(), mips))
        if len(chain) < mips:
            raise HeaderError(
                f"Mipmap count {mips} exceeds the {len(chain)} levels possible for {dimensions}"
            )
        return TextureShape.from_mips(inner(self, d) for d in chain)

    def read_faces(
        self, dimensions: Dimensions, faces: Optional[list[CubeFace]], inner: SurfaceFn
    ) -> TextureShape[Surface]:
        if faces is None:
            return inner(self, dimensions)
        return TextureShape.from_faces((face, inner(self, dimensions)) for face in faces)

    def read_layers(
        self, dimensions: Dimensions, layers: Optional[int], inner: SurfaceFn
    ) -> TextureShape[Surface]:
        if layers is None:
            return inner(self, dimensions)
        return TextureShape.from_layers(inner(self, dimensions) for _ in range(layers))


# Pixel conversion


def _mask_shift(mask: int) -> tuple[int, int]:
    """Return (shift, max value) of a contiguous channel mask."""
    shift = (mask & -mask).bit_length() - 1
    return shift, mask >> shift


def _extract(values: np.ndarray, mask: int) -> np.ndarray:
    if mask == 0:
        return np.zeros(values.shape, dtype=np.uint8)
    shift, max_value = _mask_shift(mask)
    channel = (values & np.uint64(mask)) >> np.uint64(shift)
    if max_value == 0xFF:
        return channel.astype(np.uint8)
    return ((channel * 255 + max_value // 2) // max_value).astype(np.uint8)


def _insert(channel: np.ndarray, mask: int) -> np.ndarray:
    if mask == 0:
        return np.zeros(channel.shape, dtype=np.uint64)
    shift, max_value = _mask_shift(mask)
    channel = channel.astype(np.uint64)
    if max_value != 0xFF:
        channel = (channel * max_value + 127) // 255
    return (channel << np.uint64(shift)) & np.uint64(mask)


def _pixel_shape(dimensions: Dimensions) -> tuple[int, ...]:
    if dimensions.ndim == 3:
        return (dimensions.depth, dimensions.height, dimensions.width)
    return (dimensions.height, dimensions.width)


def decode_uncompressed(fmt: UncompressedFormat, surface: Surface) -> np.ndarray:
    """Decode a bitmask format to RGBA uint8 pixels."""
    if fmt.color_format.kind == ColorKind.YUV:
        raise FormatError("YUV surfaces cannot be decoded")
    if not 1 <= fmt.pitch <= 4:
        raise FormatError(f"pixel pitch of {fmt.pitch} bytes")

    raw = np.frombuffer(surface.buffer, dtype=np.uint8)
    raw = raw[: fmt.size_for(surface.dimensions)].reshape(-1, fmt.pitch)
    values = np.zeros(raw.shape[0], dtype=np.uint64)
    for i in range(fmt.pitch):
        values |= raw[:, i].astype(np.uint64) << np.uint64(8 * i)

    rgba = np.zeros((raw.shape[0], 4), dtype=np.uint8)
    color = fmt.color_format
    if color.kind == ColorKind.RGB:
        for c, mask in enumerate(color.masks):
            rgba[:, c] = _extract(values, mask)
    elif color.kind == ColorKind.LUMINANCE:
        luminance = _extract(values, color.masks[0])
        rgba[:, 0] = rgba[:, 1] = rgba[:, 2] = luminance

    if fmt.alpha_format.is_opaque:
        rgba[:, 3] = 255
    else:
        rgba[:, 3] = _extract(values, fmt.alpha_format.mask)

    return rgba.reshape(_pixel_shape(surface.dimensions) + (4,))


def encode_uncompressed(fmt: UncompressedFormat, pixels: np.ndarray) -> bytes:
    """Pack RGB(A) or grayscale pixels into a bitmask format."""
    if fmt.color_format.kind == ColorKind.YUV:
        raise FormatError("YUV surfaces cannot be encoded")

    pixels = np.asarray(pixels, dtype=np.uint8)
    if pixels.ndim == 2:
        pixels = np.repeat(pixels[..., None], 3, axis=-1)
    flat = pixels.reshape(-1, pixels.shape[-1])

    values = np.zeros(flat.shape[0], dtype=np.uint64)
    color = fmt.color_format
    if color.kind == ColorKind.RGB:
        for c, mask in enumerate(color.masks):
            values |= _insert(flat[:, c], mask)
    elif color.kind == ColorKind.LUMINANCE:
        values |= _insert(flat[:, 0], color.masks[0])

    if not fmt.alpha_format.is_opaque:
        alpha = flat[:, 3] if flat.shape[1] > 3 else np.full(flat.shape[0], 255, np.uint8)
        values |= _insert(alpha, fmt.alpha_format.mask)

    out = np.zeros((flat.shape[0], fmt.pitch), dtype=np.uint8)
    for i in range(fmt.pitch):
        out[:, i] = ((values >> np.uint64(8 * i)) & np.uint64(0xFF)).astype(np.uint8)
    return out.tobytes()


def decode_surface(fmt: Format, surface: Surface) -> np.ndarray:
    """Decode a surface to a numpy array of pixels."""
    if isinstance(fmt, S3TCFormat):
        return s3tc.decode(surface.buffer, surface.dimensions, fmt)
    return decode_uncompressed(fmt, surface)


def encode_surface(fmt: Format, pixels: np.ndarray) -> Surface:
    """Encode a 2D image (height, width[, channels]) into a surface."""
    pixels = np.asarray(pixels)
    height, width = pixels.shape[:2]
    if isinstance(fmt, S3TCFormat):
        buffer = s3tc.encode(pixels, fmt)
    else:
        buffer = encode_uncompressed(fmt, pixels)
    return Surface(Dimensions(int(width), int(height)), buffer)
