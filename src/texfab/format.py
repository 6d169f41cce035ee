"""
Texture Formats - Uncompressed bitmask formats and S3TC block formats.
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Optional, Union

from .dimensions import Dimensions


class ColorKind(str, Enum):
    RGB = "rgb"
    YUV = "yuv"
    LUMINANCE = "luminance"
    NONE = "none"


@dataclass(frozen=True)
class ColorFormat:
    """Color channel layout of an uncompressed format."""

    kind: ColorKind
    masks: tuple[int, ...] = ()
    srgb: bool = False

    @classmethod
    def rgb(cls, r_mask: int, g_mask: int, b_mask: int, srgb: bool = False) -> ColorFormat:
        return cls(ColorKind.RGB, (r_mask, g_mask, b_mask), srgb)

    @classmethod
    def yuv(cls, y_mask: int, u_mask: int, v_mask: int) -> ColorFormat:
        return cls(ColorKind.YUV, (y_mask, u_mask, v_mask))

    @classmethod
    def luminance(cls, mask: int) -> ColorFormat:
        return cls(ColorKind.LUMINANCE, (mask,))

    @classmethod
    def none(cls) -> ColorFormat:
        return cls(ColorKind.NONE)


@dataclass(frozen=True)
class AlphaFormat:
    """Alpha channel of an uncompressed format. ``mask`` is None when opaque."""

    mask: Optional[int] = None
    premultiplied: bool = False

    @classmethod
    def opaque(cls) -> AlphaFormat:
        return cls()

    @classmethod
    def custom(cls, mask: int, premultiplied: bool = False) -> AlphaFormat:
        return cls(mask, premultiplied)

    @property
    def is_opaque(self) -> bool:
        return self.mask is None


@dataclass(frozen=True)
class UncompressedFormat:
    """Pixel-packed format described by channel bitmasks. ``pitch`` is bytes per pixel."""

    pitch: int
    color_format: ColorFormat
    alpha_format: AlphaFormat = AlphaFormat()

    @property
    def name(self) -> str:
        color = self.color_format.kind.value.upper()
        alpha = "" if self.alpha_format.is_opaque else "A"
        srgb = " sRGB" if self.color_format.srgb else ""
        return f"{color}{alpha} {self.pitch * 8}-bit{srgb}"

    def size_for(self, dimensions: Dimensions) -> int:
        return self.pitch * dimensions.width * dimensions.height * dimensions.depth


class S3TCKind(str, Enum):
    BC1 = "BC1"
    BC2 = "BC2"
    BC3 = "BC3"
    BC4 = "BC4"
    BC5 = "BC5"


BLOCK_SIZES = {
    S3TCKind.BC1: 8,
    S3TCKind.BC2: 16,
    S3TCKind.BC3: 16,
    S3TCKind.BC4: 8,
    S3TCKind.BC5: 16,
}


@dataclass(frozen=True)
class S3TCFormat:
    """
    Block compressed format encoding 4x4 pixel blocks.

    ``srgb`` applies to BC1-BC3, ``signed`` to BC4 and BC5.
    """

    kind: S3TCKind
    srgb: bool = False
    signed: bool = False

    block_width = 4
    block_height = 4

    @classmethod
    def bc1(cls, srgb: bool = False) -> S3TCFormat:
        return cls(S3TCKind.BC1, srgb=srgb)

    @classmethod
    def bc2(cls, srgb: bool = False) -> S3TCFormat:
        return cls(S3TCKind.BC2, srgb=srgb)

    @classmethod
    def bc3(cls, srgb: bool = False) -> S3TCFormat:
        return cls(S3TCKind.BC3, srgb=srgb)

    @classmethod
    def bc4(cls, signed: bool = False) -> S3TCFormat:
        return cls(S3TCKind.BC4, signed=signed)

    @classmethod
    def bc5(cls, signed: bool = False) -> S3TCFormat:
        return cls(S3TCKind.BC5, signed=signed)

    @property
    def block_size(self) -> int:
        return BLOCK_SIZES[self.kind]

    @property
    def name(self) -> str:
        if self.srgb:
            return f"{self.kind.value} sRGB"
        if self.signed:
            return f"{self.kind.value} signed"
        return self.kind.value

    def blocks_for(self, dimensions: Dimensions) -> tuple[int, int]:
        """Number of blocks across and down one slice."""
        return (
            -(-dimensions.width // self.block_width),
            -(-dimensions.height // self.block_height),
        )

    def size_for(self, dimensions: Dimensions) -> int:
        across, down = self.blocks_for(dimensions)
        return across * down * dimensions.depth * self.block_size


Format = Union[UncompressedFormat, S3TCFormat]

# Common uncompressed layouts
RGB8 = UncompressedFormat(3, ColorFormat.rgb(0xFF, 0xFF00, 0xFF0000))
BGR8 = UncompressedFormat(3, ColorFormat.rgb(0xFF0000, 0xFF00, 0xFF))
RGBA8 = UncompressedFormat(
    4, ColorFormat.rgb(0xFF, 0xFF00, 0xFF0000), AlphaFormat.custom(0xFF000000)
)
BGRA8 = UncompressedFormat(
    4, ColorFormat.rgb(0xFF0000, 0xFF00, 0xFF), AlphaFormat.custom(0xFF000000)
)


def parse_format(name: str) -> Format:
    """Parse a short format name such as ``bc1``, ``bc4s`` or ``rgba8``."""
    key = name.strip().lower().replace("-", "").replace("_", "")
    named: dict[str, Format] = {
        "bc1": S3TCFormat.bc1(),
        "dxt1": S3TCFormat.bc1(),
        "bc2": S3TCFormat.bc2(),
        "dxt3": S3TCFormat.bc2(),
        "bc3": S3TCFormat.bc3(),
        "dxt5": S3TCFormat.bc3(),
        "bc4": S3TCFormat.bc4(),
        "bc4s": S3TCFormat.bc4(signed=True),
        "bc5": S3TCFormat.bc5(),
        "bc5s": S3TCFormat.bc5(signed=True),
        "rgb8": RGB8,
        "bgr8": BGR8,
        "rgba8": RGBA8,
        "bgra8": BGRA8,
    }
    try:
        return named[key]
    except KeyError:
        raise ValueError(f"Unknown format name: {name!r}") from None
