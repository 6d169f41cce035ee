"""
DDS pixel format block (DDS_PIXELFORMAT) and its mapping to texture formats.
"""

from __future__ import annotations

import struct
from dataclasses import dataclass
from enum import IntFlag

from ...errors import FormatError, HeaderError
from ...format import (
    AlphaFormat,
    ColorFormat,
    ColorKind,
    Format,
    S3TCFormat,
    UncompressedFormat,
)


class PixelFormatFlags(IntFlag):
    ALPHA_PIXELS = 0x1
    ALPHA = 0x2
    FOURCC = 0x4
    RGB = 0x40
    YUV = 0x200
    LUMINANCE = 0x20000


KNOWN_FLAGS = sum(flag.value for flag in PixelFormatFlags)

PIXEL_FORMAT_STRUCT = struct.Struct("<II4sIIIII")
PIXEL_FORMAT_SIZE = 32

# FourCC codes accepted on read
FOURCC_FORMATS: dict[bytes, S3TCFormat] = {
    b"DXT1": S3TCFormat.bc1(),
    b"DXT3": S3TCFormat.bc2(),
    b"DXT5": S3TCFormat.bc3(),
    b"BC4U": S3TCFormat.bc4(),
    b"ATI1": S3TCFormat.bc4(),
    b"BC4S": S3TCFormat.bc4(signed=True),
    b"ATI2": S3TCFormat.bc5(),
    b"BC5U": S3TCFormat.bc5(),
    b"BC5S": S3TCFormat.bc5(signed=True),
}

# FourCC codes written for each S3TC format
FORMAT_FOURCCS: dict[S3TCFormat, bytes] = {
    S3TCFormat.bc1(): b"DXT1",
    S3TCFormat.bc2(): b"DXT3",
    S3TCFormat.bc3(): b"DXT5",
    S3TCFormat.bc4(): b"ATI1",
    S3TCFormat.bc4(signed=True): b"BC4S",
    S3TCFormat.bc5(): b"ATI2",
    S3TCFormat.bc5(signed=True): b"BC5S",
}

DX10_FOURCC = b"DX10"


@dataclass
class PixelFormat:
    flags: PixelFormatFlags = PixelFormatFlags(0)
    four_cc: bytes = b"\0\0\0\0"
    bit_count: int = 0
    color_bit_masks: tuple[int, int, int] = (0, 0, 0)
    alpha_bit_mask: int = 0

    @classmethod
    def unpack(cls, data: bytes) -> PixelFormat:
        size, flags, four_cc, bit_count, r, g, b, a = PIXEL_FORMAT_STRUCT.unpack(data)
        if size != PIXEL_FORMAT_SIZE:
            raise HeaderError(f"Invalid DDS pixel format size {size}, expected 32")
        return cls(PixelFormatFlags(flags & KNOWN_FLAGS), four_cc, bit_count, (r, g, b), a)

    def pack(self) -> bytes:
        return PIXEL_FORMAT_STRUCT.pack(
            PIXEL_FORMAT_SIZE,
            int(self.flags),
            self.four_cc,
            self.bit_count,
            *self.color_bit_masks,
            self.alpha_bit_mask,
        )

    @classmethod
    def dx10(cls) -> PixelFormat:
        return cls(PixelFormatFlags.FOURCC, DX10_FOURCC)

    @property
    def has_four_cc(self) -> bool:
        return bool(self.flags & PixelFormatFlags.FOURCC)

    @property
    def is_dx10(self) -> bool:
        return self.has_four_cc and self.four_cc == DX10_FOURCC

    def to_format(self) -> Format:
        """Interpret this pixel format. DX10 formats are resolved by the DX10 header."""
        if self.has_four_cc:
            if self.is_dx10:
                raise FormatError("FourCC is 'DX10' but no DX10 header was found")
            try:
                return FOURCC_FORMATS[self.four_cc]
            except KeyError:
                code = self.four_cc.decode("latin-1")
                raise FormatError(f"Unknown FourCC code: '{code}'") from None

        color_flags = self.flags & ~PixelFormatFlags.ALPHA_PIXELS
        kinds = [
            flag
            for flag in (
                PixelFormatFlags.RGB,
                PixelFormatFlags.YUV,
                PixelFormatFlags.LUMINANCE,
                PixelFormatFlags.ALPHA,
            )
            if color_flags & flag
        ]
        if len(kinds) > 1:
            raise FormatError(f"Invalid PixelFormat flags: {self.flags!r}")

        kind = kinds[0] if kinds else None
        if kind == PixelFormatFlags.RGB:
            color = ColorFormat.rgb(*self.color_bit_masks)
        elif kind == PixelFormatFlags.YUV:
            color = ColorFormat.yuv(*self.color_bit_masks)
        elif kind == PixelFormatFlags.LUMINANCE:
            color = ColorFormat.luminance(self.color_bit_masks[0])
        else:
            color = ColorFormat.none()

        has_alpha = bool(self.flags & (PixelFormatFlags.ALPHA | PixelFormatFlags.ALPHA_PIXELS))
        alpha = AlphaFormat.custom(self.alpha_bit_mask) if has_alpha else AlphaFormat.opaque()

        if color.kind == ColorKind.NONE and alpha.is_opaque:
            raise FormatError("PixelFormat has neither color nor alpha information")
        if self.bit_count == 0 or self.bit_count % 8:
            raise FormatError(f"pixel bit count of {self.bit_count}")

        return UncompressedFormat(self.bit_count // 8, color, alpha)

    @classmethod
    def from_format(cls, fmt: Format) -> PixelFormat:
        """Build a legacy pixel format. Raises FormatError if one cannot express ``fmt``."""
        if isinstance(fmt, S3TCFormat):
            if fmt.srgb:
                raise FormatError(f"{fmt.name} requires a DX10 header")
            return cls(PixelFormatFlags.FOURCC, FORMAT_FOURCCS[fmt])

        color = fmt.color_format
        if color.srgb:
            raise FormatError(f"{fmt.name} requires a DX10 header")
        if fmt.alpha_format.premultiplied:
            raise FormatError("premultiplied alpha requires a DX10 header")

        flags = PixelFormatFlags(0)
        masks = (0, 0, 0)
        if color.kind == ColorKind.RGB:
            flags |= PixelFormatFlags.RGB
            masks = tuple(color.masks)
        elif color.kind == ColorKind.YUV:
            flags |= PixelFormatFlags.YUV
            masks = tuple(color.masks)
        elif color.kind == ColorKind.LUMINANCE:
            flags |= PixelFormatFlags.LUMINANCE
            masks = (color.masks[0], 0, 0)

        alpha_mask = 0
        if not fmt.alpha_format.is_opaque:
            alpha_mask = fmt.alpha_format.mask
            if color.kind == ColorKind.NONE:
                flags |= PixelFormatFlags.ALPHA
            else:
                flags |= PixelFormatFlags.ALPHA_PIXELS

        return cls(flags, b"\0\0\0\0", fmt.pitch * 8, masks, alpha_mask)
