"""
Raw DDS header layout.

    magic "DDS "
    DDS_HEADER       124 bytes
    DDS_HEADER_DXT10  20 bytes, only when the pixel format fourCC is "DX10"
"""

from __future__ import annotations

import struct
from dataclasses import dataclass, field
from enum import IntFlag
from typing import BinaryIO, Optional

import structlog

from ...errors import HeaderError
from ...shape import CubeFace
from .dx10_header import DX10_HEADER_SIZE, DX10Header
from .pixel_format import PIXEL_FORMAT_SIZE, PixelFormat

logger = structlog.get_logger()

MAGIC = b"DDS "
HEADER_SIZE = 124

_HEAD = struct.Struct("<7I")
_CAPS = struct.Struct("<4I")
_RESERVED1 = 44
_RESERVED2 = 4


class DDSFlags(IntFlag):
    CAPS = 0x1
    HEIGHT = 0x2
    WIDTH = 0x4
    PITCH = 0x8
    PIXEL_FORMAT = 0x1000
    MIPMAP_COUNT = 0x20000
    LINEAR_SIZE = 0x80000
    DEPTH = 0x800000


class Caps1(IntFlag):
    COMPLEX = 0x8
    TEXTURE = 0x1000
    MIPMAP = 0x400000


class Caps2(IntFlag):
    CUBEMAP = 0x200
    CUBEMAP_POSITIVE_X = 0x400
    CUBEMAP_NEGATIVE_X = 0x800
    CUBEMAP_POSITIVE_Y = 0x1000
    CUBEMAP_NEGATIVE_Y = 0x2000
    CUBEMAP_POSITIVE_Z = 0x4000
    CUBEMAP_NEGATIVE_Z = 0x8000
    VOLUME = 0x200000


# Faces in the order they are stored in the file
CUBEMAP_FACES: dict[CubeFace, Caps2] = {
    CubeFace.POSITIVE_X: Caps2.CUBEMAP_POSITIVE_X,
    CubeFace.NEGATIVE_X: Caps2.CUBEMAP_NEGATIVE_X,
    CubeFace.POSITIVE_Y: Caps2.CUBEMAP_POSITIVE_Y,
    CubeFace.NEGATIVE_Y: Caps2.CUBEMAP_NEGATIVE_Y,
    CubeFace.POSITIVE_Z: Caps2.CUBEMAP_POSITIVE_Z,
    CubeFace.NEGATIVE_Z: Caps2.CUBEMAP_NEGATIVE_Z,
}


def cubemap_order(face: CubeFace) -> int:
    return list(CUBEMAP_FACES).index(face)


def _known(value: int, flags: type[IntFlag], field_name: str) -> IntFlag:
    known = sum(flag.value for flag in flags)
    unknown = value & ~known
    if unknown:
        logger.debug("Dropping unknown DDS flag bits", field=field_name, bits=hex(unknown))
    return flags(value & known)


@dataclass
class RawDDSHeader:
    """Field-for-field view of a DDS header."""

    flags: DDSFlags
    height: int
    width: int
    pitch_or_linear_size: int = 0
    depth: int = 0
    mipmap_count: int = 0
    pixel_format: PixelFormat = field(default_factory=PixelFormat)
    caps1: Caps1 = Caps1.TEXTURE
    caps2: Caps2 = Caps2(0)
    caps3: int = 0
    caps4: int = 0
    dx10: Optional[DX10Header] = None

    @classmethod
    def read(cls, stream: BinaryIO) -> RawDDSHeader:
        magic = stream.read(len(MAGIC))
        if magic != MAGIC:
            text = magic.decode("latin-1")
            raise HeaderError(f"Invalid DDS signature: {text} (0x{magic.hex().upper()})")

        data = stream.read(HEADER_SIZE)
        if len(data) != HEADER_SIZE:
            raise HeaderError(f"Truncated DDS header: got {len(data)} of {HEADER_SIZE} bytes")

        size, flags, height, width, pitch, depth, mips = _HEAD.unpack_from(data, 0)
        if size != HEADER_SIZE:
            raise HeaderError(f"Invalid DDS header size {size}, expected {HEADER_SIZE}")

        offset = _HEAD.size + _RESERVED1
        pixel_format = PixelFormat.unpack(data[offset : offset + PIXEL_FORMAT_SIZE])
        offset += PIXEL_FORMAT_SIZE
        caps1, caps2, caps3, caps4 = _CAPS.unpack_from(data, offset)

        dx10 = None
        if pixel_format.is_dx10:
            dx10 = DX10Header.unpack(stream.read(DX10_HEADER_SIZE))

        return cls(
            flags=_known(flags, DDSFlags, "flags"),
            height=height,
            width=width,
            pitch_or_linear_size=pitch,
            depth=depth,
            mipmap_count=mips,
            pixel_format=pixel_format,
            caps1=_known(caps1, Caps1, "caps1"),
            caps2=_known(caps2, Caps2, "caps2"),
            caps3=caps3,
            caps4=caps4,
            dx10=dx10,
        )

    def pack(self) -> bytes:
        parts = [
            MAGIC,
            _HEAD.pack(
                HEADER_SIZE,
                int(self.flags),
                self.height,
                self.width,
                self.pitch_or_linear_size,
                self.depth,
                self.mipmap_count,
            ),
            bytes(_RESERVED1),
            self.pixel_format.pack(),
            _CAPS.pack(int(self.caps1), int(self.caps2), self.caps3, self.caps4),
            bytes(_RESERVED2),
        ]
        if self.dx10 is not None:
            parts.append(self.dx10.pack())
        return b"".join(parts)

    def write(self, stream: BinaryIO) -> None:
        stream.write(self.pack())

    def faces(self) -> Optional[list[CubeFace]]:
        """Cubemap faces named in caps2, in file order."""
        if not self.caps2 & Caps2.CUBEMAP:
            return None
        return [face for face, flag in CUBEMAP_FACES.items() if self.caps2 & flag]
