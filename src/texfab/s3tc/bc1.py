"""
BC1 (DXT1) color blocks.

Layout (8 bytes): two little-endian RGB565 endpoints, then one byte per row
of 2-bit palette codes with pixel x stored at bits 2x..2x+1.
"""

from __future__ import annotations

import struct
from dataclasses import dataclass, field

import numpy as np

from ..color import pack_565, unpack_565


def _zero_codes() -> np.ndarray:
    return np.zeros((4, 4), dtype=np.uint8)


@dataclass
class BC1Block:
    color0: int = 0
    color1: int = 0
    codes: np.ndarray = field(default_factory=_zero_codes)

    SIZE = 8

    def to_bytes(self) -> bytes:
        rows = bytearray(4)
        for y in range(4):
            packed = 0
            for x in range(4):
                code = int(self.codes[y, x])
                if not 0 <= code < 4:
                    raise ValueError(f"Code {code} cannot be packed into 2 bits")
                packed |= code << (2 * x)
            rows[y] = packed
        return struct.pack("<HH", self.color0, self.color1) + bytes(rows)

    @classmethod
    def from_bytes(cls, data: bytes) -> BC1Block:
        if len(data) != cls.SIZE:
            raise ValueError(f"BC1 block must be {cls.SIZE} bytes, got {len(data)}")
        color0, color1 = struct.unpack_from("<HH", data)
        codes = np.array(
            [[(data[4 + y] >> (2 * x)) & 0b11 for x in range(4)] for y in range(4)],
            dtype=np.uint8,
        )
        return cls(color0, color1, codes)

    @property
    def is_three_color(self) -> bool:
        return self.color0 <= self.color1

    def palette(self, force_four_color: bool = False) -> np.ndarray:
        """
        Return the 4-entry RGBA palette.

        Four-color mode is used when color0 > color1 (or when forced, as BC2 and
        BC3 color blocks always are); otherwise the third entry is the midpoint
        and the fourth is transparent black.
        """
        c0, c1 = unpack_565([self.color0, self.color1]).astype(np.int32)
        palette = np.zeros((4, 4), dtype=np.int32)
        palette[:, 3] = 255
        palette[0, :3] = c0
        palette[1, :3] = c1
        if force_four_color or not self.is_three_color:
            palette[2, :3] = (2 * c0 + c1) // 3
            palette[3, :3] = (c0 + 2 * c1) // 3
        else:
            palette[2, :3] = (c0 + c1) // 2
            palette[3] = 0
        return palette.astype(np.uint8)

    def decode(self, force_four_color: bool = False) -> np.ndarray:
        """Decode to a (4, 4, 4) RGBA array."""
        return self.palette(force_four_color)[self.codes]

    @classmethod
    def encode(cls, pixels: np.ndarray) -> BC1Block:
        """
        Encode a (4, 4, 3+) block in four-color mode.

        Endpoints are the extremes of the pixels projected onto their principal
        axis; each pixel takes the nearest palette entry.
        """
        rgb = np.asarray(pixels, dtype=np.float64)[..., :3].reshape(16, 3)
        mean = rgb.mean(axis=0)
        centered = rgb - mean
        cov = centered.T @ centered

        if not np.any(cov):
            color = int(pack_565(np.round(mean)))
            return cls(color, color, _zero_codes())

        _, vectors = np.linalg.eigh(cov)
        axis = vectors[:, -1]
        projection = centered @ axis
        high = np.clip(np.round(mean + axis * projection.max()), 0, 255)
        low = np.clip(np.round(mean + axis * projection.min()), 0, 255)

        color0 = int(pack_565(high))
        color1 = int(pack_565(low))
        if color0 < color1:
            color0, color1 = color1, color0
        if color0 == color1:
            return cls(color0, color1, _zero_codes())

        block = cls(color0, color1)
        palette = block.palette()[:, :3].astype(np.int32)
        distances = ((rgb[:, None, :] - palette[None, :, :]) ** 2).sum(axis=-1)
        block.codes = distances.argmin(axis=1).astype(np.uint8).reshape(4, 4)
        return block
