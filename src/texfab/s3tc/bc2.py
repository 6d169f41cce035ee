"""
BC2 (DXT3) blocks: 4-bit explicit alpha followed by a BC1 color block.
"""

from __future__ import annotations

from dataclasses import dataclass, field

import numpy as np

from .bc1 import BC1Block


def _opaque_alpha() -> np.ndarray:
    return np.full((4, 4), 15, dtype=np.uint8)


@dataclass
class BC2Block:
    alpha: np.ndarray = field(default_factory=_opaque_alpha)
    color: BC1Block = field(default_factory=BC1Block)

    SIZE = 16

    def to_bytes(self) -> bytes:
        packed = 0
        for i, value in enumerate(np.asarray(self.alpha).reshape(16)):
            packed |= (int(value) & 0xF) << (4 * i)
        return packed.to_bytes(8, "little") + self.color.to_bytes()

    @classmethod
    def from_bytes(cls, data: bytes) -> BC2Block:
        if len(data) != cls.SIZE:
            raise ValueError(f"BC2 block must be {cls.SIZE} bytes, got {len(data)}")
        packed = int.from_bytes(data[0:8], "little")
        alpha = np.array([(packed >> (4 * i)) & 0xF for i in range(16)], dtype=np.uint8)
        return cls(alpha.reshape(4, 4), BC1Block.from_bytes(data[8:16]))

    def decode(self) -> np.ndarray:
        rgba = self.color.decode(force_four_color=True)
        rgba[..., 3] = self.alpha * 17
        return rgba

    @classmethod
    def encode(cls, pixels: np.ndarray) -> BC2Block:
        pixels = np.asarray(pixels)
        alpha = (pixels[..., 3].astype(np.int32) * 15 + 127) // 255
        return cls(alpha.astype(np.uint8), BC1Block.encode(pixels))
