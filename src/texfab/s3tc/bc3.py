"""
BC3 (DXT5) blocks: a BC4 alpha block followed by a BC1 color block.
"""

from __future__ import annotations

from dataclasses import dataclass, field

import numpy as np

from .bc1 import BC1Block
from .bc4 import BC4Block


@dataclass
class BC3Block:
    alpha: BC4Block = field(default_factory=BC4Block)
    color: BC1Block = field(default_factory=BC1Block)

    SIZE = 16

    def to_bytes(self) -> bytes:
        return self.alpha.to_bytes() + self.color.to_bytes()

    @classmethod
    def from_bytes(cls, data: bytes) -> BC3Block:
        if len(data) != cls.SIZE:
            raise ValueError(f"BC3 block must be {cls.SIZE} bytes, got {len(data)}")
        return cls(BC4Block.from_bytes(data[0:8]), BC1Block.from_bytes(data[8:16]))

    def decode(self) -> np.ndarray:
        rgba = self.color.decode(force_four_color=True)
        rgba[..., 3] = self.alpha.decode()
        return rgba

    @classmethod
    def encode(cls, pixels: np.ndarray) -> BC3Block:
        pixels = np.asarray(pixels)
        return cls(BC4Block.encode(pixels[..., 3]), BC1Block.encode(pixels))
