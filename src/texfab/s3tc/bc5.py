"""
BC5 two channel blocks: one BC4 block for red, then one for green.
"""

from __future__ import annotations

from dataclasses import dataclass, field

import numpy as np

from .bc4 import BC4Block


@dataclass
class BC5Block:
    red: BC4Block = field(default_factory=BC4Block)
    green: BC4Block = field(default_factory=BC4Block)

    SIZE = 16

    def to_bytes(self) -> bytes:
        return self.red.to_bytes() + self.green.to_bytes()

    @classmethod
    def from_bytes(cls, data: bytes) -> BC5Block:
        if len(data) != cls.SIZE:
            raise ValueError(f"BC5 block must be {cls.SIZE} bytes, got {len(data)}")
        return cls(BC4Block.from_bytes(data[0:8]), BC4Block.from_bytes(data[8:16]))

    def decode(self, signed: bool = False) -> np.ndarray:
        """Decode to a (4, 4, 2) array."""
        return np.stack([self.red.decode(signed), self.green.decode(signed)], axis=-1)

    @classmethod
    def encode(cls, pixels: np.ndarray, signed: bool = False) -> BC5Block:
        pixels = np.asarray(pixels)
        return cls(
            BC4Block.encode(pixels[..., 0], signed),
            BC4Block.encode(pixels[..., 1], signed),
        )
