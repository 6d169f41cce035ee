"""
BC4 single channel blocks.

Layout (8 bytes): two endpoint bytes, then a 48-bit little-endian integer of
3-bit palette codes with pixel i (row-major) stored at bits 3i..3i+2. Signed
blocks store endpoints as two's complement bytes.
"""

from __future__ import annotations

from dataclasses import dataclass, field

import numpy as np


def _zero_codes() -> np.ndarray:
    return np.zeros((4, 4), dtype=np.uint8)


def _to_signed(byte: int) -> int:
    value = byte - 256 if byte > 127 else byte
    return max(value, -127)


@dataclass
class BC4Block:
    endpoint0: int = 0
    endpoint1: int = 0
    codes: np.ndarray = field(default_factory=_zero_codes)

    SIZE = 8

    def to_bytes(self) -> bytes:
        packed = 0
        for i, code in enumerate(np.asarray(self.codes).reshape(16)):
            code = int(code)
            if not 0 <= code < 8:
                raise ValueError(f"Code {code} cannot be packed into 3 bits")
            packed |= code << (3 * i)
        return bytes([self.endpoint0 & 0xFF, self.endpoint1 & 0xFF]) + packed.to_bytes(
            6, "little"
        )

    @classmethod
    def from_bytes(cls, data: bytes) -> BC4Block:
        if len(data) != cls.SIZE:
            raise ValueError(f"BC4 block must be {cls.SIZE} bytes, got {len(data)}")
        packed = int.from_bytes(data[2:8], "little")
        codes = np.array([(packed >> (3 * i)) & 0b111 for i in range(16)], dtype=np.uint8)
        return cls(data[0], data[1], codes.reshape(4, 4))

    def endpoints(self, signed: bool = False) -> tuple[int, int]:
        if signed:
            return _to_signed(self.endpoint0 & 0xFF), _to_signed(self.endpoint1 & 0xFF)
        return self.endpoint0 & 0xFF, self.endpoint1 & 0xFF

    def palette(self, signed: bool = False) -> np.ndarray:
        """
        Return the 8-entry palette.

        Eight interpolated values when endpoint0 > endpoint1, otherwise six
        values plus the channel extremes (0/255, or -127/127 when signed).
        """
        e0, e1 = self.endpoints(signed)
        values = [e0, e1]
        if e0 > e1:
            values += [((7 - i) * e0 + i * e1) / 7 for i in range(1, 7)]
        else:
            values += [((5 - i) * e0 + i * e1) / 5 for i in range(1, 5)]
            values += [-127, 127] if signed else [0, 255]

        palette = np.floor(np.array(values, dtype=np.float64) + 0.5)
        return palette.astype(np.int8 if signed else np.uint8)

    def decode(self, signed: bool = False) -> np.ndarray:
        """Decode to a (4, 4) array, int8 when signed."""
        return self.palette(signed)[self.codes]

    @classmethod
    def encode(cls, values: np.ndarray, signed: bool = False) -> BC4Block:
        """Encode a (4, 4) block using its minimum and maximum as endpoints."""
        channel = np.asarray(values, dtype=np.int32).reshape(16)
        if signed:
            channel = np.clip(channel, -127, 127)
        else:
            channel = np.clip(channel, 0, 255)

        high = int(channel.max())
        low = int(channel.min())
        if high == low:
            return cls(high & 0xFF, low & 0xFF, _zero_codes())

        block = cls(high & 0xFF, low & 0xFF)
        palette = block.palette(signed).astype(np.int32)
        distances = np.abs(channel[:, None] - palette[None, :])
        block.codes = distances.argmin(axis=1).astype(np.uint8).reshape(4, 4)
        return block
