"""
Color packing helpers for 16-bit RGB565 endpoints.
"""

from __future__ import annotations

import numpy as np


def unpack_565(packed) -> np.ndarray:
    """
    Expand RGB565 values to 8-bit RGB.

    Accepts a scalar or an array of uint16 values and returns an array with a
    trailing axis of 3 channels. Low bits are filled by bit replication so that
    0x1F maps to 0xFF.
    """
    packed = np.asarray(packed, dtype=np.uint16)
    r5 = (packed >> 11) & 0x1F
    g6 = (packed >> 5) & 0x3F
    b5 = packed & 0x1F

    r = (r5 << 3) | (r5 >> 2)
    g = (g6 << 2) | (g6 >> 4)
    b = (b5 << 3) | (b5 >> 2)
    return np.stack([r, g, b], axis=-1).astype(np.uint8)


def pack_565(rgb) -> np.ndarray:
    """Quantize 8-bit RGB (trailing axis of 3) to RGB565 with rounding."""
    rgb = np.asarray(rgb, dtype=np.int32)
    r5 = (rgb[..., 0] * 31 + 127) // 255
    g6 = (rgb[..., 1] * 63 + 127) // 255
    b5 = (rgb[..., 2] * 31 + 127) // 255
    return ((r5 << 11) | (g6 << 5) | b5).astype(np.uint16)
