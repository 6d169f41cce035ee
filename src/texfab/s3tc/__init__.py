"""
S3TC - BC1 through BC5 block compression.

Textures are split into 4x4 pixel blocks stored left to right, top to bottom.
Extents that are not multiples of 4 are padded by edge replication on encode
and cropped on decode.
"""

from __future__ import annotations

import numpy as np

from ..dimensions import Dimensions
from ..errors import FormatError
from ..format import S3TCFormat, S3TCKind
from .bc1 import BC1Block
from .bc2 import BC2Block
from .bc3 import BC3Block
from .bc4 import BC4Block
from .bc5 import BC5Block

BLOCK_TYPES = {
    S3TCKind.BC1: BC1Block,
    S3TCKind.BC2: BC2Block,
    S3TCKind.BC3: BC3Block,
    S3TCKind.BC4: BC4Block,
    S3TCKind.BC5: BC5Block,
}

CHANNELS = {
    S3TCKind.BC1: 4,
    S3TCKind.BC2: 4,
    S3TCKind.BC3: 4,
    S3TCKind.BC4: 1,
    S3TCKind.BC5: 2,
}


def _decode_block(fmt: S3TCFormat, data: bytes) -> np.ndarray:
    block = BLOCK_TYPES[fmt.kind].from_bytes(data)
    if fmt.kind in (S3TCKind.BC4, S3TCKind.BC5):
        return block.decode(signed=fmt.signed)
    return block.decode()


def _encode_block(fmt: S3TCFormat, pixels: np.ndarray) -> bytes:
    block_type = BLOCK_TYPES[fmt.kind]
    if fmt.kind in (S3TCKind.BC4, S3TCKind.BC5):
        return block_type.encode(pixels, signed=fmt.signed).to_bytes()
    return block_type.encode(pixels).to_bytes()


def _output_dtype(fmt: S3TCFormat):
    return np.int8 if fmt.signed else np.uint8


def decode_slice(data: bytes, width: int, height: int, fmt: S3TCFormat) -> np.ndarray:
    across = -(-width // 4)
    down = -(-height // 4)
    expected = across * down * fmt.block_size
    if len(data) < expected:
        raise ValueError(f"Need {expected} bytes of {fmt.name} data, got {len(data)}")

    channels = CHANNELS[fmt.kind]
    out = np.zeros((down * 4, across * 4, channels), dtype=_output_dtype(fmt))
    offset = 0
    for by in range(down):
        for bx in range(across):
            pixels = _decode_block(fmt, data[offset : offset + fmt.block_size])
            out[by * 4 : by * 4 + 4, bx * 4 : bx * 4 + 4] = pixels.reshape(4, 4, channels)
            offset += fmt.block_size

    out = out[:height, :width]
    return out[..., 0] if channels == 1 else out


def decode(data: bytes, dimensions: Dimensions, fmt: S3TCFormat) -> np.ndarray:
    """
    Decode compressed data into pixels.

    Returns (height, width, 4) RGBA for BC1-BC3, (height, width) for BC4 and
    (height, width, 2) for BC5. Volume textures gain a leading depth axis.
    Signed formats decode to int8.
    """
    if not isinstance(fmt, S3TCFormat):
        raise FormatError(f"{fmt!r} is not an S3TC format")

    slice_size = fmt.size_for(Dimensions(dimensions.width, dimensions.height))
    slices = [
        decode_slice(
            data[z * slice_size : (z + 1) * slice_size],
            dimensions.width,
            dimensions.height,
            fmt,
        )
        for z in range(dimensions.depth)
    ]
    if dimensions.ndim == 3:
        return np.stack(slices)
    return slices[0]


def encode(pixels: np.ndarray, fmt: S3TCFormat) -> bytes:
    """
    Encode a single 2D image.

    BC1-BC3 take (height, width, 3 or 4) arrays; missing alpha is opaque. BC4
    takes (height, width) or uses the first channel, BC5 uses the first two.
    """
    if not isinstance(fmt, S3TCFormat):
        raise FormatError(f"{fmt!r} is not an S3TC format")

    pixels = np.asarray(pixels)
    if pixels.ndim == 2:
        pixels = pixels[..., None]

    if fmt.kind in (S3TCKind.BC1, S3TCKind.BC2, S3TCKind.BC3) and pixels.shape[-1] == 3:
        alpha = np.full(pixels.shape[:2] + (1,), 255, dtype=pixels.dtype)
        pixels = np.concatenate([pixels, alpha], axis=-1)
    if fmt.kind == S3TCKind.BC5 and pixels.shape[-1] < 2:
        raise ValueError("BC5 needs at least two channels")

    height, width = pixels.shape[:2]
    pad_y = -height % 4
    pad_x = -width % 4
    if pad_y or pad_x:
        pixels = np.pad(pixels, ((0, pad_y), (0, pad_x), (0, 0)), mode="edge")

    chunks = []
    for by in range(0, pixels.shape[0], 4):
        for bx in range(0, pixels.shape[1], 4):
            block = pixels[by : by + 4, bx : bx + 4]
            if fmt.kind == S3TCKind.BC4:
                block = block[..., 0]
            chunks.append(_encode_block(fmt, block))
    return b"".join(chunks)


__all__ = [
    "BC1Block",
    "BC2Block",
    "BC3Block",
    "BC4Block",
    "BC5Block",
    "decode",
    "decode_slice",
    "encode",
]
