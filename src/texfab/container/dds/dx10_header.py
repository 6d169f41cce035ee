"""
DDS DX10 extension header (DDS_HEADER_DXT10).
"""

from __future__ import annotations

import struct
from dataclasses import dataclass
from enum import IntEnum

from ...dimensions import Dimensions
from ...errors import FormatError, HeaderError
from ...format import (
    AlphaFormat,
    ColorFormat,
    ColorKind,
    Format,
    S3TCFormat,
    S3TCKind,
    UncompressedFormat,
)


class DXGIFormat(IntEnum):
    UNKNOWN = 0
    R32G32B32A32_TYPELESS = 1
    R32G32B32A32_FLOAT = 2
    R32G32B32A32_UINT = 3
    R32G32B32A32_SINT = 4
    R32G32B32_TYPELESS = 5
    R32G32B32_FLOAT = 6
    R32G32B32_UINT = 7
    R32G32B32_SINT = 8
    R16G16B16A16_TYPELESS = 9
    R16G16B16A16_FLOAT = 10
    R16G16B16A16_UNORM = 11
    R16G16B16A16_UINT = 12
    R16G16B16A16_SNORM = 13
    R16G16B16A16_SINT = 14
    R32G32_TYPELESS = 15
    R32G32_FLOAT = 16
    R32G32_UINT = 17
    R32G32_SINT = 18
    R32G8X24_TYPELESS = 19
    D32_FLOAT_S8X24_UINT = 20
    R32_FLOAT_X8X24_TYPELESS = 21
    X32_TYPELESS_G8X24_UINT = 22
    R10G10B10A2_TYPELESS = 23
    R10G10B10A2_UNORM = 24
    R10G10B10A2_UINT = 25
    R11G11B10_FLOAT = 26
    R8G8B8A8_TYPELESS = 27
    R8G8B8A8_UNORM = 28
    R8G8B8A8_UNORM_SRGB = 29
    R8G8B8A8_UINT = 30
    R8G8B8A8_SNORM = 31
    R8G8B8A8_SINT = 32
    R16G16_TYPELESS = 33
    R16G16_FLOAT = 34
    R16G16_UNORM = 35
    R16G16_UINT = 36
    R16G16_SNORM = 37
    R16G16_SINT = 38
    R32_TYPELESS = 39
    D32_FLOAT = 40
    R32_FLOAT = 41
    R32_UINT = 42
    R32_SINT = 43
    R24G8_TYPELESS = 44
    D24_UNORM_S8_UINT = 45
    R24_UNORM_X8_TYPELESS = 46
    X24_TYPELESS_G8_UINT = 47
    R8G8_TYPELESS = 48
    R8G8_UNORM = 49
    R8G8_UINT = 50
    R8G8_SNORM = 51
    R8G8_SINT = 52
    R16_TYPELESS = 53
    R16_FLOAT = 54
    D16_UNORM = 55
    R16_UNORM = 56
    R16_UINT = 57
    R16_SNORM = 58
    R16_SINT = 59
    R8_TYPELESS = 60
    R8_UNORM = 61
    R8_UINT = 62
    R8_SNORM = 63
    R8_SINT = 64
    A8_UNORM = 65
    R1_UNORM = 66
    R9G9B9E5_SHAREDEXP = 67
    R8G8_B8G8_UNORM = 68
    G8R8_G8B8_UNORM = 69
    BC1_TYPELESS = 70
    BC1_UNORM = 71
    BC1_UNORM_SRGB = 72
    BC2_TYPELESS = 73
    BC2_UNORM = 74
    BC2_UNORM_SRGB = 75
    BC3_TYPELESS = 76
    BC3_UNORM = 77
    BC3_UNORM_SRGB = 78
    BC4_TYPELESS = 79
    BC4_UNORM = 80
    BC4_SNORM = 81
    BC5_TYPELESS = 82
    BC5_UNORM = 83
    BC5_SNORM = 84
    B5G6R5_UNORM = 85
    B5G5R5A1_UNORM = 86
    B8G8R8A8_UNORM = 87
    B8G8R8X8_UNORM = 88
    R10G10B10_XR_BIAS_A2_UNORM = 89
    B8G8R8A8_TYPELESS = 90
    B8G8R8A8_UNORM_SRGB = 91
    B8G8R8X8_TYPELESS = 92
    B8G8R8X8_UNORM_SRGB = 93
    BC6H_TYPELESS = 94
    BC6H_UF16 = 95
    BC6H_SF16 = 96
    BC7_TYPELESS = 97
    BC7_UNORM = 98
    BC7_UNORM_SRGB = 99
    AYUV = 100
    Y410 = 101
    Y416 = 102
    NV12 = 103
    P010 = 104
    P016 = 105
    OPAQUE_420 = 106
    YUY2 = 107
    Y210 = 108
    Y216 = 109
    NV11 = 110
    AI44 = 111
    IA44 = 112
    P8 = 113
    A8P8 = 114
    B4G4R4A4_UNORM = 115
    P208 = 130
    V208 = 131
    V408 = 132


class Dimensionality(IntEnum):
    TEXTURE_1D = 2
    TEXTURE_2D = 3
    TEXTURE_3D = 4

    @classmethod
    def of(cls, dimensions: Dimensions) -> Dimensionality:
        return cls(dimensions.ndim + 1)

    def dimensions(self, width: int, height: int, depth: int) -> Dimensions:
        return Dimensions.of((width, height, depth)[: self.value - 1])


class AlphaMode(IntEnum):
    UNKNOWN = 0
    STRAIGHT = 1
    PREMULTIPLIED = 2
    OPAQUE = 3
    CUSTOM = 4


RGBA_MASKS = (0xFF, 0xFF00, 0xFF0000)
BGRA_MASKS = (0xFF0000, 0xFF00, 0xFF)

# Typeless block formats read as UNORM
_S3TC_FORMATS: dict[DXGIFormat, S3TCFormat] = {
    DXGIFormat.BC1_TYPELESS: S3TCFormat.bc1(),
    DXGIFormat.BC1_UNORM: S3TCFormat.bc1(),
    DXGIFormat.BC1_UNORM_SRGB: S3TCFormat.bc1(srgb=True),
    DXGIFormat.BC2_TYPELESS: S3TCFormat.bc2(),
    DXGIFormat.BC2_UNORM: S3TCFormat.bc2(),
    DXGIFormat.BC2_UNORM_SRGB: S3TCFormat.bc2(srgb=True),
    DXGIFormat.BC3_TYPELESS: S3TCFormat.bc3(),
    DXGIFormat.BC3_UNORM: S3TCFormat.bc3(),
    DXGIFormat.BC3_UNORM_SRGB: S3TCFormat.bc3(srgb=True),
    DXGIFormat.BC4_TYPELESS: S3TCFormat.bc4(),
    DXGIFormat.BC4_UNORM: S3TCFormat.bc4(),
    DXGIFormat.BC4_SNORM: S3TCFormat.bc4(signed=True),
    DXGIFormat.BC5_TYPELESS: S3TCFormat.bc5(),
    DXGIFormat.BC5_UNORM: S3TCFormat.bc5(),
    DXGIFormat.BC5_SNORM: S3TCFormat.bc5(signed=True),
}

_S3TC_DXGI: dict[S3TCFormat, DXGIFormat] = {
    S3TCFormat.bc1(): DXGIFormat.BC1_UNORM,
    S3TCFormat.bc1(srgb=True): DXGIFormat.BC1_UNORM_SRGB,
    S3TCFormat.bc2(): DXGIFormat.BC2_UNORM,
    S3TCFormat.bc2(srgb=True): DXGIFormat.BC2_UNORM_SRGB,
    S3TCFormat.bc3(): DXGIFormat.BC3_UNORM,
    S3TCFormat.bc3(srgb=True): DXGIFormat.BC3_UNORM_SRGB,
    S3TCFormat.bc4(): DXGIFormat.BC4_UNORM,
    S3TCFormat.bc4(signed=True): DXGIFormat.BC4_SNORM,
    S3TCFormat.bc5(): DXGIFormat.BC5_UNORM,
    S3TCFormat.bc5(signed=True): DXGIFormat.BC5_SNORM,
}


def _uncompressed(dxgi: DXGIFormat, premultiplied: bool) -> UncompressedFormat | None:
    alpha = AlphaFormat.custom(0xFF000000, premultiplied)
    if dxgi in (DXGIFormat.R8G8B8A8_UNORM, DXGIFormat.R8G8B8A8_UNORM_SRGB):
        srgb = dxgi == DXGIFormat.R8G8B8A8_UNORM_SRGB
        return UncompressedFormat(4, ColorFormat.rgb(*RGBA_MASKS, srgb=srgb), alpha)
    if dxgi in (DXGIFormat.B8G8R8A8_UNORM, DXGIFormat.B8G8R8A8_UNORM_SRGB):
        srgb = dxgi == DXGIFormat.B8G8R8A8_UNORM_SRGB
        return UncompressedFormat(4, ColorFormat.rgb(*BGRA_MASKS, srgb=srgb), alpha)
    if dxgi in (DXGIFormat.B8G8R8X8_UNORM, DXGIFormat.B8G8R8X8_UNORM_SRGB):
        srgb = dxgi == DXGIFormat.B8G8R8X8_UNORM_SRGB
        return UncompressedFormat(4, ColorFormat.rgb(*BGRA_MASKS, srgb=srgb))
    if dxgi == DXGIFormat.R8G8_UNORM:
        return UncompressedFormat(2, ColorFormat.rgb(0xFF, 0xFF00, 0))
    if dxgi == DXGIFormat.R8_UNORM:
        return UncompressedFormat(1, ColorFormat.rgb(0xFF, 0, 0))
    if dxgi == DXGIFormat.A8_UNORM:
        return UncompressedFormat(1, ColorFormat.none(), AlphaFormat.custom(0xFF, premultiplied))
    return None


def _dxgi_for_uncompressed(fmt: UncompressedFormat) -> DXGIFormat | None:
    color = fmt.color_format
    opaque = fmt.alpha_format.is_opaque
    masks = tuple(color.masks)
    srgb = color.srgb

    if color.kind == ColorKind.RGB and fmt.pitch == 4:
        if masks == RGBA_MASKS and fmt.alpha_format.mask == 0xFF000000:
            return DXGIFormat.R8G8B8A8_UNORM_SRGB if srgb else DXGIFormat.R8G8B8A8_UNORM
        if masks == BGRA_MASKS and fmt.alpha_format.mask == 0xFF000000:
            return DXGIFormat.B8G8R8A8_UNORM_SRGB if srgb else DXGIFormat.B8G8R8A8_UNORM
        if masks == BGRA_MASKS and opaque:
            return DXGIFormat.B8G8R8X8_UNORM_SRGB if srgb else DXGIFormat.B8G8R8X8_UNORM
    if srgb:
        return None
    if color.kind == ColorKind.RGB and opaque:
        if fmt.pitch == 2 and masks == (0xFF, 0xFF00, 0):
            return DXGIFormat.R8G8_UNORM
        if fmt.pitch == 1 and masks == (0xFF, 0, 0):
            return DXGIFormat.R8_UNORM
    if color.kind == ColorKind.NONE and fmt.pitch == 1 and fmt.alpha_format.mask == 0xFF:
        return DXGIFormat.A8_UNORM
    return None


def format_from_dxgi(dxgi: int, alpha_mode: int = AlphaMode.UNKNOWN) -> Format:
    """Map a DXGI format code to a texture format. Raises FormatError if unsupported."""
    if dxgi in _S3TC_FORMATS:
        return _S3TC_FORMATS[dxgi]
    if dxgi in DXGIFormat._value2member_map_:
        fmt = _uncompressed(DXGIFormat(dxgi), alpha_mode == AlphaMode.PREMULTIPLIED)
        if fmt is not None:
            return fmt
        raise FormatError(f"DXGI format {DXGIFormat(dxgi).name}")
    raise FormatError(f"Unknown DXGI format code {dxgi}")


def dxgi_from_format(fmt: Format) -> tuple[DXGIFormat, AlphaMode]:
    """Pick the DXGI format and alpha mode for ``fmt``. Raises FormatError if none fits."""
    if isinstance(fmt, S3TCFormat):
        if fmt not in _S3TC_DXGI:
            raise FormatError(fmt.name)
        if fmt.kind in (S3TCKind.BC2, S3TCKind.BC3):
            return _S3TC_DXGI[fmt], AlphaMode.STRAIGHT
        return _S3TC_DXGI[fmt], AlphaMode.UNKNOWN

    dxgi = _dxgi_for_uncompressed(fmt)
    if dxgi is None:
        raise FormatError(f"{fmt.name} has no DXGI equivalent")
    if fmt.alpha_format.is_opaque:
        mode = AlphaMode.OPAQUE
    elif fmt.alpha_format.premultiplied:
        mode = AlphaMode.PREMULTIPLIED
    else:
        mode = AlphaMode.STRAIGHT
    return dxgi, mode


DX10_STRUCT = struct.Struct("<IIIII")
DX10_HEADER_SIZE = 20
MISC_TEXTURE_CUBE = 0x4


@dataclass
class DX10Header:
    dxgi_format: int
    dimensionality: Dimensionality
    cube: bool = False
    array_size: int = 1
    alpha_mode: int = AlphaMode.UNKNOWN

    @classmethod
    def unpack(cls, data: bytes) -> DX10Header:
        if len(data) != DX10_HEADER_SIZE:
            raise HeaderError(f"Truncated DX10 header: got {len(data)} of 20 bytes")
        dxgi, dimension, misc, array_size, alpha_mode = DX10_STRUCT.unpack(data)
        try:
            dimensionality = Dimensionality(dimension)
        except ValueError:
            raise HeaderError(f"Invalid DX10 resource dimension {dimension}") from None
        return cls(dxgi, dimensionality, bool(misc & MISC_TEXTURE_CUBE), array_size, alpha_mode)

    def pack(self) -> bytes:
        return DX10_STRUCT.pack(
            int(self.dxgi_format),
            int(self.dimensionality),
            MISC_TEXTURE_CUBE if self.cube else 0,
            self.array_size,
            int(self.alpha_mode),
        )
