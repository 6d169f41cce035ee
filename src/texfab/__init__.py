"""
Texfab: DDS Textures and Test Asset Tooling

- Reads and writes DDS files with legacy and DX10 headers
- Encodes and decodes S3TC (BC1-BC5) block compressed surfaces
- Models textures as a tree of array, cubemap and mipmap structures
- Regenerates test assets with Blender, cmft and NVIDIA Texture Tools
"""

__version__ = "0.1.0"

from texfab.container.dds import DDSHeader, DDSHeaderArgs, DDSHeaderMode
from texfab.dimensions import Dimensions
from texfab.errors import TextureError, ToolError
from texfab.format import AlphaFormat, ColorFormat, S3TCFormat, UncompressedFormat
from texfab.shape import CubeFace, TextureShape
from texfab.texture import Surface, Texture

__all__ = [
    "AlphaFormat",
    "ColorFormat",
    "CubeFace",
    "DDSHeader",
    "DDSHeaderArgs",
    "DDSHeaderMode",
    "Dimensions",
    "S3TCFormat",
    "Surface",
    "Texture",
    "TextureError",
    "TextureShape",
    "ToolError",
    "UncompressedFormat",
]
