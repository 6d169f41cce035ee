"""
Texture Containers - File formats that wrap texture data behind a header.

A container header describes dimensions, shape and format but holds no
texture data. Reading a texture parses the header and then its surfaces;
writing builds a header for the texture and writes both.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from pathlib import Path
from typing import Any, BinaryIO, Optional, TypeVar

from ..dimensions import Dimensions
from ..format import Format
from ..shape import CubeFace, TextureShape
from ..texture import Surface, Texture

H = TypeVar("H", bound="ContainerHeader")


class ContainerHeader(ABC):
    """Header of a texture container file."""

    @classmethod
    @abstractmethod
    def read(cls: type[H], stream: BinaryIO) -> H:
        """Parse a header from the start of ``stream``."""

    @abstractmethod
    def write(self, stream: BinaryIO) -> None:
        """Serialize this header to ``stream``."""

    @classmethod
    @abstractmethod
    def from_texture(cls: type[H], texture: Texture, args: Any = None) -> H:
        """Create a header describing ``texture``."""

    @abstractmethod
    def read_surfaces(self, stream: BinaryIO) -> TextureShape[Surface]:
        """Read the surfaces following this header."""

    @abstractmethod
    def write_surfaces(self, stream: BinaryIO, surfaces: TextureShape[Surface]) -> None:
        """Write surfaces in the order this container expects."""

    @abstractmethod
    def dimensions(self) -> Dimensions: ...

    @abstractmethod
    def layers(self) -> Optional[int]: ...

    @abstractmethod
    def faces(self) -> Optional[list[CubeFace]]: ...

    @abstractmethod
    def mips(self) -> Optional[int]: ...

    @abstractmethod
    def format(self) -> Format: ...

    def to_texture(self, stream: BinaryIO) -> Texture:
        fmt = self.format()
        return Texture(fmt, self.read_surfaces(stream))

    @classmethod
    def read_texture(cls, stream: BinaryIO) -> Texture:
        """Read a texture; the header object is not exposed."""
        return cls.read(stream).to_texture(stream)

    @classmethod
    def write_texture(cls, stream: BinaryIO, texture: Texture, args: Any = None) -> None:
        """Write a texture with a header built from ``args``."""
        header = cls.from_texture(texture, args)
        header.write(stream)
        header.write_surfaces(stream, texture.surfaces)

    @classmethod
    def load(cls, path: Path | str) -> Texture:
        with open(path, "rb") as f:
            return cls.read_texture(f)

    @classmethod
    def save(cls, path: Path | str, texture: Texture, args: Any = None) -> None:
        with open(path, "wb") as f:
            cls.write_texture(f, texture, args)
