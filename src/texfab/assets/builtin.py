"""
Builtin fallbacks for the NVIDIA Texture Tools steps.

Images are loaded with Pillow, encoded with texfab's own S3TC and bitmask
encoders and written with the DDS writer, producing the same file names as
nvassemble and nvcompress.
"""

from __future__ import annotations

from pathlib import Path
from typing import Mapping

import numpy as np
from PIL import Image

from ..config import TexfabConfig
from ..container.dds import DDSHeader
from ..errors import FormatError
from ..format import RGB8, RGBA8, Format, S3TCFormat, parse_format
from ..shape import CubeFace, TextureShape
from ..texture import Surface, Texture, encode_surface
from .nvtt import face_files
from .result import AssetResult, require_inputs, run_pipeline


def load_image(path: Path, alpha: bool = True) -> Image.Image:
    with Image.open(path) as image:
        return image.convert("RGBA" if alpha else "RGB")


def mip_chain(image: Image.Image) -> list[Image.Image]:
    """The image followed by box-filtered halvings down to 1x1."""
    chain = [image]
    while chain[-1].size != (1, 1):
        width, height = chain[-1].size
        size = (max(width // 2, 1), max(height // 2, 1))
        chain.append(chain[-1].resize(size, Image.Resampling.BOX))
    return chain


def _pixels_for(fmt: Format, image: Image.Image) -> np.ndarray:
    pixels = np.asarray(image)
    if isinstance(fmt, S3TCFormat) and fmt.signed:
        # unsigned image data centred on 128 maps to [-127, 127]
        return np.clip(pixels.astype(np.int16) - 128, -127, 127)
    return pixels


def encode_image(fmt: Format, image: Image.Image, mipmaps: bool = False) -> TextureShape[Surface]:
    images = mip_chain(image) if mipmaps else [image]
    surfaces = [encode_surface(fmt, _pixels_for(fmt, level)) for level in images]
    if mipmaps:
        return TextureShape.from_mips(surfaces)
    return TextureShape.from_surface(surfaces[0])


def texture_from_image(fmt: Format, image: Image.Image, mipmaps: bool = False) -> Texture:
    return Texture(fmt, encode_image(fmt, image, mipmaps))


def cubemap_from_images(
    fmt: Format, faces: Mapping[CubeFace, Image.Image], mipmaps: bool = False
) -> Texture:
    return Texture(
        fmt,
        TextureShape.from_faces(
            (face, encode_image(fmt, image, mipmaps)) for face, image in faces.items()
        ),
    )


def assemble_cubemap_builtin(
    config: TexfabConfig, workdir: Path, dry_run: bool = False
) -> AssetResult:
    """Pillow-based replacement for ``nvassemble -cube``."""
    recipe = config.assemble

    def steps(result: AssetResult) -> None:
        names = face_files(recipe)
        result.commands.append(f"builtin assemble {' '.join(names)} -o {recipe.output}")
        if dry_run:
            result.outputs.append(recipe.output)
            return

        require_inputs(workdir, names)
        fmt = RGB8 if recipe.noalpha else RGBA8
        images = {
            face: load_image(workdir / name, alpha=not recipe.noalpha)
            for face, name in zip(CubeFace, names)
        }
        DDSHeader.save(workdir / recipe.output, cubemap_from_images(fmt, images))
        result.outputs.append(recipe.output)

    return run_pipeline("assemble", steps, dry_run)


def compress_textures_builtin(
    config: TexfabConfig, workdir: Path, dry_run: bool = False
) -> AssetResult:
    """Encode every compress job with the builtin S3TC encoder."""

    def steps(result: AssetResult) -> None:
        for job in config.compress:
            try:
                fmt = _parse_s3tc(job.format)
            except ValueError as e:
                raise FormatError(str(e)) from None

            result.commands.append(f"builtin compress -{job.format} {job.source} {job.output_name}")
            if dry_run:
                result.outputs.append(job.output_name)
                continue

            require_inputs(workdir, [job.source])
            image = load_image(workdir / job.source)
            DDSHeader.save(workdir / job.output_name, texture_from_image(fmt, image, job.mipmaps))
            result.outputs.append(job.output_name)

    return run_pipeline("compress", steps, dry_run)


def _parse_s3tc(name: str) -> S3TCFormat:
    fmt = parse_format(name)
    if not isinstance(fmt, S3TCFormat):
        raise ValueError(f"{name!r} is not a block compressed format")
    return fmt
