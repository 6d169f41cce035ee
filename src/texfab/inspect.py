"""
Inspect - Describe DDS files and extract their surfaces as PNG images.
"""

from __future__ import annotations

import json
from pathlib import Path
from typing import Any

import numpy as np
from PIL import Image
from rich.console import Console
from rich.table import Table

from .container.dds import DDSHeader
from .errors import FormatError
from .shape import SurfaceIndex
from .texture import Surface, Texture

console = Console()


def describe(path: Path) -> dict[str, Any]:
    """Header summary of a DDS file."""
    with open(path, "rb") as f:
        header = DDSHeader.read(f)
        try:
            fmt_name = header.format().name
        except FormatError as e:
            fmt_name = f"unsupported ({e.detail})"
        faces = header.faces()
        return {
            "path": str(path),
            "header": "dx10" if header.is_dx10 else "legacy",
            "dimensions": list(header.dimensions()),
            "format": fmt_name,
            "mips": header.mips(),
            "layers": header.layers(),
            "faces": [face.suffix for face in faces] if faces is not None else None,
            "surfaces": (header.mips() or 1)
            * (header.layers() or 1)
            * (len(faces) if faces else 1),
        }


def show_texture(path: Path, json_output: bool = False) -> None:
    info = describe(path)

    if json_output:
        print(json.dumps(info, indent=2))
        return

    table = Table(title=str(path))
    table.add_column("Field", style="dim")
    table.add_column("Value", style="cyan")
    table.add_row("Header", info["header"])
    table.add_row("Dimensions", "x".join(str(d) for d in info["dimensions"]))
    table.add_row("Format", info["format"])
    table.add_row("Mips", str(info["mips"] or "-"))
    table.add_row("Layers", str(info["layers"] or "-"))
    table.add_row("Faces", " ".join(info["faces"]) if info["faces"] else "-")
    table.add_row("Surfaces", str(info["surfaces"]))
    console.print(table)


def image_from_pixels(pixels: np.ndarray) -> Image.Image:
    """Convert decoded pixels (RGBA, single or two channel) to a Pillow image."""
    if pixels.dtype == np.int8:
        pixels = (pixels.astype(np.int16) + 128).astype(np.uint8)
    if pixels.ndim == 2:
        return Image.fromarray(pixels)
    if pixels.shape[-1] == 2:
        blue = np.zeros(pixels.shape[:2] + (1,), dtype=np.uint8)
        return Image.fromarray(np.concatenate([pixels, blue], axis=-1))
    return Image.fromarray(pixels)


def surface_name(stem: str, index: SurfaceIndex[Surface]) -> str:
    parts = [stem]
    if index.layer is not None:
        parts.append(f"layer{index.layer}")
    if index.face is not None:
        parts.append(index.face.suffix)
    if index.mip is not None:
        parts.append(f"mip{index.mip}")
    return "_".join(parts)


def extract_surfaces(path: Path, out_dir: Path) -> list[Path]:
    """Decode every surface of ``path`` into PNG files in ``out_dir``."""
    texture = DDSHeader.load(path)
    return write_surfaces(texture, path.stem, out_dir)


def write_surfaces(texture: Texture, stem: str, out_dir: Path) -> list[Path]:
    out_dir.mkdir(parents=True, exist_ok=True)
    written = []
    for index in texture.iter_surfaces():
        pixels = texture.decode(index.surface)
        name = surface_name(stem, index)
        if index.surface.dimensions.ndim == 3:
            slices = [(f"{name}_z{z}", pixels[z]) for z in range(pixels.shape[0])]
        else:
            slices = [(name, pixels)]

        for slice_name, data in slices:
            target = out_dir / f"{slice_name}.png"
            image_from_pixels(data).save(target)
            written.append(target)
    return written
