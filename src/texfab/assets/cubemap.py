"""
Cubemap Render + Filter - Blender renders six HDR faces, cmft filters them.

    blender -b cubemap.blend -F HDR -o cubemap -f 0
    cmft --inputFacePosX cubemap0000+X.hdr ... --generateMipChain true \\
         --output0params dds,bgr8,cubemap --output0 cubemap \\
         --output1params ktx,rgb8,cubemap --output1 cubemap
    rm *.hdr
"""

from __future__ import annotations

from pathlib import Path

import structlog

from ..config import CubemapConfig, TexfabConfig
from ..shape import CubeFace
from ..tools import ToolSpec, run_tool
from .result import AssetResult, require_inputs, require_outputs, run_pipeline

logger = structlog.get_logger()

CMFT_FACE_OPTIONS = {
    CubeFace.POSITIVE_X: "--inputFacePosX",
    CubeFace.NEGATIVE_X: "--inputFaceNegX",
    CubeFace.POSITIVE_Y: "--inputFacePosY",
    CubeFace.NEGATIVE_Y: "--inputFaceNegY",
    CubeFace.POSITIVE_Z: "--inputFacePosZ",
    CubeFace.NEGATIVE_Z: "--inputFaceNegZ",
}


def blender_args(recipe: CubemapConfig) -> list[str]:
    return [
        "-b",
        recipe.blend_file,
        "-F",
        recipe.render_format,
        "-o",
        recipe.prefix,
        "-f",
        str(recipe.frame),
    ]


def cmft_args(recipe: CubemapConfig) -> list[str]:
    args: list[str] = []
    for face, option in CMFT_FACE_OPTIONS.items():
        args += [option, recipe.face_file(face.suffix)]
    args += ["--generateMipChain", "true" if recipe.generate_mip_chain else "false"]
    for i, output in enumerate(recipe.outputs):
        args += [
            f"--output{i}params",
            f"{output.container},{output.pixel_format},cubemap",
            f"--output{i}",
            recipe.prefix,
        ]
    return args


def expected_outputs(recipe: CubemapConfig) -> list[str]:
    """``<prefix>.<container>`` for every configured output, without repeats."""
    names: list[str] = []
    for output in recipe.outputs:
        name = f"{recipe.prefix}.{output.container}"
        if name not in names:
            names.append(name)
    return names


def remove_intermediates(workdir: Path, recipe: CubemapConfig) -> list[str]:
    removed = []
    for path in sorted(workdir.glob(f"*.{recipe.render_format.lower()}")):
        path.unlink()
        removed.append(path.name)
    logger.info("Removed intermediate faces", count=len(removed))
    return removed


def render_and_filter_cubemap(
    config: TexfabConfig,
    workdir: Path,
    dry_run: bool = False,
) -> AssetResult:
    """
    Render the cubemap scene and filter it into DDS and KTX cubemaps.

    On success ``<prefix>.dds`` and ``<prefix>.ktx`` (one file per configured
    output container) exist in ``workdir`` and the rendered face files are gone,
    unless ``config.keep_intermediates`` is set.
    """
    recipe = config.cubemap

    def steps(result: AssetResult) -> None:
        blender = ToolSpec.resolve(config.tool("blender"), dry_run=dry_run)
        cmft = ToolSpec.resolve(config.tool("cmft"), dry_run=dry_run)

        if not dry_run:
            require_inputs(workdir, [recipe.blend_file])
        result.record(
            run_tool(blender, blender_args(recipe), workdir, config.log_dir, dry_run)
        )

        faces = [recipe.face_file(face.suffix) for face in CubeFace]
        if not dry_run:
            require_inputs(workdir, faces)
        result.record(run_tool(cmft, cmft_args(recipe), workdir, config.log_dir, dry_run))

        if dry_run:
            result.outputs.extend(expected_outputs(recipe))
            return

        require_outputs(workdir, expected_outputs(recipe), result)
        if not config.keep_intermediates:
            result.removed.extend(remove_intermediates(workdir, recipe))

    return run_pipeline("cubemap", steps, dry_run)
