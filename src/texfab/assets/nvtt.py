"""
NVIDIA Texture Tools - Assemble cubemaps and block-compress sample textures.

    nvassemble -cube -noalpha cubemap+X.png cubemap-X.png ... -o cubemap.dds
    nvcompress -bc1 -nomips image.png image-bc1.dds
"""

from __future__ import annotations

from pathlib import Path

from ..config import AssembleConfig, CompressJob, TexfabConfig
from ..errors import FormatError
from ..format import S3TCFormat, parse_format
from ..shape import CubeFace
from ..tools import ToolSpec, run_tool
from .result import AssetResult, require_inputs, require_outputs, run_pipeline


def face_files(recipe: AssembleConfig) -> list[str]:
    return [recipe.face_file(face.suffix) for face in CubeFace]


def nvassemble_args(recipe: AssembleConfig) -> list[str]:
    args = ["-cube"]
    if recipe.noalpha:
        args.append("-noalpha")
    return args + face_files(recipe) + ["-o", recipe.output]


def compress_flag(job: CompressJob) -> str:
    try:
        fmt = parse_format(job.format)
    except ValueError as e:
        raise FormatError(str(e)) from None
    if not isinstance(fmt, S3TCFormat) or fmt.signed:
        raise FormatError(f"nvcompress cannot produce {fmt.name}")
    return f"-{fmt.kind.value.lower()}"


def nvcompress_args(job: CompressJob) -> list[str]:
    args = [compress_flag(job)]
    if not job.mipmaps:
        args.append("-nomips")
    return args + [job.source, job.output_name]


def assemble_cubemap(config: TexfabConfig, workdir: Path, dry_run: bool = False) -> AssetResult:
    """Assemble the six ``<prefix>{+X,-X,+Y,-Y,+Z,-Z}.png`` faces into one DDS."""
    recipe = config.assemble

    def steps(result: AssetResult) -> None:
        nvassemble = ToolSpec.resolve(config.tool("nvassemble"), dry_run=dry_run)
        if not dry_run:
            require_inputs(workdir, face_files(recipe))

        args = nvassemble_args(recipe)
        result.record(run_tool(nvassemble, args, workdir, config.log_dir, dry_run))

        if dry_run:
            result.outputs.append(recipe.output)
        else:
            require_outputs(workdir, [recipe.output], result)

    return run_pipeline("assemble", steps, dry_run)


def compress_textures(config: TexfabConfig, workdir: Path, dry_run: bool = False) -> AssetResult:
    """Run nvcompress once per configured job."""

    def steps(result: AssetResult) -> None:
        if not config.compress:
            return
        nvcompress = ToolSpec.resolve(config.tool("nvcompress"), dry_run=dry_run)
        for job in config.compress:
            args = nvcompress_args(job)
            if not dry_run:
                require_inputs(workdir, [job.source])
            result.record(run_tool(nvcompress, args, workdir, config.log_dir, dry_run))

            if dry_run:
                result.outputs.append(job.output_name)
            else:
                require_outputs(workdir, [job.output_name], result)

    return run_pipeline("compress", steps, dry_run)
