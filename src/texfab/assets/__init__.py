"""
Texfab Assets - Regenerate test texture assets with third-party tools.

Pipelines:
    cubemap     Blender render + cmft filter into DDS and KTX cubemaps
    assemble    nvassemble six PNG faces into a cubemap DDS
    compress    nvcompress sample images into BC1-BC5 DDS files

Each pipeline returns an AssetResult; tool failures are reported in the
result rather than raised.
"""

from __future__ import annotations

from pathlib import Path

import structlog

from ..config import TexfabConfig
from .builtin import assemble_cubemap_builtin, compress_textures_builtin
from .cubemap import expected_outputs, render_and_filter_cubemap
from .nvtt import assemble_cubemap, compress_textures
from .result import AssetResult

logger = structlog.get_logger()


def output_conflicts(config: TexfabConfig, skip_render: bool = False) -> list[str]:
    """File names that more than one pipeline of ``regenerate_all`` would write."""
    planned = [config.assemble.output] + [job.output_name for job in config.compress]
    if not skip_render:
        planned += expected_outputs(config.cubemap)
    return sorted({name for name in planned if planned.count(name) > 1})


def regenerate_all(
    config: TexfabConfig,
    workdir: Path,
    skip_render: bool = False,
    dry_run: bool = False,
    builtin: bool = False,
) -> list[AssetResult]:
    """
    Run cubemap, assemble and compress in order, stopping at the first failure.

    ``skip_render`` leaves out the Blender/cmft step (assemble only). With
    ``builtin`` the NVIDIA Texture Tools steps use the Pillow-based encoders.
    Nothing runs when two pipelines would write the same file in ``workdir``.
    """
    conflicts = output_conflicts(config, skip_render)
    if conflicts:
        result = AssetResult(name="all", dry_run=dry_run)
        result.errors.append(
            f"Pipelines would overwrite each other's outputs: {', '.join(conflicts)}. "
            "Rename assemble.output or the compress outputs, or skip the render step"
        )
        logger.error("Conflicting asset outputs", outputs=conflicts)
        return [result]

    steps = []
    if not skip_render:
        steps.append(render_and_filter_cubemap)
    if builtin:
        steps += [assemble_cubemap_builtin, compress_textures_builtin]
    else:
        steps += [assemble_cubemap, compress_textures]

    results: list[AssetResult] = []
    for step in steps:
        result = step(config, workdir, dry_run=dry_run)
        results.append(result)
        if not result.success:
            logger.warning("Stopping after failed pipeline", asset=result.name)
            break
    return results


__all__ = [
    "AssetResult",
    "assemble_cubemap",
    "assemble_cubemap_builtin",
    "compress_textures",
    "compress_textures_builtin",
    "output_conflicts",
    "regenerate_all",
    "render_and_filter_cubemap",
]
