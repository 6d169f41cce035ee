"""
Asset pipeline results.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime, timezone
from pathlib import Path
from typing import Callable

import structlog

from ..errors import InputMissingError, OutputMissingError, TextureError, ToolError
from ..tools import ToolRun

logger = structlog.get_logger()


@dataclass
class AssetResult:
    """Result of one asset pipeline."""

    name: str
    success: bool = False
    outputs: list[str] = field(default_factory=list)
    removed: list[str] = field(default_factory=list)
    commands: list[str] = field(default_factory=list)
    errors: list[str] = field(default_factory=list)
    duration_ms: int = 0
    dry_run: bool = False

    def record(self, run: ToolRun) -> ToolRun:
        self.commands.append(run.command_line)
        return run


def require_inputs(workdir: Path, names: list[str]) -> None:
    for name in names:
        if not (workdir / name).is_file():
            raise InputMissingError(str(workdir / name))


def require_outputs(workdir: Path, names: list[str], result: AssetResult) -> None:
    for name in names:
        if not (workdir / name).is_file():
            raise OutputMissingError(str(workdir / name))
        result.outputs.append(name)


def run_pipeline(
    name: str,
    steps: Callable[[AssetResult], None],
    dry_run: bool = False,
) -> AssetResult:
    """Run ``steps`` and turn tool and texture errors into a failed result."""
    result = AssetResult(name=name, dry_run=dry_run)
    start_time = datetime.now(timezone.utc)
    logger.info("Running asset pipeline", asset=name, dry_run=dry_run)

    try:
        steps(result)
        result.success = True
    except (ToolError, TextureError) as e:
        logger.error("Asset pipeline failed", asset=name, error=str(e))
        result.errors.append(str(e))

    result.duration_ms = int((datetime.now(timezone.utc) - start_time).total_seconds() * 1000)
    if result.success:
        logger.info("Asset pipeline finished", asset=name, outputs=result.outputs)
    return result
