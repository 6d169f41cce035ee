"""
External Tools - Discovery and execution of third-party executables.

Blender, cmft, NVIDIA Texture Tools, yaclog and gh are located through an
explicit path, a ``TEXFAB_<NAME>`` environment variable, well-known install
locations, then ``PATH``. Every run captures stdout/stderr, optionally saves
them to ``<log_dir>/<tool>.log``, and raises on failure.
"""

from __future__ import annotations

import os
import shlex
import shutil
import subprocess
from dataclasses import dataclass, field
from datetime import datetime, timezone
from pathlib import Path
from typing import Iterable, Mapping, Optional, Sequence

import structlog

from .config import ToolConfig
from .errors import ToolFailedError, ToolNotFoundError, ToolTimeoutError

logger = structlog.get_logger()

# Well-known install locations, checked before PATH
TOOL_CANDIDATES: dict[str, list[str]] = {
    "blender": [
        # macOS app bundle (has all resources)
        "/Applications/Blender.app/Contents/MacOS/Blender",
        "/usr/bin/blender",
        "/usr/local/bin/blender",
        "/snap/bin/blender",
        "C:/Program Files/Blender Foundation/Blender 4.1/blender.exe",
        "C:/Program Files/Blender Foundation/Blender 4.0/blender.exe",
    ],
    "cmft": [
        "/usr/local/bin/cmft",
        "/opt/cmft/bin/cmft",
    ],
    "nvassemble": [
        "/usr/local/bin/nvassemble",
        "/usr/bin/nvassemble",
        "C:/Program Files/NVIDIA Corporation/NVIDIA Texture Tools/nvassemble.exe",
    ],
    "nvcompress": [
        "/usr/local/bin/nvcompress",
        "/usr/bin/nvcompress",
        "C:/Program Files/NVIDIA Corporation/NVIDIA Texture Tools/nvcompress.exe",
    ],
}


def env_var_for(name: str) -> str:
    return f"TEXFAB_{name.upper().replace('-', '_')}"


def _resolve(candidate: str) -> Optional[Path]:
    path = Path(candidate).expanduser()
    if path.is_file():
        return path
    found = shutil.which(candidate)
    return Path(found) if found else None


def find_tool(
    name: str,
    explicit: str | Path | None = None,
    candidates: Iterable[str] | None = None,
    environ: Mapping[str, str] | None = None,
) -> Optional[Path]:
    """Find an executable, or None if it is not installed."""
    environ = os.environ if environ is None else environ

    if explicit:
        path = _resolve(str(explicit))
        if path:
            return path
        logger.warning("Configured tool path not found", tool=name, path=str(explicit))

    override = environ.get(env_var_for(name))
    if override:
        path = _resolve(override)
        if path:
            return path
        logger.warning("Tool path from environment not found", tool=name, path=override)

    if candidates is None:
        candidates = TOOL_CANDIDATES.get(name, [])
    for candidate in candidates:
        path = Path(candidate)
        if path.is_file():
            return path

    found = shutil.which(name)
    return Path(found) if found else None


@dataclass
class ToolSpec:
    """A resolved executable with its run settings."""

    name: str
    path: Path
    timeout_seconds: int = 600
    env: dict[str, str] = field(default_factory=dict)

    @classmethod
    def resolve(
        cls,
        config: ToolConfig,
        environ: Mapping[str, str] | None = None,
        dry_run: bool = False,
    ) -> ToolSpec:
        """
        Locate the tool described by ``config``. Raises ToolNotFoundError.

        With ``dry_run`` a missing tool resolves to its bare name so the
        commands can still be printed.
        """
        path = find_tool(config.name, config.path or None, environ=environ)
        if path is None:
            if not dry_run:
                raise ToolNotFoundError(config.name)
            logger.warning("Tool not installed, showing bare name", tool=config.name)
            path = Path(config.name)
        return cls(config.name, path, config.timeout_seconds, dict(config.env))


@dataclass
class ToolRun:
    """Record of one tool invocation."""

    tool: str
    command: list[str]
    exit_code: int = 0
    stdout: str = ""
    stderr: str = ""
    duration_ms: int = 0
    dry_run: bool = False

    @property
    def command_line(self) -> str:
        return shlex.join(self.command)


def _write_log(log_dir: Path, run: ToolRun) -> Path:
    log_dir.mkdir(parents=True, exist_ok=True)
    log_path = log_dir / f"{run.tool}.log"
    with open(log_path, "a") as f:
        f.write(f"=== COMMAND ===\n{run.command_line}\n")
        f.write(f"=== EXIT CODE ===\n{run.exit_code}\n")
        f.write(f"=== STDOUT ===\n{run.stdout}\n")
        f.write(f"=== STDERR ===\n{run.stderr}\n")
    return log_path


def run_tool(
    spec: ToolSpec,
    args: Sequence[str | Path],
    cwd: Path | None = None,
    log_dir: Path | None = None,
    dry_run: bool = False,
) -> ToolRun:
    """
    Run ``spec`` with ``args``.

    Raises ToolFailedError on a non-zero exit code and ToolTimeoutError when
    the tool runs longer than its timeout. In dry-run mode the command is
    recorded but not executed.
    """
    command = [str(spec.path), *(str(a) for a in args)]
    run = ToolRun(spec.name, command, dry_run=dry_run)

    if dry_run:
        logger.info("Dry run", tool=spec.name, command=run.command_line)
        return run

    logger.info("Running tool", tool=spec.name, command=run.command_line, cwd=str(cwd or "."))
    start_time = datetime.now(timezone.utc)

    try:
        result = subprocess.run(
            command,
            cwd=cwd,
            env={**os.environ, **spec.env},
            capture_output=True,
            text=True,
            timeout=spec.timeout_seconds,
        )
    except subprocess.TimeoutExpired:
        logger.error("Tool timed out", tool=spec.name, timeout=spec.timeout_seconds)
        raise ToolTimeoutError(spec.name, spec.timeout_seconds) from None
    except FileNotFoundError:
        raise ToolNotFoundError(spec.name) from None

    run.exit_code = result.returncode
    run.stdout = result.stdout
    run.stderr = result.stderr
    run.duration_ms = int((datetime.now(timezone.utc) - start_time).total_seconds() * 1000)

    if log_dir:
        _write_log(log_dir, run)

    if result.returncode != 0:
        logger.error("Tool failed", tool=spec.name, exit_code=result.returncode)
        raise ToolFailedError(spec.name, result.returncode, result.stderr)

    logger.info("Tool finished", tool=spec.name, duration_ms=run.duration_ms)
    return run


def tool_version(path: Path) -> Optional[str]:
    """First line of ``<tool> --version``, or None if it cannot be determined."""
    try:
        result = subprocess.run(
            [str(path), "--version"],
            capture_output=True,
            text=True,
            timeout=10,
        )
    except (OSError, subprocess.SubprocessError) as e:
        logger.warning("Failed to get tool version", path=str(path), error=str(e))
        return None

    for line in (result.stdout or result.stderr).splitlines():
        if line.strip():
            return line.strip()
    return None
