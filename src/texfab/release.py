"""
Release - CI gating, checks and the publish pipeline.

The CI workflow runs ``texfab release check`` on every push and
``texfab release publish`` only for tag pushes, after the checks passed:

    1. python -m build                   sdist + wheel into dist/
    2. twine upload (twine check when dry-run) with the registry token
    3. gh release create <tag> --notes "$(yaclog show -mb)" --title "Version $(yaclog show -n)"
"""

from __future__ import annotations

import os
import shlex
import shutil
import sys
from dataclasses import dataclass, field
from datetime import datetime, timezone
from pathlib import Path
from typing import Callable, Mapping, Optional

import structlog

from .config import ReleaseConfig, TexfabConfig
from .errors import ToolError, ToolNotFoundError
from .tools import ToolRun, ToolSpec, find_tool, run_tool

logger = structlog.get_logger()

REGISTRY_TOKEN_VAR = "PYPI_TOKEN"
GITHUB_TOKEN_VAR = "GH_TOKEN"


def should_deploy(event_name: str, ref_type: str) -> bool:
    """Deploy runs only for pushes of a tag."""
    return event_name == "push" and ref_type == "tag"


@dataclass
class ReleaseContext:
    """What triggered the run, plus the publish secrets."""

    event_name: str = ""
    ref_type: str = ""
    ref_name: str = ""
    registry_token: Optional[str] = None
    github_token: Optional[str] = None

    @classmethod
    def from_env(cls, environ: Mapping[str, str] | None = None) -> ReleaseContext:
        environ = os.environ if environ is None else environ
        return cls(
            event_name=environ.get("GITHUB_EVENT_NAME", ""),
            ref_type=environ.get("GITHUB_REF_TYPE", ""),
            ref_name=environ.get("GITHUB_REF_NAME", ""),
            registry_token=environ.get(REGISTRY_TOKEN_VAR) or None,
            github_token=environ.get(GITHUB_TOKEN_VAR) or None,
        )

    @property
    def is_tag_push(self) -> bool:
        return should_deploy(self.event_name, self.ref_type)


@dataclass
class ReleaseResult:
    """Result of a release step."""

    name: str
    success: bool = False
    commands: list[str] = field(default_factory=list)
    errors: list[str] = field(default_factory=list)
    artifacts: list[str] = field(default_factory=list)
    duration_ms: int = 0
    dry_run: bool = False

    def record(self, run: ToolRun) -> ToolRun:
        self.commands.append(run.command_line)
        return run

    def fail(self, message: str) -> ReleaseResult:
        logger.error("Release step failed", step=self.name, error=message)
        self.success = False
        self.errors.append(message)
        return self


def _run_step(name: str, steps: Callable[[ReleaseResult], None], dry_run: bool) -> ReleaseResult:
    result = ReleaseResult(name=name, dry_run=dry_run)
    start_time = datetime.now(timezone.utc)
    try:
        steps(result)
        result.success = True
    except ToolError as e:
        result.fail(str(e))
    result.duration_ms = int((datetime.now(timezone.utc) - start_time).total_seconds() * 1000)
    return result


def command_spec(
    command: str, release: ReleaseConfig, dry_run: bool = False
) -> tuple[ToolSpec, list[str]]:
    """Split a shell-style command into a resolved tool and its arguments."""
    argv = shlex.split(command)
    if not argv:
        raise ToolNotFoundError("(empty command)")
    path = find_tool(argv[0], candidates=[])
    if path is None:
        if not dry_run:
            raise ToolNotFoundError(argv[0])
        path = Path(argv[0])
    return ToolSpec(Path(argv[0]).name, path, release.timeout_seconds), argv[1:]


def run_checks(
    config: TexfabConfig, cwd: Path | None = None, dry_run: bool = False
) -> ReleaseResult:
    """Run the static check then the tests, stopping at the first failure."""
    release = config.release

    def steps(result: ReleaseResult) -> None:
        for command in (release.check_command, release.test_command):
            spec, args = command_spec(command, release, dry_run)
            result.record(run_tool(spec, args, cwd, config.log_dir, dry_run))

    return _run_step("check", steps, dry_run)


def _yaclog(config: TexfabConfig, args: list[str], cwd: Path | None) -> str:
    spec = ToolSpec.resolve(config.tool(config.release.changelog_tool))
    return run_tool(spec, args, cwd, config.log_dir).stdout.strip()


def changelog_notes(config: TexfabConfig, cwd: Path | None = None) -> str:
    """Release notes: markdown body of the latest changelog entry."""
    return _yaclog(config, ["show", "-mb"], cwd)


def changelog_title(config: TexfabConfig, cwd: Path | None = None) -> str:
    return f"Version {_yaclog(config, ['show', '-n'], cwd)}"


def _python(release: ReleaseConfig, env: dict[str, str] | None = None) -> ToolSpec:
    return ToolSpec("python", Path(sys.executable), release.timeout_seconds, env or {})


def publish(
    context: ReleaseContext,
    config: TexfabConfig,
    cwd: Path | None = None,
    dry_run: bool = False,
) -> ReleaseResult:
    """
    Build, upload and create the GitHub release for a tag push.

    Refuses anything that is not a tag push. Missing tokens fail before any
    upload. ``dry_run`` validates the distributions with ``twine check``
    instead of uploading and only records the ``gh release`` command.
    """
    release = config.release
    workdir = cwd or Path.cwd()

    if not context.is_tag_push:
        return ReleaseResult("publish", dry_run=dry_run).fail(
            f"Refusing to publish: not a tag push "
            f"(event={context.event_name or '-'}, ref_type={context.ref_type or '-'})"
        )
    if not dry_run:
        missing = [
            var
            for var, value in (
                (REGISTRY_TOKEN_VAR, context.registry_token),
                (GITHUB_TOKEN_VAR, context.github_token),
            )
            if not value
        ]
        if missing:
            return ReleaseResult("publish", dry_run=dry_run).fail(
                f"Missing secrets: {', '.join(missing)}"
            )

    def steps(result: ReleaseResult) -> None:
        dist_dir = workdir / release.dist_dir
        if dist_dir.exists():
            # dist_dir holds only this build's artifacts
            logger.info("Removing previous build artifacts", dist_dir=str(dist_dir))
            shutil.rmtree(dist_dir)
        result.record(
            run_tool(
                _python(release),
                ["-m", "build", "--outdir", str(dist_dir)],
                workdir,
                config.log_dir,
            )
        )
        artifacts = sorted(str(p) for p in dist_dir.glob("*") if p.is_file())
        result.artifacts.extend(artifacts)

        if dry_run:
            twine_args = ["-m", "twine", "check", *artifacts]
            twine = _python(release)
        else:
            twine_args = [
                "-m",
                "twine",
                "upload",
                "--non-interactive",
                "--repository",
                release.repository,
                *artifacts,
            ]
            twine = _python(
                release,
                {"TWINE_USERNAME": "__token__", "TWINE_PASSWORD": context.registry_token or ""},
            )
        result.record(run_tool(twine, twine_args, workdir, config.log_dir))

        notes = changelog_notes(config, workdir)
        title = changelog_title(config, workdir)
        gh = ToolSpec.resolve(config.tool("gh"), dry_run=dry_run)
        gh.env[GITHUB_TOKEN_VAR] = context.github_token or ""
        gh_args = ["release", "create", context.ref_name, "--notes", notes, "--title", title]
        result.record(run_tool(gh, gh_args, workdir, config.log_dir, dry_run))
        logger.info("Published release", tag=context.ref_name, title=title, dry_run=dry_run)

    return _run_step("publish", steps, dry_run)
