"""
Texfab CLI - Main entry point.

Commands:
    assets      Regenerate test texture assets (cubemap, assemble, compress, all)
    inspect     Show the header of a DDS file
    extract     Decode every surface of a DDS file to PNG
    release     CI checks and publishing
"""

from __future__ import annotations

import logging
from pathlib import Path

import click
import structlog
from rich.console import Console

console = Console()


def _configure_logging(verbose: bool) -> None:
    level = logging.DEBUG if verbose else logging.INFO
    structlog.configure(wrapper_class=structlog.make_filtering_bound_logger(level))


@click.group()
@click.version_option(version="0.1.0")
@click.option("--config", "-c", type=Path, help="Path to config file (default: texfab.yaml)")
@click.option("--verbose", "-v", is_flag=True, help="Debug logging")
@click.pass_context
def main(ctx: click.Context, config: Path | None, verbose: bool) -> None:
    """Texfab - DDS textures and test asset tooling"""
    _configure_logging(verbose)
    ctx.ensure_object(dict)
    ctx.obj["config_path"] = config or Path("texfab.yaml")


def _load_config(ctx: click.Context):
    from texfab.config import TexfabConfig
    from texfab.errors import ConfigError

    try:
        return TexfabConfig.load(ctx.obj["config_path"])
    except ConfigError as e:
        console.print(f"[red]✗[/red] {e}")
        ctx.exit(1)


def _print_result(result) -> None:
    mark = "[green]✓[/green]" if result.success else "[red]✗[/red]"
    suffix = " [dim](dry run)[/dim]" if result.dry_run else ""
    console.print(f"{mark} {result.name}{suffix} [dim]{result.duration_ms}ms[/dim]")
    for command in result.commands:
        console.print(f"  [dim]$[/dim] {command}")
    for output in getattr(result, "outputs", []):
        console.print(f"  [cyan]{output}[/cyan]")
    for removed in getattr(result, "removed", []):
        console.print(f"  [dim]removed {removed}[/dim]")
    for error in result.errors:
        console.print(f"  [red]{error}[/red]")


# Assets


@main.group()
def assets() -> None:
    """Regenerate test texture assets."""
    pass


_workdir_option = click.option(
    "--workdir",
    "-w",
    type=click.Path(file_okay=False, path_type=Path),
    default=Path("."),
    help="Directory holding the asset sources",
)
_dry_run_option = click.option(
    "--dry-run", is_flag=True, help="Show the commands without executing"
)
_builtin_option = click.option(
    "--builtin", is_flag=True, help="Use the Pillow-based encoders instead of NVIDIA Texture Tools"
)


@assets.command(name="cubemap")
@_workdir_option
@_dry_run_option
@click.pass_context
def assets_cubemap(ctx: click.Context, workdir: Path, dry_run: bool) -> None:
    """Render and filter the cubemap with Blender and cmft."""
    from texfab.assets import render_and_filter_cubemap

    result = render_and_filter_cubemap(_load_config(ctx), workdir, dry_run=dry_run)
    _print_result(result)
    ctx.exit(0 if result.success else 1)


@assets.command(name="assemble")
@_workdir_option
@_dry_run_option
@_builtin_option
@click.pass_context
def assets_assemble(ctx: click.Context, workdir: Path, dry_run: bool, builtin: bool) -> None:
    """Assemble six PNG faces into a cubemap DDS."""
    from texfab.assets import assemble_cubemap, assemble_cubemap_builtin

    step = assemble_cubemap_builtin if builtin else assemble_cubemap
    result = step(_load_config(ctx), workdir, dry_run=dry_run)
    _print_result(result)
    ctx.exit(0 if result.success else 1)


@assets.command(name="compress")
@_workdir_option
@_dry_run_option
@_builtin_option
@click.pass_context
def assets_compress(ctx: click.Context, workdir: Path, dry_run: bool, builtin: bool) -> None:
    """Block-compress the configured sample textures."""
    from texfab.assets import compress_textures, compress_textures_builtin

    step = compress_textures_builtin if builtin else compress_textures
    result = step(_load_config(ctx), workdir, dry_run=dry_run)
    _print_result(result)
    ctx.exit(0 if result.success else 1)


@assets.command(name="all")
@_workdir_option
@_dry_run_option
@_builtin_option
@click.option("--skip-render", is_flag=True, help="Skip the Blender/cmft step")
@click.pass_context
def assets_all(
    ctx: click.Context, workdir: Path, dry_run: bool, builtin: bool, skip_render: bool
) -> None:
    """Run every asset pipeline, stopping at the first failure."""
    from texfab.assets import regenerate_all

    results = regenerate_all(
        _load_config(ctx),
        workdir,
        skip_render=skip_render,
        dry_run=dry_run,
        builtin=builtin,
    )
    for result in results:
        _print_result(result)
    ctx.exit(0 if all(r.success for r in results) else 1)


# Textures


@main.command()
@click.argument("file", type=click.Path(exists=True, dir_okay=False, path_type=Path))
@click.option("--json", "as_json", is_flag=True, help="JSON output")
def inspect(file: Path, as_json: bool) -> None:
    """Show the header of a DDS file."""
    from texfab.errors import TextureError
    from texfab.inspect import show_texture

    try:
        show_texture(file, json_output=as_json)
    except TextureError as e:
        console.print(f"[red]✗[/red] {file}: {e}")
        raise SystemExit(1) from None


@main.command()
@click.argument("file", type=click.Path(exists=True, dir_okay=False, path_type=Path))
@click.option(
    "--out",
    "out_dir",
    type=click.Path(file_okay=False, path_type=Path),
    required=True,
    help="Output directory",
)
def extract(file: Path, out_dir: Path) -> None:
    """Decode every surface of a DDS file to PNG."""
    from texfab.errors import TextureError
    from texfab.inspect import extract_surfaces

    try:
        written = extract_surfaces(file, out_dir)
    except TextureError as e:
        console.print(f"[red]✗[/red] {file}: {e}")
        raise SystemExit(1) from None
    console.print(f"[green]✓[/green] Wrote {len(written)} images to [cyan]{out_dir}[/cyan]")


# Release


@main.group()
def release() -> None:
    """CI checks and publishing."""
    pass


@release.command(name="check")
@_dry_run_option
@click.pass_context
def release_check(ctx: click.Context, dry_run: bool) -> None:
    """Run the static checks, then the tests."""
    from texfab.release import run_checks

    result = run_checks(_load_config(ctx), dry_run=dry_run)
    _print_result(result)
    ctx.exit(0 if result.success else 1)


@release.command(name="publish")
@click.option("--tag", type=str, help="Tag to release (default: GITHUB_REF_NAME)")
@_dry_run_option
@click.pass_context
def release_publish(ctx: click.Context, tag: str | None, dry_run: bool) -> None:
    """Publish the package and create the GitHub release (tag pushes only)."""
    from texfab.release import ReleaseContext, publish

    context = ReleaseContext.from_env()
    if tag:
        context.ref_name = tag
    result = publish(context, _load_config(ctx), dry_run=dry_run)

    _print_result(result)
    ctx.exit(0 if result.success else 1)


if __name__ == "__main__":
    main()
