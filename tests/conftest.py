"""Shared fixtures: fake external tools and configs pointing at them."""

from pathlib import Path
from typing import Callable

import pytest

from texfab.config import TexfabConfig, ToolConfig

FakeTool = Callable[..., Path]

FACE_SUFFIXES = ("+X", "-X", "+Y", "-Y", "+Z", "-Z")


@pytest.fixture
def calls_log(tmp_path: Path) -> Path:
    """File every fake tool appends its name and arguments to."""
    return tmp_path / "calls.log"


@pytest.fixture
def fake_tool(tmp_path: Path, calls_log: Path) -> FakeTool:
    """
    Factory for executable shell scripts standing in for external tools.

    Each script logs ``<name> <args>`` to ``calls_log``, runs ``body`` in the
    working directory it was started in, then exits with ``exit_code``.
    """
    bin_dir = tmp_path / "bin"
    bin_dir.mkdir()

    def make(name: str, body: str = "", exit_code: int = 0) -> Path:
        path = bin_dir / name
        path.write_text(
            "#!/bin/sh\n"
            f'echo "{name} $*" >> "{calls_log}"\n'
            f"{body}\n"
            f"exit {exit_code}\n"
        )
        path.chmod(0o755)
        return path

    return make


@pytest.fixture
def calls(calls_log: Path) -> Callable[[], list[str]]:
    """Return the logged fake tool invocations, oldest first."""

    def read() -> list[str]:
        if not calls_log.exists():
            return []
        return calls_log.read_text().splitlines()

    return read


@pytest.fixture
def tool_config() -> Callable[..., TexfabConfig]:
    """Factory for configs whose ``tools`` section points at the given executables."""

    def make(**paths: Path) -> TexfabConfig:
        return TexfabConfig(
            tools={name: ToolConfig(name=name, path=str(path)) for name, path in paths.items()}
        )

    return make


@pytest.fixture
def workdir(tmp_path: Path) -> Path:
    path = tmp_path / "assets"
    path.mkdir()
    return path


@pytest.fixture
def fake_blender(fake_tool: FakeTool) -> Path:
    """Blender that "renders" the six HDR faces of frame 0."""
    touch = " ".join(f'"cubemap0000{s}.hdr"' for s in FACE_SUFFIXES)
    return fake_tool("blender", f"for f in {touch}; do : > \"$f\"; done")


@pytest.fixture
def fake_cmft(fake_tool: FakeTool) -> Path:
    """cmft that writes recognisable DDS and KTX outputs."""
    return fake_tool("cmft", 'echo CMFT > cubemap.dds\necho CMFT > cubemap.ktx')


@pytest.fixture
def fake_nvassemble(fake_tool: FakeTool) -> Path:
    """nvassemble that writes an empty file at its last argument."""
    return fake_tool("nvassemble", 'for last; do :; done\n: > "$last"')


@pytest.fixture
def fake_nvcompress(fake_tool: FakeTool) -> Path:
    return fake_tool("nvcompress", 'for last; do :; done\n: > "$last"')
